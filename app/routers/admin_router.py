from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..dependencies import (
    get_current_user,
    get_serial_verification_service,
    get_user_directory_service,
)
from ..application.ports.user_repo import UserDto
from ..application.services.serial_verification_service import ReviewAction, SerialVerificationService
from ..application.services.user_directory_service import UserDirectoryService
from ..schemas.common.common import ErrorResponse
from ..schemas.machines.machine import MachineActionResponse, MachineResponse, SerialReviewRequest
from ..schemas.users.user import (
    BootstrapAdminRequest,
    BootstrapAdminResponse,
    ChangeRoleRequest,
    ChangeRoleResponse,
    UserResponse,
)

router = APIRouter(prefix="/api/admin", tags=["Admin"], responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}})


@router.post("/bootstrap", response_model=BootstrapAdminResponse)
def bootstrap_admin(body: BootstrapAdminRequest, directory: UserDirectoryService = Depends(get_user_directory_service)):
    admin, created = directory.bootstrap_admin(body.full_name, body.phone)
    payload = BootstrapAdminResponse(
        message="Admin created." if created else "Admin already exists.",
        admin=UserResponse.from_dto(admin),
    )
    return JSONResponse(status_code=201 if created else 200, content=payload.model_dump(mode="json"))


@router.post("/machines/{machine_id}/serial-review", response_model=MachineActionResponse)
def review_serial_claim(
    machine_id: str,
    body: SerialReviewRequest,
    current_user: UserDto = Depends(get_current_user),
    verification: SerialVerificationService = Depends(get_serial_verification_service),
):
    machine = verification.review_claim(
        current_user.id,
        machine_id,
        body.action,
        approved_serial=body.approved_serial_number,
        rejection_reason=body.rejection_reason,
    )
    message = "Serial approved and warranty activated." if body.action == ReviewAction.APPROVE else "Serial claim rejected."
    return MachineActionResponse(message=message, machine=MachineResponse.from_dto(machine))


@router.post("/users/{user_id}/role", response_model=ChangeRoleResponse)
def change_user_role(
    user_id: str,
    body: ChangeRoleRequest,
    current_user: UserDto = Depends(get_current_user),
    directory: UserDirectoryService = Depends(get_user_directory_service),
):
    user = directory.change_role(current_user.id, user_id, body.role)
    return ChangeRoleResponse(user=UserResponse.from_dto(user))
