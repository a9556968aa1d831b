from fastapi import APIRouter, Depends

from ..dependencies import get_current_user, get_serial_verification_service
from ..application.ports.user_repo import UserDto
from ..application.services.serial_verification_service import SerialVerificationService
from ..schemas.common.common import ErrorResponse
from ..schemas.machines.machine import MachineActionResponse, MachineResponse, WarrantyClaimRequest

router = APIRouter(prefix="/api/warranty", tags=["Warranty"], responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}})


@router.post("/claim", response_model=MachineActionResponse)
def claim_warranty(
    body: WarrantyClaimRequest,
    current_user: UserDto = Depends(get_current_user),
    verification: SerialVerificationService = Depends(get_serial_verification_service),
):
    machine = verification.manual_warranty_claim(
        current_user, body.serial_number, body.installation_date, hostel_id=body.hostel_id
    )
    return MachineActionResponse(message="Warranty claimed successfully.", machine=MachineResponse.from_dto(machine))
