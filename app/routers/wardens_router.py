from fastapi import APIRouter, Depends

from ..dependencies import (
    get_current_user,
    get_machine_registry_service,
    get_serial_verification_service,
)
from ..application.ports.user_repo import UserDto
from ..application.services.machine_registry_service import MachineRegistryService
from ..application.services.serial_verification_service import SerialVerificationService
from ..schemas.common.common import ErrorResponse
from ..schemas.machines.machine import (
    AssignedMachinesResponse,
    MachineActionResponse,
    MachineResponse,
    PreRegisterWardenRequest,
    PreRegisterWardenResponse,
    SerialClaimRequest,
)
from ..schemas.users.user import UserResponse

router = APIRouter(prefix="/api/wardens", tags=["Wardens"], responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}})


@router.post("/pre-register", response_model=PreRegisterWardenResponse)
def pre_register_warden(
    body: PreRegisterWardenRequest,
    current_user: UserDto = Depends(get_current_user),
    registry: MachineRegistryService = Depends(get_machine_registry_service),
):
    result = registry.pre_register_warden(
        admin_id=current_user.id,
        full_name=body.full_name,
        phone=body.phone,
        district_id=body.district_id,
        hostel_id=body.hostel_id,
        serials=body.machine_serial_numbers,
        count=body.machine_count,
    )
    return PreRegisterWardenResponse(
        warden=UserResponse.from_dto(result.warden),
        assigned_serials=result.assigned_serials,
        assigned_temp_machine_codes=result.assigned_temp_codes,
    )


@router.get("/me/machines", response_model=AssignedMachinesResponse)
def my_machines(
    current_user: UserDto = Depends(get_current_user),
    registry: MachineRegistryService = Depends(get_machine_registry_service),
):
    machines = registry.list_assigned_machines(current_user)
    return AssignedMachinesResponse(
        warden=UserResponse.from_dto(current_user),
        machines=[MachineResponse.from_dto(m) for m in machines],
    )


@router.post("/me/serial-claim", response_model=MachineActionResponse)
def submit_serial_claim(
    body: SerialClaimRequest,
    current_user: UserDto = Depends(get_current_user),
    verification: SerialVerificationService = Depends(get_serial_verification_service),
):
    machine = verification.submit_claim(
        current_user,
        body.temp_machine_code,
        body.claimed_serial_number,
        body.installation_date,
        notes=body.claim_notes,
        hostel_id=body.hostel_id,
    )
    return MachineActionResponse(
        message="Serial claim submitted. Waiting for Admin approval.",
        machine=MachineResponse.from_dto(machine),
    )
