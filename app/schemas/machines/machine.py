# app/schemas/machines/machine.py
from pydantic import BaseModel, Field, root_validator
from typing import List, Optional
from datetime import date, datetime

from ..users.user import UserResponse
from ...application.ports.machine_repo import MachineDto, SerialStatus, WarrantyStatus
from ...application.services.serial_verification_service import ReviewAction

class MachineResponse(BaseModel):
    id: str
    temp_machine_code: str
    serial_number: Optional[str] = None
    district_id: Optional[str] = None
    hostel_id: Optional[str] = None
    serial_verification_status: SerialStatus
    claimed_serial_number: Optional[str] = None
    claimed_installation_date: Optional[date] = None
    serial_claim_notes: Optional[str] = None
    serial_rejection_reason: Optional[str] = None
    installation_date: Optional[date] = None
    warranty_status: Optional[WarrantyStatus] = None
    warranty_start_date: Optional[date] = None
    warranty_end_date: Optional[date] = None
    created_at: datetime

    @classmethod
    def from_dto(cls, m: MachineDto) -> "MachineResponse":
        return cls(
            id=m.id,
            temp_machine_code=m.temp_machine_code,
            serial_number=m.serial_number,
            district_id=m.district_id,
            hostel_id=m.hostel_id,
            serial_verification_status=m.serial_verification_status,
            claimed_serial_number=m.claimed_serial_number,
            claimed_installation_date=m.claimed_installation_date,
            serial_claim_notes=m.serial_claim_notes,
            serial_rejection_reason=m.serial_rejection_reason,
            installation_date=m.installation_date,
            warranty_status=m.warranty_status,
            warranty_start_date=m.warranty_start_date,
            warranty_end_date=m.warranty_end_date,
            created_at=m.created_at,
        )

class PreRegisterWardenRequest(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=100)
    phone: str = Field(..., min_length=10)
    district_id: str
    hostel_id: Optional[str] = None
    machine_serial_numbers: Optional[List[str]] = None
    machine_count: Optional[int] = Field(None, gt=0, le=20)

    @root_validator(skip_on_failure=True)
    def require_serials_or_count(cls, values):
        serials = values.get('machine_serial_numbers')
        count = values.get('machine_count')
        if not serials and not count:
            raise ValueError('Provide either machine_serial_numbers or machine_count.')
        return values

class PreRegisterWardenResponse(BaseModel):
    message: str = "Warden pre-registered and machine mapping saved."
    warden: UserResponse
    assigned_serials: List[str]
    assigned_temp_machine_codes: List[str]

class AssignedMachinesResponse(BaseModel):
    warden: UserResponse
    machines: List[MachineResponse]

class SerialClaimRequest(BaseModel):
    temp_machine_code: str = Field(..., min_length=4)
    claimed_serial_number: str = Field(..., min_length=4)
    installation_date: date
    claim_notes: Optional[str] = Field(None, max_length=500)
    hostel_id: Optional[str] = None

class SerialReviewRequest(BaseModel):
    action: ReviewAction
    approved_serial_number: Optional[str] = Field(None, min_length=4)
    rejection_reason: Optional[str] = Field(None, max_length=500)

class WarrantyClaimRequest(BaseModel):
    serial_number: str = Field(..., min_length=4)
    installation_date: date
    hostel_id: Optional[str] = None

class MachineActionResponse(BaseModel):
    message: str
    machine: MachineResponse
