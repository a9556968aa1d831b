from typing import Protocol, List, Optional
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class SerialStatus(str, Enum):
    # A machine without a claim has no status at all (UNCLAIMED)
    UNCLAIMED = "UNCLAIMED"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class WarrantyStatus(str, Enum):
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"


@dataclass
class MachineDto:
    id: str
    temp_machine_code: str
    created_at: datetime
    serial_number: Optional[str] = None
    district_id: Optional[str] = None
    hostel_id: Optional[str] = None
    assigned_warden_id: Optional[str] = None
    registration_uploaded_by: Optional[str] = None
    serial_verification_status: SerialStatus = SerialStatus.UNCLAIMED
    claimed_serial_number: Optional[str] = None
    claimed_installation_date: Optional[date] = None
    serial_claim_notes: Optional[str] = None
    serial_claimed_at: Optional[datetime] = None
    serial_rejection_reason: Optional[str] = None
    serial_verified_by_id: Optional[str] = None
    serial_verified_at: Optional[datetime] = None
    installation_date: Optional[date] = None
    warranty_status: Optional[WarrantyStatus] = None
    warranty_start_date: Optional[date] = None
    warranty_end_date: Optional[date] = None
    warranty_claimed_by_id: Optional[str] = None
    warranty_claimed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MachineRepository(Protocol):
    def get_by_id(self, machine_id: str) -> Optional[MachineDto]:
        ...

    def get_by_temp_code(self, temp_machine_code: str) -> Optional[MachineDto]:
        ...

    def get_by_serial(self, serial_number: str) -> Optional[MachineDto]:
        ...

    def find_by_serials(self, serial_numbers: List[str]) -> List[MachineDto]:
        ...

    def list_for_warden(self, warden_id: str) -> List[MachineDto]:
        """Machines assigned to the warden, newest first."""
        ...

    def create_placeholder(self, temp_machine_code: str, district_id: Optional[str], hostel_id: Optional[str],
                           warden_id: str, uploaded_by: str, created_at: datetime) -> MachineDto:
        """Raises TempCodeConflict when the code is already taken."""
        ...

    def assign(self, machine_ids: List[str], warden_id: str, hostel_id: Optional[str], updated_at: datetime) -> None:
        """A None hostel leaves each machine's current hostel in place."""
        ...

    def save(self, machine: MachineDto, expected_status: Optional[SerialStatus] = None) -> MachineDto:
        """Persist every mutable field. Raises SerialConflict on a duplicate serial.

        With ``expected_status`` the write only lands while the stored status
        still matches it; otherwise StaleMachineState is raised.
        """
        ...
