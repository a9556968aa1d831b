from datetime import datetime
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy import update
from sqlmodel import Session, select

from .....db.models import Machine
from .....application.ports.machine_repo import (
    MachineDto,
    MachineRepository,
    SerialStatus,
    WarrantyStatus,
)
from .....exceptions import MachineNotFound, SerialConflict, StaleMachineState, TempCodeConflict

# Columns written by save(); id, temp code and creation stamps never change.
_MUTABLE_FIELDS = (
    "serial_number",
    "district_id",
    "hostel_id",
    "assigned_warden_id",
    "claimed_serial_number",
    "claimed_installation_date",
    "serial_claim_notes",
    "serial_claimed_at",
    "serial_rejection_reason",
    "serial_verified_by_id",
    "serial_verified_at",
    "installation_date",
    "warranty_start_date",
    "warranty_end_date",
    "warranty_claimed_by_id",
    "warranty_claimed_at",
    "updated_at",
)


def _status_value(status: SerialStatus) -> Optional[str]:
    # UNCLAIMED is stored as NULL
    status = SerialStatus(status)
    return None if status == SerialStatus.UNCLAIMED else status.value


def _status_is(status: SerialStatus):
    value = _status_value(status)
    if value is None:
        return Machine.serial_verification_status == None  # noqa: E711
    return Machine.serial_verification_status == value


class SqlMachineRepository(MachineRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, m: Machine) -> MachineDto:
        return MachineDto(
            id=m.id,
            temp_machine_code=m.temp_machine_code,
            created_at=m.created_at,
            serial_number=m.serial_number,
            district_id=m.district_id,
            hostel_id=m.hostel_id,
            assigned_warden_id=m.assigned_warden_id,
            registration_uploaded_by=m.registration_uploaded_by,
            serial_verification_status=SerialStatus(m.serial_verification_status or SerialStatus.UNCLAIMED.value),
            claimed_serial_number=m.claimed_serial_number,
            claimed_installation_date=m.claimed_installation_date,
            serial_claim_notes=m.serial_claim_notes,
            serial_claimed_at=m.serial_claimed_at,
            serial_rejection_reason=m.serial_rejection_reason,
            serial_verified_by_id=m.serial_verified_by_id,
            serial_verified_at=m.serial_verified_at,
            installation_date=m.installation_date,
            warranty_status=WarrantyStatus(m.warranty_status) if m.warranty_status else None,
            warranty_start_date=m.warranty_start_date,
            warranty_end_date=m.warranty_end_date,
            warranty_claimed_by_id=m.warranty_claimed_by_id,
            warranty_claimed_at=m.warranty_claimed_at,
            updated_at=m.updated_at,
        )

    def get_by_id(self, machine_id: str) -> Optional[MachineDto]:
        m = self.session.exec(select(Machine).where(Machine.id == machine_id)).first()
        return self._to_dto(m) if m else None

    def get_by_temp_code(self, temp_machine_code: str) -> Optional[MachineDto]:
        m = self.session.exec(select(Machine).where(Machine.temp_machine_code == temp_machine_code)).first()
        return self._to_dto(m) if m else None

    def get_by_serial(self, serial_number: str) -> Optional[MachineDto]:
        m = self.session.exec(select(Machine).where(Machine.serial_number == serial_number)).first()
        return self._to_dto(m) if m else None

    def find_by_serials(self, serial_numbers: List[str]) -> List[MachineDto]:
        if not serial_numbers:
            return []
        rows = self.session.exec(select(Machine).where(Machine.serial_number.in_(serial_numbers))).all()
        return [self._to_dto(m) for m in rows]

    def list_for_warden(self, warden_id: str) -> List[MachineDto]:
        rows = self.session.exec(
            select(Machine)
            .where(Machine.assigned_warden_id == warden_id)
            .order_by(Machine.created_at.desc())
        ).all()
        return [self._to_dto(m) for m in rows]

    def create_placeholder(self, temp_machine_code: str, district_id: Optional[str], hostel_id: Optional[str],
                           warden_id: str, uploaded_by: str, created_at: datetime) -> MachineDto:
        m = Machine(
            temp_machine_code=temp_machine_code,
            district_id=district_id,
            hostel_id=hostel_id,
            assigned_warden_id=warden_id,
            registration_uploaded_by=uploaded_by,
            created_at=created_at,
            updated_at=created_at,
        )
        self.session.add(m)
        try:
            self.session.flush()
        except IntegrityError as e:
            raise TempCodeConflict(extra={"tempMachineCode": temp_machine_code}) from e
        return self._to_dto(m)

    def assign(self, machine_ids: List[str], warden_id: str, hostel_id: Optional[str], updated_at: datetime) -> None:
        if not machine_ids:
            return
        rows = self.session.exec(select(Machine).where(Machine.id.in_(machine_ids))).all()
        for m in rows:
            m.assigned_warden_id = warden_id
            if hostel_id is not None:
                m.hostel_id = hostel_id
            m.updated_at = updated_at
            self.session.add(m)
        self.session.flush()

    def save(self, machine: MachineDto, expected_status: Optional[SerialStatus] = None) -> MachineDto:
        values = {name: getattr(machine, name) for name in _MUTABLE_FIELDS}
        values["serial_verification_status"] = _status_value(machine.serial_verification_status)
        values["warranty_status"] = WarrantyStatus(machine.warranty_status).value if machine.warranty_status else None

        # Conditional write: the status read earlier must still be the stored one
        stmt = update(Machine).where(Machine.id == machine.id)
        if expected_status is not None:
            stmt = stmt.where(_status_is(expected_status))
        try:
            result = self.session.execute(stmt.values(**values))
        except IntegrityError as e:
            raise SerialConflict(extra={"serialNumber": machine.serial_number}) from e

        if result.rowcount != 1:
            if self.session.get(Machine, machine.id) is None:
                raise MachineNotFound()
            raise StaleMachineState()
        m = self.session.get(Machine, machine.id, populate_existing=True)
        return self._to_dto(m)
