from typing import Optional
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
import logging

from ..ports.audit_logger import AuditLogger
from ..ports.clock import Clock
from ..ports.machine_repo import MachineDto, MachineRepository, SerialStatus
from ..ports.transaction import TransactionManager
from ..ports.user_repo import Role, UserDto, UserRepository
from .user_directory_service import require_active_admin
from .warranty import DEFAULT_WARRANTY_MONTHS, compute_warranty
from ...exceptions import (
    AlreadyApproved,
    Forbidden,
    MachineNotFound,
    MissingInstallDate,
    NoSerialAvailable,
    NotYetApproved,
    StaleMachineState,
    ValidationFailure,
)

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Serial number did not match records."
MAX_TEXT_LENGTH = 500


class ReviewAction(str, Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


# Transition table: the states a claim or a review may start from.
CLAIMABLE_FROM = frozenset({SerialStatus.UNCLAIMED, SerialStatus.PENDING, SerialStatus.REJECTED})
# APPROVED is final for both claims and reviews; re-approval is refused
# instead of silently re-dating the serial or warranty.
REVIEWABLE_FROM = frozenset({SerialStatus.UNCLAIMED, SerialStatus.PENDING, SerialStatus.REJECTED})


def _require_warden(user: Optional[UserDto], message: str) -> UserDto:
    if user is None or user.role != Role.WARDEN or not user.is_active:
        raise Forbidden(message)
    return user


def _clean_serial(value: Optional[str], label: str) -> Optional[str]:
    if value is None:
        return None
    serial = value.strip()
    if len(serial) < 4:
        raise ValidationFailure(f"{label} must be at least 4 characters.")
    return serial


def _check_length(value: Optional[str], label: str) -> Optional[str]:
    if value is not None and len(value) > MAX_TEXT_LENGTH:
        raise ValidationFailure(f"{label} must be at most {MAX_TEXT_LENGTH} characters.")
    return value


@dataclass
class SerialVerificationService:
    """Serial claim lifecycle: UNCLAIMED -> PENDING -> APPROVED | REJECTED.

    REJECTED machines may be claimed again. APPROVED is final; the only
    follow-up is the legacy manual warranty claim.
    """

    user_repo: UserRepository
    machine_repo: MachineRepository
    clock: Clock
    tx: TransactionManager
    audit: Optional[AuditLogger] = None
    warranty_months: int = DEFAULT_WARRANTY_MONTHS

    def submit_claim(self, warden: Optional[UserDto], temp_machine_code: str, claimed_serial: str,
                     installation_date: date, notes: Optional[str] = None,
                     hostel_id: Optional[str] = None) -> MachineDto:
        warden = _require_warden(warden, "Only wardens can submit serial claim.")
        serial = _clean_serial(claimed_serial, "Claimed serial number")
        notes = _check_length(notes, "Claim notes")
        if installation_date is None:
            raise ValidationFailure("Installation date is required.")

        machine = self.machine_repo.get_by_temp_code(temp_machine_code)
        if machine is None:
            raise MachineNotFound("Machine placeholder not found.")
        if machine.assigned_warden_id != warden.id:
            raise Forbidden("Machine is not assigned to this warden.")
        if machine.serial_verification_status not in CLAIMABLE_FROM:
            raise AlreadyApproved()

        now = self.clock.now()
        claimed = replace(
            machine,
            claimed_serial_number=serial,
            claimed_installation_date=installation_date,
            serial_claim_notes=notes,
            serial_claimed_at=now,
            serial_verification_status=SerialStatus.PENDING,
            serial_rejection_reason=None,
            hostel_id=hostel_id if hostel_id is not None else machine.hostel_id,
            updated_at=now,
        )
        saved = self._commit(claimed, machine.serial_verification_status)
        self._audit("SERIAL_CLAIM", warden, machine.id, {"claimed_serial": serial})
        return saved

    def review_claim(self, admin_id: str, machine_id: str, action: ReviewAction,
                     approved_serial: Optional[str] = None,
                     rejection_reason: Optional[str] = None) -> MachineDto:
        admin = require_active_admin(self.user_repo, admin_id, "Only active Admin can review serial claims.")
        action = ReviewAction(action)
        approved_serial = _clean_serial(approved_serial, "Approved serial number")
        rejection_reason = _check_length(rejection_reason, "Rejection reason")

        machine = self.machine_repo.get_by_id(machine_id)
        if machine is None:
            raise MachineNotFound()
        if machine.serial_verification_status not in REVIEWABLE_FROM:
            raise AlreadyApproved()

        if action == ReviewAction.REJECT:
            return self._reject(admin, machine, rejection_reason)
        return self._approve(admin, machine, approved_serial)

    def manual_warranty_claim(self, warden: Optional[UserDto], serial_number: str, installation_date: date,
                              hostel_id: Optional[str] = None) -> MachineDto:
        """Legacy path: re-date the warranty of an approved machine without a new review."""
        warden = _require_warden(warden, "Only wardens can claim warranty.")
        if installation_date is None:
            raise ValidationFailure("Installation date is required.")

        machine = self.machine_repo.get_by_serial((serial_number or "").strip())
        if machine is None:
            raise MachineNotFound()
        if machine.assigned_warden_id != warden.id:
            raise Forbidden("This machine serial is not assigned to your account.")
        if machine.serial_verification_status != SerialStatus.APPROVED:
            raise NotYetApproved()

        now = self.clock.now()
        window = compute_warranty(installation_date, now, self.warranty_months)
        updated = replace(
            machine,
            installation_date=window.start,
            warranty_start_date=window.start,
            warranty_end_date=window.end,
            warranty_status=window.status,
            warranty_claimed_by_id=warden.id,
            warranty_claimed_at=now,
            hostel_id=hostel_id if hostel_id is not None else machine.hostel_id,
            updated_at=now,
        )
        saved = self._commit(updated, SerialStatus.APPROVED)
        self._audit("WARRANTY_CLAIM", warden, machine.id, {"warranty_end": window.end.isoformat()})
        return saved

    def _reject(self, admin: UserDto, machine: MachineDto, reason: Optional[str]) -> MachineDto:
        now = self.clock.now()
        rejected = replace(
            machine,
            serial_verification_status=SerialStatus.REJECTED,
            serial_rejection_reason=reason or DEFAULT_REJECTION_REASON,
            serial_verified_by_id=admin.id,
            serial_verified_at=now,
            updated_at=now,
        )
        saved = self._commit(rejected, machine.serial_verification_status)
        self._audit("SERIAL_REJECT", admin, machine.id, {"reason": rejected.serial_rejection_reason})
        return saved

    def _approve(self, admin: UserDto, machine: MachineDto, approved_serial: Optional[str]) -> MachineDto:
        final_serial = approved_serial or machine.claimed_serial_number
        if not final_serial:
            raise NoSerialAvailable()
        if machine.claimed_installation_date is None:
            raise MissingInstallDate()

        now = self.clock.now()
        window = compute_warranty(machine.claimed_installation_date, now, self.warranty_months)
        approved = replace(
            machine,
            serial_number=final_serial,
            serial_verification_status=SerialStatus.APPROVED,
            serial_verified_by_id=admin.id,
            serial_verified_at=now,
            serial_rejection_reason=None,
            installation_date=window.start,
            warranty_start_date=window.start,
            warranty_end_date=window.end,
            warranty_status=window.status,
            warranty_claimed_by_id=machine.assigned_warden_id,
            warranty_claimed_at=now,
            updated_at=now,
        )
        # Serial uniqueness is enforced by the store; a clash surfaces as SerialConflict.
        saved = self._commit(approved, machine.serial_verification_status)
        self._audit("SERIAL_APPROVE", admin, machine.id, {"serial": final_serial, "warranty": window.status.value})
        return saved

    def _commit(self, updated: MachineDto, expected_status: SerialStatus) -> MachineDto:
        """Write ``updated`` only if the machine is still in ``expected_status``."""
        try:
            with self.tx.atomic():
                return self.machine_repo.save(updated, expected_status=expected_status)
        except StaleMachineState:
            current = self.machine_repo.get_by_id(updated.id)
            if current is not None and current.serial_verification_status == SerialStatus.APPROVED:
                raise AlreadyApproved() from None
            raise

    def _audit(self, action: str, actor: UserDto, machine_id: str, details: dict) -> None:
        logger.info(f"{action} on machine {machine_id} by {actor.id}")
        if self.audit is not None:
            self.audit.log(action, phone=actor.phone, user_id=actor.id, details={"machine_id": machine_id, **details})
