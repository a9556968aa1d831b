from typing import List, Optional
from dataclasses import dataclass, field
import logging

from ..ports.audit_logger import AuditLogger
from ..ports.clock import Clock
from ..ports.machine_repo import MachineDto, MachineRepository
from ..ports.transaction import TransactionManager
from ..ports.user_repo import Role, UserDto, UserRepository
from .user_directory_service import require_active_admin, require_name, transition_role
from ...exceptions import Conflict, Forbidden, SomeSerialsNotFound, ValidationFailure
from ...utils import generate_temp_machine_code, require_phone

logger = logging.getLogger(__name__)

MAX_PLACEHOLDER_MACHINES = 20


@dataclass
class PreRegistration:
    warden: UserDto
    assigned_serials: List[str] = field(default_factory=list)
    assigned_temp_codes: List[str] = field(default_factory=list)


def dedupe_serials(serials: List[str]) -> List[str]:
    """Strip and dedupe, keeping first-seen order."""
    seen = []
    for raw in serials:
        serial = (raw or "").strip()
        if not serial:
            raise ValidationFailure("Machine serial numbers cannot be blank.")
        if serial not in seen:
            seen.append(serial)
    return seen


@dataclass
class MachineRegistryService:
    user_repo: UserRepository
    machine_repo: MachineRepository
    clock: Clock
    tx: TransactionManager
    audit: Optional[AuditLogger] = None
    max_placeholders: int = MAX_PLACEHOLDER_MACHINES

    def pre_register_warden(self, admin_id: str, full_name: str, phone: str, district_id: str,
                            hostel_id: Optional[str] = None, serials: Optional[List[str]] = None,
                            count: Optional[int] = None) -> PreRegistration:
        """Upsert a warden by phone and map machines to them.

        A non-empty ``serials`` list assigns existing machines; otherwise
        ``count`` placeholders are created. Either way the whole call is one
        transaction.
        """
        admin = require_active_admin(self.user_repo, admin_id, "Only active Admin can pre-register wardens.")
        name = require_name(full_name)
        phone = require_phone(phone)
        if not district_id:
            raise ValidationFailure("District is required.")

        requested = dedupe_serials(serials) if serials else []
        if not requested:
            if count is None or count < 1 or count > self.max_placeholders:
                raise ValidationFailure(
                    f"Provide either machineSerialNumbers or machineCount between 1 and {self.max_placeholders}."
                )

        with self.tx.atomic():
            warden = self._upsert_warden(admin, name, phone, district_id)
            if requested:
                result = self._assign_known_serials(warden, requested, hostel_id)
            else:
                result = self._create_placeholders(admin, warden, phone, district_id, hostel_id, count)

        if self.audit is not None:
            self.audit.log(
                "WARDEN_PRE_REGISTER",
                phone=phone,
                user_id=warden.id,
                details={
                    "admin_id": admin.id,
                    "serials": len(result.assigned_serials),
                    "placeholders": len(result.assigned_temp_codes),
                },
            )
        return result

    def list_assigned_machines(self, current_user: Optional[UserDto]) -> List[MachineDto]:
        if current_user is None or current_user.role != Role.WARDEN:
            raise Forbidden("Only wardens can access this endpoint.")
        return self.machine_repo.list_for_warden(current_user.id)

    def _upsert_warden(self, admin: UserDto, name: str, phone: str, district_id: str) -> UserDto:
        existing = self.user_repo.get_by_phone(phone)
        if existing is None:
            return self.user_repo.create(Role.WARDEN, name, phone, district_id=district_id)
        if existing.role == Role.ADMIN:
            raise Conflict("Phone number belongs to an admin; change roles through the admin role endpoint.")
        warden = self.user_repo.update_profile(existing.id, name, district_id=district_id,
                                               phone_secondary=existing.phone_secondary,
                                               aadhaar_number=existing.aadhaar_number, is_active=True)
        return transition_role(self.user_repo, self.audit, warden, Role.WARDEN, changed_by=admin.id,
                               reason="warden pre-registration")

    def _assign_known_serials(self, warden: UserDto, serials: List[str], hostel_id: Optional[str]) -> PreRegistration:
        machines = self.machine_repo.find_by_serials(serials)
        found = {m.serial_number for m in machines}
        missing = [s for s in serials if s not in found]
        if missing:
            raise SomeSerialsNotFound(missing)

        self.machine_repo.assign([m.id for m in machines], warden.id, hostel_id, self.clock.now())
        return PreRegistration(
            warden=warden,
            assigned_serials=list(serials),
            assigned_temp_codes=[m.temp_machine_code for m in machines],
        )

    def _create_placeholders(self, admin: UserDto, warden: UserDto, phone: str, district_id: str,
                             hostel_id: Optional[str], count: int) -> PreRegistration:
        now = self.clock.now()
        codes = []
        for index in range(count):
            code = generate_temp_machine_code(phone, index, now)
            machine = self.machine_repo.create_placeholder(code, district_id, hostel_id, warden.id, admin.id, now)
            codes.append(machine.temp_machine_code)
        logger.info(f"Created {len(codes)} placeholder machines for warden {warden.id}")
        return PreRegistration(warden=warden, assigned_temp_codes=codes)
