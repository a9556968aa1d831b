from typing import Optional, Tuple
from dataclasses import dataclass
import logging
import re

from ..ports.audit_logger import AuditLogger
from ..ports.transaction import TransactionManager
from ..ports.user_repo import Role, UserRepository, UserDto
from ...exceptions import AdminAlreadyExists, Conflict, Forbidden, NotFound, TeamMemberExists, ValidationFailure
from ...utils import require_phone

logger = logging.getLogger(__name__)

TEAM_ROLES = (Role.SERVICE_MANAGER, Role.SERVICE_SUPERVISOR)
_AADHAAR = re.compile(r"^[0-9]{12}$")


def require_active_admin(user_repo: UserRepository, user_id: Optional[str], message: str) -> UserDto:
    admin = user_repo.get_by_id(user_id) if user_id else None
    if admin is None or admin.role != Role.ADMIN or not admin.is_active:
        raise Forbidden(message)
    return admin


def transition_role(user_repo: UserRepository, audit: Optional[AuditLogger], user: UserDto, new_role: Role,
                    changed_by: Optional[str], reason: str) -> UserDto:
    """The one place a user's role changes. Every change is audited."""
    new_role = Role(new_role)
    if user.role == new_role:
        return user
    old_role = user.role
    updated = user_repo.set_role(user.id, new_role)
    logger.warning(f"Role of user {user.id} changed from {old_role.value} to {new_role.value} ({reason})")
    if audit is not None:
        audit.log(
            "ROLE_CHANGED",
            phone=user.phone,
            user_id=user.id,
            details={"from": old_role.value, "to": new_role.value, "changed_by": changed_by, "reason": reason},
        )
    return updated


def require_name(full_name: str) -> str:
    name = (full_name or "").strip()
    if len(name) < 2:
        raise ValidationFailure("Full name must be at least 2 characters.")
    return name


@dataclass
class UserDirectoryService:
    user_repo: UserRepository
    tx: TransactionManager
    audit: Optional[AuditLogger] = None

    def bootstrap_admin(self, full_name: str, phone: str) -> Tuple[UserDto, bool]:
        """Create the first admin. Returns ``(admin, created)``."""
        name = require_name(full_name)
        phone = require_phone(phone)
        existing = self.user_repo.get_by_phone(phone)
        if existing is not None:
            if existing.role == Role.ADMIN:
                return existing, False
            raise Conflict("Phone number already belongs to a non-admin user.")
        if self.user_repo.exists_with_role(Role.ADMIN):
            raise AdminAlreadyExists()
        with self.tx.atomic():
            admin = self.user_repo.create(Role.ADMIN, name, phone)
        if self.audit is not None:
            self.audit.log("ADMIN_BOOTSTRAP", phone=phone, user_id=admin.id)
        return admin, True

    def register_team_member(self, role: Role, full_name: str, phone_primary: str, phone_secondary: str,
                             aadhaar_number: str, district_id: Optional[str] = None) -> UserDto:
        role = Role(role)
        if role not in TEAM_ROLES:
            raise ValidationFailure("Team members must be SERVICE_MANAGER or SERVICE_SUPERVISOR.")
        name = require_name(full_name)
        primary = require_phone(phone_primary)
        secondary = require_phone(phone_secondary)
        if not _AADHAAR.match(aadhaar_number or ""):
            raise ValidationFailure("Aadhaar number must be 12 digits.")

        with self.tx.atomic():
            user = self.user_repo.get_by_phone(primary)
            if user is None:
                user = self.user_repo.create(role, name, primary, district_id=district_id,
                                             phone_secondary=secondary, aadhaar_number=aadhaar_number)
            elif user.role != role or not user.is_active:
                # Unauthenticated path: never a role change or a reactivation
                raise TeamMemberExists()
            else:
                user = self.user_repo.update_profile(user.id, name, district_id=district_id,
                                                     phone_secondary=secondary, aadhaar_number=aadhaar_number,
                                                     is_active=True)
        return user

    def change_role(self, acting_admin_id: str, user_id: str, new_role: Role) -> UserDto:
        admin = require_active_admin(self.user_repo, acting_admin_id, "Only active Admin can change roles.")
        user = self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFound("User not found.")
        if user.id == admin.id and Role(new_role) != Role.ADMIN:
            raise Conflict("Admins cannot demote themselves.")
        with self.tx.atomic():
            return transition_role(self.user_repo, self.audit, user, new_role, changed_by=admin.id,
                                   reason="admin role change")
