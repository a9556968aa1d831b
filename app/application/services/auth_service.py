from typing import Optional
from dataclasses import dataclass
from datetime import datetime, timedelta
import logging

from ..ports.audit_logger import AuditLogger
from ..ports.clock import Clock
from ..ports.credential_hasher import CredentialHasher
from ..ports.otp_repo import OtpRepository
from ..ports.otp_sender import OtpSender
from ..ports.transaction import TransactionManager
from ..ports.user_repo import Role, UserRepository, UserDto
from .session_service import SessionService
from ...exceptions import (
    InvalidCode,
    NotRegistered,
    OtpExpired,
    OtpNotFound,
    RoleMismatch,
    TooManyAttempts,
    ValidationFailure,
)
from ...utils import generate_otp, is_well_formed_otp, require_phone

logger = logging.getLogger(__name__)

OTP_EXPIRY_MINUTES = 5
MAX_OTP_ATTEMPTS = 5
PURPOSE_LOGIN = "LOGIN"


@dataclass
class OtpIssued:
    code: str
    expires_at: datetime
    expires_in_minutes: int


@dataclass
class SessionIssued:
    token: str
    expires_at: datetime
    user: UserDto


@dataclass
class AuthService:
    """Phone OTP login.

    Verification always reads the newest unconsumed code for the phone, so a
    fresh request supersedes older codes without touching their rows.
    """

    user_repo: UserRepository
    otp_repo: OtpRepository
    sessions: SessionService
    hasher: CredentialHasher
    clock: Clock
    tx: TransactionManager
    otp_sender: Optional[OtpSender] = None
    audit: Optional[AuditLogger] = None
    otp_expiry_minutes: int = OTP_EXPIRY_MINUTES
    max_attempts: int = MAX_OTP_ATTEMPTS

    def request_otp(self, phone: str, expected_role: Optional[Role] = None) -> OtpIssued:
        phone = require_phone(phone)
        user = self.user_repo.get_by_phone(phone)
        if user is None or not user.is_active:
            self._audit("OTP_REQUEST", phone, success=False, details={"reason": "not_registered"})
            raise NotRegistered()
        if expected_role is not None and user.role != Role(expected_role):
            self._audit("OTP_REQUEST", phone, user.id, success=False, details={"reason": "role_mismatch"})
            raise RoleMismatch()

        code = generate_otp()
        now = self.clock.now()
        expires_at = now + timedelta(minutes=self.otp_expiry_minutes)
        with self.tx.atomic():
            self.otp_repo.create(user.id, phone, self.hasher.digest(code), PURPOSE_LOGIN, now, expires_at)

        if self.otp_sender is not None:
            self.otp_sender.send(phone, code, expires_at)
        self._audit("OTP_REQUEST", phone, user.id)
        return OtpIssued(code=code, expires_at=expires_at, expires_in_minutes=self.otp_expiry_minutes)

    def verify_otp(self, phone: str, code: str) -> SessionIssued:
        phone = require_phone(phone)
        if not is_well_formed_otp(code):
            raise ValidationFailure("OTP must be 6 digits.")

        record = self.otp_repo.latest_unconsumed(phone, PURPOSE_LOGIN)
        if record is None:
            raise OtpNotFound()
        now = self.clock.now()
        if record.expires_at < now:
            raise OtpExpired()
        if record.attempts >= self.max_attempts:
            self._audit("OTP_VERIFY", phone, record.user_id, success=False, details={"reason": "too_many_attempts"})
            raise TooManyAttempts()

        if not self.hasher.matches(code, record.code_hash):
            with self.tx.atomic():
                attempts = self.otp_repo.increment_attempts(record.id)
            self._audit("OTP_VERIFY", phone, record.user_id, success=False, details={"attempts": attempts})
            raise InvalidCode(extra={"attempts": attempts})

        user = self.user_repo.get_by_id(record.user_id)
        if user is None or not user.is_active:
            raise NotRegistered()

        with self.tx.atomic():
            # A concurrent verification of the same code may have consumed it first
            if not self.otp_repo.mark_consumed(record.id, now):
                raise OtpNotFound()
            token, expires_at = self.sessions.issue(user.id)

        self._audit("OTP_VERIFY", phone, user.id)
        return SessionIssued(token=token, expires_at=expires_at, user=user)

    def _audit(self, action: str, phone: str, user_id: Optional[str] = None, success: bool = True, details=None) -> None:
        if self.audit is not None:
            self.audit.log(action, phone=phone, user_id=user_id, success=success, details=details)
