# Request-scoped wiring of services onto one database session
from typing import Optional
from fastapi import Depends, Request
from sqlmodel import Session

from .config import settings
from .database import get_session
from .exceptions import Unauthorized
from .application.ports.clock import Clock
from .application.ports.user_repo import UserDto
from .application.services.auth_service import AuthService
from .application.services.session_service import SessionService
from .application.services.user_directory_service import UserDirectoryService
from .application.services.machine_registry_service import MachineRegistryService
from .application.services.serial_verification_service import SerialVerificationService
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.clock.system_clock import SystemClock
from .infrastructure.otp.log_sender import LoggingOtpSender
from .infrastructure.security.sha256_hasher import Sha256CredentialHasher
from .infrastructure.persistence.sqlalchemy.transaction import SqlTransactionManager
from .infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository
from .infrastructure.persistence.sqlalchemy.repositories.otp_repository_sql import SqlOtpRepository
from .infrastructure.persistence.sqlalchemy.repositories.session_repository_sql import SqlSessionRepository
from .infrastructure.persistence.sqlalchemy.repositories.machine_repository_sql import SqlMachineRepository

_audit = StdAuditLogger()
_hasher = Sha256CredentialHasher()
_otp_sender = LoggingOtpSender()
_system_clock = SystemClock()


def get_clock() -> Clock:
    return _system_clock


def get_session_service(session: Session = Depends(get_session), clock: Clock = Depends(get_clock)) -> SessionService:
    return SessionService(
        session_repo=SqlSessionRepository(session),
        user_repo=SqlUserRepository(session, clock),
        hasher=_hasher,
        clock=clock,
        tx=SqlTransactionManager(session),
        expiry_days=settings.SESSION_EXPIRY_DAYS,
    )


def get_auth_service(
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
    sessions: SessionService = Depends(get_session_service),
) -> AuthService:
    return AuthService(
        user_repo=SqlUserRepository(session, clock),
        otp_repo=SqlOtpRepository(session),
        sessions=sessions,
        hasher=_hasher,
        clock=clock,
        tx=SqlTransactionManager(session),
        otp_sender=_otp_sender,
        audit=_audit,
        otp_expiry_minutes=settings.OTP_EXPIRY_MINUTES,
        max_attempts=settings.OTP_MAX_ATTEMPTS,
    )


def get_user_directory_service(session: Session = Depends(get_session), clock: Clock = Depends(get_clock)) -> UserDirectoryService:
    return UserDirectoryService(
        user_repo=SqlUserRepository(session, clock),
        tx=SqlTransactionManager(session),
        audit=_audit,
    )


def get_machine_registry_service(session: Session = Depends(get_session), clock: Clock = Depends(get_clock)) -> MachineRegistryService:
    return MachineRegistryService(
        user_repo=SqlUserRepository(session, clock),
        machine_repo=SqlMachineRepository(session),
        clock=clock,
        tx=SqlTransactionManager(session),
        audit=_audit,
        max_placeholders=settings.MAX_PLACEHOLDER_MACHINES,
    )


def get_serial_verification_service(session: Session = Depends(get_session), clock: Clock = Depends(get_clock)) -> SerialVerificationService:
    return SerialVerificationService(
        user_repo=SqlUserRepository(session, clock),
        machine_repo=SqlMachineRepository(session),
        clock=clock,
        tx=SqlTransactionManager(session),
        audit=_audit,
        warranty_months=settings.WARRANTY_MONTHS,
    )


def get_optional_user(request: Request, sessions: SessionService = Depends(get_session_service)) -> Optional[UserDto]:
    return sessions.authenticate(request.headers.get("authorization"))


def get_current_user(user: Optional[UserDto] = Depends(get_optional_user)) -> UserDto:
    if user is None:
        raise Unauthorized()
    return user
