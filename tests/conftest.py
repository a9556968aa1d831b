import os

# Keep the module-level engine off the developer's database file
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from app.application.ports.user_repo import Role
from app.application.services.auth_service import AuthService
from app.application.services.machine_registry_service import MachineRegistryService
from app.application.services.serial_verification_service import SerialVerificationService
from app.application.services.session_service import SessionService
from app.application.services.user_directory_service import UserDirectoryService
from app.infrastructure.security.sha256_hasher import Sha256CredentialHasher

from fakes import (
    FakeAudit,
    FakeClock,
    FakeMachineRepo,
    FakeOtpRepo,
    FakeSessionRepo,
    FakeTransaction,
    FakeUserRepo,
    RecordingSender,
)

ADMIN_PHONE = "9999999999"
WARDEN_PHONE = "9876543210"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tx():
    return FakeTransaction()


@pytest.fixture
def audit():
    return FakeAudit()


@pytest.fixture
def users():
    return FakeUserRepo()


@pytest.fixture
def machines():
    return FakeMachineRepo()


@pytest.fixture
def otps():
    return FakeOtpRepo()


@pytest.fixture
def session_rows():
    return FakeSessionRepo()


@pytest.fixture
def hasher():
    return Sha256CredentialHasher()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def admin(users):
    return users.add(Role.ADMIN, "Asha Admin", ADMIN_PHONE)


@pytest.fixture
def warden(users):
    return users.add(Role.WARDEN, "Walter Warden", WARDEN_PHONE)


@pytest.fixture
def session_service(session_rows, users, hasher, clock, tx):
    return SessionService(session_repo=session_rows, user_repo=users, hasher=hasher, clock=clock, tx=tx)


@pytest.fixture
def auth_service(users, otps, session_service, hasher, clock, tx, sender, audit):
    return AuthService(user_repo=users, otp_repo=otps, sessions=session_service, hasher=hasher,
                       clock=clock, tx=tx, otp_sender=sender, audit=audit)


@pytest.fixture
def directory(users, tx, audit):
    return UserDirectoryService(user_repo=users, tx=tx, audit=audit)


@pytest.fixture
def registry(users, machines, clock, tx, audit):
    return MachineRegistryService(user_repo=users, machine_repo=machines, clock=clock, tx=tx, audit=audit)


@pytest.fixture
def verification(users, machines, clock, tx, audit):
    return SerialVerificationService(user_repo=users, machine_repo=machines, clock=clock, tx=tx, audit=audit)
