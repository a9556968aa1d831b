from dataclasses import replace

import pytest

from app.application.ports.user_repo import Role
from app.exceptions import (
    InvalidCode,
    NotRegistered,
    OtpExpired,
    OtpNotFound,
    RoleMismatch,
    TooManyAttempts,
    ValidationFailure,
)

from conftest import WARDEN_PHONE


def wrong_code(code: str) -> str:
    return "000000" if code != "000000" else "111111"


def test_request_otp_for_unregistered_phone(auth_service, admin):
    with pytest.raises(NotRegistered):
        auth_service.request_otp("1111111111")


def test_request_otp_for_inactive_user(auth_service, users):
    users.add(Role.WARDEN, "Dormant", "5555555555", is_active=False)
    with pytest.raises(NotRegistered):
        auth_service.request_otp("5555555555")


def test_request_otp_role_mismatch(auth_service, warden):
    with pytest.raises(RoleMismatch):
        auth_service.request_otp(WARDEN_PHONE, expected_role=Role.ADMIN)


def test_request_otp_stores_only_hash(auth_service, warden, otps, sender, clock, hasher):
    issued = auth_service.request_otp("(98765) 43-210", expected_role=Role.WARDEN)

    assert len(issued.code) == 6
    assert (issued.expires_at - clock.now()).total_seconds() == 5 * 60
    row = otps.rows[0]
    assert row.phone == WARDEN_PHONE
    assert row.code_hash == hasher.digest(issued.code)
    assert row.purpose == "LOGIN"
    assert sender.sent[0][1] == issued.code


def test_verify_success_creates_session(auth_service, warden, otps, session_rows, hasher):
    issued = auth_service.request_otp(WARDEN_PHONE)
    result = auth_service.verify_otp(WARDEN_PHONE, issued.code)

    assert result.user.id == warden.id
    assert otps.rows[0].consumed_at is not None
    stored = list(session_rows.rows.values())
    assert len(stored) == 1
    assert stored[0].token_hash == hasher.digest(result.token)
    assert stored[0].token_hash != result.token
    assert (result.expires_at - stored[0].created_at).days == 30


def test_wrong_code_increments_attempts(auth_service, warden, otps):
    issued = auth_service.request_otp(WARDEN_PHONE)
    with pytest.raises(InvalidCode) as exc:
        auth_service.verify_otp(WARDEN_PHONE, wrong_code(issued.code))
    assert exc.value.extra["attempts"] == 1
    assert otps.rows[0].attempts == 1

    # attempts are not reset by the later successful login
    auth_service.verify_otp(WARDEN_PHONE, issued.code)
    assert otps.rows[0].attempts == 1


def test_sixth_attempt_is_locked_even_with_correct_code(auth_service, warden):
    issued = auth_service.request_otp(WARDEN_PHONE)
    for _ in range(5):
        with pytest.raises(InvalidCode):
            auth_service.verify_otp(WARDEN_PHONE, wrong_code(issued.code))

    with pytest.raises(TooManyAttempts):
        auth_service.verify_otp(WARDEN_PHONE, issued.code)


def test_otp_is_single_use(auth_service, warden):
    issued = auth_service.request_otp(WARDEN_PHONE)
    auth_service.verify_otp(WARDEN_PHONE, issued.code)
    with pytest.raises((OtpNotFound, OtpExpired)):
        auth_service.verify_otp(WARDEN_PHONE, issued.code)


def test_expired_code(auth_service, warden, clock):
    issued = auth_service.request_otp(WARDEN_PHONE)
    clock.advance(minutes=5, seconds=1)
    with pytest.raises(OtpExpired):
        auth_service.verify_otp(WARDEN_PHONE, issued.code)


def test_code_valid_until_expiry_instant(auth_service, warden, clock):
    issued = auth_service.request_otp(WARDEN_PHONE)
    clock.advance(minutes=5)
    assert auth_service.verify_otp(WARDEN_PHONE, issued.code).user.id == warden.id


def test_newer_code_supersedes_older(auth_service, warden, clock):
    first = auth_service.request_otp(WARDEN_PHONE)
    clock.advance(seconds=30)
    second = auth_service.request_otp(WARDEN_PHONE)
    if first.code != second.code:
        with pytest.raises(InvalidCode):
            auth_service.verify_otp(WARDEN_PHONE, first.code)
    assert auth_service.verify_otp(WARDEN_PHONE, second.code).user.id == warden.id


def test_verify_without_request(auth_service, warden):
    with pytest.raises(OtpNotFound):
        auth_service.verify_otp(WARDEN_PHONE, "123456")


def test_verify_rejects_malformed_code(auth_service, warden, otps):
    auth_service.request_otp(WARDEN_PHONE)
    with pytest.raises(ValidationFailure):
        auth_service.verify_otp(WARDEN_PHONE, "12ab56")
    assert otps.rows[0].attempts == 0


def test_consume_and_session_share_one_transaction(auth_service, warden, tx):
    issued = auth_service.request_otp(WARDEN_PHONE)
    before = tx.commits
    auth_service.verify_otp(WARDEN_PHONE, issued.code)
    assert tx.commits == before + 1


def test_code_consumed_by_a_concurrent_verification_issues_no_session(auth_service, warden, otps, session_rows, tx):
    issued = auth_service.request_otp(WARDEN_PHONE)
    seen_before_consume = replace(otps.latest_unconsumed(WARDEN_PHONE, "LOGIN"))
    auth_service.verify_otp(WARDEN_PHONE, issued.code)

    # the second caller read the row before the first one consumed it
    otps.latest_unconsumed = lambda phone, purpose: seen_before_consume
    with pytest.raises(OtpNotFound):
        auth_service.verify_otp(WARDEN_PHONE, issued.code)
    assert len(session_rows.rows) == 1
    assert tx.rollbacks == 1

def test_audit_never_contains_code(auth_service, warden, audit):
    issued = auth_service.request_otp(WARDEN_PHONE)
    auth_service.verify_otp(WARDEN_PHONE, issued.code)
    assert audit.actions() == ["OTP_REQUEST", "OTP_VERIFY"]
    assert issued.code not in repr(audit.entries)
