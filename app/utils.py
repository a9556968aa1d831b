import re
import hashlib
import secrets
from datetime import datetime

from .exceptions import ValidationFailure

OTP_LENGTH = 6
MIN_PHONE_DIGITS = 10

_NON_DIGITS = re.compile(r"\D")
_OTP_PATTERN = re.compile(r"^[0-9]{6}$")


# =========================
# Phone numbers
# =========================
def normalize_phone(phone: str) -> str:
    """Strip every non-digit character. Used on every lookup and write path."""
    return _NON_DIGITS.sub("", phone or "")


def require_phone(phone: str) -> str:
    """Normalize and reject numbers too short to be real."""
    normalized = normalize_phone(phone)
    if len(normalized) < MIN_PHONE_DIGITS:
        raise ValidationFailure(f"Phone number must contain at least {MIN_PHONE_DIGITS} digits.")
    return normalized


def hash_phone_number(phone: str) -> str:
    """Hash phone number for logs (one-way hash)"""
    return hashlib.sha256(phone.encode()).hexdigest()


# =========================
# OTP / session secrets
# =========================
def generate_otp() -> str:
    """Uniform 6-digit code over 000000-999999, leading zeros kept."""
    return str(secrets.randbelow(10 ** OTP_LENGTH)).zfill(OTP_LENGTH)


def is_well_formed_otp(code: str) -> bool:
    return bool(code) and _OTP_PATTERN.match(code) is not None


def generate_session_token() -> str:
    return secrets.token_hex(32)


# =========================
# Machine placeholders
# =========================
def generate_temp_machine_code(phone: str, index: int, now: datetime) -> str:
    """``TMP-<last 4 phone digits>-<6-digit time fragment>-<1-based index>``.

    ``index`` is 0-based; the code carries ``index + 1``. The time fragment is
    the last six digits of the epoch milliseconds of ``now`` (naive UTC).
    """
    suffix = normalize_phone(phone)[-4:]
    epoch_ms = int((now - datetime(1970, 1, 1)).total_seconds() * 1000)
    fragment = str(epoch_ms)[-6:].zfill(6)
    return f"TMP-{suffix}-{fragment}-{index + 1}"
