from datetime import datetime

import pytest

from app.exceptions import ValidationFailure
from app.utils import (
    generate_otp,
    generate_session_token,
    generate_temp_machine_code,
    is_well_formed_otp,
    normalize_phone,
    require_phone,
)


@pytest.mark.parametrize("raw,expected", [
    ("9876543210", "9876543210"),
    ("+91 98765-43210", "919876543210"),
    ("(987) 654 3210", "9876543210"),
    ("98.76.54.32.10 ext", "9876543210"),
])
def test_normalize_phone_strips_non_digits_and_is_idempotent(raw, expected):
    once = normalize_phone(raw)
    assert once == expected
    assert normalize_phone(once) == once


def test_require_phone_rejects_short_numbers():
    with pytest.raises(ValidationFailure):
        require_phone("+1 234-567")
    assert require_phone("+91-98765 43210") == "919876543210"


def test_generate_otp_is_six_digits():
    for _ in range(200):
        code = generate_otp()
        assert len(code) == 6
        assert code.isdigit()
        assert is_well_formed_otp(code)


def test_generate_otp_keeps_leading_zeros(monkeypatch):
    monkeypatch.setattr("app.utils.secrets.randbelow", lambda n: 42)
    assert generate_otp() == "000042"


def test_is_well_formed_otp():
    assert not is_well_formed_otp("12345")
    assert not is_well_formed_otp("12345a")
    assert not is_well_formed_otp("")
    assert not is_well_formed_otp("１２３４５６")


def test_session_tokens_are_unique_and_long():
    tokens = {generate_session_token() for _ in range(50)}
    assert len(tokens) == 50
    assert all(len(t) == 64 for t in tokens)


def test_temp_machine_code_shape():
    now = datetime(2026, 3, 1, 9, 0, 0, 123000)
    code = generate_temp_machine_code("+91 98765 43210", 0, now)
    prefix, suffix, fragment, index = code.split("-")
    assert prefix == "TMP"
    assert suffix == "3210"
    assert len(fragment) == 6 and fragment.isdigit()
    assert index == "1"
    assert generate_temp_machine_code("9876543210", 4, now).endswith("-5")
