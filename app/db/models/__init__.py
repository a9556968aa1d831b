# Models package (re-export feature modules for stable imports)
from .users.user import User
from .users.session import AuthSession
from .auth.otp import OtpCode
from .assets.machine import Machine

__all__ = [
    "User",
    "AuthSession",
    "OtpCode",
    "Machine",
]
