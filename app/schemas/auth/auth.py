# app/schemas/auth/auth.py
from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime

from ..users.user import UserResponse
from ...application.ports.user_repo import Role

class OTPRequest(BaseModel):
    phone: str = Field(..., min_length=10, description="Registered phone number; non-digits are ignored")
    role: Optional[Role] = Field(None, description="Role the caller expects to log in as")

class OTPRequestResponse(BaseModel):
    success: bool = True
    message: str = "OTP generated."
    expires_in_minutes: int
    expires_at: datetime
    # Only populated while no SMS gateway is configured
    dev_otp: Optional[str] = None

class VerifyOTPRequest(BaseModel):
    phone: str = Field(..., min_length=10)
    otp: str = Field(..., min_length=6, max_length=6, description="6-digit OTP")

    @validator('otp')
    def validate_otp(cls, v):
        if not v.isdigit():
            raise ValueError('OTP must be 6 digits')
        return v

class VerifyOTPResponse(BaseModel):
    success: bool = True
    message: str = "Login successful."
    session_token: str
    expires_at: datetime
    user: UserResponse

class LogoutResponse(BaseModel):
    success: bool
    message: str
