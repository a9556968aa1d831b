from fastapi import APIRouter, Depends, Request

from ..config import settings
from ..dependencies import get_auth_service, get_current_user, get_session_service
from ..application.ports.user_repo import UserDto
from ..application.services.auth_service import AuthService
from ..application.services.session_service import SessionService
from ..schemas.common.common import ErrorResponse
from ..schemas.auth.auth import (
    LogoutResponse,
    OTPRequest,
    OTPRequestResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
)
from ..schemas.users.user import UserResponse

router = APIRouter(prefix="/api/auth", tags=["Authentication"], responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}})


@router.post("/otp/request", response_model=OTPRequestResponse)
def request_otp(body: OTPRequest, auth: AuthService = Depends(get_auth_service)):
    issued = auth.request_otp(body.phone, expected_role=body.role)
    return OTPRequestResponse(
        expires_in_minutes=issued.expires_in_minutes,
        expires_at=issued.expires_at,
        dev_otp=issued.code if settings.EXPOSE_DEV_OTP else None,
    )


@router.post("/otp/verify", response_model=VerifyOTPResponse)
def verify_otp(body: VerifyOTPRequest, auth: AuthService = Depends(get_auth_service)):
    issued = auth.verify_otp(body.phone, body.otp)
    return VerifyOTPResponse(
        session_token=issued.token,
        expires_at=issued.expires_at,
        user=UserResponse.from_dto(issued.user),
    )


@router.post("/logout", response_model=LogoutResponse)
def logout(request: Request, sessions: SessionService = Depends(get_session_service)):
    revoked = sessions.revoke(request.headers.get("authorization"))
    return LogoutResponse(success=revoked, message="Logged out." if revoked else "No active session.")


@router.get("/me", response_model=UserResponse)
def me(current_user: UserDto = Depends(get_current_user)):
    return UserResponse.from_dto(current_user)
