from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from typing import Any, Dict, List, Optional


class APIException(HTTPException):
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


class ServiceError(APIException):
    """Recoverable domain failure surfaced to the caller.

    ``code`` is a stable machine-readable identifier, ``detail`` the
    user-facing message and ``extra`` any payload the caller needs to act
    (for example the list of missing serials).
    """

    status_code = 400
    code = "ERROR"
    default_detail = "Request failed"

    def __init__(self, detail: Optional[str] = None, extra: Optional[Dict[str, Any]] = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)
        self.extra = extra or {}


# Taxonomy roots

class ValidationFailure(ServiceError):
    status_code = 400
    code = "VALIDATION_FAILED"
    default_detail = "Invalid input"


class Unauthorized(ServiceError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_detail = "Unauthorized."


class Forbidden(ServiceError):
    status_code = 403
    code = "FORBIDDEN"
    default_detail = "Not allowed."


class NotFound(ServiceError):
    status_code = 404
    code = "NOT_FOUND"
    default_detail = "Not found."


class Conflict(ServiceError):
    status_code = 409
    code = "CONFLICT"
    default_detail = "Conflicting state."


class RateLimited(ServiceError):
    status_code = 429
    code = "RATE_LIMITED"
    default_detail = "Too many requests."


class Expired(ServiceError):
    status_code = 400
    code = "EXPIRED"
    default_detail = "Expired."


# Auth

class NotRegistered(NotFound):
    code = "NOT_REGISTERED"
    default_detail = "This phone number is not registered. Please contact Admin."


class RoleMismatch(Forbidden):
    code = "ROLE_MISMATCH"
    default_detail = "Role mismatch for this phone number."


class OtpNotFound(NotFound):
    code = "OTP_NOT_FOUND"
    default_detail = "OTP not found. Request a new OTP."


class OtpExpired(Expired):
    code = "OTP_EXPIRED"
    default_detail = "OTP expired. Request a new OTP."


class TooManyAttempts(RateLimited):
    code = "TOO_MANY_ATTEMPTS"
    default_detail = "Too many attempts. Request a new OTP."


class InvalidCode(ValidationFailure):
    code = "INVALID_OTP"
    default_detail = "Invalid OTP."


# Users

class AdminAlreadyExists(Conflict):
    code = "ADMIN_EXISTS"
    default_detail = "An admin already exists. New admins are appointed by an existing admin."


class TeamMemberExists(Conflict):
    code = "TEAM_MEMBER_EXISTS"
    default_detail = "Phone number is registered with another role or is deactivated. Contact Admin."


# Machines

class MachineNotFound(NotFound):
    code = "MACHINE_NOT_FOUND"
    default_detail = "Machine not found."


class SomeSerialsNotFound(NotFound):
    code = "SERIALS_NOT_FOUND"
    default_detail = "Some machine serial numbers were not found."

    def __init__(self, missing_serials: List[str]):
        super().__init__(extra={"missingSerials": list(missing_serials)})
        self.missing_serials = list(missing_serials)


class AlreadyApproved(Conflict):
    code = "ALREADY_APPROVED"
    default_detail = "Serial already approved for this machine."


class NotYetApproved(Conflict):
    code = "NOT_YET_APPROVED"
    default_detail = "Serial is not admin-approved yet. Submit serial claim and wait for approval."


class SerialConflict(Conflict):
    code = "SERIAL_CONFLICT"
    default_detail = "This serial number is already used by another machine."


class TempCodeConflict(Conflict):
    code = "TEMP_CODE_CONFLICT"
    default_detail = "Temporary machine code collided with an existing machine. Retry the registration."


class StaleMachineState(Conflict):
    code = "MACHINE_CHANGED"
    default_detail = "Machine was updated by another request. Reload and retry."


class NoSerialAvailable(ValidationFailure):
    code = "NO_SERIAL_AVAILABLE"
    default_detail = "No serial number available to approve."


class MissingInstallDate(ValidationFailure):
    code = "MISSING_INSTALL_DATE"
    default_detail = "Installation date is missing in the claim."


def create_error_response(error_message: str, status_code: int = 400, code: Optional[str] = None,
                          extra: Optional[Dict[str, Any]] = None) -> dict:
    """Create a standardized error response"""
    body = {
        "success": False,
        "data": None,
        "error": error_message,
    }
    if code:
        body["code"] = code
    if extra:
        body.update(extra)
    return body

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Authentication required", 401, code=Unauthorized.code)
        )

    if isinstance(exc, ServiceError):
        return JSONResponse(
            status_code=exc.status_code,
            content=create_error_response(exc.detail, exc.status_code, code=exc.code, extra=exc.extra)
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )
