# app/schemas/users/user.py
from pydantic import BaseModel, Field, validator
from typing import Literal, Optional
from datetime import datetime

from ...application.ports.user_repo import Role, UserDto

class UserResponse(BaseModel):
    id: str
    full_name: str
    role: Role
    phone: str
    district_id: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    @classmethod
    def from_dto(cls, user: UserDto) -> "UserResponse":
        return cls(
            id=user.id,
            full_name=user.full_name,
            role=user.role,
            phone=user.phone,
            district_id=user.district_id,
            is_active=user.is_active,
            created_at=user.created_at,
        )

class BootstrapAdminRequest(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=100)
    phone: str = Field(..., min_length=10)

class BootstrapAdminResponse(BaseModel):
    message: str
    admin: UserResponse

class TeamRegisterRequest(BaseModel):
    role: Literal["SERVICE_MANAGER", "SERVICE_SUPERVISOR"]
    full_name: str = Field(..., min_length=2, max_length=100)
    phone_primary: str = Field(..., min_length=10)
    phone_secondary: str = Field(..., min_length=10)
    aadhaar_number: str = Field(..., min_length=12, max_length=12)
    district_id: Optional[str] = None

    @validator('aadhaar_number')
    def validate_aadhaar(cls, v):
        if not v.isdigit():
            raise ValueError('Aadhaar number must be 12 digits')
        return v

class TeamRegisterResponse(BaseModel):
    message: str = "Team member registered."
    user: UserResponse

class ChangeRoleRequest(BaseModel):
    role: Role

class ChangeRoleResponse(BaseModel):
    message: str = "Role updated."
    user: UserResponse
