from typing import Protocol, Optional
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    ADMIN = "ADMIN"
    WARDEN = "WARDEN"
    SERVICE_MANAGER = "SERVICE_MANAGER"
    SERVICE_SUPERVISOR = "SERVICE_SUPERVISOR"
    MONITORING_OFFICIAL = "MONITORING_OFFICIAL"


@dataclass
class UserDto:
    id: str
    role: Role
    full_name: str
    phone: str
    is_active: bool
    district_id: Optional[str] = None
    phone_secondary: Optional[str] = None
    aadhaar_number: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserRepository(Protocol):
    def get_by_phone(self, phone: str) -> Optional[UserDto]:
        ...

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        ...

    def create(self, role: Role, full_name: str, phone: str, district_id: Optional[str] = None,
               phone_secondary: Optional[str] = None, aadhaar_number: Optional[str] = None) -> UserDto:
        ...

    def update_profile(self, user_id: str, full_name: str, district_id: Optional[str] = None,
                       phone_secondary: Optional[str] = None, aadhaar_number: Optional[str] = None,
                       is_active: bool = True) -> UserDto:
        ...

    def exists_with_role(self, role: Role) -> bool:
        ...

    def set_role(self, user_id: str, role: Role) -> UserDto:
        ...
