# app/db/models/users/user.py
from typing import Optional, List
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import DateTime
from datetime import datetime
import uuid

class User(SQLModel, table=True):
    __tablename__ = "users"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    role: str = Field(max_length=32, index=True)
    full_name: str = Field(max_length=100)
    # Digits only; see app.utils.normalize_phone
    phone: str = Field(max_length=20, unique=True, index=True)
    phone_secondary: Optional[str] = Field(max_length=20, default=None)
    aadhaar_number: Optional[str] = Field(max_length=12, default=None)
    district_id: Optional[str] = Field(default=None, index=True)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)

    # Relationships
    sessions: List["AuthSession"] = Relationship(back_populates="user")
