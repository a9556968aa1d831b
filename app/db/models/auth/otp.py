# app/db/models/auth/otp.py
from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime, Index
from datetime import datetime
from typing import Optional

class OtpCode(SQLModel, table=True):
    __tablename__ = "otp_codes"
    __table_args__ = (Index("idx_otp_codes_phone_purpose", "phone", "purpose"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="users.id")
    phone: str = Field(max_length=20)
    code_hash: str = Field(max_length=128)
    purpose: str = Field(max_length=16, default="LOGIN")
    attempts: int = Field(default=0)
    expires_at: datetime = Field(sa_type=DateTime)
    consumed_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
