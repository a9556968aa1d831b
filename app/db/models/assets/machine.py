# app/db/models/assets/machine.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime
from datetime import date, datetime
import uuid

class Machine(SQLModel, table=True):
    __tablename__ = "machines"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    temp_machine_code: str = Field(max_length=40, unique=True, index=True)
    serial_number: Optional[str] = Field(default=None, max_length=64, unique=True, index=True)
    district_id: Optional[str] = Field(default=None, index=True)
    hostel_id: Optional[str] = Field(default=None)
    assigned_warden_id: Optional[str] = Field(default=None, foreign_key="users.id", index=True)
    registration_uploaded_by: Optional[str] = Field(default=None, foreign_key="users.id")

    # Serial verification; NULL status means no claim yet
    serial_verification_status: Optional[str] = Field(default=None, max_length=16)
    claimed_serial_number: Optional[str] = Field(default=None, max_length=64)
    claimed_installation_date: Optional[date] = Field(default=None)
    serial_claim_notes: Optional[str] = Field(default=None, max_length=500)
    serial_claimed_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    serial_rejection_reason: Optional[str] = Field(default=None, max_length=500)
    serial_verified_by_id: Optional[str] = Field(default=None, foreign_key="users.id")
    serial_verified_at: Optional[datetime] = Field(default=None, sa_type=DateTime)

    # Warranty
    installation_date: Optional[date] = Field(default=None)
    warranty_status: Optional[str] = Field(default=None, max_length=16)
    warranty_start_date: Optional[date] = Field(default=None)
    warranty_end_date: Optional[date] = Field(default=None)
    warranty_claimed_by_id: Optional[str] = Field(default=None, foreign_key="users.id")
    warranty_claimed_at: Optional[datetime] = Field(default=None, sa_type=DateTime)

    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
