# app/db/models/users/session.py
from typing import Optional
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import DateTime
from datetime import datetime
import uuid

class AuthSession(SQLModel, table=True):
    __tablename__ = "auth_sessions"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    # Only the digest of the bearer token is stored
    token_hash: str = Field(max_length=128, unique=True, index=True)
    expires_at: datetime = Field(sa_type=DateTime)
    revoked_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    last_seen_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)

    # Relationships
    user: Optional["User"] = Relationship(back_populates="sessions")
