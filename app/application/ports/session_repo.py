from typing import Protocol, Optional
from dataclasses import dataclass
from datetime import datetime


@dataclass
class SessionDto:
    id: str
    user_id: str
    token_hash: str
    expires_at: datetime
    created_at: datetime
    revoked_at: Optional[datetime] = None
    last_seen_at: Optional[datetime] = None

    def is_valid(self, now: datetime) -> bool:
        return self.revoked_at is None and self.expires_at > now


class SessionRepository(Protocol):
    def create(self, user_id: str, token_hash: str, created_at: datetime, expires_at: datetime) -> SessionDto:
        ...

    def get_by_token_hash(self, token_hash: str) -> Optional[SessionDto]:
        ...

    def touch(self, session_id: str, seen_at: datetime) -> None:
        ...

    def revoke(self, session_id: str, revoked_at: datetime) -> None:
        ...
