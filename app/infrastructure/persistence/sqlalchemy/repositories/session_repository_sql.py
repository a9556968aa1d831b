from datetime import datetime
from typing import Optional
from sqlmodel import Session, select

from .....db.models import AuthSession
from .....application.ports.session_repo import SessionRepository, SessionDto


class SqlSessionRepository(SessionRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, rec: AuthSession) -> SessionDto:
        return SessionDto(
            id=rec.id,
            user_id=rec.user_id,
            token_hash=rec.token_hash,
            expires_at=rec.expires_at,
            created_at=rec.created_at,
            revoked_at=rec.revoked_at,
            last_seen_at=rec.last_seen_at,
        )

    def create(self, user_id: str, token_hash: str, created_at: datetime, expires_at: datetime) -> SessionDto:
        rec = AuthSession(
            user_id=user_id,
            token_hash=token_hash,
            created_at=created_at,
            last_seen_at=created_at,
            expires_at=expires_at,
        )
        self.session.add(rec)
        self.session.flush()
        return self._to_dto(rec)

    def get_by_token_hash(self, token_hash: str) -> Optional[SessionDto]:
        rec = self.session.exec(select(AuthSession).where(AuthSession.token_hash == token_hash)).first()
        return self._to_dto(rec) if rec else None

    def touch(self, session_id: str, seen_at: datetime) -> None:
        rec = self.session.get(AuthSession, session_id)
        if not rec:
            return
        rec.last_seen_at = seen_at
        self.session.add(rec)
        self.session.flush()

    def revoke(self, session_id: str, revoked_at: datetime) -> None:
        rec = self.session.get(AuthSession, session_id)
        if not rec:
            return
        rec.revoked_at = revoked_at
        self.session.add(rec)
        self.session.flush()
