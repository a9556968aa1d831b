from typing import Optional, Tuple
from dataclasses import dataclass
from datetime import datetime, timedelta
import logging

from ..ports.clock import Clock
from ..ports.credential_hasher import CredentialHasher
from ..ports.session_repo import SessionRepository
from ..ports.transaction import TransactionManager
from ..ports.user_repo import UserRepository, UserDto
from ...utils import generate_session_token

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
SESSION_EXPIRY_DAYS = 30


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


@dataclass
class SessionService:
    session_repo: SessionRepository
    user_repo: UserRepository
    hasher: CredentialHasher
    clock: Clock
    tx: TransactionManager
    expiry_days: int = SESSION_EXPIRY_DAYS

    def issue(self, user_id: str) -> Tuple[str, datetime]:
        """Create a session row and return the raw token with its expiry.

        Runs inside the caller's transaction; the raw token is never stored.
        """
        token = generate_session_token()
        now = self.clock.now()
        expires_at = now + timedelta(days=self.expiry_days)
        self.session_repo.create(user_id, self.hasher.digest(token), now, expires_at)
        return token, expires_at

    def authenticate(self, authorization: Optional[str]) -> Optional[UserDto]:
        """Resolve a ``Bearer <token>`` header to its user, or None.

        Every successful call bumps the session's last-seen time.
        """
        token = extract_bearer_token(authorization)
        if token is None:
            return None

        session = self.session_repo.get_by_token_hash(self.hasher.digest(token))
        now = self.clock.now()
        if session is None or not session.is_valid(now):
            return None

        user = self.user_repo.get_by_id(session.user_id)
        if user is None or not user.is_active:
            return None

        with self.tx.atomic():
            self.session_repo.touch(session.id, now)
        return user

    def revoke(self, authorization: Optional[str]) -> bool:
        token = extract_bearer_token(authorization)
        if token is None:
            return False
        session = self.session_repo.get_by_token_hash(self.hasher.digest(token))
        if session is None or session.revoked_at is not None:
            return False
        with self.tx.atomic():
            self.session_repo.revoke(session.id, self.clock.now())
        logger.info(f"Session revoked for user {session.user_id}")
        return True
