from typing import Protocol, Optional
from dataclasses import dataclass
from datetime import datetime


@dataclass
class OtpRecord:
    id: int
    user_id: str
    phone: str
    code_hash: str
    purpose: str
    attempts: int
    created_at: datetime
    expires_at: datetime
    consumed_at: Optional[datetime] = None


class OtpRepository(Protocol):
    def create(self, user_id: str, phone: str, code_hash: str, purpose: str,
               created_at: datetime, expires_at: datetime) -> OtpRecord:
        ...

    def latest_unconsumed(self, phone: str, purpose: str) -> Optional[OtpRecord]:
        """Most recently created code for the phone that has not been consumed."""
        ...

    def increment_attempts(self, otp_id: int) -> int:
        ...

    def mark_consumed(self, otp_id: int, consumed_at: datetime) -> bool:
        """Consume the code only if it is still unconsumed. False means another caller won."""
        ...
