from datetime import datetime
from typing import Optional
from sqlalchemy import update
from sqlmodel import Session, select

from .....db.models import OtpCode
from .....application.ports.otp_repo import OtpRepository, OtpRecord


class SqlOtpRepository(OtpRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_record(self, rec: OtpCode) -> OtpRecord:
        return OtpRecord(
            id=rec.id,
            user_id=rec.user_id,
            phone=rec.phone,
            code_hash=rec.code_hash,
            purpose=rec.purpose,
            attempts=rec.attempts,
            created_at=rec.created_at,
            expires_at=rec.expires_at,
            consumed_at=rec.consumed_at,
        )

    def create(self, user_id: str, phone: str, code_hash: str, purpose: str,
               created_at: datetime, expires_at: datetime) -> OtpRecord:
        rec = OtpCode(
            user_id=user_id,
            phone=phone,
            code_hash=code_hash,
            purpose=purpose,
            attempts=0,
            created_at=created_at,
            expires_at=expires_at,
        )
        self.session.add(rec)
        self.session.flush()
        return self._to_record(rec)

    def latest_unconsumed(self, phone: str, purpose: str) -> Optional[OtpRecord]:
        rec = self.session.exec(
            select(OtpCode)
            .where(OtpCode.phone == phone)
            .where(OtpCode.purpose == purpose)
            .where(OtpCode.consumed_at == None)  # noqa: E711
            .order_by(OtpCode.created_at.desc(), OtpCode.id.desc())
        ).first()
        return self._to_record(rec) if rec else None

    def increment_attempts(self, otp_id: int) -> int:
        rec = self.session.get(OtpCode, otp_id)
        rec.attempts = (rec.attempts or 0) + 1
        self.session.add(rec)
        self.session.flush()
        return rec.attempts

    def mark_consumed(self, otp_id: int, consumed_at: datetime) -> bool:
        result = self.session.execute(
            update(OtpCode)
            .where(OtpCode.id == otp_id)
            .where(OtpCode.consumed_at == None)  # noqa: E711
            .values(consumed_at=consumed_at)
        )
        return result.rowcount == 1
