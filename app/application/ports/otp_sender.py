from typing import Protocol
from datetime import datetime


class OtpSender(Protocol):
    def send(self, phone: str, code: str, expires_at: datetime) -> None:
        ...
