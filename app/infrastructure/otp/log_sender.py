import logging
from datetime import datetime

from ...application.ports.otp_sender import OtpSender
from ...utils import hash_phone_number

logger = logging.getLogger(__name__)


class LoggingOtpSender(OtpSender):
    """Stand-in delivery channel until an SMS gateway is configured.

    Records that a code went out; the code itself is never logged.
    """

    def send(self, phone: str, code: str, expires_at: datetime) -> None:
        logger.info(f"OTP issued for phone {hash_phone_number(phone)[:12]} (expires {expires_at.isoformat()})")
