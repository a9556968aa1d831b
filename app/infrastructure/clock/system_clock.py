from datetime import datetime, timezone

from ...application.ports.clock import Clock


class SystemClock(Clock):
    def now(self) -> datetime:
        # Naive UTC; timestamp columns are declared as plain DateTime
        return datetime.now(timezone.utc).replace(tzinfo=None)
