from datetime import datetime, date
from zoneinfo import ZoneInfo
from app.core.config import settings

class Clock:
    """Current time in the clinic's timezone. Inject it; never call datetime.now() in slot code."""

    def __init__(self, tz: str | None = None):
        self.tz = ZoneInfo(tz or settings.CLINIC_TIMEZONE)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()

class FixedClock(Clock):
    def __init__(self, at: datetime, tz: str | None = None):
        super().__init__(tz)
        self.at = at if at.tzinfo else at.replace(tzinfo=self.tz)

    def now(self) -> datetime:
        return self.at.astimezone(self.tz)

_clock = Clock()

def get_clock() -> Clock:
    return _clock
