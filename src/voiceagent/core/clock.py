"""Wall-clock providers in fixed named time zones."""

from datetime import datetime, tzinfo
from typing import Dict, Optional

from dateutil import parser
from dateutil.tz import gettz

from .error_handler import ConfigurationError


def resolve_timezone(name: str) -> tzinfo:
    """Look up an IANA zone, failing loudly on unknown names."""
    zone = gettz(name)
    if zone is None:
        raise ConfigurationError(f"Unknown time zone: {name}")
    return zone


class NowProvider:
    """Supplies the current time in the zone assigned to each language."""

    def __init__(self, timezones: Dict[str, str], fallback_timezone: str = "Europe/Riga"):
        self._zones = {code: resolve_timezone(name) for code, name in timezones.items()}
        self._fallback = resolve_timezone(fallback_timezone)

    def timezone_for(self, language: Optional[str]) -> tzinfo:
        return self._zones.get((language or "").lower(), self._fallback)

    def now(self, language: Optional[str] = None) -> datetime:
        return datetime.now(self.timezone_for(language)).replace(second=0, microsecond=0)


class FixedClock(NowProvider):
    """A provider frozen at one instant, used for replays and tests.

    The instant is re-expressed in each language's zone, so a single fixed
    moment yields consistent Riga and Tallinn wall-clock readings.
    """

    def __init__(self, instant, timezones: Dict[str, str], fallback_timezone: str = "Europe/Riga"):
        super().__init__(timezones, fallback_timezone)
        if isinstance(instant, str):
            instant = parser.isoparse(instant)
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=self._fallback)
        self.instant = instant

    def now(self, language: Optional[str] = None) -> datetime:
        return self.instant.astimezone(self.timezone_for(language))
