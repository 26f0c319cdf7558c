"""Observer context and the collaborator hooks that feed it.

The chart never owns location or time: it asks a location provider and an
instant provider each frame, falling back to the defaults below.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Mapping

from skychart.config import (
    DEFAULT_LATITUDE, DEFAULT_LONGITUDE, EVENT_LIST_LIMIT, EVENT_WINDOW_HOURS,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ObserverContext:
    latitude: float
    longitude: float
    instant: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


LocationProvider = Callable[[], Location | None]
InstantProvider = Callable[[], datetime | None]


def default_location() -> Location:
    return Location(DEFAULT_LATITUDE, DEFAULT_LONGITUDE)


def default_instant() -> datetime:
    return _utcnow()


def resolve_observer(
    location_provider: LocationProvider | None = None,
    instant_provider: InstantProvider | None = None,
) -> ObserverContext:
    """Ask the collaborators for location and time, with fallbacks."""
    location = location_provider() if location_provider else None
    if location is None:
        location = default_location()
    instant = instant_provider() if instant_provider else None
    if instant is None:
        instant = default_instant()
    return ObserverContext(location.latitude, location.longitude, instant)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _event_time(event: Mapping[str, Any]) -> datetime | None:
    value = event.get("datetime")
    if isinstance(value, datetime):
        return _aware(value)
    if isinstance(value, str):
        try:
            return _aware(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            logger.debug("Unparseable event datetime %r", value)
    return None


def events_near(
    events: Iterable[Mapping[str, Any]],
    instant: datetime,
    window_hours: float = EVENT_WINDOW_HOURS,
    limit: int = EVENT_LIST_LIMIT,
) -> list[Mapping[str, Any]]:
    """Events within ``window_hours`` of ``instant``, first ``limit`` in list order.

    Events without a usable ``datetime`` are skipped.
    """
    window = timedelta(hours=window_hours)
    instant = _aware(instant)
    nearby = []
    for event in events:
        when = _event_time(event)
        if when is None or abs(when - instant) > window:
            continue
        nearby.append(event)
        if len(nearby) >= limit:
            break
    return nearby
