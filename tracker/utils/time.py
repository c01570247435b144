from datetime import datetime, timedelta, timezone as dt_tz

from ..config import REFERENCE_OFFSET_HOURS

REFERENCE_OFFSET = timedelta(hours=REFERENCE_OFFSET_HOURS)
REFERENCE_TZ = dt_tz(REFERENCE_OFFSET)


def _as_utc(instant: datetime) -> datetime:
    # naive datetimes are taken as UTC, never as process-local time
    if instant.tzinfo is None:
        return instant.replace(tzinfo=dt_tz.utc)
    return instant.astimezone(dt_tz.utc)


def _shifted(instant: datetime) -> datetime:
    return _as_utc(instant) + REFERENCE_OFFSET


def local_date_key(instant: datetime) -> str:
    return _shifted(instant).date().isoformat()


def iso_week_key(instant: datetime) -> str:
    """ISO-8601 week of the reference-local day, keyed by ISO week-year."""
    iso_year, iso_week, _ = _shifted(instant).date().isocalendar()
    return f"W{iso_year}-{iso_week:02d}"


def previous_week_key(now: datetime) -> str:
    return iso_week_key(_as_utc(now) - timedelta(days=7))


def to_reference_iso(instant: datetime) -> str:
    return _as_utc(instant).astimezone(REFERENCE_TZ).isoformat()
