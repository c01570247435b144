import logging
import time
from datetime import datetime, timedelta, timezone

import pytest

from tracker.utils.time import iso_week_key, local_date_key, previous_week_key, to_reference_iso

logger = logging.getLogger(__name__)

UTC = timezone.utc


@pytest.fixture
def process_tz(monkeypatch):
    """Switch the process-local timezone, restoring it afterwards."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")

    def switch(name):
        monkeypatch.setenv("TZ", name)
        time.tzset()

    yield switch
    monkeypatch.undo()
    time.tzset()


def test_local_date_key_shifts_to_reference_day():
    """16:00 UTC is already the next calendar day at UTC+8."""
    assert local_date_key(datetime(2026, 2, 15, 15, 59, tzinfo=UTC)) == "2026-02-15"
    assert local_date_key(datetime(2026, 2, 15, 16, 0, tzinfo=UTC)) == "2026-02-16"
    logger.info("✓ Passed: date key rolls over at 16:00 UTC")


def test_local_date_key_normalises_other_offsets():
    """An instant given in another offset maps to the same reference day."""
    tokyo = timezone(timedelta(hours=9))
    instant = datetime(2026, 2, 16, 0, 30, tzinfo=tokyo)  # 2026-02-15T15:30Z
    assert local_date_key(instant) == "2026-02-15"


def test_naive_datetimes_are_read_as_utc():
    assert local_date_key(datetime(2026, 2, 15, 16, 0)) == "2026-02-16"
    assert iso_week_key(datetime(2026, 2, 15, 16, 0)) == "W2026-08"


def test_iso_week_key_week_boundary():
    """Sunday 23:59 and Monday 00:00 (reference time) fall in adjacent weeks."""
    assert iso_week_key(datetime(2026, 2, 15, 15, 59, tzinfo=UTC)) == "W2026-07"
    assert iso_week_key(datetime(2026, 2, 15, 16, 0, tzinfo=UTC)) == "W2026-08"
    logger.info("✓ Passed: weeks start Monday 00:00 UTC+8")


def test_iso_week_key_uses_iso_week_year():
    """Days around New Year belong to the ISO week-year, not the calendar year."""
    # 2026 has 53 ISO weeks; 2027-01-01 is a Friday inside W2026-53
    assert iso_week_key(datetime(2026, 12, 31, 12, 0, tzinfo=UTC)) == "W2026-53"
    assert iso_week_key(datetime(2027, 1, 1, 12, 0, tzinfo=UTC)) == "W2026-53"
    # 2024-12-30 is a Monday inside W2025-01
    assert iso_week_key(datetime(2024, 12, 30, 12, 0, tzinfo=UTC)) == "W2025-01"
    logger.info("✓ Passed: ISO week-year used for year component")


def test_previous_week_key_targets_finished_week():
    monday_midnight = datetime(2026, 2, 15, 16, 0, tzinfo=UTC)  # Mon 2026-02-16 00:00 UTC+8
    assert previous_week_key(monday_midnight) == "W2026-07"


def test_keys_ignore_process_timezone(process_tz):
    """Same instant, same keys, whatever TZ the process runs in."""
    instant = datetime(2026, 12, 31, 17, 30, tzinfo=UTC)
    expected = (local_date_key(instant), iso_week_key(instant))

    for name in ("America/Los_Angeles", "Asia/Kolkata", "Pacific/Kiritimati", "UTC"):
        process_tz(name)
        assert (local_date_key(instant), iso_week_key(instant)) == expected

    assert expected == ("2027-01-01", "W2026-53")
    logger.info("✓ Passed: keys are process-timezone independent %s", expected)


def test_to_reference_iso():
    assert to_reference_iso(datetime(2026, 2, 15, 16, 0, tzinfo=UTC)) == "2026-02-16T00:00:00+08:00"
