from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from medilink.core.config import Settings
from medilink.core.security import extract_api_key
from medilink.reminders.config import ReminderSettings
from medilink.utils.timezone import format_short_datetime, isoformat_utc, to_utc_aware


def test_short_datetime_format():
    dt = datetime(2026, 10, 19, 11, 0, tzinfo=timezone.utc)
    assert format_short_datetime(dt, ZoneInfo("UTC")) == "Oct 19, 11:00 AM"


def test_short_datetime_midnight_and_afternoon():
    assert format_short_datetime(datetime(2026, 3, 5, 0, 5, tzinfo=timezone.utc), ZoneInfo("UTC")) == "Mar 5, 12:05 AM"
    assert format_short_datetime(datetime(2026, 3, 5, 15, 30, tzinfo=timezone.utc), ZoneInfo("UTC")) == "Mar 5, 3:30 PM"


def test_short_datetime_converts_to_display_timezone():
    dt = datetime(2026, 10, 19, 11, 0, tzinfo=timezone.utc)
    assert format_short_datetime(dt, ZoneInfo("Asia/Kolkata")) == "Oct 19, 4:30 PM"


def test_isoformat_utc_matches_javascript_shape():
    dt = datetime(2026, 10, 19, 16, 30, tzinfo=ZoneInfo("Asia/Kolkata"))
    assert isoformat_utc(dt) == "2026-10-19T11:00:00.000Z"


def test_naive_datetimes_are_treated_as_utc():
    assert to_utc_aware(datetime(2026, 1, 1, 9, 0)) == datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


def test_database_uri_derived_from_postgres_parts():
    cfg = Settings(
        POSTGRES_SERVER="db",
        POSTGRES_USER="medi link",
        POSTGRES_PASSWORD="p@ss",
        POSTGRES_DB="clinic",
        SQLALCHEMY_DATABASE_URI=None,
    )
    assert cfg.SQLALCHEMY_DATABASE_URI == "postgresql://medi+link:p%40ss@db:5432/clinic"


def test_api_keys_accept_json_or_comma_separated():
    assert Settings(VALID_API_KEYS='["a", "b"]').api_keys == ["a", "b"]
    assert Settings(VALID_API_KEYS="a, b,,c").api_keys == ["a", "b", "c"]
    assert Settings(VALID_API_KEYS="").api_keys == []


def test_api_keys_bare_json_scalars_are_plain_keys():
    assert Settings(VALID_API_KEYS="12345").api_keys == ["12345"]
    assert Settings(VALID_API_KEYS="1.5").api_keys == ["1.5"]
    assert Settings(VALID_API_KEYS="true").api_keys == ["true"]
    assert Settings(VALID_API_KEYS="null").api_keys == ["null"]
    assert Settings(VALID_API_KEYS='"solo"').api_keys == ["solo"]
    assert Settings(VALID_API_KEYS="[1, 2]").api_keys == ["1", "2"]


def test_extract_api_key_from_headers():
    assert extract_api_key("from-header", "Bearer other") == "from-header"
    assert extract_api_key(None, "Bearer tok-1") == "tok-1"
    assert extract_api_key(None, "bearer tok-1") == "tok-1"
    assert extract_api_key(None, "Basic dXNlcg==") is None
    assert extract_api_key(None, "Bearer ") is None
    assert extract_api_key(None, None) is None


def test_reminder_window_must_be_ordered():
    with pytest.raises(ValidationError):
        ReminderSettings(WINDOW_START_MINUTES=70, WINDOW_END_MINUTES=60)
    cfg = ReminderSettings(WINDOW_START_MINUTES=60, WINDOW_END_MINUTES=60)
    assert cfg.WINDOW_START_MINUTES == cfg.WINDOW_END_MINUTES == 60
