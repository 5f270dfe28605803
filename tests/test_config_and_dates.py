"""
Tests for settings validation and date helpers.
"""
from datetime import date

import pytest
from pydantic import ValidationError

from app.config import CustomSettings
from app.utils.date_converter import (
    DateFormatError,
    days_in_range,
    format_date_key,
    normalize_to_utc_midnight,
    parse_to_date,
)


@pytest.mark.unit
class TestSettings:

    def test_defaults_are_valid(self):
        config = CustomSettings()
        assert config.epg_fetch_concurrency >= 1
        assert config.default_occurrence_limit == 10

    def test_empty_cron_disables_prefetch(self):
        assert CustomSettings(epg_prefetch_cron="  ").epg_prefetch_cron == ""

    def test_log_level_is_normalized(self):
        assert CustomSettings(log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize("overrides", [
        {"epg_base_url": "ftp://epg.example.com"},
        {"epg_prefetch_cron": "every day at 3"},
        {"epg_fetch_concurrency": 0},
        {"default_occurrence_limit": -1},
        {"epg_request_timeout_sec": 0},
        {"epg_prefetch_days": 40},
        {"epg_prefetch_misfire_grace_sec": -5},
        {"log_level": "LOUD"},
    ])
    def test_invalid_values_are_rejected(self, overrides):
        with pytest.raises(ValidationError):
            CustomSettings(**overrides)

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("EPG_FETCH_CONCURRENCY", "7")
        monkeypatch.setenv("EPG_DOMAIN", "uk")

        config = CustomSettings()

        assert config.epg_fetch_concurrency == 7
        assert config.epg_domain == "uk"


@pytest.mark.unit
class TestDateConverter:

    @pytest.mark.parametrize("value,expected", [
        ("2024-10-15", date(2024, 10, 15)),
        ("2024-10-15T06:00:00Z", date(2024, 10, 15)),
        ("2024-10-15T23:30:00-05:00", date(2024, 10, 15)),
        ("2024-10-16T00:30:00+02:00", date(2024, 10, 16)),
        ("2024-10-15T06:00:00.000+00:00", date(2024, 10, 15)),
        ("2024-10-15T06:00:00", date(2024, 10, 15)),
    ])
    def test_parse_to_date(self, value, expected):
        assert parse_to_date(value) == expected

    @pytest.mark.parametrize("value", ["", "15/10/2024", "2024-13-01", "2024-10-15Tnoon"])
    def test_parse_to_date_rejects_garbage(self, value):
        with pytest.raises(DateFormatError):
            parse_to_date(value)

    def test_normalize_to_utc_midnight(self):
        assert normalize_to_utc_midnight(date(2024, 10, 5)) == "2024-10-05T00:00:00.000Z"

    def test_format_date_key(self):
        assert format_date_key(date(2024, 1, 2)) == "2024-01-02"

    def test_days_in_range_is_inclusive(self):
        assert days_in_range(date(2023, 12, 30), date(2024, 1, 2)) == [
            date(2023, 12, 30),
            date(2023, 12, 31),
            date(2024, 1, 1),
            date(2024, 1, 2),
        ]

    def test_single_day_range(self):
        assert days_in_range(date(2024, 1, 1), date(2024, 1, 1)) == [date(2024, 1, 1)]

    def test_inverted_range_is_empty(self):
        assert days_in_range(date(2024, 1, 2), date(2024, 1, 1)) == []
