"""Tests for Go layout formatting, parsing and duration functions."""

from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pytest
from hypothesis import given
from hypothesis import strategies as st

from gotmplengine import TemplateExecutionError, get_shared_registry
from gotmplengine.library.dates import (
    format_go_duration,
    go_layout_to_strptime,
    go_strftime,
    parse_go_duration,
)

type Render = Callable[..., str]

MOMENT = datetime(2024, 3, 5, 15, 8, 9, 120000, tzinfo=UTC)


def call(name: str, *args: Any) -> Any:
    return get_shared_registry().call(name, args)


def _has_zone(name: str) -> bool:
    try:
        ZoneInfo(name)
    except ZoneInfoNotFoundError:
        return False
    return True


class TestGoLayouts:
    """Formatting with reference-time layouts."""

    @pytest.mark.parametrize(
        ("layout", "expected"),
        [
            ("2006-01-02 15:04:05", "2024-03-05 15:08:09"),
            ("Monday, January 2, 2006 3:04 PM", "Tuesday, March 5, 2024 3:08 PM"),
            ("Mon Jan _2 03:04:05pm 06", "Tue Mar  5 03:08:09pm 24"),
            ("day 002 of 2006", "day 065 of 2024"),
            ("15:04:05.000", "15:08:09.120"),
            ("15:04:05.999", "15:08:09.12"),
            ("2006-01-02T15:04:05Z07:00", "2024-03-05T15:08:09Z"),
            ("-07:00 -0700 MST", "+00:00 +0000 UTC"),
        ],
    )
    def test_format(self, layout: str, expected: str) -> None:
        assert go_strftime(layout, MOMENT) == expected

    def test_numeric_offsets(self) -> None:
        moment = datetime(2024, 1, 1, tzinfo=timezone(timedelta(hours=5, minutes=30)))
        assert go_strftime("Z07:00 -0700 -07", moment) == "+05:30 +0530 +05"

    def test_trailing_nines_drop_zero_fraction(self) -> None:
        assert go_strftime("05.999", MOMENT.replace(microsecond=0)) == "09"

    def test_layout_to_strptime(self) -> None:
        assert go_layout_to_strptime("2006-01-02T15:04:05Z07:00") == "%Y-%m-%dT%H:%M:%S%z"
        assert go_layout_to_strptime("% of 2006") == "%% of %Y"


class TestDateFunctions:
    """date, dateInZone, htmlDate, unixEpoch, now."""

    def test_date_in_zone_utc(self) -> None:
        assert call("dateInZone", "2006-01-02 15:04", MOMENT, "UTC") == "2024-03-05 15:08"

    @pytest.mark.skipif(not _has_zone("Asia/Tokyo"), reason="tz database not installed")
    def test_date_in_named_zone(self) -> None:
        assert call("dateInZone", "15:04 MST", MOMENT, "Asia/Tokyo") == "00:08 JST"

    def test_unknown_zone_falls_back_to_utc(self) -> None:
        assert call("dateInZone", "15:04", MOMENT, "Nowhere/Land") == "15:08"

    def test_snake_case_aliases(self) -> None:
        assert call("date_in_zone", "2006", MOMENT, "UTC") == "2024"

    def test_html_date(self) -> None:
        assert call("htmlDateInZone", MOMENT, "UTC") == "2024-03-05"

    def test_unix_epoch(self) -> None:
        assert call("unixEpoch", datetime(1970, 1, 2, tzinfo=UTC)) == "86400"

    def test_date_accepts_date_and_timestamp(self) -> None:
        assert call("date", "2006-01-02", date(2024, 3, 5)) == "2024-03-05"
        midsummer = datetime(2024, 6, 15, 12, tzinfo=UTC)
        assert call("date", "2006", midsummer.timestamp()) == "2024"

    def test_now_is_aware(self) -> None:
        assert call("now").tzinfo is not None

    def test_date_in_template(self, render: Render) -> None:
        data = {"T": datetime(2024, 6, 15, 12, tzinfo=UTC)}
        assert render('{{ .T | date "2006" }}', data) == "2024"


class TestParsing:
    """toDate and mustToDate."""

    def test_to_date_naive_is_local(self) -> None:
        parsed = call("toDate", "2006-01-02", "2024-03-05")
        assert (parsed.year, parsed.month, parsed.day) == (2024, 3, 5)
        assert parsed.tzinfo is not None

    def test_to_date_with_offset(self) -> None:
        parsed = call("toDate", "2006-01-02T15:04:05Z07:00", "2024-03-05T07:08:09+02:00")
        assert parsed.utcoffset() == timedelta(hours=2)
        assert parsed.hour == 7

    def test_to_date_invalid_is_zero_time(self) -> None:
        assert call("toDate", "2006-01-02", "not a date") == datetime(1, 1, 1, tzinfo=UTC)

    def test_must_to_date_invalid(self) -> None:
        with pytest.raises(TemplateExecutionError, match="error calling mustToDate"):
            call("mustToDate", "2006-01-02", "not a date")


class TestDurations:
    """Go duration parsing and formatting."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("-1.5s", timedelta(seconds=-1.5)),
            ("300ms", timedelta(milliseconds=300)),
            ("2us", timedelta(microseconds=2)),
            ("0", timedelta()),
            ("+5m", timedelta(minutes=5)),
        ],
    )
    def test_parse(self, text: str, expected: timedelta) -> None:
        assert parse_go_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "1x", "1h 30m", "h", "-"])
    def test_parse_invalid(self, text: str) -> None:
        with pytest.raises(ValueError, match="invalid duration"):
            parse_go_duration(text)

    @pytest.mark.parametrize(
        ("delta", "expected"),
        [
            (timedelta(), "0s"),
            (timedelta(microseconds=500), "500µs"),
            (timedelta(microseconds=1500), "1.5ms"),
            (timedelta(seconds=-90), "-1m30s"),
            (timedelta(hours=1, seconds=90.5), "1h1m30.5s"),
            (timedelta(hours=26), "26h0m0s"),
        ],
    )
    def test_format(self, delta: timedelta, expected: str) -> None:
        assert format_go_duration(delta) == expected

    @given(st.integers(min_value=-(10**12), max_value=10**12))
    def test_format_parse_round_trip(self, micros: int) -> None:
        delta = timedelta(microseconds=micros)
        assert parse_go_duration(format_go_duration(delta)) == delta

    def test_duration_function(self) -> None:
        assert call("duration", 95) == "1m35s"
        assert call("duration", "3600") == "1h0m0s"
        assert call("duration", "junk") == "0s"

    def test_duration_round(self) -> None:
        assert call("durationRound", "2h10m5s") == "2h"
        assert call("durationRound", timedelta(days=400)) == "1y"
        assert call("durationRound", timedelta(days=45)) == "1mo"
        assert call("durationRound", "-3m") == "-3m"
        assert call("durationRound", 0) == "0s"

    def test_date_modify(self) -> None:
        assert call("dateModify", "1h30m", MOMENT) == MOMENT + timedelta(hours=1, minutes=30)
        assert call("dateModify", "-24h", MOMENT).day == 4
        assert call("dateModify", "bogus", MOMENT) == MOMENT
        with pytest.raises(TemplateExecutionError, match="invalid duration"):
            call("mustDateModify", "bogus", MOMENT)

    def test_ago(self) -> None:
        earlier = datetime.now(UTC) - timedelta(seconds=90)
        assert call("ago", earlier) in {"1m30s", "1m31s"}
