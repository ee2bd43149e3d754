"""Tests for service calendar resolution."""

from pathlib import Path

import pytest

from transit_api.gtfs.calendar import (
    build_calendars,
    describe_weekdays,
    gtfs_date_to_iso,
    merge_weekdays,
    resolve_calendar,
)
from transit_api.gtfs.models import Calendar, CalendarDate
from transit_api.gtfs.reader import FeedReader


def days(*active: int) -> list[bool]:
    """Sunday-first bitset with the given day indexes set."""
    return [i in active for i in range(7)]


@pytest.mark.parametrize(
    ("index", "name"),
    [(0, "Sunday"), (1, "Monday"), (3, "Wednesday"), (6, "Saturday")],
)
def test_single_day(index: int, name: str) -> None:
    assert describe_weekdays(days(index)) == name


def test_daily() -> None:
    assert describe_weekdays([True] * 7) == "Daily"


def test_weekend() -> None:
    assert describe_weekdays(days(0, 6)) == "Saturday - Sunday"


def test_contiguous_range() -> None:
    assert describe_weekdays(days(1, 2, 3, 4, 5)) == "Monday - Friday"
    assert describe_weekdays(days(0, 1, 2)) == "Sunday - Tuesday"


def test_non_contiguous_list() -> None:
    assert describe_weekdays(days(1, 3, 5)) == "Monday, Wednesday, Friday"
    # The weekend rule only applies when no weekday is active
    assert describe_weekdays(days(0, 3, 6)) == "Sunday, Wednesday, Saturday"


def test_no_regular_service() -> None:
    assert describe_weekdays([False] * 7) == "No regular service"


def test_merge_weekdays() -> None:
    assert merge_weekdays([days(1, 2), days(2, 6)]) == days(1, 2, 6)
    assert merge_weekdays([]) == [False] * 7


def test_gtfs_date_to_iso() -> None:
    assert gtfs_date_to_iso("20241225") == "2024-12-25"
    with pytest.raises(ValueError):
        gtfs_date_to_iso("2024-12-25")


def test_resolve_calendar_partitions_exceptions() -> None:
    calendar = Calendar(
        service_id="S",
        sunday=False,
        monday=True,
        tuesday=True,
        wednesday=True,
        thursday=True,
        friday=True,
        saturday=False,
        start_date="20240101",
        end_date="20241231",
    )
    exceptions = [
        CalendarDate(service_id="S", date="20240527", exception_type=2),
        CalendarDate(service_id="S", date="20240601", exception_type=1),
        CalendarDate(service_id="S", date="20240704", exception_type=2),
        CalendarDate(service_id="S", date="20240705", exception_type=9),
    ]

    doc = resolve_calendar("S", calendar, exceptions)

    assert doc.days == days(1, 2, 3, 4, 5)
    assert doc.description == "Monday - Friday"
    assert doc.added == ["2024-06-01"]
    assert doc.removed == ["2024-05-27", "2024-07-04"]


def test_description_matches_days(gtfs_minimal: Path) -> None:
    """Every published description can be derived from its bitset again."""
    reader = FeedReader(str(gtfs_minimal))
    reader.read_all()

    for doc in build_calendars(reader).values():
        assert doc.description == describe_weekdays(doc.days)


def test_build_calendars(gtfs_minimal: Path) -> None:
    reader = FeedReader(str(gtfs_minimal))
    reader.read_all()

    calendars = build_calendars(reader)

    assert set(calendars) == {"WKDY", "WKND", "HOL"}
    assert calendars["WKDY"].description == "Monday - Friday"
    assert calendars["WKDY"].removed == ["2024-12-25"]
    assert calendars["WKND"].description == "Saturday - Sunday"
    assert calendars["WKND"].added == ["2024-12-25"]
    # Defined only through calendar_dates
    assert calendars["HOL"].days == [False] * 7
    assert calendars["HOL"].description == "No regular service"
    assert calendars["HOL"].added == ["2024-07-04"]
