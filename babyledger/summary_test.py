from datetime import date

import pytest

from babyledger.errors import ValidationError
from babyledger.models import SingleDay, SinceInstant
from babyledger.storage.ledger import Ledger
from babyledger.summary import (
    get_report,
    get_summary,
    list_feedings,
    list_feedings_for_day,
    timeline_for_day,
)
from babyledger.timestamps import format_timestamp

TS = "2026-02-15T08:00:00"


@pytest.fixture
def ledger() -> Ledger:
    return Ledger()


# --- Listing ---

def test_list_feedings_most_recent_first(ledger: Ledger) -> None:
    for hour in (8, 14, 11):
        ledger.add_feeding("Emma", "bottle", timestamp=f"2026-02-15T{hour:02d}:00:00")

    assert [f.timestamp.hour for f in list_feedings(ledger)] == [14, 11, 8]
    assert [f.timestamp.hour for f in list_feedings(ledger, limit=2)] == [14, 11]


def test_list_feedings_non_positive_limit_is_empty(ledger: Ledger) -> None:
    ledger.add_feeding("Emma", "bottle", timestamp=TS)
    assert list_feedings(ledger, limit=0) == []
    assert list_feedings(ledger, limit=-3) == []


def test_list_feedings_filters_by_name(ledger: Ledger) -> None:
    ledger.add_feeding("Emma", "bottle", timestamp=TS)
    ledger.add_feeding("Noah", "bottle", timestamp=TS)
    ledger.add_feeding("Emma", "solid", timestamp=TS)

    assert len(list_feedings(ledger, "Emma")) == 2
    assert len(list_feedings(ledger, "Noah")) == 1
    assert len(list_feedings(ledger)) == 3


def test_list_feedings_for_day_is_bounded_by_calendar_date(ledger: Ledger) -> None:
    ledger.add_feeding("Emma", "bottle", timestamp="2026-02-15T23:59:59")
    ledger.add_feeding("Emma", "bottle", timestamp="2026-02-16T12:00:00")
    ledger.add_feeding("Emma", "bottle", timestamp="2026-02-16T00:00:00")
    ledger.add_feeding("Emma", "bottle", timestamp="2026-02-17T00:00:00")

    rows = list_feedings_for_day(ledger, None, "2026-02-16")

    assert [format_timestamp(f.timestamp) for f in rows] == [
        "2026-02-16T00:00:00",
        "2026-02-16T12:00:00",
    ]


def test_list_feedings_for_day_rejects_bad_date(ledger: Ledger) -> None:
    with pytest.raises(ValidationError):
        list_feedings_for_day(ledger, None, "16/02/2026")


# --- Timeline ---

def test_timeline_merges_kinds_with_fixed_tie_break(ledger: Ledger) -> None:
    ledger.add_dejection("Emma", "urine", timestamp="2026-02-15T08:05:00")
    ledger.add_weight("Emma", 3.6, timestamp="2026-02-15T08:00:00")
    ledger.add_feeding("Emma", "bottle", 120, timestamp="2026-02-15T08:00:00")

    first = timeline_for_day(ledger, None, "2026-02-15")

    assert [(e.kind, e.timestamp.strftime("%H:%M")) for e in first] == [
        ("feeding", "08:00"),
        ("weight", "08:00"),
        ("dejection", "08:05"),
    ]
    assert timeline_for_day(ledger, None, "2026-02-15") == first


def test_timeline_projects_each_kind_into_common_shape(ledger: Ledger) -> None:
    ledger.add_feeding("Emma", "breast-left", None, 12, timestamp="2026-02-15T07:00:00")
    ledger.add_dejection("Emma", "poop", "messy", timestamp="2026-02-15T09:00:00")
    ledger.add_weight("Emma", 4.2, timestamp="2026-02-15T10:00:00")

    feeding, dejection, weight = timeline_for_day(ledger, None, date(2026, 2, 15))

    assert feeding.subtype == "breast-left"
    assert feeding.duration_minutes == 12
    assert feeding.amount_ml is None and feeding.weight_kg is None
    assert dejection.subtype == "poop"
    assert dejection.notes == "messy"
    assert dejection.amount_ml is None and dejection.duration_minutes is None
    assert weight.subtype is None
    assert weight.weight_kg == 4.2


def test_timeline_filters_by_day_and_name(ledger: Ledger) -> None:
    ledger.add_feeding("Emma", "bottle", timestamp="2026-02-14T20:00:00")
    ledger.add_dejection("Emma", "urine", timestamp="2026-02-15T08:00:00")
    ledger.add_dejection("Noah", "poop", timestamp="2026-02-15T09:00:00")
    ledger.add_feeding("Emma", "bottle", timestamp="2026-02-16T06:00:00")

    rows = timeline_for_day(ledger, "Emma", "2026-02-15")

    assert len(rows) == 1
    assert rows[0].kind == "dejection"
    assert rows[0].baby_name == "Emma"
    assert timeline_for_day(ledger, None, "2026-02-20") == []


# --- Summary ---

def test_summary_for_a_single_day(ledger: Ledger) -> None:
    ledger.add_feeding("Emma", "bottle", 90, timestamp="2026-02-15T06:00:00")
    ledger.add_feeding("Emma", "bottle", 120, timestamp="2026-02-15T10:00:00")
    ledger.add_feeding("Emma", "breast-right", None, 10, timestamp="2026-02-15T13:00:00")
    ledger.add_feeding("Emma", "bottle", 80, timestamp="2026-02-16T06:00:00")

    s = get_summary(ledger, None, "2026-02-15")

    assert s.total_feedings == 3
    assert s.total_ml == 210
    assert s.total_minutes == 10
    # fixed enum order, only subtypes that occurred
    assert s.by_type == [("breast-right", 1), ("bottle", 2)]


def test_summary_counts_dejections_and_latest_weight(ledger: Ledger) -> None:
    ledger.add_dejection("Emma", "urine", timestamp="2026-02-15T09:00:00")
    ledger.add_dejection("Emma", "urine", timestamp="2026-02-15T11:00:00")
    ledger.add_dejection("Emma", "poop", timestamp="2026-02-15T13:00:00")
    ledger.add_weight("Emma", 3.6, timestamp="2026-02-15T14:00:00")
    ledger.add_weight("Emma", 3.5, timestamp="2026-02-15T08:00:00")

    s = get_summary(ledger, None, "2026-02-15")

    assert s.total_urine == 2
    assert s.total_poop == 1
    assert s.latest_weight_kg == 3.6


def test_summary_of_empty_period(ledger: Ledger) -> None:
    s = get_summary(ledger, None, "2026-02-15")

    assert s.total_feedings == 0
    assert s.total_urine == 0
    assert s.total_poop == 0
    assert s.by_type == []
    assert s.total_ml is None
    assert s.total_minutes is None
    assert s.latest_weight_kg is None


def test_summary_keeps_absent_totals_distinct_from_zero(ledger: Ledger) -> None:
    ledger.add_feeding("Emma", "solid", timestamp=TS)
    s = get_summary(ledger, None, "2026-02-15")
    assert s.total_feedings == 1
    assert s.total_ml is None

    ledger.add_feeding("Emma", "bottle", 0, timestamp=TS)
    s = get_summary(ledger, None, "2026-02-15")
    assert s.total_ml == 0.0


def test_summary_with_timestamp_is_open_ended(ledger: Ledger) -> None:
    ledger.add_feeding("Emma", "bottle", 100, timestamp="2026-02-14T20:00:00")
    ledger.add_feeding("Emma", "bottle", 110, timestamp="2026-02-15T07:59:59")
    ledger.add_feeding("Emma", "bottle", 120, timestamp="2026-02-15T08:00:00")
    ledger.add_feeding("Emma", "bottle", 130, timestamp="2026-03-01T08:00:00")

    s = get_summary(ledger, None, "2026-02-15T08:00:00")

    assert s.total_feedings == 2
    assert s.total_ml == 250
    assert get_summary(ledger, None, SinceInstant(since="2026-02-15T08:00:00")) == s
    assert get_summary(ledger, None, SingleDay(day="2026-02-15")).total_feedings == 2


def test_summary_filters_by_name(ledger: Ledger) -> None:
    ledger.add_dejection("Emma", "poop", timestamp=TS)
    ledger.add_dejection("Noah", "poop", timestamp=TS)

    assert get_summary(ledger, "Emma", "2026-02-15").total_poop == 1
    assert get_summary(ledger, None, "2026-02-15").total_poop == 2


def test_summary_rejects_unparseable_period(ledger: Ledger) -> None:
    with pytest.raises(ValidationError):
        get_summary(ledger, None, "yesterday")


# --- Report ---

def test_report_has_one_row_per_day_including_empty_days(ledger: Ledger) -> None:
    ledger.add_feeding("Emma", "bottle", 120, timestamp="2026-02-14T08:00:00")
    ledger.add_feeding("Emma", "breast-left", None, 15, timestamp="2026-02-14T12:00:00")
    ledger.add_weight("Emma", 3.5, timestamp="2026-02-14T09:00:00")
    ledger.add_dejection("Emma", "urine", timestamp="2026-02-14T10:00:00")
    ledger.add_dejection("Emma", "poop", timestamp="2026-02-16T10:00:00")

    days = get_report(ledger, None, "2026-02-14", "2026-02-17")

    assert [d.date for d in days] == ["2026-02-14", "2026-02-15", "2026-02-16"]
    first, middle, last = days

    assert first.total_feedings == 2
    assert first.total_ml == 120
    assert first.total_minutes == 15
    assert first.bottle == 1 and first.breast_left == 1
    assert first.total_urine == 1
    assert first.weight_kg == 3.5
    assert first.latest_weight_kg == 3.5

    assert middle.total_feedings == 0
    assert middle.total_urine == 0 and middle.total_poop == 0
    assert middle.by_type == []
    assert middle.total_ml is None
    assert middle.total_minutes is None
    assert middle.weight_kg is None

    assert last.total_feedings == 0
    assert last.total_poop == 1


def test_report_end_is_exclusive(ledger: Ledger) -> None:
    assert get_report(ledger, None, "2026-02-15", "2026-02-15") == []
    assert get_report(ledger, None, "2026-02-16", "2026-02-15") == []
    assert len(get_report(ledger, None, date(2026, 2, 15), date(2026, 2, 16))) == 1


def test_report_filters_by_name(ledger: Ledger) -> None:
    ledger.add_feeding("Emma", "bottle", 120, timestamp=TS)
    ledger.add_feeding("Noah", "bottle", 100, timestamp=TS)

    (day,) = get_report(ledger, "Emma", "2026-02-15", "2026-02-16")

    assert day.total_feedings == 1
    assert day.total_ml == 120
