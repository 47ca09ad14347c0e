# babyledger/summary.py
from collections import Counter
from datetime import date, datetime
from typing import Callable, Iterable, List, Optional, Union

from babyledger.models import (
    ENTRY_KINDS,
    FEEDING_TYPES,
    DaySummary,
    Dejection,
    Feeding,
    Period,
    SingleDay,
    Summary,
    TimelineEntry,
    Weight,
    parse_period,
)
from babyledger.storage.ledger import Ledger
from babyledger.timestamps import DateLike, day_bounds, format_date, iter_days, parse_date

_KIND_RANK = {kind: rank for rank, kind in enumerate(ENTRY_KINDS)}


def _named(entries: Iterable, baby_name: Optional[str]) -> list:
    if baby_name is None:
        return list(entries)
    return [e for e in entries if e.baby_name == baby_name]


def _within(entries: Iterable, since: datetime, until: Optional[datetime] = None) -> list:
    return [
        e for e in entries
        if e.timestamp >= since and (until is None or e.timestamp < until)
    ]


def list_feedings(
    ledger: Ledger, baby_name: Optional[str] = None, limit: Optional[int] = None
) -> List[Feeding]:
    """Most recent first, truncated to limit (None means no limit)."""
    if limit is not None and limit <= 0:
        return []
    rows = sorted(
        _named(ledger.feedings, baby_name),
        key=lambda f: (f.timestamp, f.id),
        reverse=True,
    )
    return rows if limit is None else rows[:limit]


def list_feedings_for_day(
    ledger: Ledger, baby_name: Optional[str], day: DateLike
) -> List[Feeding]:
    start, end = day_bounds(parse_date(day))
    rows = _within(_named(ledger.feedings, baby_name), start, end)
    return sorted(rows, key=lambda f: (f.timestamp, f.id))


def timeline_for_day(
    ledger: Ledger, baby_name: Optional[str], day: DateLike
) -> List[TimelineEntry]:
    """All kinds for one calendar day, ascending by time.

    Entries sharing a timestamp are ordered feeding, dejection, weight, then
    by id.
    """
    start, end = day_bounds(parse_date(day))
    entries = []
    for partition in (ledger.feedings, ledger.dejections, ledger.weights):
        entries.extend(_within(_named(partition, baby_name), start, end))
    entries.sort(key=lambda e: (e.timestamp, _KIND_RANK[e.kind], e.id))
    return [TimelineEntry.from_entry(e) for e in entries]


def _latest_weight(weights: List[Weight]) -> Optional[float]:
    if not weights:
        return None
    return max(weights, key=lambda w: (w.timestamp, w.id)).weight_kg


def _optional_sum(values: Iterable) -> Optional[Union[int, float]]:
    present = [v for v in values if v is not None]
    return sum(present) if present else None


def _aggregate(
    feedings: List[Feeding],
    dejections: List[Dejection],
    weights: List[Weight],
    factory: Callable[..., Summary] = Summary,
    **extra,
) -> Summary:
    by_type = Counter(f.feeding_type for f in feedings)
    by_kind = Counter(d.dejection_type for d in dejections)
    total_ml = _optional_sum(f.amount_ml for f in feedings)
    return factory(
        total_feedings=len(feedings),
        total_ml=float(total_ml) if total_ml is not None else None,
        total_minutes=_optional_sum(f.duration_minutes for f in feedings),
        by_type=[(t, by_type[t]) for t in FEEDING_TYPES if by_type[t]],
        total_urine=by_kind["urine"],
        total_poop=by_kind["poop"],
        latest_weight_kg=_latest_weight(weights),
        **extra,
    )


def get_summary(
    ledger: Ledger,
    baby_name: Optional[str],
    period: Union[str, date, datetime, Period],
) -> Summary:
    """Aggregate a single day or everything since an instant.

    A bare date selects that calendar day; a full date-time selects every
    entry at or after that instant, with no upper bound.
    """
    resolved = parse_period(period)
    if isinstance(resolved, SingleDay):
        since, until = day_bounds(resolved.day)
    else:
        since, until = resolved.since, None
    return _aggregate(
        _within(_named(ledger.feedings, baby_name), since, until),
        _within(_named(ledger.dejections, baby_name), since, until),
        _within(_named(ledger.weights, baby_name), since, until),
    )


def get_report(
    ledger: Ledger,
    baby_name: Optional[str],
    start_date: DateLike,
    end_date: DateLike,
) -> List[DaySummary]:
    """One DaySummary per calendar day in [start_date, end_date)."""
    start = parse_date(start_date, field="start_date")
    end = parse_date(end_date, field="end_date")

    feedings = _named(ledger.feedings, baby_name)
    dejections = _named(ledger.dejections, baby_name)
    weights = _named(ledger.weights, baby_name)

    report = []
    for day in iter_days(start, end):
        since, until = day_bounds(day)
        day_feedings = _within(feedings, since, until)
        counts = Counter(f.feeding_type for f in day_feedings)
        day_weights = _within(weights, since, until)
        report.append(_aggregate(
            day_feedings,
            _within(dejections, since, until),
            day_weights,
            factory=DaySummary,
            date=format_date(day),
            breast_left=counts["breast-left"],
            breast_right=counts["breast-right"],
            bottle=counts["bottle"],
            solid=counts["solid"],
            weight_kg=_latest_weight(day_weights),
        ))
    return report
