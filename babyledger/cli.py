#!/usr/bin/env python3
"""
babyledger CLI entry point
Records feedings, diaper events and weights, and prints timelines, summaries
and reports. The CLI owns the clock, the storage location and the active
feeding timer; the ledger core only ever sees explicit timestamps and blobs.
"""
import argparse
import sys
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import List, Optional

from dateutil import parser as dateparser

from babyledger.config import AppConfig, get_config
from babyledger.errors import DecodeError, LedgerError, ValidationError
from babyledger.interchange import encode
from babyledger.log import get_logger, setup_logging
from babyledger.models import FEEDING_TYPE_LABELS, DaySummary, Summary, TimelineEntry
from babyledger.storage.keyvalue import FileKeyValueStore
from babyledger.timer import ActiveTimer
from babyledger.timestamps import format_date, format_timestamp
from babyledger.tracker import BabyTracker

logger = get_logger(__name__)

# ---------------- Helper functions -----------------


def parse_when(value: Optional[str], now: datetime) -> datetime:
    """Free-form time relative to now ('08:30', '2026-02-15 8am'); None is now."""
    if value is None:
        return now.replace(microsecond=0)
    try:
        return dateparser.parse(value, default=now.replace(second=0, microsecond=0))
    except (ValueError, OverflowError):
        raise ValidationError(f"could not understand time '{value}'", "time") from None


def parse_day(value: Optional[str], now: datetime) -> date:
    if value is None:
        return now.date()
    try:
        return dateparser.parse(value, default=now).date()
    except (ValueError, OverflowError):
        raise ValidationError(f"could not understand date '{value}'", "date") from None


def open_tracker(store: FileKeyValueStore, key: str) -> BabyTracker:
    """Load the persisted ledger, starting empty if there is none.

    An unreadable blob is set aside under '<key>.corrupt' and replaced by an
    empty ledger rather than aborting the session.
    """
    blob = store.get(key)
    if blob is None:
        return BabyTracker()
    try:
        return BabyTracker.load_data(blob)
    except DecodeError as e:
        backup = f"{key}.corrupt"
        store.set(backup, blob)
        logger.warning("ledger_unreadable", key=key, backup=backup, error=str(e))
        return BabyTracker()


class Session:
    def __init__(self, config: AppConfig, store: FileKeyValueStore, now: datetime) -> None:
        self.config = config
        self.store = store
        self.now = now
        self.tracker = open_tracker(store, config.storage.store_key)

    def save(self) -> None:
        self.store.set(self.config.storage.store_key, self.tracker.export_data())

    def load_timer(self) -> Optional[ActiveTimer]:
        blob = self.store.get(self.config.storage.timer_key)
        return ActiveTimer.from_json(blob) if blob is not None else None


def _name(args, session: Session) -> str:
    return args.name if args.name is not None else session.config.baby_name


def _name_filter(args, session: Session) -> Optional[str]:
    name = _name(args, session)
    return name or None


def _fmt_amount(amount_ml: Optional[float]) -> str:
    return f"{amount_ml:.0f}" if amount_ml is not None else ""


def _fmt_minutes(minutes: Optional[int]) -> str:
    return str(minutes) if minutes is not None else ""


def _fmt_or_no_data(value, unit: str, fmt: str = ".0f") -> str:
    return f"{value:{fmt}} {unit}" if value is not None else "no data"


def print_timeline(day: date, rows: List[TimelineEntry]) -> None:
    if not rows:
        print(f"No entries on {format_date(day)}.")
        return
    print(f"{format_date(day)}:")
    for r in rows:
        if r.kind == "feeding":
            detail = FEEDING_TYPE_LABELS[r.subtype]
            if r.amount_ml is not None:
                detail += f", {r.amount_ml:.0f} ml"
            if r.duration_minutes is not None:
                detail += f", {r.duration_minutes} min"
        elif r.kind == "dejection":
            detail = r.subtype.capitalize()
        else:
            detail = f"{r.weight_kg:.2f} kg"
        notes = f"  ({r.notes})" if r.notes else ""
        print(f"  {r.timestamp:%H:%M}  {r.kind:<10} {detail}{notes}  [id={r.id}]")


def print_summary(title: str, name: Optional[str], s: Summary) -> None:
    print(f"=== Summary ({title}) ===")
    if name:
        print(f"Baby: {name}")
    print(f"Total feedings: {s.total_feedings}")
    if s.total_ml is not None:
        print(f"Total volume: {s.total_ml:.0f} ml")
    if s.total_minutes is not None:
        print(f"Total nursing time: {s.total_minutes} min")
    if s.by_type:
        print("By type:")
        for feeding_type, count in s.by_type:
            print(f"  {FEEDING_TYPE_LABELS[feeding_type]}: {count}")
    print(f"Urine: {s.total_urine}  Poop: {s.total_poop}")
    print(f"Latest weight: {_fmt_or_no_data(s.latest_weight_kg, 'kg', '.2f')}")


def print_report(days: List[DaySummary]) -> None:
    if not days:
        print("Empty date range.")
        return
    print(f"{'Date':<12} {'Feeds':>5} {'ml':>8} {'min':>6} {'Urine':>5} {'Poop':>5} {'Weight':>8}")
    for d in days:
        ml = f"{d.total_ml:.0f}" if d.total_ml is not None else "-"
        minutes = str(d.total_minutes) if d.total_minutes is not None else "-"
        weight = f"{d.weight_kg:.2f}" if d.weight_kg is not None else "-"
        print(
            f"{d.date:<12} {d.total_feedings:>5} {ml:>8} {minutes:>6} "
            f"{d.total_urine:>5} {d.total_poop:>5} {weight:>8}"
        )


# ---------------- Commands -----------------


def cmd_feed(args, session: Session) -> int:
    ts = parse_when(args.time, session.now)
    eid = session.tracker.add_feeding(
        _name(args, session), args.type, args.ml, args.minutes, args.notes, timestamp=ts
    )
    session.save()
    print(f"✔ feeding #{eid} recorded at {format_timestamp(ts)}")
    return 0


def cmd_diaper(args, session: Session) -> int:
    ts = parse_when(args.time, session.now)
    eid = session.tracker.add_dejection(_name(args, session), args.type, args.notes, timestamp=ts)
    session.save()
    print(f"✔ dejection #{eid} recorded at {format_timestamp(ts)}")
    return 0


def cmd_weigh(args, session: Session) -> int:
    ts = parse_when(args.time, session.now)
    eid = session.tracker.add_weight(_name(args, session), args.kg, args.notes, timestamp=ts)
    session.save()
    print(f"✔ weight #{eid} recorded: {args.kg:.2f} kg at {format_timestamp(ts)}")
    return 0


def _edit_timestamp(args, session: Session, kind: str) -> datetime:
    # Without --time the entry keeps its recorded time.
    if args.time is None:
        return session.tracker.ledger.get(kind, args.id).timestamp
    return parse_when(args.time, session.now)


def cmd_edit_feeding(args, session: Session) -> int:
    ts = _edit_timestamp(args, session, "feeding")
    session.tracker.update_feeding(
        args.id, args.type, args.ml, args.minutes, args.notes, timestamp=ts
    )
    session.save()
    print(f"✔ feeding #{args.id} updated")
    return 0


def cmd_edit_diaper(args, session: Session) -> int:
    ts = _edit_timestamp(args, session, "dejection")
    session.tracker.update_dejection(args.id, args.type, args.notes, timestamp=ts)
    session.save()
    print(f"✔ dejection #{args.id} updated")
    return 0


def cmd_edit_weight(args, session: Session) -> int:
    ts = _edit_timestamp(args, session, "weight")
    session.tracker.update_weight(args.id, args.kg, args.notes, timestamp=ts)
    session.save()
    print(f"✔ weight #{args.id} updated")
    return 0


def cmd_delete(args, session: Session) -> int:
    session.tracker.ledger.delete(args.kind, args.id)
    session.save()
    print(f"✔ {args.kind} #{args.id} deleted")
    return 0


def cmd_list(args, session: Session) -> int:
    rows = session.tracker.list_feedings(_name_filter(args, session), args.limit)
    if args.json:
        print(encode(rows))
        return 0
    if not rows:
        print("No feeding events found.")
        return 0
    print(f"{'ID':>4}  {'Time':<16}  {'Baby':<10} {'Type':<14} {'ml':>6} {'min':>5}  Notes")
    for f in rows:
        notes = (f.notes or "")[:30]
        print(
            f"{f.id:>4}  {f.timestamp:%Y-%m-%d %H:%M}  {f.baby_name[:10]:<10} "
            f"{FEEDING_TYPE_LABELS[f.feeding_type]:<14} {_fmt_amount(f.amount_ml):>6} "
            f"{_fmt_minutes(f.duration_minutes):>5}  {notes}"
        )
    return 0


def cmd_day(args, session: Session) -> int:
    day = parse_day(args.date, session.now)
    rows = session.tracker.timeline_for_day(_name_filter(args, session), day)
    if args.json:
        print(encode(rows))
    else:
        print_timeline(day, rows)
    return 0


def cmd_summary(args, session: Session) -> int:
    if args.days is not None:
        if args.days < 1:
            raise ValidationError("must be at least 1", "days")
        start = datetime.combine(session.now.date() - timedelta(days=args.days - 1), datetime.min.time())
        period, title = format_timestamp(start), f"last {args.days} days"
    elif args.since is not None:
        since = parse_when(args.since, session.now)
        period, title = format_timestamp(since), f"since {format_timestamp(since)}"
    else:
        day = parse_day(args.date, session.now)
        period, title = format_date(day), format_date(day)
    name = _name_filter(args, session)
    s = session.tracker.get_summary(name, period)
    if args.json:
        print(encode(s))
    else:
        print_summary(title, name, s)
    return 0


def cmd_report(args, session: Session) -> int:
    start = parse_day(args.start, session.now)
    end = parse_day(args.end, session.now)
    days = session.tracker.get_report(_name_filter(args, session), start, end)
    if args.json:
        print(encode(days))
    else:
        print_report(days)
    return 0


def cmd_start(args, session: Session) -> int:
    if session.load_timer() is not None:
        raise ValidationError("a feeding timer is already running, stop it first")
    timer = ActiveTimer.start(args.type, session.now.replace(microsecond=0))
    session.store.set(session.config.storage.timer_key, timer.to_json())
    print(f"⏱ {FEEDING_TYPE_LABELS[timer.feeding_type]} started at {format_timestamp(timer.started_at)}")
    return 0


def cmd_stop(args, session: Session) -> int:
    timer = session.load_timer()
    if timer is None:
        raise ValidationError("no feeding timer is running")
    ts, minutes = timer.stop(session.now)
    eid = session.tracker.add_feeding(
        _name(args, session), timer.feeding_type, None, minutes, args.notes, timestamp=ts
    )
    session.save()
    session.store.delete(session.config.storage.timer_key)
    print(f"✔ feeding #{eid} recorded: {FEEDING_TYPE_LABELS[timer.feeding_type]}, {minutes} min")
    return 0


def cmd_status(args, session: Session) -> int:
    timer = session.load_timer()
    if timer is None:
        print("No feeding timer running.")
        return 0
    elapsed = int(timer.elapsed(session.now).total_seconds())
    print(
        f"⏱ {FEEDING_TYPE_LABELS[timer.feeding_type]} running for "
        f"{elapsed // 60}:{elapsed % 60:02d} (since {format_timestamp(timer.started_at)})"
    )
    return 0


def cmd_export(args, session: Session) -> int:
    blob = session.tracker.export_data()
    if args.output:
        Path(args.output).write_text(blob, encoding="utf-8")
        print(f"✔ exported to {args.output}")
    else:
        print(blob)
    return 0


def cmd_import(args, session: Session) -> int:
    blob = Path(args.file).read_bytes()
    session.tracker = BabyTracker.load_data(blob)
    session.save()
    print(f"✔ imported {args.file}")
    return 0


# ---------------- Parser -----------------


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--name", help="Baby name (defaults to BABYLEDGER_BABY_NAME)")
    as_json = argparse.ArgumentParser(add_help=False)
    as_json.add_argument("--json", action="store_true", help="Print JSON instead of text")

    parser = argparse.ArgumentParser(prog="babyledger", description="Track baby feedings, diapers and weight")
    sub = parser.add_subparsers(dest="command", required=True)

    def add(name: str, handler, help_text: str, query: bool = False) -> argparse.ArgumentParser:
        parents = [common, as_json] if query else [common]
        p = sub.add_parser(name, parents=parents, help=help_text)
        p.set_defaults(handler=handler)
        return p

    def timed(p: argparse.ArgumentParser) -> None:
        p.add_argument("--notes")
        p.add_argument("--time", help="When it happened, e.g. '08:30' or '2026-02-15 08:30' (default: now)")

    def feeding_fields(p: argparse.ArgumentParser) -> None:
        p.add_argument("type", help="breast-left (bl), breast-right (br), bottle (b), solid (s)")
        p.add_argument("--ml", type=float, help="Amount in ml (bottle)")
        p.add_argument("--minutes", type=int, help="Duration in minutes (breast)")
        timed(p)

    feeding_fields(add("feed", cmd_feed, "Record a feeding"))

    p = add("diaper", cmd_diaper, "Record a dejection (urine or poop)")
    p.add_argument("type", help="urine or poop")
    timed(p)

    p = add("weigh", cmd_weigh, "Record a weight in kg")
    p.add_argument("kg", type=float)
    timed(p)

    p = add("edit-feeding", cmd_edit_feeding, "Replace a feeding")
    p.add_argument("id", type=int)
    feeding_fields(p)

    p = add("edit-diaper", cmd_edit_diaper, "Replace a dejection")
    p.add_argument("id", type=int)
    p.add_argument("type", help="urine or poop")
    timed(p)

    p = add("edit-weight", cmd_edit_weight, "Replace a weight")
    p.add_argument("id", type=int)
    p.add_argument("kg", type=float)
    timed(p)

    p = add("delete", cmd_delete, "Delete an entry")
    p.add_argument("kind", choices=["feeding", "dejection", "weight"])
    p.add_argument("id", type=int)

    p = add("list", cmd_list, "List recent feedings", query=True)
    p.add_argument("--limit", type=int, default=10)

    p = add("day", cmd_day, "Timeline of one day", query=True)
    p.add_argument("date", nargs="?", help="Day to show (default: today)")

    p = add("summary", cmd_summary, "Totals for a day or a recent period", query=True)
    p.add_argument("date", nargs="?", help="Day to summarize (default: today)")
    group = p.add_mutually_exclusive_group()
    group.add_argument("--since", help="Summarize everything since this time")
    group.add_argument("--days", type=int, help="Summarize the last N days, today included")

    p = add("report", cmd_report, "Per-day totals for [START, END)", query=True)
    p.add_argument("start")
    p.add_argument("end")

    p = add("start", cmd_start, "Start timing a feeding")
    p.add_argument("type", help="breast-left (bl), breast-right (br), bottle (b), solid (s)")

    p = add("stop", cmd_stop, "Stop the running feeding timer and record it")
    p.add_argument("--notes")

    add("status", cmd_status, "Show the running feeding timer")

    p = add("export", cmd_export, "Print or save the ledger blob")
    p.add_argument("--output", "-o")

    p = add("import", cmd_import, "Replace the ledger with a saved blob")
    p.add_argument("file")

    return parser


# ---------------- Main -----------------


def main(argv: Optional[List[str]] = None, now: Optional[datetime] = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config()
    setup_logging(config.logging)

    store = FileKeyValueStore(config.storage.data_dir)
    try:
        session = Session(config, store, now or datetime.now())
        return args.handler(args, session)
    except LedgerError as e:
        logger.info("command_failed", command=args.command, error=str(e))
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        logger.error("io_failed", command=args.command, error=str(e))
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
