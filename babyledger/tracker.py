from datetime import date, datetime
from typing import List, Optional, Union

from babyledger import interchange, summary
from babyledger.models import DaySummary, Feeding, Period, Summary, TimelineEntry
from babyledger.storage.ledger import Ledger
from babyledger.timestamps import DateLike, TimestampLike


class BabyTracker:
    """Single entry point for presentation layers.

    Mutations go to the ledger, queries to the query engine, and
    export_data/load_data cross the persistence boundary. Nothing here
    reads the clock or touches storage; callers supply every timestamp and
    decide where blobs live.
    """

    def __init__(self, ledger: Optional[Ledger] = None) -> None:
        self.ledger = ledger if ledger is not None else Ledger()

    @classmethod
    def load_data(cls, blob: Union[str, bytes]) -> "BabyTracker":
        return cls(interchange.load_data(blob))

    def export_data(self) -> str:
        return interchange.export_data(self.ledger)

    # --- Feeding ---

    def add_feeding(
        self,
        baby_name: str,
        feeding_type: str,
        amount_ml: Optional[float] = None,
        duration_minutes: Optional[int] = None,
        notes: Optional[str] = None,
        *,
        timestamp: TimestampLike,
    ) -> int:
        return self.ledger.add_feeding(
            baby_name, feeding_type, amount_ml, duration_minutes, notes, timestamp=timestamp
        )

    def update_feeding(
        self,
        entry_id: int,
        feeding_type: str,
        amount_ml: Optional[float] = None,
        duration_minutes: Optional[int] = None,
        notes: Optional[str] = None,
        *,
        timestamp: TimestampLike,
    ) -> None:
        self.ledger.update_feeding(
            entry_id, feeding_type, amount_ml, duration_minutes, notes, timestamp=timestamp
        )

    def delete_feeding(self, entry_id: int) -> None:
        self.ledger.delete_feeding(entry_id)

    # --- Dejection ---

    def add_dejection(
        self,
        baby_name: str,
        dejection_type: str,
        notes: Optional[str] = None,
        *,
        timestamp: TimestampLike,
    ) -> int:
        return self.ledger.add_dejection(baby_name, dejection_type, notes, timestamp=timestamp)

    def update_dejection(
        self,
        entry_id: int,
        dejection_type: str,
        notes: Optional[str] = None,
        *,
        timestamp: TimestampLike,
    ) -> None:
        self.ledger.update_dejection(entry_id, dejection_type, notes, timestamp=timestamp)

    def delete_dejection(self, entry_id: int) -> None:
        self.ledger.delete_dejection(entry_id)

    # --- Weight ---

    def add_weight(
        self,
        baby_name: str,
        weight_kg: float,
        notes: Optional[str] = None,
        *,
        timestamp: TimestampLike,
    ) -> int:
        return self.ledger.add_weight(baby_name, weight_kg, notes, timestamp=timestamp)

    def update_weight(
        self,
        entry_id: int,
        weight_kg: float,
        notes: Optional[str] = None,
        *,
        timestamp: TimestampLike,
    ) -> None:
        self.ledger.update_weight(entry_id, weight_kg, notes, timestamp=timestamp)

    def delete_weight(self, entry_id: int) -> None:
        self.ledger.delete_weight(entry_id)

    # --- Queries ---

    def list_feedings(
        self, baby_name: Optional[str] = None, limit: Optional[int] = None
    ) -> List[Feeding]:
        return summary.list_feedings(self.ledger, baby_name, limit)

    def list_feedings_for_day(self, baby_name: Optional[str], day: DateLike) -> List[Feeding]:
        return summary.list_feedings_for_day(self.ledger, baby_name, day)

    def timeline_for_day(self, baby_name: Optional[str], day: DateLike) -> List[TimelineEntry]:
        return summary.timeline_for_day(self.ledger, baby_name, day)

    def get_summary(
        self, baby_name: Optional[str], period: Union[str, date, datetime, Period]
    ) -> Summary:
        return summary.get_summary(self.ledger, baby_name, period)

    def get_report(
        self, baby_name: Optional[str], start_date: DateLike, end_date: DateLike
    ) -> List[DaySummary]:
        return summary.get_report(self.ledger, baby_name, start_date, end_date)
