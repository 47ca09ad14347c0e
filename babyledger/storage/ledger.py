from typing import Any, Dict, Generic, Iterable, Iterator, Optional, Union

from babyledger.errors import NotFound, ValidationError
from babyledger.models import (
    ENTRY_KINDS,
    Dejection,
    EntryT,
    Feeding,
    Weight,
    build_entry,
)
from babyledger.timestamps import TimestampLike


class Partition(Generic[EntryT]):
    """Entries of one kind, keyed by id, with their own id sequence.

    next_id only ever grows: deleting the newest entry does not free its id.
    """

    def __init__(
        self,
        kind: str,
        model: type[EntryT],
        entries: Iterable[EntryT] = (),
        next_id: int = 1,
    ) -> None:
        self.kind = kind
        self.model = model
        self._entries: Dict[int, EntryT] = {e.id: e for e in entries}
        self.next_id = max(next_id, max(self._entries, default=0) + 1)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._entries

    def __iter__(self) -> Iterator[EntryT]:
        for entry_id in sorted(self._entries):
            yield self._entries[entry_id]

    def get(self, entry_id: int) -> EntryT:
        try:
            return self._entries[entry_id]
        except KeyError:
            raise NotFound(self.kind, entry_id) from None

    def insert(self, **fields: Any) -> int:
        entry = build_entry(self.model, id=self.next_id, **fields)
        self._entries[entry.id] = entry
        self.next_id += 1
        return entry.id

    def replace(self, entry_id: int, **fields: Any) -> None:
        current = self.get(entry_id)
        # id, kind and baby_name survive an update
        self._entries[entry_id] = build_entry(
            self.model, id=entry_id, baby_name=current.baby_name, **fields
        )

    def remove(self, entry_id: int) -> None:
        if entry_id not in self._entries:
            raise NotFound(self.kind, entry_id)
        del self._entries[entry_id]


class Ledger:
    """Authoritative owner of every entry, partitioned by kind."""

    def __init__(
        self,
        feedings: Optional[Partition[Feeding]] = None,
        dejections: Optional[Partition[Dejection]] = None,
        weights: Optional[Partition[Weight]] = None,
    ) -> None:
        self.feedings = feedings if feedings is not None else Partition("feeding", Feeding)
        self.dejections = dejections if dejections is not None else Partition("dejection", Dejection)
        self.weights = weights if weights is not None else Partition("weight", Weight)

    def partition(self, kind: str) -> Partition:
        if kind == "feeding":
            return self.feedings
        if kind == "dejection":
            return self.dejections
        if kind == "weight":
            return self.weights
        raise ValidationError(f"unknown entry kind '{kind}', use: {', '.join(ENTRY_KINDS)}", "kind")

    def get(self, kind: str, entry_id: int) -> Union[Feeding, Dejection, Weight]:
        return self.partition(kind).get(entry_id)

    def delete(self, kind: str, entry_id: int) -> None:
        self.partition(kind).remove(entry_id)

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
        return self.feedings.insert(
            baby_name=baby_name,
            feeding_type=feeding_type,
            amount_ml=amount_ml,
            duration_minutes=duration_minutes,
            notes=notes,
            timestamp=timestamp,
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
        self.feedings.replace(
            entry_id,
            feeding_type=feeding_type,
            amount_ml=amount_ml,
            duration_minutes=duration_minutes,
            notes=notes,
            timestamp=timestamp,
        )

    def delete_feeding(self, entry_id: int) -> None:
        self.feedings.remove(entry_id)

    # --- Dejection ---

    def add_dejection(
        self,
        baby_name: str,
        dejection_type: str,
        notes: Optional[str] = None,
        *,
        timestamp: TimestampLike,
    ) -> int:
        return self.dejections.insert(
            baby_name=baby_name,
            dejection_type=dejection_type,
            notes=notes,
            timestamp=timestamp,
        )

    def update_dejection(
        self,
        entry_id: int,
        dejection_type: str,
        notes: Optional[str] = None,
        *,
        timestamp: TimestampLike,
    ) -> None:
        self.dejections.replace(
            entry_id, dejection_type=dejection_type, notes=notes, timestamp=timestamp
        )

    def delete_dejection(self, entry_id: int) -> None:
        self.dejections.remove(entry_id)

    # --- Weight ---

    def add_weight(
        self,
        baby_name: str,
        weight_kg: float,
        notes: Optional[str] = None,
        *,
        timestamp: TimestampLike,
    ) -> int:
        return self.weights.insert(
            baby_name=baby_name, weight_kg=weight_kg, notes=notes, timestamp=timestamp
        )

    def update_weight(
        self,
        entry_id: int,
        weight_kg: float,
        notes: Optional[str] = None,
        *,
        timestamp: TimestampLike,
    ) -> None:
        self.weights.replace(entry_id, weight_kg=weight_kg, notes=notes, timestamp=timestamp)

    def delete_weight(self, entry_id: int) -> None:
        self.weights.remove(entry_id)
