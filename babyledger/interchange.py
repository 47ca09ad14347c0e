"""
Serialization boundary between the ledger core and everything outside it.

export_data/load_data turn the whole ledger into one JSON blob and back;
encode turns query results into the same JSON interchange format. Field names
in both directions are stable so that a presentation layer in any language can
read them.

Blob layout (version 1):

    {"version": 1,
     "feedings":   {"next_id": 4, "entries": [{"kind": "feeding", "id": 1, ...}]},
     "dejections": {"next_id": 1, "entries": []},
     "weights":    {"next_id": 2, "entries": [...]}}

Substituting an empty ledger when a blob fails to decode is a decision for the
caller; load_data only ever raises DecodeError.
"""
import json
from typing import Any, Dict, Generic, List, Literal, Sequence, Union

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from babyledger.errors import DecodeError
from babyledger.models import Dejection, EntryT, Feeding, Weight, describe_errors
from babyledger.storage.ledger import Ledger, Partition

BLOB_VERSION = 1


class PartitionSnapshot(BaseModel, Generic[EntryT]):
    next_id: int = Field(ge=1, strict=True)
    entries: List[EntryT] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_ids(self) -> "PartitionSnapshot":
        ids = [e.id for e in self.entries]
        if len(ids) != len(set(ids)):
            raise ValueError("duplicate entry ids")
        if ids and self.next_id <= max(ids):
            raise ValueError(f"next_id {self.next_id} must be greater than every id (max {max(ids)})")
        return self


class LedgerSnapshot(BaseModel):
    version: Literal[1]
    feedings: PartitionSnapshot[Feeding]
    dejections: PartitionSnapshot[Dejection]
    weights: PartitionSnapshot[Weight]

    @field_validator("version", mode="before")
    @classmethod
    def exact_version(cls, v: Any) -> Any:
        # reject true, which compares equal to 1
        if type(v) is not int:
            raise ValueError(f"version must be an integer, got {v!r}")
        return v


def _snapshot(partition: Partition) -> Dict[str, Any]:
    return {"next_id": partition.next_id, "entries": list(partition)}


def export_data(ledger: Ledger) -> str:
    snapshot = LedgerSnapshot(
        version=BLOB_VERSION,
        feedings=_snapshot(ledger.feedings),
        dejections=_snapshot(ledger.dejections),
        weights=_snapshot(ledger.weights),
    )
    return json.dumps(snapshot.model_dump(mode="json"))


def _upgrade_legacy(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Best-effort upgrade of the unversioned blob with one shared id counter.

    Flat lists become partitions; each partition's counter is the shared
    counter or one past its highest id, whichever is larger.
    """
    shared_next_id = raw.get("next_id", 1)
    if not isinstance(shared_next_id, int) or isinstance(shared_next_id, bool):
        raise DecodeError("invalid data: next_id must be an integer")

    def partition(key: str, kind: str) -> Dict[str, Any]:
        items = raw.get(key, [])
        if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
            raise DecodeError(f"invalid data: {key} must be a list of objects")
        entries = [dict(item, kind=kind) for item in items]
        ids = [e["id"] for e in entries if isinstance(e.get("id"), int)]
        return {"next_id": max([shared_next_id] + [i + 1 for i in ids]), "entries": entries}

    return {
        "version": BLOB_VERSION,
        "feedings": partition("feedings", "feeding"),
        "dejections": partition("dejections", "dejection"),
        "weights": partition("weights", "weight"),
    }


def load_data(blob: Union[str, bytes]) -> Ledger:
    try:
        raw = json.loads(blob)
    except (TypeError, ValueError, RecursionError) as e:
        raise DecodeError(f"invalid data: {e}") from None
    if not isinstance(raw, dict):
        raise DecodeError("invalid data: expected a JSON object")
    if "version" not in raw and isinstance(raw.get("feedings"), list):
        raw = _upgrade_legacy(raw)

    try:
        snapshot = LedgerSnapshot.model_validate(raw)
    except PydanticValidationError as e:
        raise DecodeError(f"invalid data: {describe_errors(e)}") from None

    return Ledger(
        feedings=Partition("feeding", Feeding, snapshot.feedings.entries, snapshot.feedings.next_id),
        dejections=Partition(
            "dejection", Dejection, snapshot.dejections.entries, snapshot.dejections.next_id
        ),
        weights=Partition("weight", Weight, snapshot.weights.entries, snapshot.weights.next_id),
    )


def encode(result: Union[BaseModel, Sequence[BaseModel]]) -> str:
    """JSON for a query result: one model or a list of them."""
    if isinstance(result, BaseModel):
        return json.dumps(result.model_dump(mode="json"))
    return json.dumps([item.model_dump(mode="json") for item in result])
