from typing import Optional


class LedgerError(Exception):
    """Base class for every error raised by the ledger core."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class ValidationError(LedgerError, ValueError):
    """Malformed or out-of-range input on create/update or query."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        self.field = field
        super().__init__(f"{field}: {message}" if field else message)


class NotFound(LedgerError, KeyError):
    """Update/delete referencing an id absent from the kind's partition."""

    def __init__(self, kind: str, entry_id: int) -> None:
        self.kind = kind
        self.entry_id = entry_id
        super().__init__(f"{kind.capitalize()} entry {entry_id} not found")


class DecodeError(LedgerError, ValueError):
    """Persisted blob could not be turned back into a ledger."""
