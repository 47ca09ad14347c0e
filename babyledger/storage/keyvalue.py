import os
import re
from pathlib import Path
from typing import Optional, Union

from babyledger.log import get_logger

logger = get_logger(__name__)

_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileKeyValueStore:
    """Blob persistence: one file per key under a data directory.

    The ledger core only produces and consumes blobs; this is the host side
    that keeps them. Writes are atomic (temp file, fsync, rename).
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        if not _KEY.match(key) or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root / f"{key}.json"

    def ensure_dir(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def get(self, key: str) -> Optional[bytes]:
        # Raw bytes; decoding is up to the reader of the blob.
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def set(self, key: str, blob: Union[str, bytes]) -> None:
        path = self._path(key)
        self.ensure_dir()
        data = blob.encode("utf-8") if isinstance(blob, str) else blob
        tmp = path.with_suffix(".tmp")
        with tmp.open("wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())             # ensure it's on disk
        tmp.replace(path)
        logger.debug("blob_written", key=key, path=str(path), size=len(data))

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.exists():
            return False
        path.unlink()
        logger.debug("blob_deleted", key=key, path=str(path))
        return True
