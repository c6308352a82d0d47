"""
JSON Progress Repository: Infrastructure adapter for a single JSON file.

The file holds every user's record under a top-level "progress" key:

    {"progress": {"<userId>": {...record...}}}

Writes replace the whole document through a temporary file and an atomic
rename. Blocking file I/O runs in a worker thread.
"""

import asyncio
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

from retain.domain.errors import PersistenceError
from retain.domain.progress.models import ProgressAggregate
from retain.domain.progress.ports import ProgressRepository

logger = logging.getLogger(__name__)

_registry_lock = threading.Lock()
_path_locks: dict[Path, threading.Lock] = {}


def _lock_for(path: Path) -> threading.Lock:
    """One lock per resolved store path, shared by every repository instance."""
    key = path.resolve()
    with _registry_lock:
        lock = _path_locks.get(key)
        if lock is None:
            lock = _path_locks[key] = threading.Lock()
        return lock


class JsonProgressRepository(ProgressRepository):
    """
    Persists progress records to one JSON document on disk.

    Read-modify-write of the document is serialized per file path, so
    concurrent saves for different users never drop each other's records.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = _lock_for(self.path)

    async def load(self, user_id: str) -> ProgressAggregate | None:
        document = await asyncio.to_thread(self._locked_read)
        data = document["progress"].get(user_id)
        if data is None:
            return None
        try:
            return ProgressAggregate.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Corrupt progress record for user={user_id}: {e}") from e

    async def save(self, progress: ProgressAggregate) -> None:
        await asyncio.to_thread(self._save_record, progress.user_id, progress.to_dict())

    # --- low-level helpers (callers hold self._lock) ---

    def _locked_read(self) -> dict[str, Any]:
        with self._lock:
            return self._read_document()

    def _ensure_document(self) -> None:
        if self.path.exists():
            return
        logger.info(f"Creating progress store at {self.path}")
        self._write_document({"progress": {}})

    def _read_document(self) -> dict[str, Any]:
        self._ensure_document()
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read progress store {self.path}: {e}")
            raise PersistenceError(f"Could not read {self.path}: {e}") from e

        if not isinstance(document, dict) or not isinstance(document.get("progress"), dict):
            raise PersistenceError(f"Unexpected progress store layout in {self.path}")
        return document

    def _save_record(self, user_id: str, record: dict[str, Any]) -> None:
        with self._lock:
            document = self._read_document()
            document["progress"][user_id] = record
            self._write_document(document)

    def _write_document(self, document: dict[str, Any]) -> None:
        tmp_path: Path | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f"{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_path = Path(tmp.name)
                json.dump(document, tmp, indent=2, allow_nan=False)
            os.replace(tmp_path, self.path)
        except (OSError, ValueError) as e:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            logger.error(f"Failed to write progress store {self.path}: {e}")
            raise PersistenceError(f"Could not write {self.path}: {e}") from e
