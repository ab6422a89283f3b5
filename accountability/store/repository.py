"""
JSONL table base with file locking and atomic updates.

Every table is one JSONL file. Mutations run under a thread lock plus an
exclusive fcntl lock on a sidecar ``.lock`` file, read the whole table,
and replace it through a temp-file rename. Compare-and-set methods in the
concrete stores therefore hold across processes, not just threads.
"""

import json
import fcntl
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Optional, Type

from accountability.core.exceptions import PersistenceFailure, RecordNotFound


class JsonlTable:
    """Thread- and process-safe JSONL table of dataclass records."""

    record_type: Type = None
    key_field = "id"
    kind = "Record"

    def __init__(self, table_file: str):
        """
        Initialize table.

        Args:
            table_file: Path to the JSONL file (created if missing).
        """
        self.table_file = Path(table_file)
        self.lock_file = self.table_file.with_name(self.table_file.name + ".lock")
        self._lock = threading.RLock()
        self._file_lock_handle = None

        # Ensure directory exists
        self.table_file.parent.mkdir(parents=True, exist_ok=True)

        # Create empty file if missing
        if not self.table_file.exists():
            self.table_file.touch()

    def _acquire_file_lock(self) -> None:
        """Acquire exclusive file lock."""
        if self._file_lock_handle is not None:
            return  # Already locked

        self._file_lock_handle = open(self.lock_file, "a+")
        fcntl.flock(self._file_lock_handle.fileno(), fcntl.LOCK_EX)

    def _release_file_lock(self) -> None:
        """Release file lock."""
        if self._file_lock_handle is not None:
            fcntl.flock(self._file_lock_handle.fileno(), fcntl.LOCK_UN)
            self._file_lock_handle.close()
            self._file_lock_handle = None

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold the thread lock and the file lock for the enclosed block."""
        with self._lock:
            if self._file_lock_handle is not None:
                # Re-entrant call from a method already holding the lock
                yield
                return
            self._acquire_file_lock()
            try:
                yield
            finally:
                self._release_file_lock()

    def _key(self, record) -> str:
        return getattr(record, self.key_field)

    def _read_all_records(self) -> List[Any]:
        """Read all records from JSONL file (must be called within lock context)."""
        records = []
        if not self.table_file.exists() or self.table_file.stat().st_size == 0:
            return records

        try:
            with open(self.table_file, "r") as f:
                for line in f:
                    line = line.strip()
                    if line:
                        data = json.loads(line)
                        records.append(self.record_type.from_dict(data))
        except (json.JSONDecodeError, ValueError, TypeError) as e:
            raise PersistenceFailure(f"Error reading {self.table_file}: {e}", e)
        except OSError as e:
            raise PersistenceFailure(f"Cannot read {self.table_file}: {e}", e)

        return records

    def _write_all_records(self, records: List[Any]) -> None:
        """Write all records to JSONL file atomically (must be called within lock context)."""
        # Validate all records before writing
        for record in records:
            record.validate()

        # Write to temporary file first, then atomically rename
        temp_file = self.table_file.with_suffix(".jsonl.tmp")
        try:
            with open(temp_file, "w") as f:
                for record in records:
                    line = json.dumps(record.to_dict(), default=str)
                    f.write(line + "\n")
            # Atomic rename
            temp_file.replace(self.table_file)
        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise PersistenceFailure(f"Cannot write {self.table_file}: {e}", e)

    def _append_record(self, record: Any) -> None:
        """Append one record without rewriting the table (must be called within lock context)."""
        record.validate()
        try:
            with open(self.table_file, "a") as f:
                f.write(json.dumps(record.to_dict(), default=str) + "\n")
        except OSError as e:
            raise PersistenceFailure(f"Cannot append to {self.table_file}: {e}", e)

    def _index_of(self, records: List[Any], record_id: str) -> int:
        """Position of record_id in records, raising RecordNotFound when absent."""
        for idx, r in enumerate(records):
            if self._key(r) == record_id:
                return idx
        raise RecordNotFound(self.kind, record_id)

    def add_record(self, record: Any) -> None:
        """
        Add a new record.

        Raises:
            ValueError: If the record is invalid or its key already exists
        """
        record.validate()

        with self._locked():
            records = self._read_all_records()

            if any(self._key(r) == self._key(record) for r in records):
                raise ValueError(
                    f"{self.kind} with id '{self._key(record)}' already exists"
                )

            records.append(record)
            self._write_all_records(records)

    def get_record(self, record_id: str) -> Optional[Any]:
        """
        Get a record by key.

        Returns:
            Record if found, None otherwise
        """
        with self._locked():
            for r in self._read_all_records():
                if self._key(r) == record_id:
                    return r
            return None

    def get_all_records(self) -> List[Any]:
        """Get all records in file order."""
        with self._locked():
            return self._read_all_records()

