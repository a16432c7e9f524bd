# src/wg_sync/store.py
"""
One JSON record per name under a root directory.

Writes are atomic (temporary file + ``os.replace``) and every
read-modify-write goes through ``mutate``, which holds an exclusive
per-name lock: a ``threading.Lock`` for callers in this process and an
``fcntl.flock`` advisory lock for other processes.
"""
from __future__ import annotations

import fcntl
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Generic, Iterator, Optional, Set, Type, TypeVar

from .errors import (
    CorruptRecord,
    InterfaceExists,
    InterfaceNotFound,
    NotFoundError,
    RecordReadError,
    RecordWriteError,
)
from .models import InterfaceRecord, check_record
from .state import dict_to_record, record_to_dict

logger = logging.getLogger(__name__)

R = TypeVar("R")
T = TypeVar("T")

_registry_lock = threading.Lock()
_name_locks: Dict[str, threading.Lock] = {}


def _thread_lock(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _registry_lock:
        return _name_locks.setdefault(key, threading.Lock())


def atomic_write_text(path: Path, text: str, mode: int = 0o600) -> None:
    """
    Replace ``path`` with ``text`` so readers see either the old or the new
    content, never a truncated file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)


class RecordStore(Generic[R]):
    def __init__(
        self,
        root: Path,
        encode: Callable[[R], dict],
        decode: Callable[[dict], R],
        name_of: Callable[[R], str],
        not_found: Type[NotFoundError] = InterfaceNotFound,
        exists_error: Type[Exception] = InterfaceExists,
        validate: Optional[Callable[[R], None]] = None,
    ):
        self.root = Path(root)
        self._encode = encode
        self._decode = decode
        self._name_of = name_of
        self._not_found = not_found
        self._exists_error = exists_error
        self._validate = validate

    def path(self, name: str) -> Path:
        return self.root / f"{name}.json"

    def exists(self, name: str) -> bool:
        return self.path(name).is_file()

    def list(self) -> Set[str]:
        if not self.root.is_dir():
            return set()
        return {p.stem for p in self.root.glob("*.json") if p.is_file()}

    def load(self, name: str) -> R:
        path = self.path(name)
        if not path.is_file():
            raise self._not_found(name)
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise CorruptRecord(f"{path}: {e}") from e
        except OSError as e:
            raise RecordReadError(f"{path}: {e}") from e
        if not isinstance(data, dict):
            raise CorruptRecord(f"{path}: expected a JSON object")
        record = self._decode(data)
        if self._name_of(record) != name:
            raise CorruptRecord(f"{path}: holds a record named {self._name_of(record)!r}")
        return record

    def save(self, record: R) -> None:
        path = self.path(self._name_of(record))
        text = json.dumps(self._encode(record), indent=2) + "\n"
        try:
            atomic_write_text(path, text)
        except OSError as e:
            raise RecordWriteError(f"{path}: {e}") from e
        logger.debug("Saved %s", path)

    def delete(self, name: str) -> None:
        path = self.path(name)
        if not path.is_file():
            raise self._not_found(name)
        try:
            path.unlink()
        except OSError as e:
            raise RecordWriteError(f"{path}: {e}") from e
        logger.info("Removed record %s", path)

    # ---------- exclusive access ----------

    @contextmanager
    def lock(self, name: str) -> Iterator[None]:
        """
        Exclusive access to one record, across threads and processes.
        """
        lock_path = self.root / f".{name}.lock"
        thread_lock = _thread_lock(lock_path)
        with thread_lock:
            try:
                self.root.mkdir(parents=True, exist_ok=True)
                fh = lock_path.open("a")
            except OSError as e:
                raise RecordWriteError(f"{lock_path}: {e}") from e
            with fh:
                fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(fh.fileno(), fcntl.LOCK_UN)

    def mutate(
        self,
        name: str,
        fn: Callable[[R], T],
        default: Optional[Callable[[], R]] = None,
    ) -> T:
        """
        Load, apply ``fn`` (which edits the record in place), validate and
        save, all under the record lock. Nothing is written if ``fn`` or the
        validator raises.
        """
        with self.lock(name):
            if default is not None and not self.exists(name):
                record = default()
            else:
                record = self.load(name)
            result = fn(record)
            if self._validate is not None:
                self._validate(record)
            self.save(record)
            return result

    def create(self, record: R) -> None:
        name = self._name_of(record)
        with self.lock(name):
            if self.exists(name):
                raise self._exists_error(name)
            if self._validate is not None:
                self._validate(record)
            self.save(record)
        logger.info("Created record %s", self.path(name))


def interface_store(root: Path) -> RecordStore[InterfaceRecord]:
    return RecordStore(
        root,
        encode=record_to_dict,
        decode=dict_to_record,
        name_of=lambda r: r.name,
        not_found=InterfaceNotFound,
        exists_error=InterfaceExists,
        validate=check_record,
    )
