# Key-value persistence for tasks + custom holidays.
#
# load()/save() never raise: a missing, unreadable or non-JSON value reads
# as the default, and a failed write is logged while the caller keeps its
# in-memory state. With no store at all (store=None) both are no-ops.

from __future__ import annotations
from pathlib import Path
import json
import logging
import os
import re
import time
from typing import Any, Dict, Optional, Protocol

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from student_planner.models.models_storage import Base, StoredItem
from student_planner.utils.config import CONFIG

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"
CUSTOM_HOLIDAYS_KEY = "customHolidays"


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...
    def set_item(self, key: str, value: str) -> None: ...


# Naive lock via .lock file (good enough for single-user local use)
def _lock_path(p: Path) -> Path:
    return p.with_suffix(p.suffix + ".lock")


def _acquire_lock(p: Path, timeout: float = 3.0, poll: float = 0.05) -> None:
    lock = _lock_path(p)
    start = time.time()
    while lock.exists():
        if time.time() - start > timeout:
            # stale lock from a crashed writer
            try:
                lock.unlink()
            except OSError as e:
                raise TimeoutError(f"Could not acquire lock for {p}") from e
            break
        time.sleep(poll)
    lock.touch(exist_ok=True)


def _release_lock(p: Path) -> None:
    lock = _lock_path(p)
    try:
        lock.unlink()
    except FileNotFoundError:
        pass


class FileStore:
    """One <key>.json file per key under `directory`."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.directory / f"{safe}.json"

    def get_item(self, key: str) -> Optional[str]:
        p = self._path(key)
        if not p.exists():
            return None
        return p.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        p = self._path(key)
        p.parent.mkdir(parents=True, exist_ok=True)
        _acquire_lock(p)
        try:
            tmp = p.with_suffix(p.suffix + ".tmp")
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, p)
        finally:
            _release_lock(p)


class SqlStore:
    """Key-value rows in a SQLAlchemy table (sqlite by default)."""

    def __init__(self, database_url: str):
        self.engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False} if database_url.startswith("sqlite") else {},
        )
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)
        Base.metadata.create_all(self.engine)

    def get_item(self, key: str) -> Optional[str]:
        with self.SessionLocal() as s:
            row = s.query(StoredItem).filter_by(key=key).one_or_none()
            return row.value if row else None

    def set_item(self, key: str, value: str) -> None:
        with self.SessionLocal() as s:
            row = s.query(StoredItem).filter_by(key=key).one_or_none()
            if row is None:
                s.add(StoredItem(key=key, value=value))
            else:
                row.value = value
            s.commit()


class MemoryStore:
    def __init__(self, items: Optional[Dict[str, str]] = None):
        self.items: Dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value


def open_store(backend: Optional[str] = None) -> Optional[KeyValueStore]:
    """Build the store named in CONFIG['storage'] (or `backend`). 'none' -> None."""
    cfg = CONFIG["storage"]
    backend = (backend or cfg["backend"]).lower()
    if backend == "file":
        return FileStore(cfg["data_dir"])
    if backend == "sql":
        return SqlStore(cfg["database_url"])
    if backend == "memory":
        return MemoryStore()
    if backend == "none":
        return None
    raise ValueError(f"Unknown storage backend {backend!r}")


def load(key: str, default: Any, store: Optional[KeyValueStore] = None) -> Any:
    if store is None:
        return default
    try:
        raw = store.get_item(key)
        return json.loads(raw) if raw else default
    except Exception as e:
        logger.error("Error loading %s from storage: %s", key, e)
        return default


def save(key: str, value: Any, store: Optional[KeyValueStore] = None) -> None:
    if store is None:
        return
    try:
        store.set_item(key, json.dumps(value, ensure_ascii=False))
    except Exception as e:
        logger.error("Error saving %s to storage: %s", key, e)
