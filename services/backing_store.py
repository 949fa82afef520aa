from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple

import sqlalchemy as sa

from models.kv_entry import draft_kv_store, metadata

logger = logging.getLogger(__name__)


class BackingStore(Protocol):
    """Flat string-keyed store shared with other application concerns.

    Mirrors the browser's localStorage surface. Write failures propagate.
    """

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> List[str]:
        """Snapshot of all keys in enumeration order (safe to mutate while iterating)."""
        ...

    def items(self) -> List[Tuple[str, str]]:
        """Snapshot of (key, value) pairs in enumeration order, read in one pass."""
        ...


class InMemoryBackingStore:
    def __init__(self, initial: Optional[Mapping[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data.keys())

    def items(self) -> List[Tuple[str, str]]:
        return list(self._data.items())

    def __len__(self) -> int:
        return len(self._data)


class JsonFileBackingStore:
    """Whole store kept as one JSON object on disk, rewritten atomically per mutation.

    Non-string values written by other tools survive rewrites untouched and
    are handed to readers as JSON text. A file that cannot be loaded reads as
    empty, but mutations raise instead of writing over it.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _load_locked(self) -> Dict[str, Any]:
        """Raw file contents. Raises OSError / ValueError when the file is unusable."""
        if not self._path.exists():
            return {}
        with open(self._path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"store file is not a JSON object: {self._path}")
        return data

    def _read_locked(self) -> Dict[str, Any]:
        try:
            return self._load_locked()
        except (OSError, ValueError) as e:
            logger.warning("JsonFileBackingStore load failed path=%s: %s", self._path, str(e))
            return {}

    @staticmethod
    def _as_text(value: Any) -> str:
        if isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False)

    def _persist_locked(self, data: Dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, self._path)

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            data = self._read_locked()
        if key not in data:
            return None
        return self._as_text(data[key])

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load_locked()
            data[key] = str(value)
            self._persist_locked(data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._load_locked()
            if key not in data:
                return
            del data[key]
            self._persist_locked(data)

    def keys(self) -> List[str]:
        with self._lock:
            return [str(k) for k in self._read_locked().keys()]

    def items(self) -> List[Tuple[str, str]]:
        with self._lock:
            data = self._read_locked()
        return [(str(k), self._as_text(v)) for k, v in data.items()]


class SqlBackingStore:
    """Key/value rows in `draft_kv_store` via SQLAlchemy Core."""

    def __init__(self, db_url: str, *, engine: Optional[sa.engine.Engine] = None) -> None:
        url = (db_url or "").strip()
        if engine is None and not url:
            raise RuntimeError("SqlBackingStore requires a database URL")
        self._engine = engine or sa.create_engine(url, pool_pre_ping=True, future=True)
        metadata.create_all(self._engine, tables=[draft_kv_store])

    def get_item(self, key: str) -> Optional[str]:
        with self._engine.connect() as conn:
            row = conn.execute(
                sa.select(draft_kv_store.c.value).where(draft_kv_store.c.key == key)
            ).first()
        return row[0] if row is not None else None

    def set_item(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc)
        with self._engine.begin() as conn:
            res = conn.execute(
                sa.update(draft_kv_store)
                .where(draft_kv_store.c.key == key)
                .values(value=str(value), updated_at=now)
            )
            if res.rowcount == 0:
                conn.execute(
                    sa.insert(draft_kv_store).values(
                        key=key, value=str(value), updated_at=now
                    )
                )

    def remove_item(self, key: str) -> None:
        with self._engine.begin() as conn:
            conn.execute(sa.delete(draft_kv_store).where(draft_kv_store.c.key == key))

    def keys(self) -> List[str]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                sa.select(draft_kv_store.c.key).order_by(draft_kv_store.c.id)
            ).all()
        return [r[0] for r in rows]

    def items(self) -> List[Tuple[str, str]]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                sa.select(draft_kv_store.c.key, draft_kv_store.c.value).order_by(
                    draft_kv_store.c.id
                )
            ).all()
        return [(r[0], r[1]) for r in rows]
