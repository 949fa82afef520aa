from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Optional

from models.suggestion import SpellcheckConfig
from services.backing_store import (
    BackingStore,
    InMemoryBackingStore,
    JsonFileBackingStore,
    SqlBackingStore,
)
from services.draft_storage_v2 import DraftStorageV2

logger = logging.getLogger(__name__)

_DEFAULT_BACKEND = "file"
_DEFAULT_STORE_PATH = os.path.join(".data", "drafts_local_storage.json")
_BACKENDS = ("memory", "file", "sql")


def _env_str(name: str, default: str = "") -> str:
    v = (os.getenv(name) or "").strip()
    return v or default


def _env_float(name: str, default: float) -> float:
    raw = _env_str(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; using default %s", name, raw, default)
        return default


def _env_int(name: str, default: int) -> int:
    raw = _env_str(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; using default %s", name, raw, default)
        return default


def _env_log_level(name: str, default: str = "INFO") -> str:
    raw = _env_str(name, default).upper()
    if isinstance(logging.getLevelName(raw), int):
        return raw
    logger.warning("Invalid %s=%r; using default %s", name, raw, default)
    return default


@dataclass(frozen=True)
class DraftStoreSettings:
    backend: str = _DEFAULT_BACKEND
    store_path: str = _DEFAULT_STORE_PATH
    database_url: str = ""
    spellcheck_threshold: float = SpellcheckConfig.threshold
    spellcheck_max_suggestions: int = SpellcheckConfig.max_suggestions
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "DraftStoreSettings":
        backend = _env_str("DRAFT_STORE_BACKEND", _DEFAULT_BACKEND).lower()
        if backend not in _BACKENDS:
            raise RuntimeError(
                f"Unsupported DRAFT_STORE_BACKEND={backend!r} (expected one of: {', '.join(_BACKENDS)})"
            )
        return cls(
            backend=backend,
            store_path=_env_str("DRAFT_STORE_PATH", _DEFAULT_STORE_PATH),
            database_url=_env_str("DATABASE_URL"),
            spellcheck_threshold=_env_float(
                "SPELLCHECK_THRESHOLD", SpellcheckConfig.threshold
            ),
            spellcheck_max_suggestions=_env_int(
                "SPELLCHECK_MAX_SUGGESTIONS", SpellcheckConfig.max_suggestions
            ),
            log_level=_env_log_level("LOG_LEVEL"),
        )

    def spellcheck_config(self) -> SpellcheckConfig:
        return SpellcheckConfig(
            threshold=self.spellcheck_threshold,
            max_suggestions=self.spellcheck_max_suggestions,
        )


def build_backing_store(settings: DraftStoreSettings) -> BackingStore:
    if settings.backend == "memory":
        return InMemoryBackingStore()
    if settings.backend == "sql":
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required when DRAFT_STORE_BACKEND=sql")
        return SqlBackingStore(settings.database_url)
    return JsonFileBackingStore(settings.store_path)


_DRAFT_STORAGE_SINGLETON: Optional[DraftStorageV2] = None
_DRAFT_STORAGE_LOCK = threading.Lock()


def get_draft_storage(settings: Optional[DraftStoreSettings] = None) -> DraftStorageV2:
    global _DRAFT_STORAGE_SINGLETON

    with _DRAFT_STORAGE_LOCK:
        if _DRAFT_STORAGE_SINGLETON is None:
            s = settings or DraftStoreSettings.from_env()
            _DRAFT_STORAGE_SINGLETON = DraftStorageV2(build_backing_store(s))
            logger.info("Draft storage initialised backend=%s", s.backend)
        return _DRAFT_STORAGE_SINGLETON


def reset_draft_storage_for_tests() -> None:
    global _DRAFT_STORAGE_SINGLETON
    with _DRAFT_STORAGE_LOCK:
        _DRAFT_STORAGE_SINGLETON = None
