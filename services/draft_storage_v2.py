from __future__ import annotations

import json
import logging
import secrets
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from models.draft import DraftRecord
from services.backing_store import BackingStore

logger = logging.getLogger(__name__)

LEGACY_PREFIX = "single-upload-draft-"
V2_PREFIX = "draft-v2-"

# formData key holding a legacy value that was not a JSON object
LEGACY_VALUE_FIELD = "value"

_DEFAULT_FILENAME = "Untitled"
_ID_ALPHABET = string.digits + string.ascii_lowercase

_MALFORMED = (ValueError, TypeError, ValidationError)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    """Browser `toISOString()` shape: UTC, milliseconds, trailing Z."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def generate_draft_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{time.time_ns() // 1_000_000}-{suffix}"


# ============================================================
# STORED SLOT VARIANTS (never leave this module)
# ============================================================
@dataclass(frozen=True)
class LegacySlot:
    key: str
    raw: Dict[str, Any]


@dataclass(frozen=True)
class CurrentSlot:
    key: str
    record: DraftRecord


StoredDraft = Union[LegacySlot, CurrentSlot]


class DraftStorageV2:
    """Creative upload drafts over a flat key/value store, across two layouts.

    - legacy: "single-upload-draft-<filename>" -> the caller's raw form object
    - current: "draft-v2-<draftId>" -> a full DraftRecord

    Reads fall back from current to legacy; `migrate_from_v1` moves legacy
    entries into the current layout. Corrupt entries are logged and skipped.
    """

    def __init__(
        self,
        backing_store: BackingStore,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self._store = backing_store
        self._clock = clock or _utc_now
        self._new_id = id_factory or generate_draft_id

    @property
    def backing_store(self) -> BackingStore:
        return self._store

    def _now_iso(self) -> str:
        return to_iso(self._clock())

    # ----------------------------
    # SLOT DECODING
    # ----------------------------
    def _decode_current(self, key: str, data: Optional[str]) -> Optional[CurrentSlot]:
        if data is None:
            return None
        try:
            return CurrentSlot(key=key, record=DraftRecord.from_storage(json.loads(data)))
        except _MALFORMED as e:
            logger.warning("Failed to parse draft: %s (%s)", key, str(e))
            return None

    def _decode_legacy(self, key: str, data: Optional[str]) -> Optional[LegacySlot]:
        if data is None:
            return None
        try:
            parsed = json.loads(data)
        except _MALFORMED as e:
            logger.warning("Failed to parse legacy draft: %s (%s)", key, str(e))
            return None
        if not isinstance(parsed, dict):
            # Legacy writers stored whatever the form held; keep it reachable.
            parsed = {LEGACY_VALUE_FIELD: parsed}
        return LegacySlot(key=key, raw=parsed)

    def _read_current(self, key: str) -> Optional[CurrentSlot]:
        return self._decode_current(key, self._store.get_item(key))

    def _read_legacy(self, key: str) -> Optional[LegacySlot]:
        return self._decode_legacy(key, self._store.get_item(key))

    def _resolve(self, slot: StoredDraft) -> DraftRecord:
        if isinstance(slot, CurrentSlot):
            return slot.record
        filename = slot.key[len(LEGACY_PREFIX):]
        return self._record_from_legacy(slot.raw, filename=filename, draft_id=filename)

    def _record_from_legacy(
        self, raw: Dict[str, Any], *, filename: str, draft_id: str
    ) -> DraftRecord:
        saved_at = raw.get("savedAt")
        return DraftRecord(
            draft_id=draft_id,
            creative_filename=str(raw.get("creativeFilename") or filename),
            last_saved=str(saved_at) if saved_at else self._now_iso(),
            auto_saved=bool(raw.get("autoSaved") or False),
            form_data=raw,
            image_url=None,
        )

    def _legacy_items(self, items: List[Tuple[str, str]]) -> List[Tuple[str, str]]:
        return [
            (k, v)
            for k, v in items
            if k.startswith(LEGACY_PREFIX) and not k.startswith(V2_PREFIX)
        ]

    # ----------------------------
    # PUBLIC API
    # ----------------------------
    def save_draft(self, partial: Optional[Mapping[str, Any]] = None) -> str:
        data = dict(partial or {})

        def pick(alias: str, name: str) -> Any:
            return data.get(alias, data.get(name))

        draft_id = pick("draftId", "draft_id") or self._new_id()
        record = DraftRecord(
            draft_id=str(draft_id),
            creative_filename=pick("creativeFilename", "creative_filename")
            or _DEFAULT_FILENAME,
            last_saved=self._now_iso(),
            auto_saved=bool(pick("autoSaved", "auto_saved") or False),
            form_data=pick("formData", "form_data") or {},
            image_url=pick("imageUrl", "image_url"),
        )

        self._store.set_item(
            f"{V2_PREFIX}{record.draft_id}",
            json.dumps(record.to_storage(), ensure_ascii=False),
        )
        logger.debug("draft saved draft_id=%s auto=%s", record.draft_id, record.auto_saved)
        return record.draft_id

    def get_draft(self, draft_id: str) -> Optional[DraftRecord]:
        current = self._read_current(f"{V2_PREFIX}{draft_id}")
        if current is not None:
            return self._resolve(current)

        legacy = self._read_legacy(f"{LEGACY_PREFIX}{draft_id}")
        if legacy is not None:
            return self._resolve(legacy)

        return None

    def get_all_drafts(self) -> List[DraftRecord]:
        items = self._store.items()
        drafts: List[DraftRecord] = []

        for key, data in items:
            if not key.startswith(V2_PREFIX):
                continue
            current = self._decode_current(key, data)
            if current is not None:
                drafts.append(self._resolve(current))

        listed = {d.creative_filename for d in drafts}
        for key, data in self._legacy_items(items):
            slot = self._decode_legacy(key, data)
            if slot is None:
                continue
            legacy = self._resolve(slot)
            # Skip a legacy draft whose migrated copy is already listed.
            if legacy.creative_filename in listed:
                continue
            drafts.append(legacy)
            listed.add(legacy.creative_filename)

        return drafts

    def delete_draft(self, draft_id: str) -> bool:
        v2_key = f"{V2_PREFIX}{draft_id}"
        if self._store.get_item(v2_key) is not None:
            self._store.remove_item(v2_key)
            return True

        direct_key = f"{LEGACY_PREFIX}{draft_id}"
        for key, data in self._legacy_items(self._store.items()):
            try:
                parsed = json.loads(data)
            except _MALFORMED:
                parsed = None
            filename = parsed.get("creativeFilename") if isinstance(parsed, dict) else None
            if filename == draft_id or key == direct_key:
                self._store.remove_item(key)
                return True

        return False

    def clear_all_drafts(self) -> int:
        removed = 0
        for key in self._store.keys():
            if key.startswith(V2_PREFIX) or key.startswith(LEGACY_PREFIX):
                self._store.remove_item(key)
                removed += 1
        if removed:
            logger.info("Cleared %s drafts", removed)
        return removed

    def migrate_from_v1(self) -> int:
        migrated: List[str] = []

        for key, data in self._legacy_items(self._store.items()):
            slot = self._decode_legacy(key, data)
            if slot is None:
                continue

            record = self._record_from_legacy(
                slot.raw,
                filename=key[len(LEGACY_PREFIX):],
                draft_id=self._new_id(),
            )
            self._store.set_item(
                f"{V2_PREFIX}{record.draft_id}",
                json.dumps(record.to_storage(), ensure_ascii=False),
            )
            migrated.append(key)

        for key in migrated:
            self._store.remove_item(key)

        if migrated:
            logger.info("Migrated %s drafts to V2 format", len(migrated))
        return len(migrated)
