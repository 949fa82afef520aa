from __future__ import annotations

import json

from services.backing_store import InMemoryBackingStore
from services.draft_storage_v2 import (
    LEGACY_PREFIX,
    V2_PREFIX,
    DraftStorageV2,
    generate_draft_id,
    to_iso,
)


def _write_legacy(store: InMemoryBackingStore, filename: str, raw) -> None:
    store.set_item(f"{LEGACY_PREFIX}{filename}", json.dumps(raw))


def test_save_then_get_round_trip(storage: DraftStorageV2) -> None:
    draft_id = storage.save_draft({"creativeFilename": "Ad A", "formData": {"x": 1}})

    rec = storage.get_draft(draft_id)
    assert rec is not None
    assert rec.draft_id == draft_id
    assert rec.creative_filename == "Ad A"
    assert rec.form_data["x"] == 1
    assert rec.last_saved == "2026-10-19T12:00:00.000Z"
    assert rec.auto_saved is False
    assert rec.image_url is None


def test_save_defaults(storage: DraftStorageV2, backing_store: InMemoryBackingStore) -> None:
    draft_id = storage.save_draft({})
    stored = json.loads(backing_store.get_item(f"{V2_PREFIX}{draft_id}"))
    assert stored["creativeFilename"] == "Untitled"
    assert stored["autoSaved"] is False
    assert stored["formData"] == {}
    assert "imageUrl" not in stored


def test_save_with_existing_id_replaces_record(storage: DraftStorageV2) -> None:
    storage.save_draft(
        {"draftId": "d1", "creativeFilename": "First", "formData": {"a": 1}, "imageUrl": "u"}
    )
    storage.save_draft({"draftId": "d1", "creativeFilename": "Second", "formData": {"b": 2}})

    rec = storage.get_draft("d1")
    assert rec is not None
    assert rec.creative_filename == "Second"
    assert rec.form_data == {"b": 2}
    assert rec.image_url is None
    assert len(storage.get_all_drafts()) == 1


def test_save_accepts_snake_case_keys(storage: DraftStorageV2) -> None:
    draft_id = storage.save_draft(
        {"creative_filename": "Snake", "auto_saved": True, "image_url": "https://x/y.png"}
    )
    rec = storage.get_draft(draft_id)
    assert rec is not None
    assert rec.creative_filename == "Snake"
    assert rec.auto_saved is True
    assert rec.image_url == "https://x/y.png"


def test_save_never_writes_legacy_namespace(
    storage: DraftStorageV2, backing_store: InMemoryBackingStore
) -> None:
    storage.save_draft({"creativeFilename": "Ad"})
    assert all(not k.startswith(LEGACY_PREFIX) for k in backing_store.keys())


def test_form_data_unknown_fields_preserved(storage: DraftStorageV2) -> None:
    payload = {"nested": {"deep": [1, 2, {"z": None}]}, "weird key": "ok", "ünï": "çødé"}
    draft_id = storage.save_draft({"formData": payload})
    rec = storage.get_draft(draft_id)
    assert rec is not None
    assert rec.form_data == payload


def test_legacy_fallback_on_get(
    storage: DraftStorageV2, backing_store: InMemoryBackingStore
) -> None:
    _write_legacy(backing_store, "LegacyAd", {"campaign": "Fall", "savedAt": "2024-01-01T00:00:00.000Z"})

    rec = storage.get_draft("LegacyAd")
    assert rec is not None
    assert rec.creative_filename == "LegacyAd"
    assert rec.draft_id == "LegacyAd"
    assert rec.last_saved == "2024-01-01T00:00:00.000Z"
    assert rec.image_url is None
    assert rec.form_data["campaign"] == "Fall"


def test_legacy_fallback_uses_stored_filename_and_now(
    storage: DraftStorageV2, backing_store: InMemoryBackingStore, frozen_clock
) -> None:
    _write_legacy(backing_store, "k1", {"creativeFilename": "Real Name"})
    rec = storage.get_draft("k1")
    assert rec is not None
    assert rec.creative_filename == "Real Name"
    assert rec.last_saved == to_iso(frozen_clock())


def test_get_missing_returns_none(storage: DraftStorageV2) -> None:
    assert storage.get_draft("nope") is None


def test_get_corrupt_v2_is_treated_as_absent(
    storage: DraftStorageV2, backing_store: InMemoryBackingStore
) -> None:
    backing_store.set_item(f"{V2_PREFIX}bad", "{not json")
    assert storage.get_draft("bad") is None

    _write_legacy(backing_store, "bad", {"creativeFilename": "Fallback"})
    rec = storage.get_draft("bad")
    assert rec is not None
    assert rec.creative_filename == "Fallback"


def test_get_all_skips_corrupt_entries(
    storage: DraftStorageV2, backing_store: InMemoryBackingStore
) -> None:
    storage.save_draft({"creativeFilename": "Good"})
    backing_store.set_item(f"{V2_PREFIX}broken", "{{{")
    backing_store.set_item(f"{V2_PREFIX}wrong-shape", json.dumps({"formData": None}))
    backing_store.set_item(f"{LEGACY_PREFIX}also-broken", "nope")
    drafts = storage.get_all_drafts()
    assert [d.creative_filename for d in drafts] == ["Good"]


def test_get_all_prefers_v2_copy_over_legacy_with_same_filename(
    storage: DraftStorageV2, backing_store: InMemoryBackingStore
) -> None:
    _write_legacy(backing_store, "Banner", {"creativeFilename": "Banner"})
    _write_legacy(backing_store, "OnlyLegacy", {"x": 1})
    storage.save_draft({"creativeFilename": "Banner", "formData": {"migrated": True}})

    drafts = storage.get_all_drafts()
    names = [d.creative_filename for d in drafts]
    assert sorted(names) == ["Banner", "OnlyLegacy"]
    banner = [d for d in drafts if d.creative_filename == "Banner"]
    assert len(banner) == 1
    assert banner[0].form_data == {"migrated": True}


def test_get_all_ignores_unrelated_keys(
    storage: DraftStorageV2, backing_store: InMemoryBackingStore
) -> None:
    backing_store.set_item("theme", "dark")
    backing_store.set_item("creative-upload-drafts", "[]")
    assert storage.get_all_drafts() == []


def test_delete_v2_draft(storage: DraftStorageV2) -> None:
    draft_id = storage.save_draft({"creativeFilename": "Ad"})
    assert storage.delete_draft(draft_id) is True
    assert storage.get_draft(draft_id) is None
    assert storage.delete_draft(draft_id) is False


def test_delete_legacy_by_creative_filename(
    storage: DraftStorageV2, backing_store: InMemoryBackingStore
) -> None:
    _write_legacy(backing_store, "key-suffix", {"creativeFilename": "Pretty Name"})
    assert storage.delete_draft("Pretty Name") is True
    assert backing_store.keys() == []


def test_delete_legacy_by_key_even_when_corrupt(
    storage: DraftStorageV2, backing_store: InMemoryBackingStore
) -> None:
    backing_store.set_item(f"{LEGACY_PREFIX}Broken", "{oops")
    assert storage.delete_draft("Broken") is True
    assert backing_store.keys() == []


def test_delete_nonexistent_leaves_store_unchanged(
    storage: DraftStorageV2, backing_store: InMemoryBackingStore
) -> None:
    storage.save_draft({"creativeFilename": "Keep"})
    _write_legacy(backing_store, "Legacy", {"creativeFilename": "Legacy"})
    backing_store.set_item("unrelated", "x")
    before = len(backing_store)

    assert storage.delete_draft("does-not-exist") is False
    assert len(backing_store) == before


def test_clear_all_then_get_all_is_empty(
    storage: DraftStorageV2, backing_store: InMemoryBackingStore
) -> None:
    storage.save_draft({"creativeFilename": "A"})
    storage.save_draft({"creativeFilename": "B"})
    _write_legacy(backing_store, "C", {})
    backing_store.set_item("unrelated", "x")

    assert storage.clear_all_drafts() == 3
    assert storage.get_all_drafts() == []
    assert backing_store.keys() == ["unrelated"]


def test_generated_ids_are_unique_and_shaped() -> None:
    ids = {generate_draft_id() for _ in range(500)}
    assert len(ids) == 500
    ms, suffix = next(iter(ids)).split("-")
    assert ms.isdigit()
    assert len(suffix) == 9


def test_custom_id_factory_is_used(backing_store: InMemoryBackingStore) -> None:
    storage = DraftStorageV2(backing_store, id_factory=lambda: "fixed-id")
    assert storage.save_draft({"creativeFilename": "X"}) == "fixed-id"
    assert backing_store.get_item(f"{V2_PREFIX}fixed-id") is not None


def test_non_object_legacy_value_is_wrapped_as_form_data(
    storage: DraftStorageV2, backing_store: InMemoryBackingStore
) -> None:
    _write_legacy(backing_store, "Arr", ["a", "b"])

    rec = storage.get_draft("Arr")
    assert rec is not None
    assert rec.creative_filename == "Arr"
    assert rec.form_data == {"value": ["a", "b"]}
    assert [d.creative_filename for d in storage.get_all_drafts()] == ["Arr"]


class _CountingStore(InMemoryBackingStore):
    def __init__(self) -> None:
        super().__init__()
        self.get_calls = 0
        self.items_calls = 0

    def get_item(self, key: str):
        self.get_calls += 1
        return super().get_item(key)

    def items(self):
        self.items_calls += 1
        return super().items()


def test_enumeration_reads_the_store_once(frozen_clock) -> None:
    store = _CountingStore()
    storage = DraftStorageV2(store, clock=frozen_clock)
    for i in range(20):
        storage.save_draft({"creativeFilename": f"Ad {i}"})
        _write_legacy(store, f"Legacy {i}", {"i": i})
    store.get_calls = 0

    assert len(storage.get_all_drafts()) == 40
    assert storage.delete_draft("Legacy 19") is True

    assert store.items_calls == 2
    # delete_draft probes the V2 key once before scanning legacy entries
    assert store.get_calls == 1
