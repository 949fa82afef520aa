# tests/conftest.py
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from services.backing_store import InMemoryBackingStore
from services.draft_storage_v2 import DraftStorageV2

FROZEN_NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def backing_store() -> InMemoryBackingStore:
    return InMemoryBackingStore()


@pytest.fixture
def frozen_clock():
    return lambda: FROZEN_NOW


@pytest.fixture
def storage(backing_store, frozen_clock) -> DraftStorageV2:
    return DraftStorageV2(backing_store, clock=frozen_clock)
