from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from models.draft import DraftRecord
from models.suggestion import SpellcheckConfig
from services.draft_storage_v2 import DraftStorageV2
from services.dropdown_spellcheck import DropdownSpellcheck

JsonDict = Dict[str, Any]

# Clear Drafts page also wiped any key that merely looked draft-related.
_FORCE_CLEAR_MARKERS = ("draft", "creative")


def load_form_json(path: Optional[str]) -> JsonDict:
    if not path:
        return {}
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("form-json must contain a JSON object")
    return data


def list_drafts(storage: DraftStorageV2, *, migrate: bool = True) -> List[JsonDict]:
    if migrate:
        storage.migrate_from_v1()
    drafts = storage.get_all_drafts()
    drafts.sort(key=lambda d: d.last_saved, reverse=True)
    return [d.to_storage() for d in drafts]


def show_draft(storage: DraftStorageV2, draft_id: str) -> Optional[JsonDict]:
    rec = storage.get_draft(draft_id)
    return rec.to_storage() if isinstance(rec, DraftRecord) else None


def force_clear(storage: DraftStorageV2) -> int:
    removed = storage.clear_all_drafts()
    backing = storage.backing_store
    for key in backing.keys():
        if any(m in key for m in _FORCE_CLEAR_MARKERS):
            backing.remove_item(key)
            removed += 1
    return removed


def run_spellcheck(
    input_text: str,
    options: Sequence[str],
    config: SpellcheckConfig,
) -> JsonDict:
    checker = DropdownSpellcheck(options, config)
    result = checker.check_spelling(input_text)
    out = result.to_dict()
    out["message"] = checker.get_spellcheck_message(input_text, result)
    return out


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="drafts_cli")
    p.add_argument("--version", action="store_true", help="Print version and exit")

    sub = p.add_subparsers(dest="subcmd")

    p_list = sub.add_parser("list", help="List saved drafts (newest first)")
    p_list.add_argument(
        "--no-migrate",
        action="store_true",
        help="Do not migrate legacy drafts before listing",
    )

    p_show = sub.add_parser("show", help="Print one draft")
    p_show.add_argument("draft_id")

    p_save = sub.add_parser("save", help="Create or replace a draft")
    p_save.add_argument("--filename", required=True)
    p_save.add_argument("--draft-id", required=False)
    p_save.add_argument("--form-json", required=False)
    p_save.add_argument("--image-url", required=False)
    p_save.add_argument("--auto-saved", action="store_true")

    p_delete = sub.add_parser("delete", help="Delete a draft by id (or legacy filename)")
    p_delete.add_argument("draft_id")

    p_clear = sub.add_parser("clear", help="Remove every draft")
    p_clear.add_argument(
        "--force",
        action="store_true",
        help="Also remove any key containing 'draft' or 'creative'",
    )

    sub.add_parser("migrate", help="Move legacy drafts to the V2 format")

    p_spell = sub.add_parser("spellcheck", help="Suggest close matches for a tag value")
    p_spell.add_argument("input")
    p_spell.add_argument("--option", action="append", default=[], dest="options")
    p_spell.add_argument("--threshold", type=float, default=None)
    p_spell.add_argument("--max", type=int, default=None, dest="max_suggestions")

    return p


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    return build_arg_parser().parse_args(argv)
