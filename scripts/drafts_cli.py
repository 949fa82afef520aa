from __future__ import annotations

import json
import logging
import sys
from typing import Any

from dotenv import load_dotenv

from models.suggestion import SpellcheckConfig
from scripts.drafts_cli_lib import (
    force_clear,
    list_drafts,
    load_form_json,
    parse_args,
    run_spellcheck,
    show_draft,
)
from services.draft_store_factory import DraftStoreSettings, get_draft_storage
from system_version import SYSTEM_NAME, VERSION


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def main(argv: list[str] | None = None) -> int:
    load_dotenv(override=False)
    ns = parse_args(argv)

    if ns.version:
        print(f"{SYSTEM_NAME} {VERSION}")
        return 0
    if not ns.subcmd:
        parse_args(["--help"])

    settings = DraftStoreSettings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    if ns.subcmd == "spellcheck":
        config = settings.spellcheck_config()
        config = SpellcheckConfig(
            threshold=config.threshold if ns.threshold is None else ns.threshold,
            max_suggestions=(
                config.max_suggestions
                if ns.max_suggestions is None
                else ns.max_suggestions
            ),
        )
        _print_json(run_spellcheck(ns.input, ns.options, config))
        return 0

    storage = get_draft_storage(settings)

    if ns.subcmd == "list":
        _print_json(list_drafts(storage, migrate=not ns.no_migrate))
        return 0

    if ns.subcmd == "show":
        rec = show_draft(storage, ns.draft_id)
        if rec is None:
            print(f"draft not found: {ns.draft_id}", file=sys.stderr)
            return 1
        _print_json(rec)
        return 0

    if ns.subcmd == "save":
        draft_id = storage.save_draft(
            {
                "draftId": ns.draft_id,
                "creativeFilename": ns.filename,
                "autoSaved": ns.auto_saved,
                "formData": load_form_json(ns.form_json),
                "imageUrl": ns.image_url,
            }
        )
        _print_json({"ok": True, "draftId": draft_id})
        return 0

    if ns.subcmd == "delete":
        deleted = storage.delete_draft(ns.draft_id)
        _print_json({"ok": deleted, "draftId": ns.draft_id})
        return 0 if deleted else 1

    if ns.subcmd == "clear":
        removed = force_clear(storage) if ns.force else storage.clear_all_drafts()
        _print_json({"ok": True, "removed": removed})
        return 0

    if ns.subcmd == "migrate":
        _print_json({"ok": True, "migrated": storage.migrate_from_v1()})
        return 0

    raise RuntimeError(f"unknown subcmd: {ns.subcmd}")


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
