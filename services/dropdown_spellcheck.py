from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple

from models.suggestion import SpellcheckConfig, SpellcheckResult
from services.text_similarity import normalize_option, similarity

logger = logging.getLogger(__name__)

NO_MATCHES_MESSAGE = "No close matches found"

UpdateFn = Callable[[List[str]], Any]


class DropdownSpellcheck:
    """Suggests "did you mean" values for a free-text tag field backed by a vocabulary.

    The normalised option list is computed once per vocabulary; every
    `check_spelling` call is otherwise a pure function of (input, options, config).
    """

    def __init__(
        self,
        options: Sequence[str],
        config: Optional[SpellcheckConfig] = None,
    ) -> None:
        self.config = config or SpellcheckConfig()
        self._options_key: Tuple[str, ...] = ()
        self._normalized: List[Tuple[str, str]] = []
        self.set_options(options)

    @property
    def options(self) -> Tuple[str, ...]:
        return self._options_key

    def set_options(self, options: Sequence[str]) -> None:
        key = tuple(o for o in (options or ()) if isinstance(o, str))
        if key == self._options_key and self._normalized:
            return
        self._options_key = key
        self._normalized = [(o, normalize_option(o)) for o in key]

    def check_spelling(self, input_text: str) -> SpellcheckResult:
        normalized_input = normalize_option(input_text)
        if not normalized_input:
            return SpellcheckResult.empty()

        scored = [
            (option, similarity(normalized_input, normalized_option))
            for option, normalized_option in self._normalized
        ]

        threshold = self.config.threshold
        limit = max(0, int(self.config.max_suggestions))

        # sorted() is stable: equal scores keep vocabulary order.
        ranked = sorted(
            (item for item in scored if item[1] >= threshold),
            key=lambda item: item[1],
            reverse=True,
        )
        suggestions = tuple(option for option, _ in ranked[:limit])

        has_suggestions = len(suggestions) > 0
        logger.debug(
            "spellcheck input_len=%s options=%s suggestions=%s",
            len(normalized_input),
            len(self._normalized),
            len(suggestions),
        )
        return SpellcheckResult(
            has_suggestions=has_suggestions,
            best_suggestion=suggestions[0] if has_suggestions else None,
            suggestions=suggestions,
            should_show_add_anyway=not has_suggestions and len(normalized_input) >= 2,
        )

    @staticmethod
    def get_spellcheck_message(input_text: str, result: SpellcheckResult) -> str:
        if result.has_suggestions and result.best_suggestion:
            return f'Did you mean "{result.best_suggestion}"?'
        return NO_MATCHES_MESSAGE

    @staticmethod
    def handle_use_suggestion(
        suggestion: str,
        current_values: Sequence[str],
        update_fn: UpdateFn,
    ) -> None:
        values = list(current_values or ())
        if suggestion not in values:
            update_fn(values + [suggestion])

    @staticmethod
    def handle_add_anyway(
        value: str,
        current_values: Sequence[str],
        update_fn: UpdateFn,
    ) -> None:
        trimmed = value.strip() if isinstance(value, str) else ""
        values = list(current_values or ())
        if trimmed and trimmed not in values:
            update_fn(values + [trimmed])


def check_spelling(
    input_text: str,
    options: Sequence[str],
    config: Optional[SpellcheckConfig] = None,
) -> SpellcheckResult:
    return DropdownSpellcheck(options, config).check_spelling(input_text)
