from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


_DEFAULT_THRESHOLD = 0.6
_DEFAULT_MAX_SUGGESTIONS = 3


@dataclass(frozen=True)
class SpellcheckConfig:
    threshold: float = _DEFAULT_THRESHOLD
    max_suggestions: int = _DEFAULT_MAX_SUGGESTIONS


@dataclass(frozen=True)
class SpellcheckResult:
    """Outcome of one "did you mean" lookup.

    Invariants:
    - best_suggestion is set iff has_suggestions, and equals suggestions[0]
    - should_show_add_anyway implies not has_suggestions
    """

    has_suggestions: bool = False
    best_suggestion: Optional[str] = None
    suggestions: Tuple[str, ...] = field(default_factory=tuple)
    should_show_add_anyway: bool = False

    @classmethod
    def empty(cls) -> "SpellcheckResult":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasSuggestions": self.has_suggestions,
            "bestSuggestion": self.best_suggestion,
            "suggestions": list(self.suggestions),
            "shouldShowAddAnyway": self.should_show_add_anyway,
        }
