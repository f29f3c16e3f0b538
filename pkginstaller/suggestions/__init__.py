from .package_suggester import (
    DEFAULT_SIMILARITY_THRESHOLD,
    PackageSuggester,
    Suggestion,
    SuggestionResult,
    show_suggestions,
)

__all__ = [
    "DEFAULT_SIMILARITY_THRESHOLD",
    "PackageSuggester",
    "Suggestion",
    "SuggestionResult",
    "show_suggestions",
]
