import logging
from dataclasses import dataclass, field

from pkginstaller.branding import console, pi_print
from pkginstaller.catalog import CatalogEntry, PackageCatalog
from pkginstaller.suggestions.similarity import best_matches

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.4
MAX_SUGGESTIONS = 3


@dataclass
class Suggestion:
    """A catalog entry offered as an alternative, with its similarity score"""

    entry: CatalogEntry
    similarity: float

    @property
    def name(self) -> str:
        return self.entry.name

    @property
    def downloads(self) -> int:
        return self.entry.downloads


@dataclass
class SuggestionResult:
    """Either an exact catalog hit or a ranked shortlist of alternatives"""

    exact: CatalogEntry | None = None
    suggestions: list[Suggestion] = field(default_factory=list)
    best_similarity: float = 0.0

    @property
    def is_exact(self) -> bool:
        return self.exact is not None


class PackageSuggester:
    """Looks up package names in the catalog and ranks near misses."""

    def __init__(self, catalog: PackageCatalog):
        self.catalog = catalog

    def suggest(
        self, name: str, threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    ) -> SuggestionResult:
        """
        Find ``name`` in the catalog or suggest similar packages.

        An exact (case-insensitive) match always wins, whatever the threshold.
        Otherwise up to three entries scoring strictly above ``threshold`` are
        returned, best first.

        Args:
            name: Requested package name
            threshold: Minimum similarity (exclusive) for a suggestion

        Returns:
            SuggestionResult
        """
        search_name = name.lower()

        exact = self.catalog.lookup(search_name)
        if exact is not None:
            return SuggestionResult(exact=exact, best_similarity=1.0)

        suggestions = []
        for candidate, similarity in best_matches(search_name, self.catalog.names()):
            if similarity <= threshold:
                # Sorted descending, nothing further can clear the threshold
                break
            entry = self.catalog.lookup(candidate)
            suggestions.append(Suggestion(entry=entry, similarity=similarity))
            if len(suggestions) == MAX_SUGGESTIONS:
                break

        logger.debug(f"{len(suggestions)} suggestion(s) for {name} above {threshold}")
        return SuggestionResult(
            suggestions=suggestions,
            best_similarity=suggestions[0].similarity if suggestions else 0.0,
        )


def show_suggestions(suggestions: list[Suggestion]) -> None:
    pi_print("💡 Similar packages:", "info")

    for i, suggestion in enumerate(suggestions, 1):
        console.print(
            f"   {i}. [bold green]{suggestion.name}[/bold green] "
            f"({suggestion.downloads:,} downloads) - "
            f"Similarity: {suggestion.similarity * 100:.1f}%"
        )
