"""
Approximate string similarity for package names.

Scores are rapidfuzz's normalized Levenshtein similarity in ``[0, 1]``,
computed on lower-cased strings: ``1 - distance / max(len(a), len(b))``.
Identical names score 1, a one-character typo in a six letter name scores
about 0.86, and names sharing only a letter or two stay near 0.
"""

from rapidfuzz import process
from rapidfuzz.distance import Levenshtein


def _normalize(value: str) -> str:
    return value.lower()


def score(a: str, b: str) -> float:
    """Similarity of two strings in ``[0, 1]``."""
    return Levenshtein.normalized_similarity(a, b, processor=_normalize)


def best_matches(query: str, candidates: list[str]) -> list[tuple[str, float]]:
    """
    Rank every candidate against ``query``.

    Args:
        query: String to match
        candidates: Strings to rank

    Returns:
        ``(candidate, score)`` pairs sorted by descending score. Candidates
        with equal scores keep their input order.
    """
    if not candidates:
        return []

    matches = process.extract(
        query,
        candidates,
        scorer=Levenshtein.normalized_similarity,
        processor=_normalize,
        limit=None,
    )
    # extract() yields (choice, score, position); order ties by position
    matches = sorted(matches, key=lambda match: (-match[1], match[2]))
    return [(choice, similarity) for choice, similarity, _ in matches]
