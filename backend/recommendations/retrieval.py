from __future__ import annotations

import logging
from typing import Any, Callable, Protocol, Sequence

from .errors import ExternalServiceFailure
from .models import Candidate

logger = logging.getLogger(__name__)

Embedder = Callable[[str], Sequence[float]]


class SimilaritySearch(Protocol):
    def search(
        self,
        query_vector: Sequence[float],
        match_threshold: float,
        match_count: int,
    ) -> list[dict[str, Any]]:
        """Return booth rows carrying ``id`` and ``similarity``, best first."""
        ...


def _row_to_candidate(row: dict[str, Any], sector: str) -> Candidate:
    booth = {k: v for k, v in row.items() if k not in ("id", "similarity")}
    return Candidate(
        booth_id=str(row["id"]),
        similarity_score=float(row["similarity"]),
        source_sectors={sector},
        booth=booth,
    )


class CandidateRetriever:
    """Runs one similarity query for a sector seed."""

    def __init__(self, embed: Embedder, search: SimilaritySearch, match_threshold: float = 0.3):
        self._embed = embed
        self._search = search
        self.match_threshold = match_threshold

    def retrieve(self, sector: str, seed_text: str, top_k: int) -> list[Candidate]:
        """
        Return at most ``top_k`` candidates for ``seed_text``, best first.

        An empty list means no booth cleared the threshold. Collaborator
        errors are raised as ``ExternalServiceFailure``.
        """
        try:
            vector = self._embed(seed_text)
        except Exception as exc:
            raise ExternalServiceFailure(f"Embedding failed for sector {sector!r}") from exc

        try:
            rows = self._search.search(vector, self.match_threshold, top_k)
        except Exception as exc:
            raise ExternalServiceFailure(f"Similarity search failed for sector {sector!r}") from exc

        try:
            candidates = [_row_to_candidate(row, sector) for row in rows or []]
        except (KeyError, TypeError, ValueError) as exc:
            raise ExternalServiceFailure(f"Malformed search result for sector {sector!r}") from exc

        candidates.sort(key=lambda c: c.similarity_score, reverse=True)
        return candidates[:top_k]
