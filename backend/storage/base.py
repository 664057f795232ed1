from __future__ import annotations

from typing import Protocol

from ..recommendations.models import EvaluationRecord, RankedRecommendation


class EvaluationStore(Protocol):
    def get_all(self, user_id: int) -> list[EvaluationRecord]: ...

    def upsert_tombstone(self, user_id: int, booth_id: str) -> None: ...

    def start_evaluation(self, user_id: int, booth_id: str) -> None:
        """Stamp ``started_at`` on the row; a booth already started keeps its first timestamp."""
        ...

    def upsert_rating(
        self,
        user_id: int,
        booth_id: str,
        booth_rating: int | None,
        recommendation_rating: int | None,
        is_irrelevant: bool | None = None,
        is_booth_wrong_info: bool | None = None,
    ) -> EvaluationRecord: ...

    def save_recommendations(self, user_id: int, ranked: list[RankedRecommendation]) -> None: ...

    def load_recommendations(self, user_id: int) -> list[RankedRecommendation]: ...
