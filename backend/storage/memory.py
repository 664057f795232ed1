from __future__ import annotations

from datetime import datetime, timezone

from ..recommendations.models import EvaluationRecord, RankedRecommendation


class InMemoryStore:
    """Process-local store for development and tests."""

    def __init__(self) -> None:
        self._evaluations: dict[int, dict[str, EvaluationRecord]] = {}
        self._recommendations: dict[int, list[RankedRecommendation]] = {}

    def get_all(self, user_id: int) -> list[EvaluationRecord]:
        return list(self._evaluations.get(user_id, {}).values())

    def upsert_tombstone(self, user_id: int, booth_id: str) -> None:
        rows = self._evaluations.setdefault(user_id, {})
        now = datetime.now(timezone.utc)
        existing = rows.get(booth_id)
        if existing is None:
            rows[booth_id] = EvaluationRecord(booth_id=booth_id, deleted=True, deleted_at=now)
        else:
            rows[booth_id] = existing.model_copy(update={"deleted": True, "deleted_at": now})

    def start_evaluation(self, user_id: int, booth_id: str) -> None:
        rows = self._evaluations.setdefault(user_id, {})
        existing = rows.get(booth_id) or EvaluationRecord(booth_id=booth_id)
        if existing.started_at is None:
            rows[booth_id] = existing.model_copy(update={"started_at": datetime.now(timezone.utc)})

    def upsert_rating(
        self,
        user_id: int,
        booth_id: str,
        booth_rating: int | None,
        recommendation_rating: int | None,
        is_irrelevant: bool | None = None,
        is_booth_wrong_info: bool | None = None,
    ) -> EvaluationRecord:
        rows = self._evaluations.setdefault(user_id, {})
        existing = rows.get(booth_id) or EvaluationRecord(booth_id=booth_id)
        update: dict = {"ended_at": datetime.now(timezone.utc)}
        if booth_rating is not None:
            update["booth_rating"] = booth_rating
        if recommendation_rating is not None:
            update["recommendation_rating"] = recommendation_rating
        if is_irrelevant is not None:
            update["is_irrelevant"] = is_irrelevant
        if is_booth_wrong_info is not None:
            update["is_booth_wrong_info"] = is_booth_wrong_info
        rows[booth_id] = existing.model_copy(update=update)
        return rows[booth_id]

    def save_recommendations(self, user_id: int, ranked: list[RankedRecommendation]) -> None:
        self._recommendations[user_id] = list(ranked)

    def load_recommendations(self, user_id: int) -> list[RankedRecommendation]:
        return list(self._recommendations.get(user_id, []))

    def clear(self) -> None:
        self._evaluations.clear()
        self._recommendations.clear()
