from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from ..analytics.store import DELETE, FINISH, GENERATE, RATING, record_event
from ..llm.groq_client import generate_followup, rank_booths
from ..storage.base import EvaluationStore
from .cache import BoothCatalog
from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .errors import EmptySignal, ExternalServiceFailure, InvalidTransition
from .list_manager import EvaluationProgress, RecommendationListManager
from .models import (
    Candidate,
    CandidatePool,
    EvaluationRecord,
    FollowUpResponse,
    InterestProfile,
    RankedRecommendation,
)
from .pool import CandidatePoolBuilder, PoolSizingStrategy, merge_sector_results
from .projector import profile_to_text, visitor_info
from .retrieval import CandidateRetriever

logger = logging.getLogger(__name__)

FALLBACK_SECTOR = "전체"
TEXT_SEARCH_SECTOR = "검색"

Ranker = Callable[[CandidatePool, str, int], list[RankedRecommendation]]

T = TypeVar("T")


@dataclass
class GenerationResult:
    manager: RecommendationListManager
    pool_size: int
    used_fallback: bool


def _store_call(fn: Callable[..., T], what: str, *args: Any) -> T:
    try:
        return fn(*args)
    except ExternalServiceFailure:
        raise
    except Exception as exc:
        logger.warning("Store %s failed", what, exc_info=True)
        raise ExternalServiceFailure(f"Store {what} failed") from exc


class RecommendationService:
    """
    Runs one visitor's recommendation flow: candidate pool, ranking, and
    the displayed list for the rest of the session.
    """

    def __init__(
        self,
        store: EvaluationStore,
        retriever: CandidateRetriever,
        catalog: BoothCatalog | None = None,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
        ranker: Ranker = rank_booths,
        sizing: PoolSizingStrategy | None = None,
    ):
        self.store = store
        self.retriever = retriever
        self.catalog = catalog
        self.config = config
        self.ranker = ranker
        self.builder = CandidatePoolBuilder(retriever, config, sizing)
        self._sessions: dict[int, RecommendationListManager] = {}

    # ── candidates ───────────────────────────────────────────────────────

    def build_candidates(self, profile: InterestProfile) -> tuple[CandidatePool, bool]:
        """Return the candidate pool and whether the whole-profile fallback was used."""
        try:
            return self.builder.build(profile), False
        except EmptySignal:
            logger.info("No sector matched the profile, running whole-profile query")

        results = self.builder.retrieve_all(
            {FALLBACK_SECTOR: profile_to_text(profile)}, self.config.fallback_match_count,
        )
        return merge_sector_results(results, [FALLBACK_SECTOR]), True

    def followup(self, profile: InterestProfile) -> FollowUpResponse:
        return generate_followup(visitor_info(profile))

    # ── session lifecycle ────────────────────────────────────────────────

    def generate(self, user_id: int, profile: InterestProfile) -> GenerationResult:
        start_time = time.time()

        pool, used_fallback = self.build_candidates(profile)
        if not pool:
            raise EmptySignal("No booth is similar enough to the profile")
        ranked = self.ranker(pool, visitor_info(profile), self.config.rank_count)
        if not ranked:
            raise ExternalServiceFailure("Ranking returned no booth from the candidate pool")
        _store_call(self.store.save_recommendations, "recommendation save", user_id, ranked)
        manager = self._load(user_id, ranked)

        elapsed_ms = round((time.time() - start_time) * 1000, 1)
        record_event(GENERATE, {
            "user_id": user_id,
            "interest_count": profile.interest_count,
            "pool_size": len(pool),
            "sector_distribution": pool.sector_distribution(),
            "ranked_count": len(ranked),
            "used_fallback": used_fallback,
            "response_time_ms": elapsed_ms,
        })
        return GenerationResult(manager=manager, pool_size=len(pool), used_fallback=used_fallback)

    def restore(self, user_id: int) -> RecommendationListManager:
        ranked = _store_call(self.store.load_recommendations, "recommendation load", user_id)
        if not ranked:
            raise KeyError(f"No stored recommendations for user {user_id}")
        return self._load(user_id, ranked)

    def session(self, user_id: int) -> RecommendationListManager:
        try:
            return self._sessions[user_id]
        except KeyError:
            raise KeyError(f"No active recommendation session for user {user_id}") from None

    def delete(self, user_id: int, booth_id: str) -> RankedRecommendation | None:
        manager = self.session(user_id)
        replacement = manager.delete(booth_id)
        record_event(DELETE, {
            "user_id": user_id,
            "booth_id": booth_id,
            "replacement": replacement.booth_id if replacement else None,
        })
        return replacement

    def start_evaluation(self, user_id: int, booth_id: str) -> None:
        """Mark that the visitor opened a displayed booth to evaluate it."""
        self._require_displayed(self.session(user_id), booth_id, "evaluate")
        _store_call(self.store.start_evaluation, "evaluation start", user_id, booth_id)

    def record_rating(
        self,
        user_id: int,
        booth_id: str,
        booth_rating: int | None,
        recommendation_rating: int | None,
        is_irrelevant: bool | None = None,
        is_booth_wrong_info: bool | None = None,
    ) -> EvaluationRecord:
        manager = self.session(user_id)
        if booth_rating is None and recommendation_rating is None:
            raise InvalidTransition("A rating needs a booth or recommendation score")
        self._require_displayed(manager, booth_id, "rate")

        record = _store_call(
            self.store.upsert_rating, "rating upsert",
            user_id, booth_id, booth_rating, recommendation_rating,
            is_irrelevant, is_booth_wrong_info,
        )
        record_event(RATING, {
            "user_id": user_id,
            "booth_id": booth_id,
            "booth_rating": booth_rating,
            "recommendation_rating": recommendation_rating,
            "is_irrelevant": bool(is_irrelevant),
            "is_booth_wrong_info": bool(is_booth_wrong_info),
        })
        return record

    def progress(self, user_id: int) -> EvaluationProgress:
        manager = self.session(user_id)
        snapshot = _store_call(self.store.get_all, "evaluation read", user_id)
        return manager.evaluation_progress(snapshot)

    def finish(self, user_id: int) -> None:
        """Leave the recommendation stage; only allowed once every displayed booth is evaluated."""
        progress = self.progress(user_id)
        if not progress.is_complete:
            raise InvalidTransition(
                f"Evaluation incomplete: {progress.evaluated_count} of "
                f"{len(self.session(user_id).display_set)} booths evaluated"
            )
        del self._sessions[user_id]
        record_event(FINISH, {"user_id": user_id})

    def describe(self, booth_id: str) -> dict[str, Any] | None:
        if self.catalog is None:
            return None
        return self.catalog.get(booth_id)

    def search_booths(self, query: str) -> list[dict[str, Any]]:
        if self.catalog is None:
            return []
        return self.catalog.search(query)

    def similar_booths(self, query: str, count: int = 20) -> list[Candidate]:
        """Semantic search for a free-text query, outside any recommendation session."""
        if not query.strip():
            return []
        candidates = self.retriever.retrieve(TEXT_SEARCH_SECTOR, query, count)
        if self.catalog is None:
            return candidates
        return [
            c.model_copy(update={"booth": {**c.booth, **(self.catalog.get(c.booth_id) or {})}})
            for c in candidates
        ]

    @staticmethod
    def _require_displayed(manager: RecommendationListManager, booth_id: str, action: str) -> None:
        if booth_id in manager.deleted_ids:
            raise InvalidTransition(f"Cannot {action} {booth_id}: it was deleted")
        if not manager.is_displayed(booth_id):
            raise InvalidTransition(f"Cannot {action} {booth_id}: not in the display set")

    def _load(self, user_id: int, ranked: list[RankedRecommendation]) -> RecommendationListManager:
        snapshot = _store_call(self.store.get_all, "evaluation read", user_id)
        manager = RecommendationListManager(user_id, self.store, self.config.display_count)
        manager.load(ranked, snapshot)
        self._sessions[user_id] = manager
        return manager
