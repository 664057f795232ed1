from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Sequence

from pydantic import ValidationError
from supabase import Client, ClientOptions, create_client

from ..recommendations.errors import ExternalServiceFailure
from ..recommendations.models import EvaluationRecord, RankedRecommendation
from .config import DEFAULT_STORAGE_CONFIG, StorageConfig

logger = logging.getLogger(__name__)


def create_supabase_client(config: StorageConfig = DEFAULT_STORAGE_CONFIG) -> Client:
    if not config.url or not config.key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")
    options = ClientOptions(postgrest_client_timeout=config.timeout)
    return create_client(config.url, config.key, options=options)


def _execute(query: Any, what: str) -> list[dict[str, Any]]:
    try:
        result = query.execute()
    except Exception as exc:
        logger.warning("Supabase %s failed", what, exc_info=True)
        raise ExternalServiceFailure(f"Supabase {what} failed") from exc
    return result.data or []


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SupabaseStore:
    """Evaluation rows and stored recommendation lists in Supabase tables."""

    def __init__(self, client: Client, config: StorageConfig = DEFAULT_STORAGE_CONFIG):
        self.client = client
        self.config = config

    def _evaluations(self):
        return self.client.table(self.config.evaluation_table)

    def get_all(self, user_id: int) -> list[EvaluationRecord]:
        rows = _execute(
            self._evaluations().select("*").eq("user_id", user_id),
            "evaluation read",
        )
        try:
            return [EvaluationRecord.model_validate(row) for row in rows]
        except ValidationError as exc:
            raise ExternalServiceFailure(f"Malformed evaluation row for user {user_id}") from exc

    def upsert_tombstone(self, user_id: int, booth_id: str) -> None:
        _execute(
            self._evaluations().upsert(
                {"user_id": user_id, "booth_id": booth_id, "is_deleted": True, "deleted_at": _now()},
                on_conflict="user_id,booth_id",
            ),
            "tombstone upsert",
        )

    def start_evaluation(self, user_id: int, booth_id: str) -> None:
        _execute(
            self._evaluations().upsert(
                {"user_id": user_id, "booth_id": booth_id, "started_at": _now()},
                on_conflict="user_id,booth_id",
                ignore_duplicates=True,
            ),
            "evaluation start",
        )

    def upsert_rating(
        self,
        user_id: int,
        booth_id: str,
        booth_rating: int | None,
        recommendation_rating: int | None,
        is_irrelevant: bool | None = None,
        is_booth_wrong_info: bool | None = None,
    ) -> EvaluationRecord:
        row: dict[str, Any] = {"user_id": user_id, "booth_id": booth_id, "ended_at": _now()}
        if booth_rating is not None:
            row["booth_rating"] = booth_rating
        if recommendation_rating is not None:
            row["rec_rating"] = recommendation_rating
        if is_irrelevant is not None:
            row["is_irrelevant"] = is_irrelevant
        if is_booth_wrong_info is not None:
            row["is_booth_wrong_info"] = is_booth_wrong_info
        data = _execute(
            self._evaluations().upsert(row, on_conflict="user_id,booth_id"),
            "rating upsert",
        )
        try:
            return EvaluationRecord.model_validate(data[0] if data else row)
        except ValidationError as exc:
            raise ExternalServiceFailure(f"Malformed evaluation row for {booth_id}") from exc

    def save_recommendations(self, user_id: int, ranked: list[RankedRecommendation]) -> None:
        payload = json.dumps(
            [{"id": r.booth_id, "rationale": r.rationale} for r in ranked],
            ensure_ascii=False,
        )
        _execute(
            self.client.table(self.config.user_table)
            .update({"rec_result": payload, "recommended_at": _now()})
            .eq("user_id", user_id),
            "recommendation save",
        )

    def load_recommendations(self, user_id: int) -> list[RankedRecommendation]:
        rows = _execute(
            self.client.table(self.config.user_table)
            .select("rec_result")
            .eq("user_id", user_id)
            .limit(1),
            "recommendation load",
        )
        if not rows or not rows[0].get("rec_result"):
            return []
        try:
            items = json.loads(rows[0]["rec_result"])
            return [
                RankedRecommendation(booth_id=str(item["id"]), rationale=item.get("rationale", ""), rank=i)
                for i, item in enumerate(items, start=1)
            ]
        except (json.JSONDecodeError, KeyError, TypeError, ValidationError) as exc:
            raise ExternalServiceFailure(f"Malformed stored recommendations for user {user_id}") from exc


class SupabaseBoothSearch:
    """Calls the ``search_similar_booths`` RPC over the booth embedding table."""

    def __init__(self, client: Client, config: StorageConfig = DEFAULT_STORAGE_CONFIG):
        self.client = client
        self.config = config

    def search(
        self,
        query_vector: Sequence[float],
        match_threshold: float,
        match_count: int,
    ) -> list[dict[str, Any]]:
        params = {
            "query_embedding": [float(v) for v in query_vector],
            "match_threshold": match_threshold,
            "match_count": match_count,
        }
        return _execute(self.client.rpc(self.config.search_function, params), "booth search")
