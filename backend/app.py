from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException, Query

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .embeddings.encoder import encode_text
from .embeddings.index import LocalBoothIndex
from .recommendations.cache import BoothCatalog
from .recommendations.config import DEFAULT_ENGINE_CONFIG
from .recommendations.data_store import BOOTHS_JSONL, load_embeddings
from .recommendations.errors import EmptySignal, ExternalServiceFailure, InvalidTransition
from .recommendations.list_manager import RecommendationListManager
from .recommendations.models import (
    BoothOut,
    DeleteResponse,
    DisplayResponse,
    FollowUpRequest,
    FollowUpResponse,
    GenerateRequest,
    ProgressResponse,
    RankedRecommendation,
    RatingRequest,
    RecommendationOut,
    SimilarBoothOut,
)
from .recommendations.retrieval import CandidateRetriever
from .recommendations.service import RecommendationService
from .storage.config import DEFAULT_STORAGE_CONFIG
from .storage.memory import InMemoryStore
from .storage.supabase_store import SupabaseBoothSearch, SupabaseStore, create_supabase_client

logger = logging.getLogger(__name__)

app = FastAPI(title="Booth Recommendation API", version="1.0.0")


@lru_cache(maxsize=1)
def get_service() -> RecommendationService:
    """Wire the service from the environment: Supabase when configured, local files otherwise."""
    catalog = BoothCatalog() if BOOTHS_JSONL.exists() else None

    if DEFAULT_STORAGE_CONFIG.url and DEFAULT_STORAGE_CONFIG.key:
        client = create_supabase_client(DEFAULT_STORAGE_CONFIG)
        store = SupabaseStore(client)
        search = SupabaseBoothSearch(client)
    else:
        embeddings = load_embeddings()
        if catalog is None or embeddings is None:
            raise RuntimeError(
                "No booth search backend: set SUPABASE_URL/SUPABASE_SERVICE_KEY "
                "or run ingestion and embedding precompute"
            )
        logger.info("Supabase not configured, using in-memory store and local index")
        store = InMemoryStore()
        search = LocalBoothIndex(catalog, embeddings)

    retriever = CandidateRetriever(encode_text, search, DEFAULT_ENGINE_CONFIG.match_threshold)
    return RecommendationService(store, retriever, catalog=catalog)


def _domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, InvalidTransition):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, EmptySignal):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, ExternalServiceFailure):
        return HTTPException(status_code=502, detail=str(exc))
    if isinstance(exc, KeyError):
        return HTTPException(status_code=404, detail=exc.args[0] if exc.args else "Not found")
    return HTTPException(status_code=500, detail=str(exc))


def _to_out(service: RecommendationService, rec: RankedRecommendation) -> RecommendationOut:
    booth = service.describe(rec.booth_id) or {}
    return RecommendationOut(
        booth_id=rec.booth_id,
        rank=rec.rank,
        rationale=rec.rationale,
        company_name=booth.get("company_name_kor"),
        category=booth.get("category"),
    )


def _display(
    service: RecommendationService,
    manager: RecommendationListManager,
    pool_size: int | None = None,
    used_fallback: bool | None = None,
) -> DisplayResponse:
    return DisplayResponse(
        user_id=manager.user_id,
        recommendations=[_to_out(service, rec) for rec in manager.display_set],
        overflow_count=len(manager.overflow_queue),
        remaining_deletions=manager.remaining_deletions,
        can_delete=manager.can_delete,
        pool_size=pool_size,
        used_fallback=used_fallback,
    )


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/booths", response_model=list[BoothOut])
def search_booths(q: str = "", service: RecommendationService = Depends(get_service)) -> list[BoothOut]:
    return [BoothOut(**row) for row in service.search_booths(q)]


@app.get("/booths/similar", response_model=list[SimilarBoothOut])
def similar_booths(
    q: str,
    limit: int = Query(default=20, ge=1, le=50),
    service: RecommendationService = Depends(get_service),
) -> list[SimilarBoothOut]:
    try:
        candidates = service.similar_booths(q, limit)
    except ExternalServiceFailure as exc:
        raise _domain_error(exc)
    return [
        SimilarBoothOut(
            booth_id=c.booth_id,
            similarity=c.similarity_score,
            company_name=c.booth.get("company_name_kor"),
            category=c.booth.get("category"),
        )
        for c in candidates
    ]


@app.get("/booths/{booth_id}", response_model=BoothOut)
def booth(booth_id: str, service: RecommendationService = Depends(get_service)) -> BoothOut:
    row = service.describe(booth_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Unknown booth {booth_id}")
    return BoothOut(**row)


# ── Recommendation flow ──────────────────────────────────────────────────


@app.post("/followup", response_model=FollowUpResponse)
def followup(
    body: FollowUpRequest,
    service: RecommendationService = Depends(get_service),
) -> FollowUpResponse:
    try:
        return service.followup(body.profile)
    except ExternalServiceFailure as exc:
        raise _domain_error(exc)


@app.post("/recommendations/{user_id}", response_model=DisplayResponse)
def generate(
    user_id: int,
    body: GenerateRequest,
    service: RecommendationService = Depends(get_service),
) -> DisplayResponse:
    try:
        result = service.generate(user_id, body.profile)
    except (ExternalServiceFailure, EmptySignal) as exc:
        raise _domain_error(exc)
    return _display(service, result.manager, result.pool_size, result.used_fallback)


@app.post("/recommendations/{user_id}/restore", response_model=DisplayResponse)
def restore(user_id: int, service: RecommendationService = Depends(get_service)) -> DisplayResponse:
    try:
        manager = service.restore(user_id)
    except (ExternalServiceFailure, KeyError) as exc:
        raise _domain_error(exc)
    return _display(service, manager)


@app.get("/recommendations/{user_id}", response_model=DisplayResponse)
def current(user_id: int, service: RecommendationService = Depends(get_service)) -> DisplayResponse:
    try:
        manager = service.session(user_id)
    except KeyError as exc:
        raise _domain_error(exc)
    return _display(service, manager)


@app.delete("/recommendations/{user_id}/{booth_id}", response_model=DeleteResponse)
def delete(
    user_id: int,
    booth_id: str,
    service: RecommendationService = Depends(get_service),
) -> DeleteResponse:
    try:
        replacement = service.delete(user_id, booth_id)
        manager = service.session(user_id)
    except (InvalidTransition, ExternalServiceFailure, KeyError) as exc:
        raise _domain_error(exc)
    return DeleteResponse(
        deleted=booth_id,
        replacement=_to_out(service, replacement) if replacement else None,
        remaining_deletions=manager.remaining_deletions,
        can_delete=manager.can_delete,
    )


@app.post("/evaluations/{user_id}/{booth_id}/start")
def start_evaluation(
    user_id: int,
    booth_id: str,
    service: RecommendationService = Depends(get_service),
) -> dict:
    try:
        service.start_evaluation(user_id, booth_id)
    except (InvalidTransition, ExternalServiceFailure, KeyError) as exc:
        raise _domain_error(exc)
    return {"status": "started"}


@app.post("/evaluations/{user_id}")
def rate(
    user_id: int,
    body: RatingRequest,
    service: RecommendationService = Depends(get_service),
) -> dict:
    try:
        record = service.record_rating(
            user_id, body.booth_id, body.booth_rating, body.recommendation_rating,
            body.is_irrelevant, body.is_booth_wrong_info,
        )
    except (InvalidTransition, ExternalServiceFailure, KeyError) as exc:
        raise _domain_error(exc)
    return {"status": "recorded", "evaluation": record.model_dump(mode="json")}


@app.get("/recommendations/{user_id}/progress", response_model=ProgressResponse)
def progress(user_id: int, service: RecommendationService = Depends(get_service)) -> ProgressResponse:
    try:
        result = service.progress(user_id)
        total = len(service.session(user_id).display_set)
    except (ExternalServiceFailure, KeyError) as exc:
        raise _domain_error(exc)
    return ProgressResponse(
        evaluated_count=result.evaluated_count,
        total=total,
        is_complete=result.is_complete,
    )


@app.post("/recommendations/{user_id}/finish")
def finish(user_id: int, service: RecommendationService = Depends(get_service)) -> dict:
    try:
        service.finish(user_id)
    except (InvalidTransition, ExternalServiceFailure, KeyError) as exc:
        raise _domain_error(exc)
    return {"status": "finished"}


# ── Analytics ────────────────────────────────────────────────────────────


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events())
