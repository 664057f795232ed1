from __future__ import annotations

from collections import Counter
from typing import Any

from .store import DELETE, FINISH, GENERATE, RATING


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    generations = [e for e in events if e["type"] == GENERATE]
    total = len(generations)

    # Average response time
    times = [g["response_time_ms"] for g in generations if "response_time_ms" in g]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    fallbacks = sum(1 for g in generations if g.get("used_fallback"))

    pool_sizes = [g["pool_size"] for g in generations if "pool_size" in g]
    avg_pool = round(sum(pool_sizes) / len(pool_sizes), 1) if pool_sizes else 0.0

    # Sector contribution to pools
    sector_counter: Counter[str] = Counter()
    for g in generations:
        for sector, count in (g.get("sector_distribution") or {}).items():
            sector_counter[sector] += count
    top_sectors = [{"name": n, "count": c} for n, c in sector_counter.most_common()]

    deletions = [e for e in events if e["type"] == DELETE]
    shrinking = sum(1 for d in deletions if not d.get("replacement"))

    ratings = [e for e in events if e["type"] == RATING]
    booth_ratings = [r["booth_rating"] for r in ratings if r.get("booth_rating") is not None]
    rec_ratings = [
        r["recommendation_rating"] for r in ratings if r.get("recommendation_rating") is not None
    ]

    return {
        "total_generations": total,
        "avg_response_time_ms": avg_time,
        "fallback_rate": round(fallbacks / total * 100, 1) if total else 0.0,
        "avg_pool_size": avg_pool,
        "sector_contribution": top_sectors,
        "deletions": {
            "total": len(deletions),
            "without_replacement": shrinking,
        },
        "rating_summary": {
            "total": len(ratings),
            "avg_booth_rating": round(sum(booth_ratings) / len(booth_ratings), 2) if booth_ratings else 0.0,
            "avg_recommendation_rating": round(sum(rec_ratings) / len(rec_ratings), 2) if rec_ratings else 0.0,
            "flagged_irrelevant": sum(1 for r in ratings if r.get("is_irrelevant")),
            "flagged_wrong_info": sum(1 for r in ratings if r.get("is_booth_wrong_info")),
        },
        "completed_sessions": sum(1 for e in events if e["type"] == FINISH),
    }
