from __future__ import annotations

from backend.analytics.aggregator import compute_analytics
from backend.analytics.store import (
    DELETE,
    FINISH,
    GENERATE,
    RATING,
    clear_events,
    get_events,
    record_event,
)


def test_analytics_empty():
    result = compute_analytics([])

    assert result["total_generations"] == 0
    assert result["avg_response_time_ms"] == 0.0
    assert result["fallback_rate"] == 0.0
    assert result["deletions"] == {"total": 0, "without_replacement": 0}
    assert result["completed_sessions"] == 0


def test_record_event_appends_with_timestamp():
    clear_events()
    record_event(GENERATE, {"user_id": 1, "pool_size": 40})

    events = get_events()
    assert len(events) == 1
    assert events[0]["type"] == GENERATE
    assert "timestamp" in events[0]
    clear_events()


def test_analytics_aggregates_session_events():
    events = [
        {"type": GENERATE, "response_time_ms": 120.0, "pool_size": 60, "used_fallback": False,
         "sector_distribution": {"신선식품": 30, "유제품 & 음료 & 주류": 10}},
        {"type": GENERATE, "response_time_ms": 80.0, "pool_size": 20, "used_fallback": True,
         "sector_distribution": {"전체": 20, "신선식품": 5}},
        {"type": DELETE, "booth_id": "A1", "replacement": "B1"},
        {"type": DELETE, "booth_id": "A2", "replacement": None},
        {"type": RATING, "booth_rating": 5, "recommendation_rating": 4, "is_irrelevant": True},
        {"type": RATING, "booth_rating": 3, "recommendation_rating": None},
        {"type": FINISH, "user_id": 1},
    ]

    result = compute_analytics(events)

    assert result["total_generations"] == 2
    assert result["avg_response_time_ms"] == 100.0
    assert result["fallback_rate"] == 50.0
    assert result["avg_pool_size"] == 40.0
    assert result["sector_contribution"][0] == {"name": "신선식품", "count": 35}
    assert result["deletions"] == {"total": 2, "without_replacement": 1}
    assert result["rating_summary"] == {
        "total": 2,
        "avg_booth_rating": 4.0,
        "avg_recommendation_rating": 4.0,
        "flagged_irrelevant": 1,
        "flagged_wrong_info": 0,
    }
    assert result["completed_sessions"] == 1


def test_get_events_filters_by_type():
    clear_events()
    record_event(GENERATE, {"user_id": 1})
    record_event(DELETE, {"user_id": 1, "booth_id": "A1", "replacement": None})

    assert [e["type"] for e in get_events(DELETE)] == [DELETE]
    assert len(get_events()) == 2
    clear_events()
