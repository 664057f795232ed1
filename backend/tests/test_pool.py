from __future__ import annotations

import threading

import pytest

from backend.recommendations.config import EngineConfig
from backend.recommendations.errors import EmptySignal, ExternalServiceFailure
from backend.recommendations.models import Candidate, InterestProfile
from backend.recommendations.pool import (
    CandidatePoolBuilder,
    StepPoolSizing,
    merge_sector_results,
    per_sector_count,
)
from backend.recommendations.sectors import sector_names

DAIRY = "유제품 & 음료 & 주류"
FRESH = "신선식품"
BAKERY = "베이커리 & 디저트"


def _cand(booth_id: str, score: float, sector: str) -> Candidate:
    return Candidate(booth_id=booth_id, similarity_score=score, source_sectors={sector})


class StubRetriever:
    """Scripted per-sector results; records every call."""

    def __init__(self, results=None, failing=(), blocking=(), release=None):
        self.results = results or {}
        self.failing = set(failing)
        self.blocking = set(blocking)
        self.release = release
        self.calls: list[tuple[str, str, int]] = []
        self._lock = threading.Lock()

    def retrieve(self, sector, seed_text, top_k):
        with self._lock:
            self.calls.append((sector, seed_text, top_k))
        if sector in self.blocking:
            self.release.wait(5)
        if sector in self.failing:
            raise ExternalServiceFailure(f"{sector} down")
        return [_cand(bid, score, sector) for bid, score in self.results.get(sector, [])][:top_k]


# ── Sizing ───────────────────────────────────────────────────────────────


class TestSizing:
    def test_sparse_profile_targets_large_pool(self):
        sizing = StepPoolSizing()
        assert sizing.target_total(0) == 80
        assert sizing.target_total(3) == 80

    def test_moderate_profile_targets_medium_pool(self):
        sizing = StepPoolSizing()
        assert sizing.target_total(4) == 65
        assert sizing.target_total(6) == 65

    def test_rich_profile_targets_small_pool(self):
        assert StepPoolSizing().target_total(7) == 50

    def test_per_sector_floor_and_minimum(self):
        assert per_sector_count(80, 1) == 80
        assert per_sector_count(65, 6) == 10
        assert per_sector_count(50, 100) == 1


# ── Merge ────────────────────────────────────────────────────────────────


def test_merge_unions_sectors_and_keeps_max_score():
    results = {
        FRESH: [_cand("X", 0.4, FRESH)],
        DAIRY: [_cand("X", 0.7, DAIRY)],
    }

    pool = merge_sector_results(results, sector_names())

    assert len(pool) == 1
    merged = pool.get("X")
    assert merged.source_sectors == {FRESH, DAIRY}
    assert merged.similarity_score == 0.7


def test_merge_never_duplicates_booths():
    results = {
        FRESH: [_cand("A", 0.9, FRESH), _cand("B", 0.5, FRESH), _cand("C", 0.4, FRESH)],
        DAIRY: [_cand("B", 0.8, DAIRY), _cand("A", 0.3, DAIRY)],
        BAKERY: [_cand("C", 0.6, BAKERY), _cand("D", 0.2, BAKERY)],
    }

    pool = merge_sector_results(results, sector_names())
    ids = pool.booth_ids()

    assert len(ids) == len(set(ids))
    assert ids == ["A", "B", "C", "D"]
    scores = [c.similarity_score for c in pool]
    assert scores == sorted(scores, reverse=True)


def test_merge_is_independent_of_arrival_order():
    forward = {
        FRESH: [_cand("A", 0.5, FRESH), _cand("B", 0.5, FRESH)],
        DAIRY: [_cand("C", 0.5, DAIRY), _cand("A", 0.5, DAIRY)],
    }
    backward = {DAIRY: forward[DAIRY], FRESH: forward[FRESH]}

    a = merge_sector_results(forward, sector_names())
    b = merge_sector_results(backward, sector_names())

    assert a.booth_ids() == b.booth_ids()
    # Equal scores fall back to first-seen sector order (catalog order).
    assert a.booth_ids() == ["A", "B", "C"]
    assert [c.source_sectors for c in a] == [c.source_sectors for c in b]


def test_merge_does_not_mutate_inputs():
    original = _cand("A", 0.4, FRESH)
    merge_sector_results({FRESH: [original], DAIRY: [_cand("A", 0.9, DAIRY)]}, sector_names())

    assert original.source_sectors == {FRESH}
    assert original.similarity_score == 0.4


# ── Builder ──────────────────────────────────────────────────────────────


def test_single_sector_profile_gets_whole_target():
    profile = InterestProfile(interests={"유제품": ["우유", "치즈"]})
    retriever = StubRetriever({DAIRY: [("A1001", 0.8), ("A1002", 0.6)]})
    builder = CandidatePoolBuilder(retriever)

    assert list(builder.active_sectors(profile)) == [DAIRY]

    pool = builder.build(profile)

    assert retriever.calls[0][0] == DAIRY
    assert retriever.calls[0][2] == 80
    assert pool.booth_ids() == ["A1001", "A1002"]


def test_budget_is_split_across_active_sectors():
    profile = InterestProfile(interests={
        "유제품": ["우유", "치즈"],
        "신선": ["과일", "채소"],
        "디저트": ["케이크"],
    })
    retriever = StubRetriever()
    builder = CandidatePoolBuilder(retriever)

    builder.build(profile)

    # 5 tags -> 65 total, 3 sectors -> 21 each
    assert sorted(c[0] for c in retriever.calls) == sorted([DAIRY, FRESH, BAKERY])
    assert {c[2] for c in retriever.calls} == {21}


def test_custom_sizing_strategy_is_used():
    class Fixed:
        def target_total(self, interest_count):
            return 7

    profile = InterestProfile(interests={"유제품": ["우유"]})
    retriever = StubRetriever()
    CandidatePoolBuilder(retriever, sizing=Fixed()).build(profile)

    assert retriever.calls[0][2] == 7


def test_empty_signal_when_no_sector_matches():
    profile = InterestProfile(interests={"기타": ["전자레인지"]}, specific_goal="구경")
    retriever = StubRetriever()

    with pytest.raises(EmptySignal):
        CandidatePoolBuilder(retriever).build(profile)
    assert retriever.calls == []


def test_failed_sector_is_skipped():
    profile = InterestProfile(interests={"유제품": ["우유"], "신선": ["과일"]})
    retriever = StubRetriever({DAIRY: [("A1", 0.9)], FRESH: [("B1", 0.8)]}, failing=[FRESH])

    pool = CandidatePoolBuilder(retriever).build(profile)

    assert pool.booth_ids() == ["A1"]


def test_all_sectors_failing_escalates():
    profile = InterestProfile(interests={"유제품": ["우유"], "신선": ["과일"]})
    retriever = StubRetriever(failing=[DAIRY, FRESH])

    with pytest.raises(ExternalServiceFailure):
        CandidatePoolBuilder(retriever).build(profile)


def test_empty_sector_result_is_not_a_failure():
    profile = InterestProfile(interests={"유제품": ["우유"]})
    retriever = StubRetriever({DAIRY: []})

    pool = CandidatePoolBuilder(retriever).build(profile)

    assert len(pool) == 0


def test_slow_sector_times_out_and_is_skipped():
    release = threading.Event()
    profile = InterestProfile(interests={"유제품": ["우유"], "신선": ["과일"]})
    retriever = StubRetriever(
        {DAIRY: [("A1", 0.9)], FRESH: [("B1", 0.8)]},
        blocking=[FRESH],
        release=release,
    )
    config = EngineConfig(search_timeout=0.2)

    try:
        pool = CandidatePoolBuilder(retriever, config=config).build(profile)
    finally:
        release.set()

    assert pool.booth_ids() == ["A1"]
