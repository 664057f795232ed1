"""
Sector-balanced candidate pool.

One similarity query is issued per sector the visitor shows interest in.
The per-sector results are merged into a single deduplicated pool that is
handed to the ranking service.
"""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Mapping, Protocol, Sequence

from .config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .errors import EmptySignal, ExternalServiceFailure
from .models import Candidate, CandidatePool, InterestProfile
from .projector import project
from .retrieval import CandidateRetriever
from .sectors import sector_names

logger = logging.getLogger(__name__)


class PoolSizingStrategy(Protocol):
    def target_total(self, interest_count: int) -> int: ...


@dataclass(frozen=True)
class StepPoolSizing:
    """Sparse profiles get a larger pool to make up for overlapping sector matches."""

    steps: tuple[tuple[int, int], ...] = DEFAULT_ENGINE_CONFIG.pool_size_steps
    default: int = DEFAULT_ENGINE_CONFIG.default_pool_size

    def target_total(self, interest_count: int) -> int:
        for max_count, size in self.steps:
            if interest_count <= max_count:
                return size
        return self.default


def per_sector_count(target_total: int, active_count: int) -> int:
    return max(1, target_total // max(1, active_count))


def merge_sector_results(
    results: Mapping[str, Sequence[Candidate]],
    sector_order: Sequence[str],
) -> CandidatePool:
    """
    Merge per-sector result lists into one pool.

    Sectors are visited in catalog order, never arrival order, so the pool
    is the same however the queries completed. Duplicates union their
    sectors and keep the highest score; equal scores keep the earlier one.
    """
    merged: dict[str, Candidate] = {}
    first_seen: dict[str, tuple[int, int]] = {}

    ordered = [s for s in sector_order if s in results]
    ordered += sorted(s for s in results if s not in sector_order)

    for sector_idx, sector in enumerate(ordered):
        for pos, cand in enumerate(results[sector]):
            existing = merged.get(cand.booth_id)
            if existing is None:
                merged[cand.booth_id] = cand.model_copy(
                    update={"source_sectors": set(cand.source_sectors) | {sector}}
                )
                first_seen[cand.booth_id] = (sector_idx, pos)
                continue
            existing.source_sectors |= cand.source_sectors | {sector}
            if cand.similarity_score > existing.similarity_score:
                existing.similarity_score = cand.similarity_score
                existing.booth = cand.booth

    ranked = sorted(
        merged.values(),
        key=lambda c: (-c.similarity_score, first_seen[c.booth_id]),
    )
    return CandidatePool(ranked)


class CandidatePoolBuilder:
    def __init__(
        self,
        retriever: CandidateRetriever,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
        sizing: PoolSizingStrategy | None = None,
        sectors: Sequence[str] | None = None,
    ):
        self.retriever = retriever
        self.config = config
        self.sizing = sizing or StepPoolSizing(config.pool_size_steps, config.default_pool_size)
        self.sectors = list(sectors) if sectors is not None else sector_names()

    def active_sectors(self, profile: InterestProfile) -> dict[str, str]:
        """Return ``{sector: seed_text}`` for every sector with a non-empty projection."""
        seeds: dict[str, str] = {}
        for sector in self.sectors:
            seed = project(profile, sector)
            if seed:
                seeds[sector] = seed
        return seeds

    def build(self, profile: InterestProfile) -> CandidatePool:
        seeds = self.active_sectors(profile)
        if not seeds:
            raise EmptySignal("Profile has no interest matching any sector")

        interest_count = profile.interest_count
        target_total = self.sizing.target_total(interest_count)
        top_k = per_sector_count(target_total, len(seeds))
        logger.info(
            "Building pool: sectors=%s interests=%d target=%d per_sector=%d",
            list(seeds), interest_count, target_total, top_k,
        )

        results = self.retrieve_all(seeds, top_k)
        pool = merge_sector_results(results, self.sectors)
        logger.info(
            "Pool built: %d unique candidates, distribution=%s",
            len(pool), pool.sector_distribution(),
        )
        return pool

    def retrieve_all(self, seeds: dict[str, str], top_k: int) -> dict[str, list[Candidate]]:
        """
        Query every seeded sector concurrently within ``search_timeout``.

        Timed-out queries are skipped but their worker threads are not
        interrupted; each one ends when the search client's own request
        timeout fires.
        """
        executor = ThreadPoolExecutor(max_workers=min(self.config.max_workers, len(seeds)))
        try:
            futures: dict[Future, str] = {
                executor.submit(self.retriever.retrieve, sector, seed, top_k): sector
                for sector, seed in seeds.items()
            }
            done, not_done = wait(futures, timeout=self.config.search_timeout)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        for future in not_done:
            logger.warning("Sector %s query timed out, skipping", futures[future])

        results: dict[str, list[Candidate]] = {}
        for future in done:
            sector = futures[future]
            try:
                results[sector] = future.result()
            except ExternalServiceFailure:
                logger.warning("Sector %s query failed, skipping", sector, exc_info=True)
                continue
            logger.info("Sector %s returned %d candidates", sector, len(results[sector]))

        if not results:
            raise ExternalServiceFailure(f"All {len(seeds)} sector queries failed")
        return results
