from __future__ import annotations

from dataclasses import dataclass

DISPLAY_COUNT = 10


@dataclass(frozen=True)
class EngineConfig:
    display_count: int = DISPLAY_COUNT
    rank_count: int = 20
    match_threshold: float = 0.3
    fallback_match_count: int = 20
    search_timeout: float = 15.0
    max_workers: int = 6
    # (max interest count, target pool size); profiles past the last step get default_pool_size
    pool_size_steps: tuple[tuple[int, int], ...] = ((3, 80), (6, 65))
    default_pool_size: int = 50


DEFAULT_ENGINE_CONFIG = EngineConfig()
