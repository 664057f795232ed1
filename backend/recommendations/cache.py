"""
Read-through cache over the booth catalog.

The catalog is owned by whoever loads booth metadata and is passed in
explicitly; nothing here is module-level state.
"""
from __future__ import annotations

import time
from typing import Any, Callable

import pandas as pd

from .data_store import load_booth_frame

_DEFAULT_TTL = 300  # 5 minutes


class BoothCatalog:
    def __init__(
        self,
        loader: Callable[[], pd.DataFrame] = load_booth_frame,
        ttl: float = _DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
    ):
        self._loader = loader
        self._ttl = ttl
        self._clock = clock
        self._df: pd.DataFrame | None = None
        self._by_id: dict[str, dict[str, Any]] = {}
        self._loaded_at = 0.0
        self._hits = 0
        self._misses = 0

    def frame(self) -> pd.DataFrame:
        """Return the catalog DataFrame, reloading it once the TTL has passed."""
        if self._df is not None and self._clock() - self._loaded_at < self._ttl:
            self._hits += 1
            return self._df
        self._misses += 1
        df = self._loader()
        self._by_id = {str(row["id"]): row for row in df.to_dict(orient="records")}
        self._df = df
        self._loaded_at = self._clock()
        return df

    def all(self) -> list[dict[str, Any]]:
        self.frame()
        return list(self._by_id.values())

    def get(self, booth_id: str) -> dict[str, Any] | None:
        self.frame()
        return self._by_id.get(str(booth_id))

    def search(self, query: str) -> list[dict[str, Any]]:
        """
        Case-insensitive keyword search over name, category and products.

        Booths whose name matches come first; catalog order is kept within
        each group.
        """
        term = query.strip()
        if not term:
            return []
        df = self.frame()

        def _contains(column: str) -> pd.Series:
            if column not in df.columns:
                return pd.Series(False, index=df.index)
            return df[column].fillna("").astype(str).str.contains(term, case=False, regex=False)

        title = _contains("company_name_kor")
        other = ~title & (_contains("category") | _contains("products"))
        ids = df.loc[title, "id"].tolist() + df.loc[other, "id"].tolist()
        return [self._by_id[str(booth_id)] for booth_id in ids]

    def invalidate(self) -> None:
        self._df = None
        self._by_id = {}

    def stats(self) -> dict:
        total = self._hits + self._misses
        return {
            "size": len(self._by_id),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }
