from __future__ import annotations

from typing import Any, Sequence

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity

from ..recommendations.cache import BoothCatalog


class LocalBoothIndex:
    """In-process booth search over precomputed embeddings aligned with catalog rows."""

    def __init__(self, catalog: BoothCatalog, embeddings: np.ndarray):
        self.catalog = catalog
        self.embeddings = np.asarray(embeddings)

    def search(
        self,
        query_vector: Sequence[float],
        match_threshold: float,
        match_count: int,
    ) -> list[dict[str, Any]]:
        df = self.catalog.frame()
        if len(df) != len(self.embeddings):
            raise ValueError(
                f"Embedding matrix has {len(self.embeddings)} rows, catalog has {len(df)}"
            )
        if match_count <= 0 or df.empty:
            return []

        query = np.asarray(query_vector, dtype=float).reshape(1, -1)
        scores = cosine_similarity(query, self.embeddings).flatten()

        order = np.argsort(-scores, kind="stable")
        results: list[dict[str, Any]] = []
        for idx in order:
            score = float(scores[idx])
            if score <= match_threshold:
                break
            row = df.iloc[int(idx)].to_dict()
            row["id"] = str(row["id"])
            row["similarity"] = score
            results.append(row)
            if len(results) >= match_count:
                break
        return results
