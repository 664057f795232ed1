"""
Offline script to precompute booth embeddings.

Usage:
    python -m backend.embeddings.precompute
"""
from __future__ import annotations

import numpy as np
import pandas as pd

from ..recommendations.data_store import BOOTHS_JSONL, load_booth_frame
from .config import DEFAULT_EMBEDDING_CONFIG
from .encoder import encode_batch


def build_booth_text(row: pd.Series) -> str:
    parts: list[str] = []
    for col in ("company_name_kor", "category", "company_description", "products", "products_description"):
        value = row.get(col)
        if pd.notna(value) and str(value).strip():
            parts.append(str(value).strip())
    return " ".join(parts)


def run_precompute() -> None:
    df = load_booth_frame(BOOTHS_JSONL)
    texts = df.apply(build_booth_text, axis=1).tolist()

    print(f"Encoding {len(texts)} booths ...")
    embeddings = encode_batch(texts)

    out_path = DEFAULT_EMBEDDING_CONFIG.embeddings_path
    out_path.parent.mkdir(parents=True, exist_ok=True)
    np.save(out_path, embeddings)
    print(f"Saved embeddings ({embeddings.shape}) to {out_path}")


if __name__ == "__main__":
    run_precompute()
