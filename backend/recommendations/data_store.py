from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd

from ..embeddings.config import DEFAULT_EMBEDDING_CONFIG

_PROCESSED_DIR = Path(__file__).resolve().parent.parent / "data" / "processed"
BOOTHS_JSONL = _PROCESSED_DIR / "booths.jsonl"
EMBEDDINGS_NPY = DEFAULT_EMBEDDING_CONFIG.embeddings_path

TEXT_COLUMNS = ["company_name_kor", "company_description", "products", "products_description"]


def load_booth_frame(path: Path = BOOTHS_JSONL) -> pd.DataFrame:
    """Read the processed booth catalog. Booth ids stay strings (e.g. ``A1234``)."""
    df = pd.read_json(path, lines=True, dtype={"id": str})
    df["id"] = df["id"].astype(str)
    for col in TEXT_COLUMNS:
        if col not in df.columns:
            df[col] = ""
        df[col] = df[col].fillna("").astype(str)
    if "category" not in df.columns:
        df["category"] = None
    df["category"] = df["category"].astype(object).where(df["category"].notna(), None)
    return df.reset_index(drop=True)


def load_embeddings(path: Path = EMBEDDINGS_NPY) -> np.ndarray | None:
    """Return the precomputed booth embedding matrix, or None if it was never built."""
    if not path.exists():
        return None
    return np.load(path)
