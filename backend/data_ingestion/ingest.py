from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List

import pandas as pd

from .config import DEFAULT_INGESTION_CONFIG, IngestionConfig

logger = logging.getLogger(__name__)

CANONICAL_COLUMNS: List[str] = [
    "id",
    "company_name_kor",
    "category",
    "company_description",
    "products",
    "products_description",
]


def _normalize_id(value: Any) -> str | None:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    raw = str(value).strip().upper()
    return raw or None


def _clean_text(value: Any) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v).strip() for v in value if str(v).strip())
    return " ".join(str(value).split())


def run_ingestion(config: IngestionConfig = DEFAULT_INGESTION_CONFIG) -> Path:
    """
    Execute the ingestion pipeline.

    Steps:
    - Read the raw exhibitor export.
    - Map raw fields into the canonical Booth schema.
    - Drop rows without an id or name, keep the first row per booth id.
    - Persist the cleaned catalog as JSON lines.
    """
    config.processed_data_dir.mkdir(parents=True, exist_ok=True)

    df = pd.read_json(config.raw_path, lines=True, dtype=False)

    # Exports from different years name a few columns differently.
    def _first_present(columns: List[str]) -> str | None:
        for col in columns:
            if col in df.columns:
                return col
        return None

    col_id = _first_present(["id", "booth_id", "booth_no"])
    col_name = _first_present(["company_name_kor", "company_name", "name"])
    col_category = _first_present(["category", "sector"])
    col_description = _first_present(["company_description", "description"])
    col_products = _first_present(["products", "product_names"])
    col_products_desc = _first_present(["products_description", "product_description"])

    if col_id is None or col_name is None:
        raise ValueError(f"Raw catalog {config.raw_path} has no id or company name column")

    canonical = pd.DataFrame()
    canonical["id"] = df[col_id].apply(_normalize_id)
    canonical["company_name_kor"] = df[col_name].apply(_clean_text)
    canonical["category"] = (
        df[col_category].apply(lambda v: _clean_text(v) or None) if col_category else None
    )
    canonical["company_description"] = df[col_description].apply(_clean_text) if col_description else ""
    canonical["products"] = df[col_products].apply(_clean_text) if col_products else ""
    canonical["products_description"] = (
        df[col_products_desc].apply(_clean_text) if col_products_desc else ""
    )

    before = len(canonical)
    canonical = canonical[canonical["id"].notna() & (canonical["company_name_kor"] != "")]
    canonical = canonical.drop_duplicates(subset="id", keep="first")
    logger.info("Ingested %d booths (%d rows dropped)", len(canonical), before - len(canonical))

    canonical = canonical[CANONICAL_COLUMNS]

    output_path = config.processed_path
    canonical.to_json(output_path, orient="records", lines=True, force_ascii=False)
    return output_path


if __name__ == "__main__":
    path = run_ingestion()
    print(f"Ingestion complete. Processed catalog saved to: {path}")
