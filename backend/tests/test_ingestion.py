import json
from pathlib import Path

import pandas as pd

from backend.data_ingestion.config import IngestionConfig
from backend.data_ingestion.ingest import CANONICAL_COLUMNS, run_ingestion
from backend.recommendations.data_store import load_booth_frame

RAW_ROWS = [
    {"booth_id": "a1001", "company_name": "치즈공방", "category": "유제품",
     "description": "수제  치즈\n전문", "products": ["까망베르", "브리"]},
    {"booth_id": "A1001", "company_name": "중복 부스", "category": "유제품"},
    {"booth_id": "B2404", "company_name": "베이글하우스", "category": None},
    {"booth_id": None, "company_name": "아이디 없음"},
    {"booth_id": "C3001", "company_name": ""},
]


def test_run_ingestion_normalizes_catalog(tmp_path: Path):
    raw_path = tmp_path / "raw.jsonl"
    raw_path.write_text(
        "\n".join(json.dumps(row, ensure_ascii=False) for row in RAW_ROWS),
        encoding="utf-8",
    )
    cfg = IngestionConfig(raw_path=raw_path, processed_data_dir=tmp_path / "processed")

    output_path = run_ingestion(config=cfg)

    assert output_path.is_file(), "Processed catalog should be created"
    df = pd.read_json(output_path, lines=True, dtype={"id": str})
    assert list(df.columns) == CANONICAL_COLUMNS
    assert df["id"].tolist() == ["A1001", "B2404"]
    assert df.loc[0, "company_name_kor"] == "치즈공방"
    assert df.loc[0, "company_description"] == "수제 치즈 전문"
    assert df.loc[0, "products"] == "까망베르, 브리"


def test_processed_catalog_loads_into_booth_frame(tmp_path: Path):
    raw_path = tmp_path / "raw.jsonl"
    raw_path.write_text(
        "\n".join(json.dumps(row, ensure_ascii=False) for row in RAW_ROWS),
        encoding="utf-8",
    )
    cfg = IngestionConfig(raw_path=raw_path, processed_data_dir=tmp_path / "processed")

    df = load_booth_frame(run_ingestion(config=cfg))

    assert df["id"].tolist() == ["A1001", "B2404"]
    assert pd.isna(df.loc[1, "category"])
    assert df.loc[1, "products_description"] == ""
