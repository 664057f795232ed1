from unittest.mock import patch

import numpy as np
import pandas as pd
import pytest

from backend.embeddings import encoder
from backend.embeddings.config import DEFAULT_EMBEDDING_CONFIG, EmbeddingConfig
from backend.embeddings.index import LocalBoothIndex
from backend.embeddings.precompute import build_booth_text
from backend.recommendations.cache import BoothCatalog
from backend.recommendations.data_store import EMBEDDINGS_NPY, load_embeddings

FRAME = pd.DataFrame([
    {"id": "A1", "company_name_kor": "치즈공방", "category": "유제품"},
    {"id": "A2", "company_name_kor": "베이글하우스", "category": "베이커리"},
    {"id": "A3", "company_name_kor": "제철과일", "category": "신선식품"},
])

EMBEDDINGS = np.array([
    [1.0, 0.0, 0.0],
    [0.8, 0.6, 0.0],
    [0.0, 0.0, 1.0],
])


def _index() -> LocalBoothIndex:
    return LocalBoothIndex(BoothCatalog(loader=lambda: FRAME), EMBEDDINGS)


def test_index_orders_by_similarity_and_applies_threshold():
    rows = _index().search([1.0, 0.0, 0.0], match_threshold=0.3, match_count=10)

    assert [r["id"] for r in rows] == ["A1", "A2"]
    assert rows[0]["similarity"] == pytest.approx(1.0)
    assert rows[1]["similarity"] == pytest.approx(0.8)
    assert rows[0]["company_name_kor"] == "치즈공방"


def test_index_respects_match_count():
    rows = _index().search([1.0, 0.0, 0.0], match_threshold=-1.0, match_count=1)

    assert [r["id"] for r in rows] == ["A1"]


def test_index_rejects_misaligned_embeddings():
    index = LocalBoothIndex(BoothCatalog(loader=lambda: FRAME), EMBEDDINGS[:2])

    with pytest.raises(ValueError):
        index.search([1.0, 0.0, 0.0], 0.3, 5)


def test_build_booth_text_skips_missing_fields():
    row = pd.Series({
        "company_name_kor": "치즈공방",
        "category": None,
        "company_description": "수제 치즈",
        "products": "",
        "products_description": "까망베르, 브리",
    })

    assert build_booth_text(row) == "치즈공방 수제 치즈 까망베르, 브리"


@patch("backend.embeddings.encoder.SentenceTransformer")
def test_encode_text_loads_model_once(mock_st_cls):
    mock_st_cls.return_value.encode.return_value = np.zeros(384)
    config = EmbeddingConfig(model_name="test-model")
    encoder._models.pop("test-model", None)

    vec = encoder.encode_text("치즈 관심사", config)
    encoder.encode_text("우유 관심사", config)

    assert vec.shape == (384,)
    mock_st_cls.assert_called_once_with("test-model")
    encoder._models.pop("test-model", None)


def test_app_reads_embeddings_where_precompute_writes_them(tmp_path):
    assert EMBEDDINGS_NPY == DEFAULT_EMBEDDING_CONFIG.embeddings_path

    path = tmp_path / "booth_embeddings.npy"
    assert load_embeddings(path) is None
    np.save(path, EMBEDDINGS)
    assert np.array_equal(load_embeddings(path), EMBEDDINGS)
