from __future__ import annotations

import pandas as pd

from backend.recommendations.cache import BoothCatalog

FRAME = pd.DataFrame([
    {"id": "A1001", "company_name_kor": "치즈공방", "category": "유제품"},
    {"id": "B2404", "company_name_kor": "베이글하우스", "category": None},
])


class CountingLoader:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return FRAME


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_catalog_reads_through_once():
    loader = CountingLoader()
    catalog = BoothCatalog(loader=loader)

    assert catalog.get("A1001")["company_name_kor"] == "치즈공방"
    assert catalog.get("B2404")["company_name_kor"] == "베이글하우스"
    assert len(catalog.all()) == 2
    assert loader.calls == 1

    stats = catalog.stats()
    assert stats["misses"] == 1
    assert stats["hits"] == 2
    assert stats["size"] == 2


def test_catalog_unknown_booth_is_none():
    catalog = BoothCatalog(loader=CountingLoader())
    assert catalog.get("Z0000") is None


def test_catalog_reloads_after_ttl():
    loader = CountingLoader()
    clock = FakeClock()
    catalog = BoothCatalog(loader=loader, ttl=60, clock=clock)

    catalog.frame()
    clock.now += 59
    catalog.frame()
    assert loader.calls == 1

    clock.now += 2
    catalog.frame()
    assert loader.calls == 2


def test_catalog_invalidate_forces_reload():
    loader = CountingLoader()
    catalog = BoothCatalog(loader=loader)

    catalog.get("A1001")
    catalog.invalidate()
    catalog.get("A1001")

    assert loader.calls == 2


def test_catalogs_do_not_share_state():
    first = BoothCatalog(loader=CountingLoader())
    second = BoothCatalog(loader=lambda: FRAME.iloc[:1])

    assert first.get("B2404") is not None
    assert second.get("B2404") is None


SEARCH_FRAME = pd.DataFrame([
    {"id": "C1", "company_name_kor": "그릭요거트 농장", "category": "유제품", "products": "플레인"},
    {"id": "C2", "company_name_kor": "우리밀 베이커리", "category": "베이커리", "products": "요거트 케이크"},
    {"id": "C3", "company_name_kor": "Yogurt Lab", "category": None, "products": None},
    {"id": "C4", "company_name_kor": "한우마을", "category": "축산", "products": "등심"},
])


def test_search_puts_name_matches_first():
    catalog = BoothCatalog(loader=lambda: SEARCH_FRAME)

    assert [b["id"] for b in catalog.search("요거트")] == ["C1", "C2"]
    assert [b["id"] for b in catalog.search("베이커리")] == ["C2"]


def test_search_is_case_insensitive_and_literal():
    catalog = BoothCatalog(loader=lambda: SEARCH_FRAME)

    assert [b["id"] for b in catalog.search("yogurt")] == ["C3"]
    assert catalog.search("(") == []


def test_blank_search_returns_nothing():
    catalog = BoothCatalog(loader=lambda: SEARCH_FRAME)

    assert catalog.search("   ") == []
