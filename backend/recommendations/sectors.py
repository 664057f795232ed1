"""
Sector catalog.

Each sector groups the interest tags offered on the visitor form so that
one similarity query can be issued per theme. The catalog is static and
shared by the whole process.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Sector:
    name: str
    keywords: frozenset[str]


_SECTOR_KEYWORDS: dict[str, tuple[str, ...]] = {
    "신선식품": ("과일", "채소", "쌀/잡곡", "견과류", "소", "돼지", "닭", "해산물", "수산가공품"),
    "가공식품": ("냉동/냉장식품", "밀키트", "도시락", "레토르트", "통조림", "인스턴트", "면류", "장류/소스"),
    "베이커리 & 디저트": (
        "식빵", "페이스트리", "베이글", "제과제빵 재료", "케이크", "아이스크림",
        "푸딩", "젤리", "초콜릿", "과자", "쿠키",
    ),
    "유제품 & 음료 & 주류": (
        "우유", "치즈", "요거트", "버터", "크림", "원두", "인스턴트 커피", "차",
        "주스", "탄산음료", "기능성 음료", "맥주", "와인", "전통주", "위스키",
    ),
    "건강 & 웰빙": (
        "비타민", "영양제", "프로틴", "건강즙", "홍삼", "고령친화식품",
        "영양보충식", "저작용이식품", "유기농 인증", "친환경 인증",
    ),
    "식이 스타일": (
        "매운맛", "짠맛", "단맛", "신맛", "담백한맛", "감칠맛", "구이/로스팅",
        "찜/삶기", "튀김", "조림", "채식/비건", "저탄수", "저염식", "저당식", "고단백",
    ),
}

_SECTORS: tuple[Sector, ...] = tuple(
    Sector(name=name, keywords=frozenset(words)) for name, words in _SECTOR_KEYWORDS.items()
)
_BY_NAME: dict[str, Sector] = {s.name: s for s in _SECTORS}


def all_sectors() -> tuple[Sector, ...]:
    """Return every sector in catalog order."""
    return _SECTORS


def sector_names() -> list[str]:
    return [s.name for s in _SECTORS]


def keywords_for(sector: str) -> frozenset[str]:
    """Return the keyword set of ``sector``. Raises ``KeyError`` for unknown names."""
    try:
        return _BY_NAME[sector].keywords
    except KeyError:
        raise KeyError(f"Unknown sector: {sector!r}") from None
