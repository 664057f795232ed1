from __future__ import annotations

from datetime import datetime
from typing import Any, Iterator

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FollowUpAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str
    answer: str


class InterestProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    age: int | None = Field(default=None, ge=0, le=120)
    gender: str | None = None
    visit_purpose: str | None = None
    interests: dict[str, list[str]] = Field(default_factory=dict)
    specific_goal: str | None = None
    has_companion: bool = False
    companion_count: int | None = Field(default=None, ge=0)
    has_children: bool = False
    child_interests: list[str] = Field(default_factory=list)
    has_pets: bool = False
    pet_types: list[str] = Field(default_factory=list)
    has_allergies: bool = False
    allergies: str | None = None
    followup: list[FollowUpAnswer] = Field(default_factory=list)

    @field_validator("interests")
    @classmethod
    def _dedupe_tags(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        # Tags behave as a set per category; keep first occurrence order.
        # A blank tag is a substring of every keyword, so it is dropped.
        cleaned: dict[str, list[str]] = {}
        for category, tags in value.items():
            kept = list(dict.fromkeys(t.strip() for t in tags if t and t.strip()))
            if kept:
                cleaned[category] = kept
        return cleaned

    @property
    def interest_count(self) -> int:
        return sum(len(tags) for tags in self.interests.values())


class Candidate(BaseModel):
    booth_id: str
    similarity_score: float
    source_sectors: set[str] = Field(default_factory=set)
    booth: dict[str, Any] = Field(default_factory=dict)


class CandidatePool:
    """Deduplicated candidates ordered by descending similarity."""

    def __init__(self, candidates: list[Candidate] | None = None):
        self._candidates: list[Candidate] = list(candidates or [])
        self._by_id: dict[str, Candidate] = {c.booth_id: c for c in self._candidates}

    def __len__(self) -> int:
        return len(self._candidates)

    def __iter__(self) -> Iterator[Candidate]:
        return iter(self._candidates)

    def __contains__(self, booth_id: object) -> bool:
        return booth_id in self._by_id

    def get(self, booth_id: str) -> Candidate | None:
        return self._by_id.get(booth_id)

    def booth_ids(self) -> list[str]:
        return [c.booth_id for c in self._candidates]

    def sector_distribution(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for c in self._candidates:
            for sector in c.source_sectors:
                counts[sector] = counts.get(sector, 0) + 1
        return counts


class RankedRecommendation(BaseModel):
    booth_id: str
    rationale: str = ""
    rank: int = Field(..., ge=1)


class EvaluationRecord(BaseModel):
    """One persisted (user, booth) evaluation row."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    booth_id: str
    booth_rating: int | None = Field(default=None, ge=1, le=5)
    recommendation_rating: int | None = Field(default=None, ge=1, le=5, alias="rec_rating")
    deleted: bool = Field(default=False, alias="is_deleted")
    deleted_at: datetime | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    is_irrelevant: bool | None = None
    is_booth_wrong_info: bool | None = None

    @field_validator("booth_id", mode="before")
    @classmethod
    def _coerce_booth_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("deleted", mode="before")
    @classmethod
    def _null_is_not_deleted(cls, value: Any) -> Any:
        return False if value is None else value

    @property
    def has_rating(self) -> bool:
        return self.booth_rating is not None or self.recommendation_rating is not None


# ── API models ───────────────────────────────────────────────────────────


class FollowUpRequest(BaseModel):
    profile: InterestProfile


class FollowUpResponse(BaseModel):
    summary: str
    questions: list[str]


class GenerateRequest(BaseModel):
    profile: InterestProfile


class RecommendationOut(BaseModel):
    booth_id: str
    rank: int
    rationale: str
    company_name: str | None = None
    category: str | None = None


class DisplayResponse(BaseModel):
    user_id: int
    recommendations: list[RecommendationOut]
    overflow_count: int
    remaining_deletions: int
    can_delete: bool
    pool_size: int | None = None
    used_fallback: bool | None = None


class DeleteResponse(BaseModel):
    deleted: str
    replacement: RecommendationOut | None
    remaining_deletions: int
    can_delete: bool


class RatingRequest(BaseModel):
    booth_id: str = Field(..., min_length=1)
    booth_rating: int | None = Field(default=None, ge=1, le=5)
    recommendation_rating: int | None = Field(default=None, ge=1, le=5)
    is_irrelevant: bool | None = None
    is_booth_wrong_info: bool | None = None


class ProgressResponse(BaseModel):
    evaluated_count: int
    total: int
    is_complete: bool


class BoothOut(BaseModel):
    id: str
    company_name_kor: str
    category: str | None = None
    company_description: str = ""
    products: str = ""
    products_description: str = ""


class SimilarBoothOut(BaseModel):
    booth_id: str
    similarity: float
    company_name: str | None = None
    category: str | None = None
