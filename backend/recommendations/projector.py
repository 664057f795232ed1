"""
Profile projection.

Turns a visitor's interest profile into query text: one compact seed per
sector for the similarity search, a whole-profile seed for the fallback
query, and a longer visitor description for the ranking service.
"""
from __future__ import annotations

from .models import InterestProfile
from .sectors import keywords_for


def _matches_sector(tag: str, keywords: frozenset[str]) -> bool:
    # Either-direction substring match, case-sensitive. Short keywords such
    # as "차" or "소" can match unrelated tags.
    return any(keyword in tag or tag in keyword for keyword in keywords)


def _context_flags(profile: InterestProfile) -> list[str]:
    items: list[str] = []

    if profile.has_companion:
        if profile.companion_count:
            items.append(f"동행자 {profile.companion_count}명")
        else:
            items.append("동행자가 있어요")
    else:
        items.append("혼자 방문")

    if profile.has_children:
        items.append("자녀가 있어요")
        if profile.child_interests:
            items.append(f"자녀 관심사: {', '.join(profile.child_interests)}")
    else:
        items.append("자녀 없음")

    if profile.has_pets:
        items.append("반려동물이 있어요")
        if profile.pet_types:
            items.append(f"반려동물 종류: {', '.join(profile.pet_types)}")
    else:
        items.append("반려동물 없음")

    if profile.has_allergies:
        items.append("알러지가 있어요")
        if profile.allergies:
            items.append(f"알러지 정보: {profile.allergies}")
    else:
        items.append("알러지 없음")

    return items


def _render(profile: InterestProfile, interest_parts: list[str]) -> str:
    parts: list[str] = []
    if profile.specific_goal:
        parts.append(f"구체적 목표: {profile.specific_goal}")
    parts.append(f"관심사: {'; '.join(interest_parts)}")
    parts.append(f"선택 항목: {', '.join(_context_flags(profile))}")
    return " ".join(parts)


def relevant_interests(profile: InterestProfile, sector: str) -> dict[str, list[str]]:
    """Return the selected tags, per category, that overlap ``sector``'s keywords."""
    keywords = keywords_for(sector)
    relevant: dict[str, list[str]] = {}
    for category, tags in profile.interests.items():
        matched = [t for t in tags if _matches_sector(t, keywords)]
        if matched:
            relevant[category] = matched
    return relevant


def project(profile: InterestProfile, sector: str) -> str:
    """
    Build the similarity-query seed for one sector.

    Only tags overlapping the sector's keywords are included. The goal and
    the contextual flags are appended to every non-empty seed but do not
    make a sector relevant on their own. Returns ``""`` when no tag matches.
    """
    relevant = relevant_interests(profile, sector)
    if not relevant:
        return ""
    interest_parts = [f"{category}: {', '.join(tags)}" for category, tags in relevant.items()]
    return _render(profile, interest_parts)


def profile_to_text(profile: InterestProfile) -> str:
    """Whole-profile seed used when no sector is active."""
    interest_parts = [
        f"{category}: {', '.join(tags)}" for category, tags in profile.interests.items() if tags
    ]
    return _render(profile, interest_parts)


def visitor_info(profile: InterestProfile) -> str:
    """Multi-line visitor description handed to the ranking service."""
    lines: list[str] = []
    if profile.age is not None:
        lines.append(f"나이: {profile.age}세")
    if profile.gender:
        lines.append(f"성별: {profile.gender}")
    if profile.visit_purpose:
        lines.append(f"방문 목적: {profile.visit_purpose}")
    if profile.specific_goal:
        lines.append(f"구체적 목표: {profile.specific_goal}")

    entries = [(c, tags) for c, tags in profile.interests.items() if tags]
    if entries:
        lines.append("")
        lines.append("선택한 관심사:")
        for category, tags in entries:
            lines.append(f"  {category}: {', '.join(tags)}")

    lines.append("")
    lines.append(f"선택 항목: {', '.join(_context_flags(profile))}")

    if profile.followup:
        lines.append("")
        lines.append("추가 질문 및 답변:")
        for i, pair in enumerate(profile.followup, start=1):
            lines.append(f"Q{i}. {pair.question}")
            lines.append(f"A{i}. {pair.answer}")

    return "\n".join(lines)
