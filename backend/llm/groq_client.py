from __future__ import annotations

import json
import logging
from typing import Any

from groq import Groq

from ..recommendations.errors import ExternalServiceFailure
from ..recommendations.models import CandidatePool, FollowUpResponse, RankedRecommendation
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

RANKING_PROMPT = (
    "You are a booth recommendation engine for a food trade exhibition. "
    "Given a visitor description and a list of candidate booths, pick the "
    "{count} booths that fit the visitor best, ordered from best to worst, "
    "and explain each choice in two or three sentences written in Korean.\n\n"
    "Return ONLY valid JSON in this exact format:\n"
    '{{"recommendations": [{{"id": "<booth_id>", "rationale": "<why this booth fits>"}}]}}\n'
    "Use only ids from the candidate list. Every id must be different."
)

FOLLOWUP_PROMPT = (
    "You are an exhibition booth recommendation expert. Read the visitor "
    "description, summarize their interests in three or four sentences, and "
    "write three to five open follow-up questions whose answers would make "
    "the booth recommendations more precise. Write in Korean.\n\n"
    "Return ONLY valid JSON in this exact format:\n"
    '{"summary": "<summary>", "questions": ["<question 1>", "<question 2>"]}'
)


def _build_ranking_message(visitor_info: str, pool: CandidatePool) -> str:
    lines = ["## Visitor", visitor_info.strip()]

    lines.append("\n## Candidate Booths")
    lines.append("| ID | Company | Category | Sectors | Products | Description |")
    lines.append("|---|---|---|---|---|---|")
    for c in pool:
        booth = c.booth
        sectors = ", ".join(sorted(c.source_sectors))
        lines.append(
            f"| {c.booth_id} | {booth.get('company_name_kor', '')} | {booth.get('category') or '-'} "
            f"| {sectors} | {booth.get('products', '')} | {booth.get('company_description', '')} |"
        )

    return "\n".join(lines)


def _chat_json(config: LLMConfig, system_prompt: str, user_message: str) -> dict[str, Any]:
    if not config.enabled or not config.api_key:
        raise ExternalServiceFailure("Groq LLM is not configured")

    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout)
        response = client.chat.completions.create(
            model=config.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            response_format={"type": "json_object"},
        )
        content = response.choices[0].message.content or ""
        parsed = json.loads(content)
    except Exception as exc:
        logger.warning("Groq LLM call failed", exc_info=True)
        raise ExternalServiceFailure("Groq LLM call failed") from exc

    if not isinstance(parsed, dict):
        raise ExternalServiceFailure("Groq LLM returned a non-object JSON payload")
    return parsed


def rank_booths(
    pool: CandidatePool,
    visitor_info: str,
    count: int = 20,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> list[RankedRecommendation]:
    """
    Ask Groq to rank the pool and justify each pick.

    Returns recommendations in LLM order. Ids outside the pool are dropped;
    repeated ids are passed through for the list manager to collapse.
    Raises ``ExternalServiceFailure`` on any API or parsing failure.
    """
    if len(pool) == 0:
        return []

    parsed = _chat_json(
        config,
        RANKING_PROMPT.format(count=count),
        _build_ranking_message(visitor_info, pool),
    )

    items = parsed.get("recommendations")
    if not isinstance(items, list):
        raise ExternalServiceFailure("Groq LLM response has no recommendations list")

    results: list[RankedRecommendation] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        booth_id = str(item.get("id", "")).strip()
        if not booth_id:
            continue
        if booth_id not in pool:
            logger.warning("Dropping ranked booth %s not present in candidate pool", booth_id)
            continue
        results.append(RankedRecommendation(
            booth_id=booth_id,
            rationale=str(item.get("rationale", "")),
            rank=len(results) + 1,
        ))

    if len(results) < count:
        logger.info("Ranking returned %d of %d requested booths", len(results), count)
    return results


def generate_followup(visitor_info: str, config: LLMConfig = DEFAULT_LLM_CONFIG) -> FollowUpResponse:
    """Summarize the visitor and propose follow-up questions."""
    parsed = _chat_json(config, FOLLOWUP_PROMPT, visitor_info)
    questions = [str(q) for q in parsed.get("questions", []) if str(q).strip()]
    return FollowUpResponse(summary=str(parsed.get("summary", "")), questions=questions)
