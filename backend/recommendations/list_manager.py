"""
Displayed recommendation list.

A fixed-size window of ranked recommendations backed by an overflow queue.
Deleting a displayed entry backfills it from the queue; once the queue is
used up the window shrinks and deletion is disabled for the session.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, NamedTuple

from .config import DISPLAY_COUNT
from .errors import ExternalServiceFailure, InvalidTransition
from .ledger import EvaluationLedger
from .models import EvaluationRecord, RankedRecommendation

if TYPE_CHECKING:
    from ..storage.base import EvaluationStore

logger = logging.getLogger(__name__)


class EvaluationProgress(NamedTuple):
    evaluated_count: int
    is_complete: bool


def dedupe_ranked(ranked: Iterable[RankedRecommendation]) -> list[RankedRecommendation]:
    """Drop repeated booth ids, keeping the first occurrence."""
    seen: set[str] = set()
    result: list[RankedRecommendation] = []
    for rec in ranked:
        if rec.booth_id in seen:
            continue
        seen.add(rec.booth_id)
        result.append(rec)
    return result


class RecommendationListManager:
    def __init__(self, user_id: int, store: EvaluationStore, display_count: int = DISPLAY_COUNT):
        self.user_id = user_id
        self.store = store
        self.display_count = display_count
        self._display: list[RankedRecommendation] = []
        self._overflow: list[RankedRecommendation] = []
        self._deleted: set[str] = set()
        self._exhausted = False

    # ── state ────────────────────────────────────────────────────────────

    @property
    def display_set(self) -> list[RankedRecommendation]:
        return list(self._display)

    @property
    def overflow_queue(self) -> list[RankedRecommendation]:
        return list(self._overflow)

    @property
    def deleted_ids(self) -> set[str]:
        return set(self._deleted)

    @property
    def remaining_deletions(self) -> int:
        return len(self._overflow)

    @property
    def can_delete(self) -> bool:
        return bool(self._display) and not self._exhausted

    def is_displayed(self, booth_id: str) -> bool:
        return any(rec.booth_id == booth_id for rec in self._display)

    # ── transitions ──────────────────────────────────────────────────────

    def load(
        self,
        ranked: Iterable[RankedRecommendation],
        snapshot: Iterable[EvaluationRecord] = (),
    ) -> None:
        """Rebuild the window and queue from a ranked list and an evaluation snapshot."""
        ledger = EvaluationLedger(snapshot)
        deduped = dedupe_ranked(ranked)
        visible = [rec for rec in deduped if not ledger.is_deleted(rec.booth_id)]

        self._display = visible[: self.display_count]
        self._overflow = visible[self.display_count :]
        self._deleted = ledger.deleted_ids()
        # Tombstones that already drained the queue leave deletion disabled.
        self._exhausted = not self._overflow and len(visible) < len(deduped)

        logger.info(
            "Loaded recommendations for user %s: display=%d overflow=%d deleted=%d",
            self.user_id, len(self._display), len(self._overflow), len(self._deleted),
        )

    def delete(self, booth_id: str) -> RankedRecommendation | None:
        """
        Delete a displayed, unevaluated entry and backfill from the queue.

        The evaluation snapshot is re-read and the tombstone persisted before
        any local state changes, so a failure leaves the list untouched.
        Returns the backfilled entry, or ``None`` when the window shrank.
        """
        if booth_id in self._deleted:
            raise self._reject(booth_id, "already deleted")
        if not self.is_displayed(booth_id):
            raise self._reject(booth_id, "not in the display set")
        if self._exhausted:
            raise self._reject(booth_id, "no deletions remaining")

        ledger = EvaluationLedger(self._read_snapshot())
        if ledger.is_evaluated(booth_id):
            raise self._reject(booth_id, "already evaluated")

        try:
            self.store.upsert_tombstone(self.user_id, booth_id)
        except ExternalServiceFailure:
            raise
        except Exception as exc:
            raise ExternalServiceFailure(f"Could not persist tombstone for {booth_id}") from exc

        self._display = [rec for rec in self._display if rec.booth_id != booth_id]
        self._deleted.add(booth_id)

        replacement: RankedRecommendation | None = None
        if self._overflow:
            replacement = self._overflow.pop(0)
            self._display.append(replacement)
        if not self._overflow:
            self._exhausted = True

        logger.info(
            "User %s deleted %s; replacement=%s remaining=%d",
            self.user_id, booth_id,
            replacement.booth_id if replacement else None, len(self._overflow),
        )
        return replacement

    def evaluation_progress(self, snapshot: Iterable[EvaluationRecord]) -> EvaluationProgress:
        """
        Count evaluated entries of the current window.

        Completion is measured against the current window size, which is
        smaller than ``display_count`` once the queue ran out.
        """
        ledger = EvaluationLedger(snapshot)
        evaluated = sum(1 for rec in self._display if ledger.is_evaluated(rec.booth_id))
        is_complete = bool(self._display) and evaluated == len(self._display)
        return EvaluationProgress(evaluated, is_complete)

    # ── helpers ──────────────────────────────────────────────────────────

    def _read_snapshot(self) -> list[EvaluationRecord]:
        try:
            return self.store.get_all(self.user_id)
        except ExternalServiceFailure:
            raise
        except Exception as exc:
            raise ExternalServiceFailure(f"Could not read evaluations for user {self.user_id}") from exc

    def _reject(self, booth_id: str, reason: str) -> InvalidTransition:
        logger.info("Rejected delete of %s for user %s: %s", booth_id, self.user_id, reason)
        return InvalidTransition(f"Cannot delete {booth_id}: {reason}")
