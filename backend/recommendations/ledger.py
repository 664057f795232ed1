from __future__ import annotations

from typing import Iterable

from .models import EvaluationRecord


class EvaluationLedger:
    """Read-only view over one user's evaluation snapshot, keyed by booth id."""

    def __init__(self, records: Iterable[EvaluationRecord] = ()):
        self._records: dict[str, EvaluationRecord] = {}
        for record in records:
            # Later rows win, matching an upsert-per-(user, booth) store.
            self._records[record.booth_id] = record

    def __len__(self) -> int:
        return len(self._records)

    def get(self, booth_id: str) -> EvaluationRecord | None:
        return self._records.get(booth_id)

    def is_deleted(self, booth_id: str) -> bool:
        record = self._records.get(booth_id)
        return record is not None and record.deleted

    def is_evaluated(self, booth_id: str) -> bool:
        """True when the booth has a live record with at least one rating."""
        record = self._records.get(booth_id)
        return record is not None and not record.deleted and record.has_rating

    def deleted_ids(self) -> set[str]:
        return {booth_id for booth_id, r in self._records.items() if r.deleted}

    def evaluated_ids(self) -> set[str]:
        return {booth_id for booth_id in self._records if self.is_evaluated(booth_id)}
