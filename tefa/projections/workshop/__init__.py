"""
TEFA Projections — Workshop Read Model
======================================
Dashboard and front-desk queries over the EntityStore.

Every query reads live store state; nothing is cached between
calls, so results always reflect the latest applied batch.

Provides:
- status_counts()        → {pending, in_progress, ready, completed}
- search_history(term)   → List[ServiceJob], newest entry first
- track(term)            → ServiceJob | None  (plate or code lookup)
- snapshot()             → dict summary
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from tefa.core.store import (
    IN_PROGRESS_STATUSES,
    EntityStore,
    JobStatus,
    ServiceJob,
)


def _compact_plate(value: str) -> str:
    return "".join(value.split()).upper()


class WorkshopReadModel:

    projection_name = "workshop_read_model"

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    def status_counts(self) -> Dict[str, int]:
        counts = {"pending": 0, "in_progress": 0, "ready": 0, "completed": 0}
        for job in self._store.list_jobs():
            if job.status == JobStatus.PENDING:
                counts["pending"] += 1
            elif job.status in IN_PROGRESS_STATUSES:
                counts["in_progress"] += 1
            elif job.status == JobStatus.READY:
                counts["ready"] += 1
            elif job.status == JobStatus.COMPLETED:
                counts["completed"] += 1
        return counts

    def search_history(self, term: str) -> List[ServiceJob]:
        """Case-insensitive substring match on plate, owner or code."""
        needle = (term or "").strip().lower()
        if not needle:
            return []
        matches = [
            job for job in self._store.list_jobs()
            if needle in job.plate_number.lower()
            or needle in job.owner_name.lower()
            or needle in job.unique_code.lower()
        ]
        return sorted(matches, key=lambda j: j.entry_time, reverse=True)

    def track(self, term: str) -> Optional[ServiceJob]:
        """
        Public status lookup by plate (spaces ignored) or job code.
        """
        if not term or not term.strip():
            return None
        plate = _compact_plate(term)
        code = term.strip().upper()
        for job in self._store.list_jobs():
            if _compact_plate(job.plate_number) == plate:
                return job
            if job.unique_code.upper() == code:
                return job
        return None

    def snapshot(self) -> Dict[str, Any]:
        jobs = self._store.list_jobs()
        return {
            "job_count": len(jobs),
            "status_counts": self.status_counts(),
            "open_jobs": sum(1 for j in jobs if not j.is_closed),
        }
