from __future__ import annotations

import datetime as dt
import logging

from pydantic import BaseModel, ConfigDict

from .clients import StorageCollaborator, StorageError
from .schemas import Outcome, Submission, as_naive_utc, utcnow

logger = logging.getLogger(__name__)

DETAILS_TEMPLATE = (
    "Plagiarism detected: identical content was submitted earlier by student {student} ({submitted_at})."
)


class PlagiarismVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_plagiarism: bool
    details: str | None = None
    outcome: Outcome = Outcome.OK
    matched: Submission | None = None
    reason: str | None = None

    @classmethod
    def clean(cls) -> "PlagiarismVerdict":
        return cls(has_plagiarism=False)

    @classmethod
    def degraded(cls, reason: str) -> "PlagiarismVerdict":
        return cls(has_plagiarism=False, outcome=Outcome.DEGRADED, reason=reason)


def find_earliest_match(
    submissions: list[Submission],
    file_hash: str,
    own_work_id: str,
    now: dt.datetime,
) -> Submission | None:
    candidates = [
        s
        for s in submissions
        if s.id != own_work_id and s.file_hash == file_hash and as_naive_utc(s.submitted_at) < now
    ]
    if not candidates:
        return None
    # самая ранняя сдача; при равном времени детерминированно по id
    return min(candidates, key=lambda s: (as_naive_utc(s.submitted_at), s.id))


class PlagiarismDetector:
    def __init__(self, storage: StorageCollaborator):
        self.storage = storage

    async def detect(
        self,
        file_hash: str,
        assignment_id: str,
        own_work_id: str,
        now: dt.datetime | None = None,
    ) -> PlagiarismVerdict:
        if not file_hash:
            return PlagiarismVerdict.clean()
        now = as_naive_utc(now) if now is not None else utcnow()
        try:
            submissions = await self.storage.list_submissions(assignment_id)
        except StorageError as e:
            # недоступность хранилища не валит анализ: считаем, что плагиата нет
            logger.warning("Plagiarism check skipped for work %s: %s", own_work_id, e)
            return PlagiarismVerdict.degraded(str(e))

        earlier = find_earliest_match(submissions, file_hash, own_work_id, now)
        if earlier is None:
            return PlagiarismVerdict.clean()

        details = DETAILS_TEMPLATE.format(
            student=earlier.student_name,
            submitted_at=as_naive_utc(earlier.submitted_at).strftime("%Y-%m-%d %H:%M:%S"),
        )
        return PlagiarismVerdict(has_plagiarism=True, details=details, matched=earlier)
