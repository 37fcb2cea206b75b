from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest

from file_analysis.clients import FileServiceUnavailable, SubmissionNotFound
from file_analysis.db import create_db_engine, create_session_factory, init_db
from file_analysis.repository import ReportRepository
from file_analysis.schemas import Submission


class FakeStorage:
    """File Storing Service в памяти."""

    def __init__(self) -> None:
        self.submissions: dict[str, list[Submission]] = {}
        self.files: dict[str, bytes] = {}
        self.offline = False
        self.list_calls: list[str] = []

    def add_submission(
        self,
        work_id: str,
        *,
        student: str,
        assignment_id: str,
        file_hash: str,
        submitted_at: dt.datetime,
        content: bytes | None = None,
    ) -> Submission:
        submission = Submission(
            id=work_id,
            student_name=student,
            assignment_id=assignment_id,
            file_hash=file_hash,
            submitted_at=submitted_at,
        )
        self.submissions.setdefault(assignment_id, []).append(submission)
        if content is not None:
            self.files[work_id] = content
        return submission

    async def list_submissions(self, assignment_id: str) -> list[Submission]:
        self.list_calls.append(assignment_id)
        if self.offline:
            raise FileServiceUnavailable("File service unavailable: connection refused")
        return list(self.submissions.get(assignment_id, []))

    async def download_file(self, work_id: str) -> bytes:
        if self.offline:
            raise FileServiceUnavailable("File service unavailable: connection refused")
        if work_id not in self.files:
            raise SubmissionNotFound(f"Not found: {work_id}")
        return self.files[work_id]


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def session_factory(tmp_path: Path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'analysis.db'}")
    init_db(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def repository(session_factory) -> ReportRepository:
    return ReportRepository(session_factory)
