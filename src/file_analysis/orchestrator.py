"""Жизненный цикл отчёта: Pending -> Processing -> Completed / Failed в фоновом пуле."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Awaitable, Callable

from pydantic import BaseModel, ConfigDict

from .analyzer import decode_text, word_frequency
from .archiver import ReportArchiver
from .clients import StorageCollaborator, StorageError
from .plagiarism import PlagiarismDetector
from .repository import ReportRepository
from .schemas import (
    AnalysisReport,
    Outcome,
    QueueStats,
    ReportInfo,
    ReportStatus,
    WorkReportsResponse,
    utcnow,
)

logger = logging.getLogger(__name__)

WARN_FILE_SERVICE_UNAVAILABLE = "file_service_unavailable_for_text_analysis"
WARN_NOT_TEXT = "file_is_not_text"
WARN_PLAGIARISM_UNAVAILABLE = "plagiarism_check_unavailable"


class AnalysisBacklogFull(RuntimeError):
    pass


class AnalysisJob(BaseModel):
    model_config = ConfigDict(frozen=True)

    report_id: str
    work_id: str
    file_hash: str
    assignment_id: str


class ContentResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: Outcome
    text: str | None = None
    reason: str | None = None


class WorkerPool:
    def __init__(self, handler: Callable[[AnalysisJob], Awaitable[None]], workers: int = 4, backlog: int = 100):
        if workers < 1:
            raise ValueError("workers must be >= 1")
        if backlog < 1:
            raise ValueError("backlog must be >= 1")
        self._handler = handler
        self.workers = workers
        self.capacity = backlog
        self._queue: asyncio.Queue[AnalysisJob] | None = None
        self._tasks: list[asyncio.Task] = []
        self._in_flight = 0

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    async def start(self) -> None:
        if self._tasks:
            return
        self._queue = asyncio.Queue(maxsize=self.capacity)
        self._tasks = [
            asyncio.create_task(self._worker(self._queue), name=f"analysis-worker-{n}") for n in range(self.workers)
        ]
        logger.info("Analysis worker pool started: %d workers, backlog %d", self.workers, self.capacity)

    def full(self) -> bool:
        return self._queue is not None and self._queue.full()

    def submit(self, job: AnalysisJob) -> None:
        if self._queue is None:
            raise RuntimeError("Analysis worker pool is not running")
        try:
            self._queue.put_nowait(job)
        except asyncio.QueueFull:
            raise AnalysisBacklogFull(f"Analysis backlog is full ({self.capacity} jobs waiting)") from None

    async def _worker(self, queue: asyncio.Queue[AnalysisJob]) -> None:
        while True:
            job = await queue.get()
            self._in_flight += 1
            try:
                await self._handler(job)
            except Exception:
                # упавшая задача не должна убивать воркер
                logger.exception("Analysis job for report %s crashed", job.report_id)
            finally:
                self._in_flight -= 1
                queue.task_done()

    async def join(self) -> None:
        if self._queue is not None:
            await self._queue.join()

    async def stop(self, drain_timeout: float = 5.0) -> None:
        if not self._tasks:
            return
        assert self._queue is not None
        try:
            await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Stopping analysis workers with %d queued and %d running jobs",
                self._queue.qsize(),
                self._in_flight,
            )
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self._queue = None

    def stats(self) -> QueueStats:
        return QueueStats(
            workers=self.workers,
            capacity=self.capacity,
            backlog=self._queue.qsize() if self._queue is not None else 0,
            in_flight=self._in_flight,
        )


class AnalysisOrchestrator:
    def __init__(
        self,
        repository: ReportRepository,
        storage: StorageCollaborator,
        archiver: ReportArchiver,
        detector: PlagiarismDetector | None = None,
        workers: int = 4,
        backlog: int = 100,
        drain_timeout: float = 5.0,
    ):
        self.repository = repository
        self.storage = storage
        self.archiver = archiver
        self.detector = detector or PlagiarismDetector(storage)
        self.pool = WorkerPool(self.run_job, workers=workers, backlog=backlog)
        self.drain_timeout = drain_timeout

    async def start(self) -> None:
        await self.pool.start()

    async def stop(self) -> None:
        await self.pool.stop(self.drain_timeout)

    # --- запуск анализа ---

    def start_analysis(self, work_id: str, file_hash: str, assignment_id: str) -> AnalysisReport:
        # вызывается из того же event loop, где работает пул; задачу не ждём
        if self.pool.full():
            logger.warning("Rejecting analysis of work %s: backlog is full", work_id)
            raise AnalysisBacklogFull(f"Analysis backlog is full ({self.pool.capacity} jobs waiting)")

        report = AnalysisReport(id=str(uuid.uuid4()), work_id=work_id, created_at=utcnow())
        self.repository.add(report)

        job = AnalysisJob(report_id=report.id, work_id=work_id, file_hash=file_hash, assignment_id=assignment_id)
        try:
            self.pool.submit(job)
        except Exception:
            # отчёт уже сохранён: не оставляем его навсегда в Pending
            self._fail(report.id)
            raise
        logger.info("Report %s created for work %s", report.id, work_id)
        return report

    async def fetch_content(self, work_id: str) -> ContentResult:
        try:
            raw = await self.storage.download_file(work_id)
        except StorageError as e:
            logger.warning("Error getting file content for work %s, analysis will continue without text: %s", work_id, e)
            return ContentResult(outcome=Outcome.DEGRADED, reason=str(e))
        text = decode_text(raw)
        if text is None:
            return ContentResult(outcome=Outcome.NOT_TEXT, reason="content is not valid UTF-8 text")
        return ContentResult(outcome=Outcome.OK, text=text)

    async def run_job(self, job: AnalysisJob) -> None:
        try:
            report = self.repository.get(job.report_id)
            if report is None:
                logger.warning("Report %s not found", job.report_id)
                return

            report = report.advance(ReportStatus.PROCESSING)
            self.repository.save(report)
            logger.info("Analysis started for work %s (report %s)", job.work_id, job.report_id)

            warnings = list(report.warnings)
            results: dict = {}
            content = await self.fetch_content(job.work_id)
            if content.outcome is Outcome.OK:
                results["word_frequency"] = word_frequency(content.text)
                verdict = await self.detector.detect(job.file_hash, job.assignment_id, job.work_id)
                results["has_plagiarism"] = verdict.has_plagiarism
                results["plagiarism_details"] = verdict.details
                if verdict.outcome is Outcome.DEGRADED:
                    warnings.append(WARN_PLAGIARISM_UNAVAILABLE)
            else:
                logger.info("Text analysis skipped for work %s: %s", job.work_id, content.reason)
                warnings.append(WARN_NOT_TEXT if content.outcome is Outcome.NOT_TEXT else WARN_FILE_SERVICE_UNAVAILABLE)

            # до записи в БД результаты живут только в этом снимке
            completed = report.advance(ReportStatus.COMPLETED, completed_at=utcnow(), warnings=warnings, **results)
            archive_path = self.archiver.archive(completed)
            completed = completed.model_copy(update={"archive_path": archive_path})
            self.repository.save(completed)

            logger.info(
                "Analysis completed for work %s, plagiarism: %s", job.work_id, completed.has_plagiarism
            )
        except Exception:
            logger.exception("Error during analysis for work %s (report %s)", job.work_id, job.report_id)
            self._fail(job.report_id)

    def _fail(self, report_id: str) -> None:
        try:
            failed = self.repository.mark_failed(report_id)
        except Exception:
            logger.exception("Error saving failed status for report %s", report_id)
            return
        if failed is None:
            logger.warning("Report %s not found while marking it failed", report_id)

    # --- чтение ---

    def get_report(self, report_id: str) -> AnalysisReport | None:
        return self.repository.get(report_id)

    def list_reports_for_work(self, work_id: str) -> list[AnalysisReport]:
        return self.repository.list_for_work(work_id)

    def get_work_reports_summary(self, work_id: str) -> WorkReportsResponse:
        reports = self.list_reports_for_work(work_id)
        return WorkReportsResponse(
            work_id=work_id,
            reports=[
                ReportInfo(
                    report_id=r.id,
                    status=r.status,
                    has_plagiarism=r.has_plagiarism,
                    created_at=r.created_at,
                )
                for r in reports
            ],
        )

    def queue_stats(self) -> QueueStats:
        return self.pool.stats()
