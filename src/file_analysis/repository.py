from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from .models import Report
from .schemas import AnalysisReport, InvalidTransition, ReportStatus


class ReportNotFound(LookupError):
    pass


def _to_schema(r: Report) -> AnalysisReport:
    return AnalysisReport(
        id=r.id,
        work_id=r.work_id,
        status=ReportStatus(r.status),
        has_plagiarism=r.has_plagiarism,
        plagiarism_details=r.plagiarism_details,
        word_frequency=dict(r.word_frequency) if r.word_frequency is not None else None,
        warnings=list(r.warnings or []),
        created_at=r.created_at,
        completed_at=r.completed_at,
        archive_path=r.archive_path,
    )


def _apply(row: Report, report: AnalysisReport) -> None:
    # id, work_id и created_at неизменяемы
    row.status = report.status.value
    row.has_plagiarism = report.has_plagiarism
    row.plagiarism_details = report.plagiarism_details
    row.word_frequency = dict(report.word_frequency) if report.word_frequency is not None else None
    row.warnings = list(report.warnings)
    row.completed_at = report.completed_at
    row.archive_path = report.archive_path


class ReportRepository:
    # у каждого вызова своя сессия и один commit: читатель не видит полузаписанный отчёт

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def add(self, report: AnalysisReport) -> AnalysisReport:
        row = Report(id=report.id, work_id=report.work_id, created_at=report.created_at)
        _apply(row, report)
        with self._session_factory() as db:
            db.add(row)
            db.commit()
        return report

    def get(self, report_id: str) -> AnalysisReport | None:
        with self._session_factory() as db:
            row = db.get(Report, report_id)
            return _to_schema(row) if row else None

    def save(self, report: AnalysisReport) -> AnalysisReport:
        # статус в БД не может откатиться назад, терминальный отчёт не перезаписывается
        with self._session_factory() as db:
            row = db.get(Report, report.id)
            if row is None:
                raise ReportNotFound(f"Report {report.id} not found")
            current = ReportStatus(row.status)
            if current.is_terminal or (report.status != current and not current.can_become(report.status)):
                raise InvalidTransition(
                    f"Report {report.id}: cannot persist {report.status.value} over {current.value}"
                )
            _apply(row, report)
            db.commit()
        return report

    def mark_failed(self, report_id: str) -> AnalysisReport | None:
        # меняем только статус: completed_at ставится лишь при Completed,
        # частичные результаты упавшего прогона в БД не попадают
        with self._session_factory() as db:
            row = db.get(Report, report_id)
            if row is None:
                return None
            if not ReportStatus(row.status).is_terminal:
                row.status = ReportStatus.FAILED.value
                db.commit()
            return _to_schema(row)

    def list_for_work(self, work_id: str) -> list[AnalysisReport]:
        with self._session_factory() as db:
            rows = db.execute(
                select(Report).where(Report.work_id == work_id).order_by(Report.created_at.desc(), Report.id.desc())
            ).scalars().all()
            return [_to_schema(r) for r in rows]
