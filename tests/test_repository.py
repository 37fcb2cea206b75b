import datetime as dt

import pytest

from file_analysis.repository import ReportNotFound
from file_analysis.schemas import AnalysisReport, InvalidTransition, ReportStatus

T0 = dt.datetime(2024, 5, 20, 12, 0, 0)


def _report(report_id: str, work_id: str = "w1", created_at: dt.datetime = T0) -> AnalysisReport:
    return AnalysisReport(id=report_id, work_id=work_id, created_at=created_at)


def test_add_and_get(repository):
    repository.add(_report("r1"))

    stored = repository.get("r1")

    assert stored.status is ReportStatus.PENDING
    assert stored.has_plagiarism is False
    assert stored.word_frequency is None
    assert stored.completed_at is None
    assert repository.get("missing") is None


def test_save_keeps_word_order(repository):
    report = repository.add(_report("r1")).advance(ReportStatus.PROCESSING)
    repository.save(report)
    completed = report.advance(
        ReportStatus.COMPLETED,
        completed_at=T0 + dt.timedelta(seconds=3),
        word_frequency={"zebra": 2, "apple": 2, "mango": 1},
        archive_path="/data/reports/r1.json",
    )
    repository.save(completed)

    stored = repository.get("r1")

    assert stored.status is ReportStatus.COMPLETED
    assert list(stored.word_frequency) == ["zebra", "apple", "mango"]
    assert stored.archive_path == "/data/reports/r1.json"


def test_repeated_reads_are_identical(repository):
    report = repository.add(_report("r1")).advance(ReportStatus.PROCESSING)
    repository.save(report)
    repository.save(report.advance(ReportStatus.COMPLETED, completed_at=T0, word_frequency={"cat": 3}))

    first = repository.get("r1")
    second = repository.get("r1")

    assert first == second
    assert first.model_dump_json() == second.model_dump_json()


def test_status_never_regresses(repository):
    report = repository.add(_report("r1")).advance(ReportStatus.PROCESSING)
    repository.save(report)

    with pytest.raises(InvalidTransition):
        repository.save(report.model_copy(update={"status": ReportStatus.PENDING}))

    completed = report.advance(ReportStatus.COMPLETED, completed_at=T0)
    repository.save(completed)
    with pytest.raises(InvalidTransition):
        repository.save(report)
    with pytest.raises(InvalidTransition):
        repository.save(completed)

    assert repository.get("r1").status is ReportStatus.COMPLETED


def test_save_unknown_report(repository):
    with pytest.raises(ReportNotFound):
        repository.save(_report("nope"))


def test_mark_failed_keeps_last_persisted_state(repository):
    report = repository.add(_report("r1")).advance(ReportStatus.PROCESSING)
    repository.save(report)

    failed = repository.mark_failed("r1")

    assert failed.status is ReportStatus.FAILED
    # время завершения ставится только у Completed
    assert failed.completed_at is None
    assert repository.get("r1").completed_at is None
    assert failed.word_frequency is None
    assert failed.archive_path is None
    assert repository.mark_failed("missing") is None


def test_mark_failed_does_not_touch_terminal_reports(repository):
    report = repository.add(_report("r1")).advance(ReportStatus.PROCESSING)
    repository.save(report)
    repository.save(report.advance(ReportStatus.COMPLETED, completed_at=T0))

    assert repository.mark_failed("r1").status is ReportStatus.COMPLETED
    assert repository.get("r1").completed_at == T0


def test_list_for_work_newest_first(repository):
    repository.add(_report("old", created_at=T0))
    repository.add(_report("new", created_at=T0 + dt.timedelta(minutes=5)))
    repository.add(_report("mid", created_at=T0 + dt.timedelta(minutes=1)))
    repository.add(_report("foreign", work_id="w2", created_at=T0 + dt.timedelta(minutes=2)))

    reports = repository.list_for_work("w1")

    assert [r.id for r in reports] == ["new", "mid", "old"]
    assert repository.list_for_work("unknown") == []
