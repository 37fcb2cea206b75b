import datetime as dt
import json
from pathlib import Path

import pytest

from file_analysis.archiver import ReportArchiver
from file_analysis.schemas import AnalysisReport, ReportStatus


def _completed_report() -> AnalysisReport:
    return AnalysisReport(
        id="r1",
        work_id="w1",
        status=ReportStatus.COMPLETED,
        has_plagiarism=True,
        plagiarism_details="Plagiarism detected",
        word_frequency={"cat": 3, "dog": 2},
        created_at=dt.datetime(2024, 5, 20, 12, 0, 0),
        completed_at=dt.datetime(2024, 5, 20, 12, 0, 5),
    )


def test_archive_writes_json_named_by_report_id(tmp_path: Path):
    archiver = ReportArchiver(tmp_path / "reports")

    path = archiver.archive(_completed_report())

    assert path == str(tmp_path / "reports" / "r1.json")
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    assert data["report_id"] == "r1"
    assert data["status"] == "Completed"
    assert data["has_plagiarism"] is True
    assert list(data["word_frequency"]) == ["cat", "dog"]
    assert data["completed_at"].startswith("2024-05-20T12:00:05")
    assert not list((tmp_path / "reports").glob("*.tmp"))


def test_load_reads_back_archive(tmp_path: Path):
    archiver = ReportArchiver(tmp_path)
    path = archiver.archive(_completed_report())

    archived = archiver.load(path)

    assert archived.report_id == "r1"
    assert archived.word_frequency == {"cat": 3, "dog": 2}


def test_write_errors_propagate(tmp_path: Path):
    blocker = tmp_path / "reports"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(OSError):
        ReportArchiver(blocker).archive(_completed_report())
