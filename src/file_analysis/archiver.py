from pathlib import Path

from .schemas import AnalysisReport, ArchivedReport


class ReportArchiver:
    """Финальное состояние отчёта в <reports_dir>/<report_id>.json."""

    def __init__(self, reports_dir: str | Path):
        self.reports_dir = Path(reports_dir)

    def path_for(self, report_id: str) -> Path:
        return self.reports_dir / f"{report_id}.json"

    def archive(self, report: AnalysisReport) -> str:
        content = ArchivedReport(
            report_id=report.id,
            work_id=report.work_id,
            status=report.status,
            has_plagiarism=report.has_plagiarism,
            plagiarism_details=report.plagiarism_details,
            word_frequency=report.word_frequency,
            warnings=report.warnings,
            created_at=report.created_at,
            completed_at=report.completed_at,
        )
        self.reports_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(report.id)
        # пишем во временный файл и подменяем, чтобы не оставить обрезанный json
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(content.model_dump_json(indent=2), encoding="utf-8")
        tmp.replace(path)
        return str(path)

    @staticmethod
    def load(path: str | Path) -> ArchivedReport:
        return ArchivedReport.model_validate_json(Path(path).read_text(encoding="utf-8"))
