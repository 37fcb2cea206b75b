import datetime as dt
import enum
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> dt.datetime:
    """Текущее время в UTC без tzinfo: так хранятся все даты сервиса."""
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(dt.timezone.utc).replace(tzinfo=None)


class InvalidTransition(ValueError):
    pass


class ReportStatus(str, enum.Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ReportStatus.COMPLETED, ReportStatus.FAILED)

    def can_become(self, other: "ReportStatus") -> bool:
        return other in _TRANSITIONS[self]


# статус только «растёт»: из терминальных состояний выхода нет
_TRANSITIONS = {
    ReportStatus.PENDING: {ReportStatus.PROCESSING, ReportStatus.FAILED},
    ReportStatus.PROCESSING: {ReportStatus.COMPLETED, ReportStatus.FAILED},
    ReportStatus.COMPLETED: set(),
    ReportStatus.FAILED: set(),
}


class Outcome(str, enum.Enum):
    # чем закончился шаг анализа, если он не упал
    OK = "ok"
    DEGRADED = "degraded"  # коллаборатор недоступен / ответил ошибкой
    NOT_TEXT = "not_text"  # файл не читается как текст


class ApiModel(BaseModel):
    """Наружу отдаём camelCase, внутри работаем со snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalysisReport(ApiModel):
    id: str
    work_id: str
    status: ReportStatus = ReportStatus.PENDING
    has_plagiarism: bool = False
    plagiarism_details: str | None = None
    word_frequency: dict[str, int] | None = None
    warnings: list[str] = Field(default_factory=list)
    created_at: dt.datetime
    completed_at: dt.datetime | None = None
    archive_path: str | None = None

    def advance(self, status: ReportStatus, **changes) -> "AnalysisReport":
        """Копия отчёта в новом статусе; исходный снимок не меняется."""
        if not self.status.can_become(status):
            raise InvalidTransition(
                f"Report {self.id}: transition {self.status.value} -> {status.value} is not allowed"
            )
        return self.model_copy(update={"status": status, **changes})


class StartAnalysisRequest(ApiModel):
    work_id: str | None = None
    file_hash: str | None = None
    assignment_id: str | None = None


class ReportInfo(ApiModel):
    report_id: str
    status: ReportStatus
    has_plagiarism: bool
    created_at: dt.datetime


class WorkReportsResponse(ApiModel):
    work_id: str
    reports: list[ReportInfo] = Field(default_factory=list)


class WordCloudResponse(ApiModel):
    report_id: str
    word_cloud_url: str


class QueueStats(ApiModel):
    workers: int
    capacity: int
    backlog: int
    in_flight: int


class Submission(ApiModel):
    """Запись о сданной работе в File Storing Service."""

    id: str
    student_name: str = ""
    assignment_id: str = ""
    file_hash: str = ""
    submitted_at: dt.datetime


class ArchivedReport(BaseModel):
    report_id: str
    work_id: str
    status: ReportStatus
    has_plagiarism: bool
    plagiarism_details: str | None = None
    word_frequency: dict[str, int] | None = None
    warnings: list[str] = Field(default_factory=list)
    created_at: dt.datetime
    completed_at: dt.datetime | None = None
