import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

from .archiver import ReportArchiver
from .clients import FileStorageClient, StorageCollaborator
from .config import settings
from .db import create_db_engine, create_session_factory, init_db
from .orchestrator import AnalysisBacklogFull, AnalysisOrchestrator
from .repository import ReportRepository
from .schemas import (
    AnalysisReport,
    QueueStats,
    StartAnalysisRequest,
    WordCloudResponse,
    WorkReportsResponse,
)
from .wordcloud import WordCloudRenderer

logger = logging.getLogger(__name__)


def build_storage_client() -> StorageCollaborator:
    return FileStorageClient(settings.file_service_url, timeout=settings.file_service_timeout)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    Path(settings.data_dir).mkdir(parents=True, exist_ok=True)
    Path(settings.reports_dir).mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(settings.db_url)
    init_db(engine)

    orchestrator = AnalysisOrchestrator(
        repository=ReportRepository(create_session_factory(engine)),
        storage=build_storage_client(),
        archiver=ReportArchiver(settings.reports_dir),
        workers=settings.analysis_workers,
        backlog=settings.analysis_backlog,
        drain_timeout=settings.shutdown_drain_timeout,
    )
    await orchestrator.start()
    app.state.orchestrator = orchestrator
    app.state.wordcloud = WordCloudRenderer(settings.quickchart_url)
    try:
        yield
    finally:
        await orchestrator.stop()
        engine.dispose()


app = FastAPI(title="File Analysis Service", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_orchestrator(request: Request) -> AnalysisOrchestrator:
    return request.app.state.orchestrator


def get_wordcloud(request: Request) -> WordCloudRenderer:
    return request.app.state.wordcloud


def _get_report_or_404(orchestrator: AnalysisOrchestrator, report_id: str) -> AnalysisReport:
    report = orchestrator.get_report(report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    return report


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/analysis/start", response_model=AnalysisReport)
async def start_analysis(
    req: StartAnalysisRequest | None = None,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    # ошибка валидации: отчёт не создаём
    if req is None or not (req.work_id or "").strip():
        raise HTTPException(status_code=400, detail="Work submission ID is required")

    try:
        return orchestrator.start_analysis(
            req.work_id.strip(),
            req.file_hash or "",
            req.assignment_id or "",
        )
    except AnalysisBacklogFull as e:
        raise HTTPException(status_code=503, detail=str(e))


@app.get("/analysis/report/{report_id}", response_model=AnalysisReport)
def get_report(report_id: str, orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    return _get_report_or_404(orchestrator, report_id)


@app.get("/analysis/work/{work_id}/reports", response_model=WorkReportsResponse)
def get_work_reports(work_id: str, orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    return orchestrator.get_work_reports_summary(work_id)


@app.get("/analysis/report/{report_id}/wordcloud", response_model=WordCloudResponse)
def wordcloud(
    report_id: str,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
    renderer: WordCloudRenderer = Depends(get_wordcloud),
):
    report = _get_report_or_404(orchestrator, report_id)
    if not report.word_frequency:
        raise HTTPException(status_code=404, detail="Word frequency data not available")
    return WordCloudResponse(report_id=report.id, word_cloud_url=renderer.render_url(report.word_frequency))


@app.get("/analysis/report/{report_id}/download")
def download_report(report_id: str, orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    report = _get_report_or_404(orchestrator, report_id)
    if not report.archive_path:
        raise HTTPException(status_code=404, detail="Report is not archived yet")
    path = Path(report.archive_path)
    if not path.exists():
        raise HTTPException(status_code=410, detail="Report file missing")
    return FileResponse(str(path), media_type="application/json", filename=f"{report_id}.json")


@app.get("/analysis/queue", response_model=QueueStats)
def queue_stats(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    return orchestrator.queue_stats()


def run() -> None:
    uvicorn.run("file_analysis.main:app", host="0.0.0.0", port=settings.port)
