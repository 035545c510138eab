"""API routes for the Company Data Enricher."""

import logging
import uuid
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, BackgroundTasks, File, HTTPException, UploadFile
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from enricher.config import settings
from enricher.enrich import ClaudeEnricher, CompanyEnricher, MockEnricher
from enricher.errors import ConfigurationError, SpreadsheetImportError
from enricher.models import ItemStatus, WorkItem
from enricher.pipeline import EnrichmentPipeline
from enricher.spreadsheet import export_filename, read_companies, write_results

logger = logging.getLogger(__name__)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class UploadResponse(BaseModel):
    """Response for a spreadsheet upload."""
    run_id: str
    file_name: Optional[str]
    total: int
    items: list[WorkItem]


class StartResponse(BaseModel):
    """Response for starting enrichment."""
    run_id: str
    status: str
    message: str


class RunStatusResponse(BaseModel):
    """Response for run status."""
    run_id: str
    status: str
    file_name: Optional[str]
    progress: float
    total: int
    items: list[WorkItem]
    error_message: Optional[str] = None


# In-memory storage for uploaded runs; nothing survives a restart
active_runs: dict[str, dict] = {}


def build_enricher(use_mock: bool = False) -> CompanyEnricher:
    if use_mock:
        return MockEnricher()
    return ClaudeEnricher(api_key=settings.anthropic_api_key)


def progress_of(items: list[WorkItem]) -> float:
    if not items:
        return 0.0
    settled = sum(1 for item in items if item.status.is_terminal)
    return settled / len(items) * 100


def content_disposition(filename: str) -> str:
    """Attachment header with a quoted ASCII fallback and an RFC 5987 UTF-8 name."""
    fallback = "".join(
        ch if ch.isascii() and ch.isprintable() and ch not in "\"\\" else "_"
        for ch in filename
    )
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


def _get_run(run_id: str) -> dict:
    run = active_runs.get(run_id)
    if run is None:
        raise HTTPException(status_code=404, detail="Run not found")
    return run


@router.post("/runs", response_model=UploadResponse)
async def upload_spreadsheet(file: UploadFile = File(...)):
    """Upload a spreadsheet with company names in the first column."""
    try:
        data = await file.read()
    finally:
        await file.close()

    try:
        items = read_companies(data)
    except SpreadsheetImportError as e:
        raise HTTPException(status_code=400, detail=str(e))

    run_id = str(uuid.uuid4())
    active_runs[run_id] = {
        "status": "ready",
        "file_name": file.filename,
        "items": items,
    }
    logger.info(f"[{run_id}] Uploaded {file.filename} with {len(items)} companies")

    return UploadResponse(
        run_id=run_id,
        file_name=file.filename,
        total=len(items),
        items=items,
    )


@router.post("/runs/{run_id}/start", response_model=StartResponse)
async def start_run(run_id: str, background_tasks: BackgroundTasks, use_mock: bool = False):
    """Start enriching an uploaded run."""
    run = _get_run(run_id)
    if run["status"] != "ready":
        raise HTTPException(status_code=409, detail=f"Run is already {run['status']}")

    enricher = build_enricher(use_mock)
    try:
        enricher.ensure_configured()
    except ConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e))

    run["status"] = "processing"
    background_tasks.add_task(run_enrichment, run_id, enricher)

    return StartResponse(
        run_id=run_id,
        status="processing",
        message="Enrichment started. Use /runs/{run_id} to check progress.",
    )


@router.get("/runs/{run_id}", response_model=RunStatusResponse)
async def get_run(run_id: str):
    """Get progress and per-company status of a run."""
    run = _get_run(run_id)
    items = run["items"]
    return RunStatusResponse(
        run_id=run_id,
        status=run["status"],
        file_name=run["file_name"],
        progress=progress_of(items),
        total=len(items),
        items=items,
        error_message=run.get("error"),
    )


@router.get("/runs/{run_id}/export")
async def export_run(run_id: str):
    """Download the enriched spreadsheet of a completed run."""
    run = _get_run(run_id)
    if run["status"] != "completed":
        raise HTTPException(status_code=409, detail="Run has not completed yet")

    content = write_results(run["items"])
    filename = export_filename(run["file_name"])
    return StreamingResponse(
        iter([content]),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": content_disposition(filename)},
    )


async def run_enrichment(run_id: str, enricher: CompanyEnricher):
    """Execute the enrichment pipeline for a run."""
    run = active_runs.get(run_id)
    if not run:
        return

    def publish(snapshot: list[WorkItem]):
        run["items"] = snapshot

    pipeline = EnrichmentPipeline(
        run["items"],
        enricher,
        on_update=publish,
        concurrency=settings.pipeline_concurrency,
    )

    logger.info(f"[{run_id}] Starting enrichment...")
    try:
        run["items"] = await pipeline.run()
    except ConfigurationError as e:
        logger.error(f"[{run_id}] Enrichment aborted: {e}")
        run["status"] = "ready"
        run["error"] = str(e)
        return
    except Exception as e:
        logger.error(f"[{run_id}] Enrichment failed: {e}")
        run["status"] = "failed"
        run["error"] = str(e)
        return

    run["status"] = "completed"
    failed = sum(1 for item in run["items"] if item.status == ItemStatus.ERROR)
    logger.info(f"[{run_id}] Completed: {len(run['items']) - failed} done, {failed} failed")
