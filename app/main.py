import base64
import logging
import threading
from typing import Set

from fastapi import (
    BackgroundTasks,
    FastAPI,
    HTTPException,
    Path,
    Request,
)

from app.core.config import settings
from app.extract.meeting_notes import parse_meeting_data, to_markdown
from app.extract.model_chains import fallback_table
from app.guardrails.errors import as_http_500
from app.ingest.orchestrator import run_job
from app.models.schemas import (
    ChunkStoredResponse,
    JobAcceptedResponse,
    JobState,
    JobStatusResponse,
    JobSubmission,
    LimitsResponse,
    MeetingResponse,
)
from app.observability.middleware import RequestTimingMiddleware, configure_logging, get_request_id
from app.storage.backends import build_stores


# -------------------------
# App setup
# -------------------------

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Meeting Audio Pipeline")
app.add_middleware(RequestTimingMiddleware)

CHUNK_STORE, RESULT_STORE = build_stores(settings)

# job ids accepted by POST /jobs whose background run has not finished yet
IN_FLIGHT: Set[str] = set()
_IN_FLIGHT_LOCK = threading.Lock()


def _claim_job(job_id: str) -> bool:
    with _IN_FLIGHT_LOCK:
        if job_id in IN_FLIGHT:
            return False
        IN_FLIGHT.add(job_id)
        return True


def _run_claimed_job(job: JobSubmission) -> None:
    """Runs the pipeline for a claimed job and releases the claim afterwards, whatever the outcome."""
    try:
        run_job(job, chunk_store=CHUNK_STORE, result_store=RESULT_STORE)
    finally:
        with _IN_FLIGHT_LOCK:
            IN_FLIGHT.discard(job.job_id)


# -------------------------
# Root
# -------------------------

@app.get("/")
def root():
    """Returns a minimal welcome payload with app name and docs URL."""
    return {"app": "Meeting Audio Pipeline", "docs": "/docs"}


@app.get("/health")
def health():
    """Returns 200 OK with status. Used by load balancers and probes to check if the API is up."""
    return {"status": "ok"}


# -------------------------
# Limits (for capture clients)
# -------------------------

@app.get("/limits", response_model=LimitsResponse)
def limits():
    """Returns the pipeline limits (upload block size, poll interval and attempts, retries, models with fallback chains).
    Why available: Lets the capture client show expected processing times and offer only supported models."""
    return LimitsResponse(
        upload_block_bytes=settings.upload_block_bytes,
        poll_interval_seconds=settings.poll_interval_seconds,
        poll_max_attempts=settings.poll_max_attempts,
        generation_max_retries=settings.generation_max_retries,
        default_model=settings.default_model,
        models=sorted(fallback_table().keys()),
    )


# -------------------------
# Chunk upload
# -------------------------

@app.put("/uploads/{job_id}/{index}", response_model=ChunkStoredResponse)
async def put_chunk(
    request: Request,
    job_id: str = Path(..., min_length=1, pattern=r"^[^/\\]+$"),
    index: int = Path(..., ge=0),
):
    """Stores one raw audio chunk (request body) for a job, base64-encoded at rest under {job_id}/{index}.
    Why available: The recorder uploads small chunks as they are captured; POST /jobs later drains them in index order."""
    if job_id in (".", ".."):
        raise HTTPException(status_code=400, detail="Invalid job_id")
    body = await request.body()
    if not body:
        raise HTTPException(status_code=400, detail="Empty chunk")
    CHUNK_STORE.put(job_id, index, base64.b64encode(body).decode("ascii"))
    return ChunkStoredResponse(job_id=job_id, index=index, bytes_stored=len(body))


# -------------------------
# Job submission (fire-and-forget)
# -------------------------

@app.post("/jobs", response_model=JobAcceptedResponse, status_code=202)
def submit_job(job: JobSubmission, request: Request, background_tasks: BackgroundTasks):
    """Queues the ingestion + generation pipeline for a job and returns immediately. Client polls GET /jobs/{job_id} until the status is COMPLETED or ERROR.
    Why available: Uploading and processing long recordings takes minutes; the request must not block on it."""
    if RESULT_STORE.get(job.job_id) is not None:
        raise HTTPException(status_code=409, detail="Job already has a terminal result")
    if not _claim_job(job.job_id):
        raise HTTPException(status_code=409, detail="Job is already being processed")

    logger.info("job_submitted job=%s request_id=%s", job.job_id, get_request_id(request))
    background_tasks.add_task(_run_claimed_job, job)
    return JobAcceptedResponse(job_id=job.job_id)


# -------------------------
# Job Status
# -------------------------

@app.get("/jobs/{job_id}", response_model=JobStatusResponse)
def job_status(job_id: str):
    """Returns the job's terminal record, or PENDING while no record has been written yet."""
    try:
        record = RESULT_STORE.get(job_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid job_id")
    except Exception as e:
        raise as_http_500(e)

    if record is None:
        return JobStatusResponse(job_id=job_id, status=JobState.PENDING)
    return JobStatusResponse(job_id=job_id, status=record.status, result=record.result, error=record.error)


@app.get("/jobs/{job_id}/meeting", response_model=MeetingResponse)
def job_meeting(job_id: str):
    """Returns a completed job's result parsed into transcription / summary / conclusions / action items, with markdown renderings.
    Why available: Clients get a validated structure instead of re-parsing the raw model output."""
    try:
        record = RESULT_STORE.get(job_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid job_id")

    if record is None:
        raise HTTPException(status_code=404, detail="Job not finished")
    if record.status != JobState.COMPLETED:
        raise HTTPException(status_code=409, detail=record.error or "Job failed")

    meeting = parse_meeting_data(record.result or "")
    transcription_md, notes_md = to_markdown(meeting, title=f"Meeting {job_id}")
    return MeetingResponse(
        job_id=job_id,
        meeting=meeting,
        transcription_markdown=transcription_md,
        notes_markdown=notes_md,
    )
