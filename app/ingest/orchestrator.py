"""
Job orchestrator: pre-flight credential check, chunk reassembly + resumable upload,
readiness polling, generation, and the single terminal write to the result store.
"""
import json
import logging
import time
from typing import Callable, Dict, List, Optional

import requests

from app.core.config import Settings, settings
from app.core.gemini_client import GeminiEndpoints, get_http_session
from app.extract.invoker import invoke_generation
from app.guardrails.errors import BackendError, CredentialRejectedError, MissingChunkError
from app.ingest.poller import wait_for_file_active
from app.ingest.reassembler import ChunkReassembler, missing_chunks
from app.ingest.upload_client import ResumableUploadClient
from app.models.schemas import JobSubmission, ResultRecord
from app.storage.chunk_store import ChunkStore
from app.storage.result_store import ResultStore

logger = logging.getLogger(__name__)

CREDENTIAL_HINT = (
    "API key rejected by the backend in the server environment. "
    "CAUSE: likely HTTP referrer restrictions on the key; server requests have no referrer. "
    "FIX: remove the restrictions or use a separate server key."
)


def preflight_check(
    session: requests.Session,
    endpoints: GeminiEndpoints,
    model: str,
    timeout: float = 30.0,
) -> None:
    """Send a minimal generateContent ("ping") so a bad or restricted key fails before the upload starts.
    Why available: Uploading a long recording takes minutes; a credential problem should surface in seconds."""
    if not endpoints.encoded_key:
        raise CredentialRejectedError(f"API key missing. {CREDENTIAL_HINT}")
    try:
        resp = session.post(
            endpoints.generate_url(model),
            json={"contents": [{"parts": [{"text": "ping"}]}]},
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise CredentialRejectedError(f"{CREDENTIAL_HINT} Pre-flight request failed: {e}") from e
    if not (200 <= resp.status_code < 300):
        logger.error("preflight_failed status=%d", resp.status_code)
        raise CredentialRejectedError(CREDENTIAL_HINT, resp.status_code, resp.text)
    logger.info("preflight_ok model=%s", model)


def _envelope_message(text: Optional[str]) -> Optional[str]:
    """Return error.message from a JSON error envelope like {"error": {"message": ...}}, else None."""
    text = (text or "").strip()
    if not text.startswith("{"):
        return None
    try:
        data = json.loads(text)
    except ValueError:
        return None
    err = data.get("error") if isinstance(data, dict) else None
    if isinstance(err, dict) and isinstance(err.get("message"), str) and err["message"].strip():
        return err["message"].strip()
    if isinstance(err, str) and err.strip():
        return err.strip()
    return None


def sanitize_error_message(err: BaseException) -> str:
    """Human-readable message for the ERROR record: unwraps a JSON error envelope found in the raw message or in a backend error's response body; otherwise the raw message."""
    raw = str(err) or err.__class__.__name__
    nested = _envelope_message(raw)
    if nested:
        return nested
    if isinstance(err, BackendError):
        nested = _envelope_message(err.body)
        if nested:
            status = f" ({err.status_code})" if err.status_code is not None else ""
            return f"{err.message}{status}: {nested}"
    return raw


def process_job(
    job: JobSubmission,
    *,
    chunk_store: ChunkStore,
    session: Optional[requests.Session] = None,
    endpoints: Optional[GeminiEndpoints] = None,
    cfg: Settings = settings,
    chains: Optional[Dict[str, List[str]]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """Run every stage for one job and return the generated text. Raises the first fatal error; nothing is retried at this level."""
    session = session or get_http_session()
    endpoints = endpoints or GeminiEndpoints.from_settings()
    model = job.model or cfg.default_model
    timeout = cfg.request_timeout_seconds

    logger.info(
        "job_start job=%s chunks=%d size=%d mode=%s model=%s",
        job.job_id, job.total_chunks, job.file_size, job.mode.value, model,
    )

    logger.info("checkpoint_0 job=%s validating api key", job.job_id)
    preflight_check(session, endpoints, cfg.preflight_model, timeout=timeout)

    gaps = missing_chunks(chunk_store, job.job_id, job.total_chunks)
    if gaps:
        raise MissingChunkError(job.job_id, gaps[0])

    logger.info("checkpoint_1 job=%s initializing resumable upload", job.job_id)
    uploader = ResumableUploadClient(session, endpoints, timeout=timeout)
    uploader.start(job.file_size, job.mime_type, display_name=f"Meeting_{job.job_id}")

    logger.info("checkpoint_2 job=%s stitching and uploading chunks", job.job_id)
    reassembler = ChunkReassembler(chunk_store, job.job_id, job.total_chunks, cfg.upload_block_bytes)
    for block in reassembler.blocks():
        uploader.upload_block(block)

    logger.info("checkpoint_3 job=%s finalizing upload", job.job_id)
    file_uri = uploader.finalize(reassembler.remainder)

    logger.info("checkpoint_4 job=%s waiting for file processing", job.job_id)
    wait_for_file_active(
        session,
        endpoints,
        file_uri,
        interval_seconds=cfg.poll_interval_seconds,
        max_attempts=cfg.poll_max_attempts,
        timeout=timeout,
        sleep=sleep,
    )

    logger.info("checkpoint_5 job=%s generating content", job.job_id)
    return invoke_generation(
        session,
        endpoints,
        file_uri,
        job.mime_type,
        job.mode,
        model,
        chains=chains,
        max_retries=cfg.generation_max_retries,
        base_delay_seconds=cfg.retry_base_delay_seconds,
        max_output_tokens=cfg.max_output_tokens,
        timeout=timeout,
        sleep=sleep,
    )


def run_job(
    job: JobSubmission,
    *,
    chunk_store: ChunkStore,
    result_store: ResultStore,
    **kwargs,
) -> ResultRecord:
    """Background entry point: process the job and write exactly one terminal record (COMPLETED with the text, or ERROR with a sanitized message). Returns the job's terminal record.
    A job that already has a record is not processed again, and an existing record is never replaced.
    Why available: Single place where pipeline errors are caught, so the result store is the only way callers learn the outcome."""
    existing = result_store.get(job.job_id)
    if existing is not None:
        logger.warning("job_already_terminal job=%s status=%s", job.job_id, existing.status.value)
        return existing

    started = time.perf_counter()
    try:
        text = process_job(job, chunk_store=chunk_store, **kwargs)
        record = ResultRecord.completed(text)
        logger.info("job_completed job=%s elapsed_s=%.1f", job.job_id, time.perf_counter() - started)
    except Exception as e:
        logger.error("job_failed job=%s error=%s", job.job_id, e, exc_info=True)
        record = ResultRecord.failed(sanitize_error_message(e))
    if not result_store.put_if_absent(job.job_id, record):
        logger.warning("job_result_discarded job=%s status=%s", job.job_id, record.status.value)
        return result_store.get(job.job_id)
    return record
