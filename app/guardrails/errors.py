"""Pipeline error taxonomy plus the API's generic 500 mapping.

Backend errors carry the HTTP status code and response body so retry/fallback
decisions are made on the error type, never on message text.
"""
import logging
from typing import List, Optional, Sequence

from fastapi import HTTPException

logger = logging.getLogger(__name__)


class PipelineError(Exception):
    """Base class for every fatal or transient condition raised by the ingestion pipeline."""


class BackendError(PipelineError):
    """A non-success exchange with the inference backend: keeps status_code and body for diagnostics and error sanitizing."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        self.message = message
        self.status_code = status_code
        self.body = body or ""
        detail = message
        if status_code is not None:
            detail = f"{detail} ({status_code})"
        if self.body:
            detail = f"{detail}: {self.body}"
        super().__init__(detail)


class TransientBackendError(BackendError):
    """Backend signalled a temporary condition; the invoker retries and fails over on these."""


class CredentialRejectedError(BackendError):
    pass


class MissingChunkError(PipelineError):
    def __init__(self, job_id: str, index: int):
        self.job_id = job_id
        self.index = index
        super().__init__(f"Missing chunk {index} in storage for job {job_id}")


class CorruptChunkError(PipelineError):
    def __init__(self, job_id: str, index: int):
        self.job_id = job_id
        self.index = index
        super().__init__(f"Chunk {index} for job {job_id} is not valid base64")


class UploadInitError(BackendError):
    pass


class UploadChunkError(BackendError):
    def __init__(self, offset: int, status_code: Optional[int] = None, body: str = ""):
        self.offset = offset
        super().__init__(f"Chunk upload failed at offset {offset}", status_code, body)


class UploadFinalizeError(BackendError):
    pass


class UploadSizeMismatchError(PipelineError):
    def __init__(self, declared: int, actual: int):
        self.declared = declared
        self.actual = actual
        super().__init__(f"Upload size mismatch: declared {declared} bytes but reassembled {actual}")


class UploadStateError(PipelineError):
    pass


class RemoteFileNotFoundError(BackendError):
    pass


class FileProcessingFailedError(BackendError):
    def __init__(self, state: str):
        self.state = state
        super().__init__(f"File processing failed state: {state}")


class PollTimeoutError(PipelineError):
    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Timeout waiting for file to become ACTIVE after {attempts} polls")


class ModelOverloadedError(TransientBackendError):
    pass


class RateLimitedError(TransientBackendError):
    pass


class GenerationError(BackendError):
    pass


class InvalidRequestError(GenerationError):
    pass


class AllModelsExhaustedError(PipelineError):
    def __init__(self, chain: Sequence[str], last_error: Optional[BaseException] = None):
        self.chain: List[str] = list(chain)
        self.last_error = last_error
        super().__init__(f"Generation failed with all attempted models: {', '.join(self.chain)}")


def as_http_500(e: Exception) -> HTTPException:
    """Log exception and return a generic 500 HTTPException (no internal details leaked).
    Why available: Centralized error handling so API never leaks stack traces or internal state to clients."""
    logger.error("unhandled_api_error", exc_info=e)
    return HTTPException(status_code=500, detail="Internal server error")
