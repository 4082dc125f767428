"""Readiness polling: wait for an uploaded file to leave PROCESSING before it is used for generation."""
import logging
import time
from typing import Callable

import requests

from app.core.gemini_client import GeminiEndpoints
from app.guardrails.errors import FileProcessingFailedError, PollTimeoutError, RemoteFileNotFoundError

logger = logging.getLogger(__name__)

STATE_ACTIVE = "ACTIVE"
STATE_FAILED = "FAILED"


def _read_state(payload) -> str | None:
    if not isinstance(payload, dict):
        return None
    state = payload.get("state")
    if state is None and isinstance(payload.get("file"), dict):
        state = payload["file"].get("state")
    return state


def wait_for_file_active(
    session: requests.Session,
    endpoints: GeminiEndpoints,
    file_uri: str,
    *,
    interval_seconds: float = 2.0,
    max_attempts: int = 60,
    timeout: float = 30.0,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Poll the file resource until its state is ACTIVE. Returns the number of polls made.
    Network errors, unparsable bodies and non-404 error statuses only consume an attempt; 404 raises RemoteFileNotFoundError, FAILED raises FileProcessingFailedError, and running out of attempts raises PollTimeoutError.
    Why available: Generation against a file that is still PROCESSING is rejected by the backend."""
    url = endpoints.file_url(file_uri)

    for attempt in range(1, max_attempts + 1):
        try:
            resp = session.get(url, timeout=timeout)
        except requests.RequestException as e:
            logger.warning("poll_network_error attempt=%d/%d error=%s", attempt, max_attempts, e)
        else:
            if resp.status_code == 404:
                raise RemoteFileNotFoundError("File not found during polling", resp.status_code, resp.text)
            if 200 <= resp.status_code < 300:
                try:
                    state = _read_state(resp.json())
                except ValueError:
                    state = None
                    logger.warning("poll_unparsable_body attempt=%d/%d", attempt, max_attempts)
                if state == STATE_ACTIVE:
                    logger.info("file_active uri=%s polls=%d", file_uri, attempt)
                    return attempt
                if state == STATE_FAILED:
                    raise FileProcessingFailedError(state)
                logger.debug("file_state uri=%s state=%s attempt=%d", file_uri, state, attempt)
            else:
                logger.warning("poll_http_error status=%d attempt=%d/%d", resp.status_code, attempt, max_attempts)

        if attempt < max_attempts:
            sleep(interval_seconds)

    raise PollTimeoutError(max_attempts)
