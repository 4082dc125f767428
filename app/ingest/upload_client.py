"""
Resumable upload client for the Gemini Files API.

Protocol: start (declares total length and content type, returns a session URL),
then zero or more "upload" requests at an explicit byte offset, then one
"upload, finalize" request carrying the tail and returning the file handle.
Blocks are sent strictly one at a time; the backend enforces offset ordering.
"""
import logging
from enum import Enum
from typing import Optional

import requests

from app.core.gemini_client import GeminiEndpoints
from app.guardrails.errors import (
    UploadChunkError,
    UploadFinalizeError,
    UploadInitError,
    UploadSizeMismatchError,
    UploadStateError,
)

logger = logging.getLogger(__name__)


class UploadState(str, Enum):
    INIT = "INIT"
    STARTED = "STARTED"
    FINALIZED = "FINALIZED"


def _ok(resp) -> bool:
    return 200 <= resp.status_code < 300


class ResumableUploadClient:
    """One upload session: tracks the session URL and the running byte offset for a single job."""

    def __init__(self, session: requests.Session, endpoints: GeminiEndpoints, timeout: float = 120.0):
        self.session = session
        self.endpoints = endpoints
        self.timeout = timeout
        self.state = UploadState.INIT
        self.upload_url: Optional[str] = None
        self.offset = 0
        self.total_bytes = 0
        self.file_uri: Optional[str] = None

    def _require(self, state: UploadState, action: str) -> None:
        if self.state != state:
            raise UploadStateError(f"Cannot {action} in state {self.state.value}")

    def start(self, total_bytes: int, mime_type: str, display_name: str) -> str:
        """Send the start-of-upload handshake and return the session URL (with the API key re-attached if the backend dropped it)."""
        self._require(UploadState.INIT, "start upload")
        if total_bytes < 0:
            raise ValueError("total_bytes must be >= 0")

        try:
            resp = self.session.post(
                self.endpoints.upload_start_url(),
                headers={
                    "X-Goog-Upload-Protocol": "resumable",
                    "X-Goog-Upload-Command": "start",
                    "X-Goog-Upload-Header-Content-Length": str(total_bytes),
                    "X-Goog-Upload-Header-Content-Type": mime_type,
                    "Content-Type": "application/json",
                },
                json={"file": {"display_name": display_name}},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise UploadInitError(f"Init handshake failed: {e}") from e

        if not _ok(resp):
            raise UploadInitError("Init handshake failed", resp.status_code, resp.text)

        upload_url = resp.headers.get("x-goog-upload-url")
        if not upload_url:
            raise UploadInitError("No upload URL returned from backend", resp.status_code)

        self.upload_url = self.endpoints.authorize(upload_url)
        self.total_bytes = total_bytes
        self.offset = 0
        self.state = UploadState.STARTED
        logger.info("upload_started display_name=%s total_bytes=%d", display_name, total_bytes)
        return self.upload_url

    def _send(self, data: bytes, command: str):
        return self.session.post(
            self.upload_url,
            headers={
                "Content-Length": str(len(data)),
                "X-Goog-Upload-Command": command,
                "X-Goog-Upload-Offset": str(self.offset),
                "Content-Type": "application/octet-stream",
            },
            data=data,
            timeout=self.timeout,
        )

    def upload_block(self, block: bytes) -> int:
        """Send one block at the current offset; on success advance the offset by len(block) and return it."""
        self._require(UploadState.STARTED, "upload a block")
        if self.offset + len(block) > self.total_bytes:
            raise UploadSizeMismatchError(self.total_bytes, self.offset + len(block))

        logger.info("upload_block offset=%d bytes=%d", self.offset, len(block))
        try:
            resp = self._send(block, "upload")
        except requests.RequestException as e:
            raise UploadChunkError(self.offset, body=str(e)) from e
        if not _ok(resp):
            raise UploadChunkError(self.offset, resp.status_code, resp.text)

        self.offset += len(block)
        return self.offset

    def finalize(self, tail: bytes) -> str:
        """Send the last bytes (possibly none) with the finalize directive and return the file URI."""
        self._require(UploadState.STARTED, "finalize")
        if self.offset + len(tail) != self.total_bytes:
            raise UploadSizeMismatchError(self.total_bytes, self.offset + len(tail))

        try:
            resp = self._send(tail, "upload, finalize")
        except requests.RequestException as e:
            raise UploadFinalizeError(f"Finalize failed: {e}") from e
        if not _ok(resp):
            raise UploadFinalizeError("Finalize failed", resp.status_code, resp.text)

        try:
            payload = resp.json()
        except ValueError as e:
            raise UploadFinalizeError("Finalize returned non-JSON body", resp.status_code, resp.text) from e

        file_info = payload.get("file") if isinstance(payload, dict) else None
        file_uri = (file_info or {}).get("uri") if isinstance(file_info, dict) else None
        if not file_uri and isinstance(payload, dict):
            file_uri = payload.get("uri")
        if not file_uri:
            raise UploadFinalizeError("Finalize response has no file uri", resp.status_code, resp.text)

        self.offset += len(tail)
        self.file_uri = file_uri
        self.state = UploadState.FINALIZED
        logger.info("upload_finalized uri=%s bytes=%d", file_uri, self.offset)
        return file_uri
