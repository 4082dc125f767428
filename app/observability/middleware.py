import json
import logging
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("app.access")


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Emits one JSON access line per request through the "app.access" logger and echoes x-request-id.
    Lines for /uploads and /jobs routes carry the job_id so a job's chunk uploads, submission and status polls can be grepped together."""

    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        start = time.perf_counter()
        request.state.request_id = rid

        response = await call_next(request)

        dur_ms = (time.perf_counter() - start) * 1000.0
        entry = {
            "request_id": rid,
            "path": request.url.path,
            "method": request.method,
            "status": response.status_code,
            "latency_ms": round(dur_ms, 2),
        }
        # path_params is filled in by the router once the route has matched
        job_id = (request.scope.get("path_params") or {}).get("job_id")
        if job_id:
            entry["job_id"] = job_id
        if request.method == "PUT":
            entry["content_length"] = int(request.headers.get("content-length") or 0)
        logger.info(json.dumps(entry))

        response.headers["x-request-id"] = rid
        return response


def get_request_id(request: Request) -> str:
    # middleware sets this
    return getattr(request.state, "request_id", "unknown")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once (level from LOG_LEVEL). No-op if handlers are already installed (e.g. under uvicorn or pytest)."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))
    if not root.handlers:
        logging.basicConfig(format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
