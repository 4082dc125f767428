import sys
from pathlib import Path
import json
import pytest

# Ensure repo root is on sys.path so `import app...` works in tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.core.gemini_client import GeminiEndpoints  # noqa: E402
from app.storage.chunk_store import InMemoryChunkStore  # noqa: E402
from app.storage.result_store import InMemoryResultStore  # noqa: E402
from fakes import BASE, FakeGemini, SleepRecorder  # noqa: E402


def pretty_json(obj) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False, sort_keys=True)


@pytest.fixture
def gemini() -> FakeGemini:
    return FakeGemini()


@pytest.fixture
def endpoints() -> GeminiEndpoints:
    return GeminiEndpoints(base_url=BASE, encoded_key="test-key")


@pytest.fixture
def chunk_store() -> InMemoryChunkStore:
    return InMemoryChunkStore()


@pytest.fixture
def result_store() -> InMemoryResultStore:
    return InMemoryResultStore()


@pytest.fixture
def sleeps() -> SleepRecorder:
    """Replacement for time.sleep that records requested delays instead of sleeping."""
    return SleepRecorder()


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """
    Attach request/response payloads into pytest-html report.

    In tests, store payloads like:
      item._api_logs = [{"title": "...", "request": ..., "response": ...}, ...]
    """
    outcome = yield
    rep = outcome.get_result()

    if rep.when != "call":
        return

    api_logs = getattr(item, "_api_logs", None)
    if not api_logs:
        return

    # Only attach if pytest-html is installed/enabled
    extras = getattr(rep, "extra", [])

    try:
        from pytest_html import extras as html_extras
    except ImportError:
        rep.extra = extras
        return

    for entry in api_logs:
        title = entry.get("title", "API Call")
        html = (
            f"<h4>{title}</h4>"
            f"<details><summary><b>Request</b></summary><pre>{pretty_json(entry.get('request', {}))}</pre></details>"
            f"<details><summary><b>Response</b></summary><pre>{pretty_json(entry.get('response', {}))}</pre></details>"
        )
        extras.append(html_extras.html(html))

    rep.extra = extras
