"""Unit tests for readiness polling."""
import pytest

from app.guardrails.errors import FileProcessingFailedError, PollTimeoutError, RemoteFileNotFoundError
from app.ingest.poller import wait_for_file_active
from fakes import FILE_URI, FakeResponse, network_error


def _processing():
    return FakeResponse(200, {"state": "PROCESSING"})


def test_returns_when_active(gemini, endpoints, sleeps):
    gemini.poll_script = [_processing(), _processing()]
    polls = wait_for_file_active(gemini, endpoints, FILE_URI, interval_seconds=2, max_attempts=5, sleep=sleeps)
    assert polls == 3
    assert sleeps == [2, 2]
    assert gemini.calls[0]["url"] == FILE_URI + "?key=test-key"


def test_reads_nested_file_state(gemini, endpoints, sleeps):
    gemini.poll_script = [FakeResponse(200, {"file": {"state": "ACTIVE"}})]
    assert wait_for_file_active(gemini, endpoints, FILE_URI, sleep=sleeps) == 1


def test_transient_failures_only_consume_attempts(gemini, endpoints, sleeps):
    gemini.poll_script = [network_error(), FakeResponse(500, "oops"), FakeResponse(200, "not json"), _processing()]
    polls = wait_for_file_active(gemini, endpoints, FILE_URI, interval_seconds=0, max_attempts=10, sleep=sleeps)
    assert polls == 5


def test_not_found_is_fatal_immediately(gemini, endpoints, sleeps):
    gemini.poll_script = [FakeResponse(404, {"error": {"message": "gone"}})]
    with pytest.raises(RemoteFileNotFoundError):
        wait_for_file_active(gemini, endpoints, FILE_URI, max_attempts=10, sleep=sleeps)
    assert sleeps == []


def test_failed_state_is_fatal(gemini, endpoints, sleeps):
    gemini.poll_script = [_processing(), FakeResponse(200, {"state": "FAILED"})]
    with pytest.raises(FileProcessingFailedError) as ei:
        wait_for_file_active(gemini, endpoints, FILE_URI, max_attempts=10, sleep=sleeps)
    assert ei.value.state == "FAILED"


def test_times_out_after_attempt_budget(gemini, endpoints, sleeps):
    gemini.poll_script = [_processing() for _ in range(10)]
    with pytest.raises(PollTimeoutError) as ei:
        wait_for_file_active(gemini, endpoints, FILE_URI, interval_seconds=2, max_attempts=4, sleep=sleeps)
    assert ei.value.attempts == 4
    assert len([c for c in gemini.calls if c["method"] == "GET"]) == 4
    assert sleeps == [2, 2, 2]
