"""
Result store: terminal job records keyed by job_id.
Absence of a record means the job is still pending. Records are write-once:
put_if_absent refuses to replace an existing terminal record.
"""
import json
import os
import threading
from typing import Dict, Optional, Protocol

from app.models.schemas import ResultRecord


class ResultStore(Protocol):
    def put_if_absent(self, job_id: str, record: ResultRecord) -> bool: ...

    def get(self, job_id: str) -> Optional[ResultRecord]: ...


class InMemoryResultStore:
    """Process-local result store (MVP). In production: Redis/DB."""

    def __init__(self):
        self._data: Dict[str, ResultRecord] = {}
        self._lock = threading.Lock()

    def put_if_absent(self, job_id: str, record: ResultRecord) -> bool:
        """Store the record unless the job already has one. Returns True if it was written."""
        with self._lock:
            if job_id in self._data:
                return False
            self._data[job_id] = record
            return True

    def get(self, job_id: str) -> Optional[ResultRecord]:
        with self._lock:
            return self._data.get(job_id)


class FileResultStore:
    """Result store on disk: {root}/{job_id}.json holding {"status": ..., "result"|"error": ...}.
    The record is written to a temp file and then hard-linked into place, so an existing record is never replaced."""

    def __init__(self, root: str):
        self.root = root
        os.makedirs(root, exist_ok=True)

    def _path(self, job_id: str) -> str:
        safe_job = os.path.basename(job_id)
        if not safe_job or safe_job != job_id or safe_job in (".", ".."):
            raise ValueError(f"Invalid job_id: {job_id!r}")
        return os.path.join(self.root, f"{safe_job}.json")

    def put_if_absent(self, job_id: str, record: ResultRecord) -> bool:
        """Store the record unless the job already has one. Returns True if it was written."""
        path = self._path(job_id)
        tmp = f"{path}.tmp.{os.getpid()}.{threading.get_ident()}"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(record.model_dump(mode="json", exclude_none=True), f, ensure_ascii=False, indent=2)
        try:
            os.link(tmp, path)
        except FileExistsError:
            return False
        finally:
            os.remove(tmp)
        return True

    def get(self, job_id: str) -> Optional[ResultRecord]:
        path = self._path(job_id)
        if not os.path.isfile(path):
            return None
        with open(path, encoding="utf-8") as f:
            return ResultRecord.model_validate(json.load(f))
