"""
Chunk store: transient base64 audio fragments keyed by "{job_id}/{index}".
Written by the capture/upload side, drained (and deleted) by the reassembler.
"""
import os
import threading
from typing import Dict, Optional, Protocol


def chunk_key(job_id: str, index: int) -> str:
    return f"{job_id}/{index}"


class ChunkStore(Protocol):
    def put(self, job_id: str, index: int, data_b64: str) -> None: ...

    def get(self, job_id: str, index: int) -> Optional[str]: ...

    def exists(self, job_id: str, index: int) -> bool: ...

    def delete(self, job_id: str, index: int) -> None: ...


class InMemoryChunkStore:
    """Process-local chunk store guarded by a lock (background jobs run in a threadpool).
    Why available: Default backend for single-process deployments and tests."""

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def put(self, job_id: str, index: int, data_b64: str) -> None:
        with self._lock:
            self._data[chunk_key(job_id, index)] = data_b64

    def get(self, job_id: str, index: int) -> Optional[str]:
        with self._lock:
            return self._data.get(chunk_key(job_id, index))

    def exists(self, job_id: str, index: int) -> bool:
        with self._lock:
            return chunk_key(job_id, index) in self._data

    def delete(self, job_id: str, index: int) -> None:
        with self._lock:
            self._data.pop(chunk_key(job_id, index), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class FileChunkStore:
    """Chunk store on disk: one text file per chunk under {root}/{job_id}/{index}.b64.
    Writes go through a temp file and os.replace so readers never see a partial chunk."""

    def __init__(self, root: str):
        self.root = root
        os.makedirs(root, exist_ok=True)

    def _path(self, job_id: str, index: int) -> str:
        safe_job = os.path.basename(job_id)
        if not safe_job or safe_job != job_id or safe_job in (".", ".."):
            raise ValueError(f"Invalid job_id: {job_id!r}")
        return os.path.join(self.root, safe_job, f"{int(index)}.b64")

    def put(self, job_id: str, index: int, data_b64: str) -> None:
        path = self._path(job_id, index)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        tmp = f"{path}.tmp.{threading.get_ident()}"
        with open(tmp, "w", encoding="ascii") as f:
            f.write(data_b64)
        os.replace(tmp, path)

    def get(self, job_id: str, index: int) -> Optional[str]:
        path = self._path(job_id, index)
        try:
            with open(path, encoding="ascii") as f:
                return f.read()
        except FileNotFoundError:
            return None

    def exists(self, job_id: str, index: int) -> bool:
        return os.path.isfile(self._path(job_id, index))

    def delete(self, job_id: str, index: int) -> None:
        path = self._path(job_id, index)
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        try:
            os.rmdir(os.path.dirname(path))
        except OSError:
            pass  # other chunks still present
