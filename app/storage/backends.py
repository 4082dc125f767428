import os
from typing import Tuple

from app.core.config import Settings
from app.storage.chunk_store import ChunkStore, FileChunkStore, InMemoryChunkStore
from app.storage.result_store import FileResultStore, InMemoryResultStore, ResultStore


def build_stores(cfg: Settings) -> Tuple[ChunkStore, ResultStore]:
    """Create the chunk and result stores selected by STORE_BACKEND ("memory" or "file" under DATA_ROOT).
    Why available: The API and background jobs must share the same store instances."""
    if cfg.store_backend == "file":
        return (
            FileChunkStore(os.path.join(cfg.data_root, "uploads")),
            FileResultStore(os.path.join(cfg.data_root, "results")),
        )
    return InMemoryChunkStore(), InMemoryResultStore()
