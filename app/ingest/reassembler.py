import base64
import binascii
import logging
from typing import Iterator, List

from app.guardrails.errors import CorruptChunkError, MissingChunkError
from app.storage.chunk_store import ChunkStore

logger = logging.getLogger(__name__)


def missing_chunks(store: ChunkStore, job_id: str, total_chunks: int) -> List[int]:
    """Return the indices in 0..total_chunks-1 that are not present in the store.
    Why available: Orchestrator checks this before the upload handshake so a gap never results in partial data reaching the backend."""
    return [i for i in range(total_chunks) if not store.exists(job_id, i)]


class ChunkReassembler:
    """Drains chunks 0..N-1 of one job from the chunk store and re-slices them into fixed-size upload blocks.

    Iterate blocks() to receive full blocks as soon as the buffer holds one; after
    the iterator is exhausted, `remainder` holds the tail (possibly empty) for the
    finalize call. Each chunk is deleted from the store right after it is decoded.
    """

    def __init__(self, store: ChunkStore, job_id: str, total_chunks: int, block_size: int):
        if block_size <= 0:
            raise ValueError("block_size must be > 0")
        if total_chunks < 0:
            raise ValueError("total_chunks must be >= 0")
        self.store = store
        self.job_id = job_id
        self.total_chunks = total_chunks
        self.block_size = block_size
        self.remainder = b""
        self.bytes_read = 0
        self._buffer = bytearray()

    def _read_chunk(self, index: int) -> bytes:
        encoded = self.store.get(self.job_id, index)
        if encoded is None:
            raise MissingChunkError(self.job_id, index)
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise CorruptChunkError(self.job_id, index) from e

    def blocks(self) -> Iterator[bytes]:
        """Yield full block_size blocks in strict index order; sets remainder when done."""
        self._buffer = bytearray()
        self.remainder = b""
        self.bytes_read = 0

        for index in range(self.total_chunks):
            data = self._read_chunk(index)
            self._buffer.extend(data)
            self.bytes_read += len(data)
            self.store.delete(self.job_id, index)

            while len(self._buffer) >= self.block_size:
                block = bytes(self._buffer[: self.block_size])
                del self._buffer[: self.block_size]
                yield block

        self.remainder = bytes(self._buffer)
        self._buffer = bytearray()
        logger.debug(
            "reassembled job=%s chunks=%d bytes=%d tail=%d",
            self.job_id, self.total_chunks, self.bytes_read, len(self.remainder),
        )


def reassemble(store: ChunkStore, job_id: str, total_chunks: int, block_size: int) -> bytes:
    """Return the full concatenated byte stream for a job (blocks + remainder). Consumes and deletes the chunks."""
    r = ChunkReassembler(store, job_id, total_chunks, block_size)
    out = bytearray()
    for block in r.blocks():
        out.extend(block)
    out.extend(r.remainder)
    return bytes(out)
