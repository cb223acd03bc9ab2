"""Sequential chunked upload driven by an explicit state machine.

States:
    sending     - the chunk at ``offset`` is next to be sent
    completing  - the final chunk was acknowledged; the result is being checked
    done        - the provider returned a usable result
    failed      - a chunk send or the final check raised

Each call to ``step()`` performs at most one provider round trip, so exactly
one chunk is in flight at a time and chunks are sent in offset order.
"""

from collections.abc import Callable
from enum import Enum
from typing import Any

from mediavault.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 5_000_000

# (chunk bytes, start offset, total length) -> provider JSON response
ChunkSender = Callable[[bytes, int, int], dict[str, Any]]


class UploadState(str, Enum):
    SENDING = "sending"
    COMPLETING = "completing"
    DONE = "done"
    FAILED = "failed"


class ChunkedUploadError(Exception):
    """The upload finished without a usable result."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ChunkedUpload:
    """Drive one upload of ``data`` through ``send_chunk`` in fixed-size chunks.

    The chunk whose end offset reaches the total length is the last one. An
    empty payload is sent as a single empty chunk.

    Usage:
        upload = ChunkedUpload(data, sender, chunk_size=5_000_000)
        result = upload.run()
    """

    def __init__(self, data: bytes, send_chunk: ChunkSender, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._data = data
        self._send_chunk = send_chunk
        self.chunk_size = chunk_size
        self.state = UploadState.SENDING
        self.offset = 0
        self.chunks_sent = 0
        self.result: dict[str, Any] | None = None
        self.error: Exception | None = None
        self._final_response: dict[str, Any] | None = None

    @property
    def total(self) -> int:
        return len(self._data)

    @property
    def finished(self) -> bool:
        return self.state in (UploadState.DONE, UploadState.FAILED)

    def step(self) -> UploadState:
        """Advance the machine by one transition and return the new state.

        Raises:
            Exception: Whatever the sender raised; the machine is then failed.
            ChunkedUploadError: If the provider's final response has no public_id.
            RuntimeError: If called after the upload finished.
        """
        if self.state is UploadState.SENDING:
            self._send_next_chunk()
        elif self.state is UploadState.COMPLETING:
            self._complete()
        else:
            raise RuntimeError(f"Upload already {self.state.value}")
        return self.state

    def run(self) -> dict[str, Any]:
        """Step until done; return the provider's final result."""
        while not self.finished:
            self.step()
        assert self.result is not None
        return self.result

    def _send_next_chunk(self) -> None:
        start = self.offset
        end = min(start + self.chunk_size, self.total)
        try:
            response = self._send_chunk(self._data[start:end], start, self.total)
        except Exception as e:
            self._fail(e)
            raise
        self.chunks_sent += 1

        if end >= self.total:
            self._final_response = response
            self.state = UploadState.COMPLETING
        else:
            self.offset = end

    def _complete(self) -> None:
        response = self._final_response
        if not response or not response.get("public_id"):
            error = ChunkedUploadError("No result returned")
            self._fail(error)
            raise error
        self.result = response
        self.state = UploadState.DONE
        logger.debug("chunked_upload_done", chunks=self.chunks_sent, total_bytes=self.total)

    def _fail(self, error: Exception) -> None:
        self.error = error
        self.state = UploadState.FAILED
        logger.warning(
            "chunked_upload_failed",
            offset=self.offset,
            chunks_sent=self.chunks_sent,
            error=str(error),
        )
