"""
Reusable scratch buffers for reading files and streams.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import io
import threading
from contextlib import contextmanager
from typing import BinaryIO, Iterator

DEFAULT_CHUNK_SIZE = 64 * 1024
MAX_POOLED = 16


class BufferPool:
    """Pool of io.BytesIO buffers.

    Buffers are reset when returned. Callers must not keep a reference to a
    buffer after handing it back.
    """

    def __init__(self, max_pooled: int = MAX_POOLED):
        self.max_pooled = max_pooled
        self._free: list[io.BytesIO] = []
        self._lock = threading.Lock()

    def get(self) -> io.BytesIO:
        with self._lock:
            if self._free:
                return self._free.pop()
        return io.BytesIO()

    def put(self, buf: io.BytesIO) -> None:
        buf.seek(0)
        buf.truncate(0)
        with self._lock:
            if len(self._free) < self.max_pooled:
                self._free.append(buf)

    def __len__(self) -> int:
        with self._lock:
            return len(self._free)


_pool = BufferPool()


@contextmanager
def bytes_buffer() -> Iterator[io.BytesIO]:
    """Borrow a pooled buffer for the duration of the block."""
    buf = _pool.get()
    try:
        yield buf
    finally:
        _pool.put(buf)


def read_all(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> bytes:
    """Drain a binary stream completely and return its bytes.

    The stream is left open; closing it is up to the caller.
    """
    with bytes_buffer() as buf:
        while True:
            chunk = stream.read(chunk_size)
            if not chunk:
                break
            buf.write(chunk)
        return buf.getvalue()
