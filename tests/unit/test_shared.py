"""
Unit tests for pooled buffers.
"""

import io

from ghostman.shared import BufferPool, bytes_buffer, read_all


class TestBufferPool:
    """Tests for BufferPool."""

    def test_returned_buffers_are_reset(self):
        pool = BufferPool()
        buf = pool.get()
        buf.write(b"leftover")
        pool.put(buf)

        reused = pool.get()

        assert reused is buf
        assert reused.getvalue() == b""

    def test_pool_is_bounded(self):
        pool = BufferPool(max_pooled=2)
        for _ in range(5):
            pool.put(io.BytesIO())

        assert len(pool) == 2


def test_bytes_buffer_contents():
    with bytes_buffer() as buf:
        buf.write(b"abc")
        assert buf.getvalue() == b"abc"


def test_read_all_drains_in_chunks():
    stream = io.BytesIO(b"0123456789" * 10)

    assert read_all(stream, chunk_size=7) == b"0123456789" * 10
    assert not stream.closed
