"""
Bounded in-memory pipe connecting a synchronous producer to a reader
running on another thread.

The writer blocks while the buffer is full, so memory use is bounded by
the pipe capacity rather than by the size of the stream. Closing either
end with an error makes the other end raise that error.
"""

import threading


class PipeClosedError(BrokenPipeError):
    """Raised on read or write through a closed pipe end."""
    pass


class Pipe:
    """
    Shared state of a pipe. Use the reader and writer attributes.

    Args:
        capacity: Maximum number of bytes buffered between the two ends
    """

    def __init__(self, capacity: int = 1024 * 1024):
        if capacity <= 0:
            raise ValueError(f"Pipe capacity must be positive, got {capacity}")

        self.capacity = capacity
        self._buffer = bytearray()
        self._cond = threading.Condition()
        self._write_closed = False
        self._read_closed = False
        self._write_error = None
        self._read_error = None

        self.reader = PipeReader(self)
        self.writer = PipeWriter(self)

    def _write(self, data) -> int:
        view = memoryview(data).cast('B')
        total = len(view)
        offset = 0

        with self._cond:
            if self._write_closed:
                raise PipeClosedError("write on closed pipe")

            while offset < total:
                while len(self._buffer) >= self.capacity and not self._read_closed:
                    self._cond.wait()

                if self._read_closed:
                    if self._read_error is not None:
                        raise PipeClosedError(f"pipe reader closed: {self._read_error}") from self._read_error
                    raise PipeClosedError("pipe reader closed")

                n = min(self.capacity - len(self._buffer), total - offset)
                self._buffer += view[offset:offset + n]
                offset += n
                self._cond.notify_all()

        return total

    def _read(self, size: int) -> bytes:
        with self._cond:
            while not self._buffer and not self._write_closed and not self._read_closed:
                self._cond.wait()

            if self._read_closed:
                raise PipeClosedError("read on closed pipe")

            if not self._buffer:
                # Write end closed and buffer drained
                if self._write_error is not None:
                    raise self._write_error
                return b''

            if size is None or size < 0 or size >= len(self._buffer):
                size = len(self._buffer)

            chunk = bytes(self._buffer[:size])
            del self._buffer[:size]
            self._cond.notify_all()
            return chunk

    def _close_writer(self, error: Exception = None):
        with self._cond:
            if self._write_closed:
                return
            self._write_closed = True
            self._write_error = error
            self._cond.notify_all()

    def _close_reader(self, error: Exception = None):
        with self._cond:
            if self._read_closed:
                return
            self._read_closed = True
            self._read_error = error
            self._buffer.clear()
            self._cond.notify_all()


class PipeWriter:
    """Write end of a Pipe."""

    def __init__(self, pipe: Pipe):
        self._pipe = pipe

    def write(self, data) -> int:
        return self._pipe._write(data)

    def close(self, error: Exception = None):
        """Close the write end; the reader sees EOF, or error if one is given."""
        self._pipe._close_writer(error)

    @property
    def closed(self) -> bool:
        return self._pipe._write_closed


class PipeReader:
    """
    Read end of a Pipe.

    Behaves like a non-seekable binary file so it can be handed to clients
    that stream from a file object.
    """

    def __init__(self, pipe: Pipe):
        self._pipe = pipe

    def read(self, size: int = -1) -> bytes:
        """
        Read up to size bytes, or until EOF when size is negative.

        Like a buffered file, a short result only happens at EOF: upload
        clients treat a short read as the end of the stream.
        """
        if size is None:
            size = -1

        chunks = []
        remaining = size
        while size < 0 or remaining > 0:
            chunk = self._pipe._read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)

        return b''.join(chunks)

    def read1(self, size: int = -1) -> bytes:
        """Return whatever is buffered, blocking only while the pipe is empty."""
        return self._pipe._read(size)

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def writable(self) -> bool:
        return False

    def close(self, error: Exception = None):
        """Close the read end; a blocked or later write raises PipeClosedError."""
        self._pipe._close_reader(error)

    @property
    def closed(self) -> bool:
        return self._pipe._read_closed
