"""
Base contract for the layers of a backup writer stack.

A stack is an ordered list: index 0 is the destination sink, the last
index is the outermost layer and receives the application bytes. Every
layer supports write(), flush() and close(); flush() is a no-op unless a
layer buffers data.
"""

from enum import Enum


class LayerKind(str, Enum):
    SINK = 'sink'
    CODEC = 'codec'
    CIPHER = 'cipher'


class WriterLayer:
    """
    One stage in the write/flush/close stack.

    Subclasses implement _write() and _close(); the base class rejects
    writes after close and makes close() safe to call more than once.
    """

    kind = LayerKind.SINK

    def __init__(self):
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, data) -> int:
        if self._closed:
            raise ValueError(f"write to closed {self.kind.value} layer {self!r}")
        return self._write(data)

    def flush(self):
        """Push any buffered data down to the wrapped writer."""
        pass

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._close()

    def abort(self, exc: Exception = None):
        """
        Tear the layer down on a failure path.

        Sinks override this so a half-written object is not committed.
        """
        self.close()

    def wait(self):
        """Block until any background work owned by the layer has finished."""
        pass

    def _write(self, data) -> int:
        raise NotImplementedError

    def _close(self):
        pass

    def __repr__(self):
        return f"<{type(self).__name__}>"
