"""
Compression layers for backup streams.

Supports:
- gzip: deflate stream in a gzip container
- lz4: LZ4 frame format
- snappy: Snappy framing format
- none: no layer, bytes go straight to the sink

Each layer buffers and compresses what it is given and writes compressed
blocks to the layer below it. close() writes the codec trailer but leaves
the wrapped layer open; the writer stack closes it separately.
"""

import io
import zlib
import logging
from enum import Enum

import lz4.frame
import snappy

from .errors import UnsupportedCodecError
from .layers import LayerKind, WriterLayer

logger = logging.getLogger(__name__)


class Codec(str, Enum):
    NONE = 'none'
    GZIP = 'gzip'
    LZ4 = 'lz4'
    SNAPPY = 'snappy'


def parse_codec(value) -> Codec:
    """
    Convert a codec name to a Codec.

    Raises:
        UnsupportedCodecError: If the name is not a known codec
    """
    if isinstance(value, Codec):
        return value
    try:
        return Codec(str(value).strip().lower())
    except ValueError:
        raise UnsupportedCodecError(
            f"Invalid compression codec: {value}. "
            f"Valid options: {[c.value for c in Codec]}"
        )


class CodecLayer(WriterLayer):
    """Base class for layers that compress into a wrapped layer."""

    kind = LayerKind.CODEC
    codec = None

    def __init__(self, inner: WriterLayer):
        super().__init__()
        self.inner = inner

    def _emit(self, data):
        if data:
            self.inner.write(data)

    def abort(self, exc: Exception = None):
        # Aborted streams get no trailer
        self._closed = True

    def __repr__(self):
        return f"<{type(self).__name__} over {self.inner!r}>"


class GzipLayer(CodecLayer):
    codec = Codec.GZIP

    def __init__(self, inner: WriterLayer, level: int = 6):
        super().__init__(inner)
        # wbits=31 selects the gzip container
        self._compressor = zlib.compressobj(level, zlib.DEFLATED, 31)

    def _write(self, data) -> int:
        self._emit(self._compressor.compress(data))
        return len(data)

    def flush(self):
        if not self._closed:
            self._emit(self._compressor.flush(zlib.Z_SYNC_FLUSH))

    def _close(self):
        self._emit(self._compressor.flush(zlib.Z_FINISH))


class _BlockCodecLayer(CodecLayer):
    """Codec layer that compresses input in fixed-size blocks."""

    def __init__(self, inner: WriterLayer, block_size: int):
        super().__init__(inner)
        self.block_size = block_size
        self._buffer = bytearray()

    def _write(self, data) -> int:
        self._buffer += data
        while len(self._buffer) >= self.block_size:
            block = bytes(self._buffer[:self.block_size])
            del self._buffer[:self.block_size]
            self._emit(self._compress_block(block))
        return len(data)

    def _drain(self):
        if self._buffer:
            block = bytes(self._buffer)
            self._buffer.clear()
            self._emit(self._compress_block(block))

    def flush(self):
        if not self._closed:
            self._drain()

    def _close(self):
        self._drain()
        self._emit(self._finish())

    def _compress_block(self, block: bytes) -> bytes:
        raise NotImplementedError

    def _finish(self) -> bytes:
        return b''


class LZ4Layer(_BlockCodecLayer):
    codec = Codec.LZ4

    def __init__(self, inner: WriterLayer, block_size: int = 4 * 1024 * 1024):
        super().__init__(inner, block_size)
        # auto_flush makes every compress() call return a complete block
        self._compressor = lz4.frame.LZ4FrameCompressor(auto_flush=True)
        self._started = False

    def _begin(self) -> bytes:
        if self._started:
            return b''
        self._started = True
        return self._compressor.begin()

    def _compress_block(self, block: bytes) -> bytes:
        return self._begin() + self._compressor.compress(block)

    def _finish(self) -> bytes:
        # An empty stream is still a complete frame
        return self._begin() + self._compressor.flush()


class SnappyLayer(_BlockCodecLayer):
    codec = Codec.SNAPPY

    def __init__(self, inner: WriterLayer, block_size: int = 64 * 1024):
        super().__init__(inner, block_size)
        self._compressor = snappy.StreamCompressor()

    def _compress_block(self, block: bytes) -> bytes:
        return self._compressor.compress(block)


def create_codec_layer(codec, inner: WriterLayer, settings):
    """
    Wrap inner with the compression layer for codec.

    Args:
        codec: Codec or codec name
        inner: Current outermost layer
        settings: Config class with codec settings

    Returns:
        The new layer, or None for Codec.NONE

    Raises:
        UnsupportedCodecError: If codec is unknown
    """
    codec = parse_codec(codec)

    if codec == Codec.NONE:
        return None
    elif codec == Codec.GZIP:
        layer = GzipLayer(inner, level=settings.GZIP_LEVEL)
    elif codec == Codec.LZ4:
        layer = LZ4Layer(inner, block_size=settings.LZ4_BLOCK_SIZE)
    elif codec == Codec.SNAPPY:
        layer = SnappyLayer(inner, block_size=settings.SNAPPY_BLOCK_SIZE)
    else:
        raise UnsupportedCodecError(f"Invalid compression codec: {codec}")

    logger.debug(f"Added {codec.value} layer over {inner!r}")
    return layer


def decompress(codec, data: bytes) -> bytes:
    """
    Decode a complete stream written with codec.

    Args:
        codec: Codec or codec name
        data: Encoded stream

    Returns:
        The original bytes
    """
    codec = parse_codec(codec)

    if codec == Codec.NONE:
        return data
    elif codec == Codec.GZIP:
        return zlib.decompress(data, 31)
    elif codec == Codec.LZ4:
        return lz4.frame.decompress(data)
    else:
        output = io.BytesIO()
        snappy.stream_decompress(io.BytesIO(data), output)
        return output.getvalue()
