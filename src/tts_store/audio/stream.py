"""
Audio Stream Buffering.

Polly returns its audio as a lazy, finite, non-restartable byte stream
(botocore StreamingBody). S3 needs the complete payload up front, so the
stream is drained into one contiguous buffer and closed before the upload
starts. That releases the Polly connection before the second network call.

Chunks are concatenated strictly in arrival order; reordering would corrupt
the MP3 frames. The whole file is held in memory, which is fine for the
short texts Polly accepts per request (a few MB of audio at most).
"""
from __future__ import annotations

from typing import Any, Iterator

# Read size for StreamingBody.iter_chunks()
DEFAULT_CHUNK_SIZE = 64 * 1024


def iter_stream(stream: Any, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    """
    Iterate over the byte chunks of a provider stream.

    Supports botocore StreamingBody (iter_chunks), file-like objects (read)
    and plain iterables of bytes.
    """
    if hasattr(stream, "iter_chunks"):
        yield from stream.iter_chunks(chunk_size=chunk_size)
    elif hasattr(stream, "read"):
        while True:
            chunk = stream.read(chunk_size)
            if not chunk:
                break
            yield chunk
    else:
        yield from stream


def drain_stream(stream: Any, chunk_size: int = DEFAULT_CHUNK_SIZE) -> bytes:
    """
    Drain a lazy byte stream into a single buffer.

    The stream is closed afterwards, including when reading fails.

    Args:
        stream: StreamingBody, file-like object or iterable of bytes chunks.
        chunk_size: Read size for streams that support it.

    Returns:
        All chunks concatenated in the order received.

    Raises:
        TypeError: If the stream yields something other than bytes.
    """
    buffer = bytearray()
    try:
        for chunk in iter_stream(stream, chunk_size=chunk_size):
            if not isinstance(chunk, (bytes, bytearray, memoryview)):
                raise TypeError(f"audio stream yielded {type(chunk).__name__}, expected bytes")
            buffer += chunk
    finally:
        close = getattr(stream, "close", None)
        if callable(close):
            close()
    return bytes(buffer)
