"""
Line feeder for EE.log files.

Reads a binary source in bounded chunks, decodes it incrementally and yields
numbered lines. Multi-byte characters and CRLF pairs split across a chunk
boundary are carried into the next chunk, so the produced lines do not depend
on the chunk size.
"""

import codecs
import logging
import math
import re
from typing import BinaryIO, Callable, Iterator, Optional

from .models import LogLine

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4 * 1024 * 1024
LOG_ENCODING = "utf-8"

# Seconds since client start, optionally behind a single marker character ("!123.4 ...")
TIME_PREFIX_PATTERN = re.compile(r'^[^\w\s]?(\d+(?:\.\d+)?)\s')

ProgressCallback = Callable[[float], None]


def parse_time(text: str) -> Optional[float]:
    """
    Extract the leading timestamp of a log line.

    Args:
        text: The raw line text

    Returns:
        Seconds as float, or None when the line has no numeric prefix
    """
    match = TIME_PREFIX_PATTERN.match(text)
    if not match:
        return None
    try:
        value = float(match.group(1))
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _split_complete_lines(buffer: str):
    """Split decoded text into terminated lines and the unterminated remainder."""
    parts = buffer.split("\n")
    carry = parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts], carry


def iter_log_lines(stream: BinaryIO, total_size: int = 0,
                   chunk_size: int = DEFAULT_CHUNK_SIZE,
                   on_progress: Optional[ProgressCallback] = None) -> Iterator[LogLine]:
    """
    Yield the lines of a binary stream, reading at most chunk_size bytes at a time.

    The next chunk is only read once every line of the current one has been
    consumed. Read errors propagate to the caller.

    Args:
        stream: Binary file-like object positioned at the start of the log
        total_size: Size of the source in bytes, used for progress fractions
        chunk_size: Maximum number of bytes read per call
        on_progress: Optional callback receiving a fraction in [0, 1] after each chunk

    Yields:
        LogLine objects numbered from 1
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    decoder = codecs.getincrementaldecoder(LOG_ENCODING)(errors="replace")
    carry = ""
    line_number = 0
    bytes_read = 0
    last_fraction = 0.0

    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        bytes_read += len(chunk)

        lines, carry = _split_complete_lines(carry + decoder.decode(chunk))
        for text in lines:
            line_number += 1
            yield LogLine(line_number, text)

        if on_progress is not None:
            fraction = min(1.0, bytes_read / total_size) if total_size > 0 else 1.0
            last_fraction = max(last_fraction, fraction)
            on_progress(last_fraction)

    lines, carry = _split_complete_lines(carry + decoder.decode(b"", final=True))
    for text in lines:
        line_number += 1
        yield LogLine(line_number, text)

    if carry:
        line_number += 1
        yield LogLine(line_number, carry[:-1] if carry.endswith("\r") else carry)

    logger.debug(f"Fed {line_number} lines from {bytes_read} bytes")


def iter_text_lines(text: str) -> Iterator[LogLine]:
    """Number the lines of already-decoded text the same way iter_log_lines does."""
    lines, carry = _split_complete_lines(text)
    for number, line in enumerate(lines, 1):
        yield LogLine(number, line)
    if carry:
        yield LogLine(len(lines) + 1, carry[:-1] if carry.endswith("\r") else carry)
