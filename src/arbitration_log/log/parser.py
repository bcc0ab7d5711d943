"""
Entry points of the mission log engine.

    from arbitration_log.log.parser import parse_log_file, ParseOptions
    result = parse_log_file("EE.log", ParseOptions(count=3))
"""

import logging
import os
from dataclasses import dataclass
from typing import BinaryIO, Iterable, Optional

from .line_feeder import DEFAULT_CHUNK_SIZE, ProgressCallback, iter_log_lines, iter_text_lines
from .models import LogLine, MissionStatus, ParseResult
from .segmenter import SegmentStateMachine
from .windowing import DEFAULT_COUNT, DEFAULT_MIN_DURATION_SEC, select_recent_valid

logger = logging.getLogger(__name__)

NO_START_MARKER_WARNING = "No Arbitration start marker found in the log."


@dataclass(frozen=True)
class ParseOptions:
    """
    Options of one parse call.

    Attributes:
        chunk_size: Bytes read per chunk
        min_duration_sec: Missions shorter than this are not valid
        count: Most recent valid missions to return, None returns all of them
    """
    chunk_size: int = DEFAULT_CHUNK_SIZE
    min_duration_sec: float = DEFAULT_MIN_DURATION_SEC
    count: Optional[int] = DEFAULT_COUNT

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.min_duration_sec < 0:
            raise ValueError(f"min_duration_sec must not be negative, got {self.min_duration_sec}")
        if self.count is not None and self.count < 0:
            raise ValueError(f"count must not be negative, got {self.count}")


def parse_lines(lines: Iterable[LogLine], options: Optional[ParseOptions] = None) -> ParseResult:
    """
    Segment decoded lines and apply the validity window.

    Args:
        lines: Numbered log lines in order
        options: Parse options (defaults when None)

    Returns:
        ParseResult with the retained missions, warnings and the valid total
    """
    options = options or ParseOptions()
    machine = SegmentStateMachine()
    for line in lines:
        machine.feed(line)
    machine.finish()

    segments = machine.segments
    warnings = []

    if machine.start_markers == 0:
        warnings.append(NO_START_MARKER_WARNING)
    else:
        incomplete = sum(1 for m in segments if m.status != MissionStatus.OK)
        if incomplete:
            warnings.append(f"{incomplete} mission(s) did not match an end marker.")

    missions, valid_total = select_recent_valid(segments, options.min_duration_sec, options.count)

    if options.count is not None and len(missions) < options.count:
        warnings.append(
            f"Not enough valid missions: only found {len(missions)} "
            f"(threshold {options.min_duration_sec:.0f}s)."
        )

    logger.debug(f"{machine.lines_seen} lines, {machine.start_markers} start markers, "
                 f"{len(segments)} segments, {valid_total} valid")

    return ParseResult(
        missions=tuple(missions),
        warnings=tuple(warnings),
        valid_total=valid_total,
        segments_total=len(segments),
    )


def parse_stream(stream: BinaryIO, total_size: int = 0, options: Optional[ParseOptions] = None,
                 on_progress: Optional[ProgressCallback] = None) -> ParseResult:
    """
    Parse an EE.log from a binary stream read in chunks.

    Args:
        stream: Binary file-like object
        total_size: Size of the source in bytes (for progress reporting)
        options: Parse options (defaults when None)
        on_progress: Optional callback receiving the fraction read after each chunk

    Returns:
        ParseResult
    """
    options = options or ParseOptions()
    lines = iter_log_lines(stream, total_size, options.chunk_size, on_progress)
    return parse_lines(lines, options)


def parse_log_file(path: str, options: Optional[ParseOptions] = None,
                   on_progress: Optional[ProgressCallback] = None) -> ParseResult:
    """
    Parse an EE.log file.

    Errors opening or reading the file propagate to the caller.

    Args:
        path: Path to the log file
        options: Parse options (defaults when None)
        on_progress: Optional progress callback

    Returns:
        ParseResult
    """
    with open(path, "rb") as stream:
        size = os.fstat(stream.fileno()).st_size
        logger.info(f"Parsing log file: {path} ({size / 1024 / 1024:.1f}MB)")
        return parse_stream(stream, size, options, on_progress)


def parse_text(text: str, options: Optional[ParseOptions] = None) -> ParseResult:
    """Parse log content that is already in memory."""
    return parse_lines(iter_text_lines(text), options)
