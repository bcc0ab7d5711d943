"""
Arbitration Log Engine

This package segments a Warframe EE.log into Arbitration missions and
aggregates per-mission metrics: durations from the competing clocks in the
log, shield drone counts per wave or round, and the validity window over the
most recent missions.
"""

__all__ = ['line_feeder', 'markers', 'models', 'accumulator', 'segmenter', 'windowing', 'parser']

from .models import LogLine, MissionKind, MissionResult, MissionStatus, ParseResult, PhaseCount, StartKind
from .parser import ParseOptions, parse_log_file, parse_stream, parse_text
