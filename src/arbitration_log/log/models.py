"""
Result records produced by the mission log engine.

Everything here is immutable: records are built once by the finalize step
and only copied (never edited) by the validity window.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple


class StartKind(str, Enum):
    """Which opening line started a segment."""
    MISSION_NAME = "missionName"
    MISSION_VOTE = "missionVote"


class MissionKind(str, Enum):
    UNCLASSIFIED = "unclassified"
    WAVE = "wave"
    ROUND = "round"


class MissionStatus(str, Enum):
    OK = "ok"
    INCOMPLETE = "incomplete"


@dataclass(frozen=True)
class LogLine:
    """One decoded line of the log and its 1-based line number."""
    number: int
    text: str


@dataclass(frozen=True)
class PhaseCount:
    """Shield drone count inside one wave or round."""
    kind: MissionKind
    index: int
    count: int


@dataclass(frozen=True)
class MissionResult:
    """A finalized mission segment with all derived metrics."""
    index: int
    start_kind: StartKind
    start_line: int
    status: MissionStatus
    node_id: Optional[str] = None
    mission_name: Optional[str] = None
    mission_kind: MissionKind = MissionKind.UNCLASSIFIED
    end_line: Optional[int] = None

    start_time: Optional[float] = None
    end_time: Optional[float] = None
    duration_sec: Optional[float] = None

    state_started_time: Optional[float] = None
    state_ending_time: Optional[float] = None
    state_duration_sec: Optional[float] = None

    settlement_time: Optional[float] = None
    settlement_duration_sec: Optional[float] = None

    latest_client_join_time: Optional[float] = None
    client_duration_sec: Optional[float] = None

    total_sec: Optional[float] = None

    spawned_at_end: Optional[int] = None
    first_on_agent_time: Optional[float] = None
    last_on_agent_time: Optional[float] = None
    on_agent_span_sec: Optional[float] = None

    shield_drone_count: int = 0
    shield_drone_per_min: Optional[float] = None

    wave_count: Optional[int] = None
    round_count: Optional[int] = None
    phases: Tuple[PhaseCount, ...] = ()

    in_progress: bool = False
    note: Optional[str] = None

    @property
    def has_spawn_signal(self) -> bool:
        return (self.shield_drone_count > 0
                or self.spawned_at_end is not None
                or self.first_on_agent_time is not None)

    def renumbered(self, index: int) -> "MissionResult":
        return replace(self, index=index)

    def to_row(self) -> dict:
        """Flatten into a dict of plain values for tabular export."""
        return {
            "index": self.index,
            "node_id": self.node_id,
            "mission_name": self.mission_name,
            "mission_kind": self.mission_kind.value,
            "start_kind": self.start_kind.value,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration_sec": self.duration_sec,
            "state_started_time": self.state_started_time,
            "state_ending_time": self.state_ending_time,
            "state_duration_sec": self.state_duration_sec,
            "settlement_time": self.settlement_time,
            "settlement_duration_sec": self.settlement_duration_sec,
            "latest_client_join_time": self.latest_client_join_time,
            "client_duration_sec": self.client_duration_sec,
            "total_sec": self.total_sec,
            "spawned_at_end": self.spawned_at_end,
            "first_on_agent_time": self.first_on_agent_time,
            "last_on_agent_time": self.last_on_agent_time,
            "on_agent_span_sec": self.on_agent_span_sec,
            "shield_drone_count": self.shield_drone_count,
            "shield_drone_per_min": self.shield_drone_per_min,
            "wave_count": self.wave_count,
            "round_count": self.round_count,
            "phases": " ".join(f"{p.index}:{p.count}" for p in self.phases),
            "status": self.status.value,
            "in_progress": self.in_progress,
            "note": self.note,
        }


@dataclass(frozen=True)
class ParseResult:
    missions: Tuple[MissionResult, ...] = ()
    warnings: Tuple[str, ...] = ()
    valid_total: int = 0
    segments_total: int = field(default=0, compare=False)
