"""
Mission accumulator and metrics resolution.

A MissionAccumulator holds the open segment while lines are fed to it:
identity, lifecycle timestamps, spawn counters, the phase ledger and the
client join table. `finalize()` turns it into an immutable MissionResult.
"""

import logging
import math
from typing import Dict, List, Optional

from .models import MissionKind, MissionResult, MissionStatus, PhaseCount, StartKind

logger = logging.getLogger(__name__)

# Game rule: a defense rotation is three waves
WAVES_PER_ROUND = 3
# Wave indices above this are treated as malformed
MAX_WAVE_INDEX = 1000


def span(first: Optional[float], last: Optional[float]) -> Optional[float]:
    """Difference last - first, or None if either side is missing or the result is not finite."""
    if first is None or last is None:
        return None
    value = last - first
    return value if math.isfinite(value) else None


def positive(value: Optional[float]) -> Optional[float]:
    if value is None or not math.isfinite(value) or value <= 0:
        return None
    return value


def pick_total_sec(*candidates: Optional[float]) -> Optional[float]:
    """Return the first candidate that is a positive finite number."""
    for candidate in candidates:
        value = positive(candidate)
        if value is not None:
            return value
    return None


def calc_per_min(count: int, span_sec: Optional[float]) -> Optional[float]:
    """Events per minute over span_sec, or None when the span is unusable."""
    if positive(span_sec) is None:
        return None
    per_min = count / (span_sec / 60.0)
    return per_min if math.isfinite(per_min) else None


class MissionAccumulator:
    """
    Mutable state of the single open mission segment.

    Lifecycle fields follow fixed overwrite rules: the started marker is kept
    from its first occurrence, while the ending, end and settlement markers
    are overwritten by every later occurrence.
    """

    def __init__(self, start_kind: StartKind, start_line: int, start_time: Optional[float],
                 mission_name: Optional[str] = None, node_id: Optional[str] = None):
        self.start_kind = start_kind
        self.start_line = start_line
        self.start_time = start_time
        self.mission_name = mission_name
        self.node_id = node_id
        self.mission_kind = MissionKind.UNCLASSIFIED

        # Remaining lines in which a host-loading line may still bind the node
        self.node_bind_budget = 0

        self.started = False
        self.started_line: Optional[int] = None
        self.started_time: Optional[float] = None
        self.ending_seen = False
        self.ending_line: Optional[int] = None
        self.ending_time: Optional[float] = None
        self.end_line: Optional[int] = None
        self.end_time: Optional[float] = None
        # Lifecycle clocks as they stood at the last matched end marker
        self.end_ending_time: Optional[float] = None
        self.end_settlement_time: Optional[float] = None
        self.end_last_seen_time: Optional[float] = None
        self.settlement_line: Optional[int] = None
        self.settlement_time: Optional[float] = None
        self.last_seen_time: Optional[float] = start_time
        self.last_line = start_line

        self.shield_drone_count = 0
        self.last_spawned: Optional[int] = None
        self.first_agent_time: Optional[float] = None
        self.last_agent_time: Optional[float] = None
        self.last_agent_line: Optional[int] = None

        self.phase_counts: List[int] = []
        self.pending_count = 0
        self.pending_folded = False
        self.active_phase: Optional[int] = None
        self.highest_wave = 0
        self.completed_rounds = 0
        self.round_transmission_seen = False

        self.client_join_times: Dict[str, float] = {}

    @property
    def counting(self) -> bool:
        """
        Spawn and phase events only count between the started transition and
        the first of the ending transition or a matched end marker.
        """
        return self.started and not self.ending_seen and not self.has_end_marker

    @property
    def has_end_marker(self) -> bool:
        return self.end_line is not None

    @property
    def has_spawn_signal(self) -> bool:
        return (self.shield_drone_count > 0
                or self.last_spawned is not None
                or self.first_agent_time is not None)

    # Lifecycle

    def mark_started(self, line_number: int, time: Optional[float]):
        if self.started:
            return
        self.started = True
        self.started_line = line_number
        self.started_time = time

    def mark_ending(self, line_number: int, time: Optional[float]):
        self.ending_seen = True
        self.ending_line = line_number
        if time is not None:
            self.ending_time = time

    def mark_end(self, line_number: int, time: Optional[float]):
        """
        Record a matched end marker.

        State lines after it belong to later sessions, so the clocks used for
        the duration are frozen here. A duplicate marker refreshes them.
        """
        self.end_line = line_number
        self.end_time = time
        self.end_ending_time = self.ending_time
        self.end_settlement_time = self.settlement_time
        self.end_last_seen_time = self.last_seen_time

    def mark_settlement(self, line_number: int, time: Optional[float]):
        if not self.counting:
            return
        self.settlement_line = line_number
        self.settlement_time = time

    def record_client_join(self, client: str, time: Optional[float]):
        if time is None or client in self.client_join_times:
            return
        self.client_join_times[client] = time

    @property
    def latest_client_join_time(self) -> Optional[float]:
        if not self.client_join_times:
            return None
        return max(self.client_join_times.values())

    # Phases

    def _grow_ledger(self, length: int):
        if len(self.phase_counts) < length:
            self.phase_counts.extend([0] * (length - len(self.phase_counts)))

    def _fold_pending(self):
        if self.pending_folded:
            return
        self._grow_ledger(1)
        self.phase_counts[0] += self.pending_count
        self.pending_count = 0
        self.pending_folded = True

    def mark_wave(self, wave: int):
        """Enter wave `wave` (1-based) and classify the mission as wave based."""
        if wave <= 0:
            return
        if wave > MAX_WAVE_INDEX:
            logger.debug(f"Ignoring implausible wave index {wave} in mission at line {self.start_line}")
            return
        if self.mission_kind == MissionKind.ROUND:
            if self.round_transmission_seen:
                return
            # Only the shared reward marker had classified it; the explicit wave index wins
            logger.debug(f"Reclassifying mission at line {self.start_line} from rounds to waves")
            self.completed_rounds = 0
        self.mission_kind = MissionKind.WAVE
        self.highest_wave = max(self.highest_wave, wave)
        self._grow_ledger(wave)
        self._fold_pending()
        self.active_phase = wave

    def mark_round_transmission(self):
        self.round_transmission_seen = True
        if self.mission_kind == MissionKind.WAVE:
            return
        self._complete_round()

    def mark_reward_transition_out(self):
        """
        Fallback round boundary.

        Defense missions print the same reward transition, so it is only
        trusted while no round transmission was seen and the mission is not
        wave based.
        """
        if self.round_transmission_seen or self.mission_kind == MissionKind.WAVE:
            return
        self._complete_round()

    def _complete_round(self):
        self.mission_kind = MissionKind.ROUND
        self.completed_rounds += 1
        if self.completed_rounds == 1:
            self._fold_pending()
        self.active_phase = self.completed_rounds + 1
        self._grow_ledger(self.active_phase)

    # Spawns

    def count_shield_drone(self):
        self.shield_drone_count += 1
        if self.mission_kind != MissionKind.UNCLASSIFIED and self.active_phase:
            self._grow_ledger(self.active_phase)
            self.phase_counts[self.active_phase - 1] += 1
        else:
            self.pending_count += 1

    def record_agent_created(self, line_number: int, time: Optional[float], spawned: Optional[int]):
        if time is not None:
            if self.first_agent_time is None:
                self.first_agent_time = time
            self.last_agent_time = time
        self.last_agent_line = line_number
        if spawned is not None:
            self.last_spawned = spawned

    def observe(self, line_number: int, time: Optional[float]):
        self.last_line = line_number
        if time is not None:
            self.last_seen_time = time

    # Finalize

    def _resolve_phases(self):
        if self.mission_kind == MissionKind.WAVE:
            waves = self.highest_wave or len(self.phase_counts)
            rounds = math.ceil(waves / WAVES_PER_ROUND)
            counts = self.phase_counts[:waves]
            return waves, rounds, tuple(PhaseCount(MissionKind.WAVE, i, c) for i, c in enumerate(counts, 1))

        if self.mission_kind == MissionKind.ROUND:
            if self.completed_rounds > 0:
                rounds = self.completed_rounds
                counts = self.phase_counts[:rounds]
            elif self.phase_counts:
                rounds = len(self.phase_counts)
                counts = list(self.phase_counts)
            elif self.pending_count > 0:
                rounds = 1
                counts = [self.pending_count]
            else:
                return None, 0, ()
            return None, rounds, tuple(PhaseCount(MissionKind.ROUND, i, c) for i, c in enumerate(counts, 1))

        return None, None, ()

    def finalize(self, index: int, reason: Optional[str] = None) -> MissionResult:
        """
        Resolve the segment into a MissionResult.

        Args:
            index: 1-based sequence number of the segment in the log
            reason: Why the segment was closed without an end marker

        Returns:
            The immutable mission record
        """
        if self.has_end_marker:
            status = MissionStatus.OK
            ending_time = self.end_ending_time
            settlement_time = self.end_settlement_time
            last_seen_time = self.end_last_seen_time
        else:
            status = MissionStatus.INCOMPLETE
            ending_time = self.ending_time
            settlement_time = self.settlement_time
            last_seen_time = self.last_seen_time

        duration = span(self.start_time, self.end_time)
        agent_span = span(self.first_agent_time, self.last_agent_time)
        settlement_duration = span(self.started_time, settlement_time)
        state_end = ending_time if ending_time is not None else last_seen_time
        state_duration = span(self.started_time, state_end)

        total = pick_total_sec(settlement_duration, state_duration, agent_span, duration)

        latest_join = self.latest_client_join_time
        client_anchor = next((t for t in (settlement_time, ending_time, last_seen_time)
                              if t is not None), None)
        client_duration = positive(span(latest_join, client_anchor))

        wave_count, round_count, phases = self._resolve_phases()

        in_progress = status == MissionStatus.INCOMPLETE and self.started and self.has_spawn_signal

        if status == MissionStatus.OK:
            if self.last_agent_line is not None:
                note = f"Last OnAgentCreated at line {self.last_agent_line}"
            else:
                note = "No OnAgentCreated in segment"
        else:
            node_note = f"node {self.node_id}" if self.node_id else "no node id bound, end marker cannot match"
            note = f"{reason or 'No end marker matched'} ({node_note})"

        logger.debug(f"Finalized segment {index} from line {self.start_line}: {status.value}, total={total}")

        return MissionResult(
            index=index,
            start_kind=self.start_kind,
            start_line=self.start_line,
            status=status,
            node_id=self.node_id,
            mission_name=self.mission_name,
            mission_kind=self.mission_kind,
            end_line=self.end_line,
            start_time=self.start_time,
            end_time=self.end_time,
            duration_sec=duration,
            state_started_time=self.started_time,
            state_ending_time=ending_time,
            state_duration_sec=state_duration,
            settlement_time=settlement_time,
            settlement_duration_sec=settlement_duration,
            latest_client_join_time=latest_join,
            client_duration_sec=client_duration,
            total_sec=total,
            spawned_at_end=self.last_spawned,
            first_on_agent_time=self.first_agent_time,
            last_on_agent_time=self.last_agent_time,
            on_agent_span_sec=agent_span,
            shield_drone_count=self.shield_drone_count,
            shield_drone_per_min=calc_per_min(self.shield_drone_count, total),
            wave_count=wave_count,
            round_count=round_count,
            phases=phases,
            in_progress=in_progress,
            note=note,
        )
