"""
Segment state machine.

`step()` is a pure reducer over (accumulator, line): it opens, updates and
closes mission segments and returns the finalized record when one is closed.
`SegmentStateMachine` drives it over a line stream and owns everything a
single parse call needs, so parallel parses never share state.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from . import markers as mk
from .accumulator import MissionAccumulator
from .line_feeder import parse_time
from .models import LogLine, MissionResult, StartKind

logger = logging.getLogger(__name__)

# Lines after a start marker in which a host-loading line may bind the node id
NODE_BIND_WINDOW = 15

END_OF_LOG_REASON = "End of log reached before an end marker"


def _open_segment(found, line: LogLine, time: Optional[float]) -> Optional[MissionAccumulator]:
    if mk.MISSION_NAME in found:
        accumulator = MissionAccumulator(
            StartKind.MISSION_NAME, line.number, time,
            mission_name=found[mk.MISSION_NAME].group("name").strip() or None,
        )
    elif mk.MISSION_VOTE in found:
        accumulator = MissionAccumulator(
            StartKind.MISSION_VOTE, line.number, time,
            mission_name=found[mk.MISSION_VOTE].group("name").strip() or None,
            node_id=mk.inline_node(line.text),
        )
    else:
        return None

    if accumulator.node_id is None:
        accumulator.node_bind_budget = NODE_BIND_WINDOW
    return accumulator


def close_segment(accumulator: MissionAccumulator, index: int,
                  reason: Optional[str] = None) -> Optional[MissionResult]:
    """
    Finalize an accumulator, or drop it as a false start.

    A segment that neither matched an end marker nor reached the started
    state (typically a mission vote that was never played) produces nothing.
    """
    if accumulator.has_end_marker or accumulator.started:
        return accumulator.finalize(index, reason)
    logger.debug(f"Discarding false start at line {accumulator.start_line} ({accumulator.mission_name})")
    return None


def _apply(accumulator: MissionAccumulator, found, line: LogLine, time: Optional[float]):
    accumulator.observe(line.number, time)

    if accumulator.node_id is None and accumulator.node_bind_budget > 0:
        if mk.HOST_LOADING in found:
            accumulator.node_id = found[mk.HOST_LOADING].group("node")
            logger.debug(f"Bound node {accumulator.node_id} at line {line.number}")
        accumulator.node_bind_budget -= 1

    if mk.STATE_STARTED in found:
        accumulator.mark_started(line.number, time)
    if mk.STATE_ENDING in found:
        accumulator.mark_ending(line.number, time)

    if mk.MISSION_END in found and accumulator.node_id:
        if found[mk.MISSION_END].group("node") == accumulator.node_id:
            accumulator.mark_end(line.number, time)

    if mk.SETTLEMENT_EOM in found or mk.SETTLEMENT_EXTRACTION in found:
        accumulator.mark_settlement(line.number, time)

    if not accumulator.ending_seen and not accumulator.has_end_marker:
        for name in (mk.JOIN_IN_PROGRESS, mk.SEND_LEVEL):
            if name in found and found[name].group("node") == accumulator.node_id:
                accumulator.record_client_join(found[name].group("client"), time)
        if mk.PLAYER_CONNECT in found and int(found[mk.PLAYER_CONNECT].group("slot")) != 0:
            accumulator.record_client_join(found[mk.PLAYER_CONNECT].group("client"), time)

    if not accumulator.counting:
        return

    if mk.WAVE in found:
        accumulator.mark_wave(int(found[mk.WAVE].group("wave")))
    if mk.ROUND_TRANSMISSION in found:
        accumulator.mark_round_transmission()
    if mk.REWARD_TRANSITION_OUT in found:
        accumulator.mark_reward_transition_out()

    if mk.SHIELD_DRONE in found:
        accumulator.count_shield_drone()
    if mk.AGENT_CREATED in found:
        accumulator.record_agent_created(line.number, time, mk.spawned_payload(line.text))


def step(accumulator: Optional[MissionAccumulator], line: LogLine,
         next_index: int = 1) -> Tuple[Optional[MissionAccumulator], Optional[MissionResult]]:
    """
    Feed one line to the state machine.

    Args:
        accumulator: The open segment, or None
        line: The next line of the log
        next_index: Sequence number given to a segment closed by this line

    Returns:
        Tuple of (open segment after this line, segment closed by this line or None)
    """
    found = mk.recognize(line.text)
    time = parse_time(line.text)

    opened = _open_segment(found, line, time)
    if opened is not None:
        emitted = None
        if accumulator is not None:
            emitted = close_segment(
                accumulator, next_index,
                f"New start marker at line {line.number} before an end marker",
            )
        return opened, emitted

    if accumulator is None:
        return None, None

    _apply(accumulator, found, line, time)
    return accumulator, None


class SegmentStateMachine:
    """
    Runs `step()` over a line stream and collects the finalized segments.

    One instance per parse call.
    """

    def __init__(self):
        self.accumulator: Optional[MissionAccumulator] = None
        self.segments: List[MissionResult] = []
        self.start_markers = 0
        self.lines_seen = 0

    def feed(self, line: LogLine) -> Optional[MissionResult]:
        self.lines_seen += 1
        self.accumulator, emitted = step(self.accumulator, line, len(self.segments) + 1)
        if self.accumulator is not None and self.accumulator.start_line == line.number:
            self.start_markers += 1
        if emitted is not None:
            self.segments.append(emitted)
        return emitted

    def finish(self) -> Optional[MissionResult]:
        """Close whatever is still open at end of input."""
        if self.accumulator is None:
            return None
        emitted = close_segment(self.accumulator, len(self.segments) + 1, END_OF_LOG_REASON)
        self.accumulator = None
        if emitted is not None:
            self.segments.append(emitted)
        return emitted


def segment_lines(lines: Iterable[LogLine]) -> List[MissionResult]:
    """Segment a sequence of lines and return every finalized mission in log order."""
    machine = SegmentStateMachine()
    for line in lines:
        machine.feed(line)
    machine.finish()
    return machine.segments
