"""
Text report of parsed missions.
"""

import logging
import math
from typing import Dict, List, Optional

from arbitration_log.log.models import MissionKind, MissionResult, ParseResult

logger = logging.getLogger(__name__)


def format_duration(seconds: Optional[float]) -> str:
    """
    Render a duration as "12.3s", "5m 7s" or "1h 2m".

    Returns "-" for missing or non-finite values.
    """
    if seconds is None or not math.isfinite(seconds):
        return "-"
    seconds = max(0.0, seconds)
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds) // 60
    rest = int(seconds) - minutes * 60
    if minutes < 60:
        return f"{minutes}m {rest}s"
    hours = minutes // 60
    return f"{hours}h {minutes - hours * 60}m"


def format_per_min(value: Optional[float]) -> str:
    if value is None or not math.isfinite(value):
        return "-"
    return f"{value:.2f}"


def format_count(value: Optional[int]) -> str:
    return "-" if value is None else str(value)


def format_phases(mission: MissionResult) -> str:
    if not mission.phases:
        return "-"
    label = "W" if mission.mission_kind == MissionKind.WAVE else "R"
    return " ".join(f"{label}{p.index}:{p.count}" for p in mission.phases)


def mission_lines(mission: MissionResult, node_line: str = "",
                  economy: Optional[Dict[str, Optional[float]]] = None) -> List[str]:
    """
    Build the report lines of one mission.

    Args:
        mission: The mission to describe
        node_line: Display label of the node (falls back to the node id)
        economy: Optional economy row for the mission

    Returns:
        List of report lines
    """
    lines = [f"Recent valid mission #{mission.index}"]
    title = node_line or mission.node_id or ""
    if mission.mission_name:
        title = f"{title} ({mission.mission_name})" if title else mission.mission_name
    if title:
        lines.append(title)

    lines.append(f"Total time: {format_duration(mission.total_sec)}")
    if mission.client_duration_sec is not None:
        lines.append(f"Last joined client time: {format_duration(mission.client_duration_sec)}")
    lines.append(f"Enemies spawned: {format_count(mission.spawned_at_end)}")
    lines.append(f"Shield drones: {mission.shield_drone_count}")
    lines.append(f"Shield drones/min: {format_per_min(mission.shield_drone_per_min)}")

    if mission.mission_kind == MissionKind.WAVE:
        lines.append(f"Waves: {mission.wave_count}  Rounds: {mission.round_count}")
    elif mission.mission_kind == MissionKind.ROUND:
        lines.append(f"Rounds: {mission.round_count}")
    if mission.phases:
        lines.append(f"Phases: {format_phases(mission)}")

    if economy:
        lines.append(f"Expected drops: {economy['expected_drops']:.2f} "
                     f"({format_per_min(economy['expected_drops_per_hour'])}/h)")

    status = mission.status.value
    if mission.in_progress:
        status += ", in progress"
    lines.append(f"Status: {status} (lines {mission.start_line}-{mission.end_line or '?'})")
    if mission.note:
        lines.append(f"Note: {mission.note}")
    return lines


def log_report(result: ParseResult, node_lines: Optional[Dict[int, str]] = None,
               economy_rows: Optional[List[Dict[str, Optional[float]]]] = None) -> int:
    """
    Log the parse result.

    Args:
        result: The parse result
        node_lines: Display labels keyed by mission index
        economy_rows: Economy rows in mission order

    Returns:
        Number of missions reported
    """
    for warning in result.warnings:
        logger.warning(warning)

    if not result.missions:
        logger.info("No valid missions (all shorter than the threshold or no Arbitration markers found)")
        return 0

    economy_by_index = {row["index"]: row for row in (economy_rows or [])}
    for mission in result.missions:
        logger.info("=" * 50)
        for line in mission_lines(mission, (node_lines or {}).get(mission.index, ""),
                                  economy_by_index.get(mission.index)):
            logger.info(line)

    logger.info("=" * 50)
    logger.info(f"Valid missions in log: {result.valid_total}")
    return len(result.missions)
