"""
Validity window over finalized missions.
"""

from typing import List, Optional, Sequence, Tuple

from .models import MissionResult

DEFAULT_MIN_DURATION_SEC = 60.0
DEFAULT_COUNT = 2


def is_valid(mission: MissionResult, min_duration_sec: float = DEFAULT_MIN_DURATION_SEC) -> bool:
    """
    A mission is valid when its resolved duration reaches the threshold.

    A mission still in progress at the end of the log (started, spawning,
    no end marker) is always kept.
    """
    if mission.in_progress:
        return True
    return mission.total_sec is not None and mission.total_sec >= min_duration_sec


def select_recent_valid(missions: Sequence[MissionResult],
                        min_duration_sec: float = DEFAULT_MIN_DURATION_SEC,
                        count: Optional[int] = DEFAULT_COUNT) -> Tuple[List[MissionResult], int]:
    """
    Keep the most recent valid missions.

    Args:
        missions: Finalized missions in log order
        min_duration_sec: Minimum resolved duration for a mission to be valid
        count: Number of most recent valid missions to keep, None keeps all

    Returns:
        Tuple of (kept missions renumbered from 1 in log order, number of valid missions)
    """
    valid = [m for m in missions if is_valid(m, min_duration_sec)]
    picked = valid if count is None else valid[max(0, len(valid) - count):]
    return [m.renumbered(i) for i, m in enumerate(picked, 1)], len(valid)
