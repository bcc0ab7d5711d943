"""
Vitus Essence economy calculator.

Turns shield drone counts, completed rounds and mission durations into
expected drops and hourly rates. Works on whole mission lists at once with
numpy; the results are for display only.
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from arbitration_log.log.models import MissionResult

logger = logging.getLogger(__name__)

# Vitus Essence drop chance of an Arbitration shield drone
DEFAULT_DROP_CHANCE = 0.06
# Vitus Essence granted per completed rotation
DEFAULT_ROTATION_REWARD = 3.0


class EconomyCalculator:
    """
    Expected-value math over parsed missions.

    Args:
        drop_chance: Base drop chance per shield drone
        multipliers: Named multiplicative factors (boosters, blessings, ...)
        rotation_reward: Essence granted per completed round
    """

    def __init__(self, drop_chance: float = DEFAULT_DROP_CHANCE,
                 multipliers: Optional[Dict[str, float]] = None,
                 rotation_reward: float = DEFAULT_ROTATION_REWARD):
        if not 0 <= drop_chance <= 1:
            raise ValueError(f"drop_chance must be within [0, 1], got {drop_chance}")
        self.drop_chance = float(drop_chance)
        self.multipliers = {name: float(value) for name, value in (multipliers or {}).items()}
        self.rotation_reward = float(rotation_reward)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "EconomyCalculator":
        economy = (config or {}).get('economy', {}) or {}
        return cls(
            drop_chance=economy.get('drop_chance', DEFAULT_DROP_CHANCE),
            multipliers=economy.get('multipliers'),
            rotation_reward=economy.get('rotation_reward', DEFAULT_ROTATION_REWARD),
        )

    @property
    def combined_multiplier(self) -> float:
        if not self.multipliers:
            return 1.0
        return float(np.prod(list(self.multipliers.values())))

    def calculate(self, missions: Iterable[MissionResult]) -> List[Dict[str, Optional[float]]]:
        """
        Compute expected drops and rates for each mission.

        Args:
            missions: Parsed missions

        Returns:
            One dict per mission with drones_per_hour, expected_drops,
            expected_drops_per_hour and rotation_rewards. Rates are None when
            the mission has no usable duration.
        """
        missions = list(missions)
        if not missions:
            return []

        drones = np.array([m.shield_drone_count for m in missions], dtype=float)
        rounds = np.array([m.round_count or 0 for m in missions], dtype=float)
        hours = np.array([(m.total_sec or 0.0) / 3600.0 for m in missions], dtype=float)

        expected = drones * self.drop_chance * self.combined_multiplier
        rotations = rounds * self.rotation_reward

        with np.errstate(divide='ignore', invalid='ignore'):
            drones_per_hour = np.where(hours > 0, drones / hours, np.nan)
            expected_per_hour = np.where(hours > 0, expected / hours, np.nan)

        def maybe(value):
            value = float(value)
            return value if math.isfinite(value) else None

        rows = []
        for i, mission in enumerate(missions):
            rows.append({
                "index": mission.index,
                "drones_per_hour": maybe(drones_per_hour[i]),
                "expected_drops": float(expected[i]),
                "expected_drops_per_hour": maybe(expected_per_hour[i]),
                "rotation_rewards": float(rotations[i]),
            })

        logger.debug(f"Economy for {len(rows)} missions, multiplier {self.combined_multiplier:.2f}")
        return rows
