"""
Snapshot Renderer

Renders the retained missions as a PNG: one bar chart of shield drones per
wave or round for each mission, titled with its node and headline metrics.
"""

import logging
import os
from typing import Any, Dict, Optional, Sequence

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from arbitration_log.base import FileBasedTool
from arbitration_log.log.models import MissionKind, MissionResult
from arbitration_log.tools.report import format_duration, format_per_min

logger = logging.getLogger(__name__)


class SnapshotRenderer(FileBasedTool):
    """Draw a visual summary of parsed missions."""

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(config)
        self.initialize_directories()
        self.output_dpi = int(self.get_config('snapshot.output_dpi', 150))
        self.bar_color = self.get_config('snapshot.bar_color', '#6b46c1')

    def render(self, missions: Sequence[MissionResult], output_path: Optional[str] = None,
               node_lines: Optional[Dict[int, str]] = None) -> str:
        """
        Render missions to an image file.

        Args:
            missions: Missions to draw, one panel each
            output_path: Image path (default: timestamped PNG in the output directory)
            node_lines: Display labels keyed by mission index

        Returns:
            Path to the generated image
        """
        if not missions:
            raise ValueError("No missions to render")

        output_path = output_path or self.generate_timestamped_filename("arbitration_snapshot", "png")
        output_path = self.output_path_for(output_path)

        fig, axes = plt.subplots(len(missions), 1, figsize=(10, 3.2 * len(missions)), squeeze=False)
        try:
            self._draw(axes[:, 0], missions, node_lines or {})
            fig.tight_layout()
            self.ensure_dir(os.path.dirname(output_path))
            fig.savefig(output_path, dpi=self.output_dpi, bbox_inches='tight', facecolor='white')
        finally:
            plt.close(fig)

        logger.info(f"Snapshot saved to: {output_path}")
        return output_path

    def _draw(self, axes, missions: Sequence[MissionResult], node_lines: Dict[int, str]):
        for ax, mission in zip(axes, missions):
            label = node_lines.get(mission.index) or mission.node_id or mission.mission_name or "?"
            ax.set_title(
                f"#{mission.index} {label}  |  {format_duration(mission.total_sec)}  |  "
                f"drones {mission.shield_drone_count} ({format_per_min(mission.shield_drone_per_min)}/min)",
                fontsize=10, fontweight='bold', loc='left',
            )

            if mission.phases:
                prefix = "W" if mission.mission_kind == MissionKind.WAVE else "R"
                names = [f"{prefix}{p.index}" for p in mission.phases]
                counts = [p.count for p in mission.phases]
                bars = ax.bar(names, counts, color=self.bar_color, edgecolor='black', linewidth=0.5)
                for bar, count in zip(bars, counts):
                    ax.annotate(str(count), xy=(bar.get_x() + bar.get_width() / 2, bar.get_height()),
                                ha='center', va='bottom', fontsize=8)
                ax.set_ylabel("Shield drones")
            else:
                ax.text(0.5, 0.5, "No phase breakdown", ha='center', va='center', transform=ax.transAxes)
                ax.set_xticks([])
                ax.set_yticks([])

    def run(self, missions: Sequence[MissionResult], output_path: Optional[str] = None, **kwargs) -> str:
        return self.render(missions, output_path, **kwargs)
