#!/usr/bin/env python3
"""
Arbitration Log Tools - Mission Analyzer

Analyzes a Warframe EE.log and reports the most recent valid Arbitration
missions: total time, enemies spawned, shield drones and drones per minute,
waves/rounds with a per-phase drone breakdown. Results can be exported to
CSV or Excel and rendered as an image snapshot.
"""

import argparse
import logging
import os
from typing import Any, Dict, Optional

from arbitration_log.base import ArbitrationTool, FileBasedTool
from arbitration_log.log.line_feeder import DEFAULT_CHUNK_SIZE
from arbitration_log.log.models import ParseResult
from arbitration_log.log.parser import ParseOptions, parse_log_file
from arbitration_log.log.windowing import DEFAULT_COUNT, DEFAULT_MIN_DURATION_SEC
from arbitration_log.tools.economy import EconomyCalculator
from arbitration_log.tools.node_map import NodeMap
from arbitration_log.tools.report import log_report

logger = logging.getLogger(__name__)


class LogFileNotFoundError(FileNotFoundError):
    """Raised when no EE.log can be located for the given path."""


class MissionAnalyzer(FileBasedTool):
    """
    Parses an EE.log and reports the recent valid Arbitration missions.
    """

    LOG_FILE_NAMES = ("ee.log", "EE.log")
    DEFAULT_LOG_DIR = os.path.join("$LOCALAPPDATA", "Warframe")
    PROGRESS_STEP = 0.1

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 count: Optional[int] = None, min_duration_sec: Optional[float] = None,
                 chunk_size: Optional[int] = None, keep_all: bool = False):
        """
        Initialize the analyzer.

        Explicit arguments override the profile values under "parser".

        Args:
            config: Configuration dictionary from Config class
            count: Number of recent valid missions to keep
            min_duration_sec: Missions shorter than this are excluded
            chunk_size: Bytes read per chunk
            keep_all: Keep every valid mission instead of the most recent ones
        """
        super().__init__(config)
        self.initialize_directories()

        if count is None:
            count = int(self.get_config('parser.count', DEFAULT_COUNT))
        if min_duration_sec is None:
            min_duration_sec = float(self.get_config('parser.min_duration_sec', DEFAULT_MIN_DURATION_SEC))
        if chunk_size is None:
            chunk_size = int(self.get_config('parser.chunk_size', DEFAULT_CHUNK_SIZE))

        self.options = ParseOptions(
            chunk_size=chunk_size,
            min_duration_sec=min_duration_sec,
            count=None if keep_all else count,
        )
        self.node_map = NodeMap(self.config)
        self.economy = EconomyCalculator.from_config(self.config)
        self._last_reported = 0.0

    def resolve_log_path(self, log_path: Optional[str] = None) -> str:
        """
        Locate the log file.

        A directory is searched for ee.log / EE.log. Without a path the
        configured paths.log_file is used, then %LOCALAPPDATA%/Warframe.

        Args:
            log_path: File or directory, optional

        Returns:
            Absolute path of the log file

        Raises:
            LogFileNotFoundError: If no log file exists at the location
        """
        log_path = log_path or self.get_config('paths.log_file') or self.DEFAULT_LOG_DIR
        resolved = self.resolve_path(log_path)

        if os.path.isdir(resolved):
            for name in self.LOG_FILE_NAMES:
                candidate = os.path.join(resolved, name)
                if os.path.isfile(candidate):
                    return candidate
            raise LogFileNotFoundError(f"No ee.log or EE.log found in directory: {resolved}")

        if os.path.isfile(resolved):
            return resolved

        raise LogFileNotFoundError(f"Log file not found: {resolved}")

    def _log_progress(self, fraction: float):
        if fraction >= 1.0 or fraction - self._last_reported >= self.PROGRESS_STEP:
            self._last_reported = fraction
            logger.info(f"Progress: {fraction * 100:3.0f}%")

    def analyze(self, log_path: Optional[str] = None) -> ParseResult:
        """
        Parse the log file.

        Args:
            log_path: File or directory, optional

        Returns:
            ParseResult with the retained missions
        """
        resolved = self.resolve_log_path(log_path)
        self._last_reported = 0.0
        result = parse_log_file(resolved, self.options, self._log_progress)
        logger.info(f"Found {result.valid_total} valid missions in {result.segments_total} segments")
        return result

    def load_node_map(self, map_path: Optional[str] = None) -> None:
        map_path = map_path or self.get_config('paths.node_map')
        if map_path:
            self.node_map.load(map_path)

    def node_lines(self, result: ParseResult) -> Dict[int, str]:
        return {m.index: self.node_map.display_line(m.node_id) for m in result.missions}

    def run(self, log_path: Optional[str] = None, export_format: Optional[str] = None,
            export_path: Optional[str] = None, snapshot_path: Optional[str] = None,
            node_map_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Run the analysis, log the report and write the requested outputs.

        Args:
            log_path: File or directory of the log
            export_format: "csv" or "excel" to export the missions
            export_path: Export file path (default: timestamped file in the output directory)
            snapshot_path: Image path; when given a snapshot image is rendered
            node_map_path: Node map JSON overriding paths.node_map

        Returns:
            Dictionary with analysis results
        """
        logger.info("Starting Arbitration log analysis...")

        parse_result = self.analyze(log_path)
        self.load_node_map(node_map_path)

        node_lines = self.node_lines(parse_result)
        economy_rows = self.economy.calculate(parse_result.missions)
        log_report(parse_result, node_lines, economy_rows)

        result = {
            "success": bool(parse_result.missions),
            "mission_count": len(parse_result.missions),
            "valid_total": parse_result.valid_total,
            "warnings": list(parse_result.warnings),
            "output_file": None,
            "snapshot_file": None,
            "parse_result": parse_result,
        }

        if parse_result.missions and export_format:
            from arbitration_log.tools.exporter import MissionExporter

            exporter = MissionExporter(self.config)
            result["output_file"] = exporter.run(parse_result.missions, export_format, export_path,
                                                 node_lines=node_lines, economy_rows=economy_rows)

        if parse_result.missions and snapshot_path is not None:
            from arbitration_log.tools.snapshot import SnapshotRenderer

            renderer = SnapshotRenderer(self.config)
            result["snapshot_file"] = renderer.render(parse_result.missions, snapshot_path or None,
                                                      node_lines=node_lines)

        return result


def main(argv=None):
    """
    Main entry point for the mission analyzer command line tool.
    """
    parser = argparse.ArgumentParser(
        description="Analyze a Warframe EE.log and report recent Arbitration missions.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s "C:\\Users\\me\\AppData\\Local\\Warframe"
    %(prog)s --file EE.log --count 3 --min 90
    %(prog)s EE.log --all --export excel
    %(prog)s EE.log --snapshot recent.png

Configuration:
    - paths.log_file: Default log file or directory (default: %%LOCALAPPDATA%%/Warframe)
    - paths.node_map: Node map JSON used for display names
    - parser.count / parser.min_duration_sec / parser.chunk_size
    - economy.drop_chance / economy.multipliers / economy.rotation_reward
        """
    )
    parser.add_argument("log_path", nargs="?", help="EE.log file or the directory containing it")
    parser.add_argument("--file", dest="file_path", help="EE.log file or directory (same as the positional argument)")
    parser.add_argument("--count", type=int, help="Number of recent valid missions to show (default: 2)")
    parser.add_argument("--min", dest="min_duration", type=float,
                        help="Missions shorter than this many seconds are excluded (default: 60)")
    parser.add_argument("--chunk-size", type=int, help="Bytes read per chunk (default: 4 MiB)")
    parser.add_argument("--all", action="store_true", help="Show every valid mission")
    parser.add_argument("--export", choices=["csv", "excel"], help="Export the missions")
    parser.add_argument("--output", help="Export file path (default: timestamped file in the output directory)")
    parser.add_argument("--snapshot", nargs="?", const="", default=None,
                        help="Render an image snapshot (optionally to the given path)")
    parser.add_argument("--node-map", help="Node map JSON for display names")

    ArbitrationTool.add_standard_arguments(parser)
    args = parser.parse_args(argv)

    try:
        config = MissionAnalyzer.load_config(args.profile)

        analyzer = MissionAnalyzer(
            config,
            count=args.count,
            min_duration_sec=args.min_duration,
            chunk_size=args.chunk_size,
            keep_all=args.all,
        )
        result = analyzer.run(
            args.file_path or args.log_path,
            export_format=args.export,
            export_path=args.output,
            snapshot_path=args.snapshot,
            node_map_path=args.node_map,
        )

        if args.console:
            summary = {k: v for k, v in result.items() if k != "parse_result"}
            logger.info(f"Mission analysis completed: {summary}")

        return 0 if result["success"] else 1

    except Exception as e:
        logger.error(f"Error: {e}")
        return 1


if __name__ == "__main__":
    exit(main())
