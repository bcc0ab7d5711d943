"""
Shared plumbing for the arbitration log command-line tools.

Every tool gets its profile configuration, logging and the common CLI flags
from ArbitrationTool. Tools that write results build on FileBasedTool, which
places relative outputs under `general.output_path`; JSONTool adds JSON I/O.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List
from datetime import datetime
import csv
import json
import logging
import os

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


class ArbitrationTool(ABC):
    """Common base of the arbitration log tools."""

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        self.config = config or {}
        self.setup_logging()

    @staticmethod
    def add_standard_arguments(parser):
        """Register --profile and --console on an argparse parser."""
        parser.add_argument("--profile", default=None,
                            help="Configuration profile name (default: the 'default' profile)")
        parser.add_argument("--console", action="store_true",
                            help="Also log the result summary when done")

    @staticmethod
    def load_config(profile: Optional[str] = None) -> Dict[str, Any]:
        """
        Read a configuration profile and configure root logging from it.

        Args:
            profile: Profile name, None for the default profile

        Returns:
            The profile as a dictionary
        """
        from config.config import Config

        config_data = Config(profile=profile).get()

        log_level = str(config_data.get('general', {}).get('log_level', 'INFO')).upper()
        level = getattr(logging, log_level, logging.INFO)

        # A second load would otherwise stack a second handler
        for handler in logging.root.handlers[:]:
            logging.root.removeHandler(handler)

        logging.basicConfig(level=level, format=LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
        logging.getLogger().setLevel(level)
        logging.debug(f"Log level set to {log_level}")

        return config_data

    def setup_logging(self, level: int = logging.INFO):
        """Fallback logging for tools used without load_config; a no-op once root has handlers."""
        logging.basicConfig(level=level, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    def get_config(self, key: str, default: Any = None) -> Any:
        """
        Look up a dotted key such as "parser.count".

        Returns `default` as soon as a path segment is missing.
        """
        value = self.config
        for part in key.split('.'):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    @abstractmethod
    def run(self) -> Any:
        """Execute the tool."""


class FileBasedTool(ArbitrationTool):
    """A tool that reads inputs from disk or writes result files."""

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(config)
        self.output_dir = None

    def initialize_directories(self):
        """Pick up `general.output_path`; writers create it on first use."""
        self.output_dir = self.get_config('general.output_path', 'output')
        logger.debug(f"Output directory: {self.resolve_path(self.output_dir)}")

    def resolve_path(self, path: str) -> str:
        """Absolute form of `path` with `~` and environment variables expanded."""
        return os.path.abspath(os.path.expanduser(os.path.expandvars(str(path))))

    def ensure_dir(self, directory: str) -> str:
        path = self.resolve_path(directory)
        os.makedirs(path, exist_ok=True)
        return path

    def output_path_for(self, file_path: str) -> str:
        """
        Where a result file goes.

        A bare relative name lands in the output directory; absolute paths and
        paths already under the output directory stay as given. The parent
        directory is created.
        """
        if self.output_dir and not os.path.isabs(file_path):
            if not os.path.normpath(file_path).startswith(os.path.normpath(self.output_dir)):
                file_path = os.path.join(self.output_dir, file_path)

        resolved_path = self.resolve_path(file_path)
        os.makedirs(os.path.dirname(resolved_path), exist_ok=True)
        return resolved_path

    def write_csv(self, data_rows: List, output_path: str, headers: List[str] = None) -> str:
        """
        Write rows (dicts or sequences) as UTF-8 CSV.

        With dict rows and no `headers`, the first row's keys become the header.
        An empty row list still produces a file, holding only the header if one
        was given.

        Returns:
            Absolute path of the written file
        """
        resolved_path = self.output_path_for(output_path)

        if data_rows and headers is None and isinstance(data_rows[0], dict):
            headers = list(data_rows[0].keys())

        with open(resolved_path, "w", newline="", encoding="utf-8") as f:
            if data_rows and isinstance(data_rows[0], dict) and headers:
                writer = csv.DictWriter(f, fieldnames=headers)
                writer.writeheader()
                writer.writerows(data_rows)
            else:
                writer = csv.writer(f)
                if headers:
                    writer.writerow(headers)
                writer.writerows(data_rows)

        if not data_rows:
            logger.warning(f"No rows to write, created empty CSV {resolved_path}")
        else:
            logger.info(f"Wrote {len(data_rows)} rows to {resolved_path}")
        return resolved_path

    def generate_timestamped_filename(self, base_name: str, extension: str, prefix: str = "", suffix: str = "") -> str:
        """Build `base[_prefix]_YYYYmmdd_HHMMSS[_suffix].ext` from the current local time."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        parts = [part for part in (base_name, prefix, timestamp, suffix) if part]
        return f"{'_'.join(parts)}.{extension}"


class JSONTool(FileBasedTool):
    """A file tool that reads and writes JSON documents."""

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(config)
        self.initialize_directories()

    def read_json(self, file_path: str) -> Any:
        """Parse a UTF-8 JSON file; OSError and JSONDecodeError reach the caller."""
        resolved_path = self.resolve_path(file_path)
        logger.debug(f"Reading JSON file: {resolved_path}")
        with open(resolved_path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def write_json(self, data: Any, file_path: str, indent: Optional[int] = 2) -> str:
        """
        Dump `data` as UTF-8 JSON, keeping non-ASCII text readable.

        Returns:
            Absolute path of the written file
        """
        resolved_path = self.output_path_for(file_path)
        with open(resolved_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=indent, ensure_ascii=False)
        logger.info(f"JSON data written to {resolved_path}")
        return resolved_path
