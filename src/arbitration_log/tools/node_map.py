#!/usr/bin/env python3
"""
Arbitration Log Tools - Node Map

Maps node identifiers (e.g. SolNode64) to display names: node, system,
mission type and faction. The table is generated from a public-export
ExportRegions.json and a localisation dictionary, and is only used to label
results; it never influences parsing.
"""

import argparse
import logging
import os
from typing import Any, Dict, Optional

from arbitration_log.base import ArbitrationTool, JSONTool

logger = logging.getLogger(__name__)

NODE_FIELDS = ("nodeName", "systemName", "missionType", "faction")
DISPLAY_SEPARATOR = " · "


class NodeMap(JSONTool):
    """
    Lookup table from node id to its display metadata.

    A map file that does not exist is not an error: every lookup then falls
    back to the bare node id.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 nodes: Optional[Dict[str, Dict[str, str]]] = None):
        super().__init__(config)
        self.nodes: Dict[str, Dict[str, str]] = dict(nodes or {})

    def load(self, map_path: str) -> int:
        """
        Load a node map JSON file.

        Args:
            map_path: Path to the node map

        Returns:
            Number of nodes loaded
        """
        resolved_path = self.resolve_path(map_path)
        if not os.path.isfile(resolved_path):
            logger.warning(f"Node map not found: {resolved_path}. Showing raw node ids.")
            return 0

        data = self.read_json(resolved_path)
        if not isinstance(data, dict):
            logger.warning(f"Node map {resolved_path} is not a JSON object, ignoring it")
            return 0

        self.nodes = {node_id: meta for node_id, meta in data.items() if isinstance(meta, dict)}
        logger.info(f"Loaded {len(self.nodes)} nodes from {resolved_path}")
        return len(self.nodes)

    def get(self, node_id: Optional[str]) -> Optional[Dict[str, str]]:
        if not node_id:
            return None
        return self.nodes.get(node_id)

    def display_line(self, node_id: Optional[str]) -> str:
        """
        Human readable label for a node.

        Args:
            node_id: Node identifier, may be None

        Returns:
            Non-empty metadata fields joined with " · ", the node id when the
            node is unknown, or an empty string without a node id
        """
        if not node_id:
            return ""
        meta = self.get(node_id) or {}
        parts = [str(meta[key]).strip() for key in NODE_FIELDS if meta.get(key) and str(meta[key]).strip()]
        return DISPLAY_SEPARATOR.join(parts) if parts else node_id

    @staticmethod
    def build(regions: Dict[str, Any], dictionary: Dict[str, Any]) -> Dict[str, Dict[str, str]]:
        """
        Build a node map from ExportRegions data and a localisation dictionary.

        Args:
            regions: ExportRegions.json content ({nodeId: {name, systemName, missionName, factionName}})
            dictionary: Localisation dictionary (language key -> text)

        Returns:
            Node map keyed by node id. Keys missing from the dictionary are kept verbatim.
        """
        def translate(key):
            if not isinstance(key, str):
                return None
            text = dictionary.get(key)
            return text if isinstance(text, str) and text.strip() else key

        nodes = {}
        for node_id, info in regions.items():
            if not isinstance(info, dict):
                continue
            nodes[node_id] = {
                "nodeId": node_id,
                "nodeName": translate(info.get("name")),
                "systemName": translate(info.get("systemName")),
                "missionType": translate(info.get("missionName")),
                "faction": translate(info.get("factionName")),
            }
        return nodes

    def build_from_files(self, regions_path: str, dict_path: str, output_path: str) -> str:
        """
        Generate a node map file from export files.

        Args:
            regions_path: Path to ExportRegions.json
            dict_path: Path to the localisation dictionary (e.g. dict.zh.json)
            output_path: Where to write the node map

        Returns:
            Path of the written node map
        """
        regions = self.read_json(regions_path)
        dictionary = self.read_json(dict_path)
        self.nodes = self.build(regions, dictionary)
        written = self.write_json(self.nodes, output_path, indent=None)
        logger.info(f"Generated node map with {len(self.nodes)} nodes")
        return written

    def run(self, node_id: Optional[str] = None) -> str:
        return self.display_line(node_id)


def main(argv=None):
    """
    Main entry point for the node map command line tool.
    """
    parser = argparse.ArgumentParser(
        description="Generate or query the node id -> display name table.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s build ExportRegions.json dict.zh.json node-map.zh.json
    %(prog)s lookup SolNode64 --map node-map.zh.json
        """
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser("build", help="Generate a node map from export files")
    build_parser.add_argument("regions", help="Path to ExportRegions.json")
    build_parser.add_argument("dictionary", help="Path to the localisation dictionary JSON")
    build_parser.add_argument("output", help="Output node map path")

    lookup_parser = subparsers.add_parser("lookup", help="Show the display line of node ids")
    lookup_parser.add_argument("node_ids", nargs="+", help="Node identifiers")
    lookup_parser.add_argument("--map", dest="map_path", help="Node map path (default: paths.node_map)")

    ArbitrationTool.add_standard_arguments(parser)
    args = parser.parse_args(argv)

    try:
        config = NodeMap.load_config(args.profile)
        node_map = NodeMap(config)

        if args.command == "build":
            node_map.build_from_files(args.regions, args.dictionary, args.output)
        else:
            map_path = args.map_path or node_map.get_config('paths.node_map')
            if map_path:
                node_map.load(map_path)
            for node_id in args.node_ids:
                logger.info(f"{node_id}: {node_map.display_line(node_id)}")

        return 0

    except Exception as e:
        logger.error(f"Error: {e}")
        return 1


if __name__ == "__main__":
    exit(main())
