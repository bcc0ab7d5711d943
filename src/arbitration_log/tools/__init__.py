"""
Arbitration Analysis Tools

This package provides the command-line mission analyzer and the collaborators
that label, price, export and render its results: the node map, the economy
calculator, the text report, the CSV/Excel exporter and the snapshot renderer.
"""

from .economy import EconomyCalculator
from .mission_analyzer import LogFileNotFoundError, MissionAnalyzer
from .node_map import NodeMap

__all__ = [
    'EconomyCalculator',
    'LogFileNotFoundError',
    'MissionAnalyzer',
    'NodeMap',
]
