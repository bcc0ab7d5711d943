"""
Arbitration Log Tools - Python package for Warframe Arbitration statistics

This package reads the game client's EE.log, splits it into Arbitration
missions and reports per-mission statistics: durations, enemy and shield
drone spawns, drones per minute and the wave/round breakdown.

The parsing engine lives in arbitration_log.log; command-line tools and
their collaborators live in arbitration_log.tools.
"""

__version__ = '0.3.0'
