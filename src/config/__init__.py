# Configuration package initialization
"""
Arbitration Log Tools - Configuration System

This package provides the JSON profile configuration used by the
command-line tools.

Quick Usage:
    from config import Config
    config = Config(profile='my_pc')
    count = config.get('parser.count', 2)
"""

from config.config import Config

__all__ = ['Config']
