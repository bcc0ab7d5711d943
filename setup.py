#!/usr/bin/env python

from setuptools import setup, find_packages

setup(
    name="arbitration_log",
    version="0.3.0",
    description="Python tools for extracting Warframe Arbitration mission statistics from EE.log",
    author="GeNe FRAG",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    include_package_data=True,
    package_data={"config": ["profiles/*.example"]},
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.19.0",
        "pandas>=1.0.0",
        "openpyxl>=3.0.0",
        "matplotlib>=3.0.0",
    ],
    extras_require={
        "test": ["pytest>=6.0"],
    },
    entry_points={
        "console_scripts": [
            "arbitration-log=arbitration_log.tools.mission_analyzer:main",
            "arbitration-node-map=arbitration_log.tools.node_map:main",
        ],
    },
)
