"""
Paper Momentum Trading Engine
A simulated single-instrument momentum trader for Binance spot markets
"""

from setuptools import setup, find_packages

setup(
    name="paper-momentum",
    version="0.1.0",
    description="Paper trading engine for dual-SMA momentum entries on top Binance movers",
    python_requires=">=3.10",
    packages=find_packages(include=["paper_momentum", "paper_momentum.*"]),
    install_requires=[
        line.strip()
        for line in open("requirements.txt")
        if line.strip() and not line.startswith("#")
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
            "isort>=5.12.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "paper-momentum=paper_momentum.cli:main",
        ]
    },
)
