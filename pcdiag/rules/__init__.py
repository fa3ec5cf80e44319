"""
PC Diag Finding Rules
Detection rules grouped by concern, each turning snapshot evidence into findings
"""

# Import available rule groups
from . import (
    drivers,
    network,
    performance,
    security,
    stability,
    storage,
    temperature,
)

__all__ = [
    "drivers",
    "network",
    "performance",
    "security",
    "stability",
    "storage",
    "temperature",
]
