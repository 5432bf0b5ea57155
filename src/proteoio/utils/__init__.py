"""
Utility modules for proteoio.

This module provides:
- System resource detection
- Parallelization helpers
"""

from .parallel import (
    ParallelMode,
    SystemResources,
    get_system_resources,
    partition_range,
)

__all__ = [
    "ParallelMode",
    "SystemResources",
    "get_system_resources",
    "partition_range",
]
