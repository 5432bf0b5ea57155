"""
System resource detection and work partitioning.

This module provides utilities for:
- Detecting CPU resources
- Choosing a worker count for a parallelization mode
- Splitting an index range into contiguous chunks for workers
"""

import os
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Optional


class ParallelMode(Enum):
    """Parallelization intensity modes."""
    NONE = auto()      # Single-threaded
    LIGHT = auto()     # 25% of available resources
    HEAVY = auto()     # 75% of available resources
    MAX = auto()       # 100% of available resources (all cores)
    CUSTOM = auto()    # User-specified number of workers


@dataclass(frozen=True)
class SystemResources:
    """System resource information."""
    cpu_count: int
    cpu_count_physical: int

    def get_workers(self, mode: ParallelMode, custom_workers: Optional[int] = None) -> int:
        """
        Calculate number of workers based on parallel mode.

        Args:
            mode: Parallelization mode.
            custom_workers: Number of workers for CUSTOM mode.

        Returns:
            Number of workers to use.
        """
        if mode == ParallelMode.NONE:
            return 1
        elif mode == ParallelMode.LIGHT:
            # 25% of physical cores, minimum 1
            return max(1, self.cpu_count_physical // 4)
        elif mode == ParallelMode.HEAVY:
            # 75% of physical cores, minimum 1
            return max(1, int(self.cpu_count_physical * 0.75))
        elif mode == ParallelMode.MAX:
            return self.cpu_count_physical
        elif mode == ParallelMode.CUSTOM:
            if custom_workers is None:
                raise ValueError("custom_workers must be specified for CUSTOM mode")
            return max(1, min(custom_workers, self.cpu_count_physical))
        else:
            return 1


def _count_physical_cores(cpuinfo: str, fallback: int) -> int:
    # Count unique physical CPU + core combinations
    physical_ids = set()
    current_physical = None
    for line in cpuinfo.split('\n'):
        if line.startswith('physical id'):
            current_physical = line.split(':')[1].strip()
        elif line.startswith('core id') and current_physical is not None:
            core_id = line.split(':')[1].strip()
            physical_ids.add((current_physical, core_id))
    return len(physical_ids) if physical_ids else fallback


def get_system_resources() -> SystemResources:
    """
    Detect available system resources.

    Returns:
        SystemResources with logical and physical core counts.
    """
    cpu_count = os.cpu_count() or 1

    cpu_count_physical = cpu_count
    cpuinfo = Path('/proc/cpuinfo')
    if cpuinfo.exists():
        try:
            cpu_count_physical = _count_physical_cores(cpuinfo.read_text(), cpu_count)
        except OSError:
            pass

    return SystemResources(
        cpu_count=cpu_count,
        cpu_count_physical=cpu_count_physical,
    )


def partition_range(n_items: int, n_parts: int) -> list[tuple[int, int]]:
    """
    Split ``[0, n_items)`` into at most ``n_parts`` contiguous half-open ranges.

    Ranges are non-overlapping, cover every index exactly once and differ in
    size by at most one.

    Examples:
        >>> partition_range(10, 3)
        [(0, 4), (4, 7), (7, 10)]
        >>> partition_range(2, 4)
        [(0, 1), (1, 2)]
    """
    if n_items < 0:
        raise ValueError(f"n_items must be >= 0, got {n_items}")
    if n_parts < 1:
        raise ValueError(f"n_parts must be >= 1, got {n_parts}")
    n_parts = min(n_parts, n_items)
    ranges = []
    start = 0
    for part in range(n_parts):
        size = n_items // n_parts + (1 if part < n_items % n_parts else 0)
        ranges.append((start, start + size))
        start += size
    return ranges
