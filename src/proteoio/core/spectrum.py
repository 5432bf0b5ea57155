"""
Peak arrays and decoded scans.

This module defines PeakArray, the parallel m/z / intensity arrays of one
spectrum, and Scan, a PeakArray together with its ScanMetadata.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from .scan_metadata import PrecursorInfo, ScanMetadata


@dataclass(slots=True)
class PeakArray:
    """
    The m/z and intensity arrays of one spectrum.

    m/z values are stored in document order; the instrument format
    guarantees they are non-decreasing and they are not re-sorted here.

    Attributes:
        mz: Array of m/z values.
        intensity: Array of intensity values corresponding to mz.

    Example:
        >>> peaks = PeakArray(np.array([100.0, 150.0]), np.array([10.0, 5.0]))
        >>> peaks.size
        2
        >>> peaks.base_peak_mz
        100.0
    """
    mz: NDArray[np.float64]
    intensity: NDArray[np.float64]

    def __post_init__(self) -> None:
        """Validate array consistency."""
        self.mz = np.asarray(self.mz, dtype=np.float64)
        self.intensity = np.asarray(self.intensity, dtype=np.float64)
        if self.mz.ndim != 1:
            raise ValueError(f"mz must be 1-dimensional, got shape {self.mz.shape}")
        if self.intensity.ndim != 1:
            raise ValueError(f"intensity must be 1-dimensional, got shape {self.intensity.shape}")
        if len(self.mz) != len(self.intensity):
            raise ValueError(
                f"mz and intensity must have same length, "
                f"got {len(self.mz)} and {len(self.intensity)}"
            )

    @classmethod
    def empty(cls) -> 'PeakArray':
        return cls(np.empty(0, dtype=np.float64), np.empty(0, dtype=np.float64))

    @property
    def size(self) -> int:
        """Number of peaks."""
        return len(self.mz)

    @property
    def is_empty(self) -> bool:
        return self.size == 0

    @property
    def first_mz(self) -> float:
        if self.is_empty:
            raise ValueError("Cannot get first_mz of empty peak array")
        return float(self.mz[0])

    @property
    def last_mz(self) -> float:
        if self.is_empty:
            raise ValueError("Cannot get last_mz of empty peak array")
        return float(self.mz[-1])

    @property
    def sum_of_intensities(self) -> float:
        return float(np.sum(self.intensity))

    @property
    def base_peak_index(self) -> int:
        """Index of the most intense peak."""
        if self.is_empty:
            raise ValueError("Cannot get base_peak_index of empty peak array")
        return int(np.argmax(self.intensity))

    @property
    def base_peak_mz(self) -> float:
        return float(self.mz[self.base_peak_index])

    @property
    def base_peak_intensity(self) -> float:
        return float(self.intensity[self.base_peak_index])

    def to_2d_array(self) -> NDArray[np.float64]:
        """Return a (2, n) array with m/z in row 0 and intensity in row 1."""
        return np.vstack([self.mz, self.intensity])

    def __len__(self) -> int:
        return self.size


@dataclass(slots=True)
class Scan:
    """
    A decoded scan: its peaks plus its metadata.

    Plain and precursor-bearing scans are the same type; the precursor
    payload lives in ``metadata.precursor``.
    """
    peaks: PeakArray
    metadata: ScanMetadata

    @property
    def scan_number(self) -> int:
        return self.metadata.scan_number

    @property
    def ms_level(self) -> int:
        return self.metadata.ms_level

    @property
    def retention_time(self) -> float:
        """Retention time in minutes."""
        return self.metadata.retention_time

    @property
    def is_centroid(self) -> Optional[bool]:
        return self.metadata.is_centroid

    @property
    def precursor(self) -> Optional[PrecursorInfo]:
        return self.metadata.precursor

    @property
    def has_precursor(self) -> bool:
        return self.metadata.precursor is not None

    def __repr__(self) -> str:
        return (
            f"Scan(scan={self.scan_number}, MS{self.ms_level}, "
            f"RT={self.retention_time:.2f}min, {self.peaks.size} peaks)"
        )

    def __str__(self) -> str:
        return f"Scan #{self.scan_number}"
