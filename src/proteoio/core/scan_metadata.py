"""
Scan metadata for LC-MS/MS runs.

This module defines the ScanMetadata dataclass that captures the metadata
decoded for a single scan, including the precursor payload carried by
fragmentation (MS order > 1) scans.
"""

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class Polarity(Enum):
    """Ion polarity mode."""
    POSITIVE = auto()
    NEGATIVE = auto()
    UNKNOWN = auto()


class DissociationType(Enum):
    """Fragmentation/activation method for MS2+ scans."""
    CID = auto()      # Collision-Induced Dissociation
    ISCID = auto()    # In-Source Collision-Induced Dissociation
    HCD = auto()      # Higher-energy Collisional Dissociation
    ETD = auto()      # Electron Transfer Dissociation
    MPD = auto()      # Multiphoton Dissociation
    PQD = auto()      # Pulsed Q Dissociation
    UNKNOWN = auto()


class AnalyzerType(Enum):
    """Mass analyzer that recorded the scan."""
    QUADRUPOLE = auto()
    ION_TRAP_2D = auto()
    ION_TRAP_3D = auto()
    ORBITRAP = auto()
    TOF = auto()
    FTICR = auto()
    SECTOR = auto()
    UNKNOWN = auto()


@dataclass(frozen=True, slots=True)
class PrecursorInfo:
    """
    Precursor ion information for MS2+ scans.

    Attributes:
        selected_ion_mz: Selected ion m/z (NaN if not reported).
        charge: Selected ion charge state (None if unknown).
        intensity: Selected ion intensity (None if unknown).
        isolation_mz: Isolation window target m/z.
        isolation_width: Lower offset + upper offset. This is the sum of the
            two offsets as reported, NaN when either offset is missing.
        dissociation_type: Fragmentation method used.
        precursor_scan_number: One-based scan number of the precursor scan.
        monoisotopic_mz: Monoisotopic m/z supplied by the acquisition
            software, if any.
    """
    selected_ion_mz: float
    isolation_mz: float
    isolation_width: float
    precursor_scan_number: int
    charge: Optional[int] = None
    intensity: Optional[float] = None
    dissociation_type: DissociationType = DissociationType.UNKNOWN
    monoisotopic_mz: Optional[float] = None

    @property
    def isolation_range(self) -> tuple[float, float]:
        """(low, high) m/z of the isolation window centred on the target."""
        half = self.isolation_width / 2
        return self.isolation_mz - half, self.isolation_mz + half

    @property
    def has_isolation_width(self) -> bool:
        return not math.isnan(self.isolation_width)


@dataclass(frozen=True, slots=True)
class ScanMetadata:
    """
    Metadata for a single MS scan.

    A scan is either a plain (survey) scan or a precursor-bearing scan; the
    two share every field here and differ only in ``precursor``, which is set
    exactly when ``ms_level > 1``.

    Attributes:
        scan_number: One-based position of the scan in the run.
        ms_level: MS order (1 for survey scans, >1 for fragmentation scans).
        retention_time: Retention time in minutes (NaN if not reported).
        polarity: Ion polarity mode.
        is_centroid: True for centroid, False for profile, None if unstated.
        scan_window_lower: Lower m/z limit of the scan window (NaN if absent).
        scan_window_upper: Upper m/z limit of the scan window (NaN if absent).
        total_ion_current: Total ion current (NaN if not reported).
        filter_string: Vendor-specific scan filter string.
        analyzer: Mass analyzer type.
        injection_time: Ion injection time in milliseconds.
        native_id: Native spectrum id from the source document.
        precursor: Precursor information for MSn scans.
    """
    scan_number: int
    ms_level: int
    retention_time: float = math.nan
    polarity: Polarity = Polarity.UNKNOWN
    is_centroid: Optional[bool] = None
    scan_window_lower: float = math.nan
    scan_window_upper: float = math.nan
    total_ion_current: float = math.nan
    filter_string: Optional[str] = None
    analyzer: AnalyzerType = AnalyzerType.UNKNOWN
    injection_time: Optional[float] = None
    native_id: Optional[str] = None
    precursor: Optional[PrecursorInfo] = None

    def __post_init__(self) -> None:
        """Validate metadata consistency."""
        if self.scan_number < 1:
            raise ValueError(f"scan_number must be >= 1, got {self.scan_number}")
        if self.ms_level < 1:
            raise ValueError(f"ms_level must be >= 1, got {self.ms_level}")
        if self.ms_level == 1 and self.precursor is not None:
            raise ValueError("MS1 scans cannot carry precursor information")
        if self.ms_level > 1 and self.precursor is None:
            raise ValueError(
                f"Scan {self.scan_number} is MS{self.ms_level} but has no precursor"
            )
        if self.precursor is not None and not (
            1 <= self.precursor.precursor_scan_number < self.scan_number
        ):
            raise ValueError(
                f"Precursor scan {self.precursor.precursor_scan_number} must "
                f"precede scan {self.scan_number}"
            )

    @property
    def is_ms1(self) -> bool:
        """Check if this is an MS1 scan."""
        return self.ms_level == 1

    @property
    def is_msn(self) -> bool:
        """Check if this is an MSn (n > 1) scan."""
        return self.ms_level > 1

    @property
    def scan_window(self) -> tuple[float, float]:
        return self.scan_window_lower, self.scan_window_upper

    @property
    def scan_window_width(self) -> float:
        """Width of the scan window in Da (NaN if either limit is missing)."""
        return self.scan_window_upper - self.scan_window_lower
