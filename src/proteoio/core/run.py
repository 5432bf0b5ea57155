"""
MSRun: the ordered scans decoded from a single instrument run.

Scans are addressed by their one-based scan number, which is also their
position in the source document.
"""

from dataclasses import dataclass
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Optional, overload

import numpy as np
from numpy.typing import NDArray

from .spectrum import Scan


@dataclass(frozen=True, slots=True)
class RunMetadata:
    """
    Run-level metadata for an LC-MS/MS acquisition.

    Attributes:
        source_file: Path to the original source file.
        schema: Document shape the run was decoded from ("indexed" or "bare").
        run_id: The ``id`` attribute of the run element.
    """
    source_file: Optional[Path] = None
    schema: Optional[str] = None
    run_id: Optional[str] = None

    @property
    def source_filename(self) -> Optional[str]:
        """Return just the filename from source_file."""
        return self.source_file.name if self.source_file else None


class MSRun(Sequence[Scan]):
    """
    A complete LC-MS/MS run: dense, one-based, in acquisition order.

    The class implements the Sequence protocol over zero-based list indices;
    use ``get_one_based_scan`` to address scans by scan number.

    Example:
        >>> run = read_mzml("sample.mzML")
        >>> ms2 = run.get_one_based_scan(2)
        >>> parent = run.get_precursor_scan(ms2)
    """

    def __init__(
        self,
        scans: Optional[list[Scan]] = None,
        metadata: Optional[RunMetadata] = None,
    ):
        """
        Initialize an MSRun.

        Args:
            scans: Scans in order; scan numbers must be exactly 1..N.
            metadata: Run-level metadata.

        Raises:
            ValueError: If scan numbers are not dense and one-based.
        """
        self._scans: list[Scan] = list(scans or [])
        self.metadata = metadata or RunMetadata()
        for expected, scan in enumerate(self._scans, start=1):
            if scan.scan_number != expected:
                raise ValueError(
                    f"Scan at position {expected} has scan number {scan.scan_number}"
                )

    # -------------------------------------------------------------------------
    # Sequence protocol implementation
    # -------------------------------------------------------------------------

    @overload
    def __getitem__(self, index: int) -> Scan: ...

    @overload
    def __getitem__(self, index: slice) -> list[Scan]: ...

    def __getitem__(self, index: int | slice) -> Scan | list[Scan]:
        """Get scan by zero-based index (acquisition order)."""
        return self._scans[index]

    def __len__(self) -> int:
        return len(self._scans)

    def __iter__(self) -> Iterator[Scan]:
        return iter(self._scans)

    # -------------------------------------------------------------------------
    # Access methods
    # -------------------------------------------------------------------------

    @property
    def num_spectra(self) -> int:
        return len(self._scans)

    def get_one_based_scan(self, scan_number: int) -> Scan:
        """
        Get scan by one-based scan number.

        Raises:
            KeyError: If scan number is outside 1..N.
        """
        if not 1 <= scan_number <= len(self._scans):
            raise KeyError(f"Scan number {scan_number} not found in run")
        return self._scans[scan_number - 1]

    def get_precursor_scan(self, scan: Scan) -> Scan:
        """
        Get the scan a fragmentation scan's precursor was selected from.

        Raises:
            ValueError: If the scan has no precursor.
        """
        if scan.precursor is None:
            raise ValueError(f"{scan} is an MS{scan.ms_level} scan without precursor")
        return self.get_one_based_scan(scan.precursor.precursor_scan_number)

    def iter_ms_level(self, ms_level: int) -> Iterator[Scan]:
        """Iterate over scans of a specific MS level."""
        for scan in self._scans:
            if scan.ms_level == ms_level:
                yield scan

    def get_ms_level_counts(self) -> dict[int, int]:
        """Count scans per MS level."""
        counts: dict[int, int] = {}
        for scan in self._scans:
            counts[scan.ms_level] = counts.get(scan.ms_level, 0) + 1
        return counts

    @property
    def retention_times(self) -> NDArray[np.float64]:
        """Array of all retention times in minutes."""
        return np.array([scan.retention_time for scan in self._scans])

    def summary(self) -> dict:
        """
        Generate a summary of the run.

        Returns:
            Dictionary with run statistics.
        """
        summary = {
            'n_spectra': len(self),
            'ms_level_counts': self.get_ms_level_counts(),
        }
        if self._scans:
            rts = self.retention_times
            summary['rt_range_minutes'] = (float(np.nanmin(rts)), float(np.nanmax(rts)))
        if self.metadata.source_file:
            summary['source_file'] = str(self.metadata.source_file)
        if self.metadata.schema:
            summary['schema'] = self.metadata.schema
        return summary

    def __repr__(self) -> str:
        ms_counts = self.get_ms_level_counts()
        ms_str = ", ".join(f"MS{k}:{v}" for k, v in sorted(ms_counts.items()))
        source = ""
        if self.metadata.source_filename:
            source = f", source={self.metadata.source_filename}"
        return f"MSRun({len(self)} scans, {ms_str}{source})"
