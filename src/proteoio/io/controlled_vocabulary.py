"""
PSI-MS controlled vocabulary lookups.

Maps the CV accessions found in mzML cvParam elements to the enums in
``proteoio.core``. Lookups never fail: an unmatched accession resolves to
the UNKNOWN member of the target enum.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from ..core import AnalyzerType, DissociationType, Polarity

# Binary data array accessions
ZLIB_COMPRESSION = "MS:1000574"
FLOAT_64_BIT = "MS:1000523"
FLOAT_32_BIT = "MS:1000521"
MZ_ARRAY = "MS:1000514"
INTENSITY_ARRAY = "MS:1000515"

# Spectrum-level accessions
MS_LEVEL = "MS:1000511"
CENTROID_SPECTRUM = "MS:1000127"
PROFILE_SPECTRUM = "MS:1000128"
TOTAL_ION_CURRENT = "MS:1000285"

# Scan-level accessions
SCAN_START_TIME = "MS:1000016"
FILTER_STRING = "MS:1000512"
ION_INJECTION_TIME = "MS:1000927"
SCAN_WINDOW_LOWER_LIMIT = "MS:1000501"
SCAN_WINDOW_UPPER_LIMIT = "MS:1000500"

# Precursor accessions
SELECTED_ION_MZ = "MS:1000744"
CHARGE_STATE = "MS:1000041"
PEAK_INTENSITY = "MS:1000042"
ISOLATION_WINDOW_TARGET_MZ = "MS:1000827"
ISOLATION_WINDOW_LOWER_OFFSET = "MS:1000828"
ISOLATION_WINDOW_UPPER_OFFSET = "MS:1000829"

# Units
UNIT_SECOND_NAME = "second"
UNIT_SECOND_ACCESSION = "UO:0000010"

# userParam carrying a monoisotopic m/z determined by the acquisition software
MONOISOTOPIC_MZ_MARKER = "Monoisotopic M/Z:"

POLARITY_TABLE: dict[str, Polarity] = {
    "MS:1000129": Polarity.NEGATIVE,
    "MS:1000130": Polarity.POSITIVE,
}

DISSOCIATION_TABLE: dict[str, DissociationType] = {
    "MS:1000133": DissociationType.CID,
    "MS:1001880": DissociationType.ISCID,
    "MS:1000422": DissociationType.HCD,
    "MS:1000598": DissociationType.ETD,
    "MS:1000435": DissociationType.MPD,
    "MS:1000599": DissociationType.PQD,
    "MS:1000044": DissociationType.UNKNOWN,
}

# Keys are either a filter-string prefix or an analyzer accession
ANALYZER_TABLE: dict[str, AnalyzerType] = {
    "ITMS": AnalyzerType.ION_TRAP_2D,
    "TQMS": AnalyzerType.UNKNOWN,
    "SQMS": AnalyzerType.UNKNOWN,
    "TOFMS": AnalyzerType.TOF,
    "FTMS": AnalyzerType.ORBITRAP,
    "Sector": AnalyzerType.SECTOR,
    "MS:1000081": AnalyzerType.QUADRUPOLE,
    "MS:1000291": AnalyzerType.ION_TRAP_2D,
    "MS:1000082": AnalyzerType.ION_TRAP_3D,
    "MS:1000484": AnalyzerType.ORBITRAP,
    "MS:1000084": AnalyzerType.TOF,
    "MS:1000079": AnalyzerType.FTICR,
    "MS:1000080": AnalyzerType.SECTOR,
}

_LEADING_ALPHA = re.compile(r"^[a-zA-Z]*")


def resolve_polarity(accession: str) -> Polarity:
    return POLARITY_TABLE.get(accession, Polarity.UNKNOWN)


def resolve_dissociation(accession: str) -> DissociationType:
    return DISSOCIATION_TABLE.get(accession, DissociationType.UNKNOWN)


def is_polarity(accession: str) -> bool:
    return accession in POLARITY_TABLE


def is_dissociation(accession: str) -> bool:
    return accession in DISSOCIATION_TABLE


def resolve_analyzer(
    filter_string: Optional[str],
    instrument_accession: Optional[str] = None,
) -> AnalyzerType:
    """
    Resolve the mass analyzer of a scan.

    The leading alphabetic token of the filter string (e.g. "FTMS" in
    "FTMS + p NSI Full ms") is tried first, then the accession of the
    instrument configuration's first analyzer.

    Args:
        filter_string: Vendor filter string, if any.
        instrument_accession: Analyzer accession from the instrument
            configuration, if any.

    Returns:
        The analyzer type, AnalyzerType.UNKNOWN if neither source matches.
    """
    if filter_string is not None:
        token = _LEADING_ALPHA.match(filter_string).group(0)
        if token in ANALYZER_TABLE:
            return ANALYZER_TABLE[token]
    if instrument_accession is not None:
        return ANALYZER_TABLE.get(instrument_accession, AnalyzerType.UNKNOWN)
    return AnalyzerType.UNKNOWN


@dataclass(frozen=True, slots=True)
class BinaryArrayRole:
    """Encoding and role flags of one binaryDataArray."""
    compressed: bool = False
    bit_width: int = 32
    is_mz: bool = False
    is_intensity: bool = False


def classify_binary_array(accessions: Iterable[str]) -> BinaryArrayRole:
    """
    Fold the cvParam accessions of a binaryDataArray into its role flags.

    Arrays are 32-bit unless a 64-bit term is present; a later 32-bit term
    overrides an earlier 64-bit one.
    """
    compressed = False
    is_32_bit = True
    is_mz = False
    is_intensity = False
    for accession in accessions:
        compressed |= accession == ZLIB_COMPRESSION
        is_32_bit &= accession != FLOAT_64_BIT
        is_32_bit |= accession == FLOAT_32_BIT
        is_mz |= accession == MZ_ARRAY
        is_intensity |= accession == INTENSITY_ARRAY
    return BinaryArrayRole(
        compressed=compressed,
        bit_width=32 if is_32_bit else 64,
        is_mz=is_mz,
        is_intensity=is_intensity,
    )
