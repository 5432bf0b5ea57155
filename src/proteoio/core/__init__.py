"""
Core data structures for proteoio.

This module provides the records produced by the readers:

- Scan: peaks plus scan metadata, one per spectrum
- PeakArray: parallel m/z / intensity arrays
- ScanMetadata: scan-level metadata, with PrecursorInfo for MSn scans
- MSRun: a complete run (dense, one-based collection of scans)
- Protein: a protein sequence record with its annotations
- Modification, SequenceVariation, ProteolysisProduct, DatabaseReference

Enums for categorical metadata:
- Polarity, DissociationType, AnalyzerType

Decoy generation:
- generate_decoy(), generate_sequence_decoy(), reverse_sequence()
"""

from .scan_metadata import (
    AnalyzerType,
    DissociationType,
    Polarity,
    PrecursorInfo,
    ScanMetadata,
)
from .spectrum import PeakArray, Scan
from .run import MSRun, RunMetadata
from .protein import (
    DECOY_PREFIX,
    UNKNOWN_MODIFICATION_TYPE,
    DatabaseReference,
    Modification,
    Protein,
    ProteolysisProduct,
    SequenceVariation,
)
from .decoy import generate_decoy, generate_sequence_decoy, reverse_sequence

__all__ = [
    # Run classes
    "Scan",
    "PeakArray",
    "ScanMetadata",
    "PrecursorInfo",
    "MSRun",
    "RunMetadata",
    # Enums
    "Polarity",
    "DissociationType",
    "AnalyzerType",
    # Protein classes
    "Protein",
    "Modification",
    "SequenceVariation",
    "ProteolysisProduct",
    "DatabaseReference",
    "DECOY_PREFIX",
    "UNKNOWN_MODIFICATION_TYPE",
    # Decoys
    "generate_decoy",
    "generate_sequence_decoy",
    "reverse_sequence",
]
