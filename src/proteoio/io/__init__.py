"""
I/O module for reading mass spectrometry runs and protein databases.

This module provides:

Readers:
- MzMLReader: Read mzML files (indexed or bare)
- ProteinXmlReader: Read UniProt / mzLibProteinDb protein XML
- FastaReader: Read FASTA protein databases

Convenience functions:
- read_mzml(): Load mzML to MSRun
- load_protein_xml(): Load protein XML to ProteinLoadResult
- load_protein_fasta(): Load FASTA to ProteinLoadResult

Base classes:
- FileReader: Abstract base class for all readers

Registry:
- ReaderRegistry: Auto-detection and reader selection
- detect_format(): Detect document format from path and contents
- FileFormat: Enum of supported formats

Decoding building blocks:
- decode_binary(), decode_base64_array(): peak array decoding
- controlled_vocabulary: CV accession tables and lookups
"""

from .base import FileReader
from .binary import decode_base64_array, decode_binary, encode_base64_array, encode_binary
from .registry import FileFormat, ReaderRegistry, detect_format
from .readers import (
    MzMLReader,
    read_mzml,
    ProteinXmlReader,
    load_protein_xml,
    get_ptm_list_from_protein_xml,
    ModificationListCache,
    FastaReader,
    FastaHeaderPatterns,
    UNIPROT_PATTERNS,
    ENSEMBL_PATTERNS,
    load_protein_fasta,
    ProteinDbOptions,
    ProteinLoadResult,
)

__all__ = [
    # Base
    "FileReader",
    # Readers
    "MzMLReader",
    "ProteinXmlReader",
    "FastaReader",
    # Convenience functions
    "read_mzml",
    "load_protein_xml",
    "load_protein_fasta",
    "get_ptm_list_from_protein_xml",
    # Registry
    "ReaderRegistry",
    "detect_format",
    "FileFormat",
    # Binary arrays
    "decode_binary",
    "decode_base64_array",
    "encode_binary",
    "encode_base64_array",
    # Options/Results
    "ProteinDbOptions",
    "ProteinLoadResult",
    "ModificationListCache",
    "FastaHeaderPatterns",
    "UNIPROT_PATTERNS",
    "ENSEMBL_PATTERNS",
]
