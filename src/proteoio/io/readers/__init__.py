"""
Document readers.

Run formats:
- MzMLReader: mzML files, indexed or bare (lxml)

Protein databases:
- ProteinXmlReader: UniProt XML and mzLibProteinDb XML (lxml iterparse)
- FastaReader: FASTA with configurable header patterns (pyteomics)

Convenience functions:
- read_mzml(): Load mzML file into MSRun
- load_protein_xml(): Load protein XML into ProteinLoadResult
- load_protein_fasta(): Load FASTA into ProteinLoadResult
"""

from .mzml import MzMLReader, MzMLSchema, SchemaProbe, probe_mzml_schema, read_mzml
from .database import ProteinDbOptions, ProteinLoadResult
from .ptmlist import read_modifications_from_string
from .protein_xml import (
    ProteinXmlReader,
    ModificationListCache,
    get_ptm_list_from_protein_xml,
    load_protein_xml,
)
from .fasta import (
    FastaReader,
    FastaHeaderPatterns,
    UNIPROT_PATTERNS,
    ENSEMBL_PATTERNS,
    load_protein_fasta,
)

__all__ = [
    # Readers
    "MzMLReader",
    "ProteinXmlReader",
    "FastaReader",
    # Convenience functions
    "read_mzml",
    "load_protein_xml",
    "load_protein_fasta",
    "get_ptm_list_from_protein_xml",
    "read_modifications_from_string",
    # Schema probing
    "MzMLSchema",
    "SchemaProbe",
    "probe_mzml_schema",
    # Options/Results
    "ProteinDbOptions",
    "ProteinLoadResult",
    "ModificationListCache",
    "FastaHeaderPatterns",
    "UNIPROT_PATTERNS",
    "ENSEMBL_PATTERNS",
]
