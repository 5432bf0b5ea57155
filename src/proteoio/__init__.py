"""
proteoio: readers for mass spectrometry runs and protein databases.

- read_mzml(): decode an mzML run into an MSRun of one-based Scans
- load_protein_xml(): load UniProt / mzLibProteinDb XML into Proteins
- load_protein_fasta(): load a FASTA database into Proteins
"""

__version__ = "0.1.0"

from .io import load_protein_fasta, load_protein_xml, read_mzml

__all__ = [
    "__version__",
    "read_mzml",
    "load_protein_xml",
    "load_protein_fasta",
]
