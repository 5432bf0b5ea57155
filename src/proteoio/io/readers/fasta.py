"""
FASTA protein database reader using pyteomics.

Records are split by ``pyteomics.fasta.read``; header fields (accession,
full name, name, gene) are pulled out with caller-supplied regular
expressions, each field taking the first capture group of its pattern's
first match.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Optional

from pyteomics import fasta

from .database import ProteinDbOptions, ProteinLoadResult
from ..base import FileReader
from ..registry import FileFormat, ReaderRegistry
from ...core import Protein, generate_sequence_decoy


logger = logging.getLogger(__name__)

HEADER_MARKER = ">"
_WHITESPACE = re.compile(r'\s+')

PRIMARY_GENE = "primary"


@dataclass(frozen=True)
class FastaHeaderPatterns:
    """Regular expressions applied to each header line (without ``>``).

    A pattern of None leaves its field unset.
    """
    accession: re.Pattern
    full_name: Optional[re.Pattern] = None
    name: Optional[re.Pattern] = None
    gene: Optional[re.Pattern] = None


# >sp|P62805|H4_HUMAN Histone H4 OS=Homo sapiens OX=9606 GN=HIST1H4A PE=1 SV=2
UNIPROT_PATTERNS = FastaHeaderPatterns(
    accession=re.compile(r'([A-Z0-9_]+)'),
    full_name=re.compile(r'\|([^\|]+)\sOS='),
    name=re.compile(r'\|([^\|\s]+)\s'),
    gene=re.compile(r'GN=([^ ]+)'),
)

# >ENSP00000328646 pep:known chromosome:GRCh38:1:... gene:ENSG00000186092 ...
ENSEMBL_PATTERNS = FastaHeaderPatterns(
    accession=re.compile(r'([A-Z0-9_]+)'),
    full_name=re.compile(r'(pep:.*)'),
    gene=re.compile(r'gene:([^ ]+)'),
)


def _first_group(pattern: Optional[re.Pattern], header: str) -> Optional[str]:
    if pattern is None:
        return None
    match = pattern.search(header)
    if match is None or match.lastindex is None:
        return None
    return match.group(1)


@ReaderRegistry.register(FileFormat.FASTA)
class FastaReader(FileReader):
    """
    Reader for FASTA protein databases (optionally gzipped).

    Example:
        >>> with FastaReader("human.fasta", ProteinDbOptions(generate_decoys=True)) as reader:
        ...     result = reader.read()
    """

    format_name: ClassVar[str] = "FASTA"
    supported_extensions: ClassVar[list[str]] = ['.fasta', '.fa', '.faa']

    def __init__(
        self,
        path: Path | str,
        options: Optional[ProteinDbOptions] = None,
        patterns: FastaHeaderPatterns = UNIPROT_PATTERNS,
    ):
        super().__init__(path)
        self.options = options or ProteinDbOptions()
        self.patterns = patterns
        self._handle = None

    @classmethod
    def is_available(cls) -> bool:
        """Check if pyteomics is installed."""
        try:
            from pyteomics import fasta
            return True
        except ImportError:
            return False

    @classmethod
    def get_installation_instructions(cls) -> str:
        return (
            "Install pyteomics:\n"
            "  pip install pyteomics"
        )

    def __enter__(self) -> 'FastaReader':
        self._handle = self._open_text()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def _parse_header(self, header: str) -> tuple[str, Optional[str], Optional[str], list]:
        # Patterns see the full header line, marker included.
        line = HEADER_MARKER + header
        patterns = self.patterns
        accession = _first_group(patterns.accession, line)
        if not accession:
            accession = header.rstrip()
        gene = _first_group(patterns.gene, line)
        gene_names = [(PRIMARY_GENE, gene)] if gene is not None else []
        return (
            accession,
            _first_group(patterns.name, line),
            _first_group(patterns.full_name, line),
            gene_names,
        )

    def read(self) -> ProteinLoadResult:
        """
        Read every record of the file.

        Duplicate accessions get ``_1``, ``_2``, ... appended; the counter is
        shared by all duplicates in the file.

        Returns:
            ProteinLoadResult with proteins in file order (each decoy right
            after its target).
        """
        if self._handle is None:
            raise RuntimeError("Reader not opened. Use 'with' context manager.")

        logger.info(f"Loading proteins from {self.path.name}")
        result = ProteinLoadResult()
        seen: set[str] = set()
        counter = 1

        with fasta.read(self._handle, use_index=False) as records:
            for header, sequence in records:
                accession, name, full_name, gene_names = self._parse_header(header)
                if accession in seen:
                    logger.debug(f"Duplicate accession {accession}")
                while accession in seen:
                    accession += "_" + str(counter)
                    counter += 1
                seen.add(accession)

                protein = Protein(
                    base_sequence=_WHITESPACE.sub('', sequence),
                    accession=accession,
                    name=name,
                    full_name=full_name,
                    gene_names=gene_names,
                    is_contaminant=self.options.is_contaminant,
                )
                result.proteins.append(protein)
                if self.options.generate_decoys:
                    result.proteins.append(generate_sequence_decoy(protein))

        logger.info(
            f"Loaded {len(result.targets)} proteins ({len(result.decoys)} decoys) "
            f"from {self.path.name}"
        )
        return result


def load_protein_fasta(
    path: Path | str,
    generate_decoys: bool = False,
    is_contaminant: bool = False,
    patterns: FastaHeaderPatterns = UNIPROT_PATTERNS,
) -> ProteinLoadResult:
    """
    Convenience function to load a FASTA protein database.

    Args:
        path: FASTA file (``.fasta``, ``.fa``, ``.faa``, optionally ``.gz``).
        generate_decoys: Append a reversed decoy after each protein.
        is_contaminant: Flag all proteins as contaminants.
        patterns: Header patterns (UNIPROT_PATTERNS or ENSEMBL_PATTERNS, or
            custom).

    Returns:
        ProteinLoadResult with the proteins.
    """
    options = ProteinDbOptions(generate_decoys=generate_decoys, is_contaminant=is_contaminant)
    with FastaReader(path, options=options, patterns=patterns) as reader:
        return reader.read()
