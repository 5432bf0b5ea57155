"""
Protein database records.

This module defines the records produced by the protein database readers:
Protein and its position-indexed annotations (Modification,
SequenceVariation, ProteolysisProduct) and cross-references
(DatabaseReference). All positions are one-based.
"""

from dataclasses import dataclass, field
from typing import Optional

UNKNOWN_MODIFICATION_TYPE = "unknown"
DECOY_PREFIX = "DECOY_"


@dataclass(frozen=True, slots=True)
class Modification:
    """
    A post-translational modification.

    Modifications read from a database are identified by ``id``, the
    description used in ``modified residue`` features. Modifications that
    cannot be resolved against the known list get the ``"unknown"`` type.

    Attributes:
        id: Identity key (feature description, e.g. "Phosphoserine").
        modification_type: Type tag (e.g. "UniProt", "Common Biological").
        target: Target residue(s), if declared.
        position: Positional restriction (e.g. "Anywhere."), if declared.
        monoisotopic_mass: Mass shift in Da, if declared.
        feature_type: Feature key the modification appears under (e.g. MOD_RES).
    """
    id: str
    modification_type: Optional[str] = None
    target: Optional[str] = None
    position: Optional[str] = None
    monoisotopic_mass: Optional[float] = None
    feature_type: Optional[str] = None

    @property
    def is_unknown(self) -> bool:
        return self.modification_type == UNKNOWN_MODIFICATION_TYPE

    @property
    def identity(self) -> tuple[str, Optional[str], Optional[str]]:
        """Key under which equal modifications collapse when lists are merged."""
        return self.id, self.modification_type, self.target

    @classmethod
    def unknown(cls, description: str) -> 'Modification':
        return cls(id=description, modification_type=UNKNOWN_MODIFICATION_TYPE)


@dataclass(frozen=True, slots=True)
class SequenceVariation:
    """
    A sequence variant: ``original`` replaced by ``variant``.

    The point form (a single ``position`` in the database) has
    ``one_based_begin_position == one_based_end_position``.
    """
    one_based_begin_position: int
    one_based_end_position: int
    original_sequence: str
    variant_sequence: str
    description: Optional[str] = None

    @classmethod
    def from_position(
        cls,
        one_based_position: int,
        original_sequence: str,
        variant_sequence: str,
        description: Optional[str] = None,
    ) -> 'SequenceVariation':
        return cls(
            one_based_position,
            one_based_position,
            original_sequence,
            variant_sequence,
            description,
        )

    @property
    def is_point(self) -> bool:
        return self.one_based_begin_position == self.one_based_end_position


@dataclass(frozen=True, slots=True)
class ProteolysisProduct:
    """A chain, propeptide, signal peptide or peptide range.

    Either end may be None when the database gives an unknown position.
    """
    one_based_begin_position: Optional[int]
    one_based_end_position: Optional[int]
    product_type: str


@dataclass(frozen=True, slots=True)
class DatabaseReference:
    """A cross-reference to an external database."""
    type: Optional[str]
    id: Optional[str]
    properties: tuple[tuple[Optional[str], Optional[str]], ...] = ()


@dataclass(slots=True)
class Protein:
    """
    A protein sequence record with its annotations.

    Attributes:
        base_sequence: Residue string, no whitespace.
        accession: Accession (decoys carry the ``DECOY_`` prefix).
        name: Entry name (e.g. "H4_HUMAN").
        full_name: Recommended full name (e.g. "Histone H4").
        gene_names: ``(type, name)`` pairs, e.g. ``("primary", "HIST1H4A")``.
        one_based_modifications: Position -> modifications at that residue.
        proteolysis_products: Chain/propeptide/signal peptide/peptide ranges.
        sequence_variations: Sequence variants.
        database_references: Cross-references (empty for decoys).
        is_decoy: Whether the record is a synthetic decoy.
        is_contaminant: Whether the record comes from a contaminant database.
    """
    base_sequence: str
    accession: str
    name: Optional[str] = None
    full_name: Optional[str] = None
    gene_names: list[tuple[Optional[str], str]] = field(default_factory=list)
    one_based_modifications: dict[int, list[Modification]] = field(default_factory=dict)
    proteolysis_products: list[ProteolysisProduct] = field(default_factory=list)
    sequence_variations: list[SequenceVariation] = field(default_factory=list)
    database_references: list[DatabaseReference] = field(default_factory=list)
    is_decoy: bool = False
    is_contaminant: bool = False

    @property
    def length(self) -> int:
        return len(self.base_sequence)

    @property
    def full_description(self) -> str:
        """``accession|name|full_name`` as used in search result reports."""
        return f"{self.accession}|{self.name or ''}|{self.full_name or ''}"

    @property
    def primary_gene_names(self) -> list[str]:
        return [gene for gene_type, gene in self.gene_names if gene_type == "primary"]

    def __len__(self) -> int:
        return len(self.base_sequence)

    def __getitem__(self, index: int) -> str:
        """Residue at zero-based ``index``."""
        return self.base_sequence[index]

    def __repr__(self) -> str:
        kind = "decoy" if self.is_decoy else "target"
        return f"Protein({self.accession}, {self.length} aa, {kind})"
