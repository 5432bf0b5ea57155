"""
Options and results shared by the protein database readers.
"""

from collections.abc import Collection, Iterator, Sequence
from dataclasses import dataclass, field

from ...core import Modification, Protein


@dataclass(frozen=True)
class ProteinDbOptions:
    """Options for loading a protein database."""

    # Append a reversed decoy after every target protein
    generate_decoys: bool = False

    # Flag every loaded protein as a contaminant
    is_contaminant: bool = False

    # Modifications resolvable from "modified residue" features, in addition
    # to any list embedded in the document (protein XML only)
    known_modifications: Sequence[Modification] = ()

    # Modification types never attached to a protein (protein XML only)
    mod_types_to_exclude: Collection[str] = ()


@dataclass
class ProteinLoadResult:
    """Proteins loaded from one database, in document order.

    Decoys (when requested) directly follow their target.
    """
    proteins: list[Protein] = field(default_factory=list)

    # Description -> interned placeholder for unresolvable modifications
    unknown_modifications: dict[str, Modification] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.proteins)

    def __iter__(self) -> Iterator[Protein]:
        return iter(self.proteins)

    def __getitem__(self, index: int) -> Protein:
        return self.proteins[index]

    @property
    def targets(self) -> list[Protein]:
        return [protein for protein in self.proteins if not protein.is_decoy]

    @property
    def decoys(self) -> list[Protein]:
        return [protein for protein in self.proteins if protein.is_decoy]
