"""
Reversed decoy proteins for target-decoy FDR estimation.

A decoy keeps its source's length and composition. The sequence is reversed,
except that an initiator methionine stays at position 1, and every
position-indexed annotation is remapped onto the reversed sequence:

- modifications: p -> L - p + 2 when the initiator is kept (position 1
  stays at 1), p -> L - p + 1 otherwise
- proteolysis products: (b, e) -> (L - e + 1, L - b + 1), list reversed
- sequence variants: mirrored, with both substrings reversed

Database references do not apply to a synthetic sequence and are dropped.
"""

from ..exceptions import CoordinateOutOfRange
from .protein import (
    DECOY_PREFIX,
    Modification,
    Protein,
    ProteolysisProduct,
    SequenceVariation,
)

INITIATOR_RESIDUE = "M"
DECOY_VARIANT_PREFIX = "DECOY VARIANT: "


def reverse_sequence(sequence: str) -> tuple[str, bool]:
    """Reverse a sequence, keeping an initiator methionine in place.

    Returns:
        (decoy_sequence, initiator_kept)

    Examples:
        >>> reverse_sequence("MABCD")
        ('MDCBA', True)
        >>> reverse_sequence("ABCD")
        ('DCBA', False)
    """
    if sequence.startswith(INITIATOR_RESIDUE):
        return sequence[0] + sequence[:0:-1], True
    return sequence[::-1], False


def _check_range(protein: Protein, what: str, begin, end) -> None:
    length = len(protein)
    if begin is not None and not 1 <= begin <= length:
        raise CoordinateOutOfRange(protein.accession, what, begin, end, length)
    if end is not None and not 1 <= end <= length:
        raise CoordinateOutOfRange(protein.accession, what, begin, end, length)
    if begin is not None and end is not None and begin > end:
        raise CoordinateOutOfRange(protein.accession, what, begin, end, length)


def _validate(protein: Protein) -> None:
    for position in protein.one_based_modifications:
        _check_range(protein, "modification", position, position)
    for product in protein.proteolysis_products:
        _check_range(
            protein,
            product.product_type,
            product.one_based_begin_position,
            product.one_based_end_position,
        )
    for variation in protein.sequence_variations:
        _check_range(
            protein,
            "sequence variant",
            variation.one_based_begin_position,
            variation.one_based_end_position,
        )


def _decoy_modifications(
    modifications: dict[int, list[Modification]],
    length: int,
    initiator_kept: bool,
) -> dict[int, list[Modification]]:
    if initiator_kept:
        return {
            (1 if position == 1 else length - position + 2): mods
            for position, mods in modifications.items()
        }
    return {length - position + 1: mods for position, mods in modifications.items()}


def _mirror(position, length: int):
    return None if position is None else length - position + 1


def _decoy_proteolysis_products(
    products: list[ProteolysisProduct], length: int
) -> list[ProteolysisProduct]:
    # Output index i mirrors input index (count - 1 - i).
    return [
        ProteolysisProduct(
            _mirror(product.one_based_end_position, length),
            _mirror(product.one_based_begin_position, length),
            product.product_type,
        )
        for product in reversed(products)
    ]


def _decoy_variations(
    variations: list[SequenceVariation], length: int
) -> list[SequenceVariation]:
    decoys: list[SequenceVariation] = []
    for variation in variations:
        original = variation.original_sequence
        variant = variation.variant_sequence
        begin = variation.one_based_begin_position
        end = variation.one_based_end_position
        if begin == 1:
            original_starts = original.startswith(INITIATOR_RESIDUE)
            variant_starts = variant.startswith(INITIATOR_RESIDUE)
            if original_starts != variant_starts:
                decoys.append(SequenceVariation.from_position(
                    1,
                    INITIATOR_RESIDUE if original_starts else "",
                    INITIATOR_RESIDUE if variant_starts else "",
                    f"{DECOY_VARIANT_PREFIX}Initiator Methionine Change in "
                    f"{variation.description}",
                ))
            original = original[int(original_starts):]
            variant = variant[int(variant_starts):]
        decoy_end = length - begin + 2 + int(end == length) - int(begin == 1)
        decoy_begin = decoy_end - len(original) + 1
        decoys.append(SequenceVariation(
            decoy_begin,
            decoy_end,
            original[::-1],
            variant[::-1],
            f"{DECOY_VARIANT_PREFIX}{variation.description}",
        ))
    return decoys


def generate_decoy(protein: Protein) -> Protein:
    """
    Build the reversed decoy twin of a target protein.

    Args:
        protein: A completed, non-decoy protein.

    Returns:
        Protein of the same length, accession prefixed with ``DECOY_``.

    Raises:
        ValueError: If ``protein`` is already a decoy.
        CoordinateOutOfRange: If a modification, proteolysis product or
            variant lies outside the sequence or has begin > end.
    """
    if protein.is_decoy:
        raise ValueError(f"{protein.accession} is already a decoy")
    _validate(protein)

    length = len(protein)
    decoy_sequence, initiator_kept = reverse_sequence(protein.base_sequence)

    return Protein(
        base_sequence=decoy_sequence,
        accession=DECOY_PREFIX + protein.accession,
        name=protein.name,
        full_name=protein.full_name,
        gene_names=list(protein.gene_names),
        one_based_modifications=_decoy_modifications(
            protein.one_based_modifications, length, initiator_kept
        ),
        proteolysis_products=_decoy_proteolysis_products(
            protein.proteolysis_products, length
        ),
        sequence_variations=_decoy_variations(protein.sequence_variations, length),
        database_references=[],
        is_decoy=True,
        is_contaminant=protein.is_contaminant,
    )


def generate_sequence_decoy(protein: Protein) -> Protein:
    """Decoy for records without positional annotations (FASTA input).

    Only the sequence-reversal rule applies; FASTA-sourced proteins carry no
    positional annotations to remap.
    """
    if protein.is_decoy:
        raise ValueError(f"{protein.accession} is already a decoy")
    decoy_sequence, _ = reverse_sequence(protein.base_sequence)
    return Protein(
        base_sequence=decoy_sequence,
        accession=DECOY_PREFIX + protein.accession,
        name=protein.name,
        full_name=protein.full_name,
        gene_names=list(protein.gene_names),
        is_decoy=True,
        is_contaminant=protein.is_contaminant,
    )
