"""
Parser for ptmlist-style modification records.

Protein database documents may embed their modification list as
``<modification>`` elements ahead of the first entry. Each holds records in
the UniProt ``ptmlist.txt`` layout::

    ID   Phosphoserine
    FT   MOD_RES
    TG   Serine.
    PP   Anywhere.
    MM   79.966331
    MT   UniProt
    //

Only the keys used for modification resolution are kept; other lines
(AC, CF, DR, ...) are skipped.
"""

from typing import Iterator, Optional

from ...core import Modification
from ...exceptions import MissingField

RECORD_TERMINATOR = "//"


def _split_line(line: str) -> tuple[str, str]:
    """Split a record line into its two-letter key and value."""
    return line[:2], line[2:].strip()


def _build(fields: dict[str, str]) -> Modification:
    if 'ID' not in fields:
        raise MissingField("ID", "ptmlist record")
    mass = fields.get('MM')
    return Modification(
        id=fields['ID'],
        modification_type=fields.get('MT'),
        target=fields.get('TG'),
        position=fields.get('PP'),
        monoisotopic_mass=float(mass) if mass else None,
        feature_type=fields.get('FT'),
    )


def iter_modifications(lines) -> Iterator[Modification]:
    """
    Yield one Modification per ``//``-terminated record.

    Leading whitespace on lines is ignored. Trailing lines without a
    terminator still form a record.

    Raises:
        MissingField: If a record has no ``ID`` line.
        ValueError: If an ``MM`` value is not a number.
    """
    fields: dict[str, str] = {}
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        if line.startswith(RECORD_TERMINATOR):
            if fields:
                yield _build(fields)
            fields = {}
            continue
        key, value = _split_line(line)
        # Continuation lines repeat the key; the first occurrence wins
        fields.setdefault(key, value)
    if fields:
        yield _build(fields)


def read_modifications_from_string(text: Optional[str]) -> list[Modification]:
    """Parse all ptmlist records in ``text``."""
    if not text:
        return []
    return list(iter_modifications(text.splitlines()))
