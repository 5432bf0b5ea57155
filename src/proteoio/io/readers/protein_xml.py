"""
UniProt-style protein XML reader using lxml.

This module provides the ProteinXmlReader class for UniProt XML and
mzLibProteinDb XML files (optionally gzipped). The document is streamed with
``lxml.etree.iterparse``; one entry is buffered at a time and released once
its Protein (and decoy) has been built.
"""

import gzip
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Optional

from lxml import etree

from .database import ProteinDbOptions, ProteinLoadResult
from .ptmlist import read_modifications_from_string
from ..base import FileReader, is_gzipped
from ..registry import FileFormat, ReaderRegistry
from ...core import (
    DatabaseReference,
    Modification,
    Protein,
    ProteolysisProduct,
    SequenceVariation,
    generate_decoy,
)
from ...exceptions import MissingField


logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r'\s+')

_PARSER_KWARGS = dict(
    resolve_entities=False,
    no_network=True,
    huge_tree=True,
    remove_pis=True,
    remove_comments=True,
)

# Feature types
MODIFIED_RESIDUE = "modified residue"
SEQUENCE_VARIANT = "sequence variant"
PROTEOLYSIS_PRODUCT_TYPES = frozenset({"chain", "propeptide", "signal peptide", "peptide"})

# Depth of <name> directly under <entry> (root element is depth 0)
ENTRY_NAME_DEPTH = 2


def _localname(element) -> str:
    return etree.QName(element).localname


def _optional_int(value: Optional[str]) -> Optional[int]:
    """Integer position, or None for unknown positions (e.g. status="unknown")."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# -----------------------------------------------------------------------------
# Embedded modification list
# -----------------------------------------------------------------------------

@dataclass
class ModificationListCache:
    """
    Last embedded modification list read, keyed by source path.

    Pass the same cache to repeated loads of one database to skip re-reading
    its modification list. Reading a different path replaces the entry.
    """
    path: Optional[Path] = None
    modifications: list[Modification] = field(default_factory=list)

    def get(self, path: Path | str) -> Optional[list[Modification]]:
        if self.path is not None and self.path == Path(path):
            return self.modifications
        return None

    def store(self, path: Path | str, modifications: list[Modification]) -> None:
        self.path = Path(path)
        self.modifications = modifications


def _read_embedded_modifications(path: Path) -> list[Modification]:
    """Collect ``<modification>`` texts up to the first ``<entry>``."""
    texts = []
    with _open_source(path) as stream:
        for event, element in etree.iterparse(stream, events=('start', 'end'), **_PARSER_KWARGS):
            name = _localname(element)
            if event == 'start' and name == 'entry':
                break
            if event == 'end' and name == 'modification':
                texts.append(element.text or '')
                element.clear()
    return read_modifications_from_string('\n'.join(texts))


def _open_source(path: Path):
    if is_gzipped(path):
        return gzip.open(path, 'rb')
    return open(path, 'rb')


def get_ptm_list_from_protein_xml(
    path: Path | str,
    cache: Optional[ModificationListCache] = None,
) -> list[Modification]:
    """
    Read the modification list embedded ahead of the entries of a protein XML.

    Args:
        path: Protein XML file (``.gz`` allowed).
        cache: Optional cache; a hit for the same path skips reading.

    Returns:
        Modifications declared in the document (empty if none).
    """
    path = Path(path)
    if cache is not None:
        cached = cache.get(path)
        if cached is not None:
            logger.debug(f"Using cached modification list for {path.name}")
            return cached

    modifications = _read_embedded_modifications(path)
    logger.debug(f"{path.name}: {len(modifications)} embedded modifications")
    if cache is not None:
        cache.store(path, modifications)
    return modifications


# -----------------------------------------------------------------------------
# Per-load state
# -----------------------------------------------------------------------------

class _ModificationResolver:
    """
    Known-modification lookup and unknown-modification interning for one load.

    Known modifications with the same (id, type, target) collapse, the later
    record winning; the survivors are grouped by id.
    """

    def __init__(self, known: list[Modification], mod_types_to_exclude=()):
        merged: dict[tuple, Modification] = {}
        for modification in known:
            merged[modification.identity] = modification
        self.known: dict[str, list[Modification]] = {}
        for modification in merged.values():
            self.known.setdefault(modification.id, []).append(modification)
        self.excluded = frozenset(mod_types_to_exclude)
        self.unknown: dict[str, Modification] = {}

    def resolve(
        self,
        modifications: dict[int, list[Modification]],
        position: int,
        description: str,
    ) -> None:
        """Attach the modification named ``description`` at ``position``."""
        residue = modifications.setdefault(position, [])
        candidates = self.known.get(description)
        if candidates is not None:
            kept = [m for m in candidates if m.modification_type not in self.excluded]
            if not kept and not residue:
                del modifications[position]
            else:
                residue.extend(kept)
            return

        if description not in self.unknown:
            logger.debug(f"Unknown modification '{description}'")
            self.unknown[description] = Modification.unknown(description)
        residue.append(self.unknown[description])


@dataclass
class _EntryState:
    """Fields buffered while reading one <entry>."""
    accession: Optional[str] = None
    name: Optional[str] = None
    full_name: Optional[str] = None
    sequence: Optional[str] = None
    gene_names: list[tuple[Optional[str], str]] = field(default_factory=list)
    reading_gene: bool = False
    modifications: dict[int, list[Modification]] = field(default_factory=dict)
    proteolysis_products: list[ProteolysisProduct] = field(default_factory=list)
    sequence_variations: list[SequenceVariation] = field(default_factory=list)
    database_references: list[DatabaseReference] = field(default_factory=list)

    # Current <feature>
    feature_type: Optional[str] = None
    feature_description: Optional[str] = None
    original: str = ""
    variation: str = ""
    position: Optional[int] = None
    begin: Optional[int] = None
    end: Optional[int] = None

    # Current <dbReference>
    reference_type: Optional[str] = None
    reference_id: Optional[str] = None
    reference_properties: list[tuple[Optional[str], Optional[str]]] = field(default_factory=list)

    def reset_feature(self) -> None:
        self.original = ""
        self.variation = ""
        self.position = None
        self.begin = None
        self.end = None


# -----------------------------------------------------------------------------
# Reader
# -----------------------------------------------------------------------------

@ReaderRegistry.register(FileFormat.PROTEIN_XML)
class ProteinXmlReader(FileReader):
    """
    Reader for UniProt / mzLibProteinDb protein XML.

    Example:
        >>> options = ProteinDbOptions(generate_decoys=True)
        >>> with ProteinXmlReader("uniprot.xml.gz", options) as reader:
        ...     result = reader.read()
        >>> result[0].full_description
        'P62805|H4_HUMAN|Histone H4'
    """

    format_name: ClassVar[str] = "protein XML"
    supported_extensions: ClassVar[list[str]] = ['.xml']

    def __init__(
        self,
        path: Path | str,
        options: Optional[ProteinDbOptions] = None,
        cache: Optional[ModificationListCache] = None,
    ):
        super().__init__(path)
        self.options = options or ProteinDbOptions()
        self.cache = cache
        self._stream = None

    @classmethod
    def is_available(cls) -> bool:
        """Check if lxml is installed."""
        try:
            import lxml.etree
            return True
        except ImportError:
            return False

    @classmethod
    def get_installation_instructions(cls) -> str:
        return (
            "Install lxml:\n"
            "  pip install lxml"
        )

    def __enter__(self) -> 'ProteinXmlReader':
        self._stream = self._open_binary()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    def read(self) -> ProteinLoadResult:
        """
        Read every entry of the document.

        Returns:
            ProteinLoadResult with proteins in document order (each decoy
            right after its target) and the unknown modifications met.

        Raises:
            MissingField: If a modified residue has no position or description.
            CoordinateOutOfRange: If a decoy cannot be built for an entry.
        """
        if self._stream is None:
            raise RuntimeError("Reader not opened. Use 'with' context manager.")

        options = self.options
        embedded = get_ptm_list_from_protein_xml(self.path, self.cache)
        resolver = _ModificationResolver(
            embedded + list(options.known_modifications),
            options.mod_types_to_exclude,
        )

        logger.info(f"Loading proteins from {self.path.name}")
        result = ProteinLoadResult(unknown_modifications=resolver.unknown)
        state = _EntryState()
        depth = 0

        for event, element in etree.iterparse(self._stream, events=('start', 'end'), **_PARSER_KWARGS):
            name = _localname(element)
            if event == 'start':
                self._on_start(state, name, element)
                depth += 1
                continue

            depth -= 1
            if name == 'entry':
                self._close_entry(state, result)
                state = _EntryState()
                # Release the finished entry and everything before it
                element.clear()
                while element.getprevious() is not None:
                    del element.getparent()[0]
            else:
                self._on_end(state, resolver, name, element, depth)

        logger.info(
            f"Loaded {len(result.targets)} proteins ({len(result.decoys)} decoys) "
            f"from {self.path.name}"
        )
        if result.unknown_modifications:
            logger.info(f"{len(result.unknown_modifications)} unknown modification types")
        return result

    @staticmethod
    def _on_start(state: _EntryState, name: str, element) -> None:
        # Attribute-only elements
        if name == 'gene':
            state.reading_gene = True
        elif name == 'feature':
            state.feature_type = element.get('type')
            state.feature_description = element.get('description')
        elif name == 'dbReference':
            state.reference_type = element.get('type')
            state.reference_id = element.get('id')
            state.reference_properties = []
        elif name == 'property':
            state.reference_properties.append((element.get('type'), element.get('value')))
        elif name == 'position':
            state.position = _optional_int(element.get('position'))
        elif name == 'begin':
            state.begin = _optional_int(element.get('position'))
        elif name == 'end':
            state.end = _optional_int(element.get('position'))

    @staticmethod
    def _on_end(
        state: _EntryState,
        resolver: _ModificationResolver,
        name: str,
        element,
        depth: int,
    ) -> None:
        text = element.text or ''
        if name == 'accession':
            if state.accession is None:
                state.accession = text
        elif name == 'name':
            if depth == ENTRY_NAME_DEPTH:
                state.name = text
            if state.reading_gene:
                state.gene_names.append((element.get('type'), text))
        elif name == 'fullName':
            if state.full_name is None:
                state.full_name = text
        elif name == 'original':
            state.original = text
        elif name == 'variation':
            state.variation = text
        elif name == 'sequence':
            state.sequence = _WHITESPACE.sub('', text)
        elif name == 'gene':
            state.reading_gene = False
        elif name == 'dbReference':
            state.database_references.append(DatabaseReference(
                state.reference_type,
                state.reference_id,
                tuple(state.reference_properties),
            ))
            state.reference_type = None
            state.reference_id = None
            state.reference_properties = []
        elif name == 'feature':
            _close_feature(state, resolver)

    def _close_entry(self, state: _EntryState, result: ProteinLoadResult) -> None:
        if state.accession is None or state.sequence is None:
            logger.debug(f"Skipping entry without accession or sequence ({state.accession})")
            return

        protein = Protein(
            base_sequence=state.sequence,
            accession=state.accession,
            name=state.name,
            full_name=state.full_name,
            gene_names=state.gene_names,
            one_based_modifications=state.modifications,
            proteolysis_products=state.proteolysis_products,
            sequence_variations=state.sequence_variations,
            database_references=state.database_references,
            is_decoy=False,
            is_contaminant=self.options.is_contaminant,
        )
        result.proteins.append(protein)
        if self.options.generate_decoys:
            result.proteins.append(generate_decoy(protein))


def _close_feature(state: _EntryState, resolver: _ModificationResolver) -> None:
    feature_type = state.feature_type
    if feature_type == MODIFIED_RESIDUE:
        record = f"modified residue in {state.accession}"
        if state.feature_description is None:
            raise MissingField("description", record)
        if state.position is None:
            raise MissingField("position", record)
        description = state.feature_description.split(';')[0]
        resolver.resolve(state.modifications, state.position, description)
    elif feature_type in PROTEOLYSIS_PRODUCT_TYPES:
        state.proteolysis_products.append(
            ProteolysisProduct(state.begin, state.end, feature_type)
        )
    elif feature_type == SEQUENCE_VARIANT and state.variation:
        if state.begin is not None and state.end is not None:
            state.sequence_variations.append(SequenceVariation(
                state.begin, state.end, state.original, state.variation,
                state.feature_description,
            ))
        elif state.position is not None and state.position >= 1:
            state.sequence_variations.append(SequenceVariation.from_position(
                state.position, state.original, state.variation,
                state.feature_description,
            ))
    state.reset_feature()


def load_protein_xml(
    path: Path | str,
    generate_decoys: bool = False,
    known_modifications=(),
    is_contaminant: bool = False,
    mod_types_to_exclude=(),
    cache: Optional[ModificationListCache] = None,
) -> ProteinLoadResult:
    """
    Convenience function to load a protein XML database.

    Args:
        path: Protein XML file (``.xml`` or ``.xml.gz``).
        generate_decoys: Append a reversed decoy after each protein.
        known_modifications: Modifications to resolve "modified residue"
            features against, besides those embedded in the document.
        is_contaminant: Flag all proteins as contaminants.
        mod_types_to_exclude: Modification types never attached.
        cache: Optional embedded-modification-list cache.

    Returns:
        ProteinLoadResult with the proteins and unknown modifications.

    Example:
        >>> result = load_protein_xml("uniprot.xml", generate_decoys=True)
        >>> print(f"Loaded {len(result.targets)} proteins")
    """
    options = ProteinDbOptions(
        generate_decoys=generate_decoys,
        is_contaminant=is_contaminant,
        known_modifications=tuple(known_modifications),
        mod_types_to_exclude=frozenset(mod_types_to_exclude),
    )
    with ProteinXmlReader(path, options=options, cache=cache) as reader:
        return reader.read()
