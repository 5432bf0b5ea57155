"""
mzML run reader using lxml.

This module provides the MzMLReader class, which decodes every spectrum of
an mzML document (indexed or bare, optionally gzipped) into a one-based
Scan, resolving fragmentation scans back to their precursor scan.
"""

import logging
import math
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import ClassVar, Optional

from lxml import etree

from ..base import FileReader
from ..binary import decode_base64_array
from ..controlled_vocabulary import (
    CENTROID_SPECTRUM,
    CHARGE_STATE,
    FILTER_STRING,
    ION_INJECTION_TIME,
    ISOLATION_WINDOW_LOWER_OFFSET,
    ISOLATION_WINDOW_TARGET_MZ,
    ISOLATION_WINDOW_UPPER_OFFSET,
    MONOISOTOPIC_MZ_MARKER,
    MS_LEVEL,
    PEAK_INTENSITY,
    PROFILE_SPECTRUM,
    SCAN_START_TIME,
    SCAN_WINDOW_LOWER_LIMIT,
    SCAN_WINDOW_UPPER_LIMIT,
    SELECTED_ION_MZ,
    TOTAL_ION_CURRENT,
    UNIT_SECOND_ACCESSION,
    UNIT_SECOND_NAME,
    classify_binary_array,
    is_dissociation,
    is_polarity,
    resolve_analyzer,
    resolve_dissociation,
    resolve_polarity,
)
from ..registry import FileFormat, ReaderRegistry
from ...core import (
    DissociationType,
    MSRun,
    PeakArray,
    Polarity,
    PrecursorInfo,
    RunMetadata,
    Scan,
    ScanMetadata,
)
from ...exceptions import CorruptData, FormatMismatch, MissingField, PrecursorNotFound
from ...utils.parallel import ParallelMode, get_system_resources, partition_range



logger = logging.getLogger(__name__)

_PARSER_KWARGS = dict(
    resolve_entities=False,
    no_network=True,
    huge_tree=True,
    remove_pis=True,
    remove_comments=True,
)


# -----------------------------------------------------------------------------
# Element helpers (namespace-agnostic)
# -----------------------------------------------------------------------------

def _localname(element) -> str:
    return etree.QName(element).localname


def _children(element, name: str) -> list:
    if element is None:
        return []
    return [child for child in element if _localname(child) == name]


def _child(element, name: str):
    """First child with the given local name, or None."""
    if element is None:
        return None
    for child in element:
        if _localname(child) == name:
            return child
    return None


def _first(element, *names: str):
    """Follow the first child with each name in turn."""
    for name in names:
        element = _child(element, name)
        if element is None:
            return None
    return element


# -----------------------------------------------------------------------------
# Document shape
# -----------------------------------------------------------------------------

class MzMLSchema(Enum):
    """Outer shape of an mzML document."""
    INDEXED = "indexed"  # <indexedmzML><mzML>...</mzML><indexList/></indexedmzML>
    BARE = "bare"        # <mzML>...</mzML>


@dataclass(frozen=True)
class SchemaProbe:
    """Result of inspecting a document's root element."""
    schema: MzMLSchema
    mzml: object  # the <mzML> element


def probe_mzml_schema(root, source: Optional[str] = None) -> SchemaProbe:
    """
    Decide which mzML shape a parsed document has.

    Args:
        root: Root element of the parsed document.
        source: Source name used in error messages.

    Returns:
        SchemaProbe with the shape and the <mzML> element.

    Raises:
        FormatMismatch: If the root is neither <indexedmzML> wrapping an
            <mzML> element, nor <mzML> itself.
    """
    name = _localname(root)
    if name == 'indexedmzML':
        mzml = _child(root, 'mzML')
        if mzml is None:
            raise FormatMismatch("<indexedmzML> without an <mzML> element", source)
        return SchemaProbe(MzMLSchema.INDEXED, mzml)
    if name == 'mzML':
        return SchemaProbe(MzMLSchema.BARE, root)
    raise FormatMismatch(f"unrecognised root element <{name}>", source)


@dataclass
class _RunDocument:
    """The parts of a parsed mzML document that scan decoding reads.

    Shared read-only between worker threads.
    """
    spectra: list
    native_ids: list[Optional[str]]
    param_groups: dict[str, list] = field(default_factory=dict)
    instrument_analyzer: Optional[str] = None
    schema: MzMLSchema = MzMLSchema.BARE
    run_id: Optional[str] = None

    def cv_params(self, element) -> list:
        """cvParams of an element, including those of referenced param groups."""
        params = []
        for child in (element if element is not None else ()):
            name = _localname(child)
            if name == 'cvParam':
                params.append(child)
            elif name == 'referenceableParamGroupRef':
                params.extend(self.param_groups.get(child.get('ref'), []))
        return params


def _build_document(probe: SchemaProbe, source: Optional[str]) -> _RunDocument:
    mzml = probe.mzml

    param_groups = {
        group.get('id'): _children(group, 'cvParam')
        for group in _children(_child(mzml, 'referenceableParamGroupList'), 'referenceableParamGroup')
    }

    run = _child(mzml, 'run')
    if run is None:
        raise FormatMismatch("<mzML> without a <run> element", source)
    spectra = _children(_child(run, 'spectrumList'), 'spectrum')

    document = _RunDocument(
        spectra=spectra,
        native_ids=[spectrum.get('id') for spectrum in spectra],
        param_groups=param_groups,
        schema=probe.schema,
        run_id=run.get('id'),
    )
    document.instrument_analyzer = _instrument_analyzer(document, mzml)
    return document


def _instrument_analyzer(document: _RunDocument, mzml) -> Optional[str]:
    """Accession of the first analyzer of the first instrument configuration."""
    configuration = _first(mzml, 'instrumentConfigurationList', 'instrumentConfiguration')
    if configuration is None:
        return None
    params = document.cv_params(_first(configuration, 'componentList', 'analyzer'))
    if not params:
        params = document.cv_params(configuration)
    return params[0].get('accession') if params else None


# -----------------------------------------------------------------------------
# Scan decoding
# -----------------------------------------------------------------------------

def _decode_peaks(document: _RunDocument, spectrum, scan_number: int) -> PeakArray:
    mz = None
    intensity = None
    for array in _children(_child(spectrum, 'binaryDataArrayList'), 'binaryDataArray'):
        role = classify_binary_array(
            param.get('accession') for param in document.cv_params(array)
        )
        if not (role.is_mz or role.is_intensity):
            logger.debug(f"Scan {scan_number}: ignoring binary array without m/z or intensity role")
            continue
        binary = _child(array, 'binary')
        data = decode_base64_array(
            binary.text if binary is not None else None,
            role.compressed,
            role.bit_width,
        )
        if role.is_mz:
            mz = data
        if role.is_intensity:
            intensity = data

    if mz is None and intensity is None:
        return PeakArray.empty()
    if mz is None:
        raise MissingField("m/z array", f"scan {scan_number}")
    if intensity is None:
        raise MissingField("intensity array", f"scan {scan_number}")
    if len(mz) != len(intensity):
        raise CorruptData(
            f"scan {scan_number}: m/z array has {len(mz)} values but "
            f"intensity array has {len(intensity)}"
        )
    return PeakArray(mz, intensity)


def find_precursor_scan_number(
    native_ids: list[Optional[str]],
    scan_number: int,
    spectrum_ref: Optional[str],
) -> int:
    """
    Find the scan a precursor was selected from.

    Searches strictly backward from ``scan_number - 1`` to scan 1 for the
    first native id equal to ``spectrum_ref``. This is a linear scan, O(n)
    per fragmentation scan in the worst case; precursor references are
    assumed to point at an earlier scan of the same run.

    Raises:
        PrecursorNotFound: If no earlier scan matches.
    """
    if spectrum_ref is not None:
        for candidate in range(scan_number - 1, 0, -1):
            if native_ids[candidate - 1] == spectrum_ref:
                return candidate
    raise PrecursorNotFound(scan_number, spectrum_ref)


def _decode_precursor(
    document: _RunDocument,
    spectrum,
    scan,
    scan_number: int,
) -> PrecursorInfo:
    record = f"scan {scan_number}"
    precursor = _first(spectrum, 'precursorList', 'precursor')
    if precursor is None:
        raise MissingField("precursor", record)

    selected_ion_mz = math.nan
    charge = None
    intensity = None
    for param in document.cv_params(_first(precursor, 'selectedIonList', 'selectedIon')):
        accession = param.get('accession')
        if accession == SELECTED_ION_MZ:
            selected_ion_mz = float(param.get('value'))
        elif accession == CHARGE_STATE:
            charge = int(param.get('value'))
        elif accession == PEAK_INTENSITY:
            intensity = float(param.get('value'))

    isolation_mz = None
    lower_offset = math.nan
    upper_offset = math.nan
    for param in document.cv_params(_child(precursor, 'isolationWindow')):
        accession = param.get('accession')
        if accession == ISOLATION_WINDOW_TARGET_MZ:
            isolation_mz = float(param.get('value'))
        elif accession == ISOLATION_WINDOW_LOWER_OFFSET:
            lower_offset = float(param.get('value'))
        elif accession == ISOLATION_WINDOW_UPPER_OFFSET:
            upper_offset = float(param.get('value'))
    if isolation_mz is None:
        raise MissingField("isolation window target m/z", record)

    dissociation_type = DissociationType.UNKNOWN
    for param in document.cv_params(_child(precursor, 'activation')):
        if is_dissociation(param.get('accession')):
            dissociation_type = resolve_dissociation(param.get('accession'))

    monoisotopic_mz = None
    for user_param in _children(scan, 'userParam'):
        if (user_param.get('name') or '').endswith(MONOISOTOPIC_MZ_MARKER):
            monoisotopic_mz = float(user_param.get('value'))

    return PrecursorInfo(
        selected_ion_mz=selected_ion_mz,
        charge=charge,
        intensity=intensity,
        isolation_mz=isolation_mz,
        isolation_width=lower_offset + upper_offset,
        dissociation_type=dissociation_type,
        precursor_scan_number=find_precursor_scan_number(
            document.native_ids, scan_number, precursor.get('spectrumRef')
        ),
        monoisotopic_mz=monoisotopic_mz,
    )


def decode_scan(document: _RunDocument, scan_number: int) -> Scan:
    """
    Decode the spectrum at one-based position ``scan_number``.

    Raises:
        MissingField: If the MS level (or, for MSn scans, the precursor or
            its isolation target) is absent.
        TruncatedData, CorruptData: If a peak array cannot be decoded.
        PrecursorNotFound: If an MSn scan's precursor reference is dangling.
    """
    spectrum = document.spectra[scan_number - 1]
    peaks = _decode_peaks(document, spectrum, scan_number)

    ms_level = None
    is_centroid = None
    polarity = Polarity.UNKNOWN
    total_ion_current = math.nan
    for param in document.cv_params(spectrum):
        accession = param.get('accession')
        if accession == MS_LEVEL:
            ms_level = int(param.get('value'))
        elif accession == CENTROID_SPECTRUM:
            is_centroid = True
        elif accession == PROFILE_SPECTRUM:
            is_centroid = False
        elif accession == TOTAL_ION_CURRENT:
            total_ion_current = float(param.get('value'))
        elif is_polarity(accession):
            polarity = resolve_polarity(accession)
    if ms_level is None:
        raise MissingField("ms level", f"scan {scan_number}")

    retention_time = math.nan
    filter_string = None
    injection_time = None
    scan = _first(spectrum, 'scanList', 'scan')
    for param in document.cv_params(scan):
        accession = param.get('accession')
        if accession == SCAN_START_TIME:
            retention_time = float(param.get('value'))
            if (param.get('unitName') == UNIT_SECOND_NAME
                    or param.get('unitAccession') == UNIT_SECOND_ACCESSION):
                retention_time /= 60
        elif accession == FILTER_STRING:
            filter_string = param.get('value')
        elif accession == ION_INJECTION_TIME:
            injection_time = float(param.get('value'))

    scan_window_lower = math.nan
    scan_window_upper = math.nan
    for param in document.cv_params(_first(scan, 'scanWindowList', 'scanWindow')):
        accession = param.get('accession')
        if accession == SCAN_WINDOW_LOWER_LIMIT:
            scan_window_lower = float(param.get('value'))
        elif accession == SCAN_WINDOW_UPPER_LIMIT:
            scan_window_upper = float(param.get('value'))

    precursor = None
    if ms_level > 1:
        precursor = _decode_precursor(document, spectrum, scan, scan_number)

    metadata = ScanMetadata(
        scan_number=scan_number,
        ms_level=ms_level,
        retention_time=retention_time,
        polarity=polarity,
        is_centroid=is_centroid,
        scan_window_lower=scan_window_lower,
        scan_window_upper=scan_window_upper,
        total_ion_current=total_ion_current,
        filter_string=filter_string,
        analyzer=resolve_analyzer(filter_string, document.instrument_analyzer),
        injection_time=injection_time,
        native_id=document.native_ids[scan_number - 1],
        precursor=precursor,
    )
    return Scan(peaks=peaks, metadata=metadata)


def _decode_range(document: _RunDocument, start: int, stop: int, out: list) -> None:
    """Decode zero-based slots [start, stop) into ``out``."""
    for index in range(start, stop):
        out[index] = decode_scan(document, index + 1)


# -----------------------------------------------------------------------------
# Reader
# -----------------------------------------------------------------------------

@ReaderRegistry.register(FileFormat.MZML)
class MzMLReader(FileReader):
    """
    Reader for mzML files using lxml.

    The whole document is parsed once on entering the context; scans are
    decoded from the parsed tree, in parallel when loading a full run.

    Example:
        >>> with MzMLReader("sample.mzML") as reader:
        ...     run = reader.to_run()
        ...     scan = reader.get_one_based_scan(2)
    """

    format_name: ClassVar[str] = "mzML"
    supported_extensions: ClassVar[list[str]] = ['.mzml', '.xml']

    def __init__(
        self,
        path: Path | str,
        parallel_mode: ParallelMode = ParallelMode.MAX,
        custom_workers: Optional[int] = None,
    ):
        """
        Initialize the mzML reader.

        Args:
            path: Path to an mzML file (``.gz`` allowed).
            parallel_mode: Worker count policy for ``to_run``.
            custom_workers: Number of workers for ParallelMode.CUSTOM.
        """
        super().__init__(path)
        self.parallel_mode = parallel_mode
        self.custom_workers = custom_workers
        self._document: Optional[_RunDocument] = None

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

    def __enter__(self) -> 'MzMLReader':
        """Parse the document."""
        source = self.path.name
        parser = etree.XMLParser(**_PARSER_KWARGS)
        with self._open_binary() as stream:
            try:
                root = etree.parse(stream, parser).getroot()
            except etree.XMLSyntaxError as e:
                raise FormatMismatch(f"not well-formed XML ({e})", source) from e

        probe = probe_mzml_schema(root, source)
        logger.debug(f"{source}: detected {probe.schema.value} mzML")
        self._document = _build_document(probe, source)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Release the parsed document."""
        self._document = None

    def _require_document(self) -> _RunDocument:
        if self._document is None:
            raise RuntimeError("Reader not opened. Use 'with' context manager.")
        return self._document

    @property
    def schema(self) -> MzMLSchema:
        return self._require_document().schema

    def __len__(self) -> int:
        """Total number of spectra in the file."""
        return len(self._require_document().spectra)

    def __iter__(self) -> Iterator[Scan]:
        """Decode scans one at a time, in document order."""
        document = self._require_document()
        for scan_number in range(1, len(document.spectra) + 1):
            yield decode_scan(document, scan_number)

    def get_one_based_scan(self, scan_number: int) -> Scan:
        """
        Decode a single scan by one-based scan number.

        Raises:
            KeyError: If scan number is outside 1..N.
        """
        document = self._require_document()
        if not 1 <= scan_number <= len(document.spectra):
            raise KeyError(f"Scan number {scan_number} not found")
        return decode_scan(document, scan_number)

    def to_run(self) -> MSRun:
        """
        Decode every scan into an MSRun.

        ``[0, N)`` is split into contiguous ranges, one per worker; each
        worker writes only its own slots of the pre-sized result list.
        """
        document = self._require_document()
        n_spectra = len(document.spectra)
        n_workers = get_system_resources().get_workers(self.parallel_mode, self.custom_workers)
        ranges = partition_range(n_spectra, n_workers)

        logger.info(
            f"Decoding {n_spectra} spectra from {self.path.name} "
            f"with {max(1, len(ranges))} workers"
        )

        scans: list[Optional[Scan]] = [None] * n_spectra
        if len(ranges) <= 1:
            for start, stop in ranges:
                _decode_range(document, start, stop, scans)
        else:
            with ThreadPoolExecutor(max_workers=len(ranges)) as executor:
                futures = [
                    executor.submit(_decode_range, document, start, stop, scans)
                    for start, stop in ranges
                ]
                for future in as_completed(futures):
                    future.result()

        metadata = RunMetadata(
            source_file=self.path,
            schema=document.schema.value,
            run_id=document.run_id,
        )
        return MSRun(scans=scans, metadata=metadata)


def read_mzml(
    path: Path | str,
    parallel_mode: ParallelMode = ParallelMode.MAX,
    custom_workers: Optional[int] = None,
) -> MSRun:
    """
    Convenience function to read an mzML file into an MSRun.

    Args:
        path: Path to mzML file.
        parallel_mode: Worker count policy.
        custom_workers: Number of workers for ParallelMode.CUSTOM.

    Returns:
        MSRun containing all scans.

    Example:
        >>> run = read_mzml("sample.mzML")
        >>> print(f"Loaded {len(run)} scans")
    """
    with MzMLReader(path, parallel_mode=parallel_mode, custom_workers=custom_workers) as reader:
        return reader.to_run()
