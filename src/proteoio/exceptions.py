"""
Error types raised while decoding run and protein database documents.

Every decoding failure aborts the record (or, for document-shape problems,
the whole load) it occurs in. All errors derive from ``ProteoIOError`` and
from ``ValueError`` so callers that already guard against malformed input
with ``except ValueError`` keep working.
"""

from typing import Optional


class ProteoIOError(ValueError):
    """Base class for all decoding errors."""


class FormatMismatch(ProteoIOError):
    """The document is neither an indexed nor a bare mzML document."""

    def __init__(self, detail: str, source: Optional[str] = None):
        self.detail = detail
        self.source = source
        where = f"{source}: " if source else ""
        super().__init__(
            f"{where}{detail}; expected an <indexedmzML> or <mzML> document"
        )


class MissingField(ProteoIOError):
    """A structurally required value is absent from a record."""

    def __init__(self, field_name: str, record: Optional[str] = None):
        self.field_name = field_name
        self.record = record
        where = f" for {record}" if record else ""
        super().__init__(f"Required field '{field_name}' is missing{where}")


class TruncatedData(ProteoIOError):
    """A binary array's byte length is not a multiple of its element size."""

    def __init__(self, byte_length: int, element_size: int):
        self.byte_length = byte_length
        self.element_size = element_size
        super().__init__(
            f"Binary array of {byte_length} bytes is not a multiple of "
            f"the {element_size}-byte element size"
        )


class CorruptData(ProteoIOError):
    """A binary array could not be decoded, or the peak arrays disagree in length."""


class PrecursorNotFound(ProteoIOError):
    """No earlier scan carries the native id a precursor refers to."""

    def __init__(self, scan_number: int, spectrum_ref: Optional[str]):
        self.scan_number = scan_number
        self.spectrum_ref = spectrum_ref
        super().__init__(
            f"Scan {scan_number}: precursor spectrum '{spectrum_ref}' "
            f"does not match any earlier scan"
        )


class CoordinateOutOfRange(ProteoIOError):
    """A positional annotation lies outside its protein sequence."""

    def __init__(self, accession: str, what: str, begin, end, length: int):
        self.accession = accession
        self.begin = begin
        self.end = end
        self.length = length
        super().__init__(
            f"{accession}: {what} [{begin}, {end}] is outside the "
            f"sequence of length {length}"
        )
