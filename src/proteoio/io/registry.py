import gzip
from pathlib import Path
from enum import Enum, auto
from typing import TYPE_CHECKING

from .base import format_suffix, is_gzipped

if TYPE_CHECKING:
    from .base import FileReader

class FileFormat(Enum):
    MZML = auto()
    PROTEIN_XML = auto()  # UniProt XML, mzLibProteinDb
    FASTA = auto()
    UNKNOWN = auto()

# Extension to format mapping (looked up after stripping .gz)
FORMAT_EXTENSIONS: dict[str, FileFormat] = {
    '.mzml': FileFormat.MZML,
    '.xml': FileFormat.PROTEIN_XML,  # Note: could be mzML - need content inspection
    '.fasta': FileFormat.FASTA,
    '.fa': FileFormat.FASTA,
    '.faa': FileFormat.FASTA,
}

# Root elements that mark an mzML document
_MZML_MARKERS = (b'<indexedmzML', b'<mzML')

def detect_format(path: Path | str) -> FileFormat:
    """
    Detect document format from file path and contents.

    ``.xml`` files need content inspection: an mzML document saved with a
    plain ``.xml`` extension is recognised by its root element.
    """
    path = Path(path)
    suffix = format_suffix(path)

    if suffix == '.xml' and path.is_file():
        return _detect_xml_format(path)

    return FORMAT_EXTENSIONS.get(suffix, FileFormat.UNKNOWN)

def _detect_xml_format(path: Path) -> FileFormat:
    """Distinguish mzML from protein database XML by the document head."""
    opener = gzip.open if is_gzipped(path) else open
    with opener(path, 'rb') as f:
        head = f.read(2048)
    if any(marker in head for marker in _MZML_MARKERS):
        return FileFormat.MZML
    return FileFormat.PROTEIN_XML


class ReaderRegistry:
    """Registry for document readers with automatic format detection."""

    _readers: dict[FileFormat, type['FileReader']] = {}

    @classmethod
    def register(cls, file_format: FileFormat):
        """Decorator to register a reader class for a format."""
        def decorator(reader_class: type['FileReader']):
            cls._readers[file_format] = reader_class
            return reader_class
        return decorator

    @classmethod
    def get_reader(cls, path: Path | str, **kwargs) -> 'FileReader':
        """Get appropriate reader for a file, with automatic format detection.

        Keyword arguments are passed to the reader's constructor.
        """
        path = Path(path)
        file_format = detect_format(path)

        if file_format in cls._readers:
            reader_class = cls._readers[file_format]
            if reader_class.is_available():
                return reader_class(path, **kwargs)
            raise RuntimeError(
                f"Reader for {path} (detected format: {file_format.name}) is not "
                f"available.\n{reader_class.get_installation_instructions()}"
            )

        raise RuntimeError(
            f"No reader available for {path} (detected format: {file_format.name})."
        )

    @classmethod
    def list_available(cls) -> dict[str, bool]:
        """List all readers and their availability status."""
        return {
            file_format.name: reader.is_available()
            for file_format, reader in cls._readers.items()
        }
