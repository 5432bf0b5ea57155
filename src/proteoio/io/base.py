import gzip
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, ClassVar

GZIP_SUFFIX = '.gz'


def is_gzipped(path: Path) -> bool:
    return path.name.lower().endswith(GZIP_SUFFIX)


def format_suffix(path: Path) -> str:
    """Lower-case extension, looking through a trailing ``.gz``."""
    path = Path(path)
    if is_gzipped(path):
        path = path.with_suffix('')
    return path.suffix.lower()


class FileReader(ABC):
    """
    Abstract base class for document readers.

    A reader owns its source file for the duration of one ``with`` block: the
    document is opened on enter, fully consumed, and released on exit.
    """

    # Class-level attributes
    format_name: ClassVar[str]  # e.g., "mzML", "FASTA"
    supported_extensions: ClassVar[list[str]]  # e.g., [".mzml"]

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._validate_path()

    def _validate_path(self) -> None:
        """Validate file exists and has correct extension."""
        if not self.path.exists():
            raise FileNotFoundError(f"File not found: {self.path}")

        # Handle compound extensions like .xml.gz
        suffix = format_suffix(self.path)

        if suffix not in self.supported_extensions:
            raise ValueError(
                f"Unsupported extension {suffix} for {self.format_name} reader. "
                f"Expected: {self.supported_extensions} (optionally gzipped)"
            )

    @property
    def is_gzipped(self) -> bool:
        return is_gzipped(self.path)

    def _open_binary(self) -> IO[bytes]:
        """Open the source for reading, decompressing ``.gz`` files."""
        if self.is_gzipped:
            return gzip.open(self.path, 'rb')
        return open(self.path, 'rb')

    def _open_text(self, encoding: str = 'utf-8') -> IO[str]:
        if self.is_gzipped:
            return gzip.open(self.path, 'rt', encoding=encoding)
        return open(self.path, 'r', encoding=encoding)

    @classmethod
    @abstractmethod
    def is_available(cls) -> bool:
        """
        Check if this reader's dependencies are available.

        Returns False if required libraries are not installed.
        """
        ...

    @classmethod
    def get_installation_instructions(cls) -> str:
        """Return instructions for installing this reader's dependencies."""
        return "See documentation for installation instructions."

    @abstractmethod
    def __enter__(self) -> 'FileReader':
        ...

    @abstractmethod
    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        ...
