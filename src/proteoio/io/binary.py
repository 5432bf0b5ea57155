"""
Binary peak array codec.

mzML stores each peak array as base64 text of little-endian IEEE-754
floats, optionally zlib-compressed. Decoding goes through pyteomics'
``BinaryDataArrayTransformer``; ``decode_binary`` handles the byte level
and ``decode_base64_array`` adds the base64 step.
"""

import base64
import binascii
import re
import zlib

import numpy as np
from numpy.typing import ArrayLike, NDArray
from pyteomics.auxiliary import BinaryDataArrayTransformer

from ..exceptions import CorruptData, TruncatedData

ZLIB_COMPRESSION = 'zlib compression'

_DTYPES: dict[int, str] = {
    32: '<f4',
    64: '<f8',
}

_BASE64 = re.compile(r'[A-Za-z0-9+/]*={0,2}')

_transformer = BinaryDataArrayTransformer()


def _dtype(bit_width: int) -> np.dtype:
    if bit_width not in _DTYPES:
        raise ValueError(f"Unsupported bit width {bit_width}; expected 32 or 64")
    return np.dtype(_DTYPES[bit_width])


def decode_binary(data: bytes, compressed: bool, bit_width: int) -> NDArray[np.float64]:
    """
    Decode a (possibly zlib-compressed) byte buffer into float64 values.

    Args:
        data: Raw bytes.
        compressed: Whether ``data`` is zlib-compressed.
        bit_width: 32 or 64.

    Returns:
        Array of length ``len(buffer) // (bit_width // 8)``.

    Raises:
        CorruptData: If ``compressed`` and the stream does not inflate.
        TruncatedData: If the buffer length is not a multiple of the
            element size.
    """
    dtype = _dtype(bit_width)
    if compressed:
        try:
            data = _transformer._decompress(data, ZLIB_COMPRESSION)
        except zlib.error as e:
            raise CorruptData(f"Binary array is not a valid zlib stream: {e}") from e
    if len(data) % dtype.itemsize:
        raise TruncatedData(len(data), dtype.itemsize)
    return _transformer._transform_buffer(bytes(data), dtype).astype(np.float64)


def decode_base64_array(text: str | bytes | None, compressed: bool, bit_width: int) -> NDArray[np.float64]:
    """Decode the base64 text of a ``<binary>`` element."""
    if not text:
        return np.empty(0, dtype=np.float64)
    if isinstance(text, bytes):
        text = text.decode('ascii', errors='replace')
    text = ''.join(text.split())
    if _BASE64.fullmatch(text) is None:
        raise CorruptData("Binary array is not valid base64: characters outside the alphabet")
    try:
        data = _transformer._base64_decode(text)
    except binascii.Error as e:
        raise CorruptData(f"Binary array is not valid base64: {e}") from e
    return decode_binary(data, compressed, bit_width)


def encode_binary(values: ArrayLike, compressed: bool, bit_width: int) -> bytes:
    """Inverse of ``decode_binary``."""
    data = np.asarray(values, dtype=_dtype(bit_width)).tobytes()
    if compressed:
        data = zlib.compress(data)
    return data


def encode_base64_array(values: ArrayLike, compressed: bool, bit_width: int) -> str:
    """Inverse of ``decode_base64_array``."""
    return base64.b64encode(encode_binary(values, compressed, bit_width)).decode('ascii')
