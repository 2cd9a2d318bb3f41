"""QuickXorHash, the content fingerprint OneDrive reports for files.

The hash is a 160-bit vector into which every input byte is XORed at a
bit offset that advances by 11 bits per byte (wrapping around the vector).
The total input length is folded into the last 8 bytes of the digest, so
inputs that differ only in length do not collide.

It is a change-detection fingerprint, not a cryptographic hash.

Examples:
    >>> quickxor_hash_base64(b"")
    'AAAAAAAAAAAAAAAAAAAAAAAAAAA='
    >>> hasher = QuickXorHasher()
    >>> hasher.update(b"hello ")
    >>> hasher.update(b"world")
    >>> hasher.b64digest() == quickxor_hash_base64(b"hello world")
    True
"""

import base64
from pathlib import Path
from typing import BinaryIO, Union

from .utils import DEFAULT_CHUNK_SIZE

WIDTH_IN_BITS = 160
SHIFT = 11
BITS_IN_LAST_CELL = 32
DIGEST_SIZE = (WIDTH_IN_BITS - 1) // 8 + 1

_CELL_COUNT = (WIDTH_IN_BITS - 1) // 64 + 1
_MASK64 = (1 << 64) - 1

BytesLike = Union[bytes, bytearray, memoryview]


def _fold(view: memoryview) -> bytes:
    """XOR together all bytes of ``view`` that share a position mod 160.

    Byte ``i`` of the result is ``view[i] ^ view[i + 160] ^ ...``.
    """
    acc = 0
    for start in range(0, len(view), WIDTH_IN_BITS):
        acc ^= int.from_bytes(view[start : start + WIDTH_IN_BITS], "little")
    return acc.to_bytes(WIDTH_IN_BITS, "little")


class QuickXorHasher:
    """Streaming QuickXorHash with a hashlib-like interface.

    A hasher instance is not thread-safe; use one instance per stream.
    """

    name = "quickxorhash"
    digest_size = DIGEST_SIZE

    def __init__(self, data: BytesLike = b""):
        self._cells = [0] * _CELL_COUNT
        self._length_so_far = 0
        self._shift_so_far = 0
        if data:
            self.update(data)

    @property
    def length(self) -> int:
        """Number of bytes consumed so far."""
        return self._length_so_far

    def update(self, data: BytesLike) -> None:
        """Feed more bytes into the hash.

        Splitting the input differently across calls does not change the
        result.
        """
        view = memoryview(data).cast("B")
        size = len(view)
        if size == 0:
            return

        folded = _fold(view)
        cells = self._cells
        last_index = len(cells) - 1

        index = self._shift_so_far // 64
        offset = self._shift_so_far % 64

        for i in range(min(size, WIDTH_IN_BITS)):
            is_last_cell = index == last_index
            bits_in_cell = BITS_IN_LAST_CELL if is_last_cell else 64
            value = folded[i]

            if offset <= bits_in_cell - 8:
                cells[index] ^= value << offset
            else:
                # Byte straddles two cells
                next_index = 0 if is_last_cell else index + 1
                cells[index] = (cells[index] ^ (value << offset)) & _MASK64
                cells[next_index] ^= value >> (bits_in_cell - offset)

            offset += SHIFT
            while offset >= bits_in_cell:
                index = 0 if is_last_cell else index + 1
                offset -= bits_in_cell

        self._shift_so_far = (
            self._shift_so_far + SHIFT * (size % WIDTH_IN_BITS)
        ) % WIDTH_IN_BITS
        self._length_so_far += size

    def digest(self) -> bytes:
        """Return the 20-byte digest. Does not reset the hasher."""
        out = bytearray(DIGEST_SIZE)

        for i, cell in enumerate(self._cells[:-1]):
            out[i * 8 : i * 8 + 8] = cell.to_bytes(8, "little")

        tail = (len(self._cells) - 1) * 8
        out[tail:] = self._cells[-1].to_bytes(8, "little")[: DIGEST_SIZE - tail]

        length = (self._length_so_far & _MASK64).to_bytes(8, "little")
        start = WIDTH_IN_BITS // 8 - 8
        for i, byte in enumerate(length):
            out[start + i] ^= byte

        return bytes(out)

    def b64digest(self) -> str:
        """Return the digest as standard base64, the form Graph reports."""
        return base64.b64encode(self.digest()).decode("ascii")

    def hexdigest(self) -> str:
        return self.digest().hex()

    def copy(self) -> "QuickXorHasher":
        """Return an independent hasher with the same state."""
        other = QuickXorHasher()
        other._cells = list(self._cells)
        other._length_so_far = self._length_so_far
        other._shift_so_far = self._shift_so_far
        return other


def quickxor_hash(data: BytesLike) -> bytes:
    """Return the QuickXorHash digest of ``data``."""
    return QuickXorHasher(data).digest()


def quickxor_hash_base64(data: BytesLike) -> str:
    """Return the base64 QuickXorHash of ``data``."""
    return QuickXorHasher(data).b64digest()


def hash_stream(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Hash a binary stream until EOF.

    Args:
        stream: Readable binary file object
        chunk_size: Read size in bytes

    Returns:
        Base64 QuickXorHash of the stream content

    Raises:
        OSError: If reading fails
    """
    hasher = QuickXorHasher()
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        hasher.update(chunk)
    return hasher.b64digest()


def hash_file(path: Union[str, Path], chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Return the base64 QuickXorHash of a local file.

    Raises:
        OSError: If the file cannot be read
    """
    with open(path, "rb") as f:
        return hash_stream(f, chunk_size)
