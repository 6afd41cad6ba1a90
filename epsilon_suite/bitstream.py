"""Bit streams ("epsilon") and the block reader that produces them.

Bytes are expanded most-significant bit first: the byte ``0x80`` becomes
``1 0 0 0 0 0 0 0``. This holds for every path into a :class:`BitStream`.
"""

from __future__ import annotations

import logging
from typing import Iterator, Sequence

import numpy as np

from epsilon_suite.errors import InsufficientDataError, InvalidParameterError
from epsilon_suite.sources import ByteSource, as_byte_array, open_source

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_SIZE_BITS = 8192


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


class BitStream:
    """Immutable bit sequence stored packed, eight bits per byte.

    ``bits`` unpacks lazily into a read-only ``uint8`` array of 0/1 values, so
    one stream can be handed to many tests (and threads) without copying.
    """

    __slots__ = ("_packed", "_length", "_bits")

    def __init__(self, packed: bytes | bytearray | memoryview | np.ndarray,
                 length: int | None = None) -> None:
        arr = as_byte_array(packed)
        capacity = arr.size * 8
        if length is None:
            length = capacity
        if not 0 <= length <= capacity:
            raise InvalidParameterError(
                f"length {length} does not fit in {arr.size} packed bytes")
        self._packed = _readonly(arr)
        self._length = int(length)
        self._bits: np.ndarray | None = None

    @classmethod
    def from_bits(cls, bits: Sequence[int] | np.ndarray) -> "BitStream":
        """Pack a sequence of 0/1 values."""
        arr = np.asarray(bits).flatten()
        if arr.size and not np.isin(arr, (0, 1)).all():
            raise InvalidParameterError("bit values must be 0 or 1")
        return cls(np.packbits(arr.astype(np.uint8)), length=arr.size)

    @classmethod
    def from_string(cls, text: str) -> "BitStream":
        """Build a stream from ``"0101..."``; whitespace is ignored."""
        digits = "".join(text.split())
        if any(ch not in "01" for ch in digits):
            raise InvalidParameterError(f"not a bit string: {text!r}")
        return cls.from_bits(np.frombuffer(digits.encode("ascii"), dtype=np.uint8) - ord("0"))

    @property
    def bits(self) -> np.ndarray:
        """Read-only array of 0/1 values."""
        if self._bits is None:
            self._bits = _readonly(np.unpackbits(self._packed, count=self._length))
        return self._bits

    def prefix(self, n: int) -> "BitStream":
        """The first *n* bits as a new stream."""
        if n < 0:
            raise InvalidParameterError(f"prefix length must be >= 0, got {n}")
        if n > self._length:
            raise InsufficientDataError(
                f"requested {n} bits but only {self._length} are available")
        return BitStream(self._packed[:(n + 7) // 8], length=n)

    def to01(self) -> str:
        return "".join("1" if b else "0" for b in self.bits.tolist())

    def __len__(self) -> int:
        return self._length

    def __getitem__(self, index):
        return self.bits[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, BitStream):
            return NotImplemented
        return self._length == other._length and np.array_equal(self.bits, other.bits)

    def __hash__(self) -> int:
        return hash((self._length, self.bits.tobytes()))

    def __repr__(self) -> str:
        preview = self.to01() if self._length <= 32 else self.prefix(32).to01() + "..."
        return f"<BitStream length={self._length} bits={preview}>"


class BitStreamSource:
    """Reads a byte source block by block and exposes each block as bits.

    Usage::

        with BitStreamSource.open("data.bin", block_size_bits=1_000_000) as src:
            while src.next_block():
                run_tests(src.stream())
    """

    def __init__(self, source: ByteSource, block_size_bits: int = DEFAULT_BLOCK_SIZE_BITS) -> None:
        if block_size_bits <= 0 or block_size_bits % 8:
            raise InvalidParameterError(
                f"block_size_bits must be a positive multiple of 8, got {block_size_bits}")
        self._source = source
        self.block_size_bits = block_size_bits
        self._current = BitStream(b"")
        self.bytes_consumed = 0
        self.closed = True

    @classmethod
    def open(cls, source, block_size_bits: int = DEFAULT_BLOCK_SIZE_BITS) -> "BitStreamSource":
        """Acquire *source* (path, buffer or :class:`ByteSource`).

        Raises
        ------
        SourceUnavailableError
            If the source cannot be opened.
        """
        src = cls(open_source(source), block_size_bits)
        src._source.open()
        src.closed = False
        return src

    @property
    def source(self) -> ByteSource:
        return self._source

    def next_block(self) -> int:
        """Replace the buffer with the next block; return its size in bits (0 at end)."""
        data = self._source.read(self.block_size_bits // 8)
        self._current = BitStream(data)
        self.bytes_consumed += data.size
        logger.debug("read %d bytes from %r (%d total)", data.size, self._source,
                     self.bytes_consumed)
        return len(self._current)

    def bits(self) -> np.ndarray:
        """Read-only view of the currently buffered bits."""
        return self._current.bits

    def stream(self) -> BitStream:
        """The currently buffered block."""
        return self._current

    def blocks(self) -> Iterator[BitStream]:
        """Yield successive blocks until the source is exhausted."""
        while self.next_block():
            yield self._current

    def close(self) -> None:
        if not self.closed:
            self._source.close()
            self.closed = True

    def __enter__(self) -> "BitStreamSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (f"<BitStreamSource source={self._source!r} "
                f"block_size_bits={self.block_size_bits} buffered={len(self._current)}>")
