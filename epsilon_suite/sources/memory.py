"""Byte source over an in-memory buffer."""

from __future__ import annotations

import numpy as np

from epsilon_suite.errors import SourceUnavailableError
from epsilon_suite.sources.base import ByteSource, as_byte_array


class MemorySource(ByteSource):
    """Bytes already held in memory (bytes, bytearray, memoryview or uint8 array)."""

    name = "memory"
    description = "In-memory byte buffer"

    def __init__(self, data: bytes | bytearray | memoryview | np.ndarray) -> None:
        self._data = as_byte_array(data).tobytes()
        self._offset = 0
        self._open = False

    def __len__(self) -> int:
        return len(self._data)

    def open(self) -> None:
        self._open = True

    def read(self, n_bytes: int) -> np.ndarray:
        if not self._open:
            raise SourceUnavailableError("memory source is not open")
        chunk = self._data[self._offset:self._offset + n_bytes]
        self._offset += len(chunk)
        return np.frombuffer(chunk, dtype=np.uint8)

    def close(self) -> None:
        self._open = False
