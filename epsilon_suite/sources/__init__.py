"""Byte source implementations."""

from __future__ import annotations

import os

import numpy as np

from epsilon_suite.sources.base import ByteSource, as_byte_array
from epsilon_suite.sources.file import FileSource
from epsilon_suite.sources.memory import MemorySource

ALL_SOURCES: list[type[ByteSource]] = [
    FileSource,
    MemorySource,
]


def open_source(obj) -> ByteSource:
    """Wrap *obj* in the matching :class:`ByteSource` (not yet opened).

    Paths become a :class:`FileSource`, buffers a :class:`MemorySource`;
    existing sources are returned unchanged.
    """
    if isinstance(obj, ByteSource):
        return obj
    if isinstance(obj, (str, os.PathLike)):
        return FileSource(obj)
    if isinstance(obj, (bytes, bytearray, memoryview, np.ndarray)):
        return MemorySource(obj)
    raise TypeError(f"Cannot read bytes from {type(obj).__name__}")


__all__ = [
    "ALL_SOURCES",
    "ByteSource",
    "FileSource",
    "MemorySource",
    "as_byte_array",
    "open_source",
]
