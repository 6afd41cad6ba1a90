"""Byte source backed by a file on disk."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import BinaryIO

import numpy as np

from epsilon_suite.errors import SourceUnavailableError
from epsilon_suite.sources.base import ByteSource

logger = logging.getLogger(__name__)


class FileSource(ByteSource):
    """Raw bytes of a binary file, read sequentially.

    The file handle is only held between ``open()`` and ``close()``.
    """

    name = "file"
    description = "Sequential reads from a binary file"

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)
        self._fh: BinaryIO | None = None

    def is_available(self) -> bool:
        return self.path.is_file() and os.access(self.path, os.R_OK)

    def open(self) -> None:
        if self._fh is not None:
            return
        try:
            self._fh = open(self.path, "rb")
        except OSError as exc:
            raise SourceUnavailableError(f"Cannot open {self.path}: {exc}") from exc
        logger.debug("opened %s", self.path)

    def read(self, n_bytes: int) -> np.ndarray:
        if self._fh is None:
            raise SourceUnavailableError(f"{self.path} is not open")
        try:
            raw = self._fh.read(n_bytes)
        except OSError as exc:
            raise SourceUnavailableError(f"Cannot read {self.path}: {exc}") from exc
        return np.frombuffer(raw, dtype=np.uint8)

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
            logger.debug("closed %s", self.path)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} path={str(self.path)!r}>"
