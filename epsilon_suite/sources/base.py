"""Abstract base class for all byte sources."""

from abc import ABC, abstractmethod

import numpy as np

from epsilon_suite.errors import InvalidParameterError


def as_byte_array(data) -> np.ndarray:
    """Copy *data* (a buffer or integer array) into a flat ``uint8`` array.

    Raises
    ------
    InvalidParameterError
        An array holds non-integers or values outside 0..255.
    """
    if isinstance(data, np.ndarray):
        if data.size and (not np.issubdtype(data.dtype, np.integer)
                          or data.min() < 0 or data.max() > 255):
            raise InvalidParameterError("byte arrays must hold integers in 0..255")
        return data.astype(np.uint8).flatten()
    return np.frombuffer(bytes(data), dtype=np.uint8).copy()


class ByteSource(ABC):
    """Base class for something the suite can read bytes from.

    Every source must implement ``open``, ``read`` and ``close``. Sources are
    context managers, so ``with source:`` releases the underlying resource on
    every exit path.
    """

    name: str = "unnamed"
    description: str = ""

    @abstractmethod
    def open(self) -> None:
        """Acquire the underlying resource.

        Raises
        ------
        SourceUnavailableError
            If the resource cannot be acquired.
        """
        ...

    @abstractmethod
    def read(self, n_bytes: int) -> np.ndarray:
        """Read up to *n_bytes* bytes.

        Returns
        -------
        numpy.ndarray
            1-D uint8 array. Shorter than *n_bytes* near the end of the
            source and empty once the source is exhausted.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the underlying resource. Safe to call more than once."""
        ...

    def is_available(self) -> bool:
        """Return True if ``open`` is expected to succeed."""
        return True

    def __enter__(self) -> "ByteSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
