"""Templates for the template matching tests, and the libraries that supply them.

A template is *aperiodic* when no proper prefix equals the suffix of the
same length, so two occurrences can never overlap. The NIST reference
distribution ships these words in ``templates/templateM`` files, one per
line, in ascending order; :class:`AperiodicTemplateLibrary` computes the same
lists and :class:`TemplateLibrary` reads the files.
"""

from __future__ import annotations

import logging
import os
import string
from dataclasses import dataclass
from functools import lru_cache
from itertools import islice
from pathlib import Path
from typing import Iterator, Sequence

import numpy as np

from epsilon_suite.errors import (
    InvalidParameterError,
    MalformedTemplateError,
    SourceUnavailableError,
    TemplateOverflowError,
)

logger = logging.getLogger(__name__)

MIN_TEMPLATE_LENGTH = 1
MAX_TEMPLATE_LENGTH = 21


def check_template_length(m: int) -> int:
    if not isinstance(m, (int, np.integer)) or isinstance(m, bool):
        raise InvalidParameterError(f"template length must be an integer, got {m!r}")
    if not MIN_TEMPLATE_LENGTH <= m <= MAX_TEMPLATE_LENGTH:
        raise InvalidParameterError(
            f"template length must be between {MIN_TEMPLATE_LENGTH} and "
            f"{MAX_TEMPLATE_LENGTH}, got {m}")
    return int(m)


def _is_aperiodic(value: int, m: int) -> bool:
    for k in range(1, m):
        if value >> (m - k) == value & ((1 << k) - 1):
            return False
    return True


@dataclass(frozen=True)
class Template:
    """An m-bit pattern, most significant (leftmost) bit first."""

    bits: tuple[int, ...]

    def __post_init__(self) -> None:
        check_template_length(len(self.bits))
        if any(b not in (0, 1) for b in self.bits):
            raise TemplateOverflowError(f"template bits must be 0 or 1: {self.bits}")

    @classmethod
    def parse(cls, text: str) -> "Template":
        """Parse ``"001"``; every character must be a 0 or 1 digit.

        Raises
        ------
        MalformedTemplateError
            A character is not a decimal digit.
        TemplateOverflowError
            A digit is not 0 or 1.
        InvalidParameterError
            The template is empty or longer than 21 bits.
        """
        for ch in text:
            if ch not in string.digits:
                raise MalformedTemplateError(
                    f"template must consist of the digits 0 and 1: {text!r}")
            if ch not in "01":
                raise TemplateOverflowError(f"template digit {ch!r} is not a bit: {text!r}")
        return cls(tuple(int(ch) for ch in text))

    @classmethod
    def from_int(cls, value: int, m: int) -> "Template":
        m = check_template_length(m)
        if not 0 <= value < 1 << m:
            raise TemplateOverflowError(f"{value} does not fit in {m} bits")
        return cls(tuple((value >> (m - 1 - i)) & 1 for i in range(m)))

    @property
    def m(self) -> int:
        return len(self.bits)

    @property
    def value(self) -> int:
        """The template read as an unsigned m-bit integer."""
        out = 0
        for b in self.bits:
            out = (out << 1) | b
        return out

    @property
    def is_aperiodic(self) -> bool:
        return _is_aperiodic(self.value, self.m)

    def as_array(self) -> np.ndarray:
        return np.array(self.bits, dtype=np.uint8)

    def __str__(self) -> str:
        return "".join(map(str, self.bits))


def aperiodic_templates(m: int) -> Iterator[Template]:
    """Yield every aperiodic template of length *m* in ascending order."""
    m = check_template_length(m)
    for value in range(1 << m):
        if _is_aperiodic(value, m):
            yield Template.from_int(value, m)


@lru_cache(maxsize=None)
def _aperiodic_count(m: int) -> int:
    return sum(1 for _ in aperiodic_templates(m))


class AperiodicTemplateLibrary:
    """Template library computed on demand.

    ``get`` only enumerates as far as the requested index, so picking the
    first few templates stays cheap even for ``m = 21``.
    """

    name = "aperiodic"

    def get(self, m: int, index: int = 0) -> Template:
        if index < 0:
            raise InvalidParameterError(f"template index must be >= 0, got {index}")
        found = next(islice(aperiodic_templates(m), index, None), None)
        if found is None:
            raise InvalidParameterError(
                f"no template #{index} of length {m} ({self.count(m)} available)")
        return found

    def iter(self, m: int, limit: int | None = None) -> Iterator[Template]:
        return islice(aperiodic_templates(m), limit)

    def count(self, m: int) -> int:
        return _aperiodic_count(check_template_length(m))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class TemplateLibrary:
    """Templates loaded from NIST-format ``template{m}`` files.

    Files are read lazily, once per length.
    """

    name = "directory"

    def __init__(self, templates: dict[int, Sequence[Template]] | None = None,
                 directory: Path | None = None) -> None:
        self._templates: dict[int, tuple[Template, ...]] = {
            m: tuple(ts) for m, ts in (templates or {}).items()
        }
        self.directory = directory

    @classmethod
    def from_directory(cls, path: str | os.PathLike) -> "TemplateLibrary":
        directory = Path(path)
        if not directory.is_dir():
            raise SourceUnavailableError(f"template directory not found: {directory}")
        return cls(directory=directory)

    def _load(self, m: int) -> tuple[Template, ...]:
        m = check_template_length(m)
        if m in self._templates:
            return self._templates[m]
        if self.directory is None:
            raise InvalidParameterError(f"no templates of length {m} in library")
        path = self.directory / f"template{m}"
        try:
            lines = path.read_text(encoding="ascii").splitlines()
        except OSError as exc:
            raise SourceUnavailableError(f"cannot read template file {path}: {exc}") from exc
        templates = []
        for lineno, line in enumerate(lines, 1):
            if not line.strip():
                continue
            template = Template.parse("".join(line.split()))
            if template.m != m:
                raise InvalidParameterError(
                    f"{path}:{lineno}: expected {m} bits, found {template.m}")
            templates.append(template)
        logger.debug("loaded %d templates of length %d from %s", len(templates), m, path)
        self._templates[m] = tuple(templates)
        return self._templates[m]

    def get(self, m: int, index: int = 0) -> Template:
        templates = self._load(m)
        if not 0 <= index < len(templates):
            raise InvalidParameterError(
                f"no template #{index} of length {m} ({len(templates)} available)")
        return templates[index]

    def iter(self, m: int, limit: int | None = None) -> Iterator[Template]:
        return islice(iter(self._load(m)), limit)

    def count(self, m: int) -> int:
        return len(self._load(m))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} directory={str(self.directory)!r}>"


DEFAULT_LIBRARY = AperiodicTemplateLibrary()
