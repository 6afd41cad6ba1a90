"""Non-overlapping template matching test (NIST SP 800-22, section 2.7).

The first ``n`` bits are split into ``N`` blocks of ``M = n // N`` bits. In
each block an m-bit window slides over the bits; when it equals the template
the match is counted and the window jumps past it, otherwise it moves one
bit. Under randomness the per-block counts have mean and variance

    mu     = (M - m + 1) / 2**m
    sigma2 = M * (1 / 2**m - (2m - 1) / 2**(2m))

and ``chi2 = sum((W_i - mu)**2 / sigma2)`` is chi-square with ``N`` degrees
of freedom, giving ``p = Q(N / 2, chi2 / 2)``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from epsilon_suite.bitstream import BitStream, BitStreamSource
from epsilon_suite.errors import InvalidParameterError
from epsilon_suite.special import igamc
from epsilon_suite.templates import DEFAULT_LIBRARY, Template, check_template_length

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_COUNT = 8


@dataclass(frozen=True)
class TemplateMatchStatistic:
    """Everything one evaluation of the test produced."""

    template: Template
    n: int
    block_length: int
    counts: tuple[int, ...]
    mu: float
    sigma2: float
    chi2: float
    p_value: float

    @property
    def n_blocks(self) -> int:
        return len(self.counts)


# ── scanning ──


def _blocks(bits: np.ndarray, n_blocks: int) -> np.ndarray:
    """The first ``n_blocks * M`` bits as an ``(n_blocks, M)`` array."""
    block_length = bits.size // n_blocks
    return bits[:n_blocks * block_length].reshape(n_blocks, block_length)


def window_values(blocks: np.ndarray, m: int) -> np.ndarray:
    """Integer value of every m-bit window of every block.

    Row ``i``, column ``j`` holds the window starting at bit ``j`` of block
    ``i`` read MSB first; a block shorter than ``m`` has no columns.
    """
    n_windows = max(blocks.shape[1] - m + 1, 0)
    values = np.zeros((blocks.shape[0], n_windows), dtype=np.int64)
    for j in range(m):
        values = (values << 1) | blocks[:, j:j + n_windows].astype(np.int64)
    return values


def _non_overlapping(starts: np.ndarray, m: int) -> list[int]:
    """Greedy left-to-right pick of match starts at least ``m`` apart."""
    accepted: list[int] = []
    next_free = 0
    for pos in starts.tolist():
        if pos >= next_free:
            accepted.append(pos)
            next_free = pos + m
    return accepted


def match_positions(values: np.ndarray, template: Template) -> list[list[int]]:
    """Start of every counted (non-overlapping) match, per block."""
    return [_non_overlapping(np.flatnonzero(row == template.value), template.m)
            for row in values]


def template_statistic(bits: np.ndarray, template: Template,
                       n_blocks: int = DEFAULT_BLOCK_COUNT,
                       values: np.ndarray | None = None) -> TemplateMatchStatistic:
    """Evaluate the test for *template* over all of *bits*.

    *values* may carry precomputed :func:`window_values` for the same bits
    and template length, which lets a sweep over many templates scan once.
    """
    m = template.m
    n = int(bits.size)
    block_length = n // n_blocks
    if values is None:
        values = window_values(_blocks(bits, n_blocks), m)
    counts = tuple(len(pos) for pos in match_positions(values, template))

    mu = (block_length - m + 1) / 2.0 ** m
    sigma2 = block_length * (1.0 / 2.0 ** m - (2.0 * m - 1.0) / 2.0 ** (2.0 * m))
    chi2 = float(np.sum((np.asarray(counts, dtype=float) - mu) ** 2 / sigma2))
    p = igamc(n_blocks / 2.0, chi2 / 2.0)
    return TemplateMatchStatistic(template=template, n=n, block_length=block_length,
                                  counts=counts, mu=mu, sigma2=sigma2, chi2=chi2, p_value=p)


# ── tests ──


def _bound_stream(source: BitStreamSource | BitStream, n: int, n_blocks: int) -> BitStream:
    if isinstance(n_blocks, bool) or not isinstance(n_blocks, (int, np.integer)) or n_blocks < 1:
        raise InvalidParameterError(f"n_blocks must be a positive integer, got {n_blocks!r}")
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or n <= 0:
        raise InvalidParameterError(f"n must be a positive integer, got {n!r}")
    stream = source.stream() if isinstance(source, BitStreamSource) else source
    prefix = stream.prefix(int(n))
    if n < n_blocks:
        raise InvalidParameterError(
            f"n={n} is too small to split into {n_blocks} blocks")
    return prefix


class NonOverlappingTemplateMatchingTest:
    """Counts non-overlapping occurrences of one template in ``N`` blocks.

    Parameters
    ----------
    source:
        :class:`BitStreamSource` (its current block is tested) or a
        :class:`BitStream`. The first *n* bits are captured at construction.
    n:
        Number of bits to test.
    template:
        Explicit template, as a :class:`Template` or a ``"0/1"`` string.
    m:
        Template length when the template is taken from *library* instead.
    template_index:
        Which template of length *m* to take from *library*.
    library:
        Template library, the computed aperiodic library by default.
    n_blocks:
        Number of blocks ``N``; NIST fixes this at 8.

    Raises
    ------
    InsufficientDataError
        *n* exceeds the bits held by *source*.
    InvalidParameterError
        Any other parameter is out of range (template parse errors are the
        :class:`MalformedTemplateError` and :class:`TemplateOverflowError`
        subclasses).
    """

    name = "non_overlapping_template_matching"

    def __init__(self, source: BitStreamSource | BitStream, n: int,
                 template: Template | str | None = None, *, m: int | None = None,
                 template_index: int = 0, library=None,
                 n_blocks: int = DEFAULT_BLOCK_COUNT) -> None:
        if (template is None) == (m is None):
            raise InvalidParameterError("give exactly one of template and m")
        self._stream = _bound_stream(source, n, n_blocks)
        if template is None:
            template = (library or DEFAULT_LIBRARY).get(check_template_length(m), template_index)
        elif not isinstance(template, Template):
            template = Template.parse(template)
        if not template.is_aperiodic:
            logger.warning("template %s is periodic; the variance assumes an aperiodic one",
                           template)
        self.template = template
        self.n = int(n)
        self.n_blocks = int(n_blocks)
        self.block_length = self.n // self.n_blocks

    @property
    def m(self) -> int:
        return self.template.m

    def compute(self) -> TemplateMatchStatistic:
        """Scan the bound bits and return the full statistic.

        Raises
        ------
        NumericalError
            If Q(a, x) cannot be evaluated.
        """
        return template_statistic(self._stream.bits, self.template, self.n_blocks)

    def match_positions(self) -> list[list[int]]:
        """Counted match starts per block, relative to the block start."""
        values = window_values(_blocks(self._stream.bits, self.n_blocks), self.m)
        return match_positions(values, self.template)

    def run(self, collect_diagnostics: bool = False) -> list[float]:
        stat = self.compute()
        if collect_diagnostics:
            logger.info("%s: template=%s n=%d N=%d M=%d W=%s mu=%.6f sigma2=%.6f "
                        "chi2=%.6f p=%.6f", self.name, stat.template, stat.n, stat.n_blocks,
                        stat.block_length, list(stat.counts), stat.mu, stat.sigma2,
                        stat.chi2, stat.p_value)
        return [stat.p_value]

    def describe(self) -> str:
        return (f"Non-overlapping Template Matching (template={self.template}, m={self.m}, "
                f"n={self.n}, N={self.n_blocks}, M={self.block_length})")

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} template={self.template} n={self.n}>"


class TemplateSweepTest:
    """Runs the template matching test for every library template of length *m*.

    This is how the NIST reference reports the test: one p-value per
    template (148 of them for ``m = 9``). *limit* caps the number of
    templates.
    """

    name = "non_overlapping_template_sweep"

    def __init__(self, source: BitStreamSource | BitStream, n: int, m: int, *,
                 library=None, limit: int | None = None,
                 n_blocks: int = DEFAULT_BLOCK_COUNT) -> None:
        if limit is not None and limit < 1:
            raise InvalidParameterError(f"limit must be >= 1, got {limit}")
        self._stream = _bound_stream(source, n, n_blocks)
        self._m = check_template_length(m)
        self.library = library or DEFAULT_LIBRARY
        self.templates = tuple(self.library.iter(self._m, limit))
        if not self.templates:
            raise InvalidParameterError(f"library has no templates of length {m}")
        self.n = int(n)
        self.n_blocks = int(n_blocks)
        self.block_length = self.n // self.n_blocks

    @property
    def m(self) -> int:
        return self._m

    def compute(self) -> list[TemplateMatchStatistic]:
        bits = self._stream.bits
        values = window_values(_blocks(bits, self.n_blocks), self._m)
        return [template_statistic(bits, t, self.n_blocks, values=values)
                for t in self.templates]

    def run(self, collect_diagnostics: bool = False) -> list[float]:
        stats = self.compute()
        if collect_diagnostics:
            for stat in stats:
                logger.info("%s: template=%s W=%s chi2=%.6f p=%.6f", self.name,
                            stat.template, list(stat.counts), stat.chi2, stat.p_value)
        return [stat.p_value for stat in stats]

    def describe(self) -> str:
        return (f"Non-overlapping Template Matching sweep ({len(self.templates)} templates, "
                f"m={self._m}, n={self.n}, N={self.n_blocks}, M={self.block_length})")

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} m={self._m} templates={len(self.templates)}>"
