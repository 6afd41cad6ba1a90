"""Analysis of p-values collected over many sequences (NIST SP 800-22, section 4.2)."""

from __future__ import annotations

from dataclasses import dataclass
from math import sqrt
from typing import Sequence

import numpy as np

from epsilon_suite.errors import InvalidParameterError
from epsilon_suite.special import igamc

UNIFORMITY_BINS = 10


@dataclass(frozen=True)
class ProportionSummary:
    passed: int
    total: int
    proportion: float
    lower: float
    upper: float

    @property
    def acceptable(self) -> bool:
        return self.lower <= self.proportion <= self.upper


def _check(p_values: Sequence[float]) -> np.ndarray:
    arr = np.asarray(p_values, dtype=float).flatten()
    if arr.size == 0:
        raise InvalidParameterError("no p-values to analyse")
    if not np.all((arr >= 0.0) & (arr <= 1.0)):
        raise InvalidParameterError("p-values must lie in [0, 1]")
    return arr


def proportion_passing(p_values: Sequence[float],
                       significance_level: float = 0.01) -> ProportionSummary:
    """Proportion of sequences with ``p >= alpha``.

    The acceptable range is ``(1 - alpha) +/- 3 * sqrt(alpha * (1 - alpha) / k)``
    for ``k`` sequences, clipped to ``[0, 1]``.
    """
    arr = _check(p_values)
    k = arr.size
    passed = int(np.sum(arr >= significance_level))
    p_hat = 1.0 - significance_level
    margin = 3.0 * sqrt(significance_level * p_hat / k)
    return ProportionSummary(passed=passed, total=k, proportion=passed / k,
                             lower=max(0.0, p_hat - margin), upper=min(1.0, p_hat + margin))


def uniformity_p_value(p_values: Sequence[float]) -> float:
    """P-value of a chi-square test that *p_values* are uniform on [0, 1].

    Ten equal bins; ``P-value_T = Q(9/2, chi2/2)``.
    """
    arr = _check(p_values)
    counts, _ = np.histogram(arr, bins=UNIFORMITY_BINS, range=(0.0, 1.0))
    expected = arr.size / UNIFORMITY_BINS
    chi2 = float(np.sum((counts - expected) ** 2 / expected))
    return igamc((UNIFORMITY_BINS - 1) / 2.0, chi2 / 2.0)
