"""Special functions used to turn test statistics into p-values."""

from __future__ import annotations

from math import isfinite

from scipy import special

from epsilon_suite.errors import NumericalError


def igamc(a: float, x: float) -> float:
    """Regularized upper incomplete gamma function Q(a, x).

    Thin wrapper over :func:`scipy.special.gammaincc` that refuses inputs
    outside ``a > 0, x >= 0`` and results that are not a finite value in
    ``[0, 1]`` instead of passing ``nan`` on to the caller.
    """
    if not (isfinite(a) and isfinite(x)) or a <= 0 or x < 0:
        raise NumericalError(f"Q(a, x) undefined for a={a!r}, x={x!r}")
    q = float(special.gammaincc(a, x))
    if not isfinite(q) or not 0.0 <= q <= 1.0:
        raise NumericalError(f"Q({a}, {x}) evaluated to {q}")
    return q
