"""
Small numeric helpers shared by the tactics modules.
"""

from typing import Callable

from settings import BISECTION_TOLERANCE, BISECTION_MAX_ITERATIONS


def bisect_monotone(
    lo: float,
    hi: float,
    predicate: Callable[[float], bool],
    tolerance: float = BISECTION_TOLERANCE,
    max_iterations: int = BISECTION_MAX_ITERATIONS,
) -> float:
    """
    Find the boundary of a monotone boolean predicate on [lo, hi].

    The predicate must hold on a prefix of the interval and fail on the rest.
    The returned value is always on the "true" side of the boundary (or ``lo``
    itself when the predicate never holds), so callers can use it without
    overshooting.

    Args:
        lo: Lower end, assumed to satisfy the predicate
        hi: Upper end
        predicate: Monotone test (True then False as the argument grows)
        tolerance: Stop once the bracket is narrower than this
        max_iterations: Hard cap on predicate evaluations

    Returns:
        The largest tried value known to satisfy the predicate
    """
    if predicate(hi):
        return hi
    for _ in range(max_iterations):
        if hi - lo <= tolerance:
            break
        mid = (lo + hi) / 2.0
        if predicate(mid):
            lo = mid
        else:
            hi = mid
    return lo
