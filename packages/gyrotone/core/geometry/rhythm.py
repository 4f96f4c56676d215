"""Euclidean rhythm generation.

Distributes k onsets over n steps as evenly as possible. Downstream trigger
timing depends on the spacing, so the result is deterministic and always
contains exactly k onsets.
"""

from __future__ import annotations

import logging

from gyrotone.core.utils.math import clamp

logger = logging.getLogger(__name__)


def euclidean_rhythm(n: int, k: int) -> list[bool]:
    """Generate a Euclidean onset pattern.

    Onsets are first placed at ``floor(i * n / k)``; if rounding leaves the
    wrong count, ``rebalance_onsets`` fills the largest gaps or thins the
    shortest ones until exactly ``k`` remain.

    Args:
        n: Number of steps
        k: Number of onsets

    Returns:
        List of n booleans, True where an onset falls

    Example:
        >>> euclidean_rhythm(8, 3)
        [True, False, True, False, False, True, False, False]
    """
    if n <= 0:
        return []
    if k <= 0:
        return [False] * n
    if k >= n:
        return [True] * n

    pattern = [False] * n
    for i in range(k):
        pattern[(i * n) // k] = True

    if sum(pattern) != k:
        logger.debug(f"Euclidean placement for n={n}, k={k} produced {sum(pattern)} onsets")
        pattern = rebalance_onsets(pattern, k)

    return pattern


def onset_gaps(pattern: list[bool]) -> list[tuple[int, int]]:
    """Return (start, length) for the gap after each onset, wrap gap included.

    A gap's length is the step distance from one onset to the next; a pattern
    with a single onset has one gap of length n.
    """
    n = len(pattern)
    onsets = [i for i, on in enumerate(pattern) if on]
    gaps: list[tuple[int, int]] = []
    for idx, start in enumerate(onsets):
        nxt = onsets[(idx + 1) % len(onsets)]
        length = (nxt - start) % n or n
        gaps.append((start, length))
    return gaps


def rebalance_onsets(pattern: list[bool], k: int) -> list[bool]:
    """Add or remove onsets until exactly ``k`` remain.

    Under-full patterns get a new onset in the middle of the largest gap;
    over-full patterns lose the onset that opens the shortest gap. Ties go to
    the earliest onset so the result is deterministic.

    Args:
        pattern: Starting onset pattern
        k: Target onset count (clamped to [0, len(pattern)])

    Returns:
        New pattern with exactly ``k`` onsets
    """
    n = len(pattern)
    k = clamp(k, 0, n)
    result = list(pattern)

    while sum(result) < k:
        if not any(result):
            result[0] = True
            continue
        start, length = max(onset_gaps(result), key=lambda gap: gap[1])
        result[(start + length // 2) % n] = True

    while sum(result) > k:
        start, _ = min(onset_gaps(result), key=lambda gap: gap[1])
        result[start] = False

    return result


__all__ = ["euclidean_rhythm", "onset_gaps", "rebalance_onsets"]
