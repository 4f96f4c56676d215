"""Global sequential index for fired triggers."""

from __future__ import annotations


class SequentialIndex:
    """Monotonically increasing counter shared by everything that fires triggers.

    Inject one instance per process (or per test); it only goes back to
    zero on an explicit ``reset``.

    Example:
        >>> seq = SequentialIndex()
        >>> seq.next(), seq.next(), seq.current
        (0, 1, 2)
    """

    def __init__(self, start: int = 0) -> None:
        self._value = start

    @property
    def current(self) -> int:
        """Value the next call to ``next`` will return."""
        return self._value

    def next(self) -> int:
        value = self._value
        self._value += 1
        return value

    def reset(self, start: int = 0) -> None:
        self._value = start


__all__ = ["SequentialIndex"]
