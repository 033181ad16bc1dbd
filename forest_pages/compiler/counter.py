"""Hierarchical section numbering."""

from __future__ import annotations

import dataclasses as dc


@dc.dataclass(slots=True)
class Counter:
    """Stack of digits, one per active numbering depth.

    Levels are counted from the tail: level 1 is the innermost counter.

    >>> counter = Counter()
    >>> counter.step()
    >>> child = counter.left_shift()
    >>> child.step()
    >>> child.step()
    >>> child.display()
    '1.2.'
    """

    numbers: list[int] = dc.field(default_factory=lambda: [0])

    def step(self, level: int = 1) -> None:
        """Increment the digit ``level`` positions from the tail."""
        index = len(self.numbers) - level
        if 0 <= index < len(self.numbers):
            self.numbers[index] += 1

    def left_shift(self, start: int = 0) -> Counter:
        """Return a new counter scoped one level deeper."""
        return Counter([*self.numbers, start])

    def display(self) -> str:
        """Return the digits joined by dots, trailing dot included."""
        return "".join(f"{number}." for number in self.numbers)


__all__ = ["Counter"]
