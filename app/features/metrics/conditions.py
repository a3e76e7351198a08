"""Parameterized WHERE clause construction.

Fragments are templates with a single ``{}`` slot that receives the next
``$n`` placeholder. Values are never rendered into statement text.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any


def placeholder(index: int) -> str:
    """Render a 1-indexed positional placeholder."""
    return f"${index}"


@dataclass(frozen=True)
class WhereClause:
    """Rendered WHERE clause and every value bound before and inside it.

    Attributes:
        text: ``"WHERE a AND b"`` or ``""`` when there are no fragments.
        values: Bound values in placeholder order, static values first.
    """

    text: str
    values: tuple[Any, ...]

    @property
    def next_index(self) -> int:
        """Placeholder number following the last bound value."""
        return len(self.values) + 1


@dataclass(frozen=True)
class Statement:
    """Executable statement text with its bound values."""

    text: str
    values: tuple[Any, ...] = ()


class ConditionBuilder:
    """Accumulate filter fragments with contiguous placeholder numbering.

    ``static_values`` are parameters already bound ahead of the filters
    (e.g. a trend interval as ``$1``); numbering continues after them.
    """

    def __init__(self, static_values: Sequence[Any] = ()) -> None:
        self._static_values = tuple(static_values)
        self._fragments: list[str] = []
        self._values: list[Any] = []

    def __len__(self) -> int:
        return len(self._fragments)

    def next_index(self) -> int:
        """Return the placeholder number the next fragment will use."""
        return len(self._static_values) + len(self._values) + 1

    def add(self, template: str, value: Any) -> "ConditionBuilder":
        """Append a fragment bound to ``value``.

        Args:
            template: Condition with one ``{}`` slot, e.g. ``"s.date >= {}"``.
            value: Value bound to the slot's placeholder.

        Returns:
            The builder, for chaining.
        """
        self._fragments.append(template.format(placeholder(self.next_index())))
        self._values.append(value)
        return self

    def build(self, keyword: str = "WHERE") -> WhereClause:
        """Freeze the current fragments into a WhereClause.

        ``keyword`` leads the rendered text; ``"AND"`` continues an existing
        join condition instead of opening a WHERE clause.
        """
        text = f"{keyword} {' AND '.join(self._fragments)}" if self._fragments else ""
        return WhereClause(text=text, values=self._static_values + tuple(self._values))
