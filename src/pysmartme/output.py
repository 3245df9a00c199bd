"""Terminal rendering for command results.

Tables are laid out by ``render_table``, a pure function, and styled on the
way out by ``print_table``. Field names are only read here; missing fields
are shown as display defaults and never treated as errors.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from rich.cells import cell_len, set_cell_size
from rich.text import Text

from pysmartme.const import COLUMN_SEPARATOR, MAX_COLUMN_WIDTH


if TYPE_CHECKING:
    from collections.abc import Sequence

    from rich.console import Console

    from pysmartme.models import JSONValue


__all__ = [
    "Column",
    "Formatter",
    "fixed",
    "measure",
    "print_details",
    "print_error",
    "print_json",
    "print_success",
    "print_table",
    "render_table",
    "text_or_na",
]

Formatter = Callable[[Any, Mapping[str, Any]], str]

NO_RESULTS_MESSAGE = "No results found."
NOT_AVAILABLE = "N/A"
RULE_CHARACTER = "─"


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def fixed(digits: int = 2) -> Formatter:
    """Return a table formatter printing numbers with ``digits`` decimals.

    Missing or non-numeric values render as zero, e.g. ``0.00``.
    """

    def _format(value: Any, row: Mapping[str, Any]) -> str:
        return f"{value if _is_number(value) else 0:.{digits}f}"

    return _format


def measure(value: Any, unit: str, digits: int = 2) -> str:
    """Format a reading for a detail view, e.g. ``123.46 W``, or ``N/A`` if missing."""
    if not _is_number(value):
        return NOT_AVAILABLE
    return f"{value:.{digits}f} {unit}"


def text_or_na(value: Any) -> str:
    """Format a plain field for a detail view, or ``N/A`` if missing or empty."""
    if value is None or value == "":
        return NOT_AVAILABLE
    return str(value)


@dataclass(frozen=True)
class Column:
    """A table column projection.

    Attributes:
        key: Field read from each row.
        label: Header text.
        formatter: Optional callable receiving ``(value, row)``.
    """

    key: str
    label: str
    formatter: Formatter | None = None

    def cell(self, row: Any) -> str:
        """Return the text shown for ``row`` in this column."""
        record: Mapping[str, Any] = row if isinstance(row, Mapping) else {}
        value = record.get(self.key)
        if self.formatter is not None:
            return str(self.formatter(value, record))
        return "" if value is None else str(value)


def render_table(rows: Sequence[Any], columns: Sequence[Column]) -> list[str]:
    """Lay out ``rows`` as text lines.

    Each column is as wide as its widest cell or label, capped at
    MAX_COLUMN_WIDTH terminal cells; longer cells are cropped. The output
    ends with a blank line and a ``<n> result(s)`` count.

    Args:
        rows: Records to render.
        columns: Column projection.

    Returns:
        Header, rule, one line per row, blank line, count line.
    """
    cells = [[column.cell(row) for column in columns] for row in rows]

    widths = [
        min(
            max([cell_len(column.label), *(cell_len(line[index]) for line in cells)]),
            MAX_COLUMN_WIDTH,
        )
        for index, column in enumerate(columns)
    ]

    header = COLUMN_SEPARATOR.join(
        set_cell_size(column.label, width) for column, width in zip(columns, widths, strict=True)
    )
    lines = [header, RULE_CHARACTER * cell_len(header)]
    lines.extend(
        COLUMN_SEPARATOR.join(set_cell_size(value, width) for value, width in zip(line, widths, strict=True))
        for line in cells
    )
    lines.extend(["", f"{len(cells)} result(s)"])
    return lines


def _as_rows(payload: JSONValue) -> list[Any]:
    if not payload:
        return []
    if isinstance(payload, list):
        return payload
    # A single record is shown as a one-row table
    return [payload]


def print_table(console: Console, payload: JSONValue, columns: Sequence[Column]) -> None:
    """Print ``payload`` as a table, or a notice if there is nothing to show."""
    rows = _as_rows(payload)
    if not rows:
        console.print(Text(NO_RESULTS_MESSAGE, style="yellow"))
        return

    header, rule, *body = render_table(rows, columns)
    console.print(Text(header, style="bold cyan"), soft_wrap=True)
    console.print(Text(rule, style="dim"), soft_wrap=True)
    for line in body[:-1]:
        console.print(Text(line), soft_wrap=True)
    console.print(Text(body[-1], style="dim"), soft_wrap=True)


def print_json(console: Console, payload: JSONValue) -> None:
    """Print ``payload`` as indented JSON, without styling or wrapping."""
    console.out(json.dumps(payload, indent=2, ensure_ascii=False), highlight=False)


def print_details(console: Console, title: str, fields: Sequence[tuple[str, str | Text]]) -> None:
    """Print a titled block of ``label: value`` lines.

    Plain string values are highlighted; Text values keep their own style.
    """
    width = max((cell_len(label) for label, _ in fields), default=0) + 1
    console.print()
    console.print(Text(title, style="bold"))
    console.print()
    for label, value in fields:
        styled = value if isinstance(value, Text) else Text(value, style="cyan")
        console.print(Text.assemble(f"{label + ':':<{width}} ", styled), soft_wrap=True)


def print_success(console: Console, message: str) -> None:
    """Print ``✓ message``."""
    console.print(Text.assemble(("✓", "green"), " ", message), soft_wrap=True)


def print_error(console: Console, message: str) -> None:
    """Print ``✗ message``; pass a stderr console."""
    console.print(Text.assemble(("✗", "red"), " ", message), soft_wrap=True)
