"""Tabular rendering of the migration ledger."""
from typing import Iterable, List, Sequence

from .ledger import AppliedRecord

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
HEADER = ("ID", "APPLIED")
SEPARATOR = ("--", "-------")


def format_table(rows: Sequence[Sequence[str]], padding: int = 1) -> str:
    """Align rows into columns.

    Every column except the last is padded to its widest cell plus
    ``padding`` spaces; the last column is left unpadded. The first row
    sets the number of columns.
    """
    widths: List[int] = [0] * (len(rows[0]) - 1)
    for row in rows:
        for i, cell in enumerate(row[:-1]):
            widths[i] = max(widths[i], len(cell))

    lines = []
    for row in rows:
        cells = [cell.ljust(widths[i] + padding) for i, cell in enumerate(row[:-1])]
        cells.append(row[-1])
        lines.append("".join(cells))
    return "\n".join(lines)


def render_status(records: Iterable[AppliedRecord]) -> str:
    """Render applied migrations as an ID / APPLIED table.

    The header and separator rows are always present, so an empty ledger
    renders two lines.
    """
    rows = [HEADER, SEPARATOR]
    for record in records:
        applied = record.applied_at.strftime(TIMESTAMP_FORMAT) if record.applied_at else ""
        rows.append((record.id, applied))
    return format_table(rows)
