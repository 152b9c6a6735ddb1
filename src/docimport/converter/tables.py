"""Convert Markdown table tokens to local table blocks.

A table becomes one :class:`~docimport.models.Table` block whose children
are :class:`~docimport.models.TableRow` blocks (header row first), each
holding one text block per cell.  Short rows are padded with empty cells
so every row has the table's width.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from docimport.converter.rich_text import build_text
from docimport.models import Block, Table, TableRow, Text

if TYPE_CHECKING:
    from docimport.converter.block_builder import BuildContext


def build_table(token: dict, ctx: BuildContext) -> Block | None:
    """Build a table block (and its rows and cells) from a ``table`` token.

    Returns ``None`` for a table without rows.
    """
    rows: list[tuple[bool, list[dict]]] = []
    for child in token.get("children", []):
        child_type = child.get("type", "")
        if child_type == "table_head":
            # mistune puts header cells directly under table_head
            rows.append((True, child.get("children", [])))
        elif child_type == "table_body":
            for row in child.get("children", []):
                if row.get("type") == "table_row":
                    rows.append((False, row.get("children", [])))

    if not rows:
        return None

    width = max(len(cells) for _, cells in rows)
    table = ctx.add(Table())
    for is_header, cells in rows:
        row = ctx.add(TableRow(is_header=is_header))
        table.children_ids.append(row.id)
        for index in range(width):
            cell = cells[index] if index < len(cells) else {}
            text, marks = build_text(cell.get("children", []))
            row.children_ids.append(ctx.add(Text(text=text, marks=marks)).id)
    return table
