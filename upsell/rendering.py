"""Rendering and row-flattening helpers for the terminal screens."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from rich.text import Text

from upsell.models import Discount, Group, SubItem
from upsell.row_index import Row, RowKind
from upsell.selection import SelectionSet


def badge_style(kind: str) -> str:
    """Return a consistent badge style for discount kinds."""
    if kind == "flat":
        return "bold #ffffff on #2f6db5"
    return "bold #0b1f0f on #5fbf72"


def format_price(price: Decimal) -> str:
    return f"${price:.2f}"


def format_discount(discount: Discount | None) -> Text:
    """Render a discount as a compact colored badge."""
    if discount is None:
        return Text("no discount", style="dim")
    if discount.kind == "percentage":
        label = f" {discount.amount.normalize():f}% off "
    else:
        label = f" {format_price(discount.amount)} off "
    return Text(label, style=badge_style(discount.kind))


def format_group_label(group: Group) -> Text:
    text = Text()
    if group.is_placeholder:
        text.append("Select Product", style="italic dim")
        return text
    text.append(group.title, style="bold")
    count = len(group.sub_items)
    text.append(f"  ({count} variant{'s' if count != 1 else ''})", style="dim")
    return text


def format_sub_item_label(sub_item: SubItem) -> Text:
    """Render a variant with its price and, if discounted, the new price."""
    text = Text()
    text.append(sub_item.title)
    text.append(f"  {format_price(sub_item.price)}", style="dim")
    if sub_item.discount is not None:
        text.append(" → ")
        text.append(format_price(sub_item.discount.apply(sub_item.price)), style="bold")
    return text


@dataclass(frozen=True)
class ListRow:
    """One line of the committed product list."""

    group: Group
    group_number: int
    sub_item: SubItem | None = None

    @property
    def is_group(self) -> bool:
        return self.sub_item is None


def build_list_rows(groups: Sequence[Group]) -> list[ListRow]:
    """Flatten groups, listing variants only for expanded groups."""
    rows: list[ListRow] = []
    for number, group in enumerate(groups, start=1):
        rows.append(ListRow(group=group, group_number=number))
        if group.expanded and group.can_expand:
            rows.extend(ListRow(group=group, group_number=number, sub_item=s) for s in group.sub_items)
    return rows


def format_list_row(row: ListRow) -> Text:
    text = Text()
    if row.sub_item is None:
        text.append(f"{row.group_number}. ")
        text.append_text(format_group_label(row.group))
        if not row.group.is_placeholder:
            text.append("  ")
            text.append_text(format_discount(row.group.discount))
        return text

    text.append("     ◦ ")
    text.append_text(format_sub_item_label(row.sub_item))
    text.append("  ")
    text.append_text(format_discount(row.sub_item.discount))
    return text


def format_picker_row(row: Row, selection: SelectionSet) -> Text:
    """Render one catalog row; headers span two lines."""
    if row.kind is RowKind.LOADING_SENTINEL or row.group is None:
        return Text("Loading more...", style="dim")

    group = row.group
    if row.kind is RowKind.GROUP_HEADER:
        text = Text()
        text.append(group.title or "(untitled)", style="bold")
        selected = selection.selected_count_in_group(group)
        total = len(group.sub_items)
        status = "all selected" if total and selected == total else f"{selected}/{total} selected"
        text.append(f"\n    {status}", style="dim")
        return text

    sub_item = row.sub_item
    assert sub_item is not None
    checked = sub_item.key in selection
    text = Text()
    text.append("    ")
    text.append("[x] " if checked else "[ ] ", style="bold green" if checked else "")
    text.append(sub_item.title, style="bold" if checked else "")
    text.append(f"  {format_price(sub_item.price)}", style="dim")
    return text


def viewport_lines(height: int, fallback: int) -> int:
    """Usable line count of a widget, or ``fallback`` before its first layout."""
    return height if height > 0 else fallback


def window_bounds(total: int, rows: int, selected: int | None) -> tuple[int, int]:
    """Half-open slice of at most ``rows`` items centred on ``selected``."""
    if total <= 0:
        return (0, 0)
    span = min(total, max(1, rows))
    if selected is None:
        return (0, span)
    start = min(max(selected - span // 2, 0), total - span)
    return (start, start + span)
