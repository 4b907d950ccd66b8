"""Main Textual app class."""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.css.query import NoMatches
from textual.reactive import reactive
from textual.widgets import Header, Static

from upsell.api import CatalogClient
from upsell.catalog import FetchPage
from upsell.discount_modal import DiscountEdit, DiscountModal
from upsell.discounts import DiscountOverlay
from upsell.models import Group
from upsell.picker_modal import ProductPickerModal
from upsell.rendering import ListRow, build_list_rows, format_list_row, viewport_lines, window_bounds
from upsell.reorder import DragDomain, DragEnd, DragRef, DragStart, ReorderEngine
from upsell.selection_list import SelectionList

logger = logging.getLogger(__name__)


def drag_ref_for(row: ListRow) -> DragRef:
    """Tag a list row with the domain it is dragged in."""
    if row.sub_item is None:
        return DragRef(DragDomain.GROUP, row.group.key)
    return DragRef(DragDomain.SUB_ITEM, row.sub_item.key)


class UpsellBuilderApp(App):
    """A Textual app for arranging discounted products and variants."""

    TITLE = "Upsell Builder"
    SUB_TITLE = "Products / Variants"

    CSS = """
    Screen {
        layout: vertical;
    }

    #products-pane {
        height: 1fr;
        border: round $primary;
        padding: 1;
    }

    #products-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #status-bar {
        border: heavy $secondary;
        padding: 0 1;
        height: 4;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    cursor_index = reactive(0)

    BINDINGS = [
        ("j", "move_cursor(1)", "Next row"),
        ("k", "move_cursor(-1)", "Previous row"),
        ("down", "move_cursor(1)", "Next row"),
        ("up", "move_cursor(-1)", "Previous row"),
        ("a", "add_product", "Add product"),
        ("e", "edit_product", "Pick product"),
        ("enter", "edit_product", "Pick product"),
        ("v", "toggle_variants", "Show/hide variants"),
        ("x", "edit_discount", "Discount"),
        ("d", "remove_product", "Remove"),
        ("m", "grab_or_drop", "Move"),
        ("escape", "cancel_drag", "Cancel move"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, fetch_page: FetchPage | None = None, *, cascade_discounts: bool | None = None) -> None:
        super().__init__()
        self.fetch_page = fetch_page or CatalogClient().afetch_page
        self.selection_list = SelectionList()
        self.reorder_engine = ReorderEngine(self.selection_list)
        self.discount_overlay = DiscountOverlay(self.selection_list)
        if cascade_discounts is not None:
            self.discount_overlay.cascade_to_sub_items = cascade_discounts
        self.status_message = ""
        self._log_debug("app_init")

    def _log_debug(self, message: str) -> None:
        logger.debug(message)

    def _modal_open(self) -> bool:
        return isinstance(self.screen, (ProductPickerModal, DiscountModal))

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="products-pane"):
            yield Static("Products", classes="pane-title")
            yield Static(id="products-list")
        yield Static(id="status-bar")

    def on_mount(self) -> None:
        self._refresh_all()

    def _rows(self) -> list[ListRow]:
        return build_list_rows(self.selection_list.groups)

    def _current_row(self) -> ListRow | None:
        rows = self._rows()
        if not rows:
            return None
        return rows[min(self.cursor_index, len(rows) - 1)]

    def _focus_key(self, key: str) -> None:
        for idx, row in enumerate(self._rows()):
            if drag_ref_for(row).key == key:
                self.cursor_index = idx
                return

    def action_move_cursor(self, delta: int) -> None:
        if self._modal_open():
            return
        rows = self._rows()
        if not rows:
            return
        self.cursor_index = (self.cursor_index + delta) % len(rows)
        self._refresh_all()

    def action_add_product(self) -> None:
        if self._modal_open():
            return
        placeholder = self.selection_list.add_placeholder()
        self._focus_key(placeholder.key)
        self._log_debug(f"add_placeholder key={placeholder.key}")
        self._refresh_all()

    def action_remove_product(self) -> None:
        if self._modal_open():
            return
        row = self._current_row()
        if row is None or self.reorder_engine.is_dragging:
            return
        if not self.selection_list.can_remove():
            self.status_message = "The last product cannot be removed"
            self._refresh_all()
            return
        self.selection_list.remove(row.group.key)
        self._log_debug(f"remove_group key={row.group.key}")
        self.cursor_index = min(self.cursor_index, max(0, len(self._rows()) - 1))
        self._refresh_all()

    def action_toggle_variants(self) -> None:
        if self._modal_open():
            return
        row = self._current_row()
        if row is None:
            return
        if self.selection_list.toggle_expanded(row.group.key):
            self._focus_key(row.group.key)
        self._refresh_all()

    def action_edit_product(self) -> None:
        if self._modal_open():
            return
        row = self._current_row()
        if row is None or self.reorder_engine.is_dragging:
            return
        group_key = row.group.key
        self._log_debug(f"open_picker group={group_key}")
        self.push_screen(
            ProductPickerModal(self.fetch_page),
            callback=lambda picked: self._apply_picker_result(group_key, picked),
        )

    def _apply_picker_result(self, group_key: str, picked: list[Group] | None) -> None:
        if not picked:
            return
        idx = self.selection_list.index_of(group_key)
        inserted = self.selection_list.replace_group(group_key, picked) if idx is not None else 0
        if inserted:
            self._focus_key(self.selection_list.groups[idx].key)
            self.status_message = f"Added {inserted} product(s)"
        else:
            self.status_message = "Selected variants are already listed"
        self._refresh_all()

    def action_edit_discount(self) -> None:
        if self._modal_open():
            return
        row = self._current_row()
        if row is None or row.group.is_placeholder:
            return
        if row.sub_item is None:
            label, current = row.group.title, row.group.discount
        else:
            label, current = row.sub_item.title, row.sub_item.discount
        ref = drag_ref_for(row)
        self.push_screen(
            DiscountModal(label, current),
            callback=lambda edit: self._apply_discount(ref, edit),
        )

    def _apply_discount(self, ref: DragRef, edit: DiscountEdit | None) -> None:
        if edit is None:
            return
        if ref.domain is DragDomain.GROUP:
            self.discount_overlay.set_group_discount(ref.key, edit.kind, edit.amount)
        else:
            self.discount_overlay.set_sub_item_discount(ref.key, edit.kind, edit.amount)
        self._refresh_all()

    def action_grab_or_drop(self) -> None:
        if self._modal_open():
            return
        row = self._current_row()
        if row is None:
            return
        ref = drag_ref_for(row)
        active = self.reorder_engine.active
        if active is None:
            self.reorder_engine.drag_start(DragStart(ref))
            self.status_message = "Moving: j/k to choose a target, M to drop, Esc to cancel"
            self._log_debug(f"drag_start domain={ref.domain.value} key={ref.key}")
            self._refresh_all()
            return

        result = self.reorder_engine.drag_end(DragEnd(active=active, over=ref))
        self._log_debug(f"drag_end active={active.key} over={ref.key} applied={result.applied}")
        if result.applied:
            self._focus_key(active.key)
            self.status_message = result.message
        else:
            self.status_message = result.message or "Nothing moved"
        self._refresh_all()

    def action_cancel_drag(self) -> None:
        if self._modal_open():
            return
        active = self.reorder_engine.active
        if active is None:
            return
        self.reorder_engine.drag_end(DragEnd(active=active, over=None))
        self.status_message = "Move cancelled"
        self._refresh_all()

    def _refresh_all(self) -> None:
        self._refresh_products()
        self._refresh_status()

    def _refresh_products(self) -> None:
        try:
            products_widget = self.query_one("#products-list", Static)
        except NoMatches:
            return
        rows = self._rows()
        if not rows:
            self.cursor_index = 0
            products_widget.update("No products added yet. Press A to add one.")
            return

        if self.cursor_index >= len(rows):
            self.cursor_index = len(rows) - 1

        active = self.reorder_engine.active
        start, end = window_bounds(
            len(rows), viewport_lines(products_widget.size.height, fallback=8), self.cursor_index
        )

        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")
        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            row = rows[idx]
            pointer = "➤ " if idx == self.cursor_index else "  "
            lines.append(pointer)
            if active is not None and drag_ref_for(row) == active:
                lines.append("≡ ", style="bold yellow")
            lines.append_text(format_list_row(row))
        if end < len(rows):
            lines.append("\n⋮", style="dim")

        products_widget.update(lines)

    def _refresh_status(self) -> None:
        try:
            bar = self.query_one("#status-bar", Static)
        except NoMatches:
            return
        help_text = "A add, E pick, V variants, X discount, M move, D remove, Ctrl+Q quit"
        bar.update(f"{help_text}\n{self.status_message or 'Ready'}")
