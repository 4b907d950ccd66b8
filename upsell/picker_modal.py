"""Product picker modal screen."""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.timer import Timer
from textual.widgets import Static

from upsell.catalog import FetchPage, PaginatedCatalog, PaginationState
from upsell.config import (
    LOAD_MORE_THRESHOLD_ROWS,
    PAGE_SIZE,
    PICKER_HEADER_LINES,
    PICKER_LOADING_LINES,
    PICKER_SUB_ITEM_LINES,
    SEARCH_DEBOUNCE_SECONDS,
)
from upsell.models import Group
from upsell.rendering import format_picker_row, viewport_lines
from upsell.row_index import RowHeights, RowIndex, RowKind
from upsell.selection import SelectionSet

logger = logging.getLogger(__name__)

PICKER_ROW_HEIGHTS = RowHeights(
    group_header=PICKER_HEADER_LINES,
    sub_item=PICKER_SUB_ITEM_LINES,
    loading_sentinel=PICKER_LOADING_LINES,
)


class ProductPickerModal(ModalScreen[list[Group] | None]):
    """Search the catalog and pick variants; dismisses with the new groups."""

    CSS = """
    ProductPickerModal {
        align: center middle;
        background: $background 60%;
    }

    #picker-dialog {
        width: 72;
        height: 80%;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #picker-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #picker-search {
        border: heavy $secondary;
        padding: 0 1;
        height: 3;
        margin-bottom: 1;
    }

    #picker-body {
        height: 1fr;
        color: white;
    }

    #picker-footer {
        margin-top: 1;
        color: #dddddd;
    }
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        *,
        page_size: int = PAGE_SIZE,
        heights: RowHeights = PICKER_ROW_HEIGHTS,
    ) -> None:
        super().__init__()
        self.selection_set = SelectionSet()
        self.catalog = PaginatedCatalog(fetch_page, page_size=page_size, on_change=self._on_catalog_change)
        self.heights = heights
        self.row_index = RowIndex(heights=heights)
        self.search_text = ""
        self.cursor_position = 0
        self.view_offset = 0
        self._debounce_timer: Timer | None = None
        self._finishing = False
        self._state: PaginationState = self.catalog.state

    def compose(self) -> ComposeResult:
        with Container(id="picker-dialog"):
            yield Static("Select Products", id="picker-title")
            yield Static(id="picker-search")
            yield Static(id="picker-body")
            yield Static(id="picker-footer")

    def on_mount(self) -> None:
        self._run_catalog(self.catalog.set_query(""))

    def on_key(self, event: Key) -> None:
        if self._finishing:
            return
        key = event.key
        if key in {"escape", "ctrl+c"}:
            self._finish(None)
        elif key == "ctrl+a":
            self._confirm()
        elif key == "ctrl+r":
            if self._state.last_error is not None:
                self._run_catalog(self.catalog.retry())
        elif key in {"up", "down"}:
            self._move_cursor(-1 if key == "up" else 1)
        elif key in {"pageup", "pagedown"}:
            self._move_cursor(-10 if key == "pageup" else 10)
        elif key == "enter":
            self._toggle_current()
        elif key == "backspace":
            if self.search_text:
                self.search_text = self.search_text[:-1]
                self._schedule_search()
        elif event.is_printable and event.character:
            self.search_text += event.character
            self._schedule_search()
        else:
            return
        event.stop()

    def _run_catalog(self, work) -> None:
        self.run_worker(work, group="catalog")

    def _schedule_search(self) -> None:
        if self._debounce_timer is not None:
            self._debounce_timer.stop()
        self._debounce_timer = self.set_timer(SEARCH_DEBOUNCE_SECONDS, self._apply_search)
        self._refresh_content()

    def _apply_search(self) -> None:
        self._debounce_timer = None
        logger.debug("picker search %r", self.search_text)
        self.cursor_position = 0
        self.view_offset = 0
        self._run_catalog(self.catalog.set_query(self.search_text))

    def _on_catalog_change(self, state: PaginationState) -> None:
        if self._finishing:
            return
        self._state = state
        if self.row_index.version != state.structure_version:
            self.row_index = RowIndex.from_state(state, self.heights)
            if self.row_index.total_rows:
                self.cursor_position = min(self.cursor_position, self.row_index.total_rows - 1)
            else:
                self.cursor_position = 0
        if self.is_mounted:
            self._refresh_content()

    def _move_cursor(self, delta: int) -> None:
        total = self.row_index.total_rows
        if not total:
            return
        self.cursor_position = max(0, min(total - 1, self.cursor_position + delta))
        self._refresh_content()

    def _toggle_current(self) -> None:
        if not self.row_index.total_rows:
            return
        row = self.row_index.row_at(self.cursor_position)
        if row.kind is RowKind.GROUP_HEADER and row.group is not None:
            self.selection_set.toggle_all_in_group(row.group)
        elif row.kind is RowKind.SUB_ITEM and row.group is not None and row.sub_item is not None:
            self.selection_set.toggle(row.sub_item, row.group)
        else:
            return
        self._refresh_content()

    def _confirm(self) -> None:
        if not len(self.selection_set):
            return
        self._finish(self.selection_set.materialize())

    def _finish(self, result: list[Group] | None) -> None:
        self._finishing = True
        if self._debounce_timer is not None:
            self._debounce_timer.stop()
        self.catalog.close()
        self.selection_set.clear()
        self.dismiss(result)

    def _scroll_to_cursor(self, viewport: int) -> None:
        top = self.row_index.offset_of(self.cursor_position)
        bottom = top + self.row_index.height_at(self.cursor_position)
        if top < self.view_offset:
            self.view_offset = top
        elif bottom > self.view_offset + viewport:
            self.view_offset = bottom - viewport
        self.view_offset = max(0, min(self.view_offset, max(0, self.row_index.total_height - viewport)))

    def _refresh_content(self) -> None:
        if self._finishing:
            return
        search = self.query_one("#picker-search", Static)
        body = self.query_one("#picker-body", Static)
        footer = self.query_one("#picker-footer", Static)

        search_line = Text()
        search_line.append("Search: ", style="bold")
        search_line.append(f"{self.search_text}|")
        search.update(search_line)

        state = self._state
        footer.update(
            f"{len(self.selection_set)} variant(s) selected. "
            "↑/↓ move, Enter toggle, Ctrl+A add, Ctrl+R retry, Esc cancel"
        )

        if state.last_error is not None and not state.loaded_groups:
            body.update(Text(f"Failed to load products: {state.error_message}. Ctrl+R to retry.", style="#ffb3b3"))
            return
        if self.row_index.total_rows == 0:
            if state.is_loading:
                body.update(Text("Loading...", style="dim"))
            elif state.query:
                body.update(Text(f'No products found for "{state.query}".', style="dim"))
            else:
                body.update(Text("Start typing to search for products.", style="dim"))
            return

        viewport = viewport_lines(body.size.height, fallback=12)
        self._scroll_to_cursor(viewport)
        start, end = self.row_index.visible_range(self.view_offset, viewport)

        lines = Text()
        for position in range(start, end):
            if position > start:
                lines.append("\n")
            pointer = "➤ " if position == self.cursor_position else "  "
            lines.append(pointer)
            lines.append_text(format_picker_row(self.row_index.row_at(position), self.selection_set))
        if state.last_error is not None:
            lines.append(f"\nLoad failed: {state.error_message}. Ctrl+R to retry.", style="#ffb3b3")
        body.update(lines)

        if not state.is_loading and state.last_error is None and self.row_index.should_load_more(
            end - 1, LOAD_MORE_THRESHOLD_ROWS
        ):
            self._run_catalog(self.catalog.load_next_page())
