"""Flat, randomly addressable rows over loaded catalog groups.

Each loaded group contributes one header row followed by one row per
sub-item; while more pages exist a trailing loading sentinel row is added.
Two prefix sums are built once per snapshot (row starts and pixel offsets
per group), so position, height and offset queries are a binary search over
groups plus constant-time arithmetic inside the group.
"""

from __future__ import annotations

import logging
from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from upsell.catalog import PaginationState
from upsell.config import (
    HEADER_ROW_HEIGHT,
    LOAD_MORE_THRESHOLD_ROWS,
    LOADING_ROW_HEIGHT,
    SUB_ITEM_ROW_HEIGHT,
)
from upsell.models import CatalogGroup, CatalogSubItem

logger = logging.getLogger(__name__)


class RowKind(str, Enum):
    GROUP_HEADER = "group-header"
    SUB_ITEM = "sub-item"
    LOADING_SENTINEL = "loading-sentinel"


@dataclass(frozen=True)
class RowHeights:
    group_header: int = HEADER_ROW_HEIGHT
    sub_item: int = SUB_ITEM_ROW_HEIGHT
    loading_sentinel: int = LOADING_ROW_HEIGHT

    def __post_init__(self) -> None:
        if min(self.group_header, self.sub_item, self.loading_sentinel) <= 0:
            raise ValueError("Row heights must be positive")

    def for_kind(self, kind: RowKind) -> int:
        if kind is RowKind.GROUP_HEADER:
            return self.group_header
        if kind is RowKind.SUB_ITEM:
            return self.sub_item
        return self.loading_sentinel


@dataclass(frozen=True)
class Row:
    """One renderable row resolved from a flat position."""

    position: int
    kind: RowKind
    group: CatalogGroup | None = None
    sub_item: CatalogSubItem | None = None
    group_index: int | None = None


class RowIndex:
    """Immutable row addressing for one catalog snapshot."""

    def __init__(
        self,
        groups: Sequence[CatalogGroup] = (),
        *,
        has_more: bool = False,
        heights: RowHeights | None = None,
        version: int = 0,
    ) -> None:
        self._groups = tuple(groups)
        self._has_more = has_more
        self._heights = heights or RowHeights()
        self.version = version

        self._row_starts: list[int] = []
        self._offset_starts: list[int] = []
        rows = 0
        offset = 0
        for group in self._groups:
            self._row_starts.append(rows)
            self._offset_starts.append(offset)
            count = len(group.sub_items)
            rows += 1 + count
            offset += self._heights.group_header + count * self._heights.sub_item
        self._group_rows = rows
        self._group_height = offset

    @classmethod
    def from_state(cls, state: PaginationState, heights: RowHeights | None = None) -> RowIndex:
        return cls(
            state.loaded_groups,
            has_more=state.has_more,
            heights=heights,
            version=state.structure_version,
        )

    @property
    def heights(self) -> RowHeights:
        return self._heights

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def group_count(self) -> int:
        return len(self._groups)

    @property
    def total_rows(self) -> int:
        return self._group_rows + (1 if self._has_more else 0)

    @property
    def total_height(self) -> int:
        return self._group_height + (self._heights.loading_sentinel if self._has_more else 0)

    def _locate(self, position: int) -> tuple[int, int]:
        group_index = bisect_right(self._row_starts, position) - 1
        return group_index, position - self._row_starts[group_index]

    def row_at(self, position: int) -> Row:
        """Resolve a flat position; out-of-range positions yield the sentinel."""
        if position < 0 or position >= self.total_rows:
            logger.warning("row_at: position %d outside [0, %d)", position, self.total_rows)
            return Row(position=position, kind=RowKind.LOADING_SENTINEL)
        if position >= self._group_rows:
            return Row(position=position, kind=RowKind.LOADING_SENTINEL)

        group_index, within = self._locate(position)
        group = self._groups[group_index]
        if within == 0:
            return Row(position, RowKind.GROUP_HEADER, group=group, group_index=group_index)
        return Row(
            position,
            RowKind.SUB_ITEM,
            group=group,
            sub_item=group.sub_items[within - 1],
            group_index=group_index,
        )

    def kind_at(self, position: int) -> RowKind:
        if 0 <= position < self._group_rows:
            return RowKind.GROUP_HEADER if self._locate(position)[1] == 0 else RowKind.SUB_ITEM
        return RowKind.LOADING_SENTINEL

    def height_at(self, position: int) -> int:
        return self._heights.for_kind(self.kind_at(position))

    def offset_of(self, position: int) -> int:
        """Distance from the top of the list to the top of ``position``."""
        if position <= 0:
            return 0
        if position >= self._group_rows:
            extra = min(position, self.total_rows) - self._group_rows
            return self._group_height + extra * self._heights.loading_sentinel
        group_index, within = self._locate(position)
        offset = self._offset_starts[group_index]
        if within:
            offset += self._heights.group_header + (within - 1) * self._heights.sub_item
        return offset

    def position_at_offset(self, offset: int) -> int:
        """Row covering the pixel/line ``offset``; clamps to the last row."""
        total = self.total_rows
        if total == 0:
            return 0
        if offset <= 0:
            return 0
        if offset >= self._group_height:
            return total - 1
        group_index = bisect_right(self._offset_starts, offset) - 1
        into = offset - self._offset_starts[group_index]
        start = self._row_starts[group_index]
        if into < self._heights.group_header:
            return start
        return start + 1 + (into - self._heights.group_header) // self._heights.sub_item

    def visible_range(self, offset: int, viewport_height: int, overscan: int = 0) -> tuple[int, int]:
        """Half-open ``(start, end)`` of rows intersecting the viewport."""
        total = self.total_rows
        if total == 0 or viewport_height <= 0:
            return (0, 0)
        first = self.position_at_offset(offset)
        last = self.position_at_offset(offset + viewport_height - 1)
        return (max(0, first - overscan), min(total, last + 1 + overscan))

    def is_item_loaded(self, position: int) -> bool:
        return not self._has_more or position < self.total_rows - 1

    def should_load_more(self, last_visible: int, threshold: int = LOAD_MORE_THRESHOLD_ROWS) -> bool:
        """True once ``last_visible`` is within ``threshold`` rows of the end."""
        return self._has_more and last_visible >= self.total_rows - 1 - threshold
