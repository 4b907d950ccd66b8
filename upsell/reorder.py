"""Drag-and-drop reordering at two nesting levels.

The engine is a two-state machine: idle, or dragging one entity of a known
domain (a product row or a variant row). The domain always travels with the
event; nothing is inferred from where an element was dropped.

On drop:

- product onto product: positional move within the top-level order;
- variant onto variant of the same product: positional move within that
  product's variants;
- variant onto a variant of another product: rejected, nothing changes;
- any other pairing: rejected, nothing changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from upsell.errors import ErrorKind
from upsell.selection_list import SelectionList, move_item

logger = logging.getLogger(__name__)


class DragDomain(str, Enum):
    GROUP = "group"
    SUB_ITEM = "subitem"


@dataclass(frozen=True)
class DragRef:
    """Tagged reference to a draggable entity."""

    domain: DragDomain
    key: str


@dataclass(frozen=True)
class DragStart:
    active: DragRef


@dataclass(frozen=True)
class DragEnd:
    active: DragRef
    over: DragRef | None = None


@dataclass(frozen=True)
class ReorderResult:
    applied: bool
    error: ErrorKind | None = None
    message: str = ""


_NO_OP = ReorderResult(applied=False)


class ReorderEngine:
    """Apply drag gestures to a ``SelectionList``."""

    def __init__(self, selection_list: SelectionList) -> None:
        self._list = selection_list
        self._active: DragRef | None = None
        self.last_result: ReorderResult | None = None

    @property
    def is_dragging(self) -> bool:
        return self._active is not None

    @property
    def active(self) -> DragRef | None:
        return self._active

    def drag_start(self, event: DragStart) -> None:
        if self._active is not None:
            logger.debug("drag_start while dragging %s; restarting", self._active.key)
        self._active = event.active

    def cancel(self) -> None:
        self._active = None

    def drag_end(self, event: DragEnd) -> ReorderResult:
        if self._active is None:
            logger.warning("drag_end for %s without a drag in progress; ignored", event.active.key)
            self.last_result = _NO_OP
            return _NO_OP
        if self._active != event.active:
            logger.debug("drag_end for %s while tracking %s", event.active.key, self._active.key)
        self._active = None
        result = self._resolve(event)
        self.last_result = result
        return result

    def _resolve(self, event: DragEnd) -> ReorderResult:
        active, over = event.active, event.over
        if over is None or over == active:
            return _NO_OP

        if active.domain is DragDomain.GROUP and over.domain is DragDomain.GROUP:
            return self._move_group(active.key, over.key)
        if active.domain is DragDomain.SUB_ITEM and over.domain is DragDomain.SUB_ITEM:
            return self._move_sub_item(active.key, over.key)

        return self._reject(
            ErrorKind.UNSUPPORTED_MOVE,
            f"Unhandled drag/drop combination: {active.domain.value} over {over.domain.value}",
        )

    def _move_group(self, active_key: str, over_key: str) -> ReorderResult:
        old_index = self._list.index_of(active_key)
        new_index = self._list.index_of(over_key)
        if old_index is None or new_index is None:
            missing = active_key if old_index is None else over_key
            return self._reject(ErrorKind.KEY_RESOLUTION_FAILURE, f"Unknown product row {missing}")

        self._list.replace_order(move_item(self._list.groups, old_index, new_index))
        return ReorderResult(applied=True, message=f"Moved product to position {new_index + 1}")

    def _move_sub_item(self, active_key: str, over_key: str) -> ReorderResult:
        owner = self._list.find_sub_item_owner(active_key)
        if owner is None:
            return self._reject(ErrorKind.KEY_RESOLUTION_FAILURE, f"Unknown variant {active_key}")

        keys = [sub_item.key for sub_item in owner.sub_items]
        if over_key not in keys:
            if self._list.find_sub_item_owner(over_key) is None:
                return self._reject(ErrorKind.KEY_RESOLUTION_FAILURE, f"Unknown variant {over_key}")
            return self._reject(
                ErrorKind.UNSUPPORTED_MOVE,
                "Cannot move a variant to a different product",
            )

        old_index, new_index = keys.index(active_key), keys.index(over_key)
        self._list.replace_sub_items(owner.key, move_item(owner.sub_items, old_index, new_index))
        return ReorderResult(applied=True, message=f"Moved variant to position {new_index + 1}")

    def _reject(self, error: ErrorKind, message: str) -> ReorderResult:
        logger.warning("%s: %s", error.value, message)
        return ReorderResult(applied=False, error=error, message=message)
