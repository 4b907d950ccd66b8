"""Committed, ordered list of product rows."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterator, Sequence

from upsell.models import Group, SubItem, new_placeholder_group

logger = logging.getLogger(__name__)


def move_item(items: Sequence, old_index: int, new_index: int) -> list:
    """Return a copy with ``items[old_index]`` reinserted at ``new_index``."""
    moved = list(items)
    item = moved.pop(old_index)
    moved.insert(new_index, item)
    return moved


class SelectionList:
    """Owner of the committed product rows and their variant order.

    Ordered sequences are only ever swapped wholesale, so a reader never
    sees a half-applied reorder.
    """

    def __init__(self, groups: Sequence[Group] = ()) -> None:
        self._groups: list[Group] = list(groups)
        keys = [group.key for group in self._groups]
        if len(set(keys)) != len(keys):
            raise ValueError("Group keys must be unique")

    def __len__(self) -> int:
        return len(self._groups)

    def __iter__(self) -> Iterator[Group]:
        return iter(tuple(self._groups))

    @property
    def groups(self) -> tuple[Group, ...]:
        return tuple(self._groups)

    def keys(self) -> list[str]:
        return [group.key for group in self._groups]

    def index_of(self, group_key: str) -> int | None:
        for idx, group in enumerate(self._groups):
            if group.key == group_key:
                return idx
        return None

    def find_group(self, group_key: str) -> Group | None:
        idx = self.index_of(group_key)
        return None if idx is None else self._groups[idx]

    def find_sub_item_owner(self, sub_item_key: str) -> Group | None:
        for group in self._groups:
            if any(sub_item.key == sub_item_key for sub_item in group.sub_items):
                return group
        return None

    def find_sub_item(self, sub_item_key: str) -> SubItem | None:
        for group in self._groups:
            for sub_item in group.sub_items:
                if sub_item.key == sub_item_key:
                    return sub_item
        return None

    def add_placeholder(self) -> Group:
        placeholder = new_placeholder_group()
        self._groups = [*self._groups, placeholder]
        return placeholder

    def can_remove(self) -> bool:
        return len(self._groups) > 1

    def remove(self, group_key: str) -> bool:
        idx = self.index_of(group_key)
        if idx is None:
            return False
        self._groups = self._groups[:idx] + self._groups[idx + 1 :]
        return True

    def toggle_expanded(self, group_key: str) -> bool:
        group = self.find_group(group_key)
        if group is None or not group.can_expand:
            return False
        group.expanded = not group.expanded
        return True

    def replace_group(self, group_key: str, replacements: Sequence[Group]) -> int:
        """Swap one row (usually a placeholder) for the groups picked for it.

        Returns how many groups were inserted; 0 leaves the list untouched.
        The caller's ``replacements`` are never modified.
        """
        idx = self.index_of(group_key)
        if idx is None:
            logger.warning("replace_group: unknown group key %s", group_key)
            return 0
        others = [group for i, group in enumerate(self._groups) if i != idx]
        if any(group.key in {other.key for other in others} for group in replacements):
            raise ValueError("Replacement groups reuse an existing group key")

        # Variant keys stay unique across the whole list: variants already
        # listed under another row are dropped from the replacements.
        taken = {sub_item.key for group in others for sub_item in group.sub_items}
        accepted: list[Group] = []
        for group in replacements:
            kept = [sub_item for sub_item in group.sub_items if sub_item.key not in taken]
            if len(kept) != len(group.sub_items):
                logger.info("replace_group: dropped %d variant(s) already listed", len(group.sub_items) - len(kept))
                if not kept:
                    continue
            taken.update(sub_item.key for sub_item in kept)
            accepted.append(replace(group, sub_items=kept))

        if not accepted:
            return 0
        self._groups = self._groups[:idx] + accepted + self._groups[idx + 1 :]
        return len(accepted)

    def replace_order(self, groups: Sequence[Group]) -> None:
        """Install a new ordering of exactly the current groups."""
        if sorted(g.key for g in groups) != sorted(self.keys()):
            raise ValueError("New order must contain exactly the current groups")
        self._groups = list(groups)

    def replace_sub_items(self, group_key: str, sub_items: Sequence[SubItem]) -> None:
        """Install a new ordering of exactly the group's current variants."""
        group = self.find_group(group_key)
        if group is None:
            raise KeyError(group_key)
        if sorted(s.key for s in sub_items) != sorted(s.key for s in group.sub_items):
            raise ValueError("New order must contain exactly the group's variants")
        group.sub_items = list(sub_items)
