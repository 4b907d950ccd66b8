"""Picker-side selection of catalog variants."""

from __future__ import annotations

from typing import Iterator

from upsell.models import (
    CatalogGroup,
    CatalogSubItem,
    Discount,
    Group,
    SelectionEntry,
    new_group_key,
)


class SelectionSet:
    """Selected variants keyed by their deterministic sub-item key.

    One instance lives for one opening of the picker; it is not shared
    process-wide and is cleared when the picker closes.
    """

    def __init__(self) -> None:
        self._entries: dict[str, SelectionEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[SelectionEntry]:
        return iter(list(self._entries.values()))

    def get(self, key: str) -> SelectionEntry | None:
        return self._entries.get(key)

    def clear(self) -> None:
        self._entries.clear()

    def toggle(self, sub_item: CatalogSubItem, parent: CatalogGroup) -> bool:
        """Select or deselect one variant; returns True if it is now selected."""
        key = sub_item.key
        if key in self._entries:
            del self._entries[key]
            return False
        self._entries[key] = SelectionEntry.from_catalog(sub_item, parent)
        return True

    def is_group_fully_selected(self, group: CatalogGroup) -> bool:
        return all(sub_item.key in self._entries for sub_item in group.sub_items)

    def selected_count_in_group(self, group: CatalogGroup) -> int:
        return sum(1 for sub_item in group.sub_items if sub_item.key in self._entries)

    def toggle_all_in_group(self, group: CatalogGroup) -> bool:
        """Deselect every variant of ``group`` if all are selected, else select all.

        Entries that were already selected keep their discount. Returns True
        when the group ends up selected.
        """
        if self.is_group_fully_selected(group):
            for sub_item in group.sub_items:
                self._entries.pop(sub_item.key, None)
            return False

        for sub_item in group.sub_items:
            previous = self._entries.get(sub_item.key)
            self._entries[sub_item.key] = SelectionEntry.from_catalog(
                sub_item,
                group,
                discount=previous.discount if previous else None,
            )
        return True

    def set_entry_discount(self, key: str, discount: Discount | None) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        entry.discount = discount
        return True

    def materialize(self) -> list[Group]:
        """Build one committed Group per distinct parent product.

        Groups follow the order in which their first variant was selected;
        variants keep the order they were encountered in.
        """
        groups: dict[int, Group] = {}
        for entry in self._entries.values():
            group = groups.get(entry.parent_id)
            if group is None:
                group = Group(
                    key=new_group_key(f"sel-{entry.parent_id}"),
                    title=entry.parent_title,
                    image_src=entry.parent_image_src,
                    remote_id=entry.parent_id,
                )
                groups[entry.parent_id] = group
            group.sub_items.append(entry.to_sub_item())
        return list(groups.values())
