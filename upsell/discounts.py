"""Discount edits on committed product rows and variants."""

from __future__ import annotations

import logging

from upsell.config import CASCADE_GROUP_DISCOUNT
from upsell.models import make_discount
from upsell.selection_list import SelectionList

logger = logging.getLogger(__name__)


class DiscountOverlay:
    """Attach discount descriptors to groups and sub-items of a list.

    ``cascade_to_sub_items`` decides whether a product discount is also
    copied onto each current variant of that product.
    """

    def __init__(self, selection_list: SelectionList, *, cascade_to_sub_items: bool = CASCADE_GROUP_DISCOUNT) -> None:
        self._list = selection_list
        self.cascade_to_sub_items = cascade_to_sub_items

    def set_group_discount(self, group_key: str, kind: str | None, amount: object | None) -> bool:
        discount = make_discount(kind, amount)
        group = self._list.find_group(group_key)
        if group is None:
            logger.warning("set_group_discount: unknown group key %s", group_key)
            return False
        group.discount = discount
        if self.cascade_to_sub_items:
            for sub_item in group.sub_items:
                sub_item.discount = discount
        return True

    def set_sub_item_discount(self, sub_item_key: str, kind: str | None, amount: object | None) -> bool:
        discount = make_discount(kind, amount)
        # Keys are unique across groups; the first owner found is the only one.
        sub_item = self._list.find_sub_item(sub_item_key)
        if sub_item is None:
            logger.warning("set_sub_item_discount: unknown variant key %s", sub_item_key)
            return False
        sub_item.discount = discount
        return True
