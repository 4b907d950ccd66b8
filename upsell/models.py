"""Domain models for upsell-builder."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from uuid import uuid4

DISCOUNT_KINDS = ("percentage", "flat")
DEFAULT_DISCOUNT_KIND = "percentage"


def _to_decimal(value: object, label: str) -> Decimal:
    try:
        return value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"{label} must be numeric, got {value!r}") from exc


@dataclass(frozen=True)
class Discount:
    """A non-negative discount applied to a group or a sub-item."""

    kind: str
    amount: Decimal

    def __post_init__(self) -> None:
        if self.kind not in DISCOUNT_KINDS:
            raise ValueError(f"Unknown discount kind {self.kind!r}")
        amount = _to_decimal(self.amount, "Discount amount")
        if not amount.is_finite() or amount < 0:
            raise ValueError("Discount amount must be a finite number >= 0")
        object.__setattr__(self, "amount", amount)

    def apply(self, price: Decimal) -> Decimal:
        """Return the discounted price, never below zero."""
        if self.kind == "percentage":
            rate = min(self.amount, Decimal(100)) / Decimal(100)
            return (price * (Decimal(1) - rate)).quantize(Decimal("0.01"))
        return max(Decimal(0), price - self.amount)


def make_discount(kind: str | None, amount: object | None) -> Discount | None:
    """Build a descriptor; a missing amount means no discount at all."""
    if amount is None:
        return None
    return Discount(kind=kind or DEFAULT_DISCOUNT_KIND, amount=amount)


def sub_item_key(parent_id: int, item_id: int) -> str:
    """Deterministic key for a remote (product, variant) pair."""
    return f"{parent_id}-{item_id}"


def new_group_key(prefix: str = "sel") -> str:
    return f"{prefix}-{uuid4().hex}"


@dataclass(frozen=True)
class CatalogSubItem:
    """A variant as returned by the remote catalog."""

    item_id: int
    parent_id: int
    title: str
    price: Decimal

    @property
    def key(self) -> str:
        return sub_item_key(self.parent_id, self.item_id)


@dataclass(frozen=True)
class CatalogGroup:
    """A read-only product from one catalog page."""

    remote_id: int
    title: str
    image_src: str | None = None
    sub_items: tuple[CatalogSubItem, ...] = ()


@dataclass
class SubItem:
    """A committed variant inside a selection list group."""

    key: str
    remote_id: int | None
    title: str
    price: Decimal
    discount: Discount | None = None


@dataclass
class Group:
    """A committed product row, or an empty placeholder awaiting selection."""

    key: str
    title: str
    image_src: str | None = None
    sub_items: list[SubItem] = field(default_factory=list)
    remote_id: int | None = None
    discount: Discount | None = None
    expanded: bool = False
    is_placeholder: bool = False

    @property
    def can_expand(self) -> bool:
        return not self.is_placeholder and len(self.sub_items) > 1


def new_placeholder_group() -> Group:
    """Create the empty row added by "add product"."""
    return Group(key=new_group_key("placeholder"), title="", is_placeholder=True)


@dataclass
class SelectionEntry:
    """A picked variant with enough parent context to build a Group later."""

    key: str
    parent_id: int
    item_id: int
    title: str
    price: Decimal
    parent_title: str
    parent_image_src: str | None = None
    discount: Discount | None = None

    @classmethod
    def from_catalog(
        cls,
        sub_item: CatalogSubItem,
        parent: CatalogGroup,
        discount: Discount | None = None,
    ) -> SelectionEntry:
        return cls(
            key=sub_item.key,
            parent_id=parent.remote_id,
            item_id=sub_item.item_id,
            title=sub_item.title,
            price=sub_item.price,
            parent_title=parent.title,
            parent_image_src=parent.image_src,
            discount=discount,
        )

    def to_sub_item(self) -> SubItem:
        return SubItem(
            key=self.key,
            remote_id=self.item_id,
            title=self.title,
            price=self.price,
            discount=self.discount,
        )
