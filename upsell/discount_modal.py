"""Discount entry modal screen."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from upsell.models import DEFAULT_DISCOUNT_KIND, DISCOUNT_KINDS, Discount
from upsell.rendering import badge_style

MAX_INPUT_LENGTH = 9


@dataclass(frozen=True)
class DiscountEdit:
    """Validated modal result; ``amount`` None clears the discount."""

    kind: str
    amount: Decimal | None


def parse_amount(raw: str, kind: str) -> Decimal | None:
    """Validate typed text; raises ValueError with a user-facing message."""
    if not raw:
        return None
    try:
        amount = Decimal(raw)
    except InvalidOperation as exc:
        raise ValueError("Discount must be a number.") from exc
    if amount < 0:
        raise ValueError("Discount cannot be negative.")
    if kind == "percentage" and amount > 100:
        raise ValueError("Percentage discount cannot exceed 100.")
    return amount


class DiscountModal(ModalScreen[DiscountEdit | None]):
    """Prompt for a discount amount and kind for a product or a variant."""

    CSS = """
    DiscountModal {
        align: center middle;
        background: $background 60%;
    }

    #discount-dialog {
        width: 56;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #discount-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #discount-value {
        border: heavy $secondary;
        padding: 0 1;
        color: white;
        margin-bottom: 1;
    }

    #discount-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #discount-help {
        color: #dddddd;
    }
    """

    def __init__(self, target_label: str, current: Discount | None = None) -> None:
        super().__init__()
        self.target_label = target_label
        self.kind = current.kind if current else DEFAULT_DISCOUNT_KIND
        self.value = f"{current.amount.normalize():f}" if current else ""
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="discount-dialog"):
            yield Static(f"Discount: {self.target_label}", id="discount-title")
            yield Static(id="discount-value")
            yield Static(id="discount-error")
            yield Static(
                "Digits and '.'. Tab switch %/flat. Enter confirm (empty clears). Esc/Ctrl+C cancel.",
                id="discount-help",
            )

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key == "enter":
            self._confirm()
            event.stop()
            return

        if event.key == "tab":
            idx = DISCOUNT_KINDS.index(self.kind)
            self.kind = DISCOUNT_KINDS[(idx + 1) % len(DISCOUNT_KINDS)]
            self.error = ""
            self._refresh_content()
            event.stop()
            return

        if event.key == "backspace":
            if self.value:
                self.value = self.value[:-1]
                self.error = ""
                self._refresh_content()
            event.stop()
            return

        char = event.character
        if event.is_printable and char and (char.isdigit() or (char == "." and "." not in self.value)):
            if len(self.value) < MAX_INPUT_LENGTH:
                self.value += char
            self.error = ""
            self._refresh_content()

        # Letters must not reach the list's bindings underneath.
        if event.is_printable:
            event.stop()

    def _confirm(self) -> None:
        try:
            amount = parse_amount(self.value, self.kind)
        except ValueError as exc:
            self.error = str(exc)
            self._refresh_content()
            return
        self.dismiss(DiscountEdit(kind=self.kind, amount=amount))

    def _refresh_content(self) -> None:
        value_widget = self.query_one("#discount-value", Static)
        error_widget = self.query_one("#discount-error", Static)
        line = Text()
        line.append(" % " if self.kind == "percentage" else " flat ", style=badge_style(self.kind))
        line.append(f" {self.value}|")
        value_widget.update(line)
        error_widget.update(self.error or "")
