from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Static

from api.client import ApiError
from api.models import Product
from core.errors import ValidationError
from utils.pure import NEW_QUANTITY, format_qty, summarize_adjustment


class AdjustStockModal(ModalScreen[bool]):
    """
    Set a product's stock to a counted quantity. The difference to the
    current stock is shown while typing; removals are marked in red.
    """

    DEFAULT_CSS = """
    AdjustStockModal {
        align: center middle;
    }
    AdjustStockModal > #div-adjust {
        width: 64;
        height: auto;
        border: thick $warning;
        background: $surface;
        padding: 1 2;
    }
    AdjustStockModal #label-product {
        text-style: bold;
    }
    AdjustStockModal #static-difference {
        height: 1;
        margin: 1 0;
    }
    AdjustStockModal #div-adjust-btns {
        height: auto;
        align: right middle;
    }
    """

    def __init__(self, product: Product) -> None:
        super().__init__()
        self.product = product

    def compose(self) -> ComposeResult:
        with Container(id="div-adjust"):
            yield Label(f"{self.product.name} ({self.product.sku})", id="label-product")
            yield Label(f"Current stock: {format_qty(self.product.stock_quantity)}")
            yield Label("New quantity *")
            yield Input(
                value=format_qty(self.product.stock_quantity),
                type="number",
                validators=[NEW_QUANTITY],
                valid_empty=False,
                id="input-new-qty",
            )
            yield Static("", id="static-difference")
            yield Label("Notes")
            yield Input(placeholder="Counted during inventory", id="input-notes")
            with Horizontal(id="div-adjust-btns"):
                yield Button("Cancel", id="btn-cancel")
                yield Button("Adjust", id="btn-adjust-submit", variant="warning")

    def on_mount(self) -> None:
        self.query_one("#input-new-qty", Input).focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @on(Input.Changed, "#input-new-qty")
    def handle_qty_changed(self, event: Input.Changed) -> None:
        difference = self.query_one("#static-difference", Static)
        if event.validation_result is None or not event.validation_result.is_valid:
            difference.update("")
            return
        summary = summarize_adjustment(self.product.stock_quantity, event.value)
        difference.update(summary.markup)

    @on(Button.Pressed, "#btn-cancel")
    def handle_cancel(self) -> None:
        self.dismiss(False)

    @on(Input.Submitted)
    @on(Button.Pressed, "#btn-adjust-submit")
    @work(exclusive=True)
    async def handle_submit(self) -> None:
        qty_input = self.query_one("#input-new-qty", Input)
        checked = qty_input.validate(qty_input.value)
        if checked is not None and not checked.is_valid:
            qty_input.focus()
            self.notify(checked.failure_descriptions[0], severity="error")
            return
        notes = self.query_one("#input-notes", Input).value.strip() or None
        try:
            summary = summarize_adjustment(self.product.stock_quantity, qty_input.value)
            if summary.difference == 0:
                self.notify("Nothing to adjust.", severity="warning")
                return
            result = await self.app.api.stock.adjust(self.product.id, summary.new, notes)
        except ValidationError as e:
            qty_input.focus()
            self.notify(e.message, severity="error")
            return
        except ApiError as e:
            self.notify(e.user_message, title="Adjustment failed", severity="error")
            return

        self.notify(
            f"Stock adjusted: {format_qty(result.old_quantity)} -> "
            f"{format_qty(result.new_quantity)}"
        )
        self.dismiss(True)
