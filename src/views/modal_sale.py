from typing import Dict, Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label, Select

from api.client import ApiError
from api.models import PAYMENT_METHODS, ListQuery, Product, Sale, SaleDraft, SaleLine
from core.errors import ValidationError
from utils import config
from utils.pure import format_money, format_qty

QUANTITY = Number(minimum=0, failure_description="Quantity must be a number.")
UNIT_PRICE = Number(minimum=0, failure_description="Unit price cannot be negative.")
DISCOUNT = Number(minimum=0, failure_description="Discount cannot be negative.")


class SaleModal(ModalScreen[bool]):
    """
    Compose a new sale, or rework an existing one when `sale` is given.
    """

    DEFAULT_CSS = """
    SaleModal {
        align: center middle;
    }
    SaleModal > #div-sale-form {
        width: 100;
        height: 90%;
        border: thick $primary;
        background: $surface;
        padding: 1 2;
    }
    SaleModal #div-add-line, SaleModal #div-payment, SaleModal #div-sale-form-btns {
        height: auto;
    }
    SaleModal #select-product {
        width: 1fr;
    }
    SaleModal #div-add-line Input {
        width: 16;
    }
    SaleModal #table-lines {
        height: 1fr;
    }
    SaleModal #label-totals {
        text-style: bold;
        padding: 1 0;
    }
    SaleModal #div-sale-form-btns {
        align: right middle;
    }
    """

    def __init__(self, sale: Optional[Sale] = None) -> None:
        super().__init__()
        self.sale = sale
        self.draft = SaleDraft.from_sale(sale) if sale else SaleDraft()
        self.products: Dict[str, Product] = {}

    def compose(self) -> ComposeResult:
        title = f"Edit sale {self.sale.sale_number}" if self.sale else "New sale"
        with Container(id="div-sale-form"):
            yield Label(title, classes="form-title")
            with Horizontal(id="div-add-line"):
                yield Select([], prompt="Product", id="select-product")
                yield Input(
                    placeholder="Qty",
                    type="number",
                    validators=[QUANTITY],
                    valid_empty=True,
                    id="input-qty",
                )
                yield Input(
                    placeholder="Unit price",
                    type="number",
                    validators=[UNIT_PRICE],
                    valid_empty=True,
                    id="input-price",
                )
                yield Button("Add", id="btn-add-line", variant="success")
            yield DataTable(id="table-lines", cursor_type="row")
            yield Button("Remove line", id="btn-remove-line", variant="error")
            with Horizontal(id="div-payment"):
                with Vertical():
                    yield Label("Payment method")
                    yield Select(
                        [(m.title(), m) for m in PAYMENT_METHODS],
                        value=self.draft.payment_method,
                        allow_blank=False,
                        id="select-payment",
                    )
                with Vertical():
                    yield Label("Discount")
                    yield Input(
                        value=format_qty(self.draft.discount_amount),
                        type="number",
                        validators=[DISCOUNT],
                        valid_empty=True,
                        id="input-discount",
                    )
            yield Label("", id="label-totals")
            with Horizontal(id="div-sale-form-btns"):
                yield Button("Cancel", id="btn-cancel")
                yield Button(
                    "Update sale" if self.sale else "Complete sale",
                    id="btn-submit",
                    variant="primary",
                )

    def on_mount(self) -> None:
        self.query_one(DataTable).add_columns("Product", "Qty", "Unit price", "Line total")
        self.render_lines()
        self.load_products()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @work(exclusive=True, group="sale-products")
    async def load_products(self) -> None:
        try:
            result = await self.app.api.products.list(
                ListQuery(page_size=config.DASHBOARD_PRODUCT_SAMPLE)
            )
        except ApiError as e:
            self.notify(e.user_message, title="Failed to load products", severity="error")
            return
        self.products = {p.id: p for p in result.items if p.is_active}
        self.query_one("#select-product", Select).set_options(
            [
                (f"{p.name} ({format_qty(p.stock_quantity)} in stock)", p.id)
                for p in self.products.values()
            ]
        )

    def render_lines(self) -> None:
        table = self.query_one(DataTable)
        table.clear()
        for line in self.draft.lines:
            table.add_row(
                line.product_name,
                format_qty(line.quantity),
                format_money(line.unit_price),
                format_money(line.line_total),
                key=line.product_id,
            )
        self.query_one("#label-totals", Label).update(
            f"Subtotal: {format_money(self.draft.subtotal)}   "
            f"Discount: {format_money(self.draft.discount_amount)}   "
            f"Total: {format_money(self.draft.total)}"
        )

    @on(Select.Changed, "#select-product")
    def handle_product_picked(self, event: Select.Changed) -> None:
        product = self.products.get(event.value) if isinstance(event.value, str) else None
        if product is None:
            return
        self.query_one("#input-price", Input).value = f"{product.unit_price:g}"
        qty = self.query_one("#input-qty", Input)
        if not qty.value:
            qty.value = "1"
        qty.focus()

    @on(Button.Pressed, "#btn-add-line")
    def handle_add_line(self) -> None:
        product_id = self.query_one("#select-product", Select).value
        if not isinstance(product_id, str) or product_id not in self.products:
            self.notify("Please select a product", severity="error")
            return
        product = self.products[product_id]
        qty_input = self.query_one("#input-qty", Input)
        price_input = self.query_one("#input-price", Input)
        for widget in (qty_input, price_input):
            checked = widget.validate(widget.value)
            if checked is not None and not checked.is_valid:
                widget.focus()
                self.notify(checked.failure_descriptions[0], severity="error")
                return
        try:
            quantity = float(qty_input.value or 0)
            unit_price = float(price_input.value) if price_input.value else product.unit_price
            self.draft.add_line(
                SaleLine(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=quantity,
                    unit_price=unit_price,
                )
            )
        except ValidationError as e:
            self.notify(e.message, severity="error")
            return
        qty_input.value = ""
        self.render_lines()

    @on(Button.Pressed, "#btn-remove-line")
    def handle_remove_line(self) -> None:
        table = self.query_one(DataTable)
        if not self.draft.lines or table.cursor_row is None:
            return
        line = self.draft.lines[table.cursor_row]
        self.draft.remove_line(line.product_id)
        self.render_lines()

    @on(Select.Changed, "#select-payment")
    def handle_payment_changed(self, event: Select.Changed) -> None:
        if isinstance(event.value, str):
            self.draft.payment_method = event.value

    @on(Input.Changed, "#input-discount")
    def handle_discount_changed(self, event: Input.Changed) -> None:
        if event.validation_result is not None and not event.validation_result.is_valid:
            return
        self.draft.set_discount(float(event.value or 0))
        self.render_lines()

    @on(Button.Pressed, "#btn-cancel")
    def handle_cancel(self) -> None:
        self.dismiss(False)

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True, group="sale-submit")
    async def handle_submit(self) -> None:
        discount = self.query_one("#input-discount", Input)
        if not discount.is_valid:
            discount.focus()
            self.notify(DISCOUNT.failure_description, severity="error")
            return
        sales = self.app.api.sales
        try:
            if self.sale is None:
                saved = await sales.create_from_draft(self.draft)
            else:
                if not self.draft.lines:
                    raise ValidationError("Please add at least one item", "items")
                saved = await sales.update(self.sale.id, self.draft.to_payload())
        except ValidationError as e:
            self.notify(e.message, severity="error")
            return
        except ApiError as e:
            self.notify(e.user_message, title="Sale failed", severity="error")
            return
        self.notify(f"Sale {saved.sale_number} saved: {format_money(saved.final_amount)}")
        self.dismiss(True)
