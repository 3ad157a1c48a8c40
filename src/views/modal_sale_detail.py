from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Markdown

from api.client import ApiError
from api.models import Sale
from utils.pure import format_date, format_money, format_qty, generate_markdown_table


def sale_markdown(sale: Sale) -> str:
    info = generate_markdown_table(
        ["Field", "Value"],
        [
            ["Sale number", sale.sale_number],
            ["Date", format_date(sale.created_at)],
            ["Cashier", sale.cashier_name or "-"],
            ["Payment", sale.payment_method],
            ["Total", format_money(sale.total_amount)],
            ["Discount", format_money(sale.discount_amount)],
            ["Final", format_money(sale.final_amount)],
        ],
        ["l", "r"],
    )
    items = generate_markdown_table(
        ["Product", "Qty", "Unit price", "Discount", "Line total"],
        [
            [
                i.product_name or i.product_id,
                format_qty(i.quantity),
                format_money(i.unit_price),
                format_money(i.discount_amount),
                format_money(i.line_total),
            ]
            for i in sale.items
        ],
        ["l", "r", "r", "r", "r"],
    )
    return (
        f"### Sale {sale.sale_number}\n\n{info}\n\n#### Items\n\n"
        + (items or "_No items_")
    )


class SaleDetailModal(ModalScreen[None]):
    DEFAULT_CSS = """
    SaleDetailModal {
        align: center middle;
    }
    SaleDetailModal > #div-sale {
        width: 90;
        height: auto;
        max-height: 90%;
        border: thick $primary;
        background: $surface;
        padding: 1 2;
    }
    SaleDetailModal #div-sale-btns {
        height: auto;
        align: right middle;
    }
    """

    def __init__(self, sale: Sale) -> None:
        super().__init__()
        self.sale = sale

    def compose(self) -> ComposeResult:
        with Container(id="div-sale"):
            yield Markdown(sale_markdown(self.sale), id="md-sale")
            with Horizontal(id="div-sale-btns"):
                yield Button("Close", id="btn-close", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#btn-close").focus()
        # list rows may come without their items
        self.load_sale()

    @work(exclusive=True)
    async def load_sale(self) -> None:
        try:
            self.sale = await self.app.api.sales.get_one(self.sale.id)
        except ApiError as e:
            self.notify(e.user_message, title="Failed to load sale details", severity="error")
            return
        await self.query_one("#md-sale", Markdown).update(sale_markdown(self.sale))

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    @on(Button.Pressed, "#btn-close")
    def handle_close(self) -> None:
        self.dismiss(None)
