from typing import Optional

from textual import work
from textual.app import ComposeResult
from textual.widgets import Select

from api.client import ApiError
from api.models import PAYMENT_METHODS, ListQuery, PageResult, Sale
from utils.pure import format_date, format_money
from views.modal_sale import SaleModal
from views.modal_sale_detail import SaleDetailModal
from views.scr_list_base import ListScreen
from views.widgets import Column


class SalesScreen(ListScreen):
    COLUMNS = (
        Column("Sale #", lambda s: s.sale_number),
        Column("Date", lambda s: format_date(s.created_at)),
        Column("Cashier", lambda s: s.cashier_name or "-"),
        Column("Items", lambda s: len(s.items)),
        Column("Total", lambda s: format_money(s.total_amount)),
        Column("Discount", lambda s: format_money(s.discount_amount)),
        Column("Final", lambda s: format_money(s.final_amount)),
        Column("Payment", lambda s: s.payment_method),
    )
    ENTITY = "sale"
    EMPTY_MESSAGE = "No sales found"
    SEARCH_PLACEHOLDER = "Search by sale number..."
    SHOW_DATES = True
    DELETE_CONSEQUENCE = (
        "This will cancel the sale and restore stock quantities. "
        "This action cannot be undone."
    )

    def compose_filters(self) -> ComposeResult:
        yield Select(
            [(m.title(), m) for m in PAYMENT_METHODS],
            prompt="All payments",
            id="filter-paymentMethod",
        )

    async def fetch_page(self, query: ListQuery) -> PageResult[Sale]:
        return await self.app.api.sales.list(query)

    async def remove_record(self, record: Sale) -> None:
        await self.app.api.sales.delete(record.id)

    def can_create(self) -> bool:
        return self.capabilities.manage_sales

    can_edit = can_create
    can_delete = can_create

    def describe(self, record: Sale) -> str:
        return f"sale {record.sale_number}"

    def row_action(self):
        return self.open_detail

    @work(exclusive=True, group="list-detail", exit_on_error=False)
    async def open_detail(self, sale: Sale) -> None:
        await self.app.push_screen_wait(SaleDetailModal(sale))

    async def make_form(self, record: Optional[Sale] = None) -> Optional[SaleModal]:
        if record is None:
            return SaleModal()
        try:
            # list rows may come without their items
            sale = await self.app.api.sales.get_one(record.id)
        except ApiError as e:
            self.notify(e.user_message, title="Failed to load sale", severity="error")
            return None
        return SaleModal(sale)
