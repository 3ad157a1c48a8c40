from typing import List, Optional, Tuple

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.widgets import Button, Select

from api.client import ApiError
from api.models import ListQuery, PageResult, Product
from utils.logger import get_logger
from utils.pure import format_money, format_qty, stock_status
from views.modal_adjust_stock import AdjustStockModal
from views.modal_form import FieldSpec, FormModal
from views.scr_list_base import ListScreen
from views.widgets import Column, ResourceTable

_logger = get_logger(__name__)


def product_fields(categories: List[Tuple[str, str]]) -> Tuple[FieldSpec, ...]:
    return (
        FieldSpec("name", "Name", required=True, placeholder="Milk", max_length=255),
        FieldSpec("sku", "SKU", required=True, placeholder="MLK-01", max_length=100),
        FieldSpec("barcode", "Barcode", placeholder="8690123456789", max_length=100),
        FieldSpec(
            "categoryId", "Category", kind="choice", required=True, choices=tuple(categories)
        ),
        FieldSpec("unitPrice", "Unit price", kind="number", required=True, minimum=0),
        FieldSpec("costPrice", "Cost price", kind="number", minimum=0),
        FieldSpec("stockQuantity", "Stock quantity", kind="number", minimum=0),
        FieldSpec("minStockLevel", "Minimum stock level", kind="number", minimum=0),
        FieldSpec("isActive", "Active", kind="bool"),
    )


class ProductsScreen(ListScreen):
    BINDINGS = [
        Binding("f6", "adjust", "Adjust Stock", show=True),
    ]

    COLUMNS = (
        Column("Name", lambda p: p.name),
        Column("SKU", lambda p: p.sku),
        Column("Category", lambda p: p.category_name or "-"),
        Column("Price", lambda p: format_money(p.unit_price)),
        Column("Stock", lambda p: format_qty(p.stock_quantity)),
        Column("Min", lambda p: format_qty(p.min_stock_level)),
        Column("Status", lambda p: stock_status(p.stock_quantity, p.min_stock_level)),
        Column("Active", lambda p: "Yes" if p.is_active else "No"),
    )
    ENTITY = "product"
    EMPTY_MESSAGE = "No products found"
    SEARCH_PLACEHOLDER = "Search by name, SKU or barcode..."

    def compose_filters(self) -> ComposeResult:
        yield Select([], prompt="All categories", id="filter-categoryId")

    def compose_actions(self) -> ComposeResult:
        yield Button("Adjust stock", id="btn-adjust", variant="warning")

    async def fetch_page(self, query: ListQuery) -> PageResult[Product]:
        return await self.app.api.products.list(query)

    async def remove_record(self, record: Product) -> None:
        await self.app.api.products.delete(record.id)

    def can_create(self) -> bool:
        return self.capabilities.manage_products

    can_edit = can_create
    can_delete = can_create

    def check_action(self, action: str, parameters) -> Optional[bool]:
        if action == "adjust":
            return self.capabilities.adjust_stock
        return super().check_action(action, parameters)

    def update_actions(self) -> None:
        super().update_actions()
        self.query_one("#btn-adjust").display = self.capabilities.adjust_stock

    def reload_data(self) -> None:
        self.load_categories()
        super().reload_data()

    async def category_choices(self) -> List[Tuple[str, str]]:
        return [(c.name, c.id) for c in await self.app.api.categories.all()]

    @work(exclusive=True, group="categories", exit_on_error=False)
    async def load_categories(self) -> None:
        try:
            choices = await self.category_choices()
        except ApiError as e:
            _logger.info(f"category filter unavailable: {e!r}")
            return
        select = self.query_one("#filter-categoryId", Select)
        current = select.value
        with self.prevent(Select.Changed):
            select.set_options(choices)
            if isinstance(current, str) and current in {v for _, v in choices}:
                select.value = current

    async def make_form(self, record: Optional[Product] = None) -> Optional[FormModal]:
        try:
            choices = await self.category_choices()
        except ApiError as e:
            self.notify(e.user_message, title="Could not load categories", severity="error")
            return None
        if not choices:
            self.notify("Create a category first.", severity="warning")
            return None

        fields = product_fields(choices)
        products = self.app.api.products
        if record is None:
            return FormModal("New product", fields, products.create)
        return FormModal(
            f"Edit {record.name}",
            fields,
            lambda payload: products.update(record.id, payload),
            initial={
                "name": record.name,
                "sku": record.sku,
                "barcode": record.barcode,
                "categoryId": record.category_id,
                "unitPrice": record.unit_price,
                "costPrice": record.cost_price,
                "stockQuantity": record.stock_quantity,
                "minStockLevel": record.min_stock_level,
                "isActive": record.is_active,
            },
        )

    @on(Button.Pressed, "#btn-adjust")
    @work(exclusive=True, group="list-mutate", exit_on_error=False)
    async def action_adjust(self) -> None:
        product = self.query_one(ResourceTable).highlighted
        if product is None:
            self.notify("Select a product first.", severity="warning")
            return
        if await self.app.push_screen_wait(AdjustStockModal(product)):
            self.load_page()
