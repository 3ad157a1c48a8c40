from typing import Optional

from textual.app import ComposeResult
from textual.widgets import Input, Select

from api.client import ApiError
from api.models import MOVEMENT_TYPES, ListQuery, PageResult, StockMovement
from utils import config
from utils.pure import format_date, format_money, format_qty
from views.modal_form import FieldSpec, FormModal
from views.scr_list_base import ListScreen
from views.widgets import Column

MOVEMENT_CHOICES = tuple((t.title(), t) for t in MOVEMENT_TYPES)


class StockMovementsScreen(ListScreen):
    REQUIRES = "view_stock"

    COLUMNS = (
        Column("Date", lambda m: format_date(m.created_at)),
        Column("Product", lambda m: m.product_name or m.product_id),
        Column("Type", lambda m: m.movement_type),
        Column("Qty", lambda m: format_qty(m.quantity)),
        Column("Unit price", lambda m: format_money(m.unit_price)),
        Column("Reference", lambda m: m.reference_number or "-"),
        Column("Notes", lambda m: m.notes or "-"),
        Column("By", lambda m: m.created_by_name or "-"),
    )
    ENTITY = "stock movement"
    EMPTY_MESSAGE = "No stock movements found"
    SEARCH_PLACEHOLDER = "Search product or reference..."
    SHOW_DATES = True

    def compose_filters(self) -> ComposeResult:
        yield Input(placeholder="Product ID", id="filter-productId", classes="filter-input")
        yield Select(MOVEMENT_CHOICES, prompt="All types", id="filter-movementType")

    async def fetch_page(self, query: ListQuery) -> PageResult[StockMovement]:
        return await self.app.api.stock.list(query)

    def can_create(self) -> bool:
        return self.capabilities.create_stock_movement

    async def make_form(self, record=None) -> Optional[FormModal]:
        try:
            products = await self.app.api.products.list(
                ListQuery(page_size=config.DASHBOARD_PRODUCT_SAMPLE)
            )
        except ApiError as e:
            self.notify(e.user_message, title="Failed to load products", severity="error")
            return None

        fields = (
            FieldSpec(
                "productId",
                "Product",
                kind="choice",
                required=True,
                choices=tuple((f"{p.name} ({p.sku})", p.id) for p in products.items),
            ),
            FieldSpec(
                "movementType",
                "Movement type",
                kind="choice",
                required=True,
                choices=MOVEMENT_CHOICES,
            ),
            FieldSpec(
                "quantity",
                "Quantity",
                kind="number",
                required=True,
                placeholder="positive adds, negative removes",
            ),
            FieldSpec("unitPrice", "Unit price", kind="number", required=True, minimum=0),
            FieldSpec("referenceId", "Reference ID", placeholder="Sale or purchase id"),
            FieldSpec("notes", "Notes", max_length=1000),
        )
        return FormModal(
            "New stock movement",
            fields,
            self.app.api.stock.create,
            initial={"movementType": "PURCHASE"},
        )
