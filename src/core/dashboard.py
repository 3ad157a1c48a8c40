import asyncio
from datetime import date
from typing import Iterable, Optional

from api.models import DashboardStats, ListQuery, Product
from api.resources import PosApi
from utils import config


def count_low_stock(products: Iterable[Product]) -> int:
    """Active products at or below their minimum stock level."""
    return sum(
        1 for p in products if p.is_active and p.stock_quantity <= p.min_stock_level
    )


async def load_dashboard(api: PosApi, today: Optional[date] = None) -> DashboardStats:
    """
    Today's sales and order count from the sales summary. The product total
    is the server's count; low stock is counted over the first page.
    """
    today = today or date.today()
    summary, products = await asyncio.gather(
        api.reports.sales_summary(today, today),
        api.products.list(
            ListQuery(page=1, page_size=config.DASHBOARD_PRODUCT_SAMPLE)
        ),
    )
    return DashboardStats(
        today_sales=summary.total_sales,
        today_orders=summary.total_orders,
        total_products=products.total,
        low_stock=count_low_stock(products.items),
    )
