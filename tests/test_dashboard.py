import os
import sys
import unittest
from datetime import date

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from api.client import ApiError, ErrorKind  # noqa: E402
from api.models import DashboardStats, PageResult, Product, SalesSummary  # noqa: E402
from core.dashboard import count_low_stock, load_dashboard  # noqa: E402


def product(pid: str, stock: float, minimum: float, active: bool = True) -> Product:
    return Product(
        id=pid,
        name=pid,
        sku=pid.upper(),
        category_id="c1",
        unit_price=1.0,
        stock_quantity=stock,
        min_stock_level=minimum,
        is_active=active,
    )


class FakeReports:
    def __init__(self, summary=None, error=None):
        self.summary = summary
        self.error = error
        self.ranges = []

    async def sales_summary(self, start, end):
        self.ranges.append((start, end))
        if self.error:
            raise self.error
        return self.summary


class FakeProducts:
    def __init__(self, items, total=None):
        self.items = items
        self.total = len(items) if total is None else total
        self.queries = []

    async def list(self, query):
        self.queries.append(query)
        return PageResult(items=tuple(self.items), total=self.total)


class FakeApi:
    def __init__(self, reports, products):
        self.reports = reports
        self.products = products


class DashboardTestCase(unittest.IsolatedAsyncioTestCase):
    def test_low_stock_counts_active_at_or_below_minimum(self):
        products = [
            product("a", 0, 5),
            product("b", 5, 5),
            product("c", 6, 5),
            product("d", 1, 5, active=False),
        ]
        self.assertEqual(count_low_stock(products), 2)
        self.assertEqual(count_low_stock([]), 0)

    async def test_load_dashboard(self):
        reports = FakeReports(SalesSummary(total_sales=812.5, total_orders=9))
        # only the first page comes back, the server counts 250
        products = FakeProducts([product("a", 2, 5), product("b", 50, 5)], total=250)
        today = date(2024, 5, 1)

        stats = await load_dashboard(FakeApi(reports, products), today)

        self.assertEqual(
            stats,
            DashboardStats(today_sales=812.5, today_orders=9, total_products=250, low_stock=1),
        )
        self.assertEqual(reports.ranges, [(today, today)])
        self.assertEqual(products.queries[0].page, 1)
        self.assertEqual(products.queries[0].page_size, 100)

    async def test_errors_propagate(self):
        reports = FakeReports(error=ApiError(ErrorKind.FORBIDDEN, 403))
        with self.assertRaises(ApiError) as cm:
            await load_dashboard(FakeApi(reports, FakeProducts([])), date(2024, 5, 1))
        self.assertIs(cm.exception.kind, ErrorKind.FORBIDDEN)


if __name__ == "__main__":
    unittest.main()
