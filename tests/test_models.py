import os
import sys
import unittest
from datetime import date, datetime, timezone

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from api.models import (  # noqa: E402
    ListQuery,
    PageResult,
    Product,
    Sale,
    SaleDraft,
    SaleLine,
    Session,
    User,
)
from core.errors import ValidationError  # noqa: E402


class ListQueryTestCase(unittest.TestCase):
    def test_defaults_and_params(self):
        query = ListQuery()
        self.assertEqual(query.to_params(), {"page": 1, "limit": 10})

        query = ListQuery(
            page=2,
            search="milk",
            start_date=date(2024, 5, 1),
            end_date=date(2024, 5, 31),
        ).with_changes(page=3)
        self.assertEqual(
            query.to_params(),
            {
                "page": 3,
                "limit": 10,
                "search": "milk",
                "startDate": "2024-05-01",
                "endDate": "2024-05-31",
            },
        )

    def test_invalid_values(self):
        with self.assertRaises(ValidationError):
            ListQuery(page=0)
        with self.assertRaises(ValidationError):
            ListQuery(page_size=0)
        with self.assertRaises(ValidationError):
            ListQuery(start_date=date(2024, 5, 2), end_date=date(2024, 5, 1))

    def test_changes_reset_page(self):
        query = ListQuery(page=4)
        self.assertEqual(query.with_changes(search="x").page, 1)
        self.assertEqual(query.with_changes(page_size=25).page, 1)
        self.assertEqual(query.with_filter("role", "Cashier").page, 1)
        self.assertEqual(query.with_changes(search="").page, 4)

    def test_filters(self):
        query = ListQuery().with_filter("role", "Cashier").with_filter("categoryId", "c1")
        self.assertEqual(query.filter_map, {"role": "Cashier", "categoryId": "c1"})
        self.assertEqual(query.with_filter("role", None).filter_map, {"categoryId": "c1"})
        self.assertEqual(query.with_filter("role", ""), query.with_filter("role", None))
        # order of insertion does not matter
        other = ListQuery().with_filter("categoryId", "c1").with_filter("role", "Cashier")
        self.assertEqual(query, other)


class PageResultTestCase(unittest.TestCase):
    def test_envelope_without_total(self):
        result = PageResult.from_body({"data": [{"id": 1}, {"id": 2}]}, dict)
        self.assertEqual(result.total, 2)

    def test_empty_bodies(self):
        self.assertEqual(PageResult.from_body(None, dict), PageResult())
        self.assertEqual(PageResult.from_body([], dict), PageResult())
        self.assertEqual(PageResult.from_body({"data": None, "total": -3}, dict).total, 0)


class RecordTestCase(unittest.TestCase):
    def test_product_from_strings(self):
        product = Product.from_dict(
            {
                "id": 7,
                "name": "Bread",
                "sku": "BRD",
                "unitPrice": "4.50",
                "costPrice": "",
                "stockQuantity": "12",
                "minStockLevel": None,
                "category": {"id": "c2", "name": "Bakery"},
            }
        )
        self.assertEqual(product.id, "7")
        self.assertEqual(product.category_id, "c2")
        self.assertEqual(product.unit_price, 4.5)
        self.assertIsNone(product.cost_price)
        self.assertEqual(product.min_stock_level, 0.0)
        self.assertTrue(product.is_active)

    def test_sale_with_items(self):
        sale = Sale.from_dict(
            {
                "id": "s1",
                "saleNumber": "S-0001",
                "totalAmount": "30",
                "discountAmount": "5",
                "finalAmount": "25",
                "paymentMethod": "CARD",
                "createdAt": "2024-05-01T10:00:00Z",
                "items": [{"productId": "p1", "quantity": 2, "unitPrice": "15", "lineTotal": 30}],
            }
        )
        self.assertEqual(sale.final_amount, 25.0)
        self.assertEqual(sale.created_at, datetime(2024, 5, 1, 10, tzinfo=timezone.utc))
        self.assertEqual(sale.items[0].line_total, 30.0)

    def test_user_roles_and_session(self):
        user = User.from_dict(
            {
                "id": "u1",
                "email": "ayse@shop.test",
                "firstName": "",
                "lastName": "",
                "roles": [{"id": "r1", "name": "Cashier"}, "Viewer"],
            }
        )
        self.assertEqual(user.roles, ("Cashier", "Viewer"))
        session = Session.from_auth("tok", user)
        # no name falls back to the email
        self.assertEqual(session.display_name, "ayse@shop.test")
        self.assertEqual(session.roles, frozenset({"Cashier", "Viewer"}))
        self.assertEqual(User.from_dict(user.to_dict()), user)


class SaleDraftTestCase(unittest.TestCase):
    def test_totals(self):
        draft = SaleDraft()
        draft.add_line(SaleLine("p1", "Milk", 2, 15))
        draft.add_line(SaleLine("p2", "Bread", 1, 4.5, discount_amount=0.5))
        self.assertEqual(draft.subtotal, 34.0)

        draft.set_discount(4)
        self.assertEqual(draft.total, 30.0)
        draft.set_discount(100)
        self.assertEqual(draft.total, 0.0)

    def test_invalid_lines(self):
        draft = SaleDraft()
        with self.assertRaises(ValidationError):
            draft.add_line(SaleLine("p1", "Milk", 0, 15))
        with self.assertRaises(ValidationError):
            draft.add_line(SaleLine("p1", "Milk", 1, -1))
        draft.add_line(SaleLine("p1", "Milk", 1, 15))
        with self.assertRaises(ValidationError) as cm:
            draft.add_line(SaleLine("p1", "Milk", 3, 15))
        self.assertEqual(cm.exception.message, "Product already added. Update quantity instead.")
        with self.assertRaises(ValidationError):
            draft.set_discount(-1)

    def test_remove_and_payload(self):
        draft = SaleDraft(payment_method="CARD")
        draft.add_line(SaleLine("p1", "Milk", 2, 15))
        draft.add_line(SaleLine("p2", "Bread", 1, 4.5))
        draft.remove_line("p2")
        self.assertEqual(
            draft.to_payload(),
            {
                "items": [{"productId": "p1", "quantity": 2, "unitPrice": 15}],
                "paymentMethod": "CARD",
            },
        )

    def test_from_sale(self):
        sale = Sale.from_dict(
            {
                "id": "s1",
                "paymentMethod": "MIXED",
                "discountAmount": "2",
                "items": [{"productId": "p1", "quantity": 1, "unitPrice": 10}],
            }
        )
        draft = SaleDraft.from_sale(sale)
        self.assertEqual(draft.payment_method, "MIXED")
        self.assertEqual(draft.discount_amount, 2.0)
        self.assertEqual(draft.lines[0].product_name, "p1")
        self.assertEqual(draft.total, 8.0)


if __name__ == "__main__":
    unittest.main()
