import os
import sys
import unittest
from datetime import date, datetime

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from core.errors import ValidationError  # noqa: E402
from utils.pure import (  # noqa: E402
    NEW_QUANTITY,
    format_date,
    format_money,
    format_qty,
    generate_markdown_table,
    parse_date,
    stock_status,
    summarize_adjustment,
)


class MarkdownTableTestCase(unittest.TestCase):
    def test_headers_and_alignment(self):
        md = generate_markdown_table(["Name", "Qty"], [["Milk", "3"]], ["l", "r"])
        self.assertEqual(md.splitlines(), ["| Name | Qty |", "| :--- | ---: |", "| Milk | 3 |"])

    def test_first_row_as_headers(self):
        md = generate_markdown_table(None, [["A", "B"], ["1", "2"]])
        self.assertTrue(md.startswith("| A | B |\n| :---: | :---: |"))

    def test_pipes_are_escaped(self):
        md = generate_markdown_table(["Notes"], [["a|b"]])
        self.assertIn("a\\|b", md)

    def test_empty_and_mismatched(self):
        self.assertEqual(generate_markdown_table(["X"], []), "")
        with self.assertRaises(ValueError):
            generate_markdown_table(["A", "B"], [["1", "2"]], ["l"])


class FormattingTestCase(unittest.TestCase):
    def test_money(self):
        self.assertEqual(format_money(1234.5), "₺1,234.50")
        self.assertEqual(format_money(0), "₺0.00")

    def test_qty(self):
        self.assertEqual(format_qty(3.0), "3")
        self.assertEqual(format_qty(2.5), "2.5")

    def test_date(self):
        self.assertEqual(format_date(None), "-")
        self.assertEqual(format_date(datetime(2024, 5, 1, 9, 5)), "2024-05-01 09:05")

    def test_parse_date(self):
        self.assertIsNone(parse_date(""))
        self.assertIsNone(parse_date("   "))
        self.assertEqual(parse_date("2024-05-01"), date(2024, 5, 1))
        with self.assertRaises(ValidationError) as cm:
            parse_date("2024-13-01", "start_date")
        self.assertEqual(cm.exception.field, "start_date")


class StockTestCase(unittest.TestCase):
    def test_stock_status(self):
        self.assertEqual(stock_status(0, 5), "Out of Stock")
        self.assertEqual(stock_status(-2, 5), "Out of Stock")
        self.assertEqual(stock_status(5, 5), "Low Stock")
        self.assertEqual(stock_status(6, 5), "In Stock")

    def test_removal_is_red(self):
        summary = summarize_adjustment(10, "7")
        self.assertEqual(summary.difference, -3)
        self.assertTrue(summary.is_negative)
        self.assertEqual(summary.difference_text, "-3.00")
        self.assertIn("red", summary.markup)
        self.assertIn("▼", summary.markup)

    def test_addition_is_green(self):
        summary = summarize_adjustment(10, " 12.5 ")
        self.assertEqual(summary.difference_text, "+2.50")
        self.assertIn("green", summary.markup)
        self.assertIn("▲", summary.markup)

    def test_no_change(self):
        summary = summarize_adjustment(4, "4")
        self.assertEqual(summary.difference, 0)
        self.assertFalse(summary.is_negative)

    def test_invalid_quantities(self):
        for raw in ("", "abc", "-1"):
            with self.assertRaises(ValidationError) as cm:
                summarize_adjustment(10, raw)
            self.assertEqual(cm.exception.field, "newQuantity")

    def test_shared_quantity_validator(self):
        self.assertTrue(NEW_QUANTITY.validate("0").is_valid)
        self.assertFalse(NEW_QUANTITY.validate("abc").is_valid)
        with self.assertRaises(ValidationError) as cm:
            summarize_adjustment(10, "-1")
        self.assertEqual(
            cm.exception.message, "New quantity must be a number no less than 0."
        )


if __name__ == "__main__":
    unittest.main()
