import os
import sys
import unittest

from textual.app import App
from textual.validation import Integer, Length, Number
from textual.widgets import Input

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from core.errors import ValidationError  # noqa: E402
from views.modal_form import FieldSpec, FormModal, parse_form  # noqa: E402

PRODUCT_FORM = (
    FieldSpec("name", "Name", required=True, max_length=100),
    FieldSpec("unitPrice", "Unit price", kind="number", required=True, minimum=0),
    FieldSpec("minStockLevel", "Minimum stock", kind="integer", minimum=0),
    FieldSpec("barcode", "Barcode"),
    FieldSpec("isActive", "Active", kind="bool"),
    FieldSpec("categoryId", "Category", kind="choice", choices=(("Dairy", "c1"),)),
)


class FieldSpecTestCase(unittest.TestCase):
    def test_required(self):
        field = FieldSpec("name", "Name", required=True)
        with self.assertRaises(ValidationError) as cm:
            field.parse("   ")
        self.assertEqual(cm.exception.message, "Name is required.")
        self.assertEqual(cm.exception.field, "name")

    def test_optional_empty_is_none(self):
        self.assertIsNone(FieldSpec("barcode", "Barcode").parse(""))
        self.assertIsNone(FieldSpec("barcode", "Barcode").parse(None))

    def test_numbers(self):
        self.assertEqual(FieldSpec("q", "Qty", kind="integer").parse("12"), 12)
        self.assertEqual(FieldSpec("p", "Price", kind="number").parse("2.50"), 2.5)
        with self.assertRaises(ValidationError):
            FieldSpec("q", "Qty", kind="integer").parse("1.5")
        with self.assertRaises(ValidationError) as cm:
            FieldSpec("p", "Price", kind="number", minimum=0).parse("-1")
        self.assertEqual(cm.exception.message, "Price must be a number no less than 0.")

    def test_lengths(self):
        pwd = FieldSpec("password", "Password", kind="password", min_length=6)
        with self.assertRaises(ValidationError) as cm:
            pwd.parse("12345")
        self.assertEqual(cm.exception.message, "Password must be at least 6 characters.")
        self.assertEqual(pwd.parse("123456"), "123456")

        notes = FieldSpec("notes", "Notes", max_length=5)
        with self.assertRaises(ValidationError):
            notes.parse("too long")

    def test_choice(self):
        field = FieldSpec("role", "Role", kind="choice", choices=(("Cashier", "r1"),))
        self.assertEqual(field.parse("r1"), "r1")
        with self.assertRaises(ValidationError) as cm:
            field.parse("r2")
        self.assertEqual(cm.exception.message, "Pick a valid role.")

    def test_bool(self):
        field = FieldSpec("isActive", "Active", kind="bool")
        self.assertIs(field.parse(False), False)
        self.assertIs(field.parse(True), True)

    def test_validators_follow_the_field(self):
        price = FieldSpec("p", "Price", kind="number", required=True, minimum=0)
        kinds = [type(v) for v in price.validators()]
        self.assertEqual(kinds, [Length, Number])
        self.assertFalse(price.validators()[1].validate("-1").is_valid)
        self.assertTrue(price.validators()[1].validate("0").is_valid)

        qty = FieldSpec("q", "Qty", kind="integer")
        self.assertEqual([type(v) for v in qty.validators()], [Integer])

        name = FieldSpec("n", "Name", min_length=2, max_length=4)
        (length,) = name.validators()
        self.assertFalse(length.validate("abcde").is_valid)
        self.assertEqual(
            length.validate("a").failure_descriptions, ["Name must be 2 to 4 characters."]
        )

        self.assertEqual(FieldSpec("a", "Active", kind="bool").validators(), [])


class ParseFormTestCase(unittest.TestCase):
    def test_payload_leaves_out_empty_optionals(self):
        raw = {
            "name": " Milk ",
            "unitPrice": "15",
            "minStockLevel": "",
            "barcode": "",
            "isActive": False,
            "categoryId": "c1",
        }
        self.assertEqual(
            parse_form(PRODUCT_FORM, raw),
            {"name": "Milk", "unitPrice": 15.0, "isActive": False, "categoryId": "c1"},
        )

    def test_first_invalid_field_raises(self):
        raw = {"name": "", "unitPrice": "abc"}
        with self.assertRaises(ValidationError) as cm:
            parse_form(PRODUCT_FORM, raw)
        self.assertEqual(cm.exception.field, "name")


class FormApp(App):
    def __init__(self):
        super().__init__()
        self.saved = []
        self.results = []

    async def save(self, payload):
        self.saved.append(payload)

    def on_mount(self) -> None:
        fields = PRODUCT_FORM[:3]
        self.push_screen(FormModal("New product", fields, self.save), self.results.append)


class FormModalTestCase(unittest.IsolatedAsyncioTestCase):
    async def test_invalid_input_blocks_submit(self):
        app = FormApp()
        async with app.run_test() as pilot:
            form = app.screen
            self.assertIsInstance(form, FormModal)
            form.query_one("#field-name", Input).value = "Milk"
            price = form.query_one("#field-unitPrice", Input)
            price.value = "-1"
            await pilot.pause()
            self.assertTrue(price.has_class("-invalid"))

            form.handle_submit()
            await app.workers.wait_for_complete()
            await pilot.pause()
            self.assertEqual(app.saved, [])
            self.assertIs(app.screen, form)
            self.assertTrue(price.has_class("-invalid"))

            price.value = "2.5"
            await pilot.pause()
            self.assertFalse(price.has_class("-invalid"))

            form.handle_submit()
            await app.workers.wait_for_complete()
            await pilot.pause()
            self.assertEqual(app.saved, [{"name": "Milk", "unitPrice": 2.5}])
            self.assertEqual(app.results, [True])

    async def test_empty_required_field_is_caught_on_submit(self):
        app = FormApp()
        async with app.run_test() as pilot:
            form = app.screen
            form.handle_submit()
            await app.workers.wait_for_complete()
            await pilot.pause()
            self.assertEqual(app.saved, [])
            self.assertTrue(form.query_one("#field-name", Input).has_class("-invalid"))


if __name__ == "__main__":
    unittest.main()
