import os
import sys
import unittest

from textual.app import App, ComposeResult
from textual.widgets import Button, Input

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from api.models import Session  # noqa: E402
from api.resources import paginate_locally  # noqa: E402
from utils.state import GlobalState  # noqa: E402
from views.scr_list_base import ListScreen  # noqa: E402
from views.widgets import Column, PaginationBar, ResourceTable, build_rows  # noqa: E402

COLUMNS = (
    Column("Name", lambda r: r["name"]),
    Column("Qty", lambda r: str(r["qty"])),
)
ROWS = [{"name": "Milk", "qty": 3}, {"name": "Bread", "qty": 12}]


class WidgetApp(App):
    def __init__(self):
        super().__init__()
        self.clicked = []

    def compose(self) -> ComposeResult:
        yield ResourceTable(COLUMNS, empty_message="Nothing here", id="table")
        yield PaginationBar(id="pager")


class BuildRowsTestCase(unittest.TestCase):
    def test_column_order(self):
        self.assertEqual(build_rows(COLUMNS, ROWS), [["Milk", "3"], ["Bread", "12"]])
        self.assertEqual(build_rows(COLUMNS, []), [])


class ResourceTableTestCase(unittest.IsolatedAsyncioTestCase):
    async def test_empty_message_only_without_rows(self):
        app = WidgetApp()
        async with app.run_test() as pilot:
            table = app.query_one(ResourceTable)
            self.assertTrue(table.empty_visible)
            self.assertIsNone(table.highlighted)

            table.show(ROWS)
            await pilot.pause()
            self.assertFalse(table.empty_visible)
            self.assertEqual(table.row_count, 2)
            self.assertEqual(table.highlighted, ROWS[0])

            table.show((), loading=True)
            await pilot.pause()
            self.assertFalse(table.empty_visible)
            self.assertIsNone(table.highlighted)

            table.show(())
            await pilot.pause()
            self.assertTrue(table.empty_visible)
            self.assertEqual(table.row_count, 0)

    async def test_row_click_callback(self):
        app = WidgetApp()
        async with app.run_test() as pilot:
            table = app.query_one(ResourceTable)
            table.on_row_click = app.clicked.append
            table.show(ROWS)
            await pilot.pause()

            table.query_one("DataTable").focus()
            await pilot.press("down", "enter")
            await pilot.pause()

            self.assertEqual(app.clicked, [ROWS[1]])


class PaginationBarTestCase(unittest.IsolatedAsyncioTestCase):
    async def test_page_info_and_buttons(self):
        app = WidgetApp()
        async with app.run_test() as pilot:
            pager = app.query_one(PaginationBar)

            pager.update_page(2, 3, 25, 10)
            await pilot.pause()
            self.assertEqual(pager.page_info, "Showing 11 to 20 of 25  |  Page 2 of 3")
            self.assertFalse(pager.query_one("#btn-prev", Button).disabled)
            self.assertFalse(pager.query_one("#btn-next", Button).disabled)

            pager.update_page(3, 3, 25, 10)
            self.assertEqual(pager.page_info, "Showing 21 to 25 of 25  |  Page 3 of 3")
            self.assertTrue(pager.query_one("#btn-next", Button).disabled)

            pager.update_page(1, 0, 0, 10)
            self.assertEqual(pager.page_info, "No items")
            self.assertTrue(pager.query_one("#btn-prev", Button).disabled)
            self.assertTrue(pager.query_one("#btn-next", Button).disabled)


NAMES = ["Milk", "Milk 1L", "Bread", "Cheese"]


class NameListScreen(ListScreen):
    COLUMNS = (Column("Name", lambda r: r),)
    ENTITY = "name"

    def __init__(self):
        super().__init__()
        self.queries = []

    async def fetch_page(self, query):
        self.queries.append(query)
        return paginate_locally(NAMES, query, lambda r, term: term in r.lower())


class ListApp(App):
    MENU = ()

    def __init__(self):
        super().__init__()
        self.state = GlobalState(
            session=Session(
                user_id="u1", display_name="Admin", roles=frozenset({"TenantAdmin"})
            )
        )
        self.screen_under_test = None
        self.worker_errors = []

    def report_worker_error(self, worker) -> None:
        self.worker_errors.append(worker.error)

    def on_mount(self) -> None:
        self.screen_under_test = NameListScreen()
        self.push_screen(self.screen_under_test)


class ListScreenSearchTestCase(unittest.IsolatedAsyncioTestCase):
    async def test_typing_burst_fetches_once_with_final_term(self):
        app = ListApp()
        async with app.run_test(size=(120, 40)) as pilot:
            await pilot.pause()
            await app.workers.wait_for_complete()
            screen = app.screen_under_test
            self.assertTrue(screen.queries)
            self.assertEqual({q.search for q in screen.queries}, {""})
            before = len(screen.queries)

            screen.query_one("#input-search", Input).focus()
            await pilot.press("m", "i", "l", "k", "1")
            # keystrokes are well inside the debounce window
            self.assertEqual(len(screen.queries), before)

            await pilot.pause(0.6)
            await app.workers.wait_for_complete()
            await pilot.pause()

            self.assertEqual([q.search for q in screen.queries[before:]], ["milk1"])
            self.assertEqual(screen.controller.items, ())
            self.assertEqual(screen.controller.query.page, 1)
            self.assertEqual(app.worker_errors, [])


if __name__ == "__main__":
    unittest.main()
