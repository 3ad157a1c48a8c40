from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, Label, Select, Static

from utils import config

T = TypeVar("T")


@dataclass(frozen=True)
class Column(Generic[T]):
    header: str
    render: Callable[[T], Any]


def build_rows(columns: Sequence[Column[T]], items: Sequence[T]) -> List[List[Any]]:
    """
    One row per item, one cell per column, in column order.
    """
    return [[col.render(item) for col in columns] for item in items]


class ResourceTable(Vertical):
    """
    Renders a sequence of records through column descriptors.

    Holds no data of its own beyond the records it was last handed.
    `loading` hides the rows behind a loading indicator; the empty message
    only shows when not loading and there are no rows. Rows only react to
    selection when `on_row_click` is set.
    """

    DEFAULT_CSS = """
    ResourceTable {
        height: 1fr;
    }
    ResourceTable > DataTable {
        height: 1fr;
    }
    ResourceTable > .empty-message {
        color: $text-muted;
        padding: 1 2;
    }
    """

    def __init__(
        self,
        columns: Sequence[Column[T]],
        empty_message: str = "No records found",
        on_row_click: Optional[Callable[[T], Any]] = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.columns: Tuple[Column[T], ...] = tuple(columns)
        self.empty_message = empty_message
        self.on_row_click = on_row_click
        self._items: Tuple[T, ...] = ()

    def compose(self) -> ComposeResult:
        yield DataTable(cursor_type="row", zebra_stripes=True)
        yield Static(self.empty_message, classes="empty-message")

    def on_mount(self) -> None:
        self.query_one(DataTable).add_columns(*(c.header for c in self.columns))
        self.show(())

    @property
    def items(self) -> Tuple[T, ...]:
        return self._items

    @property
    def row_count(self) -> int:
        return self.query_one(DataTable).row_count

    @property
    def highlighted(self) -> Optional[T]:
        table = self.query_one(DataTable)
        if table.loading or not self._items:
            return None
        row = table.cursor_row
        if row is None or not 0 <= row < len(self._items):
            return None
        return self._items[row]

    @property
    def empty_visible(self) -> bool:
        return self.query_one(".empty-message", Static).display

    def show(self, items: Sequence[T], loading: bool = False) -> None:
        table = self.query_one(DataTable)
        table.clear()
        self._items = () if loading else tuple(items)
        for idx, row in enumerate(build_rows(self.columns, self._items)):
            table.add_row(*row, key=str(idx))
        table.loading = loading
        self.query_one(".empty-message", Static).display = (
            not loading and not self._items
        )

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        event.stop()
        if self.on_row_click is None:
            return
        idx = int(event.row_key.value)
        if 0 <= idx < len(self._items):
            self.on_row_click(self._items[idx])


class PaginationBar(Horizontal):
    """
    Prev / next, position text and a page size picker. The owning screen
    handles #btn-prev, #btn-next and #select-page-size.
    """

    DEFAULT_CSS = """
    PaginationBar {
        height: auto;
        align: left middle;
    }
    PaginationBar > #label-page-info {
        padding: 0 2;
        width: 1fr;
    }
    PaginationBar > Select {
        width: 20;
    }
    """

    page_info = ""

    def compose(self) -> ComposeResult:
        yield Button("<", id="btn-prev")
        yield Label("", id="label-page-info")
        yield Button(">", id="btn-next")
        yield Select(
            [(f"{n} / page", n) for n in config.PAGE_SIZES],
            value=config.DEFAULT_PAGE_SIZE,
            allow_blank=False,
            id="select-page-size",
        )

    def update_page(
        self, page: int, page_count: int, total: int, page_size: int
    ) -> None:
        if total:
            first = (page - 1) * page_size + 1
            last = min(page * page_size, total)
            info = f"Showing {first} to {last} of {total}  |  Page {page} of {page_count}"
        else:
            info = "No items"
        self.page_info = info
        self.query_one("#label-page-info", Label).update(info)
        self.query_one("#btn-prev", Button).disabled = page <= 1
        self.query_one("#btn-next", Button).disabled = page >= page_count
