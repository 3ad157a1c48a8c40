from typing import Any, Callable, Dict, Optional, Sequence

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Select

from api.client import ApiError
from api.models import ListQuery, PageResult
from core.errors import ValidationError
from core.list_controller import Debouncer, ListPageController, LoadState
from utils import config
from utils.pure import parse_date
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmDeleteModal
from views.widgets import Column, PaginationBar, ResourceTable


class ListScreen(BaseScreen):
    """
    A paged, searchable, filterable table of one resource with create, edit
    and delete actions.

    Subclasses provide COLUMNS, `fetch_page` and, where the resource allows
    it, `remove_record`, `make_form` and the `can_*` checks. Extra filter
    widgets come from `compose_filters`; a Select or Input whose id is
    `filter-<key>` narrows the query on `<key>`.
    """

    DEFAULT_CSS = """
    ListScreen #div-list {
        padding: 0 1;
    }
    ListScreen #div-toolbar, ListScreen #div-actions {
        height: auto;
    }
    ListScreen #div-toolbar > Input {
        width: 1fr;
    }
    ListScreen #div-toolbar > .date-input {
        width: 18;
    }
    ListScreen #div-toolbar > Select {
        width: 26;
    }
    """

    BINDINGS = [
        Binding("f2", "create", "New", show=True),
        Binding("f3", "edit", "Edit", show=True),
        Binding("f8", "delete", "Delete", show=True),
        Binding("f5", "refresh", "Refresh", show=True),
    ]

    COLUMNS: Sequence[Column] = ()
    ENTITY = "record"
    EMPTY_MESSAGE = "No records found"
    SEARCH_PLACEHOLDER = "Search..."
    SHOW_DATES = False
    DELETE_CONSEQUENCE = "This action cannot be undone."

    def __init__(self) -> None:
        super().__init__()
        self.controller = ListPageController(
            self.fetch_page,
            self.remove_record,
            query=ListQuery(page_size=config.DEFAULT_PAGE_SIZE),
            on_change=self.render_state,
        )
        self._debouncers: Dict[str, Debouncer] = {}

    # hooks

    async def fetch_page(self, query: ListQuery) -> PageResult:
        raise NotImplementedError

    async def remove_record(self, record) -> None:
        raise NotImplementedError

    async def make_form(self, record=None) -> Optional[ModalScreen[bool]]:
        return None

    def can_create(self) -> bool:
        return False

    def can_edit(self) -> bool:
        return False

    def can_delete(self) -> bool:
        return False

    def describe(self, record) -> str:
        return f'{self.ENTITY} "{getattr(record, "name", None) or record.id}"'

    def row_action(self) -> Optional[Callable[[Any], Any]]:
        """What clicking a row does; None leaves rows inert."""
        if self.can_edit():
            return self.open_form
        return None

    def compose_filters(self) -> ComposeResult:
        yield from ()

    def compose_actions(self) -> ComposeResult:
        yield from ()

    # layout

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-list"):
            with Horizontal(id="div-toolbar"):
                yield Input(placeholder=self.SEARCH_PLACEHOLDER, id="input-search")
                if self.SHOW_DATES:
                    yield Input(
                        placeholder="From YYYY-MM-DD",
                        id="input-start",
                        classes="date-input",
                    )
                    yield Input(
                        placeholder="To YYYY-MM-DD", id="input-end", classes="date-input"
                    )
                yield from self.compose_filters()
                yield Button("Clear", id="btn-clear")
            with Horizontal(id="div-actions"):
                yield Button("New", id="btn-create", variant="success")
                yield Button("Edit", id="btn-edit")
                yield Button("Delete", id="btn-delete", variant="error")
                yield from self.compose_actions()
                yield Button("Refresh", id="btn-refresh")
            yield ResourceTable(self.COLUMNS, self.EMPTY_MESSAGE, id="table")
            yield PaginationBar(id="pagination")

    def on_mount(self) -> None:
        self.query_one("#input-search", Input).focus()
        self.update_actions()

    def check_action(self, action: str, parameters) -> Optional[bool]:
        if action == "create":
            return self.can_create()
        if action == "edit":
            return self.can_edit()
        if action == "delete":
            return self.can_delete()
        return True

    def update_actions(self) -> None:
        self.query_one("#btn-create").display = self.can_create()
        self.query_one("#btn-edit").display = self.can_edit()
        self.query_one("#btn-delete").display = self.can_delete()
        self.query_one(ResourceTable).on_row_click = self.row_action()

    def session_changed(self) -> None:
        if self.is_mounted:
            self.update_actions()
        super().session_changed()

    def reload_data(self) -> None:
        self.load_page()

    # state -> widgets

    def render_state(self, controller: ListPageController) -> None:
        if not self.is_mounted:
            return
        query = controller.query
        self.query_one(ResourceTable).show(controller.items, loading=controller.is_loading)
        self.query_one(PaginationBar).update_page(
            query.page, max(controller.total_pages, 1), controller.total, query.page_size
        )
        if controller.state is LoadState.ERROR and controller.error is not None:
            self.notify(
                controller.error.user_message,
                title=f"Could not load {self.ENTITY}s",
                severity="error",
            )

    @work(exclusive=True, group="list-load", exit_on_error=False)
    async def load_page(self) -> None:
        await self.controller.load()

    # query changes

    def _debounced(self, key: str, value: str) -> None:
        if key not in self._debouncers:
            self._debouncers[key] = Debouncer(
                config.SEARCH_DEBOUNCE, lambda v, k=key: self._apply_text(k, v)
            )
        self._debouncers[key].push(value)

    def _apply_text(self, key: str, value: str) -> None:
        if key == "search":
            changed = self.controller.set_search(value)
        else:
            changed = self.controller.set_filter(key, value.strip() or None)
        if changed:
            self.load_page()

    def apply_filter(self, key: str, value) -> None:
        # the blank entry of a Select is not a string
        if self.controller.set_filter(key, value if isinstance(value, str) else None):
            self.load_page()

    @on(Input.Changed, "#input-search")
    def handle_search_changed(self, event: Input.Changed) -> None:
        self._debounced("search", event.value)

    @on(Input.Changed, ".filter-input")
    def handle_filter_input_changed(self, event: Input.Changed) -> None:
        self._debounced(event.input.id.removeprefix("filter-"), event.value)

    @on(Input.Changed, ".date-input")
    def handle_date_changed(self) -> None:
        start_input = self.query_one("#input-start", Input)
        end_input = self.query_one("#input-end", Input)
        bounds = []
        for widget, name in ((start_input, "start date"), (end_input, "end date")):
            widget.remove_class("-invalid")
            try:
                bounds.append(parse_date(widget.value, name))
            except ValidationError:
                # half typed dates wait for the rest
                widget.add_class("-invalid")
                return
        try:
            changed = self.controller.set_date_range(*bounds)
        except ValidationError as e:
            start_input.add_class("-invalid")
            self.notify(e.message, severity="warning")
            return
        if changed:
            self.load_page()

    @on(Select.Changed)
    def handle_select_changed(self, event: Select.Changed) -> None:
        select_id = event.select.id or ""
        if select_id == "select-page-size":
            if isinstance(event.value, int) and self.controller.set_page_size(event.value):
                self.load_page()
        elif select_id.startswith("filter-"):
            self.apply_filter(select_id.removeprefix("filter-"), event.value)

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.controller.set_page(self.controller.query.page - 1):
            self.load_page()

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.controller.set_page(self.controller.query.page + 1):
            self.load_page()

    @on(Button.Pressed, "#btn-clear")
    def handle_clear(self) -> None:
        for debouncer in self._debouncers.values():
            debouncer.cancel()
        for widget in self.query("#div-toolbar Input"):
            widget.value = ""
            widget.remove_class("-invalid")
        for select in self.query("#div-toolbar Select"):
            select.clear()
        changed = self.controller.clear_filters()
        changed = self.controller.set_search("") or changed
        if changed:
            self.load_page()

    @on(Button.Pressed, "#btn-refresh")
    def action_refresh(self) -> None:
        self.load_page()

    @on(Button.Pressed, "#btn-create")
    def action_create(self) -> None:
        if self.can_create():
            self.open_form(None)

    @on(Button.Pressed, "#btn-edit")
    def action_edit(self) -> None:
        record = self.query_one(ResourceTable).highlighted
        if record is None:
            self.notify("Select a row first.", severity="warning")
            return
        self.open_form(record)

    # mutations

    @work(exclusive=True, group="list-mutate", exit_on_error=False)
    async def open_form(self, record=None) -> None:
        form = await self.make_form(record)
        if form is None:
            return
        if await self.app.push_screen_wait(form):
            self.notify(f"{self.ENTITY.capitalize()} {'updated' if record else 'created'}.")
            self.load_page()

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True, group="list-mutate", exit_on_error=False)
    async def action_delete(self) -> None:
        record = self.query_one(ResourceTable).highlighted
        if record is None:
            self.notify("Select a row first.", severity="warning")
            return

        async def confirm() -> bool:
            modal = ConfirmDeleteModal(self.describe(record), self.DELETE_CONSEQUENCE)
            return bool(await self.app.push_screen_wait(modal))

        try:
            deleted = await self.controller.delete(record, confirm)
        except ValidationError as e:
            self.notify(e.message, severity="error")
            return
        except ApiError as e:
            self.notify(e.user_message, title="Delete failed", severity="error")
            return
        if deleted:
            self.notify(f"{self.ENTITY.capitalize()} deleted.")
