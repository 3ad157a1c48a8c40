from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import Resize, ScreenResume
from textual.screen import Screen
from textual.worker import Worker, WorkerState
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from core.roles import Capabilities
from utils.messages import SessionChangedMessage, SignOutMessage
from utils.pure import generate_markdown_table
from views.modal_dialog import DialogModal, QuitDialogModal
from views.modal_resize import ResizeScreenPromptModal


class Sidebar(Container):
    DEFAULT_CSS = """
    Sidebar {
        dock: left;
        width: 32;
        height: 100%;
        background: $panel;
        padding: 0 1;
    }
    Sidebar > Label {
        text-style: bold;
        padding-top: 1;
    }
    Sidebar > Button {
        width: 100%;
    }
    Sidebar > ListView {
        height: auto;
    }
    """

    def compose(self) -> ComposeResult:
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button(
            "Stop impersonating", id="btn-stop-impersonating", variant="warning"
        )
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    def on_mount(self):
        self.refresh_menu()

    @work(exclusive=True, group="sidebar")
    async def refresh_menu(self):
        """
        user info and the menu entries the current roles may open
        """
        state = self.app.state
        self.query_one("#btn-stop-impersonating").display = state.is_impersonating

        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        if state.session is None:
            await self.query_one(Markdown).update("")
            return

        session = state.session
        table_rows = [
            ["Name", session.display_name],
            ["Email", session.email or "-"],
            ["Roles", ", ".join(sorted(session.roles)) or "-"],
        ]
        if state.is_impersonating:
            table_rows.append(["Signed in as", state.original_session.display_name])
        md_table_str = generate_markdown_table(["Field", "Value"], table_rows, ["l", "l"])
        await self.query_one(Markdown).update(md_table_str)

        caps = state.capabilities
        await list_menu.extend(
            [
                ListItem(Label(label), id="list-menu-item-" + mode)
                for mode, label, needs in self.app.MENU
                if needs is None or getattr(caps, needs)
            ]
        )
        self.highlight_item(self.app.current_mode)

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.app.current_mode)
        if self.app.current_mode != selected_mode:
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-logout")
    @work(exclusive=True, group="sidebar-action")
    async def handle_logout(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to log out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return

        self.post_message(SignOutMessage())

    @on(Button.Pressed, "#btn-stop-impersonating")
    @work(exclusive=True, group="sidebar-action")
    async def handle_stop_impersonating(self):
        session = await self.app.state.stop_impersonation()
        if session is not None:
            self.notify(f"Back to {session.display_name}.")
        self.post_message(SessionChangedMessage("impersonation stopped"))

    def highlight_item(self, mode_str: str):
        list_menu = self.query_one("#list-menu", ListView)
        for i, item in enumerate(list_menu.children):
            if item.id == "list-menu-item-" + mode_str:
                list_menu.index = i
                return


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.

    REQUIRES names the capability a screen needs to be opened at all;
    None means any signed-in user.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    REQUIRES: Optional[str] = None

    MIN_WIDTH = 80
    MIN_HEIGHT = 20

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "Base Screen",
        show_sidebar: bool = True,
    ) -> None:
        """
        configure behavior of the base screen
        """

        # auto gen titles and subtitles
        self.app.title = "POS Admin"
        self.sub_title = header_sub_title
        for mode, label, _ in getattr(self.app, "MENU", ()):
            if isinstance(self, self.app.MODES.get(mode, ())):
                self.sub_title = label

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    @property
    def capabilities(self) -> Capabilities:
        return self.app.state.capabilities

    def allowed(self) -> bool:
        return self.REQUIRES is None or getattr(self.capabilities, self.REQUIRES)

    def guard_access(self) -> bool:
        """
        Send the user back to the dashboard when the current roles may not
        open this screen.
        """
        if self.allowed():
            return True
        self.notify("You do not have access to that page.", severity="warning")
        self.app.switch_mode("dashboard")
        return False

    def session_changed(self) -> None:
        """
        Called by the app whenever the signed-in user or their roles change,
        and whenever the screen comes back into view.
        """
        for sidebar in self.query(Sidebar):
            sidebar.refresh_menu()
        self.refresh_bindings()
        if self.guard_access():
            self.reload_data()

    def reload_data(self) -> None:
        """Fetch whatever the screen shows. Nothing by default."""

    @on(ScreenResume)
    def handle_resume(self) -> None:
        self.session_changed()

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if event.state is WorkerState.ERROR:
            self.app.report_worker_error(event.worker)

    async def on_resize(self, event: Resize) -> None:
        if isinstance(self.app.screen, ResizeScreenPromptModal):
            return
        if event.size.width < self.MIN_WIDTH or event.size.height < self.MIN_HEIGHT:
            self.app.push_screen(ResizeScreenPromptModal(self.MIN_WIDTH, self.MIN_HEIGHT))

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
