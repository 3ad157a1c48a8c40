from typing import Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator
from textual.worker import Worker

from api.client import ApiClient, ApiError
from api.resources import PosApi
from utils import config
from utils.logger import close_log_file, get_logger
from utils.messages import QuitRequestedMessage, SessionChangedMessage, SignOutMessage
from utils.state import GlobalState
from views.modal_dialog import ErrorModal
from views.scr_categories import CategoriesScreen
from views.scr_dashboard import DashboardScreen
from views.scr_login import LoginScreen
from views.scr_products import ProductsScreen
from views.scr_reports import ReportsScreen
from views.scr_sales import SalesScreen
from views.scr_stock import StockMovementsScreen
from views.scr_tenants import TenantsScreen
from views.scr_users import UsersScreen

_logger = get_logger(__name__)


class PosAdminApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "dashboard": DashboardScreen,
        "categories": CategoriesScreen,
        "products": ProductsScreen,
        "sales": SalesScreen,
        "stock": StockMovementsScreen,
        "users": UsersScreen,
        "tenants": TenantsScreen,
        "reports": ReportsScreen,
    }

    # (mode, menu label, capability needed to see it)
    MENU = (
        ("dashboard", "Dashboard", None),
        ("categories", "Categories", None),
        ("products", "Products", None),
        ("sales", "Sales", None),
        ("stock", "Stock Movements", "view_stock"),
        ("users", "Users", "manage_users"),
        ("tenants", "Tenants", "manage_tenants"),
        ("reports", "Reports", "view_reports"),
    )

    state: GlobalState
    api: PosApi

    def __init__(
        self, api: Optional[PosApi] = None, state: Optional[GlobalState] = None
    ):
        super().__init__()
        self.state = state or GlobalState()
        self.api = api or PosApi(
            ApiClient(
                token_provider=lambda: self.state.token,
                on_unauthorized=self.handle_unauthorized,
            )
        )

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        _logger.info(f"backend at {config.API_BASE_URL}")
        self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @work(exclusive=True, group="main-flow")
    async def main_flow(self):
        if self.state.session is None and await self.state.restore() is None:
            await self.push_screen_wait(LoginScreen())
        if self.current_mode == "dashboard":
            self.screen.session_changed()
        else:
            await self.switch_mode("dashboard")

    @on(SessionChangedMessage)
    async def handle_session_changed(self, message: SessionChangedMessage):
        _logger.info(f"session changed: {message.reason or 'unspecified'}")
        if self.current_mode == "dashboard":
            self.screen.session_changed()
        else:
            # resuming the dashboard refreshes it
            await self.switch_mode("dashboard")

    def handle_unauthorized(self, error: ApiError) -> None:
        """
        The backend rejected the token. Ignored while signed out, a failed
        login answers 401 as well.
        """
        if not self.state.is_authenticated:
            return
        _logger.info(f"token rejected: {error!r}")
        # the other requests of the same burst find no session and stay quiet
        self.state.session = None
        self.sign_out("Your session has expired. Please log in again.", "warning")

    @on(SignOutMessage)
    def handle_sign_out(self, message: SignOutMessage):
        self.sign_out(message.notice)

    @work(group="session")
    async def sign_out(self, notice: str, severity: str = "information"):
        await self.state.end_session()
        if self.current_mode in self.MODES and self.current_mode != "dashboard":
            await self.switch_mode("dashboard")
        self.notify(notice, severity=severity)
        self.main_flow()

    @on(QuitRequestedMessage)
    def handle_quit(self):
        self.api.client.close()
        self.exit()

    def report_worker_error(self, worker: Worker) -> None:
        """
        Last stop for exceptions nobody handled inside a screen worker.
        """
        error = worker.error
        _logger.error(f"worker {worker.name!r} failed", exc_info=error)
        detail = error.user_message if isinstance(error, ApiError) else str(error)
        self.show_error(detail)

    @work(group="error-boundary")
    async def show_error(self, detail: str):
        await self.push_screen_wait(ErrorModal(detail))
        if self.state.is_authenticated and self.current_mode != "dashboard":
            await self.switch_mode("dashboard")


def main():
    app = PosAdminApp()
    try:
        app.run()
    finally:
        close_log_file()


if __name__ == "__main__":
    main()
