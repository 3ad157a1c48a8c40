from textual import on, work
from textual.app import ComposeResult
from textual.containers import Grid, Vertical
from textual.widgets import Button, Label, Static

from api.client import ApiError
from api.models import DashboardStats
from core.dashboard import load_dashboard
from utils.logger import get_logger
from utils.pure import format_money
from views.base_screen import BaseScreen

_logger = get_logger(__name__)


class DashboardScreen(BaseScreen):
    """
    Today at a glance: sales, orders, products and how many run low.
    """

    DEFAULT_CSS = """
    DashboardScreen #div-dashboard {
        padding: 1 2;
    }
    DashboardScreen #grid-stats {
        grid-size: 2;
        grid-gutter: 1 2;
        height: auto;
    }
    DashboardScreen .stat {
        border: round $primary;
        padding: 1 2;
        height: 7;
    }
    DashboardScreen .stat-value {
        text-style: bold;
        color: $accent;
    }
    DashboardScreen #stat-low-stock.-warning {
        border: round $warning;
    }
    """

    STATS = (
        ("stat-today-sales", "Today's Sales"),
        ("stat-today-orders", "Today's Orders"),
        ("stat-total-products", "Total Products"),
        ("stat-low-stock", "Low Stock Items"),
    )

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-dashboard"):
            yield Label(id="label-welcome")
            with Grid(id="grid-stats"):
                for stat_id, title in self.STATS:
                    with Vertical(id=stat_id, classes="stat"):
                        yield Label(title)
                        yield Static("-", classes="stat-value")
            yield Button("Refresh", id="btn-refresh")

    def reload_data(self) -> None:
        session = self.app.state.session
        if session is not None:
            self.query_one("#label-welcome", Label).update(
                f"Welcome back, {session.display_name}"
            )
        self.load_stats()

    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True, group="dashboard", exit_on_error=False)
    async def load_stats(self) -> None:
        if self.app.state.session is None:
            return
        for stat_id, _ in self.STATS:
            self.query_one(f"#{stat_id}").loading = True
        try:
            stats = await load_dashboard(self.app.api)
        except ApiError as e:
            _logger.info(f"dashboard load failed: {e!r}")
            self.notify(e.user_message, title="Could not load dashboard", severity="error")
            stats = None
        finally:
            for stat_id, _ in self.STATS:
                self.query_one(f"#{stat_id}").loading = False
        if stats is not None:
            self.render_stats(stats)

    def render_stats(self, stats: DashboardStats) -> None:
        values = {
            "stat-today-sales": format_money(stats.today_sales),
            "stat-today-orders": str(stats.today_orders),
            "stat-total-products": str(stats.total_products),
            "stat-low-stock": str(stats.low_stock),
        }
        for stat_id, value in values.items():
            self.query_one(f"#{stat_id} .stat-value", Static).update(value)
        self.query_one("#stat-low-stock").set_class(stats.low_stock > 0, "-warning")
