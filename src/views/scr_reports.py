import asyncio
from datetime import date, timedelta

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Input, MarkdownViewer

from api.client import ApiError
from api.models import SalesSummary, TopProductsReport
from core.errors import ValidationError
from utils.pure import format_money, format_qty, generate_markdown_table, parse_date
from views.base_screen import BaseScreen

DEFAULT_RANGE_DAYS = 30
TOP_PRODUCTS_LIMIT = 10


def report_markdown(
    start: date, end: date, summary: SalesSummary, top: TopProductsReport
) -> str:
    summary_md = (
        f"### Sales Summary ({start.isoformat()} to {end.isoformat()})\n\n"
        f"- Total Sales: {format_money(summary.total_sales)}\n"
        f"- Total Orders: {summary.total_orders}\n"
        f"- Average Daily: {format_money(summary.average_daily)}\n"
        f"- Growth: {summary.growth_percentage:+.2f}%\n\n"
    )
    daily = generate_markdown_table(
        ["Date", "Sales", "Orders", "Average Order"],
        [
            [
                d.day.isoformat(),
                format_money(d.sales),
                str(d.orders),
                format_money(d.average_order),
            ]
            for d in summary.daily
        ],
        ["l", "r", "r", "r"],
    )
    products = generate_markdown_table(
        ["#", "Product", "Quantity", "Revenue", "% of Total"],
        [
            [
                str(rank),
                p.product_name,
                format_qty(p.sales_quantity),
                format_money(p.revenue),
                f"{p.percentage_of_total:.1f}%",
            ]
            for rank, p in enumerate(top.products, start=1)
        ],
        ["r", "l", "r", "r", "r"],
    )
    return (
        summary_md
        + "#### Daily Breakdown\n\n"
        + (daily or "_No sales in this period_")
        + "\n\n### Top Products\n\n"
        + (products or "_No products sold in this period_")
        + f"\n\nTotal revenue: {format_money(top.total_revenue)}\n"
    )


class ReportsScreen(BaseScreen):
    REQUIRES = "view_reports"

    DEFAULT_CSS = """
    ReportsScreen #div-report-range {
        height: auto;
    }
    ReportsScreen #div-report-range > Input {
        width: 20;
    }
    """

    def compose(self) -> ComposeResult:
        today = date.today()
        yield from super().compose()
        with Vertical():
            with Horizontal(id="div-report-range"):
                yield Input(
                    (today - timedelta(days=DEFAULT_RANGE_DAYS)).isoformat(),
                    placeholder="Start YYYY-MM-DD",
                    id="input-start",
                )
                yield Input(today.isoformat(), placeholder="End YYYY-MM-DD", id="input-end")
                yield Button("Run report", id="btn-run", variant="primary")
            yield MarkdownViewer(id="md-report", show_table_of_contents=False)

    def reload_data(self) -> None:
        self.handle_reload()

    @on(Input.Submitted)
    @on(Button.Pressed, "#btn-run")
    @work(exclusive=True, group="report", exit_on_error=False)
    async def handle_reload(self) -> None:
        start_input = self.query_one("#input-start", Input)
        end_input = self.query_one("#input-end", Input)
        start_input.remove_class("-invalid")
        end_input.remove_class("-invalid")
        try:
            start = parse_date(start_input.value, "start date")
            end = parse_date(end_input.value, "end date")
            if start is None or end is None:
                raise ValidationError("Please select both start and end dates.")
            if start > end:
                raise ValidationError("Start date must not be after end date.")
            summary, top = await asyncio.gather(
                self.app.api.reports.sales_summary(start, end),
                self.app.api.reports.top_products(start, end, TOP_PRODUCTS_LIMIT),
            )
        except ValidationError as e:
            start_input.add_class("-invalid")
            self.notify(e.message, severity="warning")
            return
        except ApiError as e:
            self.notify(e.user_message, title="Failed to load reports", severity="error")
            return

        await self.query_one("#md-report", MarkdownViewer).document.update(
            report_markdown(start, end, summary, top)
        )
