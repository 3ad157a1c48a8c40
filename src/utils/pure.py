from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Literal, Optional

from textual.validation import Number

from core.errors import ValidationError


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of strings.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = list(map(str, headers))
    # pipes inside a cell would split the row
    rows = [[str(cell).replace("|", "\\|") for cell in row] for row in rows]

    num_cols = len(headers)
    if aligns is None:
        aligns = ["c"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {
        "l": ":---",
        "c": ":---:",
        "r": "---:",
    }

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(row) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])


def format_money(amount: float) -> str:
    return f"₺{amount:,.2f}"


def format_qty(qty: float) -> str:
    return f"{qty:g}"


def format_date(value: Optional[datetime]) -> str:
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M")


def parse_date(raw: str, field: str = "date") -> Optional[date]:
    """
    Empty input means "no bound". Anything else must be YYYY-MM-DD.
    """
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"{raw!r} is not a date (YYYY-MM-DD).", field)


def stock_status(stock: float, min_level: float) -> str:
    if stock <= 0:
        return "Out of Stock"
    if stock <= min_level:
        return "Low Stock"
    return "In Stock"


@dataclass(frozen=True)
class AdjustmentSummary:
    current: float
    new: float

    @property
    def difference(self) -> float:
        return self.new - self.current

    @property
    def is_negative(self) -> bool:
        return self.difference < 0

    @property
    def difference_text(self) -> str:
        sign = "+" if self.difference >= 0 else ""
        return f"{sign}{self.difference:.2f}"

    @property
    def markup(self) -> str:
        """Rich markup: red with a down arrow for removals, green otherwise."""
        if self.is_negative:
            return f"[bold red]▼ Difference: {self.difference_text}[/]"
        return f"[bold green]▲ Difference: {self.difference_text}[/]"


NEW_QUANTITY = Number(
    minimum=0, failure_description="New quantity must be a number no less than 0."
)


def summarize_adjustment(current: float, raw_new: str) -> AdjustmentSummary:
    raw_new = (raw_new or "").strip()
    if not raw_new:
        raise ValidationError("New quantity is required.", "newQuantity")
    result = NEW_QUANTITY.validate(raw_new)
    if not result.is_valid:
        raise ValidationError(result.failure_descriptions[0], "newQuantity")
    return AdjustmentSummary(current=current, new=float(raw_new))
