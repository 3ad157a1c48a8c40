from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Resize
from textual.screen import ModalScreen
from textual.widgets import Label


class ResizeScreenPromptModal(ModalScreen[bool]):
    """
    Covers the app while the terminal is smaller than the layout needs,
    goes away by itself once it is large enough again.
    """

    DEFAULT_CSS = """
    ResizeScreenPromptModal {
        align: center middle;
    }
    ResizeScreenPromptModal > #div-resize {
        width: auto;
        height: auto;
        border: thick $warning;
        padding: 1 2;
    }
    ResizeScreenPromptModal #label-current-size {
        color: $text-muted;
    }
    """

    def __init__(self, min_width: int = 80, min_height: int = 20) -> None:
        super().__init__()
        self.min_width = min_width
        self.min_height = min_height

    def compose(self) -> ComposeResult:
        with Container(id="div-resize"):
            yield Label(
                f"The console needs at least {self.min_width}x{self.min_height}.",
                id="prompt",
            )
            yield Label("", id="label-current-size")

    def fits(self, width: int, height: int) -> bool:
        return width >= self.min_width and height >= self.min_height

    def on_resize(self, event: Resize) -> None:
        if self.fits(event.size.width, event.size.height):
            self.dismiss(True)
            return
        self.query_one("#label-current-size", Label).update(
            f"Current size: {event.size.width}x{event.size.height}"
        )
