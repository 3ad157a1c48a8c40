from typing import Dict, Literal, Tuple

from typing_extensions import override

from textual import events
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Label

from utils.messages import QuitRequestedMessage


class DialogModal(ModalScreen[bool]):
    """
    A simple dialog box, dismissed with True for the primary button and
    False for the secondary button or escape.
    """

    DEFAULT_CSS = """
    DialogModal {
        align: center middle;
    }
    DialogModal > #div-dialog {
        width: 60;
        height: auto;
        border: thick $primary;
        background: $surface;
        padding: 1 2;
    }
    DialogModal #caption {
        width: 100%;
        padding-bottom: 1;
    }
    DialogModal #dialog {
        height: auto;
        align: right middle;
    }
    """

    VARIANT_MAP: Dict[
        str, Tuple[Literal["primary", "default", "success", "warning", "error"], ...]
    ] = {
        "default": ("primary", "default"),
        "positive": ("success", "default"),
        "warning": ("warning", "default"),
        "error": ("error", "primary"),
    }

    def __init__(
        self,
        caption: str,
        primary_text: str = "OK",
        secondary_text: str = "",
        tone: Literal["default", "positive", "warning", "error"] = "default",
    ):
        super().__init__()
        self.caption = caption
        self.primary_text = primary_text
        self.secondary_text = secondary_text
        self.tone = tone

    def compose(self) -> ComposeResult:
        with Container(id="div-dialog"):
            yield Label(self.caption, id="caption")
            with Horizontal(id="dialog"):
                if self.secondary_text:
                    yield Button(
                        self.secondary_text,
                        variant=DialogModal.VARIANT_MAP[self.tone][1],
                        id="btn-secondary",
                    )
                yield Button(
                    self.primary_text,
                    variant=DialogModal.VARIANT_MAP[self.tone][0],
                    id="btn-primary",
                )

    def on_mount(self):
        # destructive dialogs start on the safe button
        if not self.secondary_text or not self.tone == "error":
            self.query_one("#btn-primary").focus()
        else:
            self.query_one("#btn-secondary").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-primary":
            self.dismiss(True)
        if event.button.id == "btn-secondary":
            self.dismiss(False)


class ConfirmDeleteModal(DialogModal):
    def __init__(self, what: str, consequence: str = "This action cannot be undone."):
        super().__init__(
            f"Are you sure you want to delete {what}? {consequence}",
            primary_text="Delete",
            secondary_text="Cancel",
            tone="error",
        )


class ErrorModal(DialogModal):
    """
    Shown by the app when a screen fails unexpectedly. Its single button
    leads back to the dashboard.
    """

    def __init__(self, detail: str):
        super().__init__(
            f"Something went wrong.\n\n{detail or 'An unexpected error occurred.'}",
            primary_text="Go to Dashboard",
            tone="error",
        )

    @override
    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(True)


class QuitDialogModal(DialogModal):
    def __init__(self):
        super().__init__("Are you sure you want to quit?", "Yes", "No", "error")

    @override
    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-primary":
            self.post_message(QuitRequestedMessage())
            self.dismiss(True)
        else:
            self.dismiss(False)
