from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Literal, Mapping, Optional, Sequence, Tuple

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.validation import Integer, Length, Number, Validator
from textual.widgets import Button, Checkbox, Input, Label, Select

from api.client import ApiError
from core.errors import ValidationError


@dataclass(frozen=True)
class FieldSpec:
    """
    One form field. `name` is the payload key sent to the backend.

    Range and length rules are textual validators, attached to the Input
    of the form and reused by `parse` for callers without a widget.
    """

    name: str
    label: str
    kind: Literal["text", "password", "integer", "number", "bool", "choice"] = "text"
    required: bool = False
    placeholder: str = ""
    choices: Tuple[Tuple[str, str], ...] = ()
    minimum: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None

    def _number_message(self) -> str:
        if self.minimum is None:
            return f"{self.label} must be a number."
        return f"{self.label} must be a number no less than {self.minimum:g}."

    def _length_message(self) -> str:
        if self.max_length is None:
            return f"{self.label} must be at least {self.min_length} characters."
        if self.min_length is None:
            return f"{self.label} must be at most {self.max_length} characters."
        return f"{self.label} must be {self.min_length} to {self.max_length} characters."

    def validators(self) -> List[Validator]:
        if self.kind in ("bool", "choice"):
            return []
        found: List[Validator] = []
        if self.required:
            found.append(Length(minimum=1, failure_description=f"{self.label} is required."))
        if self.kind == "integer":
            found.append(
                Integer(minimum=self.minimum, failure_description=self._number_message())
            )
        elif self.kind == "number":
            found.append(
                Number(minimum=self.minimum, failure_description=self._number_message())
            )
        if self.min_length is not None or self.max_length is not None:
            found.append(
                Length(
                    minimum=self.min_length,
                    maximum=self.max_length,
                    failure_description=self._length_message(),
                )
            )
        return found

    def parse(self, raw: Any) -> Any:
        """
        Turn the widget value into a payload value. Empty optional fields
        parse to None. Raises ValidationError.
        """
        if self.kind == "bool":
            return bool(raw)

        text = "" if raw is None else str(raw).strip()
        if not text:
            if self.required:
                raise ValidationError(f"{self.label} is required.", self.name)
            return None

        if self.kind == "choice":
            if text not in {v for _, v in self.choices}:
                raise ValidationError(f"Pick a valid {self.label.lower()}.", self.name)
            return text

        for validator in self.validators():
            result = validator.validate(text)
            if not result.is_valid:
                raise ValidationError(result.failure_descriptions[0], self.name)

        if self.kind == "integer":
            return int(float(text))
        if self.kind == "number":
            return float(text)
        return text


def parse_form(fields: Sequence[FieldSpec], raw: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Parse every field; empty optional values are left out of the payload.
    The first invalid field raises.
    """
    payload: Dict[str, Any] = {}
    for f in fields:
        value = f.parse(raw.get(f.name))
        if value is not None:
            payload[f.name] = value
    return payload


class FormModal(ModalScreen[bool]):
    """
    Generic create/edit form. Calls `save(payload)` on submit and dismisses
    with True once it succeeds; stays open on validation or server errors.
    """

    DEFAULT_CSS = """
    FormModal {
        align: center middle;
    }
    FormModal > #div-form {
        width: 70;
        height: auto;
        max-height: 90%;
        border: thick $primary;
        background: $surface;
        padding: 1 2;
    }
    FormModal .form-title {
        text-style: bold;
        padding-bottom: 1;
    }
    FormModal VerticalScroll {
        height: auto;
        max-height: 30;
    }
    FormModal #div-form-btns {
        height: auto;
        align: right middle;
        padding-top: 1;
    }
    """

    def __init__(
        self,
        title: str,
        fields: Sequence[FieldSpec],
        save: Callable[[Dict[str, Any]], Awaitable[Any]],
        initial: Optional[Mapping[str, Any]] = None,
        submit_text: str = "Save",
    ) -> None:
        super().__init__()
        self.form_title = title
        self.fields = tuple(fields)
        self._save = save
        self.initial = dict(initial or {})
        self.submit_text = submit_text

    def _widget_for(self, f: FieldSpec):
        value = self.initial.get(f.name)
        wid = f"field-{f.name}"
        if f.kind == "bool":
            return Checkbox(f.label, value=bool(value) if value is not None else True, id=wid)
        if f.kind == "choice":
            kwargs = {}
            if value:
                kwargs["value"] = str(value)
            return Select(
                [(label, v) for label, v in f.choices],
                allow_blank=not f.required,
                id=wid,
                **kwargs,
            )
        input_type = {"integer": "integer", "number": "number"}.get(f.kind, "text")
        if isinstance(value, float):
            value = f"{value:g}"
        return Input(
            value="" if value is None else str(value),
            placeholder=f.placeholder,
            password=f.kind == "password",
            type=input_type,
            validators=f.validators(),
            valid_empty=not f.required,
            id=wid,
        )

    def first_invalid_input(self) -> Optional[Tuple[Input, str]]:
        """
        Run every Input's validators, which also sets their -invalid style.
        Returns the first failing input with its failure text.
        """
        failed = None
        for widget in self.query(Input):
            result = widget.validate(widget.value)
            if failed is None and result is not None and not result.is_valid:
                failed = (widget, result.failure_descriptions[0])
        return failed

    def compose(self) -> ComposeResult:
        with Container(id="div-form"):
            yield Label(self.form_title, classes="form-title")
            with VerticalScroll():
                for f in self.fields:
                    if f.kind != "bool":
                        yield Label(f.label + (" *" if f.required else ""))
                    yield self._widget_for(f)
            with Horizontal(id="div-form-btns"):
                yield Button("Cancel", id="btn-cancel")
                yield Button(self.submit_text, id="btn-submit", variant="primary")

    def on_mount(self) -> None:
        if self.fields:
            self.query_one(f"#field-{self.fields[0].name}").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    def raw_values(self) -> Dict[str, Any]:
        raw: Dict[str, Any] = {}
        for f in self.fields:
            widget = self.query_one(f"#field-{f.name}")
            value = widget.value
            # the blank sentinel of Select is not a string
            if f.kind == "choice" and not isinstance(value, str):
                value = None
            raw[f.name] = value
        return raw

    @on(Button.Pressed, "#btn-cancel")
    def handle_cancel(self) -> None:
        self.dismiss(False)

    @on(Input.Submitted)
    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self) -> None:
        failed = self.first_invalid_input()
        if failed is not None:
            widget, message = failed
            widget.focus()
            self.notify(message, severity="error")
            return
        try:
            payload = parse_form(self.fields, self.raw_values())
        except ValidationError as e:
            if e.field in {f.name for f in self.fields}:
                self.query_one(f"#field-{e.field}").focus()
            self.notify(e.message, severity="error")
            return

        try:
            await self._save(payload)
        except ValidationError as e:
            self.notify(e.message, severity="error")
            return
        except ApiError as e:
            self.notify(e.user_message, title="Save failed", severity="error")
            return
        self.dismiss(True)
