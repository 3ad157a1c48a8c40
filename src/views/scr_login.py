from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical, VerticalScroll
from textual.widgets import Button, Input, Label, TabbedContent, TabPane

from api.client import ApiError
from core.errors import ValidationError
from views.base_screen import BaseScreen
from views.modal_dialog import QuitDialogModal

# (input id suffix, payload key, label, placeholder, password)
REGISTER_FIELDS = (
    ("name", "name", "Market name *", "My Local Market", False),
    ("address", "address", "Address", "123 Main Street, City", False),
    ("phone", "phone", "Phone", "+90 555 123 4567", False),
    ("email", "email", "Market email", "info@mymarket.com", False),
    ("admin-first", "adminFirstName", "Admin first name *", "John", False),
    ("admin-last", "adminLastName", "Admin last name *", "Doe", False),
    ("admin-email", "adminEmail", "Admin email *", "admin@mymarket.com", False),
    ("admin-pwd", "adminPassword", "Admin password *", "*********", True),
)


class LoginScreen(BaseScreen):
    """
    Dismissed once a session has been started, either by signing in or by
    registering a new tenant.
    """

    DEFAULT_CSS = """
    LoginScreen #div-login, LoginScreen #div-reg {
        width: 60;
        height: auto;
        padding: 1 2;
    }
    LoginScreen #div-login-btns, LoginScreen #div-reg-btns {
        height: auto;
        align: right middle;
        padding-top: 1;
    }
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Login", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Login", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Email")
                    yield Input(placeholder="admin@mymarket.com", id="input-login-email")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-login-pwd"
                    )
                    with Horizontal(id="div-login-btns"):
                        yield Button("Quit", id="btn-quit")
                        yield Button("Login", id="btn-login", variant="primary")

            with TabPane("Register market", id="tab-signup"):
                with VerticalScroll(id="div-reg"):
                    for suffix, _, label, placeholder, password in REGISTER_FIELDS:
                        yield Label(label)
                        yield Input(
                            placeholder=placeholder,
                            password=password,
                            id="input-reg-" + suffix,
                            classes="reg-input",
                        )
                    with Container(id="div-reg-btns"):
                        yield Button("Register", id="btn-reg", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-email").focus()

    @on(Input.Submitted, "#input-login-email, #input-login-pwd")
    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email = self.query_one("#input-login-email", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value.strip()

        if not email or not pwd:
            self.notify("Email or password cannot be empty!", severity="error")
            return

        try:
            auth = await self.app.api.auth.login(email, pwd)
        except ApiError as e:
            self.notify(e.user_message, title="Login failed", severity="error")
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")
            return

        session = await self.app.state.start_session(auth)
        self.notify(f"Hello {session.display_name}!")
        self.dismiss(True)

    @on(Input.Submitted, ".reg-input")
    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        payload = {}
        for suffix, key, *_ in REGISTER_FIELDS:
            widget = self.query_one("#input-reg-" + suffix, Input)
            widget.remove_class("-invalid")
            payload[key] = widget.value.strip()

        if payload["adminPassword"] and len(payload["adminPassword"]) < 6:
            self.query_one("#input-reg-admin-pwd").add_class("-invalid")
            self.notify("Password must be at least 6 characters long", severity="error")
            return

        try:
            auth = await self.app.api.auth.register_tenant(payload)
        except ValidationError as e:
            for suffix, key, *_ in REGISTER_FIELDS:
                if key == e.field:
                    self.query_one("#input-reg-" + suffix).add_class("-invalid")
            self.notify(e.message, severity="error")
            return
        except ApiError as e:
            self.notify(e.user_message, title="Registration failed", severity="error")
            return

        await self.app.state.start_session(auth)
        self.notify(f"Registration successful. Welcome, {auth.user.full_name}!")
        self.dismiss(True)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())
