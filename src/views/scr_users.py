from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.widgets import Button, Select

from api.client import ApiError
from api.models import ListQuery, PageResult, User
from core.roles import ALL_ROLES
from utils.messages import SessionChangedMessage
from views.modal_dialog import DialogModal
from views.modal_form import FieldSpec, FormModal
from views.scr_list_base import ListScreen
from views.widgets import Column, ResourceTable

NAME_FIELDS = (
    FieldSpec("firstName", "First name", required=True, min_length=2, max_length=100),
    FieldSpec("lastName", "Last name", required=True, min_length=2, max_length=100),
)

CREATE_FIELDS = (
    FieldSpec("email", "Email", required=True, placeholder="cashier@mymarket.com"),
    FieldSpec("password", "Password", kind="password", required=True, min_length=6),
    *NAME_FIELDS,
)

EDIT_FIELDS = (
    FieldSpec("email", "Email", required=True),
    FieldSpec(
        "password",
        "New password",
        kind="password",
        min_length=6,
        placeholder="leave blank to keep",
    ),
    *NAME_FIELDS,
    FieldSpec("isActive", "Active", kind="bool"),
)

ROLE_FIELDS = (FieldSpec("roleId", "Role ID", required=True, placeholder="uuid-role-id"),)


class UsersScreen(ListScreen):
    REQUIRES = "manage_users"

    BINDINGS = [
        Binding("f6", "assign_role", "Assign Role", show=True),
        Binding("f7", "impersonate", "Impersonate", show=True),
    ]

    COLUMNS = (
        Column("Name", lambda u: u.full_name or "-"),
        Column("Email", lambda u: u.email),
        Column("Roles", lambda u: ", ".join(u.roles) or "-"),
        Column("Tenant", lambda u: u.tenant_name or u.tenant_id or "-"),
        Column("Active", lambda u: "Yes" if u.is_active else "No"),
    )
    ENTITY = "user"
    EMPTY_MESSAGE = "No users found"
    SEARCH_PLACEHOLDER = "Search by name or email..."

    def compose_filters(self) -> ComposeResult:
        yield Select([(r, r) for r in ALL_ROLES], prompt="All roles", id="filter-role")

    def compose_actions(self) -> ComposeResult:
        yield Button("Assign role", id="btn-assign-role")
        yield Button("Impersonate", id="btn-impersonate", variant="warning")

    async def fetch_page(self, query: ListQuery) -> PageResult[User]:
        return await self.app.api.users.list(query)

    def can_create(self) -> bool:
        return self.capabilities.manage_users

    can_edit = can_create

    def describe(self, record: User) -> str:
        return f"user {record.email}"

    def check_action(self, action: str, parameters) -> Optional[bool]:
        if action == "assign_role":
            return self.capabilities.manage_users
        if action == "impersonate":
            return self.capabilities.impersonate
        return super().check_action(action, parameters)

    def update_actions(self) -> None:
        super().update_actions()
        self.query_one("#btn-assign-role").display = self.capabilities.manage_users
        self.query_one("#btn-impersonate").display = self.capabilities.impersonate

    async def make_form(self, record: Optional[User] = None) -> FormModal:
        users = self.app.api.users
        if record is None:

            async def create(payload):
                # roles are assigned one by one afterwards
                return await users.create({**payload, "roleIds": []})

            return FormModal("New user", CREATE_FIELDS, create)
        return FormModal(
            f"Edit {record.full_name or record.email}",
            EDIT_FIELDS,
            lambda payload: users.update(record.id, payload),
            initial={
                "email": record.email,
                "firstName": record.first_name,
                "lastName": record.last_name,
                "isActive": record.is_active,
            },
        )

    def _selected(self) -> Optional[User]:
        user = self.query_one(ResourceTable).highlighted
        if user is None:
            self.notify("Select a user first.", severity="warning")
        return user

    @on(Button.Pressed, "#btn-assign-role")
    @work(exclusive=True, group="list-mutate", exit_on_error=False)
    async def action_assign_role(self) -> None:
        user = self._selected()
        if user is None:
            return
        users = self.app.api.users
        form = FormModal(
            f"Assign role to {user.full_name or user.email}",
            ROLE_FIELDS,
            lambda payload: users.assign_role(user.id, payload["roleId"]),
            submit_text="Assign",
        )
        if await self.app.push_screen_wait(form):
            self.notify("Role assigned.")
            self.load_page()

    @on(Button.Pressed, "#btn-impersonate")
    @work(exclusive=True, group="list-mutate", exit_on_error=False)
    async def action_impersonate(self) -> None:
        user = self._selected()
        if user is None:
            return
        state = self.app.state
        if state.session and user.id == state.session.user_id:
            self.notify("You are already signed in as this user.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Sign in as {user.full_name or user.email}? "
                "You can switch back from the sidebar.",
                primary_text="Impersonate",
                secondary_text="Cancel",
                tone="warning",
            )
        ):
            return

        try:
            auth = await self.app.api.auth.impersonate(user.id)
        except ApiError as e:
            self.notify(e.user_message, title="Impersonation failed", severity="error")
            return
        await state.start_impersonation(auth)
        self.notify(f"Now acting as {auth.user.full_name or auth.user.email}.")
        self.post_message(SessionChangedMessage("impersonation started"))
