from typing import Optional

from api.models import ListQuery, PageResult, Tenant
from views.modal_form import FieldSpec, FormModal
from views.scr_list_base import ListScreen
from views.widgets import Column

TENANT_FIELDS = (
    FieldSpec(
        "name",
        "Name",
        required=True,
        placeholder="My Local Market",
        min_length=2,
        max_length=255,
    ),
    FieldSpec("address", "Address", placeholder="123 Main Street", max_length=500),
    FieldSpec("phone", "Phone", placeholder="+90 555 123 4567", max_length=50),
    FieldSpec("email", "Email", placeholder="info@mymarket.com", max_length=255),
)


class TenantsScreen(ListScreen):
    REQUIRES = "manage_tenants"

    COLUMNS = (
        Column("Name", lambda t: t.name),
        Column("Address", lambda t: t.address or "-"),
        Column("Phone", lambda t: t.phone or "-"),
        Column("Email", lambda t: t.email or "-"),
        Column("Active", lambda t: "Yes" if t.is_active else "No"),
    )
    ENTITY = "tenant"
    EMPTY_MESSAGE = "No tenants found"
    SEARCH_PLACEHOLDER = "Search tenants..."

    async def fetch_page(self, query: ListQuery) -> PageResult[Tenant]:
        return await self.app.api.tenants.list(query)

    async def remove_record(self, record: Tenant) -> None:
        await self.app.api.tenants.delete(record.id)

    def can_create(self) -> bool:
        return self.capabilities.manage_tenants

    can_edit = can_create
    can_delete = can_create

    async def make_form(self, record: Optional[Tenant] = None) -> FormModal:
        tenants = self.app.api.tenants
        if record is None:
            return FormModal("New tenant", TENANT_FIELDS, tenants.create)
        return FormModal(
            f"Edit {record.name}",
            TENANT_FIELDS + (FieldSpec("isActive", "Active", kind="bool"),),
            lambda payload: tenants.update(record.id, payload),
            initial={
                "name": record.name,
                "address": record.address,
                "phone": record.phone,
                "email": record.email,
                "isActive": record.is_active,
            },
        )
