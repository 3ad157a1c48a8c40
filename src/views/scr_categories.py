from typing import Optional

from api.models import Category, ListQuery, PageResult
from utils.pure import format_date
from views.modal_form import FieldSpec, FormModal
from views.scr_list_base import ListScreen
from views.widgets import Column

CATEGORY_FIELDS = (
    FieldSpec("name", "Name", required=True, placeholder="Dairy", max_length=255),
    FieldSpec("description", "Description", placeholder="Milk, cheese, yogurt..."),
)


class CategoriesScreen(ListScreen):
    """
    Categories are searched and paged locally; everyone may look, only
    tenant admins may change them.
    """

    COLUMNS = (
        Column("Name", lambda c: c.name),
        Column("Description", lambda c: c.description or "-"),
        Column("Created", lambda c: format_date(c.created_at)),
    )
    ENTITY = "category"
    EMPTY_MESSAGE = "No categories yet"
    SEARCH_PLACEHOLDER = "Search categories..."

    async def fetch_page(self, query: ListQuery) -> PageResult[Category]:
        return await self.app.api.categories.list(query)

    async def remove_record(self, record: Category) -> None:
        await self.app.api.categories.delete(record.id)

    def can_create(self) -> bool:
        return self.capabilities.manage_categories

    can_edit = can_create
    can_delete = can_create

    async def make_form(self, record: Optional[Category] = None) -> FormModal:
        categories = self.app.api.categories
        if record is None:
            return FormModal("New category", CATEGORY_FIELDS, categories.create)
        return FormModal(
            f"Edit {record.name}",
            CATEGORY_FIELDS,
            lambda payload: categories.update(record.id, payload),
            initial={"name": record.name, "description": record.description},
        )
