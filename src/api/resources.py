from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from api.client import ApiClient, ApiError, ErrorKind
from api.models import (
    AdjustStockResult,
    AuthResponse,
    Category,
    ListQuery,
    PageResult,
    Product,
    Sale,
    SaleDraft,
    SalesSummary,
    StockMovement,
    Tenant,
    TopProductsReport,
    User,
)
from core.errors import ValidationError

T = TypeVar("T")


def _require_id(record_id) -> str:
    rid = str(record_id).strip() if record_id is not None else ""
    if not rid:
        raise ValidationError("A record id is required.", "id")
    return rid


def _drop_empty(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None and v != ""}


def paginate_locally(
    rows: List[T], query: ListQuery, matches: Optional[Callable[[T, str], bool]] = None
) -> PageResult[T]:
    """
    For endpoints that return the whole collection as a bare array:
    apply the search term and cut out the requested page.
    """
    term = query.search.strip().lower()
    if term and matches:
        rows = [r for r in rows if matches(r, term)]
    start = (query.page - 1) * query.page_size
    return PageResult(items=tuple(rows[start : start + query.page_size]), total=len(rows))


class ResourceClient(Generic[T]):
    """
    list / get_one / create / update / delete against one REST collection.
    Payloads are sent as given; only the id is checked before a request.
    """

    path: str = ""
    parse: Callable[[Dict[str, Any]], T]

    def __init__(self, client: ApiClient) -> None:
        self.client = client

    def _item_path(self, record_id) -> str:
        return f"{self.path}/{_require_id(record_id)}"

    async def list(self, query: ListQuery) -> PageResult[T]:
        body = await self.client.get(self.path, params=query.to_params())
        return PageResult.from_body(body, self.parse)

    async def get_one(self, record_id) -> T:
        return self.parse(await self.client.get(self._item_path(record_id)))

    async def create(self, payload: Dict[str, Any]) -> T:
        return self.parse(await self.client.post(self.path, json=payload))

    async def update(self, record_id, payload: Dict[str, Any]) -> T:
        path = self._item_path(record_id)
        return self.parse(await self.client.put(path, json=payload))

    async def delete(self, record_id) -> None:
        await self.client.delete(self._item_path(record_id))


class CategoryClient(ResourceClient[Category]):
    path = "/products/categories"
    parse = staticmethod(Category.from_dict)

    async def all(self) -> List[Category]:
        body = await self.client.get(self.path)
        return list(PageResult.from_body(body, self.parse).items)

    async def list(self, query: ListQuery) -> PageResult[Category]:
        # the backend answers with every category, search happens here
        def matches(c: Category, term: str) -> bool:
            return term in c.name.lower() or term in (c.description or "").lower()

        return paginate_locally(await self.all(), query, matches)

    async def get_one(self, record_id) -> Category:
        rid = _require_id(record_id)
        for c in await self.all():
            if c.id == rid:
                return c
        # mirror what a 404 from the server would look like
        raise ApiError(ErrorKind.NOT_FOUND, 404, "Category not found")


class ProductClient(ResourceClient[Product]):
    path = "/products"
    parse = staticmethod(Product.from_dict)

    async def list(self, query: ListQuery) -> PageResult[Product]:
        # categoryId is not a server filter, narrow the received page instead
        category_id = query.filter_map.get("categoryId")
        server_query = query.with_filter("categoryId", None) if category_id else query
        if category_id:
            server_query = server_query.with_changes(page=query.page)
        result = await super().list(server_query)
        if not category_id:
            return result
        items = tuple(p for p in result.items if p.category_id == category_id)
        return PageResult(items=items, total=result.total)


class SaleClient(ResourceClient[Sale]):
    path = "/sales"
    parse = staticmethod(Sale.from_dict)

    async def create_from_draft(self, draft: SaleDraft) -> Sale:
        if not draft.lines:
            raise ValidationError("A sale needs at least one item.", "items")
        return await self.create(draft.to_payload())


class StockClient(ResourceClient[StockMovement]):
    path = "/stock/movements"
    parse = staticmethod(StockMovement.from_dict)

    async def list(self, query: ListQuery) -> PageResult[StockMovement]:
        params = query.to_params()
        for key in ("page", "limit", "search"):
            params.pop(key, None)
        body = await self.client.get(self.path, params=params)
        rows = list(PageResult.from_body(body, self.parse).items)

        # only productId is filtered by the server
        movement_type = query.filter_map.get("movementType")
        if movement_type:
            rows = [m for m in rows if m.movement_type == movement_type]
        if query.start_date or query.end_date:
            start = query.start_date or date.min
            end = query.end_date or date.max
            rows = [
                m for m in rows if m.created_at and start <= m.created_at.date() <= end
            ]

        def matches(m: StockMovement, term: str) -> bool:
            return term in (m.product_name or "").lower() or term in (
                m.reference_number or ""
            ).lower()

        return paginate_locally(rows, query, matches)

    async def adjust(
        self, product_id, new_quantity: float, notes: Optional[str] = None
    ) -> AdjustStockResult:
        if new_quantity < 0:
            raise ValidationError("Stock quantity cannot be negative.", "newQuantity")
        if notes and len(notes) > 1000:
            raise ValidationError("Notes must be less than 1000 characters.", "notes")
        body = await self.client.put(
            f"/stock/products/{_require_id(product_id)}/adjust",
            json=_drop_empty({"newQuantity": new_quantity, "notes": notes}),
        )
        return AdjustStockResult.from_dict(body)


class UserClient(ResourceClient[User]):
    path = "/users"
    parse = staticmethod(User.from_dict)

    async def list(self, query: ListQuery) -> PageResult[User]:
        # role is not a server filter either
        role = query.filter_map.get("role")
        if not role:
            return await super().list(query)
        server_query = query.with_filter("role", None).with_changes(page=query.page)
        result = await super().list(server_query)
        items = tuple(u for u in result.items if role in u.roles)
        return PageResult(items=items, total=result.total)

    async def assign_role(self, user_id, role_id: str) -> User:
        body = await self.client.post(
            f"{self._item_path(user_id)}/roles", json={"roleId": _require_id(role_id)}
        )
        return self.parse(body)


class TenantClient(ResourceClient[Tenant]):
    path = "/tenants"
    parse = staticmethod(Tenant.from_dict)


class ReportClient:
    def __init__(self, client: ApiClient) -> None:
        self.client = client

    @staticmethod
    def _range(start: date, end: date) -> Dict[str, str]:
        if start > end:
            raise ValidationError("Start date must not be after end date.", "startDate")
        return {"startDate": start.isoformat(), "endDate": end.isoformat()}

    async def sales_summary(self, start: date, end: date) -> SalesSummary:
        body = await self.client.get("/reports/sales-summary", params=self._range(start, end))
        return SalesSummary.from_dict(body or {})

    async def top_products(self, start: date, end: date, limit: int = 10) -> TopProductsReport:
        params = {**self._range(start, end), "limit": limit}
        body = await self.client.get("/reports/top-products", params=params)
        return TopProductsReport.from_dict(body or {})


class AuthClient:
    def __init__(self, client: ApiClient) -> None:
        self.client = client

    async def login(self, email: str, password: str) -> AuthResponse:
        if not email or not password:
            raise ValidationError("Email and password are required.")
        body = await self.client.post("/auth/login", json={"email": email, "password": password})
        return AuthResponse.from_dict(body)

    async def register_tenant(self, payload: Dict[str, Any]) -> AuthResponse:
        for key in ("name", "adminEmail", "adminPassword", "adminFirstName", "adminLastName"):
            if not payload.get(key):
                raise ValidationError("Fill in all required fields.", key)
        body = await self.client.post("/auth/register-tenant", json=_drop_empty(payload))
        return AuthResponse.from_dict(body)

    async def impersonate(self, user_id) -> AuthResponse:
        body = await self.client.post(f"/auth/impersonate/{_require_id(user_id)}")
        return AuthResponse.from_dict(body)


class PosApi:
    """
    One object per app holding a client for every backend resource.
    """

    def __init__(self, client: ApiClient) -> None:
        self.client = client
        self.auth = AuthClient(client)
        self.categories = CategoryClient(client)
        self.products = ProductClient(client)
        self.sales = SaleClient(client)
        self.stock = StockClient(client)
        self.users = UserClient(client)
        self.tenants = TenantClient(client)
        self.reports = ReportClient(client)
