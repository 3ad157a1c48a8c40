# provide dataclass models for backend payloads
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from core.errors import ValidationError

T = TypeVar("T")

PAYMENT_METHODS = ("CASH", "CARD", "MIXED")
MOVEMENT_TYPES = ("PURCHASE", "SALE", "ADJUSTMENT", "RETURN")


def _dt(val) -> Optional[datetime]:
    if not val:
        return None
    # the backend sends ISO-8601 with a trailing Z
    return datetime.fromisoformat(str(val).replace("Z", "+00:00"))


def _num(val, default: float = 0.0) -> float:
    # decimal columns come back as strings
    if val is None or val == "":
        return default
    return float(val)


def _opt_num(val) -> Optional[float]:
    if val is None or val == "":
        return None
    return float(val)


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    description: Optional[str] = None
    tenant_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Category":
        return cls(
            id=str(d["id"]),
            name=d.get("name", ""),
            description=d.get("description"),
            tenant_id=d.get("tenantId"),
            created_at=_dt(d.get("createdAt")),
        )


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    sku: str
    category_id: str
    unit_price: float
    stock_quantity: float
    min_stock_level: float
    is_active: bool = True
    barcode: Optional[str] = None
    cost_price: Optional[float] = None
    category_name: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Product":
        category = d.get("category") or {}
        return cls(
            id=str(d["id"]),
            name=d.get("name", ""),
            sku=d.get("sku", ""),
            category_id=str(d.get("categoryId") or category.get("id") or ""),
            unit_price=_num(d.get("unitPrice")),
            stock_quantity=_num(d.get("stockQuantity")),
            min_stock_level=_num(d.get("minStockLevel")),
            is_active=bool(d.get("isActive", True)),
            barcode=d.get("barcode"),
            cost_price=_opt_num(d.get("costPrice")),
            category_name=category.get("name"),
        )


@dataclass(frozen=True)
class SaleItem:
    product_id: str
    quantity: float
    unit_price: float
    discount_amount: float = 0.0
    line_total: float = 0.0
    product_name: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SaleItem":
        return cls(
            product_id=str(d.get("productId", "")),
            quantity=_num(d.get("quantity")),
            unit_price=_num(d.get("unitPrice")),
            discount_amount=_num(d.get("discountAmount")),
            line_total=_num(d.get("lineTotal")),
            product_name=d.get("productName"),
        )


@dataclass(frozen=True)
class Sale:
    id: str
    sale_number: str
    total_amount: float
    discount_amount: float
    final_amount: float
    payment_method: str
    cashier_name: Optional[str] = None
    created_at: Optional[datetime] = None
    items: Tuple[SaleItem, ...] = ()

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Sale":
        return cls(
            id=str(d["id"]),
            sale_number=d.get("saleNumber", ""),
            total_amount=_num(d.get("totalAmount")),
            discount_amount=_num(d.get("discountAmount")),
            final_amount=_num(d.get("finalAmount")),
            payment_method=d.get("paymentMethod", ""),
            cashier_name=d.get("cashierName"),
            created_at=_dt(d.get("createdAt")),
            items=tuple(SaleItem.from_dict(i) for i in d.get("items") or []),
        )


@dataclass(frozen=True)
class StockMovement:
    id: str
    product_id: str
    movement_type: str
    quantity: float
    unit_price: float
    product_name: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    created_by_name: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StockMovement":
        return cls(
            id=str(d["id"]),
            product_id=str(d.get("productId", "")),
            movement_type=d.get("movementType", ""),
            quantity=_num(d.get("quantity")),
            unit_price=_num(d.get("unitPrice")),
            product_name=d.get("productName"),
            reference_number=d.get("referenceNumber"),
            notes=d.get("notes"),
            created_by_name=d.get("createdByName"),
            created_at=_dt(d.get("createdAt")),
        )


@dataclass(frozen=True)
class AdjustStockResult:
    product_id: str
    old_quantity: float
    new_quantity: float
    adjustment: float

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AdjustStockResult":
        return cls(
            product_id=str(d.get("productId", "")),
            old_quantity=_num(d.get("oldQuantity")),
            new_quantity=_num(d.get("newQuantity")),
            adjustment=_num(d.get("adjustment")),
        )


@dataclass(frozen=True)
class Tenant:
    id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Tenant":
        return cls(
            id=str(d["id"]),
            name=d.get("name", ""),
            address=d.get("address"),
            phone=d.get("phone"),
            email=d.get("email"),
            is_active=bool(d.get("isActive", True)),
        )


def _role_names(roles) -> Tuple[str, ...]:
    # roles arrive either as plain names or as {id, name} objects
    names = []
    for r in roles or []:
        names.append(r["name"] if isinstance(r, dict) else str(r))
    return tuple(names)


@dataclass(frozen=True)
class User:
    id: str
    email: str
    first_name: str
    last_name: str
    roles: Tuple[str, ...] = ()
    tenant_id: Optional[str] = None
    is_active: bool = True
    tenant_name: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "User":
        tenant = d.get("tenant") or {}
        return cls(
            id=str(d["id"]),
            email=d.get("email", ""),
            first_name=d.get("firstName", ""),
            last_name=d.get("lastName", ""),
            roles=_role_names(d.get("roles")),
            tenant_id=d.get("tenantId"),
            is_active=bool(d.get("isActive", True)),
            tenant_name=tenant.get("name"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "tenantId": self.tenant_id,
            "roles": list(self.roles),
        }


@dataclass(frozen=True)
class AuthResponse:
    access_token: str
    user: User

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AuthResponse":
        return cls(access_token=d["accessToken"], user=User.from_dict(d["user"]))


@dataclass(frozen=True)
class Session:
    """
    The signed-in user as seen by the views. Read-only; replaced as a whole
    on login, impersonation and logout.
    """

    user_id: str
    display_name: str
    roles: frozenset
    token: str = ""
    email: str = ""
    tenant_id: Optional[str] = None

    @classmethod
    def from_auth(cls, token: str, user: User) -> "Session":
        return cls(
            user_id=user.id,
            display_name=user.full_name or user.email,
            roles=frozenset(user.roles),
            token=token,
            email=user.email,
            tenant_id=user.tenant_id,
        )


@dataclass(frozen=True)
class DailySales:
    day: date
    sales: float
    orders: int
    average_order: float


@dataclass(frozen=True)
class SalesSummary:
    total_sales: float
    total_orders: int
    average_daily: float = 0.0
    growth_percentage: float = 0.0
    daily: Tuple[DailySales, ...] = ()

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SalesSummary":
        return cls(
            total_sales=_num(d.get("totalSales")),
            total_orders=int(d.get("totalOrders") or 0),
            average_daily=_num(d.get("averageDaily")),
            growth_percentage=_num(d.get("growthPercentage")),
            daily=tuple(
                DailySales(
                    day=date.fromisoformat(str(row["date"])[:10]),
                    sales=_num(row.get("sales")),
                    orders=int(row.get("orders") or 0),
                    average_order=_num(row.get("averageOrder")),
                )
                for row in d.get("dailyBreakdown") or []
            ),
        )


@dataclass(frozen=True)
class TopProduct:
    product_id: str
    product_name: str
    sales_quantity: float
    revenue: float
    percentage_of_total: float


@dataclass(frozen=True)
class TopProductsReport:
    products: Tuple[TopProduct, ...]
    total_revenue: float

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TopProductsReport":
        return cls(
            products=tuple(
                TopProduct(
                    product_id=str(p.get("productId", "")),
                    product_name=p.get("productName", ""),
                    sales_quantity=_num(p.get("salesQuantity")),
                    revenue=_num(p.get("revenue")),
                    percentage_of_total=_num(p.get("percentageOfTotal")),
                )
                for p in d.get("products") or []
            ),
            total_revenue=_num(d.get("totalRevenue")),
        )


@dataclass(frozen=True)
class DashboardStats:
    today_sales: float
    today_orders: int
    total_products: int
    low_stock: int


@dataclass(frozen=True)
class PageResult(Generic[T]):
    items: Tuple[T, ...] = ()
    total: int = 0

    @classmethod
    def from_body(cls, body, parse: Callable[[Dict[str, Any]], T]) -> "PageResult[T]":
        """
        Accepts both {data, total} envelopes and bare arrays.
        A missing total falls back to the number of items received.
        """
        if isinstance(body, list):
            rows: List[Dict[str, Any]] = body
            total = len(rows)
        else:
            body = body or {}
            rows = body.get("data") or []
            total = body.get("total")
            total = len(rows) if total is None else int(total)
        return cls(items=tuple(parse(r) for r in rows), total=max(total, 0))


@dataclass(frozen=True)
class SaleLine:
    """
    One line of a sale being composed in the console, before it is sent.
    """

    product_id: str
    product_name: str
    quantity: float
    unit_price: float
    discount_amount: float = 0.0

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price - self.discount_amount

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            "productId": self.product_id,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
        }
        if self.discount_amount:
            payload["discountAmount"] = self.discount_amount
        return payload


@dataclass
class SaleDraft:
    lines: List[SaleLine] = field(default_factory=list)
    payment_method: str = "CASH"
    discount_amount: float = 0.0

    @property
    def subtotal(self) -> float:
        return sum(line.line_total for line in self.lines)

    @property
    def total(self) -> float:
        return max(self.subtotal - self.discount_amount, 0.0)

    @classmethod
    def from_sale(cls, sale: "Sale") -> "SaleDraft":
        return cls(
            lines=[
                SaleLine(
                    product_id=i.product_id,
                    product_name=i.product_name or i.product_id,
                    quantity=i.quantity,
                    unit_price=i.unit_price,
                    discount_amount=i.discount_amount,
                )
                for i in sale.items
            ],
            payment_method=sale.payment_method or "CASH",
            discount_amount=sale.discount_amount,
        )

    def add_line(self, line: SaleLine) -> None:
        if line.quantity <= 0:
            raise ValidationError("Quantity must be greater than 0.", "quantity")
        if line.unit_price < 0:
            raise ValidationError("Unit price cannot be negative.", "unitPrice")
        if any(existing.product_id == line.product_id for existing in self.lines):
            raise ValidationError(
                "Product already added. Update quantity instead.", "productId"
            )
        self.lines.append(line)

    def remove_line(self, product_id: str) -> None:
        self.lines = [line for line in self.lines if line.product_id != product_id]

    def set_discount(self, amount: float) -> None:
        if amount < 0:
            raise ValidationError("Discount cannot be negative.", "discountAmount")
        self.discount_amount = amount

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            "items": [line.to_payload() for line in self.lines],
            "paymentMethod": self.payment_method,
        }
        if self.discount_amount:
            payload["discountAmount"] = self.discount_amount
        return payload


@dataclass(frozen=True)
class ListQuery:
    """
    Query state of a list page. Replaced, never mutated; use with_changes().
    """

    page: int = 1
    page_size: int = 10
    search: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    filters: Tuple[Tuple[str, str], ...] = ()

    def __post_init__(self):
        if self.page < 1:
            raise ValidationError("Page must be at least 1.", "page")
        if self.page_size < 1:
            raise ValidationError("Page size must be at least 1.", "page_size")
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError("Start date must not be after end date.", "start_date")

    @property
    def filter_map(self) -> Dict[str, str]:
        return dict(self.filters)

    def with_changes(self, **changes) -> "ListQuery":
        """
        Copy with the given fields replaced. Any change other than the page
        itself sends the query back to page 1.
        """
        if "filters" in changes and isinstance(changes["filters"], dict):
            changes["filters"] = _freeze_filters(changes["filters"])
        current = {
            "page": self.page,
            "page_size": self.page_size,
            "search": self.search,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "filters": self.filters,
        }
        merged = {**current, **changes}
        if any(merged[k] != current[k] for k in current if k != "page"):
            merged["page"] = 1
        return ListQuery(**merged)

    def with_filter(self, key: str, value: Optional[str]) -> "ListQuery":
        filters = self.filter_map
        if value:
            filters[key] = value
        else:
            filters.pop(key, None)
        return self.with_changes(filters=filters)

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {"page": self.page, "limit": self.page_size}
        if self.search:
            params["search"] = self.search
        if self.start_date:
            params["startDate"] = self.start_date.isoformat()
        if self.end_date:
            params["endDate"] = self.end_date.isoformat()
        for k, v in self.filters:
            if v:
                params[k] = v
        return params


def _freeze_filters(filters: Dict[str, str]) -> Tuple[Tuple[str, str], ...]:
    return tuple(sorted((k, v) for k, v in filters.items() if v))
