from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from api.models import Session

SUPER_ADMIN = "SuperAdmin"
TENANT_ADMIN = "TenantAdmin"
CASHIER = "Cashier"
VIEWER = "Viewer"

ALL_ROLES = (SUPER_ADMIN, TENANT_ADMIN, CASHIER, VIEWER)


class RoleGate:
    """
    Answers role questions for one session. A missing session has no roles.
    """

    def __init__(self, session: Optional[Session]) -> None:
        self.session = session

    def has_role(self, role: str) -> bool:
        if self.session is None:
            return False
        return role in self.session.roles

    def has_any(self, *roles: str) -> bool:
        return any(self.has_role(r) for r in roles)


@dataclass(frozen=True)
class Capabilities:
    manage_categories: bool = False
    manage_products: bool = False
    manage_sales: bool = False
    view_stock: bool = False
    create_stock_movement: bool = False
    adjust_stock: bool = False
    view_reports: bool = False
    manage_users: bool = False
    impersonate: bool = False
    manage_tenants: bool = False

    @classmethod
    def from_gate(cls, gate: RoleGate) -> "Capabilities":
        return cls(
            manage_categories=gate.has_role(TENANT_ADMIN),
            manage_products=gate.has_any(TENANT_ADMIN, SUPER_ADMIN),
            manage_sales=gate.has_any(TENANT_ADMIN, CASHIER),
            view_stock=gate.has_any(SUPER_ADMIN, TENANT_ADMIN, CASHIER),
            create_stock_movement=gate.has_any(TENANT_ADMIN, CASHIER),
            adjust_stock=gate.has_role(TENANT_ADMIN),
            view_reports=gate.has_any(TENANT_ADMIN, VIEWER, SUPER_ADMIN),
            manage_users=gate.has_any(SUPER_ADMIN, TENANT_ADMIN),
            impersonate=gate.has_role(SUPER_ADMIN),
            manage_tenants=gate.has_role(SUPER_ADMIN),
        )


def capabilities_for(session: Optional[Session]) -> Capabilities:
    return Capabilities.from_gate(RoleGate(session))
