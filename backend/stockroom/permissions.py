# Overview: Role -> permission mapping used by require_permission.

"""
Permissions are static per role. A user has exactly one role.

- admin: everything, including financial reports
- manager: catalog, stock, sales, invoices and operational reports
- staff: read catalog, record sales, issue invoices
"""

INVENTORY_READ = "inventory:read"
INVENTORY_WRITE = "inventory:write"
SALES_WRITE = "sales:write"
INVOICES_WRITE = "invoices:write"
REPORTS_READ = "reports:read"
REPORTS_WRITE = "reports:write"

ALL_PERMISSIONS = frozenset({
    INVENTORY_READ,
    INVENTORY_WRITE,
    SALES_WRITE,
    INVOICES_WRITE,
    REPORTS_READ,
    REPORTS_WRITE,
})

ROLE_PERMISSIONS = {
    "admin": ALL_PERMISSIONS,
    "manager": ALL_PERMISSIONS - {REPORTS_WRITE},
    "staff": frozenset({INVENTORY_READ, SALES_WRITE, INVOICES_WRITE}),
}

ROLES = tuple(ROLE_PERMISSIONS)


def permissions_for(role: str | None) -> frozenset:
    return ROLE_PERMISSIONS.get(role or "", frozenset())


def has_permission(role: str | None, permission_code: str) -> bool:
    return permission_code in permissions_for(role)
