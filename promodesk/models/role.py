from enum import Enum
from typing import Dict


class UserRole(str, Enum):
    """
    Acting party's function. Gates which transitions and views are permitted.
    There is no authentication: a login only records the chosen role.
    """
    COMMERCIAL = "commercial"
    COMMERCIAL_APPROVER = "commercial-approver"
    SHOP_OPS = "shop-ops"
    FINANCE = "finance"


# Display names shown next to the session and recorded as SRP version authors
ROLE_DISPLAY_NAMES: Dict[UserRole, str] = {
    UserRole.COMMERCIAL: "Commercial",
    UserRole.COMMERCIAL_APPROVER: "Commercial Approver",
    UserRole.SHOP_OPS: "ShopOps",
    UserRole.FINANCE: "Finance",
}

# Identity recorded as creator / approver when no explicit user is given
ROLE_DEMO_USERS: Dict[UserRole, str] = {
    UserRole.COMMERCIAL: "commercial@demo.com",
    UserRole.COMMERCIAL_APPROVER: "approver@demo.com",
    UserRole.SHOP_OPS: "shopops@demo.com",
    UserRole.FINANCE: "finance@demo.com",
}

# Where each role lands after login
ROLE_LANDING_PATHS: Dict[UserRole, str] = {
    UserRole.COMMERCIAL: "/dashboard",
    UserRole.COMMERCIAL_APPROVER: "/dashboard/approvals",
    UserRole.SHOP_OPS: "/shop-operations",
    UserRole.FINANCE: "/dashboard",
}


def get_role_display_name(role: "UserRole | str | None") -> str:
    """Human label for a role; unknown roles read as 'User'."""
    try:
        return ROLE_DISPLAY_NAMES[UserRole(role)]
    except ValueError:
        return "User"
