"""Request-scoped caller identity.

Authentication happens upstream; the gateway forwards the verified user id and
role in headers, and every core operation receives the resulting ``Principal``
explicitly.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Header

from .errors import Forbidden, NotAuthenticated

CUSTOMER = "customer"
OWNER = "restaurant_owner"
ADMIN = "admin"
ROLES = (CUSTOMER, OWNER, ADMIN)


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: str = CUSTOMER

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN


def require_principal(principal: Optional[Principal]) -> Principal:
    if principal is None or not principal.user_id:
        raise NotAuthenticated()
    return principal


def can_manage(principal: Principal, restaurant) -> bool:
    return principal.is_admin or restaurant.owner_id == principal.user_id


def ensure_can_manage(principal: Optional[Principal], restaurant) -> Principal:
    principal = require_principal(principal)
    if not can_manage(principal, restaurant):
        raise Forbidden("Only the restaurant owner can manage this restaurant")
    return principal


def get_principal(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Optional[Principal]:
    """FastAPI dependency; ``None`` when the request carries no identity."""
    if not x_user_id:
        return None
    role = (x_user_role or CUSTOMER).strip().lower()
    if role not in ROLES:
        role = CUSTOMER
    return Principal(user_id=x_user_id.strip(), role=role)
