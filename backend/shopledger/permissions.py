# Overview: Role definitions and the actor identity handed from the auth gate to services.

from __future__ import annotations

from dataclasses import dataclass

from .validation import ValidationError

ROLE_OWNER = "OWNER"
ROLE_CASHIER = "CASHIER"
ROLES = (ROLE_OWNER, ROLE_CASHIER)

# Which roles may call which operation. The gate (decorators.require_role)
# enforces this; services trust the actor they are given.
OPERATION_ROLES = {
    "VIEW_PRODUCTS": ROLES,
    "MANAGE_PRODUCTS": (ROLE_OWNER,),
    "RECORD_SALE": ROLES,
    "VIEW_SALES": ROLES,
    "VIEW_REPORTS": (ROLE_OWNER,),
    "VIEW_ACTIVITY": (ROLE_OWNER,),
    "MANAGE_CASHIERS": (ROLE_OWNER,),
}


@dataclass(frozen=True)
class Actor:
    """Authenticated identity performing an operation."""
    id: int
    role: str

    def __post_init__(self):
        if isinstance(self.id, bool) or not isinstance(self.id, int) or self.id <= 0:
            raise ValidationError("actor id must be a positive integer")
        if self.role not in ROLES:
            raise ValidationError(f"actor role must be one of {', '.join(ROLES)}")

    @property
    def is_owner(self) -> bool:
        return self.role == ROLE_OWNER


def roles_for(operation: str) -> tuple[str, ...]:
    return OPERATION_ROLES[operation]
