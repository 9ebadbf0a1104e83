from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Role(StrEnum):
    CUSTOMER = "customer"
    ADMIN = "admin"


# Older sessions and seed scripts still carry these spellings.
_ROLE_ALIASES: dict[str, Role] = {
    "learner": Role.CUSTOMER,
    "user": Role.CUSTOMER,
}

_ROLE_RANK: dict[Role, int] = {
    Role.CUSTOMER: 1,
    Role.ADMIN: 2,
}


def normalize_role(raw: str | Role) -> Role:
    """Map a role string from a session/claim onto the closed Role enum."""
    if isinstance(raw, Role):
        return raw
    value = raw.strip().lower()
    if value in _ROLE_ALIASES:
        return _ROLE_ALIASES[value]
    try:
        return Role(value)
    except ValueError:
        raise ValueError(f"unknown role {raw!r}") from None


def has_role(actual: Role, required: Role) -> bool:
    """Hierarchical check: an admin satisfies any customer requirement."""
    return _ROLE_RANK[actual] >= _ROLE_RANK[required]


@dataclass(frozen=True, slots=True)
class Actor:
    """The user a request is made on behalf of.

    The role comes from the request's session and is never cached
    beyond that request.
    """

    id: str
    role: Role = Role.CUSTOMER

    @staticmethod
    def new(*, id: str, role: str | Role = Role.CUSTOMER) -> Actor:
        return Actor(id=id, role=normalize_role(role))

    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
