"""Roles, capabilities and the signed-in user record."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from .errors import PermissionDeniedError


class UserRole(str, Enum):
    SALES = "Sales"
    RESERVATION = "Reservation"
    OPERATION = "Operation"
    ADMIN = "Admin"
    SUPER_ADMIN = "Super Admin"


class Capability(str, Enum):
    VIEW_OVERVIEW = "view_overview"
    MANAGE_LEADS = "manage_leads"
    BUILD_ITINERARY = "build_itinerary"
    BUILD_QUOTATION = "build_quotation"
    EXPORT_DOCUMENTS = "export_documents"
    MANAGE_BLUEPRINTS = "manage_blueprints"
    MANAGE_SETTINGS = "manage_settings"
    EDIT_CONTENT = "edit_content"


_OPERATIONS = frozenset(
    {
        Capability.MANAGE_LEADS,
        Capability.BUILD_ITINERARY,
        Capability.BUILD_QUOTATION,
        Capability.EXPORT_DOCUMENTS,
    }
)

ROLE_CAPABILITIES: Dict[UserRole, FrozenSet[Capability]] = {
    UserRole.SALES: _OPERATIONS,
    UserRole.RESERVATION: _OPERATIONS,
    UserRole.OPERATION: frozenset({Capability.BUILD_ITINERARY, Capability.EXPORT_DOCUMENTS}),
    UserRole.ADMIN: _OPERATIONS | {Capability.VIEW_OVERVIEW, Capability.MANAGE_BLUEPRINTS},
    UserRole.SUPER_ADMIN: frozenset(Capability),
}

# Higher levels outrank lower ones in the admin user tables.
HIERARCHY_LEVELS = {
    UserRole.SALES: 1,
    UserRole.RESERVATION: 2,
    UserRole.OPERATION: 3,
    UserRole.ADMIN: 4,
    UserRole.SUPER_ADMIN: 5,
}


@dataclass(frozen=True)
class User:
    id: str
    name: str
    role: UserRole
    email: str = ""
    hierarchy_level: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role.value,
            "email": self.email,
            "hierarchyLevel": self.hierarchy_level,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> Optional["User"]:
        """Rebuild a stored user; ``None`` when the record is unusable."""

        try:
            role = UserRole(payload["role"])
            return cls(
                id=str(payload["id"]),
                name=str(payload["name"]),
                role=role,
                email=str(payload.get("email") or ""),
                hierarchy_level=int(payload.get("hierarchyLevel") or HIERARCHY_LEVELS[role]),
            )
        except (KeyError, TypeError, ValueError):
            return None


def capabilities_for(role: UserRole) -> FrozenSet[Capability]:
    return ROLE_CAPABILITIES.get(role, frozenset())


def can(user: Optional[User], capability: Capability) -> bool:
    return user is not None and capability in capabilities_for(user.role)


def require(user: Optional[User], capability: Capability) -> None:
    if not can(user, capability):
        role = user.role.value if user else "anonymous"
        raise PermissionDeniedError(f"{role} users cannot {capability.value.replace('_', ' ')}.")
