"""Role resolution for the dashboard."""

from __future__ import annotations

from ..services.schemas import UserRole


_ROLE_MARKERS: tuple[tuple[str, UserRole], ...] = (
    ("ADMIN", UserRole.ADMINISTRADOR),
    ("CAJERO", UserRole.CAJERO),
    ("OPERADOR", UserRole.OPERADOR),
)


def map_role(raw: str | None) -> UserRole | None:
    """Map a persisted role string to a UserRole, or None when unknown."""
    if not raw:
        return None
    value = raw.upper()
    for marker, role in _ROLE_MARKERS:
        if marker in value:
            return role
    return None


def resolve_role(raw: str | None, fallback: UserRole) -> UserRole:
    """Return the role stored in the session, else the caller's fallback."""
    return map_role(raw) or fallback
