from __future__ import annotations

import pytest

from siga_client.runtime.roles import map_role, resolve_role
from siga_client.services.schemas import UserRole


def test_admin_substring_wins_over_fallback() -> None:
    assert resolve_role("admin_user", UserRole.CAJERO) is UserRole.ADMINISTRADOR


def test_missing_role_uses_fallback() -> None:
    assert resolve_role(None, UserRole.OPERADOR) is UserRole.OPERADOR
    assert resolve_role("", UserRole.CAJERO) is UserRole.CAJERO


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("ROLE_ADMINISTRADOR", UserRole.ADMINISTRADOR),
        ("cajero", UserRole.CAJERO),
        ("Operador de bodega", UserRole.OPERADOR),
        ("admin-cajero", UserRole.ADMINISTRADOR),
        ("cajero_operador", UserRole.CAJERO),
    ],
)
def test_markers_are_checked_in_priority_order(raw: str, expected: UserRole) -> None:
    assert map_role(raw) is expected


def test_unknown_role_falls_back() -> None:
    assert map_role("supervisor") is None
    for fallback in UserRole:
        assert resolve_role("supervisor", fallback) is fallback
