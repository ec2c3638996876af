from __future__ import annotations

import pytest

from lmt_proposals.access import Capability, User, UserRole, can, capabilities_for, require
from lmt_proposals.errors import PermissionDeniedError


def test_super_admin_holds_every_capability():
    assert capabilities_for(UserRole.SUPER_ADMIN) == frozenset(Capability)


def test_sales_can_build_but_not_administer():
    sales = User(id="priya", name="Priya", role=UserRole.SALES)

    assert can(sales, Capability.BUILD_QUOTATION)
    assert can(sales, Capability.EXPORT_DOCUMENTS)
    assert not can(sales, Capability.MANAGE_SETTINGS)
    with pytest.raises(PermissionDeniedError):
        require(sales, Capability.EDIT_CONTENT)


def test_operation_role_builds_itineraries_only():
    caps = capabilities_for(UserRole.OPERATION)

    assert Capability.BUILD_ITINERARY in caps
    assert Capability.BUILD_QUOTATION not in caps


def test_anonymous_user_has_no_capabilities():
    assert not can(None, Capability.MANAGE_LEADS)
    with pytest.raises(PermissionDeniedError):
        require(None, Capability.MANAGE_LEADS)


def test_user_round_trips_through_stored_dict():
    user = User(id="admin", name="Agency Admin", role=UserRole.ADMIN, email="ops@example.com", hierarchy_level=4)

    payload = user.to_dict()

    assert payload["role"] == "Admin"
    assert User.from_dict(payload) == user
    assert User.from_dict({"id": "x", "name": "X", "role": "Pilot"}) is None
    assert User.from_dict({"name": "missing id"}) is None
