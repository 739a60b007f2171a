# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.
"""Unit tests for ActorIdentity and roles."""

import pytest
from condoguard.core.tenant import ActorIdentity, Role


class TestRole:
    def test_wire_codes(self):
        assert Role("X") is Role.OWNER_ADMIN
        assert Role("A") is Role.CHECKPOINT
        assert Role("B") is Role.OCCUPANT

    def test_capabilities(self):
        assert Role.OWNER_ADMIN.can_issue and Role.OWNER_ADMIN.can_validate
        assert Role.OCCUPANT.can_issue and not Role.OCCUPANT.can_validate
        assert not Role.CHECKPOINT.can_issue and Role.CHECKPOINT.can_validate
        assert Role.OCCUPANT.is_unit_scoped
        assert not Role.OWNER_ADMIN.is_unit_scoped


class TestActorIdentity:
    def test_create(self):
        actor = ActorIdentity(tenant_id="t1")
        assert actor.tenant_id == "t1"
        assert actor.role is Role.CHECKPOINT
        assert actor.unit is None

    def test_empty_tenant_id_raises(self):
        with pytest.raises(ValueError, match="must not be empty"):
            ActorIdentity(tenant_id="")

    def test_occupant_requires_unit(self):
        with pytest.raises(ValueError, match="unit is required"):
            ActorIdentity(tenant_id="t1", role=Role.OCCUPANT)

    def test_owns_unit(self, owner_admin, occupant, checkpoint):
        assert owner_admin.owns_unit("999")
        assert occupant.owns_unit("101")
        assert not occupant.owns_unit("102")
        assert not checkpoint.owns_unit("101")

    def test_repr(self, occupant):
        assert "t1" in repr(occupant)
        assert "'B'" in repr(occupant)
