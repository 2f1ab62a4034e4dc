"""Tests for resolving the caller from forwarded identity headers."""

import pytest
from identity.auth import HeaderIdentityProvider, Owner
from shared.errors import Unauthenticated


class TestHeaderIdentityProvider:
    def test_customer_wins_over_session(self):
        owner = HeaderIdentityProvider().current_owner("cust-1", "sess-1")
        assert owner == Owner.customer("cust-1")
        assert not owner.is_guest

    def test_guest_from_session(self):
        owner = HeaderIdentityProvider().current_owner(None, "sess-1")
        assert owner.owner_id == "guest:sess-1"
        assert owner.is_guest

    def test_blank_ids_are_ignored(self):
        with pytest.raises(Unauthenticated):
            HeaderIdentityProvider().current_owner("  ", "")

    def test_guests_can_be_disabled(self):
        with pytest.raises(Unauthenticated):
            HeaderIdentityProvider(allow_guests=False).current_owner(None, "sess-1")

    def test_guest_and_customer_ids_never_collide(self):
        assert Owner.guest("cust-1").owner_id != Owner.customer("cust-1").owner_id
