"""Identity provider that trusts ids forwarded by the session gateway.

The gateway in front of the storefront authenticates the user and forwards
``X-Customer-Id`` (signed-in customers) or ``X-Session-Id`` (guests).
"""

from shared.errors import Unauthenticated

from identity.auth.port import IdentityProvider, Owner


class HeaderIdentityProvider(IdentityProvider):
    def __init__(self, allow_guests: bool = True) -> None:
        self.allow_guests = allow_guests

    def current_owner(self, customer_id: str | None, session_id: str | None) -> Owner:
        if customer_id and customer_id.strip():
            return Owner.customer(customer_id.strip())
        if self.allow_guests and session_id and session_id.strip():
            return Owner.guest(session_id.strip())
        raise Unauthenticated()
