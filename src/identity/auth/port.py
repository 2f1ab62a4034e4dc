"""Identity provider port (abstract interface).

Session issuance lives outside the storefront; this contract only resolves
the caller of the current request into an Owner, or refuses.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Owner:
    """Whoever a cart belongs to.

    Guests are identified by their browsing session and may fill a cart,
    but must sign in before checking out.
    """

    owner_id: str
    is_guest: bool = False

    @classmethod
    def customer(cls, customer_id: str) -> "Owner":
        return cls(owner_id=str(customer_id), is_guest=False)

    @classmethod
    def guest(cls, session_id: str) -> "Owner":
        return cls(owner_id=f"guest:{session_id}", is_guest=True)


class IdentityProvider(ABC):
    @abstractmethod
    def current_owner(self, customer_id: str | None, session_id: str | None) -> Owner:
        """Resolve the caller, raising Unauthenticated when neither id is usable."""
        ...
