"""Caller identity for storefront requests."""

from identity.auth.header_adapter import HeaderIdentityProvider
from identity.auth.port import IdentityProvider, Owner

__all__ = ["IdentityProvider", "HeaderIdentityProvider", "Owner"]
