"""Storefront FastAPI application.

Usage:
    uvicorn app:app --host 0.0.0.0 --port 8000 --reload

``STOREFRONT_DATABASE_URL`` selects the durable SQL-backed store; without
it the catalog, carts, stock and orders live in process memory.
``PROTEAN_ENV`` selects the logging format (JSON in production and staging).
"""

from ordering.config import StorefrontSettings
from ordering.utils.logging import configure_logging

settings = StorefrontSettings.from_env()
configure_logging(settings)

from ordering.api.application import create_app  # noqa: E402

app = create_app(settings=settings)
