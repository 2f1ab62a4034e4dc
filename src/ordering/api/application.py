"""FastAPI application factory for the Storefront.

Every request runs inside the ordering domain context so the Order aggregate
can raise its events; the Storefront and identity provider hang off
``app.state`` for the route dependencies.
"""

import uuid

import structlog
from catalogue.gateway.kv_adapter import KeyValueCatalog
from catalogue.gateway.memory_adapter import InMemoryCatalog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from identity.auth.header_adapter import HeaderIdentityProvider
from identity.auth.port import IdentityProvider
from shared.store.memory_adapter import InMemoryKeyValueStore
from shared.store.sqlalchemy_adapter import SqlAlchemyKeyValueStore

from ordering.api.error_handlers import register_error_handlers
from ordering.api.routes import admin_router, cart_router, item_router, order_router
from ordering.config import StorefrontSettings
from ordering.domain import ordering
from ordering.storefront import Storefront
from ordering.utils.logging import bind_request_context, clear_request_context

logger = structlog.get_logger(__name__)


def build_storefront(settings: StorefrontSettings) -> Storefront:
    """Wire a Storefront against the store selected by ``settings.database_url``.

    The durable store also holds the catalog, so items and prices survive a
    restart together with the carts and stock that refer to them.
    """
    if settings.database_url:
        store = SqlAlchemyKeyValueStore(database_uri=settings.database_url)
        return Storefront(store, KeyValueCatalog(store), settings=settings)
    return Storefront(InMemoryKeyValueStore(), InMemoryCatalog(), settings=settings)


def create_app(
    storefront: Storefront | None = None,
    identity: IdentityProvider | None = None,
    init_domain: bool = True,
    settings: StorefrontSettings | None = None,
) -> FastAPI:
    if init_domain:
        ordering.init()

    if storefront is None:
        storefront = build_storefront(settings or StorefrontSettings.from_env())

    app = FastAPI(
        title="Storefront API",
        description="Shopping carts, stock reservations and orders",
    )
    app.state.storefront = storefront
    app.state.identity = identity or HeaderIdentityProvider()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the ordering domain context and tag log lines with a request id."""
        clear_request_context()
        bind_request_context(
            request_id=request.headers.get("X-Request-Id") or str(uuid.uuid4()),
            path=request.url.path,
        )
        with ordering.domain_context():
            response = await call_next(request)
        return response

    register_error_handlers(app)

    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(admin_router)
    app.include_router(item_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "domain": ordering.name}

    logger.info("Storefront API ready", durable=bool(storefront.settings.database_url))
    return app
