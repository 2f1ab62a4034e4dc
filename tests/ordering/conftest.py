from decimal import Decimal

import pytest
from catalogue.gateway.memory_adapter import InMemoryCatalog
from identity.auth.port import Owner
from protean.integrations.pytest import DomainFixture
from shared.store.memory_adapter import InMemoryKeyValueStore

from ordering.config import StorefrontSettings
from ordering.storefront import Storefront


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture()
def settings():
    return StorefrontSettings(environment="test")


@pytest.fixture()
def store():
    return InMemoryKeyValueStore()


@pytest.fixture()
def catalog():
    return InMemoryCatalog()


@pytest.fixture()
def storefront(store, catalog, settings):
    return Storefront(store, catalog, settings=settings)


@pytest.fixture()
def stock_item(storefront):
    """Register a catalog item with stock: ``stock_item("book-1", "12.50", 5)``."""

    def _stock(item_id, price="10.00", stock=10, title=None):
        storefront.add_item(item_id, title or f"Item {item_id}", Decimal(price), stock)
        return item_id

    return _stock


@pytest.fixture()
def alice():
    return Owner.customer("cust-alice")


@pytest.fixture()
def bob():
    return Owner.customer("cust-bob")
