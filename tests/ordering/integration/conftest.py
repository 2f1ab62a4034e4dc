import pytest
from fastapi.testclient import TestClient
from ordering.api.application import create_app


@pytest.fixture()
def client(storefront):
    # The session DomainFixture has already initialized the ordering domain
    app = create_app(storefront=storefront, init_domain=False)
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def seeded(client):
    """Create catalog items through the admin API."""

    def _seed(item_id, price="10.00", stock=10, title=None):
        response = client.post(
            "/admin/items",
            json={"item_id": item_id, "title": title or f"Item {item_id}", "price": price, "stock": stock},
        )
        assert response.status_code == 201
        return item_id

    return _seed
