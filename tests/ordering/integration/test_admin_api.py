"""Integration tests for catalog and stock administration endpoints."""


class TestItemAdministration:
    def test_create_item(self, client):
        response = client.post(
            "/admin/items",
            json={"item_id": "book-1", "title": "Dune", "price": "9.99", "stock": 12},
        )
        assert response.status_code == 201
        assert response.json() == {"item_id": "book-1", "title": "Dune", "price": 9.99, "available": 12}

    def test_negative_price_is_422(self, client):
        response = client.post("/admin/items", json={"item_id": "x", "title": "X", "price": "-1"})
        assert response.status_code == 422

    def test_restock(self, client, seeded):
        seeded("book-1", stock=0)
        response = client.post("/admin/items/book-1/restock", json={"quantity": 15})
        assert response.status_code == 200
        assert response.json() == {"item_id": "book-1", "available": 15, "status": "in_stock"}

    def test_restock_must_be_positive(self, client, seeded):
        seeded("book-1")
        response = client.post("/admin/items/book-1/restock", json={"quantity": 0})
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_QUANTITY"

    def test_set_stock(self, client, seeded):
        seeded("book-1", stock=40)
        response = client.put("/admin/items/book-1/stock", json={"stock": 0})
        assert response.json() == {"item_id": "book-1", "available": 0, "status": "out_of_stock"}

    def test_stock_of_unknown_item(self, client):
        assert client.get("/items/ghost/stock").status_code == 404


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok", "domain": "ordering"}
