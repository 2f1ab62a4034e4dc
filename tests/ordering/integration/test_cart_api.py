"""Integration tests for Cart API endpoints via TestClient."""

ALICE = {"X-Customer-Id": "cust-alice"}
GUEST = {"X-Session-Id": "sess-guest"}


def _add(client, item_id, quantity=1, headers=ALICE):
    return client.post("/cart/items", json={"item_id": item_id, "quantity": quantity}, headers=headers)


class TestAddToCart:
    def test_add_item(self, client, seeded):
        seeded("book-1", "10.00", 5)
        response = _add(client, "book-1", 2)

        assert response.status_code == 200
        body = response.json()
        assert body["owner_id"] == "cust-alice"
        assert body["item_count"] == 2
        assert body["lines"][0]["item_id"] == "book-1"
        assert body["lines"][0]["title"] == "Item book-1"
        assert body["totals"] == {"subtotal": 20.0, "tax": 1.6, "shipping": 5.99, "total": 27.59}

    def test_over_stock_is_409_with_shortfall(self, client, seeded):
        seeded("book-1", stock=3)
        response = _add(client, "book-1", 4)

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "STOCK_EXCEEDED"
        assert error["item_id"] == "book-1"
        assert error["requested"] == 4
        assert error["available"] == 3
        assert client.get("/cart/count", headers=ALICE).json() == {"count": 0}

    def test_zero_quantity_is_422(self, client, seeded):
        seeded("book-1")
        response = _add(client, "book-1", 0)
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_QUANTITY"

    def test_unknown_item_is_404(self, client):
        response = _add(client, "ghost")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_no_identity_is_401(self, client, seeded):
        seeded("book-1")
        response = client.post("/cart/items", json={"item_id": "book-1"})
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHENTICATED"

    def test_malformed_body_is_422(self, client):
        response = client.post("/cart/items", json={"quantity": 1}, headers=ALICE)
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_guest_cart(self, client, seeded):
        seeded("book-1")
        response = _add(client, "book-1", headers=GUEST)
        assert response.json()["owner_id"] == "guest:sess-guest"


class TestCartEditing:
    def test_update_quantity(self, client, seeded):
        seeded("book-1")
        _add(client, "book-1", 1)
        response = client.put("/cart/items/book-1", json={"quantity": 4}, headers=ALICE)
        assert response.status_code == 200
        assert response.json()["lines"][0]["quantity"] == 4

    def test_update_to_zero_is_422(self, client, seeded):
        seeded("book-1")
        _add(client, "book-1", 1)
        response = client.put("/cart/items/book-1", json={"quantity": 0}, headers=ALICE)
        assert response.status_code == 422

    def test_remove_item(self, client, seeded):
        seeded("book-1")
        _add(client, "book-1", 1)
        response = client.delete("/cart/items/book-1", headers=ALICE)
        assert response.status_code == 200
        assert response.json()["lines"] == []

    def test_clear_cart(self, client, seeded):
        seeded("a")
        seeded("b")
        _add(client, "a")
        _add(client, "b")
        response = client.delete("/cart", headers=ALICE)
        assert response.status_code == 200
        assert response.json()["item_count"] == 0
        assert response.json()["totals"]["total"] == 0.0

    def test_get_cart_and_count(self, client, seeded):
        seeded("a", "31.00")
        _add(client, "a", 1)

        cart = client.get("/cart", headers=ALICE).json()
        assert cart["totals"]["shipping"] == 0.0
        assert cart["lines"][0]["stock_status"] == "low_stock"
        assert client.get("/cart/count", headers=ALICE).json() == {"count": 1}


class TestMergeGuestCart:
    def test_merge_after_sign_in(self, client, seeded):
        seeded("a")
        _add(client, "a", 2, headers=GUEST)
        _add(client, "a", 1)

        response = client.post("/cart/merge", headers={**ALICE, **GUEST})

        assert response.status_code == 200
        assert response.json()["lines"][0]["quantity"] == 3
        assert client.get("/cart/count", headers=GUEST).json() == {"count": 0}

    def test_guest_cannot_merge(self, client):
        response = client.post("/cart/merge", headers=GUEST)
        assert response.status_code == 401

    def test_merge_needs_the_callers_own_session(self, client):
        response = client.post("/cart/merge", headers=ALICE)
        assert response.status_code == 401

    def test_session_named_in_body_is_ignored(self, client, seeded):
        seeded("a")
        _add(client, "a", 2, headers={"X-Session-Id": "someone-else"})

        response = client.post("/cart/merge", json={"session_id": "someone-else"}, headers={**ALICE, **GUEST})

        assert response.status_code == 200
        assert response.json()["lines"] == []
        assert client.get("/cart/count", headers={"X-Session-Id": "someone-else"}).json() == {"count": 2}
