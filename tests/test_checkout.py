# tests/test_checkout.py
from decimal import Decimal
from fastapi.testclient import TestClient
from marketstore import config
from marketstore.main import app
from marketstore.database import PRODUCTS, ORDERS, IDEMPOTENCY

client = TestClient(app)


def reset():
    client.post("/reset")


def add_product(name="Tomatoes", category="vegetables", quantity=5, price=10.0):
    r = client.post("/upload/products", data={
        "productName": name, "productCategory": category,
        "productQuantity": str(quantity), "productPrice": str(price)
    })
    assert r.status_code == 201
    return r.json()["product"]["id"]


def checkout(email, lines, headers=None):
    body = {"userEmail": email, "cartItems": [{"productId": pid, "quantity": q} for pid, q in lines]}
    return client.post("/checkout", json=body, headers=headers or {})


def test_checkout_success_decrements_stock():
    reset()
    p1 = add_product(quantity=5, price=10)
    r = checkout("alice@farm.io", [(p1, 2)])
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Order placed successfully"
    order = body["order"]
    assert order["total_price"] == 20
    assert order["status"] == "pending"
    assert order["items"] == [{"product_id": p1, "name": "Tomatoes", "quantity": 2, "price": 10.0,
                               "line_total": 20.0}]
    assert PRODUCTS[p1]["quantity"] == 3
    assert len(ORDERS) == 1


def test_multi_line_total_matches_line_sum():
    reset()
    p1 = add_product("Tomatoes", quantity=5, price=10)
    p2 = add_product("Rice", "grains", quantity=20, price=4.5)
    r = checkout("alice@farm.io", [(p1, 1), (p2, 3)])
    assert r.status_code == 200
    order = r.json()["order"]
    assert order["total_price"] == sum(i["price"] * i["quantity"] for i in order["items"]) == 23.5
    assert PRODUCTS[p1]["quantity"] == 4
    assert PRODUCTS[p2]["quantity"] == 17


def test_insufficient_stock_names_product_and_keeps_stock():
    reset()
    p1 = add_product(quantity=5)
    r = checkout("bob@farm.io", [(p1, 10)])
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "insufficient_stock"
    assert "Tomatoes" in body["message"]
    assert body["productId"] == p1
    assert PRODUCTS[p1]["quantity"] == 5
    assert ORDERS == {}


def test_failure_mid_cart_leaves_earlier_lines_untouched():
    reset()
    p1 = add_product("Tomatoes", quantity=5)
    p2 = add_product("Mangoes", "fruit", quantity=1)
    r = checkout("bob@farm.io", [(p1, 2), (p2, 3)])
    assert r.status_code == 400
    assert "Mangoes" in r.json()["message"]
    assert PRODUCTS[p1]["quantity"] == 5
    assert PRODUCTS[p2]["quantity"] == 1
    assert ORDERS == {}


def test_missing_product_is_404_and_nothing_changes():
    reset()
    p1 = add_product(quantity=5)
    r = checkout("bob@farm.io", [(p1, 1), ("does-not-exist", 1)])
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"
    assert PRODUCTS[p1]["quantity"] == 5
    assert ORDERS == {}


def test_empty_cart_rejected():
    reset()
    r = checkout("bob@farm.io", [])
    assert r.status_code == 400
    assert r.json()["error"] == "empty_cart"


def test_non_positive_quantity_rejected():
    reset()
    p1 = add_product(quantity=5)
    r = checkout("bob@farm.io", [(p1, 0)])
    assert r.status_code == 400
    assert r.json()["field"] == "quantity"
    assert PRODUCTS[p1]["quantity"] == 5


def test_duplicate_lines_are_merged_before_stock_check():
    reset()
    p1 = add_product(quantity=5)
    r = checkout("bob@farm.io", [(p1, 3), (p1, 3)])
    assert r.status_code == 400
    assert PRODUCTS[p1]["quantity"] == 5
    r = checkout("bob@farm.io", [(p1, 2), (p1, 3)])
    assert r.status_code == 200
    assert r.json()["order"]["items"][0]["quantity"] == 5
    assert PRODUCTS[p1]["quantity"] == 0


def test_price_snapshot_survives_later_price_change():
    reset()
    p1 = add_product(quantity=5, price=10)
    order = checkout("carol@farm.io", [(p1, 1)]).json()["order"]
    PRODUCTS[p1]["price"] = 99.0
    orders = client.get("/orders/carol@farm.io").json()
    assert orders[0]["id"] == order["id"]
    assert orders[0]["items"][0]["price"] == 10.0


def test_idempotency_key_replays_without_second_decrement():
    reset()
    p1 = add_product(quantity=5)
    r1 = checkout("dan@farm.io", [(p1, 2)], headers={"Idempotency-Key": "k1"})
    r2 = checkout("dan@farm.io", [(p1, 2)], headers={"Idempotency-Key": "k1"})
    assert r1.status_code == r2.status_code == 200
    assert r1.json()["order"]["id"] == r2.json()["order"]["id"]
    assert PRODUCTS[p1]["quantity"] == 3
    assert len(ORDERS) == 1


def test_orders_listed_newest_first_with_normalised_email():
    reset()
    p1 = add_product(quantity=5)
    first = checkout("Erin@Farm.io", [(p1, 1)]).json()["order"]
    second = checkout("erin@farm.io", [(p1, 1)]).json()["order"]
    orders = client.get("/orders/ERIN@farm.io").json()
    assert [o["id"] for o in orders] == [second["id"], first["id"]]


def test_total_is_exact_for_sub_cent_prices():
    reset()
    p1 = add_product("Saffron", "spice", quantity=3, price=0.125)
    order = checkout("fay@farm.io", [(p1, 1)]).json()["order"]
    assert order["items"][0]["line_total"] == 0.125
    assert order["total_price"] == 0.125


def test_total_equals_sum_of_line_totals_without_float_drift():
    reset()
    pids = [add_product(f"Seed {i}", "seeds", quantity=2, price=0.1) for i in range(3)]
    order = checkout("fay@farm.io", [(pid, 1) for pid in pids]).json()["order"]
    assert order["total_price"] == 0.3
    assert Decimal(str(order["total_price"])) == sum(Decimal(str(i["line_total"])) for i in order["items"])


def test_cart_line_without_quantity_rejected():
    reset()
    p1 = add_product(quantity=5)
    r = client.post("/checkout", json={"userEmail": "gus@farm.io", "cartItems": [{"productId": p1}]})
    assert r.status_code == 400
    assert r.json()["field"] == "quantity"
    assert PRODUCTS[p1]["quantity"] == 5
    assert ORDERS == {}


def test_idempotency_key_is_scoped_to_the_buyer():
    reset()
    p1 = add_product(quantity=5)
    r1 = checkout("hal@farm.io", [(p1, 1)], headers={"Idempotency-Key": "shared"})
    r2 = checkout("ivy@farm.io", [(p1, 1)], headers={"Idempotency-Key": "shared"})
    assert r1.status_code == r2.status_code == 200
    assert r1.json()["order"]["id"] != r2.json()["order"]["id"]
    assert r2.json()["order"]["email"] == "ivy@farm.io"
    assert PRODUCTS[p1]["quantity"] == 3


def test_idempotency_key_reused_for_different_cart_conflicts():
    reset()
    p1 = add_product(quantity=5)
    r1 = checkout("hal@farm.io", [(p1, 1)], headers={"Idempotency-Key": "k2"})
    r2 = checkout("hal@farm.io", [(p1, 3)], headers={"Idempotency-Key": "k2"})
    assert r1.status_code == 200
    assert r2.status_code == 409
    assert r2.json()["error"] == "conflict"
    assert PRODUCTS[p1]["quantity"] == 4
    assert len(ORDERS) == 1


def test_idempotency_store_drops_oldest_keys(monkeypatch):
    reset()
    monkeypatch.setattr(config, "IDEMPOTENCY_MAX_KEYS", 1)
    p1 = add_product(quantity=5)
    checkout("jo@farm.io", [(p1, 1)], headers={"Idempotency-Key": "a"})
    checkout("jo@farm.io", [(p1, 1)], headers={"Idempotency-Key": "b"})
    assert list(IDEMPOTENCY) == ["jo@farm.io:b"]
    # "a" was forgotten, so it places a fresh order
    checkout("jo@farm.io", [(p1, 1)], headers={"Idempotency-Key": "a"})
    assert PRODUCTS[p1]["quantity"] == 2
    assert len(ORDERS) == 3
