# test_order_flow_e2e.py
import httpx

from ordo.errors import PersistenceError
from ordo.services.dispatch import WhatsAppDispatcher


def jprint(step, r):
    """Helper to print response and assert on failure."""
    assert 200 <= r.status_code < 300, f"{step} -> {r.status_code}: {r.text}"
    return r.json() if r.headers.get("content-type", "").startswith("application/json") else r.text


def seed_catalog(client, rng_suffix):
    r = client.post("/admin/menu/categories", json={"name": f"Mains-{rng_suffix}"})
    cat_id = jprint("POST /admin/menu/categories", r)["id"]

    r = client.post("/admin/menu/personalizations", json={
        "name": "Size", "label": "Pick a size", "min_selection": 1, "max_selection": 1,
        "options": [{"name": "Small", "price": 0}, {"name": "Large", "price": 1.5}],
    })
    size = jprint("POST /admin/menu/personalizations (size)", r)

    r = client.post("/admin/menu/personalizations", json={
        "name": "Extras", "max_selection": 2,
        "options": [{"name": "Cheese", "price": 0.5}, {"name": "Bacon", "price": 1.0}, {"name": "Egg", "price": 0.75}],
    })
    extras = jprint("POST /admin/menu/personalizations (extras)", r)

    r = client.post("/admin/menu/products", json={
        "name": f"Burger-{rng_suffix}", "price": 10, "category_id": cat_id,
        "personalization_ids": [size["id"], extras["id"]],
    })
    burger = jprint("POST /admin/menu/products (burger)", r)
    assert burger["personalization_ids"] == [size["id"], extras["id"]]

    r = client.post("/admin/menu/products", json={"name": f"Soda-{rng_suffix}", "price": 2, "category_id": cat_id})
    soda = jprint("POST /admin/menu/products (soda)", r)

    r = client.post("/admin/promotions", json={
        "name": "Burger week", "discount_kind": "PERCENTAGE", "discount_value": 20,
        "scope": "SPECIFIC_PRODUCTS", "product_ids": [burger["id"]],
    })
    jprint("POST /admin/promotions", r)

    return {"category": cat_id, "size": size, "extras": extras, "burger": burger, "soda": soda}


def opt(group, name):
    return next(o["id"] for o in group["options"] if o["name"] == name)


def test_full_order_flow(client, rng_suffix):
    jprint("GET /healthz", client.get("/healthz"))
    cat = seed_catalog(client, rng_suffix)
    burger, soda, size, extras = cat["burger"], cat["soda"], cat["size"], cat["extras"]

    # ===== 1. Priced menu =====
    menu = jprint("GET /menu", client.get("/menu"))
    assert menu["is_open"] is True
    prices = {p["id"]: p for p in menu["products"]}
    assert prices[burger["id"]]["effective_price"] == 8.0
    assert prices[burger["id"]]["promotion_name"] == "Burger week"
    assert prices[soda["id"]]["effective_price"] == 2.0
    assert prices[soda["id"]]["promotion_id"] is None

    # ===== 2. Shipping + payment settings =====
    s = jprint("GET /admin/settings", client.get("/admin/settings"))
    s["shipping"]["cost_type"] = "FIXED"
    s["shipping"]["fixed_cost"] = 3.0
    s["payment"]["delivery_methods"] = ["CASH", "CARD"]
    jprint("PUT /admin/settings", client.put("/admin/settings", json=s))

    # ===== 3. Configure preview =====
    picks = [opt(size, "Small"), opt(size, "Large"), opt(extras, "Cheese"), opt(extras, "Bacon"), opt(extras, "Egg")]
    r = client.post(f"/menu/products/{burger['id']}/configure", json={"option_ids": picks})
    preview = jprint("POST /menu/products/{id}/configure", r)
    assert preview["selections"][size["id"]] == [opt(size, "Large")]
    assert preview["selections"][extras["id"]] == [opt(extras, "Cheese"), opt(extras, "Bacon")]
    assert preview["unit_total"] == 11.0
    assert preview["missing"] == []

    # ===== 4. Cart =====
    sid = jprint("POST /cart/sessions", client.post("/cart/sessions"))["session_id"]

    r = client.post(f"/cart/sessions/{sid}/lines", json={"product_id": burger["id"]})
    assert r.status_code == 422, r.text  # size is required

    r = client.post(f"/cart/sessions/{sid}/lines", json={
        "product_id": burger["id"], "quantity": 2, "option_ids": picks, "comment": "no pickles",
    })
    c = jprint("POST /cart/.../lines (burger)", r)
    assert c["total"] == 22.0

    r = client.post(f"/cart/sessions/{sid}/lines", json={"product_id": soda["id"], "quantity": 0})
    c = jprint("POST /cart/.../lines (soda)", r)
    assert c["item_count"] == 3
    assert c["total"] == 24.0

    # catalog change after the fact does not touch existing lines
    r = client.put(f"/admin/menu/products/{burger['id']}", json={
        "name": burger["name"], "price": 20, "category_id": cat["category"],
        "personalization_ids": [size["id"], extras["id"]],
    })
    jprint("PUT /admin/menu/products/{id}", r)
    c = jprint("GET /cart/sessions/{id}", client.get(f"/cart/sessions/{sid}"))
    assert c["total"] == 24.0
    menu = jprint("GET /menu", client.get("/menu"))
    assert {p["id"]: p for p in menu["products"]}[burger["id"]]["effective_price"] == 16.0

    # ===== 5. Checkout =====
    r = client.post(f"/cart/sessions/{sid}/checkout", json={
        "customer": {"name": "Ana", "phone": "555-0101",
                     "address": {"neighborhood": "Centro", "street": "Main", "number": "12"}},
        "order_type": "DELIVERY", "payment_method": "CARD", "tip": 1,
        "general_comments": "ring twice",
    })
    placed = jprint("POST /cart/.../checkout", r)
    order = placed["order"]
    assert order["total"] == 28.0
    assert order["shipping_cost"] == 3.0
    assert order["status"] == "PENDING"
    assert order["general_comments"] == "ring twice | Tip: MXN 1.00"
    assert placed["warnings"] == []
    assert placed["dispatch_url"].startswith("https://wa.me/584146945877?text=")
    assert "*Estimated Total:* MXN $28.00" in placed["message"]
    assert "  - _Note: no pickles_" in placed["message"]

    c = jprint("GET /cart/sessions/{id}", client.get(f"/cart/sessions/{sid}"))
    assert c["stage"] == "confirmation"
    assert c["lines"] == []
    assert c["last_order_id"] == order["id"]

    c = jprint("POST /cart/.../new-order", client.post(f"/cart/sessions/{sid}/new-order"))
    assert c["stage"] == "menu"

    # ===== 6. Admin board + lifecycle =====
    board = jprint("GET /admin/orders", client.get("/admin/orders"))
    assert [o["id"] for o in board] == [order["id"]]

    r = client.post(f"/admin/orders/{order['id']}/status", json={"status": "READY"})
    assert r.status_code == 422, r.text

    for status in ("CONFIRMED", "PREPARING", "READY", "DELIVERING", "COMPLETED"):
        r = client.post(f"/admin/orders/{order['id']}/status", json={"status": status})
        assert jprint(f"POST status {status}", r)["status"] == status

    nxt = jprint("GET /admin/orders/{id}/next", client.get(f"/admin/orders/{order['id']}/next"))
    assert nxt["next"] is None

    r = client.post(f"/admin/orders/{order['id']}/payment", json={"payment_status": "paid"})
    assert jprint("POST payment", r)["payment_status"] == "paid"

    history = jprint("GET history", client.get(f"/admin/orders/{order['id']}/history"))
    assert [h["action"] for h in history] == ["STATUS"] * 5 + ["PAYMENT"]
    assert history[0]["before"] == {"status": "PENDING"}
    assert history[0]["after"] == {"status": "CONFIRMED"}

    board = jprint("GET /admin/orders?status=COMPLETED", client.get("/admin/orders", params={"status": "COMPLETED"}))
    assert board[0]["payment_status"] == "paid"

    # ===== 7. Reports =====
    rep = jprint("GET /admin/reports/summary", client.get("/admin/reports/summary"))
    assert rep["orders"] == 1
    assert rep["total"] == 28.0
    assert rep["paid"] == 28.0
    assert rep["pending"] == 0.0
    assert rep["by_status"]["COMPLETED"] == 1


def test_failed_persist_keeps_cart(app, client, rng_suffix, monkeypatch):
    cat = seed_catalog(client, rng_suffix)
    sid = jprint("POST /cart/sessions", client.post("/cart/sessions"))["session_id"]
    jprint("add soda", client.post(f"/cart/sessions/{sid}/lines", json={"product_id": cat["soda"]["id"]}))

    sent = []

    def boom(order, created_at=None):
        raise PersistenceError("database unavailable")

    monkeypatch.setattr(app.state.store, "insert_order", boom)
    monkeypatch.setattr(app.state.composer.dispatcher, "send", lambda d, t: sent.append(t))

    r = client.post(f"/cart/sessions/{sid}/checkout", json={
        "customer": {"name": "Leo", "phone": "1"}, "order_type": "TAKEAWAY", "payment_method": "CASH",
    })
    assert r.status_code == 503, r.text
    assert sent == []

    c = jprint("GET /cart/sessions/{id}", client.get(f"/cart/sessions/{sid}"))
    assert c["item_count"] == 1
    assert c["stage"] == "menu"
    assert jprint("GET /admin/orders", client.get("/admin/orders")) == []


def test_dispatch_failure_still_confirms(app, client, rng_suffix):
    cat = seed_catalog(client, rng_suffix)
    app.state.composer.dispatcher = WhatsAppDispatcher(
        "http://hooks.local/order", transport=httpx.MockTransport(lambda r: httpx.Response(503)))

    sid = jprint("POST /cart/sessions", client.post("/cart/sessions"))["session_id"]
    jprint("add soda", client.post(f"/cart/sessions/{sid}/lines", json={"product_id": cat["soda"]["id"]}))
    r = client.post(f"/cart/sessions/{sid}/checkout", json={
        "customer": {"name": "Eva"}, "order_type": "DINE_IN", "payment_method": "CASH", "table_ref": "T3",
    })
    placed = jprint("POST /cart/.../checkout", r)
    assert len(placed["warnings"]) == 1
    assert placed["order"]["table_id"] == "T3"
    assert placed["dispatch_url"].startswith("https://wa.me/")

    c = jprint("GET /cart/sessions/{id}", client.get(f"/cart/sessions/{sid}"))
    assert c["stage"] == "confirmation"
    assert len(jprint("GET /admin/orders", client.get("/admin/orders"))) == 1


def test_unavailable_product_and_unknown_session(client, rng_suffix):
    cat = seed_catalog(client, rng_suffix)
    r = client.patch(f"/admin/menu/products/{cat['soda']['id']}/availability", json={"available": False})
    assert jprint("PATCH availability", r)["available"] is False

    sid = jprint("POST /cart/sessions", client.post("/cart/sessions"))["session_id"]
    r = client.post(f"/cart/sessions/{sid}/lines", json={"product_id": cat["soda"]["id"]})
    assert r.status_code == 422, r.text

    assert client.get("/cart/sessions/nope").status_code == 404
    assert client.post(f"/cart/sessions/{sid}/lines", json={"product_id": "nope"}).status_code == 404


def test_assistant_chat_without_key(client):
    r = client.post("/assistant/chat", json={"message": "What do you recommend?"})
    assert "trouble connecting" in jprint("POST /assistant/chat", r)["reply"]


def test_dining_layout(client):
    zone = jprint("POST zone", client.post("/admin/dining/zones", json={"name": "Terrace", "rows": 2, "cols": 3}))
    t = jprint("POST table", client.post("/admin/dining/tables", json={"zone_id": zone["id"], "name": "T1"}))
    assert t["status"] == "available"

    r = client.post("/admin/dining/tables", json={"zone_id": zone["id"], "name": "T1", "col": 2})
    assert r.status_code == 409, r.text
    r = client.post("/admin/dining/tables", json={"zone_id": zone["id"], "name": "T9", "row": 2, "height": 2})
    assert r.status_code == 422, r.text

    t = jprint("POST status", client.post(f"/admin/dining/tables/{t['id']}/status", json={"status": "occupied"}))
    assert t["status"] == "occupied"
    assert len(jprint("GET tables", client.get("/admin/dining/tables", params={"zone_id": zone["id"]}))) == 1
