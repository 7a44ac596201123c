import pytest

from modules.admin.models import RequestLog


@pytest.fixture
def admin_client(client, make_user, login):
    make_user(email="admin@example.com", password="adminpw", name="Admin", role="admin")
    login("admin@example.com", "adminpw")
    return client


def test_admin_endpoints_reject_anonymous_and_users(client, make_user, login):
    assert client.get("/api/admin/stats").status_code == 401

    make_user(email="u@example.com", password="pw")
    login("u@example.com", "pw")
    r = client.get("/api/admin/stats")
    assert r.status_code == 403
    assert r.json() == {"success": False, "error": "Access denied"}


def test_stats(admin_client, make_product, make_user):
    make_product(name="A", stock=5)
    make_user(email="other@example.com")

    stats = admin_client.get("/api/admin/stats").json()["stats"]
    assert stats == {
        "total_users": 2,
        "total_products": 1,
        "total_orders": 0,
        "total_revenue": 0,
        "pending_orders": 0,
    }


def test_users_and_role_change(admin_client, make_user):
    other = make_user(email="other@example.com")
    users = admin_client.get("/api/admin/users").json()["users"]
    assert {u["email"] for u in users} == {"admin@example.com", "other@example.com"}
    assert all("password" not in u for u in users)

    r = admin_client.put(f"/api/admin/users/{other.id}/role", json={"role": "admin"})
    assert r.status_code == 200
    assert r.json()["user"]["role"] == "admin"

    bad = admin_client.put(f"/api/admin/users/{other.id}/role", json={"role": "superuser"})
    assert bad.status_code == 400


def test_admin_cannot_change_own_role(admin_client):
    me = admin_client.get("/api/user").json()["user"]
    r = admin_client.put(f"/api/admin/users/{me['id']}/role", json={"role": "user"})
    assert r.status_code == 403
    assert admin_client.get("/api/user").json()["user"]["role"] == "admin"


def test_role_change_unknown_user(admin_client):
    r = admin_client.put("/api/admin/users/missing/role", json={"role": "admin"})
    assert r.status_code == 404


def test_product_crud(admin_client):
    r = admin_client.post("/api/admin/products", json={
        "name": "Lamp", "price": 40, "category": "Home", "stock": 3,
        "specifications": {"Watts": "9"},
    })
    assert r.status_code == 200
    product_id = r.json()["productId"]
    assert r.json()["product"]["specifications"] == {"Watts": "9"}

    dup = admin_client.post("/api/admin/products", json={"name": "Lamp", "price": 1, "category": "Home"})
    assert dup.status_code == 400

    r = admin_client.put(f"/api/admin/products/{product_id}", json={"price": 35, "bogus": 1})
    assert r.status_code == 200
    assert r.json()["product"]["price"] == 35

    assert admin_client.put(f"/api/admin/products/{product_id}", json={}).status_code == 400
    assert admin_client.get(f"/api/admin/products/{product_id}").json()["product"]["name"] == "Lamp"
    assert len(admin_client.get("/api/admin/products/all").json()["products"]) == 1

    assert admin_client.delete(f"/api/admin/products/{product_id}").status_code == 200
    assert admin_client.get(f"/api/admin/products/{product_id}").status_code == 404


def test_create_product_validation(admin_client):
    r = admin_client.post("/api/admin/products", json={"name": "X", "price": -5, "category": "C"})
    assert r.status_code == 400
    r = admin_client.post("/api/admin/products", json={"price": 5, "category": "C"})
    assert r.status_code == 400


def test_order_management(admin_client, make_product):
    p = make_product(name="P", price=30, stock=5)
    admin_client.post("/api/cart/add", json={"productId": p.id, "quantity": 2})
    order = admin_client.post("/api/orders/create", json={"name": "Admin"}).json()["order"]

    orders = admin_client.get("/api/admin/orders").json()["orders"]
    assert len(orders) == 1
    assert orders[0]["user_email"] == "admin@example.com"

    stats = admin_client.get("/api/admin/stats").json()["stats"]
    assert (stats["total_orders"], stats["total_revenue"], stats["pending_orders"]) == (1, 60, 1)

    r = admin_client.put(f"/api/admin/orders/{order['id']}/status", json={"status": "shipped"})
    assert r.status_code == 200
    assert r.json()["order"]["status"] == "shipped"

    assert admin_client.put(f"/api/admin/orders/{order['id']}/status", json={"status": "lost"}).status_code == 400
    assert admin_client.put("/api/admin/orders/missing/status", json={"status": "shipped"}).status_code == 404

    # Ordered products cannot be deleted
    r = admin_client.delete(f"/api/admin/products/{p.id}")
    assert r.status_code == 400


def test_request_logs_masked_and_clearable(admin_client, db):
    admin_client.post("/api/login", json={"email": "admin@example.com", "password": "adminpw"})
    admin_client.get("/health")

    logs = admin_client.get("/api/admin/logs?limit=50").json()["logs"]
    assert logs
    assert all(entry["path"] != "/health" for entry in logs)
    login_entries = [entry for entry in logs if entry["path"] == "/api/login"]
    assert login_entries
    assert "adminpw" not in login_entries[0]["body_preview"]
    assert '"password": "***"' in login_entries[0]["body_preview"]

    r = admin_client.delete("/api/admin/logs")
    assert r.json()["success"] is True
    db.expire_all()
    # Only the logs listing/clear requests written after the delete can remain
    assert db.query(RequestLog).filter(RequestLog.path == "/api/login").count() == 0
