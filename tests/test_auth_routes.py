from fastapi.testclient import TestClient

from config.settings import AUTH_COOKIE, SESSION_COOKIE
from main import app


def test_register_sets_cookie_and_returns_user(client):
    r = client.post("/api/register", json={
        "email": "  New@Example.COM ", "password": "pw12345", "name": "New User",
    })
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["user"]["email"] == "new@example.com"
    assert "password" not in body["user"]
    assert client.cookies.get(AUTH_COOKIE)

    me = client.get("/api/user").json()
    assert me["user"]["name"] == "New User"
    assert me["user"]["role"] == "user"


def test_register_duplicate_email(client, make_user):
    make_user(email="taken@example.com")
    r = client.post("/api/register", json={"email": "TAKEN@example.com", "password": "x", "name": "Y"})
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_register_missing_fields(client):
    r = client.post("/api/register", json={"email": "a@b.c", "password": "x"})
    assert r.status_code == 400
    assert "name" in r.json()["error"]


def test_login_and_bad_credentials(client, make_user):
    make_user(email="u@example.com", password="right")

    bad = client.post("/api/login", json={"email": "u@example.com", "password": "wrong"})
    assert bad.status_code == 401
    assert bad.json() == {"success": False, "error": "Invalid email or password"}

    unknown = client.post("/api/login", json={"email": "nobody@example.com", "password": "x"})
    assert unknown.status_code == 401

    ok = client.post("/api/login", json={"email": "U@Example.com", "password": "right"})
    assert ok.status_code == 200
    assert ok.json()["user"]["email"] == "u@example.com"


def test_current_user_requires_login(client):
    r = client.get("/api/user")
    assert r.status_code == 401
    assert r.json()["success"] is False


def test_logout_drops_cookies(client, make_user, login):
    make_user(email="u@example.com", password="pw")
    client.get("/api/cart")
    login("u@example.com", "pw")
    assert client.cookies.get(SESSION_COOKIE)

    r = client.post("/api/logout")
    assert r.json() == {"success": True}
    assert client.cookies.get(AUTH_COOKIE) is None
    assert client.cookies.get(SESSION_COOKIE) is None
    assert client.get("/api/user").status_code == 401


def test_guest_cart_follows_registration(client, make_product):
    x = make_product(name="X", stock=5)
    client.post("/api/cart/add", json={"productId": x.id, "quantity": 1})
    session_id = client.cookies.get(SESSION_COOKIE)
    assert session_id

    client.post("/api/register", json={"email": "u1@example.com", "password": "pw", "name": "U1"})

    cart = client.get("/api/cart").json()["cart"]
    assert [(i["productId"], i["quantity"]) for i in cart["items"]] == [(x.id, 1)]

    # The old session alone no longer owns anything
    guest = TestClient(app)
    guest.cookies.set(SESSION_COOKIE, session_id)
    assert guest.get("/api/cart").json()["cart"]["items"] == []


def test_guest_cart_merges_on_login(client, make_user, make_product, login):
    make_user(email="u@example.com", password="pw")
    x = make_product(name="X", stock=5)
    client.post("/api/cart/add", json={"productId": x.id, "quantity": 2})

    login("u@example.com", "pw")

    cart = client.get("/api/cart").json()["cart"]
    assert cart["items"][0]["quantity"] == 2
    assert cart["total"] == 2 * x.price
