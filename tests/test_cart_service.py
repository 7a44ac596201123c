from datetime import timedelta

import pytest

from common.exceptions import NotFoundError, InsufficientStockError, IdentityRequiredError
from common.helpers import now_utc
from modules.cart.models import CartItem
from modules.cart.service import cart_service, CartIdentity


GUEST = CartIdentity(session_id="s1")
NOBODY = CartIdentity()


def test_anonymous_identity_reads_empty_cart(db):
    assert cart_service.get_cart(db, NOBODY) == {"items": [], "total": 0}


def test_add_and_total_uses_live_price(db, make_product, make_user):
    user = make_user()
    a = make_product(name="A", price=100, stock=5)
    b = make_product(name="B", price=50, stock=5)
    me = CartIdentity(user_id=user.id)

    cart_service.add_item(db, me, a.id, 2)
    cart = cart_service.add_item(db, me, b.id, 1)
    assert cart["total"] == 250
    assert [(i["name"], i["quantity"]) for i in cart["items"]] == [("A", 2), ("B", 1)]
    assert cart["items"][0]["stock"] == 5

    a.price = 120
    db.commit()
    assert cart_service.get_cart(db, me)["total"] == 290


def test_add_existing_row_increments(db, make_product):
    p = make_product(stock=3)

    cart_service.add_item(db, GUEST, p.id, 1)
    cart = cart_service.add_item(db, GUEST, p.id, 2)

    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 3
    assert db.query(CartItem).count() == 1


def test_add_checks_requested_quantity_only(db, make_product):
    p = make_product(stock=2)
    cart_service.add_item(db, GUEST, p.id, 2)

    # stock >= requested quantity, so the increment is accepted
    cart = cart_service.add_item(db, GUEST, p.id, 1)
    assert cart["items"][0]["quantity"] == 3


def test_add_more_than_stock_leaves_cart_unchanged(db, make_product):
    p = make_product(name="Rare", stock=1)
    cart_service.add_item(db, GUEST, p.id, 1)

    with pytest.raises(InsufficientStockError) as exc:
        cart_service.add_item(db, GUEST, p.id, 5)
    assert "Rare" in exc.value.message
    assert cart_service.get_cart(db, GUEST)["items"][0]["quantity"] == 1


def test_add_unknown_product(db):
    with pytest.raises(NotFoundError):
        cart_service.add_item(db, GUEST, "missing", 1)


def test_add_without_identity(db, make_product):
    p = make_product()
    with pytest.raises(IdentityRequiredError):
        cart_service.add_item(db, NOBODY, p.id, 1)


def test_add_rejects_non_positive_quantity(db, make_product):
    p = make_product()
    with pytest.raises(ValueError):
        cart_service.add_item(db, GUEST, p.id, 0)


def test_guest_rows_do_not_leak_between_sessions(db, make_product):
    p = make_product()
    cart_service.add_item(db, GUEST, p.id, 1)

    assert cart_service.get_cart(db, CartIdentity(session_id="s2"))["items"] == []


def test_user_identity_ignores_session_rows(db, make_product, make_user):
    user = make_user()
    p = make_product()
    cart_service.add_item(db, GUEST, p.id, 1)

    both = CartIdentity(user_id=user.id, session_id="s1")
    assert cart_service.get_cart(db, both)["items"] == []


def test_update_sets_quantity_without_stock_check(db, make_product):
    p = make_product(stock=2)
    cart_service.add_item(db, GUEST, p.id, 1)

    cart = cart_service.update_item(db, GUEST, p.id, 7)
    assert cart["items"][0]["quantity"] == 7


@pytest.mark.parametrize("quantity", [0, -3])
def test_update_to_non_positive_removes_item(db, make_product, quantity):
    p = make_product()
    cart_service.add_item(db, GUEST, p.id, 2)

    cart = cart_service.update_item(db, GUEST, p.id, quantity)
    assert cart["items"] == []
    assert db.query(CartItem).count() == 0


def test_update_without_identity(db, make_product):
    p = make_product()
    with pytest.raises(IdentityRequiredError):
        cart_service.update_item(db, NOBODY, p.id, 1)


def test_remove_is_idempotent(db, make_product):
    p = make_product()
    cart_service.add_item(db, GUEST, p.id, 1)

    assert cart_service.remove_item(db, GUEST, p.id)["items"] == []
    assert cart_service.remove_item(db, GUEST, p.id)["items"] == []


def test_clear_only_touches_own_rows(db, make_product):
    p = make_product()
    other = CartIdentity(session_id="s2")
    cart_service.add_item(db, GUEST, p.id, 1)
    cart_service.add_item(db, other, p.id, 1)

    assert cart_service.clear_cart(db, GUEST) == 1
    assert cart_service.get_cart(db, GUEST)["items"] == []
    assert len(cart_service.get_cart(db, other)["items"]) == 1


def test_clear_without_identity(db):
    with pytest.raises(IdentityRequiredError):
        cart_service.clear_cart(db, NOBODY)


def test_merge_moves_guest_rows_to_user(db, make_product, make_user):
    user = make_user()
    x = make_product(name="X")
    cart_service.add_item(db, GUEST, x.id, 1)

    assert cart_service.merge_guest_cart(db, "s1", user.id) == 1

    cart = cart_service.get_cart(db, CartIdentity(user_id=user.id))
    assert [(i["productId"], i["quantity"]) for i in cart["items"]] == [(x.id, 1)]
    assert cart_service.get_cart(db, GUEST)["items"] == []

    row = db.query(CartItem).one()
    assert row.user_id == user.id and row.session_id is None


def test_merge_sums_colliding_products(db, make_product, make_user):
    user = make_user()
    me = CartIdentity(user_id=user.id)
    x = make_product(name="X")
    y = make_product(name="Y")
    z = make_product(name="Z")
    cart_service.add_item(db, me, x.id, 2)
    cart_service.add_item(db, me, y.id, 1)
    cart_service.add_item(db, GUEST, x.id, 3)
    cart_service.add_item(db, GUEST, z.id, 1)

    cart_service.merge_guest_cart(db, "s1", user.id)

    quantities = {i["name"]: i["quantity"] for i in cart_service.get_cart(db, me)["items"]}
    assert quantities == {"X": 5, "Y": 1, "Z": 1}
    assert db.query(CartItem).filter(CartItem.user_id.is_(None)).count() == 0


def test_merge_without_session_is_noop(db, make_user):
    user = make_user()
    assert cart_service.merge_guest_cart(db, None, user.id) == 0


def test_purge_stale_guest_carts(db, make_product, make_user):
    user = make_user()
    p = make_product()
    old = now_utc() - timedelta(days=40)
    db.add(CartItem(session_id="old-guest", product_id=p.id, quantity=1, added_at=old, updated_at=old))
    db.add(CartItem(user_id=user.id, product_id=p.id, quantity=1, added_at=old, updated_at=old))
    db.commit()
    cart_service.add_item(db, GUEST, p.id, 1)

    deleted = cart_service.purge_stale_guest_carts(db, now_utc() - timedelta(days=30))

    assert deleted == 1
    assert cart_service.get_cart(db, CartIdentity(session_id="old-guest"))["items"] == []
    assert len(cart_service.get_cart(db, GUEST)["items"]) == 1
    assert len(cart_service.get_cart(db, CartIdentity(user_id=user.id))["items"]) == 1


def test_purge_keeps_guest_rows_touched_recently(db, make_product):
    readded = make_product(name="Re-added")
    edited = make_product(name="Edited")
    old = now_utc() - timedelta(days=40)
    db.add(CartItem(session_id="s1", product_id=readded.id, quantity=1, added_at=old, updated_at=old))
    db.add(CartItem(session_id="s1", product_id=edited.id, quantity=1, added_at=old, updated_at=old))
    db.commit()

    cart_service.add_item(db, GUEST, readded.id, 1)
    cart_service.update_item(db, GUEST, edited.id, 3)
    db.commit()

    assert cart_service.purge_stale_guest_carts(db, now_utc() - timedelta(days=30)) == 0
    quantities = {i["name"]: i["quantity"] for i in cart_service.get_cart(db, GUEST)["items"]}
    assert quantities == {"Re-added": 2, "Edited": 3}
