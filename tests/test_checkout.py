"""Checkout: quoting, payment session, order snapshot."""

from decimal import Decimal

import pytest
from conftest import login, post_form

from storefront.db.models import Order, User
from storefront.schemas.order import order_to_response
from storefront.services.cart_service import add_to_cart
from storefront.services.checkout_service import order_total, quote_cart


def _fill_cart(db, user, product, quantity):
    for _ in range(quantity):
        add_to_cart(db, user, product)


class TestQuote:
    def test_total_is_sum_of_lines(self, db, user, make_product):
        _fill_cart(db, user, make_product(user, price="9.99"), 2)
        _fill_cart(db, user, make_product(user, title="Lamp", price="15.00"), 1)

        quote = quote_cart(db, user)
        assert quote.total == Decimal("34.98")
        assert [line.quantity for line in quote.lines] == [2, 1]


class TestCheckoutPage:
    def test_opens_payment_session(self, logged_in, db, user, make_product, gateway):
        product = make_product(user, price="9.99")
        _fill_cart(db, user, product, 2)

        response = logged_in.get("/checkout")
        assert response.status_code == 200
        body = response.json()
        assert body["view"] == "shop/checkout"
        assert body["totalSum"] == pytest.approx(19.98)
        assert body["sessionId"] == "cs_test_123"

        call = gateway.calls[0]
        assert call["success_url"] == "http://testserver/checkout/success"
        assert call["cancel_url"] == "http://testserver/checkout/cancel"
        item = call["line_items"][0]
        assert item.name == product.title
        assert item.unit_amount == 999
        assert item.quantity == 2
        assert item.currency == "usd"

    def test_cancel_shows_checkout_again(self, logged_in, db, user, make_product):
        _fill_cart(db, user, make_product(user), 1)
        response = logged_in.get("/checkout/cancel")
        assert response.status_code == 200
        assert response.json()["view"] == "shop/checkout"

    def test_empty_cart_is_rejected(self, logged_in, gateway):
        response = logged_in.get("/checkout")
        assert response.status_code == 303
        assert response.headers["location"] == "/cart"
        assert gateway.calls == []
        assert logged_in.get("/cart").json()["errorMessage"] == "Your cart is empty."

    def test_deleted_product_fails_checkout(self, logged_in, db, user, make_product):
        product = make_product(user)
        _fill_cart(db, user, product, 1)
        db.delete(product)
        db.commit()

        response = logged_in.get("/checkout")
        assert response.status_code == 404

    def test_viewing_cart_recovers_from_deleted_product(
        self, logged_in, db, user, make_product, gateway
    ):
        kept = make_product(user, title="Red Mug")
        gone = make_product(user, title="Gone")
        gone_id = gone.id
        _fill_cart(db, user, kept, 1)
        _fill_cart(db, user, gone, 1)
        db.delete(gone)
        db.commit()
        assert logged_in.get("/checkout").status_code == 404

        cart = logged_in.get("/cart").json()
        assert [p["product"]["title"] for p in cart["products"]] == ["Red Mug"]

        assert logged_in.get("/checkout").status_code == 200
        assert [item.name for item in gateway.calls[-1]["line_items"]] == ["Red Mug"]

        assert logged_in.get("/checkout/success").headers["location"] == "/orders"
        order = db.query(Order).one()
        assert [p["product"]["title"] for p in order.products] == ["Red Mug"]
        assert str(gone_id) not in {p["product"]["id"] for p in order.products}

    def test_payment_provider_failure(self, logged_in, db, user, make_product, gateway):
        _fill_cart(db, user, make_product(user), 1)
        gateway.fail = True

        response = logged_in.get("/checkout")
        assert response.status_code == 502
        assert response.json()["view"] == "500"


class TestCheckoutSuccess:
    def test_creates_order_and_clears_cart(self, logged_in, db, user, make_product):
        product = make_product(user, price="9.99")
        _fill_cart(db, user, product, 2)

        response = logged_in.get("/checkout/success")
        assert response.status_code == 303
        assert response.headers["location"] == "/orders"

        db.expire_all()
        assert db.get(User, user.id).cart_items == []
        order = db.query(Order).filter(Order.user_id == user.id).one()
        assert order.user_email == user.email
        assert order.products == [
            {
                "product": {
                    "id": str(product.id),
                    "title": product.title,
                    "price": "9.99",
                    "description": product.description,
                    "imageUrl": f"/images/{product.image_url}",
                },
                "quantity": 2,
            }
        ]
        assert order_total(order) == Decimal("19.98")

    def test_order_is_decoupled_from_later_edits(self, logged_in, db, user, make_product):
        product = make_product(user, title="Original", price="9.99")
        _fill_cart(db, user, product, 2)
        logged_in.get("/checkout/success")

        product.title = "Renamed"
        product.price = Decimal("50.00")
        db.commit()
        db.expire_all()

        order = db.query(Order).one()
        assert order.products[0]["product"]["title"] == "Original"
        assert order_to_response(order)["total"] == Decimal("19.98")

        listing = logged_in.get("/orders").json()
        assert listing["orders"][0]["total"] == pytest.approx(19.98)

    def test_empty_cart_creates_no_order(self, logged_in, db):
        response = logged_in.get("/checkout/success")
        assert response.status_code == 303
        assert db.query(Order).count() == 0

    def test_requires_login(self, client):
        response = client.get("/checkout/success")
        assert response.headers["location"] == "/login"


class TestOrdersPage:
    def test_lists_only_own_orders(self, client, db, user, other_user, make_product):
        product = make_product(user)
        _fill_cart(db, other_user, product, 1)
        _fill_cart(db, user, product, 1)

        login(client, other_user.email)
        client.get("/checkout/success")
        post_form(client, "/logout")

        login(client, user.email)
        assert client.get("/orders").json()["orders"] == []
