"""Public catalog pages and product form rules."""

from decimal import Decimal
from pathlib import Path

import pytest

from storefront.core.exceptions import ValidationError
from storefront.schemas.common import parse_form
from storefront.schemas.product import ProductForm
from storefront.services.catalog_service import parse_page


@pytest.fixture()
def five_products(user, make_product):
    return [make_product(user, title=f"Product {n}") for n in range(5)]


class TestPagination:
    def test_first_page(self, client, five_products):
        body = client.get("/").json()
        assert body["view"] == "shop/index"
        assert len(body["prods"]) == 3
        assert body["currentPage"] == 1
        assert body["hasNextPage"] is True
        assert body["hasPreviousPage"] is False
        assert body["nextPage"] == 2
        assert body["lastPage"] == 2

    def test_last_page(self, client, five_products):
        body = client.get("/products", params={"page": 2}).json()
        assert body["view"] == "shop/product-list"
        assert len(body["prods"]) == 2
        assert body["hasNextPage"] is False
        assert body["hasPreviousPage"] is True
        assert body["previousPage"] == 1

    def test_pages_do_not_overlap(self, client, five_products):
        first = client.get("/products?page=1").json()["prods"]
        second = client.get("/products?page=2").json()["prods"]
        ids = [p["id"] for p in first + second]
        assert sorted(ids) == sorted(str(p.id) for p in five_products)

    def test_empty_catalog(self, client):
        body = client.get("/").json()
        assert body["prods"] == []
        assert body["lastPage"] == 0
        assert body["hasNextPage"] is False

    @pytest.mark.parametrize("raw,expected", [(None, 1), ("abc", 1), ("0", 1), ("-3", 1), ("4", 4)])
    def test_parse_page(self, raw, expected):
        assert parse_page(raw) == expected


class TestProductDetail:
    def test_shows_product(self, client, user, make_product):
        product = make_product(user, price="12.50")
        body = client.get(f"/products/{product.id}").json()
        assert body["view"] == "shop/product-detail"
        assert body["pageTitle"] == product.title
        assert body["product"]["price"] == pytest.approx(12.5)
        assert body["product"]["imageUrl"] == f"/images/{product.image_url}"

    def test_unknown_product(self, client):
        response = client.get("/products/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404
        assert response.json()["view"] == "404"

    def test_malformed_id(self, client):
        assert client.get("/products/garbage").status_code == 404


class TestProductForm:
    def test_accepts_dollar_prefix(self):
        form = parse_form(
            ProductForm, {"title": "Lamp", "price": "$12.5", "description": "A desk lamp"}
        )
        assert form.price == Decimal("12.5")

    @pytest.mark.parametrize("price", ["99999999.99", "12345678"])
    def test_accepts_largest_prices(self, price):
        form = parse_form(
            ProductForm, {"title": "Lamp", "price": price, "description": "A desk lamp"}
        )
        assert form.price == Decimal(price)

    @pytest.mark.parametrize("price", ["12.345", "abc", "-1", "", "1000000000", "123456789.5"])
    def test_rejects_bad_prices(self, price):
        with pytest.raises(ValidationError) as exc:
            parse_form(ProductForm, {"title": "Lamp", "price": price, "description": "A desk lamp"})
        assert exc.value.errors[0]["param"] == "price"

    def test_description_limits(self):
        with pytest.raises(ValidationError) as exc:
            parse_form(ProductForm, {"title": "Lamp", "price": "1", "description": "x" * 401})
        assert exc.value.message == "Please enter a description that is at least 5 characters long"
        assert exc.value.old_input["price"] == "1"


class TestImages:
    def test_image_url_is_served(self, client, user, make_product, settings):
        assert Path(settings.images_dir).is_absolute()
        product = make_product(user)
        url = client.get(f"/products/{product.id}").json()["product"]["imageUrl"]

        response = client.get(url)
        assert response.status_code == 200
        assert response.content == b"\x89PNG fake"
