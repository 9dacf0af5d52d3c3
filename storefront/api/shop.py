"""Shop pages: catalog, cart, checkout, orders and invoices."""

from typing import Annotated, Optional

from fastapi import APIRouter, Form, Request
from fastapi.responses import StreamingResponse

from storefront.api.views import redirect, render
from storefront.config import get_settings
from storefront.core.exceptions import EmptyCartError
from storefront.core.session import flash, pop_flash
from storefront.dependencies import (
    CsrfProtected,
    CurrentUser,
    DbSession,
    HttpSession,
    PaymentGatewayDep,
)
from storefront.schemas.order import cart_lines_to_response, order_to_response
from storefront.schemas.product import product_to_response
from storefront.services.cart_service import add_to_cart, get_cart_lines, remove_from_cart
from storefront.services.catalog_service import get_product, list_products, parse_page
from storefront.services.checkout_service import confirm_checkout, list_orders, start_checkout
from storefront.services.invoice_service import get_invoice_order, write_invoice

router = APIRouter(tags=["shop"])

CHUNK_SIZE = 64 * 1024


def _product_page(
    request: Request,
    db,
    page: Optional[str],
    view: str,
    path: str,
    title: str,
    **extra,
):
    result = list_products(db, parse_page(page), get_settings().items_per_page)
    return render(
        request,
        view,
        pageTitle=title,
        path=path,
        prods=[product_to_response(p) for p in result.items],
        **result.as_context(),
        **extra,
    )


@router.get("/")
def index(request: Request, db: DbSession, session: HttpSession, page: Optional[str] = None):
    return _product_page(
        request, db, page, "shop/index", "/", "Shop", message=pop_flash(session, "info")
    )


@router.get("/products")
def products(request: Request, db: DbSession, page: Optional[str] = None):
    return _product_page(request, db, page, "shop/product-list", "/products", "Products")


@router.get("/products/{product_id}")
def product_detail(product_id: str, request: Request, db: DbSession):
    product = get_product(db, product_id)
    return render(
        request,
        "shop/product-detail",
        pageTitle=product.title,
        path="/products",
        product=product_to_response(product),
    )


@router.get("/cart")
def cart(request: Request, db: DbSession, user: CurrentUser, session: HttpSession):
    return render(
        request,
        "shop/cart",
        pageTitle="Your Cart",
        path="/cart",
        products=cart_lines_to_response(get_cart_lines(db, user)),
        errorMessage=pop_flash(session, "error"),
    )


@router.post("/cart", dependencies=[CsrfProtected])
def cart_add(db: DbSession, user: CurrentUser, productId: Annotated[str, Form()] = ""):
    product = get_product(db, productId)
    add_to_cart(db, user, product)
    return redirect("/cart")


@router.post("/cart-delete-item", dependencies=[CsrfProtected])
def cart_delete_item(db: DbSession, user: CurrentUser, productId: Annotated[str, Form()] = ""):
    remove_from_cart(db, user, productId)
    return redirect("/cart")


@router.get("/checkout")
@router.get("/checkout/cancel")
def checkout(
    request: Request,
    db: DbSession,
    user: CurrentUser,
    session: HttpSession,
    gateway: PaymentGatewayDep,
):
    try:
        quote, payment = start_checkout(db, user, gateway, str(request.base_url))
    except EmptyCartError as e:
        flash(session, "error", e.message)
        return redirect("/cart")
    return render(
        request,
        "shop/checkout",
        pageTitle="Checkout",
        path="/checkout",
        products=cart_lines_to_response(quote.lines),
        totalSum=quote.total,
        sessionId=payment.id,
        checkoutUrl=payment.url,
        stripePublishableKey=get_settings().stripe_publishable_key,
    )


@router.get("/checkout/success")
def checkout_success(db: DbSession, user: CurrentUser):
    confirm_checkout(db, user)
    return redirect("/orders")


@router.get("/orders")
def orders(request: Request, db: DbSession, user: CurrentUser):
    return render(
        request,
        "shop/orders",
        pageTitle="Your Orders",
        path="/orders",
        orders=[order_to_response(o) for o in list_orders(db, user.id)],
    )


@router.get("/orders/{order_id}")
def invoice(order_id: str, db: DbSession, user: CurrentUser):
    """Generate the order's PDF invoice, keep a copy on disk and stream it back."""
    order = get_invoice_order(db, order_id, user.id)
    _, data = write_invoice(order, get_settings().storage_root)
    name = f"invoice-{order.id}.pdf"

    def chunks():
        for start in range(0, len(data), CHUNK_SIZE):
            yield data[start:start + CHUNK_SIZE]

    return StreamingResponse(
        chunks(),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{name}"'},
    )
