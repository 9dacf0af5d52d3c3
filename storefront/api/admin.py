"""Admin pages: the logged-in user's own products."""

from typing import Annotated, Optional

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from storefront.api.views import redirect, render
from storefront.config import get_settings
from storefront.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from storefront.dependencies import CsrfProtected, CurrentUser, DbSession
from storefront.schemas.product import product_to_response
from storefront.services.catalog_service import (
    create_product,
    delete_product as do_delete_product,
    get_owned_product,
    list_owned_products,
    update_product,
)
from storefront.services.storage_service import delete_image, save_image

router = APIRouter(prefix="/admin", tags=["admin"])


def _edit_page(request: Request, status_code: int = 200, editing: bool = False, **context):
    context.setdefault("hasError", False)
    context.setdefault("errorMessage", None)
    context.setdefault("validationErrors", [])
    return render(
        request,
        "admin/edit-product",
        status_code,
        pageTitle="Edit Product" if editing else "Add Product",
        path="/admin/edit-product" if editing else "/admin/add-product",
        editing=editing,
        **context,
    )


@router.get("/products")
def products(request: Request, db: DbSession, user: CurrentUser):
    return render(
        request,
        "admin/products",
        pageTitle="Admin Products",
        path="/admin/products",
        prods=[product_to_response(p) for p in list_owned_products(db, user.id)],
    )


@router.get("/add-product")
def add_product_page(request: Request, user: CurrentUser):
    return _edit_page(request)


@router.post("/add-product", dependencies=[CsrfProtected])
def add_product(
    request: Request,
    db: DbSession,
    user: CurrentUser,
    title: Annotated[str, Form()] = "",
    price: Annotated[str, Form()] = "",
    description: Annotated[str, Form()] = "",
    image: Annotated[Optional[UploadFile], File()] = None,
):
    data = {"title": title, "price": price, "description": description}
    images_dir = get_settings().images_dir
    image_name = save_image(image, images_dir)
    try:
        create_product(db, user, data, image_name)
    except ValidationError as e:
        delete_image(images_dir, image_name)
        return _edit_page(
            request,
            422,
            hasError=True,
            product=data,
            errorMessage=e.message,
            validationErrors=e.errors,
        )
    return redirect("/admin/products")


@router.get("/edit-product/{product_id}")
def edit_product_page(
    product_id: str,
    request: Request,
    db: DbSession,
    user: CurrentUser,
    edit: Optional[str] = None,
):
    if not edit or edit == "false":
        return redirect("/")
    try:
        product = get_owned_product(db, user, product_id)
    except (NotFoundError, ForbiddenError):
        return redirect("/")
    return _edit_page(request, editing=True, product=product_to_response(product))


@router.post("/edit-product", dependencies=[CsrfProtected])
def edit_product(
    request: Request,
    db: DbSession,
    user: CurrentUser,
    productId: Annotated[str, Form()] = "",
    title: Annotated[str, Form()] = "",
    price: Annotated[str, Form()] = "",
    description: Annotated[str, Form()] = "",
    image: Annotated[Optional[UploadFile], File()] = None,
):
    data = {"title": title, "price": price, "description": description}
    images_dir = get_settings().images_dir
    new_image = save_image(image, images_dir)
    try:
        update_product(db, user, productId, data, new_image)
    except ValidationError as e:
        delete_image(images_dir, new_image)
        return _edit_page(
            request,
            422,
            editing=True,
            hasError=True,
            product={**data, "id": productId},
            errorMessage=e.message,
            validationErrors=e.errors,
        )
    except (NotFoundError, ForbiddenError):
        delete_image(images_dir, new_image)
        return redirect("/")
    return redirect("/admin/products")


@router.delete("/product/{product_id}", dependencies=[CsrfProtected])
def delete_product(product_id: str, db: DbSession, user: CurrentUser):
    """Called from client-side script, so it answers JSON."""
    try:
        do_delete_product(db, user, product_id)
    except NotFoundError:
        return JSONResponse({"message": "Product not found."}, status_code=404)
    except ForbiddenError:
        return JSONResponse({"message": "Deleting product failed"}, status_code=403)
    return {"message": "Success"}
