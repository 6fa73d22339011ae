from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, Query

from .. import pharmacy
from ..api_deps import get_current_user, require_admin
from ..auth_models import Role, User
from ..schemas import (
    CartAddIn,
    CartQuantityIn,
    CheckoutIn,
    MedicineIn,
    MedicineUpdateIn,
    OrderStatusIn,
    ProductReviewIn,
)

router = APIRouter(prefix="/api", tags=["pharmacy"])


# =========================
# Medicines (public catalogue, admin CRUD)
# =========================
@router.get("/medicines")
def api_medicines(search: str | None = None, category: str | None = None) -> list[dict]:
    return pharmacy.list_medicines(search, category)


@router.get("/medicines/categories")
def api_categories() -> list[str]:
    return pharmacy.list_categories()


@router.get("/medicines/{medicine_id}")
def api_medicine(medicine_id: str) -> dict:
    return pharmacy.get_medicine(medicine_id)


@router.post("/medicines")
def api_create_medicine(payload: MedicineIn, user: User = Depends(require_admin)) -> dict[str, Any]:
    mid = pharmacy.create_medicine(**payload.model_dump())
    return {"ok": True, "medicine_id": mid}


@router.patch("/medicines/{medicine_id}")
def api_update_medicine(medicine_id: str, payload: MedicineUpdateIn, user: User = Depends(require_admin)) -> dict:
    return pharmacy.update_medicine(medicine_id, **payload.model_dump(exclude_none=True))


@router.delete("/medicines/{medicine_id}")
def api_delete_medicine(medicine_id: str, user: User = Depends(require_admin)) -> dict[str, Any]:
    pharmacy.delete_medicine(medicine_id)
    return {"ok": True}


# =========================
# Cart
# =========================
@router.get("/cart")
def api_cart(user: User = Depends(get_current_user)) -> dict[str, Any]:
    return pharmacy.get_cart(user.id)


@router.post("/cart/items")
def api_cart_add(payload: CartAddIn, user: User = Depends(get_current_user)) -> dict[str, Any]:
    return pharmacy.add_to_cart(user.id, payload.medicine_id, payload.quantity)


@router.patch("/cart/items/{item_id}")
def api_cart_quantity(item_id: int, payload: CartQuantityIn, user: User = Depends(get_current_user)) -> dict:
    pharmacy.update_cart_quantity(user.id, item_id, payload.quantity)
    return pharmacy.get_cart(user.id)


@router.delete("/cart/items/{item_id}")
def api_cart_remove(item_id: int, user: User = Depends(get_current_user)) -> dict:
    pharmacy.remove_from_cart(user.id, item_id)
    return pharmacy.get_cart(user.id)


@router.delete("/cart")
def api_cart_clear(user: User = Depends(get_current_user)) -> dict[str, Any]:
    pharmacy.clear_cart(user.id)
    return {"ok": True}


# =========================
# Orders
# =========================
@router.post("/orders")
def api_checkout(payload: CheckoutIn, user: User = Depends(get_current_user)) -> dict[str, Any]:
    result = pharmacy.create_order(user.id, payload.address, payload.phone, payload.prescription_url)
    return {"ok": True, **asdict(result)}


@router.get("/orders")
def api_my_orders(phone: str | None = Query(None), user: User = Depends(get_current_user)) -> list[dict]:
    """The caller's orders; admins may look up any phone number."""
    if phone and user.role == Role.ADMIN:
        return pharmacy.list_orders_for_phone(phone)
    return pharmacy.list_orders_for_user(user)


@router.get("/orders/{order_id}")
def api_order(order_id: str, user: User = Depends(get_current_user)) -> dict:
    return pharmacy.get_order(order_id, viewer=user)


@router.get("/orders/{order_id}/history")
def api_order_history(order_id: str, user: User = Depends(get_current_user)) -> list[dict]:
    return pharmacy.order_status_history(order_id, viewer=user)


@router.get("/admin/orders")
def api_admin_orders(user: User = Depends(require_admin)) -> list[dict]:
    return pharmacy.list_all_orders()


@router.patch("/admin/orders/{order_id}/status")
def api_admin_order_status(order_id: str, payload: OrderStatusIn, user: User = Depends(require_admin)) -> dict:
    return pharmacy.admin_update_order_status(order_id, payload.status)


# =========================
# Product reviews
# =========================
@router.post("/reviews/products")
def api_submit_review(payload: ProductReviewIn, user: User = Depends(get_current_user)) -> dict[str, Any]:
    result = pharmacy.submit_product_review(
        payload.order_id, payload.medicine_id, payload.phone, payload.rating, payload.review_text
    )
    return {"ok": True, "result": result}


@router.get("/reviews/products")
def api_reviews() -> list[dict]:
    return pharmacy.list_product_reviews()


@router.get("/reviews/products/lookup")
def api_review_lookup(
    order_id: str, medicine_id: str, phone: str, user: User = Depends(get_current_user)
) -> dict | None:
    return pharmacy.review_for_product(order_id, medicine_id, phone)
