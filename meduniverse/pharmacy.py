from __future__ import annotations

import logging
import random
import re
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from sqlalchemy import delete, func, or_, select

from .auth_models import Role, User, utcnow
from .db import db_session
from .models import (
    Cart,
    CartItem,
    Medicine,
    Order,
    OrderItem,
    OrderStatus,
    OrderStatusHistory,
    ProductReview,
)

logger = logging.getLogger(__name__)

DELIVERY_DAYS = 3


# =========================
# Helper / DTO
# =========================
@dataclass(frozen=True)
class OrderResult:
    order_id: str
    tracking_number: str
    total_price: float
    estimated_delivery: str


def normalize_phone_number(phone: str) -> str:
    """
    Indian numbers to +91 form:
    - 10 digits -> +91XXXXXXXXXX
    - 12 digits starting with 91 -> +91XXXXXXXXXX
    - 13 digits starting with 91 -> leading digit dropped
    Anything else is returned untouched.
    """
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) == 10:
        return f"+91{digits}"
    if len(digits) == 12 and digits.startswith("91"):
        return f"+{digits}"
    if len(digits) == 13 and digits.startswith("91"):
        return f"+{digits[1:]}"
    return phone


def generate_tracking_number() -> str:
    return f"TRK{int(time.time() * 1000)}{random.randint(0, 999)}"


def medicine_dict(m: Medicine) -> dict[str, Any]:
    return {
        "id": m.id,
        "name": m.name,
        "description": m.description,
        "price": m.price,
        "category": m.category,
        "stock": m.stock,
        "image_url": m.image_url,
    }


# =========================
# Medicines
# =========================
def list_medicines(search: str | None = None, category: str | None = None) -> list[dict]:
    with db_session() as s:
        q = select(Medicine)
        if search and search.strip():
            q = q.where(func.lower(Medicine.name).contains(search.strip().lower()))
        if category and category != "all":
            q = q.where(Medicine.category == category)
        return [medicine_dict(m) for m in s.scalars(q.order_by(Medicine.name))]


def list_categories() -> list[str]:
    with db_session() as s:
        return list(s.scalars(select(Medicine.category).distinct().order_by(Medicine.category)))


def get_medicine(medicine_id: str) -> dict:
    with db_session() as s:
        m = s.get(Medicine, medicine_id)
        if m is None:
            raise LookupError("Medicine not found.")
        return medicine_dict(m)


def _validate_medicine_fields(fields: dict[str, Any]) -> None:
    if "name" in fields and not (fields["name"] or "").strip():
        raise ValueError("Medicine name is required.")
    if "category" in fields and not (fields["category"] or "").strip():
        raise ValueError("Category is required.")
    if fields.get("price") is not None and fields["price"] < 0:
        raise ValueError("Price cannot be negative.")
    if fields.get("stock") is not None and fields["stock"] < 0:
        raise ValueError("Stock cannot be negative.")


def create_medicine(
    name: str,
    price: float,
    category: str,
    stock: int = 0,
    description: str | None = None,
    image_url: str | None = None,
) -> str:
    _validate_medicine_fields({"name": name, "price": price, "category": category, "stock": stock})
    with db_session() as s:
        m = Medicine(
            name=name.strip(),
            price=price,
            category=category.strip(),
            stock=stock,
            description=description,
            image_url=image_url,
        )
        s.add(m)
        s.flush()
        logger.info("Medicine added: %s", m.name)
        return m.id


def update_medicine(medicine_id: str, **fields: Any) -> dict:
    """Partial update: only the given (non-None) fields change."""
    allowed = {"name", "description", "price", "category", "stock", "image_url"}
    changes = {k: v for k, v in fields.items() if k in allowed and v is not None}
    _validate_medicine_fields(changes)
    with db_session() as s:
        m = s.get(Medicine, medicine_id)
        if m is None:
            raise LookupError("Medicine not found.")
        for k, v in changes.items():
            setattr(m, k, v.strip() if isinstance(v, str) and k in {"name", "category"} else v)
        s.flush()
        return medicine_dict(m)


def delete_medicine(medicine_id: str) -> None:
    with db_session() as s:
        m = s.get(Medicine, medicine_id)
        if m is None:
            raise LookupError("Medicine not found.")
        # ordered or reviewed medicines stay for the order history
        for model in (OrderItem, ProductReview):
            if s.scalar(select(func.count()).select_from(model).where(model.medicine_id == medicine_id)):
                raise ValueError("Medicine has orders or reviews; set its stock to 0 instead of deleting it.")
        s.execute(delete(CartItem).where(CartItem.medicine_id == medicine_id))
        s.delete(m)
    logger.info("Medicine %s deleted", medicine_id)


# =========================
# Cart
# =========================
def _current_cart(s, user_id: str) -> Cart:
    carts = list(s.scalars(select(Cart).where(Cart.user_id == user_id).order_by(Cart.created_at.desc(), Cart.id.desc())))
    if not carts:
        cart = Cart(user_id=user_id)
        s.add(cart)
        s.flush()
        return cart

    cart, duplicates = carts[0], carts[1:]
    for dup in duplicates:
        logger.warning("Removing duplicate cart %s for user %s", dup.id, user_id)
        s.delete(dup)
    if duplicates:
        s.flush()
    return cart


def get_or_create_cart(user_id: str) -> int:
    with db_session() as s:
        return _current_cart(s, user_id).id


def _cart_line(item: CartItem) -> dict[str, Any]:
    med = item.medicine
    return {
        "id": item.id,
        "medicine_id": item.medicine_id,
        "quantity": item.quantity,
        "medicine": medicine_dict(med) if med else None,
        "line_total": (med.price if med else 0.0) * item.quantity,
    }


def get_cart(user_id: str) -> dict[str, Any]:
    with db_session() as s:
        cart = _current_cart(s, user_id)
        items = [_cart_line(i) for i in sorted(cart.items, key=lambda i: i.id)]
        return {
            "cart_id": cart.id,
            "items": items,
            "total": sum(i["line_total"] for i in items),
        }


def add_to_cart(user_id: str, medicine_id: str, quantity: int = 1) -> dict[str, Any]:
    if quantity < 1:
        raise ValueError("Quantity must be at least 1.")
    with db_session() as s:
        if s.get(Medicine, medicine_id) is None:
            raise LookupError("Medicine not found.")
        cart = _current_cart(s, user_id)
        item = s.execute(
            select(CartItem).where(CartItem.cart_id == cart.id, CartItem.medicine_id == medicine_id)
        ).scalar_one_or_none()
        if item:
            item.quantity += quantity
        else:
            item = CartItem(cart_id=cart.id, medicine_id=medicine_id, quantity=quantity)
            s.add(item)
        s.flush()
        return {"id": item.id, "medicine_id": medicine_id, "quantity": item.quantity}


def _owned_item(s, user_id: str, item_id: int) -> CartItem:
    item = s.get(CartItem, item_id)
    if item is None or item.cart.user_id != user_id:
        raise LookupError("Cart item not found.")
    return item


def update_cart_quantity(user_id: str, item_id: int, quantity: int) -> None:
    if quantity < 1:
        raise ValueError("Quantity must be at least 1.")
    with db_session() as s:
        _owned_item(s, user_id, item_id).quantity = quantity


def remove_from_cart(user_id: str, item_id: int) -> None:
    with db_session() as s:
        s.delete(_owned_item(s, user_id, item_id))


def clear_cart(user_id: str) -> None:
    with db_session() as s:
        cart = _current_cart(s, user_id)
        s.execute(delete(CartItem).where(CartItem.cart_id == cart.id))


def cart_total(user_id: str) -> float:
    return get_cart(user_id)["total"]


# =========================
# Orders
# =========================
def create_order(user_id: str, address: str, phone: str, prescription_url: str | None = None) -> OrderResult:
    if not (phone or "").strip():
        raise ValueError("Phone number is required for placing orders.")
    if not (address or "").strip():
        raise ValueError("Delivery address is required.")

    normalized = normalize_phone_number(phone.strip())

    with db_session() as s:
        cart = _current_cart(s, user_id)
        lines = [i for i in cart.items if i.medicine is not None and i.quantity > 0]
        if not lines:
            raise ValueError("No valid items in cart. Please add items to your cart before placing an order.")

        total = sum(i.medicine.price * i.quantity for i in lines)
        order = Order(
            user_id=user_id,
            phone_number=normalized,
            phone=normalized,
            address=address.strip(),
            total_price=total,
            prescription_url=prescription_url or None,
            status=OrderStatus.PENDING,
            tracking_number=generate_tracking_number(),
            estimated_delivery=utcnow().date() + timedelta(days=DELIVERY_DAYS),
        )
        s.add(order)
        s.flush()

        for i in lines:
            s.add(OrderItem(order_id=order.id, medicine_id=i.medicine_id, quantity=i.quantity, price=i.medicine.price))
        s.add(OrderStatusHistory(order_id=order.id, status="pending", status_message="Order placed successfully"))

        s.execute(delete(CartItem).where(CartItem.cart_id == cart.id))
        s.flush()

        logger.info("Order %s placed (%d items, total %.2f)", order.id, len(lines), total)
        return OrderResult(
            order_id=order.id,
            tracking_number=order.tracking_number,
            total_price=total,
            estimated_delivery=order.estimated_delivery.isoformat(),
        )


def order_dict(o: Order) -> dict[str, Any]:
    return {
        "id": o.id,
        "phone_number": o.phone_number,
        "phone": o.phone,
        "address": o.address,
        "total_price": o.total_price,
        "prescription_url": o.prescription_url,
        "status": o.status.value,
        "tracking_number": o.tracking_number,
        "estimated_delivery": o.estimated_delivery.isoformat() if o.estimated_delivery else None,
        "created_at": o.created_at.isoformat(),
        "updated_at": o.updated_at.isoformat(),
        "items": [
            {
                "id": it.id,
                "medicine_id": it.medicine_id,
                "quantity": it.quantity,
                "price": it.price,
                "medicine": medicine_dict(it.medicine) if it.medicine else None,
            }
            for it in o.items
        ],
    }


def list_orders_for_phone(phone: str) -> list[dict]:
    if not (phone or "").strip():
        return []
    raw = phone.strip()
    candidates = {raw, normalize_phone_number(raw)}
    with db_session() as s:
        q = (
            select(Order)
            .where(or_(Order.phone_number.in_(candidates), Order.phone.in_(candidates)))
            .order_by(Order.created_at.desc())
        )
        return [order_dict(o) for o in s.scalars(q)]


def list_orders_for_user(user: User) -> list[dict]:
    """Orders placed from the account plus orders placed with its phone number."""
    conditions = [Order.user_id == user.id]
    if (user.phone or "").strip():
        raw = user.phone.strip()
        candidates = {raw, normalize_phone_number(raw)}
        conditions += [Order.phone_number.in_(candidates), Order.phone.in_(candidates)]
    with db_session() as s:
        q = select(Order).where(or_(*conditions)).order_by(Order.created_at.desc())
        return [order_dict(o) for o in s.scalars(q)]


def list_all_orders() -> list[dict]:
    with db_session() as s:
        return [order_dict(o) for o in s.scalars(select(Order).order_by(Order.created_at.desc()))]


def can_view_order(o: Order, viewer: User | None) -> bool:
    """Admins see every order; others only their own (by account or phone)."""
    if viewer is None or viewer.role == Role.ADMIN:
        return True
    if o.user_id is not None and o.user_id == viewer.id:
        return True
    if not (viewer.phone or "").strip():
        return False
    raw = viewer.phone.strip()
    return bool({raw, normalize_phone_number(raw)} & {o.phone, o.phone_number})


def _visible_order(s, order_id: str, viewer: User | None) -> Order:
    o = s.get(Order, order_id)
    # someone else's order looks the same as a missing one
    if o is None or not can_view_order(o, viewer):
        raise LookupError("Order not found.")
    return o


def get_order(order_id: str, viewer: User | None = None) -> dict:
    with db_session() as s:
        return order_dict(_visible_order(s, order_id, viewer))


def order_status_history(order_id: str, viewer: User | None = None) -> list[dict]:
    with db_session() as s:
        o = _visible_order(s, order_id, viewer)
        rows = list(
            s.scalars(
                select(OrderStatusHistory)
                .where(OrderStatusHistory.order_id == order_id)
                .order_by(OrderStatusHistory.created_at.desc(), OrderStatusHistory.id.desc())
            )
        )
        if not rows:
            return [
                {
                    "status": o.status.value,
                    "status_message": f"Order is currently {o.status.value}",
                    "created_at": o.updated_at.isoformat(),
                }
            ]
        return [
            {"status": r.status, "status_message": r.status_message, "created_at": r.created_at.isoformat()}
            for r in rows
        ]


def admin_update_order_status(order_id: str, status: str) -> dict:
    try:
        new_status = OrderStatus(status)
    except ValueError:
        raise ValueError(f"Invalid order status: {status}") from None

    with db_session() as s:
        o = s.get(Order, order_id)
        if o is None:
            raise LookupError("Order not found.")
        o.status = new_status
        o.updated_at = utcnow()
        s.add(
            OrderStatusHistory(
                order_id=o.id, status=new_status.value, status_message=f"Order status updated to {new_status.value}"
            )
        )
        s.flush()
        logger.info("Order %s -> %s", order_id, new_status.value)
        return order_dict(o)


# =========================
# Product reviews
# =========================
def submit_product_review(
    order_id: str, medicine_id: str, phone: str, rating: int, review_text: str | None = None
) -> str:
    """Insert or update the review for (order, medicine, phone). Returns 'created' or 'updated'."""
    if not 1 <= rating <= 5:
        raise ValueError("Rating must be between 1 and 5.")
    if not (phone or "").strip():
        raise ValueError("Phone number is required.")
    phone = normalize_phone_number(phone.strip())

    with db_session() as s:
        if s.get(Order, order_id) is None:
            raise LookupError("Order not found.")
        if s.get(Medicine, medicine_id) is None:
            raise LookupError("Medicine not found.")

        review = s.execute(
            select(ProductReview).where(
                ProductReview.order_id == order_id,
                ProductReview.medicine_id == medicine_id,
                ProductReview.user_phone == phone,
            )
        ).scalar_one_or_none()
        if review:
            review.rating = rating
            review.review_text = review_text
            review.updated_at = utcnow()
            return "updated"

        s.add(
            ProductReview(
                order_id=order_id, medicine_id=medicine_id, user_phone=phone, rating=rating, review_text=review_text
            )
        )
        return "created"


def _review_dict(r: ProductReview, medicine_name: str | None = None) -> dict[str, Any]:
    return {
        "id": r.id,
        "order_id": r.order_id,
        "medicine_id": r.medicine_id,
        "medicine_name": medicine_name,
        "user_phone": r.user_phone,
        "rating": r.rating,
        "review_text": r.review_text,
        "created_at": r.created_at.isoformat(),
    }


def list_product_reviews() -> list[dict]:
    with db_session() as s:
        rows = s.execute(
            select(ProductReview, Medicine.name)
            .join(Medicine, Medicine.id == ProductReview.medicine_id)
            .order_by(ProductReview.created_at.desc(), ProductReview.id.desc())
        ).all()
        return [_review_dict(r, name) for r, name in rows]


def review_for_product(order_id: str, medicine_id: str, phone: str) -> dict | None:
    phone = normalize_phone_number((phone or "").strip())
    with db_session() as s:
        r = s.execute(
            select(ProductReview).where(
                ProductReview.order_id == order_id,
                ProductReview.medicine_id == medicine_id,
                ProductReview.user_phone == phone,
            )
        ).scalar_one_or_none()
        return _review_dict(r) if r else None
