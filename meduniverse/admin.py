from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .auth_models import Role, User, utcnow
from .db import db_session
from .models import (
    AdminNotification,
    ApprovalStatus,
    BloodRequest,
    DoctorProfile,
    DoctorVerificationRequest,
    Medicine,
    Order,
    OrderStatus,
    SupportTicket,
    TicketStatus,
)

logger = logging.getLogger(__name__)

LOW_STOCK_THRESHOLD = 10
TICKET_PRIORITIES = ("low", "medium", "high")


# =========================
# Notifications
# =========================
def add_admin_notification(s: Session, type_: str, title: str, message: str, data: dict | None = None) -> None:
    """Queue an admin notification inside the caller's session."""
    s.add(AdminNotification(type=type_, title=title, message=message, data=data))


def list_notifications(unread_only: bool = False, limit: int = 100) -> list[dict]:
    with db_session() as s:
        q = select(AdminNotification)
        if unread_only:
            q = q.where(AdminNotification.is_read.is_(False))
        q = q.order_by(AdminNotification.created_at.desc(), AdminNotification.id.desc()).limit(limit)
        return [
            {
                "id": n.id,
                "type": n.type,
                "title": n.title,
                "message": n.message,
                "data": n.data,
                "is_read": n.is_read,
                "created_at": n.created_at.isoformat(),
            }
            for n in s.scalars(q)
        ]


def mark_notification_read(notification_id: int) -> None:
    with db_session() as s:
        n = s.get(AdminNotification, notification_id)
        if n is None:
            raise LookupError("Notification not found.")
        n.is_read = True


# =========================
# Dashboard
# =========================
def dashboard_stats() -> dict[str, int]:
    with db_session() as s:
        def count(q) -> int:
            return int(s.execute(q).scalar_one())

        return {
            "total_users": count(select(func.count(User.id))),
            "total_doctors": count(select(func.count(DoctorProfile.id)).where(DoctorProfile.is_approved.is_(True))),
            "total_patients": count(select(func.count(User.id)).where(User.role == Role.PATIENT)),
            "pending_doctor_requests": count(
                select(func.count(DoctorVerificationRequest.id)).where(
                    DoctorVerificationRequest.status == ApprovalStatus.PENDING
                )
            ),
            "total_medicines": count(select(func.count(Medicine.id))),
            "low_stock_medicines": count(select(func.count(Medicine.id)).where(Medicine.stock <= LOW_STOCK_THRESHOLD)),
            "total_orders": count(select(func.count(Order.id))),
            "pending_orders": count(select(func.count(Order.id)).where(Order.status == OrderStatus.PENDING)),
            "total_blood_requests": count(select(func.count(BloodRequest.id))),
            "pending_blood_requests": count(
                select(func.count(BloodRequest.id)).where(BloodRequest.status == ApprovalStatus.PENDING)
            ),
        }


# =========================
# Users
# =========================
def list_users(role: str | None = None) -> list[dict]:
    with db_session() as s:
        q = select(User).order_by(User.created_at.desc())
        if role:
            q = q.where(User.role == Role(role))
        return [
            {
                "id": u.id,
                "email": u.email,
                "full_name": u.full_name,
                "phone": u.phone,
                "role": u.role.value,
                "is_active": u.is_active,
                "created_at": u.created_at.isoformat(),
            }
            for u in s.scalars(q)
        ]


def set_user_active(user_id: str, is_active: bool) -> None:
    with db_session() as s:
        u = s.get(User, user_id)
        if u is None:
            raise LookupError("User not found.")
        if u.role == Role.ADMIN and not is_active:
            raise PermissionError("Admin accounts cannot be deactivated here.")
        u.is_active = is_active
    logger.info("User %s %s", user_id, "activated" if is_active else "deactivated")


# =========================
# Support tickets
# =========================
def _ticket_dict(t: SupportTicket) -> dict[str, Any]:
    return {
        "id": t.id,
        "user_id": t.user_id,
        "title": t.title,
        "description": t.description,
        "priority": t.priority,
        "status": t.status.value,
        "admin_response": t.admin_response,
        "created_at": t.created_at.isoformat(),
        "updated_at": t.updated_at.isoformat(),
    }


def create_ticket(user_id: str | None, title: str, description: str, priority: str = "medium") -> int:
    if not (title or "").strip() or not (description or "").strip():
        raise ValueError("Title and description are required.")
    if priority not in TICKET_PRIORITIES:
        raise ValueError("Priority must be low, medium or high.")
    with db_session() as s:
        t = SupportTicket(user_id=user_id, title=title.strip(), description=description.strip(), priority=priority)
        s.add(t)
        add_admin_notification(s, "support_ticket", "New support ticket", title.strip(), {"priority": priority})
        s.flush()
        return t.id


def list_tickets(user_id: str | None = None, status: str | None = None) -> list[dict]:
    with db_session() as s:
        q = select(SupportTicket).order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc())
        if user_id:
            q = q.where(SupportTicket.user_id == user_id)
        if status:
            q = q.where(SupportTicket.status == TicketStatus(status))
        return [_ticket_dict(t) for t in s.scalars(q)]


def respond_ticket(ticket_id: int, response: str) -> dict:
    if not (response or "").strip():
        raise ValueError("Response text is required.")
    with db_session() as s:
        t = s.get(SupportTicket, ticket_id)
        if t is None:
            raise LookupError("Ticket not found.")
        t.admin_response = response.strip()
        t.status = TicketStatus.RESPONDED
        t.updated_at = utcnow()
        s.flush()
        return _ticket_dict(t)


def close_ticket(ticket_id: int) -> dict:
    with db_session() as s:
        t = s.get(SupportTicket, ticket_id)
        if t is None:
            raise LookupError("Ticket not found.")
        t.status = TicketStatus.CLOSED
        t.updated_at = utcnow()
        s.flush()
        return _ticket_dict(t)
