from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from .. import admin, face_lock
from ..api_deps import get_current_user, require_admin
from ..auth_models import User
from ..schemas import FaceEnrollIn, FaceLockToggleIn, TicketIn, TicketResponseIn, UserActiveIn

router = APIRouter(prefix="/api", tags=["admin"])


# =========================
# Dashboard, users, notifications
# =========================
@router.get("/admin/stats")
def api_stats(user: User = Depends(require_admin)) -> dict[str, int]:
    return admin.dashboard_stats()


@router.get("/admin/users")
def api_users(role: str | None = None, user: User = Depends(require_admin)) -> list[dict]:
    return admin.list_users(role)


@router.patch("/admin/users/{user_id}")
def api_user_active(user_id: str, payload: UserActiveIn, user: User = Depends(require_admin)) -> dict[str, Any]:
    admin.set_user_active(user_id, payload.is_active)
    return {"ok": True}


@router.get("/admin/notifications")
def api_notifications(unread_only: bool = False, limit: int = 100, user: User = Depends(require_admin)) -> list[dict]:
    return admin.list_notifications(unread_only, limit)


@router.post("/admin/notifications/{notification_id}/read")
def api_notification_read(notification_id: int, user: User = Depends(require_admin)) -> dict[str, Any]:
    admin.mark_notification_read(notification_id)
    return {"ok": True}


# =========================
# Face lock
# =========================
@router.get("/admin/face-lock")
def api_face_lock_status(user: User = Depends(require_admin)) -> dict[str, Any]:
    return {
        "enabled": face_lock.is_enabled(user.id),
        "enrolled": bool(face_lock.stored_descriptors(user.id)),
    }


@router.post("/admin/face-lock/enroll")
def api_face_enroll(payload: FaceEnrollIn, user: User = Depends(require_admin)) -> dict[str, Any]:
    row_id = face_lock.enroll(user.id, payload.descriptors)
    return {"ok": True, "descriptor_set_id": row_id, "enabled": True}


@router.put("/admin/face-lock")
def api_face_lock_toggle(payload: FaceLockToggleIn, user: User = Depends(require_admin)) -> dict[str, Any]:
    face_lock.set_enabled(user.id, payload.enabled)
    return {"ok": True, "enabled": payload.enabled}


# =========================
# Support tickets
# =========================
@router.post("/support/tickets")
def api_create_ticket(payload: TicketIn, user: User = Depends(get_current_user)) -> dict[str, Any]:
    ticket_id = admin.create_ticket(user.id, payload.title, payload.description, payload.priority)
    return {"ok": True, "ticket_id": ticket_id}


@router.get("/support/tickets")
def api_my_tickets(user: User = Depends(get_current_user)) -> list[dict]:
    return admin.list_tickets(user_id=user.id)


@router.get("/admin/tickets")
def api_admin_tickets(status: str | None = None, user: User = Depends(require_admin)) -> list[dict]:
    return admin.list_tickets(status=status)


@router.post("/admin/tickets/{ticket_id}/respond")
def api_respond_ticket(ticket_id: int, payload: TicketResponseIn, user: User = Depends(require_admin)) -> dict:
    return admin.respond_ticket(ticket_id, payload.response)


@router.post("/admin/tickets/{ticket_id}/close")
def api_close_ticket(ticket_id: int, user: User = Depends(require_admin)) -> dict:
    return admin.close_ticket(ticket_id)
