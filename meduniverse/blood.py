from __future__ import annotations

import logging
import re
from typing import Any

from sqlalchemy import select

from .admin import add_admin_notification
from .auth_models import utcnow
from .db import db_session
from .models import ApprovalStatus, BloodDonor, BloodRequest

logger = logging.getLogger(__name__)

BLOOD_GROUPS = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")
EMERGENCY_LEVELS = ("normal", "urgent", "critical")
MODERATION_ACTIONS = ("approved", "rejected")
DONOR_MIN_AGE = 18
DONOR_MAX_AGE = 65

_AADHAAR_RE = re.compile(r"^\d{12}$")


def _check_common(name: str, blood_group: str, phone: str, aadhar_number: str, address: str) -> None:
    if not (name or "").strip():
        raise ValueError("Name is required.")
    if blood_group not in BLOOD_GROUPS:
        raise ValueError(f"Blood group must be one of {', '.join(BLOOD_GROUPS)}.")
    if not (phone or "").strip():
        raise ValueError("Mobile number is required.")
    if not _AADHAAR_RE.match((aadhar_number or "").strip()):
        raise ValueError("Aadhaar number must be exactly 12 digits.")
    if not (address or "").strip():
        raise ValueError("Address is required.")


def _donor_dict(d: BloodDonor) -> dict[str, Any]:
    return {
        "id": d.id,
        "user_id": d.user_id,
        "name": d.name,
        "age": d.age,
        "blood_group": d.blood_group,
        "mobile_number": d.mobile_number,
        "address": d.address,
        "status": d.status.value,
        "is_approved": d.is_approved,
        "admin_response": d.admin_response,
        "created_at": d.created_at.isoformat(),
    }


def _request_dict(r: BloodRequest) -> dict[str, Any]:
    return {
        "id": r.id,
        "user_id": r.user_id,
        "full_name": r.full_name,
        "blood_group": r.blood_group,
        "phone_number": r.phone_number,
        "address": r.address,
        "emergency_level": r.emergency_level,
        "delivery_instructions": r.delivery_instructions,
        "status": r.status.value,
        "admin_response": r.admin_response,
        "created_at": r.created_at.isoformat(),
        "updated_at": r.updated_at.isoformat(),
    }


# =========================
# Donors
# =========================
def register_donor(
    user_id: str, name: str, age: int, blood_group: str, mobile_number: str, aadhar_number: str, address: str
) -> int:
    _check_common(name, blood_group, mobile_number, aadhar_number, address)
    if not DONOR_MIN_AGE <= age <= DONOR_MAX_AGE:
        raise ValueError(f"Donor age must be between {DONOR_MIN_AGE} and {DONOR_MAX_AGE}.")

    with db_session() as s:
        d = BloodDonor(
            user_id=user_id,
            name=name.strip(),
            age=age,
            blood_group=blood_group,
            mobile_number=mobile_number.strip(),
            aadhar_number=aadhar_number.strip(),
            address=address.strip(),
            status=ApprovalStatus.PENDING,
            is_approved=False,
        )
        s.add(d)
        s.flush()
        add_admin_notification(
            s, "blood_donor", "New blood donor application", f"{d.name} ({blood_group}) applied as donor.",
            {"donor_id": d.id},
        )
        logger.info("Blood donor application %s submitted", d.id)
        return d.id


def list_donors(status: str | None = None) -> list[dict]:
    with db_session() as s:
        q = select(BloodDonor).order_by(BloodDonor.created_at.desc(), BloodDonor.id.desc())
        if status:
            q = q.where(BloodDonor.status == ApprovalStatus(status))
        return [_donor_dict(d) for d in s.scalars(q)]


def available_donors(blood_group: str | None = None) -> list[dict]:
    with db_session() as s:
        q = select(BloodDonor).where(BloodDonor.is_approved.is_(True), BloodDonor.status == ApprovalStatus.APPROVED)
        if blood_group and blood_group != "all":
            q = q.where(BloodDonor.blood_group == blood_group)
        return [_donor_dict(d) for d in s.scalars(q.order_by(BloodDonor.name))]


def moderate_donor(donor_id: int, action: str, response: str | None = None) -> dict:
    if action not in MODERATION_ACTIONS:
        raise ValueError("Action must be approved or rejected.")
    with db_session() as s:
        d = s.get(BloodDonor, donor_id)
        if d is None:
            raise LookupError("Donor not found.")
        d.status = ApprovalStatus(action)
        d.is_approved = action == "approved"
        d.admin_response = (response or "").strip() or f"Application {action} by admin"
        d.updated_at = utcnow()
        s.flush()
        logger.info("Blood donor %s %s", donor_id, action)
        return _donor_dict(d)


# =========================
# Requests
# =========================
def create_blood_request(
    user_id: str,
    full_name: str,
    blood_group: str,
    phone_number: str,
    aadhar_number: str,
    address: str,
    emergency_level: str = "normal",
    delivery_instructions: str | None = None,
) -> int:
    _check_common(full_name, blood_group, phone_number, aadhar_number, address)
    if emergency_level not in EMERGENCY_LEVELS:
        raise ValueError("Emergency level must be normal, urgent or critical.")

    with db_session() as s:
        r = BloodRequest(
            user_id=user_id,
            full_name=full_name.strip(),
            blood_group=blood_group,
            phone_number=phone_number.strip(),
            aadhar_number=aadhar_number.strip(),
            address=address.strip(),
            emergency_level=emergency_level,
            delivery_instructions=delivery_instructions,
            status=ApprovalStatus.PENDING,
        )
        s.add(r)
        s.flush()
        add_admin_notification(
            s,
            "blood_request",
            f"New {emergency_level} blood request",
            f"{r.full_name} needs {blood_group} blood.",
            {"request_id": r.id, "emergency_level": emergency_level},
        )
        logger.info("Blood request %s created (%s)", r.id, emergency_level)
        return r.id


def list_blood_requests(status: str | None = None, user_id: str | None = None) -> list[dict]:
    with db_session() as s:
        q = select(BloodRequest).order_by(BloodRequest.created_at.desc(), BloodRequest.id.desc())
        if status:
            q = q.where(BloodRequest.status == ApprovalStatus(status))
        if user_id:
            q = q.where(BloodRequest.user_id == user_id)
        return [_request_dict(r) for r in s.scalars(q)]


def moderate_request(request_id: int, action: str, response: str | None = None) -> dict:
    if action not in MODERATION_ACTIONS:
        raise ValueError("Action must be approved or rejected.")
    with db_session() as s:
        r = s.get(BloodRequest, request_id)
        if r is None:
            raise LookupError("Blood request not found.")
        r.status = ApprovalStatus(action)
        r.admin_response = (response or "").strip() or f"Request {action} by admin"
        r.updated_at = utcnow()
        s.flush()
        logger.info("Blood request %s %s", request_id, action)
        return _request_dict(r)


def approved_receipts(user_id: str) -> list[dict]:
    return list_blood_requests(status=ApprovalStatus.APPROVED.value, user_id=user_id)
