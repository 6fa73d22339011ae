from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, UploadFile

from .. import blood, hospital
from ..api_deps import get_current_user, require_admin
from ..auth_models import User
from ..schemas import (
    AdmissionStatusIn,
    BedBookingIn,
    BedCountIn,
    BloodRequestIn,
    DonorIn,
    ModerationIn,
    TheaterStatusIn,
)

router = APIRouter(prefix="/api", tags=["blood", "hospital"])


# =========================
# Blood support
# =========================
@router.post("/blood/donors")
def api_register_donor(payload: DonorIn, user: User = Depends(get_current_user)) -> dict[str, Any]:
    donor_id = blood.register_donor(user.id, **payload.model_dump())
    return {"ok": True, "donor_id": donor_id}


@router.get("/blood/donors/available")
def api_available_donors(blood_group: str | None = None, user: User = Depends(get_current_user)) -> list[dict]:
    return blood.available_donors(blood_group)


@router.post("/blood/requests")
def api_blood_request(payload: BloodRequestIn, user: User = Depends(get_current_user)) -> dict[str, Any]:
    request_id = blood.create_blood_request(user.id, **payload.model_dump())
    return {"ok": True, "request_id": request_id}


@router.get("/blood/requests")
def api_my_blood_requests(user: User = Depends(get_current_user)) -> list[dict]:
    return blood.list_blood_requests(user_id=user.id)


@router.get("/blood/receipts")
def api_receipts(user: User = Depends(get_current_user)) -> list[dict]:
    return blood.approved_receipts(user.id)


@router.get("/admin/blood/donors")
def api_admin_donors(status: str | None = None, user: User = Depends(require_admin)) -> list[dict]:
    return blood.list_donors(status)


@router.post("/admin/blood/donors/{donor_id}/moderate")
def api_moderate_donor(donor_id: int, payload: ModerationIn, user: User = Depends(require_admin)) -> dict:
    return blood.moderate_donor(donor_id, payload.action, payload.response)


@router.get("/admin/blood/requests")
def api_admin_blood_requests(status: str | None = None, user: User = Depends(require_admin)) -> list[dict]:
    return blood.list_blood_requests(status=status)


@router.post("/admin/blood/requests/{request_id}/moderate")
def api_moderate_request(request_id: int, payload: ModerationIn, user: User = Depends(require_admin)) -> dict:
    return blood.moderate_request(request_id, payload.action, payload.response)


# =========================
# Hospital
# =========================
@router.get("/hospital/beds")
def api_beds() -> list[dict]:
    return hospital.bed_availability()


@router.get("/hospital/theaters")
def api_theaters() -> list[dict]:
    return hospital.list_theaters()


@router.post("/hospital/reports")
def api_upload_report(file: UploadFile = File(...), user: User = Depends(get_current_user)) -> dict[str, Any]:
    path = hospital.save_medical_report(file.filename or "", file.content_type or "", file.file)
    return {"ok": True, "medical_report_url": path}


@router.post("/hospital/bookings")
def api_book_bed(payload: BedBookingIn, user: User = Depends(get_current_user)) -> dict:
    return hospital.book_bed(user.id, **payload.model_dump())


@router.get("/hospital/bookings")
def api_my_bookings(user: User = Depends(get_current_user)) -> list[dict]:
    return hospital.patient_bookings(user.id)


@router.post("/hospital/bookings/{booking_id}/pay")
def api_pay_booking(booking_id: str, user: User = Depends(get_current_user)) -> dict:
    return hospital.pay_booking(user.id, booking_id)


@router.get("/admin/hospital/bookings")
def api_admin_bookings(status: str | None = None, user: User = Depends(require_admin)) -> list[dict]:
    return hospital.list_bookings(status)


@router.patch("/admin/hospital/bookings/{booking_id}")
def api_admission(booking_id: str, payload: AdmissionStatusIn, user: User = Depends(require_admin)) -> dict:
    return hospital.admin_update_admission(booking_id, payload.status)


@router.patch("/admin/hospital/beds/{bed_id}")
def api_bed_count(bed_id: int, payload: BedCountIn, user: User = Depends(require_admin)) -> dict:
    return hospital.admin_update_bed_count(bed_id, payload.field, payload.value)


@router.patch("/admin/hospital/theaters/{ot_id}")
def api_theater_status(ot_id: int, payload: TheaterStatusIn, user: User = Depends(require_admin)) -> dict[str, Any]:
    hospital.admin_set_theater_status(ot_id, payload.is_available)
    return {"ok": True}
