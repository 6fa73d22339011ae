from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from .. import appointments, doctors, prescriptions
from ..api_deps import get_current_user, require_admin, require_doctor
from ..auth_models import User
from ..mailer import Mailer, get_mailer
from ..schemas import (
    AppointmentIn,
    AppointmentStatusIn,
    AvailabilityIn,
    DoctorProfileUpdateIn,
    DoctorReviewIn,
    MeetLinkIn,
    PrescriptionIn,
    VerificationRequestIn,
)

router = APIRouter(prefix="/api", tags=["clinic"])


# =========================
# Doctors (public)
# =========================
@router.get("/doctors")
def api_doctors(specialization: str | None = None) -> list[dict]:
    return doctors.list_public_doctors(specialization)


@router.get("/doctors/approval-status")
def api_approval_status(email: str) -> dict[str, str]:
    return {"email": email, "status": doctors.approval_status(email)}


@router.get("/doctors/{doctor_id}")
def api_doctor(doctor_id: str) -> dict:
    return doctors.get_doctor(doctor_id)


@router.get("/doctors/{doctor_id}/reviews")
def api_doctor_reviews(doctor_id: str) -> list[dict]:
    return doctors.list_doctor_reviews(doctor_id)


@router.post("/doctors/{doctor_id}/reviews")
def api_review_doctor(doctor_id: str, payload: DoctorReviewIn, user: User = Depends(get_current_user)) -> dict:
    result = doctors.submit_doctor_review(user.id, doctor_id, payload.rating, payload.comment)
    return {"ok": True, "result": result}


@router.post("/doctors/verification")
def api_request_verification(payload: VerificationRequestIn, user: User = Depends(get_current_user)) -> dict:
    rid = doctors.submit_verification_request(user.id, **payload.model_dump())
    return {"ok": True, "request_id": rid}


# =========================
# Doctor dashboard
# =========================
@router.get("/doctor/profile")
def api_my_profile(user: User = Depends(require_doctor)) -> dict:
    return doctors.my_profile(user.id)


@router.patch("/doctor/profile")
def api_update_profile(payload: DoctorProfileUpdateIn, user: User = Depends(require_doctor)) -> dict:
    return doctors.update_my_profile(user.id, **payload.model_dump(exclude_none=True))


@router.put("/doctor/availability")
def api_availability(payload: AvailabilityIn, user: User = Depends(require_doctor)) -> dict:
    return doctors.set_availability(user.id, payload.is_available, payload.status, payload.message)


@router.get("/doctor/appointments")
def api_doctor_appointments(status: str | None = None, user: User = Depends(require_doctor)) -> list[dict]:
    return appointments.doctor_appointments(user.id, status)


@router.get("/doctor/patients")
def api_past_patients(user: User = Depends(require_doctor)) -> list[dict]:
    return appointments.doctor_past_patients(user.id)


@router.patch("/doctor/appointments/{appointment_id}/status")
def api_appointment_status(
    appointment_id: str, payload: AppointmentStatusIn, user: User = Depends(require_doctor)
) -> dict:
    return appointments.update_appointment_status(user.id, appointment_id, payload.status)


@router.post("/doctor/appointments/{appointment_id}/meet-link")
def api_send_meet_link(
    appointment_id: str, user: User = Depends(require_doctor), mailer: Mailer = Depends(get_mailer)
) -> dict[str, Any]:
    return appointments.send_meet_link(user.id, appointment_id, mailer)


@router.put("/doctor/appointments/{appointment_id}/meet-link")
def api_manual_meet_link(appointment_id: str, payload: MeetLinkIn, user: User = Depends(require_doctor)) -> dict:
    return appointments.set_manual_meet_link(user.id, appointment_id, payload.meeting_link)


@router.post("/doctor/appointments/{appointment_id}/end")
def api_end_meeting(
    appointment_id: str, user: User = Depends(require_doctor), mailer: Mailer = Depends(get_mailer)
) -> dict[str, Any]:
    return appointments.end_meeting(user.id, appointment_id, mailer)


@router.post("/doctor/prescriptions")
def api_create_prescription(
    payload: PrescriptionIn, user: User = Depends(require_doctor), mailer: Mailer = Depends(get_mailer)
) -> dict[str, Any]:
    data = payload.model_dump()
    return prescriptions.create_prescription(user.id, mailer=mailer, **data)


@router.get("/doctor/prescriptions")
def api_doctor_prescriptions(user: User = Depends(require_doctor)) -> list[dict]:
    return prescriptions.doctor_prescriptions(user.id)


# =========================
# Patient side
# =========================
@router.post("/appointments")
def api_book(payload: AppointmentIn, user: User = Depends(get_current_user)) -> dict:
    data = payload.model_dump()
    data["patient_email"] = data["patient_email"] or user.email
    data["patient_phone"] = data["patient_phone"] or user.phone
    return appointments.book_appointment(patient_id=user.id, **data)


@router.get("/appointments")
def api_my_appointments(user: User = Depends(get_current_user)) -> list[dict]:
    return appointments.patient_appointments(user.id)


@router.get("/prescriptions")
def api_my_prescriptions(user: User = Depends(get_current_user)) -> list[dict]:
    return prescriptions.patient_prescriptions(user.id)


@router.get("/prescriptions/{prescription_id}")
def api_prescription(prescription_id: int, user: User = Depends(get_current_user)) -> dict:
    return prescriptions.get_prescription(prescription_id, viewer=user)


# =========================
# Admin moderation
# =========================
@router.get("/admin/doctor-requests")
def api_doctor_requests(status: str | None = "pending", user: User = Depends(require_admin)) -> list[dict]:
    return doctors.list_verification_requests(status)


@router.post("/admin/doctor-requests/{request_id}/approve")
def api_approve_doctor(request_id: int, user: User = Depends(require_admin)) -> dict[str, Any]:
    profile_id = doctors.approve_verification_request(request_id, reviewed_by=user.id)
    return {"ok": True, "doctor_id": profile_id}


@router.post("/admin/doctor-requests/{request_id}/reject")
def api_reject_doctor(request_id: int, user: User = Depends(require_admin)) -> dict[str, Any]:
    doctors.reject_verification_request(request_id, reviewed_by=user.id)
    return {"ok": True}


@router.delete("/admin/doctors/{doctor_id}")
def api_remove_doctor(doctor_id: str, user: User = Depends(require_admin)) -> dict[str, Any]:
    doctors.remove_doctor(doctor_id)
    return {"ok": True}
