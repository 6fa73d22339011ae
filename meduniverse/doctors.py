from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select

from .admin import add_admin_notification
from .auth_models import Role, User, utcnow
from .db import db_session
from .models import (
    Appointment,
    AppointmentStatus,
    ApprovalStatus,
    DoctorProfile,
    DoctorReview,
    DoctorVerificationRequest,
)

logger = logging.getLogger(__name__)

DEFAULT_CONSULTATION_FEE = 150.0
DEFAULT_SPECIALIZATION = "General Medicine"
DEFAULT_HOSPITAL = "Medical Center"

AVAILABILITY_STATUSES = ("Available", "Busy", "On Break", "In Surgery", "Emergency", "Off Duty")


def doctor_dict(d: DoctorProfile) -> dict[str, Any]:
    return {
        "id": d.id,
        "user_id": d.user_id,
        "doctor_name": d.doctor_name,
        "email": d.email,
        "phone": d.phone,
        "specialization": d.specialization,
        "hospital_name": d.hospital_name,
        "years_experience": d.years_experience,
        "consultation_fee": d.consultation_fee,
        "bio": d.bio,
        "photo_url": d.photo_url,
        "rating": d.rating,
        "is_approved": d.is_approved,
        "is_available": d.is_available,
        "availability_status": d.availability_status,
        "availability_message": d.availability_message,
        "last_availability_update": d.last_availability_update.isoformat() if d.last_availability_update else None,
    }


def _request_dict(r: DoctorVerificationRequest) -> dict[str, Any]:
    return {
        "id": r.id,
        "user_id": r.user_id,
        "full_name": r.full_name,
        "email": r.email,
        "phone": r.phone,
        "specialization": r.specialization,
        "medical_license": r.medical_license,
        "hospital_affiliation": r.hospital_affiliation,
        "years_experience": r.years_experience,
        "notes": r.notes,
        "status": r.status.value,
        "submitted_at": r.submitted_at.isoformat(),
        "reviewed_at": r.reviewed_at.isoformat() if r.reviewed_at else None,
        "reviewed_by": r.reviewed_by,
    }


# =========================
# Verification
# =========================
def submit_verification_request(
    user_id: str | None,
    full_name: str,
    email: str,
    specialization: str,
    medical_license: str,
    phone: str | None = None,
    hospital_affiliation: str | None = None,
    years_experience: int = 0,
    notes: str | None = None,
    photo_url: str | None = None,
) -> int:
    email = (email or "").strip().lower()
    if not (full_name or "").strip() or not email:
        raise ValueError("Full name and email are required.")
    if not (specialization or "").strip() or not (medical_license or "").strip():
        raise ValueError("Specialization and medical license are required.")
    if years_experience < 0:
        raise ValueError("Years of experience cannot be negative.")

    with db_session() as s:
        r = DoctorVerificationRequest(
            user_id=user_id,
            full_name=full_name.strip(),
            email=email,
            phone=phone,
            specialization=specialization.strip(),
            medical_license=medical_license.strip(),
            hospital_affiliation=hospital_affiliation,
            years_experience=years_experience,
            notes=notes,
            photo_url=photo_url,
            status=ApprovalStatus.PENDING,
        )
        s.add(r)
        s.flush()
        add_admin_notification(
            s,
            "doctor_verification",
            "New doctor verification request",
            f"{r.full_name} ({r.specialization}) requested verification.",
            {"request_id": r.id, "email": email},
        )
        logger.info("Doctor verification request %s submitted by %s", r.id, email)
        return r.id


def approval_status(email: str) -> str:
    """One of: approved, pending, rejected, not_found."""
    email = (email or "").strip().lower()
    with db_session() as s:
        profile = s.execute(select(DoctorProfile).where(DoctorProfile.email == email)).scalar_one_or_none()
        if profile is not None:
            return "approved" if profile.is_approved else "not_found"

        latest = s.execute(
            select(DoctorVerificationRequest)
            .where(DoctorVerificationRequest.email == email)
            .order_by(DoctorVerificationRequest.submitted_at.desc(), DoctorVerificationRequest.id.desc())
            .limit(1)
        ).scalar_one_or_none()
        if latest is None:
            return "not_found"
        if latest.status == ApprovalStatus.REJECTED:
            return "rejected"
        if latest.status == ApprovalStatus.APPROVED:
            # approved request without a profile: the doctor was removed
            return "not_found"
        return "pending"


def list_verification_requests(status: str | None = "pending") -> list[dict]:
    with db_session() as s:
        q = select(DoctorVerificationRequest).order_by(DoctorVerificationRequest.submitted_at.desc())
        if status:
            q = q.where(DoctorVerificationRequest.status == ApprovalStatus(status))
        return [_request_dict(r) for r in s.scalars(q)]


def approve_verification_request(request_id: int, reviewed_by: str | None = None) -> str:
    with db_session() as s:
        r = s.get(DoctorVerificationRequest, request_id)
        if r is None:
            raise LookupError("Verification request not found.")

        user = s.get(User, r.user_id) if r.user_id else None
        if user is None:
            user = s.execute(select(User).where(User.email == r.email)).scalar_one_or_none()

        profile = s.execute(select(DoctorProfile).where(DoctorProfile.email == r.email)).scalar_one_or_none()
        if profile is None:
            profile = DoctorProfile(email=r.email, consultation_fee=DEFAULT_CONSULTATION_FEE)
            s.add(profile)

        profile.doctor_name = r.full_name
        profile.specialization = r.specialization or DEFAULT_SPECIALIZATION
        profile.hospital_name = r.hospital_affiliation or DEFAULT_HOSPITAL
        profile.medical_license = r.medical_license
        profile.years_experience = r.years_experience
        profile.phone = r.phone
        profile.photo_url = r.photo_url
        if profile.consultation_fee is None:
            profile.consultation_fee = DEFAULT_CONSULTATION_FEE
        profile.is_approved = True
        if user is not None:
            profile.user_id = user.id
            if user.role != Role.ADMIN:
                user.role = Role.DOCTOR

        r.status = ApprovalStatus.APPROVED
        r.reviewed_at = utcnow()
        r.reviewed_by = reviewed_by
        s.flush()
        logger.info("Doctor %s approved (profile %s)", r.email, profile.id)
        return profile.id


def reject_verification_request(request_id: int, reviewed_by: str | None = None) -> None:
    with db_session() as s:
        r = s.get(DoctorVerificationRequest, request_id)
        if r is None:
            raise LookupError("Verification request not found.")
        r.status = ApprovalStatus.REJECTED
        r.reviewed_at = utcnow()
        r.reviewed_by = reviewed_by
    logger.info("Doctor verification request %s rejected", request_id)


def remove_doctor(profile_id: str) -> None:
    """Takes the doctor off the public list; appointments and prescriptions stay."""
    with db_session() as s:
        d = s.get(DoctorProfile, profile_id)
        if d is None:
            raise LookupError("Doctor not found.")
        d.is_approved = False
        d.is_available = False
        if d.user_id:
            user = s.get(User, d.user_id)
            if user is not None and user.role == Role.DOCTOR:
                user.role = Role.PATIENT
    logger.info("Doctor profile %s removed", profile_id)


# =========================
# Profiles & availability
# =========================
def list_public_doctors(specialization: str | None = None) -> list[dict]:
    with db_session() as s:
        q = select(DoctorProfile).where(DoctorProfile.is_approved.is_(True))
        if specialization and specialization != "all":
            q = q.where(DoctorProfile.specialization == specialization)
        return [doctor_dict(d) for d in s.scalars(q.order_by(DoctorProfile.doctor_name))]


def get_doctor(profile_id: str) -> dict:
    with db_session() as s:
        d = s.get(DoctorProfile, profile_id)
        if d is None:
            raise LookupError("Doctor not found.")
        return doctor_dict(d)


def profile_for_user(s, user_id: str) -> DoctorProfile:
    """Approved profile of a doctor account, inside the caller's session."""
    d = s.execute(select(DoctorProfile).where(DoctorProfile.user_id == user_id)).scalar_one_or_none()
    if d is None or not d.is_approved:
        raise PermissionError("No approved doctor profile for this account.")
    return d


def my_profile(user_id: str) -> dict:
    with db_session() as s:
        return doctor_dict(profile_for_user(s, user_id))


def update_my_profile(user_id: str, **fields: Any) -> dict:
    allowed = {
        "doctor_name",
        "phone",
        "specialization",
        "hospital_name",
        "years_experience",
        "consultation_fee",
        "bio",
        "photo_url",
    }
    unknown = {k for k, v in fields.items() if v is not None} - allowed
    if unknown:
        raise ValueError(f"Fields cannot be changed: {', '.join(sorted(unknown))}")

    with db_session() as s:
        d = profile_for_user(s, user_id)
        for k, v in fields.items():
            if v is None:
                continue
            if k in {"doctor_name", "specialization"}:
                v = v.strip()
                if not v:
                    raise ValueError(f"{k.replace('_', ' ').capitalize()} cannot be empty.")
            if k == "consultation_fee" and v < 0:
                raise ValueError("Consultation fee cannot be negative.")
            if k == "years_experience" and v < 0:
                raise ValueError("Years of experience cannot be negative.")
            setattr(d, k, v)
        s.flush()
        return doctor_dict(d)


def set_availability(
    user_id: str, is_available: bool | None = None, status: str | None = None, message: str | None = None
) -> dict:
    if status is not None and status not in AVAILABILITY_STATUSES:
        raise ValueError(f"Invalid availability status: {status}")
    with db_session() as s:
        d = profile_for_user(s, user_id)
        if is_available is not None:
            d.is_available = is_available
        if status is not None:
            d.availability_status = status
        if message is not None:
            d.availability_message = message.strip() or None
        d.last_availability_update = utcnow()
        s.flush()
        return doctor_dict(d)


# =========================
# Reviews
# =========================
def submit_doctor_review(patient_id: str, doctor_id: str, rating: int, comment: str | None = None) -> str:
    """Returns 'inserted' or 'updated'."""
    if not 1 <= rating <= 5:
        raise ValueError("Rating must be between 1 and 5.")

    with db_session() as s:
        doctor = s.get(DoctorProfile, doctor_id)
        if doctor is None:
            raise LookupError("Doctor not found.")
        patient = s.get(User, patient_id)
        if patient is None:
            raise LookupError("Patient not found.")

        completed = s.execute(
            select(func.count(Appointment.id)).where(
                Appointment.doctor_id == doctor_id,
                (Appointment.patient_id == patient_id) | (Appointment.patient_email == patient.email),
                Appointment.status == AppointmentStatus.COMPLETED,
            )
        ).scalar_one()
        if not completed:
            raise PermissionError("You can only rate doctors after a completed appointment.")

        review = s.execute(
            select(DoctorReview).where(DoctorReview.doctor_id == doctor_id, DoctorReview.patient_id == patient_id)
        ).scalar_one_or_none()
        outcome = "updated"
        if review is None:
            review = DoctorReview(doctor_id=doctor_id, patient_id=patient_id, rating=rating, comment=comment)
            s.add(review)
            outcome = "inserted"
        else:
            review.rating = rating
            review.comment = comment
            review.updated_at = utcnow()
        s.flush()

        avg = s.execute(select(func.avg(DoctorReview.rating)).where(DoctorReview.doctor_id == doctor_id)).scalar_one()
        doctor.rating = round(float(avg), 1) if avg is not None else None
        return outcome


def list_doctor_reviews(doctor_id: str) -> list[dict]:
    with db_session() as s:
        rows = s.execute(
            select(DoctorReview, User.full_name)
            .join(User, User.id == DoctorReview.patient_id)
            .where(DoctorReview.doctor_id == doctor_id)
            .order_by(DoctorReview.updated_at.desc())
        ).all()
        return [
            {
                "id": r.id,
                "patient_name": name,
                "rating": r.rating,
                "comment": r.comment,
                "updated_at": r.updated_at.isoformat(),
            }
            for r, name in rows
        ]
