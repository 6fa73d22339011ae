from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any
from urllib.parse import urlparse

from sqlalchemy import or_, select

from .auth_models import User, utcnow
from .db import db_session
from .doctors import profile_for_user
from .mailer import Mailer
from .models import Appointment, AppointmentStatus, DoctorProfile, MeetingType

logger = logging.getLogger(__name__)

MEET_BASE_URL = "https://meet.google.com"


def generate_meet_link(appointment_id: str) -> str:
    return f"{MEET_BASE_URL}/meet-{appointment_id[:8]}-{int(time.time() * 1000)}"


def build_notes(symptoms: str | None, meeting_type: MeetingType) -> str:
    suffix = "Online consultation via Google Meet" if meeting_type == MeetingType.ONLINE else "Offline consultation"
    return f"Symptoms: {symptoms or ''} | {suffix}"


def appointment_dict(a: Appointment, doctor_name: str | None = None) -> dict[str, Any]:
    return {
        "id": a.id,
        "doctor_id": a.doctor_id,
        "doctor_name": doctor_name,
        "patient_id": a.patient_id,
        "patient_name": a.patient_name,
        "patient_email": a.patient_email,
        "patient_phone": a.patient_phone,
        "patient_age": a.patient_age,
        "appointment_date": a.appointment_date.isoformat(),
        "reason": a.reason,
        "status": a.status.value,
        "meeting_type": a.meeting_type.value,
        "meeting_link": a.meeting_link,
        "meeting_address": a.meeting_address,
        "notes": a.notes,
        "created_at": a.created_at.isoformat(),
    }


# =========================
# Booking (patient)
# =========================
def book_appointment(
    doctor_id: str,
    appointment_date: datetime,
    patient_name: str,
    reason: str | None = None,
    symptoms: str | None = None,
    meeting_type: str = "offline",
    meeting_address: str | None = None,
    patient_id: str | None = None,
    patient_email: str | None = None,
    patient_phone: str | None = None,
    patient_age: int | None = None,
) -> dict:
    reason = (reason or "").strip() or (symptoms or "").strip()
    if not reason:
        raise ValueError("Please describe the reason for the visit.")
    if appointment_date is None:
        raise ValueError("Please select an appointment date.")
    if not (patient_name or "").strip():
        raise ValueError("Patient name is required.")
    try:
        mtype = MeetingType(meeting_type)
    except ValueError:
        raise ValueError("Meeting type must be online or offline.") from None
    if mtype == MeetingType.OFFLINE and not (meeting_address or "").strip():
        raise ValueError("Please provide an address for offline consultation.")
    if patient_age is not None and not 0 < patient_age < 150:
        raise ValueError("Invalid patient age.")

    with db_session() as s:
        doctor = s.get(DoctorProfile, doctor_id)
        if doctor is None or not doctor.is_approved:
            raise LookupError("Doctor not found.")

        a = Appointment(
            doctor_id=doctor_id,
            patient_id=patient_id,
            patient_name=patient_name.strip(),
            patient_email=(patient_email or "").strip().lower() or None,
            patient_phone=patient_phone,
            patient_age=patient_age,
            appointment_date=appointment_date,
            reason=reason,
            status=AppointmentStatus.PENDING,
            meeting_type=mtype,
            meeting_address=meeting_address.strip() if mtype == MeetingType.OFFLINE else None,
            notes=build_notes(symptoms or reason, mtype),
        )
        s.add(a)
        s.flush()
        if mtype == MeetingType.ONLINE:
            a.meeting_link = generate_meet_link(a.id)

        logger.info("Appointment %s booked with %s (%s)", a.id, doctor.doctor_name, mtype.value)
        return appointment_dict(a, doctor.doctor_name)


def patient_appointments(user_id: str) -> list[dict]:
    with db_session() as s:
        user = s.get(User, user_id)
        if user is None:
            raise LookupError("User not found.")
        rows = s.execute(
            select(Appointment, DoctorProfile.doctor_name)
            .join(DoctorProfile, DoctorProfile.id == Appointment.doctor_id)
            .where(or_(Appointment.patient_id == user_id, Appointment.patient_email == user.email))
            .order_by(Appointment.appointment_date.desc())
        ).all()
        return [appointment_dict(a, name) for a, name in rows]


# =========================
# Doctor side
# =========================
def _owned_appointment(s, doctor_user_id: str, appointment_id: str) -> tuple[Appointment, DoctorProfile]:
    doctor = profile_for_user(s, doctor_user_id)
    a = s.get(Appointment, appointment_id)
    if a is None:
        raise LookupError("Appointment not found.")
    if a.doctor_id != doctor.id:
        raise PermissionError("This appointment belongs to another doctor.")
    return a, doctor


def doctor_appointments(doctor_user_id: str, status: str | None = None) -> list[dict]:
    with db_session() as s:
        doctor = profile_for_user(s, doctor_user_id)
        q = select(Appointment).where(Appointment.doctor_id == doctor.id)
        if status:
            q = q.where(Appointment.status == AppointmentStatus(status))
        return [appointment_dict(a, doctor.doctor_name) for a in s.scalars(q.order_by(Appointment.appointment_date))]


def doctor_past_patients(doctor_user_id: str) -> list[dict]:
    """Patients with a completed appointment, one entry per email (latest visit)."""
    with db_session() as s:
        doctor = profile_for_user(s, doctor_user_id)
        rows = s.scalars(
            select(Appointment)
            .where(Appointment.doctor_id == doctor.id, Appointment.status == AppointmentStatus.COMPLETED)
            .order_by(Appointment.appointment_date.desc())
        )
        seen: dict[str, dict] = {}
        for a in rows:
            key = a.patient_email or a.patient_name
            if key in seen:
                seen[key]["visits"] += 1
                continue
            seen[key] = {
                "patient_name": a.patient_name,
                "patient_email": a.patient_email,
                "patient_phone": a.patient_phone,
                "last_visit": a.appointment_date.isoformat(),
                "last_reason": a.reason,
                "visits": 1,
            }
        return list(seen.values())


def update_appointment_status(doctor_user_id: str, appointment_id: str, status: str) -> dict:
    try:
        new_status = AppointmentStatus(status)
    except ValueError:
        raise ValueError(f"Invalid appointment status: {status}") from None
    with db_session() as s:
        a, doctor = _owned_appointment(s, doctor_user_id, appointment_id)
        a.status = new_status
        a.updated_at = utcnow()
        s.flush()
        logger.info("Appointment %s -> %s", appointment_id, new_status.value)
        return appointment_dict(a, doctor.doctor_name)


def send_meet_link(doctor_user_id: str, appointment_id: str, mailer: Mailer) -> dict:
    with db_session() as s:
        a, doctor = _owned_appointment(s, doctor_user_id, appointment_id)
        if a.meeting_type != MeetingType.ONLINE:
            raise ValueError("Meet links are only for online consultations.")
        a.meeting_link = generate_meet_link(a.id)
        a.updated_at = utcnow()
        link, email = a.meeting_link, a.patient_email
        patient_name, doctor_name, when = a.patient_name, doctor.doctor_name, a.appointment_date

    result = mailer.send_meet_link(email or "", patient_name, doctor_name, when, link)
    return {
        "success": True,
        "meeting_link": link,
        "email_sent": result.success,
        "email_error": None if result.success else result.message,
    }


def set_manual_meet_link(doctor_user_id: str, appointment_id: str, link: str) -> dict:
    link = (link or "").strip()
    parsed = urlparse(link)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Please enter a valid meeting URL.")
    with db_session() as s:
        a, doctor = _owned_appointment(s, doctor_user_id, appointment_id)
        a.meeting_link = link
        a.updated_at = utcnow()
        s.flush()
        return appointment_dict(a, doctor.doctor_name)


def end_meeting(doctor_user_id: str, appointment_id: str, mailer: Mailer) -> dict:
    with db_session() as s:
        a, doctor = _owned_appointment(s, doctor_user_id, appointment_id)
        a.status = AppointmentStatus.COMPLETED
        a.updated_at = utcnow()
        email, patient_name, doctor_name, when = a.patient_email, a.patient_name, doctor.doctor_name, a.appointment_date

    result = mailer.send_consultation_completed(email or "", patient_name, doctor_name, when)
    return {
        "success": True,
        "status": AppointmentStatus.COMPLETED.value,
        "email_sent": result.success,
        "email_error": None if result.success else result.message,
        "message": (
            "Meeting ended notification sent successfully"
            if result.success
            else f"Meeting ended but email notification failed: {result.message}"
        ),
    }
