from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from sqlalchemy import select

from .auth_models import Role, User
from .db import db_session
from .doctors import profile_for_user
from .mailer import Mailer
from .models import Appointment, DoctorProfile, Prescription

logger = logging.getLogger(__name__)

EMPTY_MEDICATIONS = "Digital prescription sent"


def render_medications(medications: Iterable[Mapping[str, Any]]) -> str:
    """'name - dosage - frequency - duration' per line, joined by '; '."""
    lines = []
    for med in medications:
        name = str(med.get("name") or "").strip()
        if not name:
            continue
        parts = [name] + [str(med.get(k) or "").strip() for k in ("dosage", "frequency", "duration")]
        lines.append(" - ".join(parts))
    return "; ".join(lines) or EMPTY_MEDICATIONS


def _prescription_dict(p: Prescription, doctor_name: str | None = None) -> dict[str, Any]:
    return {
        "id": p.id,
        "doctor_id": p.doctor_id,
        "doctor_name": doctor_name,
        "appointment_id": p.appointment_id,
        "patient_name": p.patient_name,
        "patient_email": p.patient_email,
        "medications": p.medications,
        "instructions": p.instructions,
        "prescription_notes": p.prescription_notes,
        "sent_via_email": p.sent_via_email,
        "prescription_date": p.prescription_date.isoformat(),
    }


def create_prescription(
    doctor_user_id: str,
    patient_name: str,
    medications: list[dict],
    patient_email: str | None = None,
    appointment_id: str | None = None,
    instructions: str | None = None,
    notes: str | None = None,
    send_email: bool = False,
    mailer: Mailer | None = None,
) -> dict:
    text = render_medications(medications)
    if text == EMPTY_MEDICATIONS and not (notes or "").strip():
        raise ValueError("Please add at least one medication or doctor's notes.")
    if not (patient_name or "").strip():
        raise ValueError("Patient name is required.")

    with db_session() as s:
        doctor = profile_for_user(s, doctor_user_id)
        patient_id = None
        when = None
        if appointment_id:
            a = s.get(Appointment, appointment_id)
            if a is None or a.doctor_id != doctor.id:
                raise LookupError("Appointment not found.")
            patient_id = a.patient_id
            patient_email = patient_email or a.patient_email
            when = a.appointment_date

        p = Prescription(
            doctor_id=doctor.id,
            appointment_id=appointment_id,
            patient_id=patient_id,
            patient_name=patient_name.strip(),
            patient_email=(patient_email or "").strip().lower() or None,
            medications=text,
            instructions=instructions,
            prescription_notes=notes,
        )
        s.add(p)
        s.flush()
        prescription_id, doctor_name, email = p.id, doctor.doctor_name, p.patient_email

    email_result = None
    if send_email and mailer is not None:
        email_result = mailer.send_prescription(email or "", patient_name, doctor_name, text, when)
        if email_result.success:
            with db_session() as s:
                s.get(Prescription, prescription_id).sent_via_email = True

    logger.info("Prescription %s created by %s", prescription_id, doctor_name)
    out = get_prescription(prescription_id)
    out["email_sent"] = bool(email_result and email_result.success)
    out["email_error"] = None if (email_result is None or email_result.success) else email_result.message
    return out


def can_view_prescription(p: Prescription, doctor_user_id: str | None, viewer: User | None) -> bool:
    """The patient, the prescribing doctor and admins."""
    if viewer is None or viewer.role == Role.ADMIN:
        return True
    if viewer.id in (p.patient_id, doctor_user_id):
        return True
    return bool(p.patient_email) and p.patient_email.lower() == viewer.email.lower()


def get_prescription(prescription_id: int, viewer: User | None = None) -> dict:
    with db_session() as s:
        row = s.execute(
            select(Prescription, DoctorProfile.doctor_name, DoctorProfile.user_id)
            .join(DoctorProfile, DoctorProfile.id == Prescription.doctor_id)
            .where(Prescription.id == prescription_id)
        ).one_or_none()
        if row is None or not can_view_prescription(row[0], row[2], viewer):
            raise LookupError("Prescription not found.")
        return _prescription_dict(row[0], row[1])


def doctor_prescriptions(doctor_user_id: str) -> list[dict]:
    with db_session() as s:
        doctor = profile_for_user(s, doctor_user_id)
        q = (
            select(Prescription)
            .where(Prescription.doctor_id == doctor.id)
            .order_by(Prescription.created_at.desc(), Prescription.id.desc())
        )
        return [_prescription_dict(p, doctor.doctor_name) for p in s.scalars(q)]


def patient_prescriptions(user_id: str) -> list[dict]:
    with db_session() as s:
        user = s.get(User, user_id)
        if user is None:
            raise LookupError("User not found.")
        rows = s.execute(
            select(Prescription, DoctorProfile.doctor_name)
            .join(DoctorProfile, DoctorProfile.id == Prescription.doctor_id)
            .where((Prescription.patient_email == user.email) | (Prescription.patient_id == user_id))
            .order_by(Prescription.created_at.desc(), Prescription.id.desc())
        ).all()
        return [_prescription_dict(p, name) for p, name in rows]
