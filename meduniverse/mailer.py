from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from html import escape

import requests

from .config import get_settings

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"

_WRAPPER = '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">{body}</div>'
_FOOTER = (
    "<p style=\"margin-top: 30px;\">Best regards,<br><strong>Medical Universe Team</strong></p>"
    "<hr style=\"margin: 30px 0; border: none; border-top: 1px solid #e5e7eb;\">"
    "<p style=\"font-size: 12px; color: #6b7280; text-align: center;\">"
    "This is an automated message. Please do not reply to this email.</p>"
)


@dataclass(frozen=True)
class MailResult:
    success: bool
    message: str


def format_appointment_date(when: datetime) -> str:
    # e.g. "Monday, January 13, 2025 at 10:30 AM"
    return when.strftime("%A, %B %d, %Y at %I:%M %p")


# =========================
# Templates
# =========================
def meet_link_email(patient_name: str, doctor_name: str, when: datetime, meet_link: str) -> tuple[str, str]:
    subject = f"Google Meet Link for Your Appointment with {doctor_name}"
    body = (
        '<h2 style="color: #2563eb;">Your Online Consultation is Ready!</h2>'
        f"<p>Dear {escape(patient_name)},</p>"
        f"<p>Your online consultation with <strong>{escape(doctor_name)}</strong> is scheduled.</p>"
        '<div style="background-color: #f3f4f6; padding: 15px; border-radius: 8px; margin: 20px 0;">'
        f"<p><strong>Date &amp; Time:</strong> {format_appointment_date(when)}</p>"
        f"<p><strong>Doctor:</strong> {escape(doctor_name)}</p>"
        "</div>"
        f'<p><a href="{escape(meet_link)}" style="background-color: #2563eb; color: white; padding: 12px 24px; '
        'text-decoration: none; border-radius: 6px;">Join Google Meet</a></p>'
        f"<p>Or copy this link: {escape(meet_link)}</p>"
        "<p>Please join a few minutes early and make sure your camera and microphone work.</p>"
    )
    return subject, _WRAPPER.format(body=body + _FOOTER)


def consultation_completed_email(patient_name: str, doctor_name: str, when: datetime) -> tuple[str, str]:
    subject = f"Consultation Completed - Thank you for meeting with {doctor_name}"
    body = (
        '<h2 style="color: #2563eb;">Consultation Completed Successfully!</h2>'
        f"<p>Dear {escape(patient_name)},</p>"
        f"<p>Your online consultation with <strong>{escape(doctor_name)}</strong> has been completed.</p>"
        '<div style="background-color: #f3f4f6; padding: 15px; border-radius: 8px; margin: 20px 0;">'
        f"<p><strong>Consultation Date:</strong> {format_appointment_date(when)}</p>"
        f"<p><strong>Doctor:</strong> {escape(doctor_name)}</p>"
        "<p><strong>Status:</strong> Completed</p>"
        "</div>"
        "<h3>What's Next?</h3><ul>"
        "<li>Check your patient dashboard for any prescriptions or follow-up instructions</li>"
        "<li>Follow the treatment plan discussed during the consultation</li>"
        "<li>Schedule a follow-up appointment if recommended</li>"
        "</ul>"
        "<p>Thank you for choosing Medical Universe for your healthcare needs.</p>"
    )
    return subject, _WRAPPER.format(body=body + _FOOTER)


def prescription_email(
    patient_name: str, doctor_name: str, prescription_text: str, when: datetime | None = None
) -> tuple[str, str]:
    subject = f"Your Prescription from {doctor_name}"
    lines = "".join(f"<li>{escape(line.strip())}</li>" for line in prescription_text.split(";") if line.strip())
    date_line = f"<p><strong>Appointment Date:</strong> {format_appointment_date(when)}</p>" if when else ""
    body = (
        '<h2 style="color: #2563eb;">Your Digital Prescription</h2>'
        f"<p>Dear {escape(patient_name)},</p>"
        f"<p><strong>{escape(doctor_name)}</strong> has sent you a prescription.</p>"
        f"{date_line}"
        f'<ul style="background-color: #f3f4f6; padding: 15px 30px; border-radius: 8px;">{lines}</ul>'
        "<p>Take medications exactly as prescribed and contact your doctor if symptoms worsen.</p>"
    )
    return subject, _WRAPPER.format(body=body + _FOOTER)


# =========================
# Delivery
# =========================
class Mailer:
    """Resend transactional email. Delivery failures are logged, never raised."""

    def __init__(self, api_key: str, sender: str, timeout: float = 30.0) -> None:
        self.api_key = api_key
        self.sender = sender
        self.timeout = timeout

    def send(self, to: str, subject: str, html: str) -> MailResult:
        if not to:
            return MailResult(False, "No recipient email address")
        if not self.api_key:
            logger.warning("RESEND_API_KEY not configured, email to %s not sent", to)
            return MailResult(False, "Email service is not configured")

        try:
            resp = requests.post(
                RESEND_URL,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={"from": self.sender, "to": [to], "subject": subject, "html": html},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Email delivery to %s failed: %s", to, e)
            return MailResult(False, f"Failed to send email: {e}")

        if not resp.ok:
            logger.error("Resend API error %s: %s", resp.status_code, resp.text[:500])
            return MailResult(False, f"Failed to send email: HTTP {resp.status_code}")

        logger.info("Email '%s' sent to %s", subject, to)
        return MailResult(True, "Email sent successfully")

    def send_meet_link(self, to: str, patient_name: str, doctor_name: str, when: datetime, meet_link: str) -> MailResult:
        subject, html = meet_link_email(patient_name, doctor_name, when, meet_link)
        return self.send(to, subject, html)

    def send_consultation_completed(self, to: str, patient_name: str, doctor_name: str, when: datetime) -> MailResult:
        subject, html = consultation_completed_email(patient_name, doctor_name, when)
        return self.send(to, subject, html)

    def send_prescription(
        self, to: str, patient_name: str, doctor_name: str, prescription_text: str, when: datetime | None = None
    ) -> MailResult:
        subject, html = prescription_email(patient_name, doctor_name, prescription_text, when)
        return self.send(to, subject, html)


def get_mailer() -> Mailer:
    s = get_settings()
    return Mailer(s.resend_api_key, s.mail_from, s.http_timeout_seconds)
