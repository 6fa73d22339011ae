from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


# =========================
# Auth
# =========================
class RegisterIn(BaseModel):
    email: str
    password: str
    full_name: str
    phone: str | None = None


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class MeOut(BaseModel):
    id: str
    email: str
    full_name: str
    role: str
    phone: str | None = None
    is_active: bool


class AdminLoginIn(BaseModel):
    username: str
    password: str
    face_descriptor: list[float] | None = None


class FaceEnrollIn(BaseModel):
    descriptors: list[list[float]] = Field(..., min_length=1)


class FaceLockToggleIn(BaseModel):
    enabled: bool


# =========================
# Pharmacy
# =========================
class MedicineIn(BaseModel):
    name: str
    price: float
    category: str
    stock: int = 0
    description: str | None = None
    image_url: str | None = None


class MedicineUpdateIn(BaseModel):
    name: str | None = None
    price: float | None = None
    category: str | None = None
    stock: int | None = None
    description: str | None = None
    image_url: str | None = None


class CartAddIn(BaseModel):
    medicine_id: str
    quantity: int = 1


class CartQuantityIn(BaseModel):
    quantity: int


class CheckoutIn(BaseModel):
    address: str
    phone: str
    prescription_url: str | None = None


class OrderStatusIn(BaseModel):
    status: str


class ProductReviewIn(BaseModel):
    order_id: str
    medicine_id: str
    phone: str
    rating: int
    review_text: str | None = None


# =========================
# Doctors & appointments
# =========================
class VerificationRequestIn(BaseModel):
    full_name: str
    email: str
    specialization: str
    medical_license: str
    phone: str | None = None
    hospital_affiliation: str | None = None
    years_experience: int = 0
    notes: str | None = None
    photo_url: str | None = None


class DoctorProfileUpdateIn(BaseModel):
    doctor_name: str | None = None
    phone: str | None = None
    specialization: str | None = None
    hospital_name: str | None = None
    years_experience: int | None = None
    consultation_fee: float | None = None
    bio: str | None = None
    photo_url: str | None = None


class AvailabilityIn(BaseModel):
    is_available: bool | None = None
    status: str | None = None
    message: str | None = None


class DoctorReviewIn(BaseModel):
    rating: int
    comment: str | None = None


class AppointmentIn(BaseModel):
    doctor_id: str
    appointment_date: datetime
    patient_name: str
    reason: str | None = None
    symptoms: str | None = None
    meeting_type: str = "offline"
    meeting_address: str | None = None
    patient_email: str | None = None
    patient_phone: str | None = None
    patient_age: int | None = None


class AppointmentStatusIn(BaseModel):
    status: str


class MeetLinkIn(BaseModel):
    meeting_link: str


class MedicationIn(BaseModel):
    name: str = ""
    dosage: str = ""
    frequency: str = ""
    duration: str = ""


class PrescriptionIn(BaseModel):
    patient_name: str
    medications: list[MedicationIn] = []
    patient_email: str | None = None
    appointment_id: str | None = None
    instructions: str | None = None
    notes: str | None = None
    send_email: bool = False


# =========================
# Blood & hospital
# =========================
class DonorIn(BaseModel):
    name: str
    age: int
    blood_group: str
    mobile_number: str
    aadhar_number: str
    address: str


class BloodRequestIn(BaseModel):
    full_name: str
    blood_group: str
    phone_number: str
    aadhar_number: str
    address: str
    emergency_level: str = "normal"
    delivery_instructions: str | None = None


class ModerationIn(BaseModel):
    action: str
    response: str | None = None


class BedBookingIn(BaseModel):
    patient_name: str
    patient_age: int
    patient_gender: str
    disease: str
    bed_type: str
    is_emergency: bool = False
    medical_report_url: str | None = None


class BedCountIn(BaseModel):
    field: str
    value: int


class TheaterStatusIn(BaseModel):
    is_available: bool


class AdmissionStatusIn(BaseModel):
    status: str


# =========================
# Wellness
# =========================
class RecoveryStartIn(BaseModel):
    surgery_type: str
    surgery_date: date


class TaskCompletionIn(BaseModel):
    task_id: int
    is_completed: bool = True
    notes: str | None = None


class SymptomReportIn(BaseModel):
    symptoms: dict[str, bool] = {}
    severity: int


class AssistantIn(BaseModel):
    message: str = ""
    message_type: str = "general"


class PregnancyProfileIn(BaseModel):
    due_date: date
    current_week: int
    language_preference: str = "english"
    partner_name: str | None = None
    partner_phone: str | None = None
    partner_email: str | None = None
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None


class PregnancyProfileUpdateIn(BaseModel):
    due_date: date | None = None
    current_week: int | None = None
    language_preference: str | None = None
    partner_name: str | None = None
    partner_phone: str | None = None
    partner_email: str | None = None
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None


class PregnancyTaskIn(BaseModel):
    is_completed: bool = True


class ReminderIn(BaseModel):
    title: str
    reminder_date: datetime
    description: str | None = None


class YogaTasksIn(BaseModel):
    level: str = "beginner"
    focus: str = "flexibility"


class YogaAssistantIn(BaseModel):
    query: str
    type: str = "general"
    level: str = "beginner"


class ArticleIn(BaseModel):
    topic: str
    category: str


# =========================
# Analyzers
# =========================
class PetAnalysisIn(BaseModel):
    image: str | None = None
    symptoms: str | None = None


class LivestockAnalysisIn(BaseModel):
    animal_type: str
    weight: float | None = None
    temperature: float | None = None
    humidity: float | None = None
    analysis_type: str = "disease"
    image: str | None = None


class CropAnalysisIn(BaseModel):
    image: str | None = None
    crop_type: str = ""


class PlantIdentifyIn(BaseModel):
    image: str | None = None


class CropRecordIn(BaseModel):
    plot_name: str
    crop_type: str


class CropTreatmentIn(BaseModel):
    treatment_type: str
    name: str
    treatment_date: date
    dose: str | None = None
    notes: str | None = None


class CropSymptomIn(BaseModel):
    symptom: str
    observed_date: date
    notes: str | None = None
    image: str | None = None
    image_name: str | None = None


class CropTimelineIn(BaseModel):
    stage: str
    stage_date: date
    notes: str | None = None
    image: str | None = None
    image_name: str | None = None


# =========================
# Admin
# =========================
class UserActiveIn(BaseModel):
    is_active: bool


class TicketIn(BaseModel):
    title: str
    description: str
    priority: str = "medium"


class TicketResponseIn(BaseModel):
    response: str
