from __future__ import annotations

import enum
from datetime import date, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .auth_models import User, new_uuid, utcnow
from .db import Base


class ApprovalStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AppointmentStatus(enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MeetingType(enum.Enum):
    ONLINE = "online"
    OFFLINE = "offline"


class OrderStatus(enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class AdmissionStatus(enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    DISCHARGED = "discharged"


class PaymentStatus(enum.Enum):
    PENDING = "pending"
    PAID = "paid"


class TicketStatus(enum.Enum):
    OPEN = "open"
    RESPONDED = "responded"
    CLOSED = "closed"


# =========================
# Doctors & appointments
# =========================
class DoctorProfile(Base):
    __tablename__ = "doctor_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True, unique=True)
    doctor_name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    specialization: Mapped[str] = mapped_column(String(120), nullable=False)
    hospital_name: Mapped[str | None] = mapped_column(String(160), nullable=True)
    medical_license: Mapped[str | None] = mapped_column(String(80), nullable=True)
    years_experience: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    consultation_fee: Mapped[float | None] = mapped_column(Float, nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)

    is_approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    availability_status: Mapped[str] = mapped_column(String(30), default="Available", nullable=False)
    availability_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_availability_update: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    appointments: Mapped[list["Appointment"]] = relationship(back_populates="doctor", cascade="all, delete-orphan")
    reviews: Mapped[list["DoctorReview"]] = relationship(back_populates="doctor", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"DoctorProfile({self.doctor_name}, {self.specialization})"


class DoctorVerificationRequest(Base):
    __tablename__ = "doctor_verification_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    full_name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(120), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    specialization: Mapped[str] = mapped_column(String(120), nullable=False)
    medical_license: Mapped[str] = mapped_column(String(80), nullable=False)
    hospital_affiliation: Mapped[str | None] = mapped_column(String(160), nullable=True)
    years_experience: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    status: Mapped[ApprovalStatus] = mapped_column(
        Enum(ApprovalStatus), default=ApprovalStatus.PENDING, nullable=False
    )
    submitted_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(String(120), nullable=True)


class DoctorReview(Base):
    __tablename__ = "doctor_reviews"
    __table_args__ = (UniqueConstraint("doctor_id", "patient_id", name="uq_review_doctor_patient"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    doctor_id: Mapped[str] = mapped_column(ForeignKey("doctor_profiles.id"), nullable=False)
    patient_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    doctor: Mapped["DoctorProfile"] = relationship(back_populates="reviews")


class Appointment(Base):
    __tablename__ = "appointments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    doctor_id: Mapped[str] = mapped_column(ForeignKey("doctor_profiles.id"), nullable=False)
    patient_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True)

    patient_name: Mapped[str] = mapped_column(String(120), nullable=False)
    patient_email: Mapped[str | None] = mapped_column(String(120), nullable=True)
    patient_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    patient_age: Mapped[int | None] = mapped_column(Integer, nullable=True)

    appointment_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(AppointmentStatus), default=AppointmentStatus.PENDING, nullable=False
    )

    meeting_type: Mapped[MeetingType] = mapped_column(Enum(MeetingType), default=MeetingType.OFFLINE, nullable=False)
    meeting_link: Mapped[str | None] = mapped_column(String(500), nullable=True)
    meeting_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    doctor: Mapped["DoctorProfile"] = relationship(back_populates="appointments")


class Prescription(Base):
    __tablename__ = "prescriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    doctor_id: Mapped[str] = mapped_column(ForeignKey("doctor_profiles.id"), nullable=False)
    appointment_id: Mapped[str | None] = mapped_column(ForeignKey("appointments.id"), nullable=True)
    patient_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    patient_name: Mapped[str] = mapped_column(String(120), nullable=False)
    patient_email: Mapped[str | None] = mapped_column(String(120), nullable=True)

    medications: Mapped[str] = mapped_column(Text, nullable=False)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    prescription_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    sent_via_email: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    prescription_date: Mapped[date] = mapped_column(Date, default=lambda: utcnow().date(), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


# =========================
# Pharmacy
# =========================
class Medicine(Base):
    __tablename__ = "medicines"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    category: Mapped[str] = mapped_column(String(80), nullable=False)
    stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"Medicine({self.name}, {self.price})"


class Cart(Base):
    __tablename__ = "carts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    items: Mapped[list["CartItem"]] = relationship(back_populates="cart", cascade="all, delete-orphan")


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (UniqueConstraint("cart_id", "medicine_id", name="uq_cart_medicine"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    cart_id: Mapped[int] = mapped_column(ForeignKey("carts.id"), nullable=False)
    medicine_id: Mapped[str] = mapped_column(ForeignKey("medicines.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    cart: Mapped["Cart"] = relationship(back_populates="items")
    medicine: Mapped["Medicine"] = relationship()


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    phone_number: Mapped[str] = mapped_column(String(30), nullable=False)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    total_price: Mapped[float] = mapped_column(Float, nullable=False)
    prescription_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    status: Mapped[OrderStatus] = mapped_column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False)
    tracking_number: Mapped[str | None] = mapped_column(String(40), nullable=True)
    estimated_delivery: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    items: Mapped[list["OrderItem"]] = relationship(back_populates="order", cascade="all, delete-orphan")
    history: Mapped[list["OrderStatusHistory"]] = relationship(back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), nullable=False)
    medicine_id: Mapped[str] = mapped_column(ForeignKey("medicines.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    # price snapshot at order time
    price: Mapped[float] = mapped_column(Float, nullable=False)

    order: Mapped["Order"] = relationship(back_populates="items")
    medicine: Mapped["Medicine"] = relationship()


class OrderStatusHistory(Base):
    __tablename__ = "order_status_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(30), nullable=False)
    status_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    order: Mapped["Order"] = relationship(back_populates="history")


class ProductReview(Base):
    __tablename__ = "product_reviews"
    __table_args__ = (
        UniqueConstraint("order_id", "medicine_id", "user_phone", name="uq_review_order_medicine_phone"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), nullable=False)
    medicine_id: Mapped[str] = mapped_column(ForeignKey("medicines.id"), nullable=False)
    user_phone: Mapped[str] = mapped_column(String(30), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    review_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


# =========================
# Blood support
# =========================
class BloodDonor(Base):
    __tablename__ = "blood_donors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    blood_group: Mapped[str] = mapped_column(String(4), nullable=False)
    mobile_number: Mapped[str] = mapped_column(String(30), nullable=False)
    aadhar_number: Mapped[str] = mapped_column(String(12), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[ApprovalStatus] = mapped_column(
        Enum(ApprovalStatus), default=ApprovalStatus.PENDING, nullable=False
    )
    is_approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    admin_response: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class BloodRequest(Base):
    __tablename__ = "blood_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    full_name: Mapped[str] = mapped_column(String(120), nullable=False)
    blood_group: Mapped[str] = mapped_column(String(4), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(30), nullable=False)
    aadhar_number: Mapped[str] = mapped_column(String(12), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    emergency_level: Mapped[str] = mapped_column(String(20), default="normal", nullable=False)
    delivery_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[ApprovalStatus] = mapped_column(
        Enum(ApprovalStatus), default=ApprovalStatus.PENDING, nullable=False
    )
    admin_response: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


# =========================
# Hospital
# =========================
class HospitalBed(Base):
    __tablename__ = "hospital_beds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    bed_type: Mapped[str] = mapped_column(String(60), nullable=False, unique=True)
    total_beds: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    available_beds: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class OperationTheater(Base):
    __tablename__ = "operation_theaters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(80), nullable=False, unique=True)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class BedBooking(Base):
    __tablename__ = "bed_bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    booking_id: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    patient_user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    patient_name: Mapped[str] = mapped_column(String(120), nullable=False)
    patient_age: Mapped[int] = mapped_column(Integer, nullable=False)
    patient_gender: Mapped[str] = mapped_column(String(20), nullable=False)
    disease: Mapped[str] = mapped_column(Text, nullable=False)
    preferred_bed_type: Mapped[str] = mapped_column(String(60), nullable=False)
    is_emergency: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    medical_report_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    admission_status: Mapped[AdmissionStatus] = mapped_column(
        Enum(AdmissionStatus), default=AdmissionStatus.PENDING, nullable=False
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


# =========================
# Recovery journey
# =========================
class RecoveryProgram(Base):
    __tablename__ = "recovery_programs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    surgery_type: Mapped[str] = mapped_column(String(80), nullable=False, unique=True)
    program_name: Mapped[str] = mapped_column(String(160), nullable=False)
    total_days: Mapped[int] = mapped_column(Integer, nullable=False)

    tasks: Mapped[list["RecoveryTask"]] = relationship(back_populates="program", cascade="all, delete-orphan")


class RecoveryTask(Base):
    __tablename__ = "recovery_tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    program_id: Mapped[int] = mapped_column(ForeignKey("recovery_programs.id"), nullable=False)
    day_number: Mapped[int] = mapped_column(Integer, nullable=False)
    task_title: Mapped[str] = mapped_column(String(160), nullable=False)
    task_description: Mapped[str] = mapped_column(Text, nullable=False)
    task_type: Mapped[str] = mapped_column(String(40), nullable=False)
    difficulty_level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    estimated_duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    program: Mapped["RecoveryProgram"] = relationship(back_populates="tasks")


class PatientRecoveryProgress(Base):
    __tablename__ = "patient_recovery_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, unique=True)
    program_id: Mapped[int] = mapped_column(ForeignKey("recovery_programs.id"), nullable=False)
    surgery_date: Mapped[date] = mapped_column(Date, nullable=False)
    current_day: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    total_completion_percentage: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    program: Mapped["RecoveryProgram"] = relationship()


class DailyTaskCompletion(Base):
    __tablename__ = "daily_task_completions"
    __table_args__ = (
        UniqueConstraint("progress_id", "task_id", "day_number", name="uq_completion_progress_task_day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    progress_id: Mapped[int] = mapped_column(ForeignKey("patient_recovery_progress.id"), nullable=False)
    task_id: Mapped[int] = mapped_column(ForeignKey("recovery_tasks.id"), nullable=False)
    day_number: Mapped[int] = mapped_column(Integer, nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completion_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class SymptomReport(Base):
    __tablename__ = "symptom_reports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    symptoms: Mapped[dict] = mapped_column(JSON, nullable=False)
    severity_level: Mapped[int] = mapped_column(Integer, nullable=False)
    requires_emergency: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    doctor_notified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


# =========================
# Pregnancy
# =========================
class PregnancyProfile(Base):
    __tablename__ = "pregnancy_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, unique=True)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    current_week: Mapped[int] = mapped_column(Integer, nullable=False)
    language_preference: Mapped[str] = mapped_column(String(20), default="english", nullable=False)
    partner_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    partner_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    partner_email: Mapped[str | None] = mapped_column(String(120), nullable=True)
    emergency_contact_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    emergency_contact_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class PregnancyTask(Base):
    __tablename__ = "pregnancy_tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    task_type: Mapped[str] = mapped_column(String(20), nullable=False)
    task_title: Mapped[str] = mapped_column(String(160), nullable=False)
    task_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    day_number: Mapped[int] = mapped_column(Integer, nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class PregnancyChatMessage(Base):
    __tablename__ = "pregnancy_chat_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    sender_type: Mapped[str] = mapped_column(String(20), nullable=False)  # user | assistant
    message_type: Mapped[str] = mapped_column(String(30), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class PregnancyReminder(Base):
    __tablename__ = "pregnancy_reminders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    reminder_title: Mapped[str] = mapped_column(String(160), nullable=False)
    reminder_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    reminder_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    is_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


# =========================
# Admin
# =========================
class AdminNotification(Base):
    __tablename__ = "admin_notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String(40), nullable=False)
    title: Mapped[str] = mapped_column(String(160), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class SupportTicket(Base):
    __tablename__ = "support_tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    title: Mapped[str] = mapped_column(String(160), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(String(10), default="medium", nullable=False)
    status: Mapped[TicketStatus] = mapped_column(Enum(TicketStatus), default=TicketStatus.OPEN, nullable=False)
    admin_response: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


# =========================
# Crop health records
# =========================
class CropHealthRecord(Base):
    __tablename__ = "crop_health_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    plot_name: Mapped[str] = mapped_column(String(120), nullable=False)
    crop_type: Mapped[str] = mapped_column(String(80), nullable=False)
    soil_report_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    treatments: Mapped[list["CropTreatment"]] = relationship(back_populates="record", cascade="all, delete-orphan")
    symptoms: Mapped[list["CropSymptom"]] = relationship(back_populates="record", cascade="all, delete-orphan")
    timelines: Mapped[list["CropTimeline"]] = relationship(back_populates="record", cascade="all, delete-orphan")


class CropTreatment(Base):
    __tablename__ = "crop_treatments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    record_id: Mapped[str] = mapped_column(ForeignKey("crop_health_records.id"), nullable=False)
    # Fertilizer / Pesticide / ...
    treatment_type: Mapped[str] = mapped_column(String(60), nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    dose: Mapped[str | None] = mapped_column(String(60), nullable=True)
    treatment_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    record: Mapped["CropHealthRecord"] = relationship(back_populates="treatments")


class CropSymptom(Base):
    __tablename__ = "crop_symptoms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    record_id: Mapped[str] = mapped_column(ForeignKey("crop_health_records.id"), nullable=False)
    symptom: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    observed_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    record: Mapped["CropHealthRecord"] = relationship(back_populates="symptoms")


class CropTimeline(Base):
    __tablename__ = "crop_timelines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    record_id: Mapped[str] = mapped_column(ForeignKey("crop_health_records.id"), nullable=False)
    stage: Mapped[str] = mapped_column(String(80), nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    stage_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    record: Mapped["CropHealthRecord"] = relationship(back_populates="timelines")


# =========================
# Health articles
# =========================
class HealthArticle(Base):
    __tablename__ = "health_articles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    excerpt: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(40), nullable=False)
    read_time: Mapped[str] = mapped_column(String(30), nullable=False)
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    publish_date: Mapped[str] = mapped_column(String(40), nullable=False)
    image: Mapped[str] = mapped_column(String(500), nullable=False)
    featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tags: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    created_by: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

__all__ = [
    "User",
    "ApprovalStatus",
    "AppointmentStatus",
    "MeetingType",
    "OrderStatus",
    "AdmissionStatus",
    "PaymentStatus",
    "TicketStatus",
    "DoctorProfile",
    "DoctorVerificationRequest",
    "DoctorReview",
    "Appointment",
    "Prescription",
    "Medicine",
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderStatusHistory",
    "ProductReview",
    "BloodDonor",
    "BloodRequest",
    "HospitalBed",
    "OperationTheater",
    "BedBooking",
    "RecoveryProgram",
    "RecoveryTask",
    "PatientRecoveryProgress",
    "DailyTaskCompletion",
    "SymptomReport",
    "PregnancyProfile",
    "PregnancyTask",
    "PregnancyChatMessage",
    "PregnancyReminder",
    "AdminNotification",
    "SupportTicket",
    "CropHealthRecord",
    "CropTreatment",
    "CropSymptom",
    "CropTimeline",
    "HealthArticle",
]
