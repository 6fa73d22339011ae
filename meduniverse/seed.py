from __future__ import annotations

import logging

from sqlalchemy import select

from .auth_service import ensure_admin
from .config import get_settings
from .db import db_session
from .models import HospitalBed, Medicine, OperationTheater, RecoveryProgram, RecoveryTask

logger = logging.getLogger(__name__)

# surgery_type, program name, days, daily tasks (title, description, type, minutes)
RECOVERY_PROGRAMS = [
    (
        "heart",
        "Cardiac Recovery Program",
        30,
        [
            ("Deep breathing exercises", "Breathe in slowly for 4 seconds, hold, breathe out for 6 seconds.", "breathing", 10),
            ("Short walk", "Walk at an easy pace indoors or in the corridor.", "exercise", 10),
            ("Check your incision", "Look for redness, swelling or discharge and note any change.", "wound_care", 5),
        ],
    ),
    (
        "knee",
        "Knee Mobility Program",
        42,
        [
            ("Ankle pumps", "Move your foot up and down 20 times to keep blood flowing.", "exercise", 5),
            ("Quad sets", "Tighten the thigh muscle and hold for 5 seconds, 10 times.", "physiotherapy", 10),
            ("Ice and elevate", "Ice the knee for 15 minutes with the leg raised.", "rest", 15),
        ],
    ),
    (
        "cesarean",
        "Post-Cesarean Recovery Program",
        28,
        [
            ("Gentle walking", "Walk slowly for a few minutes, supporting your abdomen.", "exercise", 10),
            ("Pelvic floor breathing", "Breathe deeply and relax the pelvic floor on each exhale.", "breathing", 5),
            ("Hydration and rest", "Drink water regularly and rest while the baby sleeps.", "rest", 30),
        ],
    ),
    (
        "others",
        "General Surgery Recovery Program",
        21,
        [
            ("Breathing exercises", "Take ten slow deep breaths every hour while awake.", "breathing", 5),
            ("Light activity", "Walk around your home for a few minutes.", "exercise", 10),
            ("Medication check", "Take your prescribed medication on time and log any side effects.", "medication", 5),
        ],
    ),
]

BED_TYPES = [("General Ward", 40, 40), ("Semi-Private", 20, 20), ("Private", 10, 10), ("ICU", 8, 8)]

OPERATION_THEATERS = ["OT-1", "OT-2", "OT-3"]

MEDICINES = [
    ("Paracetamol 500mg", "Pain reliever and fever reducer", 25.0, "Pain Relief", 200),
    ("Ibuprofen 400mg", "Anti-inflammatory pain reliever", 40.0, "Pain Relief", 150),
    ("Cetirizine 10mg", "Antihistamine for allergies", 30.0, "Allergy", 120),
    ("Amoxicillin 500mg", "Antibiotic, prescription required", 90.0, "Antibiotics", 80),
    ("Omeprazole 20mg", "Reduces stomach acid", 55.0, "Digestive Health", 100),
    ("Vitamin D3 1000 IU", "Daily vitamin D supplement", 120.0, "Vitamins", 60),
    ("ORS Sachet", "Oral rehydration salts", 15.0, "Digestive Health", 300),
    ("Cough Syrup 100ml", "Relief from dry cough", 85.0, "Cold & Flu", 8),
]


def _difficulty(day: int) -> int:
    return min(5, 1 + (day - 1) // 7)


def seed_programs(s) -> None:
    for surgery_type, name, days, daily in RECOVERY_PROGRAMS:
        if s.execute(select(RecoveryProgram).where(RecoveryProgram.surgery_type == surgery_type)).scalar_one_or_none():
            continue
        program = RecoveryProgram(surgery_type=surgery_type, program_name=name, total_days=days)
        for day in range(1, days + 1):
            for title, description, task_type, minutes in daily:
                program.tasks.append(
                    RecoveryTask(
                        day_number=day,
                        task_title=title,
                        task_description=description,
                        task_type=task_type,
                        difficulty_level=_difficulty(day),
                        estimated_duration_minutes=minutes,
                    )
                )
        s.add(program)


def seed_base() -> None:
    """
    Minimal data (idempotent):
    - admin account
    - recovery programs with daily tasks
    - bed types and operation theaters
    - starter medicine catalogue
    """
    settings = get_settings()
    ensure_admin(settings.admin_username, settings.admin_password)

    with db_session() as s:
        seed_programs(s)

        for bed_type, total, available in BED_TYPES:
            if s.execute(select(HospitalBed).where(HospitalBed.bed_type == bed_type)).scalar_one_or_none() is None:
                s.add(HospitalBed(bed_type=bed_type, total_beds=total, available_beds=available))

        for name in OPERATION_THEATERS:
            if s.execute(select(OperationTheater).where(OperationTheater.name == name)).scalar_one_or_none() is None:
                s.add(OperationTheater(name=name, is_available=True))

        for name, description, price, category, stock in MEDICINES:
            if s.execute(select(Medicine).where(Medicine.name == name)).scalar_one_or_none() is None:
                s.add(Medicine(name=name, description=description, price=price, category=category, stock=stock))

    logger.info("Seed completed")
