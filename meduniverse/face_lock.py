"""
Admin face lock.

Descriptors are the 128-float face embeddings computed by the browser
(face-api.js); the server only stores them and compares distances.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import select

from .auth_models import AdminFaceDescriptor, AdminSecuritySetting, Role, User
from .db import db_session

logger = logging.getLogger(__name__)

MATCH_THRESHOLD = 0.6


@dataclass(frozen=True)
class FaceCheck:
    matched: bool
    distance: float


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) != len(b):
        raise ValueError("Face descriptors must have the same length.")
    return math.sqrt(sum((float(x) - float(y)) ** 2 for x, y in zip(a, b)))


def best_distance(current: Sequence[float], stored: Sequence[Sequence[float]]) -> float:
    """Smallest distance to any stored descriptor; 1.0 when nothing is closer."""
    best = 1.0
    for descriptor in stored:
        d = euclidean_distance(current, descriptor)
        if d < best:
            best = d
    return best


def _require_admin(s, user_id: str) -> User:
    u = s.get(User, user_id)
    if u is None:
        raise LookupError("User not found.")
    if u.role != Role.ADMIN:
        raise PermissionError("Face lock is available to admins only.")
    return u


def is_enabled(user_id: str) -> bool:
    with db_session() as s:
        row = s.execute(
            select(AdminSecuritySetting).where(AdminSecuritySetting.user_id == user_id)
        ).scalar_one_or_none()
        return bool(row and row.face_detection_enabled)


def set_enabled(user_id: str, enabled: bool) -> None:
    """Disabling keeps the enrolled descriptors; only the check is skipped."""
    with db_session() as s:
        _require_admin(s, user_id)
        if enabled and not s.scalar(
            select(AdminFaceDescriptor.id).where(
                AdminFaceDescriptor.user_id == user_id, AdminFaceDescriptor.is_active.is_(True)
            ).limit(1)
        ):
            raise ValueError("Enroll a face before enabling face lock.")
        row = s.execute(
            select(AdminSecuritySetting).where(AdminSecuritySetting.user_id == user_id)
        ).scalar_one_or_none()
        if row is None:
            row = AdminSecuritySetting(user_id=user_id)
            s.add(row)
        row.face_detection_enabled = enabled
    logger.info("Face lock %s for admin %s", "enabled" if enabled else "disabled", user_id)


def enroll(user_id: str, descriptors: list[list[float]]) -> int:
    """Store a new descriptor set (replacing the active one) and enable face lock."""
    if not descriptors:
        raise ValueError("At least one face descriptor is required.")
    size = len(descriptors[0])
    if size == 0 or any(len(d) != size for d in descriptors):
        raise ValueError("Face descriptors must be non-empty and of equal length.")

    with db_session() as s:
        _require_admin(s, user_id)
        for old in s.scalars(
            select(AdminFaceDescriptor).where(
                AdminFaceDescriptor.user_id == user_id, AdminFaceDescriptor.is_active.is_(True)
            )
        ):
            old.is_active = False

        row = AdminFaceDescriptor(
            user_id=user_id,
            descriptors=[[float(x) for x in d] for d in descriptors],
            is_active=True,
        )
        s.add(row)

        setting = s.execute(
            select(AdminSecuritySetting).where(AdminSecuritySetting.user_id == user_id)
        ).scalar_one_or_none()
        if setting is None:
            setting = AdminSecuritySetting(user_id=user_id)
            s.add(setting)
        setting.face_detection_enabled = True
        s.flush()
        return row.id


def stored_descriptors(user_id: str) -> list[list[float]]:
    with db_session() as s:
        rows = s.scalars(
            select(AdminFaceDescriptor).where(
                AdminFaceDescriptor.user_id == user_id, AdminFaceDescriptor.is_active.is_(True)
            )
        )
        out: list[list[float]] = []
        for r in rows:
            out.extend(r.descriptors or [])
        return out


def verify(user_id: str, descriptor: Sequence[float]) -> FaceCheck:
    stored = stored_descriptors(user_id)
    if not stored:
        raise LookupError("No face data enrolled for this admin.")
    distance = best_distance(descriptor, stored)
    logger.debug("Face verification distance for %s: %.4f", user_id, distance)
    return FaceCheck(matched=distance < MATCH_THRESHOLD, distance=distance)
