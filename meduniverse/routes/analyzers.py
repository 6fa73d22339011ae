from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, UploadFile

from .. import analyzers, crops
from ..ai_clients import GeminiClient, PlantIdClient, get_gemini, get_plant_id
from ..api_deps import get_current_user, require_doctor
from ..auth_models import User
from ..schemas import (
    CropAnalysisIn,
    CropRecordIn,
    CropSymptomIn,
    CropTimelineIn,
    CropTreatmentIn,
    LivestockAnalysisIn,
    PetAnalysisIn,
    PlantIdentifyIn,
)

router = APIRouter(prefix="/api/analyzers", tags=["analyzers"])


@router.post("/pet")
def api_pet(
    payload: PetAnalysisIn, user: User = Depends(get_current_user), gemini: GeminiClient = Depends(get_gemini)
) -> dict[str, str]:
    return {"analysis": analyzers.analyze_pet(payload.image, payload.symptoms, gemini)}


@router.post("/livestock")
def api_livestock(
    payload: LivestockAnalysisIn, user: User = Depends(get_current_user), gemini: GeminiClient = Depends(get_gemini)
) -> dict[str, str]:
    return analyzers.analyze_livestock(
        payload.image,
        payload.animal_type,
        payload.weight,
        payload.temperature,
        payload.humidity,
        payload.analysis_type,
        gemini,
    )


@router.post("/crop")
def api_crop(
    payload: CropAnalysisIn, user: User = Depends(get_current_user), gemini: GeminiClient = Depends(get_gemini)
) -> dict[str, str]:
    return analyzers.analyze_crop(payload.image, payload.crop_type, gemini)


@router.post("/plant")
def api_plant(
    payload: PlantIdentifyIn,
    user: User = Depends(get_current_user),
    plant_id: PlantIdClient = Depends(get_plant_id),
    gemini: GeminiClient = Depends(get_gemini),
) -> dict[str, Any]:
    return {"results": analyzers.identify_plant(payload.image, plant_id, gemini)}


@router.post("/lung-sound")
def api_lung_sound(file: UploadFile = File(...), user: User = Depends(require_doctor)) -> dict[str, Any]:
    # only the size matters; the spooled upload is not read into memory
    file.file.seek(0, 2)
    return analyzers.analyze_lung_sound(file.filename, file.file.tell())


# =========================
# Crop health records
# =========================
@router.get("/crop-records")
def api_crop_records(user: User = Depends(get_current_user)) -> list[dict]:
    return crops.list_records(user.id)


@router.post("/crop-records")
def api_create_crop_record(payload: CropRecordIn, user: User = Depends(get_current_user)) -> dict:
    return crops.create_record(user.id, payload.plot_name, payload.crop_type)


@router.get("/crop-records/{record_id}")
def api_crop_record(record_id: str, user: User = Depends(get_current_user)) -> dict:
    return crops.get_record(user.id, record_id)


@router.post("/crop-records/{record_id}/soil-report")
def api_soil_report(
    record_id: str, file: UploadFile = File(...), user: User = Depends(get_current_user)
) -> dict[str, Any]:
    url = crops.save_soil_report(user.id, record_id, file.filename or "", file.content_type or "", file.file)
    return {"ok": True, "soil_report_url": url}


@router.post("/crop-records/{record_id}/treatments")
def api_add_treatment(record_id: str, payload: CropTreatmentIn, user: User = Depends(get_current_user)) -> dict:
    return crops.add_treatment(
        user.id, record_id, payload.treatment_type, payload.name, payload.treatment_date, payload.dose, payload.notes
    )


@router.get("/crop-records/{record_id}/treatments")
def api_treatments(record_id: str, user: User = Depends(get_current_user)) -> list[dict]:
    return crops.list_treatments(user.id, record_id)


@router.delete("/crop-treatments/{treatment_id}")
def api_delete_treatment(treatment_id: int, user: User = Depends(get_current_user)) -> dict[str, Any]:
    crops.delete_treatment(user.id, treatment_id)
    return {"ok": True}


@router.post("/crop-records/{record_id}/symptoms")
def api_add_crop_symptom(record_id: str, payload: CropSymptomIn, user: User = Depends(get_current_user)) -> dict:
    return crops.add_symptom(
        user.id, record_id, payload.symptom, payload.observed_date, payload.notes, payload.image, payload.image_name
    )


@router.get("/crop-records/{record_id}/symptoms")
def api_crop_symptoms(record_id: str, user: User = Depends(get_current_user)) -> list[dict]:
    return crops.list_symptoms(user.id, record_id)


@router.post("/crop-records/{record_id}/timeline")
def api_add_timeline(record_id: str, payload: CropTimelineIn, user: User = Depends(get_current_user)) -> dict:
    return crops.add_timeline_entry(
        user.id, record_id, payload.stage, payload.stage_date, payload.notes, payload.image, payload.image_name
    )


@router.get("/crop-records/{record_id}/timeline")
def api_timeline(record_id: str, user: User = Depends(get_current_user)) -> list[dict]:
    return crops.list_timeline(user.id, record_id)
