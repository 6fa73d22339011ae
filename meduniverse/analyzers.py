from __future__ import annotations

import logging
import random
import re
from dataclasses import asdict, dataclass
from typing import Any

from .ai_clients import ExternalServiceError, GeminiClient, PlantIdClient, extract_json
from .spectrogram import render_spectrogram

logger = logging.getLogger(__name__)

CROP_SECTION_RE = re.compile(r"\n(?=\d+\.|#{1,3})")
UNKNOWN = "Unknown"


def strip_data_url(image: str) -> str:
    """'data:image/jpeg;base64,XXXX' -> 'XXXX'; plain base64 passes through."""
    if image and image.startswith("data:") and "," in image:
        return image.split(",", 1)[1]
    return image


# =========================
# Pet
# =========================
def analyze_pet(image: str | None, symptoms: str | None, gemini: GeminiClient) -> str:
    if not image and not (symptoms or "").strip():
        raise ValueError("Please upload a photo or describe the symptoms.")

    if image:
        prompt = (
            "You are a veterinary AI assistant. Analyze this pet photo and provide:\n"
            "1. Visible health concerns or abnormalities\n"
            "2. Possible diagnoses based on visual symptoms\n"
            "3. Recommended actions (vet visit urgency, home care tips)\n"
            "4. Diet and nutrition suggestions\n"
            "5. Preventive care advice\n\n"
            f"Additional context: {symptoms or 'No additional symptoms provided'}\n\n"
            "Provide a detailed, caring, and professional response."
        )
        return gemini.generate(prompt, image_b64=strip_data_url(image))

    prompt = (
        f'You are a veterinary AI assistant. Based on these symptoms: "{symptoms}"\n\n'
        "Provide:\n1. Possible diagnoses\n2. Severity assessment (mild/moderate/severe)\n"
        "3. Treatment suggestions\n4. Diet recommendations\n5. When to see a vet\n6. Home care tips\n\n"
        "Give a detailed, caring, and professional response."
    )
    return gemini.generate(prompt)


# =========================
# Livestock
# =========================
def analyze_livestock(
    image: str | None,
    animal_type: str,
    weight: float | None,
    temperature: float | None,
    humidity: float | None,
    analysis_type: str,
    gemini: GeminiClient,
) -> dict[str, str]:
    if not (animal_type or "").strip():
        raise ValueError("Animal type is required.")
    if not image and analysis_type != "feed":
        raise ValueError("Please upload a photo for disease detection.")

    conditions = f"- Temperature: {temperature}°C\n- Humidity: {humidity}%\n- Weight: {weight}kg"
    diagnosis = ""
    feed = ""

    if image and analysis_type != "feed":
        prompt = (
            f"You are a livestock veterinary AI expert. Analyze this {animal_type} photo.\n"
            f"Environmental conditions:\n{conditions}\n\n"
            "Provide:\n1. Health status assessment\n2. Visible signs of disease or distress\n"
            "3. Possible diagnoses\n4. Treatment recommendations\n5. Preventive measures\n"
            "6. When to call a veterinarian\n\nGive a detailed professional response."
        )
        diagnosis = gemini.generate(prompt, image_b64=strip_data_url(image))

    if analysis_type == "feed" or image:
        prompt = (
            "You are a livestock nutrition expert. Generate a detailed feed schedule for:\n"
            f"Animal: {animal_type}\nWeight: {weight}kg\nTemperature: {temperature}°C\nHumidity: {humidity}%\n\n"
            "Provide:\n1. Daily feed amount (kg)\n2. Feeding times and frequency\n"
            "3. Feed composition (types of fodder, grains, supplements)\n4. Water requirements\n"
            "5. Seasonal adjustments\n6. Nutritional supplements needed\n7. Cost estimation\n\n"
            "Give specific, actionable recommendations."
        )
        feed = gemini.generate(prompt)

    return {"diagnosis": diagnosis, "feed_recommendation": feed}


# =========================
# Crop
# =========================
def split_crop_analysis(text: str) -> dict[str, str]:
    sections = CROP_SECTION_RE.split(text)
    diagnosis = "\n\n".join(sections[:3])
    recommendations = "\n\n".join(sections[3:])
    return {
        "diagnosis": diagnosis or text,
        "recommendations": recommendations or "See diagnosis for complete recommendations",
    }


def analyze_crop(image: str | None, crop_type: str, gemini: GeminiClient) -> dict[str, str]:
    if not image:
        raise ValueError("No image provided")
    prompt = (
        "You are an agricultural AI expert specializing in crop disease detection. "
        f"Analyze this {crop_type or 'crop'} plant/leaf photo.\n\n"
        "Provide a comprehensive analysis including:\n"
        "1. **Disease Identification** (name, severity, confidence)\n"
        "2. **Symptoms Observed**\n"
        "3. **Treatment Plan** (pesticides/fungicides with dilution ratios, organic alternatives)\n"
        "4. **Fertilizer Recommendations** (NPK, micronutrients, schedule)\n"
        "5. **Preventive Measures**\n"
        "6. **Expected Recovery Time**\n"
        "7. **Economic Impact**\n\n"
        "Provide detailed, practical, and farmer-friendly recommendations."
    )
    text = gemini.generate(prompt, image_b64=strip_data_url(image))
    return split_crop_analysis(text)


# =========================
# Plant identification
# =========================
def _unknown_care() -> dict[str, Any]:
    return {
        "medicinal_uses": [],
        "watering": UNKNOWN,
        "sun_requirements": UNKNOWN,
        "growth_rate": UNKNOWN,
        "flowering_season": UNKNOWN,
    }


def plant_care_info(plant_name: str, gemini: GeminiClient) -> dict[str, Any]:
    """Ayurvedic uses and care for a plant; every failure degrades to 'Unknown' values."""
    prompt = (
        "You are an expert in both Ayurvedic medicine and botany.\n"
        f'The plant name is: "{plant_name}"\n'
        "Step 1: Give the medicinal uses of this plant from an Ayurvedic perspective.\n"
        "Step 2: Then give plant care instructions: watering, sun requirements, growth rate, and flowering "
        'season. If any info is unknown, mention "Unknown".\n'
        "Please format your response as JSON with the following structure:\n"
        '{"medicinalUses": ["..."], "plantCare": {"watering": "...", "sunRequirements": "...", '
        '"growthRate": "...", "floweringSeason": "..."}}'
    )
    try:
        text = gemini.generate(prompt)
    except ExternalServiceError as e:
        logger.error("Plant care lookup failed for %s: %s", plant_name, e)
        return _unknown_care()

    data = extract_json(text)
    if not isinstance(data, dict):
        logger.warning("Plant care reply for %s is not JSON", plant_name)
        return _unknown_care()

    care = data.get("plantCare") or {}
    uses = data.get("medicinalUses") or []
    return {
        "medicinal_uses": [str(u) for u in uses] if isinstance(uses, list) else [],
        "watering": care.get("watering") or UNKNOWN,
        "sun_requirements": care.get("sunRequirements") or UNKNOWN,
        "growth_rate": care.get("growthRate") or UNKNOWN,
        "flowering_season": care.get("floweringSeason") or UNKNOWN,
    }


def identify_plant(image: str | None, plant_id: PlantIdClient, gemini: GeminiClient) -> list[dict[str, Any]]:
    if not image:
        raise ValueError("No image provided")

    data = plant_id.identify(strip_data_url(image))
    result = data.get("result") or {}
    suggestions = (result.get("classification") or {}).get("suggestions")
    if not suggestions:
        logger.error("Plant.id response without suggestions")
        raise ExternalServiceError("Invalid response from plant identification service")

    care = plant_care_info(suggestions[0].get("name", ""), gemini)
    diseases = [d.get("name") for d in ((result.get("disease") or {}).get("suggestions") or [])]
    is_healthy = (result.get("is_healthy") or {}).get("binary")

    return [
        {
            "plant_name": s.get("name"),
            "scientific_name": s.get("name"),
            "probability": s.get("probability"),
            "plant_details": care,
            "health_assessment": {
                "diseases": diseases,
                "is_healthy": True if is_healthy is None else bool(is_healthy),
            },
            "similar_images": s.get("similar_images") or [],
        }
        for s in suggestions
    ]


# =========================
# Lung sound
# =========================
@dataclass(frozen=True)
class LungFinding:
    diagnosis: str
    confidence: float
    sound_type: str
    recommendations: str


LUNG_FINDINGS = (
    LungFinding(
        "Detected crackles in upper left lung zone. Possible Pneumonia or Bronchitis.",
        0.85,
        "crackles",
        "Recommend chest X-ray and sputum culture. Consider antibiotic therapy.",
    ),
    LungFinding(
        "Wheezing sounds detected. Possible Asthma or COPD exacerbation.",
        0.78,
        "wheezes",
        "Consider bronchodilator therapy and pulmonary function tests.",
    ),
    LungFinding(
        "Normal breath sounds with no significant abnormalities detected.",
        0.92,
        "normal",
        "Continue routine monitoring. No immediate intervention required.",
    ),
)


def analyze_lung_sound(filename: str | None, size: int, rng: random.Random | None = None) -> dict[str, Any]:
    """Demo analyzer: picks one canned finding and draws its spectrogram."""
    if not filename or size <= 0:
        raise ValueError("No audio file provided")
    rng = rng or random.Random()
    logger.info("Processing audio file %s (%d bytes)", filename, size)

    finding = rng.choice(LUNG_FINDINGS)
    out = asdict(finding)
    out["spectrogram_image"] = render_spectrogram(finding.sound_type, duration=5, rng=rng)
    return out
