"""
Health Card Bot

Weather-driven health precautions and a short list of over-the-counter
medicines. Same contract as the weather bot: a fixed card keyed on
temperature, rain and humidity stands in whenever generation fails or the
reply lacks either list.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any

from hearth.bots.base import BaseBot
from hearth.bots.generation import GenerationRequest
from hearth.bots.parsing import extract_json
from hearth.core.errors import (
    ContextValidationError,
    MalformedUpstreamResponse,
    UpstreamGenerationError,
)
from hearth.core.models import AuthenticatedUser

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = """\
You are a health advisor. Given current weather data and coordinates,
list the precautions people should take today and the common
over-the-counter medicines worth keeping at hand.

Respond with ONLY a JSON object with two keys:
"HealthPrecautions": an array of {"Precaution", "Why is it important"}
"MedicineList": an array of {"Medicine Name", "Purpose", "Dosage"}
Give 3-5 precautions and 2-4 medicines.
"""


def _precaution(text: str, why: str) -> dict[str, str]:
    return {"Precaution": text, "Why is it important": why}


def _medicine(name: str, purpose: str, dosage: str) -> dict[str, str]:
    return {"Medicine Name": name, "Purpose": purpose, "Dosage": dosage}


HOT_CARD = {
    "HealthPrecautions": [
        _precaution("Stay hydrated and drink plenty of water",
                    "High temperatures can cause dehydration, heat exhaustion, and heat stroke. "
                    "Proper hydration helps regulate body temperature."),
        _precaution("Avoid direct sunlight during 10 AM to 4 PM",
                    "UV rays are strongest during these hours, increasing risk of sunburn "
                    "and heat-related illnesses."),
        _precaution("Wear light-colored, loose-fitting cotton clothes",
                    "Light colors reflect heat and loose clothing allows better air circulation "
                    "to keep you cool."),
        _precaution("Use sunscreen with SPF 30+",
                    "Protects skin from harmful UV rays that can cause sunburn and increase skin cancer risk."),
    ],
    "MedicineList": [
        _medicine("Oral Rehydration Salts (ORS)", "Prevents and treats dehydration from heat exposure",
                  "One packet dissolved in 1 liter of water, drink as needed"),
        _medicine("Paracetamol", "Reduces fever and relieves body aches from heat exposure",
                  "500 mg every 4-6 hours as needed, maximum 4 times daily"),
        _medicine("Electrolyte powder", "Replenishes minerals lost through sweating",
                  "As per package instructions when sweating excessively"),
    ],
}

COLD_CARD = {
    "HealthPrecautions": [
        _precaution("Wear layered clothing for better insulation",
                    "Layers trap body heat more effectively than single heavy garments "
                    "and can be adjusted as needed."),
        _precaution("Cover ears, hands, and feet properly",
                    "Extremities lose heat fastest and are most vulnerable to frostbite in cold conditions."),
        _precaution("Keep skin moisturized regularly",
                    "Cold air lacks humidity and can cause dry skin, cracking, and irritation."),
        _precaution("Ensure proper indoor ventilation when using heaters",
                    "Prevents carbon monoxide buildup and maintains air quality while warming indoor spaces."),
    ],
    "MedicineList": [
        _medicine("Vitamin C supplements", "Boosts immune system during cold and flu season",
                  "500-1000 mg daily with meals"),
        _medicine("Cough syrup (Dextromethorphan)", "Relieves dry cough common in cold weather",
                  "10-20 ml every 4-6 hours as needed"),
        _medicine("Nasal saline spray", "Moisturizes dry nasal passages from cold air",
                  "2-3 sprays in each nostril as needed"),
    ],
}

RAINY_CARD = {
    "HealthPrecautions": [
        _precaution("Always carry rain protection (umbrella/raincoat)",
                    "Getting wet in rain can lower body temperature and increase susceptibility "
                    "to colds and infections."),
        _precaution("Avoid walking through stagnant water",
                    "Stagnant water breeds mosquitoes and bacteria that can cause dengue, malaria, "
                    "and skin infections."),
        _precaution("Keep feet dry and change wet socks immediately",
                    "Wet feet in closed shoes create ideal conditions for fungal infections "
                    "like athlete's foot."),
        _precaution("Use mosquito repellent regularly",
                    "Humid and rainy conditions increase mosquito breeding, raising risk of "
                    "vector-borne diseases."),
    ],
    "MedicineList": [
        _medicine("Antihistamine (Cetirizine)", "Controls allergy symptoms that often worsen in humid weather",
                  "10 mg once daily in evening"),
        _medicine("Antifungal powder (Clotrimazole)", "Prevents and treats fungal infections in moist conditions",
                  "Apply to affected areas twice daily"),
        _medicine("Antidiarrheal (Loperamide)", "Treats waterborne digestive issues common in rainy season",
                  "4 mg initially, then 2 mg after each loose stool, maximum 16 mg daily"),
    ],
}

MODERATE_CARD = {
    "HealthPrecautions": [
        _precaution("Maintain regular outdoor exercise routine",
                    "Pleasant weather provides ideal conditions for physical activity that boosts "
                    "cardiovascular health and immunity."),
        _precaution("Stay consistently hydrated throughout day",
                    "Even in moderate temperatures, proper hydration is essential for organ function "
                    "and overall wellness."),
        _precaution("Apply sunscreen when spending time outdoors",
                    "UV protection is necessary year-round to prevent skin damage and reduce skin cancer risk."),
        _precaution("Eat seasonal fruits and vegetables",
                    "Fresh produce provides essential vitamins and antioxidants that support immune "
                    "function in current conditions."),
    ],
    "MedicineList": [
        _medicine("Multivitamin tablet", "General health maintenance and nutritional support",
                  "Once daily with morning meal"),
        _medicine("Pain reliever (Ibuprofen)", "Manages general body aches, pains, and inflammation",
                  "200-400 mg every 6-8 hours as needed with food"),
        _medicine("Probiotic supplements", "Supports digestive health and immune function",
                  "As per package instructions, typically once daily"),
    ],
}


def fallback_health_card(weather_data: Mapping[str, Any] | None) -> dict[str, list[dict[str, str]]]:
    """Fixed card for the current conditions.

    Hot above 30°C, cold below 15°C, rainy with any precipitation or
    humidity above 70%, moderate otherwise. Missing readings count as 25°C,
    50% humidity and dry.
    """
    current = (weather_data or {}).get("current") or {}
    temperature = current.get("temperature2m")
    if temperature is None:
        temperature = 25
    humidity = current.get("relativeHumidity2m")
    if humidity is None:
        humidity = 50
    precipitation = current.get("precipitation") or 0

    if temperature > 30:
        card = HOT_CARD
    elif temperature < 15:
        card = COLD_CARD
    elif precipitation > 0 or humidity > 70:
        card = RAINY_CARD
    else:
        card = MODERATE_CARD
    return {key: [dict(entry) for entry in entries] for key, entries in card.items()}


def is_complete_card(card: Any) -> bool:
    """Both lists are present and non-empty."""
    return (
        isinstance(card, Mapping)
        and isinstance(card.get("HealthPrecautions"), list)
        and isinstance(card.get("MedicineList"), list)
        and bool(card["HealthPrecautions"])
        and bool(card["MedicineList"])
    )


class HealthCardBot(BaseBot):
    """Weather-based health precautions and medicines."""

    name = "health_card"
    interaction_field = "lastHealthCardCheck"
    failure_error = "Internal Server Error"

    async def recommend(
        self,
        user: AuthenticatedUser,
        weather_data: Mapping[str, Any] | None,
        longitude: float | None,
        latitude: float | None,
    ) -> dict[str, Any]:
        if not weather_data or longitude is None or latitude is None:
            raise ContextValidationError("Missing required data: weatherData, longitude, or latitude")

        now = self.now()
        await self.update_context(user.id, lambda _: self.interaction_stamp(now))

        request = GenerationRequest(
            system_instruction=SYSTEM_INSTRUCTION,
            message=json.dumps({"weatherData": weather_data, "longitude": longitude, "latitude": latitude}),
            response_mime_type="application/json",
        )
        try:
            raw = await self._generator.generate(request)
        except UpstreamGenerationError as e:
            logger.error(f"Health card generation failed: {e}")
            return {
                "message": fallback_health_card(weather_data),
                "note": "Using fallback health recommendations due to AI service issue",
                "success": True,
            }

        return {"message": self._parse(raw, weather_data), "success": True}

    @staticmethod
    def _parse(raw: str, weather_data: Mapping[str, Any]) -> dict[str, Any]:
        try:
            card = extract_json(raw)
        except MalformedUpstreamResponse as e:
            logger.warning(f"Health card JSON parsing failed, using fallback: {e}")
            return fallback_health_card(weather_data)

        if not is_complete_card(card):
            logger.warning("Health card response is missing required fields, using fallback")
            return fallback_health_card(weather_data)
        return dict(card)
