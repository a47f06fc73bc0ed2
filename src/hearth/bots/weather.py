"""
Weather Bot

Turns a weather snapshot into outfit suggestions. The model is asked for a
JSON array of clothing items; anything it gets wrong is repaired, and when
generation fails outright a fixed table keyed on temperature and rain is
returned instead.
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

ITEM_KEYS = ("Cloth Name", "Category", "Why is it beneficial", "Price", "Popularity")

SYSTEM_INSTRUCTION = """\
You are a clothing advisor. Given current weather data and coordinates,
recommend 4-6 clothing items suited to the conditions.

Respond with ONLY a JSON array. Each element has exactly these keys:
"Cloth Name", "Category", "Why is it beneficial", "Price", "Popularity".
Category is one of Upperwear, Lowerwear, Outerwear, Footwear, Headwear,
Accessories. Price is a rupee range like "₹500-₹1500". Popularity is High,
Medium or Low.
"""


def _item(name: str, category: str, why: str, price: str, popularity: str = "High") -> dict[str, str]:
    return dict(zip(ITEM_KEYS, (name, category, why, price, popularity)))


HOT_OUTFIT = [
    _item("Cotton T-shirt", "Upperwear",
          "Lightweight and breathable fabric keeps you cool in hot weather", "₹300-₹800"),
    _item("Linen Shorts", "Lowerwear",
          "Allows air circulation and provides comfort in high temperatures", "₹600-₹1500"),
    _item("Sun Hat with Wide Brim", "Headwear",
          "Protects face and neck from direct sunlight and UV rays", "₹400-₹1200", "Medium"),
    _item("Sports Sandals", "Footwear",
          "Ventilated design keeps feet cool and comfortable in heat", "₹800-₹2000"),
]

COLD_OUTFIT = [
    _item("Thermal Winter Jacket", "Outerwear",
          "Insulated design provides warmth and protection from cold winds", "₹2000-₹5000"),
    _item("Woolen Sweater", "Upperwear",
          "Natural wool fibers trap body heat effectively in cold conditions", "₹800-₹2500"),
    _item("Fleece-lined Pants", "Lowerwear",
          "Soft inner lining provides extra warmth and comfort in low temperatures",
          "₹1200-₹3000", "Medium"),
    _item("Thermal Gloves", "Accessories",
          "Protects hands from cold and maintains finger dexterity", "₹300-₹900", "Medium"),
]

RAIN_OUTFIT = [
    _item("Waterproof Rain Jacket", "Outerwear",
          "Keeps you dry during rainfall with sealed seams and water-resistant fabric",
          "₹1500-₹4000"),
    _item("Quick-dry Pants", "Lowerwear",
          "Special fabric dries quickly if it gets wet in the rain", "₹1000-₹2500", "Medium"),
    _item("Waterproof Boots", "Footwear",
          "Prevents water seepage and keeps feet dry in wet conditions", "₹1200-₹3500"),
    _item("Compact Umbrella", "Accessories",
          "Essential protection from rain that can be carried easily", "₹200-₹600"),
]

MILD_OUTFIT = [
    _item("Casual Cotton Shirt", "Upperwear",
          "Versatile and comfortable for moderate temperatures", "₹600-₹1500"),
    _item("Comfortable Jeans", "Lowerwear",
          "Durable and suitable for various activities in pleasant weather", "₹800-₹2000"),
    _item("Light Jacket", "Outerwear",
          "Perfect layer for temperature changes throughout the day", "₹1000-₹3000"),
    _item("Walking Shoes", "Footwear",
          "Comfortable for extended wear in pleasant weather conditions", "₹1200-₹3500"),
]


def fallback_outfit(weather_data: Mapping[str, Any] | None) -> list[dict[str, str]]:
    """Fixed outfit for the current conditions.

    Hot and dry above 30°C, cold below 15°C, rain when there is any
    precipitation, mild otherwise. Missing readings count as 25°C and dry.
    """
    current = (weather_data or {}).get("current") or {}
    temperature = current.get("temperature2m")
    if temperature is None:
        temperature = 25
    precipitation = current.get("precipitation") or 0

    if temperature > 30 and precipitation == 0:
        outfit = HOT_OUTFIT
    elif temperature < 15:
        outfit = COLD_OUTFIT
    elif precipitation > 0:
        outfit = RAIN_OUTFIT
    else:
        outfit = MILD_OUTFIT
    return [dict(item) for item in outfit]


def validate_items(items: list[Any]) -> list[dict[str, Any]]:
    """Fill in any missing keys so every item has the full shape."""
    validated = []
    for index, raw in enumerate(items):
        item = raw if isinstance(raw, Mapping) else {}
        validated.append({
            "Cloth Name": item.get("Cloth Name") or f"Outfit Item {index + 1}",
            "Category": item.get("Category") or "General",
            "Why is it beneficial": item.get("Why is it beneficial") or "Suitable for current weather conditions",
            "Price": item.get("Price") or "₹500-₹2000",
            "Popularity": item.get("Popularity") or "Medium",
        })
    return validated


class WeatherBot(BaseBot):
    """Outfit recommendations for the current weather."""

    name = "weather"
    interaction_field = "lastWeatherCheck"
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
            logger.error(f"Weather generation failed: {e}")
            return {
                "message": fallback_outfit(weather_data),
                "note": "Using fallback outfit recommendations due to AI service issue",
                "success": True,
            }

        items = self._parse(raw, weather_data)
        return {"message": validate_items(items), "success": True}

    @staticmethod
    def _parse(raw: str, weather_data: Mapping[str, Any]) -> list[Any]:
        try:
            parsed = extract_json(raw)
        except MalformedUpstreamResponse as e:
            logger.warning(f"Weather JSON parsing failed, using fallback: {e}")
            return fallback_outfit(weather_data)

        if not isinstance(parsed, list) or not parsed:
            logger.warning("Weather response is not a non-empty array, using fallback")
            return fallback_outfit(weather_data)
        return parsed
