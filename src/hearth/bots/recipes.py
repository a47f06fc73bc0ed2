"""
Recipes Bot

Food recommendations that respect the user's health: warns about heavy or
spicy food while an illness is active, flags allergens, and learns favorite
cuisines from what the user asks about.
"""

import logging
from typing import Any

from hearth.bots.base import BaseBot, display_date, joined, sub_tree
from hearth.bots.generation import ChatTurn, GenerationRequest
from hearth.bots.suggestions import mentions_any
from hearth.context.signals import TextSignals
from hearth.core.constants import DEFAULT_CITY
from hearth.core.models import AuthenticatedUser

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = """\
IMPORTANT USER CONTEXT (From Health & Food Profile):
- Current Health Status: {status}
- Food Allergies: {allergies}
- Recent Symptoms: {symptoms}

RESPONSE GUIDELINES:
1. Name actual restaurants, stalls or street vendors in {city}. If unsure of
   a specific place, name a well-known food area or landmark.
2. Prefer lesser-known, well-reviewed places matching the user's stated
   preferences.
3. {health_line}
4. {allergy_line}
5. Do not ask for preferences first: list 3-5 places right away, then offer
   to narrow down.
6. Format: 📍 **Restaurant Name** – Area – Specialty Dish
7. For condition-specific diets mention the Health Bot; for food budgets the
   Finance Bot.
{safety_warning}
"""


def illness_alternatives(description: str) -> str:
    """Gentle alternatives for the illness, judged from its label and symptoms."""
    lowered = description.lower()
    if "fever" in lowered or "cold" in lowered:
        return "Consider light options like khichdi, vegetable soup, steamed idli, or porridge."
    if "stomach" in lowered:
        return "Consider BRAT diet foods: banana, rice, apple sauce, toast, or clear soups."
    return "Try light, easily digestible meals that won't aggravate your condition."


def merge_cuisines(existing: list[str] | None, detected: list[str]) -> list[str]:
    """Set union that keeps first-seen order."""
    return list(dict.fromkeys([*(existing or []), *detected]))


class RecipesBot(BaseBot):
    """Food chat with health and allergy safety checks."""

    name = "recipes"
    interaction_field = "lastRecipeCheck"
    failure_error = "Error processing request"

    def __init__(self, *args: Any, city: str = DEFAULT_CITY, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._city = city

    async def chat(
        self,
        user: AuthenticatedUser,
        message: str,
        history: list[ChatTurn] | None = None,
    ) -> dict[str, Any]:
        signals = self._extractor.extract(message)
        now = self.now()

        def derive(context: dict[str, Any]) -> dict[str, Any]:
            update = self.interaction_stamp(now)
            if signals.cuisines:
                food = sub_tree(context, "food")
                update["food"] = {
                    "favoriteCuisines": merge_cuisines(food.get("favoriteCuisines"), signals.cuisines)
                }
            return update

        result = await self.update_context(user.id, derive)
        context = result.context
        health = sub_tree(context, "health")
        illness = health.get("activeIllness")
        allergies = list(
            dict.fromkeys([*(health.get("allergies") or []), *(sub_tree(context, "food").get("allergies") or [])])
        )

        symptoms = health.get("symptoms") or []
        safety_warning = self._safety_warning(message, signals, illness, symptoms, allergies)
        health_info = f"\n\n**Health Context**: You're currently recovering from {illness}. " if illness else ""

        request = GenerationRequest(
            system_instruction=self._system_instruction(health, illness, allergies, safety_warning),
            message=f"User query: {message} {health_info}",
            history=list(history or []),
            temperature=1.0,
        )
        text = await self.generate(request)
        text = self._decorate(text, context, illness, allergies)

        return {
            "response": text,
            "foodContext": {
                "healthStatus": illness or "healthy",
                "allergies": allergies,
                "safetyWarnings": bool(safety_warning),
            },
        }

    def _safety_warning(
        self,
        message: str,
        signals: TextSignals,
        illness: str | None,
        symptoms: list[str],
        allergies: list[str],
    ) -> str:
        warning = ""
        if illness and signals.unhealthy_food_types:
            alternatives = illness_alternatives(" ".join([illness, *symptoms]))
            warning = (
                f"\n\n**Health Alert**: You're currently unwell. It's better to avoid "
                f"{', '.join(signals.unhealthy_food_types)} foods. {alternatives}"
                f"\n**Ask Health Bot**: \"What foods are best for {illness}?\""
            )
        if allergies and self._extractor.mentions_allergen(message, allergies):
            warning += (
                f"\n\n**Allergy Alert**: You're allergic to {', '.join(allergies)}. "
                f"I'll avoid recommending dishes containing these ingredients."
                f"\n🍃 **Allergy-Safe Options**: Look for dishes without {' or '.join(allergies)}."
            )
        return warning

    def _system_instruction(
        self,
        health: dict[str, Any],
        illness: str | None,
        allergies: list[str],
        safety_warning: str,
    ) -> str:
        return SYSTEM_INSTRUCTION.format(
            status=f"Recovering from {illness}" if illness else "Healthy",
            allergies=joined(allergies, "None reported"),
            symptoms=joined((health.get("symptoms") or [])[:3], "None"),
            city=self._city,
            health_line=(
                f"The user is recovering from {illness}: avoid spicy, oily or hard-to-digest food."
                if illness
                else "Gently suggest healthier alternatives to very heavy food."
            ),
            allergy_line=(
                f"STRICTLY AVOID dishes containing: {', '.join(allergies)}."
                if allergies
                else "No allergies reported."
            ),
            safety_warning=safety_warning,
        )

    def _decorate(
        self,
        text: str,
        context: dict[str, Any],
        illness: str | None,
        allergies: list[str],
    ) -> str:
        if self._annotator:
            suggestions = self._annotator.recipes(context, allergies, text)
            if suggestions and not mentions_any(text, ("Health Bot", "Finance Bot")):
                text += suggestions

        expires_at = sub_tree(context, "health").get("expiresAt")
        if illness and expires_at and not mentions_any(text, ("Health Status", "recovering until")):
            text += (
                f"\n\n**Health Status**: You're marked as recovering until {display_date(expires_at)}. "
                f"Say \"I'm fine now\" to the Health Bot to update your status."
            )
        return text
