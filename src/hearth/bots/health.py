"""
Health Bot

Tracks a time-boxed illness from chat messages. An illness report starts a
seven-day illness, a recovery report ends it, and an expired illness is
cleared automatically before the message is looked at.
"""

import logging
from typing import Any

from hearth.bots.base import BaseBot, display_date, joined, sub_tree
from hearth.bots.generation import ChatTurn, GenerationRequest
from hearth.bots.suggestions import append_unless_mentioned
from hearth.context.rules import evaluate_health_turn
from hearth.core.constants import DEFAULT_CITY, HEALTH_ILLNESS_DAYS_DEFAULT
from hearth.core.models import AuthenticatedUser

logger = logging.getLogger(__name__)

# Cross-bot block is skipped when the reply already points at one of these
HEALTH_MARKERS = ("Recipes Bot", "Weather Bot", "Commute Bot")

SYSTEM_INSTRUCTION = """\
CRITICAL USER CONTEXT:
- User Name: {name}
- User Email: {email}
- Current Health Status: {condition}
- Active Illness: {illness}
- Symptoms: {symptoms}
- Allergies: {allergies}
- Illness Started: {started_at}
- Illness Expires: {expires_at}

RESPONSE GUIDELINES:
1. Always address the user by their name "{name}".
2. If the user has an active illness, tailor the advice to their symptoms.
3. Never recommend anything containing these allergens: {allergies}.
4. When suggesting foods, recommend items suited to the current condition and
   mention the Recipes Bot for specific preparations.
5. Budget worries about medication go to the Finance Bot; routes to a doctor
   go to the Commute Bot.
6. Name specific hospitals, clinics or pharmacies in {city} instead of
   suggesting a web search.
7. Health status resets automatically after {illness_days} days, or when the
   user says "I'm fine now".
8. Remind the user to see a healthcare professional for serious issues.
"""

FEW_SHOT = [
    ("user", "I have a fever and headache."),
    (
        "model",
        "{name}, I understand you're feeling unwell with fever and headache. Stay "
        "hydrated and rest. Paracetamol can help with the headache, but avoid aspirin. "
        "If the fever lasts beyond 48 hours or goes above 102°F, please consult a doctor.",
    ),
    ("user", "What should I eat when I have a cold?"),
    (
        "model",
        "{name}, light and warm foods are best with a cold: soups, khichdi, steamed "
        "vegetables and plenty of fluids. The Recipes Bot can suggest specific meals.",
    ),
    ("user", "I'm feeling better now."),
    (
        "model",
        "That's great to hear, {name}! I've updated your health status to reflect "
        "your recovery.",
    ),
]


class HealthBot(BaseBot):
    """Health chat with illness onset, manual reset and auto-expiry."""

    name = "health"
    interaction_field = "lastHealthUpdate"
    failure_error = "Error sending message"

    def __init__(
        self,
        *args: Any,
        illness_days: int = HEALTH_ILLNESS_DAYS_DEFAULT,
        city: str = DEFAULT_CITY,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._illness_days = illness_days
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
            transition = evaluate_health_turn(
                sub_tree(context, "health"), signals, message, now, self._illness_days
            )
            if transition is not None:
                logger.info(
                    f"Health transition for {user.id}: {transition['currentCondition']}"
                )
                update["health"] = transition
            return update

        result = await self.update_context(user.id, derive)
        health = sub_tree(result.context, "health")

        request = GenerationRequest(
            system_instruction=self._system_instruction(user, health),
            message=(
                f"Current User: {user.name} ({user.email}). "
                f"Health status - {health.get('currentCondition') or 'unknown'}. "
                f"Allergies - {joined(health.get('allergies'), 'none')}. "
                f"User message: {message}"
            ),
            history=self._few_shot(user) + list(history or []),
            temperature=0.9,
        )
        text = await self.generate(request)

        return {
            "response": self._decorate(text, user, result.context),
            "healthContext": {
                "activeIllness": health.get("activeIllness"),
                "symptoms": health.get("symptoms"),
                "allergies": health.get("allergies"),
                "expiresAt": health.get("expiresAt"),
            },
        }

    def _system_instruction(self, user: AuthenticatedUser, health: dict[str, Any]) -> str:
        return SYSTEM_INSTRUCTION.format(
            name=user.name,
            email=user.email or "unknown",
            condition=health.get("currentCondition") or "unknown",
            illness=health.get("activeIllness") or "none",
            symptoms=joined(health.get("symptoms"), "none reported"),
            allergies=joined(health.get("allergies"), "none reported"),
            started_at=health.get("startedAt") or "N/A",
            expires_at=health.get("expiresAt") or "N/A",
            city=self._city,
            illness_days=self._illness_days,
        )

    @staticmethod
    def _few_shot(user: AuthenticatedUser) -> list[ChatTurn]:
        return [ChatTurn(role=role, text=text.format(name=user.name)) for role, text in FEW_SHOT]

    def _decorate(self, text: str, user: AuthenticatedUser, context: dict[str, Any]) -> str:
        """Address the user by name and add the illness reminders."""
        if user.name not in text and not text.startswith(("I understand", "That's")):
            text = f"{user.name}, {text[:1].lower()}{text[1:]}"

        health = sub_tree(context, "health")
        if not health.get("activeIllness"):
            return text

        if self._annotator:
            text = append_unless_mentioned(text, self._annotator.health(context), HEALTH_MARKERS)
        text += (
            f"\n\n⚠️ **Health Status**: You're currently marked as sick "
            f"(since {display_date(health.get('startedAt'))}). This will auto-reset on "
            f"{display_date(health.get('expiresAt'))}, or say \"I'm fine now\" to reset immediately."
        )
        return text
