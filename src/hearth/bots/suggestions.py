"""
Suggestion Annotator

Canned cross-bot suggestions appended to generated replies ("ask the Recipes
Bot for light meals..."). Purely presentational: it reads a context snapshot
and the detected signals and returns text, never updates.

Bots take an optional annotator; passing None turns the suggestions off.
"""

import math
from collections.abc import Iterable, Mapping
from typing import Any

from hearth.context.affordability import format_amount
from hearth.context.signals import TextSignals


def mentions_any(text: str, markers: Iterable[str]) -> bool:
    return any(marker in text for marker in markers)


def append_unless_mentioned(text: str, addition: str, markers: Iterable[str]) -> str:
    """Append ``addition`` unless it is empty or ``text`` already mentions a marker."""
    if not addition or mentions_any(text, markers):
        return text
    return text + addition


def _balance(context: Mapping[str, Any]) -> float:
    return (context.get("finance") or {}).get("totalBalance") or 0


def _active_illness(context: Mapping[str, Any]) -> str | None:
    return (context.get("health") or {}).get("activeIllness")


class SuggestionAnnotator:
    """Builds the cross-bot suggestion text for each bot."""

    def __init__(self, currency: str = "₹") -> None:
        self._currency = currency

    def _money(self, balance: float, share: float) -> str:
        return f"{self._currency}{format_amount(math.floor(balance * share))}"

    def health(self, context: Mapping[str, Any]) -> str:
        if not _active_illness(context):
            return ""
        return (
            "\n\n💡 **Cross-Bot Recommendations:**\n"
            "- Ask the **Recipes Bot** for light, nutritious meals suitable for your condition\n"
            "- Check the **Weather Bot** to see if weather might be affecting your symptoms\n"
            "- Use the **Commute Bot** to find the best route to nearby medical facilities"
        )

    def finance(self, context: Mapping[str, Any], signals: TextSignals) -> str:
        balance = _balance(context)
        suggestions = ""
        if "travel" in signals.topics:
            suggestions += (
                f"\n\n**Travel Planning**: Ask the **Commute Bot** for options within "
                f"{self._money(balance, 0.3)} budget."
            )
        if "event" in signals.topics:
            suggestions += (
                f"\n\n**Entertainment**: Check **Events Bot** for activities under "
                f"{self._money(balance, 0.15)}."
            )
        if _active_illness(context):
            suggestions += (
                f"\n\n**Health Budget**: Set aside {self._money(balance, 0.2)} for medical "
                f"expenses. Ask **Health Bot** for cost-effective care options."
            )
        if "food" in signals.topics:
            suggestions += (
                f"\n\n**Dining**: **Recipes Bot** can suggest meals within "
                f"{self._money(balance, 0.1)} daily budget."
            )
        return suggestions

    def events(self, context: Mapping[str, Any], signals: TextSignals) -> list[str]:
        suggestions = []
        if "travel" in signals.topics:
            suggestions.append("🚗 **Commute Bot** can help with travel directions to event venues")
        if "weather" in signals.topics:
            suggestions.append("🌤️ **Weather Bot** can check conditions for outdoor events")
        if _balance(context) < 500 and "expensive" in signals.topics:
            suggestions.append("💰 **Finance Bot** can suggest budget-friendly event alternatives")
        return suggestions

    def recipes(self, context: Mapping[str, Any], allergies: list[str], response_text: str) -> str:
        suggestions = ""
        illness = _active_illness(context)
        if illness and "Health Bot" not in response_text:
            suggestions += (
                f"\n\n**Health Coordination**: Ask the **Health Bot** for specific dietary "
                f"advice for {illness}."
            )
        balance = _balance(context)
        if balance and balance < 5000:
            suggestions += (
                "\n**Budget Tip**: Use the **Finance Bot** to track your food expenses "
                "and stay within budget."
            )
        if allergies and not mentions_any(response_text, ("allerg", "avoid")):
            suggestions += (
                f"\n**Allergy Safety**: I've avoided recipes with {', '.join(allergies)}. "
                f"Always double-check ingredients when dining out."
            )
        return suggestions
