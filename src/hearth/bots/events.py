"""
Events Bot

Budget-aware event suggestions for the user's current city. The bot only
reads finance and location; paying for an event happens through
ContextService.record_event.
"""

import logging
from typing import Any

from hearth.bots.base import BaseBot, sub_tree
from hearth.bots.generation import ChatTurn, GenerationRequest
from hearth.bots.suggestions import mentions_any
from hearth.context.affordability import format_amount
from hearth.core.constants import DEFAULT_CITY, EVENTS_BUDGET_MAX, FINANCE_BALANCE_CRITICAL_MAX
from hearth.core.models import AuthenticatedUser

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = """\
USER CONTEXT:
- Name: {name}
- Location: {location}
- Available Budget: {cur}{budget}
- Budget Range Preference: {cur}{range_min} - {cur}{range_max}

RESPONSE GUIDELINES:
1. {budget_line}
2. Recommend actual upcoming events in {location} for this week and the
   coming weekend: name, date, venue, price and a short description.
3. Low budget: point to the Finance Bot. Far away: the Commute Bot.
   Weather-dependent: the Weather Bot.
4. Format each event as:
   🎪 **Event Name**
   📅 Date
   📍 Venue in {location}
   💰 Price
   ⭐ Description
5. Warn when an event is over budget and offer free or cheaper alternatives.
"""


class EventsBot(BaseBot):
    """Event recommendations within the user's events budget."""

    name = "events"
    interaction_field = "lastEventsSearch"
    failure_error = "Error fetching event recommendations"

    async def chat(
        self,
        user: AuthenticatedUser,
        message: str,
        history: list[ChatTurn] | None = None,
    ) -> dict[str, Any]:
        signals = self._extractor.extract(message)
        now = self.now()

        result = await self.update_context(user.id, lambda _: self.interaction_stamp(now))
        context = result.context

        location = sub_tree(context, "location").get("current") or DEFAULT_CITY
        budget = sub_tree(context, "finance").get("totalBalance") or 0
        budget_range = (
            sub_tree(sub_tree(context, "preferences"), "events").get("budgetRange")
            or {"min": 0, "max": EVENTS_BUDGET_MAX}
        )
        logger.debug(f"Events search for {user.id}: location={location} budget={budget}")

        request = GenerationRequest(
            system_instruction=self._system_instruction(user, location, budget, budget_range),
            message=(
                f"User query: {message}. Current location: {location}. "
                f"Budget: {self._currency}{format_amount(budget)}."
            ),
            history=list(history or []),
        )
        text = await self.generate(request)

        if 0 < budget < FINANCE_BALANCE_CRITICAL_MAX and not mentions_any(
            text, ("budget", "affordable", "free")
        ):
            text += (
                f"\n\n💡 **Budget Tip**: You have {self._currency}{format_amount(budget)} "
                f"available. Ask the **Finance Bot** to help allocate funds for events."
            )

        suggestions = self._annotator.events(context, signals) if self._annotator else []
        if suggestions:
            text += "\n\n" + "\n".join(suggestions)

        return {
            "response": text,
            "contextUsed": {
                "location": location,
                "budget": budget,
                "budgetRange": budget_range,
            },
        }

    def _system_instruction(
        self,
        user: AuthenticatedUser,
        location: str,
        budget: float,
        budget_range: dict[str, Any],
    ) -> str:
        range_max = budget_range.get("max", EVENTS_BUDGET_MAX)
        if budget > 0:
            position = "within" if budget >= range_max else "over"
            budget_line = (
                f"The user has {self._currency}{format_amount(budget)} available. Prioritize "
                f"events inside their range; for expensive ones say the cost is {position} budget."
            )
        else:
            budget_line = "Budget information not available."
        return SYSTEM_INSTRUCTION.format(
            name=user.name,
            location=location,
            cur=self._currency,
            budget=format_amount(budget),
            range_min=format_amount(budget_range.get("min", 0)),
            range_max=format_amount(range_max),
            budget_line=budget_line,
        )
