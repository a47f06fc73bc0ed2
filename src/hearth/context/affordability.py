"""
Affordability Helpers

Read-only computations over a context snapshot, used by the events bot and
the /events endpoints. Nothing here touches storage.
"""

from collections.abc import Mapping
from typing import Any

from hearth.core.constants import DEFAULT_CITY, EVENTS_BUDGET_MAX


def format_amount(value: float | int) -> str:
    """Render 800.0 as "800" and 1234.5 as "1,234.50"."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value:,}" if isinstance(value, int) else f"{value:,.2f}"


def _events_prefs(context: Mapping[str, Any]) -> Mapping[str, Any]:
    return (context.get("preferences") or {}).get("events") or {}


def event_budget_max(context: Mapping[str, Any]) -> float:
    """preferences.events.budgetRange.max, or the default when it is missing."""
    value = (_events_prefs(context).get("budgetRange") or {}).get("max")
    return EVENTS_BUDGET_MAX if value is None else value


def check_affordability(
    context: Mapping[str, Any],
    cost: float,
    currency: str = "₹",
) -> dict[str, Any]:
    """Compare an event cost against the total balance and the events budget.

    Both checks are inclusive: cost == balance == budget max is affordable.

    Returns:
        canAfford, availableBudget, eventBudget, eventCost, budgetPercentage,
        recommendation, suggestion
    """
    available = (context.get("finance") or {}).get("totalBalance") or 0
    event_budget = event_budget_max(context)

    fits_total = cost <= available
    fits_events = cost <= event_budget
    can_afford = fits_total and fits_events
    percentage = round(cost / available * 100, 1) if available > 0 else 0

    if can_afford:
        recommendation = f"Affordable ({percentage}% of total budget)"
        suggestion = "You can attend this event within your budget"
    else:
        recommendation = f"Too expensive ({percentage}% of total budget)"
        if fits_total:
            suggestion = "Event exceeds your entertainment budget but you have overall funds"
        else:
            suggestion = "Consider cheaper alternatives or save more"

    return {
        "canAfford": can_afford,
        "availableBudget": available,
        "eventBudget": event_budget,
        "eventCost": cost,
        "budgetPercentage": percentage,
        "recommendation": recommendation,
        "suggestion": suggestion,
        "currency": currency,
    }


def recommend(
    context: Mapping[str, Any],
    filters: Mapping[str, Any] | None = None,
    currency: str = "₹",
) -> dict[str, Any]:
    """Effective event filters plus a one-line summary.

    Each filter (interests, maxPrice, location) falls back to the matching
    context field when omitted. No event catalog is consulted.
    """
    filters = filters or {}
    prefs = _events_prefs(context)
    location_ctx = context.get("location") or {}
    current_location = location_ctx.get("current") or DEFAULT_CITY

    interests = filters.get("interests")
    if interests is None:
        interests = list(prefs.get("interests") or [])
    max_price = filters.get("maxPrice")
    if max_price is None:
        max_price = event_budget_max(context)
    location = filters.get("location") or current_location

    history = context.get("eventsHistory") or {}
    return {
        "filters": {
            "interests": interests,
            "maxPrice": max_price,
            "location": location,
        },
        "userContext": {
            "budget": (context.get("finance") or {}).get("totalBalance") or 0,
            "eventBudget": prefs.get("budgetRange") or {"min": 0, "max": EVENTS_BUDGET_MAX},
            "location": current_location,
            "interests": list(prefs.get("interests") or []),
            "history": len(history.get("attended") or []),
        },
        "recommendation": (
            f"Looking for {', '.join(interests)} events in {location} "
            f"under {currency}{format_amount(max_price)}"
        ),
    }
