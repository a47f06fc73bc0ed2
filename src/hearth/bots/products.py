"""
Products Bot

Looks at a photo of a room and suggests products for its empty spaces,
priced for the user's balance and free of their known allergens. The reply
carries a budget summary and pointers to the other bots; the budget
categories of the suggestions are remembered in preferences.productInterests.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any

from hearth.bots.base import BaseBot, joined, sub_tree
from hearth.bots.generation import GenerationRequest
from hearth.bots.parsing import extract_json
from hearth.context.affordability import format_amount
from hearth.core.constants import (
    DEFAULT_CITY,
    PRODUCTS_BALANCE_FLEXIBLE_MAX,
    PRODUCTS_BALANCE_TIGHT_MAX,
    PRODUCTS_COST_FINANCE_REVIEW_MIN,
)
from hearth.core.errors import ContextValidationError, MalformedUpstreamResponse
from hearth.core.models import AuthenticatedUser

logger = logging.getLogger(__name__)

KITCHEN_KEYWORDS = ("kitchen", "cook", "spice", "utensil", "storage")

SYSTEM_INSTRUCTION = """\
CRITICAL USER CONTEXT:
- Current Budget: {budget}
- Financial Health: {financial_health}
- Health Status: {illness}
- Allergies: {allergies}

PRODUCT ANALYSIS BOT:
Analyze the image of a room, find its empty or under-used spaces and
recommend products that improve it.

1. {budget_rule}
2. Never recommend products containing these allergens: {allergies}.
3. {health_rule}
4. Only recommend products sold by local shops in {city}, with the real
   shop name and address, suited to the local climate and households.
5. Essential items (priority 1-2) should be affordable, improvements
   (priority 3) mid-range, luxuries (priority 4-5) only if the budget allows.

Respond with ONLY a JSON array. Each element has exactly these keys:
"name", "imageLink", "productLink", "description", "benefitExplanation",
"shopName", "shopAddress", "price", "budgetCategory", "priorityLevel".
price is a rupee string like "₹1,500". budgetCategory is one of budget,
mid-range, premium. priorityLevel is 1 (essential) to 5 (luxury).
"""

# One worked example, sent ahead of the user's prompt
EXAMPLE_PROMPT = "Suggest me some affordable products for this kitchen. My budget is limited."
EXAMPLE_REPLY = """\
[{"name": "Stainless Steel Spice Rack",
  "imageLink": "https://example.com/spice-rack.jpg",
  "productLink": "https://amazon.in/stainless-steel-spice-rack",
  "description": "Compact 3-tier stainless steel spice organizer",
  "benefitExplanation": "Maximizes vertical space in small kitchens while keeping spices accessible",
  "shopName": "Chennai Kitchen Essentials",
  "shopAddress": "45 Pondy Bazaar, T Nagar, Chennai",
  "price": "₹450",
  "budgetCategory": "budget",
  "priorityLevel": 2}]"""

FALLBACK_PRODUCTS = [
    {
        "name": "Modular Wall Shelves",
        "imageLink": "https://example.com/fallback-shelves.jpg",
        "productLink": "https://amazon.in/wall-shelves",
        "description": "Space-saving wall shelves for organized storage",
        "benefitExplanation": "Utilizes vertical space efficiently in compact homes",
        "shopName": "Chennai Furniture Mart",
        "shopAddress": "78 Mount Road, Chennai",
        "price": "₹1,200",
        "budgetCategory": "budget",
        "priorityLevel": 2,
    },
    {
        "name": "LED Desk Lamp",
        "imageLink": "https://example.com/led-lamp.jpg",
        "productLink": "https://amazon.in/led-desk-lamp",
        "description": "Energy-efficient LED lamp with adjustable brightness",
        "benefitExplanation": "Provides optimal lighting for workspaces while saving electricity",
        "shopName": "Chennai Electronics Hub",
        "shopAddress": "23 Ritchie Street, Chennai",
        "price": "₹800",
        "budgetCategory": "budget",
        "priorityLevel": 3,
    },
]

_LEADING_DIGITS = re.compile(r"^\s*(\d+)")


def fallback_products() -> list[dict[str, Any]]:
    """Two budget picks that fit most rooms."""
    return [dict(product) for product in FALLBACK_PRODUCTS]


def parse_price(value: Any) -> int | None:
    """Whole rupees from a price like "₹1,500" or "₹500-₹900" (the first number).

    Returns None when there is no leading number.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if not isinstance(value, str):
        return None
    match = _LEADING_DIGITS.match(value.replace("₹", "").replace(",", ""))
    return int(match.group(1)) if match else None


def _prices(products: list[Mapping[str, Any]]) -> list[int]:
    return [price for price in (parse_price(p.get("price")) for p in products) if price is not None]


def budget_tier_rule(balance: float | None, currency: str = "₹") -> str:
    """Price ceiling the model is asked to respect for this balance."""
    if not balance:
        return "Budget not specified: recommend affordable options."
    if balance < PRODUCTS_BALANCE_TIGHT_MAX:
        return f"The budget is tight: focus on products under {currency}1,000."
    if balance <= PRODUCTS_BALANCE_FLEXIBLE_MAX:
        return f"Include mid-range products ({currency}1,000-{currency}5,000)."
    return "Premium products are fine."


def budget_summary(products: list[Mapping[str, Any]], balance: float | None) -> dict[str, Any]:
    """Total cost, price range and advice relative to the balance."""
    prices = _prices(products)
    total = sum(prices)

    advice = ""
    if balance:
        percentage = f"{total / balance * 100:.1f}"
        if total / balance > 0.5:
            advice = f"⚠️ These products cost {percentage}% of your budget. Consider prioritizing essential items."
        elif total / balance > 0.25:
            advice = f"💰 These products cost {percentage}% of your budget. Manageable for most users."
        else:
            advice = f"✅ These products cost only {percentage}% of your budget. Well within your means."

    return {
        "totalEstimatedCost": total,
        "budgetAdvice": advice,
        "productCount": len(products),
        "budgetRange": {"min": min(prices, default=0), "max": max(prices, default=0)},
    }


def cross_bot_suggestions(
    products: list[Mapping[str, Any]],
    context: Mapping[str, Any],
) -> list[dict[str, str]]:
    """Which other bots could help with this purchase."""
    suggestions = []
    if sum(_prices(products)) > PRODUCTS_COST_FINANCE_REVIEW_MIN:
        suggestions.append({
            "bot": "Finance Bot",
            "message": "Plan your purchase with the Finance Bot to manage this expense effectively.",
            "priority": "high",
        })

    illness = sub_tree(context, "health").get("activeIllness")
    if illness:
        suggestions.append({
            "bot": "Health Bot",
            "message": f"Check if these products are suitable while recovering from {illness}.",
            "priority": "medium",
        })

    def kitchen_related(product: Mapping[str, Any]) -> bool:
        text = f"{product.get('name') or ''} {product.get('description') or ''}".lower()
        return any(keyword in text for keyword in KITCHEN_KEYWORDS)

    if any(kitchen_related(product) for product in products):
        suggestions.append({
            "bot": "Recipes Bot",
            "message": "Get kitchen organization tips and recipe ideas that complement your new products.",
            "priority": "low",
        })
    return suggestions


def _union(*groups: list[str] | None) -> list[str]:
    return list(dict.fromkeys(item for group in groups for item in (group or [])))


def user_allergies(context: Mapping[str, Any]) -> list[str]:
    """Allergies recorded under health and food, without duplicates."""
    return _union(sub_tree(context, "health").get("allergies"), sub_tree(context, "food").get("allergies"))


class ProductsBot(BaseBot):
    """Room-photo product suggestions within the user's budget."""

    name = "products"
    interaction_field = "lastProductSearch"
    failure_error = "Failed to analyze product image"

    def __init__(self, *args: Any, city: str = DEFAULT_CITY, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._city = city

    async def recommend(
        self,
        user: AuthenticatedUser,
        prompt: str,
        image_parts: list[Mapping[str, Any]] | None = None,
    ) -> dict[str, Any]:
        if not prompt or not prompt.strip():
            raise ContextValidationError("Valid product prompt is required")

        context = await self._service.read_or_default(user.id)
        balance = sub_tree(context, "finance").get("totalBalance") or None
        allergies = user_allergies(context)

        request = GenerationRequest(
            system_instruction=self._system_instruction(context, balance, allergies),
            message=f"{EXAMPLE_PROMPT}\nExample answer: {EXAMPLE_REPLY}\n\n{prompt}",
            temperature=1.0,
            response_mime_type="application/json",
            attachments=[dict(part) for part in image_parts or []],
        )
        raw = await self.generate(request)
        products = self._parse(raw)
        now = self.now()

        if products is None:
            await self.update_context(user.id, lambda _: self.interaction_stamp(now))
            return {
                "products": fallback_products(),
                "note": "AI response format issue, using fallback suggestions",
            }

        categories = [str(p.get("budgetCategory") or "general") for p in products]

        def derive(current: dict[str, Any]) -> dict[str, Any]:
            known = sub_tree(current, "preferences").get("productInterests")
            return {
                **self.interaction_stamp(now),
                "preferences": {"productInterests": _union(known, categories)},
            }

        result = await self.update_context(user.id, derive)
        logger.info(f"Suggested {len(products)} products for {user.id}")

        return {
            "products": products,
            "context": {
                "budgetAware": balance is not None,
                "userBudget": balance,
                "healthConsiderations": allergies or None,
                "totalRecommendations": len(products),
            },
            "recommendations": {
                "budgetSummary": budget_summary(products, balance),
                "crossBotSuggestions": cross_bot_suggestions(products, result.context),
            },
        }

    def _system_instruction(
        self,
        context: Mapping[str, Any],
        balance: float | None,
        allergies: list[str],
    ) -> str:
        illness = sub_tree(context, "health").get("activeIllness")
        if balance is None:
            budget, financial_health = "Not specified", "Unknown"
        else:
            budget = f"{self._currency}{format_amount(balance)}"
            financial_health = "Budget-conscious" if balance < PRODUCTS_BALANCE_TIGHT_MAX else "Flexible budget"
        return SYSTEM_INSTRUCTION.format(
            budget=budget,
            financial_health=financial_health,
            illness=illness or "Healthy",
            allergies=joined(allergies, "None reported"),
            budget_rule=budget_tier_rule(balance, self._currency),
            health_rule=(
                f"The user is recovering from {illness}: prefer products that help recovery."
                if illness
                else "No health constraints."
            ),
            city=sub_tree(context, "location").get("current") or self._city,
        )

    @staticmethod
    def _parse(raw: str) -> list[dict[str, Any]] | None:
        """Product objects from the reply, or None when it has no usable array."""
        try:
            parsed = extract_json(raw)
        except MalformedUpstreamResponse as e:
            logger.warning(f"Products JSON parsing failed, using fallback: {e}")
            return None

        if not isinstance(parsed, list):
            logger.warning("Products response is not an array, using fallback")
            return None
        return [dict(item) for item in parsed if isinstance(item, Mapping)]
