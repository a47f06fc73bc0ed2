"""
Tests for the affordability helpers.
"""

import pytest

from hearth.context.affordability import check_affordability, event_budget_max, format_amount, recommend
from hearth.core.models import default_context


def context_with(balance: float, budget_max: float | None = None) -> dict:
    context = default_context()
    context["finance"]["totalBalance"] = balance
    if budget_max is not None:
        context["preferences"]["events"]["budgetRange"]["max"] = budget_max
    return context


class TestFormatAmount:
    """Tests for format_amount."""

    @pytest.mark.parametrize(
        "value,expected",
        [(800, "800"), (800.0, "800"), (1234.5, "1,234.50"), (25000, "25,000")],
    )
    def test_format(self, value, expected):
        """Test integral and fractional rendering."""
        assert format_amount(value) == expected


class TestCheckAffordability:
    """Tests for check_affordability."""

    def test_boundary_is_affordable(self):
        """Test cost == balance == budget max."""
        result = check_affordability(context_with(1000, 1000), 1000)

        assert result["canAfford"] is True
        assert result["budgetPercentage"] == 100.0

    def test_one_over_budget_max(self):
        """Test that one rupee over the events budget is not affordable."""
        result = check_affordability(context_with(5000, 1000), 1001)

        assert result["canAfford"] is False
        assert result["suggestion"] == "Event exceeds your entertainment budget but you have overall funds"

    def test_over_balance(self):
        """Test a cost above the total balance."""
        result = check_affordability(context_with(500, 5000), 800)

        assert result["canAfford"] is False
        assert result["suggestion"] == "Consider cheaper alternatives or save more"
        assert result["recommendation"] == "Too expensive (160.0% of total budget)"

    def test_zero_balance_percentage(self):
        """Test that a zero balance reports 0%."""
        result = check_affordability(context_with(0), 0)

        assert result["budgetPercentage"] == 0
        assert result["canAfford"] is True

    def test_result_fields(self):
        """Test the echoed inputs."""
        result = check_affordability(context_with(2000, 400), 100, currency="$")

        assert result["availableBudget"] == 2000
        assert result["eventBudget"] == 400
        assert result["eventCost"] == 100
        assert result["currency"] == "$"
        assert result["recommendation"] == "Affordable (5.0% of total budget)"

    def test_missing_budget_range_uses_default(self):
        """Test fallback to the default events budget."""
        context = context_with(100000)
        del context["preferences"]["events"]["budgetRange"]

        assert event_budget_max(context) == 5000


class TestRecommend:
    """Tests for recommend."""

    def test_defaults_from_context(self):
        """Test that omitted filters fall back to the context."""
        context = context_with(10000, 2000)
        result = recommend(context)

        assert result["filters"] == {
            "interests": ["music", "food", "sports", "culture"],
            "maxPrice": 2000,
            "location": "Chennai",
        }
        assert result["userContext"]["budget"] == 10000
        assert result["userContext"]["history"] == 0
        assert result["recommendation"] == (
            "Looking for music, food, sports, culture events in Chennai under ₹2,000"
        )

    def test_explicit_filters_win(self):
        """Test that given filters override the context."""
        result = recommend(
            context_with(10000, 2000),
            {"interests": ["comedy"], "maxPrice": 0, "location": "Madurai"},
        )

        assert result["filters"] == {"interests": ["comedy"], "maxPrice": 0, "location": "Madurai"}
        assert result["userContext"]["location"] == "Chennai"
