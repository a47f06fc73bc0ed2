"""
Tests for text signal extraction.
"""

import pytest

from hearth.context.signals import TextSignalExtractor


@pytest.fixture
def extractor() -> TextSignalExtractor:
    return TextSignalExtractor()


class TestHealthSignals:
    """Tests for illness and recovery detection."""

    @pytest.mark.parametrize("message", ["I have a fever", "Got a bad COLD", "feeling sick today", "flu again"])
    def test_illness(self, extractor, message):
        """Test illness reports."""
        signals = extractor.extract(message)
        assert signals.illness is True
        assert signals.recovery is False

    @pytest.mark.parametrize("message", ["I'm fine now", "I have recovered", "feeling better now", "I'm not sick"])
    def test_recovery(self, extractor, message):
        """Test recovery reports."""
        signals = extractor.extract(message)
        assert signals.recovery is True
        assert signals.illness is False

    def test_whole_words_only(self, extractor):
        """Test that 'ill' inside another word is not an illness."""
        signals = extractor.extract("I will pay the bill")
        assert signals.illness is False

    def test_keywords_reported(self, extractor):
        """Test the detected illness keywords."""
        assert extractor.extract("fever and cough").illness_keywords == ["cough", "fever"]


class TestMoneySignals:
    """Tests for amount extraction."""

    def test_income(self, extractor):
        """Test a salary statement."""
        signals = extractor.extract("My salary is 50000")
        assert signals.income == 50000
        assert signals.has_money is True

    def test_expense_with_currency_and_commas(self, extractor):
        """Test a rupee amount with separators."""
        signals = extractor.extract("I spent ₹1,200 at the hospital")
        assert signals.expense == 1200
        assert signals.medical is True

    def test_balance(self, extractor):
        """Test a stated balance."""
        assert extractor.extract("I have 8000 in my account").balance == 8000

    def test_decimal_amount(self, extractor):
        """Test fractional amounts."""
        assert extractor.extract("paid Rs. 99.50 for lunch").expense == 99.5

    def test_goal(self, extractor):
        """Test a savings target."""
        assert extractor.extract("my goal is 20000").goal == 20000

    def test_no_amount(self, extractor):
        """Test a message without money."""
        signals = extractor.extract("I have a fever")
        assert signals.balance is None
        assert signals.has_money is False


class TestFoodAndTopics:
    """Tests for cuisine, unhealthy-food and topic detection."""

    def test_cuisines(self, extractor):
        """Test cuisine detection."""
        signals = extractor.extract("Where can I get good dosa and biryani?")
        assert signals.cuisines == ["southIndian", "biryani"]

    def test_unhealthy_food(self, extractor):
        """Test unhealthy food categories."""
        signals = extractor.extract("I want spicy fried chicken")
        assert "spicy" in signals.unhealthy_food_types
        assert "oily" in signals.unhealthy_food_types

    def test_topics(self, extractor):
        """Test topic detection."""
        signals = extractor.extract("Planning a trip to a concert, weather permitting")
        assert signals.topics == {"travel", "event", "weather"}

    def test_allergen_mention(self, extractor):
        """Test allergen matching on words longer than three characters."""
        assert extractor.mentions_allergen("any peanut chutney?", ["peanuts", "peanut"])
        assert not extractor.mentions_allergen("plain rice please", ["peanut"])
        assert not extractor.mentions_allergen("egg curry", ["egg"])

    def test_empty_message(self, extractor):
        """Test that an empty message yields no signals."""
        signals = extractor.extract("")
        assert signals.illness is False
        assert signals.cuisines == []
        assert signals.topics == set()
