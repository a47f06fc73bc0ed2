"""
Text Signal Extraction

Keyword and regex heuristics that turn a chat message into typed signals
(illness or recovery reports, money amounts, cuisines, topics). Bots and
domain rules consume TextSignals and never run regexes themselves.

Usage:
    extractor = TextSignalExtractor()
    signals = extractor.extract("I spent ₹1,200 at the hospital")
    signals.expense   # 1200
    signals.medical   # True
"""

import re
from dataclasses import dataclass, field


def _keyword_pattern(words: list[str] | tuple[str, ...]) -> re.Pattern[str]:
    """Whole-word, case-insensitive alternation. Longer phrases win."""
    ordered = sorted(words, key=len, reverse=True)
    return re.compile(r"\b(?:" + "|".join(re.escape(w) for w in ordered) + r")\b", re.IGNORECASE)


def _to_number(raw: str) -> float | int | None:
    """Parse "1,200" or "12.5". Integral values come back as int."""
    try:
        value = float(raw.replace(",", ""))
    except ValueError:
        return None
    return int(value) if value.is_integer() else value


# Optional currency marker, then the amount
_AMOUNT = r"(?:₹|rs\.?|inr)?\s*(\d[\d,]*(?:\.\d+)?)"
# Filler allowed between the keyword and the amount ("my salary is 50000")
_FILLER = r"(?:\s+(?:is|of|was|about|around|me|my|like))*\s*"


def _amount_pattern(keywords: str) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + keywords + r")\b" + _FILLER + _AMOUNT, re.IGNORECASE)


@dataclass
class TextSignals:
    """Everything the heuristics detected in one message."""

    illness: bool = False
    illness_keywords: list[str] = field(default_factory=list)
    recovery: bool = False

    income: float | int | None = None
    expense: float | int | None = None
    balance: float | int | None = None
    goal: float | int | None = None
    medical: bool = False

    cuisines: list[str] = field(default_factory=list)
    unhealthy_food_types: list[str] = field(default_factory=list)
    topics: set[str] = field(default_factory=set)

    @property
    def has_money(self) -> bool:
        """True when any amount was detected."""
        return any(v is not None for v in (self.income, self.expense, self.balance))


class TextSignalExtractor:
    """Keyword/regex based signal detection.

    Keyword tables are class attributes and can be overridden per instance.
    """

    ILLNESS_KEYWORDS: tuple[str, ...] = (
        "fever", "cold", "cough", "sick", "ill", "flu", "infection",
        "rash", "dengue", "chikungunya",
    )
    RECOVERY_KEYWORDS: tuple[str, ...] = (
        "fine", "healthy", "not sick", "recovered", "better now",
    )
    MEDICAL_KEYWORDS: tuple[str, ...] = (
        "hospital", "doctor", "medicine", "medical", "treatment", "health", "sick",
    )
    CUISINE_KEYWORDS: dict[str, tuple[str, ...]] = {
        "southIndian": ("idli", "dosa", "sambar", "vada", "uttapam"),
        "northIndian": ("naan", "paneer", "butter chicken", "tandoori"),
        "chinese": ("noodles", "fried rice", "manchurian", "chilli"),
        "biryani": ("biryani", "biriyani"),
        "seafood": ("fish", "prawn", "crab", "seafood"),
    }
    UNHEALTHY_FOOD_KEYWORDS: dict[str, tuple[str, ...]] = {
        "spicy": ("spicy", "chilly", "hot", "mirchi", "pepper"),
        "oily": ("fried", "oily", "deep fry", "batter fry"),
        "heavy": ("biriyani", "biryani", "heavy", "rich", "cream", "butter"),
        "cold": ("ice cream", "cold", "chilled", "smoothie", "milkshake"),
    }
    TOPIC_KEYWORDS: dict[str, tuple[str, ...]] = {
        "travel": ("travel", "trip", "commute", "how to reach"),
        "event": ("event", "movie", "concert"),
        "food": ("food", "restaurant", "eat"),
        "weather": ("weather", "outdoor"),
        "expensive": ("expensive",),
    }

    INCOME_PATTERN = _amount_pattern(r"salary|income|earn(?:ed|s)?|make")
    EXPENSE_PATTERN = _amount_pattern(r"spent|spend|expense|cost|paid")
    BALANCE_PATTERN = _amount_pattern(r"balance|have|saved|save")
    GOAL_PATTERN = _amount_pattern(r"goal|target|need|want")

    def __init__(self) -> None:
        self._illness = _keyword_pattern(self.ILLNESS_KEYWORDS)
        self._recovery = _keyword_pattern(self.RECOVERY_KEYWORDS)
        self._medical = _keyword_pattern(self.MEDICAL_KEYWORDS)
        self._cuisines = {k: _keyword_pattern(v) for k, v in self.CUISINE_KEYWORDS.items()}
        self._unhealthy = {k: _keyword_pattern(v) for k, v in self.UNHEALTHY_FOOD_KEYWORDS.items()}
        self._topics = {k: _keyword_pattern(v) for k, v in self.TOPIC_KEYWORDS.items()}

    def extract(self, message: str) -> TextSignals:
        """Run every heuristic over ``message``."""
        text = message or ""

        recovery = bool(self._recovery.search(text))
        # "not sick" is a recovery phrase, not an illness report
        illness_text = self._recovery.sub(" ", text)
        illness_keywords = sorted({m.group(0).lower() for m in self._illness.finditer(illness_text)})

        return TextSignals(
            illness=bool(illness_keywords),
            illness_keywords=illness_keywords,
            recovery=recovery,
            income=self._amount(self.INCOME_PATTERN, text),
            expense=self._amount(self.EXPENSE_PATTERN, text),
            balance=self._amount(self.BALANCE_PATTERN, text),
            goal=self._amount(self.GOAL_PATTERN, text),
            medical=bool(self._medical.search(text)),
            cuisines=[k for k, p in self._cuisines.items() if p.search(text)],
            unhealthy_food_types=[k for k, p in self._unhealthy.items() if p.search(text)],
            topics={k for k, p in self._topics.items() if p.search(text)},
        )

    @staticmethod
    def mentions_allergen(message: str, allergies: list[str]) -> bool:
        """True if any word (longer than 3 chars) of any allergy appears in the message."""
        lowered = (message or "").lower()
        for allergy in allergies:
            for word in re.split(r"[,\s]+", allergy.lower()):
                if len(word) > 3 and word in lowered:
                    return True
        return False

    @staticmethod
    def _amount(pattern: re.Pattern[str], text: str) -> float | int | None:
        match = pattern.search(text)
        return _to_number(match.group(1)) if match else None
