"""
Hearth Core Data Models

These models define the shape of the shared per-user context document:
- Health: illness state with auto-expiry
- Finance: balance, income, expenses and recent transactions
- Food, Location, Preferences, Events history, Bot interactions, Profile

Documents are stored and merged as plain JSON dicts. The models declare the
canonical default document once, with types, and give typed views where a
caller wants them.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from hearth.core.constants import (
    DEFAULT_CITY,
    EVENTS_BUDGET_MAX,
    EVENTS_INTERESTS_DEFAULT,
)


# =============================================================================
# Enums
# =============================================================================


class HealthCondition(str, Enum):
    """Overall health condition of the user."""

    HEALTHY = "healthy"
    SICK = "sick"


class TransactionType(str, Enum):
    """Kinds of finance transactions."""

    EXPENSE = "expense"
    INCOME = "income"


class FinancialHealth(str, Enum):
    """Coarse label for the user's balance."""

    CRITICAL = "critical"  # below 1000
    MODERATE = "moderate"  # below 5000
    HEALTHY = "healthy"


# =============================================================================
# Base
# =============================================================================


class ContextModel(BaseModel):
    """Base for context sub-trees.

    Field names are snake_case in Python and camelCase on the wire. Unknown
    keys are kept, since bots may add fields the schema does not list.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


# =============================================================================
# Health
# =============================================================================


class HealthContext(ContextModel):
    """Health sub-tree."""

    active_illness: str | None = None
    symptoms: list[str] = Field(default_factory=list)
    allergies: list[str] = Field(default_factory=list)
    started_at: str | None = None  # ISO-8601
    expires_at: str | None = None  # ISO-8601
    current_condition: HealthCondition = HealthCondition.HEALTHY
    medications: list[Any] = Field(default_factory=list)
    doctor_visits: list[Any] = Field(default_factory=list)
    recovery_progress: float = 0


# =============================================================================
# Finance
# =============================================================================


class FinanceBudget(ContextModel):
    """Budget allocation per category."""

    needs: float = 0
    wants: float = 0
    savings: float = 0
    travel: float = 0
    entertainment: float = 0


class Transaction(ContextModel):
    """Entry in finance.recentTransactions."""

    type: TransactionType = TransactionType.EXPENSE
    amount: float
    category: str = "general"
    description: str = ""
    date: str


class Expense(ContextModel):
    """Entry in finance.expenses."""

    type: str
    amount: float
    description: str = ""
    date: str


class FinanceContext(ContextModel):
    """Finance sub-tree."""

    total_balance: float = 0
    monthly_income: float = 0
    expenses: list[dict[str, Any]] = Field(default_factory=list)
    budget: FinanceBudget = Field(default_factory=FinanceBudget)
    recent_transactions: list[dict[str, Any]] = Field(default_factory=list)
    spending_patterns: dict[str, Any] = Field(default_factory=dict)
    trip_budget: float = 0


# =============================================================================
# Food & Location
# =============================================================================


class FoodContext(ContextModel):
    """Food sub-tree."""

    dietary_preferences: list[str] = Field(default_factory=list)
    allergies: list[str] = Field(default_factory=list)
    favorite_cuisines: list[str] = Field(default_factory=list)
    restrictions: list[str] = Field(default_factory=list)
    temporary_restrictions: bool = False


class LocationContext(ContextModel):
    """Location sub-tree."""

    current: str = DEFAULT_CITY
    home: str | None = None
    work: str | None = None
    last_known: str | None = None
    preferred_city: str = DEFAULT_CITY


# =============================================================================
# Preferences
# =============================================================================


class CommutePreferences(ContextModel):
    """preferences.commute"""

    preferred_mode: str = "balanced"
    budget_conscious: bool = True
    max_travel_time: int = 60  # minutes
    avoid_tolls: bool = False


class BudgetRange(ContextModel):
    """Event spending range."""

    min: float = 0
    max: float = EVENTS_BUDGET_MAX


class EventPreferences(ContextModel):
    """preferences.events"""

    interests: list[str] = Field(default_factory=lambda: list(EVENTS_INTERESTS_DEFAULT))
    budget_range: BudgetRange = Field(default_factory=BudgetRange)
    preferred_types: list[str] = Field(
        default_factory=lambda: ["concerts", "festivals", "workshops"]
    )
    frequency: str = "weekly"
    group_size: int = 1
    preferred_days: list[str] = Field(default_factory=lambda: ["saturday", "sunday"])


class GeneralPreferences(ContextModel):
    """preferences.general"""

    notification_enabled: bool = True
    language: str = "english"
    theme: str = "dark"


class Preferences(ContextModel):
    """Preferences sub-tree."""

    commute: CommutePreferences = Field(default_factory=CommutePreferences)
    events: EventPreferences = Field(default_factory=EventPreferences)
    general: GeneralPreferences = Field(default_factory=GeneralPreferences)
    product_interests: list[str] = Field(default_factory=list)


# =============================================================================
# History, Interactions, Profile
# =============================================================================


class AttendedEvent(ContextModel):
    """An event the user went to. Extra fields (venue, date...) are kept."""

    name: str
    cost: float = Field(0, ge=0)


class EventsHistory(ContextModel):
    """eventsHistory sub-tree."""

    attended: list[dict[str, Any]] = Field(default_factory=list)
    interested: list[Any] = Field(default_factory=list)
    budget_spent: float = 0
    last_event_date: str | None = None
    favorite_venues: list[str] = Field(default_factory=list)
    avoided_events: list[str] = Field(default_factory=list)


class BotInteractions(ContextModel):
    """Last-call timestamps per bot plus pending cross-bot actions."""

    last_health_update: str | None = None
    last_finance_check: str | None = None
    last_events_search: str | None = None
    last_recipe_check: str | None = None
    last_commute_plan: str | None = None
    last_weather_check: str | None = None
    last_product_search: str | None = None
    last_health_card_check: str | None = None
    cross_bot_recommendations: list[Any] = Field(default_factory=list)
    pending_actions: list[Any] = Field(default_factory=list)


class Profile(ContextModel):
    """Demographic fields."""

    age: int | None = None
    occupation: str | None = None
    hobbies: list[str] = Field(default_factory=list)
    family_size: int = 1
    has_vehicle: bool = False
    dietary_restrictions: list[str] = Field(default_factory=list)


# =============================================================================
# UserContext
# =============================================================================


class UserContext(ContextModel):
    """The full per-user context document."""

    health: HealthContext = Field(default_factory=HealthContext)
    food: FoodContext = Field(default_factory=FoodContext)
    finance: FinanceContext = Field(default_factory=FinanceContext)
    location: LocationContext = Field(default_factory=LocationContext)
    preferences: Preferences = Field(default_factory=Preferences)
    events_history: EventsHistory = Field(default_factory=EventsHistory)
    bot_interactions: BotInteractions = Field(default_factory=BotInteractions)
    profile: Profile = Field(default_factory=Profile)

    def to_document(self) -> dict[str, Any]:
        """Dump to the JSON document shape used on the wire and in storage."""
        return self.model_dump(mode="json", by_alias=True)


def default_context(city: str = DEFAULT_CITY) -> dict[str, Any]:
    """Build a fresh canonical default document.

    Args:
        city: Value for location.current and location.preferredCity

    Returns:
        A new dict each call; callers may mutate it freely.
    """
    return UserContext(
        location=LocationContext(current=city, preferred_city=city),
    ).to_document()


# Top-level keys of the document; each holds a JSON object
CONTEXT_SECTIONS = tuple(default_context())


# =============================================================================
# Callers
# =============================================================================


class AuthenticatedUser(BaseModel):
    """Identity handed to bots by the auth provider."""

    id: str
    name: str = "User"
    email: str | None = None
