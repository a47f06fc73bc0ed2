"""
Hearth Constants - TigerStyle

All limits are explicit, named with units, big-endian naming convention.
Category comes first, specifics last: TRANSACTIONS_RECENT_COUNT_MAX not MAX_RECENT_TRANSACTIONS.
"""

# =============================================================================
# Context Defaults
# =============================================================================

DEFAULT_CITY: str = "Chennai"
EVENTS_INTERESTS_DEFAULT: tuple[str, ...] = ("music", "food", "sports", "culture")

# =============================================================================
# Finance Limits
# =============================================================================

TRANSACTIONS_RECENT_COUNT_MAX: int = 10  # most-recent-first
TRANSACTION_DESCRIPTION_CHARS_MAX: int = 50  # message excerpt kept per expense
FINANCE_BALANCE_CRITICAL_MAX: float = 1000  # below this is "critical"
FINANCE_BALANCE_MODERATE_MAX: float = 5000  # below this is "moderate"

# =============================================================================
# Events Budget
# =============================================================================

EVENTS_BUDGET_MIN: float = 0
EVENTS_BUDGET_MAX: float = 5000  # also the default budgetRange.max
EVENTS_BUDGET_BALANCE_RATIO: float = 0.2  # 20% of balance goes to events

# =============================================================================
# Products
# =============================================================================

PRODUCTS_BALANCE_TIGHT_MAX: float = 5000  # below this, items under 1000 only
PRODUCTS_BALANCE_FLEXIBLE_MAX: float = 20000  # above this, premium items allowed
PRODUCTS_COST_FINANCE_REVIEW_MIN: float = 2000  # totals above this suggest the Finance Bot

# =============================================================================
# Health
# =============================================================================

HEALTH_ILLNESS_DAYS_DEFAULT: int = 7  # illness auto-expires after a week
HEALTH_ILLNESS_LABEL: str = "reported_symptoms"

# =============================================================================
# Storage Limits
# =============================================================================

STORAGE_TIMEOUT_SECS_DEFAULT: int = 30
STORAGE_POOL_SIZE_MIN: int = 1
STORAGE_POOL_SIZE_MAX: int = 10
CONTEXT_KEY_PREFIX: str = "user:"  # simulated storage key is user:<id>:context

# =============================================================================
# Generation Limits
# =============================================================================

GENERATION_TIMEOUT_SECS_DEFAULT: float = 30.0
GENERATION_OUTPUT_TOKENS_MAX: int = 2048

# =============================================================================
# DST (Deterministic Simulation Testing) Limits
# =============================================================================

DST_SIMULATION_STEPS_MAX: int = 1_000_000  # Max simulation steps
DST_FAULT_PROBABILITY_MAX: float = 1.0  # Max fault probability
DST_FAULT_PROBABILITY_MIN: float = 0.0  # Min fault probability

# =============================================================================
# Time Constants
# =============================================================================

TIME_SIM_START_MS: int = 1_735_689_600_000  # 2025-01-01T00:00:00Z, simulation start
TIME_ADVANCE_MS_MAX: int = 8 * 86_400_000  # Max advance = 8 days, enough to cross an illness expiry
