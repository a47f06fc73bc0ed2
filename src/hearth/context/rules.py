"""
Domain Rules

Derived-state rules applied around every context mutation:
- HealthExpiry: an expired illness resets health to the healthy baseline
- HealthOnset: an illness report starts a time-boxed illness
- HealthManualReset: a recovery report ends the active illness
- EventsBudgetDerivation: events budget follows finance.totalBalance
- TransactionCap: recentTransactions keeps the newest entries only
- EventExpenseClamp: attending an event is paid from the balance, never below 0
- validate_update: a partial update may not turn a section into a non-object
  or the balance into a non-number

All rules are pure: they take documents (and ``now``) and return new
documents or partial updates without touching their inputs.
"""

import logging
from collections.abc import Mapping
from copy import deepcopy
from datetime import datetime, timedelta, UTC
from typing import Any

from hearth.context.merge import deep_merge, touches
from hearth.context.signals import TextSignals
from hearth.core.constants import (
    EVENTS_BUDGET_BALANCE_RATIO,
    EVENTS_BUDGET_MAX,
    EVENTS_BUDGET_MIN,
    HEALTH_ILLNESS_DAYS_DEFAULT,
    HEALTH_ILLNESS_LABEL,
    TRANSACTIONS_RECENT_COUNT_MAX,
)
from hearth.core.errors import ContextValidationError
from hearth.core.models import CONTEXT_SECTIONS, AttendedEvent, Expense, HealthCondition

logger = logging.getLogger(__name__)


# =============================================================================
# Timestamps
# =============================================================================


def format_timestamp(value: datetime) -> str:
    """Format as ISO-8601 UTC with millisecond precision and a Z suffix."""
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp. Naive values are taken as UTC.

    Returns None for empty or unparseable values.
    """
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Ignoring unparseable timestamp: {value!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


# =============================================================================
# Health
# =============================================================================


def healthy_baseline() -> dict[str, Any]:
    """Fields reset when an illness ends. Other health fields are kept."""
    return {
        "activeIllness": None,
        "symptoms": [],
        "startedAt": None,
        "expiresAt": None,
        "currentCondition": HealthCondition.HEALTHY.value,
    }


def is_health_expired(health: Mapping[str, Any] | None, now: datetime) -> bool:
    """True when health.expiresAt is set and not in the future."""
    if not health:
        return False
    expires_at = parse_timestamp(health.get("expiresAt"))
    return expires_at is not None and expires_at <= now


def apply_health_expiry(context: Mapping[str, Any], now: datetime) -> dict[str, Any]:
    """HealthExpiry: reset health to the baseline if it has expired.

    Returns a new document in both cases.
    """
    if not is_health_expired(context.get("health"), now):
        return deepcopy(dict(context))
    return deep_merge(context, {"health": healthy_baseline()})


def health_onset(
    health: Mapping[str, Any],
    message: str,
    now: datetime,
    illness_days: int = HEALTH_ILLNESS_DAYS_DEFAULT,
) -> dict[str, Any]:
    """HealthOnset: health fields for a newly reported illness."""
    return {
        "activeIllness": HEALTH_ILLNESS_LABEL,
        "symptoms": [*(health.get("symptoms") or []), message],
        "startedAt": format_timestamp(now),
        "expiresAt": format_timestamp(now + timedelta(days=illness_days)),
        "currentCondition": HealthCondition.SICK.value,
    }


def evaluate_health_turn(
    health: Mapping[str, Any],
    signals: TextSignals,
    message: str,
    now: datetime,
    illness_days: int = HEALTH_ILLNESS_DAYS_DEFAULT,
) -> dict[str, Any] | None:
    """Decide the health transition for one inbound message.

    ``health`` must already have been through HealthExpiry. Both checks look
    at that same starting state, so at most one transition happens:
    - illness active and recovery reported: manual reset
    - no illness active and illness reported: onset
    - otherwise: no change

    Returns:
        Partial health fields to merge, or None when nothing changes
    """
    if health.get("activeIllness"):
        if signals.recovery:
            return healthy_baseline()
        return None
    if signals.illness:
        return health_onset(health, message, now, illness_days)
    return None


# =============================================================================
# Finance & Events budget
# =============================================================================


def events_budget_for_balance(balance: float) -> float:
    """clamp(0, 5000, balance * 0.2)"""
    budget = round(balance * EVENTS_BUDGET_BALANCE_RATIO, 2)
    return min(EVENTS_BUDGET_MAX, max(EVENTS_BUDGET_MIN, budget))


def apply_events_budget(
    context: Mapping[str, Any],
    update: Mapping[str, Any],
) -> dict[str, Any]:
    """EventsBudgetDerivation: re-derive budgetRange.max when the update sets totalBalance."""
    if not touches(update, "finance", "totalBalance"):
        return deepcopy(dict(context))
    balance = update["finance"]["totalBalance"] or 0
    return deep_merge(
        context,
        {"preferences": {"events": {"budgetRange": {"max": events_budget_for_balance(balance)}}}},
    )


def prepend_transaction(
    transactions: list[dict[str, Any]] | None,
    entry: Mapping[str, Any],
    limit: int = TRANSACTIONS_RECENT_COUNT_MAX,
) -> list[dict[str, Any]]:
    """TransactionCap: newest first, oldest evicted beyond ``limit``."""
    assert limit > 0, "limit must be positive"
    return [dict(entry), *(transactions or [])][:limit]


def clamped_balance(balance: float | None, cost: float) -> float:
    """Balance after paying ``cost``, never below zero.

    Used by every expense path so the balance policy is uniform.
    """
    return max(0, (balance or 0) - cost)


def event_expense_update(
    context: Mapping[str, Any],
    event: AttendedEvent,
    now: datetime,
) -> dict[str, Any]:
    """EventExpenseClamp: partial update recording an attended event.

    Appends the event to eventsHistory.attended and an entertainment expense
    to finance.expenses, and pays the cost from totalBalance (clamped at 0).
    """
    history = context.get("eventsHistory") or {}
    finance = context.get("finance") or {}
    timestamp = format_timestamp(now)
    expense = Expense(
        type="entertainment",
        amount=event.cost,
        description=f"Event: {event.name}",
        date=timestamp,
    )
    return {
        "eventsHistory": {
            "attended": [*(history.get("attended") or []), event.model_dump(mode="json", by_alias=True)],
            "budgetSpent": (history.get("budgetSpent") or 0) + event.cost,
            "lastEventDate": timestamp,
        },
        "finance": {
            "totalBalance": clamped_balance(finance.get("totalBalance"), event.cost),
            "expenses": [*(finance.get("expenses") or []), expense.model_dump(mode="json", by_alias=True)],
        },
    }


# =============================================================================
# Write pipeline
# =============================================================================


def apply_update(
    current: Mapping[str, Any],
    update: Mapping[str, Any],
    now: datetime,
) -> dict[str, Any]:
    """Fold a partial update into the current document with every rule applied.

    Order:
    1. HealthExpiry on the current document
    2. Deep merge of the update
    3. EventsBudgetDerivation (only if the update sets finance.totalBalance)
    4. HealthExpiry on the result, in case the update itself carries an
       expired illness
    """
    context = apply_health_expiry(current, now)
    context = deep_merge(context, update)
    context = apply_events_budget(context, update)
    return apply_health_expiry(context, now)


def validate_update(update: Mapping[str, Any]) -> None:
    """Reject partial updates that would break the document shape.

    Every top-level section must stay an object, and finance.totalBalance
    must stay a number (or null) so the events budget can be derived.

    Raises:
        ContextValidationError: On the first offending key
    """
    for key in CONTEXT_SECTIONS:
        if key in update and not isinstance(update[key], Mapping):
            raise ContextValidationError(f"{key} must be a JSON object")

    if touches(update, "finance", "totalBalance"):
        balance = update["finance"]["totalBalance"]
        if balance is not None and (isinstance(balance, bool) or not isinstance(balance, (int, float))):
            raise ContextValidationError("finance.totalBalance must be a number")
