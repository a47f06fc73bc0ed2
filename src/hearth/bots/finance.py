"""
Finance Bot

Reads income, balance and expense amounts out of chat messages and keeps
finance.totalBalance, finance.monthlyIncome and the recent-transactions list
up to date. Every balance change goes through the shared write pipeline, so
the events budget follows along.
"""

import logging
import math
from typing import Any

from hearth.bots.base import BaseBot, sub_tree
from hearth.bots.generation import ChatTurn, GenerationRequest
from hearth.bots.suggestions import append_unless_mentioned
from hearth.context.affordability import format_amount
from hearth.context.rules import clamped_balance, format_timestamp, prepend_transaction
from hearth.context.signals import TextSignals
from hearth.core.constants import (
    FINANCE_BALANCE_CRITICAL_MAX,
    FINANCE_BALANCE_MODERATE_MAX,
    TRANSACTION_DESCRIPTION_CHARS_MAX,
)
from hearth.core.errors import ContextValidationError
from hearth.core.models import AuthenticatedUser, FinancialHealth, Transaction, TransactionType

logger = logging.getLogger(__name__)

FINANCE_MARKERS = ("Commute Bot", "Events Bot", "Health Bot", "Recipes Bot")

SYSTEM_INSTRUCTION = """\
CRITICAL USER FINANCIAL CONTEXT:
- Current Balance: {cur}{balance}
- Monthly Income: {cur}{income}
- Recent Expenses: {transactions} transactions
- Budget Categories: {categories}
- Health Status: {illness}

FINANCE BOT CORE RESPONSIBILITIES:
1. Always reference the user's current balance of {cur}{balance}.
2. Split spending into needs (50-60%), wants (20-30%) and savings (20%).
3. Below {cur}5,000 focus on essential spending only. With a medical
   condition, prioritize health expenses.
4. Include concrete numbers and percentages, for example:
   Essentials {cur}{essentials}, Discretionary {cur}{discretionary}, Savings {cur}{savings}.
5. Suggest the Commute, Health, Events or Recipes bots when relevant.
"""

HEALTH_LABELS = {
    FinancialHealth.CRITICAL: "\n\n**Financial Alert**: Low balance ({amount}). Focus on essential spending only.",
    FinancialHealth.MODERATE: "\n\n**Budget Careful**: Moderate balance ({amount}). Limit discretionary spending.",
    FinancialHealth.HEALTHY: (
        "\n\n**Good Standing**: Healthy balance ({amount}). "
        "You can plan for some discretionary expenses."
    ),
}


def financial_health(balance: float) -> FinancialHealth:
    """critical below 1000, moderate below 5000, healthy otherwise."""
    if balance < FINANCE_BALANCE_CRITICAL_MAX:
        return FinancialHealth.CRITICAL
    if balance < FINANCE_BALANCE_MODERATE_MAX:
        return FinancialHealth.MODERATE
    return FinancialHealth.HEALTHY


def finance_update(
    finance: dict[str, Any],
    signals: TextSignals,
    message: str,
    timestamp: str,
) -> dict[str, Any]:
    """Partial finance update for the amounts found in one message.

    Applied in order: income adds to the balance, a stated balance replaces
    it, an expense is paid from it (never below zero) and recorded as the
    newest transaction.
    """
    update: dict[str, Any] = {}
    balance = finance.get("totalBalance") or 0

    if signals.income is not None:
        update["monthlyIncome"] = signals.income
        balance = balance + signals.income
    if signals.balance is not None:
        balance = signals.balance
    if signals.expense is not None:
        balance = clamped_balance(balance, signals.expense)
        entry = Transaction(
            type=TransactionType.EXPENSE,
            amount=signals.expense,
            category="healthcare" if signals.medical else "general",
            description=f"Expense: {message[:TRANSACTION_DESCRIPTION_CHARS_MAX]}...",
            date=timestamp,
        )
        update["recentTransactions"] = prepend_transaction(
            finance.get("recentTransactions"),
            entry.model_dump(mode="json", by_alias=True),
        )

    if signals.has_money:
        update["totalBalance"] = balance
    return update


class FinanceBot(BaseBot):
    """Budget chat that records income, balances and expenses."""

    name = "finance"
    interaction_field = "lastFinanceCheck"
    failure_error = "Failed to process request"

    async def chat(
        self,
        user: AuthenticatedUser,
        message: str,
        history: list[ChatTurn] | None = None,
    ) -> dict[str, Any]:
        if not message or not isinstance(message, str):
            raise ContextValidationError("Valid user message is required")

        signals = self._extractor.extract(message)
        now = self.now()

        def derive(context: dict[str, Any]) -> dict[str, Any]:
            update = self.interaction_stamp(now)
            finance = finance_update(
                dict(sub_tree(context, "finance")), signals, message, format_timestamp(now)
            )
            if finance:
                logger.info(f"Finance update for {user.id}: {sorted(finance)}")
                update["finance"] = finance
            return update

        result = await self.update_context(user.id, derive)
        context = result.context
        finance = sub_tree(context, "finance")
        balance = finance.get("totalBalance") or 0
        income = finance.get("monthlyIncome") or 0
        illness = sub_tree(context, "health").get("activeIllness")

        turns = list(history or [])
        if not turns or turns[0].role != "user":
            opener = (
                f"My current financial situation: Balance {self._money(balance)}, "
                f"Monthly income {self._money(income)}."
            )
            if illness:
                opener += f" I also have medical expenses for {illness}."
            turns.insert(0, ChatTurn(role="user", text=opener))

        request = GenerationRequest(
            system_instruction=self._system_instruction(finance, balance, income, illness),
            message=message,
            history=turns,
        )
        text = await self.generate(request)

        suggestions = self._annotator.finance(context, signals) if self._annotator else ""
        text = append_unless_mentioned(text, suggestions, FINANCE_MARKERS)
        health = financial_health(balance)
        text = append_unless_mentioned(
            text,
            HEALTH_LABELS[health].format(amount=self._money(balance)),
            ("Financial Alert", "Budget Careful", "Good Standing"),
        )

        return {
            "responseText": text,
            "financialContext": {
                "currentBalance": balance,
                "monthlyIncome": income,
                "financialHealth": health.value,
                "crossBotSuggestions": bool(suggestions),
            },
        }

    def _money(self, value: float) -> str:
        return f"{self._currency}{format_amount(value)}"

    def _system_instruction(
        self,
        finance: dict[str, Any],
        balance: float,
        income: float,
        illness: str | None,
    ) -> str:
        budget = finance.get("budget") or {}
        return SYSTEM_INSTRUCTION.format(
            cur=self._currency,
            balance=format_amount(balance),
            income=format_amount(income),
            transactions=len(finance.get("recentTransactions") or []),
            categories=", ".join(budget) if budget else "Not set",
            illness=illness or "Healthy",
            essentials=format_amount(math.floor(balance * 0.6)),
            discretionary=format_amount(math.floor(balance * 0.3)),
            savings=format_amount(math.floor(balance * 0.1)),
        )
