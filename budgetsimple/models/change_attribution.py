"""
Month-over-month change attribution.

Given categorized transactions, this module totals spending per category for
a month and its comparison month and ranks the categories by how much they
moved. Income is collapsed into a single ``"Income"`` line regardless of the
source category, and amounts are normalized by transaction type rather than
by sign, so both sign conventions for expenses give the same totals.
"""

import datetime
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Literal, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from .period import Period

logger = logging.getLogger(__name__)

INCOME_CATEGORY = "Income"
UNCATEGORIZED = "Uncategorized"

TransactionType = Literal["income", "expense"]


def _truncate_timestamp(value):
    """ISO timestamps count toward the calendar day they start with."""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10 and value[10] in "T ":
        return value[:10]
    return value


class TransactionRecord(BaseModel):
    """A single categorized transaction."""

    date: datetime.date = Field(
        ...,
        validation_alias=AliasChoices("date", "dateISO", "date_iso"),
        description="Transaction date",
    )
    amount: float = Field(..., allow_inf_nan=False, description="Signed amount")
    category: str = Field(default=UNCATEGORIZED, description="Category label")
    type: Optional[TransactionType] = Field(
        default=None, description="income or expense (inferred from sign if absent)"
    )

    @field_validator("date", mode="before")
    @classmethod
    def truncate_timestamp(cls, v):
        return _truncate_timestamp(v)

    @field_validator("category", mode="before")
    @classmethod
    def default_category(cls, v):
        """Blank or missing categories are grouped as Uncategorized."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return UNCATEGORIZED
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def infer_type(self):
        if self.type is None:
            self.type = "income" if self.amount >= 0 else "expense"
        return self


class IncomeRecord(BaseModel):
    """An income entry kept apart from the transaction ledger."""

    id: Optional[str] = None
    date: datetime.date = Field(
        ...,
        validation_alias=AliasChoices("dateISO", "date", "date_iso"),
        description="Date the income was received",
    )
    amount: float = Field(..., allow_inf_nan=False)
    source: Optional[str] = Field(default=None, description="Employer, client, ...")

    @field_validator("date", mode="before")
    @classmethod
    def truncate_timestamp(cls, v):
        return _truncate_timestamp(v)

    def as_transaction(self) -> TransactionRecord:
        """Income entries always count as income, whatever their sign."""
        return TransactionRecord(
            date=self.date,
            amount=self.amount,
            category=self.source or INCOME_CATEGORY,
            type="income",
        )


class CategoryChange(BaseModel):
    """Change in one category between two months."""

    category: str
    kind: TransactionType
    current_total: float
    previous_total: float
    delta: float
    percent_change: Optional[float] = None


class ChangeTotals(BaseModel):
    """Income and expense totals for both months."""

    income: CategoryChange
    expenses: CategoryChange


class WhatChangedResult(BaseModel):
    """Ranked category changes between two months."""

    month: Period
    previous_month: Period
    top_changes: List[CategoryChange]
    categories: List[CategoryChange]
    totals: ChangeTotals
    has_current_data: bool
    has_previous_data: bool


def _resolve_period(value: Union[Period, str]) -> Period:
    if isinstance(value, Period):
        return value
    return Period.parse(value)


def _aggregate(
    transactions: Iterable[TransactionRecord], month: Period
) -> Dict[Tuple[str, TransactionType], float]:
    """Sum absolute amounts per category for one month."""
    totals: Dict[Tuple[str, TransactionType], float] = defaultdict(float)
    for tx in transactions:
        if not month.contains(tx.date):
            continue
        if tx.type == "income":
            totals[(INCOME_CATEGORY, "income")] += abs(tx.amount)
        else:
            totals[(tx.category, "expense")] += abs(tx.amount)
    return totals


def compute_change(
    category: str, kind: TransactionType, current: float, previous: float
) -> CategoryChange:
    """
    Build a change record.

    ``percent_change`` is only reported against a non-zero previous total.
    """
    delta = current - previous
    percent_change = delta / previous * 100 if previous != 0 else None
    return CategoryChange(
        category=category,
        kind=kind,
        current_total=current,
        previous_total=previous,
        delta=delta,
        percent_change=percent_change,
    )


def rank_changes(changes: Iterable[CategoryChange]) -> List[CategoryChange]:
    """Sort by absolute delta descending, then category name, then kind."""
    return sorted(changes, key=lambda c: (-abs(c.delta), c.category, c.kind))


def _sum_kind(
    totals: Dict[Tuple[str, TransactionType], float], kind: TransactionType
) -> float:
    return sum(amount for (_, k), amount in totals.items() if k == kind)


def compute_what_changed(
    transactions: Iterable[TransactionRecord],
    month: Union[Period, str],
    previous_month: Optional[Union[Period, str]] = None,
) -> WhatChangedResult:
    """
    Compute per-category changes between a month and its comparison month.

    Args:
        transactions: Transactions from any months; those outside the two
            compared months are ignored
        month: The month to explain, as a period or ``YYYY-MM``
        previous_month: The comparison month (defaults to the month before)

    Returns:
        The full ranked list of category changes, every expense category
        seen in either month, and income/expense totals

    Raises:
        InvalidPeriodFormat: If a month token is not ``YYYY-MM``
    """
    current_period = _resolve_period(month)
    if previous_month is None:
        previous_period = current_period.previous()
    else:
        previous_period = _resolve_period(previous_month)

    transactions = list(transactions)
    current = _aggregate(transactions, current_period)
    previous = _aggregate(transactions, previous_period)

    changes = []
    for key in set(current) | set(previous):
        current_total = current.get(key, 0.0)
        previous_total = previous.get(key, 0.0)
        if current_total == 0 and previous_total == 0:
            continue
        category, kind = key
        changes.append(compute_change(category, kind, current_total, previous_total))

    top_changes = rank_changes(changes)

    # Every expense category seen in either month, even if it netted to zero
    categories = []
    for category, kind in sorted(set(current) | set(previous)):
        if kind != "expense":
            continue
        key = (category, kind)
        categories.append(
            compute_change(category, kind, current.get(key, 0.0), previous.get(key, 0.0))
        )

    totals = ChangeTotals(
        income=compute_change(
            INCOME_CATEGORY,
            "income",
            _sum_kind(current, "income"),
            _sum_kind(previous, "income"),
        ),
        expenses=compute_change(
            "Total Expenses",
            "expense",
            _sum_kind(current, "expense"),
            _sum_kind(previous, "expense"),
        ),
    )

    logger.debug(
        "Attributed %d category changes for %s vs %s",
        len(top_changes),
        current_period,
        previous_period,
    )

    return WhatChangedResult(
        month=current_period,
        previous_month=previous_period,
        top_changes=top_changes,
        categories=categories,
        totals=totals,
        has_current_data=bool(current),
        has_previous_data=bool(previous),
    )
