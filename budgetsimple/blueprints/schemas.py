"""Pydantic schemas for API request validation."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from budgetsimple.models.change_attribution import IncomeRecord, TransactionRecord

DEFAULT_MILESTONE_HORIZON_MONTHS = 360


class RequestSchema(BaseModel):
    """Base for request bodies and query strings (camelCase on the wire)."""

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", allow_inf_nan=False
    )


class ProjectionQuery(RequestSchema):
    """Query string for GET /api/milestones/projection"""

    months: int = Field(..., description="Number of monthly points requested")
    annual_return: Optional[float] = Field(
        default=None, alias="annualReturn", description="Annual return in percent"
    )
    monthly_contribution: float = Field(default=0.0, alias="monthlyContribution")
    horizon_months: Optional[int] = Field(
        default=None, alias="horizonMonths", description="Defaults to months"
    )
    current_net_worth: float = Field(default=0.0, alias="currentNetWorth")
    now: Optional[str] = Field(
        default=None, description="Month the projection starts from (YYYY-MM)"
    )
    spread: Optional[float] = Field(
        default=None, description="Return spread for scenario curves, in points"
    )


class AssumptionsPayload(RequestSchema):
    """Projection assumptions in a request body."""

    annual_return: Optional[float] = Field(default=None, alias="annualReturn")
    monthly_contribution: float = Field(default=0.0, alias="monthlyContribution")
    horizon_months: int = Field(
        default=DEFAULT_MILESTONE_HORIZON_MONTHS, alias="horizonMonths"
    )


class MilestonePayload(RequestSchema):
    """A milestone to classify."""

    id: str = Field(..., min_length=1)
    label: str = Field(..., min_length=1)
    target_value: float = Field(..., alias="targetValue")
    target_date: Optional[str] = Field(default=None, alias="targetDate")
    start_date: Optional[str] = Field(default=None, alias="startDate")


class MilestoneProgressRequest(RequestSchema):
    """Request body for POST /api/milestones/progress"""

    current_net_worth: float = Field(default=0.0, alias="currentNetWorth")
    now: Optional[str] = None
    assumptions: AssumptionsPayload = Field(default_factory=AssumptionsPayload)
    milestones: List[MilestonePayload] = Field(default_factory=list)


class LeversRequest(RequestSchema):
    """Request body for POST /api/milestones/levers"""

    current_net_worth: float = Field(default=0.0, alias="currentNetWorth")
    target_value: float = Field(..., alias="targetValue")
    target_date: Optional[str] = Field(default=None, alias="targetDate")
    now: Optional[str] = None
    annual_return: Optional[float] = Field(default=None, alias="annualReturn")
    monthly_contribution: float = Field(default=0.0, alias="monthlyContribution")
    horizon_months: int = Field(
        default=DEFAULT_MILESTONE_HORIZON_MONTHS, alias="horizonMonths"
    )
    contribution_delta: float = Field(default=100.0, alias="contributionDelta")


class WhatChangedRequest(RequestSchema):
    """Request body for POST /api/cashflow/what-changed"""

    month: str = Field(..., description="Month to explain (YYYY-MM)")
    previous_month: Optional[str] = Field(
        default=None, alias="previousMonth", description="Comparison month (YYYY-MM)"
    )
    transactions: List[TransactionRecord] = Field(default_factory=list)
    income: List[IncomeRecord] = Field(
        default_factory=list, description="Income entries tracked outside the ledger"
    )
    limit: Optional[int] = Field(
        default=None, ge=1, description="Maximum number of changes to return"
    )
