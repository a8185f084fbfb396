"""
Planning service for the projection and change-attribution endpoints.

This service turns validated request schemas into engine inputs, runs the
engine and shapes the result into the JSON payloads returned by the API.
The engines themselves stay free of request and configuration concerns.
"""

import logging
from typing import Any, Dict, List, Optional

from budgetsimple.blueprints.schemas import (
    LeversRequest,
    MilestoneProgressRequest,
    ProjectionQuery,
    WhatChangedRequest,
)
from budgetsimple.config import Settings, get_global_settings
from budgetsimple.models.change_attribution import (
    CategoryChange,
    compute_what_changed,
)
from budgetsimple.models.exceptions import InvalidAssumptions, InvalidPeriodFormat
from budgetsimple.models.milestone import (
    ClassificationPolicy,
    Milestone,
    MilestoneProgress,
    classify_milestones,
)
from budgetsimple.models.period import Period
from budgetsimple.models.projection import (
    ProjectionAssumptions,
    ProjectionEngine,
    ProjectionPoint,
)

logger = logging.getLogger(__name__)


def _parse_period(value: Optional[str], field: str) -> Optional[Period]:
    """Parse a strict YYYY-MM request field, naming the field on failure."""
    if value is None:
        return None
    try:
        return Period.parse(value)
    except InvalidPeriodFormat as e:
        raise InvalidPeriodFormat(f"{field} must be in YYYY-MM format") from e


def _parse_milestone_date(value: Optional[str], field: str) -> Optional[Period]:
    """Milestone dates accept YYYY-MM or a full ISO date."""
    if value is None or value == "":
        return None
    try:
        return Period.coerce(value)
    except InvalidPeriodFormat as e:
        raise InvalidPeriodFormat(
            f"{field} must be in YYYY-MM or YYYY-MM-DD format"
        ) from e


def serialize_point(point: ProjectionPoint, now: Period) -> Dict[str, Any]:
    return {
        "monthIndex": point.month_index,
        "date": str(now.add_months(point.month_index)),
        "netWorth": point.net_worth,
        "contributions": point.contributions,
        "growth": point.growth,
    }


def serialize_progress(progress: MilestoneProgress) -> Dict[str, Any]:
    return {
        "milestoneId": progress.milestone_id,
        "label": progress.label,
        "targetValue": progress.target_value,
        "currentValue": progress.current_value,
        "targetDate": str(progress.target_date) if progress.target_date else None,
        "progressPercent": progress.progress_percent,
        "remaining": progress.remaining,
        "etaMonths": progress.eta_months,
        "etaDate": str(progress.eta_date) if progress.eta_date else None,
        "status": progress.status,
        "statusMessage": progress.status_message,
    }


def serialize_change(change: CategoryChange) -> Dict[str, Any]:
    return {
        "category": change.category,
        "type": change.kind,
        "currentTotal": change.current_total,
        "previousTotal": change.previous_total,
        "delta": change.delta,
        "percentChange": change.percent_change,
    }


class PlanningService:
    """Service for running projection and change-attribution requests."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """Initialize the planning service.

        Args:
            settings: Application settings (defaults to the global settings)
        """
        self.settings = settings or get_global_settings()
        self.logger = logging.getLogger(__name__)

    def _annual_return(self, value: Optional[float]) -> float:
        if value is None:
            return self.settings.default_annual_return_percent
        return value

    def _build_assumptions(
        self,
        annual_return: Optional[float],
        monthly_contribution: float,
        horizon_months: int,
    ) -> ProjectionAssumptions:
        if horizon_months > self.settings.max_horizon_months:
            raise InvalidAssumptions(
                f"horizon must not exceed {self.settings.max_horizon_months} months"
            )
        return ProjectionAssumptions(
            annual_return_percent=self._annual_return(annual_return),
            monthly_contribution=monthly_contribution,
            horizon_months=horizon_months,
        )

    def _serialize_assumptions(
        self, assumptions: ProjectionAssumptions, current_net_worth: float
    ) -> Dict[str, Any]:
        return {
            "annualReturn": assumptions.annual_return_percent,
            "monthlyContribution": assumptions.monthly_contribution,
            "monthlyReturn": assumptions.monthly_return_percent,
            "horizonMonths": assumptions.horizon_months,
            "currentNetWorth": current_net_worth,
        }

    def _projection_engine(self, query: ProjectionQuery) -> ProjectionEngine:
        horizon = query.horizon_months if query.horizon_months is not None else query.months
        assumptions = self._build_assumptions(
            query.annual_return, query.monthly_contribution, horizon
        )
        return ProjectionEngine(assumptions)

    def project(self, query: ProjectionQuery) -> Dict[str, Any]:
        """Compute a net worth projection.

        Args:
            query: Validated projection query

        Returns:
            Dictionary with the projection points and effective assumptions
        """
        now = _parse_period(query.now, "now") or Period.current()
        engine = self._projection_engine(query)
        points = engine.project(query.current_net_worth, query.months)

        self.logger.info(
            f"Projected {len(points)} months "
            f"(requested {query.months}, horizon {engine.assumptions.horizon_months})"
        )

        return {
            "projection": [serialize_point(point, now) for point in points],
            "assumptions": self._serialize_assumptions(
                engine.assumptions, query.current_net_worth
            ),
        }

    def projection_curves(self, query: ProjectionQuery) -> Dict[str, Any]:
        """Compute base, conservative and aggressive projection curves."""
        now = _parse_period(query.now, "now") or Period.current()
        engine = self._projection_engine(query)
        spread = (
            query.spread
            if query.spread is not None
            else self.settings.scenario_spread_percent
        )
        curves = engine.curves(query.current_net_worth, query.months, spread)

        return {
            "curves": [
                {
                    "label": curve.label,
                    "annualReturn": curve.assumptions.annual_return_percent,
                    "projection": [serialize_point(p, now) for p in curve.points],
                }
                for curve in curves
            ],
            "assumptions": self._serialize_assumptions(
                engine.assumptions, query.current_net_worth
            ),
        }

    def milestone_progress(self, request: MilestoneProgressRequest) -> Dict[str, Any]:
        """Classify milestones against the projected trajectory.

        Args:
            request: Validated milestone progress request

        Returns:
            Dictionary with progress, ETA and status per milestone
        """
        now = _parse_period(request.now, "now") or Period.current()
        assumptions = self._build_assumptions(
            request.assumptions.annual_return,
            request.assumptions.monthly_contribution,
            request.assumptions.horizon_months,
        )
        engine = ProjectionEngine(assumptions)
        trajectory = engine.project(request.current_net_worth)

        milestones: List[Milestone] = [
            Milestone(
                id=payload.id,
                label=payload.label,
                target_value=payload.target_value,
                current_value=request.current_net_worth,
                target_date=_parse_milestone_date(payload.target_date, "targetDate"),
                start_date=_parse_milestone_date(payload.start_date, "startDate"),
            )
            for payload in request.milestones
        ]
        policy = ClassificationPolicy(
            pace_tolerance_percent=self.settings.pace_tolerance_percent
        )
        results = classify_milestones(milestones, trajectory, now, policy)

        self.logger.info(f"Classified {len(results)} milestones as of {now}")

        return {
            "milestones": [serialize_progress(progress) for progress in results],
            "assumptions": self._serialize_assumptions(
                assumptions, request.current_net_worth
            ),
        }

    def levers(self, request: LeversRequest) -> Dict[str, Any]:
        """Compute the contribution levers for a single target.

        Returns the contribution required to hit the target month (when
        given) and how a contribution change moves the ETA.
        """
        now = _parse_period(request.now, "now") or Period.current()
        target_date = _parse_milestone_date(request.target_date, "targetDate")
        assumptions = self._build_assumptions(
            request.annual_return,
            request.monthly_contribution,
            request.horizon_months,
        )
        engine = ProjectionEngine(assumptions)

        required_contribution = None
        if target_date is not None:
            months = max(1, now.months_until(target_date))
            required_contribution = engine.required_contribution(
                request.current_net_worth, request.target_value, months
            )

        sensitivity = engine.sensitivity(
            request.current_net_worth,
            request.target_value,
            request.contribution_delta,
        )

        def eta_date(months: Optional[int]) -> Optional[str]:
            return str(now.add_months(months)) if months is not None else None

        return {
            "requiredContribution": required_contribution,
            "sensitivity": {
                "contributionDelta": sensitivity.contribution_delta,
                "monthsEarlier": sensitivity.months_earlier,
                "baseEtaMonths": sensitivity.base_eta_months,
                "baseEta": eta_date(sensitivity.base_eta_months),
                "newEtaMonths": sensitivity.new_eta_months,
                "newEta": eta_date(sensitivity.new_eta_months),
            },
        }

    def what_changed(self, request: WhatChangedRequest) -> Dict[str, Any]:
        """Compute month-over-month category changes.

        Args:
            request: Validated what-changed request

        Returns:
            Dictionary with the ranked category changes, the per-category
            expense breakdown and totals
        """
        month = _parse_period(request.month, "month")
        previous_month = _parse_period(request.previous_month, "previousMonth")

        transactions = list(request.transactions)
        transactions.extend(item.as_transaction() for item in request.income)

        result = compute_what_changed(transactions, month, previous_month)

        top_changes = result.top_changes
        if request.limit is not None:
            top_changes = top_changes[: request.limit]

        self.logger.info(
            f"Computed {len(result.top_changes)} category changes "
            f"for {result.month} vs {result.previous_month}"
        )

        return {
            "month": str(result.month),
            "previousMonth": str(result.previous_month),
            "hasCurrentData": result.has_current_data,
            "hasPreviousData": result.has_previous_data,
            "totals": {
                "income": serialize_change(result.totals.income),
                "expenses": serialize_change(result.totals.expenses),
            },
            "topChanges": [serialize_change(change) for change in top_changes],
            "categories": [serialize_change(change) for change in result.categories],
        }
