"""
Net worth projection engine.

This module projects a starting balance forward month by month under a
compounding annual return and a fixed monthly contribution:

    NW(t) = NW(t-1) * (1 + r) + C

where ``r`` is the effective monthly rate equivalent to the annual return
under geometric compounding. All arithmetic is done in double precision and
nothing is rounded here; rounding for display happens at the edges.
"""

import logging
from numbers import Integral
from typing import List, Optional

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field

from .exceptions import InvalidAssumptions

logger = logging.getLogger(__name__)

# Bounds that keep compounded values finite over the longest horizon
MAX_ANNUAL_RETURN_PERCENT = 1000.0
MAX_HORIZON_MONTHS = 1200
# 11^100 (1000% over 100 years) is ~1.4e104, so 1e150 stays below ~1e255
MAX_ABS_AMOUNT = 1e150


class ProjectionAssumptions(BaseModel):
    """Growth assumptions for a projection."""

    model_config = ConfigDict(frozen=True)

    annual_return_percent: float = Field(
        default=0.0, description="Expected annual return in percent (7 = 7%)"
    )
    monthly_contribution: float = Field(
        default=0.0, description="Amount added at the end of every month"
    )
    horizon_months: int = Field(
        ..., description="Maximum number of months a projection may extend"
    )

    @property
    def monthly_return(self) -> float:
        """Effective monthly return as a decimal."""
        return calculate_monthly_return(self.annual_return_percent)

    @property
    def monthly_return_percent(self) -> float:
        """Effective monthly return in percent."""
        return self.monthly_return * 100


class ProjectionPoint(BaseModel):
    """Net worth at the end of one projected month."""

    model_config = ConfigDict(frozen=True)

    month_index: int = Field(..., ge=1, description="Months elapsed (1-based)")
    net_worth: float = Field(..., description="Projected net worth")
    contributions: float = Field(..., description="Cumulative contributions")
    growth: float = Field(..., description="Cumulative growth from compounding")


class ProjectionCurve(BaseModel):
    """A labelled projection under one set of assumptions."""

    model_config = ConfigDict(frozen=True)

    label: str
    assumptions: ProjectionAssumptions
    points: List[ProjectionPoint]


class ContributionSensitivity(BaseModel):
    """How the milestone ETA moves when the monthly contribution changes."""

    contribution_delta: float
    base_eta_months: Optional[int] = None
    new_eta_months: Optional[int] = None
    months_earlier: Optional[int] = None


def calculate_monthly_return(annual_return_percent: float) -> float:
    """
    Convert an annual return to the equivalent monthly compounding rate.

    Args:
        annual_return_percent: Annual return in percent

    Returns:
        Monthly return as a decimal, ``(1 + a/100)^(1/12) - 1``
    """
    return (1 + annual_return_percent / 100) ** (1 / 12) - 1


def validate_assumptions(assumptions: ProjectionAssumptions) -> None:
    """
    Validate projection assumptions.

    Raises:
        InvalidAssumptions: If the return is non-finite or at/below -100%,
            the contribution is negative or too large, or the horizon is
            out of range
    """
    annual = assumptions.annual_return_percent
    if not np.isfinite(annual):
        raise InvalidAssumptions("annual return must be a finite number")
    if annual <= -100:
        raise InvalidAssumptions("annual return must be greater than -100%")
    if annual > MAX_ANNUAL_RETURN_PERCENT:
        raise InvalidAssumptions(
            f"annual return must not exceed {MAX_ANNUAL_RETURN_PERCENT:g}%"
        )

    contribution = assumptions.monthly_contribution
    if not np.isfinite(contribution):
        raise InvalidAssumptions("monthly contribution must be a finite number")
    if contribution < 0:
        raise InvalidAssumptions("monthly contribution must be zero or greater")
    if contribution > MAX_ABS_AMOUNT:
        raise InvalidAssumptions(
            f"monthly contribution must not exceed {MAX_ABS_AMOUNT:g}"
        )

    if not 1 <= assumptions.horizon_months <= MAX_HORIZON_MONTHS:
        raise InvalidAssumptions(
            f"horizon must be between 1 and {MAX_HORIZON_MONTHS} months"
        )


def _validate_months(months: int) -> int:
    if isinstance(months, bool) or not isinstance(months, Integral):
        raise InvalidAssumptions("months must be a positive integer")
    if months < 1:
        raise InvalidAssumptions("months must be a positive integer")
    return int(months)


def _validate_start(start: float) -> float:
    start = float(start)
    if not np.isfinite(start):
        raise InvalidAssumptions("starting value must be a finite number")
    if abs(start) > MAX_ABS_AMOUNT:
        raise InvalidAssumptions(
            f"starting value must not exceed {MAX_ABS_AMOUNT:g} in magnitude"
        )
    return start


def _simulate_balances(
    start: float, monthly_return: float, contribution: float, periods: int
) -> NDArray[np.float64]:
    """Month-end balances for months 1..periods."""
    balances = np.empty(periods, dtype=np.float64)
    net_worth = start
    for i in range(periods):
        net_worth = net_worth * (1 + monthly_return) + contribution
        balances[i] = net_worth
    return balances


def compute_projection(
    start: float,
    assumptions: ProjectionAssumptions,
    months: int,
) -> List[ProjectionPoint]:
    """
    Project net worth month by month.

    The returned sequence is clamped to ``assumptions.horizon_months``; months
    beyond the horizon are never computed.

    Args:
        start: Starting balance (the amount that compounds)
        assumptions: Return, contribution and horizon
        months: Number of points requested

    Returns:
        One point per month, starting after the first month

    Raises:
        InvalidAssumptions: If any input is out of domain
    """
    validate_assumptions(assumptions)
    months = _validate_months(months)
    start = _validate_start(start)

    periods = min(months, assumptions.horizon_months)
    monthly_return = assumptions.monthly_return
    contribution = assumptions.monthly_contribution

    balances = _simulate_balances(start, monthly_return, contribution, periods)

    points = []
    previous = start
    total_growth = 0.0
    for i, net_worth in enumerate(balances, start=1):
        total_growth += previous * monthly_return
        points.append(
            ProjectionPoint(
                month_index=i,
                net_worth=float(net_worth),
                contributions=contribution * i,
                growth=total_growth,
            )
        )
        previous = float(net_worth)

    logger.debug(
        "Projected %d of %d requested months at %.4f%% monthly",
        periods,
        months,
        monthly_return * 100,
    )
    return points


def find_eta_month(
    start: float, assumptions: ProjectionAssumptions, target_value: float
) -> Optional[int]:
    """
    Find the first month at which the projection reaches a target.

    Returns:
        0 if the start already meets the target, the 1-based month index of
        the first point at or above the target, or None if it is not reached
        within the horizon
    """
    validate_assumptions(assumptions)
    start = _validate_start(start)
    if start >= target_value:
        return 0

    balances = _simulate_balances(
        start,
        assumptions.monthly_return,
        assumptions.monthly_contribution,
        assumptions.horizon_months,
    )
    hits = np.flatnonzero(balances >= target_value)
    if hits.size == 0:
        return None
    return int(hits[0]) + 1


def calculate_required_contribution(
    start: float,
    target_value: float,
    months: int,
    annual_return_percent: float,
) -> float:
    """
    Calculate the monthly contribution needed to reach a target in time.

    Solves ``start * g^n + C * sum(g^k, k < n) = target`` for ``C`` and rounds
    up to a whole currency unit.

    Args:
        start: Starting balance
        target_value: Target net worth
        months: Months available to reach the target
        annual_return_percent: Expected annual return in percent

    Returns:
        Required monthly contribution (0 if growth alone reaches the target)
    """
    months = _validate_months(months)
    start = _validate_start(start)
    validate_assumptions(
        ProjectionAssumptions(
            annual_return_percent=annual_return_percent,
            horizon_months=months,
        )
    )
    if not np.isfinite(target_value):
        raise InvalidAssumptions("target value must be a finite number")
    if target_value <= start:
        return 0.0

    growth_factor = 1 + calculate_monthly_return(annual_return_percent)
    grown_start = start * growth_factor**months
    annuity_factor = float(np.sum(growth_factor ** np.arange(months)))

    required = (target_value - grown_start) / annuity_factor
    if required <= 0:
        return 0.0
    # Round first so float noise does not push an exact amount up a unit
    return float(np.ceil(np.round(required, 6)))


def calculate_sensitivity(
    start: float,
    assumptions: ProjectionAssumptions,
    target_value: float,
    contribution_delta: float,
) -> ContributionSensitivity:
    """
    Calculate how many months earlier a target is reached with a different
    monthly contribution.

    Args:
        start: Starting balance
        assumptions: Base assumptions
        target_value: Target net worth
        contribution_delta: Change to the monthly contribution

    Returns:
        Base and new ETA in months and the difference when both are reachable
    """
    base_eta = find_eta_month(start, assumptions, target_value)

    modified = assumptions.model_copy(
        update={
            "monthly_contribution": assumptions.monthly_contribution
            + contribution_delta
        }
    )
    new_eta = find_eta_month(start, modified, target_value)

    months_earlier = None
    if base_eta is not None and new_eta is not None:
        months_earlier = base_eta - new_eta

    return ContributionSensitivity(
        contribution_delta=contribution_delta,
        base_eta_months=base_eta,
        new_eta_months=new_eta,
        months_earlier=months_earlier,
    )


def generate_projection_curves(
    start: float,
    assumptions: ProjectionAssumptions,
    months: int,
    spread_percent: float = 2.0,
) -> List[ProjectionCurve]:
    """
    Generate base, conservative and aggressive projection curves.

    The conservative and aggressive curves shift the annual return down and
    up by ``spread_percent`` points. The conservative return never drops to
    -100% or below.
    """
    if not np.isfinite(spread_percent) or spread_percent < 0:
        raise InvalidAssumptions("spread must be a non-negative number")

    annual = assumptions.annual_return_percent
    scenarios = [
        ("Base", annual),
        ("Conservative", max(annual - spread_percent, -99.0)),
        ("Aggressive", annual + spread_percent),
    ]

    curves = []
    for label, annual_return in scenarios:
        scenario = assumptions.model_copy(
            update={"annual_return_percent": annual_return}
        )
        curves.append(
            ProjectionCurve(
                label=label,
                assumptions=scenario,
                points=compute_projection(start, scenario, months),
            )
        )
    return curves


class ProjectionEngine:
    """Projects net worth under a fixed set of assumptions."""

    def __init__(self, assumptions: ProjectionAssumptions):
        """Initialize the engine.

        Args:
            assumptions: Return, contribution and horizon to project with

        Raises:
            InvalidAssumptions: If the assumptions are out of domain
        """
        validate_assumptions(assumptions)
        self.assumptions = assumptions

    @property
    def monthly_return_percent(self) -> float:
        return self.assumptions.monthly_return_percent

    def project(self, start: float = 0.0, months: Optional[int] = None) -> List[ProjectionPoint]:
        """Project ``months`` months (defaults to the full horizon)."""
        if months is None:
            months = self.assumptions.horizon_months
        return compute_projection(start, self.assumptions, months)

    def eta(self, start: float, target_value: float) -> Optional[int]:
        """Months until ``target_value`` is reached, or None."""
        return find_eta_month(start, self.assumptions, target_value)

    def required_contribution(
        self, start: float, target_value: float, months: int
    ) -> float:
        """Monthly contribution needed to reach ``target_value`` in ``months``."""
        return calculate_required_contribution(
            start, target_value, months, self.assumptions.annual_return_percent
        )

    def sensitivity(
        self, start: float, target_value: float, contribution_delta: float
    ) -> ContributionSensitivity:
        return calculate_sensitivity(
            start, self.assumptions, target_value, contribution_delta
        )

    def curves(
        self,
        start: float = 0.0,
        months: Optional[int] = None,
        spread_percent: float = 2.0,
    ) -> List[ProjectionCurve]:
        if months is None:
            months = self.assumptions.horizon_months
        return generate_projection_curves(
            start, self.assumptions, months, spread_percent
        )
