"""
Milestone progress classification.

A milestone is a target net worth with an optional target month. Given a
projected trajectory, this module works out when the target is reached (the
ETA) and whether the milestone is ahead, on track, or behind.
"""

from typing import List, Literal, Optional, Sequence

import numpy as np
from pydantic import BaseModel, Field

from .exceptions import InvalidMilestone
from .formatting import CurrencyFormatter
from .period import Period
from .projection import ProjectionPoint

MilestoneStatus = Literal["ahead", "on_track", "behind"]


class Milestone(BaseModel):
    """A financial target tracked against a projection."""

    id: str = Field(..., min_length=1, description="Milestone identifier")
    label: str = Field(..., min_length=1, description="Display label")
    target_value: float = Field(..., description="Target net worth")
    current_value: float = Field(default=0.0, description="Current net worth")
    target_date: Optional[Period] = Field(
        default=None, description="Month the target should be reached by"
    )
    start_date: Optional[Period] = Field(
        default=None, description="Month tracking started"
    )


class ClassificationPolicy(BaseModel):
    """Thresholds for pace-based classification."""

    pace_tolerance_percent: float = Field(
        default=5.0,
        ge=0,
        description="Percentage points ahead/behind pace before status changes",
    )


class MilestoneProgress(BaseModel):
    """Classification result for one milestone."""

    milestone_id: str
    label: str
    target_value: float
    current_value: float
    target_date: Optional[Period] = None
    progress_percent: float = Field(..., ge=0, le=100)
    remaining: float = Field(..., ge=0)
    eta_months: Optional[int] = None
    eta_date: Optional[Period] = None
    status: MilestoneStatus
    status_message: str


def find_eta_point(
    trajectory: Sequence[ProjectionPoint], target_value: float
) -> Optional[ProjectionPoint]:
    """Get the first point whose net worth is at or above the target."""
    for point in sorted(trajectory, key=lambda p: p.month_index):
        if point.net_worth >= target_value:
            return point
    return None


def expected_pace_percent(start: Period, now: Period, eta: Period) -> Optional[float]:
    """
    Progress expected by ``now`` if value grew linearly from ``start`` to
    ``eta``.

    Returns:
        Expected progress in percent (0-100), or None if the span is empty
    """
    total = start.months_until(eta)
    if total <= 0:
        return None
    elapsed = start.months_until(now)
    return float(np.clip(elapsed / total * 100, 0, 100))


def _classify_against_target_date(
    eta_date: Optional[Period], target_date: Period
) -> MilestoneStatus:
    if eta_date is None or eta_date > target_date:
        return "behind"
    if eta_date < target_date:
        return "ahead"
    return "on_track"


def _classify_against_pace(
    progress_ratio: float,
    eta_date: Optional[Period],
    start_date: Optional[Period],
    now: Period,
    policy: ClassificationPolicy,
) -> MilestoneStatus:
    if eta_date is None:
        return "behind"
    if start_date is None:
        return "on_track"

    pace = expected_pace_percent(start_date, now, eta_date)
    if pace is None:
        return "on_track"

    tolerance = policy.pace_tolerance_percent
    if progress_ratio - pace >= tolerance:
        return "ahead"
    if pace - progress_ratio >= tolerance:
        return "behind"
    return "on_track"


def _status_message(
    milestone: Milestone,
    status: MilestoneStatus,
    eta_date: Optional[Period],
    reached: bool,
    formatter: CurrencyFormatter,
) -> str:
    target = formatter.format_currency(milestone.target_value)
    if reached:
        return f"{milestone.label} reached: {target} target met"
    if eta_date is None:
        return f"{milestone.label} is not reached within the projection horizon"

    message = f"{milestone.label} projected to reach {target} in {eta_date}"
    if milestone.target_date is not None:
        if status == "ahead":
            message += f", ahead of the {milestone.target_date} target"
        elif status == "behind":
            message += f", after the {milestone.target_date} target"
        else:
            message += ", on track for the target month"
    return message


def classify_milestone(
    milestone: Milestone,
    trajectory: Sequence[ProjectionPoint],
    now: Period,
    policy: Optional[ClassificationPolicy] = None,
    formatter: Optional[CurrencyFormatter] = None,
) -> MilestoneProgress:
    """
    Classify a milestone against a projected trajectory.

    Args:
        milestone: The milestone to classify
        trajectory: Projection points starting one month after ``now``
        now: The month the trajectory starts from
        policy: Pace tolerance used when the milestone has no target date
        formatter: Currency formatter for the status message

    Returns:
        Progress, ETA and status for the milestone

    Raises:
        InvalidMilestone: If the target is negative or values are non-finite
    """
    policy = policy or ClassificationPolicy()
    formatter = formatter or CurrencyFormatter()

    target = milestone.target_value
    current = milestone.current_value
    if not np.isfinite(target) or not np.isfinite(current):
        raise InvalidMilestone(f"Milestone '{milestone.id}' values must be finite")
    if target < 0:
        raise InvalidMilestone(
            f"Milestone '{milestone.id}' target value must be zero or greater"
        )

    if target == 0:
        progress_ratio = 100.0
    else:
        progress_ratio = current / target * 100

    reached = progress_ratio >= 100
    if reached:
        eta_months: Optional[int] = 0
        eta_date: Optional[Period] = now
        status: MilestoneStatus = "ahead"
    else:
        eta_point = find_eta_point(trajectory, target)
        eta_months = eta_point.month_index if eta_point is not None else None
        eta_date = now.add_months(eta_months) if eta_months is not None else None

        if milestone.target_date is not None:
            status = _classify_against_target_date(eta_date, milestone.target_date)
        else:
            status = _classify_against_pace(
                progress_ratio, eta_date, milestone.start_date, now, policy
            )

    return MilestoneProgress(
        milestone_id=milestone.id,
        label=milestone.label,
        target_value=target,
        current_value=current,
        target_date=milestone.target_date,
        progress_percent=float(np.clip(progress_ratio, 0, 100)),
        remaining=max(0.0, target - current),
        eta_months=eta_months,
        eta_date=eta_date,
        status=status,
        status_message=_status_message(
            milestone, status, eta_date, reached, formatter
        ),
    )


def classify_milestones(
    milestones: Sequence[Milestone],
    trajectory: Sequence[ProjectionPoint],
    now: Period,
    policy: Optional[ClassificationPolicy] = None,
) -> List[MilestoneProgress]:
    """Classify several milestones against one trajectory."""
    return [
        classify_milestone(milestone, trajectory, now, policy)
        for milestone in milestones
    ]
