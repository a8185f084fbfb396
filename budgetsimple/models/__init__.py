"""Projection and change-attribution engine models."""

from .change_attribution import (
    CategoryChange,
    ChangeTotals,
    IncomeRecord,
    TransactionRecord,
    WhatChangedResult,
    compute_what_changed,
)
from .exceptions import (
    EngineError,
    InvalidAssumptions,
    InvalidMilestone,
    InvalidPeriodFormat,
)
from .milestone import (
    ClassificationPolicy,
    Milestone,
    MilestoneProgress,
    classify_milestone,
    classify_milestones,
)
from .period import Period
from .projection import (
    ContributionSensitivity,
    ProjectionAssumptions,
    ProjectionCurve,
    ProjectionEngine,
    ProjectionPoint,
    calculate_monthly_return,
    calculate_required_contribution,
    calculate_sensitivity,
    compute_projection,
    generate_projection_curves,
)

__all__ = [
    "Period",
    "EngineError",
    "InvalidAssumptions",
    "InvalidMilestone",
    "InvalidPeriodFormat",
    "ProjectionAssumptions",
    "ProjectionPoint",
    "ProjectionCurve",
    "ProjectionEngine",
    "ContributionSensitivity",
    "calculate_monthly_return",
    "calculate_required_contribution",
    "calculate_sensitivity",
    "compute_projection",
    "generate_projection_curves",
    "Milestone",
    "MilestoneProgress",
    "ClassificationPolicy",
    "classify_milestone",
    "classify_milestones",
    "TransactionRecord",
    "IncomeRecord",
    "CategoryChange",
    "ChangeTotals",
    "WhatChangedResult",
    "compute_what_changed",
]
