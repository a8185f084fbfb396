"""
Tests for the net worth projection engine.

This module tests the monthly compounding conversion, the projection
recurrence, horizon clamping, input validation and the contribution levers.
"""

import math

import numpy as np
import pytest

from budgetsimple.models.exceptions import InvalidAssumptions
from budgetsimple.models.projection import (
    ProjectionAssumptions,
    ProjectionEngine,
    calculate_monthly_return,
    calculate_required_contribution,
    calculate_sensitivity,
    compute_projection,
    find_eta_month,
    generate_projection_curves,
)


class TestMonthlyReturn:
    """Test annual-to-monthly return conversion."""

    @pytest.mark.parametrize("annual", [-50.0, -5.0, 0.0, 3.5, 7.0, 10.0, 25.0])
    def test_monthly_return_compounds_to_annual(self, annual):
        """Test that twelve monthly periods compound back to the annual rate."""
        monthly = calculate_monthly_return(annual)
        assert (1 + monthly) ** 12 == pytest.approx(1 + annual / 100, rel=1e-12)

    def test_zero_return_is_exactly_zero(self):
        """Test that a zero annual return gives no growth."""
        assert calculate_monthly_return(0.0) == 0.0

    def test_monthly_return_percent_property(self):
        """Test the derived percent on the assumptions model."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=10.0, monthly_contribution=0.0, horizon_months=12
        )
        expected = (1.10 ** (1 / 12) - 1) * 100

        assert assumptions.monthly_return_percent == pytest.approx(expected)
        assert assumptions.monthly_return == pytest.approx(expected / 100)


class TestComputeProjection:
    """Test the month-by-month projection."""

    def test_first_two_points_with_zero_start(self):
        """Test the documented two-month example."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=10.0, monthly_contribution=200.0, horizon_months=2
        )
        r = 1.10 ** (1 / 12) - 1

        points = compute_projection(0.0, assumptions, 2)

        assert len(points) == 2
        assert points[0].month_index == 1
        assert points[0].net_worth == pytest.approx(200.0)
        assert points[1].month_index == 2
        assert points[1].net_worth == pytest.approx(200 * (1 + r) + 200)

    def test_starting_balance_compounds(self):
        """Test that the starting balance grows along with contributions."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=12.0, monthly_contribution=100.0, horizon_months=3
        )
        r = calculate_monthly_return(12.0)

        points = compute_projection(1000.0, assumptions, 3)

        expected = 1000.0
        for point in points:
            expected = expected * (1 + r) + 100
            assert point.net_worth == pytest.approx(expected, abs=1e-9)

    def test_horizon_clamps_requested_months(self):
        """Test that requesting more months than the horizon returns the horizon."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=7.0, monthly_contribution=50.0, horizon_months=6
        )

        points = compute_projection(0.0, assumptions, 12)

        assert len(points) == 6
        assert [p.month_index for p in points] == [1, 2, 3, 4, 5, 6]

    def test_fewer_months_than_horizon(self):
        """Test that the requested months are honored below the horizon."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=7.0, monthly_contribution=50.0, horizon_months=360
        )
        assert len(compute_projection(0.0, assumptions, 24)) == 24

    def test_zero_return_is_linear(self, zero_return_assumptions):
        """Test that a zero return only accumulates contributions."""
        points = compute_projection(500.0, zero_return_assumptions, 5)

        assert [p.net_worth for p in points] == [600.0, 700.0, 800.0, 900.0, 1000.0]
        assert all(p.growth == 0.0 for p in points)

    def test_negative_return_decays(self):
        """Test that a negative return shrinks the balance."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=-20.0, monthly_contribution=0.0, horizon_months=12
        )

        points = compute_projection(1000.0, assumptions, 12)

        assert points[0].net_worth < 1000.0
        assert points[-1].net_worth == pytest.approx(800.0)

    def test_contributions_and_growth_add_up(self):
        """Test the cumulative contribution and growth breakdown."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=8.0, monthly_contribution=250.0, horizon_months=36
        )
        start = 10000.0

        points = compute_projection(start, assumptions, 36)

        for point in points:
            assert point.contributions == pytest.approx(250.0 * point.month_index)
            assert point.net_worth == pytest.approx(
                start + point.contributions + point.growth
            )
        assert points[-1].growth > 0

    def test_no_rounding_mid_computation(self):
        """Test that values keep full precision."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=7.0, monthly_contribution=123.45, horizon_months=3
        )
        points = compute_projection(0.01, assumptions, 3)

        assert points[-1].net_worth != round(points[-1].net_worth, 2)

    def test_is_idempotent(self):
        """Test that identical inputs give identical output."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=6.5, monthly_contribution=321.0, horizon_months=120
        )

        first = compute_projection(4321.0, assumptions, 120)
        second = compute_projection(4321.0, assumptions, 120)

        assert [p.model_dump() for p in first] == [p.model_dump() for p in second]

    def test_long_horizon_stays_finite(self):
        """Test the longest allowed horizon with the highest allowed return."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=1000.0, monthly_contribution=1e6, horizon_months=1200
        )
        points = compute_projection(1e9, assumptions, 1200)

        assert len(points) == 1200
        assert np.isfinite(points[-1].net_worth)


class TestProjectionValidation:
    """Test that invalid assumptions are rejected before computing."""

    @pytest.mark.parametrize("annual", [-100.0, -150.0, math.inf, -math.inf, math.nan, 1001.0])
    def test_rejects_out_of_domain_return(self, annual):
        """Test that non-finite or at/below -100% returns are rejected."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=annual, monthly_contribution=0.0, horizon_months=12
        )
        with pytest.raises(InvalidAssumptions):
            compute_projection(0.0, assumptions, 12)

    def test_accepts_return_just_above_minus_100(self):
        """Test that -99.9% is still a valid (if grim) assumption."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=-99.9, monthly_contribution=0.0, horizon_months=12
        )
        points = compute_projection(1000.0, assumptions, 12)
        assert points[-1].net_worth == pytest.approx(1.0)

    @pytest.mark.parametrize("contribution", [-0.01, -100.0, math.inf, math.nan])
    def test_rejects_bad_contribution(self, contribution):
        """Test that negative or non-finite contributions are rejected."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=5.0,
            monthly_contribution=contribution,
            horizon_months=12,
        )
        with pytest.raises(InvalidAssumptions):
            compute_projection(0.0, assumptions, 12)

    @pytest.mark.parametrize("horizon", [0, -1, 1201])
    def test_rejects_bad_horizon(self, horizon):
        """Test that the horizon must be a positive bounded integer."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=5.0, monthly_contribution=0.0, horizon_months=horizon
        )
        with pytest.raises(InvalidAssumptions):
            compute_projection(0.0, assumptions, 12)

    @pytest.mark.parametrize("months", [0, -3, 2.5, True, "12"])
    def test_rejects_bad_months(self, months, zero_return_assumptions):
        """Test that months must be a positive integer."""
        with pytest.raises(InvalidAssumptions):
            compute_projection(0.0, zero_return_assumptions, months)

    def test_rejects_non_finite_start(self, zero_return_assumptions):
        """Test that the starting balance must be finite."""
        with pytest.raises(InvalidAssumptions):
            compute_projection(math.inf, zero_return_assumptions, 12)

    @pytest.mark.parametrize("start", [1e151, -1e151, 1e300])
    def test_rejects_start_too_large_to_compound(self, start, zero_return_assumptions):
        """Test that a starting balance that could overflow is rejected."""
        with pytest.raises(InvalidAssumptions, match="magnitude"):
            compute_projection(start, zero_return_assumptions, 12)

    def test_rejects_contribution_too_large_to_compound(self):
        """Test the upper bound on the monthly contribution."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=5.0, monthly_contribution=1e151, horizon_months=12
        )
        with pytest.raises(InvalidAssumptions, match="must not exceed"):
            compute_projection(0.0, assumptions, 12)

    def test_largest_inputs_stay_finite(self):
        """Test that every bound at its maximum still gives finite values."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=1000.0, monthly_contribution=1e150, horizon_months=1200
        )
        points = compute_projection(1e150, assumptions, 1200)

        assert len(points) == 1200
        assert all(
            np.isfinite([p.net_worth, p.contributions, p.growth]).all() for p in points
        )

    def test_engine_validates_on_init(self):
        """Test that the engine refuses invalid assumptions up front."""
        with pytest.raises(InvalidAssumptions, match="greater than -100%"):
            ProjectionEngine(
                ProjectionAssumptions(
                    annual_return_percent=-100.0, horizon_months=12
                )
            )


class TestEta:
    """Test finding when a target is reached."""

    def test_eta_with_linear_growth(self, zero_return_assumptions):
        """Test ETA when contributions reach the target exactly."""
        assert find_eta_month(0.0, zero_return_assumptions, 1000.0) == 10

    def test_eta_zero_when_already_reached(self, zero_return_assumptions):
        """Test that a met target has an ETA of zero months."""
        assert find_eta_month(2000.0, zero_return_assumptions, 1000.0) == 0

    def test_eta_none_when_unreachable(self, zero_return_assumptions):
        """Test that a target beyond the horizon has no ETA."""
        assert find_eta_month(0.0, zero_return_assumptions, 100000.0) is None


class TestRequiredContribution:
    """Test solving for the contribution that reaches a target."""

    def test_required_contribution_without_growth(self):
        """Test the linear case."""
        assert calculate_required_contribution(0.0, 1200.0, 12, 0.0) == 100.0

    def test_required_contribution_rounds_up(self):
        """Test that the result is rounded up to a whole unit."""
        assert calculate_required_contribution(0.0, 1000.0, 12, 0.0) == 84.0

    def test_required_contribution_reaches_target(self):
        """Test that the solved contribution reaches the target and one less does not."""
        start, target, months, annual = 1000.0, 30000.0, 24, 6.0

        required = calculate_required_contribution(start, target, months, annual)

        def final_value(contribution):
            assumptions = ProjectionAssumptions(
                annual_return_percent=annual,
                monthly_contribution=contribution,
                horizon_months=months,
            )
            return compute_projection(start, assumptions, months)[-1].net_worth

        assert final_value(required) >= target
        assert final_value(required - 1) < target

    def test_no_contribution_needed_when_already_reached(self):
        """Test that a met target needs no contribution."""
        assert calculate_required_contribution(5000.0, 1000.0, 12, 5.0) == 0.0

    def test_no_contribution_needed_when_growth_suffices(self):
        """Test that growth alone can reach the target."""
        assert calculate_required_contribution(1000.0, 1050.0, 12, 10.0) == 0.0

    def test_rejects_invalid_return(self):
        """Test that the return is validated."""
        with pytest.raises(InvalidAssumptions):
            calculate_required_contribution(0.0, 1000.0, 12, -100.0)

    def test_rejects_non_finite_target(self):
        """Test that an infinite target cannot produce an infinite contribution."""
        with pytest.raises(InvalidAssumptions):
            calculate_required_contribution(0.0, math.inf, 12, 5.0)


class TestSensitivity:
    """Test how ETA responds to contribution changes."""

    def test_higher_contribution_reaches_target_sooner(self, zero_return_assumptions):
        """Test doubling the contribution halves the ETA."""
        result = calculate_sensitivity(0.0, zero_return_assumptions, 1200.0, 100.0)

        assert result.base_eta_months == 12
        assert result.new_eta_months == 6
        assert result.months_earlier == 6

    def test_unreachable_base(self):
        """Test that an unreachable base ETA leaves the difference unset."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=0.0, monthly_contribution=10.0, horizon_months=12
        )
        result = calculate_sensitivity(0.0, assumptions, 1200.0, 90.0)

        assert result.base_eta_months is None
        assert result.new_eta_months == 12
        assert result.months_earlier is None

    def test_negative_delta_below_zero_contribution_rejected(self, zero_return_assumptions):
        """Test that the modified contribution is validated too."""
        with pytest.raises(InvalidAssumptions):
            calculate_sensitivity(0.0, zero_return_assumptions, 1200.0, -200.0)


class TestProjectionCurves:
    """Test scenario curve generation."""

    def test_three_curves_ordered_by_return(self):
        """Test base, conservative and aggressive curves."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=7.0, monthly_contribution=500.0, horizon_months=120
        )

        curves = generate_projection_curves(10000.0, assumptions, 120, 2.0)

        assert [c.label for c in curves] == ["Base", "Conservative", "Aggressive"]
        assert [c.assumptions.annual_return_percent for c in curves] == [7.0, 5.0, 9.0]
        base, conservative, aggressive = (c.points[-1].net_worth for c in curves)
        assert conservative < base < aggressive

    def test_conservative_never_reaches_minus_100(self):
        """Test that the conservative return stays in domain."""
        assumptions = ProjectionAssumptions(
            annual_return_percent=-98.5, monthly_contribution=0.0, horizon_months=12
        )
        curves = generate_projection_curves(1000.0, assumptions, 12, 2.0)

        assert curves[1].assumptions.annual_return_percent == -99.0

    def test_rejects_negative_spread(self, zero_return_assumptions):
        """Test that the spread must be non-negative."""
        with pytest.raises(InvalidAssumptions):
            generate_projection_curves(0.0, zero_return_assumptions, 12, -1.0)


class TestProjectionEngine:
    """Test the engine wrapper."""

    def test_project_defaults_to_horizon(self, zero_return_assumptions):
        """Test that the engine projects the full horizon by default."""
        engine = ProjectionEngine(zero_return_assumptions)

        points = engine.project()

        assert len(points) == 24
        assert points[-1].net_worth == 2400.0

    def test_engine_delegates(self, zero_return_assumptions):
        """Test the ETA, sensitivity and curve helpers."""
        engine = ProjectionEngine(zero_return_assumptions)

        assert engine.monthly_return_percent == 0.0
        assert engine.eta(0.0, 500.0) == 5
        assert engine.sensitivity(0.0, 1200.0, 100.0).months_earlier == 6
        assert len(engine.curves(months=6)) == 3
        assert engine.required_contribution(0.0, 1200.0, 6) == 200.0
