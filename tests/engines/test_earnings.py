"""
Tests for the earnings aggregator and overtime resolution.

Covers:
- Prorated basic and percentage allowances
- Fixed allowances, bonus and overtime pass-through
- Gross salary rounding
- Rejected inputs
"""

from decimal import Decimal

import pytest

from payroll_config.schema import DEFAULT_PRORATED_ALLOWANCES, ProratedAllowanceRule
from payroll_engines.earnings import EarningsAggregator, Overtime, overtime_amount

BASELINE = Decimal("15300")


class TestProratedComponents:

    def setup_method(self):
        self.aggregator = EarningsAggregator()

    def test_full_factor(self):
        result = self.aggregator.aggregate(
            baseline_salary=BASELINE,
            factor=Decimal("1"),
            prorated_rules=DEFAULT_PRORATED_ALLOWANCES,
        )
        assert result.prorated_basic == Decimal("15300.00")
        assert result.allowance_amounts == {
            "housing": Decimal("6120.00"),
            "medical": Decimal("1530.00"),
            "travel": Decimal("765.00"),
            "food": Decimal("765.00"),
        }
        assert result.gross_salary == Decimal("24480.00")

    def test_partial_factor_rounds_each_component(self):
        result = self.aggregator.aggregate(
            baseline_salary=BASELINE,
            factor=Decimal("0.9333"),
            prorated_rules=DEFAULT_PRORATED_ALLOWANCES,
        )
        assert result.prorated_basic == Decimal("14279.49")
        amounts = result.allowance_amounts
        assert amounts["housing"] == Decimal("5711.80")
        assert amounts["medical"] == Decimal("1427.95")
        assert amounts["travel"] == Decimal("713.97")
        assert amounts["food"] == Decimal("713.97")
        assert result.gross_salary == Decimal("22847.18")

    def test_allowance_original_is_percentage_of_baseline(self):
        result = self.aggregator.aggregate(
            baseline_salary=BASELINE,
            factor=Decimal("0.5"),
            prorated_rules=(ProratedAllowanceRule("housing", Decimal("40")),),
        )
        (line,) = result.allowances
        assert line.original == Decimal("6120")
        assert line.amount == Decimal("3060.00")
        assert line.prorated

    def test_floor_factor(self):
        result = self.aggregator.aggregate(
            baseline_salary=BASELINE,
            factor=Decimal("0.1"),
            prorated_rules=DEFAULT_PRORATED_ALLOWANCES,
        )
        assert result.prorated_basic == Decimal("1530.00")
        assert result.gross_salary == Decimal("2448.00")


class TestPassThroughComponents:

    def setup_method(self):
        self.aggregator = EarningsAggregator()

    def test_fixed_allowances_not_prorated(self):
        result = self.aggregator.aggregate(
            baseline_salary=BASELINE,
            factor=Decimal("0.5"),
            prorated_rules=(),
            fixed_allowances={"shift": Decimal("500")},
        )
        (line,) = result.allowances
        assert line.name == "shift"
        assert line.amount == Decimal("500")
        assert not line.prorated
        assert result.gross_salary == Decimal("8150.00")

    def test_bonus_and_overtime_added(self):
        result = self.aggregator.aggregate(
            baseline_salary=BASELINE,
            factor=Decimal("1"),
            prorated_rules=(),
            bonus=Decimal("1000"),
            overtime_amount=Decimal("956.25"),
        )
        assert result.bonus == Decimal("1000")
        assert result.overtime_amount == Decimal("956.25")
        assert result.gross_salary == Decimal("17256.25")

    def test_fixed_allowance_named_like_prorated_rejected(self):
        with pytest.raises(ValueError, match="proration-sensitive"):
            self.aggregator.aggregate(
                baseline_salary=BASELINE,
                factor=Decimal("1"),
                prorated_rules=DEFAULT_PRORATED_ALLOWANCES,
                fixed_allowances={"housing": Decimal("100")},
            )

    def test_negative_bonus_rejected(self):
        with pytest.raises(ValueError):
            self.aggregator.aggregate(
                baseline_salary=BASELINE,
                factor=Decimal("1"),
                prorated_rules=(),
                bonus=Decimal("-1"),
            )


class TestOvertimeAmount:

    def _resolve(self, overtime):
        return overtime_amount(
            overtime,
            baseline_salary=BASELINE,
            working_days_per_month=30,
            working_hours_per_day=Decimal("8"),
            default_multiplier=Decimal("1.5"),
        )

    def test_no_overtime(self):
        assert self._resolve(None) == Decimal("0")

    def test_derived_from_hours(self):
        # 15300 / 240 = 63.75 per hour, x 1.5 x 10 hours
        assert self._resolve(Overtime(hours=Decimal("10"))) == Decimal("956.25")

    def test_explicit_multiplier(self):
        amount = self._resolve(
            Overtime(hours=Decimal("4"), hourly_rate_multiplier=Decimal("2"))
        )
        assert amount == Decimal("510.00")

    def test_explicit_amount_passes_through(self):
        amount = self._resolve(Overtime(hours=Decimal("10"), amount=Decimal("1234.56")))
        assert amount == Decimal("1234.56")

    def test_negative_hours_rejected(self):
        with pytest.raises(ValueError):
            self._resolve(Overtime(hours=Decimal("-2")))
