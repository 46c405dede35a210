"""Tests for net salary resolution and the net invariant."""

from decimal import Decimal

import pytest

from payroll_engines.net import NetSalaryResolver
from payroll_kernel.exceptions import InvariantViolationError


class TestNetSalaryResolver:

    def setup_method(self):
        self.resolver = NetSalaryResolver()

    def test_resolve(self):
        net = self.resolver.resolve(
            gross_salary=Decimal("22847.18"), total_deductions=Decimal("870.00")
        )
        assert net == Decimal("21977.18")

    def test_negative_net_is_allowed(self):
        net = self.resolver.resolve(
            gross_salary=Decimal("2448.00"), total_deductions=Decimal("3300.00")
        )
        assert net == Decimal("-852.00")

    def test_verify_accepts_consistent_totals(self):
        self.resolver.verify(Decimal("100.00"), Decimal("30.00"), Decimal("70.00"))

    def test_verify_rejects_mismatch(self):
        with pytest.raises(InvariantViolationError) as exc_info:
            self.resolver.verify(Decimal("100.00"), Decimal("30.00"), Decimal("71.00"))
        error = exc_info.value
        assert error.code == "INVARIANT_VIOLATION"
        assert error.expected_net == Decimal("70.00")
        assert error.net_salary == Decimal("71.00")
