"""
payroll_engines.net -- Net salary resolution and invariant check.

Invariant: ``net_salary == round(gross_salary - total_deductions)``.  A
negative net is a legitimate outcome (penalties can exceed a floored
gross); only a mismatch is an error.
"""

from __future__ import annotations

from decimal import Decimal

from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.money import round_money
from payroll_kernel.exceptions import InvariantViolationError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.net")


class NetSalaryResolver:

    @traced_engine(
        "net_salary", "1.0",
        fingerprint_fields=("gross_salary", "total_deductions", "places"),
    )
    def resolve(
        self,
        gross_salary: Decimal,
        total_deductions: Decimal,
        places: int = 2,
    ) -> Decimal:
        net = round_money(gross_salary - total_deductions, places)
        if net < 0:
            logger.info(
                "negative_net_salary",
                extra={
                    "gross_salary": str(gross_salary),
                    "total_deductions": str(total_deductions),
                    "net_salary": str(net),
                },
            )
        return net

    def verify(
        self,
        gross_salary: Decimal,
        total_deductions: Decimal,
        net_salary: Decimal,
        places: int = 2,
    ) -> None:
        """
        Raises:
            InvariantViolationError: net does not equal gross minus deductions.
        """
        expected = round_money(gross_salary - total_deductions, places)
        if net_salary != expected:
            logger.error(
                "net_invariant_violated",
                extra={
                    "gross_salary": str(gross_salary),
                    "total_deductions": str(total_deductions),
                    "net_salary": str(net_salary),
                    "expected_net": str(expected),
                },
            )
            raise InvariantViolationError(
                gross_salary=gross_salary,
                total_deductions=total_deductions,
                net_salary=net_salary,
                expected_net=expected,
            )
