"""
payroll_engines.diagnostics -- Non-fatal computation warnings.

Recoverable calculation errors (missing baseline, clamped deduction) are
raised nowhere; they become ``ComputationWarning`` entries on the breakdown.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from payroll_kernel.exceptions import (
    DeductionOutOfRangeError,
    MissingBaselineError,
    PayrollKernelError,
)


@dataclass(frozen=True)
class ComputationWarning:
    """A value the engine adjusted, with the original and the adjusted value."""

    code: str
    field: str
    original: Decimal | None
    adjusted: Decimal
    message: str

    @classmethod
    def from_error(
        cls,
        error: PayrollKernelError,
        field: str,
        original: Decimal | None,
        adjusted: Decimal,
    ) -> ComputationWarning:
        return cls(
            code=error.code,
            field=field,
            original=original,
            adjusted=adjusted,
            message=str(error),
        )


def missing_baseline_warning(
    supplied: Decimal | None, fallback: Decimal
) -> ComputationWarning:
    error = MissingBaselineError(supplied=supplied, fallback=fallback)
    return ComputationWarning.from_error(error, "baseline_salary", supplied, fallback)


def clamped_deduction_warning(error: DeductionOutOfRangeError) -> ComputationWarning:
    return ComputationWarning.from_error(
        error, error.deduction, error.value, error.clamped_to
    )
