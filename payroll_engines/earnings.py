"""
payroll_engines.earnings -- Gross salary aggregation.

Responsibility:
    Derive every earnings component from its original inputs: the prorated
    basic salary, proration-sensitive allowances (percentages of the
    baseline), fixed allowances, bonus and overtime, and sum them into the
    gross salary.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Prorated allowances are always rebuilt from ``baseline * percentage``;
      a previously stored allowance value is never re-prorated.
    - Fixed allowances, bonus and an explicit overtime amount pass through
      unchanged.
    - Each derived amount is rounded once; the gross is rounded once over
      the rounded components.

Failure modes:
    - ValueError: negative component, or a fixed allowance whose name
      collides with a proration-sensitive allowance.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal

from payroll_config.schema import ProratedAllowanceRule
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.money import ZERO, round_money, to_decimal
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.earnings")

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class Overtime:
    """
    Overtime worked in the period.

    ``amount`` of ``None`` means derive it from ``hours``; a given amount is
    taken as-is and never prorated.  ``hourly_rate_multiplier`` of ``None``
    uses the configured multiplier.
    """

    hours: Decimal = ZERO
    hourly_rate_multiplier: Decimal | None = None
    amount: Decimal | None = None


@dataclass(frozen=True)
class AllowanceLine:
    """One allowance on the payslip."""

    name: str
    original: Decimal
    amount: Decimal
    prorated: bool


@dataclass(frozen=True)
class EarningsResult:
    prorated_basic: Decimal
    allowances: tuple[AllowanceLine, ...]
    bonus: Decimal
    overtime_amount: Decimal
    gross_salary: Decimal

    @property
    def allowance_amounts(self) -> dict[str, Decimal]:
        return {line.name: line.amount for line in self.allowances}


def overtime_amount(
    overtime: Overtime | None,
    baseline_salary: Decimal,
    working_days_per_month: int,
    working_hours_per_day: Decimal,
    default_multiplier: Decimal,
    places: int = 2,
) -> Decimal:
    """
    Resolve the overtime amount.

    Derived amounts use ``hours * baseline / (days * hours_per_day) * multiplier``.
    """
    if overtime is None:
        return ZERO
    if overtime.amount is not None:
        amount = to_decimal(overtime.amount, "overtime.amount")
        if amount < 0:
            raise ValueError(f"overtime amount cannot be negative, got {amount}")
        return amount
    hours = to_decimal(overtime.hours, "overtime.hours")
    if hours < 0:
        raise ValueError(f"overtime hours cannot be negative, got {hours}")
    if hours == 0:
        return ZERO
    multiplier = (
        default_multiplier
        if overtime.hourly_rate_multiplier is None
        else to_decimal(
            overtime.hourly_rate_multiplier, "overtime.hourly_rate_multiplier"
        )
    )
    hourly_rate = baseline_salary / (
        Decimal(working_days_per_month) * working_hours_per_day
    )
    return round_money(hours * hourly_rate * multiplier, places)


class EarningsAggregator:
    """Builds the earnings side of a payslip."""

    @traced_engine(
        "earnings", "1.0",
        fingerprint_fields=(
            "baseline_salary", "factor", "fixed_allowances", "bonus", "overtime_amount",
        ),
    )
    def aggregate(
        self,
        baseline_salary: Decimal,
        factor: Decimal,
        prorated_rules: Sequence[ProratedAllowanceRule],
        fixed_allowances: Mapping[str, Decimal] | None = None,
        bonus: Decimal = ZERO,
        overtime_amount: Decimal = ZERO,
        places: int = 2,
    ) -> EarningsResult:
        fixed_allowances = fixed_allowances or {}
        prorated_names = {rule.name for rule in prorated_rules}
        clashes = sorted(prorated_names & set(fixed_allowances))
        if clashes:
            raise ValueError(
                f"Allowances {clashes} are proration-sensitive and cannot be fixed"
            )
        bonus = to_decimal(bonus, "bonus")
        overtime_amount = to_decimal(overtime_amount, "overtime_amount")
        if bonus < 0:
            raise ValueError(f"bonus cannot be negative, got {bonus}")
        if overtime_amount < 0:
            raise ValueError(f"overtime amount cannot be negative, got {overtime_amount}")

        prorated_basic = round_money(baseline_salary * factor, places)

        lines: list[AllowanceLine] = []
        for rule in prorated_rules:
            original = baseline_salary * rule.percentage / HUNDRED
            lines.append(AllowanceLine(
                name=rule.name,
                original=original,
                amount=round_money(original * factor, places),
                prorated=True,
            ))
        for name in sorted(fixed_allowances):
            amount = to_decimal(fixed_allowances[name], name)
            if amount < 0:
                raise ValueError(f"allowance {name} cannot be negative, got {amount}")
            lines.append(AllowanceLine(
                name=name, original=amount, amount=amount, prorated=False,
            ))

        gross = round_money(
            prorated_basic
            + sum((line.amount for line in lines), ZERO)
            + bonus
            + overtime_amount,
            places,
        )

        logger.debug(
            "earnings_aggregated",
            extra={
                "prorated_basic": str(prorated_basic),
                "allowance_count": len(lines),
                "gross_salary": str(gross),
            },
        )
        return EarningsResult(
            prorated_basic=prorated_basic,
            allowances=tuple(lines),
            bonus=bonus,
            overtime_amount=overtime_amount,
            gross_salary=gross,
        )
