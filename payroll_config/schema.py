"""
Payroll Settings Schema (``payroll_config.schema``).

Responsibility
--------------
Frozen dataclass definitions for the per-tenant payroll settings the engine
consumes: per-diem penalty rates, proration floor, rounding precision,
fallback baseline, proration-sensitive allowance percentages, statutory
deduction base rates and clamps, overtime conventions, and the
recalculation policy.

Architecture position
---------------------
**Config layer** -- pure data definitions.  The engine treats a
``PayrollSettings`` instance as an injected, read-only snapshot; nothing in
the engine mutates or caches it.

Invariants enforced
-------------------
* All monetary fields and rates are ``Decimal``.
* ``0 < proration_floor <= 1``.
* Penalty rates, percentages and statutory bases are non-negative.
* Statutory clamp ``minimum <= maximum`` when both are set.
* Allowance and statutory names are unique.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Self

from payroll_kernel.domain.money import to_decimal
from payroll_kernel.exceptions import InvalidAmountError
from payroll_kernel.logging_config import get_logger

logger = get_logger("config.schema")


class RecalculationPolicy(str, Enum):
    """Whether stored totals are recomputed or trusted."""

    RECOMPUTE = "recompute"
    TRUST_STORED = "trust_stored"


@dataclass(frozen=True)
class ProratedAllowanceRule:
    """An allowance defined as a percentage of the baseline salary."""
    name: str
    percentage: Decimal


@dataclass(frozen=True)
class StatutoryDeductionRule:
    """
    A mandated deduction, scaled by the proration factor, then clamped.

    ``minimum``/``maximum`` of ``None`` leave that side unclamped.
    """
    name: str
    base_amount: Decimal
    minimum: Decimal | None = None
    maximum: Decimal | None = None

    def __post_init__(self):
        if self.base_amount < 0:
            raise ValueError(f"{self.name}: base_amount cannot be negative")
        if (
            self.minimum is not None
            and self.maximum is not None
            and self.minimum > self.maximum
        ):
            raise ValueError(
                f"{self.name}: minimum {self.minimum} exceeds maximum {self.maximum}"
            )


DEFAULT_PRORATED_ALLOWANCES: tuple[ProratedAllowanceRule, ...] = (
    ProratedAllowanceRule("housing", Decimal("40")),
    ProratedAllowanceRule("medical", Decimal("10")),
    ProratedAllowanceRule("travel", Decimal("5")),
    ProratedAllowanceRule("food", Decimal("5")),
)

DEFAULT_STATUTORY_DEDUCTIONS: tuple[StatutoryDeductionRule, ...] = (
    StatutoryDeductionRule("professional_tax", Decimal("150"), Decimal("100"), Decimal("280")),
    StatutoryDeductionRule("provident_fund", Decimal("719.88"), Decimal("100"), Decimal("280")),
    StatutoryDeductionRule("health_insurance", Decimal("299.95"), Decimal("100"), Decimal("280")),
    StatutoryDeductionRule("income_tax", Decimal("0")),
)


@dataclass(frozen=True)
class PayrollSettings:
    """
    Configuration schema for the payroll engine.

    Field defaults are the observed production values.  Override at
    instantiation with tenant-specific values:

        settings = PayrollSettings.from_dict(load_yaml_file(path))
    """

    # Baseline
    fallback_baseline_salary: Decimal = Decimal("15300")

    # Proration
    proration_floor: Decimal = Decimal("0.1")
    factor_places: int | None = 4
    rounding_places: int = 2

    # Attendance-driven per-diem rates
    absent_rate: Decimal = Decimal("100")
    late_rate: Decimal = Decimal("25")
    leave_rate: Decimal = Decimal("45")

    # Components
    prorated_allowances: tuple[ProratedAllowanceRule, ...] = field(
        default=DEFAULT_PRORATED_ALLOWANCES
    )
    statutory_deductions: tuple[StatutoryDeductionRule, ...] = field(
        default=DEFAULT_STATUTORY_DEDUCTIONS
    )

    # Overtime
    working_days_per_month: int = 30
    working_hours_per_day: Decimal = Decimal("8")
    overtime_multiplier: Decimal = Decimal("1.5")

    # Lifecycle / recalculation
    recalculation_policy: RecalculationPolicy = RecalculationPolicy.RECOMPUTE
    retry_failed_requires_override: bool = False

    def __post_init__(self):
        if not (Decimal("0") < self.proration_floor <= Decimal("1")):
            raise ValueError(
                f"proration_floor must be in (0, 1], got {self.proration_floor}"
            )
        if self.factor_places is not None and self.factor_places < 0:
            raise ValueError("factor_places cannot be negative")
        if self.rounding_places < 0:
            raise ValueError("rounding_places cannot be negative")
        if self.fallback_baseline_salary <= 0:
            raise ValueError("fallback_baseline_salary must be positive")
        for name in ("absent_rate", "late_rate", "leave_rate"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")
        if self.working_days_per_month <= 0:
            raise ValueError("working_days_per_month must be positive")
        if self.working_hours_per_day <= 0:
            raise ValueError("working_hours_per_day must be positive")
        if self.overtime_multiplier <= 0:
            raise ValueError("overtime_multiplier must be positive")

        names = [rule.name for rule in self.prorated_allowances]
        if len(names) != len(set(names)):
            raise ValueError("prorated allowance names must be unique")
        for rule in self.prorated_allowances:
            if rule.percentage < 0:
                raise ValueError(f"{rule.name}: percentage cannot be negative")

        names = [rule.name for rule in self.statutory_deductions]
        if len(names) != len(set(names)):
            raise ValueError("statutory deduction names must be unique")

        if not isinstance(self.recalculation_policy, RecalculationPolicy):
            raise ValueError(
                f"recalculation_policy must be a RecalculationPolicy, "
                f"got {self.recalculation_policy!r}"
            )

        logger.debug(
            "payroll_settings_initialized",
            extra={
                "proration_floor": str(self.proration_floor),
                "fallback_baseline_salary": str(self.fallback_baseline_salary),
                "recalculation_policy": self.recalculation_policy.value,
                "prorated_allowances": [r.name for r in self.prorated_allowances],
                "statutory_deductions": [r.name for r in self.statutory_deductions],
            },
        )

    @property
    def prorated_allowance_names(self) -> frozenset[str]:
        return frozenset(rule.name for rule in self.prorated_allowances)

    def statutory_rule(self, name: str) -> StatutoryDeductionRule | None:
        for rule in self.statutory_deductions:
            if rule.name == name:
                return rule
        return None

    @classmethod
    def with_defaults(cls) -> Self:
        """Create settings with the observed production defaults."""
        logger.info("payroll_settings_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """
        Create settings from a dictionary (e.g., loaded from YAML or a database).

        Numbers may be given as int, float or str; they are converted to
        ``Decimal`` through ``str``.  Missing keys keep their defaults.
        """
        logger.info(
            "payroll_settings_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown payroll settings keys: {sorted(unknown)}")

        kwargs: dict[str, Any] = {}
        for key in (
            "fallback_baseline_salary",
            "proration_floor",
            "absent_rate",
            "late_rate",
            "leave_rate",
            "working_hours_per_day",
            "overtime_multiplier",
        ):
            if key in data:
                kwargs[key] = _dec(data[key], key)
        for key in ("rounding_places", "working_days_per_month"):
            if key in data:
                kwargs[key] = int(data[key])
        if "factor_places" in data:
            kwargs["factor_places"] = (
                None if data["factor_places"] is None else int(data["factor_places"])
            )
        if "retry_failed_requires_override" in data:
            kwargs["retry_failed_requires_override"] = bool(
                data["retry_failed_requires_override"]
            )
        if "recalculation_policy" in data:
            kwargs["recalculation_policy"] = RecalculationPolicy(
                data["recalculation_policy"]
            )
        if "prorated_allowances" in data:
            kwargs["prorated_allowances"] = tuple(
                ProratedAllowanceRule(
                    name=name, percentage=_dec(pct, f"prorated_allowances.{name}")
                )
                for name, pct in data["prorated_allowances"].items()
            )
        if "statutory_deductions" in data:
            kwargs["statutory_deductions"] = tuple(
                StatutoryDeductionRule(
                    name=name,
                    base_amount=_dec(rule.get("base_amount", 0), f"{name}.base_amount"),
                    minimum=_opt_dec(rule.get("minimum"), f"{name}.minimum"),
                    maximum=_opt_dec(rule.get("maximum"), f"{name}.maximum"),
                )
                for name, rule in data["statutory_deductions"].items()
            )
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form, inverse of ``from_dict``."""
        return {
            "fallback_baseline_salary": str(self.fallback_baseline_salary),
            "proration_floor": str(self.proration_floor),
            "factor_places": self.factor_places,
            "rounding_places": self.rounding_places,
            "absent_rate": str(self.absent_rate),
            "late_rate": str(self.late_rate),
            "leave_rate": str(self.leave_rate),
            "prorated_allowances": {
                rule.name: str(rule.percentage) for rule in self.prorated_allowances
            },
            "statutory_deductions": {
                rule.name: {
                    "base_amount": str(rule.base_amount),
                    "minimum": None if rule.minimum is None else str(rule.minimum),
                    "maximum": None if rule.maximum is None else str(rule.maximum),
                }
                for rule in self.statutory_deductions
            },
            "working_days_per_month": self.working_days_per_month,
            "working_hours_per_day": str(self.working_hours_per_day),
            "overtime_multiplier": str(self.overtime_multiplier),
            "recalculation_policy": self.recalculation_policy.value,
            "retry_failed_requires_override": self.retry_failed_requires_override,
        }


def _dec(value: Any, key: str) -> Decimal:
    if value is None:
        raise InvalidAmountError(key, value)
    return to_decimal(value, key)


def _opt_dec(value: Any, key: str) -> Decimal | None:
    return None if value is None else _dec(value, key)
