"""
RecalculationService -- payroll computation and record lifecycle orchestration.

Responsibility:
    Runs the payroll pipeline (proration, earnings, deductions, net) over a
    record's inputs, and applies recalculations, edits and payment status
    changes subject to the lifecycle lock.  Bulk variants process records
    independently on a thread pool.

Architecture position:
    Services -- orchestration over ``payroll_engines`` and
    ``payroll_modules.payroll``.  The only layer that reads the clock.

Invariants enforced:
    - ``compute_payroll`` is pure and idempotent: it reads only input
      fields, so computing a computed record changes nothing.
    - Every derived total is rebuilt together; no path updates one total.
    - ``net == round(gross - deductions)`` is verified on every computation.
    - A locked record is mutated only under admin override, and each such
      mutation appends exactly one override entry.
    - ``version`` increases by one per mutation (recalculate, edit, status
      change); ``compute_payroll`` alone does not touch it.

Failure modes:
    - InvalidPeriodError / InvalidAttendanceError from the engines.
    - RecordLockedError, NonEditableFieldError, InvalidTransitionError,
      ConfirmationRequiredError from the lifecycle rules.
    - InvariantViolationError if the engines disagree (a defect).

Audit relevance:
    Each breakdown carries the checksum of the settings that produced it.
"""

from __future__ import annotations

import contextvars
import functools
from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from datetime import date
from typing import Any
from uuid import UUID

from payroll_config.loader import compute_checksum
from payroll_config.schema import PayrollSettings, RecalculationPolicy
from payroll_engines.attendance import Attendance
from payroll_engines.deductions import DeductionAggregator
from payroll_engines.diagnostics import missing_baseline_warning
from payroll_engines.earnings import EarningsAggregator, Overtime, overtime_amount
from payroll_engines.net import NetSalaryResolver
from payroll_engines.proration import ProrationCalculator
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.money import to_decimal
from payroll_kernel.exceptions import InvariantViolationError, PayrollKernelError
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_modules.payroll import lifecycle
from payroll_modules.payroll.models import (
    AMOUNT_MAP_FIELDS,
    AuthContext,
    PaymentMethod,
    PaymentStatus,
    PayrollBreakdown,
    PayrollRecord,
)

logger = get_logger("services.recalculation")

DEFAULT_MAX_WORKERS = 4


@functools.lru_cache(maxsize=32)
def _settings_checksum(settings: PayrollSettings) -> str:
    return compute_checksum(settings)


@dataclass(frozen=True)
class BulkFailure:
    record_id: UUID
    employee_id: str
    error: Exception

    @property
    def code(self) -> str:
        return getattr(self.error, "code", type(self.error).__name__)


@dataclass(frozen=True)
class BulkResult:
    """Per-record outcome of a bulk run, in input order."""

    succeeded: tuple[PayrollRecord, ...]
    failed: tuple[BulkFailure, ...]

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed


class RecalculationService:
    """
    Payroll computation and lifecycle service.

    Contract:
        Accepts frozen ``PayrollRecord`` DTOs and returns new ones; never
        mutates its inputs and holds no per-record state, so one instance
        may serve concurrent callers.

    Non-goals:
        - Does NOT persist records (see ``PayrollRecordStore``).
        - Does NOT authenticate actors; ``AuthContext`` is trusted.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        proration: ProrationCalculator | None = None,
        earnings: EarningsAggregator | None = None,
        deductions: DeductionAggregator | None = None,
        net: NetSalaryResolver | None = None,
    ):
        self._clock = clock or SystemClock()
        self._proration = proration or ProrationCalculator()
        self._earnings = earnings or EarningsAggregator()
        self._deductions = deductions or DeductionAggregator()
        self._net = net or NetSalaryResolver()

    # ------------------------------------------------------------------
    # Computation
    # ------------------------------------------------------------------

    def compute_payroll(
        self, record: PayrollRecord, settings: PayrollSettings
    ) -> PayrollRecord:
        """
        Return ``record`` with a freshly derived breakdown.

        Under ``RecalculationPolicy.TRUST_STORED`` a stored breakdown that
        satisfies the net invariant is kept as-is; one that does not is
        discarded and recomputed.
        """
        if (
            settings.recalculation_policy == RecalculationPolicy.TRUST_STORED
            and record.breakdown is not None
        ):
            stored = record.breakdown
            try:
                self._net.verify(
                    stored.gross_salary,
                    stored.total_deductions,
                    stored.net_salary,
                    settings.rounding_places,
                )
            except InvariantViolationError:
                logger.warning(
                    "stored_breakdown_rejected",
                    extra={
                        "record_id": str(record.id),
                        "gross_salary": str(stored.gross_salary),
                        "total_deductions": str(stored.total_deductions),
                        "net_salary": str(stored.net_salary),
                    },
                )
            else:
                logger.debug(
                    "stored_breakdown_trusted", extra={"record_id": str(record.id)}
                )
                return record

        return replace(record, breakdown=self._derive(record, settings))

    def _derive(
        self, record: PayrollRecord, settings: PayrollSettings
    ) -> PayrollBreakdown:
        places = settings.rounding_places
        with LogContext.bind(employee_id=record.employee_id, record_id=record.id):
            proration = self._proration.calculate(
                attendance=record.attendance,
                days_in_period=record.effective_days_in_period,
                floor=settings.proration_floor,
                places=settings.factor_places,
            )
            factor = proration.factor

            warnings = []
            baseline = record.baseline_salary
            if baseline is None or to_decimal(baseline, "baseline_salary") <= 0:
                warnings.append(
                    missing_baseline_warning(baseline, settings.fallback_baseline_salary)
                )
                logger.warning(
                    "baseline_fallback_applied",
                    extra={
                        "supplied": None if baseline is None else str(baseline),
                        "fallback": str(settings.fallback_baseline_salary),
                    },
                )
                baseline = settings.fallback_baseline_salary
            baseline = to_decimal(baseline, "baseline_salary")

            overtime = overtime_amount(
                record.overtime,
                baseline_salary=baseline,
                working_days_per_month=settings.working_days_per_month,
                working_hours_per_day=settings.working_hours_per_day,
                default_multiplier=settings.overtime_multiplier,
                places=places,
            )
            earnings = self._earnings.aggregate(
                baseline_salary=baseline,
                factor=factor,
                prorated_rules=settings.prorated_allowances,
                fixed_allowances=record.fixed_allowances,
                bonus=record.bonus,
                overtime_amount=overtime,
                places=places,
            )
            deductions = self._deductions.aggregate(
                attendance=record.attendance,
                factor=factor,
                statutory_rules=settings.statutory_deductions,
                absent_rate=settings.absent_rate,
                late_rate=settings.late_rate,
                leave_rate=settings.leave_rate,
                statutory_overrides=record.statutory_overrides,
                discretionary=record.discretionary_deductions,
                places=places,
            )
            net = self._net.resolve(
                gross_salary=earnings.gross_salary,
                total_deductions=deductions.total_deductions,
                places=places,
            )
            self._net.verify(
                earnings.gross_salary, deductions.total_deductions, net, places
            )
            warnings.extend(deductions.warnings)

            breakdown = PayrollBreakdown(
                factor=factor,
                working_days=proration.working_days,
                days_in_period=proration.days_in_period,
                baseline_salary=baseline,
                prorated_basic=earnings.prorated_basic,
                allowances=earnings.allowances,
                bonus=earnings.bonus,
                overtime_amount=earnings.overtime_amount,
                statutory=deductions.statutory,
                absent_penalty=deductions.absent_penalty,
                late_penalty=deductions.late_penalty,
                leave_deduction=deductions.leave_deduction,
                discretionary=deductions.discretionary,
                gross_salary=earnings.gross_salary,
                total_deductions=deductions.total_deductions,
                net_salary=net,
                warnings=tuple(warnings),
                settings_checksum=_settings_checksum(settings),
            )
            logger.info(
                "payroll_computed",
                extra={
                    "period": record.period.label,
                    "factor": str(factor),
                    "gross_salary": str(breakdown.gross_salary),
                    "total_deductions": str(breakdown.total_deductions),
                    "net_salary": str(breakdown.net_salary),
                    "warning_codes": list(breakdown.warning_codes),
                },
            )
        return breakdown

    # ------------------------------------------------------------------
    # Lifecycle-guarded mutations
    # ------------------------------------------------------------------

    def recalculate(
        self,
        record: PayrollRecord,
        settings: PayrollSettings,
        auth: AuthContext,
    ) -> PayrollRecord:
        """
        Recompute a record's totals.

        Raises:
            RecordLockedError: record is Processing or Paid and ``auth``
                carries no admin override.
        """
        with LogContext.bind(actor_id=auth.actor_id, record_id=record.id):
            overridden = lifecycle.authorize_mutation(record, auth, "recalculate")
            computed = self.compute_payroll(record, settings)
            log = record.admin_override_log
            if overridden:
                log = log + (
                    lifecycle.override_entry(
                        self._clock, auth, "recalculate", record,
                        changed_fields=("breakdown",),
                    ),
                )
            result = replace(
                computed, admin_override_log=log, version=record.version + 1
            )
            logger.info(
                "payroll_recalculated",
                extra={
                    "employee_id": record.employee_id,
                    "payment_status": record.payment_status.value,
                    "admin_override": overridden,
                    "version": result.version,
                },
            )
            return result

    def can_edit(
        self,
        record: PayrollRecord,
        requested_fields: Iterable[str],
        auth: AuthContext,
    ) -> bool:
        return lifecycle.can_edit(record, requested_fields, auth)

    def apply_edit(
        self,
        record: PayrollRecord,
        changes: Mapping[str, Any],
        settings: PayrollSettings,
        auth: AuthContext,
    ) -> PayrollRecord:
        """
        Change input fields and recompute every total together.

        Raises:
            NonEditableFieldError: a key names a derived or unknown field.
            RecordLockedError: locked record without admin override.
        """
        with LogContext.bind(actor_id=auth.actor_id, record_id=record.id):
            overridden = lifecycle.check_edit(record, changes.keys(), auth)
            if not changes:
                return record
            edited = replace(
                record, breakdown=None, **_normalize_changes(changes)
            )
            computed = replace(
                edited, breakdown=self._derive(edited, settings)
            )
            log = record.admin_override_log
            if overridden:
                log = log + (
                    lifecycle.override_entry(
                        self._clock, auth, "edit", record, changed_fields=changes.keys(),
                    ),
                )
            result = replace(
                computed, admin_override_log=log, version=record.version + 1
            )
            logger.info(
                "payroll_record_edited",
                extra={
                    "changed_fields": sorted(changes),
                    "admin_override": overridden,
                    "version": result.version,
                },
            )
            return result

    def apply_payment_status_transition(
        self,
        record: PayrollRecord,
        new_status: PaymentStatus | str,
        auth: AuthContext,
        confirm: bool = False,
        payment_date: date | None = None,
        payment_method: PaymentMethod | str | None = None,
        transaction_id: str | None = None,
        remarks: str | None = None,
        settings: PayrollSettings | None = None,
    ) -> PayrollRecord:
        retry_requires_override = (
            settings.retry_failed_requires_override if settings is not None else False
        )
        with LogContext.bind(actor_id=auth.actor_id, record_id=record.id):
            return lifecycle.transition(
                record,
                new_status,
                auth,
                self._clock,
                confirm=confirm,
                retry_requires_override=retry_requires_override,
                payment_date=payment_date,
                payment_method=payment_method,
                transaction_id=transaction_id,
                remarks=remarks,
            )

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def bulk_recalculate(
        self,
        records: Sequence[PayrollRecord],
        settings: PayrollSettings,
        auth: AuthContext,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> BulkResult:
        """Recalculate each record independently; failures do not stop the run."""
        return self._run_bulk(
            "bulk_recalculate",
            records,
            lambda record: self.recalculate(record, settings, auth),
            max_workers,
        )

    def bulk_transition(
        self,
        records: Sequence[PayrollRecord],
        new_status: PaymentStatus | str,
        auth: AuthContext,
        confirm: bool = False,
        payment_date: date | None = None,
        payment_method: PaymentMethod | str | None = None,
        settings: PayrollSettings | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> BulkResult:
        """Move each record to ``new_status`` independently."""
        return self._run_bulk(
            "bulk_transition",
            records,
            lambda record: self.apply_payment_status_transition(
                record,
                new_status,
                auth,
                confirm=confirm,
                payment_date=payment_date,
                payment_method=payment_method,
                settings=settings,
            ),
            max_workers,
        )

    def _run_bulk(
        self,
        operation: str,
        records: Sequence[PayrollRecord],
        func: Callable[[PayrollRecord], PayrollRecord],
        max_workers: int,
    ) -> BulkResult:
        def run_one(record: PayrollRecord) -> PayrollRecord | BulkFailure:
            try:
                return func(record)
            except (PayrollKernelError, ValueError) as exc:
                logger.warning(
                    "bulk_item_failed",
                    extra={
                        "operation": operation,
                        "record_id": str(record.id),
                        "employee_id": record.employee_id,
                        "error_code": getattr(exc, "code", type(exc).__name__),
                        "error": str(exc),
                    },
                )
                return BulkFailure(
                    record_id=record.id, employee_id=record.employee_id, error=exc
                )

        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
            # Each worker runs in a copy of the caller's log context
            futures = [
                pool.submit(contextvars.copy_context().run, run_one, record)
                for record in records
            ]
            outcomes = [future.result() for future in futures]

        succeeded = tuple(o for o in outcomes if isinstance(o, PayrollRecord))
        failed = tuple(o for o in outcomes if isinstance(o, BulkFailure))
        logger.info(
            "bulk_operation_completed",
            extra={
                "operation": operation,
                "total": len(records),
                "succeeded": len(succeeded),
                "failed": len(failed),
            },
        )
        return BulkResult(succeeded=succeeded, failed=failed)


def _normalize_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Coerce plain-data edit values into the record's value types."""
    normalized: dict[str, Any] = {}
    for key, value in changes.items():
        if key == "attendance" and isinstance(value, Mapping):
            value = Attendance(**value)
        elif key == "overtime" and isinstance(value, Mapping):
            value = Overtime(
                hours=to_decimal(value.get("hours"), "overtime.hours"),
                hourly_rate_multiplier=(
                    None
                    if value.get("hourly_rate_multiplier") is None
                    else to_decimal(
                        value["hourly_rate_multiplier"], "overtime.hourly_rate_multiplier"
                    )
                ),
                amount=(
                    None
                    if value.get("amount") is None
                    else to_decimal(value["amount"], "overtime.amount")
                ),
            )
        elif key in AMOUNT_MAP_FIELDS:
            value = {
                name: to_decimal(amount, f"{key}.{name}")
                for name, amount in (value or {}).items()
            }
        elif key == "bonus":
            value = to_decimal(value, key)
        elif key == "baseline_salary" and value is not None:
            value = to_decimal(value, key)
        elif key == "payment_method" and value is not None:
            value = PaymentMethod(value)
        normalized[key] = value
    return normalized


_default_service = RecalculationService()


def compute_payroll(record: PayrollRecord, settings: PayrollSettings) -> PayrollRecord:
    """Module-level shorthand for ``RecalculationService().compute_payroll``."""
    return _default_service.compute_payroll(record, settings)


__all__ = [
    "BulkFailure",
    "BulkResult",
    "RecalculationService",
    "compute_payroll",
]
