"""
Typed Exception Hierarchy for the Payroll Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the payroll engine (HTTP handlers, batch jobs, report builders)
must react to failures precisely.  Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (not just a message string)

Example:
    try:
        record = service.recalculate(record, settings, auth)
    except RecordLockedError as e:
        api_response(code=e.code, status=e.payment_status)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PayrollKernelError (base)
    |
    +-- PeriodError
    |   +-- InvalidPeriodError
    |
    +-- AttendanceError
    |   +-- InvalidAttendanceError
    |
    +-- CalculationError
    |   +-- InvalidAmountError          (also a ValueError)
    |   +-- MissingBaselineError        (recovered: fallback baseline)
    |   +-- DeductionOutOfRangeError    (recovered: clamped)
    |   +-- InvariantViolationError     (fatal: engine defect)
    |
    +-- LifecycleError
    |   +-- RecordLockedError
    |   +-- InvalidTransitionError
    |   +-- ConfirmationRequiredError
    |   +-- NonEditableFieldError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- PersistenceError
        +-- PayrollRecordNotFoundError
        +-- DuplicatePayrollError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                      | When Raised
-------------|---------------------------|-------------------------------------------
Period       | INVALID_PERIOD            | days_in_period <= 0, month not in 1..12
Attendance   | INVALID_ATTENDANCE        | negative counts, working days > period days
Calculation  | MISSING_BASELINE          | baseline absent/zero (surfaced as warning)
             | DEDUCTION_OUT_OF_RANGE    | statutory value clamped (surfaced as warning)
             | INVALID_AMOUNT            | amount is not a finite decimal number
             | INVARIANT_VIOLATION       | gross - deductions != net after computation
Lifecycle    | RECORD_LOCKED             | mutation of Processing/Paid without override
             | INVALID_TRANSITION        | status change not in the transition table
             | CONFIRMATION_REQUIRED     | locking transition requested unconfirmed
             | NON_EDITABLE_FIELD        | edit targets a derived or unknown field
Concurrency  | OPTIMISTIC_LOCK_CONFLICT  | stored version differs from expected
Persistence  | PAYROLL_RECORD_NOT_FOUND  | record ID does not exist
             | DUPLICATE_PAYROLL         | employee already has a record for the month

===============================================================================
RECOVERABLE VS FATAL
===============================================================================

MissingBaselineError and DeductionOutOfRangeError are never raised out of the
computation pipeline.  They are instantiated, logged, and converted into
``ComputationWarning`` entries on the computed breakdown so the caller can
display them.  Every other error propagates.
"""

from decimal import Decimal


class PayrollKernelError(Exception):
    """
    Base exception for all payroll kernel errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "PAYROLL_KERNEL_ERROR"


# Period-related exceptions


class PeriodError(PayrollKernelError):
    """Base exception for period-related errors."""

    code: str = "PERIOD_ERROR"


class InvalidPeriodError(PeriodError):
    """The payroll period cannot be prorated against."""

    code: str = "INVALID_PERIOD"

    def __init__(self, reason: str, days_in_period: int | None = None):
        self.reason = reason
        self.days_in_period = days_in_period
        super().__init__(f"Invalid period: {reason}")


# Attendance-related exceptions


class AttendanceError(PayrollKernelError):
    """Base exception for attendance-related errors."""

    code: str = "ATTENDANCE_ERROR"


class InvalidAttendanceError(AttendanceError):
    """Attendance counts are negative or exceed the period length."""

    code: str = "INVALID_ATTENDANCE"

    def __init__(self, field: str, value: int, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid attendance {field}={value}: {reason}")


# Calculation-related exceptions


class CalculationError(PayrollKernelError):
    """Base exception for calculation errors."""

    code: str = "CALCULATION_ERROR"


class InvalidAmountError(CalculationError, ValueError):
    """An input amount is not a finite decimal number."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(f"Invalid amount for {field}: {value!r}")


class MissingBaselineError(CalculationError):
    """
    Baseline salary is absent or non-positive.

    Recovered locally: the configured fallback baseline is used and the
    substitution is reported on the breakdown.
    """

    code: str = "MISSING_BASELINE"

    def __init__(self, supplied: Decimal | None, fallback: Decimal):
        self.supplied = supplied
        self.fallback = fallback
        super().__init__(
            f"Baseline salary {supplied} is missing or non-positive; "
            f"using fallback {fallback}"
        )


class DeductionOutOfRangeError(CalculationError):
    """
    A prorated statutory deduction fell outside its configured range.

    Recovered locally by clamping to the nearest bound.
    """

    code: str = "DEDUCTION_OUT_OF_RANGE"

    def __init__(
        self,
        deduction: str,
        value: Decimal,
        minimum: Decimal | None,
        maximum: Decimal | None,
        clamped_to: Decimal,
    ):
        self.deduction = deduction
        self.value = value
        self.minimum = minimum
        self.maximum = maximum
        self.clamped_to = clamped_to
        super().__init__(
            f"Deduction {deduction}={value} outside [{minimum}, {maximum}]; "
            f"clamped to {clamped_to}"
        )


class InvariantViolationError(CalculationError):
    """
    Derived totals do not satisfy net = round(gross - deductions).

    Indicates an engine defect.  Never caught and tolerated.
    """

    code: str = "INVARIANT_VIOLATION"

    def __init__(
        self,
        gross_salary: Decimal,
        total_deductions: Decimal,
        net_salary: Decimal,
        expected_net: Decimal,
    ):
        self.gross_salary = gross_salary
        self.total_deductions = total_deductions
        self.net_salary = net_salary
        self.expected_net = expected_net
        super().__init__(
            f"Net invariant violated: gross={gross_salary}, "
            f"deductions={total_deductions}, net={net_salary}, "
            f"expected net={expected_net}"
        )


# Lifecycle-related exceptions


class LifecycleError(PayrollKernelError):
    """Base exception for payment lifecycle errors."""

    code: str = "LIFECYCLE_ERROR"


class RecordLockedError(LifecycleError):
    """Mutation attempted on a locked record without admin override."""

    code: str = "RECORD_LOCKED"

    def __init__(self, record_id: str, payment_status: str, action: str):
        self.record_id = record_id
        self.payment_status = payment_status
        self.action = action
        super().__init__(
            f"Payroll record {record_id} is locked in status "
            f"'{payment_status}'; '{action}' requires admin override"
        )


class InvalidTransitionError(LifecycleError):
    """Requested payment status change has no entry in the transition table."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, record_id: str, from_status: str, to_status: str):
        self.record_id = record_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Payroll record {record_id}: no transition from "
            f"'{from_status}' to '{to_status}'"
        )


class ConfirmationRequiredError(LifecycleError):
    """A transition that locks the record was requested without confirmation."""

    code: str = "CONFIRMATION_REQUIRED"

    def __init__(self, record_id: str, from_status: str, to_status: str):
        self.record_id = record_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Payroll record {record_id}: moving from '{from_status}' to "
            f"'{to_status}' locks the record and must be confirmed"
        )


class NonEditableFieldError(LifecycleError):
    """Edit targets a derived field or a field that does not exist."""

    code: str = "NON_EDITABLE_FIELD"

    def __init__(self, fields: tuple[str, ...]):
        self.fields = fields
        super().__init__(f"Fields are not editable: {', '.join(fields)}")


# Concurrency-related exceptions


class ConcurrencyError(PayrollKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str, expected_version: int):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            f"expected version {expected_version}, "
            "entity was modified by another transaction"
        )


# Persistence-related exceptions


class PersistenceError(PayrollKernelError):
    """Base exception for record store errors."""

    code: str = "PERSISTENCE_ERROR"


class PayrollRecordNotFoundError(PersistenceError):
    """Payroll record with given ID was not found."""

    code: str = "PAYROLL_RECORD_NOT_FOUND"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Payroll record not found: {record_id}")


class DuplicatePayrollError(PersistenceError):
    """A payroll record already exists for this employee and month."""

    code: str = "DUPLICATE_PAYROLL"

    def __init__(self, employee_id: str, month: int, year: int):
        self.employee_id = employee_id
        self.month = month
        self.year = year
        super().__init__(
            f"A payroll record already exists for employee {employee_id} "
            f"for {month}/{year}"
        )
