"""
Payroll Record Lifecycle Rules (``payroll_modules.payroll.lifecycle``).

Responsibility
--------------
Decides whether a payroll record may be edited, recalculated, deleted or
moved to another payment status, and produces the new record for a status
change.  Lock state is a pure function of ``payment_status``.

Architecture position
---------------------
**Modules layer** -- pure rules over frozen records.  Time is read only
from the injected ``Clock``; no I/O.

Invariants enforced
-------------------
* ``Processing`` and ``Paid`` records are locked.  Mutating a locked
  record requires ``AuthContext.is_admin_override``.
* Every use of an override on a locked record, or for a status change the
  workflow does not allow, appends exactly one ``AdminOverrideEntry``.
* Requesting the current status is a no-op: same record, same version.
* Transitions into a locked state require explicit confirmation.

Failure modes
-------------
* RecordLockedError, InvalidTransitionError, ConfirmationRequiredError,
  NonEditableFieldError.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import date

from payroll_kernel.domain.clock import Clock
from payroll_kernel.exceptions import (
    ConfirmationRequiredError,
    InvalidTransitionError,
    NonEditableFieldError,
    RecordLockedError,
)
from payroll_kernel.logging_config import get_logger
from payroll_modules.payroll.models import (
    INPUT_FIELDS,
    AdminOverrideEntry,
    AuthContext,
    PaymentMethod,
    PaymentStatus,
    PayrollRecord,
)
from payroll_modules.payroll.workflows import (
    PAYMENT_LIFECYCLE_WORKFLOW,
    RETRY_PERMITTED,
)

logger = get_logger("modules.payroll.lifecycle")

LOCKED_STATUSES: frozenset[PaymentStatus] = frozenset(
    PaymentStatus(state) for state in PAYMENT_LIFECYCLE_WORKFLOW.locked_states
)

PAYOUT_FIELDS = ("payment_method", "transaction_id", "remarks")


def is_locked(status: PaymentStatus | str) -> bool:
    return PaymentStatus(status) in LOCKED_STATUSES


def non_editable_fields(requested_fields: Iterable[str]) -> tuple[str, ...]:
    return tuple(sorted(set(requested_fields) - INPUT_FIELDS))


def can_edit(
    record: PayrollRecord,
    requested_fields: Iterable[str],
    auth: AuthContext,
) -> bool:
    """True when every requested field is an input and the lock permits it."""
    if non_editable_fields(requested_fields):
        return False
    return not is_locked(record.payment_status) or auth.is_admin_override


def override_entry(
    clock: Clock,
    auth: AuthContext,
    action: str,
    record: PayrollRecord,
    to_status: PaymentStatus | None = None,
    changed_fields: Iterable[str] = (),
) -> AdminOverrideEntry:
    description = auth.reason or f"Admin override: {action}"
    entry = AdminOverrideEntry(
        timestamp=clock.now(),
        actor_id=auth.actor_id,
        action=action,
        from_status=record.payment_status,
        to_status=to_status,
        changed_fields=tuple(sorted(changed_fields)),
        description=description,
    )
    logger.warning(
        "admin_override_applied",
        extra={
            "record_id": str(record.id),
            "actor_id": str(auth.actor_id),
            "action": action,
            "from_status": record.payment_status.value,
            "to_status": None if to_status is None else to_status.value,
            "changed_fields": list(entry.changed_fields),
        },
    )
    return entry


def authorize_mutation(
    record: PayrollRecord,
    auth: AuthContext,
    action: str,
) -> bool:
    """
    Check the lock for an edit or recalculation.

    Returns True when the mutation is only allowed because of an override,
    i.e. the caller must append an override entry.

    Raises:
        RecordLockedError: locked record and no override.
    """
    if not is_locked(record.payment_status):
        return False
    if not auth.is_admin_override:
        logger.warning(
            "record_locked_rejected",
            extra={
                "record_id": str(record.id),
                "payment_status": record.payment_status.value,
                "action": action,
                "actor_id": str(auth.actor_id),
            },
        )
        raise RecordLockedError(
            str(record.id), record.payment_status.value, action
        )
    return True


def check_edit(
    record: PayrollRecord,
    requested_fields: Iterable[str],
    auth: AuthContext,
) -> bool:
    """
    ``authorize_mutation`` for an edit, after rejecting derived fields.

    Raises:
        NonEditableFieldError, RecordLockedError
    """
    bad = non_editable_fields(requested_fields)
    if bad:
        raise NonEditableFieldError(bad)
    return authorize_mutation(record, auth, "edit")


def authorize_delete(record: PayrollRecord, auth: AuthContext) -> bool:
    """Paid records are kept unless an admin overrides."""
    if record.payment_status != PaymentStatus.PAID:
        return False
    if not auth.is_admin_override:
        raise RecordLockedError(
            str(record.id), record.payment_status.value, "delete"
        )
    return True


def transition(
    record: PayrollRecord,
    new_status: PaymentStatus | str,
    auth: AuthContext,
    clock: Clock,
    confirm: bool = False,
    retry_requires_override: bool = False,
    payment_date: date | None = None,
    payment_method: PaymentMethod | None = None,
    transaction_id: str | None = None,
    remarks: str | None = None,
) -> PayrollRecord:
    """
    Move a record to ``new_status``.

    A move to ``Paid`` stamps ``payment_date`` with today's date from the
    clock unless one is given.

    ``payment_method``, ``transaction_id`` and ``remarks`` are written with
    any transition that is allowed, including ``Processing`` to ``Paid`` or
    ``Failed`` without an override: that is where a payout outcome is
    recorded.  Any other move out of a locked status needs an override, and
    the override entry covers the fields set with it.

    Raises:
        RecordLockedError: no table entry from a locked status, no override.
        InvalidTransitionError: no table entry, or a retry needing override.
        ConfirmationRequiredError: target is locked and ``confirm`` is False.
    """
    new_status = PaymentStatus(new_status)
    current = record.payment_status
    if new_status == current:
        logger.info(
            "payment_status_unchanged",
            extra={"record_id": str(record.id), "payment_status": current.value},
        )
        return record

    workflow = PAYMENT_LIFECYCLE_WORKFLOW
    allowed = workflow.find_transition(current.value, new_status.value)
    needs_override = allowed is None or (
        allowed.guard == RETRY_PERMITTED and retry_requires_override
    )

    if needs_override and not auth.is_admin_override:
        logger.warning(
            "payment_transition_rejected",
            extra={
                "record_id": str(record.id),
                "from_status": current.value,
                "to_status": new_status.value,
                "actor_id": str(auth.actor_id),
            },
        )
        if allowed is None and is_locked(current):
            raise RecordLockedError(
                str(record.id), current.value, f"transition to {new_status.value}"
            )
        raise InvalidTransitionError(str(record.id), current.value, new_status.value)

    if allowed is not None:
        requires_confirmation = allowed.requires_confirmation
        action = allowed.action
    else:
        requires_confirmation = is_locked(new_status) and not is_locked(current)
        action = f"override_{current.value}_to_{new_status.value}".lower()
    if requires_confirmation and not confirm:
        raise ConfirmationRequiredError(
            str(record.id), current.value, new_status.value
        )

    changes: dict = {"payment_status": new_status, "version": record.version + 1}
    if new_status == PaymentStatus.PAID:
        changes["payment_date"] = payment_date or record.payment_date or clock.today()
    elif payment_date is not None:
        changes["payment_date"] = payment_date
    if payment_method is not None:
        changes["payment_method"] = PaymentMethod(payment_method)
    if transaction_id is not None:
        changes["transaction_id"] = transaction_id
    if remarks is not None:
        changes["remarks"] = remarks
    if needs_override:
        changes["admin_override_log"] = record.admin_override_log + (
            override_entry(clock, auth, action, record, to_status=new_status),
        )

    logger.info(
        "payment_status_changed",
        extra={
            "record_id": str(record.id),
            "action": action,
            "from_status": current.value,
            "to_status": new_status.value,
            "admin_override": needs_override,
            "payout_fields": [k for k in PAYOUT_FIELDS if k in changes],
            "version": changes["version"],
        },
    )
    return replace(record, **changes)
