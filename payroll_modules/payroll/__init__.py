"""
Payroll Module (``payroll_modules.payroll``).

Responsibility
--------------
Monthly payroll records for individual employees: the record and breakdown
value objects, the payment lifecycle workflow and its lock rules, and the
SQLAlchemy-backed record store.

Architecture position
---------------------
**Modules layer** -- value objects, declarative workflow, lifecycle rules
and persistence.  Computation is delegated to ``payroll_engines`` by
``payroll_services.RecalculationService``.

Invariants enforced
-------------------
* Processing and Paid records are locked; mutation needs an admin
  override, which is always audited on the record.
* Totals on a record are derived from its inputs and never set directly.
"""

from payroll_modules.payroll.lifecycle import (
    LOCKED_STATUSES,
    authorize_delete,
    authorize_mutation,
    can_edit,
    check_edit,
    is_locked,
    transition,
)
from payroll_modules.payroll.models import (
    INPUT_FIELDS,
    AdminOverrideEntry,
    AuthContext,
    PaymentMethod,
    PaymentStatus,
    PayrollBreakdown,
    PayrollPeriod,
    PayrollRecord,
)
from payroll_modules.payroll.store import PayrollRecordStore
from payroll_modules.payroll.workflows import PAYMENT_LIFECYCLE_WORKFLOW

__all__ = [
    "INPUT_FIELDS",
    "LOCKED_STATUSES",
    "PAYMENT_LIFECYCLE_WORKFLOW",
    "AdminOverrideEntry",
    "AuthContext",
    "PaymentMethod",
    "PaymentStatus",
    "PayrollBreakdown",
    "PayrollPeriod",
    "PayrollRecord",
    "PayrollRecordStore",
    "authorize_delete",
    "authorize_mutation",
    "can_edit",
    "check_edit",
    "is_locked",
    "transition",
]
