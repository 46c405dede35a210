"""
Payroll Payment Workflow (``payroll_modules.payroll.workflows``).

Responsibility
--------------
Declares the state machine for the payroll payment lifecycle.  Guards
express preconditions evaluated by ``payroll_modules.payroll.lifecycle``;
``requires_confirmation=True`` marks transitions that lock the record.

Architecture position
---------------------
**Modules layer** -- declarative workflow definitions.  Imports canonical
Guard, Transition, Workflow from ``payroll_kernel.domain.workflow``.

Invariants enforced
-------------------
* ``Processing`` and ``Paid`` are locked: no field edit or recalculation
  without an admin override.
* ``Paid`` is terminal; only an admin override moves a record out of it.
* Every transition into a locked state requires confirmation.

Audit relevance
---------------
Workflow definition logged at module-load time with state and transition
counts for configuration audit.
"""

from payroll_kernel.domain.workflow import Guard, Transition, Workflow
from payroll_kernel.logging_config import get_logger
from payroll_modules.payroll.models import PaymentStatus

logger = get_logger("modules.payroll.workflows")

PENDING = PaymentStatus.PENDING.value
PROCESSING = PaymentStatus.PROCESSING.value
PAID = PaymentStatus.PAID.value
FAILED = PaymentStatus.FAILED.value


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

RETRY_PERMITTED = Guard(
    name="retry_permitted",
    description="Failed payments may be retried unless settings require an admin override",
)

PAYOUT_SETTLED = Guard(
    name="payout_settled",
    description="Payment provider reported the payout as settled",
)


# -----------------------------------------------------------------------------
# Payment Workflow
# -----------------------------------------------------------------------------

PAYMENT_LIFECYCLE_WORKFLOW = Workflow(
    name="payroll_payment",
    description="Monthly salary payment lifecycle",
    initial_state=PENDING,
    states=(PENDING, PROCESSING, PAID, FAILED),
    terminal_states=(PAID,),
    locked_states=(PROCESSING, PAID),
    transitions=(
        Transition(PENDING, PROCESSING, action="process", requires_confirmation=True),
        Transition(PENDING, PAID, action="mark_paid", requires_confirmation=True),
        Transition(PENDING, FAILED, action="fail"),
        Transition(PROCESSING, PAID, action="complete", guard=PAYOUT_SETTLED),
        Transition(PROCESSING, FAILED, action="fail"),
        Transition(FAILED, PENDING, action="retry", guard=RETRY_PERMITTED),
    ),
)

logger.info(
    "payroll_payment_workflow_registered",
    extra={
        "workflow_name": PAYMENT_LIFECYCLE_WORKFLOW.name,
        "state_count": len(PAYMENT_LIFECYCLE_WORKFLOW.states),
        "transition_count": len(PAYMENT_LIFECYCLE_WORKFLOW.transitions),
        "initial_state": PAYMENT_LIFECYCLE_WORKFLOW.initial_state,
        "locked_states": list(PAYMENT_LIFECYCLE_WORKFLOW.locked_states),
    },
)
