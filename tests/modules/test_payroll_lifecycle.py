"""
Tests for the payroll payment lifecycle.

Covers:
- Lock state as a function of payment status
- Transition table: allowed, confirmation-gated, rejected
- Admin override path and its audit entry
- Edit permission checks
- Workflow definition integrity
"""

from datetime import date

import pytest

from payroll_kernel.domain.workflow import Transition, Workflow
from payroll_kernel.exceptions import (
    ConfirmationRequiredError,
    InvalidTransitionError,
    NonEditableFieldError,
    RecordLockedError,
)
from payroll_modules.payroll import (
    PAYMENT_LIFECYCLE_WORKFLOW,
    PaymentMethod,
    PaymentStatus,
    can_edit,
    check_edit,
    is_locked,
    transition,
)
from payroll_modules.payroll.lifecycle import authorize_delete


class TestIsLocked:

    @pytest.mark.parametrize(
        "status,locked",
        [
            (PaymentStatus.PENDING, False),
            (PaymentStatus.PROCESSING, True),
            (PaymentStatus.PAID, True),
            (PaymentStatus.FAILED, False),
        ],
    )
    def test_locked_statuses(self, status, locked):
        assert is_locked(status) is locked

    def test_accepts_status_value(self):
        assert is_locked("Paid")


class TestAllowedTransitions:

    def test_pending_to_processing_requires_confirmation(self, make_record, auth, clock):
        record = make_record()
        with pytest.raises(ConfirmationRequiredError):
            transition(record, PaymentStatus.PROCESSING, auth, clock)

        moved = transition(record, PaymentStatus.PROCESSING, auth, clock, confirm=True)
        assert moved.payment_status == PaymentStatus.PROCESSING
        assert moved.version == record.version + 1
        assert moved.admin_override_log == ()

    def test_processing_to_paid_stamps_date_from_clock(self, make_record, auth, clock):
        record = make_record(status=PaymentStatus.PROCESSING)
        paid = transition(
            record,
            PaymentStatus.PAID,
            auth,
            clock,
            payment_method=PaymentMethod.BANK_TRANSFER,
            transaction_id="TXN-001",
        )
        assert paid.payment_status == PaymentStatus.PAID
        assert paid.payment_date == date(2024, 7, 1)
        assert paid.payment_method == PaymentMethod.BANK_TRANSFER
        assert paid.transaction_id == "TXN-001"

    def test_explicit_payment_date_kept(self, make_record, auth, clock):
        record = make_record()
        paid = transition(
            record, "Paid", auth, clock, confirm=True, payment_date=date(2024, 6, 30)
        )
        assert paid.payment_date == date(2024, 6, 30)

    def test_failed_retry_to_pending(self, make_record, auth, clock):
        record = make_record(status=PaymentStatus.FAILED)
        retried = transition(record, PaymentStatus.PENDING, auth, clock)
        assert retried.payment_status == PaymentStatus.PENDING

    def test_retry_requiring_override(self, make_record, auth, admin_auth, clock):
        record = make_record(status=PaymentStatus.FAILED)
        with pytest.raises(InvalidTransitionError):
            transition(
                record, PaymentStatus.PENDING, auth, clock, retry_requires_override=True
            )
        retried = transition(
            record, PaymentStatus.PENDING, admin_auth, clock, retry_requires_override=True
        )
        assert len(retried.admin_override_log) == 1
        assert retried.admin_override_log[0].action == "retry"

    def test_same_status_is_noop(self, make_record, auth, clock):
        record = make_record(status=PaymentStatus.PAID)
        assert transition(record, PaymentStatus.PAID, auth, clock) is record


class TestRejectedTransitions:

    def test_paid_to_pending_locked(self, make_record, auth, clock):
        record = make_record(status=PaymentStatus.PAID)
        with pytest.raises(RecordLockedError) as exc_info:
            transition(record, PaymentStatus.PENDING, auth, clock)
        assert exc_info.value.payment_status == "Paid"

    def test_processing_to_pending_locked(self, make_record, auth, clock):
        record = make_record(status=PaymentStatus.PROCESSING)
        with pytest.raises(RecordLockedError):
            transition(record, PaymentStatus.PENDING, auth, clock)

    def test_failed_to_paid_invalid(self, make_record, auth, clock):
        record = make_record(status=PaymentStatus.FAILED)
        with pytest.raises(InvalidTransitionError) as exc_info:
            transition(record, PaymentStatus.PAID, auth, clock, confirm=True)
        assert exc_info.value.from_status == "Failed"
        assert exc_info.value.to_status == "Paid"


class TestAdminOverride:

    def test_override_reopens_paid_record(self, make_record, admin_auth, clock):
        record = make_record(status=PaymentStatus.PAID)
        reopened = transition(record, PaymentStatus.PENDING, admin_auth, clock)

        assert reopened.payment_status == PaymentStatus.PENDING
        (entry,) = reopened.admin_override_log
        assert entry.actor_id == admin_auth.actor_id
        assert entry.timestamp == clock.now()
        assert entry.from_status == PaymentStatus.PAID
        assert entry.to_status == PaymentStatus.PENDING
        assert entry.description == admin_auth.reason

    def test_override_into_locked_state_still_needs_confirmation(
        self, make_record, admin_auth, clock
    ):
        record = make_record(status=PaymentStatus.FAILED)
        with pytest.raises(ConfirmationRequiredError):
            transition(record, PaymentStatus.PAID, admin_auth, clock)
        paid = transition(record, PaymentStatus.PAID, admin_auth, clock, confirm=True)
        assert paid.payment_status == PaymentStatus.PAID

    def test_allowed_transition_with_override_not_audited(
        self, make_record, admin_auth, clock
    ):
        record = make_record(status=PaymentStatus.PROCESSING)
        failed = transition(record, PaymentStatus.FAILED, admin_auth, clock)
        assert failed.admin_override_log == ()


class TestPayoutFields:

    def test_payout_outcome_recorded_from_processing(
        self, make_record, auth, clock, captured_logs
    ):
        record = make_record(status=PaymentStatus.PROCESSING)
        failed = transition(
            record,
            PaymentStatus.FAILED,
            auth,
            clock,
            transaction_id="TXN-404",
            remarks="Beneficiary account closed",
        )
        assert failed.transaction_id == "TXN-404"
        assert failed.remarks == "Beneficiary account closed"
        assert failed.admin_override_log == ()
        (changed,) = [
            r for r in captured_logs() if r["message"] == "payment_status_changed"
        ]
        assert changed["payout_fields"] == ["transaction_id", "remarks"]

    def test_payout_fields_on_paid_record_need_override(
        self, make_record, auth, admin_auth, clock
    ):
        record = make_record(
            status=PaymentStatus.PAID, transaction_id="TXN-001", remarks="June run"
        )
        with pytest.raises(RecordLockedError):
            transition(
                record, PaymentStatus.FAILED, auth, clock, transaction_id="TXN-999"
            )
        assert record.transaction_id == "TXN-001"

        failed = transition(
            record, PaymentStatus.FAILED, admin_auth, clock, transaction_id="TXN-999"
        )
        assert failed.transaction_id == "TXN-999"
        (entry,) = failed.admin_override_log
        assert entry.from_status == PaymentStatus.PAID

    def test_omitted_payout_fields_kept(self, make_record, auth, clock):
        record = make_record(status=PaymentStatus.PROCESSING, remarks="June run")
        paid = transition(record, PaymentStatus.PAID, auth, clock)
        assert paid.remarks == "June run"
        assert paid.transaction_id is None


class TestEditPermission:

    def test_pending_inputs_editable(self, make_record, auth):
        assert can_edit(make_record(), ["bonus", "attendance"], auth)

    def test_derived_fields_not_editable(self, make_record, auth, admin_auth):
        record = make_record()
        assert not can_edit(record, ["net_salary"], auth)
        assert not can_edit(record, ["breakdown"], admin_auth)
        with pytest.raises(NonEditableFieldError) as exc_info:
            check_edit(record, ["bonus", "gross_salary", "payment_status"], auth)
        assert exc_info.value.fields == ("gross_salary", "payment_status")

    def test_locked_record_needs_override(self, make_record, auth, admin_auth):
        record = make_record(status=PaymentStatus.PROCESSING)
        assert not can_edit(record, ["bonus"], auth)
        assert can_edit(record, ["bonus"], admin_auth)
        with pytest.raises(RecordLockedError):
            check_edit(record, ["bonus"], auth)
        assert check_edit(record, ["bonus"], admin_auth) is True

    def test_delete_paid_needs_override(self, make_record, auth, admin_auth):
        paid = make_record(status=PaymentStatus.PAID)
        with pytest.raises(RecordLockedError):
            authorize_delete(paid, auth)
        assert authorize_delete(paid, admin_auth) is True
        assert authorize_delete(make_record(), auth) is False


class TestWorkflowDefinition:

    def test_states_and_locks(self):
        wf = PAYMENT_LIFECYCLE_WORKFLOW
        assert wf.initial_state == "Pending"
        assert set(wf.locked_states) == {"Processing", "Paid"}
        assert wf.terminal_states == ("Paid",)

    def test_every_transition_into_lock_from_unlocked_needs_confirmation(self):
        wf = PAYMENT_LIFECYCLE_WORKFLOW
        for t in wf.transitions:
            if t.to_state in wf.locked_states and t.from_state not in wf.locked_states:
                assert t.requires_confirmation, t.action

    def test_unknown_state_rejected(self):
        with pytest.raises(ValueError, match="unknown state"):
            Workflow(
                name="bad",
                description="",
                initial_state="a",
                states=("a",),
                transitions=(Transition("a", "b", action="go"),),
            )

    def test_duplicate_pair_rejected(self):
        with pytest.raises(ValueError, match="duplicate"):
            Workflow(
                name="bad",
                description="",
                initial_state="a",
                states=("a", "b"),
                transitions=(
                    Transition("a", "b", action="go"),
                    Transition("a", "b", action="again"),
                ),
            )
