"""
Tests for payroll record persistence.

Covers:
- ORM round trip of inputs, breakdown and override log
- One record per employee and month
- Optimistic version check on save
- Paid records cannot be deleted without admin override
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_engines import Overtime
from payroll_kernel.exceptions import (
    DuplicatePayrollError,
    OptimisticLockError,
    PayrollRecordNotFoundError,
    RecordLockedError,
)
from payroll_modules.payroll import (
    PaymentStatus,
    PayrollPeriod,
    PayrollRecordStore,
)
from payroll_modules.payroll.orm import PayrollRecordModel

ACTOR_ID = uuid4()


@pytest.fixture
def store(session):
    return PayrollRecordStore(session)


class TestAddAndGet:

    def test_round_trip_preserves_inputs_and_breakdown(
        self, store, service, settings, make_record
    ):
        record = service.compute_payroll(
            make_record(
                present=27, late=1, absent=1, on_leave=1,
                fixed_allowances={"phone": Decimal("300")},
                overtime=Overtime(hours=Decimal("10")),
                discretionary_deductions={"advance": Decimal("500")},
                remarks="June run",
            ),
            settings,
        )
        store.add(record, actor_id=ACTOR_ID)

        loaded = store.get(record.id)
        assert loaded.employee_id == "EMP-001"
        assert loaded.period == PayrollPeriod(6, 2024)
        assert loaded.attendance == record.attendance
        assert loaded.baseline_salary == Decimal("15300")
        assert loaded.fixed_allowances == {"phone": Decimal("300")}
        assert loaded.overtime == record.overtime
        assert loaded.discretionary_deductions == {"advance": Decimal("500")}
        assert loaded.remarks == "June run"
        assert loaded.payment_status == PaymentStatus.PENDING
        assert loaded.version == 1
        assert loaded.breakdown == record.breakdown
        assert loaded.net_salary == record.net_salary

    def test_override_log_survives_round_trip(
        self, store, service, settings, make_record, admin_auth
    ):
        paid = make_record(status=PaymentStatus.PAID)
        recalculated = service.recalculate(paid, settings, admin_auth)
        store.add(recalculated, actor_id=ACTOR_ID)

        loaded = store.get(recalculated.id)
        assert loaded.admin_override_log == recalculated.admin_override_log
        assert loaded.admin_override_log[0].changed_fields == ("breakdown",)

    def test_uncomputed_record_has_no_totals(self, store, make_record):
        record = make_record()
        store.add(record, actor_id=ACTOR_ID)
        loaded = store.get(record.id)
        assert loaded.breakdown is None
        assert loaded.net_salary is None

    def test_duplicate_period_rejected(self, store, make_record):
        store.add(make_record(), actor_id=ACTOR_ID)
        with pytest.raises(DuplicatePayrollError) as exc_info:
            store.add(make_record(), actor_id=ACTOR_ID)
        assert (exc_info.value.month, exc_info.value.year) == (6, 2024)

    def test_same_employee_other_month_allowed(self, store, make_record):
        store.add(make_record(month=5), actor_id=ACTOR_ID)
        store.add(make_record(month=6), actor_id=ACTOR_ID)
        months = [r.period.month for r in store.list_for_employee("EMP-001")]
        assert months == [6, 5]

    def test_get_unknown(self, store):
        with pytest.raises(PayrollRecordNotFoundError):
            store.get(uuid4())

    def test_find(self, store, make_record):
        record = make_record()
        store.add(record, actor_id=ACTOR_ID)
        assert store.find("EMP-001", PayrollPeriod(6, 2024)).id == record.id
        assert store.find("EMP-002", PayrollPeriod(6, 2024)) is None

    def test_get_for_period_ordered_by_employee(self, store, make_record):
        for employee_id in ("EMP-003", "EMP-001", "EMP-002"):
            store.add(make_record(employee_id=employee_id), actor_id=ACTOR_ID)
        store.add(make_record(employee_id="EMP-004", month=7), actor_id=ACTOR_ID)

        records = store.get_for_period(PayrollPeriod(6, 2024))
        assert [r.employee_id for r in records] == ["EMP-001", "EMP-002", "EMP-003"]


class TestSave:

    def test_save_with_current_version(self, store, service, settings, make_record, auth):
        record = make_record()
        store.add(record, actor_id=ACTOR_ID)

        recalculated = service.recalculate(record, settings, auth)
        store.save(recalculated, expected_version=record.version, actor_id=ACTOR_ID)

        loaded = store.get(record.id)
        assert loaded.version == 2
        assert loaded.net_salary == Decimal("23770.00")

    def test_stale_version_rejected(self, store, service, settings, make_record, auth):
        record = make_record()
        store.add(record, actor_id=ACTOR_ID)
        first = service.recalculate(record, settings, auth)
        store.save(first, expected_version=1, actor_id=ACTOR_ID)

        second = service.apply_edit(record, {"bonus": "1000"}, settings, auth)
        with pytest.raises(OptimisticLockError) as exc_info:
            store.save(second, expected_version=1, actor_id=ACTOR_ID)
        assert exc_info.value.expected_version == 1
        assert store.get(record.id).bonus == Decimal("0")

    def test_save_unknown_record(self, store, make_record):
        with pytest.raises(PayrollRecordNotFoundError):
            store.save(make_record(), expected_version=1, actor_id=ACTOR_ID)

    def test_save_records_updater(self, store, session, make_record, auth, clock):
        from payroll_modules.payroll import transition

        record = make_record()
        store.add(record, actor_id=ACTOR_ID)
        failed = transition(record, PaymentStatus.FAILED, auth, clock)
        store.save(failed, expected_version=1, actor_id=auth.actor_id)

        model = session.get(PayrollRecordModel, record.id)
        assert model.updated_by_id == auth.actor_id
        assert model.payment_status == "Failed"


class TestDelete:

    def test_delete_pending(self, store, make_record, auth):
        record = make_record()
        store.add(record, actor_id=ACTOR_ID)
        store.delete(record.id, auth)
        with pytest.raises(PayrollRecordNotFoundError):
            store.get(record.id)

    def test_paid_delete_needs_override(self, store, make_record, auth, admin_auth):
        record = make_record(status=PaymentStatus.PAID)
        store.add(record, actor_id=ACTOR_ID)

        with pytest.raises(RecordLockedError):
            store.delete(record.id, auth)
        assert store.get(record.id).payment_status == PaymentStatus.PAID

        store.delete(record.id, admin_auth)
        assert store.find("EMP-001", PayrollPeriod(6, 2024)) is None

    def test_delete_unknown(self, store, auth):
        with pytest.raises(PayrollRecordNotFoundError):
            store.delete(uuid4(), auth)
