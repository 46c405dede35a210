"""
Payroll Record Store (``payroll_modules.payroll.store``).

Responsibility
--------------
Loads and persists ``PayrollRecord`` DTOs through ``PayrollRecordModel``.
Updates are guarded by an optimistic version check; inserts are guarded
by the one-record-per-employee-per-month constraint.

Architecture position
---------------------
**Modules layer** -- persistence.  Flushes within the caller's session;
never commits.  Transaction boundaries belong to the caller
(``session_scope`` or a test fixture).

Failure modes
-------------
* DuplicatePayrollError: a record exists for the employee and month.
* OptimisticLockError: the stored version differs from the expected one.
* PayrollRecordNotFoundError: unknown record ID.
* RecordLockedError: deleting a Paid record without admin override.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from payroll_kernel.exceptions import (
    DuplicatePayrollError,
    OptimisticLockError,
    PayrollRecordNotFoundError,
)
from payroll_kernel.logging_config import get_logger
from payroll_modules.payroll.lifecycle import authorize_delete
from payroll_modules.payroll.models import AuthContext, PayrollPeriod, PayrollRecord
from payroll_modules.payroll.orm import PayrollRecordModel

logger = get_logger("modules.payroll.store")


class PayrollRecordStore:
    """
    SQLAlchemy-backed store for payroll records.

    Contract:
        Accepts and returns frozen ``PayrollRecord`` DTOs; ORM instances
        never leave this class.

    Non-goals:
        - Does NOT call ``session.commit()``.
        - Does NOT compute payroll; callers pass computed records.
    """

    def __init__(self, session: Session):
        self.session = session

    def _find(self, employee_id: str, period: PayrollPeriod) -> PayrollRecordModel | None:
        return self.session.scalars(
            select(PayrollRecordModel).where(
                PayrollRecordModel.employee_id == employee_id,
                PayrollRecordModel.month == period.month,
                PayrollRecordModel.year == period.year,
            )
        ).one_or_none()

    def add(self, record: PayrollRecord, actor_id: UUID) -> PayrollRecord:
        """Insert a new record.  Raises DuplicatePayrollError."""
        if self._find(record.employee_id, record.period) is not None:
            raise DuplicatePayrollError(
                record.employee_id, record.period.month, record.period.year
            )
        self.session.add(PayrollRecordModel.from_dto(record, created_by_id=actor_id))
        try:
            self.session.flush()
        except IntegrityError:
            # Concurrent insert won the unique constraint
            self.session.rollback()
            logger.warning(
                "concurrent_payroll_insert_conflict",
                extra={
                    "employee_id": record.employee_id,
                    "period": record.period.label,
                },
            )
            raise DuplicatePayrollError(
                record.employee_id, record.period.month, record.period.year
            )
        logger.info(
            "payroll_record_added",
            extra={
                "record_id": str(record.id),
                "employee_id": record.employee_id,
                "period": record.period.label,
            },
        )
        return record

    def get(self, record_id: UUID) -> PayrollRecord:
        model = self.session.get(PayrollRecordModel, record_id)
        if model is None:
            raise PayrollRecordNotFoundError(str(record_id))
        return model.to_dto()

    def find(self, employee_id: str, period: PayrollPeriod) -> PayrollRecord | None:
        model = self._find(employee_id, period)
        return None if model is None else model.to_dto()

    def get_for_period(self, period: PayrollPeriod) -> list[PayrollRecord]:
        models = self.session.scalars(
            select(PayrollRecordModel)
            .where(
                PayrollRecordModel.month == period.month,
                PayrollRecordModel.year == period.year,
            )
            .order_by(PayrollRecordModel.employee_id)
        ).all()
        return [m.to_dto() for m in models]

    def list_for_employee(self, employee_id: str) -> list[PayrollRecord]:
        models = self.session.scalars(
            select(PayrollRecordModel)
            .where(PayrollRecordModel.employee_id == employee_id)
            .order_by(PayrollRecordModel.year.desc(), PayrollRecordModel.month.desc())
        ).all()
        return [m.to_dto() for m in models]

    def save(
        self,
        record: PayrollRecord,
        expected_version: int,
        actor_id: UUID,
    ) -> PayrollRecord:
        """
        Persist ``record`` if the stored version is still ``expected_version``.

        Raises:
            OptimisticLockError: another writer saved first.
            PayrollRecordNotFoundError: record was never added.
        """
        values = PayrollRecordModel.columns_from_dto(record)
        values["updated_by_id"] = actor_id
        result = self.session.execute(
            update(PayrollRecordModel)
            .where(
                PayrollRecordModel.id == record.id,
                PayrollRecordModel.version == expected_version,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            if self.session.get(PayrollRecordModel, record.id) is None:
                raise PayrollRecordNotFoundError(str(record.id))
            logger.warning(
                "payroll_record_version_conflict",
                extra={
                    "record_id": str(record.id),
                    "expected_version": expected_version,
                },
            )
            raise OptimisticLockError("PayrollRecord", str(record.id), expected_version)
        self.session.flush()
        self.session.expire_all()
        logger.info(
            "payroll_record_saved",
            extra={
                "record_id": str(record.id),
                "version": record.version,
                "payment_status": record.payment_status.value,
            },
        )
        return record

    def delete(self, record_id: UUID, auth: AuthContext) -> None:
        """Delete a record.  Paid records need an admin override."""
        model = self.session.get(PayrollRecordModel, record_id)
        if model is None:
            raise PayrollRecordNotFoundError(str(record_id))
        record = model.to_dto()
        overridden = authorize_delete(record, auth)
        self.session.delete(model)
        self.session.flush()
        log = logger.warning if overridden else logger.info
        log(
            "payroll_record_deleted",
            extra={
                "record_id": str(record_id),
                "payment_status": record.payment_status.value,
                "actor_id": str(auth.actor_id),
                "admin_override": overridden,
            },
        )
