"""
Payroll ORM Persistence Model (``payroll_modules.payroll.orm``).

Responsibility:
    SQLAlchemy ORM model that persists the ``PayrollRecord`` frozen
    dataclass and provides ``to_dto()`` / ``from_dto()`` round-trip
    conversion.

Architecture position:
    **Modules layer** -- persistence companion to the pure DTO models.
    Inherits from ``TrackedBase`` (kernel DB base) which provides:
    id (UUID PK), created_at, updated_at, created_by_id (NOT NULL UUID),
    updated_by_id (nullable UUID).

Invariants enforced:
    - One record per employee and month (uq_payroll_record_employee_period).
    - Monetary columns use Decimal (Numeric(38,9)) -- NEVER float.
    - Enum fields stored as String(50) containing the enum .value string.
    - Structured inputs, the breakdown and the override log are stored as
      JSON text with Decimal values written as strings.
    - ``gross_salary``/``total_deductions``/``net_salary`` columns are
      copies of the breakdown for querying; they are never read back as
      a source of truth.
"""

import json
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import TrackedBase


class PayrollRecordModel(TrackedBase):
    """
    ORM model for ``PayrollRecord``.

    Guarantees:
        - ``version`` mirrors the DTO version and is compared on update.
        - ``payment_status`` and ``payment_method`` store enum .value strings.
    """

    __tablename__ = "payroll_records"

    __table_args__ = (
        UniqueConstraint(
            "employee_id", "month", "year",
            name="uq_payroll_record_employee_period",
        ),
        Index("idx_payroll_record_period", "year", "month"),
        Index("idx_payroll_record_status", "payment_status"),
    )

    employee_id: Mapped[str] = mapped_column(String(100), nullable=False)
    month: Mapped[int] = mapped_column(nullable=False)
    year: Mapped[int] = mapped_column(nullable=False)
    attendance_json: Mapped[str] = mapped_column(Text, nullable=False)
    baseline_salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    fixed_allowances_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    bonus: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    overtime_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    statutory_overrides_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    discretionary_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    days_in_period: Mapped[int | None] = mapped_column(nullable=True)
    payment_status: Mapped[str] = mapped_column(String(50), nullable=False)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    transaction_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    admin_override_log_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    version: Mapped[int] = mapped_column(nullable=False, default=1)
    breakdown_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    gross_salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    total_deductions: Mapped[Decimal | None] = mapped_column(nullable=True)
    net_salary: Mapped[Decimal | None] = mapped_column(nullable=True)

    def to_dto(self):
        from payroll_modules.payroll import serialization as ser
        from payroll_modules.payroll.models import (
            PaymentMethod,
            PaymentStatus,
            PayrollPeriod,
            PayrollRecord,
        )

        return PayrollRecord(
            id=self.id,
            employee_id=self.employee_id,
            period=PayrollPeriod(month=self.month, year=self.year),
            attendance=ser.attendance_from_dict(json.loads(self.attendance_json)),
            baseline_salary=self.baseline_salary,
            fixed_allowances=ser.amounts_from_dict(json.loads(self.fixed_allowances_json)),
            bonus=self.bonus,
            overtime=ser.overtime_from_dict(
                json.loads(self.overtime_json) if self.overtime_json else None
            ),
            statutory_overrides=ser.amounts_from_dict(
                json.loads(self.statutory_overrides_json)
            ),
            discretionary_deductions=ser.amounts_from_dict(
                json.loads(self.discretionary_json)
            ),
            days_in_period=self.days_in_period,
            payment_status=PaymentStatus(self.payment_status),
            payment_method=(
                PaymentMethod(self.payment_method) if self.payment_method else None
            ),
            payment_date=self.payment_date,
            transaction_id=self.transaction_id,
            remarks=self.remarks,
            admin_override_log=ser.override_log_from_list(
                json.loads(self.admin_override_log_json)
            ),
            version=self.version,
            breakdown=ser.breakdown_from_dict(
                json.loads(self.breakdown_json) if self.breakdown_json else None
            ),
        )

    @staticmethod
    def columns_from_dto(dto) -> dict:
        """Column values for ``dto``, shared by INSERT and guarded UPDATE."""
        from payroll_modules.payroll import serialization as ser

        overtime = ser.overtime_to_dict(dto.overtime)
        breakdown = ser.breakdown_to_dict(dto.breakdown)
        return {
            "employee_id": dto.employee_id,
            "month": dto.period.month,
            "year": dto.period.year,
            "attendance_json": json.dumps(ser.attendance_to_dict(dto.attendance)),
            "baseline_salary": dto.baseline_salary,
            "fixed_allowances_json": json.dumps(ser.amounts_to_dict(dto.fixed_allowances)),
            "bonus": dto.bonus,
            "overtime_json": None if overtime is None else json.dumps(overtime),
            "statutory_overrides_json": json.dumps(
                ser.amounts_to_dict(dto.statutory_overrides)
            ),
            "discretionary_json": json.dumps(
                ser.amounts_to_dict(dto.discretionary_deductions)
            ),
            "days_in_period": dto.days_in_period,
            "payment_status": dto.payment_status.value,
            "payment_method": (
                dto.payment_method.value if dto.payment_method is not None else None
            ),
            "payment_date": dto.payment_date,
            "transaction_id": dto.transaction_id,
            "remarks": dto.remarks,
            "admin_override_log_json": json.dumps(
                ser.override_log_to_list(dto.admin_override_log)
            ),
            "version": dto.version,
            "breakdown_json": None if breakdown is None else json.dumps(breakdown),
            "gross_salary": dto.gross_salary,
            "total_deductions": dto.total_deductions,
            "net_salary": dto.net_salary,
        }

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "PayrollRecordModel":
        return cls(id=dto.id, created_by_id=created_by_id, **cls.columns_from_dto(dto))

    def __repr__(self) -> str:
        return (
            f"<PayrollRecordModel {self.employee_id} "
            f"{self.year:04d}-{self.month:02d} ({self.payment_status}) v{self.version}>"
        )
