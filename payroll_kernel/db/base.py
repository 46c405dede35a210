"""
Module: payroll_kernel.db.base
Responsibility: Declarative base for the payroll ORM models.
Architecture position: Kernel > DB.  MUST NOT import from modules/, services/
    or engines/.

Invariants enforced:
    - Primary keys are the UUIDs the frozen DTOs already carry, so a record
      keeps its identity across ``to_dto``/``from_dto``.
    - Python Decimal maps to Numeric(38, 9).  Salary amounts are NEVER
      stored as float.
    - TrackedBase records who created and who last saved each row.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Numeric, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Declarative base for all payroll models.

    ``Uuid`` is native on PostgreSQL and CHAR(32) on SQLite; both return
    ``uuid.UUID`` objects.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        UUID: Uuid(as_uuid=True),
    }

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)


class TrackedBase(Base):
    """Abstract base adding row timestamps and the acting user ids."""

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )
    created_by_id: Mapped[UUID]
    updated_by_id: Mapped[UUID | None]
