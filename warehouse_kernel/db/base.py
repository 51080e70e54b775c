"""
Module: warehouse_kernel.db.base
Responsibility: Declarative base classes for all SQLAlchemy ORM models.  Provides
    the prefixed string primary key convention, the type annotation map for
    consistent column types, and the TrackedBase mixin for audit timestamps.
Architecture position: Kernel > DB.  This is the lowest-level import target
    within the kernel.  ALL model files import from here.  This module MUST NOT
    import from models/, services/, selectors/, or outer layers.

Invariants enforced:
    - Prefixed primary keys: every model declares ``__id_prefix__`` and receives
      an ``id`` column defaulting to ``<PREFIX>-<8 hex>`` (see domain/identifiers).
    - Money precision: Decimal maps to Numeric(18, 2).  NEVER use float for
      prices or costs.
    - Audit timestamps: TrackedBase provides created_at, updated_at and
      created_by_id.

Failure modes:
    - IntegrityError on a duplicate identifier (not re-checked; the token space
      is 16**8 per prefix).
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import Date, DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

from warehouse_kernel.domain.identifiers import new_identifier

ID_LENGTH = 20


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Contract:
        Every ORM model inherits from Base (or TrackedBase) and sets
        ``__id_prefix__``.  Base provides the ``id`` primary key and a
        type_annotation_map that keeps column types consistent.

    Guarantees:
        - id is a String(20) generated as ``<prefix>-XXXXXXXX`` on INSERT
          unless the caller assigned one.
        - Decimal maps to Numeric(18, 2).
        - datetime maps to DateTime(timezone=True).
    """

    __id_prefix__: ClassVar[str] = ""

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 2),
        datetime: DateTime(timezone=True),
        date: Date,
        int: Integer,
    }

    @declared_attr
    def id(cls) -> Mapped[str]:
        prefix = cls.__id_prefix__
        return mapped_column(
            String(ID_LENGTH),
            primary_key=True,
            default=lambda: new_identifier(prefix),
        )


class TrackedBase(Base):
    """
    Abstract base with audit timestamp and actor tracking.

    Guarantees:
        - created_at is set to server NOW() on INSERT and never changes.
        - updated_at auto-updates on every UPDATE.
        - created_by_id is required -- every record has a creating staff id.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    created_by_id: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)
