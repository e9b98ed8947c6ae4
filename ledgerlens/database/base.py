"""
Base Model Module
Declarative base and the id/timestamp mixins shared by the ledger tables.
"""

import re
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import DateTime, Uuid, func
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    declared_attr,
    mapped_column,
)


def table_name_for(class_name: str) -> str:
    """
    snake_case plural of a model class name.

    Examples:
        Transaction -> transactions
        LedgerEntry -> ledger_entries
    """
    name = re.sub(r"(?<!^)(?=[A-Z])", "_", class_name).lower()
    if name.endswith("y") and name[-2] not in "aeiou":
        return name[:-1] + "ies"
    if name.endswith(("s", "x", "ch", "sh")):
        return name + "es"
    return name + "s"


class Base(DeclarativeBase):
    """Base class for ledger models; table names derive from the class name."""

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return table_name_for(cls.__name__)

    def __repr__(self) -> str:
        attrs = [f"id={getattr(self, 'id', None)}"]
        for attr in ("reference", "status", "amount"):
            value = getattr(self, attr, None)
            if value is not None:
                attrs.append(f"{attr}={value!r}")
        return f"<{self.__class__.__name__}({', '.join(attrs)})>"

    def to_dict(self) -> dict[str, Any]:
        """
        Column values as JSON-safe primitives.

        Money stays exact: Decimal columns become strings ("250.00"), not floats.
        """
        result = {}
        for column in self.__table__.columns:
            value = getattr(self, column.name)
            if isinstance(value, (datetime, date)):
                value = value.isoformat()
            elif isinstance(value, uuid.UUID):
                value = str(value)
            elif isinstance(value, Decimal):
                value = str(value)
            result[column.name] = value
        return result


class TimestampMixin:
    """created_at / updated_at, set by the database."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class UUIDMixin:
    """
    UUID primary key.

    The generic Uuid type stores native UUID on PostgreSQL and CHAR(32) on
    SQLite, so the same models run against both.
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )
