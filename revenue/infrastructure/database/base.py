"""SQLAlchemy declarative base and the columns every configuration table shares.

Key components:
- **Naming conventions**: Stable constraint names for Alembic migrations
- **Base**: Declarative base carrying the metadata
- **BaseModel**: Abstract model with id and audit timestamps
- **ConfigurationModel**: Abstract model adding the validity interval, its
  check constraint and an index on natural key plus effective date
"""

from datetime import date, datetime
from typing import Any, ClassVar

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    Index,
    MetaData,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

from revenue.infrastructure.constants import NAMING_CONVENTION


class Base(DeclarativeBase):
    """Declarative base with naming conventions."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class BaseModel(Base):
    """Abstract base model with a BigInteger identity id and timestamps.

    Ids come from an identity column, so a deleted id is never reused.
    """

    __abstract__ = True

    id: Mapped[int] = mapped_column(
        BigInteger,
        primary_key=True,
        autoincrement=True,
        doc="Surrogate id assigned by the database",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Timestamp when the record was created (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        doc="Timestamp when the record was last updated (UTC)",
    )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


class ConfigurationModel(BaseModel):
    """Abstract table of dated configuration versions.

    Subclasses set ``__natural_key__`` to the column names that identify what
    a row configures; the index built from it serves overlap checks and
    history lookups.
    """

    __abstract__ = True
    __natural_key__: ClassVar[tuple[str, ...]] = ()

    effective_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        doc="First day the version applies (inclusive)",
    )

    expiration_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        doc="Last day the version applies (inclusive); NULL never expires",
    )

    @declared_attr.directive
    def __table_args__(cls) -> tuple[Any, ...]:
        return (
            CheckConstraint(
                "expiration_date IS NULL OR expiration_date >= effective_date",
                name="valid_interval",
            ),
            Index(
                f"ix_{cls.__tablename__}_natural_key",
                *cls.__natural_key__,
                "effective_date",
            ),
        )
