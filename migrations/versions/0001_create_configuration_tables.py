"""Create configuration tables

Revision ID: 0001
Revises:
Create Date: 2024-06-01 00:00:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

AMOUNT = sa.Numeric(15, 2)
RATE = sa.Numeric(9, 4)


def _common_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("effective_date", sa.Date(), nullable=False),
        sa.Column("expiration_date", sa.Date(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _status_column() -> sa.Column:
    return sa.Column(
        "status", sa.String(16), server_default="active", nullable=False
    )


def _create(table: str, natural_key: tuple[str, ...], *columns: sa.Column) -> None:
    op.create_table(
        table,
        *columns,
        *_common_columns(),
        sa.CheckConstraint(
            "expiration_date IS NULL OR expiration_date >= effective_date",
            name=op.f(f"ck_{table}_valid_interval"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f(f"pk_{table}")),
    )
    op.create_index(
        f"ix_{table}_natural_key", table, [*natural_key, "effective_date"]
    )


TABLES = (
    "business_tax_config",
    "regulatory_fee_config",
    "land_configurations",
    "property_configurations",
    "rpt_tax_config",
)


def upgrade() -> None:
    _create(
        "business_tax_config",
        ("business_type", "tax_base", "min_range"),
        sa.Column("business_type", sa.String(100), nullable=False),
        sa.Column("tax_base", sa.String(32), nullable=False),
        sa.Column("min_range", AMOUNT, nullable=False),
        sa.Column("max_range", AMOUNT, nullable=False),
        sa.Column("tax_rate", RATE, nullable=False),
        sa.Column("first_year_base", sa.String(32), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
    )
    _create(
        "regulatory_fee_config",
        ("fee_name",),
        sa.Column("fee_name", sa.String(150), nullable=False),
        sa.Column("amount", AMOUNT, nullable=False),
        sa.Column("business_type", sa.String(100), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
    )
    _create(
        "land_configurations",
        ("classification", "vicinity"),
        sa.Column("classification", sa.String(100), nullable=False),
        sa.Column("vicinity", sa.String(150), nullable=False),
        sa.Column("market_value", AMOUNT, nullable=False),
        sa.Column("assessment_level", RATE, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _status_column(),
    )
    _create(
        "property_configurations",
        ("classification", "material_type"),
        sa.Column("classification", sa.String(100), nullable=False),
        sa.Column("material_type", sa.String(100), nullable=False),
        sa.Column("unit_cost", AMOUNT, nullable=False),
        sa.Column("depreciation_rate", RATE, nullable=False),
        sa.Column("min_value", AMOUNT, nullable=False),
        sa.Column("max_value", AMOUNT, nullable=False),
        sa.Column("level_percent", RATE, nullable=False),
        _status_column(),
    )
    _create(
        "rpt_tax_config",
        ("tax_name",),
        sa.Column("tax_name", sa.String(100), nullable=False),
        sa.Column("tax_percent", RATE, nullable=False),
    )


def downgrade() -> None:
    for table in reversed(TABLES):
        op.drop_index(f"ix_{table}_natural_key", table_name=table)
        op.drop_table(table)
