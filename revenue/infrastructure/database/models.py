"""ORM models, one table per configuration kind."""

from decimal import Decimal
from typing import Final

from sqlalchemy import Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from revenue.domain.registry.kinds import AMOUNT, RATE
from revenue.infrastructure.database.base import ConfigurationModel

Amount = Numeric(AMOUNT.precision, AMOUNT.scale)
Rate = Numeric(RATE.precision, RATE.scale)


class BusinessTaxConfig(ConfigurationModel):
    """Business tax brackets by business type, tax base and lower bound."""

    __tablename__ = "business_tax_config"
    __natural_key__ = ("business_type", "tax_base", "min_range")

    business_type: Mapped[str] = mapped_column(String(100), nullable=False)
    tax_base: Mapped[str] = mapped_column(String(32), nullable=False)
    min_range: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    max_range: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(Rate, nullable=False)
    first_year_base: Mapped[str | None] = mapped_column(String(32))
    remarks: Mapped[str | None] = mapped_column(Text)


class RegulatoryFeeConfig(ConfigurationModel):
    """Flat regulatory fees, optionally tied to a business type."""

    __tablename__ = "regulatory_fee_config"
    __natural_key__ = ("fee_name",)

    fee_name: Mapped[str] = mapped_column(String(150), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    business_type: Mapped[str | None] = mapped_column(String(100))
    remarks: Mapped[str | None] = mapped_column(Text)


class LandConfiguration(ConfigurationModel):
    """Land market values and assessment levels by classification."""

    __tablename__ = "land_configurations"
    __natural_key__ = ("classification", "vicinity")

    classification: Mapped[str] = mapped_column(String(100), nullable=False)
    vicinity: Mapped[str] = mapped_column(String(150), nullable=False)
    market_value: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    assessment_level: Mapped[Decimal] = mapped_column(Rate, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, server_default="active"
    )


class PropertyConfiguration(ConfigurationModel):
    """Building unit costs, depreciation and assessment levels."""

    __tablename__ = "property_configurations"
    __natural_key__ = ("classification", "material_type")

    classification: Mapped[str] = mapped_column(String(100), nullable=False)
    material_type: Mapped[str] = mapped_column(String(100), nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    depreciation_rate: Mapped[Decimal] = mapped_column(Rate, nullable=False)
    min_value: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    max_value: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    level_percent: Mapped[Decimal] = mapped_column(Rate, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, server_default="active"
    )


class RptTaxConfig(ConfigurationModel):
    """Real property tax rates by tax name."""

    __tablename__ = "rpt_tax_config"
    __natural_key__ = ("tax_name",)

    tax_name: Mapped[str] = mapped_column(String(100), nullable=False)
    tax_percent: Mapped[Decimal] = mapped_column(Rate, nullable=False)


# Keyed by configuration kind slug
CONFIGURATION_MODELS: Final[dict[str, type[ConfigurationModel]]] = {
    "business-tax": BusinessTaxConfig,
    "regulatory-fee": RegulatoryFeeConfig,
    "land": LandConfiguration,
    "property": PropertyConfiguration,
    "rpt-tax": RptTaxConfig,
}
