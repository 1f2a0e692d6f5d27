"""Request and response models for the configuration endpoints.

Each kind has three models:

- ``<Kind>Create``: full payload for create and replace
- ``<Kind>Patch``: allow-listed fields, all optional; fields outside the
  allow-list are passed through so the registry can report them
- ``<Kind>Out``: a stored version with id and derived status

An empty string sent for ``expiration_date`` means "no expiration".
"""

from datetime import date
from decimal import Decimal
from typing import Annotated, Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from revenue.domain.registry.kinds import AMOUNT, RATE, RecordStatus, TaxBase

# Same limits as the NUMERIC columns, so nothing is rounded on storage
AmountValue = Annotated[
    Decimal,
    Field(ge=0, max_digits=AMOUNT.precision, decimal_places=AMOUNT.scale),
]
RateValue = Annotated[
    Decimal,
    Field(ge=0, max_digits=RATE.precision, decimal_places=RATE.scale),
]


def _blank_to_none(value: Any) -> Any:  # noqa: ANN401
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ConfigurationIn(BaseModel):
    """Validity interval accepted on create and replace."""

    model_config = ConfigDict(str_strip_whitespace=True)

    effective_date: date = Field(
        ...,
        description="First day the version applies (inclusive)",
        examples=["2024-01-01"],
    )
    expiration_date: date | None = Field(
        default=None,
        description="Last day the version applies (inclusive); null never expires",
        examples=["2024-12-31", None],
    )

    @field_validator("expiration_date", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:  # noqa: ANN401
        """Treat an empty expiration date as no expiration."""
        return _blank_to_none(v)


class ConfigurationPatch(BaseModel):
    """Base for partial updates."""

    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)

    expiration_date: date | None = Field(
        default=None,
        description="New last day; null reopens the version",
    )

    @field_validator("expiration_date", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:  # noqa: ANN401
        """Treat an empty expiration date as reopening the version."""
        return _blank_to_none(v)


class ConfigurationOut(BaseModel):
    """Common fields of a stored version."""

    id: int = Field(..., description="Surrogate id", examples=[1])
    effective_date: date
    expiration_date: date | None = None
    status: RecordStatus = Field(
        ...,
        description="Derived from expiration_date and today's date",
        examples=["active"],
    )


# Business tax brackets


class BusinessTaxFields(BaseModel):
    business_type: str = Field(..., min_length=1, max_length=100, examples=["Retail"])
    tax_base: TaxBase = Field(..., examples=["gross_sales"])
    min_range: AmountValue = Field(..., examples=["0.00"])
    max_range: AmountValue = Field(..., examples=["300000.00"])
    tax_rate: RateValue = Field(..., examples=["1.5"])
    first_year_base: TaxBase | None = None
    remarks: str | None = None


class BusinessTaxCreate(BusinessTaxFields, ConfigurationIn):
    pass


class BusinessTaxPatch(ConfigurationPatch):
    max_range: AmountValue | None = None
    tax_rate: RateValue | None = None
    remarks: str | None = None


class BusinessTaxOut(BusinessTaxFields, ConfigurationOut):
    pass


# Regulatory fees


class RegulatoryFeeFields(BaseModel):
    fee_name: str = Field(..., min_length=1, max_length=150, examples=["SanitaryFee"])
    amount: AmountValue = Field(..., examples=["500.00"])
    business_type: str | None = Field(default=None, max_length=100)
    remarks: str | None = None


class RegulatoryFeeCreate(RegulatoryFeeFields, ConfigurationIn):
    pass


class RegulatoryFeePatch(ConfigurationPatch):
    amount: AmountValue | None = None
    business_type: str | None = Field(default=None, max_length=100)


class RegulatoryFeeOut(RegulatoryFeeFields, ConfigurationOut):
    pass


# Land assessment


class LandFields(BaseModel):
    classification: str = Field(
        ..., min_length=1, max_length=100, examples=["Residential"]
    )
    vicinity: str = Field(default="General Area", min_length=1, max_length=150)
    market_value: AmountValue = Field(..., examples=["1500.00"])
    assessment_level: RateValue = Field(..., examples=["20"])
    description: str | None = None


class LandCreate(LandFields, ConfigurationIn):
    pass


class LandPatch(ConfigurationPatch):
    status: RecordStatus | None = None
    market_value: AmountValue | None = None
    assessment_level: RateValue | None = None
    description: str | None = None


class LandOut(LandFields, ConfigurationOut):
    pass


# Property assessment


class PropertyFields(BaseModel):
    classification: str = Field(
        ..., min_length=1, max_length=100, examples=["Residential"]
    )
    material_type: str = Field(..., min_length=1, max_length=100, examples=["Concrete"])
    unit_cost: AmountValue
    depreciation_rate: RateValue
    min_value: AmountValue
    max_value: AmountValue
    level_percent: RateValue


class PropertyCreate(PropertyFields, ConfigurationIn):
    pass


class PropertyPatch(ConfigurationPatch):
    status: RecordStatus | None = None
    unit_cost: AmountValue | None = None
    depreciation_rate: RateValue | None = None
    min_value: AmountValue | None = None
    max_value: AmountValue | None = None
    level_percent: RateValue | None = None


class PropertyOut(PropertyFields, ConfigurationOut):
    pass


# Real property tax rates


class RptTaxFields(BaseModel):
    tax_name: str = Field(..., min_length=1, max_length=100, examples=["AmusementTax"])
    tax_percent: RateValue = Field(..., examples=["2.0"])


class RptTaxCreate(RptTaxFields, ConfigurationIn):
    pass


class RptTaxPatch(ConfigurationPatch):
    tax_percent: RateValue | None = None


class RptTaxOut(RptTaxFields, ConfigurationOut):
    pass


class KindSchemas(NamedTuple):
    """The three models serving one configuration kind."""

    create: type[ConfigurationIn]
    patch: type[ConfigurationPatch]
    out: type[ConfigurationOut]


# Keyed by configuration kind slug
SCHEMAS: dict[str, KindSchemas] = {
    "business-tax": KindSchemas(BusinessTaxCreate, BusinessTaxPatch, BusinessTaxOut),
    "regulatory-fee": KindSchemas(
        RegulatoryFeeCreate, RegulatoryFeePatch, RegulatoryFeeOut
    ),
    "land": KindSchemas(LandCreate, LandPatch, LandOut),
    "property": KindSchemas(PropertyCreate, PropertyPatch, PropertyOut),
    "rpt-tax": KindSchemas(RptTaxCreate, RptTaxPatch, RptTaxOut),
}


class DeleteResponse(BaseModel):
    """Confirmation returned by delete; the record itself is gone."""

    message: str = Field(..., examples=["Real property tax rate 7 deleted"])
    id: int = Field(..., examples=[7])
