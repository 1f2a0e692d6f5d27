"""Descriptors for the configuration kinds held by the registry.

A ``ConfigurationKind`` tells the engine everything that differs between
tables: which fields form the natural key, which payload fields are required,
which fields a partial update may touch, how lists are sorted and whether
overlapping versions are rejected or merely reported.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final

from revenue.core.exceptions import NotFoundError


class RecordStatus(StrEnum):
    """Lifecycle status of a configuration version."""

    ACTIVE = "active"
    EXPIRED = "expired"


class TaxBase(StrEnum):
    """Base a business tax bracket is computed on."""

    GROSS_SALES = "gross_sales"
    GROSS_RECEIPTS = "gross_receipts"
    CAPITAL_INVESTMENT = "capital_investment"


# Columns every kind carries besides its own payload
INTERVAL_FIELDS: Final[tuple[str, str]] = ("effective_date", "expiration_date")


@dataclass(frozen=True, slots=True)
class NumericSpec:
    """Total digits and digits after the point of a decimal column."""

    precision: int
    scale: int

    @property
    def whole_digits(self) -> int:
        return self.precision - self.scale


# Money and bounds
AMOUNT: Final = NumericSpec(precision=15, scale=2)
# Rates, percentages and assessment levels
RATE: Final = NumericSpec(precision=9, scale=4)


@dataclass(frozen=True, slots=True)
class ConfigurationKind:
    """Static description of one configuration table.

    Args:
        name: URL slug, e.g. ``rpt-tax``
        label: Human-readable name used in messages
        table: Database table name
        natural_key: Fields identifying what a record configures
        required: Payload fields that must be present on create and replace
        optional: Payload fields that may be omitted
        patchable: Fields a partial update may change
        sort_key: Fields lists are ordered by
        numeric: Fields stored as Decimal, with their column limits
        max_lengths: Longest accepted value of bounded text fields
        ranges: (lower, upper) field pairs that must satisfy lower <= upper
        choices: Allowed values for enumerated text fields
        strict_overlap: Reject overlapping versions of one natural key
        persists_status: The table stores a status column
    """

    name: str
    label: str
    table: str
    natural_key: tuple[str, ...]
    required: tuple[str, ...]
    optional: tuple[str, ...] = ()
    patchable: frozenset[str] = frozenset()
    sort_key: tuple[str, ...] = ()
    numeric: dict[str, NumericSpec] = field(default_factory=dict, hash=False)
    max_lengths: dict[str, int] = field(default_factory=dict, hash=False)
    ranges: tuple[tuple[str, str], ...] = ()
    choices: dict[str, frozenset[str]] = field(default_factory=dict, hash=False)
    strict_overlap: bool = False
    persists_status: bool = False

    @property
    def value_fields(self) -> tuple[str, ...]:
        """Payload fields outside the natural key."""
        return self.required + self.optional

    @property
    def columns(self) -> tuple[str, ...]:
        """Every caller-supplied column, natural key first."""
        return self.natural_key + self.value_fields + INTERVAL_FIELDS


_TAX_BASES = frozenset(TaxBase)

BUSINESS_TAX: Final = ConfigurationKind(
    name="business-tax",
    label="Business tax bracket",
    table="business_tax_config",
    natural_key=("business_type", "tax_base", "min_range"),
    required=("max_range", "tax_rate"),
    optional=("first_year_base", "remarks"),
    patchable=frozenset({"expiration_date", "max_range", "tax_rate", "remarks"}),
    sort_key=("business_type", "min_range"),
    numeric={"min_range": AMOUNT, "max_range": AMOUNT, "tax_rate": RATE},
    max_lengths={"business_type": 100},
    ranges=(("min_range", "max_range"),),
    choices={"tax_base": _TAX_BASES, "first_year_base": _TAX_BASES},
)

REGULATORY_FEE: Final = ConfigurationKind(
    name="regulatory-fee",
    label="Regulatory fee",
    table="regulatory_fee_config",
    natural_key=("fee_name",),
    required=("amount",),
    optional=("business_type", "remarks"),
    patchable=frozenset({"expiration_date", "amount", "business_type"}),
    sort_key=("fee_name", "business_type"),
    numeric={"amount": AMOUNT},
    max_lengths={"fee_name": 150, "business_type": 100},
)

LAND: Final = ConfigurationKind(
    name="land",
    label="Land assessment",
    table="land_configurations",
    natural_key=("classification", "vicinity"),
    required=("market_value", "assessment_level"),
    optional=("description",),
    patchable=frozenset(
        {
            "status",
            "expiration_date",
            "market_value",
            "assessment_level",
            "description",
        }
    ),
    sort_key=("classification", "market_value"),
    numeric={"market_value": AMOUNT, "assessment_level": RATE},
    max_lengths={"classification": 100, "vicinity": 150},
    persists_status=True,
)

PROPERTY: Final = ConfigurationKind(
    name="property",
    label="Property assessment",
    table="property_configurations",
    natural_key=("classification", "material_type"),
    required=(
        "unit_cost",
        "depreciation_rate",
        "min_value",
        "max_value",
        "level_percent",
    ),
    patchable=frozenset(
        {
            "status",
            "expiration_date",
            "unit_cost",
            "depreciation_rate",
            "min_value",
            "max_value",
            "level_percent",
        }
    ),
    sort_key=("classification", "min_value"),
    numeric={
        "unit_cost": AMOUNT,
        "depreciation_rate": RATE,
        "min_value": AMOUNT,
        "max_value": AMOUNT,
        "level_percent": RATE,
    },
    max_lengths={"classification": 100, "material_type": 100},
    ranges=(("min_value", "max_value"),),
    persists_status=True,
)

RPT_TAX: Final = ConfigurationKind(
    name="rpt-tax",
    label="Real property tax rate",
    table="rpt_tax_config",
    natural_key=("tax_name",),
    required=("tax_percent",),
    patchable=frozenset({"expiration_date", "tax_percent"}),
    sort_key=("tax_name",),
    numeric={"tax_percent": RATE},
    max_lengths={"tax_name": 100},
    strict_overlap=True,
)

KINDS: Final[dict[str, ConfigurationKind]] = {
    kind.name: kind for kind in (BUSINESS_TAX, REGULATORY_FEE, LAND, PROPERTY, RPT_TAX)
}


def get_kind(name: str) -> ConfigurationKind:
    """Look up a kind by its slug.

    Raises:
        NotFoundError: If no kind has that slug.
    """
    try:
        return KINDS[name]
    except KeyError:
        msg = f"Unknown configuration kind: {name}"
        raise NotFoundError(msg, context={"kind": name}) from None
