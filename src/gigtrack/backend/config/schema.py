"""Pydantic models describing the financial year configuration schema."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Sequence

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from typing_extensions import Self


class ConfigurationError(ValueError):
    """Raised when configuration values violate schema expectations."""


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class AgeBracket(str, Enum):
    """Award age brackets with distinct junior rates."""

    OVER_20 = "20+"
    AGE_19 = "19"
    AGE_18 = "18"


class IncomeType(str, Enum):
    """Income classifications driving the set-aside policy."""

    SALARY = "salary"
    CASUAL = "casual"
    ABN = "abn"
    FREELANCE = "freelance"
    GIG = "gig"
    OTHER = "other"


class RateSet(ImmutableModel):
    """Hourly award rates for one age bracket."""

    base: float
    evening: float
    saturday: float
    sunday: float
    public_holiday: float = Field(alias="publicHoliday")

    @model_validator(mode="after")
    def _validate_rates(self) -> Self:
        rates = (self.base, self.evening, self.saturday, self.sunday, self.public_holiday)
        if any(rate <= 0 for rate in rates):
            raise ConfigurationError("Award rates must be positive")
        if self.public_holiday < max(rates[:4]):
            raise ConfigurationError(
                "Public holiday rate must be at least every other award rate"
            )
        return self


class BreakRule(ImmutableModel):
    """Unpaid break applied once a shift reaches ``min_hours``."""

    min_hours: float = Field(gt=0)
    break_hours: float = Field(ge=0)


class SegmentLabels(ImmutableModel):
    """Display labels attached to pay segments."""

    base: str = "Base Rate (Mon-Fri 7am-6pm)"
    evening: str = "Evening (Mon-Fri 6pm-11pm)"
    saturday: str = "Saturday"
    sunday: str = "Sunday"
    public_holiday: str = "Public Holiday"


class AwardConfig(ImmutableModel):
    """Award rate table together with the shift rules that use it."""

    name: str
    rates: Mapping[AgeBracket, RateSet]
    evening_start: float = Field(default=18.0, gt=0, lt=24)
    breaks: Sequence[BreakRule] = Field(default_factory=tuple)
    labels: SegmentLabels = Field(default_factory=SegmentLabels)

    @field_validator("rates", mode="before")
    @classmethod
    def _coerce_bracket_keys(cls, value: Any) -> Mapping[Any, Any]:
        if isinstance(value, Mapping):
            return {str(key): item for key, item in value.items()}
        raise ConfigurationError("Award rates must map age brackets to rate sets")

    @model_validator(mode="after")
    def _validate_brackets(self) -> Self:
        missing = [bracket.value for bracket in AgeBracket if bracket not in self.rates]
        if missing:
            raise ConfigurationError(
                f"Award rates missing age brackets: {', '.join(missing)}"
            )
        return self

    def rates_for(self, bracket: AgeBracket | str) -> RateSet:
        return self.rates[AgeBracket(bracket)]

    def break_hours_for(self, shift_hours: float) -> float:
        """Return the unpaid break owed for a shift lasting ``shift_hours``."""

        applicable = 0.0
        for rule in sorted(self.breaks, key=lambda item: item.min_hours):
            if shift_hours >= rule.min_hours:
                applicable = rule.break_hours
        return applicable


class WithholdingBracket(ImmutableModel):
    """Row of the weekly withholding schedule: ``tax = rate * x - offset``."""

    lower: int = Field(ge=0)
    upper: int | None = None
    rate: float = Field(ge=0)
    offset: float = 0.0

    @model_validator(mode="after")
    def _validate_bounds(self) -> Self:
        if self.upper is not None and self.upper < self.lower:
            raise ConfigurationError("Withholding bracket upper bound precedes lower bound")
        return self

    def contains(self, amount: int) -> bool:
        if amount < self.lower:
            return False
        return self.upper is None or amount <= self.upper


class WeeklyWithholdingConfig(ImmutableModel):
    """Weekly tax table for residents claiming the tax-free threshold."""

    scale: str = "2"
    brackets: Sequence[WithholdingBracket]

    @model_validator(mode="after")
    def _validate_brackets(self) -> Self:
        if not self.brackets:
            raise ConfigurationError("Weekly withholding requires at least one bracket")
        return self


class AnnualTaxBracket(ImmutableModel):
    """Resident income tax bracket expressed with a base amount."""

    min: float = Field(ge=0)
    max: float | None = None
    rate: float = Field(ge=0, le=1)
    base: float = Field(default=0.0, ge=0)


class AnnualTaxConfig(ImmutableModel):
    """Progressive resident tax schedule plus the Medicare levy."""

    brackets: Sequence[AnnualTaxBracket]
    medicare_levy_rate: float = Field(default=0.02, ge=0, le=1)
    medicare_threshold: float = Field(default=26_000.0, ge=0)
    annualisation_factor: int = Field(default=52, gt=0)


class SetAsidePolicy(str, Enum):
    """How tax to put aside is estimated for an income type."""

    PROGRESSIVE = "progressive"
    SELF_EMPLOYED = "self_employed"
    FLAT = "flat"


class SetAsideConfig(ImmutableModel):
    """Dispatch table mapping income types to set-aside policies."""

    self_employed_rate: float = Field(default=25.0, ge=0, le=100)
    fallback_rate: float = Field(default=20.0, ge=0, le=100)
    policies: Mapping[IncomeType, SetAsidePolicy] = Field(default_factory=dict)
    labels: Mapping[IncomeType, str] = Field(default_factory=dict)

    def policy_for(self, income_type: str | None) -> SetAsidePolicy:
        try:
            key = IncomeType(income_type)
        except ValueError:
            return SetAsidePolicy.FLAT
        return self.policies.get(key, SetAsidePolicy.FLAT)

    def label_for(self, income_type: str | None) -> str:
        try:
            key = IncomeType(income_type)
        except ValueError:
            key = IncomeType.OTHER
        return self.labels.get(key) or self.labels.get(IncomeType.OTHER, "Other")


class GstConfig(ImmutableModel):
    """Goods and services tax estimate settings."""

    rate: float = Field(default=0.10, ge=0, le=1)


class UserDefaults(ImmutableModel):
    """Defaults applied before a user saves their own settings."""

    tax_rate: float = Field(default=20.0, ge=0, le=100)
    weekly_target: float = Field(default=1000.0, ge=0)


class YearConfiguration(ImmutableModel):
    """All rate tables and policy switches for a financial year."""

    year: int
    timezone: str = "Australia/Sydney"
    award: AwardConfig
    weekly_withholding: WeeklyWithholdingConfig
    annual_tax: AnnualTaxConfig
    set_aside: SetAsideConfig = Field(default_factory=SetAsideConfig)
    gst: GstConfig = Field(default_factory=GstConfig)
    defaults: UserDefaults = Field(default_factory=UserDefaults)
    meta: Mapping[str, Any] = Field(default_factory=dict)


class ManifestEntry(ImmutableModel):
    """Declared financial year and the file carrying its tables."""

    year: int
    filename: str | None = None
    label: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def resolved_filename(self) -> str:
        return self.filename or f"{self.year}.yaml"


class ConfigurationManifest(ImmutableModel):
    """Manifest describing every configured financial year."""

    years: Sequence[ManifestEntry]

    @model_validator(mode="after")
    def _validate_years(self) -> Self:
        seen: set[int] = set()
        for entry in self.years:
            if entry.year in seen:
                raise ConfigurationError(f"Duplicate manifest entry for {entry.year}")
            seen.add(entry.year)
        return self

    @property
    def supported_years(self) -> tuple[int, ...]:
        return tuple(sorted(entry.year for entry in self.years))

    def get_entry(self, year: int) -> ManifestEntry:
        for entry in self.years:
            if entry.year == year:
                return entry
        raise KeyError(year)


__all__ = [
    "AgeBracket",
    "AnnualTaxBracket",
    "AnnualTaxConfig",
    "AwardConfig",
    "BreakRule",
    "ConfigurationError",
    "ConfigurationManifest",
    "GstConfig",
    "ImmutableModel",
    "IncomeType",
    "ManifestEntry",
    "RateSet",
    "SegmentLabels",
    "SetAsideConfig",
    "SetAsidePolicy",
    "UserDefaults",
    "WeeklyWithholdingConfig",
    "WithholdingBracket",
    "YearConfiguration",
]
