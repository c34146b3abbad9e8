"""Configuration loader wrapping the shared schema models."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Sequence

import yaml
from pydantic import ValidationError

from .schema import (
    AgeBracket,
    AnnualTaxBracket,
    AnnualTaxConfig,
    AwardConfig,
    BreakRule,
    ConfigurationError,
    ConfigurationManifest,
    GstConfig,
    IncomeType,
    ManifestEntry,
    RateSet,
    SegmentLabels,
    SetAsideConfig,
    SetAsidePolicy,
    UserDefaults,
    WeeklyWithholdingConfig,
    WithholdingBracket,
    YearConfiguration,
)

CONFIG_DIRECTORY = Path(__file__).resolve().parent / "data"
MANIFEST_FILE = CONFIG_DIRECTORY / "manifest.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must define a mapping at the top level")
    return data


@lru_cache(maxsize=1)
def load_manifest() -> ConfigurationManifest:
    """Load and cache the configuration manifest."""

    if not MANIFEST_FILE.exists():
        raise FileNotFoundError("Configuration manifest not found")

    raw_manifest = _load_yaml(MANIFEST_FILE)

    try:
        return ConfigurationManifest.model_validate(raw_manifest)
    except ValidationError as error:  # pragma: no cover - defensive
        raise ConfigurationError(f"Manifest validation failed: {error}") from error


@lru_cache(maxsize=8)
def load_year_configuration(year: int) -> YearConfiguration:
    """Load rate tables for the specified financial year from disk."""

    try:
        manifest_entry = load_manifest().get_entry(year)
    except KeyError as exc:
        raise FileNotFoundError(f"Configuration for year {year} not declared in manifest") from exc

    config_file = CONFIG_DIRECTORY / manifest_entry.resolved_filename
    if not config_file.exists():
        raise FileNotFoundError(
            f"Configuration file for year {year} missing: {config_file.name}"
        )

    raw_config = _load_yaml(config_file)
    raw_config.setdefault("year", year)

    try:
        configuration = YearConfiguration.model_validate(raw_config)
    except ValidationError as error:
        raise ConfigurationError(f"Configuration validation failed for {year}: {error}") from error

    if configuration.year != year:
        raise ConfigurationError(
            f"Configuration year mismatch: expected {year}, found {configuration.year}"
        )

    return configuration


def available_years() -> Sequence[int]:
    """Return the financial years declared in the manifest."""

    return load_manifest().supported_years


def current_year() -> int:
    """Return the most recent configured financial year."""

    years = available_years()
    if not years:
        raise ConfigurationError("No financial years configured")
    return years[-1]


def load_current_configuration() -> YearConfiguration:
    """Shortcut for the newest configured year used as the calculator default."""

    return load_year_configuration(current_year())


__all__ = [
    "AgeBracket",
    "AnnualTaxBracket",
    "AnnualTaxConfig",
    "AwardConfig",
    "BreakRule",
    "CONFIG_DIRECTORY",
    "ConfigurationError",
    "ConfigurationManifest",
    "GstConfig",
    "IncomeType",
    "MANIFEST_FILE",
    "ManifestEntry",
    "RateSet",
    "SegmentLabels",
    "SetAsideConfig",
    "SetAsidePolicy",
    "UserDefaults",
    "WeeklyWithholdingConfig",
    "WithholdingBracket",
    "YearConfiguration",
    "available_years",
    "current_year",
    "load_current_configuration",
    "load_manifest",
    "load_year_configuration",
]
