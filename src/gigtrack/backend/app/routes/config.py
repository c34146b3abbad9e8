"""Expose the YAML-backed rate tables consumed by the front-end.

Forms populate age brackets, award rates and the tax-rate defaults from these
endpoints instead of duplicating the numbers client-side.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from gigtrack.backend.app.http import problem_response
from gigtrack.backend.config.rates_config import (
    YearConfiguration,
    available_years,
    load_manifest,
    load_year_configuration,
)
from gigtrack.backend.services import ResponseTuple, build_json_response
from gigtrack.backend.version import get_project_version

blueprint = Blueprint("config", __name__, url_prefix="/api/v1/config")


def get_configuration_metadata() -> dict[str, Any]:
    """Expose runtime metadata derived from the configuration manifest."""

    manifest = load_manifest()
    supported_years = list(manifest.supported_years)
    default_year = supported_years[-1] if supported_years else None
    return {
        "version": get_project_version(),
        "supported_years": supported_years,
        "default_year": default_year,
    }


def _serialise_year(configuration: YearConfiguration) -> dict[str, Any]:
    award = configuration.award
    return {
        "year": configuration.year,
        "timezone": configuration.timezone,
        "award": {
            "name": award.name,
            "evening_start": award.evening_start,
            "rates": {
                bracket.value: rates.model_dump(mode="json")
                for bracket, rates in award.rates.items()
            },
            "breaks": [rule.model_dump(mode="json") for rule in award.breaks],
            "labels": award.labels.model_dump(mode="json"),
        },
        "weekly_withholding": configuration.weekly_withholding.model_dump(mode="json"),
        "annual_tax": configuration.annual_tax.model_dump(mode="json"),
        "set_aside": configuration.set_aside.model_dump(mode="json"),
        "gst": configuration.gst.model_dump(mode="json"),
        "defaults": configuration.defaults.model_dump(mode="json"),
        "meta": dict(configuration.meta),
    }


@blueprint.get("/rates")
def get_rates() -> ResponseTuple:
    """Return the full rate tables for ``?year=`` or the newest year."""

    year = request.args.get("year", type=int)
    if year is None:
        year = get_configuration_metadata()["default_year"]

    try:
        configuration = load_year_configuration(year)
    except FileNotFoundError as exc:
        return problem_response("not_found", status=404, message=str(exc)).to_response()

    return build_json_response(_serialise_year(configuration))


@blueprint.get("/years")
def list_years() -> ResponseTuple:
    """Return all configured years with lightweight metadata."""

    metadata = get_configuration_metadata()
    years = []
    for year in available_years():
        entry = load_manifest().get_entry(year)
        years.append({"year": year, "label": entry.label or str(year)})

    payload = {
        "years": years,
        "default_year": metadata["default_year"],
        "supported_years": metadata["supported_years"],
    }
    return build_json_response(payload)
