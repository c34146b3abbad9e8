"""Endpoints for recording incomes and expenses and reading the summary."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Blueprint, request

from gigtrack.backend.app.http import current_ledger
from gigtrack.backend.app.models import (
    ExpenseInput,
    IncomeInput,
    SettingsInput,
    SummaryQuery,
)
from gigtrack.backend.app.services.aggregation import serialise_summary
from gigtrack.backend.app.services.ledger import summarise_records
from gigtrack.backend.services import (
    ResponseTuple,
    build_json_response,
    parse_json_payload,
    parse_query,
)

blueprint = Blueprint("ledger", __name__, url_prefix="/api/v1")

logger = logging.getLogger(__name__)


def _include_archived() -> bool:
    return request.args.get("include_archived", "").strip().lower() in {"1", "true", "yes"}


def _newest_first(records: list[Any]) -> list[Any]:
    return sorted(records, key=lambda record: record.date, reverse=True)


@blueprint.get("/incomes")
def list_incomes() -> ResponseTuple:
    records = _newest_first(current_ledger().incomes(include_archived=_include_archived()))
    return build_json_response({"incomes": summarise_records(records)})


@blueprint.post("/incomes")
def create_income() -> ResponseTuple:
    """Record an income entry, merging per-platform entries on the same date."""

    data = IncomeInput.model_validate(parse_json_payload(request))
    record, merged = current_ledger().add_income(data)
    status = HTTPStatus.OK if merged else HTTPStatus.CREATED
    return build_json_response({"income": record.as_dict(), "merged": merged}, status)


@blueprint.put("/incomes/<string:record_id>")
def replace_income(record_id: str) -> ResponseTuple:
    data = IncomeInput.model_validate(parse_json_payload(request))
    record = current_ledger().update_income(record_id, data)
    return build_json_response({"income": record.as_dict()})


@blueprint.delete("/incomes/<string:record_id>")
def remove_income(record_id: str) -> ResponseTuple:
    current_ledger().delete_income(record_id)
    return build_json_response({"deleted": record_id})


@blueprint.get("/expenses")
def list_expenses() -> ResponseTuple:
    records = _newest_first(current_ledger().expenses(include_archived=_include_archived()))
    return build_json_response({"expenses": summarise_records(records)})


@blueprint.post("/expenses")
def create_expense() -> ResponseTuple:
    data = ExpenseInput.model_validate(parse_json_payload(request))
    record = current_ledger().add_expense(data)
    return build_json_response({"expense": record.as_dict()}, HTTPStatus.CREATED)


@blueprint.put("/expenses/<string:record_id>")
def replace_expense(record_id: str) -> ResponseTuple:
    data = ExpenseInput.model_validate(parse_json_payload(request))
    record = current_ledger().update_expense(record_id, data)
    return build_json_response({"expense": record.as_dict()})


@blueprint.delete("/expenses/<string:record_id>")
def remove_expense(record_id: str) -> ResponseTuple:
    current_ledger().delete_expense(record_id)
    return build_json_response({"deleted": record_id})


@blueprint.post("/ledger/new-week")
def start_new_week() -> ResponseTuple:
    """Archive every active record; archived rows no longer count anywhere."""

    counts = current_ledger().start_new_week()
    logger.info("Started a new week")
    return build_json_response(counts)


@blueprint.get("/settings")
def get_settings() -> ResponseTuple:
    return build_json_response(current_ledger().settings().as_dict())


@blueprint.put("/settings")
def update_settings() -> ResponseTuple:
    data = SettingsInput.model_validate(parse_json_payload(request))
    return build_json_response(current_ledger().update_settings(data).as_dict())


@blueprint.get("/summary")
def get_summary() -> ResponseTuple:
    """Return the canonical summary for ``?window=all|week|today``."""

    query = parse_query(request, SummaryQuery)
    ledger = current_ledger()
    summary = ledger.summary(query.window, reference=query.date)
    payload = serialise_summary(summary)
    payload["window"] = query.window
    return build_json_response(payload)
