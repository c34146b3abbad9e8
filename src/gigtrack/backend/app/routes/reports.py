"""PDF, CSV and chart exports built from the canonical summary."""

from __future__ import annotations

from flask import Blueprint, Response, request

from gigtrack.backend.app.http import current_ledger
from gigtrack.backend.app.models import SummaryQuery
from gigtrack.backend.app.services.aggregation import serialise_summary, window_records
from gigtrack.backend.app.services.calendar import local_today
from gigtrack.backend.app.services.report_service import (
    ReportDocument,
    build_report,
    daily_income_series,
    expense_breakdown,
    render_csv,
    render_pdf,
)
from gigtrack.backend.services import (
    ResponseTuple,
    build_download_response,
    build_json_response,
    parse_query,
)

blueprint = Blueprint("reports", __name__, url_prefix="/api/v1/reports")


def _current_report() -> ReportDocument:
    query = parse_query(request, SummaryQuery)
    ledger = current_ledger()
    tz_name = ledger.configuration.timezone
    summary = ledger.summary(query.window, reference=query.date)
    return build_report(
        summary,
        window_records(query.window, ledger.incomes(), reference=query.date, tz_name=tz_name),
        window_records(query.window, ledger.expenses(), reference=query.date, tz_name=tz_name),
        ledger.settings(),
        generated_on=local_today(tz_name=tz_name),
    )


@blueprint.get("/pdf")
def download_pdf() -> Response:
    document = _current_report()
    return build_download_response(
        render_pdf(document),
        mimetype="application/pdf",
        filename=f"financial-report-{document.generated_on.isoformat()}.pdf",
    )


@blueprint.get("/csv")
def download_csv() -> Response:
    document = _current_report()
    return build_download_response(
        render_csv(document),
        mimetype="text/csv; charset=utf-8",
        filename=f"financial-report-{document.generated_on.isoformat()}.csv",
    )


@blueprint.get("/charts")
def chart_data() -> ResponseTuple:
    """Series for the dashboard charts; totals match ``/summary`` exactly."""

    ledger = current_ledger()
    summary = ledger.summary()
    serialised = serialise_summary(summary)
    payload = {
        "daily_income": daily_income_series(ledger.incomes()),
        "expenses": expense_breakdown(ledger.expenses()),
        "source_totals": serialised["source_totals"],
        "income_split": {
            "coles_net_income": serialised["coles_net_income"],
            "coles_tax": serialised["coles_tax"],
            "gig_income": serialised["gig_income"],
        },
    }
    return build_json_response(payload)
