"""Report assembly and export renderers for the financial summary."""

from __future__ import annotations

import csv
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from io import StringIO
from typing import Any

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from gigtrack.backend.app.models import (
    PLATFORM_FIELDS,
    AggregateSummary,
    ExpenseRecord,
    IncomeRecord,
    UserSettings,
)

from .aggregation import serialise_summary
from .calculators import format_currency, format_percentage

INCOME_HEADERS = ("Date", "DoorDash", "UberEats", "DiDi", "Coles", "Tips", "Source", "Total")
EXPENSE_HEADERS = ("Date", "Description", "Amount")
_INCOME_WIDTHS = (26, 20, 20, 18, 20, 18, 28, 20)
_EXPENSE_WIDTHS = (30, 110, 30)


@dataclass(frozen=True)
class ReportDocument:
    """Renderer-neutral report content built from one canonical summary."""

    title: str
    generated_on: date
    summary: dict[str, Any]
    summary_rows: tuple[tuple[str, str], ...]
    income_rows: tuple[tuple[str, ...], ...]
    expense_rows: tuple[tuple[str, ...], ...]


def _format_day(value: date) -> str:
    return value.strftime("%b %d, %Y")


def _summary_rows(summary: dict[str, Any], settings: UserSettings) -> list[tuple[str, str]]:
    rate_label = format_percentage(settings.tax_rate)
    rows = [
        ("Total Income", summary["total_income"]),
        ("Gig Income (gross)", summary["gig_income"]),
        ("Coles Gross Pay", summary["coles_gross_income"]),
        ("Coles Tax Withheld", summary["coles_tax"]),
        ("Coles Net Pay", summary["coles_net_income"]),
        ("Total Expenses", summary["total_expenses"]),
        ("Net Balance", summary["net_balance"]),
        (f"Gig Tax Set-Aside ({rate_label})", summary["gig_tax_set_aside"]),
        ("After Set-Aside", summary["net_after_set_aside"]),
        ("Weekly Target", summary["weekly_target"]),
        ("Remaining to Target", summary["remaining"]),
        ("DiDi GST Estimate", summary["didi_gst_amount"]),
    ]
    other = summary["other_income"]
    if other["gross"]:
        rows.append(("Other Income", other["gross"]))
        rows.append(("Other Income Set-Aside", other["set_aside"]["total_tax"]))
    return [(label, format_currency(value)) for label, value in rows]


def _income_row(record: IncomeRecord) -> tuple[str, ...]:
    return (
        _format_day(record.date),
        *(format_currency(getattr(record, field)) for field in PLATFORM_FIELDS),
        record.source_name or "",
        format_currency(record.total),
    )


def _expense_row(record: ExpenseRecord) -> tuple[str, ...]:
    return (_format_day(record.date), record.name, format_currency(record.amount))


def build_report(
    summary: AggregateSummary,
    incomes: Iterable[IncomeRecord],
    expenses: Iterable[ExpenseRecord],
    settings: UserSettings,
    *,
    generated_on: date,
    title: str = "Financial Report",
) -> ReportDocument:
    """Assemble report content; totals come only from ``summary``."""

    serialised = serialise_summary(summary)
    income_records = sorted((r for r in incomes if not r.archived), key=lambda r: r.date)
    expense_records = sorted((r for r in expenses if not r.archived), key=lambda r: r.date)

    return ReportDocument(
        title=title,
        generated_on=generated_on,
        summary=serialised,
        summary_rows=tuple(_summary_rows(serialised, settings)),
        income_rows=tuple(_income_row(record) for record in income_records),
        expense_rows=tuple(_expense_row(record) for record in expense_records),
    )


def _latin1(text: str) -> str:
    # Core PDF fonts only cover Latin-1.
    return text.encode("latin-1", "replace").decode("latin-1")


def _table(pdf: FPDF, headers: Sequence[str], rows: Sequence[Sequence[str]], widths: Sequence[int]) -> None:
    pdf.set_font("Helvetica", style="B", size=9)
    pdf.set_fill_color(52, 152, 219)
    pdf.set_text_color(255, 255, 255)
    for header, width in zip(headers, widths):
        pdf.cell(width, 7, header, border=1, fill=True, new_x=XPos.RIGHT, new_y=YPos.TOP)
    pdf.ln()

    pdf.set_font("Helvetica", size=9)
    pdf.set_text_color(52, 73, 94)
    pdf.set_fill_color(245, 247, 250)
    for index, row in enumerate(rows):
        for value, width in zip(row, widths):
            pdf.cell(
                width,
                6,
                _latin1(value),
                border=1,
                fill=index % 2 == 1,
                new_x=XPos.RIGHT,
                new_y=YPos.TOP,
            )
        pdf.ln()


def render_pdf(document: ReportDocument) -> bytes:
    pdf = FPDF()
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()
    pdf.set_title(document.title)

    pdf.set_font("Helvetica", style="B", size=20)
    pdf.set_text_color(44, 62, 80)
    pdf.cell(0, 12, document.title, new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    pdf.set_font("Helvetica", size=10)
    pdf.set_text_color(127, 140, 141)
    pdf.cell(
        0,
        6,
        f"Generated on: {document.generated_on.strftime('%B %d, %Y')}",
        new_x=XPos.LMARGIN,
        new_y=YPos.NEXT,
    )
    pdf.ln(6)

    pdf.set_font("Helvetica", style="B", size=14)
    pdf.set_text_color(44, 62, 80)
    pdf.cell(0, 8, "Summary", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    _table(pdf, ("Category", "Amount"), document.summary_rows, (110, 60))

    if document.income_rows:
        pdf.ln(8)
        pdf.set_font("Helvetica", style="B", size=14)
        pdf.set_text_color(44, 62, 80)
        pdf.cell(0, 8, "Income Details", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        _table(pdf, INCOME_HEADERS, document.income_rows, _INCOME_WIDTHS)

    if document.expense_rows:
        pdf.ln(8)
        pdf.set_font("Helvetica", style="B", size=14)
        pdf.set_text_color(44, 62, 80)
        pdf.cell(0, 8, "Expense Details", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        _table(pdf, EXPENSE_HEADERS, document.expense_rows, _EXPENSE_WIDTHS)

    pdf.ln(6)
    pdf.set_font("Helvetica", size=8)
    pdf.set_text_color(127, 140, 141)
    pdf.multi_cell(
        0,
        5,
        "Tax figures are estimates from published schedules and are not tax advice.",
    )

    output = pdf.output()
    if isinstance(output, (bytes, bytearray)):
        return bytes(output)
    return output.encode("latin1")


def render_csv(document: ReportDocument) -> str:
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow([document.title, document.generated_on.isoformat()])
    writer.writerow([])
    writer.writerow(["Category", "Amount"])
    writer.writerows(document.summary_rows)

    if document.income_rows:
        writer.writerow([])
        writer.writerow(INCOME_HEADERS)
        writer.writerows(document.income_rows)

    if document.expense_rows:
        writer.writerow([])
        writer.writerow(EXPENSE_HEADERS)
        writer.writerows(document.expense_rows)

    return buffer.getvalue()


def daily_income_series(incomes: Iterable[IncomeRecord]) -> list[dict[str, Any]]:
    """Per-day platform totals, oldest first, for stacked income charts."""

    days: dict[date, dict[str, float]] = {}
    for record in incomes:
        if record.archived:
            continue
        bucket = days.setdefault(record.date, {field: 0.0 for field in (*PLATFORM_FIELDS, "other")})
        for field in PLATFORM_FIELDS:
            bucket[field] += getattr(record, field)
        bucket["other"] += record.amount

    series = []
    for day in sorted(days):
        values = days[day]
        series.append(
            {
                "date": day.isoformat(),
                **{key: round(value, 2) for key, value in values.items()},
                "total": round(sum(values.values()), 2),
            }
        )
    return series


def expense_breakdown(expenses: Iterable[ExpenseRecord]) -> list[dict[str, Any]]:
    """Expense totals by name, largest first, for pie/bar charts."""

    totals: dict[str, float] = {}
    for record in expenses:
        if record.archived:
            continue
        totals[record.name] = totals.get(record.name, 0.0) + record.amount

    ordered = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [{"name": name, "amount": round(amount, 2)} for name, amount in ordered]


__all__ = [
    "EXPENSE_HEADERS",
    "INCOME_HEADERS",
    "ReportDocument",
    "build_report",
    "daily_income_series",
    "expense_breakdown",
    "render_csv",
    "render_pdf",
]
