#!/usr/bin/env python3
"""Time the shift calculator and the ledger aggregation on synthetic data."""

from __future__ import annotations

import json
import os
import sys
from datetime import date, timedelta
from pathlib import Path
from time import perf_counter

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from gigtrack.backend.app.models import ExpenseInput, IncomeInput  # noqa: E402
from gigtrack.backend.app.services.calculation_service import (  # noqa: E402
    calculate_shift_pay,
)
from gigtrack.backend.app.services.ledger import InMemoryLedgerRepository, LedgerStore  # noqa: E402

SHIFT_PAYLOAD = {"date": "2025-07-16", "start_time": "14:00", "end_time": "23:00"}


def _timed(label: str, iterations: int, func) -> dict[str, float | int | str]:
    func()  # warm caches
    start = perf_counter()
    for _ in range(iterations):
        func()
    elapsed = perf_counter() - start
    return {
        "name": label,
        "iterations": iterations,
        "total_ms": elapsed * 1000,
        "average_ms": (elapsed / iterations) * 1000,
    }


def _seeded_store(days: int) -> LedgerStore:
    store = LedgerStore(InMemoryLedgerRepository())
    first = date(2025, 1, 6)
    for offset in range(days):
        day = first + timedelta(days=offset)
        store.add_income(
            IncomeInput(date=day, doordash=80 + offset % 40, ubereats=55, coles=190, tips=6)
        )
        store.add_income(IncomeInput(date=day, doordash=25))
        if offset % 3 == 0:
            store.add_expense(ExpenseInput(date=day, name="Fuel", amount=45))
    return store


def main() -> None:
    iterations = int(os.getenv("GIGTRACK_PROFILE_ITERATIONS", "200"))
    days = int(os.getenv("GIGTRACK_PROFILE_DAYS", "365"))
    store = _seeded_store(days)
    report = {
        "records": {"incomes": len(store.incomes()), "expenses": len(store.expenses())},
        "timings": [
            _timed("shift_pay", iterations, lambda: calculate_shift_pay(SHIFT_PAYLOAD)),
            _timed("summary_all", iterations, lambda: store.summary("all")),
            _timed(
                "summary_week",
                iterations,
                lambda: store.summary("week", reference=date(2025, 6, 4)),
            ),
        ],
    }
    print(json.dumps(report, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
