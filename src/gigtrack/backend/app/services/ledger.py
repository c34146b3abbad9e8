"""Income and expense ledger with the duplicate-date merge policy.

``LedgerStore`` is the explicit application state object: routes receive it
through the Flask app rather than a module global, and the calculators never
see it. Persistence is delegated to a repository so the same store runs on
the thread-safe in-memory back end (tests, single-process dev) or SQLite.
"""

from __future__ import annotations

import logging
import os
import re
import sqlite3
from collections import OrderedDict
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from datetime import date
from threading import Lock
from typing import Any, Protocol
from uuid import uuid4

from gigtrack.backend.app.models import (
    PLATFORM_FIELDS,
    AggregateSummary,
    ExpenseInput,
    ExpenseRecord,
    IncomeInput,
    IncomeRecord,
    IncomeType,
    RecordNotFoundError,
    SettingsInput,
    UserSettings,
)
from gigtrack.backend.config.rates_config import (
    YearConfiguration,
    load_current_configuration,
)

from .aggregation import aggregate_window
from .calendar import Clock

_LOGGER = logging.getLogger(__name__)

_INCOME_COLUMNS = (
    "id",
    "date",
    "doordash",
    "ubereats",
    "didi",
    "coles",
    "coles_hours",
    "tips",
    "source_name",
    "income_type",
    "amount",
    "archived",
)
_EXPENSE_COLUMNS = ("id", "date", "name", "amount", "archived")


def merge_income(existing: IncomeRecord, incoming: IncomeRecord) -> IncomeRecord:
    """Fold a same-date submission into ``existing``.

    DoorDash and tips accumulate because a day can hold several drops; Uber
    Eats, DiDi and Coles are daily totals, so a nonzero incoming value replaces
    the stored one and a zero leaves it untouched. Coles hours follow Coles.
    """

    return existing.with_changes(
        doordash=existing.doordash + incoming.doordash,
        tips=existing.tips + incoming.tips,
        ubereats=incoming.ubereats if incoming.ubereats else existing.ubereats,
        didi=incoming.didi if incoming.didi else existing.didi,
        coles=incoming.coles if incoming.coles else existing.coles,
        coles_hours=incoming.coles_hours if incoming.coles_hours else existing.coles_hours,
    )


def platform_for_source(source_name: str | None) -> str | None:
    """Return the platform column matching a free-text source name, if any."""

    if not source_name:
        return None
    key = re.sub(r"[^a-z]", "", source_name.lower())
    return key if key in PLATFORM_FIELDS else None


def build_income_record(
    data: IncomeInput, *, record_id: str | None = None, archived: bool = False
) -> IncomeRecord:
    """Turn a validated submission into a record.

    Universal submissions naming a tracked platform land in that platform's
    column so they count towards the gig and Coles totals.
    """

    fields: dict[str, Any] = {name: getattr(data, name) for name in PLATFORM_FIELDS}
    amount = data.amount
    income_type = data.income_type.value if data.income_type is not None else None

    if data.source_name is not None:
        income_type = income_type or IncomeType.GIG.value
        platform = platform_for_source(data.source_name)
        if platform is not None:
            fields[platform] += amount
            amount = 0.0

    return IncomeRecord(
        id=record_id or uuid4().hex,
        date=data.date,
        coles_hours=data.coles_hours,
        source_name=data.source_name,
        income_type=income_type,
        amount=amount,
        archived=archived,
        **fields,
    )


def build_expense_record(
    data: ExpenseInput, *, record_id: str | None = None, archived: bool = False
) -> ExpenseRecord:
    return ExpenseRecord(
        id=record_id or uuid4().hex,
        date=data.date,
        name=data.name,
        amount=data.amount,
        archived=archived,
    )


class LedgerRepository(Protocol):
    def save_income(self, record: IncomeRecord) -> None: ...

    def get_income(self, record_id: str) -> IncomeRecord: ...

    def delete_income(self, record_id: str) -> None: ...

    def list_incomes(self, *, include_archived: bool = False) -> list[IncomeRecord]: ...

    def save_expense(self, record: ExpenseRecord) -> None: ...

    def get_expense(self, record_id: str) -> ExpenseRecord: ...

    def delete_expense(self, record_id: str) -> None: ...

    def list_expenses(self, *, include_archived: bool = False) -> list[ExpenseRecord]: ...

    def archive_active(self) -> tuple[int, int]: ...

    def load_settings(self) -> dict[str, float]: ...

    def save_settings(self, values: Mapping[str, float]) -> None: ...


class InMemoryLedgerRepository:
    """Thread-safe in-memory storage preserving insertion order."""

    def __init__(self) -> None:
        self._incomes: "OrderedDict[str, IncomeRecord]" = OrderedDict()
        self._expenses: "OrderedDict[str, ExpenseRecord]" = OrderedDict()
        self._settings: dict[str, float] = {}
        self._lock = Lock()

    def save_income(self, record: IncomeRecord) -> None:
        with self._lock:
            self._incomes[record.id] = record

    def get_income(self, record_id: str) -> IncomeRecord:
        with self._lock:
            record = self._incomes.get(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        return record

    def delete_income(self, record_id: str) -> None:
        with self._lock:
            if self._incomes.pop(record_id, None) is None:
                raise RecordNotFoundError(record_id)

    def list_incomes(self, *, include_archived: bool = False) -> list[IncomeRecord]:
        with self._lock:
            records = list(self._incomes.values())
        return [record for record in records if include_archived or not record.archived]

    def save_expense(self, record: ExpenseRecord) -> None:
        with self._lock:
            self._expenses[record.id] = record

    def get_expense(self, record_id: str) -> ExpenseRecord:
        with self._lock:
            record = self._expenses.get(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        return record

    def delete_expense(self, record_id: str) -> None:
        with self._lock:
            if self._expenses.pop(record_id, None) is None:
                raise RecordNotFoundError(record_id)

    def list_expenses(self, *, include_archived: bool = False) -> list[ExpenseRecord]:
        with self._lock:
            records = list(self._expenses.values())
        return [record for record in records if include_archived or not record.archived]

    def archive_active(self) -> tuple[int, int]:
        with self._lock:
            incomes = [key for key, record in self._incomes.items() if not record.archived]
            expenses = [key for key, record in self._expenses.items() if not record.archived]
            for key in incomes:
                self._incomes[key] = replace(self._incomes[key], archived=True)
            for key in expenses:
                self._expenses[key] = replace(self._expenses[key], archived=True)
        return len(incomes), len(expenses)

    def load_settings(self) -> dict[str, float]:
        with self._lock:
            return dict(self._settings)

    def save_settings(self, values: Mapping[str, float]) -> None:
        with self._lock:
            self._settings.update(values)


class SQLiteLedgerRepository:
    """SQLite-backed repository for single-user deployments."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = str(path)
        self._lock = Lock()
        self._initialise()

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._path, check_same_thread=False)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA journal_mode=WAL")
        connection.execute("PRAGMA synchronous=NORMAL")
        return connection

    def _initialise(self) -> None:
        with self._lock, self._connect() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS incomes (
                    id TEXT PRIMARY KEY,
                    date TEXT NOT NULL,
                    doordash REAL NOT NULL DEFAULT 0,
                    ubereats REAL NOT NULL DEFAULT 0,
                    didi REAL NOT NULL DEFAULT 0,
                    coles REAL NOT NULL DEFAULT 0,
                    coles_hours REAL,
                    tips REAL NOT NULL DEFAULT 0,
                    source_name TEXT,
                    income_type TEXT,
                    amount REAL NOT NULL DEFAULT 0,
                    archived INTEGER NOT NULL DEFAULT 0,
                    position INTEGER
                )
                """
            )
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS expenses (
                    id TEXT PRIMARY KEY,
                    date TEXT NOT NULL,
                    name TEXT NOT NULL,
                    amount REAL NOT NULL DEFAULT 0,
                    archived INTEGER NOT NULL DEFAULT 0,
                    position INTEGER
                )
                """
            )
            connection.execute(
                "CREATE TABLE IF NOT EXISTS settings (key TEXT PRIMARY KEY, value REAL NOT NULL)"
            )

    @staticmethod
    def _decode_income(row: sqlite3.Row) -> IncomeRecord:
        return IncomeRecord(
            id=row["id"],
            date=date.fromisoformat(row["date"]),
            doordash=row["doordash"],
            ubereats=row["ubereats"],
            didi=row["didi"],
            coles=row["coles"],
            coles_hours=row["coles_hours"],
            tips=row["tips"],
            source_name=row["source_name"],
            income_type=row["income_type"],
            amount=row["amount"],
            archived=bool(row["archived"]),
        )

    @staticmethod
    def _decode_expense(row: sqlite3.Row) -> ExpenseRecord:
        return ExpenseRecord(
            id=row["id"],
            date=date.fromisoformat(row["date"]),
            name=row["name"],
            amount=row["amount"],
            archived=bool(row["archived"]),
        )

    def _upsert(self, table: str, columns: tuple[str, ...], values: tuple[Any, ...]) -> None:
        placeholders = ", ".join("?" for _ in columns)
        updates = ", ".join(f"{column} = excluded.{column}" for column in columns[1:])
        with self._lock, self._connect() as connection:
            connection.execute(
                f"INSERT INTO {table} ({', '.join(columns)}, position) "
                f"VALUES ({placeholders}, (SELECT COALESCE(MAX(position), 0) + 1 FROM {table})) "
                f"ON CONFLICT(id) DO UPDATE SET {updates}",
                values,
            )

    def _fetch_one(self, table: str, record_id: str) -> sqlite3.Row:
        with self._lock, self._connect() as connection:
            row = connection.execute(
                f"SELECT * FROM {table} WHERE id = ?", (record_id,)
            ).fetchone()
        if row is None:
            raise RecordNotFoundError(record_id)
        return row

    def _fetch_all(self, table: str, include_archived: bool) -> list[sqlite3.Row]:
        query = f"SELECT * FROM {table}"
        if not include_archived:
            query += " WHERE archived = 0"
        query += " ORDER BY position ASC"
        with self._lock, self._connect() as connection:
            return connection.execute(query).fetchall()

    def _delete(self, table: str, record_id: str) -> None:
        with self._lock, self._connect() as connection:
            cursor = connection.execute(f"DELETE FROM {table} WHERE id = ?", (record_id,))
        if cursor.rowcount == 0:
            raise RecordNotFoundError(record_id)

    def save_income(self, record: IncomeRecord) -> None:
        values = record.as_dict()
        values["archived"] = int(record.archived)
        self._upsert("incomes", _INCOME_COLUMNS, tuple(values[column] for column in _INCOME_COLUMNS))

    def get_income(self, record_id: str) -> IncomeRecord:
        return self._decode_income(self._fetch_one("incomes", record_id))

    def delete_income(self, record_id: str) -> None:
        self._delete("incomes", record_id)

    def list_incomes(self, *, include_archived: bool = False) -> list[IncomeRecord]:
        return [self._decode_income(row) for row in self._fetch_all("incomes", include_archived)]

    def save_expense(self, record: ExpenseRecord) -> None:
        values = record.as_dict()
        values["archived"] = int(record.archived)
        self._upsert(
            "expenses", _EXPENSE_COLUMNS, tuple(values[column] for column in _EXPENSE_COLUMNS)
        )

    def get_expense(self, record_id: str) -> ExpenseRecord:
        return self._decode_expense(self._fetch_one("expenses", record_id))

    def delete_expense(self, record_id: str) -> None:
        self._delete("expenses", record_id)

    def list_expenses(self, *, include_archived: bool = False) -> list[ExpenseRecord]:
        return [self._decode_expense(row) for row in self._fetch_all("expenses", include_archived)]

    def archive_active(self) -> tuple[int, int]:
        with self._lock, self._connect() as connection:
            incomes = connection.execute(
                "UPDATE incomes SET archived = 1 WHERE archived = 0"
            ).rowcount
            expenses = connection.execute(
                "UPDATE expenses SET archived = 1 WHERE archived = 0"
            ).rowcount
        return incomes, expenses

    def load_settings(self) -> dict[str, float]:
        with self._lock, self._connect() as connection:
            rows = connection.execute("SELECT key, value FROM settings").fetchall()
        return {row["key"]: row["value"] for row in rows}

    def save_settings(self, values: Mapping[str, float]) -> None:
        with self._lock, self._connect() as connection:
            connection.executemany(
                "INSERT INTO settings (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                list(values.items()),
            )


class LedgerStore:
    """Application-facing ledger operations over a repository."""

    def __init__(
        self,
        repository: LedgerRepository | None = None,
        *,
        configuration_loader: Callable[[], YearConfiguration] = load_current_configuration,
    ) -> None:
        self._repository: LedgerRepository = repository or InMemoryLedgerRepository()
        self._configuration_loader = configuration_loader
        # Serialises read-merge-write on duplicate dates.
        self._write_lock = Lock()

    @property
    def configuration(self) -> YearConfiguration:
        return self._configuration_loader()

    def incomes(self, *, include_archived: bool = False) -> list[IncomeRecord]:
        return self._repository.list_incomes(include_archived=include_archived)

    def expenses(self, *, include_archived: bool = False) -> list[ExpenseRecord]:
        return self._repository.list_expenses(include_archived=include_archived)

    def get_income(self, record_id: str) -> IncomeRecord:
        return self._repository.get_income(record_id)

    def get_expense(self, record_id: str) -> ExpenseRecord:
        return self._repository.get_expense(record_id)

    def _find_same_day(self, day: date) -> IncomeRecord | None:
        for record in self._repository.list_incomes():
            if record.date == day and not record.is_universal:
                return record
        return None

    def add_income(self, data: IncomeInput) -> tuple[IncomeRecord, bool]:
        """Store a submission, merging per-platform entries that share a date.

        Returns the stored record and whether it was merged into an existing
        one. Universal records are always stored on their own.
        """

        incoming = build_income_record(data)
        with self._write_lock:
            existing = None if incoming.is_universal else self._find_same_day(incoming.date)
            if existing is None:
                self._repository.save_income(incoming)
                _LOGGER.info("Recorded income %s for %s", incoming.id, incoming.date)
                return incoming, False

            merged = merge_income(existing, incoming)
            self._repository.save_income(merged)
        _LOGGER.info("Merged income for %s into %s", incoming.date, existing.id)
        return merged, True

    def update_income(self, record_id: str, data: IncomeInput) -> IncomeRecord:
        with self._write_lock:
            current = self._repository.get_income(record_id)
            updated = build_income_record(data, record_id=current.id, archived=current.archived)
            self._repository.save_income(updated)
        return updated

    def delete_income(self, record_id: str) -> None:
        with self._write_lock:
            self._repository.delete_income(record_id)
        _LOGGER.info("Deleted income %s", record_id)

    def add_expense(self, data: ExpenseInput) -> ExpenseRecord:
        record = build_expense_record(data)
        self._repository.save_expense(record)
        return record

    def update_expense(self, record_id: str, data: ExpenseInput) -> ExpenseRecord:
        current = self._repository.get_expense(record_id)
        updated = build_expense_record(data, record_id=current.id, archived=current.archived)
        self._repository.save_expense(updated)
        return updated

    def delete_expense(self, record_id: str) -> None:
        self._repository.delete_expense(record_id)
        _LOGGER.info("Deleted expense %s", record_id)

    def start_new_week(self) -> dict[str, int]:
        """Archive every active record so the next week starts from zero."""

        with self._write_lock:
            incomes, expenses = self._repository.archive_active()
        _LOGGER.info("Archived %d income and %d expense records", incomes, expenses)
        return {"archived_incomes": incomes, "archived_expenses": expenses}

    def settings(self) -> UserSettings:
        defaults = self.configuration.defaults
        stored = self._repository.load_settings()
        return UserSettings(
            tax_rate=float(stored.get("tax_rate", defaults.tax_rate)),
            weekly_target=float(stored.get("weekly_target", defaults.weekly_target)),
        )

    def update_settings(self, data: SettingsInput) -> UserSettings:
        changes = data.model_dump(exclude_none=True)
        if changes:
            self._repository.save_settings(changes)
        return self.settings()

    def summary(
        self,
        window: str = "all",
        *,
        reference: date | None = None,
        clock: Clock | None = None,
    ) -> AggregateSummary:
        return aggregate_window(
            window,
            self.incomes(),
            self.expenses(),
            self.settings(),
            reference=reference,
            clock=clock,
            configuration=self.configuration,
        )


def build_default_store(db_path: str | None = None) -> LedgerStore:
    """Create the store for the running app, honouring ``GIGTRACK_LEDGER_DB``."""

    path = db_path or os.getenv("GIGTRACK_LEDGER_DB")
    if path:
        expanded = os.path.expanduser(path)
        _LOGGER.info("Using SQLite ledger at %s", expanded)
        return LedgerStore(SQLiteLedgerRepository(expanded))
    return LedgerStore(InMemoryLedgerRepository())


def summarise_records(records: Iterable[IncomeRecord | ExpenseRecord]) -> list[dict[str, Any]]:
    return [record.as_dict() for record in records]


__all__ = [
    "InMemoryLedgerRepository",
    "LedgerRepository",
    "LedgerStore",
    "SQLiteLedgerRepository",
    "build_default_store",
    "build_expense_record",
    "build_income_record",
    "merge_income",
    "platform_for_source",
    "summarise_records",
]
