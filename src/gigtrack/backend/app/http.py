"""HTTP helpers shared by the Flask blueprints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping, cast

from flask import current_app, jsonify

if TYPE_CHECKING:  # pragma: no cover - only for static type checkers
    from .services.ledger import LedgerStore

LEDGER_EXTENSION = "gigtrack.ledger"


@dataclass(frozen=True)
class ProblemResponse:
    """JSON error body with a machine-readable code and a readable message."""

    error: str
    status: int
    message: str | None = None
    extra: Mapping[str, Any] | None = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error, "status": self.status}
        if self.message:
            payload["message"] = self.message
        if self.extra:
            payload.update(self.extra)
        return payload

    def to_response(self) -> tuple[Any, int]:
        return jsonify(self.as_dict()), self.status


def problem_response(
    error: str,
    *,
    status: int,
    message: str | None = None,
    **extra: Any,
) -> ProblemResponse:
    """Build a :class:`ProblemResponse`; keyword extras are merged into the body."""

    return ProblemResponse(error=error, status=status, message=message, extra=extra or None)


def current_ledger() -> "LedgerStore":
    """Return the ledger store bound to the active application."""

    return cast("LedgerStore", current_app.extensions[LEDGER_EXTENSION])


__all__ = ["LEDGER_EXTENSION", "ProblemResponse", "current_ledger", "problem_response"]
