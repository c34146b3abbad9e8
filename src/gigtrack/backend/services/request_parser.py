"""Helpers for normalising incoming requests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from flask import Request
from pydantic import BaseModel
from werkzeug.exceptions import BadRequest

QueryModel = TypeVar("QueryModel", bound=BaseModel)


def parse_json_payload(req: Request) -> dict[str, Any]:
    """Extract a JSON object from ``req`` or raise :class:`BadRequest`."""

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request body must be valid JSON")
    if not isinstance(data, Mapping):
        raise BadRequest("Request JSON must be an object")

    return dict(data)


def parse_query(req: Request, model: type[QueryModel]) -> QueryModel:
    """Validate the query string of ``req`` against ``model``.

    Blank parameters are dropped so ``?date=`` behaves like an omitted date.
    """

    params = {key: value for key, value in req.args.items() if value.strip()}
    return model.model_validate(params)


__all__ = ["parse_json_payload", "parse_query"]
