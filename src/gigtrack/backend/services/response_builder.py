"""Utilities for serialising API responses."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Tuple

from flask import Response, jsonify

ResponseTuple = Tuple[Any, int]


def build_json_response(payload: Mapping[str, Any] | list[Any], status: int = 200) -> ResponseTuple:
    """Return a Flask JSON response for ``payload``."""

    return jsonify(payload), status


def build_download_response(body: str | bytes, *, mimetype: str, filename: str) -> Response:
    """Return ``body`` as a file attachment named ``filename``."""

    response = Response(body, mimetype=mimetype)
    response.headers["Content-Disposition"] = f"attachment; filename={filename}"
    return response


__all__ = ["ResponseTuple", "build_download_response", "build_json_response"]
