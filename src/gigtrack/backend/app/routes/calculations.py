"""REST endpoints for shift pay and tax estimates."""

from __future__ import annotations

from flask import Blueprint, request

from gigtrack.backend.app.services.calculation_service import (
    calculate_progressive_tax,
    calculate_set_aside,
    calculate_shift_pay,
    calculate_weekly_tax,
)
from gigtrack.backend.services import (
    ResponseTuple,
    build_json_response,
    parse_json_payload,
)

blueprint = Blueprint("calculations", __name__, url_prefix="/api/v1")


@blueprint.post("/shifts/pay")
def create_shift_pay() -> ResponseTuple:
    """Break a shift into award-rate segments and estimate its tax."""

    return build_json_response(calculate_shift_pay(parse_json_payload(request)))


@blueprint.post("/tax/weekly")
def create_weekly_tax() -> ResponseTuple:
    return build_json_response(calculate_weekly_tax(parse_json_payload(request)))


@blueprint.post("/tax/progressive")
def create_progressive_tax() -> ResponseTuple:
    return build_json_response(calculate_progressive_tax(parse_json_payload(request)))


@blueprint.post("/tax/set-aside")
def create_set_aside() -> ResponseTuple:
    return build_json_response(calculate_set_aside(parse_json_payload(request)))
