"""Request and response helpers shared by the GigTrack blueprints."""

from .request_parser import parse_json_payload, parse_query
from .response_builder import ResponseTuple, build_download_response, build_json_response

__all__ = [
    "ResponseTuple",
    "build_download_response",
    "build_json_response",
    "parse_json_payload",
    "parse_query",
]
