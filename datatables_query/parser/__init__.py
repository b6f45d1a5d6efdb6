"""Request decoding."""

from .request import ParsedRequest
from .decoder import WireDecoder, parse_bool, parse_int

__all__ = ["ParsedRequest", "WireDecoder", "parse_bool", "parse_int"]
