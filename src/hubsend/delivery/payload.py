"""Canonical payload normalization and encoding."""

from __future__ import annotations

import json
from typing import Any

from hubsend.common.errors import HeaderParseError

# A JSON container (dict or list) as parsed, or the raw input string.
CanonicalPayload = Any
HeaderSet = dict[str, str]

_FORBIDDEN_HEADER_CHARS = ("\r", "\n", "\0")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def normalize_data(raw_data: str) -> CanonicalPayload:
    """
    Coerce raw input into a canonical payload.

    JSON objects and arrays are kept as parsed values. Anything else,
    including parse failures, JSON primitives and the non-standard NaN and
    Infinity literals, falls back to the raw string unchanged.
    """
    try:
        parsed = json.loads(raw_data, parse_constant=_reject_constant)
    except (TypeError, ValueError):
        return raw_data
    if isinstance(parsed, (dict, list)):
        return parsed
    return raw_data


def parse_headers(raw_headers: str | None) -> HeaderSet:
    """
    Parse the user header overlay.

    Raises:
        HeaderParseError: The overlay is not a JSON object, or a name or
            value contains a line break
    """
    if not raw_headers:
        return {}
    try:
        parsed = json.loads(raw_headers)
    except ValueError as e:
        raise HeaderParseError("Invalid JSON in headers input.") from e
    if not isinstance(parsed, dict):
        raise HeaderParseError("Headers input must be a JSON object.")
    headers = {
        str(name): value if isinstance(value, str) else json.dumps(value)
        for name, value in parsed.items()
    }
    for name, value in headers.items():
        if any(char in name or char in value for char in _FORBIDDEN_HEADER_CHARS):
            raise HeaderParseError("Header values must not contain line breaks.")
    return headers


def normalize(
    raw_data: str,
    raw_headers: str | None = None,
) -> tuple[CanonicalPayload, HeaderSet]:
    """Normalize the payload and parse the header overlay."""
    return normalize_data(raw_data), parse_headers(raw_headers)


def encode_payload(payload: CanonicalPayload) -> bytes:
    """
    Serialize a canonical payload to the bytes that are signed and sent.

    The empty string encodes to no bytes at all. Non-finite floats raise
    ValueError.
    """
    if isinstance(payload, str) and payload == "":
        return b""
    encoded = json.dumps(payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    return encoded.encode("utf-8")
