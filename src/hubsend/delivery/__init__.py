"""Signed webhook delivery."""

from hubsend.delivery.client import (
    DeliveryAttempt,
    DeliveryClient,
    DeliveryResult,
    backoff_delay,
    classify_failure,
    validate_url,
)
from hubsend.delivery.payload import encode_payload, normalize, normalize_data, parse_headers
from hubsend.delivery.pipeline import run_delivery
from hubsend.delivery.reporter import Report, ResultReporter
from hubsend.delivery.signature import build_signature_headers, sign_payload, verify_signature
from hubsend.delivery.transport import AiohttpTransport, Transport, TransportResponse
from hubsend.delivery.validation import is_valid_secret, validate_secret

__all__ = [
    "AiohttpTransport",
    "DeliveryAttempt",
    "DeliveryClient",
    "DeliveryResult",
    "Report",
    "ResultReporter",
    "Transport",
    "TransportResponse",
    "backoff_delay",
    "build_signature_headers",
    "classify_failure",
    "encode_payload",
    "is_valid_secret",
    "normalize",
    "normalize_data",
    "parse_headers",
    "run_delivery",
    "sign_payload",
    "validate_secret",
    "validate_url",
]
