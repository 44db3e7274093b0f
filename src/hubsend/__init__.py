"""
hubsend: signed webhook delivery.

Posts a single HMAC-SHA256 signed payload to an HTTP endpoint with bounded,
linearly backed-off retries, and reports the outcome to the calling runner.
"""

__version__ = "1.0.0"
