"""Signature-verifying webhook receiver."""
