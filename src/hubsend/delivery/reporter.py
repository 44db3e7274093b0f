"""Map delivery outcomes to the runner boundary."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from hubsend.common.errors import HubsendError, RetriesExhausted
from hubsend.common.logging import get_logger
from hubsend.delivery.client import DeliveryResult

logger = get_logger(__name__)


@dataclass(frozen=True)
class Report:
    """What the runner sees: a JSON output on success, a message on failure."""

    ok: bool
    output: str | None = None
    message: str | None = None
    code: str | None = None

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1


class ResultReporter:
    """Converts results and pre-flight errors into Reports."""

    def __init__(self, output_path: str | Path | None = None):
        """
        Args:
            output_path: GitHub Actions style output file; on success a
                ``response=<json>`` line is appended to it
        """
        self._output_path = Path(output_path) if output_path else None

    def report(self, result: DeliveryResult) -> Report:
        """Report a terminal delivery result."""
        if result.ok:
            output = json.dumps({"status": result.status, "data": result.body})
            self._write_output("response", output)
            return Report(ok=True, output=output)

        error = RetriesExhausted(result.max_retries, result.cause or "unknown error")
        logger.error("Delivery failed", attempts=result.max_retries, cause=result.cause)
        return Report(ok=False, message=error.message, code=error.code)

    def report_error(self, exc: HubsendError) -> Report:
        """Report a pre-flight failure verbatim."""
        logger.error("Delivery aborted", code=exc.code, error=exc.message)
        return Report(ok=False, message=exc.message, code=exc.code)

    def _write_output(self, name: str, value: str) -> None:
        if self._output_path is None:
            return
        with self._output_path.open("a", encoding="utf-8") as f:
            f.write(f"{name}={value}\n")
