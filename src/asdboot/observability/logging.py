"""Structured logging for asdboot.

Emits JSON-formatted logs for:
- Pipeline events
- Step execution events
- Transaction events
- Errors and warnings
"""

import json
import sys
import threading
from datetime import datetime, timezone


class StructuredLogger:
    """Structured logger that emits one JSON object per line."""

    def __init__(self, enabled: bool = True, output=None):
        """Initialize structured logger.

        Args:
            enabled: Whether to enable logging
            output: Output stream (default: sys.stderr)
        """
        self.enabled = enabled
        self.output = output or sys.stderr
        self._lock = threading.Lock()

    def _log(self, level: str, event: str, **kwargs):
        if not self.enabled:
            return

        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": level,
            "event": event,
            **kwargs,
        }

        line = json.dumps(log_entry, default=str)
        with self._lock:
            print(line, file=self.output)

    def log_pipeline_start(self, pipeline: str, run_id: str, network: str, signer: str):
        self._log(
            "INFO",
            "pipeline_started",
            pipeline=pipeline,
            run_id=run_id,
            network=network,
            signer=signer,
        )

    def log_pipeline_complete(self, pipeline: str, run_id: str, duration: float, status: str):
        self._log(
            "INFO",
            "pipeline_completed",
            pipeline=pipeline,
            run_id=run_id,
            duration_seconds=duration,
            status=status,
        )

    def log_step_start(self, pipeline: str, step: str, run_id: str):
        self._log("INFO", "step_started", pipeline=pipeline, step=step, run_id=run_id)

    def log_step_complete(
        self,
        pipeline: str,
        step: str,
        run_id: str,
        duration: float,
        transactions: int,
        already_applied: bool,
    ):
        self._log(
            "INFO",
            "step_completed",
            pipeline=pipeline,
            step=step,
            run_id=run_id,
            duration_seconds=duration,
            transactions=transactions,
            already_applied=already_applied,
        )

    def log_step_skipped(self, pipeline: str, step: str, run_id: str, reason: str):
        self._log("WARNING", "step_skipped", pipeline=pipeline, step=step, run_id=run_id, reason=reason)

    def log_step_failure(
        self,
        pipeline: str,
        step: str,
        run_id: str,
        reason: str,
        error: str,
        duration: float,
    ):
        self._log(
            "ERROR",
            "step_failed",
            pipeline=pipeline,
            step=step,
            run_id=run_id,
            reason=reason,
            error=error,
            duration_seconds=duration,
        )

    def log_transaction_submitted(self, step: str, run_id: str, tx_hash: str, label: str):
        self._log(
            "INFO",
            "transaction_submitted",
            step=step,
            run_id=run_id,
            tx_hash=tx_hash,
            call=label,
        )

    def log_transaction_confirmed(self, step: str, run_id: str, tx_hash: str, block_number: int, gas_used: int):
        self._log(
            "INFO",
            "transaction_confirmed",
            step=step,
            run_id=run_id,
            tx_hash=tx_hash,
            block_number=block_number,
            gas_used=gas_used,
        )

    def log_warning(self, message: str, **kwargs):
        self._log("WARNING", "warning", message=message, **kwargs)

    def log_error(self, message: str, **kwargs):
        self._log("ERROR", "error", message=message, **kwargs)


# Global logger instance
_logger = StructuredLogger(enabled=False)  # Disabled by default


def get_logger() -> StructuredLogger:
    """Get global structured logger instance."""
    return _logger


def enable_structured_logging(output=None):
    """Enable structured logging.

    Args:
        output: Output stream (default: sys.stderr)
    """
    global _logger
    _logger = StructuredLogger(enabled=True, output=output)


def disable_structured_logging():
    """Disable structured logging."""
    global _logger
    _logger.enabled = False
