"""
Friendly error models.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorSeverity(str, Enum):
    """Who can fix it."""

    INFO = "info"          # Transient: throttling, connectivity
    CONFIG = "config"      # Settings, credentials or stored data an admin must fix
    CRITICAL = "critical"  # Bucket or pool missing, the deployment is broken


@dataclass
class FriendlyError:
    """A catalogued error: what happened and what the operator should do next."""

    message: str
    severity: ErrorSeverity
    error_code: str = ""                  # e.g. S3_NO_SUCH_BUCKET
    action: str = ""                      # Next step, shown after the message
    admin_required: bool = False
    original_error: str = ""              # Logged, never rendered

    @property
    def retryable(self) -> bool:
        return self.severity == ErrorSeverity.INFO

    def cli_lines(self) -> list[str]:
        lines = [f"Error: {self.message}"]
        if self.action:
            lines.append(f"Next step: {self.action}")
        return lines

    def to_dict(self) -> dict:
        return {
            "error_code": self.error_code,
            "severity": self.severity.value,
            "message": self.message,
            "action": self.action,
            "admin_required": self.admin_required,
            "retryable": self.retryable,
        }
