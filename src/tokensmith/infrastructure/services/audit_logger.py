"""Audit sink that writes events to a dedicated structlog logger."""

from tokensmith.core.logging import get_logger
from tokensmith.domain.entities import AuditEvent

AUDIT_LOGGER_NAME = "tokensmith.audit"

_LEVEL_METHODS = {
    "debug": "debug",
    "info": "info",
    "notice": "info",
    "warning": "warning",
    "error": "error",
    "critical": "critical",
}


class StructlogAuditLogger:
    """Writes audit events as structured log entries.

    Storage and retention are left to whatever consumes the log stream.
    """

    def __init__(self, logger_name: str = AUDIT_LOGGER_NAME) -> None:
        self._logger = get_logger(logger_name)

    def log(self, event: AuditEvent) -> None:
        fields = event.to_dict()
        # message, level and timestamp are set by the logging pipeline itself
        fields.pop("message")
        fields.pop("level")
        fields["occurred_at"] = fields.pop("timestamp")
        method = getattr(self._logger, _LEVEL_METHODS.get(event.level, "info"))
        method(event.message, audit=True, **fields)
