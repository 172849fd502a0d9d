"""Audit trail of ticket-creation attempts."""

import logging
from typing import Protocol

from ..models.tickets import AuditRecord

CREATE_TICKET = "CREATE_TICKET"
CREATE_TICKET_FAILED = "CREATE_TICKET_FAILED"

logger = logging.getLogger(__name__)


class AuditSink(Protocol):
    """Destination for audit records. Implementations must not raise."""

    def record(self, event: AuditRecord) -> None:
        ...


class LoggingAuditSink:
    """Writes each audit record as one JSON line to a dedicated logger."""

    def __init__(self, logger_name: str = "redmine_gateway.audit"):
        self.audit_logger = logging.getLogger(logger_name)

    def record(self, event: AuditRecord) -> None:
        try:
            level = logging.ERROR if event.action == CREATE_TICKET_FAILED else logging.INFO
            self.audit_logger.log(level, "AUDIT: %s", event.model_dump_json(exclude_none=True))
        except Exception:
            logger.exception("Failed to write audit record for %s", event.action)
