"""
Audit Logger

DESIGN DECISION: Every state change of the wallet is logged.
This provides:
1. A full history of who proposed, approved and rejected each owner
2. Traceability of every fund movement and allowance change
3. Evidence of rejected requests (unauthorized callers, double votes)

The audit logger:
- Is async so storage backends can do I/O
- Gracefully handles storage failures (never fails a wallet operation)
- Supports correlation IDs to group the events of one request
"""

import logging
from typing import Iterable, Optional
from uuid import UUID, uuid4

import structlog

from guardian_wallet.models.audit import AuditEvent, AuditEventBuilder
from guardian_wallet.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(debug: bool = False) -> None:
    """
    Set the level for every guardian_wallet logger.

    structlog's filter_by_level reads this level; debug events such as
    pool deposits and rollbacks are dropped unless debug is True.
    """
    logging.getLogger("guardian_wallet").setLevel(
        logging.DEBUG if debug else logging.INFO
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and guardian visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("guardian_wallet.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_all(self, events: Iterable[AuditEvent]) -> bool:
        """Log events in order. True only if every write succeeded."""
        ok = True
        for event in events:
            ok = await self.log(event) and ok
        return ok

    async def log_operation_rejected(
        self,
        operation: str,
        caller: str,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a wallet request that was refused."""
        event = AuditEventBuilder.operation_rejected(
            operation=operation,
            caller=caller,
            error_code=error_code,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    One ID per wallet request; every event the request produces carries it.
    """
    return uuid4()
