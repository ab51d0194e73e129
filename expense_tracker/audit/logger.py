"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Complete traceability
2. Debugging capability
3. User can see history of their changes

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_tracker.models.audit import AuditEvent, AuditEventBuilder
from expense_tracker.services.storage.interface import AUDIT_LOG, DocumentStoreInterface


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


def configure_logging(level: str = "INFO") -> None:
    """
    Route the structured log through stdlib logging at `level`.

    Called once at startup with the configured APP log level.
    """
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))
    logging.getLogger().setLevel(level.upper())


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The `audit_log` collection (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[DocumentStoreInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Document store for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger()

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        # Always log locally
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        # Persist to storage if available
        if self._storage:
            try:
                await self._storage.add(AUDIT_LOG, event.to_document())
                return True
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_entity_created(
        self,
        entity_type: str,
        entity_id: Optional[str],
        owner_id: str,
        label: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.entity_created(
            entity_type=entity_type,
            entity_id=entity_id,
            owner_id=owner_id,
            label=label,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_entity_updated(
        self,
        entity_type: str,
        entity_id: str,
        owner_id: str,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.entity_updated(
            entity_type=entity_type,
            entity_id=entity_id,
            owner_id=owner_id,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_entity_deleted(
        self,
        entity_type: str,
        entity_id: str,
        owner_id: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.entity_deleted(
            entity_type=entity_type,
            entity_id=entity_id,
            owner_id=owner_id,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_goal_contribution(
        self,
        goal_id: str,
        owner_id: str,
        amount: str,
        new_amount: str,
        status: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a contribution (or goal completion)."""
        event = AuditEventBuilder.goal_contribution(
            goal_id=goal_id,
            owner_id=owner_id,
            amount=amount,
            new_amount=new_amount,
            status=status,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_voucher_issued(
        self,
        voucher_id: Optional[str],
        owner_id: str,
        voucher_number: str,
        voucher_type: str,
        related_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.voucher_issued(
            voucher_id=voucher_id,
            owner_id=owner_id,
            voucher_number=voucher_number,
            voucher_type=voucher_type,
            related_id=related_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_voucher_voided(
        self,
        voucher_id: str,
        owner_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.voucher_voided(
            voucher_id=voucher_id,
            owner_id=owner_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_report_generated(
        self,
        owner_id: str,
        period: str,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.report_generated(
            owner_id=owner_id,
            period=period,
            transaction_count=transaction_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_report_exported(
        self,
        owner_id: str,
        export_format: str,
        filename: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.report_exported(
            owner_id=owner_id,
            export_format=export_format,
            filename=filename,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_authentication_failed(
        self,
        operation: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an anonymous write attempt."""
        event = AuditEventBuilder.authentication_failed(
            operation=operation,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_validation_failed(
        self,
        subject: str,
        owner_id: Optional[str],
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log validation failure."""
        event = AuditEventBuilder.validation_failed(
            subject=subject,
            owner_id=owner_id,
            issues=issues,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_backend_error(
        self,
        operation: str,
        collection: str,
        error_message: str,
        owner_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.backend_error(
            operation=operation,
            collection=collection,
            error_message=error_message,
            owner_id=owner_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., recording a
    transaction). Pass it through all subsequent operations.
    """
    return uuid4()
