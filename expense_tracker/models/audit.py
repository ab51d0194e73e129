"""
Audit Models for Expense Tracker

Every significant action in the system is logged for audit purposes.
This provides:
1. Complete traceability of all writes
2. Debugging information when things go wrong
3. Ability to reconstruct history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Each entity kind gets created/updated/deleted events; domain
    operations (contributions, voiding, reports) get their own.
    """
    # Generic entity lifecycle
    ENTITY_CREATED = "entity_created"
    ENTITY_UPDATED = "entity_updated"
    ENTITY_DELETED = "entity_deleted"

    # Goals
    GOAL_CONTRIBUTION_ADDED = "goal_contribution_added"
    GOAL_COMPLETED = "goal_completed"

    # Vouchers
    VOUCHER_ISSUED = "voucher_issued"
    VOUCHER_VOIDED = "voucher_voided"

    # Reports
    REPORT_GENERATED = "report_generated"
    REPORT_EXPORTED = "report_exported"

    # Failures
    AUTHENTICATION_FAILED = "authentication_failed"
    VALIDATION_FAILED = "validation_failed"
    BACKEND_ERROR = "backend_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - who did it, and to what?
    owner_id: Optional[str] = Field(
        default=None,
        description="uid of the acting user, if any"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'category', 'transaction', 'goal')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Document id of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., a transaction and its voucher)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "owner_id": self.owner_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_document(self) -> dict:
        """Convert to a document for the `audit_log` collection."""
        return self.model_dump(mode="json")


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entity_created("goal", goal_id, owner_id, "Vacation")
        event = AuditEventBuilder.backend_error("create", "expenses", "quota exceeded")
    """

    @staticmethod
    def entity_created(
        entity_type: str,
        entity_id: Optional[str],
        owner_id: str,
        label: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_CREATED,
            owner_id=owner_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} created: {label}",
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def entity_updated(
        entity_type: str,
        entity_id: str,
        owner_id: str,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_UPDATED,
            owner_id=owner_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} updated: {', '.join(changed_fields) or 'no fields'}",
            details={
                "changed_fields": changed_fields,
            },
            is_user_action=True,
        )

    @staticmethod
    def entity_deleted(
        entity_type: str,
        entity_id: str,
        owner_id: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_DELETED,
            owner_id=owner_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} deleted",
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def goal_contribution(
        goal_id: str,
        owner_id: str,
        amount: str,
        new_amount: str,
        status: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        completed = status == "completed"
        return AuditEvent(
            event_type=(
                AuditEventType.GOAL_COMPLETED
                if completed
                else AuditEventType.GOAL_CONTRIBUTION_ADDED
            ),
            owner_id=owner_id,
            entity_type="goal",
            entity_id=goal_id,
            correlation_id=correlation_id,
            description=(
                f"Goal completed with contribution of {amount}"
                if completed
                else f"Contribution of {amount} added to goal"
            ),
            details={
                "amount": amount,
                "current_amount": new_amount,
                "status": status,
            },
            is_user_action=True,
        )

    @staticmethod
    def voucher_issued(
        voucher_id: Optional[str],
        owner_id: str,
        voucher_number: str,
        voucher_type: str,
        related_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VOUCHER_ISSUED,
            owner_id=owner_id,
            entity_type="voucher",
            entity_id=voucher_id,
            correlation_id=correlation_id,
            description=f"Voucher issued: {voucher_number}",
            details={
                "voucher_number": voucher_number,
                "voucher_type": voucher_type,
                "related_id": related_id,
            },
            is_user_action=True,
        )

    @staticmethod
    def voucher_voided(
        voucher_id: str,
        owner_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VOUCHER_VOIDED,
            owner_id=owner_id,
            entity_type="voucher",
            entity_id=voucher_id,
            correlation_id=correlation_id,
            description="Voucher voided",
            is_user_action=True,
        )

    @staticmethod
    def report_generated(
        owner_id: str,
        period: str,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_GENERATED,
            owner_id=owner_id,
            entity_type="report",
            correlation_id=correlation_id,
            description=f"Report generated for {period} over {transaction_count} transactions",
            details={
                "period": period,
                "transaction_count": transaction_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def report_exported(
        owner_id: str,
        export_format: str,
        filename: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_EXPORTED,
            owner_id=owner_id,
            entity_type="report",
            correlation_id=correlation_id,
            description=f"Report exported as {export_format.upper()}",
            details={
                "format": export_format,
                "filename": filename,
            },
            is_user_action=True,
        )

    @staticmethod
    def authentication_failed(
        operation: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTHENTICATION_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Rejected {operation}: no signed-in user",
            details={
                "operation": operation,
            },
        )

    @staticmethod
    def validation_failed(
        subject: str,
        owner_id: Optional[str],
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            owner_id=owner_id,
            entity_type=subject,
            correlation_id=correlation_id,
            description=f"{subject.capitalize()} validation failed with {len(issues)} issues",
            details={
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def backend_error(
        operation: str,
        collection: str,
        error_message: str,
        owner_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKEND_ERROR,
            severity=AuditSeverity.ERROR,
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"Storage error during {operation} on {collection}",
            error_message=error_message,
            details={
                "operation": operation,
                "collection": collection,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
