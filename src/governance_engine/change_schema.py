"""Pydantic models for change, incident and audit management."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from governance_engine.schema import ChangeType, Priority


# =============================================================================
# Status Enums
# =============================================================================


class ChangeRequestStatus(str, Enum):
    """Change request lifecycle. draft -> submitted -> approved | rejected."""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    IMPLEMENTED = "implemented"
    CLOSED = "closed"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class IncidentStatus(str, Enum):
    OPEN = "open"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"
    CLOSED = "closed"

    def is_closed(self) -> bool:
        return self in (IncidentStatus.RESOLVED, IncidentStatus.CLOSED)


class AuditType(str, Enum):
    SECURITY = "security"
    COMPLIANCE = "compliance"
    PERFORMANCE = "performance"
    OPERATIONAL = "operational"


class AuditStatus(str, Enum):
    """Audit lifecycle. planned -> in_progress -> completed."""
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


# =============================================================================
# Entities
# =============================================================================


class Approval(BaseModel):
    """A recorded approve or reject decision on a change request."""
    approver: str
    role: str = ""
    status: ApprovalStatus = ApprovalStatus.PENDING
    comments: str = ""
    approved_at: Optional[datetime] = None


class ChangeRequest(BaseModel):
    id: str
    application_id: str
    requester: str = ""
    type: ChangeType = ChangeType.NORMAL
    priority: Priority = Priority.MEDIUM
    status: ChangeRequestStatus = ChangeRequestStatus.DRAFT
    title: str = ""
    description: str = ""
    business_case: str = ""
    impact: str = ""
    risk: str = ""
    approvals: list[Approval] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Incident(BaseModel):
    id: str
    application_id: str
    reporter: str = ""
    severity: int = 3
    status: IncidentStatus = IncidentStatus.OPEN
    title: str = ""
    description: str = ""
    impact: str = ""
    root_cause: str = ""
    resolution: str = ""
    time_to_resolve: timedelta = timedelta(0)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None


class AuditFinding(BaseModel):
    id: str
    severity: str = ""
    category: str = ""
    description: str = ""
    evidence: str = ""
    remediation: str = ""


class Audit(BaseModel):
    id: str
    application_id: str
    auditor: str = ""
    type: AuditType = AuditType.COMPLIANCE
    status: AuditStatus = AuditStatus.PLANNED
    scope: str = ""
    findings: list[AuditFinding] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    scheduled_for: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
