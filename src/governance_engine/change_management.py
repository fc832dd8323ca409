"""Change, incident, audit and compliance-violation workflows."""

from datetime import datetime
from typing import Callable

from governance_engine.app_logging import get_logger
from governance_engine.change_schema import (
    Approval,
    ApprovalStatus,
    Audit,
    AuditStatus,
    ChangeRequest,
    ChangeRequestStatus,
    Incident,
    IncidentStatus,
)
from governance_engine.commands import (
    CompleteAuditCommand,
    CreateAuditCommand,
    CreateChangeRequestCommand,
    RecordComplianceViolationCommand,
    ReportIncidentCommand,
    ResolveIncidentCommand,
    ReviewChangeRequestCommand,
)
from governance_engine.events import (
    AuditCompleted,
    ChangeRequestApproved,
    ChangeRequestCreated,
    ComplianceViolationDetected,
    IncidentReported,
    IncidentResolved,
)
from governance_engine.exceptions import InvalidStateError
from governance_engine.schema import utc_now
from governance_engine.services import publish_events
from governance_engine.store.base import (
    ApplicationRepository,
    AuditRepository,
    ChangeRequestRepository,
    DomainEventRepository,
    IncidentRepository,
)

logger = get_logger("change_management")


class ChangeManagementService:
    """Lifecycle operations for change requests, incidents and audits.

    Every operation that names an application requires it to exist. Illegal
    lifecycle transitions raise InvalidStateError and leave the stored
    record untouched.
    """

    def __init__(
        self,
        change_request_repo: ChangeRequestRepository,
        incident_repo: IncidentRepository,
        audit_repo: AuditRepository,
        application_repo: ApplicationRepository,
        event_repo: DomainEventRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.change_request_repo = change_request_repo
        self.incident_repo = incident_repo
        self.audit_repo = audit_repo
        self.application_repo = application_repo
        self.event_repo = event_repo
        self.clock = clock

    # -------------------------------------------------------------------------
    # Change requests
    # -------------------------------------------------------------------------

    def create_change_request(self, cmd: CreateChangeRequestCommand) -> ChangeRequest:
        self.application_repo.find_by_id(cmd.application_id)
        now = self.clock()
        change_request = ChangeRequest(
            **cmd.model_dump(),
            status=ChangeRequestStatus.DRAFT,
            created_at=now,
            updated_at=now,
        )
        self.change_request_repo.save(change_request)
        publish_events(self.event_repo, [ChangeRequestCreated(
            change_request_id=change_request.id,
            application_id=change_request.application_id,
            requester=change_request.requester,
            type=change_request.type,
            priority=change_request.priority,
            description=change_request.description,
            occurred_at=now,
        )])
        return change_request

    def submit_change_request(self, change_request_id: str) -> ChangeRequest:
        change_request = self.change_request_repo.find_by_id(change_request_id)
        self._require_status(change_request, ChangeRequestStatus.DRAFT, "submitted")
        change_request.status = ChangeRequestStatus.SUBMITTED
        change_request.updated_at = self.clock()
        self.change_request_repo.update(change_request)
        return change_request

    def approve_change_request(self, cmd: ReviewChangeRequestCommand) -> ChangeRequest:
        change_request = self._review(cmd, ApprovalStatus.APPROVED)
        publish_events(self.event_repo, [ChangeRequestApproved(
            change_request_id=change_request.id,
            approver=cmd.approver,
            occurred_at=change_request.updated_at,
        )])
        logger.info("Change request %s approved by %s", change_request.id, cmd.approver)
        return change_request

    def reject_change_request(self, cmd: ReviewChangeRequestCommand) -> ChangeRequest:
        change_request = self._review(cmd, ApprovalStatus.REJECTED)
        logger.info("Change request %s rejected by %s", change_request.id, cmd.approver)
        return change_request

    def _review(self, cmd: ReviewChangeRequestCommand, decision: ApprovalStatus) -> ChangeRequest:
        change_request = self.change_request_repo.find_by_id(cmd.change_request_id)
        self._require_status(change_request, ChangeRequestStatus.SUBMITTED, decision.value)

        now = self.clock()
        change_request.approvals.append(Approval(
            approver=cmd.approver,
            role=cmd.role,
            status=decision,
            comments=cmd.comments,
            approved_at=now,
        ))
        change_request.status = (
            ChangeRequestStatus.APPROVED if decision == ApprovalStatus.APPROVED else ChangeRequestStatus.REJECTED
        )
        change_request.updated_at = now
        self.change_request_repo.update(change_request)
        return change_request

    @staticmethod
    def _require_status(change_request: ChangeRequest, expected: ChangeRequestStatus, action: str) -> None:
        if change_request.status != expected:
            raise InvalidStateError(
                f"change request {change_request.id} is {change_request.status.value}; "
                f"only {expected.value} requests can be {action}"
            )

    def get_change_requests_by_application(self, app_id: str) -> list[ChangeRequest]:
        return self.change_request_repo.find_by_application(app_id)

    # -------------------------------------------------------------------------
    # Incidents
    # -------------------------------------------------------------------------

    def report_incident(self, cmd: ReportIncidentCommand) -> Incident:
        self.application_repo.find_by_id(cmd.application_id)
        now = self.clock()
        incident = Incident(**cmd.model_dump(), status=IncidentStatus.OPEN, created_at=now, updated_at=now)
        self.incident_repo.save(incident)
        publish_events(self.event_repo, [IncidentReported(
            incident_id=incident.id,
            application_id=incident.application_id,
            reporter=incident.reporter,
            severity=incident.severity,
            description=incident.description,
            occurred_at=now,
        )])
        if incident.severity <= 2:
            logger.warning("Severity %d incident %s reported on %s", incident.severity, incident.id, incident.application_id)
        return incident

    def resolve_incident(self, cmd: ResolveIncidentCommand) -> Incident:
        """Resolve an open or investigating incident.

        Raises:
            NotFoundError: If the incident does not exist.
            InvalidStateError: If the incident is already resolved or closed.
        """
        incident = self.incident_repo.find_by_id(cmd.incident_id)
        if incident.status.is_closed():
            raise InvalidStateError(f"incident {incident.id} is already {incident.status.value}")

        now = self.clock()
        incident.status = IncidentStatus.RESOLVED
        incident.resolution = cmd.resolution
        incident.root_cause = cmd.root_cause
        incident.resolved_at = now
        incident.updated_at = now
        if incident.created_at is not None:
            incident.time_to_resolve = now - incident.created_at
        self.incident_repo.update(incident)

        publish_events(self.event_repo, [IncidentResolved(
            incident_id=incident.id,
            resolver=cmd.resolver,
            resolution=cmd.resolution,
            time_to_resolve=incident.time_to_resolve,
            occurred_at=now,
        )])
        return incident

    def get_incidents_by_application(self, app_id: str) -> list[Incident]:
        return self.incident_repo.find_by_application(app_id)

    # -------------------------------------------------------------------------
    # Audits
    # -------------------------------------------------------------------------

    def create_audit(self, cmd: CreateAuditCommand) -> Audit:
        self.application_repo.find_by_id(cmd.application_id)
        audit = Audit(
            id=cmd.id,
            application_id=cmd.application_id,
            auditor=cmd.auditor,
            type=cmd.type,
            scope=cmd.scope,
            status=AuditStatus.PLANNED,
            scheduled_for=cmd.start_date or self.clock(),
        )
        self.audit_repo.save(audit)
        return audit

    def start_audit(self, audit_id: str) -> Audit:
        audit = self.audit_repo.find_by_id(audit_id)
        if audit.status != AuditStatus.PLANNED:
            raise InvalidStateError(f"audit {audit_id} is {audit.status.value}; only planned audits can be started")
        audit.status = AuditStatus.IN_PROGRESS
        audit.started_at = self.clock()
        self.audit_repo.update(audit)
        return audit

    def complete_audit(self, cmd: CompleteAuditCommand) -> Audit:
        audit = self.audit_repo.find_by_id(cmd.audit_id)
        if audit.status != AuditStatus.IN_PROGRESS:
            raise InvalidStateError(
                f"audit {audit.id} is {audit.status.value}; only in-progress audits can be completed"
            )

        now = self.clock()
        audit.status = AuditStatus.COMPLETED
        audit.findings = list(cmd.findings)
        audit.recommendations = list(cmd.recommendations)
        audit.completed_at = now
        self.audit_repo.update(audit)

        publish_events(self.event_repo, [AuditCompleted(
            audit_id=audit.id,
            application_id=audit.application_id,
            auditor=audit.auditor,
            scope=audit.scope,
            findings=[finding.description for finding in audit.findings],
            status=audit.status.value,
            occurred_at=now,
        )])
        logger.info("Audit %s completed with %d findings", audit.id, len(audit.findings))
        return audit

    def get_audits_by_application(self, app_id: str) -> list[Audit]:
        return self.audit_repo.find_by_application(app_id)

    # -------------------------------------------------------------------------
    # Compliance
    # -------------------------------------------------------------------------

    def record_compliance_violation(self, cmd: RecordComplianceViolationCommand) -> ComplianceViolationDetected:
        """Publish a violation event. Violations are not stored elsewhere."""
        self.application_repo.find_by_id(cmd.application_id)
        event = ComplianceViolationDetected(**cmd.model_dump(), occurred_at=self.clock())
        publish_events(self.event_repo, [event])
        logger.warning(
            "Compliance violation %s on %s: %s", cmd.violation_id, cmd.application_id, cmd.description
        )
        return event
