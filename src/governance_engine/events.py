"""Domain events.

A closed set of event records discriminated on ``event_type``. Events are
appended to the event store as a best-effort audit trail and are never
mutated afterwards.
"""

from datetime import datetime, timedelta
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from governance_engine.schema import ChangeType, Priority, utc_now


class BaseEvent(BaseModel):
    """Common fields for all domain events."""
    occurred_at: datetime = Field(default_factory=utc_now)

    @property
    def aggregate_id(self) -> str:
        """ID of the aggregate this event belongs to."""
        raise NotImplementedError


# =============================================================================
# Portfolio Events
# =============================================================================


class PortfolioCreated(BaseEvent):
    event_type: Literal["PortfolioCreated"] = "PortfolioCreated"
    portfolio_id: str
    name: str
    owner: str = ""

    @property
    def aggregate_id(self) -> str:
        return self.portfolio_id


class ApplicationAddedToPortfolio(BaseEvent):
    event_type: Literal["ApplicationAddedToPortfolio"] = "ApplicationAddedToPortfolio"
    portfolio_id: str
    application_id: str
    application_name: str = ""
    governance_agreement_id: str = ""

    @property
    def aggregate_id(self) -> str:
        return self.portfolio_id


class ApplicationRemovedFromPortfolio(BaseEvent):
    event_type: Literal["ApplicationRemovedFromPortfolio"] = "ApplicationRemovedFromPortfolio"
    portfolio_id: str
    application_id: str
    application_name: str = ""

    @property
    def aggregate_id(self) -> str:
        return self.portfolio_id


class ApplicationUpdated(BaseEvent):
    event_type: Literal["ApplicationUpdated"] = "ApplicationUpdated"
    portfolio_id: str
    application_id: str
    application_name: str = ""

    @property
    def aggregate_id(self) -> str:
        return self.portfolio_id


# =============================================================================
# Governance Agreement Events
# =============================================================================


class GovernanceAgreementCreated(BaseEvent):
    event_type: Literal["GovernanceAgreementCreated"] = "GovernanceAgreementCreated"
    agreement_id: str
    application_id: str
    title: str = ""

    @property
    def aggregate_id(self) -> str:
        return self.agreement_id


class GovernanceAgreementUpdated(BaseEvent):
    event_type: Literal["GovernanceAgreementUpdated"] = "GovernanceAgreementUpdated"
    agreement_id: str
    component: str

    @property
    def aggregate_id(self) -> str:
        return self.agreement_id


class GovernanceAgreementApproved(BaseEvent):
    event_type: Literal["GovernanceAgreementApproved"] = "GovernanceAgreementApproved"
    agreement_id: str

    @property
    def aggregate_id(self) -> str:
        return self.agreement_id


class GovernanceAgreementActivated(BaseEvent):
    event_type: Literal["GovernanceAgreementActivated"] = "GovernanceAgreementActivated"
    agreement_id: str

    @property
    def aggregate_id(self) -> str:
        return self.agreement_id


class GovernanceEvaluationCompleted(BaseEvent):
    event_type: Literal["GovernanceEvaluationCompleted"] = "GovernanceEvaluationCompleted"
    agreement_id: str
    evaluator: str = ""
    findings: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)

    @property
    def aggregate_id(self) -> str:
        return self.agreement_id


class GovernanceDirectionSet(BaseEvent):
    event_type: Literal["GovernanceDirectionSet"] = "GovernanceDirectionSet"
    agreement_id: str
    director: str = ""
    objectives: list[str] = Field(default_factory=list)
    action_plans: list[str] = Field(default_factory=list)

    @property
    def aggregate_id(self) -> str:
        return self.agreement_id


class GovernanceMonitoringCompleted(BaseEvent):
    event_type: Literal["GovernanceMonitoringCompleted"] = "GovernanceMonitoringCompleted"
    agreement_id: str
    monitor: str = ""
    kpi_measurements: list[str] = Field(default_factory=list)
    compliance_status: str = ""
    risk_status: str = ""

    @property
    def aggregate_id(self) -> str:
        return self.agreement_id


# =============================================================================
# Change, Incident and Audit Events
# =============================================================================


class ChangeRequestCreated(BaseEvent):
    event_type: Literal["ChangeRequestCreated"] = "ChangeRequestCreated"
    change_request_id: str
    application_id: str
    requester: str = ""
    type: ChangeType = ChangeType.NORMAL
    priority: Priority = Priority.MEDIUM
    description: str = ""

    @property
    def aggregate_id(self) -> str:
        return self.change_request_id


class ChangeRequestApproved(BaseEvent):
    event_type: Literal["ChangeRequestApproved"] = "ChangeRequestApproved"
    change_request_id: str
    approver: str = ""

    @property
    def aggregate_id(self) -> str:
        return self.change_request_id


class IncidentReported(BaseEvent):
    event_type: Literal["IncidentReported"] = "IncidentReported"
    incident_id: str
    application_id: str
    reporter: str = ""
    severity: int = 3
    description: str = ""

    @property
    def aggregate_id(self) -> str:
        return self.incident_id


class IncidentResolved(BaseEvent):
    event_type: Literal["IncidentResolved"] = "IncidentResolved"
    incident_id: str
    resolver: str = ""
    resolution: str = ""
    time_to_resolve: timedelta = timedelta(0)

    @property
    def aggregate_id(self) -> str:
        return self.incident_id


class ComplianceViolationDetected(BaseEvent):
    event_type: Literal["ComplianceViolationDetected"] = "ComplianceViolationDetected"
    violation_id: str
    application_id: str
    requirement_type: str = ""
    description: str = ""
    severity: str = ""

    @property
    def aggregate_id(self) -> str:
        return self.application_id


class AuditCompleted(BaseEvent):
    event_type: Literal["AuditCompleted"] = "AuditCompleted"
    audit_id: str
    application_id: str
    auditor: str = ""
    scope: str = ""
    findings: list[str] = Field(default_factory=list)
    status: str = ""

    @property
    def aggregate_id(self) -> str:
        return self.audit_id


DomainEvent = Annotated[
    Union[
        PortfolioCreated,
        ApplicationAddedToPortfolio,
        ApplicationRemovedFromPortfolio,
        ApplicationUpdated,
        GovernanceAgreementCreated,
        GovernanceAgreementUpdated,
        GovernanceAgreementApproved,
        GovernanceAgreementActivated,
        GovernanceEvaluationCompleted,
        GovernanceDirectionSet,
        GovernanceMonitoringCompleted,
        ChangeRequestCreated,
        ChangeRequestApproved,
        IncidentReported,
        IncidentResolved,
        ComplianceViolationDetected,
        AuditCompleted,
    ],
    Field(discriminator="event_type"),
]

_event_adapter: TypeAdapter[Any] = TypeAdapter(DomainEvent)


def parse_event(data: dict[str, Any]) -> BaseEvent:
    """Rebuild a typed event from its serialized form."""
    return _event_adapter.validate_python(data)
