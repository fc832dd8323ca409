"""Command and result models for the application services."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from governance_engine.change_schema import AuditFinding, AuditType
from governance_engine.schema import (
    Acquisition,
    Application,
    BudgetAllocation,
    ChangeType,
    ComplianceMonitoring,
    Conformance,
    Implementation,
    KPIMeasurement,
    Performance,
    PersonnelAllocation,
    Policy,
    Priority,
    Procedure,
    RiskMonitoring,
    Standard,
    Strategy,
    StrategicInitiative,
    StrategicObjective,
)


# =============================================================================
# Portfolio Commands
# =============================================================================


class CreatePortfolioCommand(BaseModel):
    id: str
    name: str
    description: str = ""
    owner: str


class AddApplicationToPortfolioCommand(BaseModel):
    portfolio_id: str
    application_id: str


class RemoveApplicationFromPortfolioCommand(BaseModel):
    portfolio_id: str
    application_id: str


class UpdatePortfolioCommand(BaseModel):
    id: str
    name: str
    description: str = ""


# =============================================================================
# Governance Commands
# =============================================================================


class RegisterApplicationCommand(BaseModel):
    application: Application


class CreateGovernanceAgreementCommand(BaseModel):
    id: str
    application_id: str
    title: str


class UpdateStrategyCommand(BaseModel):
    agreement_id: str
    strategy: Strategy


class UpdateAcquisitionCommand(BaseModel):
    agreement_id: str
    acquisition: Acquisition


class UpdatePerformanceCommand(BaseModel):
    agreement_id: str
    performance: Performance


class UpdateConformanceCommand(BaseModel):
    agreement_id: str
    conformance: Conformance


class UpdateImplementationCommand(BaseModel):
    agreement_id: str
    implementation: Implementation


class EvaluateApplicationCommand(BaseModel):
    application_id: str
    evaluator: str = "system"


class EvaluatePortfolioCommand(BaseModel):
    portfolio_id: str


class SetStrategicDirectionCommand(BaseModel):
    agreement_id: str
    director: str = ""
    objectives: list[StrategicObjective] = Field(default_factory=list)
    initiatives: list[StrategicInitiative] = Field(default_factory=list)


class AllocateResourcesCommand(BaseModel):
    agreement_id: str
    budget_allocations: list[BudgetAllocation] = Field(default_factory=list)
    personnel_allocations: list[PersonnelAllocation] = Field(default_factory=list)


class EstablishPoliciesCommand(BaseModel):
    agreement_id: str
    policies: list[Policy] = Field(default_factory=list)
    standards: list[Standard] = Field(default_factory=list)
    procedures: list[Procedure] = Field(default_factory=list)


class MonitorGovernanceCommand(BaseModel):
    agreement_id: str
    monitor: str = "system"


class GovernanceMonitoringResult(BaseModel):
    """KPI, compliance and risk views of one agreement."""
    kpi_measurements: list[KPIMeasurement] = Field(default_factory=list)
    compliance_status: ComplianceMonitoring = Field(default_factory=ComplianceMonitoring)
    risk_status: RiskMonitoring = Field(default_factory=RiskMonitoring)


# =============================================================================
# Change Management Commands
# =============================================================================


class CreateChangeRequestCommand(BaseModel):
    id: str
    application_id: str
    requester: str = ""
    type: ChangeType = ChangeType.NORMAL
    priority: Priority = Priority.MEDIUM
    title: str = ""
    description: str = ""
    business_case: str = ""
    impact: str = ""
    risk: str = ""


class ReviewChangeRequestCommand(BaseModel):
    """Approve or reject decision on a submitted change request."""
    change_request_id: str
    approver: str
    role: str = ""
    comments: str = ""


class ReportIncidentCommand(BaseModel):
    id: str
    application_id: str
    reporter: str = ""
    severity: int = Field(3, ge=1, le=5)
    title: str = ""
    description: str = ""
    impact: str = ""


class ResolveIncidentCommand(BaseModel):
    incident_id: str
    resolver: str = ""
    resolution: str = ""
    root_cause: str = ""


class CreateAuditCommand(BaseModel):
    id: str
    application_id: str
    auditor: str = ""
    type: AuditType = AuditType.COMPLIANCE
    scope: str = ""
    start_date: Optional[datetime] = None


class CompleteAuditCommand(BaseModel):
    audit_id: str
    findings: list[AuditFinding] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class RecordComplianceViolationCommand(BaseModel):
    violation_id: str
    application_id: str
    requirement_type: str = ""
    description: str = ""
    severity: str = ""
