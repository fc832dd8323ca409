"""Pydantic models for the Governance Engine.

Entity schemas (applications, governance agreements, portfolios), the
governance components and ISO/IEC 38500 principle containers embedded in an
agreement, and the derived assessment outputs produced by the engines.

Timestamps are timezone-aware UTC datetimes. ``None`` means "unset".
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from governance_engine.exceptions import AlreadyExistsError, NotFoundError, ValidationError


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# =============================================================================
# Status and Classification Enums
# =============================================================================


class ApplicationStatus(str, Enum):
    """Lifecycle status of an application."""
    ACTIVE = "active"
    DEPRECATED = "deprecated"
    RETIRED = "retired"
    PLANNED = "planned"

    @classmethod
    def from_string(cls, value: str) -> "ApplicationStatus":
        """Parse application status from string (defaults to planned)."""
        if not value:
            return cls.PLANNED
        mapping = {
            "active": cls.ACTIVE,
            "deprecated": cls.DEPRECATED,
            "retired": cls.RETIRED,
            "planned": cls.PLANNED,
        }
        return mapping.get(value.strip().lower(), cls.PLANNED)


class AgreementStatus(str, Enum):
    """Governance agreement status. Legal path is draft -> approved -> active."""
    DRAFT = "draft"
    APPROVED = "approved"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    RETIRED = "retired"


class Priority(str, Enum):
    """Priority level."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FunctionalityStatus(str, Enum):
    AVAILABLE = "available"
    PLANNED = "planned"
    DEPRECATED = "deprecated"
    UNAVAILABLE = "unavailable"


class InterfaceType(str, Enum):
    API = "api"
    DATABASE = "database"
    FILE = "file"
    MESSAGE = "message"
    UI = "ui"


class InterfaceStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    TESTING = "testing"
    FAILED = "failed"


class SecurityStatus(str, Enum):
    """Implementation status of a security measure."""
    IMPLEMENTED = "implemented"
    PLANNED = "planned"
    PARTIAL = "partial"
    NOT_STARTED = "not_started"


class ContinuityType(str, Enum):
    DISASTER_RECOVERY = "disaster_recovery"
    BACKUP = "backup"
    FAILOVER = "failover"
    REDUNDANT_SYSTEMS = "redundant_systems"


class PlanStatus(str, Enum):
    DOCUMENTED = "documented"
    TESTED = "tested"
    ACTIVE = "active"
    OUTDATED = "outdated"


class KPIStatus(str, Enum):
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    OFF_TRACK = "off_track"
    NOT_MEASURED = "not_measured"


class ChangeType(str, Enum):
    """Change classification (ITIL style)."""
    STANDARD = "standard"
    NORMAL = "normal"
    EMERGENCY = "emergency"


class ComplianceStatus(str, Enum):
    COMPLIANT = "compliant"
    NON_COMPLIANT = "non_compliant"
    PARTIAL = "partial"
    UNDER_REVIEW = "under_review"


class ReleaseType(str, Enum):
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    EMERGENCY = "emergency"


class DeploymentType(str, Enum):
    BIG_BANG = "big_bang"
    PHASED = "phased"
    BLUE_GREEN = "blue_green"
    CANARY = "canary"


class RiskLevel(str, Enum):
    """Overall risk classification."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskImpact(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskStatus(str, Enum):
    """Status of a monitored risk indicator."""
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


class RecommendationType(str, Enum):
    MODERNIZE = "modernize"
    REPLACE = "replace"
    ENHANCE = "enhance"
    RETIRE = "retire"
    MAINTAIN = "maintain"


class PolicyStatus(str, Enum):
    DRAFT = "draft"
    APPROVED = "approved"
    PUBLISHED = "published"
    RETIRED = "retired"


class ActionStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ReportType(str, Enum):
    PERFORMANCE = "performance"
    COMPLIANCE = "compliance"
    RISK = "risk"
    EXECUTIVE = "executive"


# =============================================================================
# Shared Value Objects
# =============================================================================


class RACIEntry(BaseModel):
    """One activity in a Responsible/Accountable/Consulted/Informed matrix."""
    activity: str
    responsible: str
    accountable: str
    consulted: str = ""
    informed: str = ""

    def validate_entity(self) -> None:
        if not self.activity:
            raise ValidationError("activity cannot be empty")
        if not self.responsible:
            raise ValidationError("responsible party cannot be empty")
        if not self.accountable:
            raise ValidationError("accountable party cannot be empty")


class ResponsibilityMatrix(BaseModel):
    """RACI matrix. Descriptive only; no scoring depends on it."""
    entries: list[RACIEntry] = Field(default_factory=list)

    def add_entry(self, entry: RACIEntry) -> None:
        entry.validate_entity()
        self.entries.append(entry)


class KPI(BaseModel):
    """Key performance indicator definition."""
    id: str
    name: str
    description: str = ""
    target: float = 0.0
    unit: str = ""
    category: str = ""
    frequency: str = ""  # daily, weekly, monthly, quarterly
    status: KPIStatus = KPIStatus.NOT_MEASURED

    def validate_entity(self) -> None:
        if not self.id:
            raise ValidationError("KPI ID cannot be empty")
        if not self.name:
            raise ValidationError("KPI name cannot be empty")


class Functionality(BaseModel):
    id: str = ""
    name: str
    description: str = ""
    category: str = ""
    priority: Priority = Priority.MEDIUM
    status: FunctionalityStatus = FunctionalityStatus.AVAILABLE


class ApplicationCatalogue(BaseModel):
    """Catalogue of functionality an application provides."""
    functionality: list[Functionality] = Field(default_factory=list)
    last_updated: Optional[datetime] = None


class ApplicationInterface(BaseModel):
    id: str = ""
    name: str
    type: InterfaceType = InterfaceType.API
    description: str = ""
    protocol: str = ""
    endpoint: str = ""
    status: InterfaceStatus = InterfaceStatus.ACTIVE


class EnvironmentVariable(BaseModel):
    name: str
    value: str = ""
    description: str = ""
    required: bool = False
    sensitive: bool = False


class ConfigurationFile(BaseModel):
    path: str
    format: str = ""
    description: str = ""
    required: bool = False


class SecuritySetting(BaseModel):
    name: str
    value: str = ""
    description: str = ""
    category: str = ""


class ConfigurationStandard(BaseModel):
    environment_variables: list[EnvironmentVariable] = Field(default_factory=list)
    configuration_files: list[ConfigurationFile] = Field(default_factory=list)
    security_settings: list[SecuritySetting] = Field(default_factory=list)
    last_updated: Optional[datetime] = None


class SecurityMeasure(BaseModel):
    name: str
    description: str = ""
    category: str = ""
    status: SecurityStatus = SecurityStatus.IMPLEMENTED


class RolePermission(BaseModel):
    role: str
    permissions: list[str] = Field(default_factory=list)
    resource: str = ""


class EscalationLevel(BaseModel):
    level: int
    description: str = ""
    response_time: timedelta = timedelta(0)
    contacts: list[str] = Field(default_factory=list)


class SLA(BaseModel):
    """Service level agreement."""
    service_name: str = ""
    response_time: timedelta = timedelta(0)
    availability: float = 0.0  # percentage, e.g. 99.9
    uptime: str = ""
    support_hours: str = ""
    escalation_matrix: list[EscalationLevel] = Field(default_factory=list)


class SecurityProvisions(BaseModel):
    """Security measures grouped by the property they protect."""
    data_confidentiality: list[SecurityMeasure] = Field(default_factory=list)
    data_integrity: list[SecurityMeasure] = Field(default_factory=list)
    application_availability: SLA = Field(default_factory=SLA)
    application_authenticity: list[SecurityMeasure] = Field(default_factory=list)
    roles_and_permissions: list[RolePermission] = Field(default_factory=list)


class ContinuityPlan(BaseModel):
    name: str
    description: str = ""
    type: ContinuityType = ContinuityType.BACKUP
    status: PlanStatus = PlanStatus.DOCUMENTED


class BusinessContinuity(BaseModel):
    recovery_time_objective: timedelta = timedelta(0)
    recovery_point_objective: timedelta = timedelta(0)
    business_impact_analysis: str = ""
    continuity_plans: list[ContinuityPlan] = Field(default_factory=list)
    testing_schedule: str = ""


# =============================================================================
# Governance Components
# =============================================================================


class ICTOperationsManual(BaseModel):
    application_architecture: str = ""
    infrastructure_config: str = ""
    operating_system: str = ""
    programming_language: str = ""
    rights_and_roles: list[RolePermission] = Field(default_factory=list)
    security_provisions: SecurityProvisions = Field(default_factory=SecurityProvisions)
    last_updated: Optional[datetime] = None


class Strategy(BaseModel):
    """Strategy component: operations manual, catalogue, interfaces, configuration."""
    ict_operations_manual: ICTOperationsManual = Field(default_factory=ICTOperationsManual)
    application_catalogue: ApplicationCatalogue = Field(default_factory=ApplicationCatalogue)
    application_interfaces: list[ApplicationInterface] = Field(default_factory=list)
    configuration_standard: ConfigurationStandard = Field(default_factory=ConfigurationStandard)


class RequirementStep(BaseModel):
    step_number: int
    name: str
    description: str = ""
    responsible: str = ""


class ApprovalStep(BaseModel):
    step_number: int
    name: str
    approver_role: str = ""
    conditions: str = ""


class BusinessRule(BaseModel):
    id: str
    name: str
    description: str = ""
    category: str = ""


class RequirementsManagement(BaseModel):
    gathering_process: list[RequirementStep] = Field(default_factory=list)
    validation_process: list[RequirementStep] = Field(default_factory=list)
    approval_workflow: list[ApprovalStep] = Field(default_factory=list)
    business_rules: list[BusinessRule] = Field(default_factory=list)


class Stakeholder(BaseModel):
    name: str
    role: str = ""
    contact: str = ""
    raci_role: str = ""  # R, A, C or I


class CommunicationType(BaseModel):
    type: str
    description: str = ""
    frequency: str = ""
    audience: str = ""


class CommunicationManagement(BaseModel):
    stakeholders: list[Stakeholder] = Field(default_factory=list)
    communication_matrix: ResponsibilityMatrix = Field(default_factory=ResponsibilityMatrix)
    communication_types: list[CommunicationType] = Field(default_factory=list)
    communication_schedule: str = ""


class PrioritizationRule(BaseModel):
    criteria: str
    weight: int = 0
    description: str = ""


class ChangeRequestProcess(BaseModel):
    types: list[ChangeType] = Field(default_factory=list)
    approval_matrix: ResponsibilityMatrix = Field(default_factory=ResponsibilityMatrix)
    escalation_matrix: list[EscalationLevel] = Field(default_factory=list)
    sla: SLA = Field(default_factory=SLA)


class Acquisition(BaseModel):
    """Acquisition component: requirements, communication, change process."""
    requirements_management: RequirementsManagement = Field(default_factory=RequirementsManagement)
    communication_management: CommunicationManagement = Field(default_factory=CommunicationManagement)
    business_case_template: str = ""
    prioritization_matrix: list[PrioritizationRule] = Field(default_factory=list)
    change_request_process: ChangeRequestProcess = Field(default_factory=ChangeRequestProcess)


class SupportProcess(BaseModel):
    level1_support: list[str] = Field(default_factory=list)
    level2_support: list[str] = Field(default_factory=list)
    level3_support: list[str] = Field(default_factory=list)
    sla: SLA = Field(default_factory=SLA)


class IncidentClass(BaseModel):
    severity: int
    name: str
    description: str = ""
    response_time: timedelta = timedelta(0)


class IncidentPriority(BaseModel):
    priority: int
    name: str
    description: str = ""
    sla: timedelta = timedelta(0)


class IncidentResponse(BaseModel):
    incident_class: str
    action: str
    responsible: str = ""
    timeframe: timedelta = timedelta(0)


class IncidentManagement(BaseModel):
    classification_matrix: list[IncidentClass] = Field(default_factory=list)
    prioritization_matrix: list[IncidentPriority] = Field(default_factory=list)
    response_matrix: list[IncidentResponse] = Field(default_factory=list)


class Performance(BaseModel):
    """Performance component: support, incidents, escalation, continuity."""
    support_process: SupportProcess = Field(default_factory=SupportProcess)
    incident_management: IncidentManagement = Field(default_factory=IncidentManagement)
    escalation_process: list[EscalationLevel] = Field(default_factory=list)
    application_security: SecurityProvisions = Field(default_factory=SecurityProvisions)
    business_continuity: BusinessContinuity = Field(default_factory=BusinessContinuity)


class LegalRequirement(BaseModel):
    name: str
    description: str = ""
    authority: str = ""
    effective_date: Optional[datetime] = None
    status: ComplianceStatus = ComplianceStatus.UNDER_REVIEW


class ContractualRequirement(BaseModel):
    name: str
    description: str = ""
    contract_id: str = ""
    party: str = ""
    status: ComplianceStatus = ComplianceStatus.UNDER_REVIEW


class IndustryStandard(BaseModel):
    name: str
    description: str = ""
    organization: str = ""
    version: str = ""
    status: ComplianceStatus = ComplianceStatus.UNDER_REVIEW


class AuditRequirement(BaseModel):
    name: str
    description: str = ""
    frequency: str = ""
    responsible: str = ""
    last_audit: Optional[datetime] = None
    next_audit: Optional[datetime] = None


class ComplianceMonitoring(BaseModel):
    monitoring_frequency: str = ""
    responsible_parties: list[str] = Field(default_factory=list)
    reporting_schedule: str = ""
    audit_requirements: list[AuditRequirement] = Field(default_factory=list)


class Conformance(BaseModel):
    """Conformance component: legal, contractual and industry obligations."""
    legal_requirements: list[LegalRequirement] = Field(default_factory=list)
    contractual_requirements: list[ContractualRequirement] = Field(default_factory=list)
    industry_standards: list[IndustryStandard] = Field(default_factory=list)
    compliance_monitoring: ComplianceMonitoring = Field(default_factory=ComplianceMonitoring)


class ImplementationPhase(BaseModel):
    phase_number: int
    name: str
    description: str = ""
    duration: timedelta = timedelta(0)
    responsible: str = ""


class QualityGate(BaseModel):
    name: str
    description: str = ""
    criteria: str = ""
    responsible: str = ""


class ImplementationProcess(BaseModel):
    phases: list[ImplementationPhase] = Field(default_factory=list)
    roles: ResponsibilityMatrix = Field(default_factory=ResponsibilityMatrix)
    quality_gates: list[QualityGate] = Field(default_factory=list)
    rollback_plan: str = ""


class TestingRequirement(BaseModel):
    type: str
    description: str = ""
    responsible: str = ""
    duration: timedelta = timedelta(0)


class DeploymentWindow(BaseModel):
    environment: str
    start_time: str = ""
    end_time: str = ""
    days: list[str] = Field(default_factory=list)


class ReleaseManagement(BaseModel):
    release_types: list[ReleaseType] = Field(default_factory=list)
    approval_process: list[ApprovalStep] = Field(default_factory=list)
    testing_requirements: list[TestingRequirement] = Field(default_factory=list)
    deployment_windows: list[DeploymentWindow] = Field(default_factory=list)


class DeploymentStrategy(BaseModel):
    type: DeploymentType = DeploymentType.PHASED
    automation_level: str = ""
    rollback_capability: bool = False
    monitoring: str = ""


class Implementation(BaseModel):
    """Implementation component: process, releases, deployment."""
    implementation_process: ImplementationProcess = Field(default_factory=ImplementationProcess)
    release_management: ReleaseManagement = Field(default_factory=ReleaseManagement)
    deployment_strategy: DeploymentStrategy = Field(default_factory=DeploymentStrategy)


# =============================================================================
# Assessment Outputs (derived, never persisted)
# =============================================================================


class TechnicalHealth(BaseModel):
    """Five 1-5 sub-scores plus an unclamped test-coverage percentage."""
    code_quality: int = Field(1, ge=1, le=5)
    documentation: int = Field(1, ge=1, le=5)
    test_coverage: float = 0.0
    security_score: int = Field(1, ge=1, le=5)
    performance_score: int = Field(1, ge=1, le=5)


class UsageMetrics(BaseModel):
    """Illustrative usage figures. Not consumed by any other score."""
    active_users: int = 0
    transaction_volume: int = 0
    uptime_percentage: float = 0.0
    response_time: timedelta = timedelta(0)


class BusinessValueAssessment(BaseModel):
    usage_metrics: UsageMetrics = Field(default_factory=UsageMetrics)
    business_alignment: float = Field(0.0, ge=0.0, le=100.0)
    cost_efficiency: float = Field(0.0, ge=0.0, le=100.0)
    user_satisfaction: float = Field(0.0, ge=0.0, le=100.0)


class Recommendation(BaseModel):
    id: str
    type: RecommendationType
    description: str
    priority: Priority
    estimated_effort: timedelta = timedelta(0)
    business_impact: str = ""


class ApplicationAssessment(BaseModel):
    """Full evaluation result for one application."""
    application_id: str
    technical_health: TechnicalHealth = Field(default_factory=TechnicalHealth)
    business_value: BusinessValueAssessment = Field(default_factory=BusinessValueAssessment)
    risk_level: RiskLevel = RiskLevel.LOW
    recommendations: list[Recommendation] = Field(default_factory=list)


class PortfolioHealthAssessment(BaseModel):
    """Aggregated health of a portfolio, computed in a single pass."""
    total_applications: int = 0
    active_applications: int = 0
    deprecated_applications: int = 0
    redundant_applications: int = 0
    total_cost: float = 0.0
    average_application_age: timedelta = timedelta(0)
    risk_distribution: dict[RiskLevel, int] = Field(default_factory=dict)


class GovernanceMaturityAssessment(BaseModel):
    maturity_level: int = Field(1, ge=1, le=5)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    improvement_areas: list[str] = Field(default_factory=list)


class KPIMeasurement(BaseModel):
    kpi_id: str
    value: float = 0.0
    target: float = 0.0
    achieved: bool = False
    measured_at: Optional[datetime] = None
    notes: str = ""


class Risk(BaseModel):
    id: str
    name: str
    description: str = ""
    category: str = ""
    probability: float = Field(0.0, ge=0.0, le=1.0)
    impact: RiskImpact = RiskImpact.LOW
    level: RiskLevel = RiskLevel.LOW


class MitigationPlan(BaseModel):
    risk_id: str
    actions: list[str] = Field(default_factory=list)
    responsible: str = ""
    timeline: timedelta = timedelta(0)
    budget: float = 0.0
    effectiveness: float = Field(0.0, ge=0.0, le=1.0)


# =============================================================================
# Principles: Evaluate
# =============================================================================


class CurrentSituationAssessment(BaseModel):
    application_inventory: list[ApplicationAssessment] = Field(default_factory=list)
    portfolio_health: PortfolioHealthAssessment = Field(default_factory=PortfolioHealthAssessment)
    governance_maturity: GovernanceMaturityAssessment = Field(default_factory=GovernanceMaturityAssessment)


class BusinessObjective(BaseModel):
    id: str
    name: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    deadline: Optional[datetime] = None


class TechnologyNeed(BaseModel):
    id: str
    name: str
    description: str = ""
    category: str = ""
    priority: Priority = Priority.MEDIUM


class ResourceRequirement(BaseModel):
    type: str
    description: str = ""
    quantity: int = 0
    timeframe: timedelta = timedelta(0)


class NeedsAssessment(BaseModel):
    business_objectives: list[BusinessObjective] = Field(default_factory=list)
    technology_needs: list[TechnologyNeed] = Field(default_factory=list)
    resource_requirements: list[ResourceRequirement] = Field(default_factory=list)
    timeline: timedelta = timedelta(0)


class RiskAssessment(BaseModel):
    risks: list[Risk] = Field(default_factory=list)
    mitigation_plans: list[MitigationPlan] = Field(default_factory=list)
    overall_risk_level: RiskLevel = RiskLevel.LOW


class EvaluatePrinciple(BaseModel):
    """Evaluate: current situation, needs, risks and measured performance."""
    current_situation: CurrentSituationAssessment = Field(default_factory=CurrentSituationAssessment)
    needs_assessment: NeedsAssessment = Field(default_factory=NeedsAssessment)
    risk_assessment: RiskAssessment = Field(default_factory=RiskAssessment)
    performance_metrics: list[KPIMeasurement] = Field(default_factory=list)
    last_evaluated: Optional[datetime] = None


# =============================================================================
# Principles: Direct
# =============================================================================


class StrategicObjective(BaseModel):
    id: str
    name: str
    description: str = ""
    kpis: list[KPI] = Field(default_factory=list)
    deadline: Optional[datetime] = None


class StrategicInitiative(BaseModel):
    id: str
    name: str
    description: str = ""
    owner: str = ""
    budget: float = 0.0
    deadline: Optional[datetime] = None


class StrategicDirection(BaseModel):
    vision: str = ""
    mission: str = ""
    objectives: list[StrategicObjective] = Field(default_factory=list)
    initiatives: list[StrategicInitiative] = Field(default_factory=list)
    timeframe: timedelta = timedelta(0)


class BudgetAllocation(BaseModel):
    category: str
    amount: float = 0.0
    timeframe: str = ""
    justification: str = ""


class PersonnelAllocation(BaseModel):
    role: str
    count: int = 0
    skill_level: str = ""
    timeframe: str = ""


class TechnologyAllocation(BaseModel):
    technology: str
    purpose: str = ""
    budget: float = 0.0
    timeframe: str = ""


class ResourceAllocation(BaseModel):
    budget_allocations: list[BudgetAllocation] = Field(default_factory=list)
    personnel_allocations: list[PersonnelAllocation] = Field(default_factory=list)
    technology_allocations: list[TechnologyAllocation] = Field(default_factory=list)


class Policy(BaseModel):
    id: str
    name: str
    description: str = ""
    scope: str = ""
    owner: str = ""
    status: PolicyStatus = PolicyStatus.DRAFT


class Standard(BaseModel):
    id: str
    name: str
    description: str = ""
    category: str = ""
    mandatory: bool = False


class ProcedureStep(BaseModel):
    step_number: int
    description: str
    responsible: str = ""


class Procedure(BaseModel):
    id: str
    name: str
    description: str = ""
    steps: list[ProcedureStep] = Field(default_factory=list)


class Guideline(BaseModel):
    id: str
    name: str
    description: str = ""
    category: str = ""


class PolicyFramework(BaseModel):
    policies: list[Policy] = Field(default_factory=list)
    standards: list[Standard] = Field(default_factory=list)
    procedures: list[Procedure] = Field(default_factory=list)
    guidelines: list[Guideline] = Field(default_factory=list)


class Action(BaseModel):
    id: str
    description: str
    responsible: str = ""
    deadline: Optional[datetime] = None
    status: ActionStatus = ActionStatus.PENDING


class ActionPlan(BaseModel):
    id: str
    name: str
    description: str = ""
    actions: list[Action] = Field(default_factory=list)
    owner: str = ""
    deadline: Optional[datetime] = None
    status: ActionStatus = ActionStatus.PENDING


class DirectPrinciple(BaseModel):
    """Direct: strategy, resources, policies and the action plans derived from them."""
    strategic_direction: StrategicDirection = Field(default_factory=StrategicDirection)
    resource_allocation: ResourceAllocation = Field(default_factory=ResourceAllocation)
    policy_framework: PolicyFramework = Field(default_factory=PolicyFramework)
    action_plans: list[ActionPlan] = Field(default_factory=list)
    last_directed: Optional[datetime] = None


# =============================================================================
# Principles: Monitor
# =============================================================================


class Threshold(BaseModel):
    level: str  # warning, critical
    value: float = 0.0
    condition: str = ""  # >, <, =


class Alert(BaseModel):
    type: str
    recipient: str = ""
    message: str = ""
    escalation: str = ""


class KPIMonitoring(BaseModel):
    kpi_id: str
    frequency: str = ""
    responsible: str = ""
    thresholds: list[Threshold] = Field(default_factory=list)
    alerts: list[Alert] = Field(default_factory=list)


class ServiceLevelMonitoring(BaseModel):
    service_id: str
    slas: list[SLA] = Field(default_factory=list)
    metrics: list[str] = Field(default_factory=list)
    dashboards: list[str] = Field(default_factory=list)


class Survey(BaseModel):
    id: str
    name: str
    frequency: str = ""
    questions: list[str] = Field(default_factory=list)


class FeedbackChannel(BaseModel):
    type: str
    description: str = ""
    frequency: str = ""


class SatisfactionScore(BaseModel):
    metric: str
    score: float = 0.0
    date: Optional[datetime] = None
    sample_size: int = 0


class UserExperienceMonitoring(BaseModel):
    surveys: list[Survey] = Field(default_factory=list)
    feedback_channels: list[FeedbackChannel] = Field(default_factory=list)
    satisfaction_scores: list[SatisfactionScore] = Field(default_factory=list)


class PerformanceMonitoring(BaseModel):
    kpi_monitoring: list[KPIMonitoring] = Field(default_factory=list)
    service_level_monitoring: list[ServiceLevelMonitoring] = Field(default_factory=list)
    user_experience_monitoring: UserExperienceMonitoring = Field(default_factory=UserExperienceMonitoring)


class RiskIndicator(BaseModel):
    name: str
    value: float = 0.0
    threshold: float = 0.0
    status: RiskStatus = RiskStatus.NORMAL


class RiskHeatMap(BaseModel):
    name: str
    description: str = ""
    data: dict[str, dict[str, float]] = Field(default_factory=dict)  # probability x impact


class MitigationTracking(BaseModel):
    mitigation_id: str
    status: ActionStatus = ActionStatus.PENDING
    progress: float = Field(0.0, ge=0.0, le=1.0)
    notes: str = ""


class RiskMonitoring(BaseModel):
    risk_indicators: list[RiskIndicator] = Field(default_factory=list)
    risk_heat_maps: list[RiskHeatMap] = Field(default_factory=list)
    mitigation_tracking: list[MitigationTracking] = Field(default_factory=list)


class FeedbackItem(BaseModel):
    id: str
    stakeholder: str = ""
    feedback: str = ""
    category: str = ""
    sentiment: str = ""
    date: Optional[datetime] = None


class SurveyResponse(BaseModel):
    question_id: str
    response: str = ""
    score: int = 0


class SurveySummary(BaseModel):
    total_responses: int = 0
    average_score: float = 0.0
    response_rate: float = 0.0
    key_insights: list[str] = Field(default_factory=list)


class SurveyResult(BaseModel):
    survey_id: str
    responses: list[SurveyResponse] = Field(default_factory=list)
    summary: SurveySummary = Field(default_factory=SurveySummary)


class CommunicationLogEntry(BaseModel):
    date: Optional[datetime] = None
    type: str = ""
    subject: str = ""
    recipients: list[str] = Field(default_factory=list)
    response: str = ""


class StakeholderFeedback(BaseModel):
    feedback_items: list[FeedbackItem] = Field(default_factory=list)
    survey_results: list[SurveyResult] = Field(default_factory=list)
    communication_log: list[CommunicationLogEntry] = Field(default_factory=list)


class Report(BaseModel):
    id: str
    name: str
    type: ReportType = ReportType.PERFORMANCE
    frequency: str = ""
    recipients: list[str] = Field(default_factory=list)
    last_generated: Optional[datetime] = None


class KeyMetric(BaseModel):
    name: str
    value: float = 0.0
    unit: str = ""
    trend: str = ""
    status: str = ""


class ExecutiveSummary(BaseModel):
    period: str = ""
    key_metrics: list[KeyMetric] = Field(default_factory=list)
    achievements: list[str] = Field(default_factory=list)
    challenges: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class GovernanceReporting(BaseModel):
    reports: list[Report] = Field(default_factory=list)
    executive_summary: ExecutiveSummary = Field(default_factory=ExecutiveSummary)


class MonitorPrinciple(BaseModel):
    """Monitor: performance, compliance, risk, feedback and reporting."""
    performance_monitoring: PerformanceMonitoring = Field(default_factory=PerformanceMonitoring)
    compliance_monitoring: ComplianceMonitoring = Field(default_factory=ComplianceMonitoring)
    risk_monitoring: RiskMonitoring = Field(default_factory=RiskMonitoring)
    stakeholder_feedback: StakeholderFeedback = Field(default_factory=StakeholderFeedback)
    reporting: GovernanceReporting = Field(default_factory=GovernanceReporting)
    last_monitored: Optional[datetime] = None


# =============================================================================
# Entities
# =============================================================================


class Application(BaseModel):
    """An application under governance."""
    id: str
    name: str
    description: str = ""
    version: str = ""
    status: ApplicationStatus = ApplicationStatus.PLANNED
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    governance_agreement_id: str = ""
    catalogue: ApplicationCatalogue = Field(default_factory=ApplicationCatalogue)
    interfaces: list[ApplicationInterface] = Field(default_factory=list)
    configuration_standard: ConfigurationStandard = Field(default_factory=ConfigurationStandard)
    security_provisions: SecurityProvisions = Field(default_factory=SecurityProvisions)
    business_continuity: BusinessContinuity = Field(default_factory=BusinessContinuity)

    def validate_entity(self) -> None:
        """Raise ValidationError if ID or name is empty."""
        if not self.id:
            raise ValidationError("application ID cannot be empty")
        if not self.name:
            raise ValidationError("application name cannot be empty")


class GovernanceAgreement(BaseModel):
    """Per-application governance document covering the five components
    and the Evaluate/Direct/Monitor principle state."""
    id: str
    application_id: str
    title: str
    version: str = ""
    status: AgreementStatus = AgreementStatus.DRAFT
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    responsibility_matrix: ResponsibilityMatrix = Field(default_factory=ResponsibilityMatrix)
    strategy: Strategy = Field(default_factory=Strategy)
    acquisition: Acquisition = Field(default_factory=Acquisition)
    performance: Performance = Field(default_factory=Performance)
    conformance: Conformance = Field(default_factory=Conformance)
    implementation: Implementation = Field(default_factory=Implementation)

    evaluate: EvaluatePrinciple = Field(default_factory=EvaluatePrinciple)
    direct: DirectPrinciple = Field(default_factory=DirectPrinciple)
    monitor: MonitorPrinciple = Field(default_factory=MonitorPrinciple)

    def validate_entity(self) -> None:
        if not self.id:
            raise ValidationError("governance agreement ID cannot be empty")
        if not self.application_id:
            raise ValidationError("application ID cannot be empty")
        if not self.title:
            raise ValidationError("governance agreement title cannot be empty")


class ApplicationPortfolio(BaseModel):
    """A named, owned collection of application copies.

    Members are value copies: later changes to the canonical application
    record are not reflected here until the member is refreshed.
    """
    id: str
    name: str
    description: str = ""
    owner: str = ""
    applications: list[Application] = Field(default_factory=list)
    kpis: list[KPI] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def validate_entity(self) -> None:
        if not self.id:
            raise ValidationError("portfolio ID cannot be empty")
        if not self.name:
            raise ValidationError("portfolio name cannot be empty")

    def application_ids(self) -> list[str]:
        return [app.id for app in self.applications]

    def has_application(self, app_id: str) -> bool:
        return any(app.id == app_id for app in self.applications)

    def add_application(self, app: Application, now: Optional[datetime] = None) -> None:
        """Append a copy of ``app``.

        Raises:
            ValidationError: If the application is invalid.
            AlreadyExistsError: If a member with the same ID is present.
        """
        app.validate_entity()
        if self.has_application(app.id):
            raise AlreadyExistsError(f"application {app.id} already exists in portfolio {self.id}")
        self.applications.append(app.model_copy(deep=True))
        self.updated_at = now or utc_now()

    def remove_application(self, app_id: str, now: Optional[datetime] = None) -> None:
        for i, app in enumerate(self.applications):
            if app.id == app_id:
                del self.applications[i]
                self.updated_at = now or utc_now()
                return
        raise NotFoundError(f"application {app_id} not found in portfolio {self.id}")

    def replace_application(self, app: Application, now: Optional[datetime] = None) -> None:
        """Overwrite the member copy with the same ID."""
        for i, existing in enumerate(self.applications):
            if existing.id == app.id:
                self.applications[i] = app.model_copy(deep=True)
                self.updated_at = now or utc_now()
                return
        raise NotFoundError(f"application {app.id} not found in portfolio {self.id}")
