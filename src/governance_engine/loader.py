"""Workspace wiring and workspace document loading.

A workspace document is a YAML or JSON file with these top-level lists, all
optional::

    applications:  Application records
    agreements:    GovernanceAgreement records (one per application)
    portfolios:    id, name, description, owner and member application IDs
    kpis:          KPI definitions
    measurements:  KPIMeasurement records
    risks:         Risk records
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from governance_engine.app_logging import get_logger
from governance_engine.change_management import ChangeManagementService
from governance_engine.commands import AddApplicationToPortfolioCommand, CreatePortfolioCommand
from governance_engine.config import EngineConfig, get_config
from governance_engine.direction import DirectionService
from governance_engine.evaluation import EvaluationService
from governance_engine.exceptions import ValidationError
from governance_engine.monitoring import MonitoringService
from governance_engine.schema import (
    KPI,
    Application,
    GovernanceAgreement,
    KPIMeasurement,
    Risk,
    utc_now,
)
from governance_engine.services import GovernanceService, PortfolioService
from governance_engine.store import (
    InMemoryApplicationRepository,
    InMemoryAuditRepository,
    InMemoryChangeRequestRepository,
    InMemoryDomainEventRepository,
    InMemoryGovernanceAgreementRepository,
    InMemoryIncidentRepository,
    InMemoryKPIMeasurementRepository,
    InMemoryKPIRepository,
    InMemoryPortfolioRepository,
    InMemoryRiskRepository,
)

logger = get_logger("loader")


# =============================================================================
# Workspace
# =============================================================================


@dataclass
class Workspace:
    """Every repository and service for one governance workspace."""
    applications: InMemoryApplicationRepository
    agreements: InMemoryGovernanceAgreementRepository
    portfolios: InMemoryPortfolioRepository
    events: InMemoryDomainEventRepository
    change_requests: InMemoryChangeRequestRepository
    incidents: InMemoryIncidentRepository
    audits: InMemoryAuditRepository
    kpis: Optional[InMemoryKPIRepository]
    measurements: Optional[InMemoryKPIMeasurementRepository]
    risks: Optional[InMemoryRiskRepository]
    evaluation: EvaluationService
    direction: DirectionService
    monitoring: MonitoringService
    portfolio_service: PortfolioService
    governance_service: GovernanceService
    change_management: ChangeManagementService

    @classmethod
    def in_memory(
        cls,
        monitoring_stores: bool = False,
        clock: Callable[[], datetime] = utc_now,
        config: Optional[EngineConfig] = None,
    ) -> "Workspace":
        """Build an empty in-memory workspace.

        Args:
            monitoring_stores: Attach KPI, measurement and risk stores. When
                False, monitoring falls back to fixed sample data.
            clock: Time source shared by every service.
            config: Engine configuration. Defaults to the global config.
        """
        config = config or get_config()
        applications = InMemoryApplicationRepository()
        agreements = InMemoryGovernanceAgreementRepository()
        portfolios = InMemoryPortfolioRepository()
        events = InMemoryDomainEventRepository()
        change_requests = InMemoryChangeRequestRepository()
        incidents = InMemoryIncidentRepository()
        audits = InMemoryAuditRepository()

        kpis = InMemoryKPIRepository() if monitoring_stores else None
        measurements = InMemoryKPIMeasurementRepository() if monitoring_stores else None
        risks = InMemoryRiskRepository() if monitoring_stores else None

        evaluation = EvaluationService(applications, agreements, portfolios, clock=clock, config=config)
        direction = DirectionService(agreements, clock=clock, config=config)
        monitoring = MonitoringService(agreements, kpis, measurements, risks, clock=clock)

        return cls(
            applications=applications,
            agreements=agreements,
            portfolios=portfolios,
            events=events,
            change_requests=change_requests,
            incidents=incidents,
            audits=audits,
            kpis=kpis,
            measurements=measurements,
            risks=risks,
            evaluation=evaluation,
            direction=direction,
            monitoring=monitoring,
            portfolio_service=PortfolioService(portfolios, applications, agreements, events, clock=clock),
            governance_service=GovernanceService(
                agreements, applications, events, evaluation, direction, monitoring, clock=clock
            ),
            change_management=ChangeManagementService(
                change_requests, incidents, audits, applications, events, clock=clock
            ),
        )


# =============================================================================
# Workspace documents
# =============================================================================


class PortfolioDocument(BaseModel):
    id: str
    name: str
    description: str = ""
    owner: str
    applications: list[str] = Field(default_factory=list, description="Member application IDs")


class WorkspaceDocument(BaseModel):
    """Raw contents of a workspace file."""
    applications: list[Application] = Field(default_factory=list)
    agreements: list[GovernanceAgreement] = Field(default_factory=list)
    portfolios: list[PortfolioDocument] = Field(default_factory=list)
    kpis: list[KPI] = Field(default_factory=list)
    measurements: list[KPIMeasurement] = Field(default_factory=list)
    risks: list[Risk] = Field(default_factory=list)

    @property
    def has_monitoring_data(self) -> bool:
        return bool(self.kpis or self.risks)


def _read_document(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ValidationError(f"Workspace file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        # JSON is a subset of YAML
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(f"Workspace file must contain a mapping, got {type(data).__name__}")
    return data


def _format_pydantic_errors(error: PydanticValidationError) -> list[str]:
    issues = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        issues.append(f"{location}: {detail['msg']}")
    return issues


def parse_workspace_document(path: Path) -> WorkspaceDocument:
    """Read and schema-check a workspace file.

    Raises:
        ValidationError: If the file is missing, unreadable or malformed.
    """
    try:
        data = _read_document(path)
    except yaml.YAMLError as e:
        raise ValidationError(f"Could not parse {path}: {e}") from e
    try:
        return WorkspaceDocument.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid workspace file {path}: " + "; ".join(_format_pydantic_errors(e))) from e


def reference_issues(doc: WorkspaceDocument) -> list[str]:
    """Duplicate IDs and references to records the document does not contain."""
    issues = []

    app_ids: set[str] = set()
    for app in doc.applications:
        if app.id in app_ids:
            issues.append(f"applications: duplicate application ID {app.id!r}")
        app_ids.add(app.id)

    governed: set[str] = set()
    agreement_ids: set[str] = set()
    for agreement in doc.agreements:
        if agreement.id in agreement_ids:
            issues.append(f"agreements: duplicate agreement ID {agreement.id!r}")
        agreement_ids.add(agreement.id)
        if agreement.application_id not in app_ids:
            issues.append(f"agreements: {agreement.id!r} references unknown application {agreement.application_id!r}")
        elif agreement.application_id in governed:
            issues.append(f"agreements: application {agreement.application_id!r} has more than one agreement")
        governed.add(agreement.application_id)

    portfolio_ids: set[str] = set()
    for portfolio in doc.portfolios:
        if portfolio.id in portfolio_ids:
            issues.append(f"portfolios: duplicate portfolio ID {portfolio.id!r}")
        portfolio_ids.add(portfolio.id)
        for app_id in portfolio.applications:
            if app_id not in app_ids:
                issues.append(f"portfolios: {portfolio.id!r} references unknown application {app_id!r}")
            elif app_id not in governed:
                issues.append(f"portfolios: application {app_id!r} in {portfolio.id!r} has no governance agreement")

    kpi_ids = {kpi.id for kpi in doc.kpis}
    for measurement in doc.measurements:
        if measurement.kpi_id not in kpi_ids:
            issues.append(f"measurements: reference unknown KPI {measurement.kpi_id!r}")

    return issues


def validate_workspace(path: Path) -> tuple[bool, list[str]]:
    """Check a workspace file without building it.

    Returns:
        ``(ok, issues)`` where ``issues`` lists every problem found.
    """
    try:
        doc = parse_workspace_document(path)
    except ValidationError as e:
        return False, [e.message]

    issues = reference_issues(doc)
    return not issues, issues


def load_workspace(
    path: Path,
    clock: Callable[[], datetime] = utc_now,
    config: Optional[EngineConfig] = None,
) -> Workspace:
    """Build an in-memory workspace from a workspace file.

    Applications and agreements are stored as written, with each
    application's agreement back-reference filled in. Portfolios are built
    through the portfolio service, so membership rules apply.

    Raises:
        ValidationError: If the file is malformed or has dangling references.
        GovernanceError: If a record violates a domain rule.
    """
    doc = parse_workspace_document(path)
    issues = reference_issues(doc)
    if issues:
        raise ValidationError(f"Invalid workspace file {path}: " + "; ".join(issues))

    workspace = Workspace.in_memory(monitoring_stores=doc.has_monitoring_data, clock=clock, config=config)

    agreement_by_app = {agreement.application_id: agreement.id for agreement in doc.agreements}
    for app in doc.applications:
        app.validate_entity()
        app.governance_agreement_id = agreement_by_app.get(app.id, app.governance_agreement_id)
        workspace.applications.save(app)
    for agreement in doc.agreements:
        agreement.validate_entity()
        workspace.agreements.save(agreement)

    for portfolio in doc.portfolios:
        workspace.portfolio_service.create_portfolio(CreatePortfolioCommand(
            id=portfolio.id, name=portfolio.name, description=portfolio.description, owner=portfolio.owner,
        ))
        for app_id in portfolio.applications:
            workspace.portfolio_service.add_application_to_portfolio(
                AddApplicationToPortfolioCommand(portfolio_id=portfolio.id, application_id=app_id)
            )

    if workspace.kpis is not None:
        for kpi in doc.kpis:
            workspace.kpis.save(kpi)
    if workspace.measurements is not None:
        for measurement in doc.measurements:
            workspace.measurements.save(measurement)
    if workspace.risks is not None:
        for risk in doc.risks:
            workspace.risks.save(risk)

    logger.info(
        "Loaded workspace %s: %d applications, %d agreements, %d portfolios",
        path, len(doc.applications), len(doc.agreements), len(doc.portfolios),
    )
    return workspace
