"""Repository interfaces the engines depend on.

Any persistent implementation can stand in for the in-memory stores as long
as it satisfies these protocols. Lookups that miss raise NotFoundError.
"""

from datetime import datetime
from typing import Protocol

from governance_engine.change_schema import (
    Audit,
    AuditStatus,
    ChangeRequest,
    ChangeRequestStatus,
    Incident,
    IncidentStatus,
)
from governance_engine.events import BaseEvent
from governance_engine.schema import (
    KPI,
    AgreementStatus,
    Application,
    ApplicationPortfolio,
    ComplianceStatus,
    ContractualRequirement,
    GovernanceAgreement,
    IndustryStandard,
    KPIMeasurement,
    LegalRequirement,
    MitigationPlan,
    Risk,
    RiskLevel,
)


class ApplicationRepository(Protocol):
    def save(self, app: Application) -> None: ...
    def update(self, app: Application) -> None: ...
    def delete(self, app_id: str) -> None: ...
    def find_by_id(self, app_id: str) -> Application: ...
    def find_by_name(self, name: str) -> Application: ...
    def find_all(self) -> list[Application]: ...
    def find_by_portfolio(self, portfolio_id: str) -> list[Application]: ...
    def exists(self, app_id: str) -> bool: ...
    def link_to_portfolio(self, portfolio_id: str, app_id: str) -> None: ...
    def unlink_from_portfolio(self, portfolio_id: str, app_id: str) -> None: ...


class GovernanceAgreementRepository(Protocol):
    def save(self, agreement: GovernanceAgreement) -> None: ...
    def update(self, agreement: GovernanceAgreement) -> None: ...
    def delete(self, agreement_id: str) -> None: ...
    def find_by_id(self, agreement_id: str) -> GovernanceAgreement: ...
    def find_by_application(self, app_id: str) -> GovernanceAgreement: ...
    def find_all(self) -> list[GovernanceAgreement]: ...
    def find_by_status(self, status: AgreementStatus) -> list[GovernanceAgreement]: ...
    def exists(self, agreement_id: str) -> bool: ...


class PortfolioRepository(Protocol):
    def save(self, portfolio: ApplicationPortfolio) -> None: ...
    def update(self, portfolio: ApplicationPortfolio) -> None: ...
    def delete(self, portfolio_id: str) -> None: ...
    def find_by_id(self, portfolio_id: str) -> ApplicationPortfolio: ...
    def find_by_owner(self, owner: str) -> list[ApplicationPortfolio]: ...
    def find_all(self) -> list[ApplicationPortfolio]: ...
    def exists(self, portfolio_id: str) -> bool: ...
    def add_application(self, portfolio_id: str, app: Application) -> None: ...
    def remove_application(self, portfolio_id: str, app_id: str) -> None: ...


class KPIRepository(Protocol):
    def save(self, kpi: KPI) -> None: ...
    def find_by_id(self, kpi_id: str) -> KPI: ...
    def find_all(self) -> list[KPI]: ...
    def find_by_category(self, category: str) -> list[KPI]: ...


class KPIMeasurementRepository(Protocol):
    def save(self, measurement: KPIMeasurement) -> None: ...
    def find_by_kpi(self, kpi_id: str) -> list[KPIMeasurement]: ...
    def find_by_period(self, kpi_id: str, start: datetime, end: datetime) -> list[KPIMeasurement]: ...
    def find_latest(self, kpi_id: str) -> KPIMeasurement: ...


class RiskRepository(Protocol):
    def save(self, risk: Risk) -> None: ...
    def find_by_id(self, risk_id: str) -> Risk: ...
    def find_all(self) -> list[Risk]: ...
    def find_by_level(self, level: RiskLevel) -> list[Risk]: ...
    def find_by_category(self, category: str) -> list[Risk]: ...


class MitigationPlanRepository(Protocol):
    def save(self, plan: MitigationPlan) -> None: ...
    def find_by_risk(self, risk_id: str) -> MitigationPlan: ...
    def find_all(self) -> list[MitigationPlan]: ...


class ComplianceRepository(Protocol):
    def save_legal_requirement(self, app_id: str, requirement: LegalRequirement) -> None: ...
    def save_contractual_requirement(self, app_id: str, requirement: ContractualRequirement) -> None: ...
    def save_industry_standard(self, app_id: str, standard: IndustryStandard) -> None: ...
    def find_legal_requirements(self, app_id: str) -> list[LegalRequirement]: ...
    def find_contractual_requirements(self, app_id: str) -> list[ContractualRequirement]: ...
    def find_industry_standards(self, app_id: str) -> list[IndustryStandard]: ...
    def update_status(self, app_id: str, requirement_name: str, status: ComplianceStatus) -> None: ...


class DomainEventRepository(Protocol):
    def save(self, event: BaseEvent) -> None: ...
    def find_all(self) -> list[BaseEvent]: ...
    def find_by_type(self, event_type: str) -> list[BaseEvent]: ...
    def find_by_aggregate(self, aggregate_id: str) -> list[BaseEvent]: ...
    def find_by_time_range(self, start: datetime, end: datetime) -> list[BaseEvent]: ...


class ChangeRequestRepository(Protocol):
    def save(self, change_request: ChangeRequest) -> None: ...
    def update(self, change_request: ChangeRequest) -> None: ...
    def find_by_id(self, change_request_id: str) -> ChangeRequest: ...
    def find_by_application(self, app_id: str) -> list[ChangeRequest]: ...
    def find_by_status(self, status: ChangeRequestStatus) -> list[ChangeRequest]: ...


class IncidentRepository(Protocol):
    def save(self, incident: Incident) -> None: ...
    def update(self, incident: Incident) -> None: ...
    def find_by_id(self, incident_id: str) -> Incident: ...
    def find_by_application(self, app_id: str) -> list[Incident]: ...
    def find_by_status(self, status: IncidentStatus) -> list[Incident]: ...


class AuditRepository(Protocol):
    def save(self, audit: Audit) -> None: ...
    def update(self, audit: Audit) -> None: ...
    def find_by_id(self, audit_id: str) -> Audit: ...
    def find_by_application(self, app_id: str) -> list[Audit]: ...
    def find_by_status(self, status: AuditStatus) -> list[Audit]: ...
    def find_by_period(self, start: datetime, end: datetime) -> list[Audit]: ...
