"""Repository interfaces and in-memory implementations."""

from governance_engine.store.memory import (
    InMemoryApplicationRepository,
    InMemoryAuditRepository,
    InMemoryChangeRequestRepository,
    InMemoryComplianceRepository,
    InMemoryDomainEventRepository,
    InMemoryGovernanceAgreementRepository,
    InMemoryIncidentRepository,
    InMemoryKPIMeasurementRepository,
    InMemoryKPIRepository,
    InMemoryMitigationPlanRepository,
    InMemoryPortfolioRepository,
    InMemoryRiskRepository,
)

__all__ = [
    "InMemoryApplicationRepository",
    "InMemoryAuditRepository",
    "InMemoryChangeRequestRepository",
    "InMemoryComplianceRepository",
    "InMemoryDomainEventRepository",
    "InMemoryGovernanceAgreementRepository",
    "InMemoryIncidentRepository",
    "InMemoryKPIMeasurementRepository",
    "InMemoryKPIRepository",
    "InMemoryMitigationPlanRepository",
    "InMemoryPortfolioRepository",
    "InMemoryRiskRepository",
]
