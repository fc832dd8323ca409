"""Monitoring engine.

Derives KPI measurements and risk indicators from the optional KPI,
measurement and risk stores. When a store is not configured, fixed sample
records are returned instead so demos and integrations see stable output.
"""

from datetime import datetime
from typing import Callable, Optional

from governance_engine.app_logging import get_logger
from governance_engine.exceptions import NotFoundError
from governance_engine.schema import (
    KPI,
    ComplianceMonitoring,
    KPIMeasurement,
    Risk,
    RiskImpact,
    RiskIndicator,
    RiskLevel,
    RiskMonitoring,
    RiskStatus,
    utc_now,
)
from governance_engine.store.base import (
    GovernanceAgreementRepository,
    KPIMeasurementRepository,
    KPIRepository,
    RiskRepository,
)

logger = get_logger("monitoring")


class MonitoringService:
    """Monitor-principle queries over an agreement and the monitoring stores."""

    IMPACT_WEIGHTS = {
        RiskImpact.LOW: 1.0,
        RiskImpact.MEDIUM: 2.0,
        RiskImpact.HIGH: 3.0,
        RiskImpact.CRITICAL: 4.0,
    }

    LEVEL_THRESHOLDS = {
        RiskLevel.LOW: 2.0,
        RiskLevel.MEDIUM: 4.0,
        RiskLevel.HIGH: 8.0,
        RiskLevel.CRITICAL: 12.0,
    }

    # Categories where a lower measured value is better
    LOWER_IS_BETTER = {"efficiency"}

    CRITICAL_FACTOR = 1.5

    def __init__(
        self,
        agreement_repo: GovernanceAgreementRepository,
        kpi_repo: Optional[KPIRepository] = None,
        measurement_repo: Optional[KPIMeasurementRepository] = None,
        risk_repo: Optional[RiskRepository] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.agreement_repo = agreement_repo
        self.kpi_repo = kpi_repo
        self.measurement_repo = measurement_repo
        self.risk_repo = risk_repo
        self.clock = clock

    def monitor_kpis(self, agreement_id: str) -> list[KPIMeasurement]:
        """Latest measurement for every stored KPI.

        The KPI list is global, not filtered by agreement. KPIs with no
        measurement yield a zero-valued placeholder.

        Raises:
            NotFoundError: If the agreement does not exist.
        """
        self.agreement_repo.find_by_id(agreement_id)
        now = self.clock()

        if self.kpi_repo is None or self.measurement_repo is None:
            return self._sample_kpi_measurements(now)

        measurements = []
        for kpi in self.kpi_repo.find_all():
            try:
                measurement = self.measurement_repo.find_latest(kpi.id)
            except NotFoundError:
                measurement = KPIMeasurement(
                    kpi_id=kpi.id,
                    value=0.0,
                    target=kpi.target,
                    achieved=False,
                    measured_at=now,
                    notes="No measurement available",
                )
            measurement.achieved = self.is_target_achieved(kpi, measurement)
            measurements.append(measurement)
        return measurements

    def monitor_compliance(self, agreement_id: str) -> ComplianceMonitoring:
        """The agreement's compliance monitoring configuration, unchanged."""
        agreement = self.agreement_repo.find_by_id(agreement_id)
        return agreement.conformance.compliance_monitoring

    def monitor_risks(self, agreement_id: str) -> RiskMonitoring:
        """Indicators for every stored risk.

        The agreement ID is accepted for symmetry with the other queries but
        is not resolved.
        """
        if self.risk_repo is None:
            return self._sample_risk_monitoring()

        indicators = [self.risk_indicator(risk) for risk in self.risk_repo.find_all()]
        logger.debug("Computed %d risk indicators for %s", len(indicators), agreement_id)
        return RiskMonitoring(risk_indicators=indicators, risk_heat_maps=[], mitigation_tracking=[])

    def is_target_achieved(self, kpi: KPI, measurement: KPIMeasurement) -> bool:
        if kpi.category in self.LOWER_IS_BETTER:
            return measurement.value <= kpi.target
        return measurement.value >= kpi.target

    def risk_indicator(self, risk: Risk) -> RiskIndicator:
        value = risk.probability * self.IMPACT_WEIGHTS.get(risk.impact, 1.0)
        threshold = self.LEVEL_THRESHOLDS.get(risk.level, 2.0)
        if value >= threshold * self.CRITICAL_FACTOR:
            status = RiskStatus.CRITICAL
        elif value >= threshold:
            status = RiskStatus.WARNING
        else:
            status = RiskStatus.NORMAL
        return RiskIndicator(name=risk.name, value=value, threshold=threshold, status=status)

    @staticmethod
    def _sample_kpi_measurements(now: datetime) -> list[KPIMeasurement]:
        return [
            KPIMeasurement(
                kpi_id="kpi-001",
                value=95.5,
                target=100.0,
                achieved=False,
                measured_at=now,
                notes="Demo KPI measurement",
            ),
            KPIMeasurement(
                kpi_id="kpi-002",
                value=99.2,
                target=98.0,
                achieved=True,
                measured_at=now,
                notes="Demo KPI measurement",
            ),
        ]

    @staticmethod
    def _sample_risk_monitoring() -> RiskMonitoring:
        return RiskMonitoring(
            risk_indicators=[
                RiskIndicator(name="Technical Debt", value=75.0, threshold=80.0, status=RiskStatus.WARNING),
                RiskIndicator(name="Security Vulnerabilities", value=25.0, threshold=50.0, status=RiskStatus.NORMAL),
            ],
            risk_heat_maps=[],
            mitigation_tracking=[],
        )
