"""Evaluation engine.

Turns an application (plus its governance agreement, when one is linked)
into technical health, business value, a risk level and recommendations,
and rolls per-application results into a portfolio health assessment.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from governance_engine.app_logging import get_logger
from governance_engine.config import EngineConfig, get_config
from governance_engine.exceptions import GovernanceError
from governance_engine.schema import (
    Application,
    ApplicationAssessment,
    ApplicationCatalogue,
    ApplicationStatus,
    BusinessValueAssessment,
    GovernanceAgreement,
    PortfolioHealthAssessment,
    Priority,
    Recommendation,
    RecommendationType,
    RiskLevel,
    SecurityProvisions,
    TechnicalHealth,
    UsageMetrics,
    utc_now,
)
from governance_engine.store.base import (
    ApplicationRepository,
    GovernanceAgreementRepository,
    PortfolioRepository,
)

logger = get_logger("evaluation")

_DAY_SECONDS = 24 * 60 * 60


def days_since(moment: Optional[datetime], now: datetime) -> Optional[float]:
    """Elapsed days from ``moment`` to ``now``, or None when unset.

    Naive datetimes are read as UTC.
    """
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (now - moment).total_seconds() / _DAY_SECONDS


class ApplicationAssessor:
    """Deterministic scoring of a single application.

    Pure given (application, agreement, now): no store access, no clock.
    """

    # Technical health adjustment per lifecycle status
    STATUS_HEALTH_DELTA = {
        ApplicationStatus.ACTIVE: 1,
        ApplicationStatus.DEPRECATED: -1,
        ApplicationStatus.RETIRED: -2,
        ApplicationStatus.PLANNED: 0,
    }

    # Business value deltas per status: (alignment, cost efficiency, satisfaction)
    STATUS_VALUE_DELTA = {
        ApplicationStatus.ACTIVE: (5.0, 10.0, 10.0),
        ApplicationStatus.PLANNED: (2.0, 5.0, 5.0),
        ApplicationStatus.DEPRECATED: (-10.0, -15.0, -15.0),
        ApplicationStatus.RETIRED: (-20.0, -25.0, -30.0),
    }

    # (id, type, priority, effort, description, business impact)
    RECOMMENDATIONS = {
        "security": (
            "sec-001", RecommendationType.MODERNIZE, Priority.HIGH, timedelta(hours=80),
            "Improve security measures and implement additional security controls",
            "Reduce security risks and ensure compliance",
        ),
        "technical_debt": (
            "tech-001", RecommendationType.ENHANCE, Priority.MEDIUM, timedelta(hours=120),
            "Refactor code to improve quality and maintainability",
            "Reduce technical debt and improve development velocity",
        ),
        "cost": (
            "cost-001", RecommendationType.REPLACE, Priority.MEDIUM, timedelta(hours=40),
            "Evaluate more cost-effective alternatives",
            "Reduce operational costs",
        ),
        "risk": (
            "risk-001", RecommendationType.RETIRE, Priority.CRITICAL, timedelta(hours=160),
            "Consider retiring or replacing this high-risk application",
            "Eliminate critical business and technical risks",
        ),
    }

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or get_config()

    def assess(
        self,
        app: Application,
        agreement: Optional[GovernanceAgreement],
        now: datetime,
    ) -> ApplicationAssessment:
        """Full assessment of ``app`` as of ``now``."""
        technical_health = self.assess_technical_health(app, now)
        business_value = self.assess_business_value(app, agreement, now)
        risk_level = self.determine_risk_level(technical_health, business_value)
        return ApplicationAssessment(
            application_id=app.id,
            technical_health=technical_health,
            business_value=business_value,
            risk_level=risk_level,
            recommendations=self.generate_recommendations(technical_health, business_value, risk_level),
        )

    # -------------------------------------------------------------------------
    # Technical health
    # -------------------------------------------------------------------------

    def assess_technical_health(self, app: Application, now: datetime) -> TechnicalHealth:
        security = self._score_security(app.security_provisions)
        age = self._score_age(app.created_at, app.updated_at, now)

        score = self.config.evaluation.technical_base_score
        score += self._score_version(app.version)
        score += security
        score += self._score_documentation(app.catalogue, now)
        score += age
        score += self.STATUS_HEALTH_DELTA.get(app.status, 0)
        score = max(1, min(5, score))

        return TechnicalHealth(
            code_quality=self._with_variance(score),
            documentation=self._with_variance(score),
            test_coverage=score * 20.0 + security * 5.0,
            security_score=self._with_variance(score + security),
            performance_score=self._with_variance(score + age),
        )

    @staticmethod
    def _score_version(version: str) -> int:
        """-1 for no version, +1 for major.minor.patch, 0 otherwise."""
        if not version:
            return -1
        if len(version.split(".")) >= 3:
            return 1
        # dev/alpha/beta/rc and anything else are neutral
        return 0

    @staticmethod
    def _score_security(provisions: SecurityProvisions) -> int:
        """Signed security delta, normalized against a baseline of 2."""
        score = 0
        for measures in (provisions.data_confidentiality, provisions.data_integrity):
            if measures:
                score += 1
                if len(measures) > 2:
                    score += 1
        if provisions.application_authenticity:
            score += 1
        if provisions.roles_and_permissions:
            score += 1
            if len(provisions.roles_and_permissions) > 3:
                score += 1
        if provisions.application_availability.response_time > timedelta(0):
            score += 1
        return score - 2

    @staticmethod
    def _score_documentation(catalogue: ApplicationCatalogue, now: datetime) -> int:
        score = 0
        since_update = days_since(catalogue.last_updated, now)
        if since_update is None:
            score -= 1
        elif since_update < 90:
            score += 2
        elif since_update < 365:
            score += 1

        if catalogue.functionality:
            score += 1
            if len(catalogue.functionality) > 5:
                score += 1
        return score

    @staticmethod
    def _score_age(created_at: Optional[datetime], updated_at: Optional[datetime], now: datetime) -> int:
        age_days = days_since(created_at, now)
        if age_days is None:
            return 0
        if age_days > 365 * 5:
            return -2
        if age_days > 365 * 2:
            return -1

        since_update = days_since(updated_at, now)
        if since_update is not None and since_update < 90:
            return 1
        return 0

    @staticmethod
    def _with_variance(base: int) -> int:
        """Nudge by 10% (capped at +/-0.5), clamp to [1, 5], round half up."""
        variance = max(-0.5, min(0.5, base * 0.1))
        adjusted = max(1.0, min(5.0, base + variance))
        return int(adjusted + 0.5)

    # -------------------------------------------------------------------------
    # Business value
    # -------------------------------------------------------------------------

    def assess_business_value(
        self,
        app: Application,
        agreement: Optional[GovernanceAgreement],
        now: datetime,
    ) -> BusinessValueAssessment:
        return BusinessValueAssessment(
            usage_metrics=self._usage_metrics(app, agreement, now),
            business_alignment=self._business_alignment(app, agreement, now),
            cost_efficiency=self._cost_efficiency(app, agreement, now),
            user_satisfaction=self._user_satisfaction(app, agreement, now),
        )

    @staticmethod
    def _usage_metrics(app: Application, agreement: Optional[GovernanceAgreement], now: datetime) -> UsageMetrics:
        users = 50
        transactions = 1000
        if app.status == ApplicationStatus.ACTIVE:
            users *= 2
            transactions *= 3
        elif app.status == ApplicationStatus.DEPRECATED:
            users //= 2
            transactions //= 2
        elif app.status == ApplicationStatus.RETIRED:
            users //= 4
            transactions //= 4

        if agreement is not None:
            users = int(users * 1.5)
            transactions = int(transactions * 1.8)

        age_days = days_since(app.created_at, now)
        if age_days is not None and age_days / 365 > 3:
            users = int(users * 1.3)
            transactions = int(transactions * 1.4)

        uptime = 99.0
        if app.security_provisions.roles_and_permissions:
            uptime += 0.5
        since_update = days_since(app.updated_at, now)
        if since_update is not None and since_update < 30:
            uptime += 0.4

        response_time = timedelta(milliseconds=300)
        if "legacy" in app.name.lower():
            response_time += timedelta(milliseconds=200)
        if app.security_provisions.data_integrity:
            response_time += timedelta(milliseconds=50)

        return UsageMetrics(
            active_users=users,
            transaction_volume=transactions,
            uptime_percentage=uptime,
            response_time=response_time,
        )

    def _business_alignment(self, app: Application, agreement: Optional[GovernanceAgreement], now: datetime) -> float:
        value = self.config.evaluation.business_alignment_base
        if agreement is not None:
            value += 20.0
            if agreement.direct.strategic_direction.objectives:
                value += 5.0
            if agreement.conformance.compliance_monitoring.monitoring_frequency:
                value += 5.0
        value += self.STATUS_VALUE_DELTA.get(app.status, (0.0, 0.0, 0.0))[0]
        since_update = days_since(app.updated_at, now)
        if since_update is not None and since_update < 90:
            value += 3.0
        return _clamp_percentage(value)

    def _cost_efficiency(self, app: Application, agreement: Optional[GovernanceAgreement], now: datetime) -> float:
        value = self.config.evaluation.cost_efficiency_base
        if agreement is not None:
            value += 15.0
            if agreement.direct.resource_allocation.budget_allocations:
                value += 10.0
        value += self.STATUS_VALUE_DELTA.get(app.status, (0.0, 0.0, 0.0))[1]
        age_days = days_since(app.created_at, now)
        if age_days is not None:
            age_years = age_days / 365
            if age_years > 5:
                value -= 10.0
            elif age_years < 1:
                value += 5.0
        provisions = app.security_provisions
        measure_count = (
            len(provisions.data_confidentiality)
            + len(provisions.data_integrity)
            + len(provisions.roles_and_permissions)
        )
        if measure_count > 3:
            value += 5.0
        return _clamp_percentage(value)

    def _user_satisfaction(self, app: Application, agreement: Optional[GovernanceAgreement], now: datetime) -> float:
        value = self.config.evaluation.user_satisfaction_base
        if agreement is not None:
            value += 15.0
            if agreement.evaluate.performance_metrics:
                value += 5.0
        value += self.STATUS_VALUE_DELTA.get(app.status, (0.0, 0.0, 0.0))[2]
        # Shorter recency window than alignment
        since_update = days_since(app.updated_at, now)
        if since_update is not None and since_update < 60:
            value += 8.0
        if app.security_provisions.roles_and_permissions:
            value += 3.0
        return _clamp_percentage(value)

    # -------------------------------------------------------------------------
    # Risk and recommendations
    # -------------------------------------------------------------------------

    def determine_risk_level(self, health: TechnicalHealth, value: BusinessValueAssessment) -> RiskLevel:
        thresholds = self.config.risk_thresholds
        average = (health.code_quality + health.security_score + health.performance_score) // 3
        if average <= thresholds.critical_health_average or value.cost_efficiency < thresholds.critical_cost_efficiency:
            return RiskLevel.CRITICAL
        if average <= thresholds.high_health_average or value.cost_efficiency < thresholds.high_cost_efficiency:
            return RiskLevel.HIGH
        if average <= thresholds.medium_health_average:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def generate_recommendations(
        self,
        health: TechnicalHealth,
        value: BusinessValueAssessment,
        risk_level: RiskLevel,
    ) -> list[Recommendation]:
        """Independent triggers, always emitted in the same order."""
        limits = self.config.recommendations
        triggered = []
        if health.security_score < limits.security_score_threshold:
            triggered.append("security")
        if health.code_quality < limits.code_quality_threshold:
            triggered.append("technical_debt")
        if value.cost_efficiency < limits.cost_efficiency_threshold:
            triggered.append("cost")
        if risk_level == RiskLevel.CRITICAL:
            triggered.append("risk")

        recommendations = []
        for key in triggered:
            rec_id, rec_type, priority, effort, description, impact = self.RECOMMENDATIONS[key]
            recommendations.append(Recommendation(
                id=rec_id,
                type=rec_type,
                description=description,
                priority=priority,
                estimated_effort=effort,
                business_impact=impact,
            ))
        return recommendations


def _clamp_percentage(value: float) -> float:
    return max(0.0, min(100.0, value))


class EvaluationService:
    """Resolves applications, agreements and portfolios from their stores and
    scores them with an ApplicationAssessor.

    When an agreement repository is configured, every evaluated application
    must have a linked agreement. Without one, applications are scored as
    ungoverned.
    """

    def __init__(
        self,
        application_repo: ApplicationRepository,
        agreement_repo: Optional[GovernanceAgreementRepository] = None,
        portfolio_repo: Optional[PortfolioRepository] = None,
        clock: Callable[[], datetime] = utc_now,
        config: Optional[EngineConfig] = None,
    ):
        self.application_repo = application_repo
        self.agreement_repo = agreement_repo
        self.portfolio_repo = portfolio_repo
        self.clock = clock
        self.config = config or get_config()
        self.assessor = ApplicationAssessor(self.config)

    def evaluate_application(self, app_id: str, evaluator: str = "system") -> ApplicationAssessment:
        """Assess one application.

        Args:
            app_id: Application to evaluate.
            evaluator: Audit label. Not scored.

        Raises:
            NotFoundError: If the application, or its agreement when an
                agreement repository is configured, cannot be resolved.
        """
        app = self.application_repo.find_by_id(app_id)
        agreement = None
        if self.agreement_repo is not None:
            agreement = self.agreement_repo.find_by_application(app_id)
        logger.debug("Evaluating application %s for %s", app_id, evaluator)
        return self.assessor.assess(app, agreement, self.clock())

    def evaluate_portfolio(self, portfolio_id: str) -> PortfolioHealthAssessment:
        """Assess every member of a portfolio in one pass.

        Members whose evaluation fails are skipped: they still count towards
        the total and the average age, but not towards status counts or the
        risk distribution.
        """
        if self.portfolio_repo is None:
            raise GovernanceError("no portfolio repository configured")
        portfolio = self.portfolio_repo.find_by_id(portfolio_id)
        evaluator = self.config.evaluation.portfolio_evaluator

        active = 0
        deprecated = 0
        risk_distribution: dict[RiskLevel, int] = {}
        for app in portfolio.applications:
            try:
                assessment = self.evaluate_application(app.id, evaluator)
            except GovernanceError as e:
                logger.debug("Skipping %s in portfolio %s: %s", app.id, portfolio_id, e.message)
                continue
            # Status comes from the portfolio's member copy
            if app.status == ApplicationStatus.ACTIVE:
                active += 1
            elif app.status == ApplicationStatus.DEPRECATED:
                deprecated += 1
            risk_distribution[assessment.risk_level] = risk_distribution.get(assessment.risk_level, 0) + 1

        return PortfolioHealthAssessment(
            total_applications=len(portfolio.applications),
            active_applications=active,
            deprecated_applications=deprecated,
            redundant_applications=0,
            total_cost=0.0,
            average_application_age=self._average_age(portfolio.applications),
            risk_distribution=risk_distribution,
        )

    def _average_age(self, apps: list[Application]) -> timedelta:
        if not apps:
            return timedelta(0)
        now = self.clock()
        total = timedelta(0)
        for app in apps:
            age = days_since(app.created_at, now)
            if age is not None:
                total += timedelta(days=age)
        return total / len(apps)
