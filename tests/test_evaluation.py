"""Tests for the evaluation engine.

Expected values are traced by hand through the scoring formulas at a fixed
clock, so every assertion is exact.
"""

from datetime import timedelta

import pytest

from conftest import NOW, make_application
from governance_engine.config import EngineConfig, EvaluationConfig
from governance_engine.evaluation import ApplicationAssessor, EvaluationService, days_since
from governance_engine.exceptions import GovernanceError, NotFoundError
from governance_engine.schema import (
    Application,
    ApplicationPortfolio,
    ApplicationStatus,
    BudgetAllocation,
    GovernanceAgreement,
    KPIMeasurement,
    Priority,
    RecommendationType,
    RiskLevel,
    StrategicObjective,
)
from governance_engine.store import (
    InMemoryApplicationRepository,
    InMemoryGovernanceAgreementRepository,
    InMemoryPortfolioRepository,
)


@pytest.fixture
def assessor() -> ApplicationAssessor:
    return ApplicationAssessor(EngineConfig())


def _retired_legacy_app() -> Application:
    return Application(
        id="r1",
        name="Legacy Ledger",
        status=ApplicationStatus.RETIRED,
        created_at=NOW - timedelta(days=6 * 365),
        updated_at=NOW - timedelta(days=400),
    )


def _fully_governed_agreement(app_id: str = "a1") -> GovernanceAgreement:
    agreement = GovernanceAgreement(id="g1", application_id=app_id, title="Agreement")
    agreement.direct.strategic_direction.objectives = [StrategicObjective(id="o1", name="Cloud")]
    agreement.direct.resource_allocation.budget_allocations = [BudgetAllocation(category="ops", amount=1000)]
    agreement.conformance.compliance_monitoring.monitoring_frequency = "quarterly"
    agreement.evaluate.performance_metrics = [KPIMeasurement(kpi_id="k1", value=1.0)]
    return agreement


class TestDaysSince:

    def test_unset_moment(self):
        assert days_since(None, NOW) is None

    def test_naive_moment_read_as_utc(self):
        naive = (NOW - timedelta(days=2)).replace(tzinfo=None)
        assert days_since(naive, NOW) == pytest.approx(2.0)


class TestHealthyActiveApplication:
    """Active, semver, recently updated, 500 days old, two security measures."""

    def test_technical_health(self, assessor):
        health = assessor.assess_technical_health(make_application(), NOW)

        assert health.code_quality == 5
        assert health.documentation == 5
        assert health.security_score == 5
        assert health.performance_score == 5
        assert health.test_coverage == 100.0

    def test_business_value(self, assessor):
        value = assessor.assess_business_value(make_application(), None, NOW)

        assert value.business_alignment == 78.0
        assert value.cost_efficiency == 70.0
        assert value.user_satisfaction == 83.0

    def test_usage_metrics(self, assessor):
        usage = assessor.assess_business_value(make_application(), None, NOW).usage_metrics

        assert usage.active_users == 100
        assert usage.transaction_volume == 3000
        assert usage.uptime_percentage == pytest.approx(99.4)
        assert usage.response_time == timedelta(milliseconds=350)

    def test_low_risk_without_recommendations(self, assessor):
        assessment = assessor.assess(make_application(), None, NOW)

        assert assessment.application_id == "a1"
        assert assessment.risk_level == RiskLevel.LOW
        assert assessment.recommendations == []


class TestRetiredLegacyApplication:
    """Retired, unversioned, six years old, no security provisions."""

    def test_technical_health_floors_at_one(self, assessor):
        health = assessor.assess_technical_health(_retired_legacy_app(), NOW)

        assert health.code_quality == 1
        assert health.documentation == 1
        assert health.security_score == 1
        assert health.performance_score == 1
        assert health.test_coverage == 10.0

    def test_business_value(self, assessor):
        value = assessor.assess_business_value(_retired_legacy_app(), None, NOW)

        assert value.business_alignment == 50.0
        assert value.cost_efficiency == 25.0
        assert value.user_satisfaction == 35.0
        assert value.usage_metrics.active_users == 15
        assert value.usage_metrics.transaction_volume == 350
        assert value.usage_metrics.uptime_percentage == pytest.approx(99.0)
        assert value.usage_metrics.response_time == timedelta(milliseconds=500)

    def test_critical_risk_and_all_recommendations(self, assessor):
        assessment = assessor.assess(_retired_legacy_app(), None, NOW)

        assert assessment.risk_level == RiskLevel.CRITICAL
        assert [r.id for r in assessment.recommendations] == ["sec-001", "tech-001", "cost-001", "risk-001"]

        retire = assessment.recommendations[-1]
        assert retire.type == RecommendationType.RETIRE
        assert retire.priority == Priority.CRITICAL
        assert retire.estimated_effort == timedelta(hours=160)
        assert retire.description == "Consider retiring or replacing this high-risk application"


class TestGovernedApplication:

    def test_percentages_are_clamped(self, assessor):
        value = assessor.assess_business_value(make_application(), _fully_governed_agreement(), NOW)

        assert value.business_alignment == 100.0
        assert value.cost_efficiency == 95.0
        assert value.user_satisfaction == 100.0

    def test_agreement_scales_usage(self, assessor):
        usage = assessor.assess_business_value(make_application(), _fully_governed_agreement(), NOW).usage_metrics

        assert usage.active_users == 150
        assert usage.transaction_volume == 5400


class TestScoringRules:

    @pytest.mark.parametrize("version,expected", [
        ("", -1),
        ("1.0.0", 1),
        ("2024.2.1", 1),
        ("1.0", 0),
        ("dev", 0),
        ("1.0.0-rc1", 1),
    ])
    def test_version_signal(self, version, expected):
        assert ApplicationAssessor._score_version(version) == expected

    @pytest.mark.parametrize("base,expected", [
        (-3, 1),
        (1, 1),
        (2, 2),
        (3, 3),
        (4, 4),
        (5, 5),
        (9, 5),
    ])
    def test_variance(self, base, expected):
        assert ApplicationAssessor._with_variance(base) == expected

    def test_ages_beyond_five_years_cost_two_points(self):
        assert ApplicationAssessor._score_age(NOW - timedelta(days=6 * 365), NOW, NOW) == -2
        assert ApplicationAssessor._score_age(NOW - timedelta(days=3 * 365), NOW, NOW) == -1
        assert ApplicationAssessor._score_age(NOW - timedelta(days=100), NOW, NOW) == 1
        assert ApplicationAssessor._score_age(None, NOW, NOW) == 0

    @pytest.mark.parametrize("age_days,expected", [
        (730, 1),
        (731, -1),
        (1825, -1),
        (1826, -2),
    ])
    def test_age_penalties_start_after_full_years(self, age_days, expected):
        created = NOW - timedelta(days=age_days)
        assert ApplicationAssessor._score_age(created, NOW, NOW) == expected

    def test_two_year_old_application_is_still_healthy(self, assessor):
        assessment = assessor.assess(make_application(age_days=730), None, NOW)

        assert assessment.technical_health.code_quality == 5
        assert assessment.risk_level == RiskLevel.LOW

    def test_assessment_is_idempotent(self, assessor):
        app = make_application()
        assert assessor.assess(app, None, NOW) == assessor.assess(app, None, NOW)

    def test_configured_base_scores(self):
        config = EngineConfig(evaluation=EvaluationConfig(cost_efficiency_base=30.0))
        value = ApplicationAssessor(config).assess_business_value(make_application(), None, NOW)

        assert value.cost_efficiency == 40.0


class TestEvaluationService:

    @pytest.fixture
    def repos(self):
        return InMemoryApplicationRepository(), InMemoryGovernanceAgreementRepository(), InMemoryPortfolioRepository()

    def test_requires_agreement_when_repository_configured(self, repos, clock):
        apps, agreements, portfolios = repos
        apps.save(make_application())
        service = EvaluationService(apps, agreements, portfolios, clock=clock)

        with pytest.raises(NotFoundError):
            service.evaluate_application("a1")

        agreements.save(GovernanceAgreement(id="g1", application_id="a1", title="T"))
        assert service.evaluate_application("a1").application_id == "a1"

    def test_scores_ungoverned_without_agreement_repository(self, clock):
        apps = InMemoryApplicationRepository()
        apps.save(make_application())
        service = EvaluationService(apps, clock=clock)

        assert service.evaluate_application("a1").business_value.business_alignment == 78.0

    def test_unknown_application(self, repos, clock):
        service = EvaluationService(*repos, clock=clock)
        with pytest.raises(NotFoundError):
            service.evaluate_application("ghost")

    def test_portfolio_requires_repository(self, clock):
        service = EvaluationService(InMemoryApplicationRepository(), clock=clock)
        with pytest.raises(GovernanceError):
            service.evaluate_portfolio("p1")

    def test_empty_portfolio(self, repos, clock):
        apps, agreements, portfolios = repos
        portfolios.save(ApplicationPortfolio(id="p1", name="Empty", owner="CIO"))

        health = EvaluationService(apps, agreements, portfolios, clock=clock).evaluate_portfolio("p1")

        assert health.total_applications == 0
        assert health.active_applications == 0
        assert health.risk_distribution == {}
        assert health.average_application_age == timedelta(0)

    def test_portfolio_skips_failed_members(self, repos, clock):
        apps, agreements, portfolios = repos
        healthy = make_application("a1", age_days=100)
        deprecated = make_application("a2", name="Y", status=ApplicationStatus.DEPRECATED, age_days=300)
        orphan = make_application("a3", name="Z", age_days=200)
        for app in (healthy, deprecated, orphan):
            apps.save(app)
        agreements.save(GovernanceAgreement(id="g1", application_id="a1", title="T"))
        agreements.save(GovernanceAgreement(id="g2", application_id="a2", title="T"))

        portfolio = ApplicationPortfolio(id="p1", name="Mixed", owner="CIO")
        for app in (healthy, deprecated, orphan):
            portfolio.add_application(app, NOW)
        portfolios.save(portfolio)

        health = EvaluationService(apps, agreements, portfolios, clock=clock).evaluate_portfolio("p1")

        assert health.total_applications == 3
        assert health.active_applications == 1
        assert health.deprecated_applications == 1
        assert sum(health.risk_distribution.values()) == 2
        assert health.redundant_applications == 0
        assert health.total_cost == 0.0
        assert health.average_application_age == timedelta(days=200)
