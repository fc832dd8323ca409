"""Tests for the in-memory repositories."""

from datetime import timedelta
from threading import Thread

import pytest

from conftest import NOW, make_application
from governance_engine.change_schema import Audit, AuditStatus
from governance_engine.events import GovernanceAgreementApproved, PortfolioCreated
from governance_engine.exceptions import NotFoundError
from governance_engine.schema import (
    KPI,
    AgreementStatus,
    ApplicationPortfolio,
    ComplianceStatus,
    GovernanceAgreement,
    KPIMeasurement,
    LegalRequirement,
    MitigationPlan,
    Risk,
    RiskLevel,
)
from governance_engine.store import (
    InMemoryApplicationRepository,
    InMemoryAuditRepository,
    InMemoryComplianceRepository,
    InMemoryDomainEventRepository,
    InMemoryGovernanceAgreementRepository,
    InMemoryKPIMeasurementRepository,
    InMemoryKPIRepository,
    InMemoryMitigationPlanRepository,
    InMemoryPortfolioRepository,
    InMemoryRiskRepository,
)


def _scan(items, key_fn) -> dict[str, set[str]]:
    expected: dict[str, set[str]] = {}
    for item in items:
        expected.setdefault(key_fn(item), set()).add(item.id)
    return expected


class TestApplicationRepository:

    def test_save_and_find(self):
        repo = InMemoryApplicationRepository()
        repo.save(make_application())

        found = repo.find_by_id("a1")
        assert found.name == "X"
        assert repo.exists("a1")
        assert len(repo) == 1

    def test_find_returns_independent_copies(self):
        repo = InMemoryApplicationRepository()
        app = make_application()
        repo.save(app)

        app.name = "Mutated after save"
        found = repo.find_by_id("a1")
        found.name = "Mutated after find"

        assert repo.find_by_id("a1").name == "X"

    def test_missing_application(self):
        repo = InMemoryApplicationRepository()
        with pytest.raises(NotFoundError):
            repo.find_by_id("nope")
        with pytest.raises(NotFoundError):
            repo.update(make_application("nope"))
        with pytest.raises(NotFoundError):
            repo.delete("nope")

    def test_find_by_name_returns_first_inserted(self):
        repo = InMemoryApplicationRepository()
        repo.save(make_application("a1", name="Shared"))
        repo.save(make_application("a2", name="Shared"))

        assert repo.find_by_name("Shared").id == "a1"
        with pytest.raises(NotFoundError):
            repo.find_by_name("Unknown")

    def test_rename_moves_index_entry(self):
        repo = InMemoryApplicationRepository()
        repo.save(make_application("a1", name="Old"))
        repo.update(make_application("a1", name="New"))

        assert repo.index_snapshot("name") == {"New": {"a1"}}
        with pytest.raises(NotFoundError):
            repo.find_by_name("Old")

    def test_portfolio_membership(self):
        repo = InMemoryApplicationRepository()
        repo.save(make_application("a1"))
        repo.save(make_application("a2", name="Y"))
        repo.link_to_portfolio("p1", "a1")
        repo.link_to_portfolio("p1", "a2")
        repo.link_to_portfolio("p1", "a1")

        assert [a.id for a in repo.find_by_portfolio("p1")] == ["a1", "a2"]

        repo.unlink_from_portfolio("p1", "a1")
        assert [a.id for a in repo.find_by_portfolio("p1")] == ["a2"]

    def test_link_requires_application(self):
        repo = InMemoryApplicationRepository()
        with pytest.raises(NotFoundError):
            repo.link_to_portfolio("p1", "ghost")

    def test_delete_unlinks_memberships(self):
        repo = InMemoryApplicationRepository()
        repo.save(make_application("a1"))
        repo.link_to_portfolio("p1", "a1")

        repo.delete("a1")

        assert repo.membership_snapshot() == {}
        assert repo.find_by_portfolio("p1") == []

    def test_name_index_matches_scan_after_mixed_mutations(self):
        repo = InMemoryApplicationRepository()
        for i in range(6):
            repo.save(make_application(f"a{i}", name=f"App {i % 3}"))
        repo.update(make_application("a1", name="App 2"))
        repo.delete("a4")
        repo.save(make_application("a0", name="Renamed"))

        assert repo.index_snapshot("name") == _scan(repo.find_all(), lambda a: a.name)

    def test_concurrent_saves(self):
        repo = InMemoryApplicationRepository()

        def worker(offset: int):
            for i in range(50):
                repo.save(make_application(f"app-{offset}-{i}", name=f"App {offset}-{i}"))

        threads = [Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(repo) == 200
        assert repo.index_snapshot("name") == _scan(repo.find_all(), lambda a: a.name)


class TestGovernanceAgreementRepository:

    def test_find_by_application(self):
        repo = InMemoryGovernanceAgreementRepository()
        repo.save(GovernanceAgreement(id="g1", application_id="a1", title="T"))

        assert repo.find_by_application("a1").id == "g1"
        with pytest.raises(NotFoundError):
            repo.find_by_application("a2")

    def test_status_index_follows_updates(self):
        repo = InMemoryGovernanceAgreementRepository()
        repo.save(GovernanceAgreement(id="g1", application_id="a1", title="T"))
        repo.save(GovernanceAgreement(id="g2", application_id="a2", title="T"))

        approved = repo.find_by_id("g1")
        approved.status = AgreementStatus.APPROVED
        repo.update(approved)

        assert [a.id for a in repo.find_by_status(AgreementStatus.DRAFT)] == ["g2"]
        assert [a.id for a in repo.find_by_status(AgreementStatus.APPROVED)] == ["g1"]
        assert repo.index_snapshot("status") == _scan(repo.find_all(), lambda a: a.status.value)
        assert repo.index_snapshot("application") == _scan(repo.find_all(), lambda a: a.application_id)


class TestPortfolioRepository:

    def test_owner_change_does_not_duplicate(self):
        repo = InMemoryPortfolioRepository()
        repo.save(ApplicationPortfolio(id="p1", name="Core", owner="CIO"))
        repo.save(ApplicationPortfolio(id="p1", name="Core", owner="CIO"))
        repo.save(ApplicationPortfolio(id="p1", name="Core", owner="CTO"))

        assert repo.find_by_owner("CIO") == []
        assert [p.id for p in repo.find_by_owner("CTO")] == ["p1"]
        assert repo.index_snapshot("owner") == {"CTO": {"p1"}}

    def test_add_and_remove_member(self):
        repo = InMemoryPortfolioRepository()
        repo.save(ApplicationPortfolio(id="p1", name="Core", owner="CIO"))

        repo.add_application("p1", make_application())
        assert repo.find_by_id("p1").application_ids() == ["a1"]

        repo.remove_application("p1", "a1")
        assert repo.find_by_id("p1").applications == []

    def test_add_to_missing_portfolio(self):
        repo = InMemoryPortfolioRepository()
        with pytest.raises(NotFoundError):
            repo.add_application("p9", make_application())


class TestDomainEventRepository:

    def test_queries(self):
        repo = InMemoryDomainEventRepository()
        repo.save(PortfolioCreated(portfolio_id="p1", name="Core", occurred_at=NOW))
        repo.save(GovernanceAgreementApproved(agreement_id="g1", occurred_at=NOW + timedelta(hours=1)))
        repo.save(PortfolioCreated(portfolio_id="p2", name="Edge", occurred_at=NOW + timedelta(hours=2)))

        assert len(repo.find_all()) == 3
        assert [e.aggregate_id for e in repo.find_by_type("PortfolioCreated")] == ["p1", "p2"]
        assert [e.event_type for e in repo.find_by_aggregate("g1")] == ["GovernanceAgreementApproved"]

    def test_time_range_is_inclusive(self):
        repo = InMemoryDomainEventRepository()
        repo.save(PortfolioCreated(portfolio_id="p1", name="Core", occurred_at=NOW))
        repo.save(PortfolioCreated(portfolio_id="p2", name="Edge", occurred_at=NOW + timedelta(hours=2)))

        found = repo.find_by_time_range(NOW, NOW + timedelta(hours=1))
        assert [e.aggregate_id for e in found] == ["p1"]
        assert len(repo.find_by_time_range(NOW, NOW + timedelta(hours=2))) == 2


class TestMonitoringStores:

    def test_latest_measurement(self):
        repo = InMemoryKPIMeasurementRepository()
        repo.save(KPIMeasurement(kpi_id="k1", value=1.0, measured_at=NOW))
        repo.save(KPIMeasurement(kpi_id="k1", value=3.0, measured_at=NOW + timedelta(days=2)))
        repo.save(KPIMeasurement(kpi_id="k1", value=2.0, measured_at=NOW + timedelta(days=1)))

        assert repo.find_latest("k1").value == 3.0
        assert [m.value for m in repo.find_by_kpi("k1")] == [1.0, 3.0, 2.0]
        assert len(repo.find_by_period("k1", NOW, NOW + timedelta(days=1))) == 2

    def test_latest_tie_goes_to_later_save(self):
        repo = InMemoryKPIMeasurementRepository()
        repo.save(KPIMeasurement(kpi_id="k1", value=1.0, measured_at=NOW))
        repo.save(KPIMeasurement(kpi_id="k1", value=2.0, measured_at=NOW))

        assert repo.find_latest("k1").value == 2.0

    def test_latest_without_measurements(self):
        with pytest.raises(NotFoundError):
            InMemoryKPIMeasurementRepository().find_latest("k1")

    def test_kpi_and_risk_indexes(self):
        kpis = InMemoryKPIRepository()
        kpis.save(KPI(id="k1", name="Uptime", category="availability"))
        kpis.save(KPI(id="k2", name="Cost per user", category="efficiency"))
        assert [k.id for k in kpis.find_by_category("efficiency")] == ["k2"]

        risks = InMemoryRiskRepository()
        risks.save(Risk(id="r1", name="Outage", level=RiskLevel.HIGH, category="ops"))
        risks.save(Risk(id="r2", name="Breach", level=RiskLevel.CRITICAL, category="security"))
        assert [r.id for r in risks.find_by_level(RiskLevel.HIGH)] == ["r1"]
        assert [r.id for r in risks.find_by_category("security")] == ["r2"]

    def test_mitigation_plans_keyed_by_risk(self):
        repo = InMemoryMitigationPlanRepository()
        repo.save(MitigationPlan(risk_id="r1", actions=["patch"]))

        assert repo.find_by_risk("r1").actions == ["patch"]
        with pytest.raises(NotFoundError):
            repo.find_by_risk("r2")

    def test_compliance_status_update(self):
        repo = InMemoryComplianceRepository()
        repo.save_legal_requirement("a1", LegalRequirement(name="GDPR"))

        repo.update_status("a1", "GDPR", ComplianceStatus.COMPLIANT)

        assert repo.find_legal_requirements("a1")[0].status == ComplianceStatus.COMPLIANT
        with pytest.raises(NotFoundError):
            repo.update_status("a1", "SOX", ComplianceStatus.COMPLIANT)


class TestAuditRepository:

    def test_find_by_period_uses_start_time(self):
        repo = InMemoryAuditRepository()
        repo.save(Audit(id="au1", application_id="a1", started_at=NOW))
        repo.save(Audit(id="au2", application_id="a1", started_at=NOW + timedelta(days=40)))
        repo.save(Audit(id="au3", application_id="a2"))

        found = repo.find_by_period(NOW - timedelta(days=1), NOW + timedelta(days=30))
        assert [a.id for a in found] == ["au1"]
        assert [a.id for a in repo.find_by_application("a1")] == ["au1", "au2"]
        assert len(repo.find_by_status(AuditStatus.PLANNED)) == 3
