"""Tests for the portfolio and agreement aggregates."""

import pytest

from conftest import NOW, make_application
from governance_engine.aggregates import AgreementAggregate, PortfolioAggregate
from governance_engine.events import (
    ApplicationAddedToPortfolio,
    ApplicationRemovedFromPortfolio,
    GovernanceAgreementActivated,
    GovernanceAgreementApproved,
    GovernanceAgreementCreated,
    GovernanceAgreementUpdated,
    PortfolioCreated,
)
from governance_engine.exceptions import (
    AlreadyExistsError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from governance_engine.schema import AgreementStatus, Conformance, Strategy


def _governed(app_id: str = "a1", name: str = "X"):
    return make_application(app_id, name=name, governance_agreement_id=f"g-{app_id}")


@pytest.fixture
def portfolio(clock) -> PortfolioAggregate:
    aggregate = PortfolioAggregate.create("p1", "Core", "Core systems", "CIO", clock=clock)
    aggregate.collect_events()
    return aggregate


class TestPortfolioAggregate:

    def test_create_records_event(self, clock):
        aggregate = PortfolioAggregate.create("p1", "Core", "Core systems", "CIO", clock=clock)

        assert aggregate.portfolio.created_at == NOW
        assert aggregate.portfolio.updated_at == NOW
        events = aggregate.collect_events()
        assert len(events) == 1
        assert isinstance(events[0], PortfolioCreated)
        assert events[0].owner == "CIO"
        assert aggregate.pending_events == []

    @pytest.mark.parametrize("portfolio_id,name,owner", [
        ("", "Core", "CIO"),
        ("p1", "", "CIO"),
        ("p1", "Core", ""),
    ])
    def test_create_requires_id_name_and_owner(self, portfolio_id, name, owner):
        with pytest.raises(ValidationError):
            PortfolioAggregate.create(portfolio_id, name, "", owner)

    def test_add_application(self, portfolio):
        portfolio.add_application(_governed())

        assert portfolio.portfolio.application_ids() == ["a1"]
        (event,) = portfolio.collect_events()
        assert isinstance(event, ApplicationAddedToPortfolio)
        assert event.application_name == "X"
        assert event.governance_agreement_id == "g-a1"

    def test_duplicate_id_rejected(self, portfolio):
        portfolio.add_application(_governed())
        portfolio.collect_events()

        with pytest.raises(AlreadyExistsError):
            portfolio.add_application(_governed("a1", name="Other"))
        assert portfolio.pending_events == []

    def test_duplicate_name_rejected(self, portfolio):
        portfolio.add_application(_governed("a1", name="Payroll"))

        with pytest.raises(AlreadyExistsError, match="Payroll"):
            portfolio.add_application(_governed("a2", name="Payroll"))
        assert portfolio.portfolio.application_ids() == ["a1"]

    def test_ungoverned_application_rejected(self, portfolio):
        with pytest.raises(InvalidStateError):
            portfolio.add_application(make_application())
        assert portfolio.portfolio.applications == []

    def test_invalid_application_rejected(self, portfolio):
        with pytest.raises(ValidationError):
            portfolio.add_application(_governed(name=""))

    def test_remove_application(self, portfolio, clock):
        portfolio.add_application(_governed())
        portfolio.collect_events()
        clock.advance(minutes=5)

        removed = portfolio.remove_application("a1")

        assert removed.id == "a1"
        assert portfolio.portfolio.applications == []
        (event,) = portfolio.collect_events()
        assert isinstance(event, ApplicationRemovedFromPortfolio)
        assert event.occurred_at == clock()

    def test_remove_unknown_application(self, portfolio):
        with pytest.raises(NotFoundError):
            portfolio.remove_application("ghost")
        assert portfolio.pending_events == []


class TestAgreementAggregate:

    def test_create_draft(self, clock):
        aggregate = AgreementAggregate.create("g1", "a1", "Payroll Governance", clock=clock)

        assert aggregate.agreement.status == AgreementStatus.DRAFT
        assert aggregate.agreement.version == "1.0"
        (event,) = aggregate.collect_events()
        assert isinstance(event, GovernanceAgreementCreated)
        assert event.application_id == "a1"

    def test_create_requires_title(self, clock):
        with pytest.raises(ValidationError):
            AgreementAggregate.create("g1", "a1", "", clock=clock)

    def test_component_updates_record_component_name(self, clock):
        aggregate = AgreementAggregate.create("g1", "a1", "T", clock=clock)
        aggregate.collect_events()

        aggregate.update_strategy(Strategy())
        aggregate.update_conformance(Conformance())

        events = aggregate.collect_events()
        assert all(isinstance(e, GovernanceAgreementUpdated) for e in events)
        assert [e.component for e in events] == ["strategy", "conformance"]

    def test_lifecycle(self, clock):
        aggregate = AgreementAggregate.create("g1", "a1", "T", clock=clock)
        aggregate.approve()
        aggregate.activate()

        assert aggregate.agreement.status == AgreementStatus.ACTIVE
        types = [type(e) for e in aggregate.collect_events()]
        assert types == [GovernanceAgreementCreated, GovernanceAgreementApproved, GovernanceAgreementActivated]

    def test_activate_requires_approval(self, clock):
        aggregate = AgreementAggregate.create("g1", "a1", "T", clock=clock)
        with pytest.raises(InvalidStateError):
            aggregate.activate()
        assert aggregate.agreement.status == AgreementStatus.DRAFT

    def test_approve_only_from_draft(self, clock):
        aggregate = AgreementAggregate.create("g1", "a1", "T", clock=clock)
        aggregate.approve()
        with pytest.raises(InvalidStateError):
            aggregate.approve()
        aggregate.activate()
        with pytest.raises(InvalidStateError):
            aggregate.approve()
