"""Tests for the direction engine."""

from datetime import timedelta

import pytest

from conftest import NOW
from governance_engine.config import DirectionConfig, EngineConfig
from governance_engine.direction import DirectionService
from governance_engine.exceptions import NotFoundError
from governance_engine.schema import (
    ActionStatus,
    BudgetAllocation,
    GovernanceAgreement,
    Guideline,
    PersonnelAllocation,
    Policy,
    StrategicInitiative,
    StrategicObjective,
)
from governance_engine.store import InMemoryGovernanceAgreementRepository


@pytest.fixture
def agreements() -> InMemoryGovernanceAgreementRepository:
    repo = InMemoryGovernanceAgreementRepository()
    repo.save(GovernanceAgreement(id="g1", application_id="a1", title="T"))
    return repo


@pytest.fixture
def service(agreements, clock) -> DirectionService:
    return DirectionService(agreements, clock=clock, config=EngineConfig())


OBJECTIVES = [
    StrategicObjective(id="o1", name="Cloud First", description="Move to cloud", deadline=NOW + timedelta(days=365)),
    StrategicObjective(id="o2", name="Open Data", description="Publish datasets"),
]


class TestSetStrategicDirection:

    def test_generates_one_plan_per_objective(self, service, agreements):
        service.set_strategic_direction("g1", "Board", OBJECTIVES, [])
        stored = agreements.find_by_id("g1")

        plans = stored.direct.action_plans
        assert [p.id for p in plans] == ["ap-1", "ap-2"]
        assert plans[0].name == "Action Plan for Cloud First"
        assert plans[0].description == "Implementation plan for strategic objective: Move to cloud"
        assert plans[0].owner == "TBD"
        assert plans[0].status == ActionStatus.PENDING
        assert plans[0].deadline == NOW + timedelta(days=365)

    def test_seed_action_due_before_deadline(self, service):
        agreement = service.set_strategic_direction("g1", "Board", OBJECTIVES, [])

        first, second = agreement.direct.action_plans
        assert len(first.actions) == 1
        action = first.actions[0]
        assert action.id == "action-1-1"
        assert action.description == "Define detailed implementation steps"
        assert action.responsible == "TBD"
        assert action.deadline == NOW + timedelta(days=335)
        assert second.actions[0].id == "action-2-1"
        assert second.actions[0].deadline is None

    def test_replaces_previous_direction(self, service):
        service.set_strategic_direction("g1", "Board", OBJECTIVES, [StrategicInitiative(id="i1", name="Lift")])
        agreement = service.set_strategic_direction("g1", "Board", OBJECTIVES[:1], [])

        direction = agreement.direct.strategic_direction
        assert [o.id for o in direction.objectives] == ["o1"]
        assert direction.initiatives == []
        assert [p.id for p in agreement.direct.action_plans] == ["ap-1"]

    def test_stamps_last_directed(self, service, clock):
        clock.advance(hours=3)
        agreement = service.set_strategic_direction("g1", "Board", [], [])
        assert agreement.direct.last_directed == NOW + timedelta(hours=3)
        assert agreement.direct.action_plans == []

    def test_unknown_agreement(self, service):
        with pytest.raises(NotFoundError):
            service.set_strategic_direction("missing", "Board", OBJECTIVES, [])

    def test_configured_lead_time_and_owner(self, agreements, clock):
        config = EngineConfig(direction=DirectionConfig(action_lead_days=10, placeholder_owner="Unassigned"))
        plans = DirectionService(agreements, clock=clock, config=config).create_action_plans(OBJECTIVES[:1])

        assert plans[0].owner == "Unassigned"
        assert plans[0].actions[0].deadline == NOW + timedelta(days=355)


class TestResourcesAndPolicies:

    def test_allocate_resources(self, service, agreements):
        service.allocate_resources(
            "g1",
            [BudgetAllocation(category="cloud", amount=50000)],
            [PersonnelAllocation(role="SRE", count=2)],
        )
        stored = agreements.find_by_id("g1")

        allocation = stored.direct.resource_allocation
        assert allocation.budget_allocations[0].amount == 50000
        assert allocation.personnel_allocations[0].count == 2
        assert stored.direct.last_directed == NOW

    def test_establish_policies_keeps_guidelines_and_timestamp(self, service, agreements):
        agreement = agreements.find_by_id("g1")
        agreement.direct.policy_framework.guidelines = [Guideline(id="gl1", name="Naming")]
        agreements.update(agreement)

        service.establish_policies("g1", [Policy(id="pol1", name="Data retention")], [], [])
        stored = agreements.find_by_id("g1")

        framework = stored.direct.policy_framework
        assert [p.id for p in framework.policies] == ["pol1"]
        assert [g.id for g in framework.guidelines] == ["gl1"]
        assert stored.direct.last_directed is None
