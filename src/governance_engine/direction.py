"""Direction engine.

Records strategic direction, resource allocation and policies on a
governance agreement, and derives one action plan per strategic objective.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional

from governance_engine.app_logging import get_logger
from governance_engine.config import EngineConfig, get_config
from governance_engine.schema import (
    Action,
    ActionPlan,
    ActionStatus,
    BudgetAllocation,
    GovernanceAgreement,
    PersonnelAllocation,
    Policy,
    Procedure,
    Standard,
    StrategicInitiative,
    StrategicObjective,
    utc_now,
)
from governance_engine.store.base import GovernanceAgreementRepository

logger = get_logger("direction")


class DirectionService:
    """Applies Direct-principle decisions to stored governance agreements.

    Every setter fully replaces the targeted lists. Nothing is merged.
    """

    def __init__(
        self,
        agreement_repo: GovernanceAgreementRepository,
        clock: Callable[[], datetime] = utc_now,
        config: Optional[EngineConfig] = None,
    ):
        self.agreement_repo = agreement_repo
        self.clock = clock
        self.config = config or get_config()

    def set_strategic_direction(
        self,
        agreement_id: str,
        director: str,
        objectives: list[StrategicObjective],
        initiatives: list[StrategicInitiative],
    ) -> GovernanceAgreement:
        """Replace objectives and initiatives and regenerate action plans.

        Raises:
            NotFoundError: If the agreement does not exist.
        """
        agreement = self.agreement_repo.find_by_id(agreement_id)
        direction = agreement.direct.strategic_direction
        direction.objectives = list(objectives)
        direction.initiatives = list(initiatives)
        agreement.direct.last_directed = self.clock()
        agreement.direct.action_plans = self.create_action_plans(objectives)
        self.agreement_repo.update(agreement)
        logger.info(
            "Direction for %s set by %s: %d objectives, %d action plans",
            agreement_id, director, len(objectives), len(agreement.direct.action_plans),
        )
        return agreement

    def allocate_resources(
        self,
        agreement_id: str,
        budget_allocations: list[BudgetAllocation],
        personnel_allocations: list[PersonnelAllocation],
    ) -> GovernanceAgreement:
        agreement = self.agreement_repo.find_by_id(agreement_id)
        allocation = agreement.direct.resource_allocation
        allocation.budget_allocations = list(budget_allocations)
        allocation.personnel_allocations = list(personnel_allocations)
        agreement.direct.last_directed = self.clock()
        self.agreement_repo.update(agreement)
        return agreement

    def establish_policies(
        self,
        agreement_id: str,
        policies: list[Policy],
        standards: list[Standard],
        procedures: list[Procedure],
    ) -> GovernanceAgreement:
        """Replace policies, standards and procedures. Guidelines are untouched."""
        agreement = self.agreement_repo.find_by_id(agreement_id)
        framework = agreement.direct.policy_framework
        framework.policies = list(policies)
        framework.standards = list(standards)
        framework.procedures = list(procedures)
        self.agreement_repo.update(agreement)
        return agreement

    def create_action_plans(self, objectives: list[StrategicObjective]) -> list[ActionPlan]:
        """One pending plan per objective, each seeded with a single action.

        Plan IDs are ``ap-<n>`` and action IDs ``action-<n>-1`` with ``n``
        counted from 1. The seed action falls due a fixed number of days
        before the objective's deadline.
        """
        placeholder = self.config.direction.placeholder_owner
        lead = timedelta(days=self.config.direction.action_lead_days)

        plans = []
        for n, objective in enumerate(objectives, start=1):
            action_deadline = objective.deadline - lead if objective.deadline is not None else None
            plans.append(ActionPlan(
                id=f"ap-{n}",
                name=f"Action Plan for {objective.name}",
                description=f"Implementation plan for strategic objective: {objective.description}",
                owner=placeholder,
                deadline=objective.deadline,
                status=ActionStatus.PENDING,
                actions=[
                    Action(
                        id=f"action-{n}-1",
                        description="Define detailed implementation steps",
                        responsible=placeholder,
                        deadline=action_deadline,
                        status=ActionStatus.PENDING,
                    )
                ],
            ))
        return plans
