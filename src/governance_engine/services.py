"""Application services.

Orchestrate repositories, aggregates and the evaluation, direction and
monitoring engines. Mutations write the entity first and then publish domain
events. Event publication is best effort: a failing event store is logged
and never surfaces to the caller.
"""

from datetime import datetime
from typing import Callable, Iterable

from governance_engine.aggregates import AgreementAggregate, PortfolioAggregate
from governance_engine.app_logging import get_logger
from governance_engine.commands import (
    AddApplicationToPortfolioCommand,
    AllocateResourcesCommand,
    CreateGovernanceAgreementCommand,
    CreatePortfolioCommand,
    EstablishPoliciesCommand,
    EvaluateApplicationCommand,
    EvaluatePortfolioCommand,
    GovernanceMonitoringResult,
    MonitorGovernanceCommand,
    RegisterApplicationCommand,
    RemoveApplicationFromPortfolioCommand,
    SetStrategicDirectionCommand,
    UpdateAcquisitionCommand,
    UpdateConformanceCommand,
    UpdateImplementationCommand,
    UpdatePerformanceCommand,
    UpdatePortfolioCommand,
    UpdateStrategyCommand,
)
from governance_engine.direction import DirectionService
from governance_engine.evaluation import EvaluationService
from governance_engine.events import (
    BaseEvent,
    GovernanceDirectionSet,
    GovernanceEvaluationCompleted,
    GovernanceMonitoringCompleted,
)
from governance_engine.exceptions import AlreadyExistsError, InvalidStateError, NotFoundError
from governance_engine.monitoring import MonitoringService
from governance_engine.schema import (
    Application,
    ApplicationAssessment,
    ApplicationPortfolio,
    GovernanceAgreement,
    PortfolioHealthAssessment,
    RiskStatus,
    utc_now,
)
from governance_engine.store.base import (
    ApplicationRepository,
    DomainEventRepository,
    GovernanceAgreementRepository,
    PortfolioRepository,
)

logger = get_logger("services")


def publish_events(event_repo: DomainEventRepository, events: Iterable[BaseEvent]) -> None:
    """Append events to the event store, logging and skipping failures."""
    for event in events:
        try:
            event_repo.save(event)
        except Exception as e:  # event log is a side channel
            logger.warning("Failed to save domain event %s: %s", type(event).__name__, e)


class PortfolioService:
    """Portfolio lifecycle and membership."""

    def __init__(
        self,
        portfolio_repo: PortfolioRepository,
        application_repo: ApplicationRepository,
        agreement_repo: GovernanceAgreementRepository,
        event_repo: DomainEventRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.portfolio_repo = portfolio_repo
        self.application_repo = application_repo
        self.agreement_repo = agreement_repo
        self.event_repo = event_repo
        self.clock = clock

    def create_portfolio(self, cmd: CreatePortfolioCommand) -> ApplicationPortfolio:
        if self.portfolio_repo.exists(cmd.id):
            raise AlreadyExistsError(f"portfolio {cmd.id} already exists")
        aggregate = PortfolioAggregate.create(cmd.id, cmd.name, cmd.description, cmd.owner, self.clock)
        self.portfolio_repo.save(aggregate.portfolio)
        publish_events(self.event_repo, aggregate.collect_events())
        logger.info("Created portfolio %s owned by %s", cmd.id, cmd.owner)
        return aggregate.portfolio

    def add_application_to_portfolio(self, cmd: AddApplicationToPortfolioCommand) -> ApplicationPortfolio:
        """Copy the canonical application record into the portfolio.

        Raises:
            NotFoundError: If the application, its agreement or the portfolio is missing.
            AlreadyExistsError: If the application (by ID or name) is already a member.
        """
        app = self.application_repo.find_by_id(cmd.application_id)
        agreement = self.agreement_repo.find_by_application(cmd.application_id)
        if not app.governance_agreement_id:
            app.governance_agreement_id = agreement.id

        aggregate = PortfolioAggregate(self.portfolio_repo.find_by_id(cmd.portfolio_id), self.clock)
        aggregate.add_application(app)
        self.portfolio_repo.save(aggregate.portfolio)
        self.application_repo.link_to_portfolio(cmd.portfolio_id, app.id)
        publish_events(self.event_repo, aggregate.collect_events())
        return aggregate.portfolio

    def remove_application_from_portfolio(self, cmd: RemoveApplicationFromPortfolioCommand) -> ApplicationPortfolio:
        aggregate = PortfolioAggregate(self.portfolio_repo.find_by_id(cmd.portfolio_id), self.clock)
        aggregate.remove_application(cmd.application_id)
        self.portfolio_repo.save(aggregate.portfolio)
        self.application_repo.unlink_from_portfolio(cmd.portfolio_id, cmd.application_id)
        publish_events(self.event_repo, aggregate.collect_events())
        return aggregate.portfolio

    def refresh_application(self, portfolio_id: str, app_id: str) -> ApplicationPortfolio:
        """Overwrite a member copy with the current canonical record."""
        app = self.application_repo.find_by_id(app_id)
        aggregate = PortfolioAggregate(self.portfolio_repo.find_by_id(portfolio_id), self.clock)
        aggregate.update_application(app)
        self.portfolio_repo.save(aggregate.portfolio)
        publish_events(self.event_repo, aggregate.collect_events())
        return aggregate.portfolio

    def get_portfolio(self, portfolio_id: str) -> ApplicationPortfolio:
        return self.portfolio_repo.find_by_id(portfolio_id)

    def list_portfolios(self) -> list[ApplicationPortfolio]:
        return self.portfolio_repo.find_all()

    def list_portfolios_by_owner(self, owner: str) -> list[ApplicationPortfolio]:
        return self.portfolio_repo.find_by_owner(owner)

    def update_portfolio(self, cmd: UpdatePortfolioCommand) -> ApplicationPortfolio:
        portfolio = self.portfolio_repo.find_by_id(cmd.id)
        portfolio.name = cmd.name
        portfolio.description = cmd.description
        portfolio.updated_at = self.clock()
        portfolio.validate_entity()
        self.portfolio_repo.update(portfolio)
        return portfolio

    def delete_portfolio(self, portfolio_id: str) -> None:
        portfolio = self.portfolio_repo.find_by_id(portfolio_id)
        if portfolio.applications:
            raise InvalidStateError(f"cannot delete portfolio {portfolio_id} while it has applications")
        self.portfolio_repo.delete(portfolio_id)


class GovernanceService:
    """Applications, governance agreements and the Evaluate/Direct/Monitor cycle."""

    def __init__(
        self,
        agreement_repo: GovernanceAgreementRepository,
        application_repo: ApplicationRepository,
        event_repo: DomainEventRepository,
        evaluation: EvaluationService,
        direction: DirectionService,
        monitoring: MonitoringService,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.agreement_repo = agreement_repo
        self.application_repo = application_repo
        self.event_repo = event_repo
        self.evaluation = evaluation
        self.direction = direction
        self.monitoring = monitoring
        self.clock = clock

    # -------------------------------------------------------------------------
    # Applications
    # -------------------------------------------------------------------------

    def register_application(self, cmd: RegisterApplicationCommand) -> Application:
        app = cmd.application.model_copy(deep=True)
        app.validate_entity()
        if self.application_repo.exists(app.id):
            raise AlreadyExistsError(f"application {app.id} already exists")
        now = self.clock()
        if app.created_at is None:
            app.created_at = now
        if app.updated_at is None:
            app.updated_at = now
        self.application_repo.save(app)
        logger.info("Registered application %s (%s)", app.id, app.status.value)
        return app

    def list_applications(self) -> list[Application]:
        return self.application_repo.find_all()

    # -------------------------------------------------------------------------
    # Agreements
    # -------------------------------------------------------------------------

    def create_governance_agreement(self, cmd: CreateGovernanceAgreementCommand) -> GovernanceAgreement:
        """Create a draft agreement and link it back from the application."""
        app = self.application_repo.find_by_id(cmd.application_id)
        if self.agreement_repo.exists(cmd.id):
            raise AlreadyExistsError(f"governance agreement {cmd.id} already exists")
        try:
            existing = self.agreement_repo.find_by_application(cmd.application_id)
        except NotFoundError:
            existing = None
        if existing is not None:
            raise AlreadyExistsError(
                f"application {cmd.application_id} is already governed by {existing.id}"
            )

        aggregate = AgreementAggregate.create(cmd.id, cmd.application_id, cmd.title, self.clock)
        self.agreement_repo.save(aggregate.agreement)
        app.governance_agreement_id = cmd.id
        self.application_repo.update(app)
        publish_events(self.event_repo, aggregate.collect_events())
        return aggregate.agreement

    def _apply(self, agreement_id: str, change: Callable[[AgreementAggregate], None]) -> GovernanceAgreement:
        aggregate = AgreementAggregate(self.agreement_repo.find_by_id(agreement_id), self.clock)
        change(aggregate)
        self.agreement_repo.update(aggregate.agreement)
        publish_events(self.event_repo, aggregate.collect_events())
        return aggregate.agreement

    def update_strategy(self, cmd: UpdateStrategyCommand) -> GovernanceAgreement:
        return self._apply(cmd.agreement_id, lambda a: a.update_strategy(cmd.strategy))

    def update_acquisition(self, cmd: UpdateAcquisitionCommand) -> GovernanceAgreement:
        return self._apply(cmd.agreement_id, lambda a: a.update_acquisition(cmd.acquisition))

    def update_performance(self, cmd: UpdatePerformanceCommand) -> GovernanceAgreement:
        return self._apply(cmd.agreement_id, lambda a: a.update_performance(cmd.performance))

    def update_conformance(self, cmd: UpdateConformanceCommand) -> GovernanceAgreement:
        return self._apply(cmd.agreement_id, lambda a: a.update_conformance(cmd.conformance))

    def update_implementation(self, cmd: UpdateImplementationCommand) -> GovernanceAgreement:
        return self._apply(cmd.agreement_id, lambda a: a.update_implementation(cmd.implementation))

    def approve_governance_agreement(self, agreement_id: str) -> GovernanceAgreement:
        agreement = self._apply(agreement_id, lambda a: a.approve())
        logger.info("Approved governance agreement %s", agreement_id)
        return agreement

    def activate_governance_agreement(self, agreement_id: str) -> GovernanceAgreement:
        agreement = self._apply(agreement_id, lambda a: a.activate())
        logger.info("Activated governance agreement %s", agreement_id)
        return agreement

    def get_governance_agreement(self, agreement_id: str) -> GovernanceAgreement:
        return self.agreement_repo.find_by_id(agreement_id)

    def list_governance_agreements(self) -> list[GovernanceAgreement]:
        return self.agreement_repo.find_all()

    # -------------------------------------------------------------------------
    # Evaluate
    # -------------------------------------------------------------------------

    def evaluate_application(self, cmd: EvaluateApplicationCommand) -> ApplicationAssessment:
        assessment = self.evaluation.evaluate_application(cmd.application_id, cmd.evaluator)
        try:
            agreement = self.agreement_repo.find_by_application(cmd.application_id)
        except NotFoundError:
            return assessment

        health = assessment.technical_health
        value = assessment.business_value
        publish_events(self.event_repo, [GovernanceEvaluationCompleted(
            agreement_id=agreement.id,
            evaluator=cmd.evaluator,
            findings=[
                f"risk level: {assessment.risk_level.value}",
                f"code quality: {health.code_quality}/5",
                f"security: {health.security_score}/5",
                f"performance: {health.performance_score}/5",
                f"cost efficiency: {value.cost_efficiency:.0f}%",
            ],
            recommendations=[rec.description for rec in assessment.recommendations],
            occurred_at=self.clock(),
        )])
        return assessment

    def evaluate_portfolio(self, cmd: EvaluatePortfolioCommand) -> PortfolioHealthAssessment:
        return self.evaluation.evaluate_portfolio(cmd.portfolio_id)

    # -------------------------------------------------------------------------
    # Direct
    # -------------------------------------------------------------------------

    def set_strategic_direction(self, cmd: SetStrategicDirectionCommand) -> GovernanceAgreement:
        agreement = self.direction.set_strategic_direction(
            cmd.agreement_id, cmd.director, cmd.objectives, cmd.initiatives
        )
        publish_events(self.event_repo, [GovernanceDirectionSet(
            agreement_id=agreement.id,
            director=cmd.director,
            objectives=[objective.name for objective in cmd.objectives],
            action_plans=[plan.id for plan in agreement.direct.action_plans],
            occurred_at=self.clock(),
        )])
        return agreement

    def allocate_resources(self, cmd: AllocateResourcesCommand) -> GovernanceAgreement:
        return self.direction.allocate_resources(
            cmd.agreement_id, cmd.budget_allocations, cmd.personnel_allocations
        )

    def establish_policies(self, cmd: EstablishPoliciesCommand) -> GovernanceAgreement:
        return self.direction.establish_policies(
            cmd.agreement_id, cmd.policies, cmd.standards, cmd.procedures
        )

    # -------------------------------------------------------------------------
    # Monitor
    # -------------------------------------------------------------------------

    def monitor_governance(self, cmd: MonitorGovernanceCommand) -> GovernanceMonitoringResult:
        result = GovernanceMonitoringResult(
            kpi_measurements=self.monitoring.monitor_kpis(cmd.agreement_id),
            compliance_status=self.monitoring.monitor_compliance(cmd.agreement_id),
            risk_status=self.monitoring.monitor_risks(cmd.agreement_id),
        )

        statuses = {indicator.status for indicator in result.risk_status.risk_indicators}
        worst = next(
            (s for s in (RiskStatus.CRITICAL, RiskStatus.WARNING) if s in statuses),
            RiskStatus.NORMAL,
        )
        publish_events(self.event_repo, [GovernanceMonitoringCompleted(
            agreement_id=cmd.agreement_id,
            monitor=cmd.monitor,
            kpi_measurements=[
                f"{m.kpi_id}: {m.value:g}/{m.target:g} ({'achieved' if m.achieved else 'missed'})"
                for m in result.kpi_measurements
            ],
            compliance_status=result.compliance_status.monitoring_frequency or "unscheduled",
            risk_status=worst.value,
            occurred_at=self.clock(),
        )])
        return result
