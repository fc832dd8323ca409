"""Aggregate roots.

Aggregates wrap a portfolio or a governance agreement, enforce the rules for
mutating it and record the domain events those mutations produce. Callers
persist the wrapped entity and then drain the pending events.
"""

from datetime import datetime
from typing import Callable

from governance_engine.events import (
    ApplicationAddedToPortfolio,
    ApplicationRemovedFromPortfolio,
    ApplicationUpdated,
    BaseEvent,
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
from governance_engine.schema import (
    Acquisition,
    AgreementStatus,
    Application,
    ApplicationPortfolio,
    Conformance,
    GovernanceAgreement,
    Implementation,
    Performance,
    Strategy,
    utc_now,
)

Clock = Callable[[], datetime]


class _EventRecorder:
    """Collects events raised by an aggregate until they are drained."""

    def __init__(self, clock: Clock):
        self._clock = clock
        self._events: list[BaseEvent] = []

    def _record(self, event: BaseEvent) -> None:
        self._events.append(event)

    @property
    def pending_events(self) -> list[BaseEvent]:
        return list(self._events)

    def collect_events(self) -> list[BaseEvent]:
        """Return pending events and clear them."""
        events, self._events = self._events, []
        return events


class PortfolioAggregate(_EventRecorder):
    """Portfolio aggregate root."""

    def __init__(self, portfolio: ApplicationPortfolio, clock: Clock = utc_now):
        super().__init__(clock)
        self.portfolio = portfolio

    @classmethod
    def create(
        cls,
        portfolio_id: str,
        name: str,
        description: str,
        owner: str,
        clock: Clock = utc_now,
    ) -> "PortfolioAggregate":
        if not portfolio_id:
            raise ValidationError("portfolio ID cannot be empty")
        if not name:
            raise ValidationError("portfolio name cannot be empty")
        if not owner:
            raise ValidationError("portfolio owner cannot be empty")

        now = clock()
        aggregate = cls(
            ApplicationPortfolio(
                id=portfolio_id,
                name=name,
                description=description,
                owner=owner,
                created_at=now,
                updated_at=now,
            ),
            clock,
        )
        aggregate._record(PortfolioCreated(portfolio_id=portfolio_id, name=name, owner=owner, occurred_at=now))
        return aggregate

    def add_application(self, app: Application) -> None:
        """Add a member copy.

        Raises:
            ValidationError: If the application has no ID or name.
            AlreadyExistsError: If a member has the same ID or the same name.
            InvalidStateError: If the application has no governance agreement.
        """
        app.validate_entity()
        for existing in self.portfolio.applications:
            if existing.id == app.id:
                raise AlreadyExistsError(f"application {app.id} already exists in portfolio")
            if existing.name == app.name:
                raise AlreadyExistsError(f"application named {app.name!r} already exists in portfolio")
        if not app.governance_agreement_id:
            raise InvalidStateError(f"application {app.id} must have a governance agreement")

        now = self._clock()
        self.portfolio.add_application(app, now)
        self._record(ApplicationAddedToPortfolio(
            portfolio_id=self.portfolio.id,
            application_id=app.id,
            application_name=app.name,
            governance_agreement_id=app.governance_agreement_id,
            occurred_at=now,
        ))

    def remove_application(self, app_id: str) -> Application:
        removed = next((a for a in self.portfolio.applications if a.id == app_id), None)
        if removed is None:
            raise NotFoundError(f"application {app_id} not found in portfolio")
        now = self._clock()
        self.portfolio.remove_application(app_id, now)
        self._record(ApplicationRemovedFromPortfolio(
            portfolio_id=self.portfolio.id,
            application_id=removed.id,
            application_name=removed.name,
            occurred_at=now,
        ))
        return removed

    def update_application(self, app: Application) -> None:
        """Replace the member copy with the same ID."""
        app.validate_entity()
        now = self._clock()
        self.portfolio.replace_application(app, now)
        self._record(ApplicationUpdated(
            portfolio_id=self.portfolio.id,
            application_id=app.id,
            application_name=app.name,
            occurred_at=now,
        ))


class AgreementAggregate(_EventRecorder):
    """Governance agreement aggregate root."""

    def __init__(self, agreement: GovernanceAgreement, clock: Clock = utc_now):
        super().__init__(clock)
        self.agreement = agreement

    @classmethod
    def create(
        cls,
        agreement_id: str,
        application_id: str,
        title: str,
        clock: Clock = utc_now,
    ) -> "AgreementAggregate":
        """New draft agreement at version 1.0."""
        now = clock()
        agreement = GovernanceAgreement(
            id=agreement_id,
            application_id=application_id,
            title=title,
            version="1.0",
            status=AgreementStatus.DRAFT,
            created_at=now,
            updated_at=now,
        )
        agreement.validate_entity()
        aggregate = cls(agreement, clock)
        aggregate._record(GovernanceAgreementCreated(
            agreement_id=agreement_id,
            application_id=application_id,
            title=title,
            occurred_at=now,
        ))
        return aggregate

    def _component_updated(self, component: str) -> None:
        now = self._clock()
        self.agreement.updated_at = now
        self._record(GovernanceAgreementUpdated(
            agreement_id=self.agreement.id,
            component=component,
            occurred_at=now,
        ))

    def update_strategy(self, strategy: Strategy) -> None:
        self.agreement.strategy = strategy
        self._component_updated("strategy")

    def update_acquisition(self, acquisition: Acquisition) -> None:
        self.agreement.acquisition = acquisition
        self._component_updated("acquisition")

    def update_performance(self, performance: Performance) -> None:
        self.agreement.performance = performance
        self._component_updated("performance")

    def update_conformance(self, conformance: Conformance) -> None:
        self.agreement.conformance = conformance
        self._component_updated("conformance")

    def update_implementation(self, implementation: Implementation) -> None:
        self.agreement.implementation = implementation
        self._component_updated("implementation")

    def approve(self) -> None:
        if self.agreement.status != AgreementStatus.DRAFT:
            raise InvalidStateError(
                f"only draft agreements can be approved (agreement {self.agreement.id} is {self.agreement.status.value})"
            )
        now = self._clock()
        self.agreement.status = AgreementStatus.APPROVED
        self.agreement.updated_at = now
        self._record(GovernanceAgreementApproved(agreement_id=self.agreement.id, occurred_at=now))

    def activate(self) -> None:
        if self.agreement.status != AgreementStatus.APPROVED:
            raise InvalidStateError(
                f"only approved agreements can be activated (agreement {self.agreement.id} is {self.agreement.status.value})"
            )
        now = self._clock()
        self.agreement.status = AgreementStatus.ACTIVE
        self.agreement.updated_at = now
        self._record(GovernanceAgreementActivated(agreement_id=self.agreement.id, occurred_at=now))
