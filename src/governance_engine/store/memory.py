"""In-memory repositories.

Every store guards its maps with a single re-entrant lock and keeps deep
copies of what it is given, so callers never share state with the store.
Secondary indexes are updated on every mutation and always agree with a
linear scan of the primary map.
"""

import threading
from datetime import datetime, timezone
from typing import Callable, Generic, Optional, TypeVar

from pydantic import BaseModel

from governance_engine.change_schema import (
    Audit,
    AuditStatus,
    ChangeRequest,
    ChangeRequestStatus,
    Incident,
    IncidentStatus,
)
from governance_engine.events import BaseEvent
from governance_engine.exceptions import NotFoundError
from governance_engine.schema import (
    KPI,
    AgreementStatus,
    Application,
    ApplicationPortfolio,
    ComplianceStatus,
    ContractualRequirement,
    GovernanceAgreement,
    IndustryStandard,
    KPIMeasurement,
    LegalRequirement,
    MitigationPlan,
    Risk,
    RiskLevel,
)

T = TypeVar("T", bound=BaseModel)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _aware(value: Optional[datetime]) -> datetime:
    """Comparable form of a possibly-unset, possibly-naive timestamp."""
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SecondaryIndex:
    """Maps an attribute value to the set of entity IDs carrying it.

    Each entity sits in exactly one bucket. Re-indexing an entity under a new
    value moves it rather than duplicating it.
    """

    def __init__(self, key_fn: Callable[[BaseModel], str]):
        self._key_fn = key_fn
        self._buckets: dict[str, dict[str, None]] = {}
        self._current: dict[str, str] = {}

    def put(self, entity_id: str, entity: BaseModel) -> None:
        new_key = self._key_fn(entity)
        old_key = self._current.get(entity_id)
        if old_key == new_key:
            return
        if old_key is not None:
            self._discard(entity_id, old_key)
        self._buckets.setdefault(new_key, {})[entity_id] = None
        self._current[entity_id] = new_key

    def remove(self, entity_id: str) -> None:
        old_key = self._current.pop(entity_id, None)
        if old_key is not None:
            self._discard(entity_id, old_key)

    def get(self, key: str) -> list[str]:
        return list(self._buckets.get(key, {}))

    def snapshot(self) -> dict[str, set[str]]:
        return {key: set(ids) for key, ids in self._buckets.items()}

    def _discard(self, entity_id: str, key: str) -> None:
        bucket = self._buckets.get(key)
        if bucket is None:
            return
        bucket.pop(entity_id, None)
        if not bucket:
            del self._buckets[key]


class KeyedStore(Generic[T]):
    """Base for stores keyed by a string ID with optional secondary indexes."""

    entity_name = "entity"

    def __init__(self):
        self._lock = threading.RLock()
        self._items: dict[str, T] = {}
        self._indexes: dict[str, SecondaryIndex] = {}
        self._seq: dict[str, int] = {}
        self._next_seq = 0

    def _key(self, item: T) -> str:
        return item.id  # type: ignore[attr-defined]

    def _add_index(self, name: str, key_fn: Callable[[T], str]) -> None:
        self._indexes[name] = SecondaryIndex(key_fn)  # type: ignore[arg-type]

    def _ordered(self, ids: list[str]) -> list[T]:
        """Copies of the given entities in primary insertion order."""
        return [self._items[key].model_copy(deep=True) for key in sorted(ids, key=self._seq.__getitem__)]

    def _require(self, entity_id: str) -> T:
        item = self._items.get(entity_id)
        if item is None:
            raise NotFoundError(f"{self.entity_name} {entity_id} not found")
        return item

    def save(self, item: T) -> None:
        """Insert or replace. Last write wins."""
        key = self._key(item)
        with self._lock:
            stored = item.model_copy(deep=True)
            if key not in self._items:
                self._seq[key] = self._next_seq
                self._next_seq += 1
            self._items[key] = stored
            for index in self._indexes.values():
                index.put(key, stored)

    def update(self, item: T) -> None:
        with self._lock:
            self._require(self._key(item))
            self.save(item)

    def delete(self, entity_id: str) -> None:
        with self._lock:
            self._require(entity_id)
            del self._items[entity_id]
            del self._seq[entity_id]
            for index in self._indexes.values():
                index.remove(entity_id)

    def find_by_id(self, entity_id: str) -> T:
        with self._lock:
            return self._require(entity_id).model_copy(deep=True)

    def find_all(self) -> list[T]:
        with self._lock:
            return [item.model_copy(deep=True) for item in self._items.values()]

    def exists(self, entity_id: str) -> bool:
        with self._lock:
            return entity_id in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def index_snapshot(self, name: str) -> dict[str, set[str]]:
        """Current contents of a secondary index, for consistency checks."""
        with self._lock:
            return self._indexes[name].snapshot()

    def _find_indexed(self, name: str, key: str) -> list[T]:
        with self._lock:
            return self._ordered(self._indexes[name].get(key))


# =============================================================================
# Core Entity Stores
# =============================================================================


class InMemoryApplicationRepository(KeyedStore[Application]):
    """Applications with a by-name index and a portfolio membership index."""

    entity_name = "application"

    def __init__(self):
        super().__init__()
        self._add_index("name", lambda app: app.name)
        self._memberships: dict[str, dict[str, None]] = {}

    def delete(self, app_id: str) -> None:
        with self._lock:
            super().delete(app_id)
            for portfolio_id in list(self._memberships):
                self._unlink(portfolio_id, app_id)

    def find_by_name(self, name: str) -> Application:
        """First application with this name, in insertion order."""
        with self._lock:
            matches = self._ordered(self._indexes["name"].get(name))
            if not matches:
                raise NotFoundError(f"application named {name!r} not found")
            return matches[0]

    def find_by_portfolio(self, portfolio_id: str) -> list[Application]:
        with self._lock:
            ids = self._memberships.get(portfolio_id, {})
            return [self._items[app_id].model_copy(deep=True) for app_id in ids if app_id in self._items]

    def link_to_portfolio(self, portfolio_id: str, app_id: str) -> None:
        with self._lock:
            self._require(app_id)
            self._memberships.setdefault(portfolio_id, {})[app_id] = None

    def unlink_from_portfolio(self, portfolio_id: str, app_id: str) -> None:
        with self._lock:
            self._unlink(portfolio_id, app_id)

    def membership_snapshot(self) -> dict[str, set[str]]:
        with self._lock:
            return {pid: set(ids) for pid, ids in self._memberships.items()}

    def _unlink(self, portfolio_id: str, app_id: str) -> None:
        members = self._memberships.get(portfolio_id)
        if members is None:
            return
        members.pop(app_id, None)
        if not members:
            del self._memberships[portfolio_id]


class InMemoryGovernanceAgreementRepository(KeyedStore[GovernanceAgreement]):
    """Agreements indexed by application (1:1) and by status."""

    entity_name = "governance agreement"

    def __init__(self):
        super().__init__()
        self._add_index("application", lambda agreement: agreement.application_id)
        self._add_index("status", lambda agreement: agreement.status.value)

    def find_by_application(self, app_id: str) -> GovernanceAgreement:
        with self._lock:
            matches = self._ordered(self._indexes["application"].get(app_id))
            if not matches:
                raise NotFoundError(f"no governance agreement linked to application {app_id}")
            return matches[0]

    def find_by_status(self, status: AgreementStatus) -> list[GovernanceAgreement]:
        return self._find_indexed("status", AgreementStatus(status).value)


class InMemoryPortfolioRepository(KeyedStore[ApplicationPortfolio]):
    """Portfolios indexed by owner."""

    entity_name = "portfolio"

    def __init__(self):
        super().__init__()
        self._add_index("owner", lambda portfolio: portfolio.owner)

    def find_by_owner(self, owner: str) -> list[ApplicationPortfolio]:
        return self._find_indexed("owner", owner)

    def add_application(self, portfolio_id: str, app: Application) -> None:
        """Append a copy of ``app`` to the stored portfolio.

        Raises:
            NotFoundError: If the portfolio does not exist.
            AlreadyExistsError: If the application is already a member.
        """
        with self._lock:
            self._require(portfolio_id).add_application(app)

    def remove_application(self, portfolio_id: str, app_id: str) -> None:
        with self._lock:
            self._require(portfolio_id).remove_application(app_id)

    def replace_application(self, portfolio_id: str, app: Application) -> None:
        with self._lock:
            self._require(portfolio_id).replace_application(app)


# =============================================================================
# Event Store
# =============================================================================


class InMemoryDomainEventRepository:
    """Append-only event log."""

    def __init__(self):
        self._lock = threading.RLock()
        self._events: list[BaseEvent] = []

    def save(self, event: BaseEvent) -> None:
        with self._lock:
            self._events.append(event.model_copy(deep=True))

    def find_all(self) -> list[BaseEvent]:
        with self._lock:
            return [event.model_copy(deep=True) for event in self._events]

    def find_by_type(self, event_type: str) -> list[BaseEvent]:
        with self._lock:
            return [e.model_copy(deep=True) for e in self._events if e.event_type == event_type]  # type: ignore[attr-defined]

    def find_by_aggregate(self, aggregate_id: str) -> list[BaseEvent]:
        with self._lock:
            return [e.model_copy(deep=True) for e in self._events if e.aggregate_id == aggregate_id]

    def find_by_time_range(self, start: datetime, end: datetime) -> list[BaseEvent]:
        """Events with ``start <= occurred_at <= end``."""
        lo, hi = _aware(start), _aware(end)
        with self._lock:
            return [
                e.model_copy(deep=True) for e in self._events
                if lo <= _aware(e.occurred_at) <= hi
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


# =============================================================================
# Monitoring Collaborators
# =============================================================================


class InMemoryKPIRepository(KeyedStore[KPI]):
    entity_name = "KPI"

    def __init__(self):
        super().__init__()
        self._add_index("category", lambda kpi: kpi.category)

    def find_by_category(self, category: str) -> list[KPI]:
        return self._find_indexed("category", category)


class InMemoryKPIMeasurementRepository:
    """Measurements grouped by KPI, kept in arrival order."""

    def __init__(self):
        self._lock = threading.RLock()
        self._measurements: dict[str, list[KPIMeasurement]] = {}

    def save(self, measurement: KPIMeasurement) -> None:
        with self._lock:
            self._measurements.setdefault(measurement.kpi_id, []).append(measurement.model_copy(deep=True))

    def find_by_kpi(self, kpi_id: str) -> list[KPIMeasurement]:
        with self._lock:
            return [m.model_copy(deep=True) for m in self._measurements.get(kpi_id, [])]

    def find_by_period(self, kpi_id: str, start: datetime, end: datetime) -> list[KPIMeasurement]:
        lo, hi = _aware(start), _aware(end)
        with self._lock:
            return [
                m.model_copy(deep=True) for m in self._measurements.get(kpi_id, [])
                if lo <= _aware(m.measured_at) <= hi
            ]

    def find_latest(self, kpi_id: str) -> KPIMeasurement:
        """Most recent measurement by ``measured_at``. Later saves win ties."""
        with self._lock:
            history = self._measurements.get(kpi_id)
            if not history:
                raise NotFoundError(f"no measurements for KPI {kpi_id}")
            latest = history[0]
            for measurement in history[1:]:
                if _aware(measurement.measured_at) >= _aware(latest.measured_at):
                    latest = measurement
            return latest.model_copy(deep=True)


class InMemoryRiskRepository(KeyedStore[Risk]):
    entity_name = "risk"

    def __init__(self):
        super().__init__()
        self._add_index("level", lambda risk: risk.level.value)

    def find_by_level(self, level: RiskLevel) -> list[Risk]:
        return self._find_indexed("level", RiskLevel(level).value)

    def find_by_category(self, category: str) -> list[Risk]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._items.values() if r.category == category]


class InMemoryMitigationPlanRepository(KeyedStore[MitigationPlan]):
    """Mitigation plans keyed by the risk they address."""

    entity_name = "mitigation plan"

    def _key(self, item: MitigationPlan) -> str:
        return item.risk_id

    def find_by_risk(self, risk_id: str) -> MitigationPlan:
        return self.find_by_id(risk_id)


class InMemoryComplianceRepository:
    """Legal, contractual and industry requirements recorded per application."""

    def __init__(self):
        self._lock = threading.RLock()
        self._legal: dict[str, list[LegalRequirement]] = {}
        self._contractual: dict[str, list[ContractualRequirement]] = {}
        self._industry: dict[str, list[IndustryStandard]] = {}

    def save_legal_requirement(self, app_id: str, requirement: LegalRequirement) -> None:
        with self._lock:
            self._legal.setdefault(app_id, []).append(requirement.model_copy(deep=True))

    def save_contractual_requirement(self, app_id: str, requirement: ContractualRequirement) -> None:
        with self._lock:
            self._contractual.setdefault(app_id, []).append(requirement.model_copy(deep=True))

    def save_industry_standard(self, app_id: str, standard: IndustryStandard) -> None:
        with self._lock:
            self._industry.setdefault(app_id, []).append(standard.model_copy(deep=True))

    def find_legal_requirements(self, app_id: str) -> list[LegalRequirement]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._legal.get(app_id, [])]

    def find_contractual_requirements(self, app_id: str) -> list[ContractualRequirement]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._contractual.get(app_id, [])]

    def find_industry_standards(self, app_id: str) -> list[IndustryStandard]:
        with self._lock:
            return [s.model_copy(deep=True) for s in self._industry.get(app_id, [])]

    def update_status(self, app_id: str, requirement_name: str, status: ComplianceStatus) -> None:
        """Set the status of every requirement with this name for the application."""
        with self._lock:
            found = False
            for group in (self._legal, self._contractual, self._industry):
                for requirement in group.get(app_id, []):
                    if requirement.name == requirement_name:
                        requirement.status = ComplianceStatus(status)
                        found = True
            if not found:
                raise NotFoundError(f"requirement {requirement_name!r} not found for application {app_id}")


# =============================================================================
# Change Management Stores
# =============================================================================


class InMemoryChangeRequestRepository(KeyedStore[ChangeRequest]):
    entity_name = "change request"

    def __init__(self):
        super().__init__()
        self._add_index("application", lambda cr: cr.application_id)

    def find_by_application(self, app_id: str) -> list[ChangeRequest]:
        return self._find_indexed("application", app_id)

    def find_by_status(self, status: ChangeRequestStatus) -> list[ChangeRequest]:
        with self._lock:
            return [cr.model_copy(deep=True) for cr in self._items.values() if cr.status == status]


class InMemoryIncidentRepository(KeyedStore[Incident]):
    entity_name = "incident"

    def __init__(self):
        super().__init__()
        self._add_index("application", lambda incident: incident.application_id)

    def find_by_application(self, app_id: str) -> list[Incident]:
        return self._find_indexed("application", app_id)

    def find_by_status(self, status: IncidentStatus) -> list[Incident]:
        with self._lock:
            return [i.model_copy(deep=True) for i in self._items.values() if i.status == status]


class InMemoryAuditRepository(KeyedStore[Audit]):
    entity_name = "audit"

    def __init__(self):
        super().__init__()
        self._add_index("application", lambda audit: audit.application_id)

    def find_by_application(self, app_id: str) -> list[Audit]:
        return self._find_indexed("application", app_id)

    def find_by_status(self, status: AuditStatus) -> list[Audit]:
        with self._lock:
            return [a.model_copy(deep=True) for a in self._items.values() if a.status == status]

    def find_by_period(self, start: datetime, end: datetime) -> list[Audit]:
        """Audits started within ``[start, end]``. Unstarted audits are excluded."""
        lo, hi = _aware(start), _aware(end)
        with self._lock:
            return [
                a.model_copy(deep=True) for a in self._items.values()
                if a.started_at is not None and lo <= _aware(a.started_at) <= hi
            ]
