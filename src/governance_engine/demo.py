"""Enterprise sample workspace.

Fourteen applications across business domains, one governance agreement
each, five domain portfolios and strategic direction for three flagship
systems. Everything is created through the application services so the
event log reads like a real onboarding.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional

from governance_engine.app_logging import get_logger
from governance_engine.commands import (
    AddApplicationToPortfolioCommand,
    CreateGovernanceAgreementCommand,
    CreatePortfolioCommand,
    RegisterApplicationCommand,
    SetStrategicDirectionCommand,
    UpdateStrategyCommand,
)
from governance_engine.config import EngineConfig
from governance_engine.loader import Workspace
from governance_engine.schema import (
    SLA,
    Application,
    ApplicationCatalogue,
    ApplicationStatus,
    Functionality,
    Priority,
    SecurityMeasure,
    SecurityProvisions,
    Strategy,
    StrategicInitiative,
    StrategicObjective,
    utc_now,
)

logger = get_logger("demo")

DEMO_EVALUATOR = "Enterprise IT Governance Board"
DEMO_DIRECTOR = "Enterprise Architecture Board"

# (id, name, description, version, status, age in days)
DEMO_APPLICATIONS = [
    ("erp-core-001", "Enterprise Resource Planning (ERP)",
     "Integrated enterprise resource planning system managing core business processes",
     "2024.2.1", ApplicationStatus.ACTIVE, 3 * 365),
    ("crm-global-001", "Global Customer Relationship Management",
     "Unified CRM system for customer management across all business units",
     "12.8.0", ApplicationStatus.ACTIVE, 2 * 365),
    ("scm-supply-001", "Supply Chain Management",
     "End-to-end supply chain visibility and management platform",
     "9.4.3", ApplicationStatus.ACTIVE, 548),
    ("hr-talent-001", "Talent Management Suite",
     "Comprehensive HR and talent management platform",
     "8.2.1", ApplicationStatus.ACTIVE, 365),
    ("finance-budget-001", "Enterprise Budgeting & Forecasting",
     "Advanced financial planning and budgeting system",
     "15.7.0", ApplicationStatus.ACTIVE, 822),
    ("procure-source-001", "Strategic Sourcing Platform",
     "Supplier management and strategic procurement system",
     "6.9.2", ApplicationStatus.DEPRECATED, 4 * 365),
    ("infra-monitoring-001", "Infrastructure Monitoring Platform",
     "Unified monitoring and alerting for all IT infrastructure",
     "4.2.8", ApplicationStatus.ACTIVE, 608),
    ("security-siem-001", "Security Information & Event Management",
     "Enterprise security monitoring and threat detection",
     "3.1.5", ApplicationStatus.ACTIVE, 426),
    ("backup-enterprise-001", "Enterprise Backup & Recovery",
     "Comprehensive data backup and disaster recovery platform",
     "11.0.3", ApplicationStatus.ACTIVE, 913),
    ("analytics-bi-001", "Business Intelligence Platform",
     "Enterprise BI and analytics for decision support",
     "7.4.1", ApplicationStatus.ACTIVE, 487),
    ("data-warehouse-001", "Enterprise Data Warehouse",
     "Centralized data warehouse for enterprise analytics",
     "5.8.9", ApplicationStatus.ACTIVE, 1156),
    ("reporting-executive-001", "Executive Dashboard & Reporting",
     "Executive-level dashboards and automated reporting",
     "2.6.4", ApplicationStatus.PLANNED, 30),
    ("legacy-hr-001", "Legacy HR System",
     "Outdated HR system scheduled for retirement",
     "1.2.1", ApplicationStatus.DEPRECATED, 8 * 365),
    ("legacy-finance-001", "Legacy Financial System",
     "Deprecated financial system with known vulnerabilities",
     "3.1.0", ApplicationStatus.RETIRED, 6 * 365),
]

DEMO_PORTFOLIOS = {
    "portfolio-core-business": (
        "Core Business Systems Portfolio",
        "Mission-critical business applications supporting core operations",
        "Chief Information Officer",
        ["erp-core-001", "crm-global-001", "scm-supply-001"],
    ),
    "portfolio-hr-finance": (
        "HR & Finance Systems Portfolio",
        "Human resources and financial management applications",
        "Chief Financial Officer",
        ["hr-talent-001", "finance-budget-001"],
    ),
    "portfolio-infrastructure": (
        "IT Infrastructure Portfolio",
        "Core IT infrastructure and security systems",
        "Chief Technology Officer",
        ["infra-monitoring-001", "security-siem-001", "backup-enterprise-001"],
    ),
    "portfolio-analytics": (
        "Business Intelligence Portfolio",
        "Data analytics and business intelligence platforms",
        "Chief Data Officer",
        ["analytics-bi-001", "data-warehouse-001", "reporting-executive-001"],
    ),
    "portfolio-legacy-migration": (
        "Legacy System Migration Portfolio",
        "Applications targeted for modernization or retirement",
        "IT Transformation Director",
        ["legacy-hr-001", "legacy-finance-001", "procure-source-001"],
    ),
}

# Functionality catalogues by application ID prefix
DEMO_FUNCTIONALITY = {
    "erp": [
        ("erp-financial", "Financial Management", "Core financial operations", "Finance", Priority.CRITICAL),
        ("erp-inventory", "Inventory Management", "Stock and warehouse management", "Operations", Priority.HIGH),
        ("erp-procurement", "Procurement", "Supplier and purchase management", "Procurement", Priority.HIGH),
    ],
    "crm": [
        ("crm-contacts", "Contact Management", "Customer and prospect database", "CRM", Priority.CRITICAL),
        ("crm-sales", "Sales Pipeline", "Sales opportunity tracking", "Sales", Priority.HIGH),
        ("crm-marketing", "Marketing Automation", "Campaign management", "Marketing", Priority.MEDIUM),
    ],
    "hr": [
        ("hr-emp-mgmt", "Employee Management", "Core employee data management", "Core HR", Priority.HIGH),
        ("hr-payroll", "Payroll Processing", "Salary and compensation management", "Payroll", Priority.CRITICAL),
        ("hr-recruiting", "Recruitment", "Hiring and onboarding processes", "Recruiting", Priority.MEDIUM),
    ],
    "finance": [
        ("finance-budgeting", "Budget Planning", "Annual budget creation and management", "Budgeting", Priority.HIGH),
        ("finance-forecasting", "Financial Forecasting", "Revenue and expense forecasting", "Forecasting", Priority.HIGH),
        ("finance-reporting", "Financial Reporting", "Regulatory and management reporting", "Reporting", Priority.CRITICAL),
    ],
    "infra": [
        ("infra-monitoring", "System Monitoring", "Real-time system health monitoring", "Monitoring", Priority.CRITICAL),
        ("infra-alerting", "Alert Management", "Automated alerting and notifications", "Alerting", Priority.HIGH),
        ("infra-dashboards", "Management Dashboards", "Executive and operational dashboards", "Reporting", Priority.MEDIUM),
    ],
}


def _demo_application(row: tuple, now: datetime) -> Application:
    app_id, name, description, version, status, age_days = row
    app = Application(
        id=app_id,
        name=name,
        description=description,
        version=version,
        status=status,
        created_at=now - timedelta(days=age_days),
        updated_at=now,
    )
    if app_id == "erp-core-001":
        app.security_provisions = SecurityProvisions(
            data_confidentiality=[SecurityMeasure(name="AES-256 Encryption", description="End-to-end data encryption")],
            data_integrity=[SecurityMeasure(name="Data Validation", description="Comprehensive data validation rules")],
            application_availability=SLA(
                service_name="ERP Core Services",
                response_time=timedelta(seconds=2),
                availability=99.9,
            ),
        )
    return app


def demo_strategy(app_id: str, now: datetime) -> Strategy:
    """Functionality catalogue matching the application's domain."""
    prefix = app_id.split("-", 1)[0]
    rows = DEMO_FUNCTIONALITY.get(prefix)
    if rows is None:
        rows = [(f"{prefix}-core", "Core Functionality", "Primary application features", "Core", Priority.HIGH)]
    functionality = [
        Functionality(id=fid, name=name, description=description, category=category, priority=priority)
        for fid, name, description, category, priority in rows
    ]
    return Strategy(application_catalogue=ApplicationCatalogue(functionality=functionality, last_updated=now))


def demo_direction(now: datetime) -> dict[str, tuple[list[StrategicObjective], list[StrategicInitiative]]]:
    return {
        "erp-core-001": (
            [StrategicObjective(
                id="erp-digital-transformation",
                name="Digital Transformation of Core ERP",
                description="Modernize ERP system with cloud capabilities and AI-driven insights",
                deadline=now + timedelta(days=730),
            )],
            [StrategicInitiative(
                id="erp-cloud-migration",
                name="ERP Cloud Migration",
                description="Migrate ERP to cloud infrastructure",
                owner="ERP Transformation Team",
                budget=2_000_000,
                deadline=now + timedelta(days=365),
            )],
        ),
        "hr-talent-001": (
            [StrategicObjective(
                id="hr-employee-experience",
                name="Enhance Employee Experience",
                description="Implement modern HR technologies for better employee engagement",
                deadline=now + timedelta(days=548),
            )],
            [StrategicInitiative(
                id="hr-mobile-app",
                name="Employee Mobile App",
                description="Develop mobile app for employee self-service",
                owner="HR Technology Team",
                budget=750_000,
                deadline=now + timedelta(days=274),
            )],
        ),
        "analytics-bi-001": (
            [StrategicObjective(
                id="analytics-ai-ml",
                name="AI/ML-Driven Business Intelligence",
                description="Implement predictive analytics and machine learning capabilities",
                deadline=now + timedelta(days=365),
            )],
            [],
        ),
    }


def build_demo_workspace(
    clock: Callable[[], datetime] = utc_now,
    config: Optional[EngineConfig] = None,
) -> Workspace:
    """Populate a fresh in-memory workspace with the enterprise sample.

    Every agreement is approved and activated. Monitoring stores are left
    unset, so monitoring reports the built-in sample measurements.
    """
    workspace = Workspace.in_memory(clock=clock, config=config)
    governance = workspace.governance_service
    now = clock()

    for row in DEMO_APPLICATIONS:
        app = governance.register_application(RegisterApplicationCommand(application=_demo_application(row, now)))
        agreement = governance.create_governance_agreement(CreateGovernanceAgreementCommand(
            id=f"gov-{app.id}",
            application_id=app.id,
            title=f"Enterprise Governance Agreement for {app.name}",
        ))
        governance.update_strategy(UpdateStrategyCommand(agreement_id=agreement.id, strategy=demo_strategy(app.id, now)))
        governance.approve_governance_agreement(agreement.id)
        governance.activate_governance_agreement(agreement.id)

    for portfolio_id, (name, description, owner, members) in DEMO_PORTFOLIOS.items():
        workspace.portfolio_service.create_portfolio(CreatePortfolioCommand(
            id=portfolio_id, name=name, description=description, owner=owner,
        ))
        for app_id in members:
            workspace.portfolio_service.add_application_to_portfolio(
                AddApplicationToPortfolioCommand(portfolio_id=portfolio_id, application_id=app_id)
            )

    for app_id, (objectives, initiatives) in demo_direction(now).items():
        governance.set_strategic_direction(SetStrategicDirectionCommand(
            agreement_id=f"gov-{app_id}",
            director=DEMO_DIRECTOR,
            objectives=objectives,
            initiatives=initiatives,
        ))

    logger.info(
        "Demo workspace ready: %d applications, %d portfolios",
        len(workspace.applications), len(workspace.portfolios),
    )
    return workspace
