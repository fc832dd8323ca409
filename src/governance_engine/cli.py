"""CLI for the ISO/IEC 38500 governance engine.

Loads a workspace file, evaluates applications and portfolios, runs the
monitoring queries and prints the results as Rich tables or JSON.
"""

import json
import sys
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from governance_engine import __version__
from governance_engine.app_logging import setup_logging
from governance_engine.commands import (
    EvaluateApplicationCommand,
    EvaluatePortfolioCommand,
    GovernanceMonitoringResult,
    MonitorGovernanceCommand,
)
from governance_engine.config import EngineConfig, find_config_file, get_config, load_config, save_default_config
from governance_engine.demo import DEMO_EVALUATOR, build_demo_workspace
from governance_engine.loader import Workspace, load_workspace, validate_workspace
from governance_engine.schema import (
    ApplicationAssessment,
    PortfolioHealthAssessment,
    RiskLevel,
    RiskStatus,
)

console = Console()

RISK_STYLES = {
    RiskLevel.LOW: "green",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.HIGH: "red",
    RiskLevel.CRITICAL: "bold white on red",
}

RISK_STATUS_STYLES = {
    RiskStatus.NORMAL: "green",
    RiskStatus.WARNING: "yellow",
    RiskStatus.CRITICAL: "bold red",
}


@click.group()
@click.version_option(version=__version__, prog_name="governance-engine")
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to a governance-config.yaml file (default: auto-discover)"
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Override the configured log level"
)
@click.pass_context
def main(ctx: click.Context, config_path: Optional[Path], log_level: Optional[str]):
    """ISO/IEC 38500 Governance Engine.

    Evaluates, directs and monitors an application portfolio under
    per-application governance agreements.
    """
    path = config_path or find_config_file()
    config = load_config(path) if path else get_config()
    setup_logging(log_level or config.logging.level, rich_console=config.logging.rich_console)
    ctx.obj = config


# =============================================================================
# Commands
# =============================================================================


@main.command("demo")
@click.option(
    "--json-output", "-j",
    is_flag=True,
    help="Output raw JSON instead of formatted text"
)
@click.pass_obj
def demo_cmd(config: EngineConfig, json_output: bool):
    """Build the enterprise sample workspace and run a full governance cycle.

    Every application is evaluated, every portfolio assessed and every
    agreement monitored.
    """
    try:
        workspace = build_demo_workspace(config=config)
        assessments = _evaluate_applications(workspace, None, DEMO_EVALUATOR)
        portfolios = {
            p.id: workspace.governance_service.evaluate_portfolio(EvaluatePortfolioCommand(portfolio_id=p.id))
            for p in workspace.portfolio_service.list_portfolios()
        }
        monitoring = _monitor_agreements(workspace, None)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if json_output:
        output_json({
            "applications": [a.model_dump(mode="json") for a in assessments],
            "portfolios": {pid: p.model_dump(mode="json") for pid, p in portfolios.items()},
            "monitoring": {aid: m.model_dump(mode="json") for aid, m in monitoring.items()},
            "events": len(workspace.events),
        }, None)
        return

    console.print(Panel.fit(
        "[bold]ISO 38500 Governance Engine Demo[/bold]\n"
        f"{len(workspace.applications)} applications, {len(workspace.agreements)} agreements, "
        f"{len(workspace.portfolios)} portfolios",
        border_style="blue",
    ))
    display_assessments(workspace, assessments)
    display_portfolios(workspace, portfolios)
    display_monitoring(monitoring)
    console.print(f"\n[dim]{len(workspace.events)} domain events recorded[/dim]")


@main.command("evaluate")
@click.argument("workspace_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--application", "-a", "app_id",
    help="Evaluate a single application"
)
@click.option(
    "--portfolio", "-p", "portfolio_id",
    help="Evaluate the health of a portfolio"
)
@click.option(
    "--evaluator", "-e",
    default="system",
    help="Evaluator label recorded on the evaluation event"
)
@click.option(
    "--out", "-o",
    type=click.Path(path_type=Path),
    help="Output file for JSON results"
)
@click.option(
    "--json-output", "-j",
    is_flag=True,
    help="Output raw JSON instead of formatted text"
)
@click.pass_obj
def evaluate_cmd(
    config: EngineConfig,
    workspace_file: Path,
    app_id: Optional[str],
    portfolio_id: Optional[str],
    evaluator: str,
    out: Optional[Path],
    json_output: bool,
):
    """Evaluate applications or a portfolio in a workspace file.

    Without --application or --portfolio, every application with a
    governance agreement is evaluated.

    Examples:
        governance-engine evaluate workspace.yaml
        governance-engine evaluate workspace.yaml -a erp-core-001
        governance-engine evaluate workspace.yaml -p portfolio-core-business -j
    """
    if app_id and portfolio_id:
        console.print("[red]Error: use either --application or --portfolio, not both[/red]")
        sys.exit(1)

    try:
        workspace = load_workspace(workspace_file, config=config)
        if portfolio_id:
            health = workspace.governance_service.evaluate_portfolio(
                EvaluatePortfolioCommand(portfolio_id=portfolio_id)
            )
            payload: Any = health.model_dump(mode="json")
        else:
            assessments = _evaluate_applications(workspace, app_id, evaluator)
            payload = [a.model_dump(mode="json") for a in assessments]
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if json_output:
        output_json(payload, out)
        return

    if portfolio_id:
        display_portfolios(workspace, {portfolio_id: health})
    else:
        display_assessments(workspace, assessments)
    if out:
        output_json(payload, out)
        console.print(f"\n[green]Results saved to {out}[/green]")


@main.command("monitor")
@click.argument("workspace_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--agreement", "-g", "agreement_id",
    help="Monitor a single governance agreement (default: all)"
)
@click.option(
    "--json-output", "-j",
    is_flag=True,
    help="Output raw JSON instead of formatted text"
)
@click.pass_obj
def monitor_cmd(config: EngineConfig, workspace_file: Path, agreement_id: Optional[str], json_output: bool):
    """Report KPI achievement, compliance scheduling and risk indicators."""
    try:
        workspace = load_workspace(workspace_file, config=config)
        results = _monitor_agreements(workspace, agreement_id)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if json_output:
        output_json({aid: r.model_dump(mode="json") for aid, r in results.items()}, None)
        return
    display_monitoring(results)


@main.command("validate")
@click.argument("workspace_file", type=click.Path(path_type=Path))
def validate_cmd(workspace_file: Path):
    """Validate a workspace file.

    Checks the schema and that every agreement, portfolio member and
    measurement references a record in the file.
    """
    is_valid, issues = validate_workspace(workspace_file)
    if is_valid:
        console.print(f"[green]✓ Workspace valid: {workspace_file}[/green]")
        sys.exit(0)

    console.print(f"[red]✗ Workspace invalid: {workspace_file}[/red]")
    for issue in issues:
        console.print(f"  - {issue}")
    sys.exit(1)


@main.command("inspect")
@click.argument("workspace_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--application", "-a", "app_id",
    help="Show details for a specific application"
)
@click.pass_obj
def inspect_cmd(config: EngineConfig, workspace_file: Path, app_id: Optional[str]):
    """List the applications, agreements and portfolios in a workspace."""
    try:
        workspace = load_workspace(workspace_file, config=config)
        if app_id:
            _print_application_detail(workspace, app_id)
            return
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    table = Table(title="Applications", show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Version")
    table.add_column("Status")
    table.add_column("Agreement")
    for app in workspace.applications.find_all():
        agreement = "-"
        if app.governance_agreement_id and workspace.agreements.exists(app.governance_agreement_id):
            found = workspace.agreements.find_by_id(app.governance_agreement_id)
            agreement = f"{found.id} ({found.status.value})"
        table.add_row(app.id, app.name, app.version or "-", app.status.value, agreement)
    console.print(table)

    portfolios = Table(title="Portfolios", show_header=True, header_style="bold")
    portfolios.add_column("ID", style="cyan", no_wrap=True)
    portfolios.add_column("Name")
    portfolios.add_column("Owner")
    portfolios.add_column("Applications", justify="right")
    for portfolio in workspace.portfolios.find_all():
        portfolios.add_row(portfolio.id, portfolio.name, portfolio.owner, str(len(portfolio.applications)))
    console.print(portfolios)


@main.command("init-config")
@click.option(
    "--out", "-o",
    type=click.Path(path_type=Path),
    default="governance-config.yaml",
    help="Output path for the configuration file"
)
@click.option(
    "--force", "-f",
    is_flag=True,
    help="Overwrite existing config file"
)
def init_config(out: Path, force: bool):
    """Generate a default configuration file.

    Example:
        governance-engine init-config --out my-config.yaml
    """
    if out.exists() and not force:
        console.print(f"[red]Error:[/red] Config file already exists: {out}")
        console.print("Use --force to overwrite")
        sys.exit(1)

    try:
        save_default_config(out)
    except OSError as e:
        console.print(f"[red]Error creating config:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]✓[/green] Config file created: {out}")
    console.print("\nEdit this file to customize:")
    console.print("  • evaluation - Base scores for technical health and business value")
    console.print("  • risk_thresholds - Score and cost levels that raise risk")
    console.print("  • recommendations - Triggers for improvement recommendations")
    console.print("  • direction - Action plan lead time and placeholder owner")
    console.print("\nThen use with: governance-engine --config", str(out), "evaluate workspace.yaml")


# =============================================================================
# Helpers
# =============================================================================


def _evaluate_applications(
    workspace: Workspace, app_id: Optional[str], evaluator: str
) -> list[ApplicationAssessment]:
    # Ungoverned applications cannot be evaluated, so a full run skips them
    ids = [app_id] if app_id else [
        app.id for app in workspace.applications.find_all() if app.governance_agreement_id
    ]
    return [
        workspace.governance_service.evaluate_application(
            EvaluateApplicationCommand(application_id=i, evaluator=evaluator)
        )
        for i in ids
    ]


def _monitor_agreements(workspace: Workspace, agreement_id: Optional[str]) -> dict[str, GovernanceMonitoringResult]:
    ids = [agreement_id] if agreement_id else [a.id for a in workspace.agreements.find_all()]
    return {
        i: workspace.governance_service.monitor_governance(MonitorGovernanceCommand(agreement_id=i))
        for i in ids
    }


def display_assessments(workspace: Workspace, assessments: list[ApplicationAssessment]):
    table = Table(title="Application Assessments", show_header=True, header_style="bold")
    table.add_column("Application", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Risk")
    table.add_column("Code", justify="right")
    table.add_column("Security", justify="right")
    table.add_column("Alignment", justify="right")
    table.add_column("Cost Eff.", justify="right")
    table.add_column("Satisfaction", justify="right")
    table.add_column("Recs", justify="right")

    for a in assessments:
        app = workspace.applications.find_by_id(a.application_id)
        style = RISK_STYLES.get(a.risk_level, "white")
        table.add_row(
            a.application_id,
            app.status.value,
            f"[{style}]{a.risk_level.value}[/{style}]",
            f"{a.technical_health.code_quality}/5",
            f"{a.technical_health.security_score}/5",
            f"{a.business_value.business_alignment:.0f}%",
            f"{a.business_value.cost_efficiency:.0f}%",
            f"{a.business_value.user_satisfaction:.0f}%",
            str(len(a.recommendations)),
        )
    console.print(table)

    recommendations = [(a.application_id, r) for a in assessments for r in a.recommendations]
    if recommendations:
        console.print("\n[bold]Recommendations:[/bold]")
        for application_id, rec in recommendations:
            hours = rec.estimated_effort.total_seconds() / 3600
            console.print(
                f"  [cyan]{application_id}[/cyan] {rec.priority.value.upper()}: {rec.description} "
                f"[dim]({hours:.0f}h, {rec.business_impact})[/dim]"
            )


def display_portfolios(workspace: Workspace, portfolios: dict[str, PortfolioHealthAssessment]):
    table = Table(title="Portfolio Health", show_header=True, header_style="bold")
    table.add_column("Portfolio", style="cyan", no_wrap=True)
    table.add_column("Owner")
    table.add_column("Total", justify="right")
    table.add_column("Active", justify="right")
    table.add_column("Deprecated", justify="right")
    table.add_column("Avg Age (days)", justify="right")
    table.add_column("Risk Distribution")

    for portfolio_id, health in portfolios.items():
        owner = workspace.portfolios.find_by_id(portfolio_id).owner
        distribution = ", ".join(
            f"{level.value}={count}" for level, count in sorted(health.risk_distribution.items(), key=lambda kv: kv[0].value)
        )
        table.add_row(
            portfolio_id,
            owner,
            str(health.total_applications),
            str(health.active_applications),
            str(health.deprecated_applications),
            str(health.average_application_age.days),
            distribution or "-",
        )
    console.print(table)


def display_monitoring(results: dict[str, GovernanceMonitoringResult]):
    for agreement_id, result in results.items():
        console.print(f"\n[bold]{agreement_id}[/bold]")
        schedule = result.compliance_status.monitoring_frequency or "not scheduled"
        console.print(f"  Compliance monitoring: {schedule}")

        console.print(f"  KPIs ({len(result.kpi_measurements)}):")
        for m in result.kpi_measurements:
            mark = "[green]✓ achieved[/green]" if m.achieved else "[red]✗ not achieved[/red]"
            console.print(f"    • {m.kpi_id}: {m.value:.1f}/{m.target:.1f} {mark}")

        indicators = result.risk_status.risk_indicators
        console.print(f"  Risks ({len(indicators)}):")
        for risk in indicators:
            style = RISK_STATUS_STYLES.get(risk.status, "white")
            console.print(
                f"    • {risk.name}: {risk.value:.1f} (threshold: {risk.threshold:.1f}) "
                f"[{style}]{risk.status.value}[/{style}]"
            )


def _print_application_detail(workspace: Workspace, app_id: str):
    app = workspace.applications.find_by_id(app_id)
    console.print(f"\n[bold cyan]{app.name}[/bold cyan]")
    console.print(f"ID: {app.id}")
    console.print(f"Version: {app.version or '-'}")
    console.print(f"Status: {app.status.value}")
    if app.description:
        console.print(f"Description: {app.description}")
    if app.created_at:
        console.print(f"Created: {app.created_at.date().isoformat()}")

    provisions = app.security_provisions
    console.print(
        f"Security: {len(provisions.data_confidentiality)} confidentiality, "
        f"{len(provisions.data_integrity)} integrity, "
        f"{len(provisions.application_authenticity)} authenticity measures"
    )
    portfolios = [p.id for p in workspace.portfolios.find_all() if p.has_application(app.id)]
    console.print(f"Portfolios: {', '.join(portfolios) or '-'}")

    if not app.governance_agreement_id:
        console.print("[yellow]No governance agreement[/yellow]")
        return
    agreement = workspace.agreements.find_by_id(app.governance_agreement_id)
    console.print(f"\n[bold]Agreement:[/bold] {agreement.title}")
    console.print(f"  ID: {agreement.id}  Version: {agreement.version or '-'}  Status: {agreement.status.value}")
    functionality = agreement.strategy.application_catalogue.functionality
    if functionality:
        console.print(f"  Functionality ({len(functionality)}):")
        for f in functionality:
            console.print(f"    • {f.name} [{f.priority.value}]")
    for plan in agreement.direct.action_plans:
        deadline = plan.deadline.date().isoformat() if plan.deadline else "-"
        console.print(f"  Action plan {plan.id}: {plan.name} (due {deadline}, owner {plan.owner})")


def output_json(payload: Any, out_path: Optional[Path]):
    """Output a JSON-ready payload."""
    json_str = json.dumps(payload, indent=2)

    if out_path:
        with open(out_path, "w", encoding="utf-8") as f:
            f.write(json_str)
    else:
        print(json_str)


if __name__ == "__main__":
    main()
