#!/usr/bin/env python3
"""CognitionSync - CLI Entry Point."""
import sys
import json
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from __version__ import __version__

console = Console()

SEVERITY_COLORS = {
    "ok": "green",
    "info": "blue",
    "warning": "yellow",
    "danger": "red",
    "critical": "bold white on red",
    "idle": "dim",
}


def _init_components(config_path=None, verbose=False):
    """Lazy initialization of all components."""
    from utils.logger import setup_logging
    from config import load_config, domains_dir
    from alerts.rules_manager import DomainRegistry
    from alerts.channels import ConsoleChannel, FileChannel
    from monitor.control import MasterControl

    config = load_config(config_path)
    setup_logging("DEBUG" if verbose else config["logging"]["level"], config["logging"].get("file"))

    registry = DomainRegistry(domains_dir(config))
    control = MasterControl(
        machine_on=config["automation"]["machine_on"],
        automation_on=config["automation"]["automation_on"],
    )

    channels = []
    if config["alerts"].get("file_path"):
        channels.append(FileChannel(config["alerts"]["file_path"]))

    # Console only if running interactively
    if config["alerts"].get("console", True) and sys.stdout.isatty():
        channels.append(ConsoleChannel(console))

    return {"config": config, "registry": registry, "control": control, "channels": channels}


@click.group()
@click.option("--config", "config_path", default=None, help="Path to config YAML")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(__version__, prog_name="cogsync")
@click.pass_context
def cli(ctx, config_path, verbose):
    """CognitionSync - Rule-driven telemetry monitoring with human-in-the-loop approval."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


def _get_components(ctx):
    if "_components" not in ctx.obj:
        ctx.obj["_components"] = _init_components(ctx.obj.get("config_path"), ctx.obj.get("verbose"))
    return ctx.obj["_components"]


def _get_rule_set(ctx, domain):
    from utils.errors import UnknownDomainError

    c = _get_components(ctx)
    try:
        return c["registry"].get(domain)
    except UnknownDomainError as e:
        console.print(f"[red]{e}[/red]")
        ctx.exit(1)


def _build_monitor(c, rule_set, seed=None):
    from audit.log import AuditLog
    from monitor.generators import TelemetryGenerator
    from monitor.monitor import DomainMonitor

    config = c["config"]
    return DomainMonitor(
        rule_set,
        c["control"],
        generator=TelemetryGenerator(rule_set.domain, seed=seed),
        audit_log=AuditLog(domain=rule_set.domain, capacity=config["audit"]["capacity"]),
        channels=c["channels"],
        history_window=config["monitor"]["history_window"],
    )


def _parse_assignments(assignments):
    """Turn `key=value` strings into a row dict with typed values."""
    from ingest.parser import coerce_cell

    row = {}
    for item in assignments:
        if "=" not in item:
            raise click.BadParameter(f"expected key=value, got {item!r}", param_hint="--set")
        key, value = item.split("=", 1)
        row[key.strip()] = coerce_cell(value)
    return row


def _severity_text(value):
    color = SEVERITY_COLORS.get(value, "")
    return f"[{color}]{value.upper()}[/{color}]" if color else value.upper()


def _print_status(status, title):
    from utils.formatters import format_confidence

    console.print(f"\n[bold]{title}[/bold]  overall: {_severity_text(status.overall_status.value)}")
    if status.derived_scores:
        scores = "  ".join(f"{k}: {v}" for k, v in status.derived_scores.items())
        console.print(f"[dim]{scores}[/dim]")

    if not status.alerts:
        console.print("[green]All clear - no alerts triggered[/green]")
        return

    table = Table(show_header=True)
    table.add_column("Rule")
    table.add_column("Severity")
    table.add_column("Action")
    table.add_column("Confidence", justify="right")
    table.add_column("Reason")
    for a in status.alerts:
        table.add_row(a.rule, _severity_text(a.severity.value), a.action.value,
                      format_confidence(a.confidence), escape(a.reason))
    console.print(table)
    if status.needs_escalation:
        console.print("[bold red]Escalation required: human authorization needed[/bold red]")


def _print_audit(audit_log, limit=20):
    entries = audit_log.all()[:limit]
    if not entries:
        console.print("[dim]Audit log is empty[/dim]")
        return
    table = Table(title=f"Audit Log ({len(audit_log)} entries)", show_header=True)
    table.add_column("Time", style="dim")
    table.add_column("Type")
    table.add_column("Message")
    for e in entries:
        table.add_row(e.time, e.type.value, escape(e.msg))
    console.print(table)


# ──────────────────────────────────────────────────────
# DOMAINS & RULES
# ──────────────────────────────────────────────────────
@cli.command()
@click.pass_context
def domains(ctx):
    """List loaded domains."""
    c = _get_components(ctx)
    table = Table(title="Domains", show_header=True)
    table.add_column("Domain", style="bold")
    table.add_column("Title")
    table.add_column("Interval", justify="right")
    table.add_column("Rules", justify="right")
    table.add_column("Scores")
    for rs in c["registry"]:
        table.add_row(rs.domain, rs.title, f"{rs.interval_seconds}s", str(len(rs.enabled_rules())),
                      ", ".join(s.label or s.name for s in rs.scores))
    console.print(table)


@cli.command()
@click.argument("domain")
@click.pass_context
def rules(ctx, domain):
    """List all rules configured for a domain."""
    rule_set = _get_rule_set(ctx, domain)
    table = Table(title=f"{rule_set.title} Rules", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Severity")
    table.add_column("Action")
    table.add_column("Compliance")
    table.add_column("Enabled")
    for r in rule_set.rules:
        if r.severity_tiers:
            sev = " / ".join(t.severity.value for t in r.severity_tiers) + f" / {r.severity.value}"
        else:
            sev = r.severity.value
        action = r.action.value
        if r.action_by_severity:
            overrides = ", ".join(f"{s.value}: {a.value}" for s, a in r.action_by_severity.items())
            action = f"{action} ({overrides})"
        table.add_row(r.id, r.name, sev, action, r.compliance,
                      "[green]✓[/green]" if r.enabled else "[red]✗[/red]")
    console.print(table)


# ──────────────────────────────────────────────────────
# EVALUATION
# ──────────────────────────────────────────────────────
@cli.command()
@click.argument("domain")
@click.option("--set", "assignments", multiple=True, help="Field value as key=value (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def evaluate(ctx, domain, assignments, as_json):
    """Evaluate one record against a domain's rules and show every rule's outcome."""
    from alerts.aggregator import StatusAggregator
    from alerts.engine import RuleEngine
    from ingest.normalizer import RecordNormalizer

    rule_set = _get_rule_set(ctx, domain)
    row = dict(rule_set.whatif_defaults)
    row.update(_parse_assignments(assignments))
    record = RecordNormalizer(rule_set).normalize(row, source="cli")

    engine = RuleEngine()
    alerts = engine.evaluate(record, rule_set)
    status = StatusAggregator(rule_set).aggregate(alerts, record)

    if as_json:
        click.echo(json.dumps({
            "record": dict(record.fields),
            "overall_status": status.overall_status.value,
            "derived_scores": status.derived_scores,
            "needs_escalation": status.needs_escalation,
            "alerts": [a.to_dict() for a in alerts],
        }, indent=2, default=str))
        return

    table = Table(title=f"{rule_set.title} Rules Test", show_header=True)
    table.add_column("Rule")
    table.add_column("Would Fire")
    table.add_column("Severity")
    table.add_column("Confidence", justify="right")
    table.add_column("Action")
    for r in engine.test_rules(record, rule_set):
        fire_str = "[green]YES[/green]" if r["would_fire"] else "[dim]no[/dim]"
        sev = _severity_text(r["severity"]) if r["severity"] else ""
        conf = f"{r['confidence']}%" if r["confidence"] is not None else ""
        table.add_row(r["name"], fire_str, sev, conf, r["action"])
    console.print(table)
    _print_status(status, "Result")


@cli.command()
@click.argument("domain")
@click.option("--set", "assignments", multiple=True, help="Hypothetical value as key=value (repeatable)")
@click.pass_context
def whatif(ctx, domain, assignments):
    """Preview alerts for hypothetical values without touching any audit log."""
    from alerts.whatif import WhatIfEvaluator
    from utils.formatters import format_value

    rule_set = _get_rule_set(ctx, domain)
    evaluator = WhatIfEvaluator(rule_set)
    for key, value in _parse_assignments(assignments).items():
        evaluator.adjust(key, value)

    params = "  ".join(f"{k}={format_value(v)}" for k, v in evaluator.params.items())
    console.print(f"[dim]{params}[/dim]")
    _print_status(evaluator.preview(), f"What-If: {rule_set.title}")


@cli.command()
@click.argument("domain")
@click.argument("file", type=click.Path())
@click.option("--export", "export_dir", default=None, help="Write the audit export to this directory")
@click.pass_context
def ingest(ctx, domain, file, export_dir):
    """Evaluate an uploaded CSV or JSON dataset row by row."""
    from ingest.parser import parse_file
    from utils.errors import MonitorError

    c = _get_components(ctx)
    rule_set = _get_rule_set(ctx, domain)
    ingest_cfg = c["config"]["ingest"]
    try:
        rows = parse_file(file, max_bytes=ingest_cfg["max_bytes"],
                          allowed_extensions=ingest_cfg["allowed_extensions"])
    except MonitorError as e:
        console.print(f"[red]✗[/red] {e}")
        ctx.exit(1)

    monitor = _build_monitor(c, rule_set)
    results = monitor.load_dataset(rows)

    table = Table(title=f"{rule_set.title} Dataset ({len(results)} rows)", show_header=True)
    table.add_column("Row", justify="right", style="dim")
    table.add_column("Status")
    table.add_column("Alerts")
    for r in results:
        names = ", ".join(a.rule for a in r.status.alerts) or "[dim]-[/dim]"
        table.add_row(str(r.row), _severity_text(r.status.overall_status.value), names)
    console.print(table)

    flagged = sum(1 for r in results if r.status.alerts)
    console.print(f"[bold]{flagged}[/bold] of {len(results)} rows raised alerts")

    if export_dir:
        _export(monitor, export_dir)


# ──────────────────────────────────────────────────────
# LIVE MONITORING
# ──────────────────────────────────────────────────────
def _prompt_decision(monitor):
    """Block until the operator consumes the pending decision."""
    from models.enums import RouterState

    router = monitor.router
    kind = "Escalation" if router.state == RouterState.AWAITING_ESCALATION_APPROVAL else "Approval"
    console.print(f"[bold yellow]{kind} required for {len(router.pending)} alert(s):[/bold yellow]")
    for a in router.pending:
        console.print(f"  {_severity_text(a.severity.value)} {a.action.value}: {a.rule}")

    choices = [cmd.value for cmd in router.available_commands()] + ["note"]
    if monitor.domain == "healthcare":
        choices.append("intervention")
    while router.awaiting:
        choice = click.prompt("Decision", type=click.Choice(choices), default="dismiss")
        if choice in ("note", "intervention"):
            text = click.prompt("Note", default="", show_default=False)
            add = monitor.add_intervention_note if choice == "intervention" else monitor.add_note
            if add(text) is None:
                console.print("[dim]Empty note ignored[/dim]")
            continue
        monitor.router.handle(choice)


@cli.command()
@click.argument("domain")
@click.option("--cycles", default=None, type=int, help="Stop after N cycles (default: run until Ctrl+C)")
@click.option("--interval", default=None, type=float, help="Seconds between cycles (default: domain interval)")
@click.option("--no-automation", is_flag=True, help="Hold every alert for operator approval")
@click.option("--seed", default=None, type=int, help="Seed for synthetic telemetry")
@click.option("--export", "export_dir", default=None, help="Write the audit export here on exit")
@click.pass_context
def watch(ctx, domain, cycles, interval, no_automation, seed, export_dir):
    """Run live monitoring cycles with interactive approval prompts."""
    from monitor.scheduler import MonitorScheduler

    c = _get_components(ctx)
    rule_set = _get_rule_set(ctx, domain)
    control = c["control"]
    if no_automation:
        control.set_automation(False)

    monitor = _build_monitor(c, rule_set, seed=seed)
    scheduler = MonitorScheduler(monitor, interval_seconds=interval)
    control.attach(scheduler)

    def on_cycle(m, status):
        if status is None:
            return
        names = ", ".join(a.rule for a in status.alerts) or "no alerts"
        console.print(f"[dim]{m.history['labels'][-1]}[/dim] {_severity_text(status.overall_status.value)} {names}")
        if m.router.awaiting:
            _prompt_decision(m)

    scheduler.on_cycle(on_cycle)

    auto = "ON" if control.config.automation_on else "OFF"
    console.print(f"[bold]{rule_set.title}[/bold] every {scheduler.interval}s, automation {auto}. Ctrl+C to stop.\n")
    try:
        scheduler.run(max_cycles=cycles)
    except KeyboardInterrupt:
        console.print("\n[dim]Stopping...[/dim]")
    finally:
        control.set_machine(False)

    _print_audit(monitor.audit_log)
    if export_dir:
        _export(monitor, export_dir)


# ──────────────────────────────────────────────────────
# EXPORT
# ──────────────────────────────────────────────────────
def _export(monitor, directory):
    from audit.export import write_export

    path = write_export(monitor.export_audit(), directory)
    console.print(f"[green]Audit log exported to {path}[/green]")
    return path


@cli.command()
@click.argument("domain")
@click.option("--cycles", default=10, type=int, help="Live cycles to run before exporting")
@click.option("--file", "data_file", default=None, type=click.Path(), help="Evaluate a dataset instead of live data")
@click.option("--output", default=None, help="Output directory (default: audit.export_dir)")
@click.option("--seed", default=None, type=int, help="Seed for synthetic telemetry")
@click.pass_context
def export(ctx, domain, cycles, data_file, output, seed):
    """Run a headless session and export its audit log as text."""
    from ingest.parser import parse_file
    from utils.errors import MonitorError

    c = _get_components(ctx)
    rule_set = _get_rule_set(ctx, domain)
    monitor = _build_monitor(c, rule_set, seed=seed)

    if data_file:
        try:
            rows = parse_file(data_file, max_bytes=c["config"]["ingest"]["max_bytes"],
                              allowed_extensions=c["config"]["ingest"]["allowed_extensions"])
        except MonitorError as e:
            console.print(f"[red]✗[/red] {e}")
            ctx.exit(1)
        monitor.load_dataset(rows)
    else:
        for _ in range(cycles):
            monitor.run_cycle()
            # Headless: nobody can authorize, so held decisions are dismissed
            if monitor.router.awaiting:
                monitor.dismiss()

    _export(monitor, output or c["config"]["audit"]["export_dir"])


if __name__ == "__main__":
    cli()
