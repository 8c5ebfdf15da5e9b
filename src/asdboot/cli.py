"""asdboot CLI - Typer-based command-line interface.

Every named pipeline is a command of its own:

    asdboot initialize-asd-reserve --network localhost
    asdboot antei-setup --network localhost --signer deployer
"""

import json
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from asdboot.core.catalog import PIPELINE_DESCRIPTIONS, PipelineBuilder
from asdboot.core.errors import AsdbootError, ConfigurationError, PipelineDefinitionError
from asdboot.core.models import RunReport, StepStatus
from asdboot.core.runner import Runner
from asdboot.observability.logging import enable_structured_logging

app = typer.Typer(
    name="asdboot",
    help="asdboot - bootstrap pipelines that bring ASD live in a lending-protocol deployment",
    add_completion=False,
)
console = Console()

EXIT_FAILED = 1
EXIT_CONFIG = 2

STATUS_STYLE = {
    StepStatus.COMPLETED: ("green", "✓"),
    StepStatus.FAILED: ("red", "✗"),
    StepStatus.SKIPPED: ("yellow", "–"),
    StepStatus.RUNNING: ("cyan", "…"),
    StepStatus.PENDING: ("dim", "·"),
}


def make_runner(project_root: Path, runtime_vars: dict[str, str]) -> Runner:
    return Runner(project_root, runtime_vars=runtime_vars)


def parse_vars(vars: list[str]) -> dict[str, str]:
    runtime_vars = {}
    for var in vars:
        if "=" not in var:
            console.print("[red]Error: Invalid --vars format. Use: --vars key=value[/red]")
            raise typer.Exit(code=EXIT_CONFIG)
        key, value = var.split("=", 1)
        runtime_vars[key] = value
    return runtime_vars


def print_report(report: RunReport):
    console.print("\n[bold]Run Summary:[/bold]")
    table = Table(show_header=True, header_style="bold")
    table.add_column("Step", style="cyan")
    table.add_column("Status")
    table.add_column("Reason")
    table.add_column("Tx", justify="right")
    table.add_column("Duration", justify="right")

    for name, outcome in report.steps.items():
        color, mark = STATUS_STYLE[outcome.status]
        status = outcome.status.value
        if outcome.already_applied:
            status += " (already applied)"
        table.add_row(
            name,
            f"[{color}]{mark} {status}[/{color}]",
            outcome.reason.value if outcome.reason else "",
            str(outcome.transactions),
            f"{outcome.duration_seconds:.2f}s",
        )

    console.print(table)

    for name, outcome in report.steps.items():
        if outcome.status == StepStatus.FAILED and outcome.error:
            console.print(f"  [red]{name}[/red]: {outcome.error}")


def run_pipeline(
    pipeline: str,
    network: Optional[str],
    signer: str,
    confirmations: Optional[int],
    timeout: Optional[float],
    max_workers: Optional[int],
    vars: list[str],
    report_path: Optional[Path],
    log_json: bool,
):
    """Run a named pipeline and exit with its status."""
    if log_json:
        enable_structured_logging(output=sys.stderr)

    runtime_vars = parse_vars(vars)

    try:
        runner = make_runner(Path.cwd(), runtime_vars)
        report = runner.run(
            pipeline,
            network=network,
            signer=signer,
            confirmations=confirmations,
            tx_timeout=timeout,
            max_workers=max_workers,
        )
    except (ConfigurationError, PipelineDefinitionError) as e:
        console.print(f"[red]✗ Configuration error: {str(e)}[/red]")
        raise typer.Exit(code=EXIT_CONFIG)

    print_report(report)

    if report_path is not None:
        report_path.write_text(json.dumps(report.to_dict(), indent=2))
        console.print(f"\n📊 Run report saved to: {report_path}")

    if report.succeeded:
        console.print("\n[green]✓ Pipeline completed successfully![/green]")
    else:
        console.print("\n[red]✗ Pipeline did not complete[/red]")
        raise typer.Exit(code=EXIT_FAILED)


def _pipeline_command(pipeline: str):
    def command(
        network: Optional[str] = typer.Option(None, "--network", "-n", help="Network from asdboot.yaml"),
        signer: str = typer.Option("deployer", "--signer", "-s", help="Named account, account index or address"),
        confirmations: Optional[int] = typer.Option(None, "--confirmations", help="Confirmations per transaction"),
        timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-transaction timeout in seconds"),
        max_workers: Optional[int] = typer.Option(None, "--max-workers", help="Steps executed concurrently"),
        vars: list[str] = typer.Option([], "--vars", help="Runtime variables (key=value)"),
        report: Optional[Path] = typer.Option(None, "--report", help="Write the JSON run report to this file"),
        log_json: bool = typer.Option(False, "--log-json", help="Emit structured JSON logs to stderr"),
    ):
        run_pipeline(pipeline, network, signer, confirmations, timeout, max_workers, vars, report, log_json)

    command.__name__ = pipeline.replace("-", "_")
    command.__doc__ = PIPELINE_DESCRIPTIONS[pipeline]
    return command


for _name in PIPELINE_DESCRIPTIONS:
    app.command(name=_name)(_pipeline_command(_name))


@app.command()
def run(
    select: str = typer.Option(..., "--select", help="Pipeline name to run"),
    network: Optional[str] = typer.Option(None, "--network", "-n", help="Network from asdboot.yaml"),
    signer: str = typer.Option("deployer", "--signer", "-s", help="Named account, account index or address"),
    confirmations: Optional[int] = typer.Option(None, "--confirmations", help="Confirmations per transaction"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-transaction timeout in seconds"),
    max_workers: Optional[int] = typer.Option(None, "--max-workers", help="Steps executed concurrently"),
    vars: list[str] = typer.Option([], "--vars", help="Runtime variables (key=value)"),
    report: Optional[Path] = typer.Option(None, "--report", help="Write the JSON run report to this file"),
    log_json: bool = typer.Option(False, "--log-json", help="Emit structured JSON logs to stderr"),
):
    """Run a pipeline by name."""
    run_pipeline(select, network, signer, confirmations, timeout, max_workers, vars, report, log_json)


@app.command(name="list")
def list_pipelines():
    """List the available pipelines."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Pipeline", style="cyan")
    table.add_column("Description")
    for name, description in PIPELINE_DESCRIPTIONS.items():
        table.add_row(name, description)
    console.print(table)


@app.command()
def dag(
    pipeline: str = typer.Argument(..., help="Pipeline name"),
    mermaid: bool = typer.Option(False, "--mermaid", help="Output Mermaid diagram format"),
):
    """Visualize a pipeline's step DAG."""
    try:
        definition = PipelineBuilder().build(pipeline).dag
    except AsdbootError as e:
        console.print(f"[red]✗ {str(e)}[/red]")
        raise typer.Exit(code=EXIT_CONFIG)

    if mermaid:
        console.print("```mermaid")
        console.print("graph TD")
        for step_name, parents in definition.parent_map.items():
            safe_step = step_name.replace("-", "_")
            console.print(f"    {safe_step}[{step_name}]", markup=False)
            for parent in parents:
                console.print(f"    {parent.replace('-', '_')} --> {safe_step}")
        console.print("```")
        return

    console.print(f"[bold]DAG for pipeline: {pipeline}[/bold]\n")
    console.print(f"Total steps: {len(definition.parent_map)}")
    console.print(f"Execution batches: {len(definition.execution_batches)}\n")

    console.print("[bold]Execution Order:[/bold]")
    for i, batch in enumerate(definition.execution_batches, 1):
        console.print(f"  Batch {i}: {', '.join(batch)}")

    console.print("\n[bold]Dependencies:[/bold]")
    for step_name, parents in definition.parent_map.items():
        if parents:
            console.print(f"  {step_name} depends on: {', '.join(parents)}")
        else:
            console.print(f"  {step_name} (no dependencies)")


@app.command()
def debug(
    network: Optional[str] = typer.Option(None, "--network", "-n", help="Network from asdboot.yaml"),
    vars: list[str] = typer.Option([], "--vars", help="Runtime variables (key=value)"),
):
    """Check configuration, adapters and the connection for a network."""
    runtime_vars = parse_vars(vars)
    runner = make_runner(Path.cwd(), runtime_vars)

    try:
        summary = runner.config_loader.describe()
        network_name, network_config = runner.config_loader.resolve_network(network)
    except ConfigurationError as e:
        console.print(f"[red]✗ Configuration error: {str(e)}[/red]")
        raise typer.Exit(code=EXIT_CONFIG)

    console.print(f"[bold]Debugging asdboot configuration for network: {network_name}[/bold]\n")
    console.print(f"  Config: {summary['source']}")
    console.print(f"  Networks: {', '.join(summary['networks'])}")
    console.print(f"  Named accounts: {summary['named_accounts']}")
    console.print(f"  RPC URL: {network_config.url}")
    if network_config.is_fork:
        console.print(f"  Fork pinned at block: {network_config.forking.block_number}")

    console.print("\n[bold]Installed Adapters:[/bold]")
    installed = runner.plugins.list_installed()
    for group in ("asdboot.gateways", "asdboot.artifact_registries"):
        adapters = installed.get(group, [])
        if adapters:
            console.print(f"  {group}: [green]{', '.join(adapters)}[/green]")
        else:
            console.print(f"  {group}: [yellow](none)[/yellow]")

    console.print("\n[bold]Node Connection:[/bold]")
    try:
        gateway = runner.make_gateway(network_config)
        console.print(f"  [green]✓[/green] Chain id {gateway.chain_id()}, block {gateway.block_number()}")
        console.print(f"  Accounts: {len(gateway.accounts())}")
    except Exception as e:
        console.print(f"  [red]✗[/red] Connection failed: {str(e)}")
        raise typer.Exit(code=EXIT_FAILED)

    console.print("\n[green]✓ Debug check complete[/green]")


@app.command()
def version():
    """Show asdboot version."""
    from asdboot import __version__
    console.print(f"asdboot version: {__version__}")


if __name__ == "__main__":
    app()
