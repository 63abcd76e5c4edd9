from __future__ import annotations

import dataclasses
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table

from cfsim_core.domain.errors import CashflowSimError
from cfsim_core.domain.models import CATEGORY_LABELS, FREQUENCY_LABELS, Scenario, SimulationResult
from cfsim_core.io import config as config_io
from cfsim_core.io.store import ScenarioStore
from cfsim_core.services import distributions, engine, presets

app = typer.Typer(help="Monte Carlo cash-flow simulator.")
store_app = typer.Typer(help="Manage locally saved scenarios.")
app.add_typer(store_app, name="store")

logger = logging.getLogger(__name__)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load(path: Path) -> Scenario:
    try:
        return config_io.load_scenario(path)
    except FileNotFoundError as exc:
        raise typer.BadParameter(f"Scenario file not found: {path}") from exc
    except (json.JSONDecodeError, CashflowSimError) as exc:
        raise typer.BadParameter(f"Invalid scenario {path}: {exc}") from exc


def _money(value: float, currency: str) -> str:
    return f"{value:,.0f} {currency}"


def _print_summary(console: Console, result: SimulationResult, scenario: Scenario, goal: Optional[float]) -> None:
    currency = scenario.config.currency
    final = result.final_stats
    dist = result.final_balance_distribution

    console.print(f"\n[bold cyan]== {scenario.name or 'Scenario'} ==[/bold cyan]")
    console.print(
        f"Horizon: {scenario.config.time_horizon_months} months | Iterations: {len(dist)}"
    )
    console.print(
        f"Final wealth: P10=[yellow]{_money(final.p10, currency)}[/yellow], "
        f"P50=[green]{_money(final.p50, currency)}[/green], "
        f"P90=[cyan]{_money(final.p90, currency)}[/cyan]"
    )
    console.print(f"Probability of positive balance: [bold]{result.probability_positive * 100:.1f}%[/bold]")
    if goal is not None and result.probability_goal is not None:
        console.print(
            f"Probability of {_money(goal, currency)}+: [bold]{result.probability_goal * 100:.1f}%[/bold]"
        )
    console.print(
        f"Worst: [red]{_money(dist[0], currency)}[/red] | Mean: {_money(final.mean, currency)} | "
        f"Best: [green]{_money(dist[-1], currency)}[/green]"
    )
    console.print(f"[dim]Simulation completed in {result.run_time_ms:.0f}ms[/dim]")


@app.command()
def example(
    out: Optional[Path] = typer.Option(None, help="Output path for the example scenario JSON"),
):
    """Write the freelancer example scenario."""
    payload = config_io.scenario_to_dict(presets.create_freelancer_example())
    if out:
        config_io.write_json(out, payload)
        typer.echo(f"Example scenario written to {out}")
    else:
        typer.echo(json.dumps(payload, indent=2))


@app.command()
def describe(
    scenario: Path = typer.Option(..., help="Scenario JSON"),
):
    """List a scenario's parameters with their distributions."""
    console = Console()
    loaded = _load(scenario)
    cfg = loaded.config
    table = Table(title=loaded.name or str(scenario))
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Frequency")
    table.add_column("Amount")
    table.add_column("Expected", justify="right")
    table.add_column("Growth")
    table.add_column("Months")
    for p in loaded.parameters:
        months = f"{p.start_month if p.start_month is not None else 0}-"
        months += str(p.end_month) if p.end_month is not None else ""
        table.add_row(
            p.name,
            CATEGORY_LABELS.get(p.category, p.category),
            FREQUENCY_LABELS.get(p.frequency, p.frequency),
            distributions.describe(p.amount),
            f"{distributions.mean(p.amount):,.2f}",
            distributions.describe(p.growth_rate),
            months,
        )
    console.print(table)
    console.print(
        f"Initial balance: {distributions.describe(cfg.initial_balance)} | "
        f"Inflation: {distributions.describe(cfg.inflation_rate)} | "
        f"{cfg.time_horizon_months} months x {cfg.iterations} iterations ({cfg.currency})"
    )


@app.command()
def simulate(
    scenario: Path = typer.Option(..., help="Scenario JSON"),
    iterations: Optional[int] = typer.Option(None, help="Override number of iterations"),
    months: Optional[int] = typer.Option(None, help="Override time horizon in months"),
    goal: Optional[float] = typer.Option(None, help="Goal wealth at end of horizon"),
    seed: Optional[int] = typer.Option(None, help="Random seed"),
    out: Optional[Path] = typer.Option(None, help="Output path for simulation JSON"),
    csv: Optional[Path] = typer.Option(None, help="Output path for monthly percentile CSV"),
):
    """Run the Monte Carlo simulation for a scenario."""
    console = Console()
    loaded = _load(scenario)
    overrides = {}
    if iterations is not None:
        overrides["iterations"] = iterations
    if months is not None:
        overrides["time_horizon_months"] = months
    if overrides:
        loaded = dataclasses.replace(loaded, config=dataclasses.replace(loaded.config, **overrides))
    try:
        engine.validate_config(loaded.config)
    except CashflowSimError as exc:
        raise typer.BadParameter(str(exc)) from exc

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Running simulation...", total=loaded.config.iterations)

        def on_progress(completed: int, total: int) -> None:
            progress.update(task, completed=completed, total=total)

        result = engine.run_simulation(loaded, on_progress=on_progress, goal_amount=goal, seed=seed)

    if out:
        config_io.write_json(out, config_io.result_to_dict(result))
        logger.info("Simulation written to %s", out)
    if csv:
        csv.parent.mkdir(parents=True, exist_ok=True)
        result.to_dataframe().to_csv(csv)
        logger.info("Monthly stats written to %s", csv)
    _print_summary(console, result, loaded, goal)


@store_app.command("list")
def store_list(
    path: Optional[Path] = typer.Option(None, "--store", help="Scenario store file"),
):
    """List saved scenarios."""
    scenarios = ScenarioStore(path).list()
    if not scenarios:
        typer.echo("No saved scenarios.")
        return
    console = Console()
    table = Table()
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Parameters", justify="right")
    table.add_column("Updated")
    for s in scenarios:
        table.add_row(s.id, s.name, str(len(s.parameters)), s.updated_at)
    console.print(table)


@store_app.command("save")
def store_save(
    scenario: Path = typer.Option(..., help="Scenario JSON to save"),
    path: Optional[Path] = typer.Option(None, "--store", help="Scenario store file"),
):
    """Save (or replace) a scenario in the store."""
    saved = ScenarioStore(path).save(_load(scenario))
    typer.echo(f"Saved scenario {saved.id}")


@store_app.command("delete")
def store_delete(
    scenario_id: str = typer.Argument(..., help="ID of the scenario to delete"),
    path: Optional[Path] = typer.Option(None, "--store", help="Scenario store file"),
):
    """Delete a scenario from the store."""
    if not ScenarioStore(path).delete(scenario_id):
        typer.echo(f"No scenario with id {scenario_id}")
        raise typer.Exit(code=1)
    typer.echo(f"Deleted scenario {scenario_id}")


if __name__ == "__main__":
    app()
