"""CLI entry point: load inventories, build graphs and diffs, output clearly."""

import json
from pathlib import Path

import click
import typer

from .config import ConfigError, DiffConfig, find_config, load_config
from .diff import DiffResult, diff
from .format import format_diff, format_graph
from .graph import build_graph
from .inventory import InventoryError, find_duplicates, load_inventory
from .observe import configure_logging, log_diff, log_graph


def _err(msg: str) -> None:
    """Raise a styled error (red box), used for all CLI errors."""
    raise click.BadParameter(msg)


app = typer.Typer(help="Dependency graphs and drift reports for org metadata inventories.")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log graph/diff details to stderr"),
) -> None:
    """Compare org inventory snapshots and plan object load order."""
    configure_logging(verbose)


def _load(path: Path):
    try:
        return load_inventory(path)
    except InventoryError as e:
        _err(str(e))


def _resolve_config(config_path: Path | None) -> DiffConfig:
    path = config_path or find_config(Path.cwd())
    if path is None:
        return DiffConfig()
    try:
        return load_config(path)
    except ConfigError as e:
        _err(str(e))


def _ci_exit(result: DiffResult, config: DiffConfig) -> None:
    """Exit 1 if any category covered by fail_on changed."""
    for c in result.categories:
        if c.has_changes and config.fails(c.kind):
            raise typer.Exit(1)


@app.command("graph")
def graph_cmd(
    inventory_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Scan JSON"),
    json_out: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Show the object dependency graph and load order."""
    inventory = _load(inventory_path)
    graph = build_graph(inventory.objects)
    log_graph(graph, source=str(inventory_path))
    if json_out:
        out = graph.to_dict()
        out["cyclic"] = list(graph.cyclic())
        out["load_cyclic"] = list(graph.load_cyclic())
        typer.echo(json.dumps(out, indent=2))
        return
    typer.echo(format_graph(graph))


@app.command("diff")
def diff_cmd(
    source_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Older scan JSON"),
    target_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Newer scan JSON"),
    json_out: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
    config_path: Path = typer.Option(None, "--config", "-c", exists=True, dir_okay=False, help="Policy YAML"),
    ci: bool = typer.Option(False, "--ci", help="CI mode: exit 1 if drift is detected"),
) -> None:
    """Diff two inventory snapshots: added, removed, modified per category."""
    config = _resolve_config(config_path)
    source = _load(source_path)
    target = _load(target_path)
    result = diff(source, target, tracked=config.tracked, categories=config.categories())
    log_diff(result, source=str(source_path), target=str(target_path))

    if json_out:
        out = result.to_dict()
        out["source"] = {"path": str(source_path), "captured_at": source.provenance.captured_at}
        out["target"] = {"path": str(target_path), "captured_at": target.provenance.captured_at}
        typer.echo(json.dumps(out, indent=2, default=str))
    else:
        typer.echo(format_diff(result, _label(source_path, source), _label(target_path, target)))

    if ci:
        _ci_exit(result, config)


def _label(path: Path, inventory) -> str:
    captured = inventory.provenance.captured_at
    return f"{path.name} ({captured})" if captured else path.name


@app.command("check")
def check_cmd(
    inventory_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Scan JSON"),
) -> None:
    """Validate an inventory: every key unique within its category."""
    inventory = _load(inventory_path)
    dupes = find_duplicates(inventory)
    if not dupes:
        typer.echo("OK: Inventory keys are unique.")
        return
    lines = ["Duplicate keys:"] + [f"  {cat}: {key}" for cat, key in dupes]
    _err("\n".join(lines))


if __name__ == "__main__":
    app()
