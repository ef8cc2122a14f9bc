"""
SlotMorph CLI - Main entry point.

Provides commands for scanning Solidity files for state variables outside a
namespace and migrating them into ERC-7201 namespaced storage.
"""

import difflib
import logging
from pathlib import Path
from typing import Optional

import orjson
import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from slotmorph.config.loader import (
    ConfigurationError,
    apply_overrides,
    create_config_from_args,
    generate_default_config,
    load_config_from_yaml,
)
from slotmorph.config.models import Fix, SlotMorphConfig
from slotmorph.languages.base.plugin import LanguagePlugin
from slotmorph.languages.registry import get_plugin
from slotmorph.languages.solidity.plugin import ParserUnavailableError
from slotmorph.quickfix import (
    AmbiguousContractError,
    InvariantViolation,
    collect_namespace_candidates,
    get_move_all_variables_to_namespace_quick_fix,
)
from slotmorph.workspace.document import OverlappingEditsError, TextDocument, apply_edits

app = typer.Typer(
    name="slotmorph",
    help="Move Solidity state variables into ERC-7201 namespaced storage",
    no_args_is_help=True,
)

console = Console()


# =============================================================================
# Helper Functions
# =============================================================================


def configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(name)s: %(message)s")


def validate_path(path: str, must_exist: bool = True) -> Path:
    """Validate and return a Path object."""
    p = Path(path)
    if must_exist and not p.exists():
        raise typer.BadParameter(f"Path does not exist: {path}")
    return p


def load_config(config: Optional[str], prefix: Optional[str]) -> SlotMorphConfig:
    """Load configuration from YAML if given, otherwise from arguments."""
    if config:
        console.print(f"[cyan]Loading configuration from {config}...[/cyan]")
        return apply_overrides(load_config_from_yaml(Path(config)), prefix=prefix)
    return create_config_from_args(prefix=prefix)


def migrate_document(
    document: TextDocument,
    plugin: LanguagePlugin,
    cfg: SlotMorphConfig,
    contract: Optional[str] = None,
) -> tuple[str, list[Fix]]:
    """
    Apply the namespace fix to every contract of a document, one at a time.

    Each fix is computed against the text produced by the previous one, so
    edit ranges never refer to a stale snapshot.

    Returns:
        Final text and the fixes that were applied
    """
    candidates = collect_namespace_candidates(document, plugin, cfg)
    pending = [c.contract_name for c in candidates if contract is None or c.contract_name == contract]

    fixes: list[Fix] = []
    for contract_name in pending:
        current = next(
            (c for c in collect_namespace_candidates(document, plugin, cfg) if c.contract_name == contract_name),
            None,
        )
        if current is None:
            continue

        fix = get_move_all_variables_to_namespace_quick_fix(
            current.diagnostics,
            cfg.quickfix.title,
            cfg.namespace.prefix,
            contract_name,
            current.variables,
            document,
            plugin=plugin,
            indent=cfg.namespace.indent,
        )
        if fix is None:
            continue

        fixes.append(fix)
        document = TextDocument(document.uri, apply_edits(document, fix.edits_for(document.uri)), document.version + 1)

    return document.get_text(), fixes


def show_diff(path: Path, before: str, after: str) -> None:
    diff = "".join(
        difflib.unified_diff(
            before.splitlines(keepends=True),
            after.splitlines(keepends=True),
            fromfile=f"a/{path.name}",
            tofile=f"b/{path.name}",
        )
    )
    if diff:
        console.print(Syntax(diff, "diff", theme="monokai", line_numbers=False))


# =============================================================================
# Commands
# =============================================================================


@app.command()
def scan(
    source: str = typer.Argument(..., help="Solidity file to scan"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration YAML file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    List state variables that are not in a namespaced storage container.

    Examples:
        slotmorph scan contracts/Box.sol
    """
    configure_logging(verbose)

    try:
        cfg = load_config(config, None)
        path = validate_path(source)
        plugin = get_plugin(cfg.language.language, cfg.language.version)
        document = TextDocument.from_path(path)
        candidates = collect_namespace_candidates(document, plugin, cfg)
    except (ConfigurationError, ParserUnavailableError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not candidates:
        console.print("[green]✓[/green] No variables outside a namespace")
        return

    table = Table(title=f"Namespace candidates in {path.name}")
    table.add_column("Contract", style="cyan")
    table.add_column("Variable", style="bold")
    table.add_column("Declaration")
    table.add_column("Line", justify="right")

    for entry in candidates:
        for variable in entry.variables:
            table.add_row(entry.contract_name, variable.name, variable.content, str(variable.range.start.line + 1))

    console.print(table)


@app.command()
def migrate(
    source: str = typer.Argument(..., help="Solidity file to migrate"),
    contract: Optional[str] = typer.Option(None, "--contract", help="Only migrate this contract"),
    prefix: Optional[str] = typer.Option(None, "--prefix", "-p", help="Namespace id prefix"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration YAML file"),
    write: bool = typer.Option(False, "--write", "-w", help="Write the migrated source back to the file"),
    as_json: bool = typer.Option(False, "--json", help="Print the computed fixes as JSON"),
    diff: bool = typer.Option(True, "--show-diff/--no-diff", help="Show a unified diff of the changes"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Move state variables into ERC-7201 namespaced storage.

    Examples:
        slotmorph migrate contracts/Box.sol --prefix myProject
        slotmorph migrate contracts/Box.sol --contract Box --write
    """
    configure_logging(verbose)

    try:
        cfg = load_config(config, prefix)
        path = validate_path(source)
        plugin = get_plugin(cfg.language.language, cfg.language.version)
        document = TextDocument.from_path(path)
        before = document.get_text()
        after, fixes = migrate_document(document, plugin, cfg, contract)
    except (ConfigurationError, ParserUnavailableError, AmbiguousContractError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    except (InvariantViolation, OverlappingEditsError) as e:
        console.print(f"[bold red]Internal error:[/bold red] {e}")
        raise typer.Exit(2)

    if write and fixes:
        path.write_text(after, encoding="utf-8")

    if as_json:
        payload = [fix.model_dump(mode="json") for fix in fixes]
        typer.echo(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode("utf-8"))
        return

    if not fixes:
        console.print("[yellow]Nothing to migrate.[/yellow]")
        return

    if diff:
        show_diff(path, before, after)

    if write:
        console.print(f"[green]✓[/green] Migrated {len(fixes)} contract(s) in {path}")
    else:
        console.print(f"[cyan]{len(fixes)} fix(es) computed. Use --write to apply.[/cyan]")


@app.command("init-config")
def init_config(
    output: str = typer.Argument("slotmorph.yaml", help="Where to write the configuration file"),
):
    """Generate a default configuration file."""
    output_path = Path(output)
    if output_path.exists() and not typer.confirm(f"{output_path} exists. Overwrite?"):
        raise typer.Abort()
    generate_default_config(output_path)
    console.print(f"[green]✓[/green] Configuration written to {output_path}")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
