"""Command-line interface for dupguard."""

import json
from pathlib import Path
from typing import List, Optional, Tuple

import click
import yaml
from rich.console import Console
from rich.table import Table

from dupguard import __version__
from dupguard.cli.errors import ConfigError as CLIConfigError
from dupguard.cli.errors import InputError, handle_errors
from dupguard.config import (
    ConfigError,
    DupguardConfig,
    generate_config_template,
    load_config,
    validate_config,
)
from dupguard.detectors import CrossFileDuplicationDetector, SingleFileDuplicationRule
from dupguard.logging_config import LogContext, configure_logging, get_logger
from dupguard.models import ScanResult
from dupguard.reporters import ConsoleReporter, JSONReporter, SARIFReporter
from dupguard.sources import discover_files, get_staged_files, load_source_units
from dupguard.validation import ValidationError, validate_output_path, validate_project_root

console = Console()
logger = get_logger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="dupguard")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to config file (.duprc or dupguard.toml)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Set logging level (overrides config file)",
)
@click.option(
    "--log-format",
    type=click.Choice(["json", "human"], case_sensitive=False),
    default=None,
    help="Log output format (overrides config file)",
)
@click.option(
    "--log-file",
    type=click.Path(),
    default=None,
    help="Write logs to file (overrides config file)",
)
@click.pass_context
@handle_errors()
def cli(
    ctx: click.Context,
    config: Optional[str],
    log_level: Optional[str],
    log_format: Optional[str],
    log_file: Optional[str],
) -> None:
    """dupguard - find duplicated code blocks before they are committed

    Configuration priority (highest to lowest):
    1. Command-line options
    2. Environment variables (DUPGUARD_*)
    3. Config file (--config, .duprc, dupguard.toml)
    4. Built-in defaults
    """
    try:
        loaded = load_config(config_file=config)
    except ConfigError as e:
        if config:
            raise CLIConfigError(message=str(e), fix=f"Fix or remove {config}")
        console.print(f"[yellow]⚠️  Config error: {e}[/yellow]")
        console.print("[dim]Using default configuration[/dim]\n")
        loaded = DupguardConfig()

    final_log_level = (log_level or loaded.logging.level).upper()
    final_log_format = (log_format or loaded.logging.format).lower()
    final_log_file = log_file or loaded.logging.file

    configure_logging(
        level=final_log_level,
        json_output=(final_log_format == "json"),
        log_file=final_log_file,
    )

    ctx.ensure_object(dict)
    ctx.obj["config"] = loaded


def _relative_to_root(path: Path, root: Path) -> str:
    resolved = path.resolve()
    try:
        return resolved.relative_to(root).as_posix()
    except ValueError:
        raise InputError(
            message=f"Path is outside the project root: {path}",
            hint=f"Project root is {root}",
            fix="Pass --project-root, or run dupguard from the repository root.",
        )


def _collect_files(
    paths: Tuple[str, ...],
    staged: bool,
    root: Path,
    extensions: List[str],
    excluded: List[str],
) -> List[str]:
    """Resolve the command-line inputs into paths relative to the project root."""
    if staged:
        return get_staged_files(root, extensions)

    if not paths:
        return discover_files(root, extensions, excluded)

    files: List[str] = []
    for raw in paths:
        path = Path(raw)
        if not path.exists():
            raise InputError(message=f"Path does not exist: {raw}")
        if path.is_dir():
            prefix = _relative_to_root(path, root)
            for found in discover_files(path, extensions, excluded):
                files.append(found if prefix == "." else f"{prefix}/{found}")
        else:
            files.append(_relative_to_root(path, root))
    return files


def _write_report(result: ScanResult, format: str, output: Optional[str], root: Path) -> None:
    if format == "json":
        reporter = JSONReporter()
    elif format == "sarif":
        reporter = SARIFReporter(repo_path=root)
    else:
        reporter = ConsoleReporter(console=console)

    if output:
        try:
            output_path = validate_output_path(output)
        except ValidationError as e:
            raise InputError(message=e.message, hint=e.suggestion)
        reporter.generate(result, output_path)
        console.print(f"[green]✓ Report written to {output_path}[/green]")
    elif isinstance(reporter, ConsoleReporter):
        reporter.render(result)
    else:
        click.echo(reporter.generate_string(result))


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path())
@click.option("--staged", is_flag=True, default=False, help="Check files staged in git instead of PATHS")
@click.option(
    "--mode",
    type=click.Choice(["batch", "rule"], case_sensitive=False),
    default="batch",
    help="batch: pool all files, report every group; rule: check files one by one, first group each",
)
@click.option("--min-lines", type=int, default=None, help="Block size in lines (overrides config, default: 10)")
@click.option(
    "--min-similarity",
    type=float,
    default=None,
    help="Similarity threshold in percent (overrides config, default: 80)",
)
@click.option("--exclude", "-e", multiple=True, help="Extra path pattern to exclude (repeatable)")
@click.option("--ext", multiple=True, help="File extension to check (repeatable, default: .ts .tsx)")
@click.option(
    "--project-root",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Directory all paths are resolved against (default: current directory)",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["console", "json", "sarif"], case_sensitive=False),
    default="console",
    help="Report format (default: console)",
)
@click.option("--output", "-o", type=click.Path(), default=None, help="Write the report to a file")
@click.option("--fail/--no-fail", default=True, help="Exit with status 1 when duplicates are found")
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=None, help="Worker threads for rule mode")
@click.pass_context
@handle_errors()
def check(
    ctx: click.Context,
    paths: Tuple[str, ...],
    staged: bool,
    mode: str,
    min_lines: Optional[int],
    min_similarity: Optional[float],
    exclude: Tuple[str, ...],
    ext: Tuple[str, ...],
    project_root: Optional[str],
    format: str,
    output: Optional[str],
    fail: bool,
    jobs: Optional[int],
) -> None:
    """Check files for duplicated code blocks.

    With no PATHS, the project root is walked. Directories in PATHS are walked,
    files are checked as given.

    Examples:
        dupguard check                      # walk the current directory
        dupguard check --staged             # pre-commit style
        dupguard check src/ --min-lines 8   # smaller blocks
        dupguard check -f sarif -o dup.sarif
    """
    config: DupguardConfig = ctx.obj["config"]
    configured_excludes = list(config.duplication.excluded_paths)
    config = config.with_overrides(
        duplication={
            "min_lines": min_lines,
            "min_similarity": min_similarity,
            "excluded_paths": configured_excludes + list(exclude) if exclude else None,
            "extensions": list(ext) if ext else None,
            "project_root": project_root,
        }
    )

    for warning in validate_config(config):
        logger.warning(warning)

    try:
        root = validate_project_root(config.duplication.project_root or str(Path.cwd()))
    except ValidationError as e:
        raise InputError(message=e.message, hint=e.suggestion)

    engine_config = config.to_engine_config()
    excluded = list(engine_config.excluded_path_patterns)

    with LogContext(operation="check", mode=mode):
        files = _collect_files(paths, staged, root, config.duplication.extensions, excluded)
        if not files:
            if format.lower() == "console" and not output:
                console.print("[green]✅ No files to check[/green]")
            else:
                _write_report(ScanResult(), format.lower(), output, root)
            return

        logger.info(f"Checking {len(files)} file(s)")
        units = load_source_units(files, root)

        if mode == "rule":
            result = SingleFileDuplicationRule(engine_config).scan_many(units, max_workers=jobs)
        else:
            result = CrossFileDuplicationDetector(engine_config).scan(units)

    _write_report(result, format.lower(), output, root)

    if result.has_duplicates and fail:
        ctx.exit(1)


@cli.command("config")
@click.option(
    "--format",
    "-f",
    type=click.Choice(["yaml", "json", "table"], case_sensitive=False),
    default="table",
    help="Output format (default: table)",
)
@click.pass_context
@handle_errors()
def show_config(ctx: click.Context, format: str) -> None:
    """Display effective configuration from all sources.

    Shows the final configuration after applying the priority chain:
    1. Command-line arguments (highest priority)
    2. Environment variables (DUPGUARD_*)
    3. Config file (.duprc, dupguard.toml)
    4. Built-in defaults (lowest priority)
    """
    config: DupguardConfig = ctx.obj["config"]

    if format == "json":
        click.echo(json.dumps(config.to_dict(), indent=2))
        return
    if format == "yaml":
        click.echo(yaml.dump(config.to_dict(), default_flow_style=False, sort_keys=False))
        return

    dup = config.duplication
    duplication_table = Table(title="Duplication Configuration")
    duplication_table.add_column("Setting", style="cyan")
    duplication_table.add_column("Value", style="green")
    duplication_table.add_row("Min Lines", str(dup.min_lines))
    duplication_table.add_row("Min Similarity (%)", str(dup.min_similarity))
    duplication_table.add_row("Excluded Paths", ", ".join(dup.excluded_paths) or "[dim]defaults only[/dim]")
    duplication_table.add_row("Extensions", ", ".join(dup.extensions))
    duplication_table.add_row("Max Blocks", str(dup.max_blocks))
    duplication_table.add_row("Max Comparisons", str(dup.max_comparisons))
    duplication_table.add_row("Project Root", dup.project_root or "[dim]current directory[/dim]")
    console.print(duplication_table)

    logging_table = Table(title="Logging Configuration")
    logging_table.add_column("Setting", style="cyan")
    logging_table.add_column("Value", style="green")
    logging_table.add_row("Level", config.logging.level)
    logging_table.add_row("Format", config.logging.format)
    logging_table.add_row("File", config.logging.file or "[dim]none[/dim]")
    console.print(logging_table)

    console.print("\n[bold]Configuration Priority:[/bold]")
    console.print("  1. Command-line arguments (highest)")
    console.print("  2. Environment variables (DUPGUARD_*)")
    console.print("  3. Config file (.duprc, dupguard.toml)")
    console.print("  4. Built-in defaults (lowest)\n")


@cli.command()
@click.option(
    "--format",
    "-f",
    type=click.Choice(["yaml", "json", "toml"], case_sensitive=False),
    default="yaml",
    help="Config file format (default: yaml)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default=None,
    help="Output file path (default: .duprc for yaml/json, dupguard.toml for toml)",
)
@click.option(
    "--force",
    is_flag=True,
    default=False,
    help="Overwrite existing config file",
)
@handle_errors()
def init(format: str, output: Optional[str], force: bool) -> None:
    """Initialize a new dupguard configuration file.

    Examples:
        dupguard init                    # Create .duprc (YAML)
        dupguard init -f json            # Create .duprc (JSON)
        dupguard init -f toml            # Create dupguard.toml
    """
    format = format.lower()
    if output:
        output_path = Path(output)
    elif format == "toml":
        output_path = Path("dupguard.toml")
    else:
        output_path = Path(".duprc")

    if output_path.exists() and not force:
        raise CLIConfigError(
            message=f"Config file already exists: {output_path}",
            hint="An existing configuration would be overwritten.",
            fix="dupguard init --force",
        )

    template = generate_config_template(format=format)
    output_path.write_text(template, encoding="utf-8")

    console.print(f"[green]✓ Created config file: {output_path}[/green]")
    console.print("[dim]Environment variables can be referenced using ${VAR_NAME} syntax.[/dim]")


def main() -> None:
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
