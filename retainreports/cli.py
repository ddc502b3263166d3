"""
retain-reports CLI

Parse a cpanm build.log and keep the test reports on disk
"""
import click
from pathlib import Path
from rich.console import Console
from rich.table import Table

from retainreports import __version__
from retainreports.reporter import RetainReporter
from retainreports.settings import RetainSettings
from retainreports.store import summarize_reports
from retainreports.uri import parse_uri
from retainreports.utils import RetainReportsError, SkipEventError, get_logger, setup_logging

console = Console()
logger = get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════
# MAIN CLI GROUP
# ═══════════════════════════════════════════════════════════════════

@click.group()
@click.version_option(version=__version__)
@click.option('--log-level', default=None, help='Logging level (default from settings)')
@click.pass_context
def main(ctx, log_level):
    """
    retain-reports - retain cpanm test reports on disk

    Reads the build.log written by cpanm and writes one
    <author>.<dist>.log.json report per tested distribution.
    """
    ctx.ensure_object(dict)
    ctx.obj['log_level'] = log_level


# ═══════════════════════════════════════════════════════════════════
# RUN COMMAND
# ═══════════════════════════════════════════════════════════════════

@main.command()
@click.option('--report-dir', '-o', type=click.Path(file_okay=False, path_type=Path), help='Directory for report files')
@click.option('--build-dir', type=click.Path(file_okay=False, path_type=Path), help='cpanm home (default $PERL_CPANM_HOME or ~/.cpanm)')
@click.option('--build-log', type=click.Path(dir_okay=False, path_type=Path), help='build.log to parse')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False, path_type=Path), help='YAML settings file')
@click.option('--force', is_flag=True, help='Parse build.log regardless of its age')
@click.option('--quiet', '-q', is_flag=True, help='Do not report skipped distributions')
@click.option('--verbose', '-v', is_flag=True, help='Report every retained file')
@click.option('--transmit', is_flag=True, help='Hand reports to the submission client')
@click.pass_context
def run(ctx, report_dir, build_dir, build_log, config_path, force, quiet, verbose, transmit):
    """Parse build.log and retain a report per distribution"""
    overrides = {
        'report_dir': report_dir,
        'build_dir': build_dir,
        'build_logfile': build_log,
        'force': force,
        'quiet': quiet,
        'verbose': verbose,
        'transmit': transmit,
    }
    # unset flags arrive as False and must not mask env or YAML values
    overrides = {k: v for k, v in overrides.items() if v not in (None, False)}
    try:
        if config_path:
            settings = RetainSettings.from_yaml(config_path, **overrides)
        else:
            settings = RetainSettings(**overrides)
    except ValueError as e:
        console.print(f"\n[red]✗ Invalid settings: {e}[/red]")
        raise SystemExit(2)

    setup_logging(ctx.obj.get('log_level') or settings.log_level, settings.log_file)

    if settings.report_dir is None:
        console.print("\n[red]✗ No report directory given (--report-dir or RETAIN_REPORT_DIR)[/red]")
        raise SystemExit(2)

    try:
        reporter = RetainReporter(settings)
        with console.status(f"[bold green]Parsing {settings.log_path}..."):
            summary = reporter.run()
    except RetainReportsError as e:
        console.print(f"\n[red]✗ Error: {e}[/red]")
        raise SystemExit(1)

    table = Table(title="Retained Reports")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="magenta")
    table.add_row("Written", str(len(summary.written)))
    table.add_row("Skipped", str(len(summary.skipped)))
    if settings.transmit:
        table.add_row("Submitted", str(summary.submitted))
    console.print(table)

    console.print(f"\n[green]✓ Reports in {reporter.get_report_dir()}[/green]")


# ═══════════════════════════════════════════════════════════════════
# INSPECTION COMMANDS
# ═══════════════════════════════════════════════════════════════════

@main.command('parse-uri')
@click.argument('locator')
def parse_uri_command(locator):
    """Show the identity fields derived from a locator"""
    try:
        identifier = parse_uri(locator)
    except SkipEventError as e:
        console.print(f"[yellow]Rejected:[/yellow] {e}")
        raise SystemExit(1)

    table = Table(title="Resource Identifier")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="magenta")
    for key, value in identifier.to_dict().items():
        table.add_row(key, "" if value is None else str(value))
    console.print(table)


@main.command()
@click.argument('report_dir', type=click.Path(file_okay=False, path_type=Path))
def summary(report_dir):
    """Count retained reports by grade"""
    try:
        counts = summarize_reports(report_dir)
    except RetainReportsError as e:
        console.print(f"\n[red]✗ Error: {e}[/red]")
        raise SystemExit(1)

    table = Table(title=f"Reports in {report_dir}")
    table.add_column("Grade", style="cyan")
    table.add_column("Reports", style="magenta")
    for grade, count in sorted(counts.items()):
        table.add_row(grade, str(count))
    table.add_row("TOTAL", str(sum(counts.values())))
    console.print(table)


# ═══════════════════════════════════════════════════════════════════
# ENTRY POINT
# ═══════════════════════════════════════════════════════════════════

if __name__ == '__main__':
    main()
