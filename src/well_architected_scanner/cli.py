"""
Well-Architected Scanner CLI
Command-line interface for auditing AWS accounts against the check catalog
"""

import sys
import logging
from datetime import datetime, timezone
from pathlib import Path

import click
from botocore.exceptions import BotoCoreError, ClientError
from rich.console import Console
from rich.table import Table

from . import __version__
from .checks import load_default_checks
from .core.baseline import BaselineComparison, diff
from .core.config import (
    DEFAULT_BACKOFF_BASE, DEFAULT_CACHE_TTL, DEFAULT_MAX_CONCURRENCY,
    DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT, ScanConfig,
)
from .core.engine import ScanEngine
from .core.errors import BaselineError
from .core.framework import CheckStatus, Pillar, Severity
from .core.output import OutputEngine
from .core.provider import AWSProvider
from .core.query import QueryClient
from .core.registry import CheckRegistry
from .core.summary import ScanSummary, summarize


console = Console()

BLOCKING_SEVERITIES = (Severity.CRITICAL, Severity.HIGH)


def build_registry(provider: AWSProvider = None, config: ScanConfig = None):
    """Create the query client and a registry holding the built-in catalog"""
    config = config or ScanConfig()
    query = QueryClient(
        provider,
        max_retries=config.max_retries,
        backoff_base=config.backoff_base,
        cache_ttl=config.cache_ttl,
    )
    return load_default_checks(CheckRegistry(), query)


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, verbose):
    """Well-Architected Scanner for AWS accounts"""
    ctx.ensure_object(dict)

    # Configure logging
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Reduce noise from boto3
    logging.getLogger('boto3').setLevel(logging.WARNING)
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)


@cli.command()
@click.option('--account', '-a', 'accounts', multiple=True,
              help='Account id to scan (repeatable); defaults to the caller account')
@click.option('--profile', help='AWS profile to use')
@click.option('--access-key-id', help='AWS access key ID')
@click.option('--secret-access-key', help='AWS secret access key')
@click.option('--session-token', help='AWS session token')
@click.option('--role-name', help='Role assumed in each scanned account')
@click.option('--external-id', help='External ID for role assumption')
@click.option('--region', default='us-east-1', show_default=True, help='AWS Config region')
@click.option('--pillar', '-p', 'pillars', multiple=True, help='Pillars to include')
@click.option('--check', '-c', 'checks', multiple=True, help='Check ids to include')
@click.option('--exclude-pillar', 'excluded_pillars', multiple=True, help='Pillars to exclude')
@click.option('--exclude-check', 'excluded_checks', multiple=True, help='Check ids to exclude')
@click.option('--timeout', type=float, default=DEFAULT_TIMEOUT, show_default=True,
              help='Timeout per check in seconds')
@click.option('--max-retries', type=int, default=DEFAULT_MAX_RETRIES, show_default=True,
              help='Retries for throttled queries')
@click.option('--backoff-base', type=float, default=DEFAULT_BACKOFF_BASE, show_default=True,
              help='Base of the exponential retry delay in seconds')
@click.option('--cache-ttl', type=float, default=DEFAULT_CACHE_TTL, show_default=True,
              help='Query cache lifetime in seconds')
@click.option('--max-concurrency', type=int, default=DEFAULT_MAX_CONCURRENCY, show_default=True,
              help='Accounts scanned in parallel')
@click.option('--output-dir', '-o', type=click.Path(file_okay=False),
              help='Directory for results.json, summary.json and report.json')
@click.option('--baseline', type=click.Path(dir_okay=False),
              help='Previous results.json to compare against')
@click.option('--quiet', '-q', is_flag=True, help='Quiet mode - no console tables')
def scan(accounts, profile, access_key_id, secret_access_key, session_token,
         role_name, external_id, region, pillars, checks, excluded_pillars,
         excluded_checks, timeout, max_retries, backoff_base, cache_ttl,
         max_concurrency, output_dir, baseline, quiet):
    """Execute a well-architected scan"""

    try:
        config = ScanConfig(
            timeout_per_check=timeout,
            max_retries=max_retries,
            backoff_base=backoff_base,
            cache_ttl=cache_ttl,
            max_concurrency=max_concurrency,
            include_pillars=list(pillars),
            include_checks=list(checks),
            exclude_pillars=list(excluded_pillars),
            exclude_checks=list(excluded_checks),
        )
    except ValueError as e:
        raise click.BadParameter(str(e))

    provider = AWSProvider(
        access_key=access_key_id,
        secret_key=secret_access_key,
        session_token=session_token,
        region=region,
        profile=profile,
        role_name=role_name,
        external_id=external_id,
    )
    try:
        scopes = list(dict.fromkeys(accounts)) or [provider.account_id]
    except (BotoCoreError, ClientError) as e:
        raise click.ClickException(f"Unable to resolve caller account: {e}")

    if not quiet:
        console.print("[bold blue]Well-Architected Scanner[/bold blue]")
        console.print(f"[dim]Scanning accounts: {', '.join(scopes)}[/dim]")

    registry = build_registry(provider, config)
    engine = ScanEngine(registry, config=config, preflight=provider.validate_scope)

    started = datetime.now(timezone.utc)
    scans = engine.scan_many(scopes)
    ordered = {scope: scans[scope] for scope in scopes}
    results = [result for scope_scan in ordered.values() for result in scope_scan.results]
    summary = summarize(results, started)

    comparison = None
    if baseline:
        try:
            comparison = diff({scope: scan.results for scope, scan in ordered.items()}, baseline)
        except BaselineError as e:
            console.print(f"[yellow]Baseline comparison skipped: {e}[/yellow]")

    if output_dir:
        directory = Path(output_dir)
        OutputEngine.save_scan_results(ordered, str(directory / 'results.json'))
        OutputEngine.save_summary(summary, str(directory / 'summary.json'))
        OutputEngine.save_json(
            OutputEngine.format_json(ordered, summary, comparison,
                                     metadata={"accounts": scopes}),
            str(directory / 'report.json'),
        )
        if not quiet:
            console.print(f"[green]Results written to {directory}[/green]")

    if not quiet:
        for scope_scan in ordered.values():
            if not scope_scan.succeeded:
                console.print(f"[red]Account {scope_scan.scope} not scanned: "
                              f"{scope_scan.error}[/red]")
        _display_summary(summary)
        if comparison is not None:
            _display_comparison(comparison)

    # Exit with error code if critical/high checks failed
    blocking = [result for result in results
                if result.status == CheckStatus.FAIL and result.severity in BLOCKING_SEVERITIES]
    if blocking or any(not scope_scan.succeeded for scope_scan in ordered.values()):
        sys.exit(1)


def _display_summary(summary: ScanSummary):
    """Display scan summary in rich format"""
    table = Table(title="Scan Summary", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan", width=20)
    table.add_column("Value", style="green", width=15)

    table.add_row("Total Checks", str(summary.total_checks))
    table.add_row("Passed", str(summary.passed))
    table.add_row("Failed", str(summary.failed))
    table.add_row("Warnings", str(summary.warnings))
    table.add_row("Not Applicable", str(summary.not_applicable))
    table.add_row("Errors", str(summary.errors))
    table.add_row("Compliance", f"{summary.compliance_score:.1f}%")
    console.print(table)

    if summary.by_pillar:
        pillar_table = Table(title="By Pillar", show_header=True, header_style="bold blue")
        pillar_table.add_column("Pillar", style="cyan")
        pillar_table.add_column("Total")
        pillar_table.add_column("Passed", style="green")
        pillar_table.add_column("Failed", style="red")
        pillar_table.add_column("Score")
        for pillar in summary.by_pillar:
            pillar_table.add_row(pillar.pillar, str(pillar.total), str(pillar.passed),
                                 str(pillar.failed), f"{pillar.compliance_score:.1f}%")
        console.print(pillar_table)

    if summary.failed > 0:
        severity_table = Table(title="Failures by Severity", show_header=True, header_style="bold red")
        severity_table.add_column("Severity", style="cyan")
        severity_table.add_column("Count", style="magenta")
        for severity, count in summary.by_severity.items():
            severity_table.add_row(severity.upper(), str(count))
        console.print(severity_table)


def _display_comparison(comparison: BaselineComparison):
    table = Table(title="Changes Since Baseline", show_header=True, header_style="bold yellow")
    table.add_column("Change", style="cyan")
    table.add_column("Account")
    table.add_column("Check")
    table.add_column("Baseline")
    table.add_column("Current")
    buckets = (
        ("[red]New failure[/red]", comparison.new_failures),
        ("[green]Improvement[/green]", comparison.improvements),
        ("[dim]Unclassified[/dim]", comparison.unclassified),
    )
    for label, changes in buckets:
        for change in changes:
            table.add_row(
                label,
                change.scope or "-",
                f"{change.check_id} {change.title}",
                change.baseline_status.value if change.baseline_status else "-",
                change.current_status.value,
            )
    console.print(table)
    console.print(f"[dim]{len(comparison.unchanged)} check(s) unchanged[/dim]")


@cli.command()
@click.option('--pillar', '-p', 'pillars', multiple=True, help='Only list these pillars')
def list_checks(pillars):
    """List all available checks"""
    try:
        selected = {Pillar.parse(pillar) for pillar in pillars}
    except ValueError as e:
        raise click.BadParameter(str(e))

    registry = build_registry()

    table = Table(title="Available Checks", show_header=True, header_style="bold blue")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Pillar")
    table.add_column("Severity")
    table.add_column("Effort")
    table.add_column("Title")
    for check in registry.get_all_checks():
        if selected and check.pillar not in selected:
            continue
        table.add_row(check.id, check.pillar.value, check.severity.value,
                      check.remediation_effort.value, check.title)
    console.print(table)


def main():
    """Main CLI entry point"""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Scan interrupted by user[/yellow]")
        sys.exit(1)


if __name__ == "__main__":
    main()
