# === FILE: a11y_scout/cli.py ===
#!/usr/bin/env python3
"""
Command-line entry point for the a11y-scout accessibility scanner.

Commands:
  scan      Crawl the site, test every page, group violations and sync issues
  test      Test given URLs (or the URLs named in a ticket file) without crawling
  audit     Report open issues with duplicate or unreadable signature blocks
  config    Show the effective configuration (token masked)

Global options:
  --config PATH       YAML/JSON config (default: configs/default.yaml, or env only)
  --limit INT         Max pages to scan (overrides max_pages)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Also log to this file (logs always go to stderr)
  --log-format FORMAT Log format (e.g. "%(asctime)s %(levelname)s %(message)s")

scan options:
  --json PATH         Save the JSON report
  --html PATH         Save the HTML report
  --template DIR      Directory with a custom report.html Jinja2 template
  --pretty            Indent the JSON output
  --scan-timeout SEC  Timeout for the whole run (seconds)
  --no-issues         Skip issue reconciliation
  --step-output PATH  Append CI step outputs (defaults to $GITHUB_OUTPUT)
  --summary-issue N   Comment a run summary on issue or pull request N

test options:
  URL...              Pages to test
  --ticket PATH       Ticket or markdown file to take URLs and WCAG details from
  --rule ID           Only run this rule (repeatable)
  --selector CSS      Only test inside this selector (repeatable)
  --json PATH         Save the JSON report
  --markdown PATH     Save the Markdown report

Also:
  --version, -v       Show the a11y-scout version

Example:
  a11y-scout --limit 20 scan --json reports/a11y.json --pretty
  a11y-scout test --ticket WEB-7.md --rule color-contrast --markdown WEB-7-report.md
"""
import asyncio
import json
import os
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from a11y_scout import __version__
from a11y_scout.config import load_config
from a11y_scout.engine import run_audit, run_targeted_test, start_scan
from a11y_scout.errors import ConfigError, ReconciliationError, ScoutError
from a11y_scout.logger import init_logging
from a11y_scout.report.html_report import render_html
from a11y_scout.report.json_report import render_json
from a11y_scout.report.markdown_report import render_markdown
from a11y_scout.report.step_output import write_step_output
from a11y_scout.ticket import read_ticket

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='a11y-scout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Path to the YAML/JSON configuration file.'
)
@click.option(
    '--limit', '-l', 'limit',
    type=click.IntRange(min=1),
    default=None,
    help='Max pages to scan (overrides max_pages)'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Also write the log to this file'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Log format string'
)
@click.pass_context
def cli(ctx, config_path, limit, log_level, log_file, log_format):
    """a11y-scout command group."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path, os.environ)
    except (OSError, ValueError, TypeError, ValidationError, ConfigError) as e:
        print_error(f'Failed to load configuration: {e}')
    if limit is not None:
        cfg = cfg.model_copy(update={'max_pages': limit})
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('scan', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the JSON report to a file'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the HTML report to a file'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Directory with a report.html Jinja2 template'
)
@click.option(
    '--pretty', is_flag=True,
    help='Indent the JSON output (2 spaces)'
)
@click.option(
    '--scan-timeout', 'scan_timeout',
    type=float,
    default=None,
    help='Timeout for the whole scan (seconds)'
)
@click.option(
    '--no-issues', 'no_issues', is_flag=True,
    help='Do not create, update or close tracker issues'
)
@click.option(
    '--step-output', 'step_output',
    default=None,
    envvar='GITHUB_OUTPUT',
    type=click.Path(dir_okay=False, path_type=Path),
    help='Append summary key=value lines (CI step outputs)'
)
@click.option(
    '--summary-issue', 'summary_issue',
    type=click.IntRange(min=1),
    default=None,
    help='Comment a run summary on this issue or pull request number'
)
@click.pass_context
def scan(ctx, json_output, html_output, template_dir, pretty, scan_timeout, no_issues, step_output, summary_issue):
    """Run the scan and produce reports."""
    cfg = ctx.obj['config']
    click.echo(f'Starting scan with config: {cfg.base_url}', err=True)
    try:
        kwargs = {'reconcile': not no_issues}
        if summary_issue is not None:
            kwargs['summary_issue'] = summary_issue
        coro = start_scan(cfg, **kwargs)
        if scan_timeout:
            report = asyncio.run(asyncio.wait_for(coro, timeout=scan_timeout))
        else:
            report = asyncio.run(coro)
    except asyncio.TimeoutError:
        print_error(f'Scan did not finish within {scan_timeout} seconds')
    except ReconciliationError as e:
        click.echo(f'Issues changed before the failure: {len(e.partial)}', err=True)
        for result in e.partial:
            click.echo(f'  {result.action.value} #{result.issue_id}', err=True)
        print_error(f'Issue reconciliation failed: {e}')
    except ScoutError as e:
        print_error(f'Scan failed: {e}')

    summary = report.summary
    click.echo(
        f'Pages: {summary.pages_scanned} scanned, {summary.pages_failed} failed; '
        f'violations: {summary.total_violations} total, {summary.unique_violations} unique; '
        f'issues: {summary.issues_created} created, {summary.issues_updated} updated, '
        f'{summary.issues_closed} closed',
        err=True,
    )

    if step_output:
        try:
            write_step_output(summary, step_output)
        except OSError as e:
            print_error(f'Failed to write step output: {e}')

    # Nothing to save: print to stdout
    if not json_output and not html_output:
        click.echo(report.json(pretty=pretty))
        return

    if json_output:
        try:
            saved_json = render_json(report, json_output, pretty=pretty)
            click.echo(f'JSON report: {saved_json}')
        except OSError as e:
            print_error(f'Failed to save JSON report: {e}')

    if html_output:
        try:
            saved_html = render_html(report, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except OSError as e:
            print_error(f'Failed to save HTML report: {e}')


@cli.command('test', context_settings=CONTEXT_SETTINGS)
@click.argument('urls', nargs=-1)
@click.option(
    '--ticket', '-T', 'ticket_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Ticket or markdown file naming the pages and WCAG criterion'
)
@click.option('--rule', '-r', 'rules', multiple=True, help='Only run this rule id (repeatable)')
@click.option('--selector', '-s', 'selectors', multiple=True, help='Only test inside this CSS selector (repeatable)')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the JSON report to a file'
)
@click.option(
    '--markdown', '-m', 'markdown_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the Markdown report to a file'
)
@click.option('--pretty', is_flag=True, help='Indent the JSON output (2 spaces)')
@click.pass_context
def test_urls(ctx, urls, ticket_path, rules, selectors, json_output, markdown_output, pretty):
    """Test the given URLs, or those named in a ticket, without crawling."""
    cfg = ctx.obj['config']
    ticket = None
    if ticket_path is not None:
        try:
            ticket = read_ticket(ticket_path)
        except (OSError, UnicodeDecodeError) as e:
            print_error(f'Failed to read ticket: {e}')
        if ticket.wcag:
            click.echo(f'WCAG: {ticket.wcag.criterion} {ticket.wcag.name}', err=True)
        if ticket.conformance:
            click.echo(f'Conformance: Level {ticket.conformance}', err=True)
        click.echo(f'Parsed {len(ticket.urls)} URL(s) from {ticket_path}', err=True)
    if not urls and not (ticket and ticket.urls):
        print_error('No URLs to test: pass URLs or a --ticket that names some')

    try:
        report = asyncio.run(
            run_targeted_test(cfg, list(urls), rules=list(rules), selectors=list(selectors), ticket=ticket)
        )
    except ScoutError as e:
        print_error(f'Test failed: {e}')

    summary = report.summary()
    click.echo(
        f'URLs: {summary["urls_tested"]} tested, {summary["pages_failed"]} failed; '
        f'violations: {summary["total_violations"]} '
        f'({summary["critical"]} critical, {summary["serious"]} serious, '
        f'{summary["moderate"]} moderate, {summary["minor"]} minor)',
        err=True,
    )

    if not json_output and not markdown_output:
        click.echo(report.json(pretty=pretty))
        return

    if json_output:
        try:
            click.echo(f'JSON report: {render_json(report, json_output, pretty=pretty)}')
        except OSError as e:
            print_error(f'Failed to save JSON report: {e}')

    if markdown_output:
        try:
            click.echo(f'Markdown report: {render_markdown(report, markdown_output)}')
        except OSError as e:
            print_error(f'Failed to save Markdown report: {e}')


@cli.command('audit', context_settings=CONTEXT_SETTINGS)
@click.option('--pretty', is_flag=True, help='Indent the JSON output (2 spaces)')
@click.pass_context
def audit(ctx, pretty):
    """List open issues sharing a signature or carrying an unreadable one."""
    cfg = ctx.obj['config']
    try:
        report = asyncio.run(run_audit(cfg))
    except ScoutError as e:
        print_error(f'Audit failed: {e}')
    click.echo(json.dumps(report.to_dict(), indent=2 if pretty else None))
    if not report.clean:
        sys.exit(2)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the current configuration as JSON."""
    cfg = ctx.obj['config']
    data = cfg.model_dump(mode='json')
    if data.get('tracker') and data['tracker'].get('token'):
        data['tracker']['token'] = '***'
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


# expose these names at module level for test monkey-patching
cli.start_scan = start_scan
cli.render_json = render_json
cli.render_html = render_html
cli.run_targeted_test = run_targeted_test

if __name__ == "__main__":
    cli()
