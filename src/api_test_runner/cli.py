"""CLI entry point for api-test-runner."""

import logging
from pathlib import Path

import click

from api_test_runner.config import RunConfig, load_config, parse_header_lines
from api_test_runner.errors import ApiTestRunnerError
from api_test_runner.models import SchemaDocument, TestCase, TestResult
from api_test_runner.parser.detect import load_document
from api_test_runner.parser.endpoints import parse_endpoints
from api_test_runner.parser.swagger import extract_test_cases, get_schema_info, parse_schema
from api_test_runner.parser.validator import validate_schema
from api_test_runner.runner.cancel import CancellationToken, stop_on_signals
from api_test_runner.runner.context import ExecutionContext
from api_test_runner.runner.orchestrator import TestRunner
from api_test_runner.runner.results import save_results, summarize

FORMATS = click.Choice(["auto", "schema", "endpoints"])


def _parse_doc(file_path: Path, fmt: str) -> tuple[SchemaDocument | None, list[TestCase]]:
    """Parse an API document into test cases based on format."""
    fmt, text = load_document(file_path, fmt)
    if fmt == "schema":
        document = parse_schema(text)
        return document, extract_test_cases(document)
    return None, parse_endpoints(text)


def _build_context(
    document: SchemaDocument | None,
    config_path: Path | None,
    base_url: str | None,
    headers: tuple[str, ...],
    **overrides,
) -> ExecutionContext:
    config: RunConfig = load_config(config_path)
    updates = {k: v for k, v in overrides.items() if v is not None}
    if base_url:
        updates["base_url"] = base_url
    if headers:
        updates["headers"] = parse_header_lines(headers)
    settings = config.settings.model_copy(update=updates)
    return ExecutionContext(settings=settings, document=document, pools=config.variables)


def _echo_result(result: TestResult) -> None:
    label = "PASS" if result.success else "FAIL"
    method = result.test_case.method or "ANY"
    target = result.request_path or result.test_case.path
    line = f"  {label} {method} {target} -> {result.status} ({result.response_time:.0f} ms)"
    if result.error:
        line += f" {result.error}"
    click.echo(line)


def _report(results: list[TestResult], output: Path | None) -> None:
    for result in results:
        _echo_result(result)
    stats = summarize(results)
    click.echo(f"{stats['total']} executed, {stats['passed']} passed, {stats['failed']} failed.")
    if output:
        save_results(results, output)
        click.echo(f"Results saved to {output}")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """API Test Runner: run HTTP test cases generated from API descriptions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("schema_path", type=click.Path(exists=True, path_type=Path))
def info(schema_path: Path):
    """Show title, version and size of a schema document."""
    try:
        _, text = load_document(schema_path, "schema")
        summary = get_schema_info(text)
    except ApiTestRunnerError as e:
        raise click.ClickException(str(e))
    click.echo(f"{summary.title} {summary.version}")
    if summary.description:
        click.echo(summary.description)
    click.echo(f"{summary.path_count} paths, {summary.method_count} methods")


@main.command()
@click.argument("schema_path", type=click.Path(exists=True, path_type=Path))
def validate(schema_path: Path):
    """Check a schema document for structural problems."""
    _, text = load_document(schema_path, "schema")
    report = validate_schema(text)
    if report.valid:
        click.echo("Schema is valid.")
        return
    for error in report.errors:
        click.echo(f"  {error}")
    raise SystemExit(1)


@main.command(name="list")
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "fmt", default="auto", type=FORMATS, help="Document format.")
def list_cases(doc_path: Path, fmt: str):
    """List the test cases extracted from a document."""
    try:
        _, cases = _parse_doc(doc_path, fmt)
    except ApiTestRunnerError as e:
        raise click.ClickException(str(e))
    for case in cases:
        click.echo(f"{case.key}  expect {case.expected_status}")
        if case.path_variables:
            click.echo(f"    path: {', '.join(case.path_variables)}")
        if case.body_variables:
            click.echo(f"    body: {', '.join(case.body_variables)}")
    click.echo(f"Found {len(cases)} test cases.")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("--base-url", default=None, help="Target base URL (default: $API_BASE_URL).")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="YAML run configuration.")
@click.option("--only", multiple=True, help="Run only cases whose name or path contains this text.")
@click.option("-H", "--header", "headers", multiple=True, help="Header 'Name: value'; replaces the default header set.")
@click.option("--delay", type=int, default=None, help="Delay between requests in ms.")
@click.option("--timeout", type=int, default=None, help="Request timeout in ms.")
@click.option("--random-values/--no-random-values", default=None, help="Fill empty path variables with random tokens.")
@click.option("--format", "fmt", default="auto", type=FORMATS, help="Document format.")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Write results as JSON.")
def run(doc_path, base_url, config_path, only, headers, delay, timeout, random_values, fmt, output):
    """Run every test case of a document against the target."""
    try:
        document, cases = _parse_doc(doc_path, fmt)
        context = _build_context(
            document, config_path, base_url, headers,
            delay_between_requests=delay, timeout=timeout, use_random_values=random_values,
        )
    except ApiTestRunnerError as e:
        raise click.ClickException(str(e))

    click.echo(f"Running {len(cases)} test cases against {context.settings.base_url}...")
    runner = TestRunner()
    with stop_on_signals(CancellationToken()) as token:
        if only:
            results = runner.run_specific(cases, list(only), context, token)
        else:
            results = runner.run_all(cases, context, token)
    if token.cancelled:
        click.echo("Stopped.")
    _report(results, output)


@main.command(name="run-methods")
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.argument("path")
@click.option("--base-url", default=None, help="Target base URL (default: $API_BASE_URL).")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="YAML run configuration.")
@click.option("-H", "--header", "headers", multiple=True, help="Header 'Name: value'; replaces the default header set.")
@click.option("--allow-delete/--no-allow-delete", default=None, help="Include DELETE in the method sweep.")
@click.option("--format", "fmt", default="auto", type=FORMATS, help="Document format.")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Write results as JSON.")
def run_methods(doc_path, path, base_url, config_path, headers, allow_delete, fmt, output):
    """Send one path's request with every HTTP method."""
    try:
        document, cases = _parse_doc(doc_path, fmt)
        context = _build_context(
            document, config_path, base_url, headers,
            allow_delete_in_all_methods=allow_delete,
        )
    except ApiTestRunnerError as e:
        raise click.ClickException(str(e))

    matching = [c for c in cases if c.path == path]
    if not matching:
        raise click.ClickException(f"No test case for path {path}")
    case = next((c for c in matching if c.method is None), matching[0])

    with stop_on_signals(CancellationToken()) as token:
        results = TestRunner().run_all_methods(case, context, token=token)
    _report(results, output)
