"""Test runner: executes TestCases and their variable combinations in order."""

import logging
import time
from enum import Enum
from typing import Any, Callable

from api_test_runner.generator.body import BodyStrategy, guess_body_schemas
from api_test_runner.models import TestCase, TestResult
from api_test_runner.runner.cancel import CancellationToken
from api_test_runner.runner.classifier import classify_response, failed_result
from api_test_runner.runner.combinations import Combination, expand_combinations
from api_test_runner.runner.context import ExecutionContext
from api_test_runner.runner.request import ResolvedValues, build_request, resolve_values
from api_test_runner.runner.transport import RequestsTransport, Transport

logger = logging.getLogger(__name__)

ALL_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "CONNECT", "TRACE")


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"


def methods_for_all_methods_run(allow_delete: bool) -> list[str]:
    return [m for m in ALL_METHODS if allow_delete or m != "DELETE"]


class TestRunner:
    """Runs TestCases sequentially against an injected transport.

    Results are appended in case-then-combination order, both to the
    returned list and to each TestCase's ``results``. A stop request is
    honoured between test cases and between combinations only.
    """

    __test__ = False

    def __init__(
        self,
        transport: Transport | None = None,
        body_strategy: BodyStrategy = guess_body_schemas,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.transport = transport or RequestsTransport()
        self.body_strategy = body_strategy
        self.sleep = sleep
        self.state = RunState.IDLE
        self.results: list[TestResult] = []
        self._token = CancellationToken()

    # -- control ----------------------------------------------------------------

    def stop(self) -> None:
        """Request a cooperative stop of the current run."""
        if self.state is RunState.RUNNING:
            self.state = RunState.STOPPING
        self._token.cancel()

    def _begin(self, token: CancellationToken | None, context: ExecutionContext) -> CancellationToken:
        if self.state is not RunState.IDLE:
            raise RuntimeError("A test run is already in progress")
        if context.settings.workers > 1:
            logger.info("workers=%d requested; requests are executed sequentially", context.settings.workers)
        self._token = token or CancellationToken()
        self.state = RunState.RUNNING
        return self._token

    def _finish(self, results: list[TestResult]) -> list[TestResult]:
        if self._token.cancelled:
            logger.info("Run stopped after %d executions", len(results))
        self.state = RunState.IDLE
        self.results = results
        return results

    # -- entry points -------------------------------------------------------------

    def run_all(
        self,
        cases: list[TestCase],
        context: ExecutionContext,
        token: CancellationToken | None = None,
    ) -> list[TestResult]:
        """Run every case; method-less cases are run with every HTTP method."""
        token = self._begin(token, context)
        results: list[TestResult] = []
        logger.info("Running %d test cases against %s", len(cases), context.settings.base_url)
        try:
            for case in cases:
                if token.cancelled:
                    break
                if case.method is None:
                    results.extend(self._run_methods(case, context, token))
                else:
                    results.extend(self._run_case(case, context, token))
        finally:
            self._finish(results)
        return results

    def run_specific(
        self,
        cases: list[TestCase],
        names: list[str],
        context: ExecutionContext,
        token: CancellationToken | None = None,
    ) -> list[TestResult]:
        """Run the cases whose name or path contains any of ``names``."""
        selected = [c for c in cases if any(n in c.name or n in c.path for n in names)]
        return self.run_all(selected, context, token)

    def run_single(
        self,
        case: TestCase,
        context: ExecutionContext,
        path_values: dict[str, str] | None = None,
        body_values: dict[str, Any] | None = None,
        query_values: dict[str, Any] | None = None,
        token: CancellationToken | None = None,
    ) -> list[TestResult]:
        """Run one case through all of its combinations."""
        token = self._begin(token, context)
        results: list[TestResult] = []
        try:
            if case.method is None:
                results = self._run_methods(case, context, token, path_values, body_values, query_values)
            else:
                results = self._run_case(case, context, token, path_values, body_values, query_values)
        finally:
            self._finish(results)
        return results

    def run_all_methods(
        self,
        case: TestCase,
        context: ExecutionContext,
        path_values: dict[str, str] | None = None,
        body_values: dict[str, Any] | None = None,
        query_values: dict[str, Any] | None = None,
        token: CancellationToken | None = None,
    ) -> list[TestResult]:
        """Send the same resolved request to ``case.path`` with every HTTP method."""
        token = self._begin(token, context)
        results: list[TestResult] = []
        try:
            results = self._run_methods(case, context, token, path_values, body_values, query_values)
        finally:
            self._finish(results)
        return results

    def execute(
        self,
        case: TestCase,
        context: ExecutionContext,
        path_values: dict[str, str] | None = None,
        body_values: dict[str, Any] | None = None,
        query_values: dict[str, Any] | None = None,
    ) -> TestResult:
        """One concrete execution of a case that declares a method."""
        if case.method is None:
            raise ValueError(f"{case.path} has no method; use run_all_methods")
        result = self._send_resolving(
            case, case.method, context, Combination(), path_values, body_values, query_values
        )
        case.results.append(result)
        return result

    # -- loops --------------------------------------------------------------------

    def _run_case(
        self,
        case: TestCase,
        context: ExecutionContext,
        token: CancellationToken,
        path_values: dict[str, str] | None = None,
        body_values: dict[str, Any] | None = None,
        query_values: dict[str, Any] | None = None,
    ) -> list[TestResult]:
        results = []
        for index, combination in enumerate(expand_combinations(case, context.pools)):
            if token.cancelled:
                break
            if index:
                self._delay(context)
            result = self._send_resolving(
                case, case.method, context, combination, path_values, body_values, query_values
            )
            case.results.append(result)
            results.append(result)
        return results

    def _run_methods(
        self,
        case: TestCase,
        context: ExecutionContext,
        token: CancellationToken,
        path_values: dict[str, str] | None = None,
        body_values: dict[str, Any] | None = None,
        query_values: dict[str, Any] | None = None,
    ) -> list[TestResult]:
        try:
            values = resolve_values(
                case, context, None, path_values, body_values, query_values, self.body_strategy
            )
        except Exception as e:
            logger.warning("Cannot resolve values for %s: %s", case.path, e)
            values = ResolvedValues()

        results = []
        methods = methods_for_all_methods_run(context.settings.allow_delete_in_all_methods)
        for index, method in enumerate(methods):
            if token.cancelled:
                break
            if index:
                self._delay(context)
            variant = case.model_copy(update={"method": method, "name": f"{method} {case.path}", "results": []})
            result = self._send(variant, method, values, context)
            variant.results.append(result)
            case.results.append(result)
            results.append(result)
        return results

    def _delay(self, context: ExecutionContext) -> None:
        if context.settings.delay_between_requests > 0:
            self.sleep(context.settings.delay_between_requests / 1000)

    # -- single execution -----------------------------------------------------------

    def _send_resolving(
        self,
        case: TestCase,
        method: str,
        context: ExecutionContext,
        combination: Combination,
        path_values: dict[str, str] | None,
        body_values: dict[str, Any] | None,
        query_values: dict[str, Any] | None,
    ) -> TestResult:
        try:
            values = resolve_values(
                case, context, combination, path_values, body_values, query_values, self.body_strategy
            )
        except Exception as e:
            logger.warning("%s %s failed before sending: %s", method, case.path, e)
            return failed_result(case.ref(), str(e), 0.0, combination.as_dict())
        return self._send(case, method, values, context)

    def _send(self, case: TestCase, method: str, values: ResolvedValues, context: ExecutionContext) -> TestResult:
        ref = case.ref()
        request = None
        start = time.perf_counter()
        try:
            request = build_request(method, case, values, context)
            response = self.transport.send(request)
            elapsed = (time.perf_counter() - start) * 1000
            logger.debug("%s %s -> %d (%.0f ms)", method, request.path, response.status, elapsed)
            return classify_response(ref, request, response, elapsed, values.combination, values.body)
        except Exception as e:
            elapsed = (time.perf_counter() - start) * 1000
            logger.warning("%s %s failed: %s", method, case.path, e)
            return failed_result(ref, str(e), elapsed, values.combination, request, values.body)
