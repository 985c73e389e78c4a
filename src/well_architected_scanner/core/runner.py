"""
Runs a single check against a single scope under a wall-clock timeout
"""

import logging
import threading
import time
import traceback
from concurrent.futures import Future, wait

from .config import DEFAULT_TIMEOUT
from .errors import CheckExecutionError, CheckTimeoutError
from .framework import CheckDefinition, CheckResult, CheckStatus

logger = logging.getLogger(__name__)


class CheckRunner:
    """Executes check logic in its own thread and never raises

    A check that overruns its timeout is abandoned: the thread is a daemon
    and is left to finish (or hang) on its own.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout

    def run(self, definition: CheckDefinition, scope: str,
            timeout: float = None) -> CheckResult:
        timeout = self.timeout if timeout is None else timeout
        future: Future = Future()
        worker = threading.Thread(
            target=self._invoke,
            args=(definition, scope, future),
            name=f"check-{definition.id}-{scope}",
            daemon=True,
        )
        started = time.monotonic()
        worker.start()

        wait([future], timeout=timeout)
        if not future.done():
            error = CheckTimeoutError(definition.id, timeout)
            logger.error(f"Check {definition.id} on {scope}: {error}")
            return definition.create_result(
                CheckStatus.ERROR,
                str(error),
                metadata={"scope": scope, "error_type": type(error).__name__,
                          "timeout_seconds": timeout},
            )

        e = future.exception()
        if e is not None:
            error = CheckExecutionError(definition.id, e)
            logger.error(f"Check {definition.id} on {scope}: {error}")
            return definition.create_result(
                CheckStatus.ERROR,
                str(error),
                metadata={
                    "scope": scope,
                    "error_type": type(e).__name__,
                    "error": str(e),
                    "traceback": "".join(traceback.format_exception(type(e), e, e.__traceback__)),
                },
            )

        result = future.result()
        elapsed = time.monotonic() - started
        if not isinstance(result, CheckResult):
            logger.error(f"Check {definition.id} returned {type(result).__name__}")
            return definition.create_result(
                CheckStatus.ERROR,
                f"Check returned {type(result).__name__} instead of a result",
                metadata={"scope": scope, "error_type": CheckExecutionError.__name__},
            )
        logger.info(f"Completed check {definition.id} on {scope}: "
                    f"{result.status.value} ({elapsed:.2f}s)")
        return result

    @staticmethod
    def _invoke(definition: CheckDefinition, scope: str, future: Future):
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(definition.logic(scope))
        except BaseException as e:
            future.set_exception(e)
