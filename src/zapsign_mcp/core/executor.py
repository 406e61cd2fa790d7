"""Single-attempt tool invocation with timing and exception containment."""

from __future__ import annotations

import inspect
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from .exceptions import MCPError, ToolExecutionError, UpstreamServiceError
from .tool_registry import ToolDescriptor

logger = logging.getLogger(__name__)

# Keys of the failure value built by ZapSignTool.error_result
SOFT_ERROR_KEYS = frozenset({"error", "details", "status_code"})


def is_soft_error(value: Any) -> bool:
    """True when ``value`` is a handler-reported failure.

    Only a mapping with a string ``error`` message and nothing beyond
    ``details`` and ``status_code`` qualifies; upstream payloads that merely
    contain an ``error`` field are ordinary results.
    """
    return isinstance(value, Mapping) and isinstance(value.get("error"), str) and set(value) <= SOFT_ERROR_KEYS


@dataclass(frozen=True)
class ExecutionResult:
    """Value returned by a handler plus how long it took."""

    value: Any
    duration_ms: float

    @property
    def is_soft_error(self) -> bool:
        return is_soft_error(self.value)


class ToolExecutor:
    """Invoke tool handlers.

    No retries and no timeout are applied; a handler that hangs only stalls the
    caller that awaited it.
    """

    def __init__(self, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock

    async def execute(self, descriptor: ToolDescriptor, arguments: Mapping[str, Any]) -> ExecutionResult:
        """Run ``descriptor.handler`` once with a copy of ``arguments``.

        Raises:
            ToolExecutionError: If the handler raises anything other than an MCPError
        """
        start = self._clock()
        try:
            value = descriptor.handler(dict(arguments))
            if inspect.isawaitable(value):
                value = await value
        except MCPError:
            raise
        except UpstreamServiceError as exc:
            duration_ms = self._elapsed_ms(start)
            logger.debug(f"Tool {descriptor.name} failed upstream: {exc.context}", exc_info=True)
            raise ToolExecutionError(
                descriptor.name,
                str(exc),
                prefix=f"{exc.service_name} API error",
                duration_ms=duration_ms,
            ) from exc
        except Exception as exc:
            duration_ms = self._elapsed_ms(start)
            logger.debug(f"Tool {descriptor.name} raised {type(exc).__name__}", exc_info=True)
            raise ToolExecutionError(descriptor.name, str(exc) or type(exc).__name__, duration_ms=duration_ms) from exc

        return ExecutionResult(value=value, duration_ms=self._elapsed_ms(start))

    def _elapsed_ms(self, start: float) -> float:
        return round((self._clock() - start) * 1000, 2)
