"""Retry utilities for the Cerberus client."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry,
    retry_if_exception_type,
    retry_if_result,
    retry_never,
    stop_after_attempt,
    wait_exponential,
)

from cerberus_client.utils.logging import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])
T = TypeVar("T")


def is_server_error(response: Any) -> bool:
    """True for HTTP responses in the 500-599 range."""
    status_code = getattr(response, "status_code", None)
    return status_code is not None and 500 <= status_code <= 599


@dataclass(frozen=True)
class RetryPolicy:
    """Retry policy injected into request executors.

    Attempts are retried while ``retry_on_result`` holds for the returned
    value or the call raised one of ``retry_on_exceptions``. The wait before
    attempt ``n + 1`` is ``base_interval * 2 ** (n - 1)`` seconds.

    Once attempts run out the last outcome is handed back as is: the last
    result is returned, or the last exception is re-raised.
    """

    max_attempts: int = 3
    base_interval: float = 0.25
    retry_on_result: Callable[[Any], bool] | None = is_server_error
    retry_on_exceptions: tuple[type[BaseException], ...] = ()
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_interval < 0:
            raise ValueError("base_interval cannot be negative")

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        """Log before sleeping between attempts."""
        outcome = retry_state.outcome
        context: dict[str, Any] = {
            "attempt": retry_state.attempt_number,
            "max_attempts": self.max_attempts,
            "delay": retry_state.next_action.sleep if retry_state.next_action else None,
        }
        if outcome is not None and outcome.failed:
            exception = outcome.exception()
            context["exception"] = type(exception).__name__
            context["message"] = str(exception)
        elif outcome is not None:
            context["status_code"] = getattr(outcome.result(), "status_code", None)
        logger.warning("retry_attempt", **context)

    def _retry_strategy(self) -> Any:
        strategy: Any = retry_never
        if self.retry_on_result is not None:
            strategy = retry_if_result(self.retry_on_result)
        if self.retry_on_exceptions:
            exception_strategy = retry_if_exception_type(self.retry_on_exceptions)
            strategy = (
                exception_strategy
                if self.retry_on_result is None
                else strategy | exception_strategy
            )
        return strategy

    def call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Invoke ``func`` under this policy.

        Args:
            func: Callable to invoke
            *args: Positional arguments for ``func``
            **kwargs: Keyword arguments for ``func``

        Returns:
            The first accepted result, or the last result once attempts
            are exhausted
        """
        retrying = Retrying(
            retry=self._retry_strategy(),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.base_interval, min=0),
            sleep=self.sleep,
            before_sleep=self._before_sleep,
            retry_error_callback=_last_outcome,
        )
        return retrying(func, *args, **kwargs)


def _last_outcome(retry_state: RetryCallState) -> Any:
    """Return the final result or re-raise the final exception."""
    if retry_state.outcome is None:  # pragma: no cover - tenacity always sets it
        return None
    return retry_state.outcome.result()


def retry_on_exception(
    exceptions: tuple[type[Exception], ...] = (Exception,),
    max_attempts: int = 3,
    min_wait: float = 1,
    max_wait: float = 10,
) -> Callable[[F], F]:
    """Decorator to retry a function on specific exceptions.

    Args:
        exceptions: Tuple of exception types to retry on
        max_attempts: Maximum number of retry attempts
        min_wait: Minimum wait time between retries (seconds)
        max_wait: Maximum wait time between retries (seconds)

    Returns:
        Decorated function with retry logic
    """

    def before_sleep(retry_state: RetryCallState) -> None:
        """Log before sleeping between retries."""
        if retry_state.outcome and retry_state.outcome.failed:
            exception = retry_state.outcome.exception()
            logger.warning(
                "retry_attempt",
                attempt=retry_state.attempt_number,
                max_attempts=max_attempts,
                exception=type(exception).__name__,
                message=str(exception),
            )

    return retry(
        retry=retry_if_exception_type(exceptions),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        before_sleep=before_sleep,
        reraise=True,
    )
