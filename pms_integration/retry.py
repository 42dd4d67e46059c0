"""
Retry policy engine for outbound PMS calls.

Classifies transport failures, backs off exponentially between attempts and
turns the terminal failure into a PMSIntegrationError carrying every attempt.
Built on tenacity's AsyncRetrying.
"""

import asyncio
import time
from dataclasses import dataclass, field, replace, asdict
from typing import Any, Awaitable, Callable, Dict, FrozenSet, List, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .errors import (
    HTTPStatusError,
    NetworkError,
    PMSIntegrationError,
    RequestTimeoutError,
    TransportError,
)
from .logging_adapter import get_safe_logger
from .metrics import adapter_attempts_total

logger = get_safe_logger("pms.retry")

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry behaviour for one adapter.

    Delay before retry n (n >= 1) is initial_delay * backoff_multiplier ** (n - 1),
    capped at max_delay. Total attempts are max_retries + 1.
    """

    max_retries: int = 3
    initial_delay: float = 1.0
    backoff_multiplier: float = 2.0
    max_delay: float = 30.0
    retry_on_timeout: bool = True
    # Extra 4xx codes to retry (e.g. 429); every 5xx is retryable
    retryable_status_codes: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def total_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, retry_number: int) -> float:
        delay = self.initial_delay * self.backoff_multiplier ** (retry_number - 1)
        return min(delay, self.max_delay)

    def is_retryable(self, error: BaseException) -> bool:
        if isinstance(error, RequestTimeoutError):
            return self.retry_on_timeout
        if isinstance(error, NetworkError):
            return True
        if isinstance(error, HTTPStatusError):
            return error.status_code >= 500 or error.status_code in self.retryable_status_codes
        return False


@dataclass
class AttemptRecord:
    """Outcome of one attempt, kept for diagnostics"""

    number: int
    outcome: str  # success, retryable, fatal
    status_code: Optional[int] = None
    error: Optional[str] = None
    duration_ms: float = 0.0
    delay_before_next: Optional[float] = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


class RetryEngine:
    """Runs a call under a RetryPolicy"""

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        vendor: str = "unknown",
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.policy = policy or RetryPolicy()
        self.vendor = vendor
        self._sleep = sleep or asyncio.sleep

    async def execute(
        self,
        call: Callable[[], Awaitable[T]],
        operation: str,
        idempotent: bool = True,
    ) -> T:
        """
        Execute call, retrying retryable transport failures.

        Non-idempotent calls get a single attempt: replaying them could duplicate
        side effects on the vendor system.

        Raises:
            PMSIntegrationError: the call failed fatally or exhausted its retries
        """
        policy = self.policy if idempotent else replace(self.policy, max_retries=0)
        attempts: List[AttemptRecord] = []

        def before_sleep(retry_state):
            delay = retry_state.next_action.sleep if retry_state.next_action else None
            if attempts:
                attempts[-1].delay_before_next = delay
            logger.warning(
                "pms_request_retrying",
                vendor=self.vendor,
                operation=operation,
                attempt=retry_state.attempt_number,
                max_attempts=policy.total_attempts,
                delay=delay,
                status_code=attempts[-1].status_code if attempts else None,
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(policy.total_attempts),
            wait=wait_exponential(
                multiplier=policy.initial_delay,
                exp_base=policy.backoff_multiplier,
                max=policy.max_delay,
            ),
            retry=retry_if_exception(policy.is_retryable),
            before_sleep=before_sleep,
            sleep=self._sleep,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    number = attempt.retry_state.attempt_number
                    started = time.monotonic()
                    try:
                        result = await call()
                    except TransportError as e:
                        outcome = "retryable" if policy.is_retryable(e) else "fatal"
                        attempts.append(
                            AttemptRecord(
                                number=number,
                                outcome=outcome,
                                status_code=e.status_code,
                                error=e.message,
                                duration_ms=round((time.monotonic() - started) * 1000, 2),
                            )
                        )
                        adapter_attempts_total.labels(
                            vendor=self.vendor, operation=operation, outcome=outcome
                        ).inc()
                        raise
                    attempts.append(
                        AttemptRecord(
                            number=number,
                            outcome="success",
                            duration_ms=round((time.monotonic() - started) * 1000, 2),
                        )
                    )
                    adapter_attempts_total.labels(
                        vendor=self.vendor, operation=operation, outcome="success"
                    ).inc()
        except TransportError as e:
            if not policy.is_retryable(e):
                outcome = "fatal-error"
            elif idempotent:
                outcome = "exhausted-retries"
            else:
                # Retryable failure on a call that may not be repeated
                outcome = "not-retried"
            logger.error(
                "pms_request_failed",
                vendor=self.vendor,
                operation=operation,
                outcome=outcome,
                attempts=len(attempts),
                status_code=e.status_code,
                error=e.message,
            )
            raise PMSIntegrationError(
                f"{self.vendor} {operation} failed after {len(attempts)} attempt(s): {e.message}",
                vendor=self.vendor,
                operation=operation,
                status_code=e.status_code,
                attempts=attempts,
                outcome=outcome,
                error_code=e.error_code,
            ) from e

        return result
