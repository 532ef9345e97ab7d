"""
Retry and polling primitives for remote browser interaction.

Two distinct primitives are provided: time-bounded polling of a predicate
(waits for asynchronous UI state) and a fixed number of discrete attempts
(transient staleness during DOM re-renders). Both short-circuit without
touching the driver once the shared failure latch has tripped.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field, replace
from typing import (
    Any, Awaitable, Callable, Generic, List, Optional, Tuple, Type, TypeVar
)

from webaccept.core.interfaces import BrowserDriver, EvidenceSink, WebElement
from webaccept.core.latch import FailureLatch
from webaccept.core.types import Locator, PollOutcome

from .exceptions import (
    BrowserError, ConfigurationError, ElementNotFoundError, StaleElementError
)

logger = logging.getLogger(__name__)

T = TypeVar('T')

Predicate = Callable[[], Awaitable[bool]]

EXCEPTIONS_LOG = "exceptions"


@dataclass(frozen=True)
class RetryPolicy:
    """Maximum attempts plus the error kinds worth another attempt."""
    max_attempts: int = 2
    retryable: Tuple[Type[Exception], ...] = (StaleElementError, ElementNotFoundError)
    delay_ms: int = 0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationError(
                f"Retry attempts must be at least 1, got {self.max_attempts}"
            )

    def is_retryable(self, error: BaseException) -> bool:
        return isinstance(error, self.retryable)

    def with_attempts(self, attempts: Optional[int]) -> "RetryPolicy":
        """Copy of this policy with a different attempt budget."""
        if attempts is None:
            return self
        return replace(self, max_attempts=attempts)


@dataclass
class RetryOutcome(Generic[T]):
    """Typed result of a bounded sequence of attempts."""
    succeeded: bool
    value: Optional[T] = None
    attempts: int = 0
    errors: List[Exception] = field(default_factory=list)

    @property
    def last_error(self) -> Optional[Exception]:
        return self.errors[-1] if self.errors else None


class RetryPoller:
    """Bounded retry and polling engine bound to one browser session."""

    def __init__(
        self,
        driver: BrowserDriver,
        latch: FailureLatch,
        evidence: Optional[EvidenceSink] = None,
        policy: Optional[RetryPolicy] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.driver = driver
        self.latch = latch
        self.evidence = evidence
        self.policy = policy or RetryPolicy()
        self.clock = clock
        self.sleep = sleep

    async def poll_until(
        self,
        predicate: Predicate,
        timeout: float,
        interval_ms: int,
    ) -> PollOutcome:
        """
        Evaluate a predicate until it holds or the deadline elapses.

        Args:
            predicate: Async remote query; a retryable driver error counts
                as "not satisfied"
            timeout: Deadline in seconds
            interval_ms: Pause between evaluations in milliseconds

        Returns:
            PollOutcome.SATISFIED or PollOutcome.TIMED_OUT
        """
        if self.latch.tripped:
            return PollOutcome.TIMED_OUT

        start = self.clock()
        while True:
            try:
                if await predicate():
                    return PollOutcome.SATISFIED
            except BrowserError as e:
                logger.debug(f"Poll predicate raised {type(e).__name__}: {e.message}")

            if self.latch.tripped or self.clock() - start >= timeout:
                return PollOutcome.TIMED_OUT

            await self.sleep(interval_ms / 1000)

    async def lookup_with_retries(
        self,
        locator: Locator,
        context: Optional[WebElement] = None,
        attempts: Optional[int] = None,
    ) -> Optional[WebElement]:
        """
        Resolve one element, retrying stale and not-found errors.

        Returns:
            The element, or None when every attempt failed or the latch is tripped
        """
        outcome = await self.attempt(
            lambda: self.driver.find_element(locator, context),
            attempts=attempts,
            description=f'get an element by {locator.strategy.value} "{locator.value}"',
        )
        return outcome.value if outcome.succeeded else None

    async def lookup_all_with_retries(
        self,
        locator: Locator,
        context: Optional[WebElement] = None,
        attempts: Optional[int] = None,
    ) -> List[WebElement]:
        """Resolve every matching element, an empty list on exhaustion."""
        outcome = await self.attempt(
            lambda: self.driver.find_elements(locator, context),
            attempts=attempts,
            description=f'get elements by {locator.strategy.value} "{locator.value}"',
        )
        return list(outcome.value or []) if outcome.succeeded else []

    async def attempt(
        self,
        operation: Callable[[], Awaitable[T]],
        attempts: Optional[int] = None,
        description: str = "run operation",
        policy: Optional[RetryPolicy] = None,
        log_file: str = EXCEPTIONS_LOG,
    ) -> RetryOutcome[T]:
        """
        Run an operation up to the policy's attempt budget.

        Errors the policy does not classify as retryable propagate. Every
        caught error is written to the evidence log file.

        Args:
            operation: Async callable performing one remote interaction
            attempts: Override for the policy's max attempts
            description: Human-readable action used in the evidence lines
            policy: Override for the poller's default policy
            log_file: Evidence file the failed attempts are written to

        Returns:
            RetryOutcome describing the final state
        """
        policy = (policy or self.policy).with_attempts(attempts)
        outcome: RetryOutcome[T] = RetryOutcome(succeeded=False)

        for number in range(1, policy.max_attempts + 1):
            if self.latch.tripped:
                return outcome

            outcome.attempts = number
            try:
                outcome.value = await operation()
                outcome.succeeded = True
                return outcome
            except Exception as e:
                if not policy.is_retryable(e):
                    raise
                outcome.errors.append(e)
                self._log_attempt(
                    f"{number}. attempt to {description} failed, {type(e).__name__} thrown",
                    log_file,
                )

            if policy.delay_ms and number < policy.max_attempts:
                await self.sleep(policy.delay_ms / 1000)

        return outcome

    def _log_attempt(self, message: str, log_file: str) -> None:
        logger.debug(message)
        if self.evidence is None:
            return
        try:
            self.evidence.log(message, log_file)
        except OSError as e:
            logger.warning(f"Attempt could not be written to {log_file}: {e}")
