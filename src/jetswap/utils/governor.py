"""Single-flight, rate-limited gateway for quota-limited remote services.

One governor instance fronts one class of endpoint. The audit service and the
market data providers each get their own instance, so a slow audit never
delays a price refresh.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GovernorError(Exception):
    """Base class for governor failures."""

    pass


class ThrottledError(GovernorError):
    """Raised by a scheduled call when the remote service asks us to slow down."""

    pass


class ThrottledRetryExhausted(ThrottledError):
    """Raised when every attempt up to the ceiling was throttled."""

    pass


def backoff_delays(base: float, max_attempts: int) -> list[float]:
    """Delays slept between attempts: base, 2*base, 4*base, ...

    Args:
        base: Delay after the first throttled attempt
        max_attempts: Total attempts including the first one

    Returns:
        ``max_attempts - 1`` delays
    """
    return [base * (2 ** i) for i in range(max(max_attempts - 1, 0))]


def raise_for_throttle(response: httpx.Response) -> None:
    """Raise ThrottledError if the response is a rate-limit signal."""
    if response.status_code == 429:
        raise ThrottledError(f"{response.request.url.host} returned 429")
    if response.status_code >= 400 and b"RESOURCE_EXHAUSTED" in response.content:
        raise ThrottledError(f"{response.request.url.host} quota exhausted")


class RequestGovernor:
    """Serializes calls to one remote endpoint class.

    Guarantees:
    - at most one call in flight; waiters are served FIFO
    - at least ``min_spacing`` seconds between dispatches
    - throttled calls are retried with exponential backoff, holding the slot
      through the backoff so other callers do not hit the endpoint meanwhile

    A caller cancelled while queued is never dispatched. A caller cancelled
    while its call is in flight stops waiting, but the call itself finishes
    and only then frees the slot.

    Example:
        governor = RequestGovernor("audit", min_spacing=5.0)
        result = await governor.schedule(lambda: client.post(...), label="audit")
    """

    def __init__(
        self,
        name: str,
        min_spacing: float = 0.0,
        backoff_base: float = 1.0,
        max_attempts: int = 3,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the governor.

        Args:
            name: Endpoint class name for logging
            min_spacing: Minimum seconds between the start of two dispatches
            backoff_base: First retry delay after a throttled attempt
            max_attempts: Attempt ceiling per scheduled call
            clock: Monotonic time source
            sleep: Coroutine used for every wait
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.name = name
        self.min_spacing = min_spacing
        self.backoff_base = backoff_base
        self.max_attempts = max_attempts
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_request_at: Optional[float] = None
        self.dispatch_count = 0

    @property
    def locked(self) -> bool:
        """True while a call holds the slot."""
        return self._lock.locked()

    @property
    def last_request_at(self) -> Optional[float]:
        return self._last_request_at

    async def _wait_for_slot(self) -> None:
        if self._last_request_at is None:
            return
        remaining = self.min_spacing - (self._clock() - self._last_request_at)
        if remaining > 0:
            logger.debug(f"{self.name}: spacing requests, waiting {remaining:.2f}s")
            await self._sleep(remaining)

    def _release_after(self, task: asyncio.Future) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.warning(
                f"{self.name}: orphaned request failed: "
                f"{type(task.exception()).__name__}: {task.exception()}"
            )
        self._lock.release()
        logger.debug(f"{self.name}: slot released after orphaned request")

    async def schedule(self, fn: Callable[[], Awaitable[T]], label: str = "request") -> T:
        """Run ``fn`` under the governor's rules and return its result.

        Raises:
            ThrottledRetryExhausted: every attempt was throttled
            Exception: any non-throttle error raised by ``fn``
        """
        delays = backoff_delays(self.backoff_base, self.max_attempts)

        # Cancellation while waiting here drops the call without dispatch.
        await self._lock.acquire()
        in_flight: Optional[asyncio.Future] = None
        try:
            for attempt in range(1, self.max_attempts + 1):
                await self._wait_for_slot()
                self._last_request_at = self._clock()
                self.dispatch_count += 1
                logger.debug(f"{self.name}: dispatching {label} (attempt {attempt})")

                in_flight = asyncio.ensure_future(fn())
                try:
                    return await asyncio.shield(in_flight)
                except ThrottledError as e:
                    if attempt >= self.max_attempts:
                        logger.warning(
                            f"{self.name}: {label} throttled {attempt} time(s), giving up"
                        )
                        raise ThrottledRetryExhausted(
                            f"{self.name}: {label} throttled after {attempt} attempt(s)"
                        ) from e
                    delay = delays[attempt - 1]
                    logger.info(f"{self.name}: {label} throttled, retrying in {delay:.1f}s")
                    in_flight = None
                    await self._sleep(delay)
                    self._last_request_at = self._clock()

            # Unreachable: the loop either returns or raises.
            raise GovernorError(f"{self.name}: no attempts made")

        finally:
            if in_flight is not None and not in_flight.done():
                in_flight.add_done_callback(self._release_after)
            else:
                self._lock.release()
