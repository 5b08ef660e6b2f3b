"""
FullFeed Retry Logic
===================

Bounded retry with configurable backoff for outbound fetches. A single
attempt is the default; retries only ever repeat transient failures.
"""

import asyncio
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ..utils.exceptions import FullFeedError, is_retryable_error
from ..utils.logging import get_logger_for_component


T = TypeVar('T')


class RetryStrategy(Enum):
    """Different retry strategy types."""
    FIXED_DELAY = "fixed_delay"              # Fixed interval between retries
    EXPONENTIAL_BACKOFF = "exponential"     # Exponentially increasing delays
    LINEAR_BACKOFF = "linear"               # Linearly increasing delays


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 1
    strategy: RetryStrategy = RetryStrategy.EXPONENTIAL_BACKOFF
    base_delay: float = 1.0                # Base delay in seconds
    max_delay: float = 30.0                # Maximum delay in seconds
    jitter: bool = True                    # Add randomization to delays
    exponential_base: float = 2.0          # Exponential backoff multiplier

    retry_on_exceptions: tuple = (ConnectionError, TimeoutError, asyncio.TimeoutError)


class RetryManager:
    """Runs an async operation up to ``max_attempts`` times."""

    def __init__(self, config: Optional[RetryConfig] = None):
        self.config = config or RetryConfig()
        self.logger = get_logger_for_component('retry_manager')

        self._delay_calculators = {
            RetryStrategy.FIXED_DELAY: self._calculate_fixed_delay,
            RetryStrategy.EXPONENTIAL_BACKOFF: self._calculate_exponential_delay,
            RetryStrategy.LINEAR_BACKOFF: self._calculate_linear_delay,
        }

    async def retry_async(self,
                          func: Callable[..., Awaitable[T]],
                          *args,
                          operation: Optional[str] = None,
                          **kwargs) -> T:
        """
        Retry an async function with the configured strategy.

        Args:
            func: Async function to retry
            *args: Function arguments
            operation: Name used in log messages (defaults to function name)
            **kwargs: Function keyword arguments

        Returns:
            Function result if successful

        Raises:
            The last exception if every attempt fails, or the first
            non-retryable exception
        """
        name = operation or getattr(func, '__name__', 'operation')
        max_attempts = max(1, self.config.max_attempts)

        for attempt in range(1, max_attempts + 1):
            try:
                result = await func(*args, **kwargs)
                if attempt > 1:
                    self.logger.info(f"Retry successful for {name} on attempt {attempt}")
                return result

            except Exception as e:
                if attempt >= max_attempts or not self._should_retry_exception(e):
                    if max_attempts > 1 and attempt >= max_attempts:
                        self.logger.warning(f"All {max_attempts} attempts failed for {name}")
                    raise

                delay = self._calculate_delay(attempt)
                self.logger.warning(
                    f"Attempt {attempt} failed for {name}: {e}. "
                    f"Retrying in {delay:.2f}s (attempt {attempt + 1}/{max_attempts})"
                )
                await asyncio.sleep(delay)

        # Unreachable: the loop either returns or raises
        raise RuntimeError(f"Retry loop exited without result for {name}")

    def _should_retry_exception(self, exception: Exception) -> bool:
        """Determine if an exception should trigger a retry."""
        if isinstance(exception, FullFeedError):
            return is_retryable_error(exception)

        return isinstance(exception, self.config.retry_on_exceptions)

    def _calculate_delay(self, attempt: int) -> float:
        """Calculate delay for retry attempt based on strategy."""
        calculator = self._delay_calculators.get(
            self.config.strategy, self._calculate_exponential_delay
        )
        delay = min(calculator(attempt), self.config.max_delay)

        if self.config.jitter and self.config.strategy == RetryStrategy.EXPONENTIAL_BACKOFF:
            # ±25% jitter
            jitter_amount = delay * 0.25
            delay += random.uniform(-jitter_amount, jitter_amount)

        return max(0.0, delay)

    def _calculate_fixed_delay(self, attempt: int) -> float:
        return self.config.base_delay

    def _calculate_exponential_delay(self, attempt: int) -> float:
        return self.config.base_delay * (self.config.exponential_base ** (attempt - 1))

    def _calculate_linear_delay(self, attempt: int) -> float:
        return self.config.base_delay * attempt
