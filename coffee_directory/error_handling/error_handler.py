"""
Error handler with retry logic for the coffee directory client.

Implements exponential backoff and timeout escalation for catalog requests.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Tuple, Type
from datetime import datetime


logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior with exponential backoff.

    Attributes:
        max_retries: Maximum number of attempts
        initial_timeout_ms: Timeout of the first attempt in milliseconds
        timeout_multiplier: Multiplier for timeout escalation on each retry
        backoff_base_seconds: Delay before the first retry
    """
    max_retries: int = 3
    initial_timeout_ms: int = 10000
    timeout_multiplier: float = 1.5
    backoff_base_seconds: float = 2.0

    def get_timeout(self, attempt: int) -> int:
        """
        Calculate timeout for a specific retry attempt.

        timeout = initial_timeout_ms * (timeout_multiplier ^ attempt)

        Args:
            attempt: The retry attempt number (0-indexed)

        Returns:
            Timeout value in milliseconds for the given attempt
        """
        return int(self.initial_timeout_ms * (self.timeout_multiplier ** attempt))

    def get_backoff_delay(self, attempt: int) -> float:
        """
        Calculate backoff delay before retry attempt.

        delay = backoff_base_seconds * (2 ^ attempt)

        Args:
            attempt: The retry attempt number (0-indexed)

        Returns:
            Delay in seconds before the retry attempt
        """
        return self.backoff_base_seconds * (2 ** attempt)


class ErrorHandler:
    """
    Retries catalog requests with exponential backoff.

    Only errors listed in ``retry_on`` are retried; anything else propagates
    on the first occurrence. Cancellation is never retried.

    Attributes:
        config: Retry configuration
        retry_on: Exception types considered transient
    """

    def __init__(
        self,
        max_retries: int = 3,
        initial_timeout_ms: int = 10000,
        timeout_multiplier: float = 1.5,
        backoff_base_seconds: float = 2.0,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    ):
        """
        Initialize error handler with retry configuration.

        Args:
            max_retries: Maximum number of attempts (default: 3)
            initial_timeout_ms: Timeout of the first attempt (default: 10000)
            timeout_multiplier: Multiplier for timeout escalation (default: 1.5)
            backoff_base_seconds: Delay before the first retry (default: 2.0)
            retry_on: Exception types that trigger a retry
        """
        self.config = RetryConfig(
            max_retries=max_retries,
            initial_timeout_ms=initial_timeout_ms,
            timeout_multiplier=timeout_multiplier,
            backoff_base_seconds=backoff_base_seconds,
        )
        self.retry_on = retry_on

    async def retry_with_backoff(
        self,
        operation: Callable,
        *args,
        **kwargs
    ) -> Any:
        """
        Execute operation with exponential backoff retry logic.

        If the operation accepts a ``timeout_ms`` keyword it is replaced by
        the escalating timeout of the current attempt.

        Args:
            operation: Async callable to execute
            *args: Positional arguments for the operation
            **kwargs: Keyword arguments for the operation

        Returns:
            Result from successful operation execution

        Raises:
            Exception: The last exception encountered if all retries are exhausted
        """
        name = getattr(operation, "__name__", repr(operation))
        last_exception = None

        for attempt in range(self.config.max_retries):
            if 'timeout_ms' in kwargs:
                kwargs['timeout_ms'] = self.config.get_timeout(attempt)

            try:
                logger.debug(f"Attempt {attempt + 1}/{self.config.max_retries} for {name}")
                return await operation(*args, **kwargs)
            except self.retry_on as e:
                last_exception = e
                self._log_error(name, attempt + 1, self.config.max_retries, e)

                if attempt == self.config.max_retries - 1:
                    logger.error(
                        f"Operation {name} failed after {self.config.max_retries} attempts. "
                        f"Final error: {str(e)}"
                    )
                    break

                backoff_delay = self.config.get_backoff_delay(attempt)
                logger.info(f"Waiting {backoff_delay:.1f}s before retry...")
                await asyncio.sleep(backoff_delay)

        raise last_exception

    def _log_error(
        self,
        operation_name: str,
        attempt: int,
        max_attempts: int,
        error: BaseException,
    ) -> None:
        """
        Log error with timestamp and context.

        Args:
            operation_name: Name of the operation that failed
            attempt: Current attempt number
            max_attempts: Maximum number of attempts
            error: The exception that occurred
        """
        context = {
            'timestamp': datetime.now().isoformat(),
            'operation': operation_name,
            'attempt': f"{attempt}/{max_attempts}",
            'error_type': type(error).__name__,
            'error_message': str(error),
        }
        logger.warning(
            f"Operation failed: {operation_name} | "
            f"Attempt: {attempt}/{max_attempts} | "
            f"Error: {type(error).__name__}: {str(error)}"
        )
        logger.debug(f"Full error context: {context}")
