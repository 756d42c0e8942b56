"""Classification of failures into retry, backoff and abort decisions."""

from dataclasses import dataclass
from enum import Enum

from config import RetryConfig, settings
from errors import (
    ApiError,
    AuthError,
    ConfigError,
    MalformedResponseError,
    PersistenceError,
    RateLimitError,
    ServerError,
    TransportError,
    ValidationError,
)


class Action(str, Enum):
    """What the engine does after a failed attempt."""
    RETRY_SAME = "retry_same"  # resend within this iteration's attempt budget
    RETRY_INDEX = "retry_index"  # rerun the iteration without advancing the index
    ABORT_RUN = "abort_run"
    CONTINUE = "continue"  # drop this image and move to the next index


@dataclass(frozen=True)
class Decision:
    """Outcome of classifying a failure."""

    action: Action
    delay: float = 0.0
    counts_as_failure: bool = True


class RetryPolicy:
    """Maps errors to decisions and tracks the run's failure budget."""

    def __init__(self, config: RetryConfig | None = None):
        """Initialize the policy.

        Args:
            config: Retry settings (defaults to the global settings)
        """
        self.config = config or settings.retry

    @property
    def max_attempts(self) -> int:
        return self.config.max_attempts

    def classify(self, error: Exception) -> Decision:
        """
        Decide how to react to a failed attempt.

        Args:
            error: The exception raised by the attempt

        Returns:
            Decision with the action, the delay before acting and whether
            the attempt counts toward the circuit breaker

        Raises:
            TypeError: If the error is not one the engine knows how to handle
        """
        cfg = self.config
        # Order matters: the ApiError subclasses come before ApiError itself
        if isinstance(error, (AuthError, ConfigError)):
            return Decision(Action.ABORT_RUN)
        if isinstance(error, RateLimitError):
            return Decision(Action.RETRY_INDEX, delay=cfg.rate_limit_interval * 2)
        if isinstance(error, ServerError):
            return Decision(Action.RETRY_INDEX, delay=cfg.retry_delay)
        if isinstance(error, (TransportError, ApiError)):
            return Decision(Action.RETRY_SAME, delay=cfg.error_delay)
        if isinstance(error, MalformedResponseError):
            return Decision(Action.RETRY_SAME, counts_as_failure=False)
        if isinstance(error, ValidationError):
            # Blank placeholders are rerun without counting; the engine bounds them
            return Decision(Action.RETRY_INDEX, counts_as_failure=not error.placeholder)
        if isinstance(error, PersistenceError):
            return Decision(Action.CONTINUE, counts_as_failure=False)
        raise TypeError(f"Unclassified error: {error!r}")

    def breaker_tripped(self, failed_count: int) -> bool:
        """True once cumulative failures reach the circuit breaker threshold."""
        return failed_count >= self.config.failure_threshold
