# biblio_export/infrastructure/client/_retry.py

"""Explicit retry state machine for repository requests"""

# Standard library imports
from logging import getLogger

# Local imports
from biblio_export.infrastructure.config._models import RetryConfig

logger = getLogger(__name__)


class TransientFailure(Exception):
    """A failed attempt that may succeed if repeated"""

    def __init__(self, reason: str, retry_after: float | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.retry_after = retry_after


class RetryPolicy:
    """Bounded exponential backoff

    Delay before retry ``n`` (1-based) is ``base_delay * multiplier ** (n - 1)``
    capped at ``max_delay``.
    """

    __slots__ = ("max_attempts", "base_delay", "multiplier", "max_delay")

    def __init__(
        self,
        max_attempts: int = 4,
        base_delay: float = 0.5,
        multiplier: float = 2.0,
        max_delay: float = 10.0,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.multiplier = multiplier
        self.max_delay = max_delay

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            base_delay=config.base_delay,
            multiplier=config.multiplier,
            max_delay=config.max_delay,
        )

    def delay_for(self, retry_number: int) -> float:
        """Delay before the given retry (1 = first retry)"""
        return min(self.base_delay * self.multiplier ** (retry_number - 1), self.max_delay)

    def start(self) -> "RetryState":
        return RetryState(self)


class RetryState:
    """Progress of one logical request through its attempts

    PENDING -> ATTEMPTING -> (SUCCEEDED | WAITING -> ATTEMPTING | EXHAUSTED)
    """

    __slots__ = ("policy", "attempts", "last_failure", "delays")

    def __init__(self, policy: RetryPolicy) -> None:
        self.policy = policy
        self.attempts = 0
        self.last_failure: TransientFailure | None = None
        self.delays: list[float] = []

    def begin_attempt(self) -> int:
        """Record the start of an attempt and return its 1-based number"""
        if self.exhausted:
            raise RuntimeError("No attempts left")
        self.attempts += 1
        return self.attempts

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.policy.max_attempts

    def record_failure(self, failure: TransientFailure) -> float | None:
        """Register a transient failure

        Returns:
            Seconds to wait before the next attempt, or None when exhausted
        """
        self.last_failure = failure
        if self.exhausted:
            logger.warning(f"Giving up after {self.attempts} attempts: {failure.reason}")
            return None

        delay = self.policy.delay_for(self.attempts)
        if failure.retry_after is not None:
            delay = min(max(delay, failure.retry_after), self.policy.max_delay)
        self.delays.append(delay)
        logger.debug(
            f"Attempt {self.attempts}/{self.policy.max_attempts} failed ({failure.reason}), "
            f"retrying in {delay:.2f}s"
        )
        return delay
