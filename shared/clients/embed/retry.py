r"""Retry policy and state machine for embedding requests.

Every text is embedded by a loop that moves through these states:

  ATTEMPTING(n) --success--------------------> SUCCESS
  ATTEMPTING(n) --404 / unparsable response--> NON_RETRYABLE_FAILURE
  ATTEMPTING(n) --transport or status error--> ATTEMPTING(n+1)  while n < max_retries
                                           \-> EXHAUSTED         once n == max_retries
"""

from enum import Enum

from pydantic import BaseModel


class RetryState(str, Enum):
    ATTEMPTING = "attempting"
    SUCCESS = "success"
    NON_RETRYABLE_FAILURE = "non_retryable_failure"
    EXHAUSTED = "exhausted"


class RetryPolicy(BaseModel):
    """How often and how patiently a single text is retried.

    Attributes:
        max_retries (int): Additional attempts after the first one.
        initial_backoff_ms (int): Delay before the first retry; doubles for every further retry.
    """

    max_retries: int = 3
    initial_backoff_ms: int = 100

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def next_state(self, attempt: int) -> RetryState:
        """Return the state following a retryable failure of attempt number `attempt` (0-based)."""
        return RetryState.ATTEMPTING if attempt < self.max_retries else RetryState.EXHAUSTED

    def delay_seconds(self, attempt: int) -> float:
        return compute_backoff_delay(attempt, self.initial_backoff_ms) / 1000.0


def compute_backoff_delay(attempt: int, initial_backoff_ms: int = 100) -> int:
    """Return the backoff delay in milliseconds after failed attempt `attempt` (0-based).

    >>> [compute_backoff_delay(n) for n in range(3)]
    [100, 200, 400]
    """
    return initial_backoff_ms * (2 ** attempt)
