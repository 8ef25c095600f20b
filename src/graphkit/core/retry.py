"""
Retry decisions for the request executor.

The executor runs a small state machine. What happens after a failed attempt
is decided here, without any I/O, so it can be tested on its own.
"""

from dataclasses import dataclass
from enum import Enum

from graphkit.core.errors import ErrorKind, GraphError
from graphkit.core.request import RetryPolicy


class AttemptState(str, Enum):
    """States of one execute() call."""
    ATTEMPTING = "attempting"
    WAITING = "waiting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Action(str, Enum):
    RETRY = "retry"
    FAIL = "fail"


@dataclass(frozen=True)
class Decision:
    """Outcome of next_action: retry after delay_ms, or fail."""
    action: Action
    delay_ms: int = 0

    @property
    def should_retry(self) -> bool:
        return self.action == Action.RETRY


FAIL = Decision(Action.FAIL)


def next_action(attempt: int, error: GraphError, policy: RetryPolicy) -> Decision:
    """
    Decide what to do after attempt number ``attempt`` (zero-based) failed.

    Auth and permission errors never retry. Other errors retry only when they
    are transient and the policy still has attempts left.
    """
    if error.kind in (ErrorKind.AUTH, ErrorKind.PERMISSION):
        return FAIL
    if not error.retryable:
        return FAIL
    if attempt >= policy.max_attempts:
        return FAIL
    return Decision(Action.RETRY, policy.backoff_ms(attempt))
