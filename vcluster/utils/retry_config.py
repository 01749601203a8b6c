"""
Retry Policies for Kubernetes API Calls

Implements the narrow retry behavior of the StatefulSet reconciler using the
tenacity library. Only one capability retries at all: updating a StatefulSet
whose resourceVersion went stale (HTTP 409 Conflict) is refetched and retried
exactly once. Everything else runs under the no-retry policy; retrying beyond
that is left to the requeue mechanism of the outer control loop.

Usage:
    async for attempt in conflict_retry_policy():
        with attempt:
            if attempt.retry_state.attempt_number > 1:
                statefulset = await refetch()
            await update(statefulset)
"""

from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_none,
    retry_if_exception,
    before_sleep_log,
)
from kubernetes.client.rest import ApiException
import json
import logging
from typing import Callable

logger = logging.getLogger(__name__)


# Maximum attempts (1 initial + 1 retry) for updates rejected with a conflict
CONFLICT_RETRY_ATTEMPTS = 2


def is_conflict_error(exception: BaseException) -> bool:
    """
    Check if an exception is an optimistic-concurrency conflict.

    The API server answers 409 both for stale updates (reason "Conflict") and
    for creating an object that already exists (reason "AlreadyExists"); only
    the former is a conflict.

    Example:
        >>> is_conflict_error(ApiException(status=409, reason="Conflict"))
        True
        >>> is_conflict_error(ApiException(status=409, reason="AlreadyExists"))
        False
    """
    if not isinstance(exception, ApiException) or exception.status != 409:
        return False
    return not is_already_exists_error(exception)


def is_already_exists_error(exception: BaseException) -> bool:
    """Check if an exception reports that the object being created exists."""
    if not isinstance(exception, ApiException) or exception.status != 409:
        return False
    return _status_reason(exception) == "AlreadyExists"


def is_not_found_error(exception: BaseException) -> bool:
    """Check if an exception is a 404 from the API server."""
    return isinstance(exception, ApiException) and exception.status == 404


def _status_reason(exception: ApiException) -> str:
    # The Status body carries the machine-readable reason; the HTTP reason
    # phrase is only used when the body is not a Status object
    body = exception.body
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if body:
        try:
            status = json.loads(body)
        except ValueError:
            status = None
        if isinstance(status, dict) and status.get("reason"):
            return status["reason"]
    return exception.reason or ""


def _never(exception: BaseException) -> bool:
    return False


def create_retry_policy(
    max_attempts: int = 1,
    retryable: Callable[[BaseException], bool] = _never
) -> AsyncRetrying:
    """
    Create a retry policy for Kubernetes API calls.

    No backoff is applied between attempts; the retried call is expected to
    refresh its input (e.g. refetch the object) before trying again.

    Args:
        max_attempts: Total number of attempts, including the first
        retryable: Predicate selecting exceptions that may be retried

    Returns:
        A fresh AsyncRetrying instance (do not share between calls)
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_none(),
        retry=retry_if_exception(retryable),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )


def conflict_retry_policy() -> AsyncRetrying:
    """Retry once, and only on optimistic-concurrency conflicts."""
    return create_retry_policy(
        max_attempts=CONFLICT_RETRY_ATTEMPTS,
        retryable=is_conflict_error
    )


def no_retry_policy() -> AsyncRetrying:
    """Single attempt; every failure surfaces immediately."""
    return create_retry_policy(max_attempts=1)
