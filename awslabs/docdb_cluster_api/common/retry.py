# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Bounded retry for polling asynchronous upstream state."""

from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)
from typing import Awaitable, Callable, TypeVar


T = TypeVar('T')


class NotReadyError(Exception):
    """Raised by a polled operation while the resource has not converged yet."""

    pass


def _any_error(error: BaseException) -> bool:
    return isinstance(error, Exception)


def _log_attempt(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.debug(f'attempt {retry_state.attempt_number} failed, retrying: {error}')


async def retry(
    attempts: int,
    delay: float,
    operation: Callable[[], Awaitable[T]],
    retryable: Callable[[BaseException], bool] = _any_error,
) -> T:
    """Run operation until it succeeds, at most attempts times.

    Args:
        attempts: Maximum number of times operation is called
        delay: Seconds slept between two attempts
        operation: Coroutine function to call
        retryable: Predicate deciding whether an exception is worth another attempt

    Returns:
        The result of the first successful call

    Raises:
        The exception of the last attempt once attempts are exhausted, or the
        first exception retryable rejects. Cancellation is never retried.
    """
    result = None
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(delay),
        retry=retry_if_exception_type(Exception) & retry_if_exception(retryable),
        before_sleep=_log_attempt,
        reraise=True,
    ):
        with attempt:
            result = await operation()
    return result
