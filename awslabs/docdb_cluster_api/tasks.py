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

"""Progress tracking for long running work.

A Task is the handle returned to callers of asynchronous operations. The
orchestrator never writes to a tracker directly: it reports through a
TaskReporter, whose single consumer applies updates in order and keeps
tracker failures away from the work being tracked.
"""

import asyncio
import uuid
from .constants import DEFAULT_TASK_TTL, ERROR_TASK_NOT_FOUND
from .exceptions import NotFoundError
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from loguru import logger
from pydantic import BaseModel, Field
from typing import Any, Awaitable, Dict, List, Optional, Set


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TaskStatus(str, Enum):
    """Lifecycle of a task."""

    PENDING = 'pending'
    RUNNING = 'running'
    COMPLETED = 'completed'
    FAILED = 'failed'


class TaskEvent(BaseModel):
    """A progress message recorded for a task."""

    time: datetime = Field(default_factory=_now)
    message: str


class Task(BaseModel):
    """Handle for a unit of asynchronous work."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, description='The task id')
    status: TaskStatus = Field(TaskStatus.PENDING, description='The task status')
    created_at: datetime = Field(default_factory=_now, description='When the task was created')
    checkin_at: Optional[datetime] = Field(None, description='When the task last reported')
    events: List[TaskEvent] = Field(default_factory=list, description='Progress messages')
    failure: Optional[str] = Field(None, description='Why the task failed')


class TaskTracker(ABC):
    """Storage for task state."""

    @abstractmethod
    async def start(self, task: Task) -> None:
        """Register task and mark it running."""

    @abstractmethod
    async def check_in(self, task_id: str) -> None:
        """Record that the task is still alive."""

    @abstractmethod
    async def log(self, task_id: str, message: str) -> None:
        """Append a progress message."""

    @abstractmethod
    async def fail(self, task_id: str, reason: str) -> None:
        """Mark the task failed with reason."""

    @abstractmethod
    async def complete(self, task_id: str) -> None:
        """Mark the task completed."""

    @abstractmethod
    async def get(self, task_id: str) -> Task:
        """Return the current state of a task.

        Raises:
            NotFoundError: when the task is unknown or expired
        """


class MemoryTaskTracker(TaskTracker):
    """Task tracker keeping tasks in process memory.

    Tasks are dropped once they have not been updated for ttl seconds.
    """

    def __init__(self, ttl: int = DEFAULT_TASK_TTL):
        """Initialize the tracker.

        Args:
            ttl: Seconds a task is kept after its last update
        """
        self.ttl = ttl
        self._tasks: Dict[str, Task] = {}

    def _purge(self) -> None:
        now = _now()
        expired = [
            task_id
            for task_id, task in self._tasks.items()
            if (now - (task.checkin_at or task.created_at)).total_seconds() > self.ttl
        ]
        for task_id in expired:
            logger.debug(f'dropping expired task {task_id}')
            del self._tasks[task_id]

    def _task(self, task_id: str) -> Task:
        self._purge()
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError(ERROR_TASK_NOT_FOUND.format(task_id))
        return task

    async def start(self, task: Task) -> None:
        stored = task.model_copy(deep=True)
        stored.status = TaskStatus.RUNNING
        stored.checkin_at = _now()
        self._purge()
        self._tasks[stored.id] = stored

    async def check_in(self, task_id: str) -> None:
        self._task(task_id).checkin_at = _now()

    async def log(self, task_id: str, message: str) -> None:
        self._task(task_id).events.append(TaskEvent(message=message))

    async def fail(self, task_id: str, reason: str) -> None:
        task = self._task(task_id)
        task.status = TaskStatus.FAILED
        task.failure = reason
        task.checkin_at = _now()

    async def complete(self, task_id: str) -> None:
        task = self._task(task_id)
        task.status = TaskStatus.COMPLETED
        task.checkin_at = _now()

    async def get(self, task_id: str) -> Task:
        return self._task(task_id).model_copy(deep=True)


class TaskReporter:
    """Reports the progress of one task to a tracker.

    Used as an async context manager around the tracked work. Messages are
    queued and applied by a single consumer, so tracker writes for a task
    never interleave. Leaving the context completes the task, or fails it
    when the body raised or was cancelled.
    """

    _MESSAGE = 'message'
    _DONE = 'done'
    _FAILED = 'failed'

    def __init__(self, tracker: TaskTracker, task: Task):
        """Initialize the reporter.

        Args:
            tracker: Where task state is written
            task: The task being reported on
        """
        self.tracker = tracker
        self.task = task
        self._queue: asyncio.Queue = asyncio.Queue()
        self._consumer: Optional[asyncio.Task] = None

    async def __aenter__(self) -> 'TaskReporter':
        await self._safely('start', self.task)
        self._consumer = asyncio.create_task(self._consume())
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> bool:
        if exc_type is not None and issubclass(exc_type, asyncio.CancelledError):
            self._queue.put_nowait((self._FAILED, 'task cancelled'))
        elif exc is not None:
            self._queue.put_nowait((self._FAILED, str(exc)))
        else:
            self._queue.put_nowait((self._DONE, None))

        if self._consumer is not None:
            await self._consumer
        return False

    def progress(self, message: str) -> None:
        """Queue a progress message."""
        self._queue.put_nowait((self._MESSAGE, message))

    async def _consume(self) -> None:
        task_id = self.task.id
        while True:
            kind, payload = await self._queue.get()
            if kind == self._MESSAGE:
                logger.info(payload)
                await self._safely('check_in', task_id)
                await self._safely('log', task_id, payload)
            elif kind == self._FAILED:
                logger.error(f'task {task_id} failed: {payload}')
                await self._safely('fail', task_id, payload)
                return
            else:
                logger.success(f'task {task_id} completed')
                await self._safely('complete', task_id)
                return

    async def _safely(self, operation: str, *args: Any) -> None:
        try:
            await getattr(self.tracker, operation)(*args)
        except Exception as e:
            logger.error(f'task tracker {operation} failed for task {self.task.id}: {e}')


class BackgroundRunner:
    """Owns work that outlives the request which started it."""

    def __init__(self):
        """Initialize the runner."""
        self._tasks: Set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Awaitable[Any], name: Optional[str] = None) -> asyncio.Task:
        """Schedule coro on the running loop and keep a reference to it."""
        task = asyncio.ensure_future(coro)
        if name:
            task.set_name(name)
        self._tasks.add(task)
        task.add_done_callback(self._done)
        return task

    def _done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f'background task {task.get_name()} was cancelled')
            return
        error = task.exception()
        if error is not None:
            logger.error(f'background task {task.get_name()} failed: {error}')

    async def shutdown(self) -> None:
        """Cancel all outstanding work and wait for it to unwind."""
        tasks = list(self._tasks)
        if not tasks:
            return

        logger.info(f'cancelling {len(tasks)} background tasks')
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
