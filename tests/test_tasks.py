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

"""Tests for task tracking."""

import asyncio
import pytest
from awslabs.docdb_cluster_api.exceptions import NotFoundError
from awslabs.docdb_cluster_api.tasks import (
    BackgroundRunner,
    MemoryTaskTracker,
    Task,
    TaskReporter,
    TaskStatus,
)
from datetime import timedelta
from unittest.mock import AsyncMock


class TestTask:
    """Tests for the Task model."""

    def test_new_task(self):
        """Test that new tasks are pending with a unique id."""
        first, second = Task(), Task()

        assert first.status == TaskStatus.PENDING
        assert len(first.id) == 32
        assert first.id != second.id
        assert first.events == []


class TestMemoryTaskTracker:
    """Tests for MemoryTaskTracker."""

    @pytest.mark.asyncio
    async def test_lifecycle(self, tracker):
        """Test a task moving from running to completed."""
        task = Task()

        await tracker.start(task)
        await tracker.log(task.id, 'first')
        await tracker.check_in(task.id)
        await tracker.log(task.id, 'second')
        running = await tracker.get(task.id)
        await tracker.complete(task.id)
        completed = await tracker.get(task.id)

        assert running.status == TaskStatus.RUNNING
        assert [e.message for e in running.events] == ['first', 'second']
        assert completed.status == TaskStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_start_keeps_caller_task_pending(self, tracker):
        """Test that the tracker stores its own copy of a task."""
        task = Task()

        await tracker.start(task)
        await tracker.log(task.id, 'message')

        assert task.status == TaskStatus.PENDING
        assert task.events == []

    @pytest.mark.asyncio
    async def test_fail(self, tracker):
        """Test that a failed task keeps its reason."""
        task = Task()

        await tracker.start(task)
        await tracker.fail(task.id, 'timeout')
        failed = await tracker.get(task.id)

        assert failed.status == TaskStatus.FAILED
        assert failed.failure == 'timeout'

    @pytest.mark.asyncio
    async def test_unknown_task(self, tracker):
        """Test that unknown tasks are not found."""
        with pytest.raises(NotFoundError):
            await tracker.get('missing')
        with pytest.raises(NotFoundError):
            await tracker.log('missing', 'message')

    @pytest.mark.asyncio
    async def test_expired_task(self):
        """Test that tasks are dropped after their ttl."""
        tracker = MemoryTaskTracker(ttl=60)
        task = Task()

        await tracker.start(task)
        tracker._tasks[task.id].checkin_at -= timedelta(seconds=120)

        with pytest.raises(NotFoundError):
            await tracker.get(task.id)


class TestTaskReporter:
    """Tests for TaskReporter."""

    @pytest.mark.asyncio
    async def test_reporter_completes_task(self, tracker):
        """Test that leaving the context normally completes the task."""
        task = Task()

        async with TaskReporter(tracker, task) as reporter:
            reporter.progress('one')
            reporter.progress('two')

        stored = await tracker.get(task.id)
        assert stored.status == TaskStatus.COMPLETED
        assert [e.message for e in stored.events] == ['one', 'two']

    @pytest.mark.asyncio
    async def test_reporter_fails_task(self, tracker):
        """Test that an error in the body fails the task."""
        task = Task()

        with pytest.raises(RuntimeError):
            async with TaskReporter(tracker, task) as reporter:
                reporter.progress('one')
                raise RuntimeError('gave up')

        stored = await tracker.get(task.id)
        assert stored.status == TaskStatus.FAILED
        assert stored.failure == 'gave up'
        assert [e.message for e in stored.events] == ['one']

    @pytest.mark.asyncio
    async def test_reporter_survives_tracker_errors(self):
        """Test that tracker failures do not reach the tracked work."""
        tracker = AsyncMock()
        tracker.start.side_effect = RuntimeError('tracker down')
        tracker.log.side_effect = RuntimeError('tracker down')
        tracker.complete.side_effect = RuntimeError('tracker down')

        async with TaskReporter(tracker, Task()) as reporter:
            reporter.progress('one')

        tracker.log.assert_awaited_once()
        tracker.complete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reporter_cancelled(self, tracker):
        """Test that cancelling the work fails the task."""
        task = Task()
        started = asyncio.Event()

        async def work():
            async with TaskReporter(tracker, task):
                started.set()
                await asyncio.sleep(60)

        running = asyncio.ensure_future(work())
        await started.wait()
        running.cancel()
        with pytest.raises(asyncio.CancelledError):
            await running

        stored = await tracker.get(task.id)
        assert stored.status == TaskStatus.FAILED
        assert stored.failure == 'task cancelled'


class TestBackgroundRunner:
    """Tests for BackgroundRunner."""

    @pytest.mark.asyncio
    async def test_spawn_tracks_until_done(self):
        """Test that spawned work is held until it finishes."""
        runner = BackgroundRunner()
        release = asyncio.Event()

        async def work():
            await release.wait()

        task = runner.spawn(work(), name='work')
        assert len(runner) == 1
        assert task.get_name() == 'work'

        release.set()
        await task
        await asyncio.sleep(0)
        assert len(runner) == 0

    @pytest.mark.asyncio
    async def test_spawn_logs_failures(self):
        """Test that failing work is dropped without raising."""
        runner = BackgroundRunner()

        async def work():
            raise RuntimeError('boom')

        task = runner.spawn(work())
        with pytest.raises(RuntimeError):
            await task
        await asyncio.sleep(0)
        assert len(runner) == 0

    @pytest.mark.asyncio
    async def test_shutdown_cancels_work(self):
        """Test that shutdown cancels outstanding work."""
        runner = BackgroundRunner()

        async def work():
            await asyncio.sleep(60)

        task = runner.spawn(work())
        await runner.shutdown()

        assert task.cancelled()
        assert len(runner) == 0
