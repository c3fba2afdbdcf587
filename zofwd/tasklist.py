"""Implements a list of async tasks."""

import asyncio
import inspect

from zofwd.log import logger


class TaskList:
    """Manages a collection of async tasks that can be cancelled.

    Each running `ForwardingApp` owns one TaskList holding its in-flight
    packet-in tasks. When a task finishes, it removes itself from the
    list. Any exception raised by a task is directed to `on_exception`.
    """

    def __init__(self, loop, on_exception=None):
        """Initialize an empty task list."""
        assert (on_exception is None
                or not inspect.iscoroutinefunction(on_exception))
        self._loop = loop
        self._cancelled = False
        self.tasks = set()
        self.on_exception = on_exception

    def create_task(self, coro):
        """Create a managed async task for a coroutine."""
        assert asyncio.iscoroutine(coro)
        assert not self._cancelled
        task = self._loop.create_task(coro)
        task.add_done_callback(self._task_done)
        self.tasks.add(task)
        return task

    def _task_done(self, task):
        """Handle task cleanup."""
        self.tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc and self.on_exception:
            self.on_exception(exc)

    @property
    def cancelled(self):
        """Return True if the list was cancelled."""
        return self._cancelled

    def cancel(self):
        """Cancel all managed async tasks."""
        if not self._cancelled:
            self._cancelled = True
            for task in self.tasks:
                logger.debug('Task cancel %r', task)
                task.cancel()

    async def wait_cancelled(self, timeout=1.0):
        """Wait for cancelled tasks to complete."""
        if self.tasks:
            logger.debug('TaskList: Waiting for %d tasks', len(self.tasks))
            _, pending = await asyncio.wait(set(self.tasks), timeout=timeout)
            if pending:
                raise RuntimeError(
                    'TaskList: Tasks did not exit as expected: %r' % pending)

    def __len__(self):
        """Return length of task list."""
        return len(self.tasks)

    def __contains__(self, task):
        """Return true if task is in list."""
        return task in self.tasks

    def __iter__(self):
        """Return iterable for task list."""
        return iter(self.tasks)
