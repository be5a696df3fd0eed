import anyio
from anyio import TASK_STATUS_IGNORED
from anyio.abc import TaskStatus


class Task:
    """A long running task that can be awaited independent of a TaskGroup.

    Awaiting the task waits until it is running, `stop()` asks it to finish.
    Both events are created in the event loop, so tasks have to be
    instantiated from async code.
    """

    def __init__(self):
        self._running = anyio.Event()
        self._stop = anyio.Event()

    @property
    def is_running(self):
        return self._running.is_set()

    @property
    def stopping(self):
        return self._stop.is_set()

    def __await__(self):
        return self._running.wait().__await__()

    async def __call__(self, task_status: TaskStatus[None] = TASK_STATUS_IGNORED):
        raise NotImplementedError()

    def stop(self):
        self._stop.set()
