import dataclasses
import enum
import logging

import anyio
from anyio import TASK_STATUS_IGNORED
from anyio.abc import TaskStatus

from ..exceptions import RetriesExhausted, WatchClosed, WatchTransientError
from ..tasks import Task
from .backoff import ExponentialBackoff
from .events import normalize
from .queue import EventQueue


log = logging.getLogger(__name__)


class State(enum.Enum):
    STARTING = 'starting'
    WATCHING = 'watching'
    RECOVERING = 'recovering'
    DRAINING = 'draining'
    STOPPED = 'stopped'


@dataclasses.dataclass
class WatchCursor:
    """The resource version to resume the watch-stream from. None means now."""

    last_resource_version: str = None

    def advance(self, resource_version):
        if resource_version is not None:
            self.last_resource_version = resource_version

    def reset(self):
        self.last_resource_version = None


@dataclasses.dataclass
class Informer(Task):
    """Watches a resource collection and dispatches its events in order.

    Runs until `stop()` is called, the watch-stream fails fatally, or it can
    not be re-established within the backoff's retry budget. On `stop()`
    all events which are still queued are dispatched before it returns.
    """

    session: object
    dispatcher: object
    queue: EventQueue = None
    backoff: ExponentialBackoff = None
    timeout: float = 5.0

    def __post_init__(self):
        super().__init__()
        if self.queue is None:
            self.queue = EventQueue()
        if self.backoff is None:
            self.backoff = ExponentialBackoff()
        self.cursor = WatchCursor()
        self.state = State.STARTING
        # Number of times events may have been lost because the watch-stream
        # had to be restarted from now.
        self.gaps = 0
        self._attempts = 0

    def __repr__(self):
        _out = [str(id(self)), self.session.describe()]
        if self.cursor.last_resource_version:
            _out.append(self.cursor.last_resource_version)
        _s = ' '.join(_out)
        return f'<Informer {_s}>'

    def stop(self):
        log.debug('stop %r', self)
        super().stop()

    def _set_state(self, state):
        if state is not self.state:
            log.debug('%r: %s -> %s', self, self.state.value, state.value)
            self.state = state

    async def _enqueue(self, notifications):
        for notification in notifications:
            if self.queue.full:
                # Make room by handing the queued events to the dispatcher.
                await self._drain()
            self.queue.push(normalize(notification))
            self.cursor.advance(notification.resource_version)

    async def _drain(self):
        while (event := self.queue.try_pop()) is not None:
            await self.dispatcher(event)

    async def _sleep(self, delay):
        """Sleep for the given delay unless stopped earlier.
        Returns True if stopped."""
        with anyio.move_on_after(delay):
            await self._stop.wait()
        return self.stopping

    async def _open(self, error=None):
        """Open the watch-stream from the cursor.

        After an error, retry with an exponential backoff until the stream is
        open or the retries are exhausted. Returns None if stopped meanwhile.
        """
        while not self.stopping:
            if error is not None:
                self._set_state(State.RECOVERING)
                if self.backoff.exhausted(self._attempts):
                    raise RetriesExhausted(self.session.describe(), self._attempts) from error
                delay = self.backoff.delay(self._attempts)
                self._attempts += 1
                log.info(
                    'reconnecting the watch-stream for %s in %.1fs (attempt %d)',
                    self.session.describe(),
                    delay,
                    self._attempts,
                )
                if await self._sleep(delay):
                    break
            try:
                return await self.session.open(self.cursor.last_resource_version)
            except (WatchTransientError, OSError) as e:
                log.warning('failed to open the watch-stream for %s: %s', self.session.describe(), e)
                error = e
        return None

    async def _watch(self):
        handle = await self._open()
        while handle is not None and not self.stopping:
            self._set_state(State.WATCHING)
            self._running.set()
            try:
                notifications = await self.session.next_batch(handle, self.timeout)
            except WatchClosed as e:
                self._set_state(State.RECOVERING)
                self.gaps += 1
                log.warning(
                    'watch-stream for %s was closed (%s); resuming from now, '
                    'changes since %s are not replayed',
                    self.session.describe(),
                    e.message,
                    self.cursor.last_resource_version or 'the start',
                )
                self.cursor.reset()
                handle = await self._open(e)
                continue
            except WatchTransientError as e:
                log.warning('watch-stream for %s was interrupted: %s', self.session.describe(), e.message)
                handle = await self._open(e)
                continue

            self._attempts = 0
            await self._enqueue(notifications)
            await self._drain()

    async def __call__(self, task_status: TaskStatus[None] = TASK_STATUS_IGNORED):
        log.debug('starting %s', self)
        try:
            async with self.session:
                task_status.started()
                await self._watch()

                log.debug('stopping %s', self)
                self._set_state(State.DRAINING)
                self.session.close()
                await self._drain()
        finally:
            self._set_state(State.STOPPED)
            log.info('stopped %s', self)
