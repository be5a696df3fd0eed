"""
Watch-streams of a single resource collection.

The api client's watch is an async iterator which can not be interrupted
without losing it: cancelling a pending `__anext__()` closes the underlying
generator. To wait for notifications with a timeout and still continue the
same stream afterwards, the iterator is consumed by a reader task which
forwards everything into a memory object stream. The informer then reads
batches from that stream.

Failures of the watch are forwarded through the same stream, so they arrive
in order after the notifications which were received before them.
"""
import contextlib
import dataclasses
import logging

import anyio
import httpx

from ..exceptions import ApiError, WatchClosed, WatchFatalError, WatchTransientError
from ..resources import describe, is_namespaced_resource, resource_version_of
from .events import RawNotification


log = logging.getLogger(__name__)

HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_GONE = 410
HTTP_TOO_MANY_REQUESTS = 429


def _status_code(obj):
    if isinstance(obj, dict):
        return obj.get('code')
    return getattr(obj, 'code', None)


def _status_message(obj):
    if isinstance(obj, dict):
        return obj.get('message')
    return getattr(obj, 'message', None)


def _is_transient_code(code):
    return code == HTTP_TOO_MANY_REQUESTS or 500 <= code < 600


@dataclasses.dataclass(eq=False)
class SessionHandle:
    """One established watch-stream."""

    resource_version: str = None
    stream: object = None
    cancel_scope: object = None
    error: Exception = None
    closed: bool = False

    def close(self):
        if not self.closed:
            self.closed = True
            if self.cancel_scope is not None:
                self.cancel_scope.cancel()
            self.stream.close()


class WatchSession:
    """Maintains one watch-stream for a resource in a namespace.

    Must be used as an async context manager, which owns the reader tasks:

    ```
    async with WatchSession(client, Book, namespace='default') as session:
        handle = await session.open()
        notifications = await session.next_batch(handle, timeout=5)
    ```
    """

    def __init__(
        self,
        api_client,
        resource,
        namespace=None,
        server_timeout=None,
        batch_size=100,
        buffer_size=100,
    ):
        self.api_client = api_client
        self.resource = resource
        if not is_namespaced_resource(resource):
            namespace = None
        self.namespace = namespace
        self.server_timeout = server_timeout
        self.batch_size = batch_size
        self.buffer_size = buffer_size
        self._task_group = None
        self._handle = None

    def __repr__(self):
        return f'<WatchSession {self.describe()}>'

    def describe(self) -> str:
        return describe(self.resource, self.namespace)

    async def __aenter__(self):
        self._task_group = anyio.create_task_group()
        await self._task_group.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()
        try:
            return await self._task_group.__aexit__(exc_type, exc_val, exc_tb)
        finally:
            self._task_group = None

    async def open(self, cursor=None) -> SessionHandle:
        """Start watching from the given resource version, or from now if None.
        Any previously opened stream is closed."""
        if self._task_group is None:
            raise RuntimeError(f'{self!r} must be entered before opening it')
        self.close()
        send_stream, receive_stream = anyio.create_memory_object_stream(
            self.buffer_size
        )
        handle = SessionHandle(resource_version=cursor, stream=receive_stream)
        await self._task_group.start(self._reader, handle, send_stream)
        self._handle = handle
        log.debug('opened the watch-stream for %s from %s', self.describe(), cursor or 'now')
        return handle

    def close(self):
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    async def next_batch(self, handle, timeout):
        """Return the notifications which are available.

        Waits at most `timeout` seconds for the first one and returns an empty
        list if nothing arrived. Raises `WatchClosed`, `WatchTransientError` or
        `WatchFatalError` if the stream failed.
        """
        if handle.error is not None:
            error, handle.error = handle.error, None
            raise error
        if handle.closed:
            raise WatchClosed(self.describe(), 'the watch-stream was closed')

        items = []
        with anyio.move_on_after(timeout):
            items.append(await self._receive(handle))
        if not items:
            return []

        # Take whatever else is buffered without waiting.
        while len(items) < self.batch_size and not isinstance(items[-1], Exception):
            try:
                items.append(handle.stream.receive_nowait())
            except (anyio.WouldBlock, anyio.EndOfStream, anyio.ClosedResourceError):
                break

        # Deliver what we have got before the failure, raise the failure next time.
        if isinstance(items[-1], Exception):
            error = items.pop()
            if not items:
                raise error
            handle.error = error
        return items

    async def _receive(self, handle):
        try:
            return await handle.stream.receive()
        except (anyio.EndOfStream, anyio.ClosedResourceError):
            raise WatchClosed(self.describe(), 'the watch-stream was closed') from None

    async def _reader(self, handle, send_stream, *, task_status=anyio.TASK_STATUS_IGNORED):
        async with send_stream:
            with anyio.CancelScope() as handle.cancel_scope:
                task_status.started()
                try:
                    await self._stream(handle, send_stream)
                except (anyio.BrokenResourceError, anyio.ClosedResourceError):
                    # The handle was closed while we were forwarding.
                    log.debug('dropped the watch-stream for %s', self.describe())

    async def _stream(self, handle, send_stream):
        watch = self.api_client.watch(
            self.resource,
            namespace=self.namespace,
            resource_version=handle.resource_version,
            server_timeout=self.server_timeout,
        )
        try:
            async with contextlib.aclosing(watch) as stream:
                async for event_type, obj in stream:
                    item = self._notification(event_type, obj)
                    await send_stream.send(item)
                    if isinstance(item, Exception):
                        return
        except (anyio.BrokenResourceError, anyio.ClosedResourceError):
            raise
        except ApiError as e:
            if e.response is None:
                # lightkube raises the ERROR events of the watch-stream.
                for item in self._error_event(e):
                    await send_stream.send(item)
            else:
                await send_stream.send(self._classify(e))
        except Exception as e:
            await send_stream.send(self._classify(e))
        else:
            # The server ends idle watches, resume from the last resource version.
            await send_stream.send(
                WatchTransientError(self.describe(), 'the server ended the watch-stream')
            )

    def _notification(self, event_type, obj):
        if event_type == 'ERROR':
            code = _status_code(obj)
            message = _status_message(obj)
            # "410 Gone" is for the "resource version too old" error.
            if code == HTTP_GONE:
                return WatchClosed(self.describe(), message or 'resource version too old')
            if code in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN):
                return WatchFatalError(self.describe(), message, status_code=code)
            if code is not None and _is_transient_code(code):
                return WatchTransientError(self.describe(), message or f'status: {code}')
        return RawNotification(event_type, resource_version_of(obj), obj)

    def _error_event(self, exc):
        """Items for an ERROR event which lightkube raised as `ApiError`.

        lightkube ends the watch when it raises, so an error which is passed
        on as a notification is followed by a transient failure to resume
        from the cursor.
        """
        item = self._notification('ERROR', exc.status)
        if isinstance(item, Exception):
            item.__cause__ = exc
            return [item]
        error = WatchTransientError(self.describe(), 'the watch-stream ended after an error event')
        error.__cause__ = exc
        return [item, error]

    def _classify(self, exc):
        description = self.describe()
        if isinstance(exc, httpx.HTTPStatusError):
            # lightkube's ApiError carries the status reported by the server.
            code = _status_code(getattr(exc, 'status', None))
            if code is None and exc.response is not None:
                code = exc.response.status_code
            if code == HTTP_GONE:
                error = WatchClosed(description, 'resource version too old')
            elif code is not None and _is_transient_code(code):
                error = WatchTransientError(description, str(exc))
            else:
                error = WatchFatalError(description, str(exc), status_code=code)
        elif isinstance(exc, (httpx.TransportError, TimeoutError, OSError)):
            error = WatchTransientError(description, f'{exc.__class__.__name__}: {exc}')
        else:
            error = WatchFatalError(description, f'unexpected error: {exc!r}')
        error.__cause__ = exc
        return error
