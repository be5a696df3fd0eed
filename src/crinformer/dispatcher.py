import functools
import inspect
import logging

import anyio

from .exceptions import HandlerError
from .watching.events import UnknownEvent

__all__ = [
    'Dispatcher',
    'nonblocking',
]

log = logging.getLogger(__name__)


def is_async_fn(fn) -> bool:
    if fn is None:
        return False
    elif isinstance(fn, functools.partial):
        return is_async_fn(fn.func)
    elif hasattr(fn, '__wrapped__'):  # @functools.wraps()
        return is_async_fn(fn.__wrapped__)
    else:
        return inspect.iscoroutinefunction(fn)


def nonblocking(func):
    """Decorator that marks a given function as non blocking.
    Such functions are called directly in the event loop instead of
    in a worker thread."""
    func.__nonblocking__ = True
    return func


async def invoke(func, *args, **kwargs):
    if is_async_fn(func):
        return await func(*args, **kwargs)
    else:
        if hasattr(func, '__nonblocking__'):
            return func(*args, **kwargs)
        else:
            return await anyio.to_thread.run_sync(
                functools.partial(func, *args, **kwargs)
            )


class Dispatcher:
    """Passes events to the application's handler, one at a time.

    The handler is either given as a function (sync or async), or a subclass
    overrides `handle()`. A failing handler never stops the informer:
    the failure is logged and the next event is dispatched as usual.
    """

    def __init__(self, handler=None):
        if handler is not None:
            self.handle = handler
        self.dispatched = 0
        self.failed = 0

    def __repr__(self):
        handler = getattr(self.handle, '__qualname__', self.handle)
        return f'<{self.__class__.__name__} {handler}>'

    async def handle(self, event):
        raise NotImplementedError()

    async def __call__(self, event):
        """Dispatch a single event. Returns True if the handler succeeded."""
        if isinstance(event, UnknownEvent):
            log.debug('ignoring %s event: %r', event.type, event)
            return False
        try:
            await invoke(self.handle, event)
        except HandlerError as e:
            self.failed += 1
            log.error('handler failed to process %r: %s', event, e)
            return False
        except Exception:
            self.failed += 1
            log.exception('handler failed to process %r', event)
            return False
        self.dispatched += 1
        return True
