import functools
import logging
import signal

import anyio
import uvloop
from anyio import CancelScope, open_signal_receiver

from .client import create_api_client
from .dispatcher import Dispatcher
from .exceptions import ConfigurationError
from .resources import describe
from .settings import Settings
from .watching import EventQueue, ExponentialBackoff, Informer, WatchSession


log = logging.getLogger(__name__)


async def signal_handler(informer: Informer, scope: CancelScope):
    """Stop the informer on the first signal, cancel everything on the second."""
    with open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
        async for signum in signals:
            name = signal.Signals(signum).name
            if informer.stopping:
                log.warning('%s received again, terminating', name)
                scope.cancel()
                return
            log.info('%s received, stopping', name)
            informer.stop()


class Operator:
    """Collects the event handler at import time and runs the informer for it."""

    def __init__(self):
        self._handlers = []

    def __repr__(self):
        resources = [describe(resource) for resource, _ in self._handlers]
        return f'<Operator resources: {resources}>'

    def on_event(self, resource):
        """Decorator that registers the handler for events of the given resource.

        The handler is a function (sync or async) taking the event, or a
        `Dispatcher` subclass.
        """
        def decorator(f):
            log.debug('registering handler %r for %s', f, describe(resource))
            self._handlers.append((resource, f))
            return f

        return decorator

    def clear(self):
        self._handlers.clear()

    @property
    def handler(self):
        """The registered resource and its handler."""
        if not self._handlers:
            raise ConfigurationError('no event handler is registered')
        if len(self._handlers) > 1:
            resources = ', '.join(describe(resource) for resource, _ in self._handlers)
            raise ConfigurationError(
                f'exactly one event handler can be registered, got: {resources}'
            )
        return self._handlers[0]

    def build(self, settings, api_client=None) -> Informer:
        """Create the informer for the registered handler."""
        resource, handler = self.handler
        if isinstance(handler, type) and issubclass(handler, Dispatcher):
            dispatcher = handler()
        elif isinstance(handler, Dispatcher):
            dispatcher = handler
        else:
            dispatcher = Dispatcher(handler)
        if api_client is None:
            api_client = create_api_client()
        session = WatchSession(
            api_client,
            resource,
            namespace=settings.namespace,
            server_timeout=settings.server_timeout,
            batch_size=settings.batch_size,
        )
        return Informer(
            session,
            dispatcher,
            queue=EventQueue(settings.queue_size),
            backoff=ExponentialBackoff(
                base_delay=settings.backoff_base,
                max_delay=settings.backoff_cap,
                jitter=settings.backoff_jitter,
                max_retries=settings.max_retries,
            ),
            timeout=settings.timeout,
        )

    async def __call__(self, settings, api_client=None, setup_signal_handler=False):
        informer = self.build(settings, api_client=api_client)
        log.info('watching %s', informer.session.describe())
        async with anyio.create_task_group() as tg:
            if setup_signal_handler:
                tg.start_soon(signal_handler, informer, tg.cancel_scope)
            await informer()
            tg.cancel_scope.cancel()
        return informer

    def run(self, settings=None):
        if settings is None:
            settings = Settings()
        backend_options = {}
        if settings.uvloop:
            backend_options['loop_factory'] = uvloop.new_event_loop
        return anyio.run(
            functools.partial(self, settings, setup_signal_handler=True),
            backend_options=backend_options,
        )
