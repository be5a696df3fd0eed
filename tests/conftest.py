import inspect

import anyio
import pytest

import crinformer
from crinformer import Dispatcher, ObjectMeta, RawNotification
from crinformer.examples.books import Book, BookSpec


# Make all async tests in this directory and below anyio tests by default.
@pytest.hookimpl(hookwrapper=True)
def pytest_pycollect_makeitem(collector, name, obj):
    if collector.funcnamefilter(name) and inspect.iscoroutinefunction(obj):
        pytest.mark.anyio(obj)
    yield


@pytest.fixture
def anyio_backend():
    return 'asyncio'


@pytest.fixture(autouse=True)
def _restore_registered_handlers():
    # Handler modules register with the singleton operator when imported.
    handlers = list(crinformer.operator._handlers)
    yield
    crinformer.operator._handlers[:] = handlers


@pytest.fixture
def make_book():
    def _make_book(version='1', name='dune', title='Dune', authors=None, namespace='default'):
        return Book(
            metadata=ObjectMeta(name=name, namespace=namespace, resourceVersion=version),
            spec=BookSpec(title=title, authors=authors),
        )
    return _make_book


@pytest.fixture
def notification(make_book):
    def _notification(event_type, version, **kwargs):
        return RawNotification(event_type, version, make_book(version, **kwargs))
    return _notification


@pytest.fixture
def received():
    return []


@pytest.fixture
def dispatcher(received):
    async def handle(event):
        received.append(event)
    return Dispatcher(handle)


@pytest.fixture
def run_until():
    """Run the informer until the condition is met, then stop it gracefully."""
    async def _run_until(informer, condition, timeout=5):
        async with anyio.create_task_group() as tg:
            tg.start_soon(informer)
            with anyio.fail_after(timeout):
                while not condition():
                    await anyio.sleep(0.001)
            informer.stop()
    return _run_until
