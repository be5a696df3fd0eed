import anyio
import httpx
import pytest

from crinformer import (
    ApiError,
    FatalError,
    RawNotification,
    Resource,
    WatchClosed,
    WatchError,
    WatchFatalError,
    WatchSession,
    WatchTransientError,
    crd,
)
from crinformer.examples.books import Book, BookSpec

from fakes import HANG, FakeApiClient


@crd.resource(group='example.technosophos.com', version='v1', scope='Cluster')
class Library(Resource):
    spec: BookSpec = None


async def collect(session, handle, timeout=1):
    """Read batches until the watch-stream fails, return everything and the failure."""
    batches = []
    with anyio.fail_after(5):
        while True:
            try:
                batches.append(await session.next_batch(handle, timeout))
            except (WatchError, FatalError) as e:
                return batches, e


def flatten(batches):
    return [notification for batch in batches for notification in batch]


def book(version, **kwargs):
    return {
        'apiVersion': 'example.technosophos.com/v1',
        'kind': 'Book',
        'metadata': {'name': 'dune', 'namespace': 'default', 'resourceVersion': version},
        'spec': {'title': 'Dune', **kwargs},
    }


async def test_notifications_arrive_in_order():
    client = FakeApiClient([
        ('ADDED', book('1')),
        ('MODIFIED', book('2')),
        ('DELETED', book('3')),
    ])
    async with WatchSession(client, Book, namespace='default') as session:
        handle = await session.open()
        batches, error = await collect(session, handle)

    notifications = flatten(batches)
    assert [n.type for n in notifications] == ['ADDED', 'MODIFIED', 'DELETED']
    assert [n.resource_version for n in notifications] == ['1', '2', '3']
    assert all(isinstance(n, RawNotification) for n in notifications)
    assert notifications[0].object == book('1')
    # The server ending the watch-stream is not a gap, resuming is safe.
    assert isinstance(error, WatchTransientError)


async def test_batches_are_limited():
    client = FakeApiClient([('ADDED', book(str(i))) for i in range(5)] + [HANG])
    async with WatchSession(client, Book, namespace='default', batch_size=2) as session:
        handle = await session.open()
        notifications = []
        with anyio.fail_after(5):
            while len(notifications) < 5:
                batch = await session.next_batch(handle, 1)
                assert len(batch) <= 2
                notifications.extend(batch)

    assert [n.resource_version for n in notifications] == ['0', '1', '2', '3', '4']


async def test_empty_batch_on_timeout():
    client = FakeApiClient([HANG])
    async with WatchSession(client, Book, namespace='default') as session:
        handle = await session.open()
        with anyio.fail_after(5):
            assert await session.next_batch(handle, 0.05) == []


async def test_watch_parameters():
    client = FakeApiClient([('ADDED', book('8')), HANG])
    async with WatchSession(client, Book, namespace='books', server_timeout=30) as session:
        handle = await session.open('7')
        with anyio.fail_after(5):
            batch = await session.next_batch(handle, 1)

    assert [n.resource_version for n in batch] == ['8']
    assert client.calls == [{
        'resource': Book,
        'namespace': 'books',
        'resource_version': '7',
        'server_timeout': 30,
    }]


async def test_cluster_scoped_resources_ignore_the_namespace():
    client = FakeApiClient([('ADDED', {'metadata': {'resourceVersion': '1'}}), HANG])
    async with WatchSession(client, Library, namespace='default') as session:
        assert session.namespace is None
        assert session.describe() == 'example.technosophos.com/v1/Library cluster-wide'
        handle = await session.open()
        with anyio.fail_after(5):
            await session.next_batch(handle, 1)

    assert client.calls[0]['namespace'] is None


async def test_gone_is_closed():
    client = FakeApiClient([
        ('ADDED', book('1')),
        ('ERROR', {'kind': 'Status', 'code': 410, 'message': 'too old resource version: 1'}),
        ('ADDED', book('2')),
    ])
    async with WatchSession(client, Book, namespace='default') as session:
        handle = await session.open('1')
        batches, error = await collect(session, handle)

    assert [n.resource_version for n in flatten(batches)] == ['1']
    assert isinstance(error, WatchClosed)
    assert 'too old resource version' in str(error)
    assert "example.technosophos.com/v1/Book in 'default'" in str(error)


@pytest.mark.parametrize('code, error_class', [
    (401, WatchFatalError),
    (403, WatchFatalError),
    (429, WatchTransientError),
    (500, WatchTransientError),
    (503, WatchTransientError),
])
async def test_error_events_are_classified(code, error_class):
    client = FakeApiClient([('ERROR', {'code': code, 'message': 'nope'})])
    async with WatchSession(client, Book, namespace='default') as session:
        handle = await session.open()
        batches, error = await collect(session, handle)

    assert flatten(batches) == []
    assert type(error) is error_class


async def test_fatal_error_event_carries_the_status():
    client = FakeApiClient([('ERROR', {'code': 403, 'message': 'forbidden'})])
    async with WatchSession(client, Book, namespace='default') as session:
        handle = await session.open()
        _, error = await collect(session, handle)

    assert error.status_code == 403
    assert error.exit_code == 3
    assert str(error) == "example.technosophos.com/v1/Book in 'default': status: 403: forbidden"


@pytest.mark.parametrize('code', [400, 422, 666])
async def test_other_error_events_are_passed_on(code):
    client = FakeApiClient([
        ('ADDED', book('1')),
        ('ERROR', {'code': code, 'message': 'something odd'}),
        ('ADDED', book('2')),
    ])
    async with WatchSession(client, Book, namespace='default') as session:
        handle = await session.open('1')
        batches, error = await collect(session, handle)

    notifications = flatten(batches)
    assert [n.type for n in notifications] == ['ADDED', 'ERROR']
    assert notifications[1].resource_version is None
    assert notifications[1].object.code == code
    assert notifications[1].object.message == 'something odd'
    # lightkube ended the watch with the error, it resumes from the cursor.
    assert isinstance(error, WatchTransientError)
    assert isinstance(error.__cause__, ApiError)


@pytest.mark.parametrize('code, error_class', [
    (410, WatchClosed),
    (403, WatchFatalError),
    (503, WatchTransientError),
])
async def test_raised_error_events_are_classified(code, error_class):
    cause = ApiError(status={'code': code, 'message': 'nope'})
    client = FakeApiClient([('ADDED', book('1')), cause])
    async with WatchSession(client, Book, namespace='default') as session:
        handle = await session.open()
        batches, error = await collect(session, handle)

    assert [n.resource_version for n in flatten(batches)] == ['1']
    assert type(error) is error_class
    assert error.__cause__ is cause


async def test_error_events_without_a_code_are_passed_on():
    cause = ApiError(status={'message': 'internal error, no code'})
    client = FakeApiClient([cause])
    async with WatchSession(client, Book, namespace='default') as session:
        handle = await session.open()
        batches, error = await collect(session, handle)

    [notification] = flatten(batches)
    assert notification.type == 'ERROR'
    assert notification.object.message == 'internal error, no code'
    assert isinstance(error, WatchTransientError)
    assert error.__cause__ is cause


async def test_api_errors_use_the_response_status():
    request = httpx.Request('GET', 'https://cluster.local/apis/example.technosophos.com/v1/books')
    response = httpx.Response(500, request=request, json={'message': 'etcd unavailable'})
    cause = ApiError(request=request, response=response)
    client = FakeApiClient([cause])
    async with WatchSession(client, Book, namespace='default') as session:
        handle = await session.open()
        batches, error = await collect(session, handle)

    assert flatten(batches) == []
    assert isinstance(error, WatchTransientError)
    assert error.__cause__ is cause



async def test_transport_errors_are_transient():
    cause = httpx.ConnectError('connection refused')
    client = FakeApiClient([('ADDED', book('1')), cause])
    async with WatchSession(client, Book, namespace='default') as session:
        handle = await session.open()
        batches, error = await collect(session, handle)

    assert [n.resource_version for n in flatten(batches)] == ['1']
    assert isinstance(error, WatchTransientError)
    assert error.__cause__ is cause
    assert 'connection refused' in str(error)


@pytest.mark.parametrize('status_code, error_class', [
    (403, WatchFatalError),
    (404, WatchFatalError),
    (410, WatchClosed),
    (503, WatchTransientError),
])
async def test_http_status_errors_are_classified(status_code, error_class):
    request = httpx.Request('GET', 'https://cluster.local/apis/example.technosophos.com/v1/books')
    response = httpx.Response(status_code, request=request)
    cause = httpx.HTTPStatusError('request failed', request=request, response=response)
    client = FakeApiClient([cause])
    async with WatchSession(client, Book, namespace='default') as session:
        handle = await session.open()
        _, error = await collect(session, handle)

    assert type(error) is error_class
    assert error.__cause__ is cause


async def test_unexpected_errors_are_fatal():
    client = FakeApiClient([ValueError('broken payload')])
    async with WatchSession(client, Book, namespace='default') as session:
        handle = await session.open()
        _, error = await collect(session, handle)

    assert isinstance(error, WatchFatalError)
    assert 'unexpected error' in str(error)
    assert isinstance(error.__cause__, ValueError)


async def test_reopening_closes_the_previous_stream():
    client = FakeApiClient([HANG], [('ADDED', book('6')), HANG])
    async with WatchSession(client, Book, namespace='default') as session:
        first = await session.open()
        second = await session.open('5')
        assert first.closed
        assert not second.closed
        with pytest.raises(WatchClosed):
            await session.next_batch(first, 1)
        with anyio.fail_after(5):
            batch = await session.next_batch(second, 1)

    assert [n.resource_version for n in batch] == ['6']
    assert second.closed


async def test_open_requires_entering_the_session():
    session = WatchSession(FakeApiClient(), Book, namespace='default')
    with pytest.raises(RuntimeError):
        await session.open()
