from .events import (
    AddedEvent,
    DeletedEvent,
    ErrorEvent,
    Event,
    EventKind,
    ModifiedEvent,
    RawNotification,
    UnknownEvent,
    normalize,
)
from .queue import EventQueue
from .backoff import ExponentialBackoff
from .session import SessionHandle, WatchSession
from .informer import Informer, State, WatchCursor

__all__ = [
    'AddedEvent',
    'DeletedEvent',
    'ErrorEvent',
    'Event',
    'EventKind',
    'EventQueue',
    'ExponentialBackoff',
    'Informer',
    'ModifiedEvent',
    'RawNotification',
    'SessionHandle',
    'State',
    'UnknownEvent',
    'WatchCursor',
    'WatchSession',
    'normalize',
]
