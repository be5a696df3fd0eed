import dataclasses
import enum
from typing import ClassVar


class EventKind(enum.Enum):
    ADDED = 'Added'
    MODIFIED = 'Modified'
    DELETED = 'Deleted'
    ERROR = 'Error'
    BOOKMARK_OR_UNKNOWN = 'BookmarkOrUnknown'


@dataclasses.dataclass(frozen=True)
class RawNotification:
    """A single notification as reported by the watch-stream."""

    type: str
    resource_version: str
    object: object


@dataclasses.dataclass(frozen=True, repr=False)
class Event:
    obj: object
    resource_version: str = None

    kind: ClassVar[EventKind]

    def __init_subclass__(cls, **kwargs):
        """Make subclasses available in the class namespace.
        Allows to use patterns like the following without having
        to import all the event classes.

        ```
        match type(event):
            case event.AddedEvent:
                pass
            case event.DeletedEvent:
                pass
        ```
        """
        super().__init_subclass__(**kwargs)
        setattr(Event, cls.__name__, cls)

    def __repr__(self):
        return f'<{self.__class__.__name__} {self.obj!r}>'


@dataclasses.dataclass(frozen=True, repr=False)
class AddedEvent(Event):
    kind = EventKind.ADDED


@dataclasses.dataclass(frozen=True, repr=False)
class ModifiedEvent(Event):
    kind = EventKind.MODIFIED


@dataclasses.dataclass(frozen=True, repr=False)
class DeletedEvent(Event):
    """The object is the last known state of the deleted resource."""

    kind = EventKind.DELETED


@dataclasses.dataclass(frozen=True, repr=False)
class ErrorEvent(Event):
    """The object is the status reported by the server."""

    kind = EventKind.ERROR


@dataclasses.dataclass(frozen=True, repr=False)
class UnknownEvent(Event):
    """Bookmarks and event types we do not understand.
    They are never passed to a handler."""

    kind = EventKind.BOOKMARK_OR_UNKNOWN

    type: str = None


_event_classes = {
    'ADDED': AddedEvent,
    'MODIFIED': ModifiedEvent,
    'DELETED': DeletedEvent,
    'ERROR': ErrorEvent,
}


def normalize(notification: RawNotification) -> Event:
    """Create a typed event from a raw notification."""
    cls = _event_classes.get(notification.type)
    if cls is None:
        return UnknownEvent(
            notification.object,
            notification.resource_version,
            type=notification.type,
        )
    return cls(notification.object, notification.resource_version)
