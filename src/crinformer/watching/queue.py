import collections

from ..exceptions import QueueFull


class EventQueue:
    """An ordered buffer between the watch-stream and the dispatcher.

    There is exactly one producer (the informer) and one consumer
    (the dispatcher), so no locking is needed. Events leave the queue
    in the order they were pushed.
    """

    def __init__(self, maxsize=None):
        self.maxsize = maxsize
        self._items = collections.deque()

    def __repr__(self):
        if self.maxsize is None:
            return f'<EventQueue queued: {len(self)}>'
        return f'<EventQueue queued: {len(self)}/{self.maxsize}>'

    def __len__(self):
        return len(self._items)

    @property
    def full(self) -> bool:
        return self.maxsize is not None and len(self._items) >= self.maxsize

    def push(self, event):
        """Append the given event to the end of the queue."""
        if self.full:
            raise QueueFull(f'event queue is full ({self.maxsize} events)')
        self._items.append(event)

    def try_pop(self):
        """Remove and return the oldest event, or None if the queue is empty.
        Never blocks."""
        try:
            return self._items.popleft()
        except IndexError:
            return None
