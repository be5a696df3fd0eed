from lightkube.core.exceptions import ApiError

__all__ = [
    'ApiError',
    'ConfigurationError',
    'Error',
    'FatalError',
    'HandlerError',
    'QueueFull',
    'RetriesExhausted',
    'WatchClosed',
    'WatchError',
    'WatchFatalError',
    'WatchTransientError',
    'iterate_errors',
]


def iterate_errors(exc):
    """
    iterate over all non-exceptiongroup parts of an exception(group)
    """
    if isinstance(exc, BaseExceptionGroup):
        for e in exc.exceptions:
            yield from iterate_errors(e)
    else:
        yield exc


class Error(Exception):
    """Base class for all recoverable errors."""

    def __init__(self, message=None):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message or ''

    def __repr__(self):
        return f'{self.__class__.__name__}: {self.message}'


class HandlerError(Error):
    """Raised by an event handler when it failed to process a single event.
    The informer logs it and continues with the next event."""


class QueueFull(Error):
    """Raised when pushing into a bounded event queue that has no room left."""


class WatchError(Error):
    """Base class for failures of a watch-stream."""

    def __init__(self, description, message=None):
        super().__init__(message)
        self.description = description

    def __str__(self):
        if self.message:
            return f'{self.description}: {self.message}'
        return self.description


class WatchClosed(WatchError):
    """The server ended the watch-stream, e.g. because the resource version
    we asked for is too old. Watching has to restart from now."""


class WatchTransientError(WatchError):
    """A recoverable interruption of the watch-stream, e.g. a network error.
    Watching can resume from the last seen resource version."""


class FatalError(Exception):
    """A fatal error that we can not recover from."""

    exit_code = 1

    def __init__(self, message=None):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message or self.__class__.__name__


class ConfigurationError(FatalError):
    """The operator could not be configured, e.g. no kubeconfig was found."""

    exit_code = 2


class WatchFatalError(FatalError):
    """The watch-stream failed in a way that retrying will not fix,
    e.g. the credentials were rejected."""

    exit_code = 3

    def __init__(self, description, message=None, status_code=None):
        super().__init__(message)
        self.description = description
        self.status_code = status_code

    def __str__(self):
        out = [self.description]
        if self.status_code is not None:
            out.append(f'status: {self.status_code}')
        if self.message:
            out.append(self.message)
        return ': '.join(out)


class RetriesExhausted(FatalError):
    """Re-establishing the watch-stream failed too many times in a row."""

    exit_code = 4

    def __init__(self, description, attempts):
        super().__init__(f'{description}: gave up after {attempts} attempts')
        self.description = description
        self.attempts = attempts
