import dataclasses
import logging

import yaml

from .exceptions import ConfigurationError

__all__ = [
    'Settings',
]

log = logging.getLogger(__name__)


@dataclasses.dataclass
class Settings:
    # The namespace to watch, ignored for cluster scoped resources.
    namespace: str = 'default'
    # How long to wait for notifications before checking for a stop request.
    timeout: float = 5.0
    # Ask the api server to end each watch request after this many seconds.
    server_timeout: int = None
    # Maximum number of notifications taken from the watch-stream at once.
    batch_size: int = 100
    # Maximum number of queued events, None for unbounded.
    queue_size: int = None
    backoff_base: float = 1.0
    backoff_cap: float = 30.0
    backoff_jitter: float = 0.1
    # Consecutive reconnects before giving up, None to retry forever.
    max_retries: int = 10
    uvloop: bool = True

    @classmethod
    def from_dict(cls, d):
        names = {f.name for f in dataclasses.fields(cls)}
        unknown = set(d).difference(names)
        if unknown:
            raise ConfigurationError(f'unknown settings: {", ".join(sorted(unknown))}')
        return cls(**d)

    @classmethod
    def from_file(cls, path):
        """Load settings from a yaml file."""
        log.debug('loading settings from %s', path)
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigurationError(f'can not read settings from {path}: {e}') from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f'invalid settings in {path}: {e}') from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(f'invalid settings in {path}: expected a mapping')
        return cls.from_dict(data)

    def replace(self, **changes):
        """Return a copy with the given values replaced, None values are ignored."""
        return dataclasses.replace(
            self, **{k: v for k, v in changes.items() if v is not None}
        )
