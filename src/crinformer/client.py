import logging

from lightkube import AsyncClient
from lightkube.core.exceptions import ConfigError

from .exceptions import ConfigurationError

__all__ = [
    'create_api_client',
]

log = logging.getLogger(__name__)


def create_api_client(config=None):
    """Create the async api client from a kubeconfig or the in-cluster config.

    Loading the configuration is not retried: if it fails, the operator can
    not do anything useful.
    """
    try:
        client = AsyncClient(config=config)
    except (ConfigError, OSError) as e:
        raise ConfigurationError(f'failed to load the kubernetes configuration: {e}') from e
    log.debug('created api client for namespace %s', client.namespace)
    return client
