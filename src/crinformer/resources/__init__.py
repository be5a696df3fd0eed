from lightkube.models.meta_v1 import ObjectMeta

from .resources import (
    describe,
    is_namespaced_resource,
    ModelMixin,
    Resource,
)
from . import crd

__all__ = [
    'crd',
    'describe',
    'is_namespaced_resource',
    'ModelMixin',
    'ObjectMeta',
    'Resource',
    'resource_version_of',
]


def resource_version_of(obj):
    """Return the resource version of a decoded object or a raw dict."""
    if isinstance(obj, dict):
        return obj.get('metadata', {}).get('resourceVersion')
    metadata = getattr(obj, 'metadata', None)
    if metadata is None:
        return None
    return getattr(metadata, 'resourceVersion', None)

