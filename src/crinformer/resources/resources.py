from dataclasses import dataclass

from lightkube.core import resource as lkr
from lightkube.core.schema import DictMixin
from lightkube.models import meta_v1


class ModelMixin(DictMixin):
    @classmethod
    def from_dict(cls, d, lazy=True):
        # Custom Resource models can not be lazy.
        lazy = False
        if isinstance(d, cls):
            return d
        else:
            return super(ModelMixin, cls).from_dict(d, lazy=lazy)


@dataclass
class Resource(ModelMixin):
    """Base of all custom resources.

    The `spec` and `status` fields are declared by the concrete resource,
    `status` is optional.
    """

    apiVersion: str = None
    kind: str = None
    metadata: meta_v1.ObjectMeta = None

    def __post_init__(self):
        # Ensure instances know their own apiVersion and kind.
        info = getattr(self, '_api_info', None)
        if info is not None:
            if self.apiVersion in ('', None):
                self.apiVersion = info.resource.api_version
            if self.kind in ('', None):
                self.kind = info.resource.kind

    def __repr__(self):
        out = [f'{self.apiVersion}/{self.kind}']
        metadata = self.metadata
        if metadata is not None:
            if metadata.namespace is not None:
                out.append(f'{metadata.namespace}/{metadata.name}')
            elif metadata.name is not None:
                out.append(metadata.name)
            if metadata.resourceVersion is not None:
                out.append(metadata.resourceVersion)
        ident = ' '.join(out)
        return f'<Object {ident}>'


def is_namespaced_resource(resource):
    return issubclass(resource, (lkr.NamespacedResource, lkr.NamespacedSubResource))


def describe(resource, namespace=None) -> str:
    """Human readable name of a watched collection, used in logs and errors."""
    info = lkr.api_info(resource)
    out = f'{info.resource.api_version}/{info.resource.kind}'
    if namespace is not None:
        return f'{out} in {namespace!r}'
    return f'{out} cluster-wide'
