from dataclasses import dataclass
from typing import dataclass_transform

from lightkube.core import resource as lkr

from .resources import ModelMixin, Resource


_resource_verbs = [
    'get',
    'global_list',
    'global_watch',
    'list',
    'watch',
]


# @see https://mypy.readthedocs.io/en/stable/additional_features.html
@dataclass_transform(kw_only_default=True)
def resource(
    group=None,
    version=None,
    kind=None,
    scope=None,
    singular=None,
    plural=None,
):
    """Turn the decorated `Resource` subclass into a lightkube resource
    which can be listed and watched.
    """
    def _wrap(model):
        nonlocal kind, singular, plural

        if not issubclass(model, Resource):
            raise TypeError(f'{model.__name__} must be a subclass of Resource')
        # Ensure the model is a dataclass.
        if '__dataclass_fields__' not in model.__dict__:
            model = dataclass(model, kw_only=True, repr=False)

        if not kind:
            kind = model.__name__
        if singular is None:
            singular = kind.lower()
        if plural is None:
            if singular[-1] == 's':
                plural = f'{singular}es'
            else:
                plural = f'{singular}s'

        if scope == 'Cluster':
            base = lkr.GlobalResource
        else:
            base = lkr.NamespacedResourceG

        # Create a lightkube resource based on the model.
        _Resource = type(
            kind,
            (model, base),
            {
                '__module__': model.__module__,
                '__qualname__': model.__qualname__,
                '__doc__': model.__doc__,
            },
        )
        # Create lightkube api-info.
        _Resource._api_info = lkr.ApiInfo(
            resource=lkr.ResourceDef(group, version, kind),
            plural=plural,
            verbs=_resource_verbs,
        )
        return _Resource

    return _wrap


@dataclass_transform()
def model(resource_class=None, /):
    """Turn the decorated `ModelMixin` subclass into a decodable payload,
    e.g. the `spec` of a custom resource.
    """
    def _wrap(cls):
        if not issubclass(cls, ModelMixin):
            raise TypeError(f'{cls.__name__} must be a subclass of ModelMixin')
        # Ensure the class is a dataclass.
        if '__dataclass_fields__' not in cls.__dict__:
            cls = dataclass(cls)
        return cls

    if resource_class is None:
        return _wrap
    else:
        return _wrap(resource_class)
