from typing import List, Optional

from crinformer import ModelMixin, Resource, crd


@crd.model
class BookSpec(ModelMixin):
    """BookSpec defines the book itself."""

    title: str
    authors: Optional[List[str]] = None


@crd.resource(
    group='example.technosophos.com',
    version='v1',
    scope='Namespaced',
)
class Book(Resource):
    """Book is the Schema for the books API."""

    spec: BookSpec = None
