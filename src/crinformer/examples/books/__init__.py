"""
Books: the minimal custom resource used to demonstrate the informer.

The resource is defined in `resource`, the handler printing its events in
`handlers`. Run it with:

    crinformer run -m crinformer.examples.books.handlers
"""

from .resource import Book, BookSpec

__all__ = [
    'Book',
    'BookSpec',
]
