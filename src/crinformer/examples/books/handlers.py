import crinformer

from .resource import Book


@crinformer.on_event(Book)
@crinformer.nonblocking
def handle(event):
    match type(event):
        case event.AddedEvent:
            book = event.obj
            print(f"Added a book {book.metadata.name} with title '{book.spec.title}'")
        case event.DeletedEvent:
            print(f'Deleted a book {event.obj.metadata.name}')
        case _:
            print('another event')
