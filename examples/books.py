import crinformer

from crinformer.examples.books import Book


# Receive the events of all Books in the watched namespace, in order.
@crinformer.on_event(Book)
async def handle(event):
    match type(event):
        case event.AddedEvent | event.ModifiedEvent:
            book = event.obj
            authors = ', '.join(book.spec.authors or ['unknown'])
            print(f'{event.kind.value}: {book.spec.title} by {authors}')
        case event.DeletedEvent:
            print(f'Deleted: {event.obj.metadata.name}')
        case event.ErrorEvent:
            print(f'server reported: {event.obj}')


if __name__ == '__main__':
    crinformer.run(crinformer.Settings(namespace='default', max_retries=None))
