"""Helpers for reading whole result sets through Protean querysets."""

from collections.abc import Iterator

DEFAULT_PAGE_SIZE = 100


def iter_all(queryset, page_size: int = DEFAULT_PAGE_SIZE) -> Iterator:
    """Yield every record matched by ``queryset``, one page at a time.

    Protean querysets cap ``.all()`` at a default limit, so scans that must
    see every record walk offsets explicitly. The queryset should carry a
    stable ``order_by`` for the pages to line up.
    """
    offset = 0
    while True:
        items = queryset.offset(offset).limit(page_size).all().items
        yield from items
        if len(items) < page_size:
            return
        offset += page_size
