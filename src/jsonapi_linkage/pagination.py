"""
Lazily fetched, read-only collections that follow ``next`` links.

A :py:class:`PaginatedResourceList` holds the first page of a collection
document.  Further pages are fetched through a
:py:class:`~jsonapi_linkage.interfaces.LinkResolver` only while somebody
iterates over the list, one page at a time, in the order the ``next`` links
are encountered.
"""

import collections.abc
import enum
import itertools
import logging
import typing

from .exceptions import UnsupportedOperationError
from .interfaces import LinkResolver
from .serde.models import LinksRepr

logger = logging.getLogger(__name__)

T = typing.TypeVar("T")


class UnknownType:
    _singleton: typing.ClassVar[typing.Optional["UnknownType"]] = None

    def __bool__(self):
        return False

    def __repr__(self):
        return "UNKNOWN"

    def __new__(cls) -> "UnknownType":
        if cls._singleton is None:
            cls._singleton = object.__new__(cls)
        return cls._singleton


UNKNOWN = UnknownType()
"""
Stands for a size that cannot be told without fetching every page.
"""

Size = typing.Union[int, UnknownType]


def _meta_int(meta: typing.Optional[typing.Mapping[str, typing.Any]], key: str) -> typing.Optional[int]:
    if not meta:
        return None
    value = meta.get(key)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


class ResourcePage(collections.abc.Sequence, typing.Generic[T]):
    """
    A single page of a collection document: the materialized primary data
    plus the document-level ``links`` and ``meta``.
    """

    elements: typing.Tuple[T, ...]
    links: typing.Optional[LinksRepr]
    meta: typing.Dict[str, typing.Any]

    @property
    def next(self) -> typing.Optional[str]:
        return self.links.next if self.links is not None else None

    def __getitem__(self, index):
        return self.elements[index]

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self) -> typing.Iterator[T]:
        return iter(self.elements)

    def __repr__(self) -> str:
        return f"ResourcePage(elements={self.elements!r}, links={self.links!r}, meta={self.meta!r})"

    def __init__(
        self,
        elements: typing.Iterable[T],
        links: typing.Optional[LinksRepr] = None,
        meta: typing.Optional[typing.Mapping[str, typing.Any]] = None,
    ):
        self.elements = tuple(elements)
        self.links = links
        self.meta = dict(meta) if meta is not None else {}


class PageReader(typing.Protocol):
    def __call__(self, data: bytes, element_type: type) -> ResourcePage:
        ...  # pragma: nocover


class PageState(enum.Enum):
    HAS_PAGE = "has_page"
    FETCHING = "fetching"
    EXHAUSTED = "exhausted"


class PagingIterator(typing.Iterator[T]):
    """
    Walks the elements of a page, then follows the page's ``next`` link and
    carries on with the elements of the page it leads to.

    Failing to fetch or read a page is not an error for the caller: it is logged
    and the iteration simply ends.
    """

    _state: PageState
    _page: typing.Optional[ResourcePage[T]]
    _position: int
    _consumed: int
    _total: Size
    _link_resolver: typing.Optional[LinkResolver]
    _reader: PageReader
    _element_type: type

    @property
    def state(self) -> PageState:
        return self._state

    def _fetch_next(self) -> bool:
        assert self._page is not None
        link = self._page.next
        if link is None or self._link_resolver is None:
            self._page = None
            self._state = PageState.EXHAUSTED
            return False

        self._state = PageState.FETCHING
        logger.debug("fetching the next page from %s", link)
        try:
            page = self._reader(self._link_resolver.resolve(link), self._element_type)
        except Exception:
            logger.info("failed to fetch the page at %s; iteration ends here", link, exc_info=True)
            self._page = None
            self._state = PageState.EXHAUSTED
            return False

        self._page = page
        self._position = 0
        self._state = PageState.HAS_PAGE
        return True

    def has_next(self) -> bool:
        while self._state is PageState.HAS_PAGE:
            assert self._page is not None
            if self._position < len(self._page):
                return True
            self._fetch_next()
        return False

    def __next__(self) -> T:
        if not self.has_next():
            raise StopIteration()
        assert self._page is not None
        retval = self._page[self._position]
        self._position += 1
        self._consumed += 1
        return retval

    def __iter__(self) -> "PagingIterator[T]":
        return self

    def __length_hint__(self):
        if isinstance(self._total, UnknownType):
            return NotImplemented
        return max(self._total - self._consumed, 0)

    def __init__(
        self,
        page: ResourcePage[T],
        link_resolver: typing.Optional[LinkResolver],
        reader: PageReader,
        element_type: type,
        total: Size = UNKNOWN,
    ):
        self._state = PageState.HAS_PAGE
        self._page = page
        self._position = 0
        self._consumed = 0
        self._total = total
        self._link_resolver = link_resolver
        self._reader = reader
        self._element_type = element_type


class PaginatedResourceList(collections.abc.Sequence, typing.Generic[T]):
    """
    A read-only sequence over every page of a collection document.

    Every positional or membership query is a linear scan over the pages, which
    may fetch further pages on the way.  Anything that would modify the list
    raises :py:class:`~jsonapi_linkage.exceptions.UnsupportedOperationError`.

    :param ResourcePage page: the first page.
    :param Optional[LinkResolver] link_resolver: fetches the documents behind ``next`` links.
    :param PageReader reader: turns a fetched document into a :py:class:`ResourcePage`.
    :param type element_type: the class of the elements.
    """

    _page: ResourcePage[T]
    _link_resolver: typing.Optional[LinkResolver]
    _reader: PageReader
    _element_type: type

    @property
    def first_page(self) -> ResourcePage[T]:
        return self._page

    @property
    def links(self) -> typing.Optional[LinksRepr]:
        return self._page.links

    @property
    def meta(self) -> typing.Dict[str, typing.Any]:
        return self._page.meta

    @property
    def element_type(self) -> type:
        return self._element_type

    def total(self) -> Size:
        """
        The number of elements across all the pages.

        The ``total`` member of the first page's ``meta`` is trusted only while a
        ``next`` link is present; without one the first page is all there is.
        """
        if self._page.next is None:
            return len(self._page)
        total = _meta_int(self._page.meta, "total")
        return total if total is not None else UNKNOWN

    def per_page(self) -> Size:
        per_page = _meta_int(self._page.meta, "per_page")
        return per_page if per_page is not None else UNKNOWN

    def stream(self) -> PagingIterator[T]:
        return PagingIterator(
            self._page,
            self._link_resolver,
            self._reader,
            self._element_type,
            total=self.total(),
        )

    def __iter__(self) -> typing.Iterator[T]:
        return self.stream()

    def get(self, index: int) -> T:
        if index < 0:
            raise ValueError(f"index must not be negative ({index})")
        size = self.total()
        if not isinstance(size, UnknownType) and index >= size:
            raise IndexError(f"index {index} is out of bounds (size: {size})")
        for e in itertools.islice(self.stream(), index, None):
            return e
        raise IndexError(f"unable to retrieve the element at index {index}")

    def __getitem__(self, index):
        if isinstance(index, slice):
            if any(v is not None and v < 0 for v in (index.start, index.stop, index.step)):
                return list(self.stream())[index]
            return list(itertools.islice(self.stream(), index.start, index.stop, index.step))
        return self.get(index)

    def _index_of(self, value: typing.Any, short_circuit: bool) -> int:
        if self.total() == 0:
            return -1
        found = -1
        for i, e in enumerate(self.stream()):
            if e == value:
                found = i
                if short_circuit:
                    break
        return found

    def contains(self, value: typing.Any) -> bool:
        return self._index_of(value, True) >= 0

    def __contains__(self, value: typing.Any) -> bool:
        return self.contains(value)

    def index_of(self, value: typing.Any) -> int:
        return self._index_of(value, True)

    def last_index_of(self, value: typing.Any) -> int:
        return self._index_of(value, False)

    def index(self, value: typing.Any, start: int = 0, stop: typing.Optional[int] = None) -> int:
        if start < 0 or (stop is not None and stop < 0):
            raise ValueError("negative bounds are not supported")
        for i, e in enumerate(itertools.islice(self.stream(), start, stop), start):
            if e == value:
                return i
        raise ValueError(f"{value!r} is not in the list")

    def count(self, value: typing.Any) -> int:
        return sum(1 for e in self.stream() if e == value)

    def sub_list(self, from_index: int, to_index: int) -> typing.List[T]:
        if from_index > to_index:
            raise ValueError("from_index must be less than or equal to to_index")
        if from_index < 0:
            raise ValueError("from_index must not be negative")
        size = self.total()
        if not isinstance(size, UnknownType) and to_index > size:
            raise ValueError(
                f"to_index {to_index} must be less than or equal to the size of the list ({size})"
            )
        return list(itertools.islice(self.stream(), from_index, to_index))

    def __len__(self) -> int:
        size = self.total()
        if isinstance(size, UnknownType):
            raise TypeError("the size of the collection is unknown; use stream() to count")
        return size

    def __bool__(self) -> bool:
        return len(self._page) > 0

    def __repr__(self) -> str:
        return f"PaginatedResourceList(first_page={self._page!r})"

    def append(self, value: typing.Any) -> None:
        raise UnsupportedOperationError("append")

    def extend(self, values: typing.Iterable[typing.Any]) -> None:
        raise UnsupportedOperationError("extend")

    def insert(self, index: int, value: typing.Any) -> None:
        raise UnsupportedOperationError("insert")

    def remove(self, value: typing.Any) -> None:
        raise UnsupportedOperationError("remove")

    def pop(self, index: int = -1) -> T:
        raise UnsupportedOperationError("pop")

    def clear(self) -> None:
        raise UnsupportedOperationError("clear")

    def sort(self, *args, **kwargs) -> None:
        raise UnsupportedOperationError("sort")

    def reverse(self) -> None:
        raise UnsupportedOperationError("reverse")

    def replace_all(self, func: typing.Callable[[T], T]) -> None:
        raise UnsupportedOperationError("replace_all")

    def __setitem__(self, index, value) -> None:
        raise UnsupportedOperationError("item assignment")

    def __delitem__(self, index) -> None:
        raise UnsupportedOperationError("item deletion")

    def __iadd__(self, other):
        raise UnsupportedOperationError("in-place concatenation")

    def __imul__(self, other):
        raise UnsupportedOperationError("in-place repetition")

    def __init__(
        self,
        page: ResourcePage[T],
        link_resolver: typing.Optional[LinkResolver],
        reader: PageReader,
        element_type: type,
    ):
        self._page = page
        self._link_resolver = link_resolver
        self._reader = reader
        self._element_type = element_type
