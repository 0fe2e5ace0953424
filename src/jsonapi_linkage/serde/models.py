"""
Generic views over a parsed JSON:API document.

Nothing in here knows about the Python classes resources end up materialized
into; the converter reads these views on the way in and builds them on the way
out.  Every view remembers where it was read from in ``_source_``, which is
left out of equality.
"""

import collections.abc
import dataclasses
import datetime
import decimal
import typing
from collections import OrderedDict

from .utils import JSONPointer

Source = typing.Union[JSONPointer, str]

ResourceIdentity = typing.Tuple[str, str]
"""
``(type, id)``; identifies a resource within one conversion.
"""

Meta = typing.Dict[str, typing.Any]


@dataclasses.dataclass
class Repr:
    _source_: typing.Optional[Source] = dataclasses.field(default=None, compare=False)


@dataclasses.dataclass(init=False)
class LinkRepr(Repr):
    """
    One member of a ``links`` object.  On the wire it is either a bare URL or
    an object with ``href`` and ``meta``; :py:meth:`to_json` gives back the
    same form.
    """

    href: typing.Optional[str] = None
    meta: typing.Optional[Meta] = None

    def to_json(self) -> typing.Any:
        if self.meta is None:
            return self.href
        return {"href": self.href, "meta": self.meta}

    def __init__(
        self,
        href: typing.Optional[str],
        meta: typing.Optional[Meta] = None,
        _source_: typing.Optional[Source] = None,
    ):
        super().__init__(_source_=_source_)
        self.href = href
        self.meta = meta


@dataclasses.dataclass(init=False)
class LinksRepr(Repr):
    """
    An ordered ``links`` object.  Any link name is kept; the ones pagination
    and relationship resolution look for have their own accessors, each of
    which returns the href or None.
    """

    links: typing.Mapping[str, LinkRepr] = dataclasses.field(default_factory=OrderedDict)

    def get(self, name: str) -> typing.Optional[str]:
        link = self.links.get(name)
        return None if link is None else link.href

    self_ = property(lambda self: self.get("self"))
    related = property(lambda self: self.get("related"))
    next = property(lambda self: self.get("next"))
    prev = property(lambda self: self.get("prev"))
    first = property(lambda self: self.get("first"))
    last = property(lambda self: self.get("last"))

    def __contains__(self, name: typing.Any) -> bool:
        return name in self.links

    def __iter__(self) -> typing.Iterator[str]:
        return iter(self.links)

    def __len__(self) -> int:
        return len(self.links)

    def to_json(self) -> typing.Dict[str, typing.Any]:
        return OrderedDict((name, link.to_json()) for name, link in self.links.items())

    @classmethod
    def of(cls, **hrefs: typing.Optional[str]) -> "LinksRepr":
        """
        ``LinksRepr.of(self_="/articles/1", related=None)``; None values are
        dropped and ``self_`` is spelled ``self`` on the wire.
        """
        pairs = []
        for name, href in hrefs.items():
            if href is not None:
                pairs.append(("self" if name == "self_" else name, LinkRepr(href)))
        return cls(pairs)

    def __init__(
        self,
        links: typing.Iterable[typing.Tuple[str, LinkRepr]] = (),
        _source_: typing.Optional[Source] = None,
    ):
        super().__init__(_source_=_source_)
        self.links = OrderedDict(links)


@dataclasses.dataclass(init=False)
class MetaContainerRepr(Repr):
    meta: Meta = dataclasses.field(default_factory=dict)

    def __init__(self, *, meta: typing.Optional[Meta] = None, _source_: typing.Optional[Source] = None):
        super().__init__(_source_=_source_)
        self.meta = {} if meta is None else meta


@dataclasses.dataclass(init=False)
class NodeRepr(MetaContainerRepr):
    links: typing.Optional[LinksRepr] = None

    def __init__(
        self,
        *,
        links: typing.Optional[LinksRepr] = None,
        meta: typing.Optional[Meta] = None,
        _source_: typing.Optional[Source] = None,
    ):
        super().__init__(meta=meta, _source_=_source_)
        self.links = links


@dataclasses.dataclass(init=False)
class ResourceIdRepr(MetaContainerRepr):
    """
    A resource identifier object, as found in relationship linkage.
    """

    type: str  # type: ignore
    id: str  # type: ignore

    @property
    def identity(self) -> ResourceIdentity:
        return (self.type, self.id)

    def __init__(
        self,
        *,
        type: str,
        id: str,
        meta: typing.Optional[Meta] = None,
        _source_: typing.Optional[Source] = None,
    ):
        super().__init__(meta=meta, _source_=_source_)
        self.type = type
        self.id = id


LinkageData = typing.Union[None, ResourceIdRepr, typing.Sequence[ResourceIdRepr]]


@dataclasses.dataclass(init=False)
class LinkageRepr(NodeRepr):
    """
    A relationship object.

    A relationship that is only reachable through its links has no ``data``
    member at all, which is told apart from ``"data": null`` by
    :py:attr:`has_data`.  To-many linkage is always held as a tuple.
    """

    data: LinkageData = None
    has_data: bool = True

    @property
    def is_to_many(self) -> bool:
        return self.has_data and isinstance(self.data, collections.abc.Sequence)

    def __init__(
        self,
        *,
        data: LinkageData = None,
        links: typing.Optional[LinksRepr] = None,
        meta: typing.Optional[Meta] = None,
        has_data: bool = True,
        _source_: typing.Optional[Source] = None,
    ):
        super().__init__(links=links, meta=meta, _source_=_source_)
        if isinstance(data, collections.abc.Sequence):
            data = tuple(data)
        self.data = data
        self.has_data = has_data


AttributeScalar = typing.Union[
    datetime.datetime, datetime.date, decimal.Decimal, str, int, float, bytes, None
]
AttributeValue = typing.Union[
    typing.Sequence[AttributeScalar],
    typing.Mapping[str, AttributeScalar],
    AttributeScalar,
]


@dataclasses.dataclass(init=False)
class ResourceRepr(NodeRepr):
    """
    A resource object: the Resource Node the resolver works on.

    ``id`` is None only for resources that have not been created on the server
    yet; such resources have no :py:attr:`identity`.
    """

    type: str  # type: ignore
    id: typing.Optional[str]  # type: ignore
    attributes: typing.Mapping[str, AttributeValue] = dataclasses.field(default_factory=OrderedDict)  # type: ignore
    relationships: typing.Mapping[str, LinkageRepr] = dataclasses.field(default_factory=OrderedDict)  # type: ignore
    has_attributes: bool = True

    @property
    def identity(self) -> typing.Optional[ResourceIdentity]:
        return None if self.id is None else (self.type, self.id)

    def __getitem__(self, name: str) -> AttributeValue:
        return self.attributes[name]

    def __init__(
        self,
        *,
        type: str,
        id: typing.Optional[str],
        attributes: typing.Iterable[typing.Tuple[str, AttributeValue]] = (),
        relationships: typing.Iterable[typing.Tuple[str, LinkageRepr]] = (),
        links: typing.Optional[LinksRepr] = None,
        meta: typing.Optional[Meta] = None,
        has_attributes: bool = True,
        _source_: typing.Optional[Source] = None,
    ):
        """
        :param attributes: pairs of attribute name and value, in document order.
        :param relationships: pairs of relationship name and :py:class:`LinkageRepr`, in document order.
        :param bool has_attributes: False when the resource object has no ``attributes`` member.
        """
        super().__init__(links=links, meta=meta, _source_=_source_)
        self.type = type
        self.id = id
        self.attributes = OrderedDict(attributes)
        self.relationships = OrderedDict(relationships)
        self.has_attributes = has_attributes


@dataclasses.dataclass(init=False)
class SourceRepr(Repr):
    pointer: typing.Optional[str] = None
    parameter: typing.Optional[str] = None

    def __init__(
        self,
        pointer: typing.Optional[str] = None,
        parameter: typing.Optional[str] = None,
        _source_: typing.Optional[Source] = None,
    ):
        super().__init__(_source_=_source_)
        self.pointer = pointer
        self.parameter = parameter


@dataclasses.dataclass
class ErrorRepr(NodeRepr):
    """
    An error object of an ``errors`` document.
    """

    id: typing.Optional[str] = None
    status: typing.Optional[str] = None
    code: typing.Optional[str] = None
    title: typing.Optional[str] = None
    detail: typing.Optional[str] = None
    source: typing.Optional[SourceRepr] = None

    def describe(self) -> str:
        """
        A one-line summary such as ``Not Found: Error code: 404 Detail: no such article``.
        The status is used only when nothing else is available.
        """
        parts = [
            text
            for text in (
                None if self.title is None else f"{self.title}:",
                None if self.code is None else f"Error code: {self.code}",
                None if self.detail is None else f"Detail: {self.detail}",
            )
            if text is not None
        ]
        if not parts and self.status is not None:
            parts.append(f"Status: {self.status}")
        return " ".join(parts)


class MissingType:
    """
    Stands for a member that is absent from the document, as opposed to ``null``.
    """

    _singleton: typing.ClassVar[typing.Optional["MissingType"]] = None

    def __bool__(self):
        return False

    def __repr__(self):
        return "Missing"

    def __new__(cls) -> "MissingType":
        if cls._singleton is None:
            cls._singleton = object.__new__(cls)
        return cls._singleton


Missing = MissingType()


PrimaryData = typing.Union[None, ResourceRepr, typing.Sequence[ResourceRepr]]


@dataclasses.dataclass(init=False)
class DocumentRepr(NodeRepr):
    """
    A top-level document.

    ``data`` is :py:data:`Missing` for documents without primary data, such as
    error documents.  A collection is held as a tuple.
    """

    jsonapi: Meta = dataclasses.field(default_factory=dict)
    errors: typing.Sequence[ErrorRepr] = ()
    included: typing.Sequence[ResourceRepr] = ()
    data: typing.Union[PrimaryData, MissingType] = Missing

    @property
    def has_data(self) -> bool:
        return self.data is not Missing

    @property
    def is_collection(self) -> bool:
        return self.has_data and isinstance(self.data, collections.abc.Sequence)

    @property
    def is_single(self) -> bool:
        return isinstance(self.data, ResourceRepr)

    def __init__(
        self,
        *,
        data: typing.Union[PrimaryData, MissingType] = Missing,
        jsonapi: typing.Optional[Meta] = None,
        errors: typing.Optional[typing.Sequence[ErrorRepr]] = None,
        included: typing.Iterable[ResourceRepr] = (),
        links: typing.Optional[LinksRepr] = None,
        meta: typing.Optional[Meta] = None,
        _source_: typing.Optional[Source] = None,
    ):
        """
        :raises ValueError: if none of ``data``, ``errors`` and ``meta`` is given.
        """
        if data is Missing and errors is None and meta is None:
            raise ValueError("a document needs at least one of data, errors, or meta")
        super().__init__(links=links, meta=meta, _source_=_source_)
        if isinstance(data, collections.abc.Sequence):
            data = tuple(data)
        self.data = data
        self.jsonapi = {} if jsonapi is None else jsonapi
        self.errors = tuple(errors) if errors else ()
        self.included = tuple(included)
