"""
Mutable accumulators for the outbound path.

The converter walks an object graph and fills in builders; calling a builder
freezes what it has accumulated into the corresponding repr.
"""

import abc
import typing
from collections import OrderedDict

from .models import (
    AttributeValue,
    DocumentRepr,
    LinkageRepr,
    LinksRepr,
    Repr,
    ResourceIdRepr,
    ResourceRepr,
)


class ReprBuilder(metaclass=abc.ABCMeta):
    meta: typing.Dict[str, typing.Any]

    def update_meta(self, meta: typing.Optional[typing.Mapping[str, typing.Any]]) -> None:
        if meta:
            self.meta.update(meta)

    @abc.abstractmethod
    def __call__(self) -> Repr:
        ...  # pragma: nocover

    def __init__(self):
        self.meta = {}


class IdentifierBuilder(ReprBuilder):
    type_name: str
    id: str

    def __call__(self) -> ResourceIdRepr:
        return ResourceIdRepr(type=self.type_name, id=self.id, meta=self.meta)

    def __init__(self, type_name: str, id: str):
        super().__init__()
        self.type_name = type_name
        self.id = id


class LinkageBuilder(ReprBuilder):
    """
    Accumulates a relationship object.  A to-one linkage takes at most one
    identifier and renders ``null`` when it has none.
    """

    to_many: bool
    links: typing.Optional[LinksRepr]
    _identifiers: typing.List[IdentifierBuilder]

    def add(self, type_name: str, id: str) -> IdentifierBuilder:
        if not self.to_many and self._identifiers:
            raise TypeError("a to-one relationship refers to a single resource")
        ident = IdentifierBuilder(type_name, id)
        self._identifiers.append(ident)
        return ident

    def __len__(self) -> int:
        return len(self._identifiers)

    def __call__(self) -> LinkageRepr:
        data: typing.Union[None, ResourceIdRepr, typing.Tuple[ResourceIdRepr, ...]]
        if self.to_many:
            data = tuple(ident() for ident in self._identifiers)
        else:
            data = self._identifiers[0]() if self._identifiers else None
        return LinkageRepr(data=data, links=self.links, meta=self.meta)

    def __init__(self, to_many: bool):
        super().__init__()
        self.to_many = to_many
        self.links = None
        self._identifiers = []


class ResourceReprBuilder(ReprBuilder):
    """
    Accumulates a resource object.  ``id`` may stay None for resources that are
    about to be created on the server side.
    """

    type_name: typing.Optional[str]
    id: typing.Optional[str]
    links: typing.Optional[LinksRepr]
    attributes: "OrderedDict[str, AttributeValue]"
    relationships: "OrderedDict[str, LinkageBuilder]"

    def relationship(self, name: str, to_many: bool) -> LinkageBuilder:
        """
        Returns the builder of the relationship ``name``, creating it on first use.

        :raises TypeError: if the relationship was started with the other cardinality.
        """
        linkage = self.relationships.get(name)
        if linkage is None:
            linkage = self.relationships[name] = LinkageBuilder(to_many)
        elif linkage.to_many != to_many:
            raise TypeError(
                f"relationship {name} was started as a {'to-many' if linkage.to_many else 'to-one'} relationship"
            )
        return linkage

    def __call__(self) -> ResourceRepr:
        if self.type_name is None:
            raise ValueError("a resource object needs a type")
        return ResourceRepr(
            type=self.type_name,
            id=self.id,
            attributes=self.attributes.items(),
            relationships=((name, linkage()) for name, linkage in self.relationships.items()),
            links=self.links,
            meta=self.meta,
        )

    def __init__(self, type_name: typing.Optional[str] = None, id: typing.Optional[str] = None):
        super().__init__()
        self.type_name = type_name
        self.id = id
        self.links = None
        self.attributes = OrderedDict()
        self.relationships = OrderedDict()


class DocumentReprBuilder(ReprBuilder):
    """
    Accumulates a top-level document whose primary data is either a collection
    or a single resource.  A single-resource document without a resource
    renders ``"data": null``.
    """

    collection: bool
    links: typing.Optional[LinksRepr]
    jsonapi: typing.Dict[str, typing.Any]
    _primary: typing.List[ResourceReprBuilder]
    _included: typing.List[ResourceReprBuilder]

    def add_resource(self) -> ResourceReprBuilder:
        if not self.collection and self._primary:
            raise TypeError("a single-resource document already has its primary data")
        builder = ResourceReprBuilder()
        self._primary.append(builder)
        return builder

    def add_included(self) -> ResourceReprBuilder:
        builder = ResourceReprBuilder()
        self._included.append(builder)
        return builder

    def __call__(self) -> DocumentRepr:
        data: typing.Union[None, ResourceRepr, typing.List[ResourceRepr]]
        if self.collection:
            data = [b() for b in self._primary]
        else:
            data = self._primary[0]() if self._primary else None
        return DocumentRepr(
            data=data,
            jsonapi=self.jsonapi,
            included=[b() for b in self._included],
            links=self.links,
            meta=self.meta,
        )

    def __init__(self, collection: bool = False):
        super().__init__()
        self.collection = collection
        self.links = None
        self.jsonapi = {}
        self._primary = []
        self._included = []
