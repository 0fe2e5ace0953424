import collections.abc
import datetime
import json
import logging
import typing

from .exceptions import ConfigurationError, MalformedDocumentError
from .interfaces import LinkResolver, LinkResolverLike, as_link_resolver
from .materializer import ResourceMaterializer
from .models import RelationshipType, ResolutionStrategy, TypeDescriptor
from .naming import IDENTITY, NameMapper
from .pagination import PaginatedResourceList, ResourcePage
from .registry import TypeRegistry, get_descriptor
from .resolution import ConversionContext, RelationshipResolver
from .serde.builders import DocumentReprBuilder, ResourceReprBuilder
from .serde.deserializer import ReprDeserializer
from .serde.exceptions import DeserializationError
from .serde.models import DocumentRepr, LinkRepr, LinksRepr, ResourceRepr
from .serde.renderer import ReprRenderer
from .serde.types import RawDocument

logger = logging.getLogger(__name__)

T = typing.TypeVar("T")


def _coerce_links(value: typing.Any) -> typing.Optional[LinksRepr]:
    if value is None or isinstance(value, LinksRepr):
        return value
    if isinstance(value, collections.abc.Mapping):
        links: typing.List[typing.Tuple[str, LinkRepr]] = []
        for k, v in value.items():
            if isinstance(v, LinkRepr):
                links.append((k, v))
            elif isinstance(v, collections.abc.Mapping):
                links.append((k, LinkRepr(v.get("href"), v.get("meta"))))
            elif v is not None:
                links.append((k, LinkRepr(str(v))))
        return LinksRepr(links)
    raise TypeError(f"cannot render {value!r} as links")


class ResourceConverter:
    """
    Converts JSON:API documents into graphs of Python objects and back.

    :param classes: the resource classes to register.  Classes that are the target of a relationship are registered as well.
    :param Optional[TypeRegistry] registry: a registry to register the classes to.  The converter freezes it.
    :param NameMapper name_mapper: maps attribute names on the wire to field names.
    :param bool fail_on_unknown_attributes: reject attributes the class does not declare instead of dropping them.
    :param bool materialize_identifier_stubs: build id-only objects for resources referred to but not included in a document.
    :param bool render_decimal_as_str: render :py:class:`decimal.Decimal` values as strings rather than numbers.
    :param bool render_embedded_links: render the ``links`` of resources and relationships.
    :param Optional[datetime.tzinfo] assume_naive_timezone_as: the timezone naive datetimes are rendered in.  Naive datetimes are rejected when None.
    """

    registry: TypeRegistry
    materializer: ResourceMaterializer
    materialize_identifier_stubs: bool
    _deserializer: ReprDeserializer
    _renderer: ReprRenderer
    _resolver: RelationshipResolver
    _global_resolver: typing.Optional[LinkResolver]
    _type_resolvers: typing.Dict[type, LinkResolver]

    def _register_reachable(self, class_or_descr: typing.Union[type, TypeDescriptor]) -> None:
        descr = self.registry.register(class_or_descr)
        for rel in descr.relationships.values():
            target = rel.target
            if isinstance(target, type) and not self.registry.is_registered(target):
                if get_descriptor(target) is not None:
                    self._register_reachable(target)

    def _validate(self) -> None:
        for descr in self.registry:
            for rel in descr.relationships.values():
                self.registry.describe(rel.target)

    def set_global_resolver(self, resolver: typing.Optional[LinkResolverLike]) -> None:
        """
        Sets the link resolver used for every type that has no resolver of its own.
        """
        self._global_resolver = as_link_resolver(resolver) if resolver is not None else None

    def set_type_resolver(self, resolver: typing.Optional[LinkResolverLike], class_: type) -> None:
        """
        Sets the link resolver used for relationships targeting ``class_``.  It takes
        precedence over the global one.
        """
        descr = self.registry.describe(class_)
        if resolver is None:
            self._type_resolvers.pop(descr.class_, None)
        else:
            self._type_resolvers[descr.class_] = as_link_resolver(resolver)

    def resolver_for(self, descr: TypeDescriptor) -> typing.Optional[LinkResolver]:
        resolver = self._type_resolvers.get(descr.class_)
        return resolver if resolver is not None else self._global_resolver

    def parse_document(self, data: RawDocument) -> DocumentRepr:
        """
        Parses ``data`` into a :py:class:`~jsonapi_linkage.serde.models.DocumentRepr`.
        Error documents are returned as they are; shape violations raise
        :py:class:`MalformedDocumentError`.
        """
        tree: typing.Any
        if isinstance(data, (bytes, bytearray, str)):
            try:
                tree = json.loads(data)
            except ValueError as e:
                raise MalformedDocumentError(f"the document is not valid JSON ({e})") from e
        else:
            tree = data
        try:
            return self._deserializer(tree)
        except DeserializationError as e:
            raise MalformedDocumentError(
                e.message, sources=[item.pointer for item in e.errors]
            ) from e

    def _parse_primary(self, data: RawDocument) -> DocumentRepr:
        document = self.parse_document(data)
        if document.errors:
            raise MalformedDocumentError(
                "the document reports errors: "
                + "; ".join(e.describe() for e in document.errors),
                errors=document.errors,
            )
        if not document.has_data:
            raise MalformedDocumentError("the document does not contain primary data")
        return document

    def _read_collection(
        self, ctx: ConversionContext, document: DocumentRepr, descr: TypeDescriptor
    ) -> ResourcePage:
        if not document.is_collection:
            raise MalformedDocumentError("the primary data of the document is not a collection")
        nodes = typing.cast(typing.Sequence[ResourceRepr], document.data)
        return ResourcePage(
            [self._resolver.resolve_node(ctx, descr, node) for node in nodes],
            links=document.links,
            meta=document.meta,
        )

    def read_object(self, data: RawDocument, class_: typing.Type[T]) -> typing.Optional[T]:
        """
        Converts a document whose primary data is a single resource.  Returns None
        if the primary data is ``null``.
        """
        descr = self.registry.describe(class_)
        document = self._parse_primary(data)
        if document.data is None:
            return None
        if not document.is_single:
            raise MalformedDocumentError("the primary data of the document is not a single resource")
        ctx = ConversionContext(document)
        obj = self._resolver.resolve_node(ctx, descr, typing.cast(ResourceRepr, document.data))
        if descr.meta_field is not None and document.meta:
            setattr(obj, descr.meta_field, self.materializer.build_meta(descr, document.meta))
        return obj

    def read_object_collection(self, data: RawDocument, class_: typing.Type[T]) -> ResourcePage:
        descr = self.registry.describe(class_)
        document = self._parse_primary(data)
        return self._read_collection(ConversionContext(document), document, descr)

    def read_page(self, data: bytes, element_type: type) -> ResourcePage:
        return self.read_object_collection(data, element_type)

    def read_paginated_collection(
        self,
        data: RawDocument,
        class_: typing.Type[T],
        link_resolver: typing.Optional[LinkResolverLike] = None,
    ) -> PaginatedResourceList:
        """
        Converts a collection document into a :py:class:`PaginatedResourceList`
        that fetches the following pages on demand.

        :param link_resolver: fetches the following pages.  Defaults to the resolver configured for ``class_``.
        """
        descr = self.registry.describe(class_)
        page = self.read_object_collection(data, class_)
        resolver = (
            as_link_resolver(link_resolver) if link_resolver is not None else self.resolver_for(descr)
        )
        if resolver is None and page.next is not None:
            raise ConfigurationError(
                f'no link resolver is available to follow the pages of "{descr.type_name}"'
            )
        return PaginatedResourceList(page, resolver, self.read_page, descr.class_)

    def _identify(self, obj: typing.Any) -> typing.Optional[typing.Tuple[str, str]]:
        descr = self.registry.describe_object(obj)
        id_ = getattr(obj, descr.id_field, None)
        return None if id_ is None else (descr.type_name, str(id_))

    def _populate_resource(self, builder: ResourceReprBuilder, obj: typing.Any) -> None:
        descr = self.registry.describe_object(obj)
        builder.type_name = descr.type_name
        id_ = getattr(obj, descr.id_field, None)
        builder.id = None if id_ is None else str(id_)

        to_wire = self.materializer.name_mapper.to_wire
        for name in descr.attributes:
            value = getattr(obj, name, None)
            if value is not None:
                builder.attributes[to_wire(name)] = value

        for rel in descr.relationships.values():
            if not rel.serialize or rel.strategy is ResolutionStrategy.REFERENCE:
                continue
            value = getattr(obj, rel.field_name, None)
            if value is None:
                continue
            to_many = rel.type is RelationshipType.TO_MANY
            identities: typing.List[typing.Tuple[str, str]] = []
            for item in value if to_many else (value,):
                identity = self._identify(item)
                if identity is None:
                    logger.debug("%r has no id; left out of relationship %s", item, rel.name)
                else:
                    identities.append(identity)
            if not to_many and not identities:
                continue
            linkage = builder.relationship(rel.name, to_many)
            for type_name, item_id in identities:
                linkage.add(type_name, item_id)

        if descr.links_field is not None:
            builder.links = _coerce_links(getattr(obj, descr.links_field, None))
        if descr.meta_field is not None:
            builder.update_meta(getattr(obj, descr.meta_field, None))

    def _dump(self, document: DocumentRepr) -> bytes:
        return json.dumps(self._renderer(document)).encode("utf-8")

    def write_object(self, obj: typing.Any) -> bytes:
        builder = DocumentReprBuilder()
        self._populate_resource(builder.add_resource(), obj)
        return self._dump(builder())

    def write_object_collection(self, objs: typing.Iterable[typing.Any]) -> bytes:
        builder = DocumentReprBuilder(collection=True)
        for obj in objs:
            self._populate_resource(builder.add_resource(), obj)
        return self._dump(builder())

    def __init__(
        self,
        *classes: typing.Union[type, TypeDescriptor],
        registry: typing.Optional[TypeRegistry] = None,
        name_mapper: NameMapper = IDENTITY,
        fail_on_unknown_attributes: bool = False,
        materialize_identifier_stubs: bool = False,
        render_decimal_as_str: bool = True,
        render_embedded_links: bool = True,
        assume_naive_timezone_as: typing.Optional[datetime.tzinfo] = None,
    ):
        self.registry = registry if registry is not None else TypeRegistry()
        if not self.registry.frozen:
            for class_ in classes:
                self._register_reachable(class_)
            self._validate()
            self.registry.freeze()
        else:
            for class_ in classes:
                if class_ not in self.registry and not (
                    isinstance(class_, TypeDescriptor) and class_.class_ in self.registry
                ):
                    raise ConfigurationError(
                        f"{class_!r} cannot be registered to a frozen registry"
                    )
        self.materializer = ResourceMaterializer(
            name_mapper=name_mapper,
            fail_on_unknown_attributes=fail_on_unknown_attributes,
        )
        self.materialize_identifier_stubs = materialize_identifier_stubs
        self._deserializer = ReprDeserializer()
        self._renderer = ReprRenderer(
            render_decimal_as_str=render_decimal_as_str,
            render_embedded_links=render_embedded_links,
            assume_naive_timezone_as=assume_naive_timezone_as,
        )
        self._resolver = RelationshipResolver(self)
        self._global_resolver = None
        self._type_resolvers = {}
