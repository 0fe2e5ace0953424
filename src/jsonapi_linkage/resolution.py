"""
The relationship resolution engine.

Resources are materialized lazily: only the nodes that are reachable from the
primary data through relationships become Python objects.  Every object is
registered in the :py:class:`ResolutionCache` under its ``(type, id)`` before
its own relationships are followed, so that any other path to the same
resource, including a cyclic one, ends up with the very same instance.
"""

import itertools
import logging
import typing

from .exceptions import MalformedDocumentError, RelationshipFetchError
from .interfaces import LinkResolver
from .models import RelationshipDescriptor, ResolutionStrategy, TypeDescriptor
from .pagination import PaginatedResourceList, ResourcePage
from .serde.models import (
    DocumentRepr,
    LinkageRepr,
    ResourceIdentity,
    ResourceIdRepr,
    ResourceRepr,
)

if typing.TYPE_CHECKING:
    from .converter import ResourceConverter  # noqa: F401

logger = logging.getLogger(__name__)


class ResolutionCache:
    """
    Materialized objects of one top-level conversion, keyed by resource identity.
    """

    _objects: typing.Dict[ResourceIdentity, typing.Any]

    def get(self, identity: ResourceIdentity) -> typing.Optional[typing.Any]:
        return self._objects.get(identity)

    def put(self, identity: ResourceIdentity, obj: typing.Any) -> None:
        self._objects[identity] = obj

    def __contains__(self, identity: typing.Any) -> bool:
        return identity in self._objects

    def __len__(self) -> int:
        return len(self._objects)

    def __init__(self):
        self._objects = {}


class ResolverState:
    """
    Bookkeeping of the relationship links followed during one top-level conversion.
    A link is *visited* as soon as it is about to be fetched, and *cached* once
    the object it leads to is complete.
    """

    _visited: typing.Set[str]
    _objects: typing.Dict[str, typing.Any]

    def visited(self, link: str) -> bool:
        return link in self._visited

    def mark_visited(self, link: str) -> None:
        self._visited.add(link)

    def is_cached(self, link: str) -> bool:
        return link in self._objects

    def retrieve(self, link: str) -> typing.Any:
        return self._objects[link]

    def cache(self, link: str, obj: typing.Any) -> None:
        self._objects[link] = obj

    def __init__(self):
        self._visited = set()
        self._objects = {}


def _index_nodes(document: DocumentRepr) -> typing.Dict[ResourceIdentity, ResourceRepr]:
    nodes: typing.Dict[ResourceIdentity, ResourceRepr] = {}
    primary: typing.Sequence[ResourceRepr]
    if isinstance(document.data, ResourceRepr):
        primary = (document.data,)
    elif document.is_collection:
        primary = typing.cast(typing.Sequence[ResourceRepr], document.data)
    else:
        primary = ()
    for node in itertools.chain(primary, document.included):
        identity = node.identity
        if identity is not None:
            nodes.setdefault(identity, node)
    return nodes


class ConversionContext:
    """
    Everything shared by the resolution of one top-level conversion: the
    resolution cache, the resolver state, and the resource nodes of the
    document at hand.  Documents fetched through relationship links get a
    derived context that keeps the cache and the state.
    """

    cache: ResolutionCache
    state: ResolverState
    nodes: typing.Mapping[ResourceIdentity, ResourceRepr]

    def lookup(self, identity: ResourceIdentity) -> typing.Optional[ResourceRepr]:
        return self.nodes.get(identity)

    def derive(self, document: DocumentRepr) -> "ConversionContext":
        return ConversionContext(document, cache=self.cache, state=self.state)

    def __init__(
        self,
        document: DocumentRepr,
        cache: typing.Optional[ResolutionCache] = None,
        state: typing.Optional[ResolverState] = None,
    ):
        self.cache = cache if cache is not None else ResolutionCache()
        self.state = state if state is not None else ResolverState()
        self.nodes = _index_nodes(document)


class RelationshipResolver:
    converter: "ResourceConverter"

    def descriptor_for_node(
        self, type_name: str, fallback: TypeDescriptor
    ) -> TypeDescriptor:
        descr = self.converter.registry.lookup(type_name)
        return descr if descr is not None else fallback

    def resolve_node(
        self, ctx: ConversionContext, descr: TypeDescriptor, node: ResourceRepr
    ) -> typing.Any:
        identity = node.identity
        if identity is not None and identity in ctx.cache:
            logger.debug("cache hit for %s/%s", *identity)
            return ctx.cache.get(identity)
        obj = self.converter.materializer.materialize(descr, node)
        if identity is not None:
            ctx.cache.put(identity, obj)
        self.resolve_relationships(ctx, descr, node, obj)
        return obj

    def resolve_identity(
        self, ctx: ConversionContext, descr: TypeDescriptor, ident: ResourceIdRepr
    ) -> typing.Optional[typing.Any]:
        identity = ident.identity
        if identity in ctx.cache:
            logger.debug("cache hit for %s/%s", *identity)
            return ctx.cache.get(identity)
        node = ctx.lookup(identity)
        if node is not None:
            return self.resolve_node(ctx, self.descriptor_for_node(node.type, descr), node)
        if self.converter.materialize_identifier_stubs:
            obj = self.converter.materializer.materialize_stub(
                self.descriptor_for_node(ident.type, descr), ident
            )
            ctx.cache.put(identity, obj)
            return obj
        logger.debug("%s/%s is referred to but not included in the document", *identity)
        return None

    def _resolve_inline(
        self,
        ctx: ConversionContext,
        rel: RelationshipDescriptor,
        target: TypeDescriptor,
        linkage: LinkageRepr,
        obj: typing.Any,
    ) -> None:
        if not linkage.has_data:
            logger.debug("relationship %s carries no data; skipped", rel.name)
            return
        if linkage.is_to_many:
            values = []
            for ident in typing.cast(typing.Sequence[ResourceIdRepr], linkage.data):
                value = self.resolve_identity(ctx, target, ident)
                if value is not None:
                    values.append(value)
            setattr(obj, rel.field_name, values)
        elif linkage.data is not None:
            value = self.resolve_identity(ctx, target, typing.cast(ResourceIdRepr, linkage.data))
            if value is not None:
                setattr(obj, rel.field_name, value)

    def _fetch(self, link: str, link_resolver: LinkResolver) -> DocumentRepr:
        try:
            data = link_resolver.resolve(link)
        except Exception as e:
            raise RelationshipFetchError(link, f"{type(e).__name__}: {e}") from e
        try:
            document = self.converter.parse_document(data)
        except MalformedDocumentError as e:
            raise RelationshipFetchError(link, e.message) from e
        if document.errors:
            raise RelationshipFetchError(
                link, "\n".join(e.describe() for e in document.errors), document.errors
            )
        if not document.is_collection and not document.is_single:
            raise RelationshipFetchError(link, "the document does not contain primary data")
        return document

    def _resolve_remote(
        self,
        ctx: ConversionContext,
        rel: RelationshipDescriptor,
        target: TypeDescriptor,
        linkage: LinkageRepr,
        obj: typing.Any,
        link_resolver: LinkResolver,
    ) -> None:
        assert linkage.links is not None
        assert rel.relation_name is not None
        link = linkage.links.get(rel.relation_name)
        if link is None:
            logger.debug("relationship %s has no %s link; skipped", rel.name, rel.relation_name)
            return

        if rel.strategy is ResolutionStrategy.REFERENCE:
            setattr(obj, rel.field_name, link)
            return

        if ctx.state.visited(link):
            if ctx.state.is_cached(link):
                logger.debug("link cache hit for %s", link)
                setattr(obj, rel.field_name, ctx.state.retrieve(link))
            return
        ctx.state.mark_visited(link)

        document = self._fetch(link, link_resolver)
        child = ctx.derive(document)
        value: typing.Any
        if document.is_collection:
            nodes = typing.cast(typing.Sequence[ResourceRepr], document.data)
            page = ResourcePage(
                [
                    self.resolve_node(child, self.descriptor_for_node(n.type, target), n)
                    for n in nodes
                ],
                links=document.links,
                meta=document.meta,
            )
            value = PaginatedResourceList(
                page, link_resolver, self.converter.read_page, target.class_
            )
        else:
            node = typing.cast(ResourceRepr, document.data)
            value = self.resolve_node(child, self.descriptor_for_node(node.type, target), node)
        ctx.state.cache(link, value)
        setattr(obj, rel.field_name, value)

    def resolve_relationships(
        self,
        ctx: ConversionContext,
        descr: TypeDescriptor,
        node: ResourceRepr,
        obj: typing.Any,
    ) -> None:
        for name, linkage in node.relationships.items():
            rel = descr.relationships.get(name)
            if rel is None:
                logger.debug("%s has no relationship named %s; skipped", descr.type_name, name)
                continue
            target = self.converter.registry.describe(rel.target)
            link_resolver = self.converter.resolver_for(target)
            if rel.resolve and link_resolver is not None and linkage.links is not None:
                self._resolve_remote(ctx, rel, target, linkage, obj, link_resolver)
            else:
                self._resolve_inline(ctx, rel, target, linkage, obj)

    def __init__(self, converter: "ResourceConverter"):
        self.converter = converter
