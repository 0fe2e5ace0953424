"""
Type descriptors tell the converter how a Python class maps onto a JSON:API resource.

A :py:class:`TypeDescriptor` is built once per class, before any document is
converted, and is never mutated afterwards.
"""

import enum
import types
import typing
from collections import OrderedDict

from .exceptions import ConfigurationError


class RelationshipType(enum.IntEnum):
    TO_ONE = 1
    TO_MANY = 2


class ResolutionStrategy(enum.Enum):
    OBJECT = "object"
    """
    The document behind the relationship link is fetched and materialized.
    """
    REFERENCE = "reference"
    """
    The relationship link itself is stored in the field as a string; nothing is fetched.
    """


class RelType(enum.Enum):
    SELF = "self"
    RELATED = "related"


RelationName = typing.Union[RelType, str]

_union_types = (typing.Union, getattr(types, "UnionType", typing.Union))


def _accepts_str(field_type: typing.Any) -> bool:
    if field_type is str:
        return True
    if typing.get_origin(field_type) in _union_types:
        args = [a for a in typing.get_args(field_type) if a is not type(None)]  # noqa: E721
        return len(args) == 1 and args[0] is str
    return False


class RelationshipDescriptor:
    """
    Describes a single relationship of a resource.

    :param str name: the name of the relationship on the wire.
    :param target: the type name or the class of the related resources.
    :param Optional[str] field_name: the attribute of the Python object that receives the related objects. Defaults to ``name``.
    :param RelationshipType type: either ``TO_ONE`` or ``TO_MANY``.
    :param bool resolve: True if the relationship may be fetched through its links.
    :param rel_type: the link relation to follow when resolving (``self`` by default).
    :param ResolutionStrategy strategy: whether the fetched document or the link itself ends up in the field.
    :param bool serialize: False to leave the relationship out of outbound documents.
    :param field_type: the declared type of the field, if known.
    """

    __slots__ = (
        "_name",
        "_target",
        "_field_name",
        "_type",
        "_resolve",
        "_rel_type",
        "_strategy",
        "_serialize",
        "_field_type",
    )

    _name: str
    _target: typing.Union[str, type]
    _field_name: str
    _type: RelationshipType
    _resolve: bool
    _rel_type: typing.Optional[RelationName]
    _strategy: ResolutionStrategy
    _serialize: bool
    _field_type: typing.Optional[typing.Any]

    @property
    def name(self) -> str:
        return self._name

    @property
    def target(self) -> typing.Union[str, type]:
        return self._target

    @property
    def field_name(self) -> str:
        return self._field_name

    @property
    def type(self) -> RelationshipType:
        return self._type

    @property
    def resolve(self) -> bool:
        return self._resolve

    @property
    def rel_type(self) -> typing.Optional[RelationName]:
        return self._rel_type

    @property
    def relation_name(self) -> typing.Optional[str]:
        """
        The key to look up in the relationship's ``links`` node.
        """
        if isinstance(self._rel_type, RelType):
            return self._rel_type.value
        return self._rel_type

    @property
    def strategy(self) -> ResolutionStrategy:
        return self._strategy

    @property
    def serialize(self) -> bool:
        return self._serialize

    @property
    def field_type(self) -> typing.Optional[typing.Any]:
        return self._field_type

    def __repr__(self) -> str:
        return (
            f"RelationshipDescriptor(name={self._name!r}, target={self._target!r}, "
            f"type={self._type!r}, resolve={self._resolve!r}, strategy={self._strategy!r})"
        )

    def __init__(
        self,
        name: str,
        target: typing.Union[str, type],
        field_name: typing.Optional[str] = None,
        type: RelationshipType = RelationshipType.TO_ONE,
        resolve: bool = False,
        rel_type: typing.Optional[RelationName] = RelType.SELF,
        strategy: ResolutionStrategy = ResolutionStrategy.OBJECT,
        serialize: bool = True,
        field_type: typing.Optional[typing.Any] = None,
    ):
        self._name = name
        self._target = target
        self._field_name = field_name if field_name is not None else name
        self._type = type
        self._resolve = resolve
        self._rel_type = rel_type
        self._strategy = strategy
        self._serialize = serialize
        self._field_type = field_type

        if resolve and not self.relation_name:
            raise ConfigurationError(
                f'relationship "{name}" is resolvable but names no link relation to follow'
            )
        if (
            strategy is ResolutionStrategy.REFERENCE
            and field_type is not None
            and not _accepts_str(field_type)
        ):
            raise ConfigurationError(
                f'reference resolution strategy requires a str field, but "{self._field_name}" '
                f"of relationship {name} is declared as {field_type!r}"
            )


class TypeDescriptor:
    """
    A :py:class:`TypeDescriptor` holds everything the converter needs to know about a class.

    :param type class_: the class being described.
    :param str type_name: the JSON:API resource type.
    :param Optional[str] id_field: the attribute that receives the resource id.
    :param Mapping[str, Optional[type]] attributes: attribute names and their declared types. A type of None means the value is taken as is.
    :param Iterable[RelationshipDescriptor] relationships: the relationships.
    :param Sequence[str] links_fields: the attributes that receive the ``links`` node. At most one is allowed.
    :param Sequence[str] meta_fields: the attributes that receive the ``meta`` node. At most one is allowed.
    :param Callable[[str], Any] id_type: converts the wire id into the value stored in the id field.
    :param Optional[Callable] factory: builds an instance from keyword arguments. Defaults to the class.
    :param Optional[Callable] links_factory: converts a :py:class:`~jsonapi_linkage.serde.models.LinksRepr` into the value of the links field.
    :param Optional[Callable] meta_factory: converts a meta dictionary into the value of the meta field.
    """

    class_: type
    type_name: str
    id_field: str
    id_type: typing.Callable[[typing.Any], typing.Any]
    factory: typing.Callable[..., typing.Any]
    links_factory: typing.Optional[typing.Callable[[typing.Any], typing.Any]]
    meta_factory: typing.Optional[typing.Callable[[typing.Any], typing.Any]]
    _attributes: typing.Mapping[str, typing.Optional[typing.Any]]
    _relationships: typing.Mapping[str, RelationshipDescriptor]
    _links_field: typing.Optional[str]
    _meta_field: typing.Optional[str]

    @property
    def attributes(self) -> typing.Mapping[str, typing.Optional[typing.Any]]:
        return self._attributes

    @property
    def relationships(self) -> typing.Mapping[str, RelationshipDescriptor]:
        """
        The mapping of wire relationship names to :py:class:`RelationshipDescriptor`s.
        """
        return self._relationships

    @property
    def links_field(self) -> typing.Optional[str]:
        return self._links_field

    @property
    def meta_field(self) -> typing.Optional[str]:
        return self._meta_field

    def relationship_by_field(self, field_name: str) -> typing.Optional[RelationshipDescriptor]:
        for rel in self._relationships.values():
            if rel.field_name == field_name:
                return rel
        return None

    def __repr__(self) -> str:
        return f"TypeDescriptor(class_={self.class_!r}, type_name={self.type_name!r})"

    def __init__(
        self,
        class_: type,
        type_name: str,
        id_field: typing.Optional[str],
        attributes: typing.Mapping[str, typing.Optional[typing.Any]] = {},
        relationships: typing.Iterable[RelationshipDescriptor] = (),
        links_fields: typing.Sequence[str] = (),
        meta_fields: typing.Sequence[str] = (),
        id_type: typing.Callable[[typing.Any], typing.Any] = str,
        factory: typing.Optional[typing.Callable[..., typing.Any]] = None,
        links_factory: typing.Optional[typing.Callable[[typing.Any], typing.Any]] = None,
        meta_factory: typing.Optional[typing.Callable[[typing.Any], typing.Any]] = None,
    ):
        if not type_name:
            raise ConfigurationError(f"{class_!r} has no resource type name")
        if not id_field:
            raise ConfigurationError(f'resource "{type_name}" ({class_!r}) declares no id field')
        if len(links_fields) > 1:
            raise ConfigurationError(
                f'resource "{type_name}" declares more than one links field: {", ".join(links_fields)}'
            )
        if len(meta_fields) > 1:
            raise ConfigurationError(
                f'resource "{type_name}" declares more than one meta field: {", ".join(meta_fields)}'
            )

        rels: "OrderedDict[str, RelationshipDescriptor]" = OrderedDict()
        for rel in relationships:
            if rel.name in rels:
                raise ConfigurationError(
                    f'resource "{type_name}" declares relationship "{rel.name}" more than once'
                )
            rels[rel.name] = rel

        self.class_ = class_
        self.type_name = type_name
        self.id_field = id_field
        self.id_type = id_type
        self.factory = factory if factory is not None else class_
        self.links_factory = links_factory
        self.meta_factory = meta_factory
        self._attributes = OrderedDict(attributes)
        self._relationships = rels
        self._links_field = links_fields[0] if links_fields else None
        self._meta_field = meta_fields[0] if meta_fields else None
