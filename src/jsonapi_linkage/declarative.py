"""
Declares resources on top of plain dataclasses.

.. code-block:: python

   @resource("people")
   class Person:
       id: str = id_field()
       name: typing.Optional[str] = None

   @resource("articles")
   class Article:
       id: str = id_field()
       title: typing.Optional[str] = None
       author: typing.Optional[Person] = relationship("author", target=Person)
       comments: typing.List["Comment"] = relationship(
           "comments", target="comments", resolve=True, rel_type=RelType.RELATED
       )
       links: typing.Optional[LinksRepr] = links_field()
       meta: typing.Optional[typing.Dict[str, typing.Any]] = meta_field()
"""

import collections.abc
import dataclasses
import enum
import re
import typing

from .exceptions import ConfigurationError
from .models import (
    RelationName,
    RelationshipDescriptor,
    RelationshipType,
    RelType,
    ResolutionStrategy,
    TypeDescriptor,
)
from .utils import UNSPECIFIED, UnspecifiedType, maybe_unspecified

_METADATA_KEY = "jsonapi"


class FieldRole(enum.Enum):
    ID = "id"
    RELATIONSHIP = "relationship"
    LINKS = "links"
    META = "meta"


@dataclasses.dataclass(frozen=True)
class _FieldInfo:
    role: FieldRole
    name: typing.Optional[str] = None
    target: typing.Union[UnspecifiedType, str, type] = UNSPECIFIED
    type: typing.Union[UnspecifiedType, RelationshipType] = UNSPECIFIED
    resolve: bool = False
    rel_type: typing.Optional[RelationName] = RelType.SELF
    strategy: ResolutionStrategy = ResolutionStrategy.OBJECT
    serialize: bool = True


def _field(info: _FieldInfo, default: typing.Any) -> typing.Any:
    return dataclasses.field(default=default, metadata={_METADATA_KEY: info})


def id_field(default: typing.Any = None) -> typing.Any:
    return _field(_FieldInfo(role=FieldRole.ID), default)


def links_field() -> typing.Any:
    return _field(_FieldInfo(role=FieldRole.LINKS), None)


def meta_field() -> typing.Any:
    return _field(_FieldInfo(role=FieldRole.META), None)


def relationship(
    name: typing.Optional[str] = None,
    *,
    target: typing.Union[UnspecifiedType, str, type] = UNSPECIFIED,
    type: typing.Union[UnspecifiedType, RelationshipType] = UNSPECIFIED,
    resolve: bool = False,
    rel_type: typing.Optional[RelationName] = RelType.SELF,
    strategy: ResolutionStrategy = ResolutionStrategy.OBJECT,
    serialize: bool = True,
) -> typing.Any:
    """
    Declares a relationship field.

    :param Optional[str] name: the relationship name on the wire. Defaults to the field name.
    :param target: the related class or its resource type name.  Inferred from the annotation when omitted.
    :param RelationshipType type: inferred from the annotation when omitted; sequences are to-many.
    :param bool resolve: True to follow the relationship's links with a link resolver.
    :param rel_type: the link relation to follow.
    :param ResolutionStrategy strategy: ``REFERENCE`` stores the link itself; the field must then be a ``str``.
    :param bool serialize: False to leave the relationship out of outbound documents.
    """
    return _field(
        _FieldInfo(
            role=FieldRole.RELATIONSHIP,
            name=name,
            target=target,
            type=type,
            resolve=resolve,
            rel_type=rel_type,
            strategy=strategy,
            serialize=serialize,
        ),
        None,
    )


_to_many_annotation_pattern = re.compile(
    r"^(?:typing\.)?(?:Optional\[)?(?:typing\.)?(?:List|Sequence|Tuple|list|tuple)\["
)


def _strip_optional(annotation: typing.Any) -> typing.Any:
    if typing.get_origin(annotation) is typing.Union:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]  # noqa: E721
        if len(args) == 1:
            return args[0]
    return annotation


def _is_to_many(annotation: typing.Any) -> bool:
    if isinstance(annotation, str):
        return _to_many_annotation_pattern.match(annotation) is not None
    origin = typing.get_origin(_strip_optional(annotation))
    return origin is not None and isinstance(origin, type) and issubclass(
        origin, collections.abc.Sequence
    )


def _infer_target(annotation: typing.Any) -> typing.Optional[type]:
    annotation = _strip_optional(annotation)
    if _is_to_many(annotation):
        args = typing.get_args(annotation)
        annotation = args[0] if args else None
    # typing.Any is a class as of Python 3.11
    if annotation is typing.Any or not isinstance(annotation, type):
        return None
    return annotation


def _resolve_annotations(class_: type) -> typing.Dict[str, typing.Any]:
    try:
        return typing.get_type_hints(class_, localns={class_.__name__: class_})
    except NameError:
        # forward references to classes that are not defined yet
        pass
    retval: typing.Dict[str, typing.Any] = {}
    for c in reversed(class_.__mro__):
        retval.update(getattr(c, "__annotations__", {}))
    return retval


def _build_relationship(
    class_: type, f: dataclasses.Field, info: _FieldInfo, annotation: typing.Any
) -> RelationshipDescriptor:
    target: typing.Union[str, type, None]
    if isinstance(info.target, UnspecifiedType):
        target = _infer_target(annotation)
        if target is None:
            raise ConfigurationError(
                f"cannot infer the target of relationship {f.name} of {class_!r} from {annotation!r}; "
                "specify it explicitly"
            )
    else:
        target = info.target
    rel_type = maybe_unspecified(
        info.type,
        RelationshipType.TO_MANY if _is_to_many(annotation) else RelationshipType.TO_ONE,
    )
    return RelationshipDescriptor(
        name=info.name if info.name is not None else f.name,
        target=target,
        field_name=f.name,
        type=rel_type,
        resolve=info.resolve,
        rel_type=info.rel_type,
        strategy=info.strategy,
        serialize=info.serialize,
        field_type=None if isinstance(annotation, str) else annotation,
    )


def describe_dataclass(
    class_: type,
    type_name: str,
    id_type: typing.Optional[typing.Callable[[typing.Any], typing.Any]] = None,
    factory: typing.Optional[typing.Callable[..., typing.Any]] = None,
    links_factory: typing.Optional[typing.Callable[[typing.Any], typing.Any]] = None,
    meta_factory: typing.Optional[typing.Callable[[typing.Any], typing.Any]] = None,
) -> TypeDescriptor:
    annotations = _resolve_annotations(class_)
    id_fields: typing.List[str] = []
    links_fields: typing.List[str] = []
    meta_fields: typing.List[str] = []
    attributes: typing.Dict[str, typing.Any] = {}
    relationships: typing.List[RelationshipDescriptor] = []

    for f in dataclasses.fields(class_):
        annotation = annotations.get(f.name)
        info = f.metadata.get(_METADATA_KEY)
        if info is None:
            attributes[f.name] = None if isinstance(annotation, str) else annotation
        elif info.role is FieldRole.ID:
            id_fields.append(f.name)
        elif info.role is FieldRole.LINKS:
            links_fields.append(f.name)
        elif info.role is FieldRole.META:
            meta_fields.append(f.name)
        else:
            relationships.append(_build_relationship(class_, f, info, annotation))

    if len(id_fields) > 1:
        raise ConfigurationError(f"{class_!r} declares more than one id field")

    return TypeDescriptor(
        class_=class_,
        type_name=type_name,
        id_field=id_fields[0] if id_fields else None,
        attributes=attributes,
        relationships=relationships,
        links_fields=links_fields,
        meta_fields=meta_fields,
        id_type=id_type if id_type is not None else str,
        factory=factory,
        links_factory=links_factory,
        meta_factory=meta_factory,
    )


def resource(
    type_name: str,
    *,
    id_type: typing.Optional[typing.Callable[[typing.Any], typing.Any]] = None,
    factory: typing.Optional[typing.Callable[..., typing.Any]] = None,
    links_factory: typing.Optional[typing.Callable[[typing.Any], typing.Any]] = None,
    meta_factory: typing.Optional[typing.Callable[[typing.Any], typing.Any]] = None,
) -> typing.Callable[[type], type]:
    """
    Class decorator that turns a class into a dataclass, unless it already is one,
    and attaches a :py:class:`TypeDescriptor` to it as ``__jsonapi_descriptor__``.
    """

    def _(class_: type) -> type:
        if "__dataclass_fields__" not in class_.__dict__:
            class_ = dataclasses.dataclass(class_)
        class_.__jsonapi_descriptor__ = describe_dataclass(  # type: ignore
            class_,
            type_name,
            id_type=id_type,
            factory=factory,
            links_factory=links_factory,
            meta_factory=meta_factory,
        )
        return class_

    return _
