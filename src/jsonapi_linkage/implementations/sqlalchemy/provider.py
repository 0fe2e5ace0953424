"""
Builds :py:class:`~jsonapi_linkage.models.TypeDescriptor`s out of SQLAlchemy mapped classes.

Column properties other than the primary key and foreign keys become attributes, and
relationship properties become relationships.  A relationship is configured
through the ``jsonapi`` entry of its ``info`` dictionary:

.. code-block:: python

   class Article(Base):
       __tablename__ = "articles"

       id = sa.Column(sa.Integer, primary_key=True)
       title = sa.Column(sa.String(255))
       author_id = sa.Column(sa.Integer, sa.ForeignKey("people.id"))
       author = orm.relationship(
           "Person",
           info={"jsonapi": {"resolve": True, "rel_type": RelType.RELATED}},
       )
"""

import typing
from collections import OrderedDict

import sqlalchemy as sa  # type: ignore
from sqlalchemy import exc as sa_exc  # type: ignore
from sqlalchemy import orm  # type: ignore

from ...exceptions import ConfigurationError
from ...models import (
    RelationshipDescriptor,
    RelationshipType,
    RelType,
    ResolutionStrategy,
    TypeDescriptor,
)

INFO_KEY = "jsonapi"

_relationship_options = frozenset(["name", "resolve", "rel_type", "strategy", "serialize", "ignore"])


def _python_type(column: typing.Any) -> typing.Optional[type]:
    try:
        return column.type.python_type
    except NotImplementedError:
        return None


def _build_relationship(
    class_: type, prop: orm.RelationshipProperty
) -> typing.Optional[RelationshipDescriptor]:
    options = dict(prop.info.get(INFO_KEY, {}))
    unknown = set(options) - _relationship_options
    if unknown:
        raise ConfigurationError(
            f"unknown options for relationship {prop.key} of {class_!r}: {', '.join(sorted(unknown))}"
        )
    if options.get("ignore", False):
        return None
    strategy = options.get("strategy", ResolutionStrategy.OBJECT)
    if strategy is ResolutionStrategy.REFERENCE:
        raise ConfigurationError(
            f"relationship {prop.key} of {class_!r} is a relationship property and cannot hold a reference"
        )
    return RelationshipDescriptor(
        name=options.get("name", prop.key),
        target=prop.mapper.class_,
        field_name=prop.key,
        type=RelationshipType.TO_MANY if prop.uselist else RelationshipType.TO_ONE,
        resolve=options.get("resolve", False),
        rel_type=options.get("rel_type", RelType.SELF),
        strategy=strategy,
        serialize=options.get("serialize", True),
    )


def describe_mapped_class(
    class_: type,
    type_name: typing.Optional[str] = None,
    links_field: typing.Optional[str] = None,
    meta_field: typing.Optional[str] = None,
    links_factory: typing.Optional[typing.Callable[[typing.Any], typing.Any]] = None,
    meta_factory: typing.Optional[typing.Callable[[typing.Any], typing.Any]] = None,
) -> TypeDescriptor:
    """
    Describes a mapped class.

    :param type class_: the mapped class.
    :param Optional[str] type_name: the resource type.  Defaults to the name of the mapped table.
    :param Optional[str] links_field: a plain attribute of the class that receives the ``links`` node.
    :param Optional[str] meta_field: a plain attribute of the class that receives the ``meta`` node.
    """
    try:
        sa_mapper: orm.Mapper = sa.inspect(class_)
    except sa_exc.NoInspectionAvailable:
        raise ConfigurationError(f"{class_!r} is not a mapped class")

    pkey_cols = list(sa_mapper.primary_key)
    if len(pkey_cols) != 1:
        raise ConfigurationError(
            f"{class_!r} has a composite primary key, which cannot be mapped onto a resource id"
        )
    pkey_col = pkey_cols[0]

    id_field: typing.Optional[str] = None
    attributes: "OrderedDict[str, typing.Optional[type]]" = OrderedDict()
    for prop in sa_mapper.column_attrs:
        if any(col is pkey_col for col in prop.columns):
            id_field = prop.key
            continue
        if prop.columns[0].foreign_keys:
            # represented by relationships
            continue
        attributes[prop.key] = _python_type(prop.columns[0])

    relationships: typing.List[RelationshipDescriptor] = []
    for prop in sa_mapper.relationships:
        rel = _build_relationship(class_, prop)
        if rel is not None:
            relationships.append(rel)

    id_type = _python_type(pkey_col) or str

    return TypeDescriptor(
        class_=class_,
        type_name=type_name if type_name is not None else sa_mapper.local_table.name,
        id_field=id_field,
        attributes=attributes,
        relationships=relationships,
        links_fields=[links_field] if links_field is not None else [],
        meta_fields=[meta_field] if meta_field is not None else [],
        id_type=id_type,
        links_factory=links_factory,
        meta_factory=meta_factory,
    )
