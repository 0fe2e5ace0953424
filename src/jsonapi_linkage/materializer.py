import datetime
import decimal
import logging
import typing

from .exceptions import MaterializationError
from .models import TypeDescriptor
from .naming import IDENTITY, NameMapper
from .serde.models import AttributeValue, LinksRepr, ResourceIdRepr, ResourceRepr

logger = logging.getLogger(__name__)


def _strip_optional(type_: typing.Any) -> typing.Any:
    if typing.get_origin(type_) is typing.Union:
        args = [a for a in typing.get_args(type_) if a is not type(None)]  # noqa: E721
        if len(args) == 1:
            return args[0]
    return type_


def _parse_datetime(value: str) -> datetime.datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.datetime.fromisoformat(value)


class ResourceMaterializer:
    """
    Builds a single Python object out of a :py:class:`~jsonapi_linkage.serde.models.ResourceRepr`.
    Relationships are left alone; they are the business of the relationship resolver.

    :param NameMapper name_mapper: maps attribute names on the wire to field names.
    :param bool fail_on_unknown_attributes: raise :py:class:`MaterializationError` instead of dropping attributes the type does not declare.
    """

    name_mapper: NameMapper
    fail_on_unknown_attributes: bool

    def _coerce(self, descr: TypeDescriptor, name: str, value: AttributeValue) -> typing.Any:
        type_ = _strip_optional(descr.attributes.get(name))
        if value is None or type_ is None:
            return value
        try:
            if type_ is datetime.datetime:
                if isinstance(value, str):
                    return _parse_datetime(value)
            elif type_ is datetime.date:
                if isinstance(value, str):
                    return datetime.date.fromisoformat(value)
            elif type_ is decimal.Decimal:
                if isinstance(value, (str, int, float)) and not isinstance(value, bool):
                    return decimal.Decimal(str(value))
        except (ValueError, decimal.InvalidOperation) as e:
            raise MaterializationError(descr, f"attribute {name} has an invalid value {value!r} ({e})")
        return value

    def _convert_id(self, descr: TypeDescriptor, id: str) -> typing.Any:
        try:
            return descr.id_type(id)
        except (TypeError, ValueError) as e:
            raise MaterializationError(descr, f"invalid id {id!r} ({e})")

    def _construct(self, descr: TypeDescriptor, kwargs: typing.Dict[str, typing.Any]) -> typing.Any:
        try:
            return descr.factory(**kwargs)
        except (TypeError, ValueError) as e:
            raise MaterializationError(descr, str(e)) from e

    def build_links(self, descr: TypeDescriptor, links: LinksRepr) -> typing.Any:
        return descr.links_factory(links) if descr.links_factory is not None else links

    def build_meta(self, descr: TypeDescriptor, meta: typing.Mapping[str, typing.Any]) -> typing.Any:
        return descr.meta_factory(meta) if descr.meta_factory is not None else dict(meta)

    def materialize(self, descr: TypeDescriptor, node: ResourceRepr) -> typing.Any:
        kwargs: typing.Dict[str, typing.Any] = {}
        for wire_name, value in node.attributes.items():
            name = self.name_mapper.from_wire(wire_name)
            if name not in descr.attributes:
                if self.fail_on_unknown_attributes:
                    raise MaterializationError(descr, f"unknown attribute {wire_name}")
                logger.debug("dropping unknown attribute %s of %s", wire_name, descr.type_name)
                continue
            kwargs[name] = self._coerce(descr, name, value)

        if node.id is not None:
            kwargs[descr.id_field] = self._convert_id(descr, node.id)
        if descr.links_field is not None and node.links is not None:
            kwargs[descr.links_field] = self.build_links(descr, node.links)
        if descr.meta_field is not None and node.meta:
            kwargs[descr.meta_field] = self.build_meta(descr, node.meta)
        return self._construct(descr, kwargs)

    def materialize_stub(self, descr: TypeDescriptor, ident: ResourceIdRepr) -> typing.Any:
        """
        Builds an object that carries nothing but the id of ``ident``.
        """
        kwargs: typing.Dict[str, typing.Any] = {descr.id_field: self._convert_id(descr, ident.id)}
        if descr.meta_field is not None and ident.meta:
            kwargs[descr.meta_field] = self.build_meta(descr, ident.meta)
        return self._construct(descr, kwargs)

    def __init__(
        self,
        name_mapper: NameMapper = IDENTITY,
        fail_on_unknown_attributes: bool = False,
    ):
        self.name_mapper = name_mapper
        self.fail_on_unknown_attributes = fail_on_unknown_attributes
