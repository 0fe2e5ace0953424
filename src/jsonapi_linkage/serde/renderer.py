"""
Turns a :py:class:`~jsonapi_linkage.serde.models.DocumentRepr` into a tree of
plain dicts and lists that :py:func:`json.dumps` accepts.

.. code-block:: python

   renderer = ReprRenderer(assume_naive_timezone_as=datetime.timezone.utc)
   body = json.dumps(renderer(DocumentRepr(data=ResourceRepr(type="people", id="9"))))

Attribute values are rendered by type: datetimes become ISO 8601 strings in UTC,
dates become ISO dates, :py:class:`decimal.Decimal` becomes a string (or a
float), and bytes become base64.  Anything else that is not JSON already is
rejected with a :py:class:`TypeError` that names where the value sits in the
document.
"""

import base64
import collections.abc
import datetime
import decimal
import typing
from collections import OrderedDict

from .models import (
    DocumentRepr,
    ErrorRepr,
    LinkageRepr,
    LinksRepr,
    Meta,
    ResourceIdRepr,
    ResourceRepr,
)
from .types import JSONValue, MutableJSONObject
from .utils import JSONPointer

ValueRenderer = typing.Callable[["ReprRenderer", JSONPointer, typing.Any], JSONValue]


def _identity(self: "ReprRenderer", path: JSONPointer, value: typing.Any) -> JSONValue:
    return value


def _datetime(self: "ReprRenderer", path: JSONPointer, value: datetime.datetime) -> JSONValue:
    if value.tzinfo is None:
        tz = self.assume_naive_timezone_as
        if tz is None:
            raise ValueError(f"{path}: cannot render naive datetime {value}")
        # pytz zones have to localize rather than be attached
        localize = getattr(tz, "localize", None)
        value = localize(value) if localize is not None else value.replace(tzinfo=tz)
    return value.astimezone(datetime.timezone.utc).isoformat()


def _date(self: "ReprRenderer", path: JSONPointer, value: datetime.date) -> JSONValue:
    return value.isoformat()


def _decimal(self: "ReprRenderer", path: JSONPointer, value: decimal.Decimal) -> JSONValue:
    return str(value) if self.render_decimal_as_str else float(value)


def _bytes(self: "ReprRenderer", path: JSONPointer, value: bytes) -> JSONValue:
    return base64.b64encode(value).decode("ascii")


class ReprRenderer:
    """
    :param bool render_decimal_as_str: render decimals as strings instead of numbers.
    :param bool render_embedded_links: render the ``links`` of resources and relationships.  Document links are always rendered.
    :param Optional[datetime.tzinfo] assume_naive_timezone_as: the timezone naive datetimes are taken to be in.  Naive datetimes are rejected when None.
    """

    render_decimal_as_str: bool
    render_embedded_links: bool
    assume_naive_timezone_as: typing.Optional[datetime.tzinfo]

    # datetime precedes date as it is a subclass of it
    _scalars: typing.ClassVar[typing.Sequence[typing.Tuple[type, ValueRenderer]]] = (
        (datetime.datetime, _datetime),
        (datetime.date, _date),
        (decimal.Decimal, _decimal),
        (bytes, _bytes),
        (str, _identity),
        (bool, _identity),
        (int, _identity),
        (float, _identity),
        (type(None), _identity),
    )
    _exact: typing.ClassVar[typing.Dict[type, ValueRenderer]] = dict(_scalars)

    def render_value(self, path: JSONPointer, value: typing.Any) -> JSONValue:
        renderer = self._exact.get(type(value))
        if renderer is not None:
            return renderer(self, path, value)
        if isinstance(value, collections.abc.Mapping):
            return OrderedDict((str(k), self.render_value(path / str(k), v)) for k, v in value.items())
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self.render_value(path[i], v) for i, v in enumerate(value)]
        for type_, renderer in self._scalars:
            if isinstance(value, type_):
                return renderer(self, path, value)
        raise TypeError(f"{path}: unsupported type {value!r}")

    def _meta(self, path: JSONPointer, meta: Meta) -> MutableJSONObject:
        return OrderedDict((k, self.render_value(path / k, v)) for k, v in meta.items())

    def _links(self, links: LinksRepr) -> MutableJSONObject:
        return OrderedDict((k, v) for k, v in links.to_json().items() if v is not None)

    def _identifier(self, path: JSONPointer, ident: ResourceIdRepr) -> MutableJSONObject:
        out: MutableJSONObject = OrderedDict(type=ident.type, id=ident.id)
        if ident.meta:
            out["meta"] = self._meta(path / "meta", ident.meta)
        return out

    def _linkage(self, path: JSONPointer, linkage: LinkageRepr) -> MutableJSONObject:
        out: MutableJSONObject = OrderedDict()
        if linkage.links and self.render_embedded_links:
            out["links"] = self._links(linkage.links)
        if linkage.has_data:
            data = linkage.data
            if data is None:
                out["data"] = None
            elif isinstance(data, ResourceIdRepr):
                out["data"] = self._identifier(path / "data", data)
            else:
                out["data"] = [self._identifier(path / "data" / str(i), d) for i, d in enumerate(data)]
        if linkage.meta:
            out["meta"] = self._meta(path / "meta", linkage.meta)
        return out

    def _resource(self, path: JSONPointer, resource: ResourceRepr) -> MutableJSONObject:
        out: MutableJSONObject = OrderedDict(type=resource.type)
        if resource.id is not None:
            out["id"] = resource.id
        if resource.attributes:
            out["attributes"] = self._meta(path / "attributes", resource.attributes)
        if resource.relationships:
            rels = path / "relationships"
            out["relationships"] = OrderedDict(
                (name, self._linkage(rels / name, linkage))
                for name, linkage in resource.relationships.items()
            )
        if resource.links and self.render_embedded_links:
            out["links"] = self._links(resource.links)
        if resource.meta:
            out["meta"] = self._meta(path / "meta", resource.meta)
        return out

    def _error(self, path: JSONPointer, error: ErrorRepr) -> MutableJSONObject:
        out: MutableJSONObject = OrderedDict()
        for name in ("id", "status", "code", "title", "detail"):
            value = getattr(error, name)
            if value is not None:
                out[name] = value
        if error.source is not None:
            out["source"] = {
                k: v
                for k, v in (("pointer", error.source.pointer), ("parameter", error.source.parameter))
                if v is not None
            }
        if error.links is not None:
            out["links"] = self._links(error.links)
        if error.meta:
            out["meta"] = self._meta(path / "meta", error.meta)
        return out

    def __call__(self, document: DocumentRepr) -> MutableJSONObject:
        root = JSONPointer()
        out: MutableJSONObject = OrderedDict()
        if document.jsonapi:
            out["jsonapi"] = document.jsonapi
        if document.links:
            out["links"] = self._links(document.links)
        if document.has_data:
            data = document.data
            if data is None:
                out["data"] = None
            elif isinstance(data, ResourceRepr):
                out["data"] = self._resource(root / "data", data)
            else:
                out["data"] = [
                    self._resource(root / "data" / str(i), r)
                    for i, r in enumerate(typing.cast(typing.Sequence[ResourceRepr], data))
                ]
        if document.included:
            out["included"] = [
                self._resource(root / "included" / str(i), r) for i, r in enumerate(document.included)
            ]
        if document.errors:
            out["errors"] = [self._error(root / "errors" / str(i), e) for i, e in enumerate(document.errors)]
        if document.meta:
            out["meta"] = self._meta(root / "meta", document.meta)
        return out

    def __init__(
        self,
        render_decimal_as_str: bool = True,
        render_embedded_links: bool = True,
        assume_naive_timezone_as: typing.Optional[datetime.tzinfo] = None,
    ):
        self.render_decimal_as_str = render_decimal_as_str
        self.render_embedded_links = render_embedded_links
        self.assume_naive_timezone_as = assume_naive_timezone_as
