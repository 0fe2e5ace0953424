import collections.abc
import typing

from .exceptions import DeserializationError, ShapeViolation
from .models import (
    AttributeValue,
    DocumentRepr,
    ErrorRepr,
    LinkageRepr,
    LinkRepr,
    LinksRepr,
    Missing,
    ResourceIdRepr,
    ResourceRepr,
    SourceRepr,
)
from .types import JSONObject, JSONValue
from .utils import JSONPointer


def _json_type_repr(value: JSONValue) -> str:
    if value is None:
        return "null"
    elif isinstance(value, bool):
        return "boolean"
    elif isinstance(value, (int, float)):
        return "number"
    elif isinstance(value, str):
        return "string"
    elif isinstance(value, collections.abc.Mapping):
        return "object"
    elif isinstance(value, collections.abc.Sequence):
        return "array"
    else:
        return type(value).__name__


class DeserializationContext:
    """
    Collects every validation error found while walking a document, so that a
    single :py:class:`DeserializationError` reports all of them at once.
    """

    errors: typing.List[ShapeViolation]

    def report(self, pointer: JSONPointer, message: str) -> None:
        self.errors.append(ShapeViolation(pointer, message))

    def __init__(self):
        self.errors = []


class ReprDeserializer:
    """
    Turns a parsed JSON:API document into a :py:class:`DocumentRepr`.

    Only the shape of the document is validated here; whether the resource types
    are known or the attributes make sense is left to the caller.
    """

    def _expect_object(
        self, ctx: DeserializationContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[JSONObject]:
        if not isinstance(value, collections.abc.Mapping):
            ctx.report(
                pointer, f"value has type {_json_type_repr(value)} where object expected"
            )
            return None
        return value

    def _expect_array(
        self, ctx: DeserializationContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[typing.Sequence[typing.Any]]:
        if isinstance(value, (str, bytes)) or not isinstance(value, collections.abc.Sequence):
            ctx.report(
                pointer, f"value has type {_json_type_repr(value)} where array expected"
            )
            return None
        return value

    def _convert_string(
        self,
        ctx: DeserializationContext,
        pointer: JSONPointer,
        value: JSONValue,
        allow_number: bool = False,
    ) -> typing.Optional[str]:
        if isinstance(value, str):
            return value
        if allow_number and isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        ctx.report(
            pointer, f"value has type {_json_type_repr(value)} where string expected"
        )
        return None

    def _convert_meta(
        self, ctx: DeserializationContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[typing.Dict[str, typing.Any]]:
        _value = self._expect_object(ctx, pointer, value)
        if _value is None:
            return None
        return dict(_value)

    def _convert_link(
        self, ctx: DeserializationContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[LinkRepr]:
        if value is None or isinstance(value, str):
            return LinkRepr(href=value, _source_=pointer)
        _value = self._expect_object(ctx, pointer, value)
        if _value is None:
            return None
        href: typing.Optional[str] = None
        if "href" in _value:
            href = self._convert_string(ctx, pointer / "href", _value["href"])
        else:
            ctx.report(pointer, 'link object must have a property "href"')
        meta: typing.Optional[typing.Dict[str, typing.Any]] = None
        if "meta" in _value:
            meta = self._convert_meta(ctx, pointer / "meta", _value["meta"])
        return LinkRepr(href=href, meta=meta, _source_=pointer)

    def _convert_links(
        self, ctx: DeserializationContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[LinksRepr]:
        _value = self._expect_object(ctx, pointer, value)
        if _value is None:
            return None
        links: typing.List[typing.Tuple[str, LinkRepr]] = []
        for k, v in _value.items():
            link = self._convert_link(ctx, pointer / k, v)
            if link is not None:
                links.append((k, link))
        return LinksRepr(links, _source_=pointer)

    def _convert_resource_id(
        self, ctx: DeserializationContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[ResourceIdRepr]:
        _value = self._expect_object(ctx, pointer, value)
        if _value is None:
            return None
        type_: typing.Optional[str] = None
        id_: typing.Optional[str] = None
        try:
            type_ = self._convert_string(ctx, pointer / "type", _value["type"])
            id_ = self._convert_string(ctx, pointer / "id", _value["id"], allow_number=True)
        except KeyError as e:
            ctx.report(pointer, f'value must have a property "{e.args[0]}"')
            return None
        meta: typing.Optional[typing.Dict[str, typing.Any]] = None
        if "meta" in _value:
            meta = self._convert_meta(ctx, pointer / "meta", _value["meta"])
        if type_ is None or id_ is None:
            return None
        return ResourceIdRepr(type=type_, id=id_, meta=meta, _source_=pointer)

    def _convert_linkage(
        self, ctx: DeserializationContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[LinkageRepr]:
        _value = self._expect_object(ctx, pointer, value)
        if _value is None:
            return None
        if not any(k in _value for k in ("data", "links", "meta")):
            ctx.report(
                pointer, 'relationship object must have at least one of "data", "links", or "meta"'
            )
            return None

        data: typing.Union[None, ResourceIdRepr, typing.Sequence[ResourceIdRepr]] = None
        has_data = "data" in _value
        if has_data:
            data_ = _value["data"]
            if data_ is None:
                data = None
            elif isinstance(data_, collections.abc.Mapping):
                data = self._convert_resource_id(ctx, pointer / "data", data_)
            else:
                items = self._expect_array(ctx, pointer / "data", data_)
                if items is not None:
                    data = tuple(
                        r
                        for r in (
                            self._convert_resource_id(ctx, (pointer / "data")[i], item)
                            for i, item in enumerate(items)
                        )
                        if r is not None
                    )

        links: typing.Optional[LinksRepr] = None
        if "links" in _value:
            links = self._convert_links(ctx, pointer / "links", _value["links"])
        meta: typing.Optional[typing.Dict[str, typing.Any]] = None
        if "meta" in _value:
            meta = self._convert_meta(ctx, pointer / "meta", _value["meta"])
        return LinkageRepr(data=data, links=links, meta=meta, has_data=has_data, _source_=pointer)

    def _convert_resource(
        self, ctx: DeserializationContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[ResourceRepr]:
        _value = self._expect_object(ctx, pointer, value)
        if _value is None:
            return None
        if "type" not in _value:
            ctx.report(pointer, 'value must have a property "type"')
            return None
        type_ = self._convert_string(ctx, pointer / "type", _value["type"])

        id_: typing.Optional[str] = None
        if _value.get("id") is not None:
            id_ = self._convert_string(ctx, pointer / "id", _value["id"], allow_number=True)

        attributes: typing.Sequence[typing.Tuple[str, AttributeValue]] = ()
        has_attributes = "attributes" in _value
        if has_attributes:
            attributes_ = self._expect_object(ctx, pointer / "attributes", _value["attributes"])
            if attributes_ is not None:
                attributes = tuple(attributes_.items())

        relationships: typing.List[typing.Tuple[str, LinkageRepr]] = []
        if "relationships" in _value:
            relationships_ = self._expect_object(
                ctx, pointer / "relationships", _value["relationships"]
            )
            if relationships_ is not None:
                for k, v in relationships_.items():
                    rel = self._convert_linkage(ctx, pointer / "relationships" / k, v)
                    if rel is not None:
                        relationships.append((k, rel))

        links: typing.Optional[LinksRepr] = None
        if "links" in _value:
            links = self._convert_links(ctx, pointer / "links", _value["links"])
        meta: typing.Optional[typing.Dict[str, typing.Any]] = None
        if "meta" in _value:
            meta = self._convert_meta(ctx, pointer / "meta", _value["meta"])

        if type_ is None:
            return None
        return ResourceRepr(
            type=type_,
            id=id_,
            attributes=attributes,
            relationships=relationships,
            links=links,
            meta=meta,
            has_attributes=has_attributes,
            _source_=pointer,
        )

    def _convert_error(
        self, ctx: DeserializationContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[ErrorRepr]:
        _value = self._expect_object(ctx, pointer, value)
        if _value is None:
            return None

        def _str(k: str) -> typing.Optional[str]:
            v = _value.get(k)
            if v is None:
                return None
            return self._convert_string(ctx, pointer / k, v, allow_number=True)

        source: typing.Optional[SourceRepr] = None
        if "source" in _value:
            source_ = self._expect_object(ctx, pointer / "source", _value["source"])
            if source_ is not None:
                source = SourceRepr(
                    pointer=source_.get("pointer"),
                    parameter=source_.get("parameter"),
                    _source_=pointer / "source",
                )
        links: typing.Optional[LinksRepr] = None
        if "links" in _value:
            links = self._convert_links(ctx, pointer / "links", _value["links"])
        meta: typing.Optional[typing.Dict[str, typing.Any]] = None
        if "meta" in _value:
            meta = self._convert_meta(ctx, pointer / "meta", _value["meta"])
        return ErrorRepr(
            id=_str("id"),
            status=_str("status"),
            code=_str("code"),
            title=_str("title"),
            detail=_str("detail"),
            source=source,
            links=links,
            meta=meta if meta is not None else {},
            _source_=pointer,
        )

    def _convert_document(
        self, ctx: DeserializationContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[DocumentRepr]:
        _value = self._expect_object(ctx, pointer, value)
        if _value is None:
            return None

        if "data" in _value and "errors" in _value:
            ctx.report(
                pointer, 'the members "data" and "errors" must not coexist in the same document'
            )
        if not any(k in _value for k in ("data", "errors", "meta")):
            ctx.report(
                pointer, 'document must have at least one of "data", "errors", or "meta"'
            )
            return None

        data: typing.Any = Missing
        if "data" in _value:
            data_ = _value["data"]
            if data_ is None:
                data = None
            elif isinstance(data_, collections.abc.Mapping):
                data = self._convert_resource(ctx, pointer / "data", data_)
            else:
                items = self._expect_array(ctx, pointer / "data", data_)
                if items is not None:
                    data = [
                        self._convert_resource(ctx, (pointer / "data")[i], item)
                        for i, item in enumerate(items)
                    ]

        errors: typing.Optional[typing.List[ErrorRepr]] = None
        if "errors" in _value:
            items = self._expect_array(ctx, pointer / "errors", _value["errors"])
            if items is not None:
                errors = [
                    e
                    for e in (
                        self._convert_error(ctx, (pointer / "errors")[i], item)
                        for i, item in enumerate(items)
                    )
                    if e is not None
                ]

        included: typing.List[ResourceRepr] = []
        if "included" in _value:
            items = self._expect_array(ctx, pointer / "included", _value["included"])
            if items is not None:
                for i, item in enumerate(items):
                    r = self._convert_resource(ctx, (pointer / "included")[i], item)
                    if r is not None:
                        included.append(r)

        links: typing.Optional[LinksRepr] = None
        if "links" in _value:
            links = self._convert_links(ctx, pointer / "links", _value["links"])
        meta: typing.Optional[typing.Dict[str, typing.Any]] = None
        if "meta" in _value:
            meta = self._convert_meta(ctx, pointer / "meta", _value["meta"])
            if meta is None:
                meta = {}
        jsonapi: typing.Optional[typing.Dict[str, typing.Any]] = None
        if "jsonapi" in _value:
            jsonapi = self._convert_meta(ctx, pointer / "jsonapi", _value["jsonapi"])

        if ctx.errors:
            return None
        return DocumentRepr(
            data=data,
            errors=errors,
            included=included,
            links=links,
            meta=meta,
            jsonapi=jsonapi,
            _source_=pointer,
        )

    def __call__(self, document: JSONValue) -> DocumentRepr:
        ctx = DeserializationContext()
        retval = self._convert_document(ctx, JSONPointer(), document)
        if ctx.errors or retval is None:
            raise DeserializationError(document, ctx.errors)
        return retval
