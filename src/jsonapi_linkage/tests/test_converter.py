import datetime
import decimal
import json
import typing

import pytest

from ..declarative import id_field, relationship, resource
from ..exceptions import (
    ConfigurationError,
    MalformedDocumentError,
    MaterializationError,
    UnknownResourceTypeError,
)
from ..naming import KEBAB_CASE
from ..pagination import ResourcePage
from ..serde.models import LinksRepr
from ..serde.utils import JSONPointer
from .testing import Article, Comment, Node, Person, document, resolver_for


@pytest.fixture
def target_class():
    from ..converter import ResourceConverter

    return ResourceConverter


ARTICLE = {
    "links": {"self": "/articles/1"},
    "data": {
        "type": "articles",
        "id": "1",
        "attributes": {
            "title": "JSON:API paints my bikeshed!",
            "published-at": "2020-01-02T09:00:00Z",
            "price": "9.99",
        },
        "relationships": {
            "author": {
                "links": {"related": "/articles/1/author"},
                "data": {"type": "people", "id": "9"},
            },
        },
        "links": {"self": "/articles/1"},
        "meta": {"version": 2},
    },
    "included": [
        {"type": "people", "id": "9", "attributes": {"name": "dgeb"}},
    ],
}


def test_read_object(target_class):
    target = target_class(Article, name_mapper=KEBAB_CASE)
    article = target.read_object(json.dumps(ARTICLE).encode("utf-8"), Article)
    assert isinstance(article, Article)
    assert article.id == "1"
    assert article.title == "JSON:API paints my bikeshed!"
    assert article.published_at == datetime.datetime(
        2020, 1, 2, 9, 0, 0, tzinfo=datetime.timezone.utc
    )
    assert article.price == decimal.Decimal("9.99")
    assert article.author.name == "dgeb"
    assert article.comments is None
    assert article.links == LinksRepr.of(self_="/articles/1")
    assert article.meta == {"version": 2}


def test_read_object_document_meta(target_class):
    target = target_class(Person)
    person = target.read_object(
        {"data": {"type": "people", "id": "1", "meta": {"a": 1}}, "meta": {"b": 2}},
        Person,
    )
    assert person.meta == {"b": 2}


def test_read_object_null_data(target_class):
    assert target_class(Person).read_object(document(None), Person) is None


def test_read_object_rejects_collection(target_class):
    with pytest.raises(MalformedDocumentError):
        target_class(Person).read_object({"data": []}, Person)


def test_read_object_errors_document(target_class):
    with pytest.raises(MalformedDocumentError) as e:
        target_class(Person).read_object(
            {"errors": [{"status": "404", "title": "Not Found"}]}, Person
        )
    assert e.value.message == "the document reports errors: Not Found:"
    assert e.value.errors[0].status == "404"


def test_read_object_no_primary_data(target_class):
    with pytest.raises(MalformedDocumentError) as e:
        target_class(Person).read_object({"meta": {"count": 0}}, Person)
    assert e.value.message == "the document does not contain primary data"


def test_read_object_invalid_json(target_class):
    with pytest.raises(MalformedDocumentError) as e:
        target_class(Person).read_object(b"{", Person)
    assert "not valid JSON" in e.value.message


def test_read_object_invalid_shape(target_class):
    with pytest.raises(MalformedDocumentError) as e:
        target_class(Person).read_object(
            {"data": {"type": "people", "id": "1", "attributes": []}}, Person
        )
    assert e.value.sources == (JSONPointer("/data/attributes"),)


def test_unknown_attributes(target_class):
    data = {"data": {"type": "people", "id": "1", "attributes": {"name": "a", "age": 3}}}
    person = target_class(Person).read_object(data, Person)
    assert person.name == "a"
    assert not hasattr(person, "age")
    with pytest.raises(MaterializationError) as e:
        target_class(Person, fail_on_unknown_attributes=True).read_object(data, Person)
    assert e.value.message == 'failed to materialize a resource of type "people": unknown attribute age'


def test_unregistered_class(target_class):
    with pytest.raises(UnknownResourceTypeError):
        target_class(Person).read_object({"data": None}, Node)


def test_read_object_collection(target_class):
    target = target_class(Comment)
    page = target.read_object_collection(
        {
            "data": [
                {
                    "type": "comments",
                    "id": "1",
                    "relationships": {"author": {"data": {"type": "people", "id": "9"}}},
                },
                {
                    "type": "comments",
                    "id": "2",
                    "relationships": {"author": {"data": {"type": "people", "id": "9"}}},
                },
            ],
            "included": [{"type": "people", "id": "9", "attributes": {"name": "dgeb"}}],
            "links": {"next": "/comments?page=2"},
            "meta": {"total": 4},
        },
        Comment,
    )
    assert isinstance(page, ResourcePage)
    assert [c.id for c in page] == ["1", "2"]
    assert page[0].author is page[1].author
    assert page.next == "/comments?page=2"
    assert page.meta == {"total": 4}
    with pytest.raises(MalformedDocumentError):
        target.read_object_collection({"data": None}, Comment)


def test_read_paginated_collection(target_class):
    target = target_class(Person)
    resolver = resolver_for(
        {"/people?page=2": {"data": [{"type": "people", "id": "2", "attributes": {"name": "b"}}]}}
    )
    first = {
        "data": [{"type": "people", "id": "1", "attributes": {"name": "a"}}],
        "links": {"next": "/people?page=2"},
    }
    people = target.read_paginated_collection(first, Person, resolver)
    assert [p.name for p in people] == ["a", "b"]

    with pytest.raises(ConfigurationError):
        target.read_paginated_collection(first, Person)

    target.set_type_resolver(resolver, Person)
    assert [p.id for p in target.read_paginated_collection(first, Person)] == ["1", "2"]

    single = target.read_paginated_collection(
        {"data": [{"type": "people", "id": "1"}]}, Person
    )
    assert len(single) == 1


def test_write_object(target_class):
    target = target_class(Article, name_mapper=KEBAB_CASE)
    article = Article(
        id="1",
        title="JSON:API paints my bikeshed!",
        published_at=datetime.datetime(2020, 1, 2, 9, 0, 0, tzinfo=datetime.timezone.utc),
        price=decimal.Decimal("9.99"),
        author=Person(id="9", name="dgeb"),
        comments=[Comment(id="5"), Comment(body="unsaved"), Comment(id="12")],
        links={"self": "/articles/1", "describedby": {"href": "/schemas/articles"}},
        meta={"version": 2},
    )
    assert json.loads(target.write_object(article)) == {
        "data": {
            "type": "articles",
            "id": "1",
            "links": {"self": "/articles/1", "describedby": "/schemas/articles"},
            "attributes": {
                "title": "JSON:API paints my bikeshed!",
                "published-at": "2020-01-02T09:00:00+00:00",
                "price": "9.99",
            },
            "relationships": {
                "author": {"data": {"type": "people", "id": "9"}},
                "comments": {
                    "data": [
                        {"type": "comments", "id": "5"},
                        {"type": "comments", "id": "12"},
                    ],
                },
            },
            "meta": {"version": 2},
        },
    }


def test_write_object_skips_references(target_class):
    target = target_class(Node)
    node = Node(id="1", name="n", parent=Node(id="2"), bizrel="/nodes/1/bizrel")
    assert json.loads(target.write_object(node)) == {
        "data": {
            "type": "nodes",
            "id": "1",
            "attributes": {"name": "n"},
            "relationships": {"parent": {"data": {"type": "nodes", "id": "2"}}},
        },
    }


def test_write_object_collection(target_class):
    target = target_class(Person)
    result = json.loads(target.write_object_collection([Person(id="1", name="a"), Person(name="b")]))
    assert result == {
        "data": [
            {"type": "people", "id": "1", "attributes": {"name": "a"}},
            {"type": "people", "attributes": {"name": "b"}},
        ],
    }


def test_write_then_read(target_class):
    target = target_class(Article)
    article = Article(id="1", title="t", price=decimal.Decimal("1.50"), author=Person(id="9"))
    read = target.read_object(target.write_object(article), Article)
    assert read.title == "t"
    assert read.price == decimal.Decimal("1.50")
    assert read.author is None


def test_write_unregistered_object(target_class):
    with pytest.raises(UnknownResourceTypeError):
        target_class(Person).write_object(object())


def test_relationship_targets_are_registered(target_class):
    target = target_class(Article)
    assert Person in target.registry
    assert "comments" in target.registry
    assert target.registry.frozen


def test_unknown_relationship_target(target_class):
    @resource("haunted")
    class Haunted:
        id: typing.Optional[str] = id_field()
        ghost: typing.Optional[str] = relationship(target="ghosts")

    with pytest.raises(ConfigurationError) as e:
        target_class(Haunted)
    assert e.value.message == 'no resource known as "ghosts"'


def test_frozen_registry(target_class):
    from ..registry import TypeRegistry

    registry = TypeRegistry([Person])
    registry.freeze()
    target = target_class(Person, registry=registry)
    assert target.registry is registry
    with pytest.raises(ConfigurationError):
        target_class(Article, registry=registry)


def test_resolver_for(target_class):
    from ..interfaces import LinkResolverFuncAdapter

    target = target_class(Article)
    person = target.registry.describe(Person)
    assert target.resolver_for(person) is None
    target.set_global_resolver(lambda link: b"")
    assert isinstance(target.resolver_for(person), LinkResolverFuncAdapter)
    typed = LinkResolverFuncAdapter(lambda link: b"")
    target.set_type_resolver(typed, Person)
    assert target.resolver_for(person) is typed
    assert target.resolver_for(target.registry.describe(Article)) is not typed
    target.set_type_resolver(None, Person)
    assert target.resolver_for(person) is not typed
    with pytest.raises(TypeError):
        target.set_global_resolver(42)
