from unittest import mock

import pytest

from ..exceptions import RelationshipFetchError
from ..pagination import PaginatedResourceList
from .testing import Article, Node, Person, node_json, resolver_for


@pytest.fixture
def target_class():
    from ..converter import ResourceConverter

    return ResourceConverter


def test_identity_is_shared_within_a_document(target_class):
    target = target_class(Article)
    article = target.read_object(
        {
            "data": {
                "type": "articles",
                "id": "1",
                "attributes": {"title": "JSON:API paints my bikeshed!"},
                "relationships": {
                    "author": {"data": {"type": "people", "id": "9"}},
                    "comments": {
                        "data": [
                            {"type": "comments", "id": "5"},
                            {"type": "comments", "id": "12"},
                        ],
                    },
                },
            },
            "included": [
                {"type": "people", "id": "9", "attributes": {"name": "dgeb"}},
                {
                    "type": "comments",
                    "id": "5",
                    "attributes": {"body": "First!"},
                    "relationships": {"author": {"data": {"type": "people", "id": "2"}}},
                },
                {
                    "type": "comments",
                    "id": "12",
                    "attributes": {"body": "I like XML better"},
                    "relationships": {"author": {"data": {"type": "people", "id": "9"}}},
                },
                {"type": "people", "id": "2", "attributes": {"name": "someone"}},
            ],
        },
        Article,
    )
    assert article.author.name == "dgeb"
    assert [c.body for c in article.comments] == ["First!", "I like XML better"]
    assert article.comments[0].author.name == "someone"
    assert article.comments[1].author is article.author


def test_inline_cycle(target_class):
    target = target_class(Person)
    person = target.read_object(
        {
            "data": {
                "type": "people",
                "id": "1",
                "attributes": {"name": "alice"},
                "relationships": {"friend": {"data": {"type": "people", "id": "2"}}},
            },
            "included": [
                {
                    "type": "people",
                    "id": "2",
                    "attributes": {"name": "bob"},
                    "relationships": {"friend": {"data": {"type": "people", "id": "1"}}},
                },
            ],
        },
        Person,
    )
    assert person.friend.name == "bob"
    assert person.friend.friend is person


def test_unresolvable_identifier_is_left_unset(target_class):
    target = target_class(Article)
    article = target.read_object(
        {
            "data": {
                "type": "articles",
                "id": "1",
                "relationships": {
                    "author": {"data": {"type": "people", "id": "9"}},
                    "comments": {"data": [{"type": "comments", "id": "5"}]},
                },
            },
        },
        Article,
    )
    assert article.author is None
    assert article.comments == []


def test_identifier_stubs(target_class):
    target = target_class(Article, materialize_identifier_stubs=True)
    article = target.read_object(
        {
            "data": {
                "type": "articles",
                "id": "1",
                "relationships": {
                    "author": {"data": {"type": "people", "id": "9", "meta": {"role": "editor"}}},
                },
            },
        },
        Article,
    )
    assert isinstance(article.author, Person)
    assert article.author.id == "9"
    assert article.author.name is None
    assert article.author.meta == {"role": "editor"}


def test_null_to_one_linkage(target_class):
    target = target_class(Article)
    article = target.read_object(
        {
            "data": {
                "type": "articles",
                "id": "1",
                "relationships": {"author": {"data": None}},
            },
        },
        Article,
    )
    assert article.author is None


def test_remote_to_one(target_class):
    resolver = resolver_for(
        {"/nodes/1/parent": {"data": node_json("2", "parent")}},
    )
    target = target_class(Node)
    target.set_global_resolver(resolver)
    node = target.read_object(
        {"data": node_json("1", "child", parent="/nodes/1/parent")}, Node
    )
    assert node.name == "child"
    assert node.parent.name == "parent"
    resolver.assert_called_once_with("/nodes/1/parent")


def test_remote_cycle(target_class):
    resolver = resolver_for(
        {
            "/nodes/1/parent": {"data": node_json("2", node="/nodes/2/node")},
            "/nodes/2/node": {"data": node_json("1", parent="/nodes/1/parent")},
        },
    )
    target = target_class(Node)
    target.set_global_resolver(resolver)
    node = target.read_object({"data": node_json("1", parent="/nodes/1/parent")}, Node)
    assert node.parent.id == "2"
    assert node.parent.node is node
    assert resolver.call_count == 2


def test_same_link_is_fetched_once(target_class):
    resolver = resolver_for(
        {
            "/nodes/2": {"data": node_json("2", "two")},
            "/nodes/3": {"data": node_json("3", "three")},
        }
    )
    target = target_class(Node)
    target.set_global_resolver(resolver)
    node = target.read_object(
        {"data": node_json("1", parent="/nodes/2", sibling="/nodes/2", node="/nodes/3")}, Node
    )
    assert node.parent.name == "two"
    assert node.sibling is node.parent
    assert node.node.name == "three"
    assert [c.args for c in resolver.call_args_list] == [("/nodes/2",), ("/nodes/3",)]


def test_shared_node_across_fetched_documents(target_class):
    resolver = resolver_for(
        {
            "/nodes/1/parent": {"data": node_json("3", "root")},
            "/nodes/1/sibling": {"data": node_json("2", parent="/nodes/2/parent")},
            "/nodes/2/parent": {"data": node_json("3", "root")},
        },
    )
    target = target_class(Node)
    target.set_global_resolver(resolver)
    node = target.read_object(
        {"data": node_json("1", parent="/nodes/1/parent", sibling="/nodes/1/sibling")}, Node
    )
    assert node.sibling.parent is node.parent
    assert resolver.call_count == 3


def test_reference_strategy_stores_link(target_class):
    resolver = resolver_for({})
    target = target_class(Node)
    target.set_global_resolver(resolver)
    node = target.read_object({"data": node_json("1", bizrel="/nodes/1/bizrel")}, Node)
    assert node.bizrel == "/nodes/1/bizrel"
    resolver.assert_not_called()


def test_missing_relation_link_is_skipped(target_class):
    resolver = resolver_for({"/nodes/2": {"data": node_json("2", "two")}})
    target = target_class(Node)
    target.set_global_resolver(resolver)
    node = target.read_object(
        {
            "data": {
                "type": "nodes",
                "id": "1",
                "relationships": {
                    "parent": {"links": {"self": "/nodes/1/relationships/parent"}},
                    "sibling": {"links": {"related": "/nodes/2"}},
                },
            },
        },
        Node,
    )
    assert node.parent is None
    assert node.sibling.name == "two"
    resolver.assert_called_once_with("/nodes/2")


def test_remote_collection(target_class):
    resolver = resolver_for(
        {
            "/nodes/1/children": {
                "data": [node_json("2"), node_json("3")],
                "links": {"next": "/nodes/1/children?page=2"},
                "meta": {"total": 3},
            },
            "/nodes/1/children?page=2": {"data": [node_json("4")]},
        },
    )
    target = target_class(Node)
    target.set_global_resolver(resolver)
    node = target.read_object({"data": node_json("1", children="/nodes/1/children")}, Node)
    assert isinstance(node.children, PaginatedResourceList)
    assert node.children.element_type is Node
    assert resolver.call_count == 1
    assert len(node.children) == 3
    assert [c.id for c in node.children] == ["2", "3", "4"]
    assert resolver.call_count == 2


def test_errors_document(target_class):
    resolver = resolver_for(
        {
            "/nodes/1/parent": {
                "errors": [{"code": "404", "title": "Not Found", "detail": "no such node"}],
            },
        },
    )
    target = target_class(Node)
    target.set_global_resolver(resolver)
    with pytest.raises(RelationshipFetchError) as e:
        target.read_object({"data": node_json("1", parent="/nodes/1/parent")}, Node)
    assert e.value.link == "/nodes/1/parent"
    assert e.value.detail == "Not Found: Error code: 404 Detail: no such node"
    assert len(e.value.errors) == 1
    assert str(e.value).startswith("Unable to parse the response document for '/nodes/1/parent'")


@pytest.mark.parametrize(
    "fetched",
    [
        {"meta": {"count": 0}},
        {"data": None},
    ],
)
def test_no_primary_data(target_class, fetched):
    target = target_class(Node)
    target.set_global_resolver(resolver_for({"/nodes/1/parent": fetched}))
    with pytest.raises(RelationshipFetchError) as e:
        target.read_object({"data": node_json("1", parent="/nodes/1/parent")}, Node)
    assert e.value.detail == "the document does not contain primary data"


def test_malformed_fetched_document(target_class):
    target = target_class(Node)
    target.set_global_resolver(resolver_for({"/nodes/1/parent": b"<html></html>"}))
    with pytest.raises(RelationshipFetchError) as e:
        target.read_object({"data": node_json("1", parent="/nodes/1/parent")}, Node)
    assert "not valid JSON" in e.value.detail


def test_transport_error_is_wrapped(target_class):
    cause = ConnectionError("connection refused")
    target = target_class(Node)
    target.set_global_resolver(resolver_for({"/nodes/1/parent": cause}))
    with pytest.raises(RelationshipFetchError) as e:
        target.read_object({"data": node_json("1", parent="/nodes/1/parent")}, Node)
    assert e.value.detail == "ConnectionError: connection refused"
    assert e.value.__cause__ is cause


def test_type_resolver_takes_precedence(target_class):
    global_resolver = resolver_for({})
    type_resolver = resolver_for({"/nodes/2": {"data": node_json("2")}})
    target = target_class(Node)
    target.set_global_resolver(global_resolver)
    target.set_type_resolver(type_resolver, Node)
    node = target.read_object({"data": node_json("1", parent="/nodes/2")}, Node)
    assert node.parent.id == "2"
    type_resolver.assert_called_once_with("/nodes/2")
    global_resolver.assert_not_called()


def test_falls_back_to_inline_data_without_resolver(target_class):
    target = target_class(Node)
    node = target.read_object(
        {
            "data": {
                "type": "nodes",
                "id": "1",
                "relationships": {
                    "parent": {
                        "links": {"related": "/nodes/2"},
                        "data": {"type": "nodes", "id": "2"},
                    },
                },
            },
            "included": [node_json("2", "included")],
        },
        Node,
    )
    assert node.parent.name == "included"


def test_links_win_over_inline_data_when_resolvable(target_class):
    resolver = resolver_for({"/nodes/2": {"data": node_json("2", "fetched")}})
    target = target_class(Node)
    target.set_global_resolver(resolver)
    node = target.read_object(
        {
            "data": {
                "type": "nodes",
                "id": "1",
                "relationships": {
                    "parent": {
                        "links": {"related": "/nodes/2"},
                        "data": {"type": "nodes", "id": "2"},
                    },
                },
            },
        },
        Node,
    )
    assert node.parent.name == "fetched"


def test_unknown_relationships_are_ignored(target_class):
    resolver = mock.Mock()
    target = target_class(Node)
    target.set_global_resolver(resolver)
    node = target.read_object(
        {"data": node_json("1", "lonely", stranger="/nodes/1/stranger")}, Node
    )
    assert node.name == "lonely"
    resolver.assert_not_called()


def test_resolution_cache():
    from ..resolution import ResolutionCache

    cache = ResolutionCache()
    obj = object()
    assert ("nodes", "1") not in cache
    cache.put(("nodes", "1"), obj)
    assert ("nodes", "1") in cache
    assert cache.get(("nodes", "1")) is obj
    assert cache.get(("nodes", "2")) is None
    assert len(cache) == 1


def test_resolver_state():
    from ..resolution import ResolverState

    state = ResolverState()
    assert not state.visited("/a")
    state.mark_visited("/a")
    assert state.visited("/a")
    assert not state.is_cached("/a")
    state.cache("/a", 1)
    assert state.is_cached("/a")
    assert state.retrieve("/a") == 1
