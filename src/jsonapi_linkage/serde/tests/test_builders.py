import pytest

from ..models import LinkageRepr, LinksRepr, ResourceIdRepr, ResourceRepr


@pytest.fixture
def target_class():
    from ..builders import ResourceReprBuilder

    return ResourceReprBuilder


def test_resource(target_class):
    target = target_class("articles", "1")
    target.attributes["title"] = "Rails is Omakase"
    target.relationship("author", to_many=False).add("people", "9")
    comments = target.relationship("comments", to_many=True)
    comments.add("comments", "5")
    comments.add("comments", "12").update_meta({"pinned": True})
    target.links = LinksRepr.of(self_="/articles/1")
    target.update_meta({"version": 1})

    assert target() == ResourceRepr(
        type="articles",
        id="1",
        attributes=[("title", "Rails is Omakase")],
        relationships=[
            ("author", LinkageRepr(data=ResourceIdRepr(type="people", id="9"))),
            (
                "comments",
                LinkageRepr(
                    data=[
                        ResourceIdRepr(type="comments", id="5"),
                        ResourceIdRepr(type="comments", id="12", meta={"pinned": True}),
                    ]
                ),
            ),
        ],
        links=LinksRepr.of(self_="/articles/1"),
        meta={"version": 1},
    )


def test_relationship_is_reused(target_class):
    target = target_class("articles")
    first = target.relationship("comments", to_many=True)
    assert target.relationship("comments", to_many=True) is first
    with pytest.raises(TypeError):
        target.relationship("comments", to_many=False)


def test_to_one_takes_a_single_identifier(target_class):
    linkage = target_class("articles").relationship("author", to_many=False)
    assert linkage().data is None
    linkage.add("people", "9")
    with pytest.raises(TypeError):
        linkage.add("people", "10")
    assert len(linkage) == 1


def test_resource_without_type(target_class):
    with pytest.raises(ValueError):
        target_class()()


def test_collection_document():
    from ..builders import DocumentReprBuilder

    target = DocumentReprBuilder(collection=True)
    for id_ in ("1", "2"):
        resource = target.add_resource()
        resource.type_name = "people"
        resource.id = id_
    target.update_meta({"total": 2})
    included = target.add_included()
    included.type_name = "comments"
    included.id = "5"

    document = target()
    assert document.is_collection
    assert [r.identity for r in document.data] == [("people", "1"), ("people", "2")]
    assert [r.identity for r in document.included] == [("comments", "5")]
    assert document.meta == {"total": 2}


def test_single_resource_document():
    from ..builders import DocumentReprBuilder

    target = DocumentReprBuilder()
    assert target().data is None
    target.add_resource().type_name = "people"
    with pytest.raises(TypeError):
        target.add_resource()

    document = target()
    assert document.is_single
    assert document.data.id is None
