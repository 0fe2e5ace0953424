import typing

import pytest

from ..exceptions import ConfigurationError
from ..models import RelationshipDescriptor, RelationshipType, RelType, ResolutionStrategy


class Dummy:
    pass


@pytest.fixture
def target_class():
    from ..models import RelationshipDescriptor

    return RelationshipDescriptor


def test_relationship_defaults(target_class):
    target = target_class("author", "people")
    assert target.field_name == "author"
    assert target.type is RelationshipType.TO_ONE
    assert not target.resolve
    assert target.rel_type is RelType.SELF
    assert target.relation_name == "self"
    assert target.strategy is ResolutionStrategy.OBJECT
    assert target.serialize


def test_custom_relation_name(target_class):
    target = target_class("author", "people", resolve=True, rel_type="alternate")
    assert target.relation_name == "alternate"


@pytest.mark.parametrize("rel_type", [None, ""])
def test_resolvable_without_relation(target_class, rel_type):
    with pytest.raises(ConfigurationError):
        target_class("author", "people", resolve=True, rel_type=rel_type)
    # harmless as long as the relationship is not resolved
    target_class("author", "people", rel_type=rel_type)


@pytest.mark.parametrize("field_type", [str, typing.Optional[str], None])
def test_reference_accepts_str(target_class, field_type):
    target = target_class(
        "author",
        "people",
        strategy=ResolutionStrategy.REFERENCE,
        field_type=field_type,
    )
    assert target.strategy is ResolutionStrategy.REFERENCE


@pytest.mark.parametrize("field_type", [int, Dummy, typing.Optional[Dummy], typing.Union[str, int]])
def test_reference_rejects_non_str(target_class, field_type):
    with pytest.raises(ConfigurationError):
        target_class(
            "author",
            "people",
            strategy=ResolutionStrategy.REFERENCE,
            field_type=field_type,
        )


def test_type_descriptor():
    from ..models import TypeDescriptor

    author = RelationshipDescriptor("author", "people", field_name="writer")
    target = TypeDescriptor(
        Dummy,
        "dummies",
        "key",
        attributes={"title": str},
        relationships=[author],
        links_fields=["links"],
    )
    assert target.factory is Dummy
    assert target.id_type is str
    assert dict(target.attributes) == {"title": str}
    assert target.relationships["author"] is author
    assert target.relationship_by_field("writer") is author
    assert target.relationship_by_field("author") is None
    assert target.links_field == "links"
    assert target.meta_field is None


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(type_name="", id_field="id"),
        dict(type_name="dummies", id_field=None),
        dict(type_name="dummies", id_field="id", links_fields=["a", "b"]),
        dict(type_name="dummies", id_field="id", meta_fields=["a", "b"]),
        dict(
            type_name="dummies",
            id_field="id",
            relationships=[
                RelationshipDescriptor("author", "people"),
                RelationshipDescriptor("author", "people", field_name="other"),
            ],
        ),
    ],
)
def test_type_descriptor_validation(kwargs):
    from ..models import TypeDescriptor

    with pytest.raises(ConfigurationError):
        TypeDescriptor(Dummy, **kwargs)
