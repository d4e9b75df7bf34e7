from types import SimpleNamespace

import pytest

from ratapi.document import Document, DocumentViewType, ErrorDocument, ResourceDocument
from ratapi.errors import ForbiddenError, GenericError
from ratapi.permissions import AccessTier, Requester
from ratapi.query import QuerySpec
from ratapi.resource_type import Field, Relationship, ResourceRegistry, ResourceType
from ratapi.view import EntityView, expand_included

OWNERS = ResourceType(
    name="owners",
    fields={"name": Field(), "secret": Field(read=AccessTier.INTERNAL)},
    relationships={"pets": Relationship("pets", many=True)},
    is_self=lambda requester, owner: owner.id == requester.identity,
)
PETS = ResourceType(
    name="pets",
    fields={"name": Field(), "chip": Field(read=AccessTier.SELF)},
    relationships={"owner": Relationship("owners"), "friends": Relationship("pets", many=True)},
    is_self=lambda requester, pet: pet.owner is not None and pet.owner.id == requester.identity,
)
REGISTRY = ResourceRegistry()
REGISTRY.register(OWNERS, PETS)

OWNER = Requester("o1", frozenset({"pets.read.me", "owners.read"}))
STRANGER = Requester("zz", frozenset({"pets.read.me", "owners.read"}))


@pytest.fixture
def family():
    owner = SimpleNamespace(id="o1", name="Ann", secret="hidden", pets=[])
    first = SimpleNamespace(id="p1", name="Rex", chip="123", owner=owner, friends=[])
    second = SimpleNamespace(id="p2", name="Tom", chip="456", owner=owner, friends=[first])
    first.friends.append(second)
    owner.pets.extend([first, second])
    return SimpleNamespace(owner=owner, first=first, second=second)


def keys(included):
    return [(item["type"], item["id"]) for item in included]


def test_internal_attributes_are_omitted(family):
    assert EntityView(OWNERS, family.owner, OWNER, REGISTRY).attributes == {"name": "Ann"}

    internal = Requester("o1", frozenset({"owners.internal"}))
    assert EntityView(OWNERS, family.owner, internal, REGISTRY).attributes == {"name": "Ann", "secret": "hidden"}


def test_self_attributes(family):
    assert EntityView(PETS, family.first, OWNER, REGISTRY).attributes == {"name": "Rex", "chip": "123"}
    assert EntityView(PETS, family.first, STRANGER, REGISTRY).attributes == {"name": "Rex"}


def test_linkage_does_not_depend_on_attribute_visibility(family):
    view = EntityView(PETS, family.first, STRANGER, REGISTRY)

    assert view.relationships == {
        "owner": {"data": {"type": "owners", "id": "o1"}},
        "friends": {"data": [{"type": "pets", "id": "p2"}]},
    }


def test_unset_to_one_relationship(family):
    family.first.owner = None

    assert EntityView(PETS, family.first, OWNER, REGISTRY).relationships["owner"] == {"data": None}


def test_included_is_deduplicated_and_excludes_primary(family):
    views = [EntityView(PETS, pet, OWNER, REGISTRY) for pet in (family.first, family.second)]

    assert keys(expand_included(views[:1])) == [("owners", "o1"), ("pets", "p2")]
    assert keys(expand_included(views)) == [("owners", "o1")]


def test_included_entities_get_their_own_context(family):
    family.second.owner = SimpleNamespace(id="o2", name="Bob", secret="x", pets=[family.second])

    included = expand_included([EntityView(OWNERS, family.owner, OWNER, REGISTRY)]).to_list()

    attributes = {item["id"]: item["attributes"] for item in included}
    assert attributes["p1"] == {"name": "Rex", "chip": "123"}
    assert attributes["p2"] == {"name": "Tom"}


def test_include_selects_first_level_relationships(family):
    view = EntityView(PETS, family.first, OWNER, REGISTRY)

    assert keys(expand_included([view], include=["owner"])) == [("owners", "o1")]
    assert keys(expand_included([view], include=[])) == []


def test_include_depth(family):
    view = EntityView(OWNERS, family.owner, OWNER, REGISTRY)

    assert keys(expand_included([view], depth=0)) == []
    assert keys(expand_included([view], depth=2)) == [("pets", "p1"), ("pets", "p2")]


def test_document_requires_data_or_errors():
    with pytest.raises(GenericError):
        Document().to_dict()
    with pytest.raises(GenericError):
        Document(data=[], errors=[ForbiddenError()]).to_dict()


def test_null_data_document():
    document = Document(data=None).to_dict()

    assert document["data"] is None
    assert "errors" not in document


def test_error_document():
    document = ErrorDocument([ForbiddenError("No", pointer="/data/attributes/title")]).to_dict()

    assert set(document) == {"errors", "meta", "links", "jsonapi"}
    assert document["errors"] == [
        {"status": "403", "title": "Forbidden", "detail": "No", "source": {"pointer": "/data/attributes/title"}}
    ]


def test_search_document_meta(family):
    query = QuerySpec(limit=1, offset=1)

    document = ResourceDocument(PETS, [family.second], OWNER, query=query, total=2, meta={"generated": True}, registry=REGISTRY)

    assert document.to_dict()["meta"] == {"count": 1, "limit": 1, "offset": 1, "total": 2, "generated": True}


def test_single_resource_document(family):
    document = ResourceDocument(PETS, family.first, OWNER, registry=REGISTRY).to_dict()

    assert document["data"]["id"] == "p1"
    assert document["meta"] == {}
    assert keys(document["included"]) == [("owners", "o1"), ("pets", "p2")]


def test_relationship_document(family):
    document = ResourceDocument(
        PETS, family.owner.pets, OWNER, view=DocumentViewType.RELATIONSHIP, registry=REGISTRY
    ).to_dict()

    assert document["data"] == [{"type": "pets", "id": "p1"}, {"type": "pets", "id": "p2"}]
    assert document["included"] == []
