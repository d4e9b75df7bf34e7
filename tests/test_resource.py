import datetime
from types import SimpleNamespace

import pytest

from memory_storage import MemoryStorage
from ratapi.api_init import RatAPI
from ratapi.errors import APIErrors, BadRequestError, ForbiddenError, NotFoundError, UnprocessableEntityError
from ratapi.events import CREATED, DELETED, UPDATED, resource_changed
from ratapi.models import utcnow
from ratapi.permissions import ANONYMOUS, AccessTier, Requester
from ratapi.resource import GenericResource
from ratapi.resources.rats import RATS
from ratapi.resources.rescues import RESCUES
from ratapi.resource_type import Field, ResourceType

CREATOR = Requester("user-9", frozenset({"rescues.read.me", "rescues.write.me"}))
RAT_OWNER = Requester("user-1", frozenset({"rescues.read.me", "rescues.write.me"}))
DISPATCH = Requester("dispatch", frozenset({"rescues.read", "rescues.write"}))


def make_rats():
    return {
        "rat-1": SimpleNamespace(id="rat-1", user_id="user-1"),
        "rat-2": SimpleNamespace(id="rat-2", user_id="user-2"),
    }


def make_rescue(age=0, **attributes):
    values = {"client": "Stranded", "platform": "pc", "rats": [], "first_limpet": None}
    values.update(attributes)
    return SimpleNamespace(id="rescue-1", created_at=utcnow() - datetime.timedelta(seconds=age), **values)


def rescue_resource(*rescues, rats=None):
    rats = rats if rats is not None else make_rats()
    storage = MemoryStorage(RESCUES, rows=rescues, targets={"rats": rats, "first_limpet": rats})
    return GenericResource(RESCUES, storage)


def update_payload(**attributes):
    return {"data": {"type": "rescues", "id": "rescue-1", "attributes": attributes}}


def test_self_access_expires_after_grace_period():
    grace = RatAPI.RESCUE_ACCESS_TIME
    recent = make_rescue(age=grace / 2)
    old = make_rescue(age=grace * 2)
    resource = rescue_resource(recent)

    assert resource.has_write_permission(CREATOR, recent)
    assert not resource.has_write_permission(CREATOR, old)
    assert resource.has_write_permission(DISPATCH, old)


def test_assigned_rat_keeps_access():
    rats = make_rats()
    rescue = make_rescue(age=RatAPI.RESCUE_ACCESS_TIME * 2, rats=[rats["rat-1"]])
    resource = rescue_resource(rescue, rats=rats)

    assert resource.has_read_permission(RAT_OWNER, rescue)
    assert not resource.has_read_permission(CREATOR, rescue)


def test_first_limpet_keeps_access():
    rats = make_rats()
    rescue = make_rescue(age=RatAPI.RESCUE_ACCESS_TIME * 2, first_limpet=rats["rat-1"])

    assert rescue_resource(rescue, rats=rats).has_write_permission(RAT_OWNER, rescue)


def test_self_requires_me_scope():
    rescue = make_rescue()
    requester = Requester("user-9", frozenset({"rescues.read"}))

    assert not rescue_resource(rescue).has_write_permission(requester, rescue)
    assert not rescue_resource(rescue).has_write_permission(ANONYMOUS, rescue)


def test_update_within_grace_period():
    rescue = make_rescue(age=RatAPI.RESCUE_ACCESS_TIME / 2)
    resource = rescue_resource(rescue)

    result = resource.update(CREATOR, "rescue-1", update_payload(system="Maia"))

    assert result.system == "Maia"


def test_update_after_grace_period_is_forbidden():
    rescue = make_rescue(age=RatAPI.RESCUE_ACCESS_TIME * 2)
    resource = rescue_resource(rescue)

    with pytest.raises(ForbiddenError):
        resource.update(CREATOR, "rescue-1", update_payload(system="Maia"))
    assert not hasattr(rescue, "system")


def test_update_id_mismatch():
    resource = rescue_resource(make_rescue())
    payload = {"data": {"type": "rescues", "id": "rescue-2", "attributes": {"system": "Maia"}}}

    with pytest.raises(UnprocessableEntityError) as exc_info:
        resource.update(DISPATCH, "rescue-1", payload)
    assert exc_info.value.pointer == "/data/id"


def test_sudo_field_is_writable_by_group():
    resource = rescue_resource(make_rescue())

    result = resource.update(DISPATCH, "rescue-1", update_payload(title="Operation Fuel"))
    assert result.title == "Operation Fuel"

    with pytest.raises(ForbiddenError) as exc_info:
        resource.update(CREATOR, "rescue-1", update_payload(title="Operation Fuel"))
    assert exc_info.value.pointer == "/data/attributes/title"


def test_create_with_wrong_type():
    resource = rescue_resource()

    with pytest.raises(UnprocessableEntityError) as exc_info:
        resource.create(DISPATCH, {"data": {"type": "rats", "attributes": {"client": "x"}}})
    assert exc_info.value.pointer == "/data"
    assert resource.storage.rows == {}


def test_create_with_undeclared_field():
    resource = rescue_resource()

    with pytest.raises(ForbiddenError) as exc_info:
        resource.create(DISPATCH, {"data": {"type": "rescues", "attributes": {"client": "x", "bogus": 1}}})
    assert exc_info.value.pointer == "/data/attributes/bogus"
    assert resource.storage.rows == {}


def test_create_reports_every_forbidden_field():
    resource = rescue_resource()
    payload = {"data": {"type": "rescues", "attributes": {"deleted_at": None, "updated_at": None}}}

    with pytest.raises(APIErrors) as exc_info:
        resource.create(DISPATCH, payload)
    assert exc_info.value.status_code == 403
    assert sorted(error.pointer for error in exc_info.value.errors) == [
        "/data/attributes/deleted_at",
        "/data/attributes/updated_at",
    ]


def test_create_validates_values():
    resource = rescue_resource()
    payload = {"data": {"type": "rescues", "attributes": {"platform": "switch"}}}

    with pytest.raises(UnprocessableEntityError) as exc_info:
        resource.create(DISPATCH, payload)
    assert exc_info.value.pointer == "/data/attributes/platform"


def test_create_with_relationships():
    resource = rescue_resource()
    payload = {
        "data": {
            "type": "rescues",
            "attributes": {"client": "Stranded"},
            "relationships": {
                "rats": {"data": [{"type": "rats", "id": "rat-1"}, {"type": "rats", "id": "rat-1"}]},
                "first_limpet": {"data": {"type": "rats", "id": "rat-2"}},
            },
        }
    }

    rescue = resource.create(DISPATCH, payload)

    assert [rat.id for rat in rescue.rats] == ["rat-1"]
    assert rescue.first_limpet.id == "rat-2"


def test_create_defaults_bypass_field_policy():
    storage = MemoryStorage(RATS)
    resource = GenericResource(RATS, storage, create_defaults=lambda requester, attributes: {"user_id": requester.identity})
    requester = Requester("user-1", frozenset({"rats.write"}))

    rat = resource.create(requester, {"data": {"type": "rats", "attributes": {"name": "Lemon Kitty", "platform": "pc"}}})

    assert rat.user_id == "user-1"


def test_write_me_holder_creates_group_fields():
    storage = MemoryStorage(RATS)
    resource = GenericResource(RATS, storage, create_defaults=lambda requester, attributes: {"user_id": requester.identity})
    requester = Requester("user-1", frozenset({"rats.write.me"}))

    rat = resource.create(requester, {"data": {"type": "rats", "attributes": {"name": "Lemon Kitty", "platform": "pc"}}})

    assert rat.user_id == "user-1"
    with pytest.raises(ForbiddenError):
        resource.create(Requester("user-2", frozenset({"rats.read"})), {"data": {"type": "rats", "attributes": {"name": "Kitty"}}})


def test_self_fields_can_not_be_set_on_create():
    pets = ResourceType(
        name="pets",
        fields={"name": Field(write=AccessTier.GROUP), "nickname": Field(write=AccessTier.SELF)},
        is_self=lambda requester, pet: True,
    )
    resource = GenericResource(pets, MemoryStorage(pets))
    owner = Requester("user-1", frozenset({"pets.write.me"}))

    assert resource.create(owner, {"data": {"type": "pets", "attributes": {"name": "Rex"}}}).name == "Rex"
    for requester in (owner, Requester("admin", frozenset({"*"}))):
        with pytest.raises(ForbiddenError) as exc_info:
            resource.create(requester, {"data": {"type": "pets", "attributes": {"name": "Rex", "nickname": "R"}}})
        assert exc_info.value.pointer == "/data/attributes/nickname"


def reject(value):
    raise UnprocessableEntityError("Invalid value")


def test_write_policy_is_checked_before_validators():
    resource = rescue_resource(make_rescue())
    reader = Requester("reader", frozenset({"rescues.read"}))

    with pytest.raises(ForbiddenError) as exc_info:
        resource.create(reader, {"data": {"type": "rescues", "attributes": {"platform": "switch"}}})
    assert exc_info.value.pointer == "/data/attributes/platform"

    pets = ResourceType(
        name="pets",
        fields={"name": Field(write=AccessTier.SUDO)},
        is_self=lambda requester, pet: True,
        validators={"name": reject},
    )
    resource = GenericResource(pets, MemoryStorage(pets, rows=[SimpleNamespace(id="pet-1", name="Rex")]))
    owner = Requester("user-1", frozenset({"pets.write.me"}))

    with pytest.raises(ForbiddenError):
        resource.update(owner, "pet-1", {"data": {"type": "pets", "id": "pet-1", "attributes": {"name": ""}}})
    assert resource.storage.rows["pet-1"].name == "Rex"


def test_find_by_id():
    resource = rescue_resource(make_rescue())

    with pytest.raises(NotFoundError) as exc_info:
        resource.find_by_id("rescue-2")
    assert exc_info.value.parameter == "id"
    with pytest.raises(BadRequestError):
        resource.find_by_id("")


def test_delete():
    resource = rescue_resource(make_rescue())

    assert resource.delete(DISPATCH, "rescue-1") == {"id": "rescue-1", "type": "rescues"}
    assert resource.storage.rows == {}


def test_delete_permission_override():
    resource = rescue_resource(make_rescue())

    with pytest.raises(ForbiddenError):
        resource.delete(DISPATCH, "rescue-1", has_permission=lambda context, rescue: context.is_sudo)
    assert "rescue-1" in resource.storage.rows


def test_relationship_view_requires_read_permission():
    rats = make_rats()
    resource = rescue_resource(make_rescue(rats=[rats["rat-1"]]), rats=rats)

    assert resource.relationship_view(DISPATCH, "rescue-1", "rats") == [rats["rat-1"]]
    assert resource.relationship_view(DISPATCH, "rescue-1", "first_limpet") is None
    with pytest.raises(ForbiddenError):
        resource.relationship_view(ANONYMOUS, "rescue-1", "rats")
    with pytest.raises(NotFoundError):
        resource.relationship_view(DISPATCH, "rescue-1", "ships")


def test_events():
    received = []

    def receiver(sender, event):
        received.append(event)

    resource = rescue_resource()
    with resource_changed.connected_to(receiver, sender="rescues"):
        rescue = resource.create(DISPATCH, {"data": {"type": "rescues", "attributes": {"client": "Stranded"}}})
        resource.update(DISPATCH, rescue.id, {"data": {"type": "rescues", "attributes": {"client": "Rescued"}}})
        resource.delete(DISPATCH, rescue.id)

    assert [event.kind for event in received] == [CREATED, UPDATED, DELETED]
    assert all(event.type == "rescues" and event.id == rescue.id for event in received)
    assert received[1].before["client"] == "Stranded"
    assert received[1].after["client"] == "Rescued"
    assert "client" in received[1].changed
    assert received[0].identity == "dispatch"


def test_failing_receiver_does_not_break_the_operation():
    def receiver(sender, event):
        raise RuntimeError("receiver failed")

    resource = rescue_resource()
    with resource_changed.connected_to(receiver, sender="rescues"):
        rescue = resource.create(DISPATCH, {"data": {"type": "rescues", "attributes": {"client": "Stranded"}}})

    assert rescue.id in resource.storage.rows
