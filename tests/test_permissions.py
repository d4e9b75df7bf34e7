from types import SimpleNamespace

import pytest

from ratapi.auth import resolve_scopes
from ratapi.permissions import ANONYMOUS, AccessTier, Direction, PermissionContext, Requester, can_access


def owns(requester, entity):
    return entity.owner == requester.identity


ENTITY = SimpleNamespace(id="1", owner="user-1")


@pytest.mark.parametrize(
    "tier, facets, expected",
    [
        (AccessTier.ALL, {}, True),
        (AccessTier.SELF, {"is_self": True}, True),
        (AccessTier.SELF, {"is_group": True}, False),
        (AccessTier.GROUP, {"is_self": True}, True),
        (AccessTier.GROUP, {"is_group": True}, True),
        (AccessTier.GROUP, {"is_internal": True}, False),
        (AccessTier.SUDO, {"is_group": True}, True),
        (AccessTier.SUDO, {"is_self": True}, False),
        (AccessTier.SUDO, {"is_sudo": True}, False),
        (AccessTier.INTERNAL, {"is_internal": True}, True),
        (AccessTier.INTERNAL, {"is_self": True, "is_group": True, "is_sudo": True}, False),
        (None, {"is_self": True, "is_group": True, "is_internal": True, "is_sudo": True}, False),
    ],
)
def test_can_access(tier, facets, expected):
    assert can_access(tier, PermissionContext(direction=Direction.READ, **facets)) is expected


def test_self_requires_me_scope_and_ownership():
    owner = Requester("user-1", frozenset({"pets.read.me"}))
    stranger = Requester("user-2", frozenset({"pets.read.me"}))
    without_scope = Requester("user-1", frozenset({"pets.write.me"}))

    assert PermissionContext.build(owner, "pets", Direction.READ, ENTITY, owns).is_self
    assert not PermissionContext.build(stranger, "pets", Direction.READ, ENTITY, owns).is_self
    assert not PermissionContext.build(without_scope, "pets", Direction.READ, ENTITY, owns).is_self
    assert PermissionContext.build(without_scope, "pets", Direction.WRITE, ENTITY, owns).is_self


def test_self_requires_an_entity():
    owner = Requester("user-1", frozenset({"pets.read.me"}))

    assert not PermissionContext.build(owner, "pets", Direction.READ, None, owns).is_self


def test_anonymous_is_never_self():
    assert not PermissionContext.build(ANONYMOUS, "pets", Direction.READ, ENTITY, lambda requester, entity: True).is_self


def test_facets_follow_direction():
    requester = Requester("user-1", frozenset({"pets.read", "pets.internal"}))

    read = PermissionContext.build(requester, "pets", Direction.READ)
    write = PermissionContext.build(requester, "pets", Direction.WRITE)

    assert read.is_group and not write.is_group
    assert read.is_internal and write.is_internal
    assert not read.is_sudo


def test_wildcard_grants_every_facet():
    context = PermissionContext.build(Requester("admin", frozenset({"*"})), "pets", Direction.WRITE, ENTITY, owns)

    assert (context.is_group, context.is_internal, context.is_sudo) == (True, True, True)
    assert not context.is_self
    assert context.can(AccessTier.INTERNAL)


@pytest.mark.parametrize(
    "token_scopes, group_permissions, expected",
    [
        (["rescues.read"], ["rescues.read", "rescues.write"], {"rescues.read"}),
        (["*"], ["rescues.read"], {"rescues.read"}),
        (["rescues.read"], ["*"], {"rescues.read"}),
        (["rats.write"], ["rescues.read"], set()),
        ([], ["rescues.read"], set()),
    ],
)
def test_resolve_scopes(token_scopes, group_permissions, expected):
    assert resolve_scopes(token_scopes, group_permissions) == frozenset(expected)
