"""Permission model.

A requester is an identity (or nobody) plus a set of granted scope strings such as
``rescues.read``, ``rescues.write.me`` or ``*``. For one resource type, one direction
(read or write) and optionally one entity, the requester is reduced to a
:class:`PermissionContext`: the four boolean facets ``is_self``, ``is_group``,
``is_internal`` and ``is_sudo``. Field tiers are evaluated against that context only.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, FrozenSet, Optional

WILDCARD = "*"


class AccessTier(Enum):
    """Who may read or write a field"""

    ALL = "all"
    SELF = "self"
    GROUP = "group"
    SUDO = "sudo"
    INTERNAL = "internal"


class Direction(Enum):
    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class Requester:
    """The party making a request"""

    identity: Optional[str] = None
    scopes: FrozenSet[str] = frozenset()

    @property
    def authenticated(self) -> bool:
        return self.identity is not None

    def granted(self, *scopes: str) -> bool:
        """
        :return: True if any of ``scopes`` is held, the wildcard scope grants everything
        """
        if WILDCARD in self.scopes:
            return True
        return any(scope in self.scopes for scope in scopes)


ANONYMOUS = Requester()


@dataclass(frozen=True)
class PermissionContext:
    """Facets of a requester relative to one resource type, direction and (optional) entity"""

    direction: Direction
    identity: Optional[str] = None
    scopes: FrozenSet[str] = frozenset()
    is_self: bool = False
    is_group: bool = False
    is_internal: bool = False
    is_sudo: bool = False

    @classmethod
    def build(
        cls,
        requester: Requester,
        scope: str,
        direction: Direction,
        entity: Any = None,
        self_predicate: Optional[Callable[[Requester, Any], bool]] = None,
    ) -> "PermissionContext":
        """
        :param requester: the requester
        :param scope: scope prefix of the resource type, e.g. "rescues"
        :param direction: read or write
        :param entity: the entity being accessed, None before it exists
        :param self_predicate: callable(requester, entity) telling if the requester owns the entity
        """
        is_self = False
        if entity is not None and requester.authenticated and self_predicate is not None:
            is_self = requester.granted(f"{scope}.{direction.value}.me") and bool(self_predicate(requester, entity))

        return cls(
            direction=direction,
            identity=requester.identity,
            scopes=frozenset(requester.scopes),
            is_self=is_self,
            is_group=requester.granted(f"{scope}.{direction.value}"),
            is_internal=requester.granted(f"{scope}.internal"),
            is_sudo=requester.granted(f"{scope}.sudo"),
        )

    def can(self, tier: Optional[AccessTier]) -> bool:
        return can_access(tier, self)


def can_access(tier: Optional[AccessTier], context: PermissionContext) -> bool:
    """
    Evaluate a field access tier against a permission context.
    The sudo tier is granted to the group, the ``is_sudo`` facet is meant for entity level checks.

    :param tier: access tier, None means no access at all
    :param context: permission context
    :return: True if access is allowed
    """
    if tier is None:
        return False
    if tier is AccessTier.ALL:
        return True
    if tier is AccessTier.INTERNAL:
        return context.is_internal
    if tier is AccessTier.SUDO:
        return context.is_group
    if tier is AccessTier.GROUP:
        return context.is_group or context.is_self
    if tier is AccessTier.SELF:
        return context.is_self
    return False
