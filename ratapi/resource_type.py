"""Resource type descriptors.

A :class:`ResourceType` is the immutable, process-wide description of one JSON:API type:
its field access table, its relationships and the callbacks that make the generic
engine specific to the type (self predicate, relationship change predicates, validators).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Iterable, Mapping, Optional, Sequence

from .permissions import AccessTier, Direction, PermissionContext, Requester, can_access

# callable(requester, entity) -> bool
SelfPredicate = Callable[[Requester, Any], bool]
# callable(context, entity, target_id) -> bool
ChangePredicate = Callable[[PermissionContext, Any, Optional[str]], bool]
# callable(entity, ids) -> None
ChangeOperation = Callable[[Any, Any], None]

CHANGE_KINDS = ("add", "patch", "remove")


@dataclass(frozen=True)
class Field:
    """Access tiers of one attribute

    ``read=None`` falls back to the resource type default read tier,
    ``write=None`` means the attribute can not be written through the API.
    """

    read: Optional[AccessTier] = None
    write: Optional[AccessTier] = None


def default_change_permission(context: PermissionContext, entity: Any, target_id: Optional[str]) -> bool:
    return context.is_self or context.is_group


@dataclass(frozen=True)
class Relationship:
    """Relationship declaration and its change descriptor

    The optional ``add``, ``patch`` and ``remove`` operations replace the storage
    default (``add_related``, ``set_related``, ``remove_related``).
    """

    target: str
    many: bool = False
    writable: bool = False
    has_permission: ChangePredicate = default_change_permission
    add: Optional[ChangeOperation] = None
    patch: Optional[ChangeOperation] = None
    remove: Optional[ChangeOperation] = None

    def operation(self, change: str) -> Optional[ChangeOperation]:
        return getattr(self, change)


@dataclass(frozen=True, eq=False)
class ResourceType:
    """Description of one JSON:API resource type"""

    name: str
    fields: Mapping[str, Field] = field(default_factory=dict)
    relationships: Mapping[str, Relationship] = field(default_factory=dict)
    default_read: AccessTier = AccessTier.ALL
    # scope prefix, defaults to the type name
    scope: Optional[str] = None
    is_self: Optional[SelfPredicate] = None
    validators: Mapping[str, Callable[[Any], None]] = field(default_factory=dict)
    # relationships rendered in "included", None: all of them
    includes: Optional[Sequence[str]] = None

    @property
    def permission_scope(self) -> str:
        return self.scope or self.name

    def read_tier(self, name: str) -> Optional[AccessTier]:
        """
        :return: the read tier of the field, None for undeclared fields
        """
        declared = self.fields.get(name)
        if declared is None:
            return None
        return declared.read or self.default_read

    def write_tier(self, name: str) -> Optional[AccessTier]:
        """
        :return: the write tier of the field, None if the field is not writable
        """
        declared = self.fields.get(name)
        if declared is None:
            return None
        return declared.write

    @property
    def include_names(self) -> Iterable[str]:
        if self.includes is None:
            return list(self.relationships)
        return [name for name in self.includes if name in self.relationships]

    def searchable(self, context: PermissionContext) -> FrozenSet[str]:
        """
        Query keys a requester may filter and sort on: the id and the attributes readable in `context`.
        Search has no entity, so `self` tier attributes are never searchable.
        """
        names = {name for name in self.fields if can_access(self.read_tier(name), context)}
        return frozenset(names | {"id"})

    def context(self, requester: Requester, entity: Any = None, direction: Direction = Direction.READ) -> PermissionContext:
        return PermissionContext.build(requester, self.permission_scope, direction, entity, self.is_self)


class ResourceRegistry:
    """Lookup of resource types by JSON:API type name"""

    def __init__(self) -> None:
        self._types: Dict[str, ResourceType] = {}

    def register(self, *resource_types: ResourceType) -> None:
        for resource_type in resource_types:
            self._types[resource_type.name] = resource_type

    def get(self, name: str) -> Optional[ResourceType]:
        return self._types.get(name)

    def __getitem__(self, name: str) -> ResourceType:
        return self._types[name]

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self):
        return iter(self._types.values())

    def scopes(self) -> FrozenSet[str]:
        """
        :return: every scope string the registered types can check
        """
        result = set()
        for resource_type in self:
            prefix = resource_type.permission_scope
            for suffix in ("read", "read.me", "write", "write.me", "internal", "sudo"):
                result.add(f"{prefix}.{suffix}")
        return frozenset(result)


resource_types = ResourceRegistry()
