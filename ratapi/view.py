"""
Permission scoped rendering of entities as JSON:API resource objects
"""

from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import ratapi
from .config import get_config
from .jsonapi_types import JSONAPIResourceIdentifier, JSONAPIResourceObject
from .permissions import Direction, Requester, can_access
from .resource_type import Relationship, ResourceRegistry, ResourceType, resource_types


def resource_identifier(type_name: str, entity: Any) -> JSONAPIResourceIdentifier:
    return {"type": type_name, "id": str(entity.id)}


class EntityView:
    """
    One entity as seen by one requester.
    The permission context is computed for this very entity, views never mutate the entity.
    """

    def __init__(
        self, resource_type: ResourceType, entity: Any, requester: Requester, registry: Optional[ResourceRegistry] = None
    ) -> None:
        self.resource_type = resource_type
        self.entity = entity
        self.requester = requester
        self.registry = registry if registry is not None else resource_types
        self.context = resource_type.context(requester, entity, Direction.READ)

    @property
    def jsonapi_id(self) -> str:
        return str(self.entity.id)

    @property
    def key(self) -> Tuple[str, str]:
        """
        (type, id) pair identifying the resource in a document
        """
        return self.resource_type.name, self.jsonapi_id

    def identifier(self) -> JSONAPIResourceIdentifier:
        return resource_identifier(self.resource_type.name, self.entity)

    @property
    def attributes(self) -> Dict[str, Any]:
        """
        The attributes the requester may read, the others are omitted
        """
        result = {}
        for name in self.resource_type.fields:
            if name == "id":
                continue
            if can_access(self.resource_type.read_tier(name), self.context):
                result[name] = getattr(self.entity, name, None)
        return result

    @property
    def relationships(self) -> Dict[str, Dict[str, Any]]:
        """
        Linkage of every declared relationship, regardless of the visibility of the targets' attributes
        """
        result = {}
        for name, relationship in self.resource_type.relationships.items():
            result[name] = {"data": self.linkage(name, relationship)}
        return result

    def related(self, name: str) -> List[Any]:
        """
        :return: the related entities as a list, empty for an unset to-one relationship
        """
        relationship = self.resource_type.relationships[name]
        value = getattr(self.entity, name, None)
        if relationship.many:
            return list(value or [])
        return [] if value is None else [value]

    def linkage(self, name: str, relationship: Relationship):
        related = self.related(name)
        if relationship.many:
            return [resource_identifier(relationship.target, item) for item in related]
        if not related:
            return None
        return resource_identifier(relationship.target, related[0])

    def includes(self, name: str, include: Optional[Sequence[str]] = None) -> bool:
        """
        :param include: relationship names requested by the client, None for the type's defaults
        """
        if include is not None:
            return name in include
        return name in self.resource_type.include_names

    def render(self) -> JSONAPIResourceObject:
        return {
            "type": self.resource_type.name,
            "id": self.jsonapi_id,
            "attributes": self.attributes,
            "relationships": self.relationships,
        }


class Included:
    """
    Accumulator of the resources rendered in the "included" part of a document.
    Resources are keyed by (type, id), the first encounter determines the position.
    Keys passed as `exclude` (the primary data) are never included.
    """

    def __init__(self, exclude: Iterable[Tuple[str, str]] = ()) -> None:
        self._seen = set(exclude)
        self._resources: Dict[Tuple[str, str], JSONAPIResourceObject] = {}

    def add(self, view: EntityView) -> bool:
        """
        :return: True if the view was not seen before
        """
        if view.key in self._seen:
            return False
        self._seen.add(view.key)
        self._resources[view.key] = view.render()
        return True

    def __contains__(self, key: object) -> bool:
        return key in self._resources

    def __len__(self) -> int:
        return len(self._resources)

    def __iter__(self) -> Iterator[JSONAPIResourceObject]:
        return iter(self._resources.values())

    def to_list(self) -> List[JSONAPIResourceObject]:
        return list(self._resources.values())


def expand_included(
    views: Sequence[EntityView],
    include: Optional[Sequence[str]] = None,
    depth: Optional[int] = None,
    included: Optional[Included] = None,
) -> Included:
    """
    Render the related resources of `views`, level by level, up to `depth` levels deep.

    :param views: views of the primary data
    :param include: relationship names requested by the client for the first level
    :param depth: number of relationship levels to expand, INCLUDE_DEPTH by default
    :param included: accumulator, created with the primary keys excluded when omitted
    :return: the accumulator
    """
    if depth is None:
        depth = int(get_config("INCLUDE_DEPTH"))
    if included is None:
        included = Included(exclude=[view.key for view in views])

    if depth <= 0 or not views:
        return included

    next_views = []
    for view in views:
        for name, relationship in view.resource_type.relationships.items():
            if not view.includes(name, include):
                continue
            target_type = view.registry.get(relationship.target)
            if target_type is None:
                ratapi.log.warning(f"{view.resource_type.name}.{name}: unknown resource type {relationship.target}")
                continue
            for entity in view.related(name):
                # every related entity gets a context computed for itself
                related_view = EntityView(target_type, entity, view.requester, view.registry)
                if included.add(related_view):
                    next_views.append(related_view)

    return expand_included(next_views, include=None, depth=depth - 1, included=included)
