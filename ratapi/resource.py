"""
Generic create / read / update / delete and relationship changes for one resource type

Every operation follows the same chain: fetch the entity, check the entity level
permission, check the field or relationship permissions, mutate through the storage,
re-fetch and hand the canonical entity back for rendering.
"""

from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Tuple

import ratapi
from .errors import (
    BadRequestError,
    ForbiddenError,
    GenericError,
    JsonapiError,
    NotFoundError,
    UnprocessableEntityError,
    raise_errors,
)
from .events import CREATED, DELETED, RELATIONSHIP, UPDATED, ResourceChanged, notify
from .permissions import AccessTier, Direction, PermissionContext, Requester, can_access
from .query import QuerySpec
from .resource_type import CHANGE_KINDS, Relationship, ResourceRegistry, ResourceType, resource_types

# callable(context, entity) -> bool
DeletePredicate = Callable[[PermissionContext, Any], bool]
# callable(requester, attributes) -> attributes set on create, bypassing the field policy
CreateDefaults = Callable[[Requester, Dict[str, Any]], Dict[str, Any]]


def is_valid_resource_identifier(item: Any, target: str) -> bool:
    """
    :return: True if `item` is a {type, id} object of type `target`
    """
    return isinstance(item, dict) and item.get("type") == target and isinstance(item.get("id"), (str, int)) and item.get("id") != ""


def get_jsonapi_data(payload: Any, type_name: str) -> Dict[str, Any]:
    """
    Extract the resource object from a create/update payload

    :param payload: request document
    :param type_name: the type served by the endpoint
    :return: the "data" member
    """
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict) or data.get("type") != type_name:
        raise UnprocessableEntityError(f'Expected a resource object of type "{type_name}"', pointer="/data")
    if "attributes" not in data and "relationships" not in data:
        raise UnprocessableEntityError("Expected attributes or relationships", pointer="/data")
    if not isinstance(data.get("attributes", {}), dict):
        raise UnprocessableEntityError("Attributes must be an object", pointer="/data/attributes")
    if not isinstance(data.get("relationships", {}), dict):
        raise UnprocessableEntityError("Relationships must be an object", pointer="/data/relationships")
    return data


class GenericResource:
    """
    The operations of one resource type against one storage
    """

    def __init__(
        self,
        resource_type: ResourceType,
        storage,
        registry: Optional[ResourceRegistry] = None,
        delete_permission: Optional[DeletePredicate] = None,
        create_defaults: Optional[CreateDefaults] = None,
    ) -> None:
        """
        :param resource_type: the type descriptor
        :param storage: storage collaborator, e.g. `SQLAlchemyStorage`
        :param registry: resource types used to render related resources
        :param delete_permission: replaces the entity write check on delete
        :param create_defaults: computes attributes set on create regardless of the field policy (e.g. the owner)
        """
        self.resource_type = resource_type
        self.storage = storage
        self.registry = registry if registry is not None else resource_types
        self.delete_permission = delete_permission
        self.create_defaults = create_defaults

    @property
    def type(self) -> str:
        return self.resource_type.name

    def context(self, requester: Requester, entity: Any = None, direction: Direction = Direction.WRITE) -> PermissionContext:
        return self.resource_type.context(requester, entity, direction)

    #
    # Entity level permissions
    #
    def has_read_permission(self, requester: Requester, entity: Any) -> bool:
        context = self.context(requester, entity, Direction.READ)
        return context.is_self or context.is_group

    def has_write_permission(self, requester: Requester, entity: Any) -> bool:
        context = self.context(requester, entity, Direction.WRITE)
        return context.is_self or context.is_group

    def require_read_permission(self, requester: Requester, entity: Any) -> None:
        if not self.has_read_permission(requester, entity):
            raise ForbiddenError(f"No read permission on {self.type} {entity.id}")

    def require_write_permission(self, requester: Requester, entity: Any) -> None:
        if not self.has_write_permission(requester, entity):
            raise ForbiddenError(f"No write permission on {self.type} {entity.id}")

    #
    # Field level checks
    #
    def validate_attributes(self, attributes: Dict[str, Any]) -> None:
        """
        Run the field validators, all failures are reported together
        """
        errors: List[JsonapiError] = []
        for name, value in attributes.items():
            validator = self.resource_type.validators.get(name)
            if validator is None:
                continue
            try:
                validator(value)
            except UnprocessableEntityError as exc:
                if exc.pointer is None:
                    exc.pointer = f"/data/attributes/{name}"
                errors.append(exc)
        raise_errors(errors)

    def _check_write_access(self, context: PermissionContext, attributes: Dict[str, Any]) -> None:
        errors: List[JsonapiError] = []
        for name in attributes:
            if not can_access(self.resource_type.write_tier(name), context):
                errors.append(ForbiddenError(f"No permission to write {name}", pointer=f"/data/attributes/{name}"))
        raise_errors(errors)

    def validate_create_access(self, requester: Requester, attributes: Dict[str, Any]) -> None:
        """
        Every attribute must be writable without an entity, undeclared attributes are forbidden.

        Holding `<scope>.write.me` counts as self for the `group` tier: a requester may create
        the entities they will own. `self` tier fields can not be set on create.
        """
        owns_new = requester.authenticated and requester.granted(f"{self.resource_type.permission_scope}.write.me")
        context = replace(self.context(requester), is_self=owns_new)
        errors: List[JsonapiError] = []
        for name in attributes:
            if self.resource_type.write_tier(name) is AccessTier.SELF:
                errors.append(ForbiddenError(f"{name} can not be set on create", pointer=f"/data/attributes/{name}"))
        raise_errors(errors)
        self._check_write_access(context, attributes)

    def validate_update_access(self, requester: Requester, attributes: Dict[str, Any], entity: Any) -> None:
        self._check_write_access(self.context(requester, entity), attributes)

    #
    # Operations
    #
    def find_by_id(self, entity_id: Any) -> Any:
        if entity_id is None or entity_id == "":
            raise BadRequestError("Missing id", parameter="id")
        entity = self.storage.find_one(id=entity_id)
        if entity is None:
            raise NotFoundError(f'Invalid "{self.type}" ID "{entity_id}"', parameter="id")
        return entity

    def search(self, query: QuerySpec) -> Tuple[List[Any], int]:
        return self.storage.find_and_count_all(query)

    def create(self, requester: Requester, payload: Any, overrides: Optional[Dict[str, Any]] = None) -> Any:
        """
        :param requester: the requester
        :param payload: request document
        :param overrides: attributes set regardless of the field policy
        :return: the created entity
        """
        data = get_jsonapi_data(payload, self.type)
        attributes = data.get("attributes", {})
        self.validate_create_access(requester, attributes)
        self.validate_attributes(attributes)

        values = dict(attributes)
        if self.create_defaults is not None:
            values.update(self.create_defaults(requester, attributes))
        values.update(overrides or {})
        entity = self.storage.create(values)

        for name, linkage in self._payload_relationships(data).items():
            relationship = self._relationship(name, pointer=f"/data/relationships/{name}")
            change = "add" if relationship.many else "patch"
            self.generate_relationship_change(requester, entity, name, change, linkage, pointer=f"/data/relationships/{name}/data")

        result = self.find_by_id(entity.id)
        self._notify(CREATED, requester, result, before={}, after=self.storage.snapshot(result))
        return result

    def update(self, requester: Requester, entity_id: Any, payload: Any) -> Any:
        data = get_jsonapi_data(payload, self.type)
        if "id" in data and str(data["id"]) != str(entity_id):
            raise UnprocessableEntityError(f'Resource id "{data["id"]}" does not match "{entity_id}"', pointer="/data/id")

        entity = self.find_by_id(entity_id)
        self.require_write_permission(requester, entity)
        before = self.storage.snapshot(entity)

        attributes = data.get("attributes", {})
        if attributes:
            self.validate_update_access(requester, attributes, entity)
            self.validate_attributes(attributes)
            self.storage.update(entity, attributes)

        for name, linkage in self._payload_relationships(data).items():
            self._relationship(name, pointer=f"/data/relationships/{name}")
            self.generate_relationship_change(requester, entity, name, "patch", linkage, pointer=f"/data/relationships/{name}/data")

        result = self.find_by_id(entity_id)
        self._notify(UPDATED, requester, result, before=before, after=self.storage.snapshot(result))
        return result

    def delete(self, requester: Requester, entity_id: Any, has_permission: Optional[DeletePredicate] = None) -> Dict[str, str]:
        """
        :param has_permission: callable(context, entity), overrides the configured delete permission
        :return: {id, type} of the deleted resource
        """
        entity = self.find_by_id(entity_id)
        predicate = has_permission or self.delete_permission
        if predicate is not None:
            if not predicate(self.context(requester, entity), entity):
                raise ForbiddenError(f"No permission to delete {self.type} {entity_id}")
        else:
            self.require_write_permission(requester, entity)

        before = self.storage.snapshot(entity)
        self.storage.destroy(entity)
        self._notify(DELETED, requester, entity, before=before, after={}, entity_id=entity_id)
        return {"id": str(entity_id), "type": self.type}

    def relationship_view(self, requester: Requester, entity_id: Any, name: str) -> Any:
        """
        :return: the related entity, entities or None
        """
        relationship = self.resource_type.relationships.get(name)
        if relationship is None:
            raise NotFoundError(f"{self.type} has no relationship {name}", parameter="relationship")
        entity = self.find_by_id(entity_id)
        self.require_read_permission(requester, entity)
        value = getattr(entity, name, None)
        if relationship.many:
            return list(value or [])
        return value

    def relationship_change(self, requester: Requester, entity_id: Any, name: str, change: str, payload: Any) -> Any:
        """
        :param change: "add", "patch" or "remove"
        :param payload: request document, {"data": identifier(s) or null}
        :return: the re-fetched entity
        """
        if not isinstance(payload, dict) or "data" not in payload:
            raise UnprocessableEntityError("Expected a data member", pointer="/data")
        self._relationship(name)

        entity = self.find_by_id(entity_id)
        self.require_write_permission(requester, entity)
        before = {name: self._linkage_ids(entity, name)}

        self.generate_relationship_change(requester, entity, name, change, payload["data"])

        result = self.find_by_id(entity_id)
        self._notify(RELATIONSHIP, requester, result, before=before, after={name: self._linkage_ids(result, name)})
        return result

    def generate_relationship_change(
        self, requester: Requester, entity: Any, name: str, change: str, data: Any, pointer: str = "/data"
    ) -> None:
        """
        Validate a relationship linkage against the relationship declaration, then apply it.
        Nothing is changed unless every member is valid and permitted.

        :param data: a list of identifiers (to-many) or one identifier or None (to-one)
        :param pointer: JSON pointer of `data` in the request document
        """
        if change not in CHANGE_KINDS:
            raise GenericError(f"Unknown relationship change {change}")
        relationship = self._relationship(name, pointer=pointer)
        if not relationship.writable:
            raise ForbiddenError(f"{self.type}.{name} can not be changed", pointer=pointer)

        context = self.context(requester, entity)
        if relationship.many:
            if not isinstance(data, list):
                raise UnprocessableEntityError(f"{name} expects a list of {relationship.target}", pointer=pointer)
            ids: List[str] = []
            for item in data:
                if not is_valid_resource_identifier(item, relationship.target):
                    raise UnprocessableEntityError(f"{name} expects resources of type {relationship.target}", pointer=pointer)
                target_id = str(item["id"])
                if not relationship.has_permission(context, entity, target_id):
                    raise ForbiddenError(f"No permission to change {name} with {target_id}", pointer=pointer)
                if target_id not in ids:
                    ids.append(target_id)
            self._apply_change(relationship, change, entity, name, ids)
            return

        if change != "patch":
            raise UnprocessableEntityError(f"{name} is a to-one relationship, it can only be replaced", pointer=pointer)
        if data is not None and not is_valid_resource_identifier(data, relationship.target):
            raise UnprocessableEntityError(f"{name} expects a resource of type {relationship.target} or null", pointer=pointer)
        target_id = None if data is None else str(data["id"])
        if not relationship.has_permission(context, entity, target_id):
            raise ForbiddenError(f"No permission to change {name}", pointer=pointer)
        self._apply_change(relationship, change, entity, name, target_id)

    def _apply_change(self, relationship: Relationship, change: str, entity: Any, name: str, ids: Any) -> None:
        operation = relationship.operation(change)
        if operation is not None:
            operation(entity, ids)
        elif change == "add":
            self.storage.add_related(entity, name, ids)
        elif change == "patch":
            self.storage.set_related(entity, name, ids)
        else:
            self.storage.remove_related(entity, name, ids)

    def _relationship(self, name: str, pointer: str = "/data") -> Relationship:
        relationship = self.resource_type.relationships.get(name)
        if relationship is None:
            raise UnprocessableEntityError(f"{self.type} has no relationship {name}", pointer=pointer)
        return relationship

    @staticmethod
    def _payload_relationships(data: Dict[str, Any]) -> Dict[str, Any]:
        """
        :return: {relationship name: linkage} of a create/update resource object
        """
        result = {}
        for name, value in (data.get("relationships") or {}).items():
            if not isinstance(value, dict) or "data" not in value:
                raise UnprocessableEntityError(f"Relationship {name} must have a data member", pointer=f"/data/relationships/{name}")
            result[name] = value["data"]
        return result

    def _linkage_ids(self, entity: Any, name: str):
        value = getattr(entity, name, None)
        if self.resource_type.relationships[name].many:
            return [str(item.id) for item in value or []]
        return None if value is None else str(value.id)

    def _notify(self, kind: str, requester: Requester, entity: Any, before, after, entity_id: Any = None) -> None:
        event = ResourceChanged(
            type=self.type,
            id=str(entity_id if entity_id is not None else entity.id),
            kind=kind,
            before=before,
            after=after,
            identity=requester.identity,
        )
        ratapi.log.debug(f"{kind} {event.type}/{event.id}: {sorted(event.changed)}")
        notify(event)
