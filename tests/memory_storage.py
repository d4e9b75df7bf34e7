"""
In-memory stand-in for SQLAlchemyStorage, entities are SimpleNamespace objects
"""

import datetime
import uuid
from types import SimpleNamespace

from ratapi.errors import UnprocessableEntityError


class MemoryStorage:
    def __init__(self, resource_type, rows=(), targets=None):
        """
        :param resource_type: type of the stored entities, its relationships get default values on create
        :param rows: initial entities
        :param targets: {relationship name: {id: entity}}, the entities relationships may point to
        """
        self.resource_type = resource_type
        self.rows = {str(row.id): row for row in rows}
        self.targets = targets or {}

    def find_one(self, **filters):
        for row in self.rows.values():
            if all(str(getattr(row, name, None)) == str(value) for name, value in filters.items()):
                return row
        return None

    def find_and_count_all(self, query):
        rows = [
            row
            for row in self.rows.values()
            if all(str(getattr(row, name, None)) in values for name, values in query.filters.items())
        ]
        for name, reverse in reversed(query.sort):
            rows.sort(key=lambda row: getattr(row, name), reverse=reverse)
        return rows[query.offset : query.offset + query.limit], len(rows)

    def create(self, attributes):
        entity = SimpleNamespace(id=str(uuid.uuid4()), created_at=datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None), **attributes)
        for name, relationship in self.resource_type.relationships.items():
            if not hasattr(entity, name):
                setattr(entity, name, [] if relationship.many else None)
        self.rows[entity.id] = entity
        return entity

    def update(self, entity, attributes):
        for name, value in attributes.items():
            setattr(entity, name, value)
        return entity

    def destroy(self, entity):
        del self.rows[str(entity.id)]

    def _targets(self, name, ids):
        known = self.targets.get(name, {})
        missing = [target_id for target_id in ids if target_id not in known]
        if missing:
            raise UnprocessableEntityError(f"Invalid {name} id(s): {', '.join(missing)}", pointer="/data")
        return [known[target_id] for target_id in ids]

    def add_related(self, entity, name, ids):
        relation = getattr(entity, name)
        for child in self._targets(name, ids):
            if all(child is not member for member in relation):
                relation.append(child)

    def set_related(self, entity, name, ids):
        if self.resource_type.relationships[name].many:
            setattr(entity, name, self._targets(name, ids))
        elif ids is None:
            setattr(entity, name, None)
        else:
            setattr(entity, name, self._targets(name, [ids])[0])

    def remove_related(self, entity, name, ids):
        removed = self._targets(name, ids)
        setattr(entity, name, [member for member in getattr(entity, name) if all(member is not child for child in removed)])

    def snapshot(self, entity):
        return {
            name: value
            for name, value in vars(entity).items()
            if name not in self.resource_type.relationships and not isinstance(value, (list, dict))
        }
