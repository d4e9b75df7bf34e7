"""
SQLAlchemy implementation of the storage collaborator used by `GenericResource`

Writes are flushed, not committed: the request boundary (http_method_decorator)
commits on success and rolls back on failure, so all the writes of one request
form a single transaction.
"""

import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

import sqlalchemy
from sqlalchemy import inspect as sqla_inspect
from sqlalchemy.exc import SQLAlchemyError

import ratapi
from .errors import BadRequestError, GenericError, UnprocessableEntityError
from .query import QuerySpec

TRUE_VALUES = ("true", "1", "yes", "on")


def parse_attr(column, attr_val: Any, pointer: Optional[str] = None) -> Any:
    """
    Parse the supplied `attr_val` so it can be saved in (or compared with) the SQLAlchemy `column`

    :param column: SQLAlchemy column
    :param attr_val: jsonapi attribute value
    :param pointer: JSON pointer reported when the value can not be parsed
    :return: processed value
    """
    if attr_val is None:
        return attr_val

    # skip type coercion on JSON columns, since they could be anything
    if isinstance(column.type, sqlalchemy.types.JSON):
        return attr_val

    try:
        python_type = column.type.python_type
    except NotImplementedError as exc:
        ratapi.log.debug(exc)
        return attr_val

    if isinstance(attr_val, python_type):
        return attr_val

    try:
        if python_type is datetime.datetime:
            # isoformat, as rendered by the JSON provider; stored as naive UTC
            result = datetime.datetime.fromisoformat(str(attr_val).replace("Z", "+00:00"))
            if result.tzinfo is not None:
                result = result.astimezone(datetime.timezone.utc).replace(tzinfo=None)
            return result
        if python_type is datetime.date:
            return datetime.date.fromisoformat(str(attr_val))
        if python_type is bool:
            return str(attr_val).lower() in TRUE_VALUES
        return python_type(attr_val)
    except (TypeError, ValueError) as exc:
        raise UnprocessableEntityError(f'Invalid value "{attr_val}" for {column.key}: {exc}', pointer=pointer)


class SQLAlchemyStorage:
    """
    Storage of the entities of one SQLAlchemy model
    """

    def __init__(self, model, db=None) -> None:
        """
        :param model: SQLAlchemy declarative model class
        :param db: Flask-SQLAlchemy instance, `ratapi.DB` by default
        """
        self.model = model
        self._db = db

    @property
    def session(self):
        return (self._db or ratapi.DB).session

    @property
    def columns(self) -> Dict[str, Any]:
        # keyed by mapped attribute name, which may differ from the column name
        return dict(sqla_inspect(self.model).columns.items())

    def _column(self, name: str):
        return self.columns.get(name)

    def find_one(self, **filters) -> Optional[Any]:
        """
        :return: the first entity matching all `filters`, None if there is none
        """
        try:
            return self.session.query(self.model).filter_by(**filters).first()
        except SQLAlchemyError as exc:
            raise GenericError(f"find_one {self.model.__name__}: {exc}")

    def find_and_count_all(self, query: QuerySpec) -> Tuple[List[Any], int]:
        """
        :return: the rows of the requested page and the total number of matches
        """
        object_query = self.session.query(self.model)
        for name, values in query.filters.items():
            column = self._column(name)
            if column is None:
                ratapi.log.debug(f"{self.model.__name__} has no column {name}")
                continue
            try:
                parsed = [parse_attr(column, value) for value in values]
            except UnprocessableEntityError as exc:
                raise BadRequestError(exc.detail, parameter=name) from exc
            object_query = object_query.filter(getattr(self.model, name).in_(parsed))

        try:
            total = object_query.count()
            for name, reverse in query.sort:
                attr = getattr(self.model, name, None)
                if attr is None or self._column(name) is None:
                    ratapi.log.debug(f"{self.model.__name__} can not be sorted by {name}")
                    continue
                object_query = object_query.order_by(attr.desc() if reverse else attr)
            rows = object_query.offset(query.offset).limit(query.limit).all()
        except SQLAlchemyError as exc:
            raise GenericError(f"find_and_count_all {self.model.__name__}: {exc}")
        return rows, total

    def _parse_attributes(self, attributes: Dict[str, Any]) -> Dict[str, Any]:
        result = {}
        for name, value in attributes.items():
            column = self._column(name)
            result[name] = value if column is None else parse_attr(column, value, pointer=f"/data/attributes/{name}")
        return result

    def create(self, attributes: Dict[str, Any]) -> Any:
        instance = self.model(**self._parse_attributes(attributes))
        self.session.add(instance)
        self._flush()
        return instance

    def update(self, entity: Any, attributes: Dict[str, Any]) -> Any:
        for name, value in self._parse_attributes(attributes).items():
            setattr(entity, name, value)
        self._flush()
        return entity

    def destroy(self, entity: Any) -> None:
        self.session.delete(entity)
        self._flush()

    def _flush(self) -> None:
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            ratapi.log.warning(f"{self.model.__name__}: {exc}")
            raise GenericError(str(exc))

    #
    # Relationships
    #
    def _relationship(self, name: str):
        try:
            return sqla_inspect(self.model).relationships[name]
        except KeyError:
            raise UnprocessableEntityError(f"{self.model.__name__} has no relationship {name}", pointer="/data")

    def _targets(self, name: str, ids: Iterable[str]) -> List[Any]:
        """
        :return: the related entities with the given ids, in the order of `ids`
        """
        ids = list(ids)
        target_model = self._relationship(name).mapper.class_
        found = {str(item.id): item for item in self.session.query(target_model).filter(target_model.id.in_(ids)).all()}
        missing = [target_id for target_id in ids if str(target_id) not in found]
        if missing:
            raise UnprocessableEntityError(f"Invalid {name} id(s): {', '.join(map(str, missing))}", pointer="/data")
        return [found[str(target_id)] for target_id in ids]

    def add_related(self, entity: Any, name: str, ids: Iterable[str]) -> None:
        relation = getattr(entity, name)
        for child in self._targets(name, ids):
            if child not in relation:
                relation.append(child)
        self._flush()

    def set_related(self, entity: Any, name: str, ids: Any) -> None:
        """
        Replace the relationship members, `ids` is a single id (or None) for a to-one relationship
        """
        if self._relationship(name).uselist:
            getattr(entity, name)[:] = self._targets(name, ids)
        elif ids is None:
            setattr(entity, name, None)
        else:
            setattr(entity, name, self._targets(name, [ids])[0])
        self._flush()

    def remove_related(self, entity: Any, name: str, ids: Iterable[str]) -> None:
        relation = getattr(entity, name)
        for child in self._targets(name, ids):
            if child in relation:
                relation.remove(child)
        self._flush()

    def snapshot(self, entity: Any) -> Dict[str, Any]:
        """
        :return: the column values of `entity`
        """
        return {attr.key: getattr(entity, attr.key) for attr in sqla_inspect(self.model).column_attrs}
