"""
Top level JSON:API documents
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from .errors import GenericError, JsonapiError
from .jsonapi_types import JSONAPIResponseDocument
from .permissions import Requester
from .query import QuerySpec, QueryTranslator
from .resource_type import ResourceRegistry, ResourceType
from .view import EntityView, expand_included

JSONAPI_VERSION = "1.0"

# marks an absent "data" member, None is a valid value for data
ABSENT = object()


class DocumentViewType(Enum):
    RESOURCE = "resource"
    RELATIONSHIP = "relationship"


class Document:
    """
    A JSON:API document holds either primary data or errors, never both and never neither
    """

    def __init__(
        self,
        data: Any = ABSENT,
        errors: Optional[Sequence[Union[JsonapiError, dict]]] = None,
        meta: Optional[Dict[str, Any]] = None,
        links: Optional[Dict[str, Any]] = None,
        included: Optional[List[Any]] = None,
    ) -> None:
        self.data = data
        self.errors = list(errors or [])
        self.meta = dict(meta or {})
        self.links = links
        self.included = list(included or [])

    @property
    def has_data(self) -> bool:
        return self.data is not ABSENT

    def to_dict(self) -> JSONAPIResponseDocument:
        """
        :return: the document as a dict, ready to be serialized
        """
        if self.has_data == bool(self.errors):
            raise GenericError("A document must contain either data or errors")

        if self.errors:
            return {
                "errors": [error.to_dict() if isinstance(error, JsonapiError) else error for error in self.errors],
                "meta": self.meta,
                "links": self.links,
                "jsonapi": {"version": JSONAPI_VERSION},
            }

        return {
            "data": self.data,
            "meta": self.meta,
            "links": self.links,
            "included": self.included,
            "jsonapi": {"version": JSONAPI_VERSION},
        }


class ResourceDocument(Document):
    """
    Document rendering one entity, a list of entities or a relationship linkage for a requester
    """

    def __init__(
        self,
        resource_type: ResourceType,
        result: Any,
        requester: Requester,
        query: Optional[QuerySpec] = None,
        total: Optional[int] = None,
        meta: Optional[Dict[str, Any]] = None,
        links: Optional[Dict[str, Any]] = None,
        include: Optional[Sequence[str]] = None,
        view: DocumentViewType = DocumentViewType.RESOURCE,
        registry: Optional[ResourceRegistry] = None,
    ) -> None:
        """
        :param resource_type: type of the entities in `result`
        :param result: an entity, a list of entities or None
        :param requester: the requester the document is rendered for
        :param query: the search description `result` came from, adds the page counters to meta
        :param total: total number of search matches
        :param include: relationship names requested with include=
        :param view: render the resources or only their identifiers
        """
        many = isinstance(result, (list, tuple))
        if result is None:
            rows = []
        elif many:
            rows = list(result)
        else:
            rows = [result]

        views = [EntityView(resource_type, entity, requester, registry) for entity in rows]
        if view is DocumentViewType.RELATIONSHIP:
            rendered = [entity_view.identifier() for entity_view in views]
            included = []
        else:
            rendered = [entity_view.render() for entity_view in views]
            included = expand_included(views, include=include).to_list()

        if many:
            data = rendered
        else:
            data = rendered[0] if rendered else None

        super().__init__(
            data=data,
            meta=QueryTranslator.meta(rows, query, total, **(meta or {})),
            links=links,
            included=included,
        )


class ErrorDocument(Document):
    def __init__(self, errors: Iterable[Union[JsonapiError, dict]], meta: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(errors=list(errors), meta=meta)
