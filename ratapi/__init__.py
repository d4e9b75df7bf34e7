# flake8: noqa: F401
from .api_init import DB, log, RatAPI
from .errors import (
    JsonapiError,
    APIErrors,
    BadRequestError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    UnprocessableEntityError,
    GenericError,
)
from .permissions import AccessTier, Direction, PermissionContext, Requester, ANONYMOUS, can_access
from .resource_type import Field, Relationship, ResourceType, ResourceRegistry, resource_types
from .view import EntityView, Included, expand_included
from .document import Document, ResourceDocument, ErrorDocument, DocumentViewType
from .query import QuerySpec, QueryTranslator
from .storage import SQLAlchemyStorage
from .resource import GenericResource
from .events import ResourceChanged, resource_changed
from .api import ResourceAPI
from .__about__ import __version__, __description__

__all__ = (
    "__version__",
    "__description__",
    #
    "RatAPI",
    "ResourceAPI",
    "DB",
    "log",
    # permissions:
    "AccessTier",
    "Direction",
    "PermissionContext",
    "Requester",
    "ANONYMOUS",
    "can_access",
    # resources:
    "Field",
    "Relationship",
    "ResourceType",
    "ResourceRegistry",
    "resource_types",
    "GenericResource",
    "SQLAlchemyStorage",
    # documents:
    "EntityView",
    "Included",
    "expand_included",
    "Document",
    "ResourceDocument",
    "ErrorDocument",
    "DocumentViewType",
    "QuerySpec",
    "QueryTranslator",
    # events:
    "ResourceChanged",
    "resource_changed",
    # Errors:
    "JsonapiError",
    "APIErrors",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "UnprocessableEntityError",
    "GenericError",
)
