"""
groups: permission groups, their members hold the group permissions
"""

from .. import validators
from ..decorators import authenticated
from ..models import Group
from ..permissions import AccessTier
from ..resource import GenericResource
from ..resource_type import Field, Relationship, ResourceType
from ..storage import SQLAlchemyStorage
from .common import TIMESTAMP_FIELDS

PUBLIC = Field(read=AccessTier.ALL, write=AccessTier.INTERNAL)

GROUPS = ResourceType(
    name="groups",
    default_read=AccessTier.ALL,
    fields={
        "name": PUBLIC,
        "vhost": PUBLIC,
        "without_prefix": PUBLIC,
        "priority": PUBLIC,
        "channels": PUBLIC,
        "permissions": Field(read=AccessTier.GROUP, write=AccessTier.INTERNAL),
        **TIMESTAMP_FIELDS,
    },
    relationships={"users": Relationship("users", many=True)},
    validators={
        "vhost": validators.irc_virtual_host,
        "channels": validators.json_object,
        "permissions": validators.oauth_scopes,
    },
    includes=[],
)

resource = GenericResource(GROUPS, SQLAlchemyStorage(Group))

decorators = {method: [authenticated] for method in ("get", "post", "patch", "delete")}
relationship_decorators = decorators
