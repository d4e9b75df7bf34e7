"""
users: accounts, their rats and their permission groups
"""

from typing import Any, Optional

from .. import validators
from ..decorators import authenticated
from ..models import User
from ..permissions import AccessTier, PermissionContext, Requester
from ..resource import GenericResource
from ..resource_type import Field, Relationship, ResourceType
from ..storage import SQLAlchemyStorage
from .common import TIMESTAMP_FIELDS

OWN = Field(read=AccessTier.ALL, write=AccessTier.SELF)


def user_is_self(requester: Requester, user: Any) -> bool:
    return str(user.id) == str(requester.identity)


def may_display_rat(context: PermissionContext, user: Any, rat_id: Optional[str]) -> bool:
    """
    A user displays one of their own rats, the group may pick any
    """
    if context.is_group:
        return True
    if not context.is_self:
        return False
    return rat_id is None or any(str(rat.id) == rat_id for rat in user.rats)


USERS = ResourceType(
    name="users",
    default_read=AccessTier.ALL,
    fields={
        "data": OWN,
        "nicknames": OWN,
        "email": Field(read=AccessTier.GROUP, write=AccessTier.SELF),
        "status": Field(read=AccessTier.ALL, write=AccessTier.SUDO),
        "suspended": Field(read=AccessTier.GROUP, write=AccessTier.INTERNAL),
        "frontier_id": Field(read=AccessTier.GROUP, write=AccessTier.INTERNAL),
        **TIMESTAMP_FIELDS,
    },
    relationships={
        "rats": Relationship("rats", many=True),
        "display_rat": Relationship("rats", writable=True, has_permission=may_display_rat),
        "groups": Relationship(
            "groups", many=True, writable=True, has_permission=lambda context, user, group_id: context.is_internal
        ),
    },
    is_self=user_is_self,
    validators={
        "data": validators.json_object,
        "nicknames": validators.irc_nicknames,
    },
)

resource = GenericResource(USERS, SQLAlchemyStorage(User))

# accounts are created by the registration flow
methods = ["GET", "PATCH", "PUT", "DELETE"]
decorators = {method: [authenticated] for method in ("get", "patch", "delete")}
relationship_decorators = decorators
