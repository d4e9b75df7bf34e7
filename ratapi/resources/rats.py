"""
rats: the in-game commanders of the users
"""

from .. import validators
from ..decorators import authenticated, required
from ..models import Rat
from ..permissions import AccessTier
from ..resource import GenericResource
from ..resource_type import Field, Relationship, ResourceType
from ..storage import SQLAlchemyStorage
from .common import TIMESTAMP_FIELDS, owned_by

EDITABLE = Field(read=AccessTier.ALL, write=AccessTier.GROUP)

RATS = ResourceType(
    name="rats",
    default_read=AccessTier.ALL,
    fields={
        "name": EDITABLE,
        "data": EDITABLE,
        "platform": EDITABLE,
        **TIMESTAMP_FIELDS,
    },
    relationships={
        # moving a rat to another user is reserved to sudo
        "user": Relationship("users", writable=True, has_permission=lambda context, rat, user_id: context.is_sudo),
        "ships": Relationship("ships", many=True),
    },
    is_self=owned_by("user_id"),
    validators={
        "name": validators.cmdr_name,
        "data": validators.json_object,
        "platform": validators.platform,
    },
)


def rat_owner(requester, attributes):
    return {"user_id": requester.identity}


resource = GenericResource(
    RATS,
    SQLAlchemyStorage(Rat),
    delete_permission=lambda context, rat: context.is_sudo,
    create_defaults=rat_owner,
)

decorators = {
    "post": [required("name", "platform"), authenticated],
    "patch": [authenticated],
    "delete": [authenticated],
}
relationship_decorators = {"patch": [authenticated]}
