"""
decals: in-game decal redeem codes handed to rats
"""

from .. import validators
from ..decorators import authenticated
from ..models import Decal
from ..permissions import AccessTier
from ..resource import GenericResource
from ..resource_type import Field, Relationship, ResourceType
from ..storage import SQLAlchemyStorage
from .common import TIMESTAMP_FIELDS, owned_by

OWNER_READ = Field(read=AccessTier.SELF, write=AccessTier.INTERNAL)

DECALS = ResourceType(
    name="decals",
    default_read=AccessTier.SELF,
    fields={
        "code": OWNER_READ,
        "decal_type": OWNER_READ,
        "claimed_at": OWNER_READ,
        "notes": Field(read=AccessTier.INTERNAL, write=AccessTier.INTERNAL),
        **TIMESTAMP_FIELDS,
    },
    relationships={
        "user": Relationship("users", writable=True, has_permission=lambda context, decal, user_id: context.is_internal),
    },
    is_self=owned_by("user_id"),
    validators={"code": validators.frontier_redeem_code},
)

resource = GenericResource(DECALS, SQLAlchemyStorage(Decal))

decorators = {method: [authenticated] for method in ("get", "post", "patch", "delete")}
relationship_decorators = decorators
