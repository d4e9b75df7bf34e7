"""
tokens: OAuth bearer tokens, guarded by the users scopes
"""

from .. import validators
from ..decorators import authenticated
from ..models import Token
from ..permissions import AccessTier
from ..resource import GenericResource
from ..resource_type import Field, Relationship, ResourceType
from ..storage import SQLAlchemyStorage
from .common import TIMESTAMP_FIELDS, owned_by

TOKENS = ResourceType(
    name="tokens",
    scope="users",
    default_read=AccessTier.SELF,
    fields={
        "value": Field(read=AccessTier.SELF, write=AccessTier.INTERNAL),
        "scope": Field(read=AccessTier.GROUP, write=AccessTier.SELF),
        **TIMESTAMP_FIELDS,
    },
    relationships={"user": Relationship("users")},
    is_self=owned_by("user_id"),
    validators={"scope": validators.oauth_scopes},
    includes=[],
)

resource = GenericResource(TOKENS, SQLAlchemyStorage(Token))

# tokens are issued by the OAuth flow
methods = ["GET", "PATCH", "PUT", "DELETE"]
decorators = {method: [authenticated] for method in ("get", "patch", "delete")}
relationship_decorators = decorators
