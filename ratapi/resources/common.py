"""
Declarations shared by the resource modules
"""

from typing import Any, Callable

from ..permissions import AccessTier, Requester
from ..resource_type import Field

TIMESTAMP_FIELDS = {
    "created_at": Field(read=AccessTier.ALL, write=AccessTier.INTERNAL),
    "updated_at": Field(read=AccessTier.ALL, write=AccessTier.INTERNAL),
    "deleted_at": Field(read=AccessTier.INTERNAL, write=AccessTier.INTERNAL),
}


def owned_by(attribute: str) -> Callable[[Requester, Any], bool]:
    """
    Self predicate: the requester is the user referenced by `attribute` of the entity
    """

    def is_owner(requester: Requester, entity: Any) -> bool:
        owner = getattr(entity, attribute, None)
        return owner is not None and str(owner) == str(requester.identity)

    return is_owner


def requester_owns_rat(requester_identity: Any, rat: Any) -> bool:
    return rat is not None and rat.user_id is not None and str(rat.user_id) == str(requester_identity)
