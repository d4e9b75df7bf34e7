"""
ships: the ships of the rats
"""

from typing import Any, Optional

from .. import validators
from ..decorators import authenticated
from ..models import Rat, Ship
from ..permissions import AccessTier, PermissionContext, Requester
from ..resource import GenericResource
from ..resource_type import Field, Relationship, ResourceType
from ..storage import SQLAlchemyStorage
from .common import TIMESTAMP_FIELDS, requester_owns_rat

EDITABLE = Field(read=AccessTier.ALL, write=AccessTier.GROUP)

rat_storage = SQLAlchemyStorage(Rat)


def ship_is_self(requester: Requester, ship: Any) -> bool:
    return requester_owns_rat(requester.identity, ship.rat)


def may_assign_rat(context: PermissionContext, ship: Any, rat_id: Optional[str]) -> bool:
    """
    A ship is moved to one of the requester's own rats, internal may pick any
    """
    if context.is_internal:
        return True
    if rat_id is None:
        return False
    return requester_owns_rat(context.identity, rat_storage.find_one(id=rat_id))


SHIPS = ResourceType(
    name="ships",
    default_read=AccessTier.ALL,
    fields={
        "name": EDITABLE,
        "ship_id": EDITABLE,
        "ship_type": EDITABLE,
        **TIMESTAMP_FIELDS,
    },
    relationships={
        "rat": Relationship("rats", writable=True, has_permission=may_assign_rat),
    },
    is_self=ship_is_self,
    validators={"name": validators.ship_name},
)

resource = GenericResource(SHIPS, SQLAlchemyStorage(Ship))

decorators = {method: [authenticated] for method in ("post", "patch", "delete")}
relationship_decorators = {"patch": [authenticated]}
