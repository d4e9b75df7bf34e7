"""
rescues: cases of stranded commanders and the rats assigned to them
"""

import datetime
from typing import Any, Optional

from .. import validators
from ..config import get_config
from ..decorators import authenticated, permissions
from ..models import Rescue, utcnow
from ..permissions import AccessTier, Requester
from ..resource import GenericResource
from ..resource_type import Field, Relationship, ResourceType
from ..storage import SQLAlchemyStorage
from .common import TIMESTAMP_FIELDS, requester_owns_rat

GROUP = Field(read=AccessTier.GROUP, write=AccessTier.GROUP)
SUDO = Field(read=AccessTier.GROUP, write=AccessTier.SUDO)


def within_access_window(created_at: Optional[datetime.datetime], now: Optional[datetime.datetime] = None) -> bool:
    """
    :return: True while the rescue is younger than RESCUE_ACCESS_TIME seconds
    """
    if created_at is None:
        return False
    if created_at.tzinfo is not None:
        created_at = created_at.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    now = now or utcnow()
    return now - created_at < datetime.timedelta(seconds=int(get_config("RESCUE_ACCESS_TIME")))


def rescue_is_self(requester: Requester, rescue: Any) -> bool:
    """
    Anyone is "self" for a rescue during its access window, afterwards only the assigned rats and the first limpet
    """
    if within_access_window(rescue.created_at):
        return True
    if any(requester_owns_rat(requester.identity, rat) for rat in rescue.rats or []):
        return True
    return requester_owns_rat(requester.identity, rescue.first_limpet)


RESCUES = ResourceType(
    name="rescues",
    default_read=AccessTier.GROUP,
    fields={
        "client": GROUP,
        "client_nick": GROUP,
        "client_language": GROUP,
        "code_red": GROUP,
        "command_identifier": SUDO,
        "data": GROUP,
        "notes": GROUP,
        "platform": GROUP,
        "system": GROUP,
        "title": SUDO,
        "unidentified_rats": GROUP,
        "status": GROUP,
        "outcome": GROUP,
        "quotes": GROUP,
        **TIMESTAMP_FIELDS,
    },
    relationships={
        "rats": Relationship("rats", many=True, writable=True),
        "first_limpet": Relationship("rats", writable=True),
    },
    is_self=rescue_is_self,
    validators={
        "client_language": validators.language_code,
        "data": validators.json_object,
        "platform": validators.platform,
        "quotes": validators.rescue_quotes,
        "unidentified_rats": validators.string_list,
    },
)

resource = GenericResource(RESCUES, SQLAlchemyStorage(Rescue))

decorators = {
    "get": [authenticated],
    "post": [permissions("rescues.write"), authenticated],
    "patch": [authenticated],
    "delete": [permissions("rescues.write"), authenticated],
}
relationship_decorators = {method: [authenticated] for method in ("get", "post", "patch", "delete")}
