"""
Change notifications

Every successful mutation emits a :class:`ResourceChanged` record through the
``resource_changed`` blinker signal, the sender is the resource type name:

    @resource_changed.connect_via("rescues")
    def announce(sender, event):
        ...

Inside a request the records are held back until the transaction is committed and
delivered once the response has been sent; a failed request delivers nothing.
Outside a request they are delivered right away.
Receivers run one by one, a failing receiver is logged and does not affect the others.
"""

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, List, Mapping, Optional

from blinker import Namespace
from flask import g, has_app_context, has_request_context

import ratapi

ratapi_signals = Namespace()
resource_changed = ratapi_signals.signal("resource-changed")

CREATED = "created"
UPDATED = "updated"
DELETED = "deleted"
RELATIONSHIP = "relationship"

# g attribute holding the records of the current request
PENDING_EVENTS = "ratapi_pending_events"


@dataclass(frozen=True)
class ResourceChanged:
    type: str
    id: str
    kind: str
    before: Mapping[str, Any] = field(default_factory=dict)
    after: Mapping[str, Any] = field(default_factory=dict)
    identity: Optional[str] = None

    @property
    def changed(self) -> FrozenSet[str]:
        """
        names of the fields whose value differs between the snapshots
        """
        names = set(self.before) | set(self.after)
        return frozenset(name for name in names if self.before.get(name) != self.after.get(name))


def notify(event: ResourceChanged) -> None:
    """
    Queue `event` on the current request, deliver it immediately when there is none
    """
    if has_request_context():
        g.setdefault(PENDING_EVENTS, []).append(event)
    else:
        deliver(event)


def pending_events() -> List[ResourceChanged]:
    """
    Take the records queued by the current request
    """
    if not has_app_context():
        return []
    return g.pop(PENDING_EVENTS, [])


def deliver(event: ResourceChanged) -> None:
    """
    Call the receivers connected for the type of `event` (and those connected for any sender)
    """
    for receiver in resource_changed.receivers_for(event.type):
        try:
            receiver(event.type, event=event)
        except Exception as exc:
            ratapi.log.exception(f"resource_changed receiver {receiver} failed on {event.type}/{event.id}: {exc}")


def deliver_all(events: Iterable[ResourceChanged]) -> None:
    for event in events:
        deliver(event)
