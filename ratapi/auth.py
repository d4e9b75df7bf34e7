"""
Resolution of the requester of a request
"""

from typing import FrozenSet, Iterable

from flask import g, has_app_context

import ratapi
from .models import Token
from .permissions import ANONYMOUS, WILDCARD, Requester


def resolve_scopes(token_scopes: Iterable[str], group_permissions: Iterable[str]) -> FrozenSet[str]:
    """
    The scopes a token grants: those the token asks for and the owner's groups allow.
    The wildcard on either side stands for everything the other side lists.
    """
    token_scopes = set(token_scopes or ())
    group_permissions = set(group_permissions or ())
    if WILDCARD in group_permissions:
        return frozenset(token_scopes)
    if WILDCARD in token_scopes:
        return frozenset(group_permissions)
    return frozenset(token_scopes & group_permissions)


class BearerTokenAuthenticator:
    """
    Resolve "Authorization: Bearer <value>" against the tokens table
    """

    scheme = "bearer"

    def __call__(self, request) -> Requester:
        header = request.headers.get("Authorization", "")
        scheme, _, value = header.partition(" ")
        if scheme.lower() != self.scheme or not value.strip():
            return ANONYMOUS

        token = ratapi.DB.session.query(Token).filter_by(value=value.strip()).first()
        if token is None or token.user is None:
            ratapi.log.info("Unknown bearer token")
            return ANONYMOUS

        user = token.user
        if user.is_suspended():
            ratapi.log.info(f"Suspended user {user.id}")
            return ANONYMOUS

        return Requester(identity=str(user.id), scopes=resolve_scopes(token.scope, user.permissions))


def current_requester() -> Requester:
    """
    :return: the requester resolved for the current request, anonymous outside of a request
    """
    if not has_app_context():
        return ANONYMOUS
    return getattr(g, "requester", ANONYMOUS)
