"""
Route guards, applied per HTTP method when a resource is exposed (cfr. `ResourceAPI.expose_resource`)
"""

from functools import wraps

from flask import request

from .auth import current_requester
from .errors import BadRequestError, ForbiddenError, UnauthorizedError, raise_errors


def authenticated(func):
    """
    Require an identified requester
    """

    @wraps(func)
    def authenticated_wrapper(*args, **kwargs):
        if not current_requester().authenticated:
            raise UnauthorizedError()
        return func(*args, **kwargs)

    return authenticated_wrapper


def permissions(*scopes):
    """
    Require any of `scopes`
    """

    def decorator(func):
        @wraps(func)
        def permissions_wrapper(*args, **kwargs):
            if not current_requester().granted(*scopes):
                raise ForbiddenError(f"Requires {' or '.join(scopes)}")
            return func(*args, **kwargs)

        return permissions_wrapper

    return decorator


def required(*fields):
    """
    Require `fields` in /data/attributes, every missing field is reported
    """

    def decorator(func):
        @wraps(func)
        def required_wrapper(*args, **kwargs):
            payload = request.get_jsonapi_payload()
            data = payload.get("data")
            attributes = data.get("attributes") if isinstance(data, dict) else None
            if not isinstance(attributes, dict):
                attributes = {}
            raise_errors(
                [
                    BadRequestError(f"Missing required field {field}", pointer=f"/data/attributes/{field}")
                    for field in fields
                    if field not in attributes
                ]
            )
            return func(*args, **kwargs)

        return required_wrapper

    return decorator
