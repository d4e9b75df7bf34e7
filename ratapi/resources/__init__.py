"""
The resource types served by the API, one module per type
"""

from ..api import HTTP_METHODS
from ..resource_type import resource_types
from . import decals, groups, rats, rescues, ships, tokens, users

RESOURCE_MODULES = (rescues, rats, users, ships, tokens, groups, decals)

resource_types.register(*(module.resource.resource_type for module in RESOURCE_MODULES))


def expose_resources(api, url_prefix=""):
    """
    Expose every resource type on `api` (a `ResourceAPI`) with its route guards
    """
    for module in RESOURCE_MODULES:
        api.expose_resource(
            module.resource,
            decorators=module.decorators,
            relationship_decorators=module.relationship_decorators,
            methods=getattr(module, "methods", HTTP_METHODS),
            url_prefix=url_prefix,
        )
