"""
Request class of the apps serving ratapi resources

Clients send documents as "application/vnd.api+json" (plain "application/json" is tolerated),
the body of a create, update or relationship request is always a JSON object.
"""

from flask import Request

import ratapi
from .errors import BadRequestError

JSONAPI_MEDIA_TYPES = ("application/vnd.api+json", "application/json")


# pylint: disable=too-many-ancestors
class JsonapiRequest(Request):
    """
    flask Request knowing about JSON:API documents
    """

    # set when the request was sent with one of the JSONAPI_MEDIA_TYPES
    is_jsonapi = False

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.parse_content_type()

    def parse_content_type(self) -> None:
        mimetype = self.mimetype
        if not mimetype:
            return
        self.is_jsonapi = mimetype in JSONAPI_MEDIA_TYPES

    def get_jsonapi_payload(self):
        """
        :return: the request document, a dict
        """
        if not self.is_jsonapi:
            ratapi.log.warning(f'Unexpected media type "{self.content_type}" for {self.method} {self.path}')
        if self.method == "OPTIONS":
            return None
        payload = self.get_json(force=True, silent=True)
        if isinstance(payload, dict):
            return payload
        raise BadRequestError("The request body must be a JSON object")
