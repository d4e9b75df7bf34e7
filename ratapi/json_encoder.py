"""
JSON encoding of the values stored in the models: timestamps are rendered in ISO 8601,
the format `storage.parse_attr` reads back
"""

import datetime
from decimal import Decimal
from uuid import UUID

from flask.json.provider import DefaultJSONProvider

import ratapi
from .config import is_debug

ISO_TYPES = (datetime.datetime, datetime.date, datetime.time)


class _RatAPIJSONEncoder:
    # pylint: disable=arguments-differ,method-hidden
    def default(self, obj, **kwargs):
        """
        :param obj: value json can not encode by itself
        :return: a json encodable value
        """
        if isinstance(obj, ISO_TYPES):
            return obj.isoformat()
        if isinstance(obj, datetime.timedelta):
            return obj.total_seconds()
        if isinstance(obj, (set, frozenset)):
            return sorted(obj, key=str)
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, bytes):  # pragma: no cover
            return obj.hex()

        # documents only hold dicts, lists and column values
        if is_debug():  # pragma: no cover
            return repr(obj)
        ratapi.log.warning(f"Can not encode {type(obj).__name__} value")
        return None


class RatAPIJSONProvider(_RatAPIJSONEncoder, DefaultJSONProvider):
    """
    app.json provider, responses are JSON:API documents
    """

    mimetype = "application/vnd.api+json"
    sort_keys = False
