"""
Translation of the request query string into a storage agnostic search description

http://jsonapi.org/format/#fetching-filtering
http://jsonapi.org/format/#fetching-sorting
http://jsonapi.org/format/#fetching-pagination

We use page[offset] and page[limit], page[number] and page[size] are translated to an offset.
Filters are given either as filter[attr]=csv or as attr=csv. Keys the requester can not read are ignored
like unknown keys, filtering or sorting on a hidden attribute would reveal its values.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import ratapi
from .config import get_config
from .errors import BadRequestError
from .permissions import ANONYMOUS, Direction, Requester
from .resource_type import ResourceType

FILTER_RE = re.compile(r"filter\[(\w+)\]")
RESERVED_ARGS = ("sort", "include", "filter")


@dataclass
class QuerySpec:
    """Filters, sort order and page bounds of a search"""

    filters: Dict[str, List[str]] = field(default_factory=dict)
    # (attribute name, descending)
    sort: List[Tuple[str, bool]] = field(default_factory=list)
    limit: int = 25
    offset: int = 0
    include: Optional[List[str]] = None


class QueryTranslator:
    """
    Converts query arguments into a :class:`QuerySpec` for one resource type
    """

    def __init__(self, resource_type: ResourceType, requester: Requester = ANONYMOUS) -> None:
        """
        :param resource_type: the searched type
        :param requester: the requester, only attributes they can read are searchable
        """
        self.resource_type = resource_type
        self.searchable = resource_type.searchable(resource_type.context(requester, None, Direction.READ))

    def translate(self, args: Mapping[str, Any]) -> QuerySpec:
        """
        :param args: request query arguments (e.g. `request.args`)
        :return: QuerySpec
        """
        limit, offset = self.page_bounds(args)
        return QuerySpec(
            filters=self.filters(args),
            sort=self.sort(args),
            limit=limit,
            offset=offset,
            include=self.parse_include(args),
        )

    def filters(self, args: Mapping[str, Any]) -> Dict[str, List[str]]:
        result = {}
        for arg, val in args.items():
            filter_attr = FILTER_RE.fullmatch(arg)
            if filter_attr:
                attr_name = filter_attr.group(1)
            elif "[" in arg or arg in RESERVED_ARGS:
                continue
            else:
                attr_name = arg
            if attr_name not in self.searchable:
                ratapi.log.debug(f"{self.resource_type.name}: ignoring query argument {arg}")
                continue
            result[attr_name] = [value for value in str(val).split(",") if value != ""]
        return result

    def sort(self, args: Mapping[str, Any]) -> List[Tuple[str, bool]]:
        result = []
        sort_attrs = args.get("sort", "") or ""
        for sort_attr in sort_attrs.split(","):
            # The sort order for each sort field MUST be ascending unless it is prefixed
            # with a minus, in which case it MUST be descending.
            reverse = sort_attr.startswith("-")
            attr_name = sort_attr[1:] if reverse else sort_attr
            if not attr_name:
                continue
            if attr_name not in self.searchable:
                ratapi.log.warning(f"{self.resource_type.name} has no sortable attribute {attr_name}")
                continue
            result.append((attr_name, reverse))
        return result

    @staticmethod
    def page_bounds(args: Mapping[str, Any]) -> Tuple[int, int]:
        """
        :return: clamped (limit, offset)
        """
        limit = _int_arg(args, "page[limit]", get_config("DEFAULT_PAGE_LIMIT"))
        offset = _int_arg(args, "page[offset]", 0)
        if "page[size]" in args:
            limit = _int_arg(args, "page[size]", limit)
            page_number = _int_arg(args, "page[number]", 1) - 1
            offset = page_number * limit

        max_limit = int(get_config("MAX_PAGE_LIMIT"))
        max_offset = int(get_config("MAX_PAGE_OFFSET"))
        if limit <= 0:
            limit = 1
        if limit > max_limit:
            limit = max_limit
        if offset <= 0:
            offset = 0
        if offset > max_offset:
            offset = max_offset
        return limit, offset

    @staticmethod
    def parse_include(args: Mapping[str, Any]) -> Optional[List[str]]:
        """
        :return: relationship names of the include= argument, None when absent
        """
        if "include" not in args:
            return None
        return [name.split(".")[0] for name in str(args.get("include") or "").split(",") if name]

    @staticmethod
    def meta(rows: Sequence[Any], query: Optional[QuerySpec] = None, total: Optional[int] = None, **extra) -> Dict[str, Any]:
        """
        Response metadata: the page counters when the rows came from a search, followed by the caller's extras
        """
        result: Dict[str, Any] = {}
        if query is not None:
            result = {"count": len(rows), "limit": query.limit, "offset": query.offset}
            if total is not None:
                result["total"] = total
        result.update(extra)
        return result


def _int_arg(args: Mapping[str, Any], name: str, default: Any) -> int:
    value = args.get(name, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequestError(f"Pagination Value Error: {name}={value}", parameter=name)
