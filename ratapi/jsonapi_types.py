from typing import Any, Union, TypedDict


class JSONAPIResourceIdentifier(TypedDict):
    id: str
    type: str


class JSONAPIRelationshipObject(TypedDict):
    data: Union[JSONAPIResourceIdentifier, list[JSONAPIResourceIdentifier], None]


class JSONAPIResourceObject(JSONAPIResourceIdentifier, total=False):
    attributes: dict[str, Any]
    relationships: dict[str, JSONAPIRelationshipObject]


JSONAPIData = Union[JSONAPIResourceObject, list[JSONAPIResourceObject], JSONAPIResourceIdentifier, None]


class JSONAPIErrorObject(TypedDict, total=False):
    status: str
    code: str
    title: str
    detail: str
    source: dict[str, str]


class JSONAPIResponseDocument(TypedDict, total=False):
    data: JSONAPIData
    meta: dict[str, Any]
    errors: list[JSONAPIErrorObject]
    included: list[JSONAPIResourceObject]
    links: dict[str, Any]
    jsonapi: dict[str, str]
