"""
Field validators

A validator takes the raw attribute value and raises `UnprocessableEntityError` when it is invalid.
The engine points the error at the attribute it validated.
"""

import re
import unicodedata
from typing import Any, Callable

from .errors import UnprocessableEntityError
from .resource_type import resource_types

IRC_VIRTUAL_HOST = re.compile(r"^[a-z][a-z0-9.]{3,64}$")
IRC_NICKNAME = re.compile(r"^[A-Za-z_\\`\[\]{}]([A-Za-z0-9_\\`\[\]{}]{1,29})?$")
LANGUAGE_CODE = re.compile(r"^[a-z]{2}-[A-Z]{2}$")
FRONTIER_REDEEM_CODE = re.compile(r"^[A-Z0-9]{5}-[A-Z0-9]{5}-[A-Z0-9]{5}-[A-Z0-9]{5}-FUE[0-9]{2}$")

FORBIDDEN_CMDR_NAME_COMPONENTS = ("[pc]", "[xb]", "[ps]", "cmdr")
PLATFORMS = ("pc", "xb", "ps")
REQUIRED_QUOTE_FIELDS = ("message", "author", "last_author", "created_at", "updated_at")
JOIN_CONTROLS = ("\u200c", "\u200d")


def _is_name_character(char: str) -> bool:
    """
    letters, marks, decimal digits, connector punctuation, join controls and spaces
    """
    category = unicodedata.category(char)
    return char.isalpha() or category[0] == "M" or category in ("Nd", "Pc", "Zs") or char in JOIN_CONTROLS


def _name_validator(min_length: int, max_length: int) -> Callable[[Any], None]:
    def validate(value: Any) -> None:
        if not isinstance(value, str) or not min_length <= len(value) <= max_length:
            raise UnprocessableEntityError(f"Expected {min_length} to {max_length} characters")
        if not all(_is_name_character(char) for char in value):
            raise UnprocessableEntityError("Invalid characters")

    return validate


ship_name = _name_validator(3, 22)
_cmdr_name_characters = _name_validator(3, 64)


def cmdr_name(value: Any) -> None:
    _cmdr_name_characters(value)
    lower_name = value.lower()
    if any(component in lower_name for component in FORBIDDEN_CMDR_NAME_COMPONENTS):
        raise UnprocessableEntityError("A CMDR name can not contain a platform tag or CMDR")


def _pattern_validator(pattern: "re.Pattern", description: str) -> Callable[[Any], None]:
    def validate(value: Any) -> None:
        if not isinstance(value, str) or not pattern.match(value):
            raise UnprocessableEntityError(f"Invalid {description}")

    return validate


irc_virtual_host = _pattern_validator(IRC_VIRTUAL_HOST, "IRC virtual host")
language_code = _pattern_validator(LANGUAGE_CODE, "language code")
frontier_redeem_code = _pattern_validator(FRONTIER_REDEEM_CODE, "redeem code")


def irc_nicknames(value: Any) -> None:
    if not isinstance(value, list):
        raise UnprocessableEntityError("Expected a list of IRC nicknames")
    for nickname in value:
        if not isinstance(nickname, str) or not IRC_NICKNAME.match(nickname):
            raise UnprocessableEntityError(f"Invalid IRC nickname {nickname}")


def platform(value: Any) -> None:
    if value not in PLATFORMS:
        raise UnprocessableEntityError(f"Platform must be one of {', '.join(PLATFORMS)}")


def json_object(value: Any) -> None:
    if not isinstance(value, dict):
        raise UnprocessableEntityError("Expected an object")


def string_list(value: Any) -> None:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise UnprocessableEntityError("Expected a list of strings")


def rescue_quotes(value: Any) -> None:
    if not isinstance(value, list):
        raise UnprocessableEntityError("Expected a list of quotes")
    for quote in value:
        if not isinstance(quote, dict) or any(name not in quote for name in REQUIRED_QUOTE_FIELDS):
            raise UnprocessableEntityError(f"A quote requires {', '.join(REQUIRED_QUOTE_FIELDS)}")


def oauth_scopes(value: Any) -> None:
    """
    A list of scopes the registered resource types know, or the wildcard
    """
    if not isinstance(value, list):
        raise UnprocessableEntityError("Expected a list of scopes")
    known = resource_types.scopes()
    invalid = [scope for scope in value if scope != "*" and scope not in known]
    if invalid:
        raise UnprocessableEntityError(f"Unknown scope(s): {', '.join(map(str, invalid))}")
