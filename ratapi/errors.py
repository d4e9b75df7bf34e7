# Exception Handlers
#
# The application loglevel determines the level of detail shown to the user
# for server side errors. If set to debug, too much sensitive info might be shown !
#
# The exceptions will be caught in http_method_decorator and formatted as JSON:API error objects:
# {
#      "status": "403",
#      "title": "Forbidden",
#      "detail": "...",
#      "source": {"pointer": "/data/attributes/title"}
# }
#
import traceback
from http import HTTPStatus
from sqlalchemy.exc import DontWrapMixin
import ratapi
from .config import is_debug
from typing import Iterable, List, Optional

HIDDEN_LOG = "(debug logging disabled)"


class JsonapiError(Exception, DontWrapMixin):
    """
    Base class of the client-visible errors: every instance renders to one JSON:API error object
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value
    title = HTTPStatus.INTERNAL_SERVER_ERROR.phrase
    code: Optional[str] = None

    def __init__(
        self,
        detail: Optional[str] = None,
        pointer: Optional[str] = None,
        parameter: Optional[str] = None,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ) -> None:
        """
        :param detail: human readable explanation, returned in the body
        :param pointer: JSON pointer to the offending part of the request document
        :param parameter: name of the offending query/path parameter
        :param status_code: HTTP status code, overrides the class default
        :param code: application specific error code
        """
        Exception.__init__(self, detail or self.title)
        self.detail = detail
        self.pointer = pointer
        self.parameter = parameter
        if status_code is not None:
            self.status_code = status_code
            if type(self) is JsonapiError:
                self.title = HTTPStatus(int(status_code)).phrase
        if code is not None:
            self.code = code

    @property
    def source(self) -> Optional[dict]:
        if self.pointer is not None:
            return {"pointer": self.pointer}
        if self.parameter is not None:
            return {"parameter": self.parameter}
        return None

    @property
    def errors(self) -> List["JsonapiError"]:
        """
        :return: the error objects carried by this exception
        """
        return [self]

    def to_dict(self) -> dict:
        """
        :return: JSON:API error object
        """
        result = {"status": str(self.status_code), "title": self.title}
        if self.code:
            result["code"] = self.code
        if self.detail:
            result["detail"] = self.detail
        source = self.source
        if source:
            result["source"] = source
        return result


class BadRequestError(JsonapiError):
    """
    This exception is raised when a required parameter or field is missing or malformed
    """

    status_code = HTTPStatus.BAD_REQUEST.value
    title = HTTPStatus.BAD_REQUEST.phrase

    def __init__(self, detail: str = "", **kwargs) -> None:
        ratapi.log.warning("BadRequestError: %s", detail)
        super().__init__(detail, **kwargs)


class UnauthorizedError(JsonapiError):
    """
    This exception is raised when an operation requires an authenticated requester
    """

    status_code = HTTPStatus.UNAUTHORIZED.value
    title = HTTPStatus.UNAUTHORIZED.phrase

    def __init__(self, detail: str = "Authentication required", **kwargs) -> None:
        ratapi.log.info("UnauthorizedError: %s", detail)
        super().__init__(detail, **kwargs)


class ForbiddenError(JsonapiError):
    """
    This exception is raised when the requester lacks the permission for an entity, field or relationship
    """

    status_code = HTTPStatus.FORBIDDEN.value
    title = HTTPStatus.FORBIDDEN.phrase

    def __init__(self, detail: str = "Permission denied", **kwargs) -> None:
        ratapi.log.info("ForbiddenError: %s (%s)", detail, kwargs.get("pointer") or kwargs.get("parameter"))
        super().__init__(detail, **kwargs)


class NotFoundError(JsonapiError):
    """
    This exception is raised when an item was not found
    """

    status_code = HTTPStatus.NOT_FOUND.value
    title = HTTPStatus.NOT_FOUND.phrase

    def __init__(self, detail: str = "", **kwargs) -> None:
        ratapi.log.info("Not found: %s", detail)
        super().__init__(detail, **kwargs)


class UnprocessableEntityError(JsonapiError):
    """
    This exception is raised when the request document has the wrong shape or invalid values
    Always send back the message to the client in the response
    """

    status_code = HTTPStatus.UNPROCESSABLE_ENTITY.value
    title = HTTPStatus.UNPROCESSABLE_ENTITY.phrase

    def __init__(self, detail: str = "", **kwargs) -> None:
        ratapi.log.warning("UnprocessableEntityError: %s", detail)
        super().__init__(detail, **kwargs)


class GenericError(JsonapiError):
    """
    This exception is raised when an unexpected server side error has been detected
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value
    title = HTTPStatus.INTERNAL_SERVER_ERROR.phrase

    def __init__(self, detail="", **kwargs) -> None:
        ratapi.log.error("Generic Error: %s", detail)
        if is_debug():
            ratapi.log.debug(traceback.format_exc(120))
        else:
            detail = HIDDEN_LOG
        super().__init__(str(detail), **kwargs)


class APIErrors(JsonapiError):
    """
    Several errors detected by one check, reported together.
    The status of the response is the status of the first error.
    """

    def __init__(self, errors: Iterable[JsonapiError]) -> None:
        self._errors = list(errors)
        first = self._errors[0]
        super().__init__(first.detail, status_code=first.status_code)
        self.title = first.title

    @property
    def errors(self) -> List[JsonapiError]:
        return list(self._errors)


def raise_errors(errors: List[JsonapiError]) -> None:
    """
    Raise the accumulated errors, if any
    """
    if len(errors) == 1:
        raise errors[0]
    if errors:
        raise APIErrors(errors)
