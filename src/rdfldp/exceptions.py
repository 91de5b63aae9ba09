from http import HTTPStatus


class RequestError(Exception):
    """Base class for errors that end an LDP request. Each subclass carries the
    HTTP status that an outer layer should use when responding, and a short
    human-readable `title`."""

    status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
    title: str = 'Request error'

    def __init__(self, message: str = None, **params):
        super().__init__(message or self.title)
        self.message = message or self.title
        self.params = params
        """Extra details about the error (e.g., the offending content type)."""

    def __str__(self):
        return self.message


class BadRequest(RequestError):
    status = HTTPStatus.BAD_REQUEST
    title = 'Bad request'


class UnsupportedInteractionModel(RequestError):
    status = HTTPStatus.BAD_REQUEST
    title = 'Unsupported interaction model'


class NotFound(RequestError):
    status = HTTPStatus.NOT_FOUND
    title = 'Not found'


class MethodNotAllowed(RequestError):
    status = HTTPStatus.METHOD_NOT_ALLOWED
    title = 'Method not allowed'

    def __init__(self, message: str = None, allowed: list[str] = None, **params):
        super().__init__(message, **params)
        self.allowed = allowed or []


class NotAcceptable(RequestError):
    status = HTTPStatus.NOT_ACCEPTABLE
    title = 'Not acceptable'


class Conflict(RequestError):
    status = HTTPStatus.CONFLICT
    title = 'Conflict'


class AmbiguousConfiguration(RequestError):
    """Raised when a container's membership configuration has zero, or more
    than one, value where exactly one is required."""
    status = HTTPStatus.CONFLICT
    title = 'Ambiguous membership configuration'


class Gone(RequestError):
    status = HTTPStatus.GONE
    title = 'Gone'


class PreconditionFailed(RequestError):
    status = HTTPStatus.PRECONDITION_FAILED
    title = 'Precondition failed'


class UnsupportedMediaType(RequestError):
    status = HTTPStatus.UNSUPPORTED_MEDIA_TYPE
    title = 'Unsupported media type'


class GraphStoreError(Exception):
    pass
