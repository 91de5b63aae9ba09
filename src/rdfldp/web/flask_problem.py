import json
from typing import Any

from werkzeug import Response
from werkzeug.exceptions import HTTPException

from rdfldp.exceptions import MethodNotAllowed, RequestError

PROBLEM_DETAIL_TYPE = 'application/problem+json'


def as_problem_detail(e: RequestError) -> dict[str, Any]:
    """Format a `RequestError` as a dictionary with keys as specified in the
    [RFC 9457](https://www.rfc-editor.org/rfc/rfc9457) JSON Problem Details
    format.

    | RFC 9457 Key | Attribute  |
    |--------------|------------|
    | `"status"`   | `status`   |
    | `"title"`    | `title`    |
    | `"details"`  | `message`  |

    The items in the error's `params` dictionary are also included in the
    problem details as [extension members](https://www.rfc-editor.org/rfc/rfc9457#name-extension-members).
    """
    return {
        'status': int(e.status),
        'title': e.title,
        'details': e.message,
        **{k: str(v) for k, v in e.params.items()},
    }


def request_error_response(e: RequestError) -> Response:
    """Return a JSON Problem Detail for an LDP request error. Intended to be
    registered as an error handler with a Flask app:

    ```python
    app.register_error_handler(RequestError, request_error_response)
    ```
    """
    response = Response(
        json.dumps(as_problem_detail(e)),
        status=int(e.status),
        content_type=PROBLEM_DETAIL_TYPE,
    )
    if isinstance(e, MethodNotAllowed) and e.allowed:
        response.headers['Allow'] = ', '.join(e.allowed)
    return response


def problem_detail_response(e: HTTPException) -> Response:
    """Return a JSON Problem Detail ([RFC 9457](https://www.rfc-editor.org/rfc/rfc9457))
    for HTTP errors raised by Flask or Werkzeug themselves."""
    # start with the correct headers and status code from the error
    response = e.get_response()
    # replace the body with JSON
    response.data = json.dumps({'status': e.code, 'title': e.name, 'details': e.description})
    response.content_type = PROBLEM_DETAIL_TYPE
    return response
