"""CORS middleware that answers preflight requests with 204 No Content."""

from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response

ALLOWED_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")
ALLOWED_HEADERS = ("X-Requested-With", "Content-Type", "Accept", "Origin", "Authorization")


class PermissiveCORSMiddleware(CORSMiddleware):
    """Echo the caller's Origin with credentials allowed.

    Starlette replies to a successful preflight with ``200 OK`` and a text
    body; browser clients of this API expect an empty ``204``.
    """

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response

        headers = {
            key: value
            for key, value in response.headers.items()
            if key.lower() not in ("content-length", "content-type")
        }
        return Response(status_code=204, headers=headers)
