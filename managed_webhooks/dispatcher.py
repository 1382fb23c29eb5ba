"""Route admission requests to the webhook registered for their path."""

from __future__ import annotations

import io
import logging
import threading
from collections.abc import Callable, Mapping
from http import HTTPStatus
from urllib.parse import urlsplit

from managed_webhooks.admission import (
    AdmissionResponse,
    RequestParseError,
    Webhook,
    errored,
    parse_admission_review,
    send_response,
)

log = logging.getLogger("dispatcher")


class Dispatcher:
    """Dispatches HTTP requests to webhooks by URI.

    When the body parses as an AdmissionReview the HTTP status is 200 and the
    outcome travels in the response body; problems with the HTTP request itself
    are reported through the HTTP status.
    """

    def __init__(self, hooks: Mapping[str, Callable[[], Webhook]]) -> None:
        self._hooks: dict[str, Callable[[], Webhook]] = {
            factory().get_uri(): factory for factory in hooks.values()
        }
        self._lock = threading.Lock()

    @property
    def uris(self) -> list[str]:
        """The URIs this dispatcher serves."""
        return sorted(self._hooks)

    @staticmethod
    def _reply(status: int, response: AdmissionResponse) -> tuple[int, str]:
        buf = io.StringIO()
        send_response(buf, response)
        return int(status), buf.getvalue()

    def handle_request(self, request_uri: str, body: bytes | str) -> tuple[int, str]:
        """Handle one request; return the HTTP status and the response body."""
        with self._lock:
            log.info("Handling request %s", request_uri)
            try:
                path = urlsplit(request_uri).path
            except ValueError as exc:
                log.error("Couldn't parse request %s: %s", request_uri, exc)
                return self._reply(HTTPStatus.BAD_REQUEST, errored(HTTPStatus.BAD_REQUEST, exc))

            factory = self._hooks.get(path)
            if factory is None:
                log.info(
                    "Request is not for a registered webhook. known_hooks=%s path=%s",
                    self.uris,
                    path,
                )
                return self._reply(
                    HTTPStatus.NOT_FOUND,
                    errored(HTTPStatus.BAD_REQUEST, "request is not for a registered webhook"),
                )

            try:
                request = parse_admission_review(body)
            except RequestParseError as exc:
                log.error("Error parsing HTTP Request Body: %s", exc)
                return self._reply(HTTPStatus.BAD_REQUEST, errored(HTTPStatus.BAD_REQUEST, exc))

            if not factory().validate(request):
                log.error("Error validating HTTP Request Body: not a valid webhook request")
                return self._reply(
                    HTTPStatus.OK,
                    errored(HTTPStatus.BAD_REQUEST, "not a valid webhook request"),
                )

            return self._reply(HTTPStatus.OK, factory().authorized(request))