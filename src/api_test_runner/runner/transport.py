"""HTTP transport boundary.

The runner only talks to a ``Transport``. ``RequestsTransport`` is the
default implementation, backed by a ``requests.Session``.
"""

import logging
from typing import Protocol

import requests

from api_test_runner.errors import TransportError
from api_test_runner.models import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)


class Transport(Protocol):
    def send(self, request: HttpRequest) -> HttpResponse:
        """Send the request; raise on network or protocol failure."""
        ...


class RequestsTransport:
    """Sends HttpRequests with requests."""

    def __init__(self, session: requests.Session | None = None, verify: bool = True):
        self.session = session or requests.Session()
        self.verify = verify

    def send(self, request: HttpRequest) -> HttpResponse:
        timeout = request.timeout / 1000 if request.timeout else None
        logger.debug("%s %s", request.method, request.url)
        try:
            resp = self.session.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.body.encode("utf-8") if request.body is not None else None,
                timeout=timeout,
                verify=self.verify,
            )
        except requests.RequestException as e:
            raise TransportError(request.url, str(e)) from e

        return HttpResponse(
            status=resp.status_code,
            headers={k: str(v) for k, v in resp.headers.items()},
            body=resp.text,
        )

    def close(self) -> None:
        self.session.close()
