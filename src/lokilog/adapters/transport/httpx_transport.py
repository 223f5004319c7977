"""httpx-based HTTP transport for shipping push requests."""

import threading
from collections.abc import Mapping
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError

import httpx

from lokilog.core.config import DEFAULT_TIMEOUT
from lokilog.core.errors import (
    DeliveryTimeoutError,
    RequestBuildError,
    TransportError,
)


class HttpxTransport:
    """Synchronous transport implementing HTTPTransportPort.

    httpx timeouts apply per phase and restart whenever bytes arrive, so
    each request is sent on a daemon worker thread and the caller waits on
    one overall deadline. A request still running at the deadline is
    abandoned to its worker, which ends when httpx's own per-phase
    timeouts or the server give up.

    Args:
        timeout: Overall per-call deadline in seconds, applied even when a
            client is supplied.
        client: Optional pre-configured client. A supplied client is owned
            by the caller and is not closed by ``close()``.
    """

    def __init__(
        self, timeout: float = DEFAULT_TIMEOUT, client: httpx.Client | None = None
    ) -> None:
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout)

    def post(self, url: str, body: bytes, headers: Mapping[str, str]) -> int:
        """POST body to url and return the response status code."""
        try:
            request = self._client.build_request(
                "POST", url, content=body, headers=dict(headers), timeout=self._timeout
            )
        except (httpx.InvalidURL, ValueError, TypeError) as exc:
            raise RequestBuildError(f"failed to create request: {exc}") from exc

        future: Future[int] = Future()
        threading.Thread(
            target=self._send, args=(request, future), name="lokilog-push", daemon=True
        ).start()
        try:
            return future.result(timeout=self._timeout)
        except FutureTimeoutError as exc:
            raise DeliveryTimeoutError(
                f"failed to send request: no response within {self._timeout}s"
            ) from exc
        except httpx.TimeoutException as exc:
            raise DeliveryTimeoutError(f"failed to send request: {exc!r}") from exc
        except httpx.UnsupportedProtocol as exc:
            raise RequestBuildError(f"failed to create request: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"failed to send request: {exc!r}") from exc

    def _send(self, request: httpx.Request, future: "Future[int]") -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            response = self._client.send(request)
        except BaseException as exc:
            future.set_exception(exc)
            return
        response.close()
        future.set_result(response.status_code)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
