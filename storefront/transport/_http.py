"""
HTTP transport — JSON over httpx, failures as typed errors.

    http = HttpTransport.from_config(config)

    match await http.request("GET", "orders/my-orders", headers=session.auth_headers()):
        case Ok(payload): ...
        case Error(err) if err.kind is ErrorKind.SESSION_EXPIRED: ...
        case Error(err): ...

Status mapping:
    2xx          → Ok(parsed JSON, None for empty bodies)
    401          → SESSION_EXPIRED (INVALID_CREDENTIALS for credential endpoints)
    400 / 422    → VALIDATION
    409          → CONFLICT
    5xx, network → REMOTE_UNAVAILABLE
    other        → REJECTED
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx
import structlog
from combinators import lift as L

from storefront._config import StorefrontConfig
from storefront._errors import Errors, StorefrontError
from storefront._types import Error, Lazy, Ok, Result

logger = structlog.get_logger(__name__)


def error_message(response: httpx.Response) -> str:
    """
    Server message, verbatim.

    Validation answers carry a list of messages; they are joined.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, list) and message:
            return ", ".join(str(m) for m in message)
        if isinstance(message, str) and message:
            return message
        error = body.get("error")
        if isinstance(error, str) and error:
            return error

    return response.reason_phrase or f"HTTP {response.status_code}"


def interpret(response: httpx.Response, *, credentials: bool = False) -> Result[Any, StorefrontError]:
    status = response.status_code

    if 200 <= status < 300:
        if not response.content:
            return Ok(None)
        try:
            return Ok(response.json())
        except ValueError:
            return Error(Errors.rejected(status, "Malformed response body"))

    message = error_message(response)
    match status:
        case 401 if credentials:
            return Error(Errors.invalid_credentials(message))
        case 401:
            return Error(Errors.session_expired(message))
        case 400 | 422:
            return Error(Errors.validation(message, status))
        case 409:
            return Error(Errors.conflict(message))
        case _ if status >= 500:
            return Error(Errors.server(status, message))
        case _:
            return Error(Errors.rejected(status, message))


class HttpTransport:
    """Issues JSON requests against the configured base URL."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @classmethod
    def from_config(
        cls,
        config: StorefrontConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> HttpTransport:
        client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )
        return cls(client)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        credentials: bool = False,
    ) -> Result[Any, StorefrontError]:
        """
        Send a request and interpret the answer.

        credentials marks endpoints where a 401 means wrong credentials
        rather than an expired session.
        """
        sent = await self._send(method, path, json=json, params=params, headers=headers)
        match sent:
            case Ok(response):
                result = interpret(response, credentials=credentials)
                if isinstance(result, Error):
                    logger.info(
                        "request_failed",
                        method=method,
                        path=path,
                        status=response.status_code,
                        kind=result.error.kind.name,
                    )
                return result
            case Error(err):
                logger.warning("request_unreachable", method=method, path=path, error=err.message)
                return Error(err)

    def _send(
        self,
        method: str,
        path: str,
        *,
        json: Any,
        params: Mapping[str, Any] | None,
        headers: Mapping[str, str] | None,
    ) -> Lazy[httpx.Response, StorefrontError]:
        return L.catching_async(
            lambda: self._client.request(
                method,
                path,
                json=json,
                params=dict(params) if params else None,
                headers=dict(headers) if headers else None,
            ),
            on_error=Errors.unreachable,
        )

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ("HttpTransport", "interpret", "error_message")
