"""
Authorized transport — bearer credentials from the Session Manager.

A SESSION_EXPIRED answer triggers one silent renewal and one retry. When
renewal fails the Session Manager has already invalidated the session
and signalled the login redirect; the caller gets SESSION_EXPIRED.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from storefront._errors import ErrorKind, Errors, StorefrontError
from storefront._types import Error, Ok, Result
from storefront.session import SessionManager
from storefront.transport._http import HttpTransport

logger = structlog.get_logger(__name__)


class AuthorizedTransport:
    def __init__(self, http: HttpTransport, session: SessionManager) -> None:
        self._http = http
        self._session = session

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Result[Any, StorefrontError]:
        if self._session.access_token is None:
            return Error(Errors.unauthenticated())

        result = await self._http.request(
            method, path, json=json, params=params, headers=self._headers(headers)
        )
        match result:
            case Error(err) if err.kind is ErrorKind.SESSION_EXPIRED:
                logger.info("authorized_request_expired", method=method, path=path)
                match await self._session.silent_renew():
                    case Ok(_):
                        return await self._http.request(
                            method, path, json=json, params=params, headers=self._headers(headers)
                        )
                    case Error(_):
                        return Error(err)
            case _:
                return result

    def _headers(self, extra: Mapping[str, str] | None) -> dict[str, str]:
        return {**(extra or {}), **self._session.auth_headers()}


__all__ = ("AuthorizedTransport",)
