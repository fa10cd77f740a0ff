"""
HTTP transport for the rideshare API.

Every request carries the stored bearer token.  Any 401 response clears
the Session Store and notifies every registered listener (typically "go
to the login route").
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import httpx

from rideshare.client.session import SessionStore
from rideshare.config import settings
from rideshare.domain.errors import (
    STATUS_TO_ERROR,
    RequestTimeoutError,
    RideshareError,
    TransportError,
)

logger = logging.getLogger(__name__)

_SENSITIVE_KEYS = {"password", "passwordconfirm", "password_confirm", "token"}


def _scrub_sensitive(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: "***"
            if isinstance(key, str) and key.lower() in _SENSITIVE_KEYS
            else _scrub_sensitive(val)
            for key, val in value.items()
        }
    if isinstance(value, list):
        return [_scrub_sensitive(item) for item in value]
    return value


class SessionAuth(httpx.Auth):
    """Attach ``Authorization: Bearer <token>`` when a session exists."""

    def __init__(self, store: SessionStore):
        self.store = store

    def auth_flow(self, request: httpx.Request):
        session = self.store.load()
        if session is not None:
            request.headers["Authorization"] = f"Bearer {session.token}"
        yield request


def error_from_response(response: httpx.Response) -> RideshareError:
    try:
        body = response.json()
    except ValueError:
        body = {}
    detail = body.get("detail") if isinstance(body, dict) else None
    errors: list[str] = []
    if isinstance(detail, list):
        # FastAPI request-shape errors: [{"loc": [...], "msg": ...}, ...]
        errors = [str(item.get("msg", item)) for item in detail if isinstance(item, dict)]
        detail = " | ".join(errors) or None
    elif isinstance(body, dict) and isinstance(body.get("errors"), list):
        errors = [str(e) for e in body["errors"]]

    if response.status_code == 429:
        return TransportError(detail or "Too many requests, please retry shortly")
    if response.status_code >= 500:
        return TransportError(detail or "Server error, please retry")
    cls = STATUS_TO_ERROR.get(response.status_code, RideshareError)
    return cls(detail or f"Request failed ({response.status_code})", errors)


class ApiClient:
    def __init__(
        self,
        store: SessionStore,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.store = store
        self._listeners: list[Callable[[], None]] = []
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout if timeout is not None else settings.api_timeout_seconds,
            auth=SessionAuth(store),
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    def add_unauthorized_listener(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
        invalidate_on_401: bool = True,
    ) -> Any:
        if params:
            params = {k: v for k, v in params.items() if v not in (None, "")}
        logger.debug("%s %s %s", method, path, _scrub_sensitive(json))
        try:
            response = await self._http.request(method, path, json=json, params=params)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(
                "Request timeout. Check your connection."
            ) from exc
        except httpx.TransportError as exc:
            raise TransportError(
                "Network error. Please check your internet connection."
            ) from exc

        if response.status_code == 401 and invalidate_on_401:
            self._invalidate_session()
        if response.is_error:
            raise error_from_response(response)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _invalidate_session(self) -> None:
        logger.info("Server rejected the session token; signing out")
        self.store.clear()
        for listener in list(self._listeners):
            listener()
