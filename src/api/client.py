# transport to the POS backend; every call returns parsed JSON or raises ApiError
from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Callable, Dict, Optional

import requests

from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)


class ErrorKind(str, Enum):
    NETWORK = "network"
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    SERVER = "server"
    UNKNOWN = "unknown"

    @classmethod
    def from_status(cls, status: int) -> "ErrorKind":
        if status in (400, 422):
            return cls.BAD_REQUEST
        if status == 401:
            return cls.UNAUTHORIZED
        if status == 403:
            return cls.FORBIDDEN
        if status == 404:
            return cls.NOT_FOUND
        if status == 409:
            return cls.CONFLICT
        if 500 <= status < 600:
            return cls.SERVER
        return cls.UNKNOWN


_DEFAULT_MESSAGES = {
    ErrorKind.NETWORK: "Cannot reach the server.",
    ErrorKind.BAD_REQUEST: "The server rejected the request.",
    ErrorKind.UNAUTHORIZED: "Your session has expired. Please log in again.",
    ErrorKind.FORBIDDEN: "You do not have permission to do that.",
    ErrorKind.NOT_FOUND: "Record not found.",
    ErrorKind.CONFLICT: "The record conflicts with an existing one.",
    ErrorKind.SERVER: "The server failed to handle the request.",
    ErrorKind.UNKNOWN: "Unexpected response from the server.",
}


class ApiError(Exception):
    """
    Raised for any failed backend call.

    kind: derived from the HTTP status, NETWORK if no response arrived
    status: HTTP status code, None for transport failures
    message: server supplied message, if any
    """

    def __init__(
        self, kind: ErrorKind, status: Optional[int] = None, message: str = ""
    ) -> None:
        super().__init__(message or _DEFAULT_MESSAGES[kind])
        self.kind = kind
        self.status = status
        self.message = message

    @property
    def user_message(self) -> str:
        return self.message or _DEFAULT_MESSAGES[self.kind]

    @classmethod
    def from_response(cls, response: requests.Response) -> "ApiError":
        message = ""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            raw = body.get("message")
            # validation pipes answer with a list of messages
            if isinstance(raw, list):
                message = "; ".join(str(m) for m in raw)
            elif raw:
                message = str(raw)
        return cls(ErrorKind.from_status(response.status_code), response.status_code, message)

    def __repr__(self) -> str:
        return f"ApiError({self.kind.value}, status={self.status}, message={self.message!r})"


class ApiClient:
    """
    Thin async wrapper over a requests.Session.

    The blocking request runs in a worker thread so the event loop keeps
    drawing. There is no retry and no caching.
    """

    def __init__(
        self,
        base_url: str = config.API_BASE_URL,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        on_unauthorized: Optional[Callable[[ApiError], None]] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = config.API_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider
        self.on_unauthorized = on_unauthorized
        self.timeout = timeout or None
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _send(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
    ) -> Any:
        headers = {}
        token = self.token_provider() if self.token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = self._session.request(
                method,
                self._url(path),
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            _logger.warning(f"{method} {path} failed: {e}")
            raise ApiError(ErrorKind.NETWORK, None, "") from e

        if not response.ok:
            err = ApiError.from_response(response)
            _logger.info(f"{method} {path} -> {response.status_code} {err.message}")
            raise err

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(ErrorKind.UNKNOWN, response.status_code, "") from e

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
    ) -> Any:
        _logger.debug(f"{method} {path} params={params}")
        try:
            return await asyncio.to_thread(self._send, method, path, params, json)
        except ApiError as e:
            if e.kind is ErrorKind.UNAUTHORIZED and self.on_unauthorized:
                self.on_unauthorized(e)
            raise

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Optional[Any] = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Optional[Any] = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    def close(self) -> None:
        self._session.close()
