from __future__ import annotations

import asyncio
import logging
from typing import Any

import requests

from planning_grid.auth import read_token
from planning_grid.errors import HttpError, NetworkError, extract_error_detail
from planning_grid.services.ports import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 30.0


def join_url(base_url: str, path: str) -> str:
    """Join base and path with exactly one slash between them."""

    if path.startswith("http://") or path.startswith("https://"):
        return path
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def auth_header(token: str | None) -> dict[str, str]:
    """Bearer header for a raw token or one that already carries the prefix."""

    if not token:
        return {}
    token = token.strip()
    if token.lower().startswith("bearer "):
        return {"Authorization": token}
    return {"Authorization": f"Bearer {token}"}


def _decode_body(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class RequestsTransport:
    """JSON transport over ``requests``; blocking calls run in a worker thread.

    The bearer token is read from the key-value store on every request so a
    fresh login takes effect without rebuilding the transport.
    """

    def __init__(
        self,
        base_url: str,
        *,
        store: KeyValueStore | None = None,
        token: str | None = None,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        session: Any = None,
    ) -> None:
        self.base_url = base_url
        self.store = store
        self.token = token
        self.timeout_sec = timeout_sec
        self.session = session if session is not None else requests.Session()

    def current_token(self) -> str | None:
        if self.token:
            return self.token
        if self.store is not None:
            return read_token(self.store)
        return None

    def has_credentials(self) -> bool:
        return bool(self.current_token())

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        return await asyncio.to_thread(self.request_sync, method, path, params=params, json=json)

    def request_sync(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Blocking request with the transport's error contract."""

        url = join_url(self.base_url, path)
        headers = {"Accept": "application/json", **auth_header(self.current_token())}
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout_sec,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s unreachable: %s", method, url, exc)
            raise NetworkError(str(exc), method=method, url=url) from exc

        data = _decode_body(response)
        if not 200 <= response.status_code < 300:
            detail = extract_error_detail(data, response.text, response.status_code)
            logger.info("%s %s -> %s %s", method, url, response.status_code, detail)
            raise HttpError(response.status_code, detail, method=method, url=url, data=data)
        return data
