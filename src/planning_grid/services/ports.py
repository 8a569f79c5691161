from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol


class Transport(Protocol):
    """Authenticated JSON transport to the ledger backend."""

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Send one request and return the decoded body.

        Raises ``NetworkError`` when the server was not reached and
        ``HttpError`` for non-2xx answers.
        """

        ...

    def has_credentials(self) -> bool:
        """Whether a bearer token is available."""

        ...


class KeyValueStore(Protocol):
    """Persistent client-side string store (token, cached user)."""

    def get(self, key: str) -> str | None:
        """Read one key."""

        ...

    def set(self, key: str, value: str) -> None:
        """Write one key."""

        ...

    def delete(self, key: str) -> None:
        """Remove one key if present."""

        ...


class FrameScheduler(Protocol):
    """Host display-refresh hook (requestAnimationFrame analogue)."""

    def request_frame(self, callback: Callable[[], None]) -> object:
        """Run ``callback`` on the next frame; returns a cancel handle."""

        ...

    def cancel_frame(self, handle: object) -> None:
        """Cancel a pending frame callback."""

        ...
