from __future__ import annotations

from typing import Any


class PlanningGridError(Exception):
    """Base class for errors raised by the planning grid package."""


class NetworkError(PlanningGridError):
    """Request never reached the server (connection, DNS, TLS, timeout)."""

    def __init__(self, message: str, *, method: str = "", url: str = "") -> None:
        super().__init__(message)
        self.method = method
        self.url = url


class HttpError(PlanningGridError):
    """Server answered with a non-2xx status."""

    def __init__(
        self,
        status: int,
        detail: str,
        *,
        method: str = "",
        url: str = "",
        data: Any = None,
    ) -> None:
        super().__init__(detail or f"HTTP {status}")
        self.status = status
        self.detail = detail or f"HTTP {status}"
        self.method = method
        self.url = url
        self.data = data


class ConfigurationGapError(PlanningGridError):
    """Required context (branch, plan/year, unit, credential) is missing."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__("missing required context: " + ", ".join(missing))
        self.missing = list(missing)


def extract_error_detail(data: Any, text: str, status: int) -> str:
    """Pick a human readable message from an error response body.

    JSON ``detail`` wins (FastAPI validation lists are joined), then
    ``message``, then the raw body text, then the bare status code.
    """

    if isinstance(data, dict):
        detail = data.get("detail")
        if isinstance(detail, list):
            parts = []
            for entry in detail:
                if isinstance(entry, dict) and entry.get("msg"):
                    parts.append(str(entry["msg"]))
                else:
                    parts.append(str(entry))
            if parts:
                return " | ".join(parts)
        if isinstance(detail, dict) and detail.get("message"):
            return str(detail["message"])
        if detail:
            return str(detail)
        if data.get("message"):
            return str(data["message"])
    if isinstance(data, str) and data.strip():
        return data.strip()
    if text and text.strip():
        return text.strip()
    return f"HTTP {status}"
