from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field

from planning_grid.grid.periods import DEFAULT_FISCAL_START_MONTH
from planning_grid.models.common import StrictModel
from planning_grid.models.internal import DEFAULT_YEAR_OFFSET

API_BASE_VARS = ("PLANNING_API_BASE", "PLANNING_API_BASE_RUNAPP", "PLANNING_API_BASE_CUSTOM")
DEFAULT_API_BASE = "http://localhost:8000"


class Settings(StrictModel):
    """Runtime configuration read from the environment."""

    api_base: str = DEFAULT_API_BASE
    request_timeout_sec: float = Field(default=30.0, gt=0)
    token_store: Path = Path("~/.planning_grid/auth.json")
    fiscal_start_month: int = Field(default=DEFAULT_FISCAL_START_MONTH, ge=1, le=12)
    year_offset: int = DEFAULT_YEAR_OFFSET
    max_decimals: int | None = Field(default=3, ge=0)
    host: str = "127.0.0.1"
    port: int = 8000


def pick_api_base() -> str:
    """First configured API base wins; trailing slashes are dropped."""

    for name in API_BASE_VARS:
        value = (os.getenv(name) or "").strip()
        if value:
            return value.rstrip("/")
    return DEFAULT_API_BASE


def _optional_int(raw: str | None, default: int | None) -> int | None:
    if raw is None or raw.strip() == "":
        return default
    if raw.strip().lower() in {"none", "off", "unlimited"}:
        return None
    return int(raw)


def load_settings(dotenv_path: str | Path | None = None) -> Settings:
    """Load ``.env`` (if present) and build settings from the environment."""

    load_dotenv(dotenv_path)
    return Settings(
        api_base=pick_api_base(),
        request_timeout_sec=float(os.getenv("PLANNING_REQUEST_TIMEOUT_SEC", "30")),
        token_store=Path(os.getenv("PLANNING_TOKEN_STORE", "~/.planning_grid/auth.json")),
        fiscal_start_month=int(os.getenv("PLANNING_FISCAL_START_MONTH", str(DEFAULT_FISCAL_START_MONTH))),
        year_offset=int(os.getenv("PLANNING_YEAR_OFFSET", str(DEFAULT_YEAR_OFFSET))),
        max_decimals=_optional_int(os.getenv("PLANNING_MAX_DECIMALS"), 3),
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
    )
