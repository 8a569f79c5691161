"""Bearer token lookup and the session derived from it.

Tokens are not verified here; the backend owns authentication. The payload is
decoded once into a :class:`Session` that callers pass around explicitly.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
import time
from typing import Any

from planning_grid.models.common import FrozenModel
from planning_grid.models.enums import Role
from planning_grid.services.ports import KeyValueStore

LEGACY_TOKEN_KEYS = ("token", "access_token", "jwt", "auth_token")
USER_KEY = "user"

_MARKETING_ALIAS = re.compile(r"^admin-[a-z0-9-]+-0\d$", re.IGNORECASE)


def read_token(store: KeyValueStore) -> str | None:
    """First non-empty token under any of the legacy key names."""

    for key in LEGACY_TOKEN_KEYS:
        value = store.get(key)
        if value and value.strip():
            return value.strip()
    return None


def decode_jwt(token: str | None) -> dict[str, Any] | None:
    """Decode the payload segment of a JWT without checking the signature."""

    parts = str(token or "").split(".")
    if len(parts) < 2 or not parts[1]:
        return None
    segment = parts[1]
    segment += "=" * (-len(segment) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(segment).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    return payload if isinstance(payload, dict) else None


def is_marketing_alias(username: str) -> bool:
    """Usernames shaped ``admin-<name>-0<digit>`` act as marketing staff."""

    return bool(username) and bool(_MARKETING_ALIAS.match(username.strip()))


def _role_from_claim(value: Any) -> Role | None:
    try:
        return Role(int(value))
    except (TypeError, ValueError):
        return None


class Session(FrozenModel):
    """Who is editing: user id, username, role and token expiry."""

    user_id: int | str | None = None
    username: str = ""
    role: Role | None = None
    exp: int = 0

    @classmethod
    def from_token(cls, token: str | None) -> "Session":
        payload = decode_jwt(token) or {}
        username = str(payload.get("sub") or "")
        role = _role_from_claim(payload.get("role_id", payload.get("role")))
        if is_marketing_alias(username):
            role = Role.MKT
        try:
            exp = int(payload.get("exp") or 0)
        except (TypeError, ValueError):
            exp = 0
        return cls(user_id=payload.get("id"), username=username, role=role, exp=exp)

    def is_expired(self, now: float | None = None) -> bool:
        if not self.exp:
            return True
        current = int(time.time() if now is None else now)
        return current >= self.exp

    def has_any_role(self, *roles: Role) -> bool:
        return self.role is not None and self.role in roles


def save_auth(store: KeyValueStore, token: str) -> Session:
    """Persist a freshly issued token and the user summary decoded from it."""

    session = Session.from_token(token)
    store.set("token", token)
    store.set(USER_KEY, session.model_dump_json())
    return session


def load_session(store: KeyValueStore) -> Session | None:
    token = read_token(store)
    if token is None:
        return None
    return Session.from_token(token)


def logout(store: KeyValueStore) -> None:
    for key in (*LEGACY_TOKEN_KEYS, USER_KEY):
        store.delete(key)
