from __future__ import annotations

from enum import Enum, IntEnum


class SaveState(str, Enum):
    """Lifecycle state of the persistence gateway."""

    IDLE = "idle"  # Nothing in flight.
    SAVING = "saving"  # Price/cell writes are running.
    SUCCESS = "success"  # Writes accepted, reconciliation pending.
    RECONCILING = "reconciling"  # Reloading server truth after a save.
    FAILED = "failed"  # Last save failed; returns to idle.


class NoticeKind(str, Enum):
    """Severity of an inline status panel."""

    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class Direction(str, Enum):
    """Keyboard navigation intents understood by the cell navigator."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    ENTER = "enter"  # Advance right, wrap to the first column of the next row.


class PriceKey(str, Enum):
    """Which identifier keys a price write body."""

    PLAN = "plan_id"
    YEAR = "year"


class Role(IntEnum):
    """Closed set of portal roles carried by the session token."""

    ADMIN = 1
    MNG = 2
    HR = 3
    HA = 4
    MKT = 5
