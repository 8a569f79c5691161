from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from planning_grid.models.enums import Direction

# Browser key names mapped to navigation intents.
KEY_DIRECTIONS = {
    "ArrowUp": Direction.UP,
    "ArrowDown": Direction.DOWN,
    "ArrowLeft": Direction.LEFT,
    "ArrowRight": Direction.RIGHT,
    "Enter": Direction.ENTER,
}

SCROLL_PAD = 12


@dataclass(frozen=True)
class Rect:
    """Box in viewport coordinates."""

    left: float
    top: float
    right: float
    bottom: float


class FocusHandle(Protocol):
    """Focusable input registered at one grid coordinate."""

    def focus(self) -> None:
        """Move keyboard focus here."""

        ...

    def select(self) -> None:
        """Select the current content."""

        ...

    def bounds(self) -> Rect:
        """Current on-screen box."""

        ...


class ScrollViewport(Protocol):
    """Scrollable body region the handles live in."""

    def bounds(self) -> Rect:
        """Visible box of the region."""

        ...

    def scroll_by(self, dx: float, dy: float) -> None:
        """Shift the scroll offsets by the given deltas."""

        ...


def scroll_delta(
    container: Rect,
    element: Rect,
    *,
    frozen_left: float = 0.0,
    pad: float = SCROLL_PAD,
) -> tuple[float, float]:
    """Scroll needed to bring ``element`` fully into ``container``.

    The leftmost ``frozen_left`` pixels are covered by sticky columns and do
    not count as visible.
    """

    dx = 0.0
    dy = 0.0
    if element.top < container.top + pad:
        dy = element.top - (container.top + pad)
    elif element.bottom > container.bottom - pad:
        dy = element.bottom - (container.bottom - pad)
    if element.left < container.left + frozen_left + pad:
        dx = element.left - (container.left + frozen_left + pad)
    elif element.right > container.right - pad:
        dx = element.right - (container.right - pad)
    return dx, dy


class CellNavigator:
    """Keyboard focus movement over an R x (P + 1) grid of inputs.

    Column 0 is the price field, columns 1..P the periods. Moves clamp at the
    edges and never wrap, except Enter which wraps to the next row.
    """

    def __init__(
        self,
        rows: int,
        periods: int,
        *,
        viewport: ScrollViewport | None = None,
        frozen_left: float = 0.0,
    ) -> None:
        self.rows = rows
        self.periods = periods
        self.viewport = viewport
        self.frozen_left = frozen_left
        self._handles: dict[tuple[int, int], FocusHandle] = {}
        self.current: tuple[int, int] | None = None

    @property
    def last_col(self) -> int:
        return self.periods

    def resize(self, rows: int, periods: int) -> None:
        """Update bounds after the item table changed; drop out-of-range handles."""

        self.rows = rows
        self.periods = periods
        for key in [k for k in self._handles if not self._in_bounds(*k)]:
            del self._handles[key]
        if self.current is not None and not self._in_bounds(*self.current):
            self.current = None

    def register(self, row: int, col: int, handle: FocusHandle) -> Callable[[], None]:
        """Attach a handle; the returned callable detaches it again."""

        key = (row, col)
        self._handles[key] = handle

        def unregister() -> None:
            if self._handles.get(key) is handle:
                del self._handles[key]

        return unregister

    def handle_at(self, row: int, col: int) -> FocusHandle | None:
        return self._handles.get((row, col))

    def target(self, row: int, col: int, direction: Direction) -> tuple[int, int]:
        """Clamped destination of a move from (row, col)."""

        last_row = max(self.rows - 1, 0)
        if direction is Direction.UP:
            row -= 1
        elif direction is Direction.DOWN:
            row += 1
        elif direction is Direction.LEFT:
            col -= 1
        elif direction is Direction.RIGHT:
            col += 1
        elif direction is Direction.ENTER:
            if col < self.last_col:
                col += 1
            else:
                row, col = row + 1, 0
        return min(max(row, 0), last_row), min(max(col, 0), self.last_col)

    def move(self, row: int, col: int, direction: Direction) -> tuple[int, int] | None:
        """Move focus from (row, col); returns the new coordinate or None."""

        return self.focus_cell(*self.target(row, col, direction))

    def handle_key(self, key: str, row: int, col: int) -> bool:
        """React to a key press; True means the key was consumed."""

        direction = KEY_DIRECTIONS.get(key)
        if direction is None:
            return False
        return self.move(row, col, direction) is not None

    def focus_cell(self, row: int, col: int) -> tuple[int, int] | None:
        """Focus, select and reveal the handle at (row, col) if registered."""

        handle = self._handles.get((row, col))
        if handle is None:
            return None
        handle.focus()
        handle.select()
        self.ensure_in_view(handle)
        self.current = (row, col)
        return self.current

    def ensure_in_view(self, handle: FocusHandle) -> None:
        if self.viewport is None:
            return
        dx, dy = scroll_delta(self.viewport.bounds(), handle.bounds(), frozen_left=self.frozen_left)
        if dx or dy:
            self.viewport.scroll_by(dx, dy)

    def _in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col <= self.last_col
