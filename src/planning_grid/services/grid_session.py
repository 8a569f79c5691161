from __future__ import annotations

from planning_grid.grid.aggregation import compute_snapshot
from planning_grid.grid.model import GridModel
from planning_grid.grid.navigation import CellNavigator, ScrollViewport
from planning_grid.grid.scroll import AsyncioFrameScheduler, ScrollSynchronizer
from planning_grid.models.grid import Cell, GridConfig, PriceRecord
from planning_grid.models.internal import SaveContext, SaveOutcome, StatusNotice
from planning_grid.models.snapshot import AggregateSnapshot
from planning_grid.services.lifetime import CancellationScope
from planning_grid.services.persistence import PersistenceGateway
from planning_grid.services.ports import FrameScheduler, Transport


class GridSession:
    """One live grid page: model, navigation, scroll sync and persistence.

    Owns a cancellation scope; :meth:`close` cancels any load or save still
    in flight and detaches scroll followers.
    """

    def __init__(
        self,
        config: GridConfig,
        transport: Transport,
        context: SaveContext,
        *,
        scheduler: FrameScheduler | None = None,
        viewport: ScrollViewport | None = None,
        frozen_left: float = 0.0,
    ) -> None:
        self.config = config
        self.scope = CancellationScope()
        self.model = GridModel(config.periods, config.items, max_decimals=config.max_decimals)
        self.navigator = CellNavigator(*self.model.dimensions, viewport=viewport, frozen_left=frozen_left)
        self.scroll = ScrollSynchronizer(scheduler or AsyncioFrameScheduler())
        self.gateway = PersistenceGateway(
            self.model,
            transport,
            context=context,
            endpoints=config.endpoints,
            business_group=config.business_group,
            bind_default_unit=config.bind_default_unit,
            scope=self.scope,
            on_reloaded=self._sync_navigator,
        )
        self.notice: StatusNotice | None = None

    @property
    def context(self) -> SaveContext:
        return self.gateway.context

    @property
    def editable(self) -> bool:
        """Editing is disabled until branch, plan/year and unit are known."""

        return not self.context.missing()

    def snapshot(self) -> AggregateSnapshot:
        return compute_snapshot(self.model)

    def coordinate(self, row: int, col: int) -> tuple[str, str | None]:
        """Map a navigator coordinate to (item id, period key or None for price)."""

        items = self.model.editable_items
        if not 0 <= row < len(items):
            raise IndexError(f"row {row} out of range")
        if col == 0:
            return items[row].id, None
        if not 1 <= col <= len(self.model.periods):
            raise IndexError(f"column {col} out of range")
        return items[row].id, self.model.periods[col - 1].key

    def edit(self, row: int, col: int, text: object) -> Cell | PriceRecord:
        """Apply typed text at a navigator coordinate (col 0 edits the sell price)."""

        self._require_editable()
        item_id, period_key = self.coordinate(row, col)
        if period_key is None:
            return self.model.set_price(item_id, "sell_price", text)
        return self.model.set_cell(item_id, period_key, text)

    def set_cell(self, item_id: str, period_key: str, text: object) -> Cell:
        self._require_editable()
        return self.model.set_cell(item_id, period_key, text)

    def set_price(self, item_id: str, field: str, text: object) -> PriceRecord:
        self._require_editable()
        return self.model.set_price(item_id, field, text)

    def reset(self, preserve_prices: bool = True) -> None:
        self.model.reset(preserve_prices=preserve_prices)

    async def open(self) -> StatusNotice | None:
        """Load units, catalog and saved values; the grid stays usable on failure."""

        self.notice = await self.gateway.load()
        return self.notice

    async def save(self) -> SaveOutcome:
        outcome = await self.gateway.save()
        self.notice = outcome.notice
        return outcome

    async def close(self) -> None:
        self.scroll.close()
        await self.scope.aclose()

    def _require_editable(self) -> None:
        self.context.require()

    def _sync_navigator(self) -> None:
        self.navigator.resize(*self.model.dimensions)
