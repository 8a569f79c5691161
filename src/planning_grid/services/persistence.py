"""Save/load protocol between a grid and the ledger backend.

A save writes unit prices first (bulk, then the alternate body shape, then
item by item), then the non-zero cells in one bulk write, and finally reloads
the server's view so the grid never shows values older than what was written.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

from planning_grid.errors import ConfigurationGapError, HttpError, NetworkError, PlanningGridError
from planning_grid.grid.model import GridModel
from planning_grid.grid.sanitizer import to_number
from planning_grid.models.api_requests import (
    BulkCellRequest,
    BulkPriceRequest,
    CellWrite,
    PriceItem,
    PriceItemRequest,
)
from planning_grid.models.enums import NoticeKind, PriceKey, SaveState
from planning_grid.models.grid import EndpointConfig, LoadResult, Unit
from planning_grid.models.internal import SaveContext, SaveOutcome, SavePayload, StatusNotice
from planning_grid.services.catalog import (
    CatalogService,
    catalog_line_items,
    default_unit_id,
    normalize_cell_records,
)
from planning_grid.services.lifetime import CancellationScope
from planning_grid.services.ports import Transport

logger = logging.getLogger(__name__)

_BUSY_STATES = (SaveState.SAVING, SaveState.SUCCESS, SaveState.RECONCILING)


def notice_for_error(exc: Exception, context: SaveContext, *, action: str = "Save") -> StatusNotice:
    """Translate a failed request into an inline status panel."""

    if isinstance(exc, HttpError):
        if exc.status == 401:
            return StatusNotice(kind=NoticeKind.ERROR, title="401 Unauthorized", detail="Token rejected or expired; log in again.")
        if exc.status == 403:
            return StatusNotice(kind=NoticeKind.ERROR, title="403 Forbidden", detail="Your role is not allowed to change this plan.")
        if exc.status == 404:
            return StatusNotice(
                kind=NoticeKind.ERROR,
                title="404 Not Found",
                detail=f"Route or plan not found (plan_id={context.plan_id}): {exc.detail}",
            )
        if exc.status == 422:
            return StatusNotice(
                kind=NoticeKind.ERROR,
                title="422 Validation Error",
                detail=f"Backend rejected the payload schema: {exc.detail}",
            )
        return StatusNotice(kind=NoticeKind.ERROR, title=f"{action} failed", detail=f"HTTP {exc.status}: {exc.detail}")
    if isinstance(exc, NetworkError):
        return StatusNotice(
            kind=NoticeKind.ERROR,
            title=f"{action} failed",
            detail=f"Could not reach the server (network/CORS/DNS): {exc}",
        )
    if isinstance(exc, ConfigurationGapError):
        return StatusNotice(kind=NoticeKind.ERROR, title="Cannot save", detail=f"Missing: {', '.join(exc.missing)}")
    return StatusNotice(kind=NoticeKind.ERROR, title=f"{action} failed", detail=str(exc))


class PersistenceGateway:
    """Builds save payloads for one grid and runs the write/reload protocol.

    Only one save may be in flight; a second request while saving or
    reconciling is rejected. Network and HTTP errors never escape
    :meth:`save` or :meth:`load`; they come back as a :class:`StatusNotice`.
    """

    def __init__(
        self,
        grid: GridModel,
        transport: Transport,
        *,
        context: SaveContext,
        endpoints: EndpointConfig | None = None,
        business_group: int | None = None,
        bind_default_unit: bool = True,
        scope: CancellationScope | None = None,
        on_state: Callable[[SaveState], None] | None = None,
        on_reloaded: Callable[[], None] | None = None,
    ) -> None:
        self.grid = grid
        self.transport = transport
        self.context = context
        self.endpoints = endpoints or EndpointConfig()
        self.business_group = business_group
        self.bind_default_unit = bind_default_unit
        self.scope = scope or CancellationScope()
        self.catalog = CatalogService(
            transport,
            units_path=self.endpoints.units,
            catalog_path=self.endpoints.catalog,
        )
        self.units: list[Unit] = []
        self.last_outcome: SaveOutcome | None = None
        self._state = SaveState.IDLE
        self._on_state = on_state
        self._on_reloaded = on_reloaded

    # ----------------------------------------------------------------- state

    @property
    def state(self) -> SaveState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state in _BUSY_STATES

    def missing_requirements(self) -> list[str]:
        """Why saving is disabled right now; empty when it is allowed."""

        gaps = self.context.missing()
        if not self.transport.has_credentials():
            gaps.append("credential")
        return gaps

    @property
    def can_save(self) -> bool:
        return not self.missing_requirements() and not self.busy

    def _set_state(self, state: SaveState) -> None:
        self._state = state
        if self._on_state is not None:
            self._on_state(state)

    # --------------------------------------------------------------- payload

    def build_payload(self) -> SavePayload:
        """Prices for every resolvable item, cells for non-zero quantities only."""

        unit_id = self.context.default_unit_id
        prices: list[PriceItem] = []
        cells: list[CellWrite] = []
        for item in self.grid.items:
            if item.external_id is None:
                continue
            price = self.grid.price(item.id)
            prices.append(
                PriceItem(
                    product_id=item.external_id,
                    sell_price=to_number(price.sell_price),
                    buy_price=to_number(price.buy_price),
                    comment=price.note,
                )
            )
            if not unit_id:
                continue
            for period in self.grid.periods:
                qty = self.grid.cell(item.id, period.key).numeric_value
                if qty == 0:
                    continue
                cells.append(
                    CellWrite(
                        unit_id=unit_id,
                        product_id=item.external_id,
                        month=period.calendar_month,
                        amount=qty,
                    )
                )
        return SavePayload(prices=prices, cells=cells, skipped=self.grid.identifier_gaps())

    def preview_payload(self) -> str:
        """Pretty JSON of what a save would send, for the payload panel."""

        payload = self.build_payload()
        preview = {
            "plan_id": self.context.plan_id,
            "year": self.context.year,
            "branch_id": self.context.branch_id,
            "default_unit_id": self.context.default_unit_id,
            **payload.model_dump(mode="json"),
        }
        return json.dumps(preview, ensure_ascii=False, indent=2)

    # ------------------------------------------------------------------ load

    async def refresh_units(self) -> list[Unit]:
        """Re-read the branch's units and re-pick the default unit."""

        if not self.context.branch_id:
            self.units = []
        else:
            self.units = await self.scope.run(self.catalog.fetch_units(self.context.branch_id))
        self.context.default_unit_id = default_unit_id(self.units)
        self.grid.default_unit_id = self.context.default_unit_id if self.bind_default_unit else None
        return self.units

    async def load_catalog(self) -> int:
        """Replace line items and prices from the product catalog, if configured."""

        if not self.endpoints.catalog or not self.context.plan_id:
            return 0
        entries = await self.scope.run(self.catalog.fetch_catalog(self.context.plan_id, self.business_group))
        self.grid.replace_items(catalog_line_items(entries))
        return self.grid.load_prices(entries)

    async def load_saved(self) -> LoadResult:
        """Replace grid quantities with the server's saved values."""

        key = self.endpoints.read_key
        key_value = self.context.plan_id if key is PriceKey.PLAN else self.context.year
        if not self.context.branch_id or not key_value:
            return LoadResult()
        data = await self.scope.run(
            self.transport.request(
                "GET",
                self.endpoints.cells_read,
                params={key.value: key_value, "branch_id": self.context.branch_id},
            )
        )
        return self.grid.load_from_records(normalize_cell_records(data))

    async def reload(self) -> LoadResult:
        """Refresh units, catalog and saved cells, strictly in that order."""

        await self.refresh_units()
        await self.load_catalog()
        result = await self.load_saved()
        if self._on_reloaded is not None:
            self._on_reloaded()
        return result

    async def load(self) -> StatusNotice | None:
        """Initial load; failures leave the grid editable and return a notice."""

        try:
            result = await self.reload()
        except PlanningGridError as exc:
            logger.warning("loading %s failed: %s", self.endpoints.cells_read, exc)
            return notice_for_error(exc, self.context, action="Load")
        logger.info("loaded %d saved cells (%d discarded)", result.applied, result.discarded)
        return None

    # ------------------------------------------------------------------ save

    async def save(self) -> SaveOutcome:
        """Run the full save protocol and reconcile on success."""

        if self.busy:
            return SaveOutcome(
                ok=False,
                state=self._state,
                notice=StatusNotice(kind=NoticeKind.ERROR, title="Cannot save", detail="A save is already in progress."),
            )
        missing = self.missing_requirements()
        if missing:
            return SaveOutcome(
                ok=False,
                state=self._state,
                notice=notice_for_error(ConfigurationGapError(missing), self.context),
            )

        self._set_state(SaveState.SAVING)
        try:
            payload = self.build_payload()
            try:
                price_failures = await self._write_prices(payload.prices)
                await self._write_cells(payload.cells)
            except (HttpError, NetworkError) as exc:
                logger.error(
                    "save failed for branch=%s plan_id=%s year=%s: %s",
                    self.context.branch_id,
                    self.context.plan_id,
                    self.context.year,
                    exc,
                )
                self._set_state(SaveState.FAILED)
                outcome = SaveOutcome(ok=False, state=SaveState.FAILED, notice=notice_for_error(exc, self.context))
                self.last_outcome = outcome
                return outcome

            self._set_state(SaveState.SUCCESS)
            notice = self._success_notice(payload, price_failures)
            self._set_state(SaveState.RECONCILING)
            try:
                await self.reload()
            except PlanningGridError as exc:
                logger.warning("reload after save failed: %s", exc)
                notice = notice.model_copy(update={"detail": f"{notice.detail} • reload failed: {exc}"})
            outcome = SaveOutcome(
                ok=True,
                state=SaveState.SUCCESS,
                notice=notice,
                price_failures=price_failures,
                cells_written=len(payload.cells),
            )
            self.last_outcome = outcome
            return outcome
        finally:
            self._set_state(SaveState.IDLE)

    def _success_notice(self, payload: SavePayload, price_failures: list[int]) -> StatusNotice:
        ctx = self.context
        parts = [
            f"branch {ctx.branch_name or ctx.branch_id}",
            f"year {ctx.year} (plan_id={ctx.plan_id})",
            f"{len(payload.prices)} items",
            f"{len(payload.cells)} cells",
            f"unit_id={ctx.default_unit_id}",
        ]
        if payload.skipped:
            parts.append(f"skipped {len(payload.skipped)} unmapped items")
        if price_failures:
            parts.append(f"price not saved for {', '.join(str(pid) for pid in price_failures)}")
        return StatusNotice(kind=NoticeKind.SUCCESS, title="Saved", detail=" • ".join(parts))

    async def _put(self, path: str, body: dict[str, Any]) -> Any:
        return await self.scope.run(self.transport.request("PUT", path, json=body))

    def _key_value(self, key: PriceKey) -> dict[str, int | None]:
        return {key.value: self.context.plan_id if key is PriceKey.PLAN else self.context.year}

    async def _write_prices(self, items: list[PriceItem]) -> list[int]:
        """Write prices, falling back across body shapes and endpoints.

        Returns the product ids whose price could not be written. Raises the
        last error when nothing at all was accepted.
        """

        if not items:
            return []
        keys = self.endpoints.price_keys
        last_error: HttpError | None = None

        if self.endpoints.price_bulk:
            for key in keys:
                body = BulkPriceRequest(**self._key_value(key), items=items)
                try:
                    await self._put(self.endpoints.price_bulk, body.model_dump(mode="json", exclude_none=True))
                    return []
                except HttpError as exc:
                    logger.info("bulk price write keyed by %s rejected: %s %s", key.value, exc.status, exc.detail)
                    last_error = exc

        if not self.endpoints.price_item:
            if last_error is not None:
                raise last_error
            return []

        failures: list[int] = []
        for item in items:
            for key in keys:
                body = PriceItemRequest(**self._key_value(key), **item.model_dump())
                try:
                    await self._put(self.endpoints.price_item, body.model_dump(mode="json", exclude_none=True))
                    break
                except HttpError as exc:
                    logger.info("price write for %s keyed by %s rejected: %s", item.product_id, key.value, exc.status)
                    last_error = exc
            else:
                failures.append(item.product_id)
        if len(failures) == len(items) and last_error is not None:
            raise last_error
        return failures

    async def _write_cells(self, cells: list[CellWrite]) -> None:
        body = BulkCellRequest(
            plan_id=self.context.plan_id,
            branch_id=self.context.branch_id,
            cells=cells,
        )
        await self._put(self.endpoints.cells_bulk, body.model_dump(mode="json"))
