from __future__ import annotations

import os
from typing import Any

from fastapi import FastAPI, HTTPException

from planning_grid.integrations.container import AppContainer, build_container
from planning_grid.models.api_requests import BulkCellRequest, BulkPriceRequest, PriceItem, PriceItemRequest
from planning_grid.models.enums import PriceKey


def _price_key(store_keys: set[PriceKey], plan_id: int | None, year: int | None) -> tuple[PriceKey, int]:
    """Resolve which key a price body uses and reject keys this deployment ignores."""

    key, value = (PriceKey.PLAN, plan_id) if plan_id is not None else (PriceKey.YEAR, year)
    if key not in store_keys:
        raise HTTPException(
            status_code=422,
            detail=[{"loc": ["body", key.value], "msg": f"{key.value} is not accepted here", "type": "value_error"}],
        )
    return key, value  # type: ignore[return-value]


def create_app(container: AppContainer | None = None) -> FastAPI:
    """Build the reference ledger API around one container."""

    container = container or build_container()
    store = container.store
    app = FastAPI(title="planning_grid reference ledger", version="0.1.0")
    app.state.container = container

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        """Liveness probe."""

        return {"status": "ok"}

    @app.get("/lists/unit/search")
    async def search_units(branch_id: int) -> list[dict[str, Any]]:
        """Units of one branch; the first is the branch default."""

        return await store.list_units(branch_id)

    @app.get("/lists/products-by-group-latest")
    async def products_by_group(plan_id: int) -> dict[str, Any]:
        """Catalog grouped by business group with latest prices."""

        return await store.products_by_group(plan_id)

    @app.get("/revenue/sale-goals")
    async def read_sale_goals(branch_id: int, plan_id: int | None = None, year: int | None = None) -> dict[str, Any]:
        """Saved cells of one (plan or year, branch)."""

        if plan_id is None and year is None:
            raise HTTPException(status_code=422, detail="plan_id or year is required")
        plan = plan_id if plan_id is not None else store.plan_for(PriceKey.YEAR, year)  # type: ignore[arg-type]
        return {"plan_id": plan, "branch_id": branch_id, "cells": await store.read_cells(plan, branch_id)}

    @app.put("/revenue/sale-goals/bulk")
    async def write_sale_goals(req: BulkCellRequest) -> dict[str, Any]:
        """Replace every saved cell of the addressed (plan, branch)."""

        saved = await store.replace_cells(req.plan_id, req.branch_id, req.cells)
        return {"plan_id": req.plan_id, "branch_id": req.branch_id, "saved": saved}

    @app.put("/unit-prices/bulk")
    async def write_prices_bulk(req: BulkPriceRequest) -> dict[str, Any]:
        """Upsert unit prices for many items at once."""

        if not store.bulk_prices_enabled:
            raise HTTPException(status_code=404, detail="Not Found")
        key, value = _price_key(store.accepted_price_keys, req.plan_id, req.year)
        saved = await store.put_prices(key, value, req.items)
        return {key.value: value, "saved": saved}

    @app.put("/unit-prices")
    async def write_price(req: PriceItemRequest) -> dict[str, Any]:
        """Upsert the unit price of one item."""

        key, value = _price_key(store.accepted_price_keys, req.plan_id, req.year)
        item = PriceItem(**req.model_dump(exclude={"plan_id", "year"}))
        saved = await store.put_prices(key, value, [item])
        return {key.value: value, "product_id": req.product_id, "saved": saved}

    return app


app = create_app()


def run() -> None:
    """Local API entrypoint used by script/console command."""

    import uvicorn

    # Start local HTTP server with env-configurable host and port.
    uvicorn.run(
        "planning_grid.api.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=False,
    )


if __name__ == "__main__":
    run()
