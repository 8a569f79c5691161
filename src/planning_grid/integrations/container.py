from __future__ import annotations

import os
from dataclasses import dataclass

from planning_grid.integrations.in_memory import InMemoryLedgerStore
from planning_grid.settings import Settings, load_settings

DEMO_BRANCH_ID = 1
DEMO_PLAN_ID = 1

_DEMO_CATALOG = [
    {"product_id": 101, "product_type": "Jasmine rice", "unit": "ton", "business_group": 1, "sell_price": 18500, "buy_price": 15200},
    {"product_id": 102, "product_type": "Fertilizer 16-20-0", "unit": "bag", "business_group": 1, "sell_price": 820, "buy_price": 700},
    {"product_id": 301, "product_type": "Paddy collection", "unit": "ton", "business_group": 3, "sell_price": 11000, "buy_price": 10200},
    {"product_id": 401, "product_type": "Milled rice", "unit": "ton", "business_group": 4, "sell_price": 21000, "buy_price": 17500},
    {"product_id": 501, "product_type": "Certified seed", "unit": "kg", "business_group": 5, "sell_price": 28, "buy_price": 22},
]


@dataclass
class AppContainer:
    """Runtime dependency container for the reference ledger API."""

    settings: Settings
    store: InMemoryLedgerStore


def seed_demo(store: InMemoryLedgerStore) -> None:
    """Load one branch with two units and a small catalog for plan 1."""

    store.seed_units(DEMO_BRANCH_ID, [{"id": 11, "unit_name": "Head office"}, {"id": 12, "unit_name": "Mill"}])
    store.seed_catalog(DEMO_PLAN_ID, _DEMO_CATALOG)


def build_container(settings: Settings | None = None, *, store: InMemoryLedgerStore | None = None) -> AppContainer:
    """Create default in-memory runtime container for local execution."""

    settings = settings or load_settings()
    if store is None:
        store = InMemoryLedgerStore(year_offset=settings.year_offset)
        if os.getenv("PLANNING_SEED_DEMO", "true").lower() == "true":
            seed_demo(store)
    return AppContainer(settings=settings, store=store)
