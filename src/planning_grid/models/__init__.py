"""Public model exports for the grid engine and its wire formats."""

from planning_grid.models.api_requests import (
    BulkCellRequest,
    BulkPriceRequest,
    CellWrite,
    PriceItem,
    PriceItemRequest,
)
from planning_grid.models.enums import Direction, NoticeKind, PriceKey, Role, SaveState
from planning_grid.models.grid import (
    CatalogItem,
    Cell,
    EndpointConfig,
    GridConfig,
    IdentifierGap,
    LineItem,
    LoadResult,
    Period,
    PriceRecord,
    RemoteCellRecord,
    Unit,
)
from planning_grid.models.internal import SaveContext, SaveOutcome, SavePayload, StatusNotice
from planning_grid.models.snapshot import AggregateSnapshot, Totals

__all__ = [
    "AggregateSnapshot",
    "BulkCellRequest",
    "BulkPriceRequest",
    "CatalogItem",
    "Cell",
    "CellWrite",
    "Direction",
    "EndpointConfig",
    "GridConfig",
    "IdentifierGap",
    "LineItem",
    "LoadResult",
    "NoticeKind",
    "Period",
    "PriceItem",
    "PriceItemRequest",
    "PriceKey",
    "PriceRecord",
    "RemoteCellRecord",
    "Role",
    "SaveContext",
    "SaveOutcome",
    "SavePayload",
    "SaveState",
    "StatusNotice",
    "Totals",
    "Unit",
]
