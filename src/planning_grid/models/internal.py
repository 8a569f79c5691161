from __future__ import annotations

from datetime import UTC, datetime

from pydantic import Field

from planning_grid.errors import ConfigurationGapError
from planning_grid.models.api_requests import CellWrite, PriceItem
from planning_grid.models.common import StrictModel
from planning_grid.models.enums import NoticeKind, SaveState
from planning_grid.models.grid import IdentifierGap

# plan_id 1 corresponds to Buddhist-era year 2569.
DEFAULT_YEAR_OFFSET = 2568


class SaveContext(StrictModel):
    """Identifiers every read and write of a grid is scoped to."""

    branch_id: int | None = None
    branch_name: str = ""
    plan_id: int | None = None
    year: int | None = None
    default_unit_id: int | None = None

    @classmethod
    def resolve(
        cls,
        *,
        branch_id: int | None,
        plan_id: int | None = None,
        year: int | None = None,
        branch_name: str = "",
        year_offset: int = DEFAULT_YEAR_OFFSET,
    ) -> "SaveContext":
        """Derive whichever of plan id / year is missing from the other."""

        plan = plan_id if plan_id and plan_id > 0 else None
        year_be = year if year and year > year_offset else None
        if plan is None and year_be is not None:
            plan = year_be - year_offset
        if year_be is None and plan is not None:
            year_be = year_offset + plan
        return cls(
            branch_id=branch_id if branch_id and branch_id > 0 else None,
            branch_name=branch_name,
            plan_id=plan,
            year=year_be,
        )

    def missing(self) -> list[str]:
        """Names of identifiers that still need to be resolved."""

        gaps = []
        if not self.branch_id:
            gaps.append("branch_id")
        if not self.plan_id:
            gaps.append("plan_id")
        if not self.year:
            gaps.append("year")
        if not self.default_unit_id:
            gaps.append("default_unit_id")
        return gaps

    def require(self) -> None:
        gaps = self.missing()
        if gaps:
            raise ConfigurationGapError(gaps)


class SavePayload(StrictModel):
    """Everything one save writes, before it is shaped per endpoint."""

    prices: list[PriceItem] = Field(default_factory=list)
    cells: list[CellWrite] = Field(default_factory=list)
    skipped: list[IdentifierGap] = Field(default_factory=list)


class StatusNotice(StrictModel):
    """Inline status panel content: short title, longer detail."""

    kind: NoticeKind
    title: str
    detail: str = ""


class SaveOutcome(StrictModel):
    """Result of one save request, kept as the gateway's last outcome."""

    ok: bool
    state: SaveState
    notice: StatusNotice
    price_failures: list[int] = Field(default_factory=list)
    cells_written: int = 0
    at: datetime = Field(default_factory=lambda: datetime.now(UTC))
