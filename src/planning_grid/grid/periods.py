from __future__ import annotations

from planning_grid.models.grid import Period

# Thai short month names, indexed by calendar month.
MONTH_LABELS_TH = {
    1: "ม.ค.",
    2: "ก.พ.",
    3: "มี.ค.",
    4: "เม.ย.",
    5: "พ.ค.",
    6: "มิ.ย.",
    7: "ก.ค.",
    8: "ส.ค.",
    9: "ก.ย.",
    10: "ต.ค.",
    11: "พ.ย.",
    12: "ธ.ค.",
}

DEFAULT_FISCAL_START_MONTH = 4


def period_key(calendar_month: int) -> str:
    """Stable period key for a calendar month, e.g. ``m04``."""

    return f"m{calendar_month:02d}"


def fiscal_periods(
    start_month: int = DEFAULT_FISCAL_START_MONTH,
    *,
    labels: dict[int, str] | None = None,
) -> tuple[Period, ...]:
    """Build the ordered 12-period fiscal axis starting at ``start_month``."""

    if not 1 <= start_month <= 12:
        raise ValueError(f"fiscal start month must be 1..12, got {start_month}")
    names = labels or MONTH_LABELS_TH
    months = [((start_month - 1 + offset) % 12) + 1 for offset in range(12)]
    return tuple(
        Period(key=period_key(month), label=names.get(month, period_key(month)), calendar_month=month)
        for month in months
    )


def fiscal_year_label(year_be: int, start_month: int = DEFAULT_FISCAL_START_MONTH) -> str:
    """Human label for a Buddhist-era fiscal year, e.g. ``1 เม.ย.68-31 มี.ค.69``."""

    end_month = 12 if start_month == 1 else start_month - 1
    start_yy = str(year_be)[-2:]
    end_yy = start_yy if start_month == 1 else str(year_be + 1)[-2:]
    last_day = _last_day(end_month)
    return f"1 {MONTH_LABELS_TH[start_month]}{start_yy}-{last_day} {MONTH_LABELS_TH[end_month]}{end_yy}"


def _last_day(month: int) -> int:
    """Last day of a month, February taken as 28 for labelling."""

    if month == 2:
        return 28
    if month in (4, 6, 9, 11):
        return 30
    return 31
