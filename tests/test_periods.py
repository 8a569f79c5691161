from __future__ import annotations

"""Tests for the fiscal period axis."""

import pytest

from planning_grid.grid.periods import fiscal_periods, fiscal_year_label, period_key


def test_fiscal_periods_start_in_april_by_default() -> None:
    """Default fiscal year runs April through March."""

    periods = fiscal_periods()
    assert len(periods) == 12
    assert [p.calendar_month for p in periods][:3] == [4, 5, 6]
    assert periods[-1].calendar_month == 3
    assert periods[0].key == "m04"
    assert periods[0].label == "เม.ย."


def test_fiscal_periods_custom_labels_and_start() -> None:
    """Calendar-year axis with caller supplied labels."""

    labels = {m: f"M{m}" for m in range(1, 13)}
    periods = fiscal_periods(1, labels=labels)
    assert [p.key for p in periods] == [period_key(m) for m in range(1, 13)]
    assert periods[11].label == "M12"


def test_fiscal_periods_rejects_bad_start_month() -> None:
    """Start month outside 1..12 is a programming error."""

    with pytest.raises(ValueError):
        fiscal_periods(13)


def test_fiscal_year_label() -> None:
    """Label spans April of the plan year to March of the next."""

    assert fiscal_year_label(2568) == "1 เม.ย.68-31 มี.ค.69"
    assert fiscal_year_label(2569, start_month=1) == "1 ม.ค.69-31 ธ.ค.69"
