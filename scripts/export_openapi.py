"""Export the reference ledger OpenAPI contract as a frozen baseline."""

from __future__ import annotations

import json
from pathlib import Path

LEDGER_PATHS = (
    "/healthz",
    "/lists/unit/search",
    "/lists/products-by-group-latest",
    "/revenue/sale-goals",
    "/revenue/sale-goals/bulk",
    "/unit-prices/bulk",
    "/unit-prices",
)


def openapi_contract_subset(document: dict) -> dict:
    """Keep only ledger paths and the request schemas they reference."""

    paths = {path: methods for path, methods in document.get("paths", {}).items() if path in LEDGER_PATHS}
    components = document.get("components", {}).get("schemas", {})
    return {"paths": paths, "schemas": components}


def main() -> None:
    """Write the current OpenAPI subset next to the contract tests."""

    from planning_grid.api.main import app

    out = openapi_contract_subset(app.openapi())
    out_path = Path("tests/openapi_ledger_baseline.json")
    out_path.write_text(
        json.dumps(out, ensure_ascii=False, indent=2, sort_keys=True),
        encoding="utf-8",
    )
    print(f"[openapi] written: {out_path}")


if __name__ == "__main__":
    main()
