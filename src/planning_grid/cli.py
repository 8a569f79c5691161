from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .auth import Session, load_session, logout, save_auth
from .errors import ConfigurationGapError
from .grid.aggregation import display_amount, display_qty
from .grid.periods import fiscal_year_label
from .grid.scroll import ManualFrameScheduler
from .integrations.excel_export import export_grid
from .integrations.file_store import JsonFileStore
from .integrations.http_transport import RequestsTransport
from .models.enums import NoticeKind
from .models.internal import SaveContext, StatusNotice
from .services.grid_session import GridSession
from .services.persistence import notice_for_error
from .services.presets import preset_names, sale_goal_grid
from .services.ports import Transport
from .settings import Settings, load_settings

app = typer.Typer(help="Fiscal-year planning grid CLI.")
console = Console()

_NOTICE_STYLE = {NoticeKind.SUCCESS: "green", NoticeKind.ERROR: "red", NoticeKind.INFO: "cyan"}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _build_transport(settings: Settings, token: str | None) -> Transport:
    """HTTP transport to the configured ledger API."""

    return RequestsTransport(
        settings.api_base,
        store=JsonFileStore(settings.token_store),
        token=token,
        timeout_sec=settings.request_timeout_sec,
    )


def _parse_assignment(raw: str) -> tuple[str, str | None, str]:
    """Split ``ITEM:PERIOD=VALUE`` (or ``ITEM=VALUE`` for the sell price)."""

    target, sep, value = raw.partition("=")
    if not sep or not target.strip():
        raise typer.BadParameter(f"expected ITEM:PERIOD=VALUE, got {raw!r}")
    item, _, period = target.partition(":")
    return item.strip(), period.strip() or None, value


def _resolve_item(session: GridSession, ref: str) -> str:
    """Accept a line item id (``p_101``) or a bare product id (``101``)."""

    for item in session.model.items:
        if item.id == ref or (item.external_id is not None and str(item.external_id) == ref):
            return item.id
    raise typer.BadParameter(f"unknown item {ref!r}")


def _resolve_period(session: GridSession, ref: str) -> str:
    """Accept a period key (``m04``) or a calendar month number (``4``)."""

    for period in session.model.periods:
        if period.key == ref or str(period.calendar_month) == ref.lstrip("0"):
            return period.key
    raise typer.BadParameter(f"unknown period {ref!r}")


def _apply_edits(session: GridSession, assignments: list[str]) -> None:
    for raw in assignments:
        item_ref, period_ref, value = _parse_assignment(raw)
        item_id = _resolve_item(session, item_ref)
        if period_ref is None:
            session.set_price(item_id, "sell_price", value)
        else:
            session.set_cell(item_id, _resolve_period(session, period_ref), value)


def _print_notice(notice: StatusNotice | None) -> None:
    if notice is None:
        return
    style = _NOTICE_STYLE.get(notice.kind, "white")
    console.print(f"[{style}]{notice.title}[/{style}] {notice.detail}")


def _render(session: GridSession) -> Table:
    """Grid with row and column totals as a rich table."""

    model = session.model
    snapshot = session.snapshot()
    title = session.config.title or session.config.name
    if session.context.year:
        title = f"{title} {fiscal_year_label(session.context.year, model.periods[0].calendar_month)}"
    table = Table(title=title, show_footer=True)
    table.add_column("Item", footer="Total")
    table.add_column("Price", justify="right")
    for period in model.periods:
        table.add_column(period.label, justify="right", footer=display_qty(snapshot.column(period.key)))
    table.add_column("Qty", justify="right", footer=display_qty(snapshot.grand))
    table.add_column("Amount", justify="right", footer=display_amount(snapshot.grand))
    for item in model.items:
        totals = snapshot.row(item.id)
        name = item.name if item.external_id is not None else f"{item.name} [yellow](unmapped)[/yellow]"
        table.add_row(
            name,
            model.price(item.id).sell_price,
            *(model.cell(item.id, p.key).raw_text for p in model.periods),
            display_qty(totals),
            display_amount(totals),
        )
    return table


async def _with_session(
    preset: str,
    *,
    branch: int,
    plan: int | None,
    year: int | None,
    token: str | None,
    edits: list[str],
    action,
):
    settings = load_settings()
    try:
        config = sale_goal_grid(preset, fiscal_start_month=settings.fiscal_start_month, max_decimals=settings.max_decimals)
    except KeyError as exc:
        raise typer.BadParameter(str(exc.args[0])) from exc
    context = SaveContext.resolve(branch_id=branch, plan_id=plan, year=year, year_offset=settings.year_offset)
    session = GridSession(config, _build_transport(settings, token), context, scheduler=ManualFrameScheduler())
    try:
        notice = await session.open()
        _print_notice(notice)
        if edits:
            try:
                _apply_edits(session, edits)
            except ConfigurationGapError as exc:
                _print_notice(notice_for_error(exc, session.context))
                raise typer.Exit(code=1) from exc
        return await action(session)
    finally:
        await session.close()


def _run(coro) -> object:
    return asyncio.run(coro)


BRANCH = typer.Option(..., "--branch", "-b", help="Branch id the plan belongs to.")
PLAN = typer.Option(None, "--plan", help="Plan id (derived from --year when omitted).")
YEAR = typer.Option(None, "--year", help="Buddhist-era plan year, e.g. 2569.")
TOKEN = typer.Option(None, "--token", help="Bearer token; defaults to the token store.")
SET = typer.Option(None, "--set", "-s", help="Edit ITEM:PERIOD=QTY, or ITEM=PRICE for the sell price.")
VERBOSE = typer.Option(False, "--verbose", "-v", help="Show debug logs.")


@app.command()
def presets() -> None:
    """List the grid pages this CLI knows."""

    for name in preset_names():
        config = sale_goal_grid(name)
        console.print(f"[cyan]{name}[/cyan] {config.title} (business group {config.business_group})")


@app.command()
def show(
    preset: str,
    branch: int = BRANCH,
    plan: Optional[int] = PLAN,
    year: Optional[int] = YEAR,
    token: Optional[str] = TOKEN,
    verbose: bool = VERBOSE,
) -> None:
    """Load a grid page and print it with totals."""

    _configure_logging(verbose)

    async def _show(session: GridSession) -> None:
        console.print(_render(session))
        for gap in session.model.identifier_gaps():
            console.print(f"[yellow]Not saved:[/yellow] {gap.name} has no product id")

    _run(_with_session(preset, branch=branch, plan=plan, year=year, token=token, edits=[], action=_show))


@app.command()
def payload(
    preset: str,
    branch: int = BRANCH,
    plan: Optional[int] = PLAN,
    year: Optional[int] = YEAR,
    token: Optional[str] = TOKEN,
    assignments: Optional[List[str]] = SET,
    verbose: bool = VERBOSE,
) -> None:
    """Print the JSON a save would send, after applying edits."""

    _configure_logging(verbose)

    async def _preview(session: GridSession) -> None:
        console.print_json(session.gateway.preview_payload())

    _run(_with_session(preset, branch=branch, plan=plan, year=year, token=token, edits=assignments or [], action=_preview))


@app.command()
def save(
    preset: str,
    branch: int = BRANCH,
    plan: Optional[int] = PLAN,
    year: Optional[int] = YEAR,
    token: Optional[str] = TOKEN,
    assignments: Optional[List[str]] = SET,
    verbose: bool = VERBOSE,
) -> None:
    """Apply edits and save them; exits non-zero when the save fails."""

    _configure_logging(verbose)

    async def _save(session: GridSession) -> bool:
        outcome = await session.save()
        _print_notice(outcome.notice)
        if outcome.ok:
            console.print(_render(session))
        return outcome.ok

    ok = _run(_with_session(preset, branch=branch, plan=plan, year=year, token=token, edits=assignments or [], action=_save))
    if not ok:
        raise typer.Exit(code=1)


@app.command()
def export(
    preset: str,
    out: Path = typer.Option(Path("outputs/plan.xlsx"), "--out", "-o", help="Workbook to write."),
    branch: int = BRANCH,
    plan: Optional[int] = PLAN,
    year: Optional[int] = YEAR,
    token: Optional[str] = TOKEN,
    verbose: bool = VERBOSE,
) -> None:
    """Export a loaded grid page with totals to an Excel workbook."""

    _configure_logging(verbose)

    async def _export(session: GridSession) -> Path:
        return export_grid(session.model, out, title=session.config.name)

    path = _run(_with_session(preset, branch=branch, plan=plan, year=year, token=token, edits=[], action=_export))
    console.print(f"[green]Wrote[/green] {path}")


@app.command()
def login(token: str) -> None:
    """Store a bearer token for later commands."""

    settings = load_settings()
    session = save_auth(JsonFileStore(settings.token_store), token)
    _print_session(session)


@app.command()
def whoami() -> None:
    """Show the user and role decoded from the stored token."""

    settings = load_settings()
    session = load_session(JsonFileStore(settings.token_store))
    if session is None:
        console.print("[yellow]No token stored.[/yellow]")
        raise typer.Exit(code=1)
    _print_session(session)


@app.command("logout")
def logout_command() -> None:
    """Forget the stored token."""

    settings = load_settings()
    logout(JsonFileStore(settings.token_store))
    console.print("[green]Logged out[/green]")


@app.command()
def serve() -> None:
    """Run the reference ledger API locally."""

    from .api.main import run

    run()


def _print_session(session: Session) -> None:
    role = session.role.name if session.role is not None else "unknown"
    state = "[red]expired[/red]" if session.is_expired() else "[green]valid[/green]"
    console.print(json.dumps({"username": session.username, "user_id": session.user_id, "role": role}, ensure_ascii=False))
    console.print(f"token {state}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
