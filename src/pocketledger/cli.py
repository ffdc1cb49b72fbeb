"""Operational CLI commands for PocketLedger."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Optional

import click

from .config import BaseConfig
from .context import AppContext, create_app_context
from .errors import ValidationError
from .logging_config import setup_logging
from .services.health import check_health
from .services.reports import DateRange, resolve_date_range
from .services.users import get_or_create_user, list_users


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """PocketLedger maintenance commands."""

    config = BaseConfig()
    setup_logging(config)
    app = create_app_context(config)
    ctx.obj = app
    ctx.call_on_close(app.dispose)


@cli.command("init-db")
@click.option("--username", default="local", show_default=True, help="Owner to create")
@click.option("--seed-categories", is_flag=True, default=False, help="Seed the default category tree")
@click.pass_obj
def init_db(app: AppContext, username: str, seed_categories: bool) -> None:
    """Create the schema and the owner row."""

    user = get_or_create_user(app.session_factory, username)
    click.echo(f"Database ready: {app.config.display_database_url}")
    click.echo(f"Owner: {user.username} (id={user.id})")
    if seed_categories:
        created = app.categories.seed_defaults(user_id=user.id)
        click.echo(f"Seeded {len(created)} categories")


@cli.command("health")
@click.pass_obj
def health(app: AppContext) -> None:
    """Report database connectivity; exits 1 when the database is down."""

    result = check_health(app.engine)
    click.echo(json.dumps(result, indent=2))
    if result["status"] != "ok":
        raise SystemExit(1)


@cli.command("verify-balances")
@click.option("--user-id", type=int, default=None, help="Only check this owner")
@click.option("--repair", is_flag=True, default=False, help="Rewrite drifted balances")
@click.pass_obj
def verify_balances(app: AppContext, user_id: Optional[int], repair: bool) -> None:
    """Compare cached balances with the posted transactions."""

    user_ids = [user_id] if user_id is not None else [user.id for user in list_users(app.session_factory)]
    drifted = 0
    for owner_id in user_ids:
        for drift in app.accounts.verify_balances(user_id=owner_id, repair=repair):
            drifted += 1
            click.echo(
                f"user={owner_id} account={drift.account_id} '{drift.name}': "
                f"cached {drift.cached} != computed {drift.computed}"
            )

    if not drifted:
        click.echo("All balances consistent")
        return
    if repair:
        click.echo(f"Repaired {drifted} account(s)")
        return
    click.echo(f"{drifted} account(s) drifted; rerun with --repair to fix")
    raise SystemExit(1)


@cli.command("summary")
@click.option("--user-id", type=int, required=True, help="Owner to report on")
@click.option(
    "--range",
    "date_range",
    type=click.Choice([preset.value for preset in DateRange]),
    default=None,
    help="Named date range; omit for all time",
)
@click.option("--start", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Custom start date")
@click.option("--end", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Custom end date")
@click.pass_obj
def summary(
    app: AppContext,
    user_id: int,
    date_range: Optional[str],
    start: Optional[datetime],
    end: Optional[datetime],
) -> None:
    """Print account, transaction and category spending summaries as JSON."""

    try:
        start_date, end_date = resolve_date_range(
            date_range,
            start_date=start.date() if start else None,
            end_date=end.date() if end else None,
        )
    except ValidationError as exc:
        raise click.UsageError(exc.message) from exc

    reports = app.reports
    payload = {
        "range": {
            "start": start_date.isoformat() if start_date else None,
            "end": end_date.isoformat() if end_date else None,
        },
        "accounts": reports.account_summary(user_id=user_id).to_dict(),
        "transactions": reports.transaction_summary(
            user_id=user_id, start_date=start_date, end_date=end_date
        ).to_dict(),
        "by_type": reports.transactions_by_type(
            user_id=user_id, start_date=start_date, end_date=end_date
        ),
        "category_spending": reports.category_spending(
            user_id=user_id, start_date=start_date, end_date=end_date
        ),
    }
    click.echo(json.dumps(payload, indent=2))


def main() -> None:
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
