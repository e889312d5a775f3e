"""Chart-of-accounts commands."""

import click

from ledgerpost.cli.business_resolution import resolve_business_or_exit
from ledgerpost.cli.error_handling import handle_domain_error
from ledgerpost.domain.accounts import ChartOfAccountsService
from ledgerpost.domain.entities import AccountType

ACCOUNT_TYPE_CHOICE = click.Choice([t.value for t in AccountType], case_sensitive=False)


@click.group("accounts")
def accounts_group():
    """Manage the chart of accounts."""
    pass


@accounts_group.command("init")
@click.option("--business", required=True, help="Business name or ID")
@click.pass_context
def init_chart(ctx, business: str):
    """Create the default chart of accounts (existing codes are kept)."""
    business_id = resolve_business_or_exit(ctx, business)
    service = ChartOfAccountsService(ctx.obj["db"])
    created = service.seed_default_chart(business_id)
    click.echo(f"Created {created} accounts")


@accounts_group.command("list")
@click.option("--business", required=True, help="Business name or ID")
@click.option("--all", "show_all", is_flag=True, help="Include inactive accounts")
@click.pass_context
def list_accounts(ctx, business: str, show_all: bool):
    """List accounts ordered by code."""
    business_id = resolve_business_or_exit(ctx, business)
    service = ChartOfAccountsService(ctx.obj["db"])
    accounts = service.list_accounts(business_id, include_inactive=show_all)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nChart of accounts:")
    click.echo("-" * 60)
    for acc in accounts:
        status = "" if acc.is_active else " (inactive)"
        click.echo(f"{acc.code:>6s} | {acc.name:32s} | {acc.type.value}{status}")


@accounts_group.command("create")
@click.argument("code", metavar="CODE")
@click.argument("name", metavar="NAME")
@click.option("--type", "account_type", required=True, type=ACCOUNT_TYPE_CHOICE)
@click.option("--business", required=True, help="Business name or ID")
@click.option("--description", help="Description, also used when matching categories")
@click.pass_context
def create_account(ctx, code: str, name: str, account_type: str, business: str, description: str | None):
    """Add an account to the chart.

    Examples:
        ledgerpost accounts create 6150 "Software Subscriptions" --type EXPENSE --business 1
    """
    business_id = resolve_business_or_exit(ctx, business)
    service = ChartOfAccountsService(ctx.obj["db"])
    try:
        account_id = service.create_account(
            business_id=business_id,
            code=code,
            name=name,
            account_type=AccountType(account_type.upper()),
            description=description,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account {code} '{name}' (ID: {account_id})")


@accounts_group.command("deactivate")
@click.argument("code", metavar="CODE")
@click.option("--business", required=True, help="Business name or ID")
@click.pass_context
def deactivate_account(ctx, code: str, business: str):
    """Exclude an account from new postings, keeping its history."""
    business_id = resolve_business_or_exit(ctx, business)
    service = ChartOfAccountsService(ctx.obj["db"])
    try:
        account = service.require_account_by_code(business_id, code)
        service.deactivate_account(account.id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deactivated account {code}")


def register_commands(cli):
    """Register chart-of-accounts commands with main CLI."""
    cli.add_command(accounts_group)
