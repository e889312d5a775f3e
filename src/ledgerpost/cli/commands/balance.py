"""Balance, reconciliation and summary commands."""

import click

from ledgerpost.cli.business_resolution import resolve_business_or_exit
from ledgerpost.cli.error_handling import handle_domain_error
from ledgerpost.domain.accounts import ChartOfAccountsService
from ledgerpost.domain.balances import BalanceService
from ledgerpost.utils.date_parser import parse_date


@click.command("balance")
@click.argument("account_code", metavar="ACCOUNT_CODE")
@click.option("--business", required=True, help="Business name or ID")
@click.option("--as-of", help="Only count transactions up to this date")
@click.pass_context
def account_balance(ctx, account_code: str, business: str, as_of: str | None):
    """Show an account's balance calculated from its postings.

    Examples:
        ledgerpost balance 1000 --business 1
        ledgerpost balance 6100 --business 1 --as-of 2024-03-31
    """
    db = ctx.obj["db"]
    business_id = resolve_business_or_exit(ctx, business)
    try:
        cutoff = parse_date(as_of) if as_of else None
        account = ChartOfAccountsService(db).require_account_by_code(business_id, account_code)
        balance = BalanceService(db, ctx.obj["config"].reconciliation).calculate_account_balance(
            account.id, as_of=cutoff
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    suffix = f" as of {cutoff}" if cutoff else ""
    click.echo(f"{account.code} {account.name}: {balance:,.2f}{suffix}")


@click.command("reconcile")
@click.argument("bank_account_id", type=int)
@click.pass_context
def reconcile(ctx, bank_account_id: int):
    """Compare a bank feed balance with the ledger. Never changes data."""
    service = BalanceService(ctx.obj["db"], ctx.obj["config"].reconciliation)
    try:
        result = service.reconcile(bank_account_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Bank balance:   {result.api_balance:,.2f}")
    click.echo(f"Ledger balance: {result.calculated_balance:,.2f}")
    click.echo(f"Difference:     {result.difference:,.2f}")
    if result.is_reconciled:
        click.echo("Reconciled")
        return

    click.echo("Not reconciled. Possible reasons:")
    for reason in result.possible_reasons:
        click.echo(f"  - {reason}")


@click.command("summary")
@click.option("--business", required=True, help="Business name or ID")
@click.pass_context
def balance_summary(ctx, business: str):
    """Totals across all bank accounts of a business."""
    business_id = resolve_business_or_exit(ctx, business)
    service = BalanceService(ctx.obj["db"], ctx.obj["config"].reconciliation)
    try:
        summary = service.get_balance_summary(business_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Total assets:      {summary.total_assets:,.2f}")
    click.echo(f"Total liabilities: {summary.total_liabilities:,.2f}")
    click.echo(f"Net worth:         {summary.net_worth:,.2f}")


def register_commands(cli):
    """Register balance commands with main CLI."""
    cli.add_command(account_balance)
    cli.add_command(reconcile)
    cli.add_command(balance_summary)
