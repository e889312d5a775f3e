"""Bank account commands."""

from datetime import date

import click

from ledgerpost.cli.business_resolution import resolve_business_or_exit
from ledgerpost.cli.error_handling import handle_domain_error
from ledgerpost.domain.accounts import ChartOfAccountsService
from ledgerpost.domain.balances import BalanceService
from ledgerpost.domain.bank_accounts import BankAccountService
from ledgerpost.domain.transaction import TransactionService
from ledgerpost.utils.amount_parser import parse_amount
from ledgerpost.utils.date_parser import parse_date


@click.group("bank")
def bank_group():
    """Manage bank accounts."""
    pass


@bank_group.command("create")
@click.argument("name", metavar="NAME")
@click.option("--business", required=True, help="Business name or ID")
@click.option("--ledger-code", required=True, help="Code of the linked asset or liability account")
@click.option("--external", is_flag=True, help="Balance is reported by a bank feed")
@click.pass_context
def create_bank_account(ctx, name: str, business: str, ledger_code: str, external: bool):
    """Create a bank account linked to a ledger account.

    Examples:
        ledgerpost bank create "Business Checking" --business 1 --ledger-code 1000
        ledgerpost bank create "Visa" --business 1 --ledger-code 2100 --external
    """
    db = ctx.obj["db"]
    business_id = resolve_business_or_exit(ctx, business)
    try:
        ledger = ChartOfAccountsService(db).require_account_by_code(business_id, ledger_code)
        bank_account_id = BankAccountService(db).create_bank_account(
            business_id=business_id,
            name=name,
            ledger_account_id=ledger.id,
            externally_synced=external,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created bank account '{name}' (ID: {bank_account_id})")


@bank_group.command("list")
@click.option("--business", required=True, help="Business name or ID")
@click.pass_context
def list_bank_accounts(ctx, business: str):
    """List bank accounts."""
    business_id = resolve_business_or_exit(ctx, business)
    bank_accounts = BankAccountService(ctx.obj["db"]).list_bank_accounts(business_id)
    if not bank_accounts:
        click.echo("No bank accounts found.")
        return

    click.echo("\nBank accounts:")
    click.echo("-" * 60)
    for bank in bank_accounts:
        click.echo(f"ID: {bank.id:3d} | {bank.name:24s} | {bank.balance_source.value}")


@bank_group.command("sync")
@click.argument("bank_account_id", type=int)
@click.argument("balance")
@click.pass_context
def sync_balance(ctx, bank_account_id: int, balance: str):
    """Record the balance reported by the bank feed."""
    try:
        amount = parse_amount(balance)
        BankAccountService(ctx.obj["db"]).record_sync(bank_account_id, amount)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded external balance {amount:,.2f} for bank account {bank_account_id}")


@bank_group.command("opening-balance")
@click.argument("bank_account_id", type=int)
@click.argument("amount")
@click.option("--date", "as_of", help="Date of the opening balance (default: today)")
@click.pass_context
def opening_balance(ctx, bank_account_id: int, amount: str, as_of: str | None):
    """Record a bank account's opening balance against Opening Balance Equity."""
    try:
        opening_amount = parse_amount(amount)
        opening_date = parse_date(as_of) if as_of else date.today()
        transaction_id = TransactionService(ctx.obj["db"]).create_opening_balance(
            bank_account_id, opening_amount, opening_date
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded opening balance (transaction {transaction_id})")


@bank_group.command("balance")
@click.argument("bank_account_id", type=int)
@click.pass_context
def bank_balance(ctx, bank_account_id: int):
    """Show a bank account's current balance and where it comes from."""
    config = ctx.obj["config"]
    service = BalanceService(ctx.obj["db"], config.reconciliation)
    try:
        result = service.get_bank_account_balance(bank_account_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Balance: {result.calculated_balance:,.2f} ({result.balance_source.value})")
    if result.last_calculated is not None:
        click.echo(f"As of: {result.last_calculated:%Y-%m-%d %H:%M}")


def register_commands(cli):
    """Register bank account commands with main CLI."""
    cli.add_command(bank_group)
