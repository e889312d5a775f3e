"""Transaction management commands."""

import click

from ledgerpost.cli.business_resolution import resolve_business_or_exit
from ledgerpost.cli.error_handling import handle_domain_error
from ledgerpost.domain.entities import ReconciliationStatus
from ledgerpost.domain.transaction import TransactionService
from ledgerpost.utils.date_parser import parse_date


@click.group("transaction")
def transaction_group():
    """Inspect and maintain posted transactions."""
    pass


@transaction_group.command("list")
@click.option("--business", required=True, help="Business name or ID")
@click.option("--bank-account", type=int, help="Only this bank account")
@click.option("--start-date", help="Earliest date")
@click.option("--end-date", help="Latest date")
@click.pass_context
def list_transactions(
    ctx, business: str, bank_account: int | None, start_date: str | None, end_date: str | None
):
    """List transactions, newest first."""
    business_id = resolve_business_or_exit(ctx, business)
    service = TransactionService(ctx.obj["db"])
    try:
        transactions = service.list_transactions(
            business_id,
            start_date=parse_date(start_date) if start_date else None,
            end_date=parse_date(end_date) if end_date else None,
            bank_account_id=bank_account,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not transactions:
        click.echo("No transactions found.")
        return

    for txn in transactions:
        click.echo(
            f"{txn.id:5d} | {txn.date} | {txn.type.value:8s} | {txn.amount:>12,.2f} | "
            f"{txn.description[:40]}"
        )


@transaction_group.command("show")
@click.argument("transaction_id", type=int)
@click.pass_context
def show_transaction(ctx, transaction_id: int):
    """Show a transaction and its postings."""
    service = TransactionService(ctx.obj["db"])
    txn = service.get_transaction(transaction_id)
    if txn is None:
        handle_domain_error(ctx, ValueError(f"Transaction {transaction_id} not found"))

    click.echo(f"Transaction {txn.id}: {txn.description}")
    click.echo(f"  Date: {txn.date}")
    click.echo(f"  Type: {txn.type.value}")
    click.echo(f"  Amount: {txn.amount:,.2f}")
    click.echo(f"  Status: {txn.reconciliation_status.value}")
    for posting in service.get_postings(transaction_id):
        click.echo(
            f"    account {posting.account_id:4d} | Dr {posting.debit_amount:>10,.2f} | "
            f"Cr {posting.credit_amount:>10,.2f}"
        )


@transaction_group.command("recategorize")
@click.argument("transaction_id", type=int)
@click.argument("category")
@click.pass_context
def recategorize(ctx, transaction_id: int, category: str):
    """Move a transaction to another income or expense account."""
    try:
        account_id = TransactionService(ctx.obj["db"]).recategorize(transaction_id, category)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Transaction {transaction_id} now posted to account {account_id}")


@transaction_group.command("status")
@click.argument("transaction_id", type=int)
@click.argument(
    "status",
    type=click.Choice([s.value for s in ReconciliationStatus], case_sensitive=False),
)
@click.pass_context
def set_status(ctx, transaction_id: int, status: str):
    """Set a transaction's reconciliation status."""
    try:
        TransactionService(ctx.obj["db"]).set_reconciliation_status(
            transaction_id, ReconciliationStatus(status.upper())
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Transaction {transaction_id} marked {status.upper()}")


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.pass_context
def delete_transaction(ctx, transaction_id: int):
    """Delete a transaction and its postings."""
    try:
        TransactionService(ctx.obj["db"]).delete_transaction(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transaction {transaction_id}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group)
