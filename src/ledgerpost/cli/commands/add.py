"""Add transaction command."""

import click

from ledgerpost.cli.business_resolution import resolve_business_or_exit
from ledgerpost.cli.error_handling import handle_domain_error
from ledgerpost.domain.entities import PostingTemplate, RawTransaction, TransactionType
from ledgerpost.domain.transaction import TransactionService
from ledgerpost.utils.amount_parser import parse_amount
from ledgerpost.utils.date_parser import parse_date


@click.command("add")
@click.option("--business", required=True, help="Business name or ID")
@click.option(
    "--date",
    "txn_date",
    required=True,
    help="Transaction date (YYYY-MM-DD, 'today' or 'yesterday')",
)
@click.option("--amount", required=True, help="Transaction amount (e.g., 123.45)")
@click.option(
    "--direction",
    required=True,
    type=click.Choice([t.value for t in TransactionType], case_sensitive=False),
)
@click.option("--description", required=True, help="Transaction description")
@click.option("--category", help="Category name, account code or keywords")
@click.option("--bank-account", type=int, help="Bank account ID the money moved through")
@click.option(
    "--template",
    type=click.Choice([t.value for t in PostingTemplate], case_sensitive=False),
    help="Posting template for special transactions",
)
@click.option("--tax", help="Sales tax included in an income amount")
@click.option("--reference", help="Reference number")
@click.pass_context
def add_transaction(
    ctx,
    business: str,
    txn_date: str,
    amount: str,
    direction: str,
    description: str,
    category: str | None,
    bank_account: int | None,
    template: str | None,
    tax: str | None,
    reference: str | None,
):
    """Post a single transaction.

    Examples:
        ledgerpost add --business 1 --date 2024-03-01 --amount 1200 --direction EXPENSE --description "March rent" --category Rent
        ledgerpost add --business 1 --date today --amount 107 --tax 7 --direction INCOME --description "Cake order"
    """
    business_id = resolve_business_or_exit(ctx, business)
    service = TransactionService(ctx.obj["db"])

    try:
        raw = RawTransaction(
            date=parse_date(txn_date),
            description=description,
            amount=abs(parse_amount(amount)),
            direction=TransactionType(direction.upper()),
            category=category,
            reference=reference,
            template=PostingTemplate(template.lower()) if template else None,
            tax_amount=parse_amount(tax) if tax else None,
        )
        transaction_id = service.create_transaction(business_id, raw, bank_account_id=bank_account)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created transaction {transaction_id}")
    click.echo(f"  Date: {raw.date}")
    click.echo(f"  Amount: {raw.amount:,.2f} ({raw.direction.value})")
    click.echo(f"  Description: {description}")
    for posting in service.get_postings(transaction_id):
        side = "Dr" if posting.debit_amount > 0 else "Cr"
        value = posting.debit_amount if posting.debit_amount > 0 else posting.credit_amount
        click.echo(f"    {side} account {posting.account_id}: {value:,.2f}")


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_transaction)
