"""CSV import command."""

import click

from ledgerpost.cli.business_resolution import resolve_business_or_exit
from ledgerpost.cli.error_handling import handle_domain_error
from ledgerpost.config import with_import_overrides
from ledgerpost.domain.accounts import ChartOfAccountsService
from ledgerpost.domain.importer import BatchImportProcessor
from ledgerpost.utils.records import read_csv_records

MAX_ERRORS_SHOWN = 50


@click.command("import")
@click.argument("csv_file", type=click.Path(exists=True))
@click.option("--business", required=True, help="Business name or ID")
@click.option("--bank-account", type=int, help="Bank account the statement belongs to")
@click.option("--batch-size", type=int, help="Transactions per atomic write")
@click.option("--max-retries", type=int, help="Retries of a failed batch write")
@click.option(
    "--detect-duplicates/--no-detect-duplicates",
    default=None,
    help="Skip rows that match existing transactions",
)
@click.option("--dayfirst", is_flag=True, help="Read ambiguous dates as day/month/year")
@click.pass_context
def import_csv(
    ctx,
    csv_file: str,
    business: str,
    bank_account: int | None,
    batch_size: int | None,
    max_retries: int | None,
    detect_duplicates: bool | None,
    dayfirst: bool,
):
    """Import transactions from a CSV file."""
    db = ctx.obj["db"]
    business_id = resolve_business_or_exit(ctx, business)

    try:
        config = with_import_overrides(
            ctx.obj["config"],
            batch_size=batch_size,
            max_retries=max_retries,
            detect_duplicates=detect_duplicates,
        )
        records = read_csv_records(csv_file, dayfirst=dayfirst)
        account_map = ChartOfAccountsService(db).build_account_map(business_id)
    except (ValueError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)

    processor = BatchImportProcessor(db, config.importing, config.duplicates)

    def show_progress(progress):
        click.echo(f"  {progress.processed}/{progress.total} processed", err=True)

    result = processor.import_transactions(
        business_id,
        records,
        account_map,
        bank_account_id=bank_account,
        progress_callback=show_progress,
    )
    if not result.success:
        handle_domain_error(ctx, ValueError(result.error))

    click.echo("\nImport complete:")
    click.echo(
        f"  {result.imported_count} imported, {result.failed_count} failed, "
        f"{result.skipped_count} skipped"
    )
    if result.possible_matches:
        click.echo(f"  Possible duplicates to review: {len(result.possible_matches)}")
        for match in result.possible_matches:
            click.echo(
                f"    Row {match.row}: transaction {match.transaction_id} "
                f"(confidence {match.confidence:.2f})"
            )
    if result.errors:
        click.echo(f"  Errors: {len(result.errors)}")
        for error in result.errors[:MAX_ERRORS_SHOWN]:
            click.echo(f"    Row {error.row}: {error.message}", err=True)
        if len(result.errors) > MAX_ERRORS_SHOWN:
            click.echo(f"    ... and {len(result.errors) - MAX_ERRORS_SHOWN} more", err=True)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_csv)
