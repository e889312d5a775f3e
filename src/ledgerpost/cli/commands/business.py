"""Business management commands."""

import click

from ledgerpost.cli.error_handling import handle_domain_error
from ledgerpost.domain.business import BusinessService


@click.group("business")
def business_group():
    """Manage businesses."""
    pass


@business_group.command("create")
@click.argument("name", metavar="NAME")
@click.option(
    "--empty-chart",
    is_flag=True,
    help="Do not create the default chart of accounts",
)
@click.pass_context
def create_business(ctx, name: str, empty_chart: bool):
    """Create a business with the default chart of accounts.

    Examples:
        ledgerpost business create "Acme Bakery"
        ledgerpost business create "Side Project" --empty-chart
    """
    service = BusinessService(ctx.obj["db"])
    try:
        business_id = service.create_business(name, seed_chart=not empty_chart)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created business '{name}' (ID: {business_id})")


@business_group.command("list")
@click.pass_context
def list_businesses(ctx):
    """List all businesses."""
    service = BusinessService(ctx.obj["db"])
    businesses = service.list_businesses()
    if not businesses:
        click.echo("No businesses found.")
        return

    click.echo("\nBusinesses:")
    click.echo("-" * 40)
    for biz in businesses:
        click.echo(f"ID: {biz.id:3d} | {biz.name}")


def register_commands(cli):
    """Register business commands with main CLI."""
    cli.add_command(business_group)
