"""Main CLI entry point."""

import click

from ledgerpost.config import CONFIG_ENV_VAR, load_config
from ledgerpost.database.factories import DB_PATH_ENV_VAR, create_sqlite_database
from ledgerpost.domain.errors import DomainError
from ledgerpost.logging_setup import setup_logging, verbosity_to_level

# Import and register all commands at module level
from ledgerpost.cli.commands import (
    accounts,
    add,
    balance,
    bank,
    business,
    import_cmd,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help=f"Path to database file (overrides {DB_PATH_ENV_VAR} environment variable)",
    envvar=DB_PATH_ENV_VAR,
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(),
    help=f"Path to TOML config file (overrides {CONFIG_ENV_VAR} environment variable)",
    envvar=CONFIG_ENV_VAR,
)
@click.option("-v", "--verbose", count=True, help="Increase log output (-v info, -vv debug)")
@click.pass_context
def cli(ctx, db_path: str | None, config_path: str | None, verbose: int):
    """Ledgerpost - double-entry ledger posting for small businesses.

    Import bank statements into a balanced double-entry ledger, post
    individual transactions and reconcile bank balances.
    """
    ctx.ensure_object(dict)
    setup_logging(verbosity_to_level(verbose))

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            ctx.obj["config"] = load_config(config_path)
        except (DomainError, FileNotFoundError) as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)

        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
business.register_commands(cli)
accounts.register_commands(cli)
bank.register_commands(cli)
add.register_commands(cli)
import_cmd.register_commands(cli)
balance.register_commands(cli)
transaction.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
