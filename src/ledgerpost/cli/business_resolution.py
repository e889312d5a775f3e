"""CLI helper for business resolution."""

from __future__ import annotations

import click

from ledgerpost.cli.error_handling import handle_domain_error
from ledgerpost.domain.business import BusinessService
from ledgerpost.utils.business_resolver import resolve_business


def resolve_business_or_exit(ctx: click.Context, business: str | int) -> int:
    """Resolve business name or ID, or exit with a CLI error."""
    try:
        return resolve_business(BusinessService(ctx.obj["db"]), business)
    except ValueError as exc:
        handle_domain_error(ctx, exc)
