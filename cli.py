import logging

import click
from dotenv import load_dotenv

from db import init_supabase, setup_logging
from services.errors import DatabaseError, NotFoundError
from services.seed import seed_all
from services.stripe_ipfilter import ip_filter
from services.users import promote_admin

load_dotenv()

# --- Setup logging once for CLI ---
setup_logging()
logger = logging.getLogger("armory_cli")


def _require_database():
    if init_supabase() is None:
        raise click.ClickException("Supabase is not configured (set SUPABASE_URL and SUPABASE_KEY)")


@click.group()
def cli():
    """The Virtual Armory maintenance commands."""


@cli.command()
def seed():
    """Fill empty reference tables with the default rows."""
    _require_database()
    try:
        counts = seed_all()
    except DatabaseError as e:
        raise click.ClickException(str(e))
    for table, inserted in counts.items():
        if inserted:
            click.echo(f"✅ {table}: {inserted} rows")
        else:
            click.echo(f"{table}: already seeded")


@cli.command("promote-admin")
@click.argument("email")
def promote_admin_cmd(email):
    """Give the user with EMAIL the admin role."""
    _require_database()
    try:
        user = promote_admin(email)
    except NotFoundError as e:
        raise click.ClickException(str(e))
    logger.info(f"Promoted user id={user['id']} to admin")
    click.echo(f"✅ {user['email']} is now an admin")


@cli.group()
def ipfilter():
    """Inspect the Stripe webhook IP filter."""


@ipfilter.command()
def refresh():
    """Download Stripe's IP ranges now."""
    if not ip_filter.refresh():
        raise click.ClickException("Every Stripe IP source failed")
    click.echo(f"✅ Loaded {ip_filter.num_ranges} IP ranges")


@ipfilter.command()
def status():
    """Show the filter state after a fresh download."""
    ip_filter.refresh()
    state = ip_filter.status()
    click.echo(f"Enabled: {'yes' if state.enabled else 'no'}")
    click.echo(f"Last update: {state.last_update.isoformat() if state.last_update else 'never'}")
    click.echo(f"Ranges: {state.num_ranges}")
    if state.failed_sources:
        click.echo(f"Failed sources: {', '.join(state.failed_sources)}")


@cli.command("check-ip")
@click.argument("ip")
def check_ip(ip):
    """Report whether IP belongs to Stripe."""
    ip_filter.refresh()
    if ip_filter.is_stripe_ip(ip):
        click.echo(f"{ip} is a Stripe IP")
    else:
        click.echo(f"{ip} is not a Stripe IP")


if __name__ == "__main__":
    cli()
