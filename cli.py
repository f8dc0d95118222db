import click
import csv
import logging
import queue
import sqlalchemy.exc
from io import StringIO
from config.settings import get_settings
from core.database.operations import create_db_engine, init_db
from core.exceptions import NoListingsError, ProductNotFoundError
from core.pipeline.product_service import ProductService
from core.scheduler.refresh import RefreshScheduler
from tabulate import tabulate
import traceback

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("price-cli")

FORMAT_OPTION = click.option(
    "--format-type",
    "-f",
    type=click.Choice(["text", "table", "csv"]),
    default="table",
    help="Output format (default: table)",
)
OUTPUT_OPTION = click.option("--output", "-o", type=click.Path(), help="Save results to file")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx, verbose):
    """Track product prices across Indian e-commerce platforms."""
    # Store shared state in the Click context instead of global variables
    ctx.ensure_object(dict)
    ctx.obj["VERBOSE"] = verbose
    if "SETTINGS" not in ctx.obj:
        ctx.obj["SETTINGS"] = get_settings()

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug logging enabled")


def get_service(ctx) -> ProductService:
    """Build the product service once per invocation."""
    if "SERVICE" not in ctx.obj:
        ctx.obj["SERVICE"] = ProductService.from_settings(ctx.obj["SETTINGS"])
    return ctx.obj["SERVICE"]


def report_error(ctx, e):
    """Print a readable message for a failed command and exit with status 1."""
    if isinstance(e, NoListingsError):
        click.echo(f"No data: {str(e)}")
    elif isinstance(e, ProductNotFoundError):
        click.echo(f"Error: {str(e)}")
    elif isinstance(e, sqlalchemy.exc.SQLAlchemyError):
        # Database-specific errors
        click.echo(f"Database error: {str(e)}")
        click.echo("Run 'init' first if the tables do not exist yet.")
    elif isinstance(e, ValueError):
        click.echo(f"Value error: {str(e)}")
    else:
        error_str = str(e).lower()
        if "network" in error_str or "connection" in error_str or "timeout" in error_str:
            click.echo(f"Network error: {str(e)}")
            click.echo(
                "This appears to be a network-related error. Check your internet connection."
            )
        elif "permission" in error_str:
            click.echo(f"Permission error: {str(e)}")
        else:
            click.echo(f"Unexpected error: {str(e)}")

    # Always show traceback in verbose mode
    if ctx.obj["VERBOSE"]:
        click.echo(traceback.format_exc())
    ctx.exit(1)


def emit(result_output, output):
    """Write results to a file or the console."""
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(result_output)
        click.echo(f"Results written to {output}")
    else:
        click.echo("\n" + result_output)


@cli.command()
@click.pass_context
def init(ctx):
    """Initialize the database."""
    try:
        init_db(create_db_engine(ctx.obj["SETTINGS"]))
    except Exception as e:  # pylint: disable=broad-exception-caught
        report_error(ctx, e)
    click.echo("Database initialized!")


@cli.command()
@click.argument("name")
@FORMAT_OPTION
@OUTPUT_OPTION
@click.pass_context
def add(ctx, name, format_type, output):
    """Start tracking a product and fetch its current prices."""
    click.echo(f"Fetching prices for '{name}'...")
    try:
        product, listings = get_service(ctx).add_product(name)
    except Exception as e:  # pylint: disable=broad-exception-caught
        report_error(ctx, e)
        return

    click.echo(f"Tracking product #{product.id}: {product.name}")
    emit(format_listings(listings, format_type), output)


@cli.command()
@click.argument("name")
@FORMAT_OPTION
@OUTPUT_OPTION
@click.pass_context
def compare(ctx, name, format_type, output):
    """Compare prices for a product without saving anything."""
    click.echo(f"Comparing prices for '{name}'...")
    try:
        listings = get_service(ctx).compare(name)
    except Exception as e:  # pylint: disable=broad-exception-caught
        report_error(ctx, e)
        return

    emit(format_listings(listings, format_type), output)


@cli.command(name="list")
@click.option("--search", "-s", help="Only products whose name contains this text")
@click.option("--limit", "-l", type=int, default=None, help="Maximum number of products")
@click.pass_context
def list_products(ctx, search, limit):
    """List tracked products."""
    try:
        gateway = get_service(ctx).gateway
        products = gateway.search_products(search, limit or 10) if search else gateway.list_products(limit)
    except Exception as e:  # pylint: disable=broad-exception-caught
        report_error(ctx, e)
        return

    if not products:
        click.echo("No products tracked yet.")
        return

    table_data = [
        [p.id, truncate(p.name), p.last_updated.strftime("%Y-%m-%d %H:%M") if p.last_updated else "-"]
        for p in products
    ]
    click.echo(tabulate(table_data, headers=["ID", "Product", "Last Updated"], tablefmt="grid"))


@cli.command()
@click.argument("product_id", type=int)
@FORMAT_OPTION
@OUTPUT_OPTION
@click.pass_context
def show(ctx, product_id, format_type, output):
    """Show the stored listings of a product."""
    try:
        service = get_service(ctx)
        product = service.get_product(product_id)
        listings = service.gateway.get_listings(product_id)
    except Exception as e:  # pylint: disable=broad-exception-caught
        report_error(ctx, e)
        return

    click.echo(f"#{product.id} {product.name}")
    emit(format_listings(listings, format_type), output)


@cli.command()
@click.argument("product_id", type=int)
@FORMAT_OPTION
@OUTPUT_OPTION
@click.pass_context
def refresh(ctx, product_id, format_type, output):
    """Fetch fresh prices for one tracked product."""
    try:
        listings = get_service(ctx).refresh_product(product_id)
    except Exception as e:  # pylint: disable=broad-exception-caught
        report_error(ctx, e)
        return

    emit(format_listings(listings, format_type), output)


@cli.command(name="refresh-all")
@click.pass_context
def refresh_all(ctx):
    """Refresh every tracked product once."""
    try:
        scheduler = RefreshScheduler.from_settings(get_service(ctx), ctx.obj["SETTINGS"])
        report = scheduler.trigger().result()
        scheduler.stop()
    except Exception as e:  # pylint: disable=broad-exception-caught
        report_error(ctx, e)
        return

    click.echo(format_report(report))


@cli.command()
@click.argument("listing_id", type=int)
@click.option("--days", "-d", type=int, default=30, help="Number of days to look back (default: 30)")
@FORMAT_OPTION
@OUTPUT_OPTION
@click.pass_context
def history(ctx, listing_id, days, format_type, output):
    """Show the price history of one platform listing."""
    try:
        gateway = get_service(ctx).gateway
        listing = gateway.get_listing(listing_id)
        if listing is None:
            click.echo(f"Error: Listing {listing_id} not found.")
            ctx.exit(1)
        points = gateway.get_price_history(listing_id, days)
    except click.exceptions.Exit:
        raise
    except Exception as e:  # pylint: disable=broad-exception-caught
        report_error(ctx, e)
        return

    if not points:
        click.echo(f"No price history in the last {days} days.")
        return

    rows = [[p.recorded_at.strftime("%Y-%m-%d %H:%M"), p.price] for p in points]
    if format_type == "text":
        lines = [f"{listing.platform}: {len(rows)} price points"]
        lines.extend(f"   {date}  ₹{price:,.2f}" for date, price in rows)
        result_output = "\n".join(lines)
    elif format_type == "csv":
        out = StringIO()
        writer = csv.writer(out)
        writer.writerow(["Date", "Price"])
        writer.writerows([date, f"{price:.2f}"] for date, price in rows)
        result_output = out.getvalue()
    else:
        result_output = tabulate(
            [[date, f"₹{price:,.2f}"] for date, price in rows],
            headers=["Date", f"{listing.platform} Price"],
            tablefmt="grid",
        )
    emit(result_output, output)


@cli.command()
@click.option("--days", "-d", type=int, default=None,
              help="Delete price points older than this many days (default: HISTORY_RETENTION_DAYS)")
@click.pass_context
def prune(ctx, days):
    """Delete old price history."""
    days = days if days is not None else ctx.obj["SETTINGS"].HISTORY_RETENTION_DAYS
    try:
        deleted = get_service(ctx).gateway.prune_history(days)
    except Exception as e:  # pylint: disable=broad-exception-caught
        report_error(ctx, e)
        return
    click.echo(f"Deleted {deleted} price points older than {days} days.")


@cli.command()
@click.argument("product_id", type=int)
@click.pass_context
def recommend(ctx, product_id):
    """Suggest where to buy a tracked product."""
    try:
        recommendation = get_service(ctx).recommend(product_id)
    except Exception as e:  # pylint: disable=broad-exception-caught
        report_error(ctx, e)
        return

    if recommendation is None:
        click.echo("No priced listings stored for this product yet.")
        return

    best, rated = recommendation.best_price, recommendation.best_rated
    click.echo(f"Best price: {best.platform} at ₹{best.price:,.2f}")
    if best.offer_text:
        click.echo(f"   Offer: {best.offer_text}")
    click.echo(f"Best rated: {rated.platform} with {rated.rating:.1f} stars")
    if not recommendation.same_platform:
        click.echo(f"   Price: ₹{rated.price:,.2f} (₹{recommendation.price_gap:,.2f} more)")
    click.echo(f"Recommendation: {recommendation.advice}")


@cli.command()
@click.option("--interval", "-i", type=int, default=None,
              help="Minutes between refresh passes (default: AUTO_REFRESH_INTERVAL_MINUTES)")
@click.option("--now", is_flag=True, help="Run a pass immediately before waiting")
@click.pass_context
def watch(ctx, interval, now):
    """Keep refreshing tracked products until interrupted."""
    settings = ctx.obj["SETTINGS"]
    scheduler = RefreshScheduler.from_settings(get_service(ctx), settings)
    if interval:
        scheduler.interval_seconds = interval * 60

    scheduler.start()
    if now:
        scheduler.trigger()
    click.echo(f"Refreshing every {scheduler.interval_seconds / 60:.0f} minutes. Press Ctrl+C to stop.")
    try:
        while True:
            try:
                report = scheduler.results.get(timeout=1)
            except queue.Empty:
                continue
            click.echo(format_report(report))
    except KeyboardInterrupt:
        click.echo("Stopping...")
    finally:
        scheduler.stop()


def truncate(text, width=40):
    if len(text) > width:
        return text[: width - 3] + "..."
    return text


def format_report(report):
    line = (
        f"{report.trigger.capitalize()} refresh finished: "
        f"{len(report.refreshed)} refreshed, {len(report.failed)} failed"
    )
    if report.failed:
        line += f" (failed ids: {', '.join(str(i) for i in report.failed)})"
    if report.stopped_early:
        line += " [stopped early]"
    return line


def format_listings(listings, format_type):
    """Format platform listings based on specified format type."""
    if not listings:
        return "No listings found."

    if format_type == "text":
        lines = [f"Found {len(listings)} platforms:"]
        for i, listing in enumerate(listings, 1):
            lines.append(f"\n{i}. {listing.platform}")
            lines.append(f"   Price: ₹{listing.price:,.2f}")
            lines.append(f"   Rating: {listing.rating:.1f} ({listing.review_count:,} reviews)")
            lines.append(f"   Seller: {listing.seller}")
            lines.append(f"   Delivery: {listing.delivery_estimate}")
            lines.append(f"   Availability: {listing.availability.value}")
            if listing.offer_text:
                lines.append(f"   Offer: {listing.offer_text}")
            if listing.product_link:
                lines.append(f"   URL: {listing.product_link}")

        return "\n".join(lines)

    elif format_type == "csv":
        output = StringIO()
        writer = csv.writer(output)
        writer.writerow([
            "Listing ID", "Platform", "Price", "Rating", "Reviews", "Seller",
            "Delivery", "Return Policy", "Warranty", "Offer", "Availability", "URL",
        ])
        for listing in listings:
            writer.writerow([
                listing.listing_id or "",
                listing.platform,
                f"{listing.price:.2f}",
                f"{listing.rating:.1f}",
                listing.review_count,
                listing.seller,
                listing.delivery_estimate,
                listing.return_policy,
                listing.warranty,
                listing.offer_text,
                listing.availability.value,
                listing.product_link,
            ])
        return output.getvalue()

    else:  # table format
        table_data = []
        for listing in listings:
            table_data.append([
                listing.listing_id or "-",
                listing.platform,
                f"₹{listing.price:,.2f}",
                f"{listing.rating:.1f}",
                f"{listing.review_count:,}",
                truncate(listing.seller, 25),
                listing.delivery_estimate,
                listing.availability.value,
            ])

        headers = ["ID", "Platform", "Price", "Rating", "Reviews", "Seller", "Delivery", "Availability"]
        return tabulate(table_data, headers=headers, tablefmt="grid")


if __name__ == "__main__":
    # This runs the Click application
    cli.main(obj={})
