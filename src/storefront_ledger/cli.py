"""Command-line interface for Storefront Ledger."""

import argparse
import sys
from datetime import date
from pathlib import Path

from storefront_ledger.config import Settings, get_settings
from storefront_ledger.container import Container
from storefront_ledger.domain.catalog import DEFAULT_SHIPPING_OPTIONS, Product
from storefront_ledger.domain.orders import AccountingReport
from storefront_ledger.domain.value_objects import OrderStatus, TaxCategory
from storefront_ledger.exceptions import GatewayError, StorefrontLedgerError
from storefront_ledger.logging_config import configure_logging
from storefront_ledger.services.cart import get_shipping_option
from storefront_ledger.services.formatting import (
    format_kronor,
    format_minor,
    vat_specification,
)
from storefront_ledger.services.vat import gross_unit_price


def get_cli_settings(args: argparse.Namespace) -> Settings:
    """Settings with the global command-line overrides applied."""
    settings = get_settings()
    overrides: dict[str, object] = {}
    if args.database:
        overrides["database_path"] = Path(args.database)
    if args.cart:
        overrides["cart_path"] = Path(args.cart)
    return settings.model_copy(update=overrides) if overrides else settings


def create_container(args: argparse.Namespace) -> Container:
    return Container(settings=get_cli_settings(args))


def _print_report(report: AccountingReport) -> None:
    print(
        f"{'Order':<10} {'Datum':<11} {'Kund':<28} {'Inkl. moms':>12} "
        f"{'Moms':>10} {'Avgift':>10} {'Netto':>12}"
    )
    print("-" * 99)
    for row in report.rows:
        fee = "saknas" if row.fee_pending else format_minor(row.processor_fee)
        print(
            f"{row.order_number:<10} {row.date.isoformat():<11} {row.customer[:28]:<28} "
            f"{format_minor(row.amount_inc_tax):>12} {format_minor(row.total_tax):>10} "
            f"{fee:>10} {format_minor(row.net_payout):>12}"
        )
    totals = report.totals
    print("-" * 99)
    print(
        f"{'TOTALT':<10} {'':<11} {str(totals.order_count) + ' ordrar':<28} "
        f"{format_minor(totals.amount_inc_tax):>12} {format_minor(totals.total_tax):>10} "
        f"{format_minor(totals.processor_fee):>10} {format_minor(totals.net_payout):>12}"
    )
    if totals.fee_pending_count:
        print(f"Avgift saknas för {totals.fee_pending_count} order(s).")


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize a new database."""
    settings = get_cli_settings(args)
    db_path = Path(settings.database_path)

    if db_path.exists() and not args.force:
        print(f"Database already exists at {db_path}")
        print("Use --force to reinitialize (WARNING: will delete existing data)")
        return 1

    if db_path.exists() and args.force:
        db_path.unlink()

    db_path.parent.mkdir(parents=True, exist_ok=True)
    with Container(settings=settings) as container:
        _ = container.database

    print(f"Initialized database at {db_path}")
    return 0


def cmd_products_list(args: argparse.Namespace) -> int:
    with create_container(args) as container:
        products = container.catalog_service.list_in_stock()
        rates = container.pricing_service.rates

        if not products:
            print("No products in stock.")
            return 0

        print(f"{'ID':<38} {'Titel':<32} {'Kategori':<12} {'Exkl.':>8} {'Inkl.':>8}")
        print("-" * 102)
        for product in products:
            category = product.tax_category.value if product.tax_category else "-"
            gross = gross_unit_price(
                product.effective_price, rates.rate_for(product.tax_category)
            )
            print(
                f"{str(product.id):<38} {product.title[:32]:<32} {category:<12} "
                f"{product.effective_price:>8} {gross:>8}"
            )
    return 0


def cmd_products_add(args: argparse.Namespace) -> int:
    product = Product(
        title=args.title,
        price=args.price,
        tax_category=TaxCategory(args.category),
        original_price=args.original_price,
        discount_active=args.discount_active,
        description=args.description or "",
        sort_order=args.sort_order,
    )
    with create_container(args) as container:
        container.catalog_service.add_product(product)

    print(f"Added product {product.title} ({product.id})")
    return 0


def cmd_cart_show(args: argparse.Namespace) -> int:
    with create_container(args) as container:
        items = container.cart_service.items()
        if not items:
            print("Varukorgen är tom")
            return 0

        rates = container.pricing_service.rates
        for item in items:
            unit = gross_unit_price(item.unit_price_ex_tax, rates.rate_for(item.tax_category))
            print(
                f"{item.quantity:>3} x {item.title:<40} "
                f"{format_kronor(unit):>10} {format_kronor(unit * item.quantity):>10}"
            )
            print(f"      {item.product_id}")
    return 0


def cmd_cart_add(args: argparse.Namespace) -> int:
    with create_container(args) as container:
        items = container.cart_service.add_product(args.product_id, args.quantity)
    print(f"Cart now holds {sum(item.quantity for item in items)} item(s)")
    return 0


def cmd_cart_set(args: argparse.Namespace) -> int:
    with create_container(args) as container:
        items = container.cart_service.set_quantity(args.product_id, args.quantity)
    print(f"Cart now holds {sum(item.quantity for item in items)} item(s)")
    return 0


def cmd_cart_remove(args: argparse.Namespace) -> int:
    with create_container(args) as container:
        items = container.cart_service.remove(args.product_id)
    print(f"Cart now holds {sum(item.quantity for item in items)} item(s)")
    return 0


def cmd_cart_clear(args: argparse.Namespace) -> int:
    with create_container(args) as container:
        container.cart_service.clear()
    print("Cart cleared")
    return 0


def cmd_price(args: argparse.Namespace) -> int:
    """Print the VAT specification for the current cart."""
    with create_container(args) as container:
        pricing = container.pricing_service
        items = container.cart_service.items()
        shipping = get_shipping_option(args.shipping) if args.shipping else None
        percent = pricing.resolve_discount_code(args.discount)
        result = pricing.price_cart(items, shipping, percent)

    for line in vat_specification(result, pricing.rates):
        print(line)
    return 0


def cmd_checkout(args: argparse.Namespace) -> int:
    with create_container(args) as container:
        items = container.cart_service.items()
        try:
            result = container.checkout_service.submit(
                items,
                get_shipping_option(args.shipping),
                discount_code=args.discount,
                email=args.email,
                newsletter_optin=args.newsletter,
            )
        except GatewayError as e:
            print(f"Error: {e.user_message}")
            return 1

    for warning in result.warnings:
        print(f"Warning: {warning}")
    print(f"Order: {result.order_id}")
    print(f"Total: {format_kronor(result.pricing.total.inc_tax)}")
    print(f"Pay at: {result.redirect_url}")
    return 0


def cmd_orders_list(args: argparse.Namespace) -> int:
    with create_container(args) as container:
        orders = list(container.order_repository.list_all())

    if args.status:
        orders = [o for o in orders if o.status == OrderStatus(args.status)]

    if not orders:
        print("No orders found.")
        return 0

    print(f"{'Order':<10} {'Skapad':<17} {'Status':<10} {'Kund':<30} {'Belopp':>12}")
    print("-" * 83)
    for order in orders:
        print(
            f"{order.order_number:<10} {order.created_at:%Y-%m-%d %H:%M} "
            f"{order.status.value:<10} {order.email[:30]:<30} "
            f"{format_minor(order.total_amount):>12}"
        )
    return 0


def cmd_orders_complete(args: argparse.Namespace) -> int:
    """Record a settled payment and empty the local cart."""
    with create_container(args) as container:
        order = container.order_service.complete(
            args.session_id, args.transaction_id, email=args.email
        )
        container.cart_service.clear()
    print(f"Order {order.order_number} completed")
    return 0


def cmd_orders_fail(args: argparse.Namespace) -> int:
    with create_container(args) as container:
        order = container.order_service.fail(args.session_id)
    print(f"Order {order.order_number} marked failed")
    return 0


def cmd_orders_cancel(args: argparse.Namespace) -> int:
    with create_container(args) as container:
        order = container.order_service.cancel(args.session_id)
    print(f"Order {order.order_number} canceled")
    return 0


def cmd_accounting_report(args: argparse.Namespace) -> int:
    with create_container(args) as container:
        report = container.accounting_service.report(
            args.date_from, args.date_to, include_fees=not args.no_fees
        )
    if not report.rows:
        print("Inga genomförda ordrar för perioden.")
        return 0
    _print_report(report)
    return 0


def cmd_accounting_export(args: argparse.Namespace) -> int:
    with create_container(args) as container:
        accounting = container.accounting_service
        report = accounting.report(
            args.date_from, args.date_to, include_fees=not args.no_fees
        )
        content = accounting.export_csv(report)

    if args.output == "-":
        sys.stdout.buffer.write(content)
        sys.stdout.flush()
        return 0

    output = Path(args.output) if args.output else Path(report.filename)
    output.write_bytes(content)
    print(f"Exported {report.totals.order_count} order(s) to {output}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP API."""
    import uvicorn

    settings = get_cli_settings(args)
    uvicorn.run(
        "storefront_ledger.api.app:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=args.reload,
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="storefront",
        description="Storefront Ledger - VAT-correct pricing, checkout and bookkeeping export",
    )
    parser.add_argument(
        "--database",
        "-d",
        help="Path to SQLite database file",
        default=None,
    )
    parser.add_argument(
        "--cart",
        help="Path to the JSON cart file",
        default=None,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init command
    init_parser = subparsers.add_parser("init", help="Initialize a new database")
    init_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Force reinitialization (deletes existing data)",
    )
    init_parser.set_defaults(func=cmd_init)

    # products command group
    products_parser = subparsers.add_parser("products", help="Catalog commands")
    products_subparsers = products_parser.add_subparsers(
        dest="products_command", help="Catalog subcommands"
    )

    products_list_parser = products_subparsers.add_parser(
        "list", help="List products in stock"
    )
    products_list_parser.set_defaults(func=cmd_products_list)

    products_add_parser = products_subparsers.add_parser("add", help="Add a product")
    products_add_parser.add_argument("--title", required=True, help="Product title")
    products_add_parser.add_argument(
        "--price", type=int, required=True, help="Price excluding VAT, whole kronor"
    )
    products_add_parser.add_argument(
        "--category",
        required=True,
        choices=[c.value for c in TaxCategory],
        help="Tax category",
    )
    products_add_parser.add_argument(
        "--original-price", type=int, default=None, help="Price before a sale"
    )
    products_add_parser.add_argument(
        "--discount-active", action="store_true", help="Sell at --price instead of --original-price"
    )
    products_add_parser.add_argument("--description", default=None, help="Description")
    products_add_parser.add_argument("--sort-order", type=int, default=0, help="Display order")
    products_add_parser.set_defaults(func=cmd_products_add)

    # cart command group
    cart_parser = subparsers.add_parser("cart", help="Shopping cart commands")
    cart_subparsers = cart_parser.add_subparsers(
        dest="cart_command", help="Cart subcommands"
    )

    cart_show_parser = cart_subparsers.add_parser("show", help="Show cart contents")
    cart_show_parser.set_defaults(func=cmd_cart_show)

    cart_add_parser = cart_subparsers.add_parser("add", help="Add a product to the cart")
    cart_add_parser.add_argument("product_id", help="Product ID")
    cart_add_parser.add_argument("--quantity", "-q", type=int, default=1, help="Quantity")
    cart_add_parser.set_defaults(func=cmd_cart_add)

    cart_set_parser = cart_subparsers.add_parser("set", help="Set a line's quantity")
    cart_set_parser.add_argument("product_id", help="Product ID")
    cart_set_parser.add_argument("quantity", type=int, help="New quantity (0 removes)")
    cart_set_parser.set_defaults(func=cmd_cart_set)

    cart_remove_parser = cart_subparsers.add_parser("remove", help="Remove a line")
    cart_remove_parser.add_argument("product_id", help="Product ID")
    cart_remove_parser.set_defaults(func=cmd_cart_remove)

    cart_clear_parser = cart_subparsers.add_parser("clear", help="Empty the cart")
    cart_clear_parser.set_defaults(func=cmd_cart_clear)

    shipping_choices = [option.option_id for option in DEFAULT_SHIPPING_OPTIONS]

    # price command
    price_parser = subparsers.add_parser("price", help="Show the VAT specification for the cart")
    price_parser.add_argument("--shipping", "-s", choices=shipping_choices, help="Shipping option")
    price_parser.add_argument("--discount", help="Discount code")
    price_parser.set_defaults(func=cmd_price)

    # checkout command
    checkout_parser = subparsers.add_parser("checkout", help="Submit the cart for payment")
    checkout_parser.add_argument(
        "--shipping", "-s", required=True, choices=shipping_choices, help="Shipping option"
    )
    checkout_parser.add_argument("--discount", help="Discount code")
    checkout_parser.add_argument("--email", help="Customer email")
    checkout_parser.add_argument(
        "--newsletter", action="store_true", help="Customer opted in to the newsletter"
    )
    checkout_parser.set_defaults(func=cmd_checkout)

    # orders command group
    orders_parser = subparsers.add_parser("orders", help="Order commands")
    orders_subparsers = orders_parser.add_subparsers(
        dest="orders_command", help="Order subcommands"
    )

    orders_list_parser = orders_subparsers.add_parser("list", help="List orders")
    orders_list_parser.add_argument(
        "--status", choices=[s.value for s in OrderStatus], help="Filter by status"
    )
    orders_list_parser.set_defaults(func=cmd_orders_list)

    orders_complete_parser = orders_subparsers.add_parser(
        "complete", help="Record a settled payment"
    )
    orders_complete_parser.add_argument("session_id", help="Checkout session ID")
    orders_complete_parser.add_argument("transaction_id", help="Payment transaction ID")
    orders_complete_parser.add_argument("--email", help="Customer email from the gateway")
    orders_complete_parser.set_defaults(func=cmd_orders_complete)

    orders_fail_parser = orders_subparsers.add_parser("fail", help="Mark a payment failed")
    orders_fail_parser.add_argument("session_id", help="Checkout session ID")
    orders_fail_parser.set_defaults(func=cmd_orders_fail)

    orders_cancel_parser = orders_subparsers.add_parser(
        "cancel", help="Mark a checkout abandoned"
    )
    orders_cancel_parser.add_argument("session_id", help="Checkout session ID")
    orders_cancel_parser.set_defaults(func=cmd_orders_cancel)

    # accounting command group
    accounting_parser = subparsers.add_parser("accounting", help="Bookkeeping commands")
    accounting_subparsers = accounting_parser.add_subparsers(
        dest="accounting_command", help="Accounting subcommands"
    )

    for name, help_text, func in (
        ("report", "Show the accounting report", cmd_accounting_report),
        ("export", "Export the accounting report as CSV", cmd_accounting_export),
    ):
        sub = accounting_subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--from", dest="date_from", type=date.fromisoformat, help="First day (YYYY-MM-DD)"
        )
        sub.add_argument(
            "--to", dest="date_to", type=date.fromisoformat, help="Last day (YYYY-MM-DD)"
        )
        sub.add_argument(
            "--no-fees", action="store_true", help="Skip the processor fee lookup"
        )
        if name == "export":
            sub.add_argument(
                "--output", "-o", default=None, help="Output file, or - for stdout"
            )
        sub.set_defaults(func=func)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Port")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    for group, group_parser in (
        ("products", products_parser),
        ("cart", cart_parser),
        ("orders", orders_parser),
        ("accounting", accounting_parser),
    ):
        if args.command == group and getattr(args, f"{group}_command", None) is None:
            group_parser.print_help()
            return 0

    configure_logging(get_cli_settings(args))

    try:
        result: int = args.func(args)
    except StorefrontLedgerError as e:
        print(f"Error: {e.message}")
        return 1
    return result


if __name__ == "__main__":
    sys.exit(main())
