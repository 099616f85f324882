from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
import random

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
import typer

from splitpay.adapters.db.facade import OrderStore
from splitpay.adapters.extraction.batch import extract_files
from splitpay.adapters.extraction.gemini import TradeConfirmationExtractor
from splitpay.core.aggregator import CurrencyTotals
from splitpay.core.config import SplitpayConfig, load_config_from_env
from splitpay.core.currency import Locale, coerce_locale, parse_currency_value
from splitpay.errors import SplitpayError
from splitpay.orders.dashboard import compute_dashboard
from splitpay.orders.entities import ExtractedRecord, Order
from splitpay.orders.history import (
    default_export_filename,
    export_history_csv,
    filter_history,
)
from splitpay.orders.lifecycle import Draft, OrderLifecycle

# Load environment variables from .env
load_dotenv()

app = typer.Typer(
    help="Split payments into distinct values and reconcile executions.",
    no_args_is_help=True,
)

console = Console()


def _fail(message: str) -> typer.Exit:
    typer.echo(message, err=True)
    return typer.Exit(1)


def _load_config() -> SplitpayConfig:
    try:
        return load_config_from_env()
    except ValueError as e:
        raise _fail(f"Configuration error: {e}") from None


@contextmanager
def _open_lifecycle(
    config: SplitpayConfig, rng: random.Random | None = None
) -> Iterator[OrderLifecycle]:
    """Lifecycle over the configured store; pending edits are flushed on exit."""
    store = OrderStore(config.database_url)
    store.create_schema()
    lifecycle = OrderLifecycle.from_store(store, config=config, rng=rng)
    try:
        yield lifecycle
    finally:
        lifecycle.flush()


def _locale(value: str | None, config: SplitpayConfig) -> Locale:
    if value is None:
        return config.locale
    try:
        return coerce_locale(value)
    except ValueError:
        raise typer.BadParameter("locale must be one of: en, es, pt") from None


def _format_amounts(amounts: Mapping[str, float], digits: int = 2) -> str:
    if not amounts:
        return "-"
    return ", ".join(f"{value:,.{digits}f} {ccy}" for ccy, value in amounts.items())


def _print_items(title: str, draft_or_order: Draft | Order) -> None:
    if isinstance(draft_or_order, Draft):
        items = draft_or_order.items
    else:
        items = draft_or_order.links
    table = Table(title=title)
    table.add_column("Item")
    table.add_column("Value", justify="right")
    table.add_column("Paid")
    table.add_column("Link")
    for item in items:
        table.add_row(
            item.id, f"{item.value:,}", "yes" if item.is_paid else "no", item.link_url
        )
    console.print(table)


def _print_totals(totals: CurrencyTotals, settlement_currency: str) -> None:
    table = Table(title="Execution totals", show_header=False)
    table.add_row("Total quantity", f"{totals.total_quantity:,.8f}")
    table.add_row(
        f"Average price ({settlement_currency})", f"{totals.average_price:,.4f}"
    )
    table.add_row("Fees", _format_amounts(totals.total_fees, digits=8))
    table.add_row("Cost", _format_amounts(totals.total_cost))
    console.print(table)


@app.command("generate")
def generate(
    total: str = typer.Argument(..., help="Amount to split; cents are ignored"),
    max_per_part: int | None = typer.Option(
        None, help="Maximum per split item (defaults to SPLITPAY_MAX_PER_PART)"
    ),
    save: bool = typer.Option(False, "--save", help="Save the split as an order"),
    seed: int | None = typer.Option(None, help="Seed for a reproducible split"),
) -> None:
    """Split an amount into distinct payment values."""
    config = _load_config()
    rng = random.Random(seed) if seed is not None else None
    with _open_lifecycle(config, rng) as lifecycle:
        try:
            draft = lifecycle.generate_draft(total, max_per_part)
        except SplitpayError as e:
            raise _fail(f"Generation failed: {e}") from None

        _print_items(f"{draft.order_id}: total {draft.total:,}", draft)
        if save:
            order = lifecycle.save_draft(draft)
            typer.echo(f"Saved order {order.id}")


@app.command("orders")
def list_orders() -> None:
    """List saved orders, newest first."""
    config = _load_config()
    with _open_lifecycle(config) as lifecycle:
        orders = lifecycle.list_orders()
    if not orders:
        typer.echo("No orders found.")
        return

    table = Table(title="Orders")
    table.add_column("Order")
    table.add_column("Created")
    table.add_column("Total", justify="right")
    table.add_column("Status")
    table.add_column("Items", justify="right")
    table.add_column("Execution")
    for order in orders:
        table.add_row(
            order.id,
            order.created_at.strftime("%Y-%m-%d %H:%M"),
            f"{order.total_amount:,}",
            order.status.value,
            str(len(order.links)),
            "registered" if order.is_execution_registered else "open",
        )
    console.print(table)


@app.command("show")
def show(order_id: str, locale: str | None = typer.Option(None)) -> None:
    """Show an order's items and execution totals."""
    config = _load_config()
    with _open_lifecycle(config) as lifecycle:
        try:
            order = lifecycle.get(order_id)
        except SplitpayError as e:
            raise _fail(str(e)) from None

        title = f"{order.id}: {order.status.value}, total {order.total_amount:,}"
        _print_items(title, order)
        typer.echo(f"{len(order.extracted_records)} execution record(s)")
        totals = order.execution_totals or lifecycle.current_totals(
            order_id, _locale(locale, config)
        )
    _print_totals(totals, config.settlement_currency)


@app.command("pay")
def pay(
    order_id: str,
    item_id: str,
    unpaid: bool = typer.Option(False, "--unpaid", help="Mark the item as unpaid"),
) -> None:
    """Mark a split item as paid (or unpaid)."""
    config = _load_config()
    with _open_lifecycle(config) as lifecycle:
        try:
            order = lifecycle.set_item_paid(order_id, item_id, not unpaid)
        except SplitpayError as e:
            raise _fail(str(e)) from None
    typer.echo(f"Order {order.id} is {order.status.value}")


@app.command("link")
def link(order_id: str, item_id: str, url: str) -> None:
    """Attach a payment link to a split item."""
    config = _load_config()
    with _open_lifecycle(config) as lifecycle:
        try:
            lifecycle.set_item_link(order_id, item_id, url)
        except SplitpayError as e:
            raise _fail(str(e)) from None
    typer.echo(f"Linked {item_id}")


@app.command("set-value")
def set_value(order_id: str, item_id: str, value: int) -> None:
    """Change the value of a split item; the order total follows."""
    config = _load_config()
    with _open_lifecycle(config) as lifecycle:
        try:
            order = lifecycle.set_item_value(order_id, item_id, value)
        except SplitpayError as e:
            raise _fail(str(e)) from None
    typer.echo(f"Order {order.id} total is now {order.total_amount:,}")


@app.command("delete-item")
def delete_item(order_id: str, item_id: str) -> None:
    """Delete a split item; deleting the last one deletes the order."""
    config = _load_config()
    with _open_lifecycle(config) as lifecycle:
        try:
            order = lifecycle.delete_item(order_id, item_id)
        except SplitpayError as e:
            raise _fail(str(e)) from None
    if order is None:
        typer.echo(f"Deleted order {order_id}")
    else:
        typer.echo(f"Order {order.id} total is now {order.total_amount:,}")


@app.command("delete")
def delete(order_ids: list[str]) -> None:
    """Delete one or more orders."""
    config = _load_config()
    with _open_lifecycle(config) as lifecycle:
        deleted = lifecycle.delete_orders(order_ids)
    typer.echo(f"Deleted {deleted} order(s)")


@app.command("extract")
def extract(
    order_id: str,
    files: list[Path] = typer.Argument(..., exists=True, dir_okay=False),  # noqa: B008
) -> None:
    """Extract execution records from trade confirmation images."""
    config = _load_config()
    with _open_lifecycle(config) as lifecycle:
        try:
            order = lifecycle.get(order_id)
        except SplitpayError as e:
            raise _fail(str(e)) from None
        if order.is_execution_registered:
            raise _fail(f"Execution already registered for order {order_id}")

        try:
            extractor = TradeConfirmationExtractor.from_config(config)
        except ValueError as e:
            raise _fail(f"Configuration error: {e}") from None

        try:
            records = extract_files(
                files,
                extractor,
                on_file=lambda _path, found: lifecycle.append_records(
                    order_id, found
                ),
            )
        except SplitpayError as e:
            raise _fail(str(e)) from None
    typer.echo(f"Added {len(records)} record(s) from {len(files)} file(s)")


@app.command("add-record")
def add_record(
    order_id: str,
    order_number: str = typer.Option("", help="Order number"),
    type_: str = typer.Option("", "--type", help="Type, e.g. Limit / Buy"),
    filled_quantity: str = typer.Option("", help="Filled / quantity"),
    iceberg_value: str = typer.Option("", help="Iceberg value"),
    average_price: str = typer.Option("", help="Average / price"),
    conditions: str = typer.Option("", help="Conditions"),
    fee: str = typer.Option("", help="Fee, e.g. '0,10 USDT'"),
    total: str = typer.Option("", help="Total, e.g. '1.000,00 BRL'"),
    creation_date: str = typer.Option("", help="Creation date"),
    update_date: str = typer.Option("", help="Update date"),
) -> None:
    """Add a hand-typed execution record."""
    config = _load_config()
    record = ExtractedRecord(
        order_number=order_number,
        type=type_,
        filled_quantity=filled_quantity,
        iceberg_value=iceberg_value,
        average_price=average_price,
        conditions=conditions,
        fee=fee,
        total=total,
        creation_date=creation_date,
        update_date=update_date,
    )
    with _open_lifecycle(config) as lifecycle:
        try:
            order = lifecycle.add_manual_record(order_id, record)
        except SplitpayError as e:
            raise _fail(str(e)) from None
    if order.is_execution_registered:
        raise _fail(f"Execution already registered for order {order_id}")
    typer.echo(f"Order {order.id} has {len(order.extracted_records)} record(s)")


@app.command("totals")
def totals(order_id: str, locale: str | None = typer.Option(None)) -> None:
    """Aggregate the order's current execution records."""
    config = _load_config()
    with _open_lifecycle(config) as lifecycle:
        try:
            current = lifecycle.current_totals(order_id, _locale(locale, config))
        except SplitpayError as e:
            raise _fail(str(e)) from None
    _print_totals(current, config.settlement_currency)


@app.command("register")
def register(order_id: str, locale: str | None = typer.Option(None)) -> None:
    """Freeze the execution totals of an order."""
    config = _load_config()
    with _open_lifecycle(config) as lifecycle:
        try:
            registered = lifecycle.register_execution(
                order_id, _locale(locale, config)
            )
        except SplitpayError as e:
            raise _fail(str(e)) from None
    if registered:
        typer.echo(f"Registered execution for order {order_id}")
    else:
        typer.echo(f"Nothing to register for order {order_id}")


@app.command("dashboard")
def dashboard() -> None:
    """Summarize all orders."""
    config = _load_config()
    with _open_lifecycle(config) as lifecycle:
        orders = lifecycle.list_orders()
    metrics = compute_dashboard(orders, config.settlement_currency)
    table = Table(title="Dashboard", show_header=False)
    table.add_row("Orders", str(metrics.total_orders))
    table.add_row("Pending amount", f"{metrics.pending_amount:,.2f}")
    table.add_row("Paid amount", f"{metrics.paid_amount:,.2f}")
    table.add_row(
        f"Executed ({config.settlement_currency})", f"{metrics.settlement_total:,.2f}"
    )
    table.add_row("Executed quantity", f"{metrics.total_quantity:,.4f}")
    table.add_row("Fees", _format_amounts(metrics.fees_by_currency, digits=4))
    console.print(table)


@app.command("history")
def history(
    start: datetime | None = typer.Option(None, formats=["%Y-%m-%d"]),  # noqa: B008
    end: datetime | None = typer.Option(None, formats=["%Y-%m-%d"]),  # noqa: B008
    search: str = typer.Option("", help="Case-insensitive search"),
    csv_path: Path | None = typer.Option(  # noqa: B008
        None, "--csv", help="Write the filtered history to this CSV file"
    ),
    csv_default: bool = typer.Option(
        False, "--export", help="Write the CSV to operations_history_<date>.csv"
    ),
) -> None:
    """List registered executions, optionally exporting them as CSV."""
    config = _load_config()
    with _open_lifecycle(config) as lifecycle:
        orders = lifecycle.list_orders()
    matched = filter_history(
        orders,
        start=start.date() if start else None,
        end=end.date() if end else None,
        search=search,
        settlement_currency=config.settlement_currency,
    )

    table = Table(title="Operations history")
    table.add_column("Order")
    table.add_column("Date")
    table.add_column("Total", justify="right")
    table.add_column(f"Executed {config.settlement_currency}", justify="right")
    table.add_column("Quantity", justify="right")
    table.add_column("Fees")
    table.add_column("Average", justify="right")
    for order in matched:
        totals = order.execution_totals
        if totals is None:
            continue
        table.add_row(
            order.id,
            order.created_at.strftime("%Y-%m-%d"),
            f"{order.total_amount:,}",
            f"{totals.settlement_cost(config.settlement_currency):,.2f}",
            f"{totals.total_quantity:,.4f}",
            _format_amounts(totals.total_fees, digits=4),
            f"{totals.average_price:,.4f}",
        )
    console.print(table)

    target = csv_path
    if target is None and csv_default:
        target = Path(default_export_filename(datetime.now(UTC).date()))
    if target is not None:
        with target.open("w", encoding="utf-8", newline="") as f:
            written = export_history_csv(matched, f, config.settlement_currency)
        typer.echo(f"Wrote {written} row(s) to {target}")


@app.command("parse")
def parse(text: str, locale: str | None = typer.Option(None)) -> None:
    """Show how an amount string is read."""
    config = _load_config()
    parsed = parse_currency_value(text, _locale(locale, config))
    typer.echo(f"amount={parsed.amount} currency={parsed.currency}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()

