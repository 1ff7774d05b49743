"""Command-line entry points for the BizSwift ledger.

All orchestration in this module is limited to argparse wiring, translating
command-line arguments into the records consumed by the business layer, and
printing results. Keeping the CLI thin lets tests, scripts, or any other
front-end reuse the same parser configuration.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Callable, Dict, Iterable, Mapping, MutableMapping, Optional, Sequence

from . import core_logic, log
from .constants import InvoiceStatus, PartyType, PaymentMode, TransactionType
from .data_manager import BusinessInfoRow, InvoiceRow, PartyRow, ProductRow, TransactionRow


SubParsers = argparse._SubParsersAction


@dataclass(frozen=True)
class CommandSpec:
    """Describe how a CLI sub-command is configured and executed."""

    name: str
    help_text: str
    register: Callable[[SubParsers], argparse.ArgumentParser]
    execute: Callable[[core_logic.RuntimeContext, argparse.Namespace], int]


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="bizswift-cli",
        description="Command-line tools for the BizSwift ledger workbook.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional path to config.ini (searched upward from the working directory by default).",
    )
    return parser


def configure_subcommands(parser: argparse.ArgumentParser) -> Mapping[str, CommandSpec]:
    """Wire all CLI sub-commands onto the supplied parser."""
    subparsers = parser.add_subparsers(dest="command", required=True, title="commands")
    write_specs = register_write_commands(subparsers)
    read_specs = register_read_commands(subparsers)
    return build_command_table([*write_specs.values(), *read_specs.values()])


def register_write_commands(subparsers: SubParsers) -> Dict[str, CommandSpec]:
    """Declare mutating CLI commands such as invoices and payments."""
    specs = {
        "add-party": register_add_party_command(subparsers),
        "add-product": register_add_product_command(subparsers),
        "adjust-stock": register_adjust_stock_command(subparsers),
        "quick-invoice": register_quick_invoice_command(subparsers),
        "record-transaction": register_record_transaction_command(subparsers),
        "reconcile": register_reconcile_command(subparsers),
        "delete-party": register_delete_command("delete-party", "Delete a party.", run_delete_party),
        "delete-product": register_delete_command("delete-product", "Delete a product.", run_delete_product),
        "delete-invoice": register_delete_command(
            "delete-invoice", "Delete an invoice (stock is not restored).", run_delete_invoice
        ),
        "delete-transaction": register_delete_command(
            "delete-transaction", "Delete a payment or receipt.", run_delete_transaction
        ),
        "set-business-info": register_set_business_info_command(subparsers),
    }
    for spec in specs.values():
        spec.register(subparsers)
    return specs


def register_read_commands(subparsers: SubParsers) -> Dict[str, CommandSpec]:
    """Declare read-only CLI commands such as listings and reports."""
    specs = {
        "parties": register_plain_command("parties", "List parties.", run_parties_report),
        "products": register_plain_command("products", "List products and stock.", run_products_report),
        "low-stock": register_plain_command(
            "low-stock", "List products at or below their alert level.", run_low_stock_report
        ),
        "out-of-stock": register_plain_command(
            "out-of-stock", "List products with no stock left.", run_out_of_stock_report
        ),
        "stock-history": register_stock_history_command(subparsers),
        "invoices": register_invoices_command(subparsers),
        "transactions": register_transactions_command(subparsers),
        "balance": register_balance_command(subparsers),
        "summary": register_plain_command(
            "summary", "Display sales, purchases, and outstanding balances.", run_summary_report
        ),
        "business-info": register_plain_command(
            "business-info", "Display the business profile.", run_business_info_report
        ),
    }
    for spec in specs.values():
        spec.register(subparsers)
    return specs


def register_plain_command(
    name: str,
    help_text: str,
    execute: Callable[[core_logic.RuntimeContext, argparse.Namespace], int],
) -> CommandSpec:
    """Build a spec for a command that takes no arguments."""

    def registrar(action: SubParsers) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=execute)


def register_delete_command(
    name: str,
    help_text: str,
    execute: Callable[[core_logic.RuntimeContext, argparse.Namespace], int],
) -> CommandSpec:
    """Build a spec for a delete command keyed by ``--id``."""

    def registrar(action: SubParsers) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--id", dest="record_id", required=True)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=execute)


def register_add_party_command(subparsers: SubParsers) -> CommandSpec:
    """Register the parser and executor for ``add-party``."""
    name = "add-party"
    help_text = "Create or update a customer or supplier."

    def registrar(action: SubParsers) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--party-id", default=None, help="Existing id to update.")
        parser.add_argument("--name", required=True)
        parser.add_argument("--type", dest="party_type", choices=[m.value for m in PartyType], required=True)
        parser.add_argument("--mobile", default="")
        parser.add_argument("--address", default="")
        parser.add_argument("--tax-id", default=None)
        parser.add_argument("--state", default=None)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_add_party)


def register_add_product_command(subparsers: SubParsers) -> CommandSpec:
    """Register the parser and executor for ``add-product``."""
    name = "add-product"
    help_text = "Create or update a catalog product."

    def registrar(action: SubParsers) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--product-id", default=None, help="Existing id to update.")
        parser.add_argument("--name", default=None, help="Required for a new product.")
        parser.add_argument("--description", default=None)
        parser.add_argument("--price", default=None, help="Required for a new product.")
        parser.add_argument("--cost-price", default=None)
        parser.add_argument("--stock", type=int, default=None, help="Opening stock (new products default to 0).")
        parser.add_argument("--unit", default=None)
        parser.add_argument("--tax-code", default=None)
        parser.add_argument("--low-stock-alert", type=int, default=None)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_add_product)


def register_adjust_stock_command(subparsers: SubParsers) -> CommandSpec:
    """Register the parser and executor for ``adjust-stock``."""
    name = "adjust-stock"
    help_text = "Add (or, with a negative quantity, remove) product stock."

    def registrar(action: SubParsers) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--product-id", required=True)
        parser.add_argument("--quantity", type=int, required=True)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_adjust_stock)


def register_quick_invoice_command(subparsers: SubParsers) -> CommandSpec:
    """Register the parser and executor for ``quick-invoice``."""
    name = "quick-invoice"
    help_text = "Raise a single-line invoice for one product."

    def registrar(action: SubParsers) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--party-id", required=True)
        parser.add_argument("--product-id", required=True)
        parser.add_argument("--quantity", type=int, required=True)
        parser.add_argument("--discount", default="0")
        parser.add_argument("--tax-percentage", default=None)
        parser.add_argument(
            "--status",
            choices=[member.value for member in InvoiceStatus],
            default=InvoiceStatus.UNPAID.value,
        )
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_quick_invoice)


def register_record_transaction_command(subparsers: SubParsers) -> CommandSpec:
    """Register the parser and executor for ``record-transaction``."""
    name = "record-transaction"
    help_text = "Record a payment or receipt and reconcile its invoice."

    def registrar(action: SubParsers) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--type", dest="transaction_type", choices=[m.value for m in TransactionType], required=True)
        parser.add_argument("--amount", required=True)
        parser.add_argument("--party-id", required=True)
        parser.add_argument("--invoice-id", default=None)
        parser.add_argument("--mode", choices=[m.value for m in PaymentMode], default=PaymentMode.CASH.value)
        parser.add_argument("--date", dest="transaction_date", type=date.fromisoformat, default=None)
        parser.add_argument("--description", default=None)
        parser.add_argument("--reference", default=None)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_record_transaction)


def register_reconcile_command(subparsers: SubParsers) -> CommandSpec:
    """Register the parser and executor for ``reconcile``."""
    name = "reconcile"
    help_text = "Recompute an invoice's paid amount from its transactions."

    def registrar(action: SubParsers) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--invoice-id", required=True)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_reconcile)


def register_set_business_info_command(subparsers: SubParsers) -> CommandSpec:
    """Register the parser and executor for ``set-business-info``."""
    name = "set-business-info"
    help_text = "Replace the business profile."

    def registrar(action: SubParsers) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--name", required=True)
        parser.add_argument("--address", required=True)
        parser.add_argument("--phone", required=True)
        parser.add_argument("--email", required=True)
        parser.add_argument("--terms", default="")
        parser.add_argument("--tax-id", default=None)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_set_business_info)


def register_stock_history_command(subparsers: SubParsers) -> CommandSpec:
    """Register the parser and executor for ``stock-history``."""
    name = "stock-history"
    help_text = "Display a product's invoice-driven stock movements."

    def registrar(action: SubParsers) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--product-id", required=True)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_stock_history_report)


def register_invoices_command(subparsers: SubParsers) -> CommandSpec:
    """Register the parser and executor for ``invoices``."""
    name = "invoices"
    help_text = "List invoices, optionally filtered."

    def registrar(action: SubParsers) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--party-id", default=None)
        parser.add_argument("--status", choices=[m.value for m in InvoiceStatus], default=None)
        parser.add_argument(
            "--role",
            choices=[m.value for m in PartyType],
            default=None,
            help="customer for sales invoices, supplier for purchase invoices.",
        )
        parser.add_argument("--from", dest="date_from", type=date.fromisoformat, default=None)
        parser.add_argument("--to", dest="date_to", type=date.fromisoformat, default=None)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_invoices_report)


def register_transactions_command(subparsers: SubParsers) -> CommandSpec:
    """Register the parser and executor for ``transactions``."""
    name = "transactions"
    help_text = "List payments and receipts, optionally filtered."

    def registrar(action: SubParsers) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--party-id", default=None)
        parser.add_argument("--type", dest="transaction_type", choices=[m.value for m in TransactionType], default=None)
        parser.add_argument("--invoice-id", default=None)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_transactions_report)


def register_balance_command(subparsers: SubParsers) -> CommandSpec:
    """Register the parser and executor for ``balance``."""
    name = "balance"
    help_text = "Display the amount still owed on an invoice."

    def registrar(action: SubParsers) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--invoice-id", required=True)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_balance_report)


def load_runtime_context(config_path: Optional[Path] = None) -> core_logic.RuntimeContext:
    """Resolve the runtime context for CLI operations.

    Without an explicit path the data layer searches upward from the working
    directory for ``config.ini``.
    """
    target = Path(config_path) if config_path is not None else None
    return core_logic.load_runtime_context(target)


def dispatch_command(
    context: core_logic.RuntimeContext,
    args: argparse.Namespace,
    command_table: Mapping[str, CommandSpec],
) -> int:
    """Dispatch the parsed arguments to the configured executor."""
    if not hasattr(args, "command") or args.command is None:
        raise KeyError("No command specified")
    spec = command_table.get(args.command)
    if spec is None:
        raise KeyError(f"Unknown command: {args.command}")
    return spec.execute(context, args)


def build_command_table(specs: Iterable[CommandSpec]) -> MutableMapping[str, CommandSpec]:
    """Build an index of command specifications keyed by command name."""
    table: Dict[str, CommandSpec] = {}
    for spec in specs:
        if spec.name in table:
            raise ValueError(f"Duplicate command name: {spec.name}")
        table[spec.name] = spec
    return table


def translate_add_party(args: argparse.Namespace) -> PartyRow:
    """Translate CLI args into a party record."""
    return PartyRow(
        party_id=args.party_id,
        party_name=args.name,
        party_type=PartyType(args.party_type),
        mobile=args.mobile,
        address=args.address,
        tax_id=args.tax_id,
        state=args.state,
    )


def translate_add_product(args: argparse.Namespace, existing: Optional[ProductRow] = None) -> ProductRow:
    """Translate CLI args into a product record.

    When ``existing`` is given only the options that were actually passed
    replace its fields; everything else, stock included, is kept. A new
    product needs ``--name`` and ``--price``.

    Raises:
        BusinessRuleViolation: If a new product lacks a name or a price.
    """
    changes: Dict[str, object] = {}
    if args.name is not None:
        changes["product_name"] = args.name
    if args.description is not None:
        changes["description"] = args.description
    if args.price is not None:
        changes["unit_price"] = Decimal(args.price)
    if args.cost_price is not None:
        changes["cost_price"] = Decimal(args.cost_price)
    if args.stock is not None:
        changes["stock"] = args.stock
    if args.unit is not None:
        changes["unit"] = args.unit
    if args.tax_code is not None:
        changes["tax_code"] = args.tax_code
    if args.low_stock_alert is not None:
        changes["low_stock_alert"] = args.low_stock_alert

    if existing is not None:
        return replace(existing, **changes)

    if "product_name" not in changes or "unit_price" not in changes:
        log.error("add-product: --name and --price are required for a new product")
        raise core_logic.BusinessRuleViolation("--name and --price are required for a new product")
    changes.setdefault("description", "")
    return ProductRow(product_id=args.product_id, **changes)


def translate_record_transaction(args: argparse.Namespace) -> TransactionRow:
    """Translate CLI args into a transaction record dated today (UTC) by default."""
    return TransactionRow(
        transaction_id=None,
        transaction_type=TransactionType(args.transaction_type),
        amount=Decimal(args.amount),
        transaction_date=args.transaction_date or core_logic.current_date(),
        party_id=args.party_id,
        payment_mode=PaymentMode(args.mode),
        invoice_id=args.invoice_id,
        description=args.description,
        reference=args.reference,
    )


def translate_business_info(args: argparse.Namespace) -> BusinessInfoRow:
    """Translate CLI args into a business profile record."""
    return BusinessInfoRow(
        business_name=args.name,
        address=args.address,
        phone=args.phone,
        email=args.email,
        terms_and_conditions=args.terms,
        tax_id=args.tax_id,
    )


def render_table(headers: Sequence[str], rows: Iterable[Sequence[object]]) -> str:
    """Format rows as left-aligned columns under a header line."""
    text_rows = [[("" if cell is None else str(cell)) for cell in row] for row in rows]
    widths = [len(header) for header in headers]
    for row in text_rows:
        for index, cell in enumerate(row):
            widths[index] = max(widths[index], len(cell))
    lines = ["  ".join(h.ljust(w) for h, w in zip(headers, widths)).rstrip()]
    for row in text_rows:
        lines.append("  ".join(c.ljust(w) for c, w in zip(row, widths)).rstrip())
    return "\n".join(lines)


def _invoice_rows(invoices: Iterable[InvoiceRow]) -> list[list[object]]:
    return [
        [
            invoice.invoice_number,
            invoice.invoice_id,
            invoice.invoice_date.isoformat(),
            invoice.party_id,
            invoice.total,
            invoice.paid_amount,
            invoice.status.value,
        ]
        for invoice in invoices
    ]


def _product_rows(products: Iterable[ProductRow]) -> list[list[object]]:
    return [
        [product.product_id, product.product_name, product.unit_price, product.stock, product.unit]
        for product in products
    ]


PRODUCT_HEADERS = ("ID", "Name", "Price", "Stock", "Unit")
INVOICE_HEADERS = ("Number", "ID", "Date", "Party", "Total", "Paid", "Status")


def run_add_party(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the add-party workflow in the BLL."""
    party = core_logic.save_party(context, translate_add_party(args))
    print(party.party_id)
    return 0


def run_add_product(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the add-product workflow, updating in place for known ids."""
    existing = core_logic.find_product(context, args.product_id) if args.product_id else None
    product = core_logic.save_product(context, translate_add_product(args, existing))
    print(product.product_id)
    return 0


def run_adjust_stock(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute a manual stock adjustment; unknown products exit with 2."""
    if not core_logic.adjust_stock(context, args.product_id, args.quantity):
        log.error("Unknown product id: %s", args.product_id)
        return 2
    return 0


def run_quick_invoice(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the quick-invoice workflow via the BLL."""
    invoice = core_logic.build_quick_invoice(
        context,
        args.party_id,
        args.product_id,
        args.quantity,
        discount=Decimal(args.discount),
        tax_percentage=Decimal(args.tax_percentage) if args.tax_percentage is not None else None,
        status=InvoiceStatus(args.status),
    )
    print(render_table(INVOICE_HEADERS, _invoice_rows([invoice])))
    return 0


def run_record_transaction(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Save a payment or receipt, then reconcile its invoice when linked."""
    transaction = core_logic.save_transaction(context, translate_record_transaction(args))
    if transaction.invoice_id:
        invoice = core_logic.find_invoice(context, transaction.invoice_id)
        if invoice is None:
            log.warning("Transaction '%s' references unknown invoice '%s'",
                        transaction.transaction_id, transaction.invoice_id)
        else:
            core_logic.reconcile_payment(context, invoice)
    print(transaction.transaction_id)
    return 0


def run_reconcile(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute payment reconciliation for one invoice."""
    invoice = core_logic.get_invoice(context, args.invoice_id)
    reconciled = core_logic.reconcile_payment(context, invoice)
    print(render_table(INVOICE_HEADERS, _invoice_rows([reconciled])))
    return 0


def run_delete_party(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    core_logic.delete_party(context, args.record_id)
    return 0


def run_delete_product(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    core_logic.delete_product(context, args.record_id)
    return 0


def run_delete_invoice(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    core_logic.delete_invoice(context, args.record_id)
    return 0


def run_delete_transaction(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    core_logic.delete_transaction(context, args.record_id)
    return 0


def run_set_business_info(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    core_logic.save_business_info(context, translate_business_info(args))
    return 0


def run_parties_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    rows = [
        [party.party_id, party.party_name, party.party_type.value, party.mobile]
        for party in core_logic.list_parties(context)
    ]
    print(render_table(("ID", "Name", "Type", "Mobile"), rows))
    return 0


def run_products_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    print(render_table(PRODUCT_HEADERS, _product_rows(core_logic.list_products(context))))
    return 0


def run_low_stock_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    print(render_table(PRODUCT_HEADERS, _product_rows(core_logic.list_low_stock_products(context))))
    return 0


def run_out_of_stock_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    print(render_table(PRODUCT_HEADERS, _product_rows(core_logic.list_out_of_stock_products(context))))
    return 0


def run_stock_history_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the stock history report for one product."""
    rows = [
        [movement.movement_date.isoformat(), f"{movement.change:+d}", movement.invoice_number]
        for movement in core_logic.stock_movement_history(context, args.product_id)
    ]
    print(render_table(("Date", "Change", "Invoice"), rows))
    return 0


def run_invoices_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """List invoices, applying every filter that was supplied."""
    selections: list[list[InvoiceRow]] = []
    if args.party_id:
        selections.append(core_logic.list_invoices_by_party(context, args.party_id))
    if args.status:
        selections.append(core_logic.list_invoices_by_status(context, InvoiceStatus(args.status)))
    if args.role:
        selections.append(core_logic.list_invoices_by_party_type(context, PartyType(args.role)))
    if args.date_from or args.date_to:
        selections.append(
            core_logic.list_invoices_by_date_range(context, args.date_from or date.min, args.date_to or date.max)
        )

    invoices = core_logic.list_invoices(context)
    for selection in selections:
        wanted = {invoice.invoice_id for invoice in selection}
        invoices = [invoice for invoice in invoices if invoice.invoice_id in wanted]
    print(render_table(INVOICE_HEADERS, _invoice_rows(invoices)))
    return 0


def run_transactions_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """List transactions, applying every filter that was supplied."""
    transactions = core_logic.list_transactions(context)
    if args.party_id:
        transactions = [t for t in transactions if t.party_id == args.party_id]
    if args.transaction_type:
        transactions = [t for t in transactions if t.transaction_type == TransactionType(args.transaction_type)]
    if args.invoice_id:
        transactions = [t for t in transactions if t.invoice_id == args.invoice_id]
    rows = [
        [
            t.transaction_id,
            t.transaction_date.isoformat(),
            t.transaction_type.value,
            t.amount,
            t.payment_mode.value,
            t.party_id,
            t.invoice_id,
        ]
        for t in transactions
    ]
    print(render_table(("ID", "Date", "Type", "Amount", "Mode", "Party", "Invoice"), rows))
    return 0


def run_balance_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    print(core_logic.invoice_remaining_amount(context, args.invoice_id))
    return 0


def run_summary_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the ledger summary report."""
    summary = core_logic.calculate_ledger_summary(context)
    print(render_table(("Metric", "Amount"), summary.items()))
    return 0


def run_business_info_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    info = core_logic.get_business_info(context)
    print(info.business_name)
    print(info.address)
    print(f"{info.phone} | {info.email}")
    if info.tax_id:
        print(f"Tax ID: {info.tax_id}")
    return 0


def handle_cli_error(error: Exception) -> int:
    """Convert raised exceptions into user-friendly exit codes."""
    if isinstance(error, core_logic.BusinessRuleViolation):
        log.error("%s", error)
        return 2
    if isinstance(error, FileNotFoundError):
        log.error("%s", error)
        return 3
    log.error("%s", error)
    return 1


def persist_workbook(context: core_logic.RuntimeContext) -> None:
    """Persist workbook changes after successful execution."""
    try:
        core_logic.persist_context(context)
    except PermissionError as error:
        raise RuntimeError(str(error)) from error


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point that orchestrates parsing and execution."""
    parser = build_parser()
    command_table = configure_subcommands(parser)
    args = parser.parse_args(argv)
    try:
        context = load_runtime_context(getattr(args, "config", None))
        core_logic.ensure_schema_version(context)
        exit_code = dispatch_command(context, args, command_table)
        if exit_code == 0:
            persist_workbook(context)
        return exit_code
    except Exception as error:  # pragma: no cover - centralised error handler tested separately
        return handle_cli_error(error)
