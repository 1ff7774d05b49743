"""Business logic layer for the BizSwift ledger.

This module keeps the ledger's derived state consistent: it numbers invoices,
moves product stock when an invoice is created, normalises invoice payment
status, and reconciles invoices against recorded payments and receipts. All
I/O goes through the :class:`~bizswift.store.RecordStore` held by a
:class:`RuntimeContext`; every mutation is a whole-collection
read-modify-write (see :mod:`bizswift.store` for what that implies).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from . import data_manager, log
from .constants import (
    EXPECTED_SCHEMA_VERSION,
    INVOICE_NUMBER_PREFIX,
    INVOICE_SEQUENCE_WIDTH,
    Collection,
    InvoiceStatus,
    PartyType,
    TransactionType,
)
from .data_manager import (
    BusinessInfoRow,
    InvoiceItemRow,
    InvoiceRow,
    PartyRow,
    ProductRow,
    TransactionRow,
)
from .store import RecordStore, WorkbookStore


Number = Union[Decimal, int, str]


class BusinessRuleViolation(Exception):
    """Raised when a requested operation violates a domain constraint."""


class NotFoundError(BusinessRuleViolation):
    """Raised when a referenced party, product, or invoice is unknown."""


class InsufficientStockError(BusinessRuleViolation):
    """Raised when a customer invoice asks for more than the product holds."""

    def __init__(self, product_name: str, current_stock: int, requested_quantity: int) -> None:
        self.product_name = product_name
        self.current_stock = current_stock
        self.requested_quantity = requested_quantity
        super().__init__(
            f"Not enough stock available for {product_name}. Current stock: {current_stock}"
        )


@dataclass(frozen=True)
class RuntimeContext:
    """Container for configuration and the record store used by the BLL."""

    settings: data_manager.ConfigSettings
    store: RecordStore


@dataclass(frozen=True)
class StockMovement:
    """One signed stock change derived from an invoice line."""

    movement_date: date
    change: int
    invoice_id: str
    invoice_number: str


def _resolve_timestamp(candidate: Optional[datetime]) -> datetime:
    """Return ``candidate`` or, when ``None``, the current UTC datetime."""

    return candidate if candidate is not None else datetime.now(UTC)


def current_date() -> date:
    """Return today's date in UTC, the calendar used for invoices and payments."""
    return _resolve_timestamp(None).date()


def _as_decimal(value: Number) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def generate_record_id() -> str:
    """Generate a client-side identity for a new record."""

    return str(uuid.uuid4())


def _upsert(records: List[Any], record: Any, key: str) -> List[Any]:
    """Replace the record sharing ``key`` with ``record`` or append it."""

    record_key = getattr(record, key)
    for index, existing in enumerate(records):
        if getattr(existing, key) == record_key:
            records[index] = record
            return records
    records.append(record)
    return records


# ---------------------------------------------------------------------------
# Runtime/context management
# ---------------------------------------------------------------------------


def load_runtime_context(config_path: Optional[Path] = None) -> RuntimeContext:
    """Load configuration settings and a workbook-backed store.

    The helper resolves ``config.ini``, parses settings, and opens the Excel
    workbook that stores the ledger. The resulting :class:`RuntimeContext`
    bundles the immutable settings with a :class:`~bizswift.store.WorkbookStore`.

    Args:
        config_path (Path | None): Optional override path for the configuration
            file. When omitted the data layer performs its upward search from
            the current working directory.

    Returns:
        RuntimeContext: Fully populated context ready for orchestration
            functions.

    Raises:
        FileNotFoundError: If the configuration file or workbook cannot be
            located.
        KeyError: When mandatory configuration options are missing.
    """
    located_config = data_manager.find_config_file(config_path)
    resolved_config = Path(located_config).expanduser().resolve()
    parser = data_manager.read_config(resolved_config)
    settings = data_manager.parse_settings(parser, base_path=resolved_config.parent)
    workbook = data_manager.open_workbook(settings.data_file)
    log.info("Loaded runtime context for workbook '%s'", settings.data_file)
    return RuntimeContext(settings=settings, store=WorkbookStore(workbook, settings.data_file))


def ensure_schema_version(context: RuntimeContext) -> None:
    """Validate workbook compatibility before mutating state.

    Raises:
        RuntimeError: If the schema version declared in the configuration does
            not match ``EXPECTED_SCHEMA_VERSION``.
    """
    if context.settings.schema_version != EXPECTED_SCHEMA_VERSION:
        log.error(
            "Workbook schema mismatch: expected %s, found %s",
            EXPECTED_SCHEMA_VERSION,
            context.settings.schema_version,
        )
        raise RuntimeError(
            "Workbook schema mismatch: expected %s, found %s"
            % (EXPECTED_SCHEMA_VERSION, context.settings.schema_version)
        )

    log.debug("Schema version '%s' validated", context.settings.schema_version)


def persist_context(context: RuntimeContext) -> None:
    """Flush pending store writes to durable storage."""
    context.store.flush()


def refresh_context(context: RuntimeContext) -> RuntimeContext:
    """Reload the configured workbook to discard unsaved modifications.

    Returns:
        RuntimeContext: Fresh context over a newly opened workbook; caches
            held by the previous store are discarded with it.

    Raises:
        FileNotFoundError: If the backing workbook cannot be reloaded.
    """
    workbook = data_manager.refresh_workbook(context.settings.data_file)
    log.info("Reloaded workbook '%s'", context.settings.data_file)
    return RuntimeContext(
        settings=context.settings,
        store=WorkbookStore(workbook, context.settings.data_file),
    )


# ---------------------------------------------------------------------------
# Pure derivations
# ---------------------------------------------------------------------------


def derive_status(paid_amount: Decimal, total: Decimal) -> InvoiceStatus:
    """Derive an invoice's payment status from what has been paid.

    ``paid`` once ``paid_amount`` reaches ``total``, ``partial`` for any
    positive amount short of it, ``unpaid`` otherwise.
    """
    if paid_amount >= total:
        return InvoiceStatus.PAID
    if paid_amount > Decimal("0"):
        return InvoiceStatus.PARTIAL
    return InvoiceStatus.UNPAID


def normalize_paid_amount(paid_amount: Optional[Decimal], status: InvoiceStatus, total: Decimal) -> Decimal:
    """Fill in an unset paid amount from the invoice's declared status.

    An invoice declared ``paid`` without a paid amount is taken as paid in
    full; anything else starts at zero. A paid amount that is already set is
    returned unchanged.
    """
    if paid_amount is not None:
        return paid_amount
    return total if status == InvoiceStatus.PAID else Decimal("0")


def stock_direction(party_type: Optional[PartyType]) -> int:
    """Return the stock sign for an invoice raised against ``party_type``.

    Sales to customers take stock out (``-1``), purchases from suppliers bring
    it in (``+1``). Unknown roles do not move stock.
    """
    if party_type == PartyType.CUSTOMER:
        return -1
    if party_type == PartyType.SUPPLIER:
        return 1
    return 0


def invoice_number_prefix(today: date) -> str:
    """Return the month prefix, e.g. ``INV-2510-`` for October 2025."""
    return f"{INVOICE_NUMBER_PREFIX}-{today:%y%m}-"


def _parse_sequence(suffix: str) -> Optional[int]:
    """Parse the leading digits of an invoice number suffix."""

    digits = ""
    for char in suffix.strip():
        if not char.isdigit():
            break
        digits += char
    return int(digits) if digits else None


def next_invoice_number(invoices: Iterable[InvoiceRow], today: date) -> str:
    """Compute the next sequential invoice number for ``today``'s month.

    Numbers take the form ``INV-{YY}{MM}-{NNN}``. Only numbers carrying the
    current month prefix count; their numeric suffixes are parsed (suffixes
    without leading digits are ignored), the maximum is incremented, and the
    result is zero-padded to three digits. Past 999 the number simply grows
    wider. A new month therefore restarts at ``001``.

    Args:
        invoices (Iterable[InvoiceRow]): Existing invoices to scan.
        today (date): Date whose year and month select the sequence.

    Returns:
        str: The next invoice number in the sequence.

    The function is pure. Two callers working from the same snapshot will
    compute the same number; nothing here guards against that.
    """
    prefix = invoice_number_prefix(today)
    highest = 0
    for invoice in invoices:
        number = invoice.invoice_number or ""
        if not number.startswith(prefix):
            continue
        sequence = _parse_sequence(number[len(prefix):])
        if sequence is not None and sequence > highest:
            highest = sequence
    return f"{prefix}{highest + 1:0{INVOICE_SEQUENCE_WIDTH}d}"


def calculate_invoice_totals(
    items: Sequence[InvoiceItemRow],
    tax_percentage: Number,
    discount: Number = Decimal("0"),
) -> Dict[str, Decimal]:
    """Compute subtotal, tax amount, and total for a set of line items.

    Returns:
        dict[str, Decimal]: ``subtotal`` (sum of item amounts),
            ``tax_amount`` (``subtotal * tax_percentage / 100``) and ``total``
            (``subtotal + tax_amount - discount``).
    """
    subtotal = sum((item.amount for item in items), Decimal("0"))
    tax_amount = subtotal * _as_decimal(tax_percentage) / Decimal("100")
    total = subtotal + tax_amount - _as_decimal(discount)
    return {"subtotal": subtotal, "tax_amount": tax_amount, "total": total}


def build_invoice_item(product: ProductRow, quantity: int, *, rate: Optional[Number] = None) -> InvoiceItemRow:
    """Create a line item that snapshots the product's name, rate and tax code."""
    unit_rate = _as_decimal(rate) if rate is not None else product.unit_price
    return InvoiceItemRow(
        item_id=generate_record_id(),
        product_id=product.product_id,
        product_name=product.product_name,
        quantity=quantity,
        rate=unit_rate,
        amount=unit_rate * quantity,
        tax_code=product.tax_code,
    )


def require_positive_quantity(quantity: int) -> None:
    """Validate that a quantity is strictly positive.

    Raises:
        ValueError: If ``quantity`` is zero or negative.
    """
    if quantity <= 0:
        log.error("Quantity validation failed: %s", quantity)
        raise ValueError("Quantity must be greater than zero")


# ---------------------------------------------------------------------------
# Parties
# ---------------------------------------------------------------------------


def list_parties(context: RuntimeContext) -> List[PartyRow]:
    """Return every party in stored order."""
    return context.store.load(Collection.PARTIES)


def find_party(context: RuntimeContext, party_id: Optional[str]) -> Optional[PartyRow]:
    """Return the party with ``party_id`` or ``None`` when it is unknown."""
    for party in list_parties(context):
        if party.party_id == party_id:
            return party
    return None


def get_party(context: RuntimeContext, party_id: str) -> PartyRow:
    """Resolve a party record by its identifier.

    Raises:
        NotFoundError: If ``party_id`` is not in the store.
    """
    party = find_party(context, party_id)
    if party is None:
        log.warning("Party lookup failed for id '%s'", party_id)
        raise NotFoundError(f"Party not found: {party_id}")
    return party


def save_party(context: RuntimeContext, party: PartyRow) -> PartyRow:
    """Insert or replace a party, assigning an identity when it has none."""
    if not party.party_id:
        party = replace(party, party_id=generate_record_id())
    parties = _upsert(list_parties(context), party, "party_id")
    context.store.replace(Collection.PARTIES, parties)
    log.info("Saved %s '%s' (%s)", party.party_type.value, party.party_id, party.party_name)
    return party


def delete_party(context: RuntimeContext, party_id: str) -> bool:
    """Remove a party. Invoices and transactions referencing it are kept."""
    parties = list_parties(context)
    remaining = [party for party in parties if party.party_id != party_id]
    context.store.replace(Collection.PARTIES, remaining)
    removed = len(remaining) != len(parties)
    log.info("Deleted party '%s' (found=%s)", party_id, removed)
    return removed


# ---------------------------------------------------------------------------
# Products and stock
# ---------------------------------------------------------------------------


def list_products(context: RuntimeContext) -> List[ProductRow]:
    """Return every product in stored order."""
    return context.store.load(Collection.PRODUCTS)


def find_product(context: RuntimeContext, product_id: Optional[str]) -> Optional[ProductRow]:
    """Return the product with ``product_id`` or ``None`` when it is unknown."""
    for product in list_products(context):
        if product.product_id == product_id:
            return product
    return None


def get_product(context: RuntimeContext, product_id: str) -> ProductRow:
    """Resolve a product record by its identifier.

    Raises:
        NotFoundError: If ``product_id`` is not in the store.
    """
    product = find_product(context, product_id)
    if product is None:
        log.warning("Product lookup failed for id '%s'", product_id)
        raise NotFoundError(f"Product not found: {product_id}")
    return product


def save_product(context: RuntimeContext, product: ProductRow) -> ProductRow:
    """Insert or replace a product.

    A product without an identity gets one, and a missing stock level is
    stored as ``0``. Stock is otherwise taken as given; it may be negative.
    """
    if not product.product_id:
        product = replace(product, product_id=generate_record_id())
    if product.stock is None:
        product = replace(product, stock=0)
    products = _upsert(list_products(context), product, "product_id")
    context.store.replace(Collection.PRODUCTS, products)
    log.info("Saved product '%s' (%s, stock=%s)", product.product_id, product.product_name, product.stock)
    return product


def delete_product(context: RuntimeContext, product_id: str) -> bool:
    """Remove a product. Invoice lines referencing it are kept."""
    products = list_products(context)
    remaining = [product for product in products if product.product_id != product_id]
    context.store.replace(Collection.PRODUCTS, remaining)
    removed = len(remaining) != len(products)
    log.info("Deleted product '%s' (found=%s)", product_id, removed)
    return removed


def adjust_stock(context: RuntimeContext, product_id: str, quantity: int) -> bool:
    """Add ``quantity`` (which may be negative) to a product's stock.

    No floor is enforced, so stock can go below zero.

    Args:
        context (RuntimeContext): Runtime context providing the store.
        product_id (str): Product whose stock should move.
        quantity (int): Signed change to apply.

    Returns:
        bool: ``True`` when the product exists and was updated, ``False`` when
            the product is unknown (nothing is written in that case).
    """
    product = find_product(context, product_id)
    if product is None:
        log.warning("Stock adjustment skipped: unknown product id '%s'", product_id)
        return False
    save_product(context, replace(product, stock=product.stock + quantity))
    log.info("Adjusted stock of '%s' by %+d", product_id, quantity)
    return True


def has_enough_stock(context: RuntimeContext, product_id: str, requested_quantity: int) -> bool:
    """Return whether the product holds at least ``requested_quantity``.

    Unknown products never have enough stock.
    """
    product = find_product(context, product_id)
    if product is None:
        return False
    return product.stock >= requested_quantity


def low_stock_threshold(context: RuntimeContext, product: ProductRow) -> int:
    """Return the product's alert level, or the configured default when unset."""
    return product.low_stock_alert or context.settings.low_stock_threshold


def list_low_stock_products(context: RuntimeContext) -> List[ProductRow]:
    """Return products whose stock is at or below their alert threshold."""
    return [
        product
        for product in list_products(context)
        if product.stock <= low_stock_threshold(context, product)
    ]


def list_out_of_stock_products(context: RuntimeContext) -> List[ProductRow]:
    """Return products with no stock left (zero or negative)."""
    return [product for product in list_products(context) if product.stock <= 0]


def stock_movement_history(context: RuntimeContext, product_id: str) -> List[StockMovement]:
    """Derive a product's stock change log from invoice history.

    Every invoice line referencing ``product_id`` produces one movement,
    signed by the owning party's role (negative for sales to customers,
    positive for purchases from suppliers). Invoices whose party no longer
    exists are skipped. Stock set directly through :func:`save_product` or
    :func:`adjust_stock` does not appear here.

    Args:
        context (RuntimeContext): Runtime context providing the store.
        product_id (str): Product to trace.

    Returns:
        list[StockMovement]: Movements sorted newest invoice date first.
    """
    parties = {party.party_id: party for party in list_parties(context)}
    history: List[StockMovement] = []
    for invoice in list_invoices(context):
        party = parties.get(invoice.party_id)
        if party is None:
            continue
        direction = stock_direction(party.party_type)
        for item in invoice.items:
            if item.product_id == product_id:
                history.append(
                    StockMovement(
                        movement_date=invoice.invoice_date,
                        change=direction * item.quantity,
                        invoice_id=invoice.invoice_id or "",
                        invoice_number=invoice.invoice_number or "",
                    )
                )
    history.sort(key=lambda movement: movement.movement_date, reverse=True)
    log.debug("Derived %d stock movements for product '%s'", len(history), product_id)
    return history


# ---------------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------------


def list_invoices(context: RuntimeContext) -> List[InvoiceRow]:
    """Return every invoice, filling in unset paid amounts from status."""
    invoices = []
    for invoice in context.store.load(Collection.INVOICES):
        if invoice.paid_amount is None:
            invoice = replace(
                invoice,
                paid_amount=normalize_paid_amount(None, invoice.status, invoice.total),
            )
        invoices.append(invoice)
    return invoices


def find_invoice(context: RuntimeContext, invoice_id: Optional[str]) -> Optional[InvoiceRow]:
    """Return the invoice with ``invoice_id`` or ``None`` when it is unknown."""
    for invoice in list_invoices(context):
        if invoice.invoice_id == invoice_id:
            return invoice
    return None


def get_invoice(context: RuntimeContext, invoice_id: str) -> InvoiceRow:
    """Resolve an invoice by its identifier.

    Raises:
        NotFoundError: If ``invoice_id`` is not in the store.
    """
    invoice = find_invoice(context, invoice_id)
    if invoice is None:
        log.warning("Invoice lookup failed for id '%s'", invoice_id)
        raise NotFoundError(f"Invoice not found: {invoice_id}")
    return invoice


def list_invoices_by_party(context: RuntimeContext, party_id: str) -> List[InvoiceRow]:
    return [invoice for invoice in list_invoices(context) if invoice.party_id == party_id]


def list_invoices_by_date_range(context: RuntimeContext, start: date, end: date) -> List[InvoiceRow]:
    """Return invoices dated between ``start`` and ``end``, both inclusive."""
    return [invoice for invoice in list_invoices(context) if start <= invoice.invoice_date <= end]


def list_invoices_by_status(context: RuntimeContext, status: InvoiceStatus) -> List[InvoiceRow]:
    return [invoice for invoice in list_invoices(context) if invoice.status == status]


def list_invoices_by_party_type(context: RuntimeContext, party_type: PartyType) -> List[InvoiceRow]:
    """Return sales (customer) or purchase (supplier) invoices.

    Invoices whose party no longer exists belong to neither side.
    """
    roles = {party.party_id: party.party_type for party in list_parties(context)}
    return [invoice for invoice in list_invoices(context) if roles.get(invoice.party_id) == party_type]


def generate_invoice_number(context: RuntimeContext) -> str:
    """Return the next invoice number for the current month."""
    return next_invoice_number(list_invoices(context), current_date())


def apply_invoice_stock(context: RuntimeContext, invoice: InvoiceRow) -> int:
    """Move stock for every product line of a newly created invoice.

    Customer invoices take each line's quantity out of stock; supplier
    invoices add it. Lines without a product reference are ignored. An
    unknown party or product is logged and skipped rather than raised, so a
    partially applicable invoice still moves the stock it can.

    Args:
        context (RuntimeContext): Runtime context providing the store.
        invoice (InvoiceRow): Invoice being created.

    Returns:
        int: Number of lines whose product stock was adjusted.
    """
    party = find_party(context, invoice.party_id)
    if party is None:
        log.warning(
            "Stock sync skipped for invoice '%s': unknown party id '%s'",
            invoice.invoice_number,
            invoice.party_id,
        )
        return 0

    direction = stock_direction(party.party_type)
    if direction == 0:
        return 0

    adjusted = 0
    for item in invoice.items:
        if not item.product_id:
            continue
        if adjust_stock(context, item.product_id, direction * item.quantity):
            adjusted += 1
    return adjusted


def save_invoice(context: RuntimeContext, invoice: InvoiceRow) -> InvoiceRow:
    """Finalise and persist an invoice.

    The workflow decides whether the invoice is new (no identity, or an
    identity the store has never seen) before touching it, then assigns an
    identity and an invoice number when absent, fills in an unset paid amount
    from the declared status, and re-derives ``status`` from paid amount
    versus total. Only a new invoice moves stock (see
    :func:`apply_invoice_stock`); re-saving an existing invoice never does,
    even when its quantities changed. The invoice is then upserted and the
    whole collection rewritten.

    Args:
        context (RuntimeContext): Runtime context providing the store.
        invoice (InvoiceRow): Invoice to persist.

    Returns:
        InvoiceRow: The finalised invoice as stored.
    """
    invoices = list_invoices(context)
    is_new = not invoice.invoice_id or all(
        existing.invoice_id != invoice.invoice_id for existing in invoices
    )

    if not invoice.invoice_id:
        invoice = replace(invoice, invoice_id=generate_record_id())
    if not invoice.invoice_number:
        invoice = replace(invoice, invoice_number=next_invoice_number(invoices, current_date()))

    paid_amount = normalize_paid_amount(invoice.paid_amount, invoice.status, invoice.total)
    invoice = replace(
        invoice,
        paid_amount=paid_amount,
        status=derive_status(paid_amount, invoice.total),
    )

    if is_new:
        apply_invoice_stock(context, invoice)

    context.store.replace(Collection.INVOICES, _upsert(invoices, invoice, "invoice_id"))
    log.info(
        "Saved %s invoice '%s' (total=%s, paid=%s, status=%s)",
        "new" if is_new else "existing",
        invoice.invoice_number,
        invoice.total,
        invoice.paid_amount,
        invoice.status.value,
    )
    return invoice


def delete_invoice(context: RuntimeContext, invoice_id: str) -> bool:
    """Remove an invoice. Stock moved at creation is not reversed."""
    invoices = list_invoices(context)
    remaining = [invoice for invoice in invoices if invoice.invoice_id != invoice_id]
    context.store.replace(Collection.INVOICES, remaining)
    removed = len(remaining) != len(invoices)
    log.info("Deleted invoice '%s' (found=%s)", invoice_id, removed)
    return removed


def build_quick_invoice(
    context: RuntimeContext,
    party_id: str,
    product_id: str,
    quantity: int,
    discount: Number = Decimal("0"),
    tax_percentage: Optional[Number] = None,
    status: InvoiceStatus = InvoiceStatus.UNPAID,
) -> InvoiceRow:
    """Create and persist a single-line invoice for one product.

    All validation runs before anything is written: the product and the party
    must exist, the quantity must be positive, and a customer must not ask for
    more than the product currently holds. The line is priced at the
    product's unit price; tax is ``amount * tax_percentage / 100`` and the
    total is ``amount + tax - discount``. A ``paid`` request is recorded as
    paid in full, any other status starts at zero paid. Persistence goes
    through :func:`save_invoice`, which also moves the stock.

    Args:
        context (RuntimeContext): Runtime context providing the store.
        party_id (str): Customer or supplier being invoiced.
        product_id (str): Product sold or purchased.
        quantity (int): Number of units.
        discount (Decimal | int | str): Flat discount off the total.
        tax_percentage (Decimal | int | str | None): Tax rate; defaults to the
            configured rate (18% unless overridden).
        status (InvoiceStatus): Requested payment status.

    Returns:
        InvoiceRow: The persisted invoice.

    Raises:
        NotFoundError: If the product or the party is unknown.
        InsufficientStockError: If a customer requests more than is in stock.
        ValueError: If ``quantity`` is not positive.
    """
    product = get_product(context, product_id)
    party = get_party(context, party_id)
    require_positive_quantity(quantity)

    if party.party_type == PartyType.CUSTOMER and not has_enough_stock(context, product_id, quantity):
        log.error(
            "Quick invoice rejected: %s requested %d of '%s' with %d in stock",
            party.party_name,
            quantity,
            product.product_name,
            product.stock,
        )
        raise InsufficientStockError(product.product_name, product.stock, quantity)

    rate = tax_percentage if tax_percentage is not None else context.settings.default_tax_percentage
    item = build_invoice_item(product, quantity)
    totals = calculate_invoice_totals([item], rate, discount)

    invoice = InvoiceRow(
        invoice_id=generate_record_id(),
        invoice_number=generate_invoice_number(context),
        party_id=party_id,
        invoice_date=current_date(),
        items=(item,),
        subtotal=totals["subtotal"],
        tax_percentage=_as_decimal(rate),
        tax_amount=totals["tax_amount"],
        discount=_as_decimal(discount),
        total=totals["total"],
        paid_amount=totals["total"] if status == InvoiceStatus.PAID else Decimal("0"),
        status=status,
    )
    return save_invoice(context, invoice)


# ---------------------------------------------------------------------------
# Transactions and reconciliation
# ---------------------------------------------------------------------------


def list_transactions(context: RuntimeContext) -> List[TransactionRow]:
    """Return every payment and receipt in stored order."""
    return context.store.load(Collection.TRANSACTIONS)


def save_transaction(context: RuntimeContext, transaction: TransactionRow) -> TransactionRow:
    """Insert or replace a payment or receipt.

    New transactions receive an identity and a UTC creation timestamp. When a
    stored transaction is replaced, its original ``created_at`` is kept.

    This does not reconcile the linked invoice; callers run
    :func:`reconcile_payment` afterwards.
    """
    transactions = list_transactions(context)
    if not transaction.transaction_id:
        transaction = replace(transaction, transaction_id=generate_record_id())

    existing = next(
        (t for t in transactions if t.transaction_id == transaction.transaction_id),
        None,
    )
    if existing is not None and existing.created_at:
        transaction = replace(transaction, created_at=existing.created_at)
    elif not transaction.created_at:
        transaction = replace(transaction, created_at=_resolve_timestamp(None).isoformat())

    context.store.replace(Collection.TRANSACTIONS, _upsert(transactions, transaction, "transaction_id"))
    log.info(
        "Saved %s '%s' (amount=%s, invoice=%s)",
        transaction.transaction_type.value,
        transaction.transaction_id,
        transaction.amount,
        transaction.invoice_id,
    )
    return transaction


def delete_transaction(context: RuntimeContext, transaction_id: str) -> bool:
    """Remove a transaction without reconciling its invoice."""
    transactions = list_transactions(context)
    remaining = [t for t in transactions if t.transaction_id != transaction_id]
    context.store.replace(Collection.TRANSACTIONS, remaining)
    removed = len(remaining) != len(transactions)
    log.info("Deleted transaction '%s' (found=%s)", transaction_id, removed)
    return removed


def list_transactions_by_party(context: RuntimeContext, party_id: str) -> List[TransactionRow]:
    return [t for t in list_transactions(context) if t.party_id == party_id]


def list_transactions_by_type(context: RuntimeContext, transaction_type: TransactionType) -> List[TransactionRow]:
    return [t for t in list_transactions(context) if t.transaction_type == transaction_type]


def list_transactions_by_invoice(context: RuntimeContext, invoice_id: Optional[str]) -> List[TransactionRow]:
    return [t for t in list_transactions(context) if t.invoice_id == invoice_id]


def invoice_remaining_amount(context: RuntimeContext, invoice_id: str) -> Decimal:
    """Return what is still owed on an invoice, never below zero.

    Unknown invoices owe nothing.
    """
    invoice = find_invoice(context, invoice_id)
    if invoice is None:
        return Decimal("0")
    return max(Decimal("0"), invoice.total - (invoice.paid_amount or Decimal("0")))


def reconcile_payment(context: RuntimeContext, invoice: InvoiceRow) -> InvoiceRow:
    """Recompute an invoice's paid amount and status from its transactions.

    The transaction book is the source of truth: the paid amount becomes the
    sum of every transaction linked to the invoice, payments and receipts
    alike, whatever the invoice recorded before. The status is re-derived and
    the invoice persisted through :func:`save_invoice`.

    Args:
        context (RuntimeContext): Runtime context providing the store.
        invoice (InvoiceRow): Invoice to reconcile.

    Returns:
        InvoiceRow: The reconciled invoice as stored.
    """
    linked = list_transactions_by_invoice(context, invoice.invoice_id)
    paid_amount = sum((t.amount for t in linked), Decimal("0"))
    reconciled = replace(
        invoice,
        paid_amount=paid_amount,
        status=derive_status(paid_amount, invoice.total),
    )
    log.info(
        "Reconciled invoice '%s' against %d transactions (paid=%s)",
        invoice.invoice_number,
        len(linked),
        paid_amount,
    )
    return save_invoice(context, reconciled)


# ---------------------------------------------------------------------------
# Business profile and reports
# ---------------------------------------------------------------------------


def get_business_info(context: RuntimeContext) -> BusinessInfoRow:
    """Return the stored business profile or the built-in defaults."""
    records = context.store.load(Collection.BUSINESS_INFO)
    return records[0] if records else data_manager.DEFAULT_BUSINESS_INFO


def save_business_info(context: RuntimeContext, info: BusinessInfoRow) -> BusinessInfoRow:
    context.store.replace(Collection.BUSINESS_INFO, [info])
    log.info("Saved business profile '%s'", info.business_name)
    return info


def calculate_ledger_summary(context: RuntimeContext) -> Dict[str, Decimal]:
    """Produce aggregate sales, purchase, and outstanding balance figures.

    Sales and receivables come from customer invoices, purchases and payables
    from supplier invoices; invoices whose party is missing are left out of
    both sides. Receipt and payment totals come from the transaction book.

    Returns:
        dict[str, Decimal]: ``total_sales``, ``total_purchases``,
            ``receivables``, ``payables``, ``total_receipts`` and
            ``total_payments``.
    """
    roles = {party.party_id: party.party_type for party in list_parties(context)}
    summary = {
        "total_sales": Decimal("0"),
        "total_purchases": Decimal("0"),
        "receivables": Decimal("0"),
        "payables": Decimal("0"),
        "total_receipts": Decimal("0"),
        "total_payments": Decimal("0"),
    }
    for invoice in list_invoices(context):
        role = roles.get(invoice.party_id)
        outstanding = max(Decimal("0"), invoice.total - (invoice.paid_amount or Decimal("0")))
        if role == PartyType.CUSTOMER:
            summary["total_sales"] += invoice.total
            summary["receivables"] += outstanding
        elif role == PartyType.SUPPLIER:
            summary["total_purchases"] += invoice.total
            summary["payables"] += outstanding

    for transaction in list_transactions(context):
        if transaction.transaction_type == TransactionType.RECEIPT:
            summary["total_receipts"] += transaction.amount
        else:
            summary["total_payments"] += transaction.amount

    log.debug("Calculated ledger summary: %s", summary)
    return summary
