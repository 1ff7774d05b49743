"""Data access layer for the BizSwift ledger.

This module provides low-level helpers that read from and write to the ledger
workbook. Business logic belongs elsewhere.

The public API is designed around three responsibilities:

1. Configuration handling: finding and parsing ``config.ini``.
2. Workbook lifecycle: opening, creating, and persisting the Excel file.
3. Sheet operations: loading structured records and replacing a whole
   collection's rows in one pass.
"""


from __future__ import annotations

import configparser
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from openpyxl.styles import Font
from openpyxl.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet
import openpyxl

from . import log
from .constants import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    DEFAULT_TAX_PERCENTAGE,
    InvoiceStatus,
    PartyType,
    PaymentMode,
    SheetName,
    TransactionType,
)


CONFIG_FILE_NAME = "config.ini"
PARTIES_SHEET = SheetName.PARTIES.value
PRODUCTS_SHEET = SheetName.PRODUCTS.value
INVOICES_SHEET = SheetName.INVOICES.value
INVOICE_ITEMS_SHEET = SheetName.INVOICE_ITEMS.value
TRANSACTIONS_SHEET = SheetName.TRANSACTIONS.value
BUSINESS_INFO_SHEET = SheetName.BUSINESS_INFO.value

SHEET_COLUMNS: Mapping[str, Sequence[str]] = {
    PARTIES_SHEET: [
        "PartyID",
        "PartyName",
        "PartyType",
        "Mobile",
        "Address",
        "TaxID",
        "State",
    ],
    PRODUCTS_SHEET: [
        "ProductID",
        "ProductName",
        "Description",
        "UnitPrice",
        "CostPrice",
        "Stock",
        "Unit",
        "TaxCode",
        "LowStockAlert",
    ],
    INVOICES_SHEET: [
        "InvoiceID",
        "InvoiceNumber",
        "PartyID",
        "InvoiceDate",
        "Subtotal",
        "TaxPercentage",
        "TaxAmount",
        "Discount",
        "Total",
        "PaidAmount",
        "Status",
        "DeliveryBy",
        "Transport",
        "VehicleNo",
        "WayBillNo",
        "PONumber",
        "PaymentTerm",
    ],
    INVOICE_ITEMS_SHEET: [
        "InvoiceID",
        "ItemID",
        "ProductID",
        "ProductName",
        "Quantity",
        "Rate",
        "Amount",
        "TaxCode",
    ],
    TRANSACTIONS_SHEET: [
        "TransactionID",
        "TransactionType",
        "Amount",
        "TransactionDate",
        "PartyID",
        "InvoiceID",
        "PaymentMode",
        "Description",
        "Reference",
        "CreatedAt",
    ],
    BUSINESS_INFO_SHEET: [
        "BusinessName",
        "Address",
        "Phone",
        "Email",
        "TaxID",
        "TermsAndConditions",
    ],
}


@dataclass(frozen=True)
class ConfigSettings:
    """Typed representation of the ``config.ini`` settings we care about."""

    data_file: Path
    schema_version: str
    default_tax_percentage: Decimal = DEFAULT_TAX_PERCENTAGE
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD


@dataclass(frozen=True)
class PartyRow:
    """In-memory view of a row from the ``Parties`` sheet."""

    party_id: Optional[str]
    party_name: str
    party_type: PartyType
    mobile: str = ""
    address: str = ""
    tax_id: Optional[str] = None
    state: Optional[str] = None


@dataclass(frozen=True)
class ProductRow:
    """In-memory view of a row from the ``Products`` sheet."""

    product_id: Optional[str]
    product_name: str
    description: str
    unit_price: Decimal
    stock: int = 0
    cost_price: Optional[Decimal] = None
    unit: Optional[str] = None
    tax_code: Optional[str] = None
    low_stock_alert: Optional[int] = None


@dataclass(frozen=True)
class InvoiceItemRow:
    """One line of an invoice, stored on the ``InvoiceItems`` sheet."""

    item_id: str
    product_id: Optional[str]
    product_name: str
    quantity: int
    rate: Decimal
    amount: Decimal
    tax_code: Optional[str] = None


@dataclass(frozen=True)
class InvoiceRow:
    """In-memory view of an ``Invoices`` row together with its line items."""

    invoice_id: Optional[str]
    invoice_number: Optional[str]
    party_id: str
    invoice_date: date
    items: Tuple[InvoiceItemRow, ...]
    subtotal: Decimal
    tax_percentage: Decimal
    tax_amount: Decimal
    discount: Decimal
    total: Decimal
    paid_amount: Optional[Decimal]
    status: InvoiceStatus
    delivery_by: Optional[str] = None
    transport: Optional[str] = None
    vehicle_no: Optional[str] = None
    way_bill_no: Optional[str] = None
    po_number: Optional[str] = None
    payment_term: Optional[str] = None


@dataclass(frozen=True)
class TransactionRow:
    """In-memory view of a row from the ``Transactions`` sheet."""

    transaction_id: Optional[str]
    transaction_type: TransactionType
    amount: Decimal
    transaction_date: date
    party_id: str
    payment_mode: PaymentMode
    invoice_id: Optional[str] = None
    description: Optional[str] = None
    reference: Optional[str] = None
    created_at: Optional[str] = None


@dataclass(frozen=True)
class BusinessInfoRow:
    """The singleton business profile stored on the ``BusinessInfo`` sheet."""

    business_name: str
    address: str
    phone: str
    email: str
    terms_and_conditions: str
    tax_id: Optional[str] = None


DEFAULT_BUSINESS_INFO = BusinessInfoRow(
    business_name="BizSwift Enterprise",
    address="123 Business Street, City, State, PIN",
    phone="9876543210",
    email="contact@bizswift.com",
    terms_and_conditions=(
        "1. Payment due within 30 days\n"
        "2. Goods once sold cannot be returned\n"
        "3. All disputes subject to local jurisdiction"
    ),
    tax_id="22AAAAA0000A1Z5",
)


def find_config_file(explicit_path: Optional[Path] = None) -> Path:
    """Locate the configuration file that controls how the data layer behaves.

    If the caller provides ``explicit_path`` the value is returned immediately
    without any verification. Otherwise the function walks up from the current
    working directory toward the filesystem root looking for a file named
    ``CONFIG_FILE_NAME``; the first match wins.

    Args:
        explicit_path (Path | None): Optional path to use instead of performing
            the upward search.

    Returns:
        Path: The path provided by the caller or the discovered configuration
            file.

    Raises:
        FileNotFoundError: If no parent directory contains ``CONFIG_FILE_NAME``.
    """

    if explicit_path:
        return explicit_path

    current = Path.cwd()
    for p in (current, *current.parents):
        candidate = p / CONFIG_FILE_NAME
        if candidate.exists():
            return candidate

    raise FileNotFoundError(
        f"Configuration file not found: {CONFIG_FILE_NAME}")


def read_config(config_path: Path) -> configparser.ConfigParser:
    """Load ``config.ini`` and return a populated ``ConfigParser`` instance.

    Validation of required entries happens in :func:`parse_settings`.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist after expansion and
            resolution.
    """

    config_path = config_path.expanduser().resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    parser = configparser.ConfigParser()
    parser.read(config_path)
    return parser


def parse_settings(parser: configparser.ConfigParser, *, base_path: Optional[Path] = None) -> ConfigSettings:
    """Convert a ``ConfigParser`` into strongly typed :class:`ConfigSettings`.

    ``[System]`` entries are mandatory. The ``[Defaults]`` section is optional
    and falls back to the package defaults (18% tax, low-stock threshold of
    5). Relative ``DataFile`` paths are anchored to ``base_path`` when
    provided, or to the current working directory otherwise.

    Args:
        parser (configparser.ConfigParser): Parsed configuration data.
        base_path (Path | None): Directory used to resolve a relative
            ``DataFile`` entry.

    Returns:
        ConfigSettings: Immutable settings container.

    Raises:
        KeyError: If a required entry is missing or a default is malformed.
    """

    try:
        data_file_raw = parser.get("System", "DataFile")
        schema_version = parser.get("System", "SchemaVersion")
    except (configparser.NoSectionError, configparser.NoOptionError) as exc:
        raise KeyError(f"Missing required configuration entry: {exc}") from exc

    try:
        tax_percentage = Decimal(parser.get(
            "Defaults", "TaxPercentage", fallback=str(DEFAULT_TAX_PERCENTAGE)))
        low_stock_threshold = parser.getint(
            "Defaults", "LowStockThreshold", fallback=DEFAULT_LOW_STOCK_THRESHOLD)
    except (InvalidOperation, ValueError) as exc:
        raise KeyError(f"Malformed configuration default: {exc}") from exc

    data_file_path = Path(data_file_raw)
    if not data_file_path.is_absolute():
        if base_path is None:
            base_path = Path.cwd()
        data_file_path = (base_path / data_file_path).resolve()

    return ConfigSettings(
        data_file=data_file_path,
        schema_version=schema_version,
        default_tax_percentage=tax_percentage,
        low_stock_threshold=low_stock_threshold,
    )


def open_workbook(data_file: Path) -> Workbook:
    """Open the ledger workbook and return a live ``openpyxl`` workbook.

    Raises:
        FileNotFoundError: If ``data_file`` does not exist after expansion and
            resolution.
    """

    data_file = Path(data_file).expanduser().resolve()
    if not data_file.exists():
        raise FileNotFoundError(f"Workbook not found: {data_file}")

    wb = openpyxl.load_workbook(data_file)
    return wb


def save_workbook(workbook: Workbook, destination: Path) -> None:
    """Persist the workbook to disk at an explicitly provided destination.

    Parent directories are created on demand.
    """

    dest = Path(destination).expanduser().resolve()
    dest.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(dest)


def refresh_workbook(data_file: Path) -> Workbook:
    """Reload the workbook from disk, discarding any unsaved in-memory changes."""

    return open_workbook(data_file)


def new_workbook(sheet_columns: Mapping[str, Sequence[str]] = SHEET_COLUMNS) -> Workbook:
    """Build an empty in-memory workbook with one headed sheet per collection."""

    workbook = openpyxl.Workbook()
    # openpyxl always creates a default sheet; drop it so only ours remain.
    if workbook.active and workbook.active.title == "Sheet":
        workbook.remove(workbook.active)

    for sheet_name, columns in sheet_columns.items():
        write_header(workbook.create_sheet(title=sheet_name), columns)
    return workbook


def write_header(sheet: Worksheet, columns: Sequence[str]) -> None:
    """Write bold column titles into the first row of ``sheet``."""

    bold_font = Font(bold=True)
    for column_index, column_name in enumerate(columns, start=1):
        cell = sheet.cell(row=1, column=column_index)
        cell.value = column_name
        cell.font = bold_font


def replace_sheet_rows(workbook: Workbook, sheet_name: str, rows: Iterable[Sequence[object]]) -> int:
    """Replace every data row of ``sheet_name`` with ``rows``.

    The worksheet is dropped and recreated at the same position so no stale
    rows survive, which gives the store its replace-whole-collection
    semantics. The header row is rewritten from :data:`SHEET_COLUMNS`.

    Args:
        workbook (Workbook): Workbook containing the target sheet.
        sheet_name (str): Name of the sheet to rewrite.
        rows (Iterable[Sequence[object]]): Serialized rows in column order.

    Returns:
        int: Number of data rows written.
    """

    position = workbook.sheetnames.index(sheet_name)
    workbook.remove(workbook[sheet_name])
    sheet = workbook.create_sheet(title=sheet_name, index=position)
    write_header(sheet, SHEET_COLUMNS[sheet_name])

    count = 0
    for count, row in enumerate(rows, start=1):
        sheet.append(list(row))
    log.debug("Rewrote sheet '%s' with %d rows", sheet_name, count)
    return count


def _iter_data_rows(sheet: Worksheet, width: int) -> Iterable[Tuple[object, ...]]:
    """Yield non-empty data rows padded to ``width`` cells."""

    for raw in sheet.iter_rows(min_row=2, values_only=True):
        # skip fully empty rows
        if any(cell is not None for cell in raw):
            padded = tuple(raw) + (None,) * (width - len(raw))
            yield padded[:width]


def iter_parties(workbook: Workbook) -> Iterable[PartyRow]:
    """Iterate over party records stored on the ``Parties`` worksheet."""

    width = len(SHEET_COLUMNS[PARTIES_SHEET])
    for raw in _iter_data_rows(workbook[PARTIES_SHEET], width):
        yield deserialize_party(raw)


def iter_products(workbook: Workbook) -> Iterable[ProductRow]:
    """Iterate over product records stored on the ``Products`` worksheet.

    Header and fully empty rows are skipped; every other row is converted into
    a :class:`ProductRow` via :func:`deserialize_product`.
    """

    width = len(SHEET_COLUMNS[PRODUCTS_SHEET])
    for raw in _iter_data_rows(workbook[PRODUCTS_SHEET], width):
        yield deserialize_product(raw)


def iter_invoices(workbook: Workbook) -> Iterable[InvoiceRow]:
    """Stream invoices with their line items re-attached.

    Line items are read first from the ``InvoiceItems`` sheet and grouped by
    ``InvoiceID`` in sheet order, then each ``Invoices`` row is converted into
    an :class:`InvoiceRow` carrying its own items. Items whose invoice no
    longer exists are ignored.

    Args:
        workbook (Workbook): Workbook containing both invoice sheets.

    Yields:
        InvoiceRow: One record per populated ``Invoices`` row.
    """

    items_by_invoice: Dict[str, List[InvoiceItemRow]] = {}
    item_width = len(SHEET_COLUMNS[INVOICE_ITEMS_SHEET])
    for raw in _iter_data_rows(workbook[INVOICE_ITEMS_SHEET], item_width):
        invoice_id, item = deserialize_invoice_item(raw)
        items_by_invoice.setdefault(invoice_id, []).append(item)

    width = len(SHEET_COLUMNS[INVOICES_SHEET])
    for raw in _iter_data_rows(workbook[INVOICES_SHEET], width):
        invoice_id = str(raw[0])
        yield deserialize_invoice(raw, items_by_invoice.get(invoice_id, []))


def iter_transactions(workbook: Workbook) -> Iterable[TransactionRow]:
    """Stream transaction records from the ``Transactions`` worksheet."""

    width = len(SHEET_COLUMNS[TRANSACTIONS_SHEET])
    for raw in _iter_data_rows(workbook[TRANSACTIONS_SHEET], width):
        yield deserialize_transaction(raw)


def iter_business_info(workbook: Workbook) -> Iterable[BusinessInfoRow]:
    """Yield the stored business profile, if the sheet holds one."""

    width = len(SHEET_COLUMNS[BUSINESS_INFO_SHEET])
    for raw in _iter_data_rows(workbook[BUSINESS_INFO_SHEET], width):
        yield deserialize_business_info(raw)


def write_parties(workbook: Workbook, records: Iterable[PartyRow]) -> int:
    """Replace the ``Parties`` sheet with ``records``."""

    return replace_sheet_rows(workbook, PARTIES_SHEET, (serialize_party(r) for r in records))


def write_products(workbook: Workbook, records: Iterable[ProductRow]) -> int:
    """Replace the ``Products`` sheet with ``records``."""

    return replace_sheet_rows(workbook, PRODUCTS_SHEET, (serialize_product(r) for r in records))


def write_invoices(workbook: Workbook, records: Iterable[InvoiceRow]) -> int:
    """Replace the ``Invoices`` and ``InvoiceItems`` sheets with ``records``.

    Both sheets are rewritten together so line items never outlive, or go
    missing from, the invoice that owns them.

    Returns:
        int: Number of invoices written.
    """

    invoices = list(records)
    item_rows = [
        serialize_invoice_item(invoice.invoice_id, item)
        for invoice in invoices
        for item in invoice.items
    ]
    replace_sheet_rows(workbook, INVOICE_ITEMS_SHEET, item_rows)
    return replace_sheet_rows(workbook, INVOICES_SHEET, (serialize_invoice(r) for r in invoices))


def write_transactions(workbook: Workbook, records: Iterable[TransactionRow]) -> int:
    """Replace the ``Transactions`` sheet with ``records``."""

    return replace_sheet_rows(workbook, TRANSACTIONS_SHEET, (serialize_transaction(r) for r in records))


def write_business_info(workbook: Workbook, records: Iterable[BusinessInfoRow]) -> int:
    """Replace the ``BusinessInfo`` sheet; only the first record is meaningful."""

    return replace_sheet_rows(workbook, BUSINESS_INFO_SHEET, (serialize_business_info(r) for r in records))


def serialize_party(record: PartyRow) -> list[object]:
    """Convert a party dataclass into the worksheet column ordering."""

    return [
        record.party_id,
        record.party_name,
        record.party_type.value,
        record.mobile,
        record.address,
        record.tax_id,
        record.state,
    ]


def serialize_product(record: ProductRow) -> list[object]:
    """Convert a product dataclass into the worksheet column ordering.

    Returns:
        list[object]: Values arranged as ``[ProductID, ProductName,
        Description, UnitPrice, CostPrice, Stock, Unit, TaxCode,
        LowStockAlert]`` with prices rounded to cents.
    """

    return [
        record.product_id,
        record.product_name,
        record.description,
        _to_money(record.unit_price),
        _to_optional_money(record.cost_price),
        record.stock,
        record.unit,
        record.tax_code,
        record.low_stock_alert,
    ]


def serialize_invoice(record: InvoiceRow) -> list[object]:
    """Convert an invoice header into the ``Invoices`` column order.

    Line items are not part of the header row; see
    :func:`serialize_invoice_item`.
    """

    return [
        record.invoice_id,
        record.invoice_number,
        record.party_id,
        record.invoice_date.isoformat(),
        _to_money(record.subtotal),
        record.tax_percentage,
        _to_money(record.tax_amount),
        _to_money(record.discount),
        _to_money(record.total),
        _to_optional_money(record.paid_amount),
        record.status.value,
        record.delivery_by,
        record.transport,
        record.vehicle_no,
        record.way_bill_no,
        record.po_number,
        record.payment_term,
    ]


def serialize_invoice_item(invoice_id: Optional[str], record: InvoiceItemRow) -> list[object]:
    """Convert a line item into the ``InvoiceItems`` column order."""

    return [
        invoice_id,
        record.item_id,
        record.product_id,
        record.product_name,
        record.quantity,
        _to_money(record.rate),
        _to_money(record.amount),
        record.tax_code,
    ]


def serialize_transaction(record: TransactionRow) -> list[object]:
    """Convert a transaction dataclass into the ``Transactions`` column order."""

    return [
        record.transaction_id,
        record.transaction_type.value,
        _to_money(record.amount),
        record.transaction_date.isoformat(),
        record.party_id,
        record.invoice_id,
        record.payment_mode.value,
        record.description,
        record.reference,
        record.created_at,
    ]


def serialize_business_info(record: BusinessInfoRow) -> list[object]:
    """Convert the business profile into the ``BusinessInfo`` column order."""

    return [
        record.business_name,
        record.address,
        record.phone,
        record.email,
        record.tax_id,
        record.terms_and_conditions,
    ]


def deserialize_party(raw_row: Sequence[object]) -> PartyRow:
    """Convert a raw worksheet row into a strongly typed party record."""

    party_id, party_name, party_type, mobile, address, tax_id, state = raw_row
    return PartyRow(
        party_id=str(party_id),
        party_name=_text(party_name),
        party_type=PartyType(str(party_type)),
        mobile=_text(mobile),
        address=_text(address),
        tax_id=_optional_text(tax_id),
        state=_optional_text(state),
    )


def deserialize_product(raw_row: Sequence[object]) -> ProductRow:
    """Convert a raw worksheet row into a strongly typed product record.

    Prices become :class:`~decimal.Decimal` instances and stock becomes an
    ``int`` (``0`` when blank) so Excel's numeric coercions never leak out of
    the data layer.
    """

    (
        product_id,
        product_name,
        description,
        unit_price,
        cost_price,
        stock,
        unit,
        tax_code,
        low_stock_alert,
    ) = raw_row

    return ProductRow(
        product_id=str(product_id),
        product_name=_text(product_name),
        description=_text(description),
        unit_price=_to_decimal(unit_price),
        stock=_to_int(stock),
        cost_price=_to_optional_decimal(cost_price),
        unit=_optional_text(unit),
        tax_code=_optional_text(tax_code),
        low_stock_alert=_to_optional_int(low_stock_alert),
    )


def deserialize_invoice(raw_row: Sequence[object], items: Sequence[InvoiceItemRow]) -> InvoiceRow:
    """Convert an ``Invoices`` row plus its items into an :class:`InvoiceRow`.

    A blank ``PaidAmount`` cell stays ``None`` so the business layer can apply
    its normalisation rule.
    """

    (
        invoice_id,
        invoice_number,
        party_id,
        invoice_date,
        subtotal,
        tax_percentage,
        tax_amount,
        discount,
        total,
        paid_amount,
        status,
        delivery_by,
        transport,
        vehicle_no,
        way_bill_no,
        po_number,
        payment_term,
    ) = raw_row

    return InvoiceRow(
        invoice_id=str(invoice_id),
        invoice_number=_optional_text(invoice_number),
        party_id=_text(party_id),
        invoice_date=_to_date(invoice_date),
        items=tuple(items),
        subtotal=_to_decimal(subtotal),
        tax_percentage=_to_decimal(tax_percentage),
        tax_amount=_to_decimal(tax_amount),
        discount=_to_decimal(discount),
        total=_to_decimal(total),
        paid_amount=_to_optional_decimal(paid_amount),
        status=InvoiceStatus(str(status)) if status is not None else InvoiceStatus.UNPAID,
        delivery_by=_optional_text(delivery_by),
        transport=_optional_text(transport),
        vehicle_no=_optional_text(vehicle_no),
        way_bill_no=_optional_text(way_bill_no),
        po_number=_optional_text(po_number),
        payment_term=_optional_text(payment_term),
    )


def deserialize_invoice_item(raw_row: Sequence[object]) -> Tuple[str, InvoiceItemRow]:
    """Convert an ``InvoiceItems`` row into ``(invoice_id, item)``."""

    invoice_id, item_id, product_id, product_name, quantity, rate, amount, tax_code = raw_row
    item = InvoiceItemRow(
        item_id=str(item_id),
        product_id=_optional_text(product_id),
        product_name=_text(product_name),
        quantity=_to_int(quantity),
        rate=_to_decimal(rate),
        amount=_to_decimal(amount),
        tax_code=_optional_text(tax_code),
    )
    return str(invoice_id), item


def deserialize_transaction(raw_row: Sequence[object]) -> TransactionRow:
    """Convert a raw worksheet row into a strongly typed transaction record.

    Amounts are normalised into :class:`~decimal.Decimal` instances and
    optional text columns remain ``None`` when blank.
    """

    (
        transaction_id,
        transaction_type,
        amount,
        transaction_date,
        party_id,
        invoice_id,
        payment_mode,
        description,
        reference,
        created_at,
    ) = raw_row

    return TransactionRow(
        transaction_id=str(transaction_id),
        transaction_type=TransactionType(str(transaction_type)),
        amount=_to_decimal(amount),
        transaction_date=_to_date(transaction_date),
        party_id=_text(party_id),
        payment_mode=PaymentMode(str(payment_mode)),
        invoice_id=_optional_text(invoice_id),
        description=_optional_text(description),
        reference=_optional_text(reference),
        created_at=_optional_text(created_at),
    )


def deserialize_business_info(raw_row: Sequence[object]) -> BusinessInfoRow:
    """Convert the ``BusinessInfo`` row into a :class:`BusinessInfoRow`."""

    business_name, address, phone, email, tax_id, terms = raw_row
    return BusinessInfoRow(
        business_name=_text(business_name),
        address=_text(address),
        phone=_text(phone),
        email=_text(email),
        terms_and_conditions=_text(terms),
        tax_id=_optional_text(tax_id),
    )


def _text(raw: object) -> str:
    return str(raw) if raw is not None else ""


def _optional_text(raw: object) -> Optional[str]:
    if raw is None or raw == "":
        return None
    return str(raw)


def _to_decimal(raw: object) -> Decimal:
    return Decimal(str(raw)) if raw is not None else Decimal("0")


def _to_optional_decimal(raw: object) -> Optional[Decimal]:
    if raw is None or raw == "":
        return None
    return Decimal(str(raw))


CENT = Decimal("0.01")


def _to_money(value: Decimal) -> Decimal:
    # Excel stores numbers as doubles; two places survive the round trip.
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _to_optional_money(value: Optional[Decimal]) -> Optional[Decimal]:
    return _to_money(value) if value is not None else None


def _to_int(raw: object) -> int:
    # Excel hands integers back as floats once a cell has been edited.
    return int(Decimal(str(raw))) if raw is not None else 0


def _to_optional_int(raw: object) -> Optional[int]:
    if raw is None or raw == "":
        return None
    return int(Decimal(str(raw)))


def _to_date(raw: object) -> date:
    """Normalise worksheet date cells (ISO text or Excel datetimes)."""

    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    return date.fromisoformat(str(raw)[:10])
