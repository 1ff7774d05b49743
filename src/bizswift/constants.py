"""Enumerations and defaults shared across the BizSwift ledger modules.

Keeps the identifiers used by the data access layer (DAL), the business logic
layer (BLL), and the CLI in one place so persisted values never drift between
layers.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum


# Workbook layout version expected by all layers.
EXPECTED_SCHEMA_VERSION = "1.0.0"

DEFAULT_TAX_PERCENTAGE = Decimal("18")
DEFAULT_LOW_STOCK_THRESHOLD = 5
INVOICE_NUMBER_PREFIX = "INV"
INVOICE_SEQUENCE_WIDTH = 3


class PartyType(str, Enum):
    """Role a trading party plays against the business."""

    CUSTOMER = "customer"
    SUPPLIER = "supplier"


class InvoiceStatus(str, Enum):
    """Payment state of an invoice, derived from paid amount versus total."""

    PAID = "paid"
    PARTIAL = "partial"
    UNPAID = "unpaid"


class TransactionType(str, Enum):
    """Direction of money movement recorded in the transaction book."""

    PAYMENT = "payment"
    RECEIPT = "receipt"


class PaymentMode(str, Enum):
    """Enumerate supported settlement mechanisms."""

    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    UPI = "upi"
    CHEQUE = "cheque"


class Collection(str, Enum):
    """Logical record collections held by a record store."""

    PARTIES = "parties"
    PRODUCTS = "products"
    INVOICES = "invoices"
    TRANSACTIONS = "transactions"
    BUSINESS_INFO = "business_info"


class SheetName(str, Enum):
    """Enumerate the workbook sheet names managed by the DAL."""

    PARTIES = "Parties"
    PRODUCTS = "Products"
    INVOICES = "Invoices"
    INVOICE_ITEMS = "InvoiceItems"
    TRANSACTIONS = "Transactions"
    BUSINESS_INFO = "BusinessInfo"


__all__ = [
    "EXPECTED_SCHEMA_VERSION",
    "DEFAULT_TAX_PERCENTAGE",
    "DEFAULT_LOW_STOCK_THRESHOLD",
    "INVOICE_NUMBER_PREFIX",
    "INVOICE_SEQUENCE_WIDTH",
    "PartyType",
    "InvoiceStatus",
    "TransactionType",
    "PaymentMode",
    "Collection",
    "SheetName",
]
