"""Integration tests describing end-to-end BizSwift ledger workflows.

These scenarios run the business logic layer against a real workbook on disk,
persisting and reloading between steps the way the CLI does between
invocations.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from decimal import Decimal

from bizswift import cli, core_logic, data_manager
from bizswift.constants import InvoiceStatus, PartyType, PaymentMode, TransactionType


OCTOBER = datetime(2025, 10, 15, 9, 30, tzinfo=UTC)


def _reload(context: core_logic.RuntimeContext) -> core_logic.RuntimeContext:
    core_logic.persist_context(context)
    return core_logic.refresh_context(context)


def _seed_catalog(context: core_logic.RuntimeContext, *, stock: int) -> None:
    core_logic.save_party(
        context,
        data_manager.PartyRow(party_id="C1", party_name="Acme Traders", party_type=PartyType.CUSTOMER),
    )
    core_logic.save_party(
        context,
        data_manager.PartyRow(party_id="S1", party_name="Metro Supplies", party_type=PartyType.SUPPLIER),
    )
    core_logic.save_product(
        context,
        data_manager.ProductRow(
            product_id="P1",
            product_name="Steel Bolt",
            description="M6 x 40",
            unit_price=Decimal("100"),
            stock=stock,
        ),
    )


def _receipt(invoice_id: str, amount: str) -> data_manager.TransactionRow:
    return data_manager.TransactionRow(
        transaction_id=None,
        transaction_type=TransactionType.RECEIPT,
        amount=Decimal(amount),
        transaction_date=date(2025, 10, 16),
        party_id="C1",
        payment_mode=PaymentMode.BANK_TRANSFER,
        invoice_id=invoice_id,
    )


def test_quick_invoice_and_reconciliation_flow(runtime_context, set_fixed_datetime):
    """Sell from stock, collect in two receipts, and watch the status settle."""

    set_fixed_datetime(OCTOBER)
    context = runtime_context
    _seed_catalog(context, stock=10)
    context = _reload(context)

    invoice = core_logic.build_quick_invoice(
        context, "C1", "P1", 2, discount=Decimal("10"), tax_percentage=Decimal("18")
    )
    context = _reload(context)

    stored = core_logic.get_invoice(context, invoice.invoice_id)
    assert stored.invoice_number == "INV-2510-001"
    assert stored.total == Decimal("226")
    assert stored.status is InvoiceStatus.UNPAID
    assert stored.items[0].product_name == "Steel Bolt"
    assert core_logic.get_product(context, "P1").stock == 8

    core_logic.save_transaction(context, _receipt(invoice.invoice_id, "126"))
    partial = core_logic.reconcile_payment(context, stored)
    assert partial.status is InvoiceStatus.PARTIAL

    core_logic.save_transaction(context, _receipt(invoice.invoice_id, "100"))
    context = _reload(context)
    settled = core_logic.reconcile_payment(context, core_logic.get_invoice(context, invoice.invoice_id))
    context = _reload(context)

    assert settled.paid_amount == Decimal("226")
    assert core_logic.get_invoice(context, invoice.invoice_id).status is InvoiceStatus.PAID
    assert core_logic.get_product(context, "P1").stock == 8
    summary = core_logic.calculate_ledger_summary(context)
    assert summary["total_sales"] == Decimal("226")
    assert summary["receivables"] == Decimal("0")
    assert summary["total_receipts"] == Decimal("226")


def test_insufficient_stock_leaves_workbook_untouched(runtime_context, set_fixed_datetime):
    set_fixed_datetime(OCTOBER)
    context = runtime_context
    _seed_catalog(context, stock=3)
    context = _reload(context)

    try:
        core_logic.build_quick_invoice(context, "C1", "P1", 5)
    except core_logic.InsufficientStockError as error:
        assert error.current_stock == 3
    else:  # pragma: no cover - the quick invoice must be rejected
        raise AssertionError("quick invoice should have been rejected")

    context = _reload(context)
    assert core_logic.list_invoices(context) == []
    assert core_logic.get_product(context, "P1").stock == 3


def test_purchase_restocks_and_appears_in_history(runtime_context, set_fixed_datetime):
    set_fixed_datetime(OCTOBER)
    context = runtime_context
    _seed_catalog(context, stock=1)

    purchase = core_logic.build_quick_invoice(context, "S1", "P1", 12, tax_percentage=Decimal("0"))
    sale = core_logic.build_quick_invoice(context, "C1", "P1", 4, tax_percentage=Decimal("0"))
    context = _reload(context)

    assert core_logic.get_product(context, "P1").stock == 9
    assert [p.product_id for p in core_logic.list_low_stock_products(context)] == []
    history = core_logic.stock_movement_history(context, "P1")
    assert sorted(m.change for m in history) == [-4, 12]
    assert {m.invoice_number for m in history} == {purchase.invoice_number, sale.invoice_number}
    assert sale.invoice_number == "INV-2510-002"

    summary = core_logic.calculate_ledger_summary(context)
    assert summary["total_purchases"] == Decimal("1200")
    assert summary["payables"] == Decimal("1200")


def test_editing_invoice_after_reload_keeps_stock(runtime_context, set_fixed_datetime):
    set_fixed_datetime(OCTOBER)
    context = runtime_context
    _seed_catalog(context, stock=10)
    invoice = core_logic.build_quick_invoice(context, "C1", "P1", 3)
    context = _reload(context)

    edited = core_logic.get_invoice(context, invoice.invoice_id)
    core_logic.save_invoice(context, edited)
    core_logic.delete_invoice(context, invoice.invoice_id)
    context = _reload(context)

    assert core_logic.get_product(context, "P1").stock == 7
    assert core_logic.list_invoices(context) == []


# ---------------------------------------------------------------------------
# CLI flows
# ---------------------------------------------------------------------------


def _run(config_path, capsys, *argv: str) -> tuple[int, str]:
    exit_code = cli.main(["--config", str(config_path), *argv])
    return exit_code, capsys.readouterr().out.strip()


def test_cli_invoice_payment_flow(config_factory, capsys, set_fixed_datetime):
    set_fixed_datetime(OCTOBER)
    config_path = config_factory().config_path

    code, party_id = _run(config_path, capsys, "add-party", "--name", "Acme Traders", "--type", "customer")
    assert code == 0
    code, product_id = _run(
        config_path, capsys, "add-product", "--name", "Steel Bolt", "--price", "100", "--stock", "10"
    )
    assert code == 0

    code, output = _run(
        config_path,
        capsys,
        "quick-invoice",
        "--party-id", party_id,
        "--product-id", product_id,
        "--quantity", "2",
        "--discount", "10",
    )
    assert code == 0
    assert "INV-2510-001" in output

    context = core_logic.load_runtime_context(config_path)
    [invoice] = core_logic.list_invoices(context)
    assert invoice.total == Decimal("226")

    code, _ = _run(
        config_path,
        capsys,
        "record-transaction",
        "--type", "receipt",
        "--amount", "226",
        "--party-id", party_id,
        "--invoice-id", invoice.invoice_id,
        "--date", "2025-10-16",
    )
    assert code == 0

    code, balance = _run(config_path, capsys, "balance", "--invoice-id", invoice.invoice_id)
    assert (code, balance) == (0, "0")

    context = core_logic.load_runtime_context(config_path)
    assert core_logic.get_invoice(context, invoice.invoice_id).status is InvoiceStatus.PAID
    assert core_logic.get_product(context, product_id).stock == 8

    code, summary = _run(config_path, capsys, "summary")
    assert code == 0
    assert "total_sales" in summary


def test_cli_rejected_quick_invoice_is_not_persisted(config_factory, capsys):
    config_path = config_factory().config_path
    _, party_id = _run(config_path, capsys, "add-party", "--name", "Acme", "--type", "customer")
    _, product_id = _run(config_path, capsys, "add-product", "--name", "Bolt", "--price", "5", "--stock", "3")

    code, _ = _run(
        config_path, capsys, "quick-invoice", "--party-id", party_id, "--product-id", product_id, "--quantity", "5"
    )

    assert code == 2
    context = core_logic.load_runtime_context(config_path)
    assert core_logic.list_invoices(context) == []
    assert core_logic.get_product(context, product_id).stock == 3


def test_cli_schema_mismatch_is_refused(config_factory, capsys):
    config_path = config_factory(schema_version="0.1.0").config_path
    code, _ = _run(config_path, capsys, "add-party", "--name", "Acme", "--type", "customer")
    assert code == 1


def test_cli_finds_config_in_a_parent_directory(config_factory, capsys, monkeypatch):
    bundle = config_factory()
    nested = bundle.directory / "reports" / "october"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)

    assert cli.main(["add-party", "--name", "Acme", "--type", "customer"]) == 0
    party_id = capsys.readouterr().out.strip()

    context = core_logic.load_runtime_context(bundle.config_path)
    assert [party.party_id for party in core_logic.list_parties(context)] == [party_id]


def test_cli_updating_a_product_keeps_its_stock(config_factory, capsys):
    config_path = config_factory().config_path
    _, product_id = _run(
        config_path, capsys, "add-product", "--name", "Bolt", "--price", "5", "--stock", "40", "--low-stock-alert", "12"
    )

    code, _ = _run(config_path, capsys, "add-product", "--product-id", product_id, "--name", "Bolt", "--price", "12")

    assert code == 0
    product = core_logic.get_product(core_logic.load_runtime_context(config_path), product_id)
    assert (product.unit_price, product.stock, product.low_stock_alert) == (Decimal("12"), 40, 12)
