"""Shared pytest fixtures and utilities for BizSwift ledger tests."""

from __future__ import annotations

import argparse
import sys
import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Callable, Iterator

import pytest

# Ensure source packages are importable without installation.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"

if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from bizswift import cli, constants, core_logic, data_manager  # noqa: E402
from bizswift.setup_excel import create_master_workbook  # noqa: E402
from bizswift.store import MemoryStore  # noqa: E402

DEFAULT_SCHEMA_VERSION = constants.EXPECTED_SCHEMA_VERSION
_CONFIG_TEMPLATE = (
    "[System]\n"
    "DataFile = {data_file}\n"
    "SchemaVersion = {schema_version}\n\n"
    "[Defaults]\n"
    "TaxPercentage = {tax_percentage}\n"
    "LowStockThreshold = {low_stock_threshold}\n"
)


@dataclass(frozen=True)
class ConfigBundle:
    """Container bundling together config metadata for tests."""

    directory: Path
    config_path: Path
    workbook_path: Path
    schema_version: str


@pytest.fixture(scope="session", autouse=True)
def _restore_sys_path() -> Iterator[None]:
    """Ensure sys.path modifications are undone after the test session."""

    original = sys.path.copy()
    try:
        yield
    finally:
        sys.path[:] = original


@pytest.fixture
def workbook_factory(tmp_path: Path) -> Callable[..., Path]:
    """Factory that creates an initialized ledger workbook in a temp folder."""

    def _create_workbook(
        *,
        subdir: str | None = None,
        filename: str = "ledger.xlsx",
    ) -> Path:
        base_dir = tmp_path if subdir is None else tmp_path / subdir
        base_dir.mkdir(parents=True, exist_ok=True)
        workbook_path = base_dir / filename
        create_master_workbook(workbook_path, overwrite=True)
        return workbook_path

    return _create_workbook


@pytest.fixture
def config_factory(tmp_path: Path, workbook_factory: Callable[..., Path]) -> Callable[..., ConfigBundle]:
    """Provide a callable that creates config/workbook bundles on demand."""

    def _create_config(
        *,
        make_relative: bool = False,
        schema_version: str = DEFAULT_SCHEMA_VERSION,
        tax_percentage: str = "18",
        low_stock_threshold: int = 5,
    ) -> ConfigBundle:
        bundle_name = f"bundle_{uuid.uuid4().hex}"
        bundle_dir = tmp_path / bundle_name
        bundle_dir.mkdir(parents=True, exist_ok=True)
        workbook_path = workbook_factory(subdir=bundle_name)
        data_file_entry = workbook_path.name if make_relative else str(workbook_path)
        config_path = bundle_dir / "config.ini"
        config_path.write_text(
            _CONFIG_TEMPLATE.format(
                data_file=data_file_entry,
                schema_version=schema_version,
                tax_percentage=tax_percentage,
                low_stock_threshold=low_stock_threshold,
            )
        )
        return ConfigBundle(
            directory=bundle_dir,
            config_path=config_path,
            workbook_path=workbook_path,
            schema_version=schema_version,
        )

    return _create_config


@pytest.fixture
def config_file(config_factory: Callable[..., ConfigBundle]) -> Path:
    """Convenience fixture returning only the config path."""

    return config_factory().config_path


@pytest.fixture
def runtime_context(config_file: Path) -> core_logic.RuntimeContext:
    """Load a workbook-backed runtime context through the public API."""

    context = core_logic.load_runtime_context(config_file)
    core_logic.ensure_schema_version(context)
    return context


# ---------------------------------------------------------------------------
# CLI layer fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_parser() -> argparse.ArgumentParser:
    """Return a fresh CLI parser instance for tests."""

    return argparse.ArgumentParser(prog="bizswift-cli", description="BizSwift CLI")


@pytest.fixture
def subparsers_action(
    cli_parser: argparse.ArgumentParser,
) -> argparse._SubParsersAction[argparse.ArgumentParser]:
    """Return the subparser action used to register commands."""

    return cli_parser.add_subparsers(dest="command")


@pytest.fixture
def command_spec_iterable() -> list[cli.CommandSpec]:
    """Provide a list of command specs for indexing tests."""

    def _make_spec(name: str) -> cli.CommandSpec:
        return cli.CommandSpec(
            name,
            f"{name} help",
            lambda subparsers: subparsers.add_parser(name),
            lambda *_: 0,
        )

    return [_make_spec("alpha"), _make_spec("beta"), _make_spec("gamma")]


# ---------------------------------------------------------------------------
# Core logic fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path: Path) -> data_manager.ConfigSettings:
    """Provide default configuration settings for in-memory contexts."""

    return data_manager.ConfigSettings(
        data_file=tmp_path / "ledger.xlsx",
        schema_version=constants.EXPECTED_SCHEMA_VERSION,
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def context(settings: data_manager.ConfigSettings, store: MemoryStore) -> core_logic.RuntimeContext:
    """Assemble a runtime context over an in-memory record store."""

    return core_logic.RuntimeContext(settings=settings, store=store)


@pytest.fixture
def set_fixed_datetime(monkeypatch: pytest.MonkeyPatch) -> Callable[[datetime], datetime]:
    """Patch ``core_logic.datetime`` to return a predetermined moment."""

    def _apply(moment: datetime) -> datetime:
        class _FixedDateTime:
            @staticmethod
            def now(tz=None):
                assert tz is UTC
                return moment

        monkeypatch.setattr(core_logic, "datetime", _FixedDateTime)
        return moment

    return _apply


# ---------------------------------------------------------------------------
# Record builders
# ---------------------------------------------------------------------------


def make_party(
    party_id: str = "C1",
    *,
    party_type: constants.PartyType = constants.PartyType.CUSTOMER,
    name: str = "Acme Traders",
) -> data_manager.PartyRow:
    return data_manager.PartyRow(party_id=party_id, party_name=name, party_type=party_type)


def make_product(
    product_id: str = "P1",
    *,
    stock: int = 10,
    unit_price: Decimal = Decimal("100"),
    low_stock_alert: int | None = None,
    name: str = "Widget",
) -> data_manager.ProductRow:
    return data_manager.ProductRow(
        product_id=product_id,
        product_name=name,
        description="",
        unit_price=unit_price,
        stock=stock,
        low_stock_alert=low_stock_alert,
    )


def make_item(product_id: str | None = "P1", quantity: int = 1, rate: Decimal = Decimal("100")) -> data_manager.InvoiceItemRow:
    return data_manager.InvoiceItemRow(
        item_id=f"item-{uuid.uuid4().hex[:8]}",
        product_id=product_id,
        product_name="Widget",
        quantity=quantity,
        rate=rate,
        amount=rate * quantity,
    )


def make_invoice(
    invoice_id: str | None = None,
    *,
    party_id: str = "C1",
    items: tuple[data_manager.InvoiceItemRow, ...] = (),
    invoice_number: str | None = None,
    invoice_date: date = date(2025, 10, 5),
    total: Decimal = Decimal("100"),
    paid_amount: Decimal | None = Decimal("0"),
    status: constants.InvoiceStatus = constants.InvoiceStatus.UNPAID,
) -> data_manager.InvoiceRow:
    return data_manager.InvoiceRow(
        invoice_id=invoice_id,
        invoice_number=invoice_number,
        party_id=party_id,
        invoice_date=invoice_date,
        items=items,
        subtotal=total,
        tax_percentage=Decimal("0"),
        tax_amount=Decimal("0"),
        discount=Decimal("0"),
        total=total,
        paid_amount=paid_amount,
        status=status,
    )


def make_transaction(
    transaction_id: str | None = None,
    *,
    amount: Decimal = Decimal("100"),
    invoice_id: str | None = None,
    party_id: str = "C1",
    transaction_type: constants.TransactionType = constants.TransactionType.RECEIPT,
) -> data_manager.TransactionRow:
    return data_manager.TransactionRow(
        transaction_id=transaction_id,
        transaction_type=transaction_type,
        amount=amount,
        transaction_date=date(2025, 10, 6),
        party_id=party_id,
        payment_mode=constants.PaymentMode.CASH,
        invoice_id=invoice_id,
    )
