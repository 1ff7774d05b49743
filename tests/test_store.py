"""Tests for the workbook-backed and in-memory record stores."""

from __future__ import annotations

from decimal import Decimal

from bizswift import data_manager
from bizswift import store as store_module
from bizswift.constants import Collection
from bizswift.store import MemoryStore, WorkbookStore

from conftest import make_party, make_product


def test_workbook_store_caches_until_replaced(workbook_factory, monkeypatch):
    path = workbook_factory()
    store = WorkbookStore(data_manager.open_workbook(path), path)
    calls = []
    original = data_manager.iter_parties

    def counting_reader(workbook):
        calls.append(workbook)
        return original(workbook)

    monkeypatch.setitem(store_module._READERS, Collection.PARTIES, counting_reader)

    assert store.load(Collection.PARTIES) == []
    assert store.load(Collection.PARTIES) == []
    assert len(calls) == 1

    store.replace(Collection.PARTIES, [make_party("C1")])
    assert [p.party_id for p in store.load(Collection.PARTIES)] == ["C1"]
    assert len(calls) == 2


def test_workbook_store_load_returns_a_copy(workbook_factory):
    path = workbook_factory()
    store = WorkbookStore(data_manager.open_workbook(path), path)
    store.replace(Collection.PRODUCTS, [make_product("P1")])

    snapshot = store.load(Collection.PRODUCTS)
    snapshot.clear()

    assert len(store.load(Collection.PRODUCTS)) == 1


def test_workbook_store_flush_writes_to_disk(workbook_factory):
    path = workbook_factory()
    store = WorkbookStore(data_manager.open_workbook(path), path)
    store.replace(Collection.PRODUCTS, [make_product("P1", stock=4, unit_price=Decimal("9.99"))])

    untouched = data_manager.open_workbook(path)
    assert list(data_manager.iter_products(untouched)) == []

    store.flush()

    [product] = data_manager.iter_products(data_manager.open_workbook(path))
    assert product.stock == 4
    assert product.unit_price == Decimal("9.99")


def test_memory_store_records_every_write_in_order():
    store = MemoryStore({Collection.PARTIES: [make_party("C1")]})

    store.replace(Collection.PRODUCTS, [make_product("P1")])
    store.replace(Collection.PARTIES, [])

    assert store.written_kinds() == [Collection.PRODUCTS, Collection.PARTIES]
    assert store.writes[1] == (Collection.PARTIES, ())
    assert store.load(Collection.PARTIES) == []
    assert store.load(Collection.TRANSACTIONS) == []


def test_memory_store_counts_flushes():
    store = MemoryStore()
    store.flush()
    store.flush()
    assert store.flush_count == 2
