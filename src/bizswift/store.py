"""Record stores behind the business logic layer.

A record store holds one ordered collection per :class:`Collection` kind and
offers exactly two operations: load a whole collection and replace a whole
collection. Repositories in :mod:`bizswift.core_logic` build every mutation
as read-all, change in memory, replace-all.

Nothing isolates the read from the write. Two callers working from the same
snapshot will both write, and the last replacement wins for the entire
collection (not per record). That is acceptable while the ledger runs as a
single process with a single writer; a concurrent deployment would have to
serialize writes or move invoice numbering and stock changes onto atomic
primitives.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Protocol, Sequence, Tuple

from openpyxl.workbook import Workbook

from . import data_manager, log
from .constants import Collection


class RecordStore(Protocol):
    """Persistence contract consumed by the business logic layer."""

    def load(self, kind: Collection) -> List[Any]:
        """Return a copy of every record in ``kind`` in stored order."""

    def replace(self, kind: Collection, records: Sequence[Any]) -> None:
        """Overwrite the whole ``kind`` collection with ``records``."""

    def flush(self) -> None:
        """Make pending writes durable."""


_READERS: Mapping[Collection, Callable[[Workbook], Iterable[Any]]] = {
    Collection.PARTIES: data_manager.iter_parties,
    Collection.PRODUCTS: data_manager.iter_products,
    Collection.INVOICES: data_manager.iter_invoices,
    Collection.TRANSACTIONS: data_manager.iter_transactions,
    Collection.BUSINESS_INFO: data_manager.iter_business_info,
}

_WRITERS: Mapping[Collection, Callable[[Workbook, Iterable[Any]], int]] = {
    Collection.PARTIES: data_manager.write_parties,
    Collection.PRODUCTS: data_manager.write_products,
    Collection.INVOICES: data_manager.write_invoices,
    Collection.TRANSACTIONS: data_manager.write_transactions,
    Collection.BUSINESS_INFO: data_manager.write_business_info,
}


class WorkbookStore:
    """Record store backed by an ``openpyxl`` workbook.

    Collections are deserialized lazily and cached per kind; a replacement
    rewrites the matching sheet(s) and evicts that kind's cache bucket so the
    next read reflects the workbook. Changes live in memory until
    :meth:`flush` saves the workbook to ``data_file``.
    """

    def __init__(self, workbook: Workbook, data_file: Path) -> None:
        self.workbook = workbook
        self.data_file = data_file
        self._cache: Dict[Collection, List[Any]] = {}

    def load(self, kind: Collection) -> List[Any]:
        bucket = self._cache.get(kind)
        if bucket is None:
            bucket = list(_READERS[kind](self.workbook))
            self._cache[kind] = bucket
            log.debug("Populated %s cache with %d entries", kind.value, len(bucket))
        return list(bucket)

    def replace(self, kind: Collection, records: Sequence[Any]) -> None:
        written = _WRITERS[kind](self.workbook, records)
        self._cache.pop(kind, None)
        log.debug("Replaced %s collection (%d records)", kind.value, written)

    def flush(self) -> None:
        data_manager.save_workbook(self.workbook, self.data_file)
        log.info("Persisted workbook '%s'", self.data_file)


class MemoryStore:
    """In-memory record store that remembers every write it receives.

    ``writes`` holds ``(kind, records)`` tuples in call order, which lets tests
    assert the exact sequence of collection replacements an operation makes.
    """

    def __init__(self, initial: Mapping[Collection, Sequence[Any]] | None = None) -> None:
        self._collections: Dict[Collection, List[Any]] = {kind: [] for kind in Collection}
        for kind, records in (initial or {}).items():
            self._collections[kind] = list(records)
        self.writes: List[Tuple[Collection, Tuple[Any, ...]]] = []
        self.flush_count = 0

    def load(self, kind: Collection) -> List[Any]:
        return list(self._collections[kind])

    def replace(self, kind: Collection, records: Sequence[Any]) -> None:
        self._collections[kind] = list(records)
        self.writes.append((kind, tuple(records)))

    def flush(self) -> None:
        self.flush_count += 1

    def written_kinds(self) -> List[Collection]:
        """Return the collection kinds written so far, in order."""

        return [kind for kind, _ in self.writes]
