# Overview: Service-layer operations for multi-document writes; transactions and write batches.

"""
Transactions and Write Batches

WHY: Several actions must change more than one document together (an order
plus its ledger entries plus the customer's counter; an order plus two
representatives). Both helpers run on top of a real database transaction.

run_transaction(fn):
- fn(handle) issues get/set/update/delete through the handle
- Operations apply immediately, in call order; each is visible to the
  next read in the same function
- A document read through the handle is pinned to the version that was
  read; writing it after someone else changed it raises StaleDataError
- Any error rolls back every write made by fn
- Conflicts re-run fn from the start (fn must not keep side effects
  outside the database between attempts)

WriteBatch:
- set/update/delete are queued, nothing touches the database
- commit() applies the queue in order inside one transaction
- All-or-nothing; a committed batch cannot be reused
"""

from __future__ import annotations

from typing import Callable, TypeVar

from flask import current_app

from . import document_store
from .concurrency import run_atomic
from .document_store import DocumentRef, DocumentSnapshot


T = TypeVar("T")


class BatchError(Exception):
    """Raised for misuse of a write batch."""
    pass


class TransactionHandle:
    """Document operations available inside run_transaction."""

    def __init__(self):
        self._read_versions: dict[tuple[str, str], int | None] = {}
        self.operation_count = 0

    def _expected_version(self, ref: DocumentRef) -> int | None:
        # A document we already wrote is locked by this transaction, so the
        # pin is only needed for the first write after a read.
        return self._read_versions.pop((ref.collection, ref.id), None)

    def get(self, ref: DocumentRef) -> DocumentSnapshot:
        snapshot = document_store.get_one(ref.collection, ref.id)
        self._read_versions[(ref.collection, ref.id)] = snapshot.version_id
        self.operation_count += 1
        return snapshot

    def set(self, ref: DocumentRef, data: dict, merge: bool = False) -> None:
        document_store.upsert(
            ref.collection, ref.id, data,
            merge=merge, expected_version=self._expected_version(ref),
        )
        self.operation_count += 1

    def update(self, ref: DocumentRef, changes: dict) -> None:
        document_store.update(
            ref.collection, ref.id, changes,
            expected_version=self._expected_version(ref),
        )
        self.operation_count += 1

    def delete(self, ref: DocumentRef) -> None:
        document_store.delete(ref.collection, ref.id, expected_version=self._expected_version(ref))
        self.operation_count += 1


def run_transaction(fn: Callable[[TransactionHandle], T]) -> T:
    """
    Run `fn` against a fresh handle inside one database transaction.

    Returns whatever `fn` returns. Exceptions raised by `fn` propagate after
    the rollback.
    """
    def _attempt():
        handle = TransactionHandle()
        result = fn(handle)
        current_app.logger.debug("Transaction applied %s operations", handle.operation_count)
        return result

    return run_atomic(_attempt)


OP_SET = "set"
OP_UPDATE = "update"
OP_DELETE = "delete"


class WriteBatch:
    """Queue of writes committed together."""

    def __init__(self):
        self._operations: list[tuple[str, DocumentRef, dict | None, bool]] = []
        self._committed = False

    def __len__(self) -> int:
        return len(self._operations)

    def _queue(self, op: str, ref: DocumentRef, data: dict | None = None, merge: bool = False) -> "WriteBatch":
        if self._committed:
            raise BatchError("Batch already committed")
        self._operations.append((op, ref, data, merge))
        return self

    def set(self, ref: DocumentRef, data: dict, merge: bool = False) -> "WriteBatch":
        return self._queue(OP_SET, ref, data, merge)

    def update(self, ref: DocumentRef, changes: dict) -> "WriteBatch":
        return self._queue(OP_UPDATE, ref, changes)

    def delete(self, ref: DocumentRef) -> "WriteBatch":
        return self._queue(OP_DELETE, ref)

    def commit(self) -> int:
        """Apply every queued write; returns the number applied."""
        if self._committed:
            raise BatchError("Batch already committed")

        operations = list(self._operations)
        current_app.logger.debug("Committing batch with %s operations", len(operations))

        def _apply():
            for op, ref, data, merge in operations:
                if op == OP_SET:
                    document_store.upsert(ref.collection, ref.id, data, merge=merge)
                elif op == OP_UPDATE:
                    document_store.update(ref.collection, ref.id, data)
                else:
                    document_store.delete(ref.collection, ref.id)
            return len(operations)

        applied = run_atomic(_apply) if operations else 0
        self._committed = True
        return applied
