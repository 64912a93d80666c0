# Overview: Service-layer operations for the document store; encapsulates business logic and database work.

"""
Document Store

WHY: The back office is written against a document-database vocabulary
(collections, documents, field operators) while the data lives in a
relational database. This module is the only place that translates one into
the other.

DESIGN:
- One table per collection (see tamweel.collections), one row per document
- The document body is a JSON payload; the row id is the document id
- Equality, inequality and membership filters run in SQL on top-level fields
- array-contains filters run over the fetched rows
- Every write of an existing row is a compare-and-swap on `version_id`;
  a lost race raises StaleDataError and the caller's unit is retried

FIELD OPERATORS (update only):
- "a.b.c": walk/create nested maps and set the leaf
- increment(n): current numeric value (or 0) plus n
- array_union(item): append to an array field unless already present
"""

from __future__ import annotations

import copy
import math
import uuid
from dataclasses import dataclass
from typing import Any

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from ..collections import model_for
from ..extensions import db
from ..time_utils import utcnow
from .concurrency import run_atomic


class DocumentStoreError(Exception):
    """Raised when the underlying store rejects an operation."""
    pass


class DocumentNotFoundError(DocumentStoreError):
    """Raised when a fetch-modify-write targets a missing document."""
    pass


class UnsupportedQueryError(DocumentStoreError):
    """Raised for query operators the store does not implement."""
    pass


# =============================================================================
# FIELD OPERATORS AND QUERY CONDITIONS
# =============================================================================

@dataclass(frozen=True)
class Increment:
    amount: float


@dataclass(frozen=True)
class ArrayUnion:
    item: Any


def increment(amount) -> Increment:
    return Increment(amount)


def array_union(item) -> ArrayUnion:
    return ArrayUnion(item)


OP_EQUALS = "=="
OP_NOT_EQUALS = "!="
OP_IN = "in"
OP_ARRAY_CONTAINS = "array-contains"

SUPPORTED_OPERATORS = {OP_EQUALS, OP_NOT_EQUALS, OP_IN, OP_ARRAY_CONTAINS}


@dataclass(frozen=True)
class Condition:
    field: str
    op: str
    value: Any


def where(field: str, op: str, value: Any) -> Condition:
    if op not in SUPPORTED_OPERATORS:
        raise UnsupportedQueryError(f"Unsupported query operator: {op!r}")
    return Condition(field, op, value)


# =============================================================================
# DOCUMENT HANDLES
# =============================================================================

@dataclass(frozen=True)
class DocumentSnapshot:
    collection: str
    id: str
    exists: bool
    data: dict | None = None
    version_id: int | None = None

    def to_dict(self) -> dict | None:
        if not self.exists:
            return None
        return {"id": self.id, **self.data}

    def get(self, field: str, default=None):
        if not self.exists:
            return default
        return self.data.get(field, default)


@dataclass(frozen=True)
class DocumentRef:
    """Address of one document; does not touch the database until used."""
    collection: str
    id: str

    def get(self) -> DocumentSnapshot:
        return get_one(self.collection, self.id)

    def set(self, data: dict, merge: bool = False) -> None:
        upsert(self.collection, self.id, data, merge=merge)

    def update(self, changes: dict) -> None:
        update(self.collection, self.id, changes)

    def delete(self) -> None:
        delete(self.collection, self.id)


def new_document_id() -> str:
    return uuid.uuid4().hex


def doc(collection: str, doc_id: str | None = None) -> DocumentRef:
    model_for(collection)
    return DocumentRef(collection, doc_id or new_document_id())


# =============================================================================
# READS
# =============================================================================

def _snapshot(collection: str, row) -> DocumentSnapshot:
    return DocumentSnapshot(
        collection=collection,
        id=row.id,
        exists=True,
        data=copy.deepcopy(row.data or {}),
        version_id=row.version_id,
    )


def _fetch_row(model, doc_id: str):
    # populate_existing: rows may have been rewritten by Core statements
    # earlier in the same transaction.
    return (
        db.session.query(model)
        .populate_existing()
        .filter(model.id == doc_id)
        .first()
    )


def get_all(collection: str) -> list[DocumentSnapshot]:
    model = model_for(collection)
    rows = (
        db.session.query(model)
        .populate_existing()
        .order_by(model.created_at.asc(), model.id.asc())
        .all()
    )
    return [_snapshot(collection, row) for row in rows]


def get_one(collection: str, doc_id: str) -> DocumentSnapshot:
    model = model_for(collection)
    row = _fetch_row(model, doc_id) if doc_id else None
    if row is None:
        return DocumentSnapshot(collection=collection, id=doc_id, exists=False)
    return _snapshot(collection, row)


def _typed_element(model, field: str, sample):
    element = model.data[field]
    if isinstance(sample, bool):
        return element.as_boolean()
    if isinstance(sample, (int, float)):
        return element.as_float()
    return element.as_string()


def _condition_clause(model, cond: Condition):
    if cond.op == OP_IN:
        if not isinstance(cond.value, (list, tuple, set, frozenset)):
            raise UnsupportedQueryError(f"'in' filter on {cond.field} needs a list of values")
        values = list(cond.value)
        present = [v for v in values if v is not None]
        if cond.field == "id":
            column = model.id
        else:
            column = _typed_element(model, cond.field, present[0] if present else "")
        clauses = []
        if present:
            clauses.append(column.in_(present))
        if len(present) != len(values):
            clauses.append(column.is_(None))
        if not clauses:
            return sa.false()
        return sa.or_(*clauses)

    if cond.field == "id":
        column = model.id
    else:
        column = _typed_element(model, cond.field, cond.value)

    if cond.op == OP_EQUALS:
        return column.is_(None) if cond.value is None else column == cond.value
    if cond.op == OP_NOT_EQUALS:
        return column.isnot(None) if cond.value is None else column != cond.value
    raise UnsupportedQueryError(f"Unsupported query operator: {cond.op!r}")


def _array_contains(data: dict, cond: Condition) -> bool:
    values = data.get(cond.field)
    return isinstance(values, list) and cond.value in values


def query(collection: str, conditions: list[Condition]) -> list[DocumentSnapshot]:
    """
    Return documents matching every condition (logical AND).

    Raises:
        UnsupportedQueryError: Unknown operator or malformed membership list
    """
    model = model_for(collection)
    q = db.session.query(model).populate_existing()
    in_memory: list[Condition] = []

    for cond in conditions:
        if cond.op not in SUPPORTED_OPERATORS:
            raise UnsupportedQueryError(f"Unsupported query operator: {cond.op!r}")
        if cond.op == OP_ARRAY_CONTAINS:
            in_memory.append(cond)
            continue
        q = q.filter(_condition_clause(model, cond))

    rows = q.order_by(model.created_at.asc(), model.id.asc()).all()
    snapshots = [_snapshot(collection, row) for row in rows]
    if in_memory:
        snapshots = [s for s in snapshots if all(_array_contains(s.data, c) for c in in_memory)]
    return snapshots


# =============================================================================
# FIELD OPERATOR RESOLUTION
# =============================================================================

def as_number(value) -> float:
    """Numeric value of a stored field; non-numeric values count as 0."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return 0 if isinstance(value, float) and math.isnan(value) else value
    if isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            return 0
        return 0 if math.isnan(parsed) else parsed
    return 0


def _resolve(existing, value):
    if isinstance(value, Increment):
        return as_number(existing) + value.amount
    if isinstance(value, ArrayUnion):
        items = list(existing) if isinstance(existing, list) else []
        if value.item not in items:
            items.append(copy.deepcopy(value.item))
        return items
    return copy.deepcopy(value)


def requires_fetch(changes: dict) -> bool:
    """True when any key is a dot path or carries a field operator."""
    return any(
        "." in key or isinstance(value, (Increment, ArrayUnion))
        for key, value in changes.items()
    )


def apply_changes(current: dict, changes: dict) -> dict:
    """Return a new document body with `changes` applied to `current`."""
    updated = copy.deepcopy(current or {})
    for key, value in changes.items():
        if key == "id":
            continue
        if "." in key:
            parts = key.split(".")
            target = updated
            for part in parts[:-1]:
                if not isinstance(target.get(part), dict):
                    target[part] = {}
                target = target[part]
            target[parts[-1]] = _resolve(target.get(parts[-1]), value)
        else:
            updated[key] = _resolve(updated.get(key), value)
    return updated


def _payload(data: dict) -> dict:
    body = copy.deepcopy(dict(data or {}))
    body.pop("id", None)
    for key, value in body.items():
        if isinstance(value, (Increment, ArrayUnion)):
            body[key] = _resolve(None, value)
    return body


# =============================================================================
# WRITES
# =============================================================================

def _compare_and_swap(model, doc_id: str, seen_version: int, body: dict) -> None:
    table = model.__table__
    result = db.session.execute(
        sa.update(table)
        .where(table.c.id == doc_id, table.c.version_id == seen_version)
        .values(data=body, version_id=seen_version + 1, updated_at=utcnow())
    )
    if result.rowcount != 1:
        raise StaleDataError(
            f"{model.__tablename__}/{doc_id} changed since version {seen_version}"
        )


def _insert_row(model, doc_id: str, body: dict) -> None:
    now = utcnow()
    db.session.execute(
        sa.insert(model.__table__).values(
            id=doc_id, data=body, version_id=1, created_at=now, updated_at=now,
        )
    )


def insert(collection: str, data: dict, doc_id: str | None = None) -> str:
    """
    Create a document and return its id.

    The id comes from `doc_id`, then from an `id` key in `data`, then is
    generated.

    Raises:
        DocumentStoreError: A document with that id already exists
    """
    model = model_for(collection)
    new_id = doc_id or (data or {}).get("id") or new_document_id()
    body = _payload(data)

    def _op():
        if _fetch_row(model, new_id) is not None:
            raise DocumentStoreError(f"Document already exists: {collection}/{new_id}")
        try:
            _insert_row(model, new_id, body)
        except IntegrityError as exc:
            raise DocumentStoreError(f"Could not insert {collection}/{new_id}: {exc.orig}") from exc
        return new_id

    return run_atomic(_op)


def upsert(
    collection: str,
    doc_id: str,
    data: dict,
    merge: bool = False,
    expected_version: int | None = None,
) -> None:
    """
    Create-or-write a document.

    TODO: merge=False currently behaves like merge=True (fields missing from
    `data` survive on an existing document). Decide whether a non-merge set
    should replace the whole body once callers relying on it are audited.
    """
    model = model_for(collection)
    body = _payload(data)

    def _op():
        row = _fetch_row(model, doc_id)
        if expected_version is not None and (row is None or row.version_id != expected_version):
            raise StaleDataError(f"{collection}/{doc_id} changed since it was read")
        if row is None:
            try:
                _insert_row(model, doc_id, body)
            except IntegrityError as exc:
                # Someone else created it first; retry as an update.
                raise StaleDataError(f"{collection}/{doc_id} was created concurrently") from exc
            return
        merged = {**copy.deepcopy(row.data or {}), **body}
        _compare_and_swap(model, doc_id, row.version_id, merged)

    run_atomic(_op)


def update(
    collection: str,
    doc_id: str,
    changes: dict,
    expected_version: int | None = None,
) -> None:
    """
    Apply a partial update.

    Plain keys overwrite fields. Dot paths and field operators are resolved
    against the current body (fetch, apply, write back under a version
    check).

    Raises:
        DocumentNotFoundError: Operators or dot paths target a missing document
        StaleDataError: The document changed since `expected_version`
    """
    model = model_for(collection)
    needs_current = requires_fetch(changes)

    def _op():
        row = _fetch_row(model, doc_id)
        if row is None:
            if expected_version is not None:
                raise StaleDataError(f"{collection}/{doc_id} was deleted since it was read")
            if needs_current:
                raise DocumentNotFoundError(f"Document not found for update: {collection}/{doc_id}")
            # Plain partial write against nothing: no row to touch.
            return
        if expected_version is not None and row.version_id != expected_version:
            raise StaleDataError(f"{collection}/{doc_id} changed since it was read")
        body = apply_changes(row.data or {}, changes)
        _compare_and_swap(model, doc_id, row.version_id, body)

    run_atomic(_op)


def delete(collection: str, doc_id: str, expected_version: int | None = None) -> None:
    """
    Delete by id. Deleting a missing document is not an error.

    With `expected_version` the row is only deleted at that version;
    otherwise StaleDataError is raised.
    """
    model = model_for(collection)
    table = model.__table__

    def _op():
        statement = sa.delete(table).where(table.c.id == doc_id)
        if expected_version is None:
            db.session.execute(statement)
            return
        result = db.session.execute(statement.where(table.c.version_id == expected_version))
        if result.rowcount != 1:
            raise StaleDataError(f"{collection}/{doc_id} changed since it was read")

    run_atomic(_op)


def delete_where(collection: str, conditions: list[Condition]) -> int:
    """Delete every document matching `conditions`; returns the count."""
    snapshots = query(collection, conditions)
    model = model_for(collection)
    table = model.__table__
    ids = [s.id for s in snapshots]

    def _op():
        if ids:
            db.session.execute(sa.delete(table).where(table.c.id.in_(ids)))
        return len(ids)

    return run_atomic(_op)
