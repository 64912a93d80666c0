# Overview: Service-layer operations for bulk imports of exported collections.

from __future__ import annotations

from flask import current_app

from .. import collections as c
from . import document_store
from .actions import ValidationError, action_boundary
from .concurrency import run_atomic


# Collections accepted by bulk import, by the alias used in export files
IMPORT_ALIASES = {
    "users": c.USERS,
    "orders": c.ORDERS,
    "transactions": c.TRANSACTIONS,
    "representatives": c.REPRESENTATIVES,
    "managers": c.MANAGERS,
    "deposits": c.DEPOSITS,
    "expenses": c.EXPENSES,
    "creditors": c.CREDITORS,
    "tempOrders": c.TEMP_ORDERS,
    "conversations": c.CONVERSATIONS,
    "externalDebts": c.EXTERNAL_DEBTS,
    "settings": c.SETTINGS,
    "instantSales": c.INSTANT_SALES,
}


@action_boundary(failure=0)
def import_rows(collection_alias: str, rows: list) -> int:
    """
    Write exported documents into a collection; returns the row count.

    Rows are keyed by their `id` (generated when absent) and replace any
    existing document with that id. Nothing is written
    unless every row is accepted.
    """
    if not isinstance(rows, list) or not rows:
        raise ValidationError("No data provided or invalid format")
    collection = IMPORT_ALIASES.get(collection_alias)
    if collection is None:
        raise ValidationError(f"Unknown collection: {collection_alias}")
    if not all(isinstance(row, dict) for row in rows):
        raise ValidationError("Every imported row must be an object")

    def _import():
        for row in rows:
            doc_id = row.get("id") or document_store.new_document_id()
            document_store.delete(collection, str(doc_id))
            document_store.insert(collection, row, doc_id=str(doc_id))
        return len(rows)

    count = run_atomic(_import)
    current_app.logger.info("Imported %s rows into %s", count, collection)
    return count


def bulk_import(collection_alias: str, rows: list) -> dict:
    """
    Import rows and report the outcome as {"success", "count", "error"?}.
    """
    outcome = import_rows.result(collection_alias, rows)
    if outcome.ok:
        return {"success": True, "count": outcome.value}
    return {"success": False, "count": 0, "error": outcome.message}
