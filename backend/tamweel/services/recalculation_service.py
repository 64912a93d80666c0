# Overview: Service-layer operations for derived balances; recomputes aggregates from their source documents.

"""
Recalculation of derived aggregates.

INVARIANTS (restored by each function, from the full set of source rows):
- user.debt = sum(order.remainingAmount) over the user's orders in an active
  status + sum(tempOrder.remainingAmount) over temp orders assigned directly
  to the user that are not cancelled and not yet converted
  (parentInvoiceId is null)
- user.orderCount = number of the user's orders in an active status
- creditor.totalDebt = sum(externalDebt.amount) over debts of that creditor

Every function is idempotent: it never applies deltas, so running it again
(or from two trigger points) converges on the same value. Callers run it
after any write that could move one of the inputs.
"""

from __future__ import annotations

from flask import current_app

from ..collections import CREDITORS, EXTERNAL_DEBTS, ORDERS, TEMP_ORDERS, USERS
from ..constants import ACTIVE_ORDER_STATUSES, STATUS_CANCELLED, TEMP_CUSTOMER_PREFIX
from . import document_store
from .batch_service import run_transaction
from .document_store import as_number, where


def compute_user_stats(user_id: str) -> dict:
    """Derive debt and order count for a user without writing anything."""
    orders = document_store.query(ORDERS, [
        where("userId", "==", user_id),
        where("status", "in", ACTIVE_ORDER_STATUSES),
    ])
    order_debt = sum(as_number(o.get("remainingAmount")) for o in orders)

    temp_orders = document_store.query(TEMP_ORDERS, [
        where("assignedUserId", "==", user_id),
        where("parentInvoiceId", "==", None),
    ])
    temp_debt = sum(
        as_number(t.get("remainingAmount"))
        for t in temp_orders
        if t.get("status") != STATUS_CANCELLED
    )

    return {
        "debt": order_debt + temp_debt,
        "orderCount": len(orders),
    }


def recalculate_user_stats(user_id: str) -> dict:
    """
    Recompute and store `debt` and `orderCount` for one user.

    A missing user is left alone (nothing to write to).

    Returns:
        The computed totals
    """
    current_app.logger.info("Recalculating stats for user: %s", user_id)

    def _recalculate(tx):
        user_ref = document_store.doc(USERS, user_id)
        tx.get(user_ref)
        stats = compute_user_stats(user_id)
        tx.update(user_ref, stats)
        return stats

    stats = run_transaction(_recalculate)
    current_app.logger.info(
        "Updated user %s with debt: %s and orderCount: %s",
        user_id, stats["debt"], stats["orderCount"],
    )
    return stats


def should_recalculate(customer_id: str | None) -> bool:
    """Ledger customer ids for temporary sub-orders are not user ids."""
    return bool(customer_id) and not str(customer_id).startswith(TEMP_CUSTOMER_PREFIX)


def recalculate_users(user_ids) -> int:
    """Recalculate each distinct real user id once; returns how many ran."""
    seen = []
    for user_id in user_ids:
        if should_recalculate(user_id) and user_id not in seen:
            seen.append(user_id)
    for user_id in seen:
        recalculate_user_stats(user_id)
    return len(seen)


def recalculate_all_users() -> int:
    return recalculate_users([u.id for u in document_store.get_all(USERS)])


def recalculate_creditor_debt(creditor_id: str) -> float | None:
    """
    Recompute and store `totalDebt` for one creditor.

    Returns:
        The new total, or None when the creditor does not exist
    """
    def _recalculate(tx):
        creditor_ref = document_store.doc(CREDITORS, creditor_id)
        creditor = tx.get(creditor_ref)
        if not creditor.exists:
            return None
        debts = document_store.query(EXTERNAL_DEBTS, [where("creditorId", "==", creditor_id)])
        total = sum(as_number(d.get("amount")) for d in debts)
        tx.update(creditor_ref, {"totalDebt": total})
        return total

    total = run_transaction(_recalculate)
    if total is not None:
        current_app.logger.info("Updated creditor %s with totalDebt: %s", creditor_id, total)
    return total


def recalculate_all_creditors() -> int:
    creditors = document_store.get_all(CREDITORS)
    for creditor in creditors:
        recalculate_creditor_debt(creditor.id)
    return len(creditors)
