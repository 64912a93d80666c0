# Overview: Service-layer operations for the financial ledger; entries, amendments and resets.

"""
Ledger Actions

Ledger entries (`transactions` collection) are either `order` charges or
`payment`s. Payments drive the order's remaining amount:
- adding a payment lowers remainingAmount (floored at 0)
- amending a payment moves remainingAmount by the opposite of the change
- deleting a payment gives its amount back to remainingAmount
Charges never move remainingAmount after creation; price changes go
through the order actions.

Entries paid against a temporary sub-order carry customerId
"TEMP-{subOrderId}" and never trigger a user recalculation.
"""

from __future__ import annotations

from flask import current_app

from ..collections import EXPENSES, ORDERS, TEMP_ORDERS, TRANSACTIONS
from ..constants import TEMP_CUSTOMER_PREFIX, TRANSACTION_PAYMENT
from ..time_utils import sort_key_iso
from . import document_store
from .actions import NotFoundError, action_boundary
from .batch_service import run_transaction
from .concurrency import run_atomic
from .document_store import as_number, increment, where
from .recalculation_service import recalculate_all_users, recalculate_users


def _moves_remaining(entry) -> bool:
    return entry.get("type") == TRANSACTION_PAYMENT and bool(entry.get("orderId"))


@action_boundary()
def add_transaction(transaction_data: dict) -> str | None:
    """Write a ledger entry; returns its id."""
    def _add(tx):
        if _moves_remaining(transaction_data):
            order_ref = document_store.doc(ORDERS, transaction_data["orderId"])
            order = tx.get(order_ref)
            if order.exists:
                remaining = as_number(order.get("remainingAmount")) - as_number(transaction_data.get("amount"))
                tx.update(order_ref, {"remainingAmount": max(remaining, 0)})
            else:
                current_app.logger.info(
                    "Order %s not found while adding payment; it may be a temporary order",
                    transaction_data["orderId"],
                )

        ref = document_store.doc(TRANSACTIONS)
        tx.set(ref, {key: value for key, value in transaction_data.items() if key != "id"})
        return ref.id

    entry_id = run_transaction(_add)
    recalculate_users([transaction_data.get("customerId")])
    return entry_id


@action_boundary(failure=list)
def get_transactions() -> list[dict]:
    return [s.to_dict() for s in document_store.get_all(TRANSACTIONS)]


@action_boundary(failure=list)
def get_transactions_by_order_id(order_id: str) -> list[dict]:
    entries = [s.to_dict() for s in document_store.query(TRANSACTIONS, [where("orderId", "==", order_id)])]
    return sorted(entries, key=lambda e: sort_key_iso(e.get("date")))


@action_boundary(failure=list)
def get_transactions_by_user_id(user_id: str) -> list[dict]:
    """
    Entries of the user plus entries paid against sub-orders of temporary
    orders assigned to the user, newest first.
    """
    customer_ids = [user_id]
    for temp_order in document_store.query(TEMP_ORDERS, [where("assignedUserId", "==", user_id)]):
        sub_orders = temp_order.get("subOrders")
        for sub_order in sub_orders if isinstance(sub_orders, list) else []:
            customer_ids.append(f"{TEMP_CUSTOMER_PREFIX}{sub_order.get('subOrderId')}")

    snapshots = document_store.query(TRANSACTIONS, [where("customerId", "in", customer_ids)])
    entries = [s.to_dict() for s in snapshots]
    return sorted(entries, key=lambda e: sort_key_iso(e.get("date")), reverse=True)


@action_boundary(failure=False)
def update_transaction(transaction_id: str, new_amount: float) -> bool:
    def _update(tx):
        ref = document_store.doc(TRANSACTIONS, transaction_id)
        entry = tx.get(ref)
        if not entry.exists:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

        difference = new_amount - as_number(entry.get("amount"))
        tx.update(ref, {"amount": new_amount})

        if _moves_remaining(entry):
            order_ref = document_store.doc(ORDERS, entry.get("orderId"))
            if tx.get(order_ref).exists:
                tx.update(order_ref, {"remainingAmount": increment(-difference)})
        return entry.get("customerId")

    recalculate_users([run_transaction(_update)])
    return True


@action_boundary(failure=False)
def delete_transaction(transaction_id: str) -> bool:
    def _delete(tx):
        ref = document_store.doc(TRANSACTIONS, transaction_id)
        entry = tx.get(ref)
        if not entry.exists:
            raise NotFoundError(f"Transaction to delete not found: {transaction_id}")

        if _moves_remaining(entry):
            order_ref = document_store.doc(ORDERS, entry.get("orderId"))
            if tx.get(order_ref).exists:
                tx.update(order_ref, {"remainingAmount": increment(as_number(entry.get("amount")))})
        tx.delete(ref)
        return entry.get("customerId")

    recalculate_users([run_transaction(_delete)])
    return True


@action_boundary(failure=False)
def reset_financial_reports() -> bool:
    """Delete every ledger entry and expense, then recalculate all users."""
    def _reset():
        removed_entries = document_store.delete_where(TRANSACTIONS, [])
        removed_expenses = document_store.delete_where(EXPENSES, [])
        recalculate_all_users()
        return removed_entries, removed_expenses

    removed_entries, removed_expenses = run_atomic(_reset)
    current_app.logger.info(
        "Financial reports reset: %s transactions and %s expenses removed",
        removed_entries, removed_expenses,
    )
    return True
