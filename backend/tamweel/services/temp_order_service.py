# Overview: Service-layer operations for temporary (consolidated) invoices and their conversion into orders.

"""
Temporary Orders

A temporary order is a consolidated invoice made of sub-orders, usually for
customers that have no account yet. Assigning it to a user converts it: a
main order is created for the user (down payment = total - remaining) and
the temporary order is linked to it through `parentInvoiceId`.

INVARIANT: a converted temporary order never counts toward the user's debt;
the main order carries it. Only unconverted, non-cancelled temporary orders
assigned to a user count directly.
"""

from __future__ import annotations

from ..collections import ORDERS, TEMP_ORDERS, TRANSACTIONS, USERS
from ..constants import (
    STATUS_CANCELLED,
    STATUS_PENDING,
    TEMP_CUSTOMER_PREFIX,
    TRANSACTION_PAYMENT,
    TRANSACTION_STATUS_PAID,
)
from ..time_utils import now_iso, sort_key_iso
from . import document_store
from .actions import NotFoundError, ValidationError, action_boundary
from .batch_service import run_transaction
from .document_store import as_number, increment, where
from .order_service import create_order, remove_order
from .recalculation_service import recalculate_users


def normalize_temp_order(temp_order: dict) -> dict:
    sub_orders = temp_order.get("subOrders")
    return {**temp_order, "subOrders": sub_orders if isinstance(sub_orders, list) else []}


def main_order_for(temp_order: dict, user_id: str, user_name: str | None) -> dict:
    """Order data for the main order a temporary order converts into."""
    total = as_number(temp_order.get("totalAmount"))
    remaining = as_number(temp_order.get("remainingAmount"))
    sub_orders = normalize_temp_order(temp_order)["subOrders"]
    user = document_store.get_one(USERS, user_id)

    return {
        "userId": user_id,
        "customerName": user_name or "",
        "customerPhone": user.get("phone") or "",
        "operationDate": now_iso(),
        "sellingPriceLYD": total,
        "downPaymentLYD": total - remaining,
        "status": STATUS_PENDING,
        "productLinks": "\n".join(str(so.get("productLinks") or "") for so in sub_orders),
        "itemDescription": f"Consolidated invoice: {temp_order.get('invoiceName', '')}",
        "trackingId": "",
    }


# =============================================================================
# READS
# =============================================================================

@action_boundary(failure=list)
def get_temp_orders() -> list[dict]:
    snapshots = document_store.query(TEMP_ORDERS, [where("status", "!=", STATUS_CANCELLED)])
    temp_orders = [normalize_temp_order(s.to_dict()) for s in snapshots]
    return sorted(temp_orders, key=lambda t: sort_key_iso(t.get("createdAt")), reverse=True)


@action_boundary()
def get_temp_order_by_id(order_id: str) -> dict | None:
    snapshot = document_store.get_one(TEMP_ORDERS, order_id)
    return normalize_temp_order(snapshot.to_dict()) if snapshot.exists else None


@action_boundary(failure=list)
def get_temp_sub_orders_by_representative_id(rep_id: str) -> list[dict]:
    assigned = []
    for snapshot in document_store.get_all(TEMP_ORDERS):
        temp_order = normalize_temp_order(snapshot.to_dict())
        for sub_order in temp_order["subOrders"]:
            if sub_order.get("representativeId") == rep_id:
                assigned.append({**sub_order, "invoiceName": temp_order.get("invoiceName")})
    return assigned


# =============================================================================
# WRITES
# =============================================================================

@action_boundary()
def add_temp_order(order: dict) -> dict | None:
    """
    Create a temporary order.

    With both assignedUserId and assignedUserName set the order is converted
    on creation; the main order and the temporary order are written in one
    transaction.
    """
    user_id = order.get("assignedUserId")
    user_name = order.get("assignedUserName")

    def _add(tx):
        data = {key: value for key, value in order.items() if key != "id"}
        data["createdAt"] = now_iso()
        if user_id and user_name:
            main_order = create_order(main_order_for(data, user_id, user_name))
            data["parentInvoiceId"] = main_order["id"]
        ref = document_store.doc(TEMP_ORDERS)
        tx.set(ref, data)
        return {**data, "id": ref.id}

    created = run_transaction(_add)
    recalculate_users([user_id])
    return created


@action_boundary(failure=False)
def update_temp_order(order_id: str, data: dict) -> bool:
    """Update a temporary order; the first user assignment converts it."""
    def _update(tx):
        ref = document_store.doc(TEMP_ORDERS, order_id)
        old = tx.get(ref)
        if not old.exists:
            raise NotFoundError(f"TempOrder not found: {order_id}")

        users = [old.get("assignedUserId"), data.get("assignedUserId")]
        tx.update(ref, data)

        new_user_id = data.get("assignedUserId")
        if new_user_id and not old.get("assignedUserId"):
            merged = {**old.data, **data}
            main_order = create_order(main_order_for(merged, new_user_id, data.get("assignedUserName")))
            tx.update(ref, {"parentInvoiceId": main_order["id"]})
            users.append(main_order["userId"])
        return users

    recalculate_users(run_transaction(_update))
    return True


@action_boundary(failure=False)
def delete_temp_order(order_id: str) -> bool:
    """Delete a temporary order and the main order it was converted into."""
    def _delete(tx):
        ref = document_store.doc(TEMP_ORDERS, order_id)
        temp_order = tx.get(ref)
        if not temp_order.exists:
            raise NotFoundError(f"TempOrder to delete not found: {order_id}")

        user_id = temp_order.get("assignedUserId")
        parent_id = temp_order.get("parentInvoiceId")
        if parent_id:
            main_order = document_store.get_one(ORDERS, parent_id)
            if main_order.exists:
                user_id = remove_order(parent_id) or user_id

        tx.delete(ref)
        return user_id

    recalculate_users([run_transaction(_delete)])
    return True


@action_boundary(failure=False)
def add_temp_order_payment(temp_order_id: str, sub_order_id: str, amount: float, notes: str | None = None) -> bool:
    """
    Record a payment against one sub-order.

    The sub-order and the temporary order remaining amounts are floored at 0.
    A converted temporary order also reduces its main order's remaining
    amount. The ledger entry is written against the main order (or the
    temporary order) and the assigned user (or "TEMP-{subOrderId}").
    """
    if amount < 0:
        raise ValidationError("Payment amount cannot be negative")

    def _pay(tx):
        ref = document_store.doc(TEMP_ORDERS, temp_order_id)
        temp_order = tx.get(ref)
        if not temp_order.exists:
            raise NotFoundError(f"TempOrder not found: {temp_order_id}")

        sub_orders = [dict(so) for so in normalize_temp_order(temp_order.data)["subOrders"]]
        index = next((i for i, so in enumerate(sub_orders) if so.get("subOrderId") == sub_order_id), None)
        if index is None:
            raise NotFoundError(f"SubOrder not found: {sub_order_id}")

        sub_order = sub_orders[index]
        sub_order["remainingAmount"] = max(0, as_number(sub_order.get("remainingAmount")) - amount)
        tx.update(ref, {
            "subOrders": sub_orders,
            "remainingAmount": max(0, as_number(temp_order.get("remainingAmount")) - amount),
        })

        parent_id = temp_order.get("parentInvoiceId")
        if parent_id:
            tx.update(document_store.doc(ORDERS, parent_id), {"remainingAmount": increment(-amount)})

        customer_name = sub_order.get("customerName") or "Customer"
        description = f"Payment from {customer_name} (consolidated invoice #{temp_order_id[-6:]})"
        if notes:
            description += f" | {notes}"

        assigned_user_id = temp_order.get("assignedUserId")
        tx.set(document_store.doc(TRANSACTIONS), {
            "orderId": parent_id or temp_order_id,
            "customerId": assigned_user_id or f"{TEMP_CUSTOMER_PREFIX}{sub_order_id}",
            "customerName": customer_name,
            "date": now_iso(),
            "type": TRANSACTION_PAYMENT,
            "status": TRANSACTION_STATUS_PAID,
            "amount": amount,
            "description": description,
        })
        return assigned_user_id

    recalculate_users([run_transaction(_pay)])
    return True
