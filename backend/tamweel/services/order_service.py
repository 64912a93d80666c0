# Overview: Service-layer operations for orders; creation, cost adjustments, assignment and cascading deletes.

"""
Order Actions

INVARIANTS:
- order.remainingAmount = sellingPriceLYD - downPaymentLYD - sum(payments)
  Cost adjustments move sellingPriceLYD and remainingAmount by the same
  delta so payments already collected stay valid.
- representative.assignedOrders = number of orders whose representativeId
  points at it. Every change of representativeId adjusts the old and new
  representative by -1/+1 in the same transaction as the order write; a
  representative that no longer exists is skipped. The order is read
  through the transaction, so a concurrent reassignment conflicts and the
  action re-runs against the new state.
- The owning user's debt/orderCount are recalculated after every write that
  can move remainingAmount, status or ownership.

STATUS: any action may set any status. Assigning a representative implies
out_for_delivery, unassigning implies ready, recording the representative's
collection implies delivered.
"""

from __future__ import annotations

import secrets
import string

from flask import current_app

from ..collections import ORDERS, REPRESENTATIVES, TRANSACTIONS, USERS
from ..constants import (
    ORDER_STATUSES,
    STATUS_DELIVERED,
    STATUS_OUT_FOR_DELIVERY,
    STATUS_READY,
    TRANSACTION_ORDER,
    TRANSACTION_PAYMENT,
    TRANSACTION_STATUS_COMPLETED,
    TRANSACTION_STATUS_PAID,
)
from ..time_utils import now_iso
from . import document_store
from .actions import NotFoundError, ValidationError, action_boundary
from .batch_service import WriteBatch, run_transaction
from .document_store import DocumentSnapshot, as_number, increment, where
from .recalculation_service import recalculate_user_stats, recalculate_users
from .settings_service import current_exchange_rate


TRACKING_ID_ALPHABET = string.ascii_uppercase + string.digits
TRACKING_ID_LENGTH = 8


def generate_tracking_id() -> str:
    return "".join(secrets.choice(TRACKING_ID_ALPHABET) for _ in range(TRACKING_ID_LENGTH))


def format_invoice_number(username: str, counter: int) -> str:
    return f"{username}-{counter:02d}"


def _require_order(tx, order_id: str) -> DocumentSnapshot:
    snapshot = tx.get(document_store.doc(ORDERS, order_id))
    if not snapshot.exists:
        raise NotFoundError(f"Order not found: {order_id}")
    return snapshot


def _representative_fields(rep: dict) -> tuple[str, str | None]:
    rep_id = (rep or {}).get("id")
    if not rep_id:
        raise ValidationError("Representative id is required")
    return rep_id, rep.get("name")


# =============================================================================
# CREATION
# =============================================================================

def create_order(order_data: dict) -> dict:
    """
    Create an order with its ledger entries and return it.

    Steps (one transaction):
    1. Load the owning user (NotFoundError if absent)
    2. Snapshot the current exchange rate
    3. Next per-user counter -> invoiceNumber "{username}-{NN}"
    4. Tracking id unless one was supplied
    5. remainingAmount = sellingPriceLYD - downPaymentLYD
    6. Write the order, an `order` entry for the full price and, when a down
       payment exists, a `payment` entry for it
    7. Bump the user's orderCounter

    The user's stats are recalculated afterwards.

    Raises:
        NotFoundError: The owning user does not exist
    """
    user_id = order_data.get("userId")
    if not user_id:
        raise ValidationError("Order needs a userId")

    def _create(tx):
        user_ref = document_store.doc(USERS, user_id)
        user = tx.get(user_ref)
        if not user.exists:
            raise NotFoundError(f"User with ID {user_id} does not exist")

        counter = int(as_number(user.get("orderCounter"))) + 1
        invoice_number = format_invoice_number(user.get("username"), counter)
        selling_price = as_number(order_data.get("sellingPriceLYD"))
        down_payment = as_number(order_data.get("downPaymentLYD"))

        order = {key: value for key, value in order_data.items() if key != "id"}
        order.update({
            "invoiceNumber": invoice_number,
            "trackingId": order_data.get("trackingId") or generate_tracking_id(),
            "exchangeRate": current_exchange_rate(),
            "remainingAmount": selling_price - down_payment,
        })

        order_ref = document_store.doc(ORDERS)
        tx.set(order_ref, order)

        entry_date = order.get("operationDate") or now_iso()
        tx.set(document_store.doc(TRANSACTIONS), {
            "orderId": order_ref.id,
            "customerId": user_id,
            "customerName": order.get("customerName"),
            "date": entry_date,
            "type": TRANSACTION_ORDER,
            "status": order.get("status"),
            "amount": selling_price,
            "description": f"New order {invoice_number}",
        })
        if down_payment > 0:
            tx.set(document_store.doc(TRANSACTIONS), {
                "orderId": order_ref.id,
                "customerId": user_id,
                "customerName": order.get("customerName"),
                "date": entry_date,
                "type": TRANSACTION_PAYMENT,
                "status": TRANSACTION_STATUS_PAID,
                "amount": down_payment,
                "description": f"Down payment for order {invoice_number}",
            })

        tx.update(user_ref, {"orderCounter": increment(1)})
        return order_ref.id

    order_id = run_transaction(_create)
    recalculate_user_stats(user_id)
    current_app.logger.info("Created order %s for user %s", order_id, user_id)
    return document_store.get_one(ORDERS, order_id).to_dict()


@action_boundary()
def add_order(order_data: dict) -> dict | None:
    return create_order(order_data)


# =============================================================================
# READS
# =============================================================================

@action_boundary(failure=list)
def get_orders() -> list[dict]:
    return [s.to_dict() for s in document_store.get_all(ORDERS)]


@action_boundary()
def get_order_by_id(order_id: str) -> dict | None:
    return document_store.get_one(ORDERS, order_id).to_dict()


@action_boundary(failure=list)
def get_orders_by_representative_id(rep_id: str) -> list[dict]:
    return [s.to_dict() for s in document_store.query(ORDERS, [where("representativeId", "==", rep_id)])]


@action_boundary()
def get_order_by_tracking_id(tracking_id: str) -> dict | None:
    matches = document_store.query(ORDERS, [where("trackingId", "==", tracking_id)])
    return matches[0].to_dict() if matches else None


# =============================================================================
# UPDATES
# =============================================================================

@action_boundary(failure=False)
def update_order(order_id: str, data: dict) -> bool:
    def _update(tx):
        order = _require_order(tx, order_id)
        tx.update(document_store.doc(ORDERS, order_id), data)
        return [order.get("userId"), data.get("userId")]

    recalculate_users(run_transaction(_update))
    return True


@action_boundary(failure=False)
def add_customer_shipping_cost(order_id: str, cost_in_usd: float) -> bool:
    """
    Set the customer's shipping charge (USD) on an order.

    Only the difference from the previously recorded charge, converted at the
    order's exchange rate, is applied to the price and the remaining amount.
    """
    if cost_in_usd < 0:
        raise ValidationError("Shipping cost cannot be negative")

    def _apply(tx):
        order = _require_order(tx, order_id)
        exchange_rate = as_number(order.get("exchangeRate")) or current_exchange_rate()
        difference_usd = cost_in_usd - as_number(order.get("customerWeightCostUSD"))
        difference_lyd = difference_usd * exchange_rate

        tx.update(document_store.doc(ORDERS, order_id), {
            "sellingPriceLYD": as_number(order.get("sellingPriceLYD")) + difference_lyd,
            "remainingAmount": increment(difference_lyd),
            "customerWeightCostUSD": cost_in_usd,
        })
        return order.get("userId")

    recalculate_users([run_transaction(_apply)])
    return True


@action_boundary(failure=False)
def set_customer_weight_details(
    order_id: str,
    weight: float,
    company_price_per_kilo_usd: float,
    customer_price_per_kilo: float,
) -> bool:
    """
    Record the shipped weight and re-price the customer's weight charge.

    The delta against the previous customer charge moves sellingPriceLYD and
    remainingAmount; a nonzero delta is also written to the ledger as an
    `order` entry (negative for reductions).
    """
    if weight < 0:
        raise ValidationError("Weight cannot be negative")
    if company_price_per_kilo_usd < 0 or customer_price_per_kilo < 0:
        raise ValidationError("Price per kilo cannot be negative")

    def _apply(tx):
        order = _require_order(tx, order_id)
        old_customer_cost = as_number(order.get("customerWeightCost"))
        new_customer_cost = weight * customer_price_per_kilo
        difference = new_customer_cost - old_customer_cost

        tx.update(document_store.doc(ORDERS, order_id), {
            "sellingPriceLYD": as_number(order.get("sellingPriceLYD")) + difference,
            "remainingAmount": as_number(order.get("remainingAmount")) + difference,
            "weightKG": weight,
            "companyPricePerKiloUSD": company_price_per_kilo_usd,
            "customerPricePerKilo": customer_price_per_kilo,
            "customerWeightCost": new_customer_cost,
            "companyWeightCostUSD": weight * company_price_per_kilo_usd,
        })

        if difference != 0:
            previous_weight = old_customer_cost / (customer_price_per_kilo or 1)
            tx.set(document_store.doc(TRANSACTIONS), {
                "orderId": order_id,
                "customerId": order.get("userId"),
                "customerName": order.get("customerName"),
                "date": now_iso(),
                "type": TRANSACTION_ORDER,
                "status": TRANSACTION_STATUS_COMPLETED,
                "amount": difference,
                "description": f"Customer weight changed: {weight} kg (previous: {previous_weight:.2f} kg)",
            })
        return order.get("userId")

    recalculate_users([run_transaction(_apply)])
    return True


# =============================================================================
# REPRESENTATIVE ASSIGNMENT
# =============================================================================

def _release_representative(tx, rep_id: str | None) -> None:
    """Give back one assignment; a deleted representative has nothing to give back."""
    if not rep_id:
        return
    rep_ref = document_store.doc(REPRESENTATIVES, rep_id)
    if tx.get(rep_ref).exists:
        tx.update(rep_ref, {"assignedOrders": increment(-1)})


def _require_representative(tx, rep_id: str) -> None:
    if not tx.get(document_store.doc(REPRESENTATIVES, rep_id)).exists:
        raise NotFoundError(f"Representative not found: {rep_id}")


@action_boundary(failure=False)
def assign_representative_to_order(order_id: str, rep: dict) -> bool:
    rep_id, rep_name = _representative_fields(rep)

    def _assign(tx):
        order = _require_order(tx, order_id)
        _require_representative(tx, rep_id)
        _release_representative(tx, order.get("representativeId"))
        tx.update(document_store.doc(ORDERS, order_id), {
            "representativeId": rep_id,
            "representativeName": rep_name,
            "status": STATUS_OUT_FOR_DELIVERY,
        })
        tx.update(document_store.doc(REPRESENTATIVES, rep_id), {"assignedOrders": increment(1)})

    run_transaction(_assign)
    return True


@action_boundary(failure=False)
def unassign_representative_from_order(order_id: str) -> bool:
    def _unassign(tx):
        order = _require_order(tx, order_id)
        rep_id = order.get("representativeId")
        if not rep_id:
            return
        _release_representative(tx, rep_id)
        tx.update(document_store.doc(ORDERS, order_id), {
            "representativeId": None,
            "representativeName": None,
            "status": STATUS_READY,
        })

    run_transaction(_unassign)
    return True


@action_boundary(failure=False)
def record_representative_payment(order_id: str, collected_amount: float) -> bool:
    def _record(tx):
        order = _require_order(tx, order_id)
        tx.update(document_store.doc(ORDERS, order_id), {
            "status": STATUS_DELIVERED,
            "deliveryDate": now_iso(),
            "collectedAmount": collected_amount,
        })
        return order.get("userId")

    recalculate_users([run_transaction(_record)])
    return True


# =============================================================================
# DELETES AND BULK OPERATIONS
# =============================================================================

def remove_order_in(tx, order: DocumentSnapshot) -> None:
    """Delete an order read through `tx`, with its ledger entries and assignment count."""
    _release_representative(tx, order.get("representativeId"))
    for entry in document_store.query(TRANSACTIONS, [where("orderId", "==", order.id)]):
        tx.delete(document_store.doc(TRANSACTIONS, entry.id))
    tx.delete(document_store.doc(ORDERS, order.id))


def remove_order(order_id: str) -> str | None:
    """
    Delete an order and everything hanging off it.

    Returns:
        The owning user id (already recalculated)

    Raises:
        NotFoundError: The order does not exist
    """
    def _remove(tx):
        order = tx.get(document_store.doc(ORDERS, order_id))
        if not order.exists:
            raise NotFoundError(f"Order to delete not found: {order_id}")
        remove_order_in(tx, order)
        return order.get("userId")

    user_id = run_transaction(_remove)
    recalculate_users([user_id])
    return user_id


@action_boundary(failure=False)
def delete_order(order_id: str) -> bool:
    remove_order(order_id)
    return True


@action_boundary(failure=False)
def bulk_delete_orders(order_ids: list[str]) -> bool:
    if not order_ids:
        return True

    def _remove_all(tx):
        users = []
        for order_id in dict.fromkeys(order_ids):
            order = tx.get(document_store.doc(ORDERS, order_id))
            if order.exists:
                users.append(order.get("userId"))
                remove_order_in(tx, order)
        return users

    recalculate_users(run_transaction(_remove_all))
    return True


@action_boundary(failure=False)
def bulk_update_orders_status(order_ids: list[str], status: str) -> bool:
    if status not in ORDER_STATUSES:
        raise ValidationError(f"Unknown order status: {status}")
    if not order_ids:
        return True

    batch = WriteBatch()
    users = []
    for snapshot in document_store.query(ORDERS, [where("id", "in", list(order_ids))]):
        users.append(snapshot.get("userId"))
        batch.update(document_store.doc(ORDERS, snapshot.id), {"status": status})
    batch.commit()

    recalculate_users(users)
    return True


@action_boundary(failure=False)
def bulk_assign_representative(order_ids: list[str], rep: dict) -> bool:
    """Assign many orders to one representative, releasing previous assignees."""
    rep_id, rep_name = _representative_fields(rep)
    if not order_ids:
        return True

    def _assign_all(tx):
        _require_representative(tx, rep_id)
        assigned = 0
        for order_id in dict.fromkeys(order_ids):
            order = tx.get(document_store.doc(ORDERS, order_id))
            if not order.exists:
                continue
            _release_representative(tx, order.get("representativeId"))
            tx.update(document_store.doc(ORDERS, order_id), {
                "representativeId": rep_id,
                "representativeName": rep_name,
                "status": STATUS_OUT_FOR_DELIVERY,
            })
            assigned += 1
        if assigned:
            tx.update(document_store.doc(REPRESENTATIVES, rep_id), {"assignedOrders": increment(assigned)})

    run_transaction(_assign_all)
    return True
