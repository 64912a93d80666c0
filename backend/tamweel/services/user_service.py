from __future__ import annotations

from ..collections import ORDERS, TEMP_ORDERS, USERS
from ..time_utils import sort_key_iso
from . import document_store
from .actions import action_boundary
from .document_store import where
from .recalculation_service import recalculate_user_stats, should_recalculate


def temp_order_as_user(temp_order: dict) -> dict:
    """Project an imported temporary invoice onto the user shape."""
    sub_orders = temp_order.get("subOrders")
    return {
        "id": temp_order["id"],
        "name": temp_order.get("invoiceName"),
        "username": temp_order.get("invoiceName"),
        "phone": "",
        "orderCount": len(sub_orders) if isinstance(sub_orders, list) else 0,
        "debt": temp_order.get("remainingAmount", 0),
    }


def find_user(user_id: str) -> dict | None:
    snapshot = document_store.get_one(USERS, user_id)
    return snapshot.to_dict()


@action_boundary(failure=list)
def get_users() -> list[dict]:
    return [s.to_dict() for s in document_store.get_all(USERS)]


@action_boundary()
def get_user_by_id(user_id: str) -> dict | None:
    """
    Fetch a user with freshly recalculated `debt` and `orderCount`.

    Ids of temporary invoices (customers imported without an account) are
    answered with a pseudo-user built from the invoice.
    """
    if document_store.get_one(USERS, user_id).exists and should_recalculate(user_id):
        recalculate_user_stats(user_id)

    user = find_user(user_id)
    if user is not None:
        return user

    temp_order = document_store.get_one(TEMP_ORDERS, user_id)
    if temp_order.exists:
        return temp_order_as_user(temp_order.to_dict())
    return None


@action_boundary(failure=list)
def get_orders_by_user_id(user_id: str) -> list[dict]:
    orders = [s.to_dict() for s in document_store.query(ORDERS, [where("userId", "==", user_id)])]
    return sorted(orders, key=lambda o: sort_key_iso(o.get("operationDate")), reverse=True)


@action_boundary()
def get_user_by_phone(phone: str) -> dict | None:
    matches = document_store.query(USERS, [where("phone", "==", phone)])
    return matches[0].to_dict() if matches else None


@action_boundary()
def add_user(user: dict) -> dict | None:
    user_id = document_store.insert(USERS, user)
    return {**user, "id": user_id}


@action_boundary(failure=False)
def update_user(user_id: str, data: dict) -> bool:
    document_store.update(USERS, user_id, data)
    return True


@action_boundary(failure=False)
def delete_user(user_id: str) -> bool:
    document_store.delete(USERS, user_id)
    return True
