from __future__ import annotations

import time

from ..collections import DEPOSITS, USERS
from ..constants import COLLECTED_BY_ADMIN, DEPOSIT_COLLECTED, DEPOSIT_PENDING
from ..time_utils import now_iso, sort_key_iso
from . import document_store
from .actions import action_boundary
from .document_store import where


def generate_receipt_number() -> str:
    # Last six digits of the epoch milliseconds
    return f"DEP-{int(time.time() * 1000) % 1_000_000:06d}"


@action_boundary(failure=list)
def get_deposits() -> list[dict]:
    deposits = [s.to_dict() for s in document_store.get_all(DEPOSITS)]
    return sorted(deposits, key=lambda d: sort_key_iso(d.get("date")), reverse=True)


@action_boundary()
def get_deposit_by_id(deposit_id: str) -> dict | None:
    return document_store.get_one(DEPOSITS, deposit_id).to_dict()


@action_boundary(failure=list)
def get_deposits_by_representative_id(rep_id: str) -> list[dict]:
    return [s.to_dict() for s in document_store.query(DEPOSITS, [where("representativeId", "==", rep_id)])]


@action_boundary(failure=list)
def get_deposits_by_user_id(user_id: str) -> list[dict]:
    """Deposits are recorded against the customer's phone number."""
    phone = document_store.get_one(USERS, user_id).get("phone")
    if not phone:
        return []
    return [s.to_dict() for s in document_store.query(DEPOSITS, [where("customerPhone", "==", phone)])]


@action_boundary()
def add_deposit(deposit: dict) -> dict | None:
    """Deposits taken by the admin are collected on the spot."""
    collected = deposit.get("collectedBy") == COLLECTED_BY_ADMIN
    data = {key: value for key, value in deposit.items() if key != "id"}
    data.update({
        "receiptNumber": generate_receipt_number(),
        "status": DEPOSIT_COLLECTED if collected else DEPOSIT_PENDING,
        "collectedDate": now_iso() if collected else None,
    })
    deposit_id = document_store.insert(DEPOSITS, data)
    return {**data, "id": deposit_id}


@action_boundary(failure=False)
def update_deposit(deposit_id: str, data: dict) -> bool:
    document_store.update(DEPOSITS, deposit_id, data)
    return True


@action_boundary(failure=False)
def update_deposit_status(deposit_id: str, status: str) -> bool:
    changes = {"status": status}
    if status == DEPOSIT_COLLECTED:
        changes["collectedDate"] = now_iso()
    document_store.update(DEPOSITS, deposit_id, changes)
    return True


@action_boundary(failure=False)
def delete_deposit(deposit_id: str) -> bool:
    document_store.delete(DEPOSITS, deposit_id)
    return True
