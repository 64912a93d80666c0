# Overview: Service-layer operations for creditors and their external debts; totals recalculated from debts.

"""
Creditor Actions

Creditors are people or companies the business owes money to. Their
`totalDebt` is always the sum of their external debts and is recalculated
after every debt write, never edited directly:
- an opening balance is recorded as the creditor's first external debt
- moving a debt to another creditor recalculates both creditors
- deleting a creditor removes its external debts in the same batch
"""

from __future__ import annotations

from ..collections import CREDITORS, EXTERNAL_DEBTS
from ..constants import EXTERNAL_DEBT_PENDING
from ..time_utils import now_iso, sort_key_iso
from . import document_store
from .actions import NotFoundError, action_boundary
from .batch_service import WriteBatch
from .concurrency import run_atomic
from .document_store import where
from .recalculation_service import recalculate_creditor_debt


OPENING_BALANCE_NOTE = "Opening balance"


def _newest_first(debts: list[dict]) -> list[dict]:
    return sorted(debts, key=lambda d: sort_key_iso(d.get("date")), reverse=True)


def create_external_debt(debt: dict) -> dict:
    """Write an external debt and refresh its creditor's total."""
    def _create():
        data = {key: value for key, value in debt.items() if key != "id"}
        debt_id = document_store.insert(EXTERNAL_DEBTS, data)
        recalculate_creditor_debt(data.get("creditorId"))
        return {**data, "id": debt_id}

    return run_atomic(_create)


# =============================================================================
# CREDITORS
# =============================================================================

@action_boundary(failure=list)
def get_creditors() -> list[dict]:
    return [s.to_dict() for s in document_store.get_all(CREDITORS)]


@action_boundary()
def get_creditor_by_id(creditor_id: str) -> dict | None:
    return document_store.get_one(CREDITORS, creditor_id).to_dict()


@action_boundary()
def add_creditor(creditor_data: dict, initial_balance: float = 0) -> dict | None:
    """
    Create a creditor with totalDebt 0.

    A nonzero opening balance is recorded as the creditor's first external
    debt, so totalDebt stays a pure sum over external debts.
    """
    def _add():
        data = {key: value for key, value in creditor_data.items() if key not in ("id", "totalDebt")}
        data["totalDebt"] = 0
        creditor_id = document_store.insert(CREDITORS, data)

        if initial_balance:
            create_external_debt({
                "creditorId": creditor_id,
                "creditorName": data.get("name"),
                "amount": initial_balance,
                "date": now_iso(),
                "status": EXTERNAL_DEBT_PENDING,
                "notes": OPENING_BALANCE_NOTE,
            })
        else:
            recalculate_creditor_debt(creditor_id)
        return creditor_id

    creditor_id = run_atomic(_add)
    return document_store.get_one(CREDITORS, creditor_id).to_dict()


@action_boundary(failure=False)
def update_creditor(creditor_id: str, data: dict) -> bool:
    changes = {key: value for key, value in data.items() if key != "totalDebt"}
    document_store.update(CREDITORS, creditor_id, changes)
    return True


@action_boundary(failure=False)
def delete_creditor(creditor_id: str) -> bool:
    """Delete a creditor together with its external debts."""
    batch = WriteBatch()
    batch.delete(document_store.doc(CREDITORS, creditor_id))
    for debt in document_store.query(EXTERNAL_DEBTS, [where("creditorId", "==", creditor_id)]):
        batch.delete(document_store.doc(EXTERNAL_DEBTS, debt.id))
    batch.commit()
    return True


# =============================================================================
# EXTERNAL DEBTS
# =============================================================================

@action_boundary(failure=list)
def get_all_external_debts() -> list[dict]:
    return _newest_first([s.to_dict() for s in document_store.get_all(EXTERNAL_DEBTS)])


@action_boundary(failure=list)
def get_external_debts_for_creditor(creditor_id: str) -> list[dict]:
    snapshots = document_store.query(EXTERNAL_DEBTS, [where("creditorId", "==", creditor_id)])
    return _newest_first([s.to_dict() for s in snapshots])


@action_boundary()
def add_external_debt(debt: dict) -> dict | None:
    return create_external_debt(debt)


@action_boundary(failure=False)
def update_external_debt(debt_id: str, data: dict) -> bool:
    """Update a debt; both the old and the new creditor are recalculated."""
    existing = document_store.get_one(EXTERNAL_DEBTS, debt_id)
    if not existing.exists:
        raise NotFoundError(f"External debt not found: {debt_id}")

    def _update():
        document_store.update(EXTERNAL_DEBTS, debt_id, data)
        creditors = {existing.get("creditorId"), data.get("creditorId")}
        for creditor_id in creditors - {None}:
            recalculate_creditor_debt(creditor_id)

    run_atomic(_update)
    return True


@action_boundary(failure=False)
def delete_external_debt(debt_id: str) -> bool:
    existing = document_store.get_one(EXTERNAL_DEBTS, debt_id)
    if not existing.exists:
        raise NotFoundError(f"External debt not found: {debt_id}")

    def _delete():
        document_store.delete(EXTERNAL_DEBTS, debt_id)
        recalculate_creditor_debt(existing.get("creditorId"))

    run_atomic(_delete)
    return True
