from __future__ import annotations

from ..collections import EXPENSES
from ..time_utils import sort_key_iso
from . import document_store
from .actions import action_boundary


@action_boundary(failure=list)
def get_expenses() -> list[dict]:
    expenses = [s.to_dict() for s in document_store.get_all(EXPENSES)]
    return sorted(expenses, key=lambda e: sort_key_iso(e.get("date")), reverse=True)


@action_boundary()
def add_expense(expense: dict) -> dict | None:
    expense_id = document_store.insert(EXPENSES, expense)
    return {**expense, "id": expense_id}


@action_boundary(failure=False)
def delete_expense(expense_id: str) -> bool:
    document_store.delete(EXPENSES, expense_id)
    return True
