from __future__ import annotations

from ..collections import REPRESENTATIVES
from . import document_store
from .actions import action_boundary
from .document_store import where


@action_boundary(failure=list)
def get_representatives() -> list[dict]:
    return [s.to_dict() for s in document_store.get_all(REPRESENTATIVES)]


@action_boundary()
def get_representative_by_id(rep_id: str) -> dict | None:
    return document_store.get_one(REPRESENTATIVES, rep_id).to_dict()


@action_boundary()
def get_representative_by_username(username: str) -> dict | None:
    matches = document_store.query(REPRESENTATIVES, [where("username", "==", username)])
    return matches[0].to_dict() if matches else None


@action_boundary()
def add_representative(rep: dict) -> dict | None:
    data = {"assignedOrders": 0, **rep}
    rep_id = document_store.insert(REPRESENTATIVES, data)
    return {**data, "id": rep_id}


@action_boundary(failure=False)
def update_representative(rep_id: str, data: dict) -> bool:
    document_store.update(REPRESENTATIVES, rep_id, data)
    return True


@action_boundary(failure=False)
def delete_representative(rep_id: str) -> bool:
    document_store.delete(REPRESENTATIVES, rep_id)
    return True
