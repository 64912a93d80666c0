from __future__ import annotations

from ..collections import MANUAL_LABELS
from ..time_utils import sort_key_iso
from . import document_store
from .actions import action_boundary


# =============================================================================
# MANUAL SHIPPING LABELS
# =============================================================================

@action_boundary(failure=list)
def get_manual_labels() -> list[dict]:
    labels = [s.to_dict() for s in document_store.get_all(MANUAL_LABELS)]
    return sorted(labels, key=lambda l: sort_key_iso(l.get("operationDate")), reverse=True)


@action_boundary()
def get_manual_label_by_id(label_id: str) -> dict | None:
    return document_store.get_one(MANUAL_LABELS, label_id).to_dict()


@action_boundary()
def add_manual_label(label_data: dict) -> dict | None:
    label_id = document_store.insert(MANUAL_LABELS, label_data)
    return {**label_data, "id": label_id}


@action_boundary(failure=False)
def delete_manual_label(label_id: str) -> bool:
    document_store.delete(MANUAL_LABELS, label_id)
    return True
