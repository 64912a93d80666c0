from __future__ import annotations

from ..collections import INSTANT_SALES
from ..time_utils import sort_key_iso
from . import document_store
from .actions import action_boundary


@action_boundary(failure=list)
def get_instant_sales() -> list[dict]:
    sales = [s.to_dict() for s in document_store.get_all(INSTANT_SALES)]
    return sorted(sales, key=lambda s: sort_key_iso(s.get("createdAt")), reverse=True)


@action_boundary()
def add_instant_sale(sale_data: dict) -> dict | None:
    sale_id = document_store.insert(INSTANT_SALES, sale_data)
    return {**sale_data, "id": sale_id}


@action_boundary(failure=False)
def delete_instant_sale(sale_id: str) -> bool:
    document_store.delete(INSTANT_SALES, sale_id)
    return True
