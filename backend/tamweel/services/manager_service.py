from __future__ import annotations

from flask import current_app

from ..collections import MANAGERS
from ..constants import MANAGER_PERMISSIONS
from . import document_store
from .actions import action_boundary
from .document_store import where


DEFAULT_ADMIN_NAME = "General Manager"


def ensure_default_admin() -> bool:
    """
    Create the default administrator if missing.

    The admin document is keyed by its username so repeated bootstraps find
    it without a query.

    Returns:
        True when the admin was created
    """
    username = current_app.config["DEFAULT_ADMIN_USERNAME"]
    password = current_app.config["DEFAULT_ADMIN_PASSWORD"]

    if document_store.get_one(MANAGERS, username).exists:
        return False

    current_app.logger.info("Default admin not found, creating one")
    document_store.upsert(MANAGERS, username, {
        "name": DEFAULT_ADMIN_NAME,
        "username": username,
        "password": password,
        "phone": password,
        "permissions": list(MANAGER_PERMISSIONS),
    })
    return True


@action_boundary(failure=False)
def ensure_default_admin_exists() -> bool:
    return ensure_default_admin()


@action_boundary(failure=list)
def get_managers() -> list[dict]:
    return [s.to_dict() for s in document_store.get_all(MANAGERS)]


@action_boundary()
def get_manager_by_id(manager_id: str) -> dict | None:
    snapshot = document_store.get_one(MANAGERS, manager_id)
    if snapshot.exists:
        return snapshot.to_dict()
    # Sessions created before admins were keyed by username carry the username.
    matches = document_store.query(MANAGERS, [where("username", "==", manager_id)])
    return matches[0].to_dict() if matches else None


@action_boundary()
def get_manager_by_username(username: str) -> dict | None:
    matches = document_store.query(MANAGERS, [where("username", "==", username)])
    return matches[0].to_dict() if matches else None


@action_boundary()
def add_manager(manager: dict) -> dict | None:
    manager_id = document_store.insert(MANAGERS, manager)
    return {**manager, "id": manager_id}


@action_boundary(failure=False)
def update_manager(manager_id: str, data: dict) -> bool:
    document_store.update(MANAGERS, manager_id, data)
    return True


@action_boundary(failure=False)
def delete_manager(manager_id: str) -> bool:
    document_store.delete(MANAGERS, manager_id)
    return True
